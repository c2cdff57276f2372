"""
Command-line entry point.

    python -m wardclient login you@example.com
    python -m wardclient watch [--device DEV-1]
"""
from __future__ import annotations

import argparse
import getpass
import logging
import sys
from pathlib import Path

from wardclient.client import ApiClient
from wardclient.config import ClientSettings
from wardclient.errors import ClientError
from wardclient.live import LiveUpdateFeed
from wardclient.tokens import TokenStore

DEFAULT_TOKEN_FILE = Path.home() / ".wardclient" / "tokens.json"


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="wardclient")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)
    login = sub.add_parser("login", help="Log in and store the session tokens")
    login.add_argument("email")
    sub.add_parser("me", help="Show the logged-in account")
    watch = sub.add_parser("watch", help="Print live device updates")
    watch.add_argument("--device", help="Only show updates for this device id")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(levelname)s %(message)s")
    settings = ClientSettings.from_env()
    tokens = TokenStore(settings.token_file or DEFAULT_TOKEN_FILE)

    try:
        if args.command == "login":
            ApiClient(settings, tokens=tokens).login(args.email, getpass.getpass())
            print("Logged in.")
        elif args.command == "me":
            print(ApiClient(settings, tokens=tokens).me())
        else:
            feed = LiveUpdateFeed(
                settings.ws_url,
                device_id=args.device,
                reconnect_delay=settings.reconnect_delay,
                on_notify=lambda n: print(f"[{n.level}] {n.message}"),
            )
            try:
                feed.run_forever()
            except KeyboardInterrupt:
                feed.stop()
    except ClientError as exc:
        print(exc, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
