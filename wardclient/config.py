"""
Client configuration read from the environment (and a local ``.env``).

    WARD_API_URL     base URL of the API              (http://127.0.0.1:8000)
    WARD_WS_URL      live device-update socket        (ws://127.0.0.1:8000/ws/devices/)
    WARD_TOKEN_FILE  where to persist tokens, if set
    WARD_TIMEOUT     request timeout in seconds       (10)
"""
from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv  # type: ignore


@dataclass(frozen=True)
class ClientSettings:
    api_url: str = "http://127.0.0.1:8000"
    ws_url: str = "ws://127.0.0.1:8000/ws/devices/"
    token_file: str | None = None
    timeout: float = 10.0
    reconnect_delay: float = 2.0

    @classmethod
    def from_env(cls) -> "ClientSettings":
        load_dotenv()
        return cls(
            api_url=os.getenv("WARD_API_URL", cls.api_url).rstrip("/"),
            ws_url=os.getenv("WARD_WS_URL", cls.ws_url),
            token_file=os.getenv("WARD_TOKEN_FILE") or None,
            timeout=float(os.getenv("WARD_TIMEOUT", str(cls.timeout))),
        )
