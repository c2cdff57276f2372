"""
Live device-update feed.

Connects to the server's ``ws/devices/`` socket, turns each broadcast into
a ``DeviceUpdate`` and keeps the most recent few (newest first).  A message
identical to the previous one (same device, same ``updatedAt``) is dropped.
When the socket closes or cannot be opened the feed waits a fixed delay and
reconnects, for as long as it has not been stopped.
"""
from __future__ import annotations

import json
import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Callable, Iterable

from websockets.exceptions import WebSocketException
from websockets.sync.client import connect as ws_connect

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeviceUpdate:
    id: str
    help_needed: bool
    updated_at: str

    @property
    def key(self) -> tuple[str, str]:
        return self.id, self.updated_at

    @classmethod
    def parse(cls, raw: str | bytes) -> "DeviceUpdate | None":
        try:
            data = json.loads(raw)
        except ValueError:
            return None
        if not isinstance(data, dict) or "id" not in data:
            return None
        return cls(
            id=str(data["id"]),
            help_needed=bool(data.get("help_needed")),
            updated_at=str(data.get("updatedAt") or ""),
        )


@dataclass(frozen=True)
class Notification:
    level: str
    message: str

    @classmethod
    def for_update(cls, update: DeviceUpdate) -> "Notification":
        if update.help_needed:
            return cls("error", f"Device {update.id} needs help!")
        return cls("success", f"Device {update.id} is OK again.")


class LiveUpdateFeed:
    def __init__(
        self,
        url: str,
        *,
        device_id: str | None = None,
        history_size: int = 5,
        reconnect_delay: float = 2.0,
        on_update: Callable[[DeviceUpdate], None] | None = None,
        on_notify: Callable[[Notification], None] | None = None,
        connect: Callable = ws_connect,
    ):
        self.url = url
        self.device_id = device_id
        self.reconnect_delay = reconnect_delay
        self.on_update = on_update
        self.on_notify = on_notify
        self._connect = connect
        self._history: deque[DeviceUpdate] = deque(maxlen=history_size)
        self._last_key: tuple[str, str] | None = None
        self._stop = threading.Event()

    @property
    def history(self) -> list[DeviceUpdate]:
        return list(self._history)

    def handle_message(self, raw: str | bytes) -> DeviceUpdate | None:
        """Process one socket message; return the update if it was kept."""
        update = DeviceUpdate.parse(raw)
        if update is None:
            logger.debug("skipping malformed message: %r", raw)
            return None
        if self.device_id is not None and update.id != self.device_id:
            return None
        if update.key == self._last_key:
            return None
        self._last_key = update.key
        self._history.appendleft(update)

        self._deliver(self.on_update, update)
        self._deliver(self.on_notify, Notification.for_update(update))
        return update

    def _deliver(self, callback, value) -> None:
        if callback is None:
            return
        try:
            callback(value)
        except Exception:
            logger.exception("live feed callback failed")

    def consume(self, messages: Iterable[str | bytes]) -> None:
        for raw in messages:
            if self._stop.is_set():
                return
            self.handle_message(raw)

    def run_forever(self) -> None:
        while not self._stop.is_set():
            try:
                with self._connect(self.url) as ws:
                    logger.info("live feed connected to %s", self.url)
                    self.consume(ws)
                logger.info("live feed closed")
            except (OSError, WebSocketException) as exc:
                logger.warning("live feed connection failed: %s", exc)
            self._pause()

    def stop(self) -> None:
        self._stop.set()

    def _pause(self) -> None:
        self._stop.wait(self.reconnect_delay)
