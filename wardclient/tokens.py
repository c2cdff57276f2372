"""
Token store: the one place that knows whether a session is active.

Tokens live in memory and, when a path is given, in a small JSON file so
a CLI session survives restarts.  ``clear()`` removes both.
"""
from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path

logger = logging.getLogger(__name__)


class TokenStore:
    def __init__(self, path: str | os.PathLike | None = None):
        self.path = Path(path) if path else None
        self._lock = threading.Lock()
        self._access: str | None = None
        self._refresh: str | None = None
        self._load()

    @property
    def access_token(self) -> str | None:
        with self._lock:
            return self._access

    @property
    def refresh_token(self) -> str | None:
        with self._lock:
            return self._refresh

    def has_session(self) -> bool:
        return self.access_token is not None

    def save(self, access: str, refresh: str | None) -> None:
        with self._lock:
            self._access, self._refresh = access, refresh
            self._persist()

    def set_access(self, access: str) -> None:
        with self._lock:
            self._access = access
            self._persist()

    def clear(self) -> None:
        with self._lock:
            self._access = self._refresh = None
            if self.path is not None and self.path.exists():
                self.path.unlink()

    def _load(self) -> None:
        if self.path is None or not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("ignoring unreadable token file %s: %s", self.path, exc)
            return
        self._access = data.get("accessToken")
        self._refresh = data.get("refreshToken")

    def _persist(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps({"accessToken": self._access, "refreshToken": self._refresh}), encoding="utf-8"
        )
        os.chmod(self.path, 0o600)
