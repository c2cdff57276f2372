"""
HTTP client for the ward monitoring API.

Every request carries the current access token.  A 401 on an ordinary
request triggers one shared refresh (see ``RefreshCoordinator``) and a
single retry; a 401 from the login/refresh endpoints, or on the retry,
is final.  Transport failures surface as ``NetworkError`` and are never
retried.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable

import requests

from wardclient.config import ClientSettings
from wardclient.errors import ApiError, NetworkError, SessionExpired
from wardclient.refresh import RefreshCoordinator
from wardclient.tokens import TokenStore

logger = logging.getLogger(__name__)

AUTH_PATHS = ("/api/auth/login", "/api/auth/refresh")
MUTATING = {"POST", "PUT", "PATCH", "DELETE"}


class ApiClient:
    def __init__(
        self,
        settings: ClientSettings | None = None,
        *,
        tokens: TokenStore | None = None,
        session: requests.Session | None = None,
        on_session_expired: Callable[[str], None] | None = None,
        on_notify: Callable[[str, str], None] | None = None,
    ):
        self.settings = settings or ClientSettings.from_env()
        self.tokens = tokens or TokenStore(self.settings.token_file)
        self.session = session or requests.Session()
        self.on_session_expired = on_session_expired
        self.on_notify = on_notify
        self.coordinator = RefreshCoordinator(self._refresh_access)
        self._listeners: list[Callable[[], None]] = []
        self._listeners_lock = threading.Lock()
        if self.tokens.access_token:
            self.session.headers["Authorization"] = f"Bearer {self.tokens.access_token}"

    @property
    def state(self) -> str:
        """``refreshing``, ``authenticated`` or ``anonymous``."""
        if self.coordinator.in_flight:
            return "refreshing"
        return "authenticated" if self.tokens.has_session() else "anonymous"

    def add_update_listener(self, fn: Callable[[], None]) -> None:
        """Called after every successful mutating request, so views can reload."""
        with self._listeners_lock:
            self._listeners.append(fn)

    # ------------------------------------------------------------------
    # transport
    # ------------------------------------------------------------------
    def request(self, method: str, path: str, *, json: Any = None, params: dict | None = None) -> Any:
        method = method.upper()
        retried = False
        while True:
            generation = self.coordinator.generation
            resp = self._send(method, path, json=json, params=params)
            if resp.status_code == 401 and not retried and not path.startswith(AUTH_PATHS):
                self.coordinator.refresh(generation)
                retried = True
                continue
            break

        if resp.status_code >= 400:
            raise ApiError.from_response(resp)
        if method in MUTATING and not path.startswith(AUTH_PATHS):
            self._fire_updates()
        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()

    def _send(self, method, path, **kwargs) -> requests.Response:
        token = self.tokens.access_token
        if path.startswith(AUTH_PATHS) or not token:
            headers = {"Authorization": None}
        else:
            headers = {"Authorization": f"Bearer {token}"}
        try:
            return self.session.request(
                method, self.settings.api_url + path, headers=headers, timeout=self.settings.timeout, **kwargs
            )
        except (requests.ConnectionError, requests.Timeout) as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            self._notify("error", "Network error. Please check your connection.")
            raise NetworkError(str(exc)) from exc

    def _refresh_access(self) -> str:
        """Exchange the refresh token for a new access token.

        Only a rejected refresh token ends the session.  A ``NetworkError``
        reaches every waiting request but leaves the stored tokens alone, so
        the next request can refresh once the server is reachable again.
        """
        refresh = self.tokens.refresh_token
        if not refresh:
            self._end_session("No refresh token available.")
            raise SessionExpired("No refresh token available.")
        try:
            data = self.request("POST", "/api/auth/refresh", json={"refreshToken": refresh})
        except ApiError as exc:
            self._end_session("Session expired. Please log in again.")
            raise SessionExpired("Session expired. Please log in again.") from exc
        access = data["accessToken"]
        self.tokens.set_access(access)
        self.session.headers["Authorization"] = f"Bearer {access}"
        logger.info("access token refreshed")
        return access

    def _end_session(self, message: str) -> None:
        self.tokens.clear()
        self.session.headers.pop("Authorization", None)
        self._notify("error", message)
        if self.on_session_expired is not None:
            self.on_session_expired(message)

    def _notify(self, level: str, message: str) -> None:
        if self.on_notify is not None:
            self.on_notify(level, message)

    def _fire_updates(self) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for fn in listeners:
            try:
                fn()
            except Exception:
                logger.exception("update listener failed")

    # ------------------------------------------------------------------
    # auth
    # ------------------------------------------------------------------
    def login(self, email: str, password: str) -> dict:
        data = self.request("POST", "/api/auth/login", json={"email": email, "password": password})
        self.tokens.save(data["accessToken"], data.get("refreshToken"))
        self.session.headers["Authorization"] = f"Bearer {data['accessToken']}"
        return data

    def logout(self) -> None:
        refresh = self.tokens.refresh_token
        try:
            if self.tokens.has_session():
                self.request("POST", "/api/auth/logout", json={"refreshToken": refresh or ""})
        finally:
            self.tokens.clear()
            self.session.headers.pop("Authorization", None)

    def me(self) -> dict:
        return self.request("GET", "/api/auth/me")

    def change_password(self, current: str, new: str) -> None:
        self.request("PATCH", "/api/auth/change-password", json={"currentPassword": current, "newPassword": new})

    # ------------------------------------------------------------------
    # domain
    # ------------------------------------------------------------------
    def patients(self, **filters) -> list[dict]:
        return self.request("GET", "/api/patients", params=filters or None)["data"]

    def create_patient(self, **fields) -> dict:
        return self.request("POST", "/api/patients", json=fields)

    def update_patient(self, pk: int, **fields) -> dict:
        return self.request("PATCH", f"/api/patients/{pk}", json=fields)

    def archive_patient(self, pk: int, status: str | None = None) -> dict:
        return self.request("POST", f"/api/patients/{pk}/archive", json={"status": status} if status else {})

    def assign_device(self, pk: int, id_device: str) -> dict:
        return self.request("POST", f"/api/patients/{pk}/assign-device", json={"id_device": id_device})

    def unassign_device(self, pk: int) -> dict:
        return self.request("POST", f"/api/patients/{pk}/unassign-device")

    def assign_room(self, pk: int, room: int | None) -> dict:
        return self.request("POST", f"/api/patients/{pk}/assign-room", json={"room": room})

    def devices(self, **filters) -> list[dict]:
        return self.request("GET", "/api/devices", params=filters or None)["data"]

    def set_help_needed(self, pk: int, help_needed: bool) -> dict:
        return self.request("PATCH", f"/api/devices/{pk}/help", json={"help_needed": help_needed})

    def rooms(self, **filters) -> dict:
        return self.request("GET", "/api/rooms", params=filters or None)

    def alerts(self, **filters) -> list[dict]:
        return self.request("GET", "/api/alerts", params=filters or None)["data"]

    def archived_patients(self) -> list[dict]:
        return self.request("GET", "/api/archived_patients")["data"]
