from __future__ import annotations


class ClientError(Exception):
    """Base class for everything the ward client raises."""


class NetworkError(ClientError):
    """No response reached us (connection refused, DNS, timeout). Never retried."""


class SessionExpired(ClientError):
    """The session could not be renewed; the user has to log in again."""


class ApiError(ClientError):
    def __init__(self, status: int, message: str, payload: dict | None = None):
        super().__init__(f"{status}: {message}")
        self.status = status
        self.message = message
        self.payload = payload or {}

    @classmethod
    def from_response(cls, resp) -> "ApiError":
        try:
            body = resp.json()
        except ValueError:
            body = {}
        error = body.get("error") if isinstance(body, dict) else None
        message = (error or {}).get("message") or resp.reason or "Request failed"
        return cls(resp.status_code, str(message), body if isinstance(body, dict) else {})
