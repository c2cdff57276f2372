"""Python client for the ward monitoring API and its live device feed."""
from wardclient.client import ApiClient
from wardclient.config import ClientSettings
from wardclient.errors import ApiError, ClientError, NetworkError, SessionExpired
from wardclient.live import DeviceUpdate, LiveUpdateFeed, Notification
from wardclient.refresh import RefreshCoordinator
from wardclient.tokens import TokenStore

__all__ = [
    "ApiClient",
    "ApiError",
    "ClientError",
    "ClientSettings",
    "DeviceUpdate",
    "LiveUpdateFeed",
    "NetworkError",
    "Notification",
    "RefreshCoordinator",
    "SessionExpired",
    "TokenStore",
]
