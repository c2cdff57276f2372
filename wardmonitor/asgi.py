"""
ASGI entrypoint serving the REST API over HTTP and the live device-update
channel over WebSocket.  Run it with daphne or uvicorn.
"""
import os

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "wardmonitor.settings")

from django.core.asgi import get_asgi_application  # noqa: E402

# Populates the app registry before the consumers (and their models) import.
http_application = get_asgi_application()

from channels.routing import ProtocolTypeRouter, URLRouter  # noqa: E402

from monitoring.realtime.routing import websocket_urlpatterns  # noqa: E402

application = ProtocolTypeRouter({
    "http": http_application,
    "websocket": URLRouter(websocket_urlpatterns),
})
