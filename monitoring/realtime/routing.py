from django.urls import path

from monitoring.realtime.consumers import DeviceUpdatesConsumer

# Unauthenticated: frames carry only device id, help flag and timestamp.
websocket_urlpatterns = [
    path("ws/devices/", DeviceUpdatesConsumer.as_asgi()),
]
