import json

from channels.generic.websocket import AsyncWebsocketConsumer

from monitoring.realtime.registry import registry


class DeviceUpdatesConsumer(AsyncWebsocketConsumer):
    """Pushes ``{id, help_needed, updatedAt}`` frames to every connected client."""

    registry = registry

    async def connect(self):
        await self.registry.add(self.channel_layer, self.channel_name)
        await self.accept()

    async def disconnect(self, close_code):
        await self.registry.remove(self.channel_layer, self.channel_name)

    async def receive(self, text_data=None, bytes_data=None):
        # Clients have nothing to say on this channel.
        return None

    async def device_update(self, event):
        # event: {"type": "device.update", "payload": {"id": ..., "help_needed": ..., "updatedAt": ...}}
        await self.send(json.dumps(event["payload"]))
