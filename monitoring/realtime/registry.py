"""
Process-wide registry of live device-update subscribers.

Membership is tracked in the channel layer group (so broadcasts reach
consumers in every worker when Redis is configured) and mirrored in a
local set for this process's own connections.
"""
from __future__ import annotations

import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

logger = logging.getLogger(__name__)

DEVICE_UPDATES_GROUP = "device-updates"


def device_update_payload(device) -> dict:
    return {
        "id": device.id_device,
        "help_needed": bool(device.help_needed),
        "updatedAt": device.updated_at.isoformat(),
    }


class ConnectionRegistry:
    def __init__(self, group: str = DEVICE_UPDATES_GROUP):
        self.group = group
        self._local: set[str] = set()

    def __len__(self) -> int:
        return len(self._local)

    def __contains__(self, channel_name: str) -> bool:
        return channel_name in self._local

    async def add(self, channel_layer, channel_name: str) -> None:
        await channel_layer.group_add(self.group, channel_name)
        self._local.add(channel_name)
        logger.info("live client connected (%d local)", len(self._local))

    async def remove(self, channel_layer, channel_name: str) -> None:
        await channel_layer.group_discard(self.group, channel_name)
        self._local.discard(channel_name)
        logger.info("live client disconnected (%d local)", len(self._local))

    async def broadcast(self, payload: dict) -> None:
        """Fan ``payload`` out to every subscriber; no per-client filtering."""
        channel_layer = get_channel_layer()
        if channel_layer is None:
            logger.warning("no channel layer configured; dropping device update %s", payload.get("id"))
            return
        await channel_layer.group_send(self.group, {"type": "device.update", "payload": payload})

    def broadcast_sync(self, payload: dict) -> None:
        async_to_sync(self.broadcast)(payload)


registry = ConnectionRegistry()


def broadcast_device_update(device) -> None:
    registry.broadcast_sync(device_update_payload(device))
