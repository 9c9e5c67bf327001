"""Event names and emitters for channel and notification changes."""
from typing import Any

from realtime.broadcaster import Broadcaster

SERVER_CHANNEL_CREATED = "channel.created"
SERVER_CHANNEL_UPDATED = "channel.updated"
SERVER_CHANNEL_DELETED = "channel.deleted"
NOTIFICATION_DISMISSED = "notification.dismissed"


async def emit_server_channel_created(
    broadcaster: Broadcaster,
    server_id: str,
    channel: dict[str, Any],
) -> None:
    """Tell every member connection of a server about a new channel."""
    await broadcaster.emit(server_id, SERVER_CHANNEL_CREATED, channel)


async def emit_server_channel_updated(
    broadcaster: Broadcaster,
    server_id: str,
    channel_id: str,
    updated: dict[str, Any],
) -> None:
    """Tell every member connection of a server which channel fields changed."""
    await broadcaster.emit(
        server_id,
        SERVER_CHANNEL_UPDATED,
        {"server_id": server_id, "channel_id": channel_id, "updated": updated},
    )


async def emit_server_channel_deleted(
    broadcaster: Broadcaster,
    server_id: str,
    channel_id: str,
) -> None:
    """Tell every member connection of a server that a channel is gone."""
    await broadcaster.emit(
        server_id,
        SERVER_CHANNEL_DELETED,
        {"server_id": server_id, "channel_id": channel_id},
    )


async def emit_notification_dismissed(
    broadcaster: Broadcaster,
    user_id: str,
    channel_id: str,
) -> None:
    """Sync read state to every connection of the user (other tabs and devices)."""
    await broadcaster.emit(user_id, NOTIFICATION_DISMISSED, {"channel_id": channel_id})
