"""Channel permission bits."""
from enum import IntFlag


class ChannelPermission(IntFlag):
    """Bits of Channel.permissions."""

    SEND_MESSAGE = 1
    PRIVATE_CHANNEL = 2


DEFAULT_CHANNEL_PERMISSIONS = ChannelPermission.SEND_MESSAGE


def has_permission(permissions: int | None, permission: ChannelPermission) -> bool:
    """True if every bit of permission is set in the permissions bitmask."""
    return ((permissions or 0) & permission) == permission


def is_private(permissions: int | None) -> bool:
    """True if the bitmask marks a channel as private."""
    return has_permission(permissions, ChannelPermission.PRIVATE_CHANNEL)
