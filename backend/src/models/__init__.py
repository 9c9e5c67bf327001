"""SQLAlchemy models."""
from models.base import Base, TimestampMixin, UUIDMixin
from models.user import User
from models.account import Account
from models.server import Server, ServerInvite, ServerMember
from models.channel import Channel, ChannelType
from models.message import Message, MessageMention, ServerChannelLastSeen

__all__ = [
    "Account",
    "Base",
    "Channel",
    "ChannelType",
    "Message",
    "MessageMention",
    "Server",
    "ServerChannelLastSeen",
    "ServerInvite",
    "ServerMember",
    "TimestampMixin",
    "UUIDMixin",
    "User",
]
