"""Message and read-state models."""
from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin, UUIDMixin, utcnow


class Message(Base, UUIDMixin, TimestampMixin):
    """A message posted in a channel."""

    __tablename__ = "messages"

    channel_id: Mapped[UUID] = mapped_column(ForeignKey("channels.id"), index=True)
    created_by: Mapped[UUID] = mapped_column(ForeignKey("users.id"))
    content: Mapped[str] = mapped_column(Text, default="")


class MessageMention(Base, UUIDMixin, TimestampMixin):
    """
    Pending notification for a user in a channel.

    One row per (mentioned_to, channel); count accumulates unread mentions.
    """

    __tablename__ = "message_mentions"

    mentioned_to: Mapped[UUID] = mapped_column(ForeignKey("users.id"), index=True)
    mentioned_by: Mapped[UUID] = mapped_column(ForeignKey("users.id"))
    channel_id: Mapped[UUID] = mapped_column(ForeignKey("channels.id"), index=True)
    server_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("servers.id"),
        nullable=True,
    )
    count: Mapped[int] = mapped_column(Integer, default=1, nullable=False)


class ServerChannelLastSeen(Base, UUIDMixin):
    """When a user last read a server channel."""

    __tablename__ = "server_channel_last_seen"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "server_id", "channel_id",
            name="uq_last_seen_user_server_channel",
        ),
    )

    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id"), index=True)
    server_id: Mapped[UUID] = mapped_column(ForeignKey("servers.id"))
    channel_id: Mapped[UUID] = mapped_column(ForeignKey("channels.id"), index=True)
    last_seen: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
