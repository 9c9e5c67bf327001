"""Channel model shared by server channels and direct messages."""
from enum import StrEnum
from uuid import UUID

from sqlalchemy import Enum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin, UUIDMixin


class ChannelType(StrEnum):
    """Kind of channel."""

    DM_TEXT = "dm_text"
    SERVER_TEXT = "server_text"


class Channel(Base, UUIDMixin, TimestampMixin):
    """
    A message channel.

    Server channels have server_id set and their visibility is governed by the
    permissions bitmask. Direct message channels have no server and connect
    created_by with recipient_id.
    """

    __tablename__ = "channels"

    name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    type: Mapped[ChannelType] = mapped_column(
        Enum(ChannelType, native_enum=False, length=20),
    )
    permissions: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    server_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("servers.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    created_by: Mapped[UUID] = mapped_column(ForeignKey("users.id"))
    recipient_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
        comment="Other participant of a direct message channel",
    )
