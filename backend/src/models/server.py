"""Server (community) and server membership models."""
from datetime import datetime
from uuid import UUID

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin, UUIDMixin, utcnow


class Server(Base, UUIDMixin, TimestampMixin):
    """
    A server groups channels and members.

    created_by is the owner; default_channel_id names the channel members land
    in, which can never be deleted.
    """

    __tablename__ = "servers"

    name: Mapped[str] = mapped_column(String(35))
    created_by: Mapped[UUID] = mapped_column(ForeignKey("users.id"), index=True)
    default_channel_id: Mapped[UUID | None] = mapped_column(nullable=True)


class ServerMember(Base, UUIDMixin):
    """Membership of a user in a server."""

    __tablename__ = "server_members"
    __table_args__ = (
        UniqueConstraint("server_id", "user_id", name="uq_server_members_server_user"),
    )

    server_id: Mapped[UUID] = mapped_column(
        ForeignKey("servers.id", ondelete="CASCADE"),
        index=True,
    )
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    role_ids: Mapped[list[str]] = mapped_column(
        JSON,
        default=list,
        comment="Ids of server roles assigned to this member",
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )


class ServerInvite(Base, UUIDMixin, TimestampMixin):
    """
    Invite code a member shares to let others join a server.

    Each member has at most one invite per server; uses counts redemptions.
    """

    __tablename__ = "server_invites"
    __table_args__ = (
        UniqueConstraint("server_id", "created_by", name="uq_server_invites_server_creator"),
    )

    code: Mapped[str] = mapped_column(String(32), unique=True, index=True)
    server_id: Mapped[UUID] = mapped_column(
        ForeignKey("servers.id", ondelete="CASCADE"),
        index=True,
    )
    created_by: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    uses: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
