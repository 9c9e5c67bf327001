"""Account model holding credentials metadata."""
from uuid import UUID

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin
from models.user import User


class Account(Base, TimestampMixin):
    """
    Login account of a User profile.

    The primary key is also the foreign key to users.id, so the account id
    carried in tokens is always the user id that owns servers, memberships and
    channels. password_version is embedded in every token and bumped whenever
    credentials change, which invalidates all tokens issued before the change.
    """

    __tablename__ = "accounts"

    id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    email: Mapped[str] = mapped_column(String(320), unique=True, index=True)
    password_version: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    user: Mapped[User] = relationship(back_populates="account", lazy="joined")
