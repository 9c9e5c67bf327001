"""User model holding the public profile."""
from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from models.account import Account


class User(Base, UUIDMixin, TimestampMixin):
    """Public profile of an account - what other users see."""

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String(35))
    tag: Mapped[str] = mapped_column(
        String(4),
        comment="Four character discriminator, unique together with username",
    )
    avatar: Mapped[str | None] = mapped_column(String(255), nullable=True)

    account: Mapped["Account"] = relationship(back_populates="user")
