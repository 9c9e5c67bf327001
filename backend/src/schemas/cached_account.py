"""Cached account representation for token authentication."""
from dataclasses import dataclass


@dataclass
class CachedProfile:
    """Denormalized public profile fields copied from the User row."""

    username: str
    tag: str
    avatar: str | None = None


@dataclass
class CachedAccount:
    """
    Lightweight account projection used to validate bearer tokens.

    IMPORTANT: When adding, removing, or renaming fields in this class, you MUST bump
    CACHE_SCHEMA_VERSION in cache/account_cache.py so entries written with the previous
    schema are never deserialized.

    The profile is an eventually-consistent copy; it is refreshed only when the
    entry is invalidated (see AccountCache.invalidate).
    """

    id: str
    password_version: int
    user: CachedProfile

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict."""
        return {
            "id": self.id,
            "password_version": self.password_version,
            "user": {
                "username": self.user.username,
                "tag": self.user.tag,
                "avatar": self.user.avatar,
            },
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CachedAccount":
        """Build from the dict produced by to_dict()."""
        return cls(
            id=data["id"],
            password_version=data["password_version"],
            user=CachedProfile(**data["user"]),
        )
