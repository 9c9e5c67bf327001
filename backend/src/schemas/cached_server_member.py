"""Cached server membership representation."""
from dataclasses import asdict, dataclass, field


@dataclass
class CachedServerMember:
    """
    Membership projection keyed by (server_id, user_id).

    Ownership is not stored here; it comes from the live Server row (created_by).

    IMPORTANT: bump CACHE_SCHEMA_VERSION in cache/server_member_cache.py when fields change.
    """

    server_id: str
    user_id: str
    role_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "CachedServerMember":
        """Build from the dict produced by to_dict()."""
        return cls(**data)
