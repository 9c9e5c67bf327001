"""Cached channel representation."""
from dataclasses import asdict, dataclass


@dataclass
class CachedServerRef:
    """The parent server fields channel readers need without a server lookup."""

    id: str
    created_by: str
    default_channel_id: str | None


@dataclass
class CachedChannel:
    """
    Denormalized channel projection.

    server is None for direct message channels; for those, created_by and
    recipient_id are the two participants.

    IMPORTANT: bump CACHE_SCHEMA_VERSION in cache/channel_cache.py when fields change.
    """

    id: str
    name: str | None
    permissions: int
    type: str
    created_by: str
    server: CachedServerRef | None = None
    recipient_id: str | None = None

    @property
    def server_id(self) -> str | None:
        """Id of the parent server, None for direct messages."""
        return self.server.id if self.server else None

    def other_participant(self, user_id: str) -> str | None:
        """
        For a direct message channel, the participant that is not user_id.

        None for server channels and for users outside the conversation.
        """
        if self.server is not None:
            return None
        if user_id == self.created_by:
            return self.recipient_id
        if user_id == self.recipient_id:
            return self.created_by
        return None

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "CachedChannel":
        """Build from the dict produced by to_dict()."""
        server = data.get("server")
        return cls(
            id=data["id"],
            name=data.get("name"),
            permissions=data["permissions"],
            type=data["type"],
            created_by=data["created_by"],
            server=CachedServerRef(**server) if server else None,
            recipient_id=data.get("recipient_id"),
        )
