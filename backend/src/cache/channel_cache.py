"""Channel caching with in-place patching after server channel updates."""
import json
import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy.ext.asyncio import AsyncSession

from cache.utils import parse_uuid
from models.channel import Channel
from models.server import Server
from schemas.cached_channel import CachedChannel, CachedServerRef

if TYPE_CHECKING:
    from core.redis import RedisClient

logger = logging.getLogger(__name__)

CACHE_SCHEMA_VERSION = 1

# Fields a server channel update may change; anything else is rejected by patch()
PATCHABLE_FIELDS = frozenset({"name", "permissions"})


class ChannelCache:
    """
    Read-through cache of channel projections keyed by channel id.

    The cache is a performance optimization only. Between a durable write and
    the matching patch()/invalidate() call readers may observe the old value,
    and a crash in that window leaves the entry stale until it is invalidated.
    """

    def __init__(self, redis_client: "RedisClient") -> None:
        """Initialize channel cache with Redis client."""
        self._redis = redis_client

    def _cache_key(self, channel_id: str) -> str:
        """Generate cache key for a channel id."""
        return f"channel:v{CACHE_SCHEMA_VERSION}:{channel_id}"

    async def get(
        self,
        db: AsyncSession,
        channel_id: str,
        user_id: str | None = None,
    ) -> CachedChannel | None:
        """
        Get a channel projection, loading it (with its parent server) on a miss.

        No permission filtering happens here and user_id is only logged. Callers
        check access themselves, e.g. with CachedChannel.other_participant() for
        direct messages.

        Returns:
            CachedChannel, or None if the channel does not exist.
        """
        key = self._cache_key(channel_id)
        data = await self._redis.get(key)
        if data:
            logger.debug("channel_cache_hit channel_id=%s user_id=%s", channel_id, user_id)
            return CachedChannel.from_dict(json.loads(data))
        logger.debug("channel_cache_miss channel_id=%s user_id=%s", channel_id, user_id)

        parsed_id = parse_uuid(channel_id)
        if parsed_id is None:
            return None
        channel = await db.get(Channel, parsed_id)
        if channel is None:
            return None

        server_ref = None
        if channel.server_id is not None:
            server = await db.get(Server, channel.server_id)
            if server is None:
                # Channel row outlived its server; treat as gone
                return None
            server_ref = CachedServerRef(
                id=str(server.id),
                created_by=str(server.created_by),
                default_channel_id=(
                    str(server.default_channel_id) if server.default_channel_id else None
                ),
            )

        cached = CachedChannel(
            id=str(channel.id),
            name=channel.name,
            permissions=channel.permissions,
            type=str(channel.type),
            created_by=str(channel.created_by),
            server=server_ref,
            recipient_id=str(channel.recipient_id) if channel.recipient_id else None,
        )
        await self._redis.set(key, json.dumps(cached.to_dict()))
        logger.debug("channel_cache_set channel_id=%s", channel_id)
        return cached

    async def patch(self, channel_id: str, fields: dict[str, Any]) -> bool:
        """
        Merge fields into an existing cached entry, leaving other fields untouched.

        Nothing is written when the channel is not cached; the next get() loads
        the fresh row anyway.

        Args:
            channel_id: Channel to patch.
            fields: Subset of PATCHABLE_FIELDS with their new values.

        Returns:
            True if a cached entry was updated.

        Raises:
            ValueError: If fields contains a key outside PATCHABLE_FIELDS.
        """
        unknown = set(fields) - PATCHABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot patch channel cache fields: {sorted(unknown)}")
        if not fields:
            return False

        key = self._cache_key(channel_id)
        data = await self._redis.get(key)
        if not data:
            return False
        entry = json.loads(data)
        entry.update(fields)
        await self._redis.set(key, json.dumps(entry))
        logger.debug(
            "channel_cache_patch channel_id=%s fields=%s", channel_id, sorted(fields),
        )
        return True

    async def invalidate(self, channel_id: str) -> None:
        """Evict a cached channel (after deletion)."""
        await self._redis.delete(self._cache_key(channel_id))
        logger.debug("channel_cache_invalidate channel_id=%s", channel_id)


_channel_cache: ChannelCache | None = None


def get_channel_cache() -> ChannelCache | None:
    """Get the global channel cache instance."""
    return _channel_cache


def set_channel_cache(cache: ChannelCache | None) -> None:
    """Set the global channel cache instance."""
    global _channel_cache  # noqa: PLW0603
    _channel_cache = cache
