"""Server membership caching."""
import json
import logging
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cache.utils import parse_uuid
from models.server import ServerMember
from schemas.cached_server_member import CachedServerMember

if TYPE_CHECKING:
    from core.redis import RedisClient

logger = logging.getLogger(__name__)

CACHE_SCHEMA_VERSION = 1


class ServerMemberCache:
    """
    Read-through cache of server memberships.

    Members of a server live in one Redis hash (field = user id). Single-member
    lookups fill the hash one field at a time, so a hash alone says nothing
    about completeness; a separate marker key records that the whole member
    list was loaded, and only then does get_all() answer from the hash.

    Every invalidate() bumps a per-server generation counter. Fills read the
    counter before querying the database and write only if it is unchanged,
    so a load that raced with a membership change never lands in the cache.
    """

    def __init__(self, redis_client: "RedisClient") -> None:
        """Initialize server member cache with Redis client."""
        self._redis = redis_client

    def _members_key(self, server_id: str) -> str:
        """Hash holding every cached member of a server."""
        return f"server_members:v{CACHE_SCHEMA_VERSION}:{server_id}"

    def _complete_key(self, server_id: str) -> str:
        """Marker set once the hash holds the full member list."""
        return f"server_members:v{CACHE_SCHEMA_VERSION}:{server_id}:complete"

    def _generation_key(self, server_id: str) -> str:
        """Counter bumped on every invalidation of a server's members."""
        return f"server_members:v{CACHE_SCHEMA_VERSION}:{server_id}:generation"

    @staticmethod
    def _project(member: ServerMember) -> CachedServerMember:
        return CachedServerMember(
            server_id=str(member.server_id),
            user_id=str(member.user_id),
            role_ids=list(member.role_ids or []),
        )

    async def get(
        self,
        db: AsyncSession,
        server_id: str,
        user_id: str,
    ) -> CachedServerMember | None:
        """
        Get one membership, loading it on a miss.

        Returns:
            CachedServerMember, or None if the user is not a member.
        """
        key = self._members_key(server_id)
        data = await self._redis.hget(key, user_id)
        if data:
            logger.debug("server_member_cache_hit server_id=%s user_id=%s", server_id, user_id)
            return CachedServerMember.from_dict(json.loads(data))
        logger.debug("server_member_cache_miss server_id=%s user_id=%s", server_id, user_id)
        generation = await self._redis.get(self._generation_key(server_id))

        parsed_server_id = parse_uuid(server_id)
        parsed_user_id = parse_uuid(user_id)
        if parsed_server_id is None or parsed_user_id is None:
            return None
        result = await db.execute(
            select(ServerMember).where(
                ServerMember.server_id == parsed_server_id,
                ServerMember.user_id == parsed_user_id,
            ),
        )
        member = result.scalar_one_or_none()
        if member is None:
            return None

        cached = self._project(member)
        await self._redis.hset_guarded(
            self._generation_key(server_id),
            generation,
            key,
            {user_id: json.dumps(cached.to_dict())},
        )
        return cached

    async def get_all(self, db: AsyncSession, server_id: str) -> list[CachedServerMember]:
        """
        Get every current member of a server.

        Order is not significant; completeness is.
        """
        key = self._members_key(server_id)
        if await self._redis.exists(self._complete_key(server_id)):
            logger.debug("server_members_cache_hit server_id=%s", server_id)
            entries = await self._redis.hgetall(key)
            return [CachedServerMember.from_dict(json.loads(v)) for v in entries.values()]
        logger.debug("server_members_cache_miss server_id=%s", server_id)
        generation = await self._redis.get(self._generation_key(server_id))

        parsed_server_id = parse_uuid(server_id)
        if parsed_server_id is None:
            return []
        result = await db.execute(
            select(ServerMember).where(ServerMember.server_id == parsed_server_id),
        )
        members = [self._project(m) for m in result.scalars().all()]

        stored = await self._redis.hset_guarded(
            self._generation_key(server_id),
            generation,
            key,
            {m.user_id: json.dumps(m.to_dict()) for m in members},
            replace=True,
            marker_key=self._complete_key(server_id),
        )
        if not stored:
            logger.debug("server_members_cache_fill_skipped server_id=%s", server_id)
        return members

    async def invalidate(self, server_id: str, user_id: str) -> None:
        """
        Evict one membership and the completeness marker, and cancel in-flight fills.

        Must be called whenever a member joins, leaves, or changes roles.
        """
        await self._redis.incr(self._generation_key(server_id))
        await self._redis.hdel(self._members_key(server_id), user_id)
        await self._redis.delete(self._complete_key(server_id))
        logger.debug("server_member_cache_invalidate server_id=%s user_id=%s", server_id, user_id)


_server_member_cache: ServerMemberCache | None = None


def get_server_member_cache() -> ServerMemberCache | None:
    """Get the global server member cache instance."""
    return _server_member_cache


def set_server_member_cache(cache: ServerMemberCache | None) -> None:
    """Set the global server member cache instance."""
    global _server_member_cache  # noqa: PLW0603
    _server_member_cache = cache
