"""Redis client with connection pooling for the read-through caches."""
import logging
from collections.abc import Mapping

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import RedisError, WatchError

logger = logging.getLogger(__name__)


class CacheUnavailableError(Exception):
    """
    Raised when a cache command fails against a connected Redis.

    The caches never retry; the error reaches the caller, which answers with a
    generic failure. Detail stays in the server log.
    """

    def __init__(self, command: str, error: RedisError) -> None:
        self.command = command
        super().__init__(f"Redis {command} failed: {error}")


class RedisClient:
    """
    Async Redis client with connection pooling.

    When Redis is disabled by configuration (or the startup connection failed),
    reads behave like cache misses and writes are no-ops, so callers fall back to
    the durable store. Once connected, command failures raise CacheUnavailableError.
    """

    def __init__(self, url: str, enabled: bool = True, pool_size: int = 20) -> None:
        self._url = url
        self._enabled = enabled
        self._pool_size = pool_size
        self._pool: ConnectionPool | None = None
        self._client: Redis | None = None

    async def connect(self) -> None:
        """Initialize connection pool."""
        if not self._enabled:
            logger.info("Redis disabled by configuration")
            return
        try:
            self._pool = ConnectionPool.from_url(self._url, max_connections=self._pool_size)
            self._client = Redis(connection_pool=self._pool)
            # Verify connection
            await self._client.ping()
            logger.info("Redis connected successfully")
        except RedisError as e:
            logger.warning("Redis connection failed: %s", e)
            self._client = None
            self._pool = None

    def attach(self, client: Redis) -> None:
        """Use an already-constructed client (e.g. one sharing an external pool)."""
        self._client = client

    async def close(self) -> None:
        """Close connection pool."""
        if self._client:
            await self._client.aclose()
            self._client = None
            self._pool = None
            logger.info("Redis connection closed")

    @property
    def is_connected(self) -> bool:
        """Check if client is connected."""
        return self._client is not None

    async def ping(self) -> bool:
        """Check Redis connectivity."""
        if not self._client:
            return False
        try:
            return await self._client.ping()
        except RedisError:
            return False

    async def get(self, key: str) -> bytes | None:
        """Get value, returns None if Redis is not connected."""
        if not self._client:
            return None
        try:
            return await self._client.get(key)
        except RedisError as e:
            logger.warning("Redis GET failed: %s", e)
            raise CacheUnavailableError("GET", e) from e

    async def set(self, key: str, value: str | bytes) -> bool:
        """Set value without expiry, returns False if Redis is not connected."""
        if not self._client:
            return False
        try:
            await self._client.set(key, value)
            return True
        except RedisError as e:
            logger.warning("Redis SET failed: %s", e)
            raise CacheUnavailableError("SET", e) from e

    async def exists(self, key: str) -> bool:
        """Check whether a key exists, False if Redis is not connected."""
        if not self._client:
            return False
        try:
            return bool(await self._client.exists(key))
        except RedisError as e:
            logger.warning("Redis EXISTS failed: %s", e)
            raise CacheUnavailableError("EXISTS", e) from e

    async def delete(self, *keys: str) -> bool:
        """Delete key(s), returns False if Redis is not connected."""
        if not self._client:
            return False
        try:
            await self._client.delete(*keys)
            return True
        except RedisError as e:
            logger.warning("Redis DELETE failed: %s", e)
            raise CacheUnavailableError("DELETE", e) from e

    async def hget(self, key: str, field: str) -> bytes | None:
        """Get a hash field, returns None if Redis is not connected."""
        if not self._client:
            return None
        try:
            return await self._client.hget(key, field)
        except RedisError as e:
            logger.warning("Redis HGET failed: %s", e)
            raise CacheUnavailableError("HGET", e) from e

    async def hgetall(self, key: str) -> dict[bytes, bytes]:
        """Get every field of a hash, empty if Redis is not connected."""
        if not self._client:
            return {}
        try:
            return await self._client.hgetall(key)
        except RedisError as e:
            logger.warning("Redis HGETALL failed: %s", e)
            raise CacheUnavailableError("HGETALL", e) from e

    async def hset(self, key: str, mapping: Mapping[str, str | bytes]) -> bool:
        """Set one or more hash fields, returns False if Redis is not connected."""
        if not self._client:
            return False
        if not mapping:
            return True
        try:
            await self._client.hset(key, mapping=dict(mapping))
            return True
        except RedisError as e:
            logger.warning("Redis HSET failed: %s", e)
            raise CacheUnavailableError("HSET", e) from e

    async def hdel(self, key: str, *fields: str) -> bool:
        """Delete hash field(s), returns False if Redis is not connected."""
        if not self._client:
            return False
        try:
            await self._client.hdel(key, *fields)
            return True
        except RedisError as e:
            logger.warning("Redis HDEL failed: %s", e)
            raise CacheUnavailableError("HDEL", e) from e

    async def incr(self, key: str) -> int | None:
        """Increment a counter, returns None if Redis is not connected."""
        if not self._client:
            return None
        try:
            return await self._client.incr(key)
        except RedisError as e:
            logger.warning("Redis INCR failed: %s", e)
            raise CacheUnavailableError("INCR", e) from e

    async def hset_guarded(
        self,
        guard_key: str,
        expected: bytes | None,
        key: str,
        mapping: Mapping[str, str | bytes],
        *,
        replace: bool = False,
        marker_key: str | None = None,
    ) -> bool:
        """
        Write hash fields only if guard_key still holds the expected value.

        The check and the write run in one WATCH/MULTI transaction, so a writer
        that changes guard_key in between makes this a no-op. With replace the
        hash is rebuilt from mapping alone; marker_key, if given, is set to "1"
        in the same transaction.

        Returns:
            True if the write happened, False if the guard changed or Redis is
            not connected.
        """
        if not self._client:
            return False
        try:
            async with self._client.pipeline(transaction=True) as pipe:
                await pipe.watch(guard_key)
                if await pipe.get(guard_key) != expected:
                    await pipe.unwatch()
                    return False
                pipe.multi()
                if replace:
                    pipe.delete(key)
                if mapping:
                    pipe.hset(key, mapping=dict(mapping))
                if marker_key:
                    pipe.set(marker_key, "1")
                await pipe.execute()
                return True
        except WatchError:
            logger.debug("Redis guarded HSET skipped, %s changed", guard_key)
            return False
        except RedisError as e:
            logger.warning("Redis guarded HSET failed: %s", e)
            raise CacheUnavailableError("HSET", e) from e


# Global Redis client state using a container to avoid global statement
class _RedisState:
    """Container for global Redis client state."""

    client: RedisClient | None = None


_state = _RedisState()


def get_redis_client() -> RedisClient | None:
    """Get the global Redis client instance."""
    return _state.client


def set_redis_client(client: RedisClient | None) -> None:
    """Set the global Redis client instance."""
    _state.client = client
