"""Tests for the Redis client wrapper."""
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from core.redis import CacheUnavailableError, RedisClient


@pytest.fixture
def failing_client() -> RedisClient:
    """Client whose every command fails as if Redis went away."""
    client = RedisClient(url="redis://fake", enabled=True)
    broken = AsyncMock()
    commands = ("get", "set", "exists", "delete", "hget", "hgetall", "hset", "hdel", "incr", "ping")
    for command in commands:
        getattr(broken, command).side_effect = RedisConnectionError("connection refused")
    client.attach(broken)
    return client


class TestRedisClientDisabled:
    """Tests for behavior without a connection."""

    async def test__disabled__connect_does_nothing(self) -> None:
        """A disabled client never connects."""
        client = RedisClient(url="redis://unused", enabled=False)
        await client.connect()

        assert client.is_connected is False
        assert await client.ping() is False

    async def test__disabled__reads_miss_and_writes_are_noops(self) -> None:
        """Reads return empty results and writes report False."""
        client = RedisClient(url="redis://unused", enabled=False)

        assert await client.get("k") is None
        assert await client.hget("k", "f") is None
        assert await client.hgetall("k") == {}
        assert await client.exists("k") is False
        assert await client.set("k", "v") is False
        assert await client.hset("k", {"f": "v"}) is False
        assert await client.delete("k") is False
        assert await client.hdel("k", "f") is False
        assert await client.incr("k") is None
        assert await client.hset_guarded("g", None, "k", {"f": "v"}) is False


class TestRedisClientCommands:
    """Tests against fakeredis."""

    async def test__hash_commands(self, redis_client: RedisClient) -> None:
        """Hash fields can be set, read and deleted."""
        assert await redis_client.hset("h", {"a": "1", "b": "2"}) is True
        assert await redis_client.hget("h", "a") == b"1"
        assert await redis_client.hgetall("h") == {b"a": b"1", b"b": b"2"}

        await redis_client.hdel("h", "a")

        assert await redis_client.hgetall("h") == {b"b": b"2"}

    async def test__hset_empty_mapping_is_noop(self, redis_client: RedisClient) -> None:
        """An empty mapping writes nothing."""
        assert await redis_client.hset("h", {}) is True
        assert await redis_client.exists("h") is False

    async def test__incr_counts_from_zero(self, redis_client: RedisClient) -> None:
        assert await redis_client.incr("n") == 1
        assert await redis_client.incr("n") == 2

    async def test__hset_guarded__writes_when_guard_unchanged(
        self,
        redis_client: RedisClient,
    ) -> None:
        """A missing guard matches None; an existing one matches its value."""
        assert await redis_client.hset_guarded("g", None, "h", {"a": "1"}) is True
        await redis_client.incr("g")
        assert await redis_client.hset_guarded("g", b"1", "h", {"b": "2"}) is True

        assert await redis_client.hgetall("h") == {b"a": b"1", b"b": b"2"}

    async def test__hset_guarded__skips_when_guard_changed(
        self,
        redis_client: RedisClient,
    ) -> None:
        """A guard bumped since it was read turns the write into a no-op."""
        await redis_client.incr("g")

        stored = await redis_client.hset_guarded(
            "g", None, "h", {"a": "1"}, replace=True, marker_key="m",
        )

        assert stored is False
        assert await redis_client.exists("h") is False
        assert await redis_client.exists("m") is False

    async def test__hset_guarded__replace_and_marker(
        self,
        redis_client: RedisClient,
    ) -> None:
        """Replace drops fields missing from the mapping; the marker is set alongside."""
        await redis_client.hset("h", {"stale": "x", "a": "0"})

        stored = await redis_client.hset_guarded(
            "g", None, "h", {"a": "1"}, replace=True, marker_key="m",
        )

        assert stored is True
        assert await redis_client.hgetall("h") == {b"a": b"1"}
        assert await redis_client.get("m") == b"1"

    async def test__hset_guarded__empty_replace_clears_hash(
        self,
        redis_client: RedisClient,
    ) -> None:
        await redis_client.hset("h", {"stale": "x"})

        assert await redis_client.hset_guarded("g", None, "h", {}, replace=True, marker_key="m") is True

        assert await redis_client.exists("h") is False
        assert await redis_client.exists("m") is True

    async def test__ping(self, redis_client: RedisClient) -> None:
        """A connected client answers ping."""
        assert await redis_client.ping() is True


class TestRedisClientFailures:
    """Tests for command failures on a connected client."""

    @pytest.mark.parametrize(
        ("command", "args"),
        [
            ("get", ("k",)),
            ("set", ("k", "v")),
            ("exists", ("k",)),
            ("delete", ("k",)),
            ("hget", ("k", "f")),
            ("hgetall", ("k",)),
            ("hset", ("k", {"f": "v"})),
            ("hdel", ("k", "f")),
            ("incr", ("k",)),
        ],
    )
    async def test__failure_raises_cache_unavailable(
        self,
        failing_client: RedisClient,
        command: str,
        args: tuple,
    ) -> None:
        """Failures surface as CacheUnavailableError naming the command."""
        with pytest.raises(CacheUnavailableError) as exc_info:
            await getattr(failing_client, command)(*args)

        assert exc_info.value.command == command.upper()

    async def test__ping_failure_returns_false(self, failing_client: RedisClient) -> None:
        """Health checks report failure instead of raising."""
        assert await failing_client.ping() is False
