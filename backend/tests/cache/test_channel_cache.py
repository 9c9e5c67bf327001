"""Tests for the channel cache."""
from collections.abc import Awaitable, Callable

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from cache.channel_cache import ChannelCache
from models.account import Account
from models.channel import Channel
from models.server import Server
from services.permissions import ChannelPermission


@pytest.fixture
async def owner(make_account: Callable[..., Awaitable[Account]]) -> Account:
    """Server owner."""
    return await make_account("Owner")


@pytest.fixture
async def server(owner: Account, make_server: Callable[..., Awaitable[Server]]) -> Server:
    """Server owned by owner."""
    return await make_server(owner.id)


class TestChannelCacheGet:
    """Tests for read-through lookups."""

    async def test__get__server_channel_includes_parent_server(
        self,
        db_session: AsyncSession,
        channel_cache: ChannelCache,
        owner: Account,
        server: Server,
        make_channel: Callable[..., Awaitable[Channel]],
    ) -> None:
        """Server channels carry the parent server's owner and default channel."""
        channel = await make_channel(server, owner.id, name="random")

        cached = await channel_cache.get(db_session, str(channel.id), str(owner.id))

        assert cached is not None
        assert cached.name == "random"
        assert cached.permissions == int(ChannelPermission.SEND_MESSAGE)
        assert cached.type == "server_text"
        assert cached.server_id == str(server.id)
        assert cached.server.created_by == str(owner.id)
        assert cached.server.default_channel_id == str(server.default_channel_id)

    async def test__get__dm_channel_has_no_server(
        self,
        db_session: AsyncSession,
        channel_cache: ChannelCache,
        owner: Account,
        make_account: Callable[..., Awaitable[Account]],
        make_channel: Callable[..., Awaitable[Channel]],
    ) -> None:
        """Direct message channels resolve the other participant per requester."""
        friend = await make_account("Friend")
        channel = await make_channel(None, owner.id, name=None, recipient_id=friend.id)

        cached = await channel_cache.get(db_session, str(channel.id), str(owner.id))

        assert cached is not None
        assert cached.server is None
        assert cached.server_id is None
        assert cached.type == "dm_text"
        assert cached.other_participant(str(owner.id)) == str(friend.id)
        assert cached.other_participant(str(friend.id)) == str(owner.id)
        assert cached.other_participant("00000000-0000-0000-0000-000000000000") is None

    async def test__get__hit_equals_projection_from_miss(
        self,
        db_session: AsyncSession,
        channel_cache: ChannelCache,
        owner: Account,
        server: Server,
        make_channel: Callable[..., Awaitable[Channel]],
    ) -> None:
        """A hit right after a miss returns the same payload."""
        channel = await make_channel(server, owner.id)

        first = await channel_cache.get(db_session, str(channel.id))
        second = await channel_cache.get(db_session, str(channel.id))

        assert second == first

    async def test__get__unknown_channel_returns_none(
        self,
        db_session: AsyncSession,
        channel_cache: ChannelCache,
    ) -> None:
        """Missing channels are not cached."""
        assert await channel_cache.get(
            db_session, "00000000-0000-0000-0000-000000000000",
        ) is None


class TestChannelCachePatch:
    """Tests for partial updates of cached entries."""

    async def test__patch__name_only_leaves_other_fields(
        self,
        db_session: AsyncSession,
        channel_cache: ChannelCache,
        owner: Account,
        server: Server,
        make_channel: Callable[..., Awaitable[Channel]],
    ) -> None:
        """Patching the name does not touch permissions or server fields."""
        permissions = int(ChannelPermission.SEND_MESSAGE | ChannelPermission.PRIVATE_CHANNEL)
        channel = await make_channel(server, owner.id, name="old", permissions=permissions)
        before = await channel_cache.get(db_session, str(channel.id))

        patched = await channel_cache.patch(str(channel.id), {"name": "x"})
        after = await channel_cache.get(db_session, str(channel.id))

        assert patched is True
        assert after is not None
        assert after.name == "x"
        assert after.permissions == permissions
        assert after.server == before.server
        assert after.created_by == before.created_by

    async def test__patch__uncached_channel_writes_nothing(
        self,
        db_session: AsyncSession,
        channel_cache: ChannelCache,
        owner: Account,
        server: Server,
        make_channel: Callable[..., Awaitable[Channel]],
    ) -> None:
        """Patching a channel that is not cached leaves the next read to the database."""
        channel = await make_channel(server, owner.id, name="db-name")

        patched = await channel_cache.patch(str(channel.id), {"name": "x"})
        cached = await channel_cache.get(db_session, str(channel.id))

        assert patched is False
        assert cached is not None
        assert cached.name == "db-name"

    async def test__patch__rejects_unknown_fields(
        self,
        channel_cache: ChannelCache,
    ) -> None:
        """Only name and permissions may be patched."""
        with pytest.raises(ValueError, match="type"):
            await channel_cache.patch("any", {"type": "dm_text"})

    async def test__invalidate__removes_entry(
        self,
        db_session: AsyncSession,
        channel_cache: ChannelCache,
        owner: Account,
        server: Server,
        make_channel: Callable[..., Awaitable[Channel]],
    ) -> None:
        """After invalidation a deleted channel is no longer served."""
        channel = await make_channel(server, owner.id)
        await channel_cache.get(db_session, str(channel.id))

        await db_session.delete(channel)
        await db_session.commit()
        await channel_cache.invalidate(str(channel.id))

        assert await channel_cache.get(db_session, str(channel.id)) is None
