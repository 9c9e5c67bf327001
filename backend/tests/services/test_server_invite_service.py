"""Tests for creating and redeeming server invites."""
from collections.abc import Awaitable, Callable
from uuid import uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cache.server_member_cache import ServerMemberCache
from models.account import Account
from models.server import Server, ServerInvite
from realtime.broadcaster import Broadcaster
from services.exceptions import (
    AlreadyServerMemberError,
    InviteNotFoundError,
    ServerMemberNotFoundError,
    ServerNotFoundError,
)
from services.server_invite_service import create_server_invite, join_server_by_invite


class TestCreateServerInvite:
    """Tests for getting an invite to share."""

    async def test__create_server_invite__reuses_existing_invite(
        self,
        db_session: AsyncSession,
        server_member_cache: ServerMemberCache,
        make_account: Callable[..., Awaitable[Account]],
        make_server: Callable[..., Awaitable[Server]],
    ) -> None:
        """Each member has one invite per server."""
        owner = await make_account("Owner")
        server = await make_server(owner.id)

        first = await create_server_invite(db_session, server_member_cache, server.id, owner.id)
        second = await create_server_invite(db_session, server_member_cache, server.id, owner.id)

        assert first.id == second.id
        assert first.code
        assert first.uses == 0
        count = await db_session.scalar(select(func.count()).select_from(ServerInvite))
        assert count == 1

    async def test__create_server_invite__members_get_their_own(
        self,
        db_session: AsyncSession,
        server_member_cache: ServerMemberCache,
        make_account: Callable[..., Awaitable[Account]],
        make_server: Callable[..., Awaitable[Server]],
    ) -> None:
        """Two members of the same server get different codes."""
        owner = await make_account("Owner")
        member = await make_account("Member")
        server = await make_server(owner.id, member.id)

        owner_invite = await create_server_invite(db_session, server_member_cache, server.id, owner.id)
        member_invite = await create_server_invite(db_session, server_member_cache, server.id, member.id)

        assert owner_invite.code != member_invite.code
        assert member_invite.created_by == member.id

    async def test__create_server_invite__non_member(
        self,
        db_session: AsyncSession,
        server_member_cache: ServerMemberCache,
        make_account: Callable[..., Awaitable[Account]],
        make_server: Callable[..., Awaitable[Server]],
    ) -> None:
        """Only members can invite."""
        owner = await make_account("Owner")
        stranger = await make_account("Stranger")
        server = await make_server(owner.id)

        with pytest.raises(ServerMemberNotFoundError):
            await create_server_invite(db_session, server_member_cache, server.id, stranger.id)

    async def test__create_server_invite__unknown_server(
        self,
        db_session: AsyncSession,
        server_member_cache: ServerMemberCache,
        make_account: Callable[..., Awaitable[Account]],
    ) -> None:
        owner = await make_account("Owner")

        with pytest.raises(ServerNotFoundError):
            await create_server_invite(db_session, server_member_cache, uuid4(), owner.id)


class TestJoinServerByInvite:
    """Tests for redeeming an invite code."""

    async def test__join_server_by_invite__adds_member_and_joins_rooms(
        self,
        db_session: AsyncSession,
        server_member_cache: ServerMemberCache,
        broadcaster: Broadcaster,
        connect_socket: Callable[..., Awaitable[str]],
        make_account: Callable[..., Awaitable[Account]],
        make_server: Callable[..., Awaitable[Server]],
    ) -> None:
        """Redeeming makes the user a member, subscribes them and counts the use."""
        owner = await make_account("Owner")
        newcomer = await make_account("Newcomer")
        server = await make_server(owner.id)
        invite = await create_server_invite(db_session, server_member_cache, server.id, owner.id)
        sid = await connect_socket(newcomer.id)

        joined = await join_server_by_invite(
            db_session, server_member_cache, broadcaster, invite.code, newcomer.id,
        )

        assert joined.id == server.id
        assert invite.uses == 1
        assert sid in broadcaster.subscribers(str(server.id))
        assert sid in broadcaster.subscribers(str(server.default_channel_id))
        member = await server_member_cache.get(db_session, str(server.id), str(newcomer.id))
        assert member is not None

    async def test__join_server_by_invite__unknown_code(
        self,
        db_session: AsyncSession,
        server_member_cache: ServerMemberCache,
        broadcaster: Broadcaster,
        make_account: Callable[..., Awaitable[Account]],
    ) -> None:
        newcomer = await make_account("Newcomer")

        with pytest.raises(InviteNotFoundError):
            await join_server_by_invite(
                db_session, server_member_cache, broadcaster, "nope", newcomer.id,
            )

    async def test__join_server_by_invite__already_member(
        self,
        db_session: AsyncSession,
        server_member_cache: ServerMemberCache,
        broadcaster: Broadcaster,
        make_account: Callable[..., Awaitable[Account]],
        make_server: Callable[..., Awaitable[Server]],
    ) -> None:
        """Existing members are refused and the use is not counted."""
        owner = await make_account("Owner")
        member = await make_account("Member")
        server = await make_server(owner.id, member.id)
        invite = await create_server_invite(db_session, server_member_cache, server.id, owner.id)

        with pytest.raises(AlreadyServerMemberError):
            await join_server_by_invite(
                db_session, server_member_cache, broadcaster, invite.code, member.id,
            )

        await db_session.refresh(invite)
        assert invite.uses == 0
