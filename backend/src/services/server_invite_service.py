"""Service layer for server invites."""
import logging
import secrets
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cache.server_member_cache import ServerMemberCache
from models.server import Server, ServerInvite
from realtime.broadcaster import Broadcaster
from services.exceptions import (
    InviteNotFoundError,
    ServerMemberNotFoundError,
    ServerNotFoundError,
)
from services.server_member_service import add_server_member

logger = logging.getLogger(__name__)

# token_urlsafe(6) yields an 8 character code
INVITE_CODE_BYTES = 6


async def create_server_invite(
    db: AsyncSession,
    member_cache: ServerMemberCache,
    server_id: UUID,
    user_id: UUID,
) -> ServerInvite:
    """
    Get the member's invite for a server, creating it on first use.

    Raises:
        ServerNotFoundError: If the server does not exist.
        ServerMemberNotFoundError: If the user is not a member of the server.
    """
    server = await db.get(Server, server_id)
    if server is None:
        raise ServerNotFoundError(str(server_id))
    member = await member_cache.get(db, str(server_id), str(user_id))
    if member is None:
        raise ServerMemberNotFoundError(str(server_id), str(user_id))

    result = await db.execute(
        select(ServerInvite).where(
            ServerInvite.server_id == server_id,
            ServerInvite.created_by == user_id,
        ),
    )
    invite = result.scalar_one_or_none()
    if invite is not None:
        return invite

    invite = ServerInvite(
        code=secrets.token_urlsafe(INVITE_CODE_BYTES),
        server_id=server_id,
        created_by=user_id,
    )
    db.add(invite)
    await db.flush()
    await db.commit()
    logger.info("server_invite_created server_id=%s user_id=%s", server_id, user_id)
    return invite


async def join_server_by_invite(
    db: AsyncSession,
    member_cache: ServerMemberCache,
    broadcaster: Broadcaster,
    code: str,
    user_id: UUID,
) -> Server:
    """
    Redeem an invite code: add the user to its server and count the use.

    Returns:
        The joined server.

    Raises:
        InviteNotFoundError: If no invite has this code.
        AlreadyServerMemberError: If the user is already a member.
    """
    result = await db.execute(select(ServerInvite).where(ServerInvite.code == code))
    invite = result.scalar_one_or_none()
    if invite is None:
        raise InviteNotFoundError(code)

    await add_server_member(db, member_cache, broadcaster, invite.server_id, user_id)
    invite.uses += 1
    await db.commit()

    server = await db.get(Server, invite.server_id)
    logger.info("server_invite_redeemed server_id=%s user_id=%s", invite.server_id, user_id)
    return server
