"""Service layer for server membership and the rooms it grants."""
import logging
from uuid import UUID

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from cache.server_member_cache import ServerMemberCache
from models.channel import Channel
from models.message import ServerChannelLastSeen
from models.server import Server, ServerMember
from realtime.broadcaster import Broadcaster
from services.exceptions import (
    AlreadyServerMemberError,
    ServerMemberNotFoundError,
    ServerNotFoundError,
)
from services.permissions import is_private

logger = logging.getLogger(__name__)


def visible_server_channel_ids(
    server: Server,
    channels: list[Channel],
    user_id: UUID,
) -> list[str]:
    """Channels of one server whose room the user belongs in."""
    is_owner = server.created_by == user_id
    return [
        str(channel.id)
        for channel in channels
        if is_owner or not is_private(channel.permissions)
    ]


async def get_user_rooms(db: AsyncSession, user_id: UUID) -> list[str]:
    """
    Every room a freshly connected user should be placed in.

    The user's own room, each server they are a member of, each visible
    channel of those servers, and their direct message channels.
    """
    result = await db.execute(
        select(Server)
        .join(ServerMember, ServerMember.server_id == Server.id)
        .where(ServerMember.user_id == user_id),
    )
    servers = list(result.scalars().all())

    rooms = [str(user_id)]
    rooms.extend(str(server.id) for server in servers)

    if servers:
        result = await db.execute(
            select(Channel).where(Channel.server_id.in_([s.id for s in servers])),
        )
        channels_by_server: dict[UUID, list[Channel]] = {}
        for channel in result.scalars().all():
            channels_by_server.setdefault(channel.server_id, []).append(channel)
        for server in servers:
            rooms.extend(
                visible_server_channel_ids(
                    server, channels_by_server.get(server.id, []), user_id,
                ),
            )

    result = await db.execute(
        select(Channel.id).where(
            Channel.server_id.is_(None),
            or_(Channel.created_by == user_id, Channel.recipient_id == user_id),
        ),
    )
    rooms.extend(str(channel_id) for channel_id in result.scalars().all())
    return rooms


async def add_server_member(
    db: AsyncSession,
    member_cache: ServerMemberCache,
    broadcaster: Broadcaster,
    server_id: UUID,
    user_id: UUID,
) -> ServerMember:
    """
    Add a user to a server and subscribe their live connections.

    Raises:
        ServerNotFoundError: If the server does not exist.
        AlreadyServerMemberError: If the user is already a member.
    """
    server = await db.get(Server, server_id)
    if server is None:
        raise ServerNotFoundError(str(server_id))

    existing = await db.execute(
        select(ServerMember.id).where(
            ServerMember.server_id == server_id,
            ServerMember.user_id == user_id,
        ),
    )
    if existing.scalar_one_or_none() is not None:
        raise AlreadyServerMemberError(str(server_id), str(user_id))

    member = ServerMember(server_id=server_id, user_id=user_id, role_ids=[])
    db.add(member)
    await db.flush()

    result = await db.execute(select(Channel).where(Channel.server_id == server_id))
    channel_rooms = visible_server_channel_ids(server, list(result.scalars().all()), user_id)
    await db.commit()

    await member_cache.invalidate(str(server_id), str(user_id))
    user_room = str(user_id)
    await broadcaster.join(user_room, str(server_id))
    for room in channel_rooms:
        await broadcaster.join(user_room, room)
    logger.info("server_member_added server_id=%s user_id=%s", server_id, user_id)
    return member


async def remove_server_member(
    db: AsyncSession,
    member_cache: ServerMemberCache,
    broadcaster: Broadcaster,
    server_id: UUID,
    user_id: UUID,
) -> None:
    """
    Remove a user from a server, drop their read state there, and unsubscribe them.

    Raises:
        ServerMemberNotFoundError: If the user is not a member.
    """
    result = await db.execute(
        select(ServerMember).where(
            ServerMember.server_id == server_id,
            ServerMember.user_id == user_id,
        ),
    )
    member = result.scalar_one_or_none()
    if member is None:
        raise ServerMemberNotFoundError(str(server_id), str(user_id))

    result = await db.execute(select(Channel.id).where(Channel.server_id == server_id))
    channel_rooms = [str(channel_id) for channel_id in result.scalars().all()]

    await db.execute(
        delete(ServerChannelLastSeen).where(
            ServerChannelLastSeen.server_id == server_id,
            ServerChannelLastSeen.user_id == user_id,
        ),
    )
    await db.delete(member)
    await db.commit()

    await member_cache.invalidate(str(server_id), str(user_id))
    user_room = str(user_id)
    for room in channel_rooms:
        await broadcaster.leave(user_room, room)
    await broadcaster.leave(user_room, str(server_id))
    logger.info("server_member_removed server_id=%s user_id=%s", server_id, user_id)
