"""
Server channel lifecycle with cache and realtime room fan-out.

Every mutating operation follows the same order: check preconditions against
the database, commit the durable change, patch/evict the dependent caches,
emit the event, and (update only) rebuild room membership. The durable change
is committed before any cache or room is touched so other instances never read
uncommitted state through the cache.

Nothing here retries. Database, cache, and transport errors propagate to the
caller unchanged.
"""
import logging
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cache.channel_cache import ChannelCache
from cache.server_member_cache import ServerMemberCache
from cache.utils import parse_uuid
from models.base import utcnow
from models.channel import Channel, ChannelType
from models.message import Message, MessageMention, ServerChannelLastSeen
from models.server import Server
from realtime.broadcaster import Broadcaster
from realtime.events import (
    emit_notification_dismissed,
    emit_server_channel_created,
    emit_server_channel_deleted,
    emit_server_channel_updated,
)
from schemas.channel import ChannelResponse, ChannelUpdate
from services.exceptions import (
    CannotDeleteDefaultChannelError,
    ChannelLimitExceededError,
    ChannelNotFoundError,
    ServerNotFoundError,
)
from services.permissions import DEFAULT_CHANNEL_PERMISSIONS, is_private

logger = logging.getLogger(__name__)

DEFAULT_SERVER_CHANNEL_LIMIT = 100


class ChannelService:
    """
    Create, update and delete server channels, and manage read state.

    Room membership invariant: for a channel in a server, the channel room holds
    every member connection when the channel is public, and only the server
    creator's connections when it is private. Only the creator counts here,
    not members whose roles grant admin rights.
    """

    def __init__(
        self,
        channel_cache: ChannelCache,
        server_member_cache: ServerMemberCache,
        broadcaster: Broadcaster,
        channel_limit: int = DEFAULT_SERVER_CHANNEL_LIMIT,
    ) -> None:
        self._channel_cache = channel_cache
        self._server_member_cache = server_member_cache
        self._broadcaster = broadcaster
        self.channel_limit = channel_limit

    async def _get_server(self, db: AsyncSession, server_id: UUID | str) -> Server:
        parsed_id = parse_uuid(server_id)
        server = await db.get(Server, parsed_id) if parsed_id else None
        if server is None:
            raise ServerNotFoundError(str(server_id))
        return server

    async def _get_server_channel(
        self,
        db: AsyncSession,
        server_id: UUID,
        channel_id: UUID | str,
    ) -> Channel:
        parsed_id = parse_uuid(channel_id)
        if parsed_id is None:
            raise ChannelNotFoundError(str(channel_id))
        result = await db.execute(
            select(Channel).where(Channel.id == parsed_id, Channel.server_id == server_id),
        )
        channel = result.scalar_one_or_none()
        if channel is None:
            raise ChannelNotFoundError(str(channel_id))
        return channel

    async def count_server_channels(self, db: AsyncSession, server_id: UUID) -> int:
        """Number of channels currently in a server."""
        result = await db.execute(
            select(func.count()).select_from(Channel).where(Channel.server_id == server_id),
        )
        return result.scalar_one()

    async def create_server_channel(
        self,
        db: AsyncSession,
        server_id: UUID,
        name: str,
        user_id: UUID,
    ) -> Channel:
        """
        Create a public text channel in a server.

        New channels are public, so every connection already in the server room
        is joined to the channel room before the creation event goes out.

        Raises:
            ChannelLimitExceededError: If the server already has channel_limit channels.
        """
        if await self.count_server_channels(db, server_id) >= self.channel_limit:
            raise ChannelLimitExceededError(self.channel_limit)

        channel = Channel(
            name=name,
            server_id=server_id,
            type=ChannelType.SERVER_TEXT,
            permissions=int(DEFAULT_CHANNEL_PERMISSIONS),
            created_by=user_id,
        )
        db.add(channel)
        await db.flush()
        payload = ChannelResponse.model_validate(channel).model_dump(mode="json")
        await db.commit()

        await self._broadcaster.join(str(server_id), str(channel.id))
        await emit_server_channel_created(self._broadcaster, str(server_id), payload)
        logger.info("server_channel_created server_id=%s channel_id=%s", server_id, channel.id)
        return channel

    async def update_server_channel(
        self,
        db: AsyncSession,
        server_id: UUID,
        channel_id: UUID,
        data: ChannelUpdate,
    ) -> dict[str, Any]:
        """
        Apply a partial update to a server channel.

        When permissions flip the private bit, the channel room is rebuilt from
        the current member list (evict everyone, then re-add whoever may see it).
        The cost is one pass over all members regardless of how many change.

        An update carrying no fields changes nothing and emits nothing.

        Returns:
            The fields that were applied.

        Raises:
            ServerNotFoundError: If the server does not exist.
            ChannelNotFoundError: If the channel is not in that server.
        """
        server = await self._get_server(db, server_id)
        channel = await self._get_server_channel(db, server.id, channel_id)
        owner_id = str(server.created_by)
        was_private = is_private(channel.permissions)

        fields = data.model_dump(exclude_unset=True)
        if not fields:
            return fields
        for field, value in fields.items():
            setattr(channel, field, value)
        await db.commit()

        await self._channel_cache.patch(str(channel_id), fields)
        await emit_server_channel_updated(
            self._broadcaster, str(server_id), str(channel_id), fields,
        )
        logger.info(
            "server_channel_updated server_id=%s channel_id=%s fields=%s",
            server_id, channel_id, sorted(fields),
        )

        if "permissions" in fields:
            now_private = is_private(fields["permissions"])
            if was_private != now_private:
                await self._reconcile_channel_room(
                    db, str(server_id), str(channel_id), owner_id, now_private,
                )
        return fields

    async def _reconcile_channel_room(
        self,
        db: AsyncSession,
        server_id: str,
        channel_id: str,
        owner_id: str,
        private: bool,
    ) -> None:
        members = await self._server_member_cache.get_all(db, server_id)
        allowed = [
            member.user_id
            for member in members
            if not private or member.user_id == owner_id
        ]
        subscribers = await self._broadcaster.reconcile(channel_id, allowed)
        logger.info(
            "channel_visibility_changed channel_id=%s private=%s members=%d subscribers=%d",
            channel_id, private, len(allowed), len(subscribers),
        )

    async def delete_server_channel(
        self,
        db: AsyncSession,
        server_id: UUID,
        channel_id: UUID,
    ) -> UUID:
        """
        Delete a server channel together with its messages and read state.

        Dependent rows go first (messages, last-seen markers, mentions), then
        the channel row. Each step is a plain filtered delete, so re-running a
        partially applied delete finishes the job.

        Returns:
            The deleted channel id.

        Raises:
            ServerNotFoundError: If the server does not exist.
            CannotDeleteDefaultChannelError: If the channel is the server's default.
            ChannelNotFoundError: If the channel is not in that server.
        """
        server = await self._get_server(db, server_id)
        if server.default_channel_id is not None and server.default_channel_id == channel_id:
            raise CannotDeleteDefaultChannelError(str(channel_id))
        channel = await self._get_server_channel(db, server.id, channel_id)

        await db.execute(delete(Message).where(Message.channel_id == channel.id))
        await db.execute(
            delete(ServerChannelLastSeen).where(ServerChannelLastSeen.channel_id == channel.id),
        )
        await db.execute(delete(MessageMention).where(MessageMention.channel_id == channel.id))
        await db.delete(channel)
        await db.commit()

        await self._channel_cache.invalidate(str(channel_id))
        await self._broadcaster.evict(str(channel_id))
        await emit_server_channel_deleted(self._broadcaster, str(server_id), str(channel_id))
        logger.info("server_channel_deleted server_id=%s channel_id=%s", server_id, channel_id)
        return channel_id

    async def dismiss_channel_notification(
        self,
        db: AsyncSession,
        user_id: str,
        channel_id: str,
        emit: bool = True,
    ) -> None:
        """
        Mark a channel as read for a user.

        Server channels record a last-seen timestamp per (user, server, channel);
        direct message channels delete the user's pending mention instead. Does
        nothing for unknown channels, server channels the user is not in, and
        direct message channels the user does not take part in.
        """
        channel = await self._channel_cache.get(db, channel_id, user_id)
        if channel is None:
            return

        if channel.server_id is not None:
            member = await self._server_member_cache.get(db, channel.server_id, user_id)
            if member is None:
                return
            await self._upsert_last_seen(
                db, UUID(user_id), UUID(channel.server_id), UUID(channel_id),
            )
        else:
            if channel.other_participant(user_id) is None:
                return
            await db.execute(
                delete(MessageMention).where(
                    MessageMention.mentioned_to == UUID(user_id),
                    MessageMention.channel_id == UUID(channel_id),
                ),
            )
        await db.commit()

        if emit:
            await emit_notification_dismissed(self._broadcaster, user_id, channel_id)

    async def _upsert_last_seen(
        self,
        db: AsyncSession,
        user_id: UUID,
        server_id: UUID,
        channel_id: UUID,
    ) -> None:
        query = select(ServerChannelLastSeen).where(
            ServerChannelLastSeen.user_id == user_id,
            ServerChannelLastSeen.server_id == server_id,
            ServerChannelLastSeen.channel_id == channel_id,
        )
        marker = (await db.execute(query)).scalar_one_or_none()
        if marker is not None:
            marker.last_seen = utcnow()
            await db.flush()
            return

        db.add(ServerChannelLastSeen(
            user_id=user_id,
            server_id=server_id,
            channel_id=channel_id,
            last_seen=utcnow(),
        ))
        try:
            await db.flush()
        except IntegrityError:
            # Race condition: another request inserted the marker between our
            # SELECT and INSERT. Nothing else is pending in this session, so
            # rolling back loses no work.
            await db.rollback()
            marker = (await db.execute(query)).scalar_one()
            marker.last_seen = utcnow()
            await db.flush()

    async def get_all_message_mentions(
        self,
        db: AsyncSession,
        user_id: UUID,
    ) -> list[MessageMention]:
        """Pending mention notifications addressed to a user."""
        result = await db.execute(
            select(MessageMention)
            .where(MessageMention.mentioned_to == user_id)
            .order_by(MessageMention.created_at),
        )
        return list(result.scalars().all())

    async def get_last_seen_server_channel_ids(
        self,
        db: AsyncSession,
        user_id: UUID,
    ) -> dict[str, datetime]:
        """Map of channel id to when the user last read it, for server channels."""
        result = await db.execute(
            select(ServerChannelLastSeen.channel_id, ServerChannelLastSeen.last_seen)
            .where(ServerChannelLastSeen.user_id == user_id),
        )
        return {str(channel_id): last_seen for channel_id, last_seen in result.all()}


_channel_service: ChannelService | None = None


def get_channel_service() -> ChannelService | None:
    """Get the global channel service instance."""
    return _channel_service


def set_channel_service(service: ChannelService | None) -> None:
    """Set the global channel service instance."""
    global _channel_service  # noqa: PLW0603
    _channel_service = service
