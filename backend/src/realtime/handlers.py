"""Socket.IO connection handlers."""
import logging
from collections.abc import Callable
from typing import Any
from uuid import UUID

import socketio
from sqlalchemy.ext.asyncio import AsyncSession

from cache.account_cache import AccountCache
from core.config import Settings
from core.tokens import InvalidTokenError
from realtime.broadcaster import Broadcaster
from services.server_member_service import get_user_rooms

logger = logging.getLogger(__name__)


def register_handlers(
    broadcaster: Broadcaster,
    account_cache: AccountCache,
    session_factory: Callable[[], AsyncSession],
    settings: Settings,
) -> None:
    """
    Attach connect/disconnect handlers to the broadcaster's Socket.IO server.

    Clients authenticate with ``auth={"token": "<jwt>"}``. A bad token refuses
    the connection; a good one places it in its user room, its server rooms,
    and the rooms of every channel it may see.
    """
    sio = broadcaster.server

    async def connect(sid: str, environ: dict, auth: Any = None) -> None:
        token = auth.get("token") if isinstance(auth, dict) else None
        if not isinstance(token, str) or not token:
            raise socketio.exceptions.ConnectionRefusedError("Invalid token.")

        async with session_factory() as db:
            try:
                account = await account_cache.authenticate(db, token, settings)
            except InvalidTokenError as e:
                raise socketio.exceptions.ConnectionRefusedError(str(e)) from e
            rooms = await get_user_rooms(db, UUID(account.id))

        for room in rooms:
            await broadcaster.enter(sid, room)
        logger.info("socket_connected sid=%s user_id=%s rooms=%d", sid, account.id, len(rooms))

    async def disconnect(sid: str, *args: Any) -> None:
        logger.debug("socket_disconnected sid=%s", sid)

    sio.on("connect", connect)
    sio.on("disconnect", disconnect)
