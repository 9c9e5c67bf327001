"""FastAPI dependencies for injection."""
from uuid import UUID

from fastapi import Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from cache.server_member_cache import ServerMemberCache, get_server_member_cache
from core.auth import get_current_account
from core.config import get_settings
from db.session import get_async_session
from models.server import Server
from realtime.broadcaster import Broadcaster, get_broadcaster
from schemas.cached_account import CachedAccount
from services.channel_service import ChannelService, get_channel_service

__all__ = [
    "get_async_session",
    "get_current_account",
    "get_owned_server",
    "get_settings",
    "require_broadcaster",
    "require_channel_service",
    "require_server_member_cache",
]


def require_channel_service() -> ChannelService:
    """Resolve the channel service set up at startup."""
    service = get_channel_service()
    if service is None:
        raise RuntimeError("Channel service is not initialized")
    return service


def require_server_member_cache() -> ServerMemberCache:
    """Resolve the server member cache set up at startup."""
    cache = get_server_member_cache()
    if cache is None:
        raise RuntimeError("Server member cache is not initialized")
    return cache


def require_broadcaster() -> Broadcaster:
    """Resolve the broadcaster set up at startup."""
    broadcaster = get_broadcaster()
    if broadcaster is None:
        raise RuntimeError("Broadcaster is not initialized")
    return broadcaster


async def get_owned_server(
    server_id: UUID,
    current_account: CachedAccount = Depends(get_current_account),
    db: AsyncSession = Depends(get_async_session),
) -> Server:
    """
    Load a server the current account created.

    Channel management is restricted to the server creator.

    Raises:
        HTTPException: 404 if the server does not exist, 403 if the caller did not create it.
    """
    server = await db.get(Server, server_id)
    if server is None:
        raise HTTPException(status_code=404, detail="Server does not exist.")
    if str(server.created_by) != current_account.id:
        raise HTTPException(status_code=403, detail="Only the server owner can manage channels.")
    return server
