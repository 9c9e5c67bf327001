"""Server membership endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import (
    get_async_session,
    get_current_account,
    require_broadcaster,
    require_server_member_cache,
)
from cache.server_member_cache import ServerMemberCache
from models.server import Server, ServerInvite
from realtime.broadcaster import Broadcaster
from schemas.cached_account import CachedAccount
from schemas.server import ServerInviteResponse, ServerResponse
from services import server_invite_service, server_member_service
from services.exceptions import (
    AlreadyServerMemberError,
    InviteNotFoundError,
    ServerMemberNotFoundError,
    ServerNotFoundError,
)

router = APIRouter(prefix="/servers", tags=["servers"])


@router.post("/invites/{code}", response_model=ServerResponse)
async def join_server(
    code: str,
    current_account: CachedAccount = Depends(get_current_account),
    member_cache: ServerMemberCache = Depends(require_server_member_cache),
    broadcaster: Broadcaster = Depends(require_broadcaster),
    db: AsyncSession = Depends(get_async_session),
) -> Server:
    """Join a server with an invite code."""
    try:
        return await server_invite_service.join_server_by_invite(
            db, member_cache, broadcaster, code, UUID(current_account.id),
        )
    except InviteNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except AlreadyServerMemberError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{server_id}/invites", response_model=ServerInviteResponse)
async def create_invite(
    server_id: UUID,
    current_account: CachedAccount = Depends(get_current_account),
    member_cache: ServerMemberCache = Depends(require_server_member_cache),
    db: AsyncSession = Depends(get_async_session),
) -> ServerInvite:
    """
    Get an invite for a server the caller belongs to.

    Repeated calls return the same invite.
    """
    try:
        return await server_invite_service.create_server_invite(
            db, member_cache, server_id, UUID(current_account.id),
        )
    except ServerNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ServerMemberNotFoundError as e:
        raise HTTPException(status_code=403, detail=str(e))


@router.delete("/{server_id}/members/me", status_code=204)
async def leave_server(
    server_id: UUID,
    current_account: CachedAccount = Depends(get_current_account),
    member_cache: ServerMemberCache = Depends(require_server_member_cache),
    broadcaster: Broadcaster = Depends(require_broadcaster),
    db: AsyncSession = Depends(get_async_session),
) -> None:
    """
    Leave a server.

    The server creator cannot leave their own server.
    """
    server = await db.get(Server, server_id)
    if server is None:
        raise HTTPException(status_code=404, detail="Server does not exist.")
    if str(server.created_by) == current_account.id:
        raise HTTPException(status_code=400, detail="You cannot leave your own server.")
    try:
        await server_member_service.remove_server_member(
            db, member_cache, broadcaster, server_id, UUID(current_account.id),
        )
    except ServerMemberNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
