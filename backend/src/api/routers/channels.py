"""Server channel management and notification endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import (
    get_async_session,
    get_current_account,
    get_owned_server,
    require_channel_service,
)
from models.server import Server
from schemas.cached_account import CachedAccount
from schemas.channel import (
    ChannelCreate,
    ChannelDeleteResponse,
    ChannelResponse,
    ChannelUpdate,
)
from services.channel_service import ChannelService
from services.exceptions import (
    CannotDeleteDefaultChannelError,
    ChannelLimitExceededError,
    ChannelNotFoundError,
    ServerNotFoundError,
)

router = APIRouter(tags=["channels"])


@router.post(
    "/servers/{server_id}/channels",
    response_model=ChannelResponse,
    status_code=201,
)
async def create_server_channel(
    data: ChannelCreate,
    server: Server = Depends(get_owned_server),
    current_account: CachedAccount = Depends(get_current_account),
    channel_service: ChannelService = Depends(require_channel_service),
    db: AsyncSession = Depends(get_async_session),
) -> ChannelResponse:
    """
    Create a public text channel in a server.

    Every member currently connected is subscribed to the new channel.
    """
    try:
        channel = await channel_service.create_server_channel(
            db, server.id, data.name, UUID(current_account.id),
        )
    except ChannelLimitExceededError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ChannelResponse.model_validate(channel)


@router.patch("/servers/{server_id}/channels/{channel_id}")
async def update_server_channel(
    channel_id: UUID,
    data: ChannelUpdate,
    server: Server = Depends(get_owned_server),
    channel_service: ChannelService = Depends(require_channel_service),
    db: AsyncSession = Depends(get_async_session),
) -> dict:
    """
    Partially update a server channel (name and/or permissions).

    Returns only the fields that were applied.
    """
    try:
        return await channel_service.update_server_channel(db, server.id, channel_id, data)
    except ServerNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ChannelNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete(
    "/servers/{server_id}/channels/{channel_id}",
    response_model=ChannelDeleteResponse,
)
async def delete_server_channel(
    channel_id: UUID,
    server: Server = Depends(get_owned_server),
    channel_service: ChannelService = Depends(require_channel_service),
    db: AsyncSession = Depends(get_async_session),
) -> ChannelDeleteResponse:
    """Delete a server channel and all of its messages and read state."""
    try:
        deleted_id = await channel_service.delete_server_channel(db, server.id, channel_id)
    except CannotDeleteDefaultChannelError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (ServerNotFoundError, ChannelNotFoundError) as e:
        raise HTTPException(status_code=404, detail=str(e))
    return ChannelDeleteResponse(channel_id=deleted_id)


@router.post("/channels/{channel_id}/notifications/dismiss", status_code=204)
async def dismiss_channel_notification(
    channel_id: UUID,
    current_account: CachedAccount = Depends(get_current_account),
    channel_service: ChannelService = Depends(require_channel_service),
    db: AsyncSession = Depends(get_async_session),
) -> None:
    """Mark a channel as read for the current user."""
    await channel_service.dismiss_channel_notification(
        db, current_account.id, str(channel_id),
    )
