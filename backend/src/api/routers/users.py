"""Current-user read state endpoints."""
from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_account, require_channel_service
from schemas.cached_account import CachedAccount
from schemas.channel import MessageMentionResponse
from services.channel_service import ChannelService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me/mentions", response_model=list[MessageMentionResponse])
async def get_my_mentions(
    current_account: CachedAccount = Depends(get_current_account),
    channel_service: ChannelService = Depends(require_channel_service),
    db: AsyncSession = Depends(get_async_session),
) -> list[MessageMentionResponse]:
    """Pending mention notifications for the current user."""
    mentions = await channel_service.get_all_message_mentions(db, UUID(current_account.id))
    return [MessageMentionResponse.model_validate(m) for m in mentions]


@router.get("/me/last-seen")
async def get_my_last_seen(
    current_account: CachedAccount = Depends(get_current_account),
    channel_service: ChannelService = Depends(require_channel_service),
    db: AsyncSession = Depends(get_async_session),
) -> dict[str, datetime]:
    """When the current user last read each server channel, keyed by channel id."""
    return await channel_service.get_last_seen_server_channel_ids(
        db, UUID(current_account.id),
    )
