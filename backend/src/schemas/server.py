"""Pydantic schemas for server and invite endpoints."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class ServerResponse(BaseModel):
    """Server as returned after joining it."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    created_by: UUID
    default_channel_id: UUID | None


class ServerInviteResponse(BaseModel):
    """A server invite."""

    model_config = ConfigDict(from_attributes=True)

    code: str
    server_id: UUID
    created_by: UUID
    uses: int
    created_at: datetime
