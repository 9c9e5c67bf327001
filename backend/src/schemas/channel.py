"""Pydantic schemas for channel endpoints and events."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.channel import ChannelType


class ChannelCreate(BaseModel):
    """Schema for creating a server channel."""

    name: str = Field(..., min_length=1, max_length=100)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        """Reject names that are only whitespace."""
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value


class ChannelUpdate(BaseModel):
    """
    Schema for a partial server channel update.

    Only fields present in the request are applied; use
    model_dump(exclude_unset=True) to get them.
    """

    name: str | None = Field(default=None, min_length=1, max_length=100)
    permissions: int | None = Field(default=None, ge=0)

    @field_validator("name")
    @classmethod
    def name_not_null(cls, value: str | None) -> str | None:
        """A supplied name cannot be null or blank."""
        if value is None:
            raise ValueError("name cannot be null")
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value

    @field_validator("permissions")
    @classmethod
    def permissions_not_null(cls, value: int | None) -> int | None:
        """A supplied permissions bitmask cannot be null."""
        if value is None:
            raise ValueError("permissions cannot be null")
        return value


class ChannelResponse(BaseModel):
    """Channel as returned by the API and carried in realtime events."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str | None
    type: ChannelType
    permissions: int
    server_id: UUID | None
    created_by: UUID
    created_at: datetime


class ChannelDeleteResponse(BaseModel):
    """Id of the deleted channel."""

    channel_id: UUID


class MessageMentionResponse(BaseModel):
    """A pending mention notification."""

    model_config = ConfigDict(from_attributes=True)

    mentioned_by: UUID
    channel_id: UUID
    server_id: UUID | None
    count: int
    created_at: datetime
