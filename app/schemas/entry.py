"""Request/response schemas for journal entries."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class EntryCreate(BaseModel):
    """Body for creating an entry; every field is required and non-empty."""

    situation: str = Field(..., min_length=1, max_length=255)
    text: str = Field(..., min_length=1)
    colour: str = Field(..., min_length=1, max_length=32)
    icon: str = Field(..., min_length=1, max_length=32)


class EntryUpdate(BaseModel):
    """Body for updating an entry; only fields that are sent are changed."""

    situation: str | None = Field(default=None, min_length=1, max_length=255)
    text: str | None = Field(default=None, min_length=1)
    colour: str | None = Field(default=None, min_length=1, max_length=32)
    icon: str | None = Field(default=None, min_length=1, max_length=32)


class EntryResponse(BaseModel):
    """Entry as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    situation: str
    text: str
    colour: str
    icon: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
