"""Request/response schemas for user accounts."""

import logging
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.roles import Role

logger = logging.getLogger(__name__)


def _strip_required(v: str) -> str:
    s = v.strip()
    if not s:
        raise ValueError("must not be blank")
    return s


class UserCreate(BaseModel):
    """Registration body. Any role sent by the client is ignored."""

    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _strip_required(v)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        s = _strip_required(v).lower()
        if "@" not in s:
            raise ValueError("must be an email address")
        return s


class UserUpdate(BaseModel):
    """Admin update body; only fields that are sent are changed."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: str | None = Field(default=None, min_length=3, max_length=255)
    role: Role | None = None
    password: str | None = Field(default=None, min_length=1, max_length=128)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        return None if v is None else _strip_required(v)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str | None) -> str | None:
        if v is None:
            return None
        s = _strip_required(v).lower()
        if "@" not in s:
            raise ValueError("must be an email address")
        return s


class UserResponse(BaseModel):
    """User as returned by the API (no password)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: Role
    created_at: datetime | None = None

    @field_validator("role", mode="before")
    @classmethod
    def default_role(cls, v: str | Role | None) -> Role:
        try:
            return Role.parse(v)
        except ValueError:
            # Legacy rows may carry roles outside the closed set; they authorize as 'user'.
            logger.warning("Stored role %r is not a known role; reporting as %s", v, Role.USER.value)
            return Role.USER
