"""Pydantic request/response schemas."""

from app.schemas.auth import CurrentUser, LoginRequest, LoginResponse, UsernameResponse
from app.schemas.common import MessageResponse
from app.schemas.entry import EntryCreate, EntryResponse, EntryUpdate
from app.schemas.health import HealthResponse
from app.schemas.user import UserCreate, UserResponse, UserUpdate

__all__ = [
    "CurrentUser",
    "EntryCreate",
    "EntryResponse",
    "EntryUpdate",
    "HealthResponse",
    "LoginRequest",
    "LoginResponse",
    "MessageResponse",
    "UserCreate",
    "UserResponse",
    "UserUpdate",
    "UsernameResponse",
]
