"""Admin endpoints: manage every user and every entry. All routes require an admin token."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from app.api.v1.auth import require_admin
from app.api.v1.errors import http_error
from app.core.database import get_db
from app.schemas.auth import CurrentUser
from app.schemas.common import MessageResponse
from app.schemas.entry import EntryResponse, EntryUpdate
from app.schemas.user import UserResponse, UserUpdate
from app.services import entries as entry_service
from app.services import users as user_service
from app.services.errors import ServiceError

logger = logging.getLogger(__name__)
router = APIRouter()

EntryId = Annotated[int, Path(ge=1, description="Entry id")]
UserId = Annotated[int, Path(ge=1, description="User id")]


@router.get("/entries", response_model=list[EntryResponse])
def list_all_entries(
    db: Annotated[Session, Depends(get_db)],
    _admin: Annotated[CurrentUser, Depends(require_admin)],
) -> list[EntryResponse]:
    """List every entry of every user, newest first."""
    try:
        rows = entry_service.list_all_entries(db)
    except ServiceError as e:
        raise http_error(e) from e
    return [EntryResponse.model_validate(row) for row in rows]


@router.get("/users", response_model=list[UserResponse])
def list_users(
    db: Annotated[Session, Depends(get_db)],
    _admin: Annotated[CurrentUser, Depends(require_admin)],
) -> list[UserResponse]:
    """List all users (no passwords)."""
    try:
        users = user_service.list_users(db)
    except ServiceError as e:
        raise http_error(e) from e
    return [UserResponse.model_validate(u) for u in users]


@router.put("/entries/{entry_id}", response_model=EntryResponse)
def update_any_entry(
    entry_id: EntryId,
    body: EntryUpdate,
    db: Annotated[Session, Depends(get_db)],
    admin: Annotated[CurrentUser, Depends(require_admin)],
) -> EntryResponse:
    """Update any entry by id."""
    try:
        entry = entry_service.update_any_entry(db, entry_id, body)
    except ServiceError as e:
        raise http_error(e) from e
    logger.info("Admin user_id=%s updated entry_id=%s", admin.id, entry_id)
    return EntryResponse.model_validate(entry)


@router.delete("/entries/{entry_id}", response_model=MessageResponse)
def delete_any_entry(
    entry_id: EntryId,
    db: Annotated[Session, Depends(get_db)],
    admin: Annotated[CurrentUser, Depends(require_admin)],
) -> MessageResponse:
    """Delete any entry by id."""
    try:
        entry_service.delete_any_entry(db, entry_id)
    except ServiceError as e:
        raise http_error(e) from e
    logger.info("Admin user_id=%s deleted entry_id=%s", admin.id, entry_id)
    return MessageResponse(message="Entry deleted successfully")


@router.put("/users/{user_id}", response_model=MessageResponse)
def update_user(
    user_id: UserId,
    body: UserUpdate,
    db: Annotated[Session, Depends(get_db)],
    admin: Annotated[CurrentUser, Depends(require_admin)],
) -> MessageResponse:
    """Update any user's name, email, role or password."""
    try:
        user_service.update_user(db, user_id, body)
    except ServiceError as e:
        raise http_error(e) from e
    logger.info("Admin user_id=%s updated user_id=%s", admin.id, user_id)
    return MessageResponse(message="User updated successfully")


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: UserId,
    db: Annotated[Session, Depends(get_db)],
    admin: Annotated[CurrentUser, Depends(require_admin)],
) -> MessageResponse:
    """Delete any user together with all of their entries."""
    try:
        user_service.delete_user(db, user_id)
    except ServiceError as e:
        raise http_error(e) from e
    logger.info("Admin user_id=%s deleted user_id=%s", admin.id, user_id)
    return MessageResponse(message="User deleted successfully")
