"""Self-service entry endpoints. Every read and write is scoped to the caller's user id."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.orm import Session

from app.api.v1.auth import get_current_user
from app.api.v1.errors import http_error
from app.core.database import get_db
from app.schemas.auth import CurrentUser
from app.schemas.common import MessageResponse
from app.schemas.entry import EntryCreate, EntryResponse, EntryUpdate
from app.services import entries as entry_service
from app.services.errors import ServiceError

router = APIRouter()

EntryId = Annotated[int, Path(ge=1, description="Entry id")]


@router.get("", response_model=list[EntryResponse])
def list_entries(
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> list[EntryResponse]:
    """List the caller's entries, newest first."""
    try:
        rows = entry_service.list_entries_for_user(db, current_user.id)
    except ServiceError as e:
        raise http_error(e) from e
    return [EntryResponse.model_validate(row) for row in rows]


@router.post("", response_model=EntryResponse, status_code=status.HTTP_201_CREATED)
def create_entry(
    body: EntryCreate,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> EntryResponse:
    """Create an entry owned by the caller. The owner always comes from the token, never the body."""
    try:
        entry = entry_service.create_entry(db, current_user.id, body)
    except ServiceError as e:
        raise http_error(e) from e
    return EntryResponse.model_validate(entry)


@router.put("/{entry_id}", response_model=EntryResponse)
def update_entry(
    entry_id: EntryId,
    body: EntryUpdate,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> EntryResponse:
    """Update one of the caller's entries; another user's entry is reported as 404."""
    try:
        entry = entry_service.update_user_entry(db, current_user.id, entry_id, body)
    except ServiceError as e:
        raise http_error(e) from e
    return EntryResponse.model_validate(entry)


@router.delete("/{entry_id}", response_model=MessageResponse)
def delete_entry(
    entry_id: EntryId,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> MessageResponse:
    """Delete one of the caller's entries; another user's entry is reported as 404."""
    try:
        entry_service.delete_user_entry(db, current_user.id, entry_id)
    except ServiceError as e:
        raise http_error(e) from e
    return MessageResponse(message="Entry deleted successfully")
