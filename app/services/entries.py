"""Entry operations. Self-service calls are scoped to the owner; admin calls address any entry by id."""

import logging

from sqlalchemy.orm import Session

from app.models import Entry, User
from app.schemas.entry import EntryCreate, EntryUpdate
from app.services.errors import ForbiddenError, NotFoundError, store_errors

logger = logging.getLogger(__name__)

ENTRY_NOT_FOUND_MESSAGE = "Entry not found"


def _newest_first(query):
    return query.order_by(Entry.created_at.desc(), Entry.id.desc())


def _find_entry(db: Session, entry_id: int, owner_id: int | None) -> Entry:
    """Load an entry by id, restricted to owner_id unless it is None. Raises NotFoundError."""
    with store_errors(db, "retrieve entry"):
        query = db.query(Entry).filter(Entry.id == entry_id)
        if owner_id is not None:
            query = query.filter(Entry.user_id == owner_id)
        entry = query.first()
    if entry is None:
        raise NotFoundError(ENTRY_NOT_FOUND_MESSAGE)
    return entry


def _apply_update(db: Session, entry: Entry, body: EntryUpdate) -> Entry:
    changes = body.model_dump(exclude_none=True)
    with store_errors(db, "update entry"):
        for field, value in changes.items():
            setattr(entry, field, value)
        db.commit()
        db.refresh(entry)
    return entry


def create_entry(db: Session, owner_id: int, body: EntryCreate) -> Entry:
    """Create an entry owned by owner_id. The owner must be a stored user."""
    with store_errors(db, "save entry"):
        if db.get(User, owner_id) is None:
            raise ForbiddenError("This account has no stored user record and cannot own entries.")
        entry = Entry(
            user_id=owner_id,
            situation=body.situation,
            text=body.text,
            colour=body.colour,
            icon=body.icon,
        )
        db.add(entry)
        db.commit()
        db.refresh(entry)
    return entry


def list_entries_for_user(db: Session, owner_id: int) -> list[Entry]:
    """Entries owned by owner_id, newest first."""
    with store_errors(db, "retrieve entries"):
        return _newest_first(db.query(Entry).filter(Entry.user_id == owner_id)).all()


def update_user_entry(db: Session, owner_id: int, entry_id: int, body: EntryUpdate) -> Entry:
    """Update one of owner_id's entries. Entries of other users are reported as not found."""
    entry = _find_entry(db, entry_id, owner_id)
    return _apply_update(db, entry, body)


def delete_user_entry(db: Session, owner_id: int, entry_id: int) -> None:
    """Delete one of owner_id's entries. Entries of other users are reported as not found."""
    with store_errors(db, "delete entry"):
        deleted = (
            db.query(Entry)
            .filter(Entry.id == entry_id, Entry.user_id == owner_id)
            .delete(synchronize_session=False)
        )
        db.commit()
    if deleted == 0:
        raise NotFoundError(ENTRY_NOT_FOUND_MESSAGE)


def list_all_entries(db: Session) -> list[Entry]:
    """Every entry of every user, newest first."""
    with store_errors(db, "retrieve entries"):
        return _newest_first(db.query(Entry)).all()


def update_any_entry(db: Session, entry_id: int, body: EntryUpdate) -> Entry:
    """Update any entry by id."""
    entry = _find_entry(db, entry_id, owner_id=None)
    return _apply_update(db, entry, body)


def delete_any_entry(db: Session, entry_id: int) -> None:
    """Delete any entry by id."""
    with store_errors(db, "delete entry"):
        deleted = (
            db.query(Entry)
            .filter(Entry.id == entry_id)
            .delete(synchronize_session=False)
        )
        db.commit()
    if deleted == 0:
        raise NotFoundError(ENTRY_NOT_FOUND_MESSAGE)
    logger.info("Deleted entry_id=%s", entry_id)
