"""User account operations: registration and admin management."""

import logging

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.roles import Role
from app.core.security import PasswordVerifier, password_verifier
from app.models import Entry, User
from app.schemas.user import UserCreate, UserUpdate
from app.services.auth import RESERVED_ADMIN_NAME, is_reserved_name
from app.services.errors import InvalidInputError, NotFoundError, StoreError, store_errors

logger = logging.getLogger(__name__)

DUPLICATE_USER_MESSAGE = "User already exists or database error"


def _reject_reserved(name: str) -> None:
    if is_reserved_name(name):
        raise InvalidInputError(f"The name '{RESERVED_ADMIN_NAME}' is reserved.")


def register_user(
    db: Session,
    body: UserCreate,
    verifier: PasswordVerifier = password_verifier,
    role: Role = Role.USER,
) -> User:
    """
    Create a user with a hashed password. Names and emails must be unused.

    The API always registers with role 'user'; provisioning scripts may pass another role.
    """
    _reject_reserved(body.name)
    with store_errors(db, "create user"):
        existing = (
            db.query(User.id)
            .filter(or_(User.name == body.name, func.lower(User.email) == body.email))
            .first()
        )
        if existing is not None:
            raise StoreError(DUPLICATE_USER_MESSAGE)
        user = User(
            name=body.name,
            email=body.email,
            password_hash=verifier.hash(body.password),
            role=role.value,
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent registration for the same name or email.
            db.rollback()
            raise StoreError(DUPLICATE_USER_MESSAGE, e) from e
        db.refresh(user)
    logger.info("Registered user_id=%s", user.id)
    return user


def get_user(db: Session, user_id: int) -> User:
    """Return the user or raise NotFoundError."""
    with store_errors(db, "retrieve user"):
        user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def list_users(db: Session) -> list[User]:
    """All users, oldest first."""
    with store_errors(db, "retrieve users"):
        return db.query(User).order_by(User.id).all()


def update_user(
    db: Session,
    user_id: int,
    body: UserUpdate,
    verifier: PasswordVerifier = password_verifier,
) -> User:
    """Apply the fields present in body to the user. A new password is hashed before storage."""
    user = get_user(db, user_id)
    changes = body.model_dump(exclude_none=True)
    if "name" in changes:
        _reject_reserved(changes["name"])
    with store_errors(db, "update user"):
        if "name" in changes or "email" in changes:
            # Login is by name, so a second row with the same name would lock one of them out.
            clashes = []
            if "name" in changes:
                clashes.append(User.name == changes["name"])
            if "email" in changes:
                clashes.append(func.lower(User.email) == changes["email"])
            taken = db.query(User.id).filter(User.id != user_id, or_(*clashes)).first()
            if taken is not None:
                raise StoreError(DUPLICATE_USER_MESSAGE)
        if "name" in changes:
            user.name = changes["name"]
        if "email" in changes:
            user.email = changes["email"]
        if "role" in changes:
            user.role = Role.parse(changes["role"]).value
        if "password" in changes:
            user.password_hash = verifier.hash(changes["password"])
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise StoreError(DUPLICATE_USER_MESSAGE, e) from e
        db.refresh(user)
    logger.info("Updated user_id=%s fields=%s", user_id, sorted(changes))
    return user


def delete_user(db: Session, user_id: int) -> int:
    """
    Delete the user and every entry they own in one transaction.

    Returns the number of entries removed. Raises NotFoundError if the user does not exist.
    """
    user = get_user(db, user_id)
    with store_errors(db, "delete user"):
        entries_deleted = (
            db.query(Entry)
            .filter(Entry.user_id == user_id)
            .delete(synchronize_session=False)
        )
        db.delete(user)
        db.commit()
    logger.info("Deleted user_id=%s entries_deleted=%s", user_id, entries_deleted)
    return entries_deleted
