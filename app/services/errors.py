"""Service-level errors and datastore error translation shared by the user and entry services."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base for errors raised by services; routers translate them to HTTP responses."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


class InvalidInputError(ServiceError):
    """Request data is well-formed but not acceptable (e.g. a reserved name)."""


class ForbiddenError(ServiceError):
    """Caller is known but may not perform the operation."""


class NotFoundError(ServiceError):
    """Referenced user or entry does not exist (or is not visible to the caller)."""


class StoreError(ServiceError):
    """Constraint violation or datastore failure."""


@contextmanager
def store_errors(db: Session, action: str) -> Iterator[None]:
    """Roll back and raise StoreError if the datastore fails inside the block."""
    try:
        yield
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Datastore failure while trying to %s", action)
        raise StoreError(f"Failed to {action}", e) from e
