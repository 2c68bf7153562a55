"""Translate service errors into HTTP errors."""

from fastapi import HTTPException, status

from app.services.errors import (
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    ServiceError,
    StoreError,
)

STATUS_BY_ERROR: dict[type[ServiceError], int] = {
    InvalidInputError: status.HTTP_400_BAD_REQUEST,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    StoreError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def http_error(e: ServiceError) -> HTTPException:
    """Return the HTTPException for a service error; unknown subclasses become 500."""
    for error_type, status_code in STATUS_BY_ERROR.items():
        if isinstance(e, error_type):
            return HTTPException(status_code=status_code, detail=e.message)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=e.message,
    )
