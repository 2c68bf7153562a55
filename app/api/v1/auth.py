"""Account endpoints (register, login, logout, whoami) and auth dependencies (get_current_user, require_admin)."""

from typing import Annotated

from fastapi import APIRouter, Cookie, Depends, HTTPException, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.api.v1.errors import http_error
from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.security import TokenCodec, TokenError
from app.schemas.auth import CurrentUser, LoginRequest, LoginResponse, UsernameResponse
from app.schemas.common import MessageResponse
from app.schemas.user import UserCreate, UserResponse
from app.services.auth import Authenticator, InvalidCredentialsError
from app.services.errors import ServiceError
from app.services.users import register_user

router = APIRouter()
security = HTTPBearer(auto_error=False)

TOKEN_COOKIE = "token"
ROLE_COOKIE = "role"
# Cookie lifetime matches the token lifetime (24h).
COOKIE_MAX_AGE_SEC = 86400


def get_token_codec(settings: Annotated[Settings, Depends(get_settings)]) -> TokenCodec:
    """Dependency: token codec bound to the current signing key."""
    return TokenCodec.from_settings(settings)


def get_authenticator(settings: Annotated[Settings, Depends(get_settings)]) -> Authenticator:
    """Dependency: authenticator configured from the current settings."""
    return Authenticator.from_settings(settings)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    codec: Annotated[TokenCodec, Depends(get_token_codec)],
    token_cookie: Annotated[str | None, Cookie(alias=TOKEN_COOKIE)] = None,
) -> CurrentUser:
    """
    Dependency: require a valid token and return the identity it carries. Raises 401 if missing or invalid.

    The Bearer header wins over the `token` cookie. No database lookup is made.
    """
    token = credentials.credentials if credentials is not None else token_cookie
    if not token:
        raise _unauthorized("Not authenticated")
    try:
        claims = codec.decode(token)
    except TokenError:
        raise _unauthorized("Invalid or expired token")
    return CurrentUser(id=claims.user_id, username=claims.username, role=claims.role)


def require_admin(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CurrentUser:
    """Dependency: require authenticated user with role 'admin'. Raises 403 for non-admin."""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user


@router.post("/create", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    body: UserCreate,
    db: Annotated[Session, Depends(get_db)],
) -> UserResponse:
    """Register a new account with role 'user'. The password is never returned."""
    try:
        user = register_user(db, body)
    except ServiceError as e:
        raise http_error(e) from e
    return UserResponse.model_validate(user)


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    authenticator: Annotated[Authenticator, Depends(get_authenticator)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> LoginResponse:
    """
    Authenticate with name and password; returns a JWT and sets it as the `token` cookie.
    Send the token back either as `Authorization: Bearer <token>` or via the cookie.
    """
    try:
        result = authenticator.login(db, body.name, body.password)
    except InvalidCredentialsError as e:
        raise _unauthorized(e.message) from e
    except ServiceError as e:
        raise http_error(e) from e

    response.set_cookie(
        TOKEN_COOKIE,
        result.token,
        max_age=COOKIE_MAX_AGE_SEC,
        path="/",
        secure=settings.COOKIE_SECURE,
        httponly=True,
        samesite="lax",
    )
    return LoginResponse(token=result.token, username=result.username, role=result.role)


@router.post("/logout", response_model=MessageResponse)
def logout(
    response: Response,
    _user: Annotated[CurrentUser, Depends(get_current_user)],
) -> MessageResponse:
    """Clear the session cookies. The token itself stays valid until it expires."""
    response.delete_cookie(TOKEN_COOKIE, path="/")
    response.delete_cookie(ROLE_COOKIE, path="/")
    return MessageResponse(message="Logged out successfully")


@router.post("/getusername", response_model=UsernameResponse)
def get_username(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> UsernameResponse:
    """Return the username carried by the caller's token."""
    return UsernameResponse(username=current_user.username)
