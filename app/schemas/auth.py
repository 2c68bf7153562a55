"""Request/response schemas for auth endpoints."""

from pydantic import BaseModel, ConfigDict, Field

from app.core.roles import Role


class LoginRequest(BaseModel):
    """Credentials for login."""

    name: str = Field(..., min_length=1, max_length=255, description="Account name")
    password: str = Field(..., min_length=1, max_length=128, description="Password")


class LoginResponse(BaseModel):
    """Token issued after successful login; the same token is also set as the `token` cookie."""

    token: str = Field(..., description="JWT access token")
    username: str
    role: Role


class CurrentUser(BaseModel):
    """Authenticated identity (id, username, role) decoded from the token."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


class UsernameResponse(BaseModel):
    """Response for POST /user/getusername."""

    username: str
