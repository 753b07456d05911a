"""Authentication schemas."""

from pydantic import EmailStr, Field

from discipleship.core.permissions import Role
from discipleship.schemas.common import CamelModel
from discipleship.schemas.users import User


class RegisterRequest(CamelModel):
    """Self-service registration into an existing church."""

    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    church_id: str = Field(..., min_length=1)
    role: Role | None = None
    phone: str | None = Field(None, max_length=20)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class AuthResponse(CamelModel):
    """User with a freshly signed access token."""

    user: User
    token: str
    expires_in: str


class TokenResponse(CamelModel):
    token: str
    expires_in: str


class SwitchChurchRequest(CamelModel):
    church_id: str = Field(..., min_length=1)


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=128)


class TokenIdentity(CamelModel):
    """Identity carried by a verified token."""

    user_id: str
    email: str
    role: Role
    church_id: str
    church_ids: list[str] = Field(default_factory=list)


class ChurchSummary(CamelModel):
    id: str
    name: str
    slug: str
