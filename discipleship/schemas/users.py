"""User schemas for request/response validation."""

from datetime import datetime

from pydantic import EmailStr, Field, field_validator

from discipleship.core.permissions import Role
from discipleship.schemas.common import CamelModel, PatchModel


class User(CamelModel):
    """User as stored, without the password hash in any serialised form."""

    id: str
    church_id: str
    church_ids: list[str] | None = None
    email: EmailStr
    first_name: str
    last_name: str
    phone: str | None = None
    role: Role
    avatar: str | None = None
    is_active: bool = True
    last_login_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    password_hash: str | None = Field(default=None, exclude=True)


class UserMe(User):
    """Current user with the tenant the token is bound to."""

    current_church_id: str


class UserData(CamelModel):
    """Fields required to create a user row."""

    church_id: str
    church_ids: list[str] | None = None
    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: str | None = Field(None, max_length=20)
    role: Role = Role.MEMBER
    avatar: str | None = None
    is_active: bool = True

    @field_validator("email")
    @classmethod
    def normalise_email(cls, v: str) -> str:
        """Emails are stored lowercased."""
        return v.lower()


class UserCreate(CamelModel):
    """Schema for creating a user in the caller's church."""

    email: EmailStr
    password: str | None = Field(None, min_length=8, max_length=128)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: str | None = Field(None, max_length=20)
    role: Role = Role.MEMBER
    church_ids: list[str] | None = None


class UserUpdate(PatchModel):
    """Schema for updating a user profile."""

    non_nullable = frozenset({"first_name", "last_name", "role", "is_active"})

    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    phone: str | None = Field(None, max_length=20)
    avatar: str | None = None
    role: Role | None = None
    is_active: bool | None = None


class UserPatch(PatchModel):
    """Mutable user attributes."""

    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    avatar: str | None = None
    role: Role | None = None
    is_active: bool | None = None
    church_ids: list[str] | None = None
    last_login_at: datetime | None = None
    password_hash: str | None = None
