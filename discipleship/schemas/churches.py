"""Church schemas for request/response validation."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import EmailStr, Field, field_serializer

from discipleship.core.curriculums import Curriculum
from discipleship.schemas.common import CamelModel, PatchModel, from_attribute


class SubscriptionTier(str, Enum):
    """Church subscription tier."""

    FREE = "free"
    STARTER = "starter"
    GROWTH = "growth"
    ENTERPRISE = "enterprise"


class Address(CamelModel):
    street: str = Field(..., min_length=1, max_length=200)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=100)
    zip: str = Field(..., min_length=1, max_length=20)
    country: str = "USA"


class ChurchSettings(CamelModel):
    timezone: str = "America/Chicago"
    first_day_of_week: int = Field(0, ge=0, le=1)
    enabled_curriculums: list[Curriculum] = Field(default_factory=lambda: list(Curriculum))
    custom_fields: dict[str, Any] | None = None

    @field_serializer("custom_fields", when_used="json")
    def serialize_custom_fields(self, value: dict[str, Any] | None) -> dict[str, Any] | None:
        """Serialize stored Decimals as JSON numbers."""
        return from_attribute(value)


class Church(CamelModel):
    """Church (tenant) as stored."""

    id: str
    name: str
    slug: str
    address: Address
    pastor_id: str
    pastor_name: str | None = None
    phone: str | None = None
    email: EmailStr | None = None
    website: str | None = None
    logo: str | None = None
    settings: ChurchSettings = Field(default_factory=ChurchSettings)
    subscription: SubscriptionTier = SubscriptionTier.FREE
    created_at: datetime
    updated_at: datetime


class ChurchCreate(CamelModel):
    """Schema for onboarding a church."""

    name: str = Field(..., min_length=2, max_length=200)
    slug: str = Field(..., min_length=2, max_length=100, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    address: Address
    pastor_id: str = Field(..., min_length=1)
    pastor_name: str | None = Field(None, max_length=200)
    phone: str | None = Field(None, max_length=20)
    email: EmailStr | None = None
    website: str | None = Field(None, max_length=500)
    logo: str | None = Field(None, max_length=500)
    settings: ChurchSettings = Field(default_factory=ChurchSettings)
    subscription: SubscriptionTier = SubscriptionTier.FREE


class ChurchUpdate(PatchModel):
    """Mutable church attributes. The slug is fixed at onboarding."""

    non_nullable = frozenset({"name", "address", "pastor_id", "settings", "subscription"})

    name: str | None = Field(None, min_length=2, max_length=200)
    address: Address | None = None
    pastor_id: str | None = None
    pastor_name: str | None = Field(None, max_length=200)
    phone: str | None = Field(None, max_length=20)
    email: EmailStr | None = None
    website: str | None = Field(None, max_length=500)
    logo: str | None = Field(None, max_length=500)
    settings: ChurchSettings | None = None
    subscription: SubscriptionTier | None = None


class ChurchStats(CamelModel):
    total_students: int
    active_studies: int
    completed_journeys: int
    baptisms_this_month: int
    holy_ghost_this_month: int
