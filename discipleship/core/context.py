"""Per-request tenant context derived from a verified access token."""

from dataclasses import dataclass, field
from typing import Any

from discipleship.core.exceptions import UnauthorizedException
from discipleship.core.permissions import Role

SYSTEM_CHURCH_ID = "SYSTEM"


@dataclass(frozen=True)
class RequestContext:
    """
    Identity and tenant of the caller.

    Built once after the bearer token is verified and passed explicitly to
    services and authorization checks. Changing tenant means minting a new
    token, never mutating this object.
    """

    user_id: str
    email: str
    role: Role
    church_id: str
    church_ids: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_platform_admin(self) -> bool:
        return self.role == Role.PLATFORM_ADMIN

    @property
    def has_tenant(self) -> bool:
        """False for platform admins who have not switched into a church."""
        return self.church_id != SYSTEM_CHURCH_ID

    @property
    def accessible_church_ids(self) -> tuple[str, ...]:
        """Churches the caller may switch into, falling back to the current one."""
        return self.church_ids or (self.church_id,)

    @classmethod
    def from_token_payload(cls, payload: dict[str, Any]) -> "RequestContext":
        """
        Build a context from decoded token claims.

        Args:
            payload: Verified JWT payload

        Returns:
            Request context

        Raises:
            UnauthorizedException: If required claims are missing or malformed
        """
        try:
            user_id = payload["userId"]
            email = payload["email"]
            church_id = payload["churchId"]
            role = Role(payload["role"])
        except (KeyError, ValueError) as e:
            raise UnauthorizedException("Invalid token claims", code="INVALID_TOKEN") from e

        church_ids = payload.get("churchIds") or []
        if not isinstance(church_ids, list):
            raise UnauthorizedException("Invalid token claims", code="INVALID_TOKEN")

        return cls(
            user_id=str(user_id),
            email=str(email),
            role=role,
            church_id=str(church_id),
            church_ids=tuple(str(c) for c in church_ids),
        )

    def to_token_payload(self) -> dict[str, Any]:
        """Claims to sign for this context."""
        payload: dict[str, Any] = {
            "userId": self.user_id,
            "churchId": self.church_id,
            "email": self.email,
            "role": self.role.value,
        }
        if self.church_ids:
            payload["churchIds"] = list(self.church_ids)
        return payload

    def with_church(self, church_id: str) -> "RequestContext":
        """Copy of the context bound to another church."""
        return RequestContext(
            user_id=self.user_id,
            email=self.email,
            role=self.role,
            church_id=church_id,
            church_ids=self.church_ids,
        )
