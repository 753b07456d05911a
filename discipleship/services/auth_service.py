"""Authentication service for registration, login and tenant switching."""

from typing import Any

import structlog
from fastapi.concurrency import run_in_threadpool

from discipleship.core.context import RequestContext
from discipleship.core.exceptions import AuthError, ConflictException
from discipleship.core.permissions import Role
from discipleship.core.security import (
    create_access_token,
    get_password_hash,
    verify_password,
)
from discipleship.repositories.church_repository import ChurchRepository
from discipleship.repositories.user_repository import UserRepository
from discipleship.schemas.auth import ChurchSummary, RegisterRequest
from discipleship.schemas.common import utcnow
from discipleship.schemas.users import User, UserData, UserMe

logger = structlog.get_logger()


def token_payload(user: User, church_id: str | None = None) -> dict[str, Any]:
    """Claims identifying a user, optionally bound to a church other than the primary one."""
    payload: dict[str, Any] = {
        "userId": user.id,
        "churchId": church_id or user.church_id,
        "email": user.email,
        "role": user.role.value,
    }
    if user.church_ids:
        payload["churchIds"] = list(user.church_ids)
    return payload


class AuthService:
    """Authentication service for handling credentials and JWT operations."""

    def __init__(self, table: Any):
        """Initialize auth service with the application table."""
        self.users = UserRepository(table)
        self.churches = ChurchRepository(table)

    def create_token(self, user: User, church_id: str | None = None) -> str:
        return create_access_token(token_payload(user, church_id))

    async def register(self, data: RegisterRequest) -> tuple[User, str]:
        """
        Register a user into an existing church.

        Args:
            data: Registration details

        Returns:
            Tuple of (created user, access token)

        Raises:
            AuthError: EMAIL_EXISTS, CHURCH_NOT_FOUND or INVALID_ROLE
        """
        role = data.role or Role.MEMBER
        if role == Role.PLATFORM_ADMIN:
            raise AuthError("INVALID_ROLE", "Platform administrators cannot self-register")

        if await self.users.find_by_email(data.email):
            raise AuthError("EMAIL_EXISTS", "A user with this email already exists")

        if not await self.churches.find_by_id(data.church_id):
            raise AuthError("CHURCH_NOT_FOUND", "Church not found")

        password_hash = await run_in_threadpool(get_password_hash, data.password)

        try:
            user = await self.users.create(
                UserData(
                    church_id=data.church_id,
                    church_ids=[data.church_id],
                    email=data.email,
                    first_name=data.first_name,
                    last_name=data.last_name,
                    phone=data.phone,
                    role=role,
                ),
                password_hash=password_hash,
            )
        except ConflictException as e:
            # Lost a race with a concurrent registration for the same address
            raise AuthError("EMAIL_EXISTS", "A user with this email already exists") from e

        logger.info("user_registered", user_id=user.id, church_id=user.church_id, role=user.role)
        return user, self.create_token(user)

    async def login(self, email: str, password: str) -> tuple[User, str]:
        """
        Authenticate with email and password.

        Raises:
            AuthError: INVALID_CREDENTIALS or ACCOUNT_DISABLED
        """
        user = await self.users.find_by_email(email)
        if not user or not user.password_hash:
            raise AuthError("INVALID_CREDENTIALS", "Invalid email or password")

        if not await run_in_threadpool(verify_password, password, user.password_hash):
            logger.info("login_failed", user_id=user.id)
            raise AuthError("INVALID_CREDENTIALS", "Invalid email or password")

        if not user.is_active:
            raise AuthError("ACCOUNT_DISABLED", "Account is disabled")

        now = utcnow()
        await self.users.update_last_login(user.id, user.church_id, now)
        user = user.model_copy(update={"last_login_at": now})

        logger.info("user_logged_in", user_id=user.id, church_id=user.church_id)
        return user, self.create_token(user)

    async def _load_user(self, context: RequestContext) -> User:
        # Users are stored under their primary church, which may differ from
        # the church the token is currently bound to.
        user = await self.users.find_by_email(context.email)
        if not user or user.id != context.user_id:
            raise AuthError("USER_NOT_FOUND", "User not found")
        return user

    async def get_current_user(self, context: RequestContext) -> UserMe:
        user = await self._load_user(context)
        return UserMe.model_validate({**user.model_dump(), "current_church_id": context.church_id})

    async def list_accessible_churches(self, context: RequestContext) -> list[ChurchSummary]:
        """Churches the caller may switch into."""
        if context.is_platform_admin:
            churches = await self.churches.list_all()
        else:
            user = await self._load_user(context)
            church_ids = user.church_ids or [user.church_id]
            churches = [c for c in [await self.churches.find_by_id(cid) for cid in church_ids] if c]

        return [ChurchSummary(id=c.id, name=c.name, slug=c.slug) for c in churches]

    async def switch_church(self, context: RequestContext, church_id: str) -> str:
        """
        Mint a token bound to another church.

        Raises:
            AuthError: ACCESS_DENIED if the caller has no access, CHURCH_NOT_FOUND
                if the church does not exist
        """
        user = await self._load_user(context)
        allowed = context.is_platform_admin or church_id in (user.church_ids or [user.church_id])
        if not allowed:
            logger.warning("church_switch_denied", user_id=user.id, church_id=church_id)
            raise AuthError("ACCESS_DENIED", "You do not have access to this church")

        if not await self.churches.find_by_id(church_id):
            raise AuthError("CHURCH_NOT_FOUND", "Church not found")

        logger.info(
            "church_switched",
            user_id=user.id,
            from_church_id=context.church_id,
            to_church_id=church_id,
        )
        return self.create_token(user, church_id=church_id)

    async def change_password(
        self,
        context: RequestContext,
        current_password: str,
        new_password: str,
    ) -> None:
        """
        Replace the caller's password.

        Raises:
            AuthError: INVALID_CREDENTIALS if the current password is wrong
        """
        user = await self._load_user(context)
        if not user.password_hash or not await run_in_threadpool(
            verify_password, current_password, user.password_hash
        ):
            raise AuthError("INVALID_CREDENTIALS", "Current password is incorrect")

        password_hash = await run_in_threadpool(get_password_hash, new_password)
        await self.users.update_password(user.id, user.church_id, password_hash)
        logger.info("password_changed", user_id=user.id)
