"""User service for managing church members."""

from typing import Any

import structlog
from fastapi.concurrency import run_in_threadpool

from discipleship.core.authorization import (
    can_access_church,
    can_modify_resource,
    check_permission,
    ensure,
)
from discipleship.core.context import RequestContext
from discipleship.core.exceptions import NotFoundException
from discipleship.core.permissions import Permission, Role, can_assign_role, can_manage_user
from discipleship.core.security import get_password_hash
from discipleship.repositories.base import Page
from discipleship.repositories.user_repository import UserRepository
from discipleship.schemas.users import User, UserCreate, UserData, UserPatch, UserUpdate

logger = structlog.get_logger()


class UserService:
    """Service for managing users within a church."""

    def __init__(self, table: Any):
        """Initialize service with the application table."""
        self.users = UserRepository(table)

    async def list_users(
        self,
        context: RequestContext,
        role: Role | None = None,
        limit: int = 20,
        cursor: str | None = None,
    ) -> Page[User]:
        return await self.users.list_by_church(context.church_id, role=role, limit=limit, cursor=cursor)

    async def create_user(self, context: RequestContext, data: UserCreate) -> User:
        """
        Create a user in the caller's church.

        Args:
            context: Caller context
            data: New user details

        Returns:
            Created user

        Raises:
            ForbiddenException: If the caller may not assign the role or churches
            ConflictException: If the email is already registered
        """
        ensure(can_assign_role(context.role, data.role), f"You cannot create users with role {data.role.value}")

        church_ids = list(dict.fromkeys(data.church_ids or [context.church_id]))
        for church_id in church_ids:
            ensure(can_access_church(context, church_id), "You cannot grant access to that church")

        password_hash = None
        if data.password:
            password_hash = await run_in_threadpool(get_password_hash, data.password)

        user = await self.users.create(
            UserData(
                church_id=context.church_id,
                church_ids=church_ids,
                email=data.email,
                first_name=data.first_name,
                last_name=data.last_name,
                phone=data.phone,
                role=data.role,
            ),
            password_hash=password_hash,
        )
        logger.info(
            "user_created",
            user_id=user.id,
            church_id=user.church_id,
            role=user.role.value,
            created_by=context.user_id,
        )
        return user

    async def get_user(self, context: RequestContext, user_id: str) -> User:
        """
        Get a user of the caller's church.

        Raises:
            NotFoundException: If the user is not in the church
            ForbiddenException: If the caller may not read other users
        """
        user = await self.users.find_by_id(user_id, context.church_id)
        if not user:
            raise NotFoundException("User not found", code="USER_NOT_FOUND")
        ensure(can_modify_resource(context, user.id, Permission.USER_READ))
        return user

    async def update_user(self, context: RequestContext, user_id: str, data: UserUpdate) -> User:
        """
        Update a user.

        Anyone may edit their own profile. Editing others requires
        ``user:update`` and a role at least as high as theirs; changing roles
        also requires ``user:assign-role`` and the right to assign the new role.

        Raises:
            NotFoundException: If the user is not in the church
            ForbiddenException: If any of the checks fail
        """
        user = await self.users.find_by_id(user_id, context.church_id)
        if not user:
            raise NotFoundException("User not found", code="USER_NOT_FOUND")

        ensure(can_modify_resource(context, user.id, Permission.USER_UPDATE))
        if user.id != context.user_id:
            ensure(can_manage_user(context.role, user.role), "You cannot manage this user")

        if data.role is not None and data.role != user.role:
            ensure(
                check_permission(context, Permission.USER_ASSIGN_ROLE)
                and can_assign_role(context.role, data.role),
                f"You cannot assign role {data.role.value}",
            )
        if data.is_active is not None and data.is_active != user.is_active:
            ensure(check_permission(context, Permission.USER_UPDATE), "You cannot change account status")

        updated = await self.users.update(
            user_id, context.church_id, UserPatch(**data.model_dump(exclude_unset=True))
        )
        if not updated:
            raise NotFoundException("User not found", code="USER_NOT_FOUND")

        logger.info("user_updated", user_id=user_id, updated_by=context.user_id)
        return updated
