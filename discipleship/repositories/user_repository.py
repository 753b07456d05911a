"""User persistence."""

from datetime import datetime

from boto3.dynamodb.conditions import Attr, Key

from discipleship.core.exceptions import ConflictException
from discipleship.core.permissions import Role
from discipleship.models.keys import (
    GSI2,
    USER_PREFIX,
    EntityType,
    church_pk,
    email_gsi_pk,
    email_lock_key,
    user_key,
)
from discipleship.repositories.base import DEFAULT_PAGE_SIZE, BaseRepository, Page, new_id
from discipleship.schemas.users import User, UserData, UserPatch


class UserRepository(BaseRepository):
    """Users live in their primary church partition and are indexed by email."""

    async def find_by_id(self, user_id: str, church_id: str) -> User | None:
        item = await self._get(user_key(church_id, user_id))
        return User.model_validate(item) if item else None

    async def find_by_email(self, email: str) -> User | None:
        """Cross-tenant lookup used by login. The result carries the password hash."""
        response = await self._run(
            self.table.query,
            IndexName=GSI2,
            KeyConditionExpression=Key("GSI2PK").eq(email_gsi_pk(email)),
            Limit=1,
        )
        items = response.get("Items", [])
        return User.model_validate(items[0]) if items else None

    async def list_by_church(
        self,
        church_id: str,
        role: Role | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
        cursor: str | None = None,
    ) -> Page[User]:
        query = {
            "KeyConditionExpression": Key("PK").eq(church_pk(church_id))
            & Key("SK").begins_with(USER_PREFIX),
        }
        if role:
            query["FilterExpression"] = Attr("role").eq(Role(role).value)

        items, next_cursor = await self._query_page(limit, cursor, **query)
        return Page([User.model_validate(item) for item in items], next_cursor)

    async def create(self, data: UserData, password_hash: str | None = None) -> User:
        """
        Create a user, reserving the email address.

        Raises:
            ConflictException: If the email is already registered
        """
        user_id = new_id()
        email = data.email.lower()
        item = {
            **user_key(data.church_id, user_id),
            "GSI2PK": email_gsi_pk(email),
            "GSI2SK": f"{USER_PREFIX}{user_id}",
            "entityType": EntityType.USER.value,
            "id": user_id,
            **data.to_item(),
            "email": email,
            **self._timestamps(),
        }
        if password_hash:
            item["passwordHash"] = password_hash

        lock = {
            **email_lock_key(email),
            "entityType": EntityType.EMAIL_LOCK.value,
            "userId": user_id,
            "churchId": data.church_id,
        }
        if not await self._put_with_lock(item, lock):
            raise ConflictException("Email already registered", code="EMAIL_EXISTS")

        return User.model_validate(item)

    async def update(self, user_id: str, church_id: str, patch: UserPatch) -> User | None:
        item = await self._update(user_key(church_id, user_id), patch)
        return User.model_validate(item) if item else None

    async def update_last_login(self, user_id: str, church_id: str, at: datetime) -> None:
        await self.update(user_id, church_id, UserPatch(last_login_at=at))

    async def update_password(self, user_id: str, church_id: str, password_hash: str) -> None:
        await self.update(user_id, church_id, UserPatch(password_hash=password_hash))
