"""Church persistence."""

from boto3.dynamodb.conditions import Attr, Key

from discipleship.core.exceptions import ConflictException
from discipleship.models.keys import (
    GSI1,
    EntityType,
    church_key,
    slug_gsi_pk,
    slug_lock_key,
)
from discipleship.repositories.base import BaseRepository, new_id
from discipleship.schemas.churches import Church, ChurchCreate, ChurchUpdate


class ChurchRepository(BaseRepository):
    """Each church is the metadata row of its own partition."""

    async def find_by_id(self, church_id: str) -> Church | None:
        item = await self._get(church_key(church_id))
        return Church.model_validate(item) if item else None

    async def find_by_slug(self, slug: str) -> Church | None:
        response = await self._run(
            self.table.query,
            IndexName=GSI1,
            KeyConditionExpression=Key("GSI1PK").eq(slug_gsi_pk(slug)),
            Limit=1,
        )
        items = response.get("Items", [])
        return Church.model_validate(items[0]) if items else None

    async def list_all(self) -> list[Church]:
        """Every church on the platform. Platform administration only."""
        items = await self._scan_all(FilterExpression=Attr("entityType").eq(EntityType.CHURCH.value))
        churches = [Church.model_validate(item) for item in items]
        return sorted(churches, key=lambda church: church.name.lower())

    async def create(self, data: ChurchCreate) -> Church:
        """
        Create a church, reserving its slug.

        Raises:
            ConflictException: If the slug is taken
        """
        church_id = new_id()
        item = {
            **church_key(church_id),
            "GSI1PK": slug_gsi_pk(data.slug),
            "GSI1SK": church_id,
            "entityType": EntityType.CHURCH.value,
            "id": church_id,
            **data.to_item(),
            **self._timestamps(),
        }
        lock = {
            **slug_lock_key(data.slug),
            "entityType": EntityType.SLUG_LOCK.value,
            "churchId": church_id,
        }
        if not await self._put_with_lock(item, lock):
            raise ConflictException("Church slug already in use", code="SLUG_EXISTS")

        return Church.model_validate(item)

    async def update(self, church_id: str, patch: ChurchUpdate) -> Church | None:
        item = await self._update(church_key(church_id), patch)
        return Church.model_validate(item) if item else None
