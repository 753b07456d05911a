"""Lesson progress persistence."""

from boto3.dynamodb.conditions import Key

from discipleship.models.keys import (
    GSI1,
    LESSON_PREFIX,
    EntityType,
    lesson_gsi_pk,
    lesson_key,
    study_pk,
)
from discipleship.repositories.base import BaseRepository, new_id
from discipleship.schemas.common import utcnow
from discipleship.schemas.lessons import LessonData, LessonPatch, LessonProgress


class LessonRepository(BaseRepository):
    """Lessons belong to a study partition; GSI1 resolves a lesson id to its study."""

    async def find_by_id(self, lesson_id: str, study_id: str) -> LessonProgress | None:
        item = await self._get(lesson_key(study_id, lesson_id))
        return LessonProgress.model_validate(item) if item else None

    async def locate(self, lesson_id: str) -> LessonProgress | None:
        """Find a lesson when only its id is known."""
        response = await self._run(
            self.table.query,
            IndexName=GSI1,
            KeyConditionExpression=Key("GSI1PK").eq(lesson_gsi_pk(lesson_id)),
            Limit=1,
        )
        items = response.get("Items", [])
        return LessonProgress.model_validate(items[0]) if items else None

    async def list_by_study(self, study_id: str) -> list[LessonProgress]:
        """All lessons of a study in lesson order."""
        items = await self._query_all(
            KeyConditionExpression=Key("PK").eq(study_pk(study_id))
            & Key("SK").begins_with(LESSON_PREFIX),
        )
        lessons = [LessonProgress.model_validate(item) for item in items]
        return sorted(lessons, key=lambda lesson: lesson.lesson_number)

    def _item(self, data: LessonData, now: str) -> dict:
        lesson_id = new_id()
        return {
            **lesson_key(data.study_id, lesson_id),
            "GSI1PK": lesson_gsi_pk(lesson_id),
            "GSI1SK": study_pk(data.study_id),
            "entityType": EntityType.LESSON.value,
            "id": lesson_id,
            **data.to_item(),
            "createdAt": now,
            "updatedAt": now,
        }

    async def create(self, data: LessonData) -> LessonProgress:
        item = self._item(data, utcnow().isoformat())
        await self._put_new(item)
        return LessonProgress.model_validate(item)

    async def create_many(self, lessons: list[LessonData]) -> list[LessonProgress]:
        """Batch insert the lessons seeded for a new study."""
        now = utcnow().isoformat()
        items = [self._item(data, now) for data in lessons]

        def write() -> None:
            with self.table.batch_writer() as batch:
                for item in items:
                    batch.put_item(Item=item)

        await self._run(write)
        return [LessonProgress.model_validate(item) for item in items]

    async def update(self, lesson_id: str, study_id: str, patch: LessonPatch) -> LessonProgress | None:
        item = await self._update(lesson_key(study_id, lesson_id), patch)
        return LessonProgress.model_validate(item) if item else None
