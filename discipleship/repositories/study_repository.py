"""Bible study persistence."""

from functools import reduce
from typing import Any

from boto3.dynamodb.conditions import Attr, ConditionBase, Key

from discipleship.core.curriculums import Curriculum
from discipleship.models.keys import (
    GSI1,
    EntityType,
    church_studies_gsi_pk,
    study_key,
)
from discipleship.repositories.base import DEFAULT_PAGE_SIZE, BaseRepository, Page, new_id
from discipleship.schemas.studies import BibleStudy, StudyData, StudyStatus, StudyUpdate


class StudyRepository(BaseRepository):
    """Studies are listed through GSI1 (``CHURCH#<id>#STUDIES``)."""

    async def find_by_id(self, study_id: str, church_id: str) -> BibleStudy | None:
        item = await self._get(study_key(church_id, study_id))
        return BibleStudy.model_validate(item) if item else None

    async def list_by_church(
        self,
        church_id: str,
        teacher_id: str | None = None,
        student_id: str | None = None,
        status: StudyStatus | None = None,
        curriculum: Curriculum | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
        cursor: str | None = None,
    ) -> Page[BibleStudy]:
        """One page of studies, optionally filtered by teacher, enrolled student, status or curriculum."""
        conditions: list[ConditionBase] = []
        if teacher_id:
            conditions.append(Attr("teacherId").eq(teacher_id))
        if student_id:
            conditions.append(Attr("studentIds").contains(student_id))
        if status:
            conditions.append(Attr("status").eq(StudyStatus(status).value))
        if curriculum:
            conditions.append(Attr("curriculum").eq(Curriculum(curriculum).value))

        query: dict[str, Any] = {
            "IndexName": GSI1,
            "KeyConditionExpression": Key("GSI1PK").eq(church_studies_gsi_pk(church_id)),
        }
        if conditions:
            query["FilterExpression"] = reduce(lambda left, right: left & right, conditions)

        items, next_cursor = await self._query_page(limit, cursor, **query)
        return Page([BibleStudy.model_validate(item) for item in items], next_cursor)

    async def list_all_by_church(self, church_id: str) -> list[BibleStudy]:
        items = await self._query_all(
            IndexName=GSI1,
            KeyConditionExpression=Key("GSI1PK").eq(church_studies_gsi_pk(church_id)),
        )
        return [BibleStudy.model_validate(item) for item in items]

    async def list_by_student(self, church_id: str, student_id: str) -> list[BibleStudy]:
        """Every study a student is enrolled in."""
        items = await self._query_all(
            IndexName=GSI1,
            KeyConditionExpression=Key("GSI1PK").eq(church_studies_gsi_pk(church_id)),
            FilterExpression=Attr("studentIds").contains(student_id),
        )
        return [BibleStudy.model_validate(item) for item in items]

    async def create(self, data: StudyData) -> BibleStudy:
        study_id = new_id()
        item = {
            **study_key(data.church_id, study_id),
            "GSI1PK": church_studies_gsi_pk(data.church_id),
            "GSI1SK": study_id,
            "entityType": EntityType.STUDY.value,
            "id": study_id,
            **data.to_item(),
            **self._timestamps(),
        }
        await self._put_new(item)
        return BibleStudy.model_validate(item)

    async def update(self, study_id: str, church_id: str, patch: StudyUpdate) -> BibleStudy | None:
        item = await self._update(study_key(church_id, study_id), patch)
        return BibleStudy.model_validate(item) if item else None
