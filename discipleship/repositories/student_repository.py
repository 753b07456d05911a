"""Student persistence."""

from functools import reduce
from typing import Any

from boto3.dynamodb.conditions import Attr, ConditionBase, Key

from discipleship.models.keys import (
    GSI1,
    EntityType,
    church_students_gsi_pk,
    student_key,
)
from discipleship.repositories.base import DEFAULT_PAGE_SIZE, BaseRepository, Page, new_id
from discipleship.schemas.students import (
    Student,
    StudentData,
    StudentPatch,
    StudentStatusFilter,
)


def _student_filter(
    teacher_id: str | None,
    user_id: str | None,
    status: StudentStatusFilter,
) -> ConditionBase | None:
    conditions: list[ConditionBase] = []
    if teacher_id:
        conditions.append(Attr("assignedTeacherId").eq(teacher_id))
    if user_id:
        conditions.append(Attr("userId").eq(user_id))
    if status == StudentStatusFilter.ACTIVE:
        conditions.append(Attr("completionDate").not_exists())
    elif status == StudentStatusFilter.COMPLETED:
        conditions.append(Attr("completionDate").exists())
    if not conditions:
        return None
    return reduce(lambda left, right: left & right, conditions)


class StudentRepository(BaseRepository):
    """Students are listed through GSI1 (``CHURCH#<id>#STUDENTS``)."""

    async def find_by_id(self, student_id: str, church_id: str) -> Student | None:
        item = await self._get(student_key(church_id, student_id))
        return Student.model_validate(item) if item else None

    async def find_by_user_id(self, user_id: str, church_id: str) -> Student | None:
        items = await self._query_all(
            IndexName=GSI1,
            KeyConditionExpression=Key("GSI1PK").eq(church_students_gsi_pk(church_id)),
            FilterExpression=Attr("userId").eq(user_id),
        )
        return Student.model_validate(items[0]) if items else None

    async def list_by_church(
        self,
        church_id: str,
        teacher_id: str | None = None,
        user_id: str | None = None,
        status: StudentStatusFilter = StudentStatusFilter.ALL,
        limit: int = DEFAULT_PAGE_SIZE,
        cursor: str | None = None,
    ) -> Page[Student]:
        """
        One page of students in a church.

        Args:
            church_id: Tenant
            teacher_id: Only students assigned to this teacher
            user_id: Only the student record of this user
            status: ``active`` (no completion date) or ``completed``
            limit: Page size before filtering
            cursor: Cursor from the previous page

        Returns:
            Page of students and the next cursor
        """
        query: dict[str, Any] = {
            "IndexName": GSI1,
            "KeyConditionExpression": Key("GSI1PK").eq(church_students_gsi_pk(church_id)),
        }
        condition = _student_filter(teacher_id, user_id, status)
        if condition is not None:
            query["FilterExpression"] = condition

        items, next_cursor = await self._query_page(limit, cursor, **query)
        return Page([Student.model_validate(item) for item in items], next_cursor)

    async def list_all_by_church(self, church_id: str) -> list[Student]:
        """Every student of a church, for aggregate statistics."""
        items = await self._query_all(
            IndexName=GSI1,
            KeyConditionExpression=Key("GSI1PK").eq(church_students_gsi_pk(church_id)),
        )
        return [Student.model_validate(item) for item in items]

    async def create(self, data: StudentData) -> Student:
        student_id = new_id()
        item = {
            **student_key(data.church_id, student_id),
            "GSI1PK": church_students_gsi_pk(data.church_id),
            "GSI1SK": student_id,
            "entityType": EntityType.STUDENT.value,
            "id": student_id,
            **data.to_item(),
            **self._timestamps(),
        }
        await self._put_new(item)
        return Student.model_validate(item)

    async def update(self, student_id: str, church_id: str, patch: StudentPatch) -> Student | None:
        item = await self._update(student_key(church_id, student_id), patch)
        return Student.model_validate(item) if item else None
