"""Bible study service."""

from typing import Any

import structlog

from discipleship.core.authorization import (
    ScopeKind,
    can_access_student,
    can_access_study,
    check_permission,
    ensure,
    get_query_scope_for_role,
)
from discipleship.core.context import RequestContext
from discipleship.core.curriculums import Curriculum, lesson_outline
from discipleship.core.exceptions import NotFoundException
from discipleship.core.permissions import Permission
from discipleship.repositories.base import Page
from discipleship.repositories.lesson_repository import LessonRepository
from discipleship.repositories.student_repository import StudentRepository
from discipleship.repositories.study_repository import StudyRepository
from discipleship.schemas.lessons import LessonData
from discipleship.schemas.studies import (
    BibleStudy,
    StudyCreate,
    StudyData,
    StudyStatus,
    StudyStatusFilter,
    StudyUpdate,
)

logger = structlog.get_logger()


class StudyService:
    """Service for managing Bible studies."""

    def __init__(self, table: Any):
        """Initialize service with the application table."""
        self.studies = StudyRepository(table)
        self.students = StudentRepository(table)
        self.lessons = LessonRepository(table)

    async def get_study_record(self, study_id: str, church_id: str) -> BibleStudy:
        study = await self.studies.find_by_id(study_id, church_id)
        if not study:
            raise NotFoundException("Bible study not found", code="STUDY_NOT_FOUND")
        return study

    async def is_enrolled(self, context: RequestContext, study: BibleStudy) -> bool:
        """True if the caller's own student record is enrolled in the study."""
        student = await self.students.find_by_user_id(context.user_id, study.church_id)
        return student is not None and student.id in study.student_ids

    async def ensure_can_read(self, context: RequestContext, study: BibleStudy) -> None:
        if can_access_study(context, study.id, study.teacher_id):
            return
        ensure(await self.is_enrolled(context, study), "You do not have access to this study")

    def ensure_can_modify(self, context: RequestContext, study: BibleStudy) -> None:
        """Study editors, and teachers only for their own studies."""
        ensure(check_permission(context, Permission.STUDY_UPDATE, Permission.STUDY_UPDATE_OWN))
        ensure(
            can_access_study(context, study.id, study.teacher_id),
            "You can only modify your own studies",
        )

    async def list_studies(
        self,
        context: RequestContext,
        status: StudyStatusFilter = StudyStatusFilter.ALL,
        teacher_id: str | None = None,
        curriculum: Curriculum | None = None,
        limit: int = 20,
        cursor: str | None = None,
    ) -> Page[BibleStudy]:
        """List the studies visible to the caller."""
        scope = get_query_scope_for_role(context)
        student_id = None
        if scope.scope == ScopeKind.ASSIGNED:
            teacher_id = context.user_id
        elif scope.scope == ScopeKind.SELF:
            student = await self.students.find_by_user_id(context.user_id, context.church_id)
            if not student:
                return Page()
            teacher_id = None
            student_id = student.id

        return await self.studies.list_by_church(
            context.church_id,
            teacher_id=teacher_id,
            student_id=student_id,
            status=None if status == StudyStatusFilter.ALL else StudyStatus(status.value),
            curriculum=curriculum,
            limit=limit,
            cursor=cursor,
        )

    async def create_study(self, context: RequestContext, data: StudyCreate) -> BibleStudy:
        """
        Start a Bible study taught by the caller and seed its lessons.

        Raises:
            NotFoundException: If an enrolled student is not in the church
        """
        for student_id in dict.fromkeys(data.student_ids):
            if not await self.students.find_by_id(student_id, context.church_id):
                raise NotFoundException(f"Student {student_id} not found", code="STUDENT_NOT_FOUND")

        study = await self.studies.create(
            StudyData(
                church_id=context.church_id,
                teacher_id=context.user_id,
                student_ids=list(dict.fromkeys(data.student_ids)),
                title=data.title,
                curriculum=data.curriculum,
                status=StudyStatus.IN_PROGRESS,
                scheduled_day=data.scheduled_day,
                scheduled_time=data.scheduled_time,
                location=data.location,
                notes=data.notes,
            )
        )

        outline = lesson_outline(study.curriculum)
        if outline:
            await self.lessons.create_many(
                [
                    LessonData(study_id=study.id, lesson_number=number, lesson_title=title)
                    for number, title in outline
                ]
            )

        logger.info(
            "study_created",
            study_id=study.id,
            church_id=study.church_id,
            curriculum=study.curriculum.value,
            lessons=len(outline),
        )
        return study

    async def get_study(self, context: RequestContext, study_id: str) -> BibleStudy:
        study = await self.get_study_record(study_id, context.church_id)
        await self.ensure_can_read(context, study)
        return study

    async def update_study(
        self,
        context: RequestContext,
        study_id: str,
        data: StudyUpdate,
    ) -> BibleStudy:
        """
        Update a Bible study.

        Raises:
            NotFoundException: If the study is not found
            ForbiddenException: If the caller may not modify the study or its roster
        """
        study = await self.get_study_record(study_id, context.church_id)
        self.ensure_can_modify(context, study)

        if data.student_ids is not None and set(data.student_ids) != set(study.student_ids):
            ensure(
                check_permission(context, Permission.STUDY_ASSIGN_STUDENTS),
                "You cannot change study enrollment",
            )
            for student_id in set(data.student_ids) - set(study.student_ids):
                if not await self.students.find_by_id(student_id, context.church_id):
                    raise NotFoundException(
                        f"Student {student_id} not found", code="STUDENT_NOT_FOUND"
                    )

        updated = await self.studies.update(study_id, context.church_id, data)
        if not updated:
            raise NotFoundException("Bible study not found", code="STUDY_NOT_FOUND")
        return updated

    async def update_status(
        self,
        context: RequestContext,
        study_id: str,
        status: StudyStatus,
    ) -> BibleStudy:
        study = await self.get_study_record(study_id, context.church_id)
        self.ensure_can_modify(context, study)

        updated = await self.studies.update(study_id, context.church_id, StudyUpdate(status=status))
        if not updated:
            raise NotFoundException("Bible study not found", code="STUDY_NOT_FOUND")

        logger.info("study_status_changed", study_id=study_id, status=status.value)
        return updated

    async def list_for_student(self, context: RequestContext, student_id: str) -> list[BibleStudy]:
        """
        Studies a student is enrolled in.

        Raises:
            NotFoundException: If the student is not found
            ForbiddenException: If the caller may not see the student
        """
        student = await self.students.find_by_id(student_id, context.church_id)
        if not student:
            raise NotFoundException("Student not found", code="STUDENT_NOT_FOUND")
        if student.user_id != context.user_id:
            ensure(
                can_access_student(context, student.id, student.assigned_teacher_id),
                "You do not have access to this student",
            )
        return await self.studies.list_by_student(context.church_id, student.id)
