"""Lesson progress service."""

from typing import Any

import structlog

from discipleship.core.context import RequestContext
from discipleship.core.exceptions import NotFoundException
from discipleship.repositories.lesson_repository import LessonRepository
from discipleship.schemas.common import utcnow
from discipleship.schemas.lessons import (
    LessonPatch,
    LessonProgress,
    LessonStatus,
    LessonUpdate,
    NoteType,
)
from discipleship.schemas.studies import BibleStudy
from discipleship.services.study_service import StudyService

logger = structlog.get_logger()


def append_note(existing: str | None, content: str) -> str:
    """Notes accumulate, one entry per line."""
    return f"{existing or ''}\n{content}".strip()


class LessonService:
    """Service for tracking lesson progress within Bible studies."""

    def __init__(self, table: Any):
        """Initialize service with the application table."""
        self.lessons = LessonRepository(table)
        self.studies = StudyService(table)

    async def _load(self, context: RequestContext, lesson_id: str) -> tuple[LessonProgress, BibleStudy]:
        """
        Resolve a lesson and its study within the caller's church.

        Lessons of other churches are reported as missing.
        """
        lesson = await self.lessons.locate(lesson_id)
        if not lesson:
            raise NotFoundException("Lesson not found", code="LESSON_NOT_FOUND")
        study = await self.studies.studies.find_by_id(lesson.study_id, context.church_id)
        if not study:
            raise NotFoundException("Lesson not found", code="LESSON_NOT_FOUND")
        return lesson, study

    async def _save(self, lesson: LessonProgress, patch: LessonPatch) -> LessonProgress:
        updated = await self.lessons.update(lesson.id, lesson.study_id, patch)
        if not updated:
            raise NotFoundException("Lesson not found", code="LESSON_NOT_FOUND")
        return updated

    async def list_by_study(self, context: RequestContext, study_id: str) -> list[LessonProgress]:
        study = await self.studies.get_study(context, study_id)
        return await self.lessons.list_by_study(study.id)

    async def get_lesson(self, context: RequestContext, lesson_id: str) -> LessonProgress:
        lesson, study = await self._load(context, lesson_id)
        await self.studies.ensure_can_read(context, study)
        return lesson

    async def update_lesson(
        self,
        context: RequestContext,
        lesson_id: str,
        data: LessonUpdate,
    ) -> LessonProgress:
        """
        Update a lesson. Completing it without a date stamps the completion time.

        Raises:
            NotFoundException: If the lesson is not found
            ForbiddenException: If the caller may not modify the study
        """
        lesson, study = await self._load(context, lesson_id)
        self.studies.ensure_can_modify(context, study)

        changes = data.model_dump(exclude_unset=True)
        if data.status == LessonStatus.COMPLETED and "completed_date" not in changes:
            changes["completed_date"] = lesson.completed_date or utcnow()

        return await self._save(lesson, LessonPatch(**changes))

    async def mark_complete(
        self,
        context: RequestContext,
        lesson_id: str,
        notes: str | None = None,
    ) -> LessonProgress:
        lesson, study = await self._load(context, lesson_id)
        self.studies.ensure_can_modify(context, study)

        changes: dict[str, Any] = {
            "status": LessonStatus.COMPLETED,
            "completed_date": lesson.completed_date or utcnow(),
        }
        if notes:
            changes["teacher_notes"] = append_note(lesson.teacher_notes, notes)

        updated = await self._save(lesson, LessonPatch(**changes))
        logger.info("lesson_completed", lesson_id=lesson.id, study_id=lesson.study_id)
        return updated

    async def add_note(
        self,
        context: RequestContext,
        lesson_id: str,
        note_type: NoteType,
        content: str,
    ) -> LessonProgress:
        """
        Append a teacher or student note to a lesson.

        Teacher notes need the right to modify the study. Student notes may also
        be added by students enrolled in it.
        """
        lesson, study = await self._load(context, lesson_id)

        if note_type == NoteType.TEACHER:
            self.studies.ensure_can_modify(context, study)
            patch = LessonPatch(teacher_notes=append_note(lesson.teacher_notes, content))
        else:
            if not await self.studies.is_enrolled(context, study):
                self.studies.ensure_can_modify(context, study)
            patch = LessonPatch(student_notes=append_note(lesson.student_notes, content))

        updated = await self._save(lesson, patch)
        logger.info("lesson_note_added", lesson_id=lesson.id, note_type=note_type.value)
        return updated
