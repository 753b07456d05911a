"""Lesson progress schemas for request/response validation."""

from datetime import datetime
from enum import Enum

from pydantic import Field

from discipleship.schemas.common import CamelModel, PatchModel, UtcDatetime


class LessonStatus(str, Enum):
    """Lesson status enumeration."""

    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class NoteType(str, Enum):
    TEACHER = "teacher"
    STUDENT = "student"


class LessonProgress(CamelModel):
    """Lesson progress row as stored."""

    id: str
    study_id: str
    lesson_number: int
    lesson_title: str
    status: LessonStatus = LessonStatus.NOT_STARTED
    completed_date: datetime | None = None
    teacher_notes: str | None = None
    student_notes: str | None = None
    attachments: list[str] | None = None
    created_at: datetime
    updated_at: datetime


class LessonData(CamelModel):
    """Fields required to create a lesson row."""

    study_id: str
    lesson_number: int = Field(..., ge=1)
    lesson_title: str
    status: LessonStatus = LessonStatus.NOT_STARTED


class LessonUpdate(PatchModel):
    """Schema for updating a lesson."""

    non_nullable = frozenset({"status"})

    status: LessonStatus | None = None
    completed_date: UtcDatetime | None = None
    teacher_notes: str | None = Field(None, max_length=10000)
    student_notes: str | None = Field(None, max_length=10000)
    attachments: list[str] | None = None


class LessonPatch(PatchModel):
    """Mutable lesson attributes."""

    status: LessonStatus | None = None
    completed_date: datetime | None = None
    teacher_notes: str | None = None
    student_notes: str | None = None
    attachments: list[str] | None = None


class LessonComplete(CamelModel):
    notes: str | None = Field(None, max_length=10000)


class LessonNote(CamelModel):
    type: NoteType
    content: str = Field(..., min_length=1, max_length=10000)
