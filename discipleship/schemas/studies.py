"""Bible study schemas for request/response validation."""

from datetime import datetime
from enum import Enum

from pydantic import Field

from discipleship.core.curriculums import Curriculum
from discipleship.schemas.common import CamelModel, PatchModel


class StudyStatus(str, Enum):
    """Bible study status enumeration."""

    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    PAUSED = "paused"


class StudyStatusFilter(str, Enum):
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    PAUSED = "paused"
    ALL = "all"


class BibleStudy(CamelModel):
    """Bible study as stored."""

    id: str
    church_id: str
    teacher_id: str
    student_ids: list[str]
    title: str
    curriculum: Curriculum
    status: StudyStatus = StudyStatus.IN_PROGRESS
    scheduled_day: str | None = None
    scheduled_time: str | None = None
    location: str | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


class StudyData(CamelModel):
    """Fields required to create a study row."""

    church_id: str
    teacher_id: str
    student_ids: list[str]
    title: str
    curriculum: Curriculum
    status: StudyStatus = StudyStatus.IN_PROGRESS
    scheduled_day: str | None = None
    scheduled_time: str | None = None
    location: str | None = None
    notes: str | None = None


class StudyCreate(CamelModel):
    """Schema for starting a Bible study."""

    title: str = Field(..., min_length=2, max_length=200)
    curriculum: Curriculum
    student_ids: list[str] = Field(..., min_length=1)
    scheduled_day: str | None = Field(None, max_length=20)
    scheduled_time: str | None = Field(None, max_length=20)
    location: str | None = Field(None, max_length=200)
    notes: str | None = Field(None, max_length=5000)


class StudyUpdate(PatchModel):
    """Schema for updating a Bible study, also used as its storage patch."""

    non_nullable = frozenset({"title", "student_ids", "status"})

    title: str | None = Field(None, min_length=2, max_length=200)
    student_ids: list[str] | None = Field(None, min_length=1)
    status: StudyStatus | None = None
    scheduled_day: str | None = Field(None, max_length=20)
    scheduled_time: str | None = Field(None, max_length=20)
    location: str | None = Field(None, max_length=200)
    notes: str | None = Field(None, max_length=5000)


class StudyStatusUpdate(CamelModel):
    status: StudyStatus
