"""Student schemas for request/response validation."""

from datetime import datetime
from enum import Enum

from pydantic import ConfigDict, Field, computed_field

from discipleship.schemas.common import CamelModel, PatchModel, UtcDatetime
from discipleship.schemas.users import User


class Milestone(str, Enum):
    """New Birth milestones. Either may be reached first."""

    WATER_BAPTISM = "waterBaptism"
    HOLY_GHOST = "holyGhost"


class NewBirthState(str, Enum):
    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    COMPLETE = "complete"


class StudentStatusFilter(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ALL = "all"


FIRST_STEPS: tuple[str, ...] = (
    "step1_foundations",
    "step2_waterBaptism",
    "step3_holyGhost",
    "step4_prayer",
    "step5_wordOfGod",
    "step6_churchLife",
    "step7_holiness",
    "step8_evangelism",
)


class MilestoneStatus(CamelModel):
    completed: bool = False
    date: UtcDatetime | None = None
    notes: str | None = None


class NewBirthStatus(CamelModel):
    """The two New Birth milestones."""

    water_baptism: MilestoneStatus = Field(default_factory=MilestoneStatus)
    holy_ghost: MilestoneStatus = Field(default_factory=MilestoneStatus)

    def milestone(self, milestone: Milestone) -> MilestoneStatus:
        if Milestone(milestone) == Milestone.WATER_BAPTISM:
            return self.water_baptism
        return self.holy_ghost

    def with_milestone(self, milestone: Milestone, status: MilestoneStatus) -> "NewBirthStatus":
        if Milestone(milestone) == Milestone.WATER_BAPTISM:
            return self.model_copy(update={"water_baptism": status})
        return self.model_copy(update={"holy_ghost": status})

    @property
    def is_complete(self) -> bool:
        return self.water_baptism.completed and self.holy_ghost.completed

    @property
    def state(self) -> NewBirthState:
        completed = int(self.water_baptism.completed) + int(self.holy_ghost.completed)
        if completed == 2:
            return NewBirthState.COMPLETE
        if completed == 1:
            return NewBirthState.IN_PROGRESS
        return NewBirthState.NOT_STARTED


class StepProgress(CamelModel):
    started: bool = False
    started_date: datetime | None = None
    completed: bool = False
    completed_date: datetime | None = None
    mentor_id: str | None = None
    notes: str | None = None


class FirstStepsProgress(CamelModel):
    """The eight First Steps trackers, keyed by their fixed step names."""

    model_config = ConfigDict(alias_generator=None, populate_by_name=True, from_attributes=True)

    step1_foundations: StepProgress = Field(default_factory=StepProgress)
    step2_waterBaptism: StepProgress = Field(default_factory=StepProgress)
    step3_holyGhost: StepProgress = Field(default_factory=StepProgress)
    step4_prayer: StepProgress = Field(default_factory=StepProgress)
    step5_wordOfGod: StepProgress = Field(default_factory=StepProgress)
    step6_churchLife: StepProgress = Field(default_factory=StepProgress)
    step7_holiness: StepProgress = Field(default_factory=StepProgress)
    step8_evangelism: StepProgress = Field(default_factory=StepProgress)

    def step(self, step: str) -> StepProgress:
        return getattr(self, step)

    def with_step(self, step: str, progress: StepProgress) -> "FirstStepsProgress":
        return self.model_copy(update={step: progress})

    def steps(self) -> list[tuple[str, StepProgress]]:
        return [(step, self.step(step)) for step in FIRST_STEPS]


class Student(CamelModel):
    """Student record as stored."""

    id: str
    church_id: str
    user_id: str
    assigned_teacher_id: str | None = None
    new_birth_status: NewBirthStatus = Field(default_factory=NewBirthStatus)
    first_steps_progress: FirstStepsProgress = Field(default_factory=FirstStepsProgress)
    start_date: datetime
    completion_date: datetime | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


class StudentResponse(Student):
    """Student with the derived journey state and, when loaded, the backing user."""

    user: User | None = None

    @computed_field(alias="newBirthState")  # type: ignore[prop-decorator]
    @property
    def new_birth_state(self) -> NewBirthState:
        return self.new_birth_status.state


class StudentData(CamelModel):
    """Fields required to create a student row."""

    church_id: str
    user_id: str
    assigned_teacher_id: str | None = None
    new_birth_status: NewBirthStatus = Field(default_factory=NewBirthStatus)
    first_steps_progress: FirstStepsProgress = Field(default_factory=FirstStepsProgress)
    start_date: datetime
    completion_date: datetime | None = None
    notes: str | None = None


class StudentCreate(CamelModel):
    """Schema for enrolling a user as a student."""

    user_id: str = Field(..., min_length=1)
    assigned_teacher_id: str | None = None
    notes: str | None = Field(None, max_length=5000)


class StudentUpdate(PatchModel):
    """Schema for updating a student."""

    assigned_teacher_id: str | None = None
    notes: str | None = Field(None, max_length=5000)
    new_birth_status: NewBirthStatus | None = None

    non_nullable = frozenset({"new_birth_status"})


class StudentPatch(PatchModel):
    """Mutable student attributes."""

    assigned_teacher_id: str | None = None
    notes: str | None = None
    new_birth_status: NewBirthStatus | None = None
    first_steps_progress: FirstStepsProgress | None = None
    completion_date: datetime | None = None


class NewBirthMilestoneUpdate(CamelModel):
    milestone: Milestone
    completed: bool
    date: UtcDatetime | None = None
    notes: str | None = Field(None, max_length=5000)


class FirstStepUpdate(CamelModel):
    started: bool | None = None
    completed: bool | None = None
    mentor_id: str | None = None
    notes: str | None = Field(None, max_length=5000)


class NewBirthStats(CamelModel):
    total_students: int
    awaiting_baptism: int
    awaiting_holy_ghost: int
    completed_new_birth: int
    baptisms_this_month: int
    holy_ghost_this_month: int


class StepCounts(CamelModel):
    started: int = 0
    completed: int = 0


class FirstStepsStats(CamelModel):
    total_students: int
    step_progress: dict[str, StepCounts]
    average_completion: int
    fully_completed: int
