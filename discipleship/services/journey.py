"""New Birth and First Steps state transitions and their aggregate statistics."""

import math
from collections.abc import Iterable
from datetime import UTC, datetime

from discipleship.core.exceptions import BadRequestException
from discipleship.schemas.students import (
    FIRST_STEPS,
    FirstStepsStats,
    FirstStepUpdate,
    Milestone,
    MilestoneStatus,
    NewBirthStats,
    NewBirthStatus,
    StepCounts,
    StepProgress,
    Student,
)


def start_of_month(now: datetime) -> datetime:
    return now.astimezone(UTC).replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def apply_milestone_update(
    current: MilestoneStatus,
    completed: bool,
    date: datetime | None,
    notes: str | None,
    now: datetime,
) -> MilestoneStatus:
    """
    Next state of one New Birth milestone.

    A completed milestone keeps the date it was first completed on unless a
    date is supplied. Un-completing keeps the recorded date as history.
    """
    if completed:
        if date is None:
            date = current.date if current.completed and current.date else now
    else:
        date = date or current.date

    return MilestoneStatus(
        completed=completed,
        date=date,
        notes=notes if notes is not None else current.notes,
    )


def resolve_completion_date(
    status: NewBirthStatus,
    current: datetime | None,
    now: datetime,
) -> datetime | None:
    """``completionDate`` is set exactly while both milestones are complete."""
    if not status.is_complete:
        return None
    return current or now


def update_new_birth(
    status: NewBirthStatus,
    milestone: Milestone,
    completed: bool,
    date: datetime | None,
    notes: str | None,
    now: datetime,
) -> NewBirthStatus:
    updated = apply_milestone_update(status.milestone(milestone), completed, date, notes, now)
    return status.with_milestone(milestone, updated)


def validate_step(step: str) -> str:
    """
    Raises:
        BadRequestException: If the step is not one of the eight First Steps
    """
    if step not in FIRST_STEPS:
        raise BadRequestException(f"Invalid First Steps step: {step}", code="INVALID_STEP")
    return step


def apply_step_update(current: StepProgress, update: FirstStepUpdate, now: datetime) -> StepProgress:
    """
    Next state of one First Steps tracker.

    Dates are stamped on the first transition to started or completed and
    are kept when a flag is cleared again. Completing a step also starts it.
    """
    started = current.started if update.started is None else update.started
    completed = current.completed if update.completed is None else update.completed
    if completed:
        started = True

    started_date = current.started_date
    if started and not current.started:
        started_date = started_date or now

    completed_date = current.completed_date
    if completed and not current.completed:
        completed_date = now

    return StepProgress(
        started=started,
        started_date=started_date,
        completed=completed,
        completed_date=completed_date,
        mentor_id=update.mentor_id if update.mentor_id is not None else current.mentor_id,
        notes=update.notes if update.notes is not None else current.notes,
    )


def _completed_since(milestone: MilestoneStatus, since: datetime) -> bool:
    return milestone.completed and milestone.date is not None and milestone.date >= since


def count_milestones_since(students: Iterable[Student], since: datetime) -> tuple[int, int]:
    """Water baptisms and Holy Ghost infillings recorded on or after ``since``."""
    baptisms = 0
    holy_ghost = 0
    for student in students:
        status = student.new_birth_status
        if _completed_since(status.water_baptism, since):
            baptisms += 1
        if _completed_since(status.holy_ghost, since):
            holy_ghost += 1
    return baptisms, holy_ghost


def new_birth_stats(students: list[Student], now: datetime) -> NewBirthStats:
    awaiting_baptism = 0
    awaiting_holy_ghost = 0
    completed = 0
    for student in students:
        status = student.new_birth_status
        if not status.water_baptism.completed:
            awaiting_baptism += 1
        elif not status.holy_ghost.completed:
            awaiting_holy_ghost += 1
        else:
            completed += 1

    baptisms, holy_ghost = count_milestones_since(students, start_of_month(now))
    return NewBirthStats(
        total_students=len(students),
        awaiting_baptism=awaiting_baptism,
        awaiting_holy_ghost=awaiting_holy_ghost,
        completed_new_birth=completed,
        baptisms_this_month=baptisms,
        holy_ghost_this_month=holy_ghost,
    )


def first_steps_stats(students: list[Student]) -> FirstStepsStats:
    step_progress = {step: StepCounts() for step in FIRST_STEPS}
    completed_steps = 0
    fully_completed = 0

    for student in students:
        student_completed = 0
        for step, progress in student.first_steps_progress.steps():
            if progress.started:
                step_progress[step].started += 1
            if progress.completed:
                step_progress[step].completed += 1
                student_completed += 1
        completed_steps += student_completed
        if student_completed == len(FIRST_STEPS):
            fully_completed += 1

    average = 0
    if students:
        percent = completed_steps / (len(students) * len(FIRST_STEPS)) * 100
        average = math.floor(percent + 0.5)

    return FirstStepsStats(
        total_students=len(students),
        step_progress=step_progress,
        average_completion=average,
        fully_completed=fully_completed,
    )
