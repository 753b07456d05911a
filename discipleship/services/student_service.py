"""Student service for enrollment, journey tracking and statistics."""

from typing import Any

import structlog

from discipleship.core.authorization import (
    ScopeKind,
    can_access_student,
    check_permission,
    ensure,
    get_query_scope_for_role,
)
from discipleship.core.context import RequestContext
from discipleship.core.exceptions import BadRequestException, ForbiddenException, NotFoundException
from discipleship.core.permissions import Permission, Role
from discipleship.repositories.base import Page
from discipleship.repositories.student_repository import StudentRepository
from discipleship.repositories.user_repository import UserRepository
from discipleship.schemas.common import utcnow
from discipleship.schemas.students import (
    FirstStepsStats,
    FirstStepUpdate,
    NewBirthMilestoneUpdate,
    NewBirthStats,
    Student,
    StudentCreate,
    StudentData,
    StudentPatch,
    StudentResponse,
    StudentStatusFilter,
    StudentUpdate,
)
from discipleship.services.journey import (
    apply_step_update,
    first_steps_stats,
    new_birth_stats,
    resolve_completion_date,
    update_new_birth,
    validate_step,
)

logger = structlog.get_logger()


class StudentService:
    """Service for managing students and their discipleship journey."""

    def __init__(self, table: Any):
        """Initialize service with the application table."""
        self.students = StudentRepository(table)
        self.users = UserRepository(table)

    async def _get_student(self, student_id: str, church_id: str) -> Student:
        student = await self.students.find_by_id(student_id, church_id)
        if not student:
            raise NotFoundException("Student not found", code="STUDENT_NOT_FOUND")
        return student

    def _ensure_access(self, context: RequestContext, student: Student) -> None:
        """Leaders with access, or the student themselves."""
        if student.user_id == context.user_id:
            return
        ensure(
            can_access_student(context, student.id, student.assigned_teacher_id),
            "You do not have access to this student",
        )

    async def _with_user(self, student: Student) -> StudentResponse:
        user = await self.users.find_by_id(student.user_id, student.church_id)
        return StudentResponse.model_validate({**student.model_dump(), "user": user})

    def _ensure_leader_access(self, context: RequestContext, student: Student) -> None:
        ensure(
            can_access_student(context, student.id, student.assigned_teacher_id),
            "You do not have access to this student",
        )

    async def create_student(self, context: RequestContext, data: StudentCreate) -> Student:
        """
        Enroll a user of the church as a student.

        Teachers always become the assigned teacher of students they create.
        Other roles must name the teacher and need ``student:assign-teacher``.

        Args:
            context: Caller context
            data: Enrollment details

        Returns:
            Created student

        Raises:
            ForbiddenException: If a teacher assigns someone else
            BadRequestException: If no teacher is given
            NotFoundException: If the user is not in the church
        """
        if context.role == Role.TEACHER:
            if data.assigned_teacher_id and data.assigned_teacher_id != context.user_id:
                raise ForbiddenException("Teachers can only assign students to themselves")
            teacher_id = context.user_id
        else:
            ensure(
                check_permission(context, Permission.STUDENT_ASSIGN_TEACHER),
                "You cannot assign teachers",
            )
            if not data.assigned_teacher_id:
                raise BadRequestException("assignedTeacherId is required", code="VALIDATION_ERROR")
            teacher_id = data.assigned_teacher_id

        if not await self.users.find_by_id(data.user_id, context.church_id):
            raise NotFoundException("User not found", code="USER_NOT_FOUND")

        student = await self.students.create(
            StudentData(
                church_id=context.church_id,
                user_id=data.user_id,
                assigned_teacher_id=teacher_id,
                start_date=utcnow(),
                notes=data.notes,
            )
        )
        logger.info(
            "student_created",
            student_id=student.id,
            church_id=student.church_id,
            teacher_id=teacher_id,
        )
        return student

    async def get_student(self, context: RequestContext, student_id: str) -> StudentResponse:
        """
        Get a student with the backing user.

        Raises:
            NotFoundException: If the student is not in the caller's church
            ForbiddenException: If the caller may not see the student
        """
        student = await self._get_student(student_id, context.church_id)
        self._ensure_access(context, student)
        return await self._with_user(student)

    async def list_students(
        self,
        context: RequestContext,
        status: StudentStatusFilter = StudentStatusFilter.ALL,
        teacher_id: str | None = None,
        limit: int = 20,
        cursor: str | None = None,
    ) -> Page[StudentResponse]:
        """List students visible to the caller with their users. Teachers only ever see their own."""
        scope = get_query_scope_for_role(context)
        user_id = None
        if scope.scope == ScopeKind.ASSIGNED:
            teacher_id = context.user_id
        elif scope.scope == ScopeKind.SELF:
            teacher_id = None
            user_id = context.user_id

        page = await self.students.list_by_church(
            context.church_id,
            teacher_id=teacher_id,
            user_id=user_id,
            status=status,
            limit=limit,
            cursor=cursor,
        )
        return Page([await self._with_user(student) for student in page.items], page.next_cursor)

    async def update_student(
        self,
        context: RequestContext,
        student_id: str,
        data: StudentUpdate,
    ) -> Student:
        """
        Update a student.

        Raises:
            NotFoundException: If the student is not found
            ForbiddenException: If a teacher is not assigned to the student, or the
                caller reassigns without ``student:assign-teacher``
        """
        student = await self._get_student(student_id, context.church_id)
        self._ensure_leader_access(context, student)

        fields = data.model_fields_set
        changes: dict[str, Any] = {}
        if "assigned_teacher_id" in fields and data.assigned_teacher_id != student.assigned_teacher_id:
            ensure(
                check_permission(context, Permission.STUDENT_ASSIGN_TEACHER),
                "You cannot reassign students",
            )
            changes["assigned_teacher_id"] = data.assigned_teacher_id
        if "notes" in fields:
            changes["notes"] = data.notes
        if data.new_birth_status is not None:
            changes["new_birth_status"] = data.new_birth_status
            changes["completion_date"] = resolve_completion_date(
                data.new_birth_status, student.completion_date, utcnow()
            )

        updated = await self.students.update(student_id, context.church_id, StudentPatch(**changes))
        if not updated:
            raise NotFoundException("Student not found", code="STUDENT_NOT_FOUND")
        return updated

    async def update_new_birth_milestone(
        self,
        context: RequestContext,
        student_id: str,
        data: NewBirthMilestoneUpdate,
    ) -> Student:
        """
        Mark a New Birth milestone complete or incomplete.

        ``completionDate`` is recomputed on every call: it is set when the second
        milestone completes, kept while both stay complete and removed otherwise.

        Raises:
            NotFoundException: If the student is not found
            ForbiddenException: If the caller has no access to the student
        """
        student = await self._get_student(student_id, context.church_id)
        self._ensure_leader_access(context, student)

        now = utcnow()
        status = update_new_birth(
            student.new_birth_status,
            data.milestone,
            data.completed,
            data.date,
            data.notes,
            now,
        )
        patch = StudentPatch(
            new_birth_status=status,
            completion_date=resolve_completion_date(status, student.completion_date, now),
        )

        updated = await self.students.update(student_id, context.church_id, patch)
        if not updated:
            raise NotFoundException("Student not found", code="STUDENT_NOT_FOUND")

        logger.info(
            "new_birth_milestone_updated",
            student_id=student_id,
            milestone=data.milestone.value,
            completed=data.completed,
            state=status.state.value,
        )
        return updated

    async def update_first_step(
        self,
        context: RequestContext,
        student_id: str,
        step: str,
        data: FirstStepUpdate,
    ) -> Student:
        """
        Update one First Steps tracker.

        Raises:
            BadRequestException: If the step is unknown
            NotFoundException: If the student is not found
            ForbiddenException: If the caller has no access to the student
        """
        validate_step(step)
        student = await self._get_student(student_id, context.church_id)
        self._ensure_leader_access(context, student)

        progress = student.first_steps_progress
        updated_step = apply_step_update(progress.step(step), data, utcnow())
        patch = StudentPatch(first_steps_progress=progress.with_step(step, updated_step))

        updated = await self.students.update(student_id, context.church_id, patch)
        if not updated:
            raise NotFoundException("Student not found", code="STUDENT_NOT_FOUND")

        logger.info(
            "first_steps_updated",
            student_id=student_id,
            step=step,
            started=updated_step.started,
            completed=updated_step.completed,
        )
        return updated

    async def get_new_birth_stats(self, church_id: str) -> NewBirthStats:
        students = await self.students.list_all_by_church(church_id)
        return new_birth_stats(students, utcnow())

    async def get_first_steps_stats(self, church_id: str) -> FirstStepsStats:
        students = await self.students.list_all_by_church(church_id)
        return first_steps_stats(students)
