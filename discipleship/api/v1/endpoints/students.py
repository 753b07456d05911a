"""Student endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from discipleship.core.authorization import check_permission, check_role, ensure
from discipleship.core.context import RequestContext
from discipleship.core.permissions import Permission, Role
from discipleship.dependencies import DynamoTable, TenantContext, require_permission, require_tenant
from discipleship.repositories.base import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from discipleship.schemas.common import ApiResponse, PaginatedResponse
from discipleship.schemas.students import (
    FirstStepsStats,
    FirstStepUpdate,
    NewBirthMilestoneUpdate,
    NewBirthStats,
    Student,
    StudentCreate,
    StudentResponse,
    StudentStatusFilter,
    StudentUpdate,
)
from discipleship.services.student_service import StudentService

router = APIRouter(prefix="/students")


async def can_list_students(context: Annotated[RequestContext, Depends(require_tenant)]) -> RequestContext:
    """Leaders listing students, or students and members listing themselves."""
    ensure(
        check_permission(context, Permission.STUDENT_LIST, Permission.STUDENT_LIST_OWN)
        or check_role(context, Role.STUDENT, Role.MEMBER)
    )
    return context


@router.get(
    "",
    response_model=PaginatedResponse[StudentResponse],
    summary="List students",
)
async def list_students(
    context: Annotated[RequestContext, Depends(can_list_students)],
    table: DynamoTable,
    status_filter: StudentStatusFilter = Query(StudentStatusFilter.ALL, alias="status"),
    teacher_id: str | None = Query(None, alias="teacherId"),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    cursor: str | None = Query(None),
) -> PaginatedResponse[StudentResponse]:
    """
    List the students visible to the caller.

    Teachers only see students assigned to them, students and members only
    their own record.

    Args:
        context: Caller context
        table: DynamoDB table
        status_filter: Journey status filter
        teacher_id: Only students assigned to this teacher
        limit: Page size
        cursor: Cursor from the previous page

    Returns:
        One page of students with their users
    """
    page = await StudentService(table).list_students(
        context,
        status=status_filter,
        teacher_id=teacher_id,
        limit=limit,
        cursor=cursor,
    )
    return PaginatedResponse(data=page.items, next_cursor=page.next_cursor)


@router.post(
    "",
    response_model=ApiResponse[Student],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permission(Permission.STUDENT_CREATE))],
    summary="Enroll a student",
)
async def create_student(
    data: StudentCreate,
    context: TenantContext,
    table: DynamoTable,
) -> ApiResponse[Student]:
    student = await StudentService(table).create_student(context, data)
    return ApiResponse(data=student)


@router.get(
    "/stats/new-birth",
    response_model=ApiResponse[NewBirthStats],
    dependencies=[Depends(require_permission(Permission.REPORTS_VIEW_CHURCH))],
    summary="New Birth statistics",
)
async def new_birth_stats(context: TenantContext, table: DynamoTable) -> ApiResponse[NewBirthStats]:
    stats = await StudentService(table).get_new_birth_stats(context.church_id)
    return ApiResponse(data=stats)


@router.get(
    "/stats/first-steps",
    response_model=ApiResponse[FirstStepsStats],
    dependencies=[Depends(require_permission(Permission.REPORTS_VIEW_CHURCH))],
    summary="First Steps statistics",
)
async def first_steps_stats(
    context: TenantContext,
    table: DynamoTable,
) -> ApiResponse[FirstStepsStats]:
    stats = await StudentService(table).get_first_steps_stats(context.church_id)
    return ApiResponse(data=stats)


@router.get(
    "/{student_id}",
    response_model=ApiResponse[StudentResponse],
    summary="Get a student",
)
async def get_student(
    student_id: str,
    context: TenantContext,
    table: DynamoTable,
) -> ApiResponse[StudentResponse]:
    student = await StudentService(table).get_student(context, student_id)
    return ApiResponse(data=student)


@router.patch(
    "/{student_id}",
    response_model=ApiResponse[Student],
    dependencies=[Depends(require_permission(Permission.STUDENT_UPDATE))],
    summary="Update a student",
)
async def update_student(
    student_id: str,
    data: StudentUpdate,
    context: TenantContext,
    table: DynamoTable,
) -> ApiResponse[Student]:
    student = await StudentService(table).update_student(context, student_id, data)
    return ApiResponse(data=student)


@router.post(
    "/{student_id}/new-birth",
    response_model=ApiResponse[Student],
    dependencies=[Depends(require_permission(Permission.STUDENT_UPDATE_MILESTONES))],
    summary="Record a New Birth milestone",
)
async def update_new_birth(
    student_id: str,
    data: NewBirthMilestoneUpdate,
    context: TenantContext,
    table: DynamoTable,
) -> ApiResponse[Student]:
    """
    Mark water baptism or the Holy Ghost complete or incomplete.

    Args:
        student_id: Student ID
        data: Milestone, completion flag, optional date and notes
        context: Caller context
        table: DynamoDB table

    Returns:
        Updated student
    """
    student = await StudentService(table).update_new_birth_milestone(context, student_id, data)
    return ApiResponse(data=student)


@router.post(
    "/{student_id}/first-steps/{step}",
    response_model=ApiResponse[Student],
    dependencies=[Depends(require_permission(Permission.FIRSTSTEPS_UPDATE))],
    summary="Update a First Steps tracker",
)
async def update_first_step(
    student_id: str,
    step: str,
    data: FirstStepUpdate,
    context: TenantContext,
    table: DynamoTable,
) -> ApiResponse[Student]:
    student = await StudentService(table).update_first_step(context, student_id, step, data)
    return ApiResponse(data=student)
