"""Bible study endpoints."""

from fastapi import APIRouter, Depends, Query, status

from discipleship.core.curriculums import Curriculum
from discipleship.core.permissions import Permission
from discipleship.dependencies import DynamoTable, TenantContext, require_permission
from discipleship.repositories.base import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from discipleship.schemas.common import ApiResponse, PaginatedResponse
from discipleship.schemas.studies import (
    BibleStudy,
    StudyCreate,
    StudyStatusFilter,
    StudyStatusUpdate,
    StudyUpdate,
)
from discipleship.services.study_service import StudyService

router = APIRouter(prefix="/studies")


@router.get(
    "",
    response_model=PaginatedResponse[BibleStudy],
    summary="List Bible studies",
)
async def list_studies(
    context: TenantContext,
    table: DynamoTable,
    status_filter: StudyStatusFilter = Query(StudyStatusFilter.ALL, alias="status"),
    teacher_id: str | None = Query(None, alias="teacherId"),
    curriculum: Curriculum | None = Query(None),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    cursor: str | None = Query(None),
) -> PaginatedResponse[BibleStudy]:
    """
    List the studies visible to the caller.

    Teachers see the studies they teach, students the ones they are enrolled in.

    Args:
        context: Caller context
        table: DynamoDB table
        status_filter: Study status, or ``all``
        teacher_id: Only studies taught by this teacher
        curriculum: Only studies following this curriculum
        limit: Page size
        cursor: Cursor from the previous page

    Returns:
        One page of studies
    """
    page = await StudyService(table).list_studies(
        context,
        status=status_filter,
        teacher_id=teacher_id,
        curriculum=curriculum,
        limit=limit,
        cursor=cursor,
    )
    return PaginatedResponse(data=page.items, next_cursor=page.next_cursor)


@router.post(
    "",
    response_model=ApiResponse[BibleStudy],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permission(Permission.STUDY_CREATE))],
    summary="Start a Bible study",
)
async def create_study(
    data: StudyCreate,
    context: TenantContext,
    table: DynamoTable,
) -> ApiResponse[BibleStudy]:
    study = await StudyService(table).create_study(context, data)
    return ApiResponse(data=study)


@router.get(
    "/student/{student_id}",
    response_model=ApiResponse[list[BibleStudy]],
    summary="Studies of a student",
)
async def list_student_studies(
    student_id: str,
    context: TenantContext,
    table: DynamoTable,
) -> ApiResponse[list[BibleStudy]]:
    studies = await StudyService(table).list_for_student(context, student_id)
    return ApiResponse(data=studies)


@router.get(
    "/{study_id}",
    response_model=ApiResponse[BibleStudy],
    summary="Get a Bible study",
)
async def get_study(
    study_id: str,
    context: TenantContext,
    table: DynamoTable,
) -> ApiResponse[BibleStudy]:
    study = await StudyService(table).get_study(context, study_id)
    return ApiResponse(data=study)


@router.patch(
    "/{study_id}",
    response_model=ApiResponse[BibleStudy],
    summary="Update a Bible study",
)
async def update_study(
    study_id: str,
    data: StudyUpdate,
    context: TenantContext,
    table: DynamoTable,
) -> ApiResponse[BibleStudy]:
    """
    Update a study's details or roster.

    Raises:
        NotFoundException: If the study is not in the current church
        ForbiddenException: If the caller may not modify the study
    """
    study = await StudyService(table).update_study(context, study_id, data)
    return ApiResponse(data=study)


@router.post(
    "/{study_id}/status",
    response_model=ApiResponse[BibleStudy],
    summary="Change study status",
)
async def update_study_status(
    study_id: str,
    data: StudyStatusUpdate,
    context: TenantContext,
    table: DynamoTable,
) -> ApiResponse[BibleStudy]:
    study = await StudyService(table).update_status(context, study_id, data.status)
    return ApiResponse(data=study)
