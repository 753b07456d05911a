"""Lesson progress endpoints."""

from fastapi import APIRouter

from discipleship.dependencies import DynamoTable, TenantContext
from discipleship.schemas.common import ApiResponse
from discipleship.schemas.lessons import LessonComplete, LessonNote, LessonProgress, LessonUpdate
from discipleship.services.lesson_service import LessonService

router = APIRouter(prefix="/lessons")


@router.get(
    "/study/{study_id}",
    response_model=ApiResponse[list[LessonProgress]],
    summary="Lessons of a study",
)
async def list_study_lessons(
    study_id: str,
    context: TenantContext,
    table: DynamoTable,
) -> ApiResponse[list[LessonProgress]]:
    """
    List a study's lessons in curriculum order.

    Args:
        study_id: Study ID
        context: Caller context
        table: DynamoDB table

    Returns:
        Lessons sorted by lesson number
    """
    lessons = await LessonService(table).list_by_study(context, study_id)
    return ApiResponse(data=lessons)


@router.get(
    "/{lesson_id}",
    response_model=ApiResponse[LessonProgress],
    summary="Get a lesson",
)
async def get_lesson(
    lesson_id: str,
    context: TenantContext,
    table: DynamoTable,
) -> ApiResponse[LessonProgress]:
    lesson = await LessonService(table).get_lesson(context, lesson_id)
    return ApiResponse(data=lesson)


@router.patch(
    "/{lesson_id}",
    response_model=ApiResponse[LessonProgress],
    summary="Update a lesson",
)
async def update_lesson(
    lesson_id: str,
    data: LessonUpdate,
    context: TenantContext,
    table: DynamoTable,
) -> ApiResponse[LessonProgress]:
    lesson = await LessonService(table).update_lesson(context, lesson_id, data)
    return ApiResponse(data=lesson)


@router.post(
    "/{lesson_id}/complete",
    response_model=ApiResponse[LessonProgress],
    summary="Mark a lesson complete",
)
async def complete_lesson(
    lesson_id: str,
    context: TenantContext,
    table: DynamoTable,
    data: LessonComplete | None = None,
) -> ApiResponse[LessonProgress]:
    """Mark a lesson complete, appending any notes to the teacher notes."""
    notes = data.notes if data else None
    lesson = await LessonService(table).mark_complete(context, lesson_id, notes)
    return ApiResponse(data=lesson)


@router.post(
    "/{lesson_id}/notes",
    response_model=ApiResponse[LessonProgress],
    summary="Add a lesson note",
)
async def add_lesson_note(
    lesson_id: str,
    data: LessonNote,
    context: TenantContext,
    table: DynamoTable,
) -> ApiResponse[LessonProgress]:
    lesson = await LessonService(table).add_note(context, lesson_id, data.type, data.content)
    return ApiResponse(data=lesson)
