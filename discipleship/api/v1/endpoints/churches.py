"""Church endpoints."""

from fastapi import APIRouter, Depends, status

from discipleship.core.permissions import Permission
from discipleship.dependencies import CurrentContext, DynamoTable, TenantContext, require_permission
from discipleship.schemas.churches import Church, ChurchCreate, ChurchStats, ChurchUpdate
from discipleship.schemas.common import ApiResponse
from discipleship.services.church_service import ChurchService

router = APIRouter(prefix="/churches")


@router.get(
    "/me",
    response_model=ApiResponse[Church],
    summary="Current church",
)
async def get_current_church(context: TenantContext, table: DynamoTable) -> ApiResponse[Church]:
    """Get the church the caller's token is bound to."""
    church = await ChurchService(table).get_church(context.church_id)
    return ApiResponse(data=church)


@router.patch(
    "/me",
    response_model=ApiResponse[Church],
    dependencies=[
        Depends(require_permission(Permission.CHURCH_UPDATE, Permission.CHURCH_MANAGE_SETTINGS))
    ],
    summary="Update current church",
)
async def update_current_church(
    data: ChurchUpdate,
    context: TenantContext,
    table: DynamoTable,
) -> ApiResponse[Church]:
    """
    Update the current church's details and settings.

    Args:
        data: Fields to change
        context: Caller context
        table: DynamoDB table

    Returns:
        Updated church
    """
    church = await ChurchService(table).update_church(context, context.church_id, data)
    return ApiResponse(data=church)


@router.get(
    "/me/stats",
    response_model=ApiResponse[ChurchStats],
    summary="Dashboard statistics",
)
async def get_current_church_stats(
    context: TenantContext,
    table: DynamoTable,
) -> ApiResponse[ChurchStats]:
    stats = await ChurchService(table).get_stats(context.church_id)
    return ApiResponse(data=stats)


@router.get(
    "",
    response_model=ApiResponse[list[Church]],
    dependencies=[Depends(require_permission(Permission.SYSTEM_MANAGE_CHURCHES))],
    summary="List all churches",
)
async def list_churches(table: DynamoTable) -> ApiResponse[list[Church]]:
    churches = await ChurchService(table).list_churches()
    return ApiResponse(data=churches)


@router.post(
    "",
    response_model=ApiResponse[Church],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permission(Permission.CHURCH_CREATE))],
    summary="Create a church",
)
async def create_church(data: ChurchCreate, table: DynamoTable) -> ApiResponse[Church]:
    """
    Onboard a new church.

    Raises:
        ConflictException: If the slug is already taken
    """
    church = await ChurchService(table).create_church(data)
    return ApiResponse(data=church)


@router.get(
    "/{church_id}",
    response_model=ApiResponse[Church],
    summary="Get a church",
)
async def get_church(
    church_id: str,
    context: CurrentContext,
    table: DynamoTable,
) -> ApiResponse[Church]:
    church = await ChurchService(table).get_accessible_church(context, church_id)
    return ApiResponse(data=church)
