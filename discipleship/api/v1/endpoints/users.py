"""User endpoints."""

from fastapi import APIRouter, Depends, Query, status

from discipleship.core.exceptions import AuthError
from discipleship.core.permissions import Permission, Role
from discipleship.dependencies import CurrentContext, DynamoTable, TenantContext, require_permission
from discipleship.repositories.base import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from discipleship.schemas.common import ApiResponse, PaginatedResponse
from discipleship.schemas.users import User, UserCreate, UserMe, UserUpdate
from discipleship.services.auth_service import AuthService
from discipleship.services.user_service import UserService

router = APIRouter(prefix="/users")


@router.get(
    "",
    response_model=PaginatedResponse[User],
    dependencies=[Depends(require_permission(Permission.USER_LIST))],
    summary="List church users",
)
async def list_users(
    context: TenantContext,
    table: DynamoTable,
    role: Role | None = Query(None),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    cursor: str | None = Query(None),
) -> PaginatedResponse[User]:
    """
    List users of the current church.

    Args:
        context: Caller context
        table: DynamoDB table
        role: Only users with this role
        limit: Page size
        cursor: Cursor from the previous page

    Returns:
        One page of users
    """
    page = await UserService(table).list_users(context, role=role, limit=limit, cursor=cursor)
    return PaginatedResponse(data=page.items, next_cursor=page.next_cursor)


@router.post(
    "",
    response_model=ApiResponse[User],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permission(Permission.USER_CREATE))],
    summary="Create a user",
)
async def create_user(
    data: UserCreate,
    context: TenantContext,
    table: DynamoTable,
) -> ApiResponse[User]:
    user = await UserService(table).create_user(context, data)
    return ApiResponse(data=user)


@router.get(
    "/me",
    response_model=ApiResponse[UserMe],
    summary="Current user",
)
async def get_me(context: CurrentContext, table: DynamoTable) -> ApiResponse[UserMe]:
    try:
        user = await AuthService(table).get_current_user(context)
    except AuthError as e:
        raise e.with_status(status.HTTP_404_NOT_FOUND) from None
    return ApiResponse(data=user)


@router.get(
    "/{user_id}",
    response_model=ApiResponse[User],
    summary="Get a user",
)
async def get_user(user_id: str, context: TenantContext, table: DynamoTable) -> ApiResponse[User]:
    user = await UserService(table).get_user(context, user_id)
    return ApiResponse(data=user)


@router.patch(
    "/{user_id}",
    response_model=ApiResponse[User],
    summary="Update a user",
)
async def update_user(
    user_id: str,
    data: UserUpdate,
    context: TenantContext,
    table: DynamoTable,
) -> ApiResponse[User]:
    """
    Update a user's profile, role or status.

    Raises:
        NotFoundException: If the user is not in the current church
        ForbiddenException: If the caller may not make the change
    """
    user = await UserService(table).update_user(context, user_id, data)
    return ApiResponse(data=user)
