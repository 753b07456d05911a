"""Authentication endpoints."""

from fastapi import APIRouter, status

from discipleship.core.exceptions import AuthError
from discipleship.core.security import token_expires_in
from discipleship.dependencies import CurrentContext, DynamoTable
from discipleship.schemas.auth import (
    AuthResponse,
    ChangePasswordRequest,
    ChurchSummary,
    LoginRequest,
    RegisterRequest,
    SwitchChurchRequest,
    TokenIdentity,
    TokenResponse,
)
from discipleship.schemas.common import ApiResponse
from discipleship.schemas.users import UserMe
from discipleship.services.auth_service import AuthService

router = APIRouter()

# HTTP status for each auth error code, per route
REGISTER_ERRORS = {"EMAIL_EXISTS": status.HTTP_409_CONFLICT}
LOGIN_ERRORS = {"INVALID_CREDENTIALS": status.HTTP_401_UNAUTHORIZED}
SWITCH_ERRORS = {
    "ACCESS_DENIED": status.HTTP_403_FORBIDDEN,
    "CHURCH_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "USER_NOT_FOUND": status.HTTP_404_NOT_FOUND,
}
ACCOUNT_ERRORS = {
    "INVALID_CREDENTIALS": status.HTTP_401_UNAUTHORIZED,
    "USER_NOT_FOUND": status.HTTP_404_NOT_FOUND,
}


def _with_status(error: AuthError, statuses: dict[str, int]) -> AuthError:
    return error.with_status(statuses.get(error.code, status.HTTP_400_BAD_REQUEST))


@router.post(
    "/register",
    response_model=ApiResponse[AuthResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Register into a church",
)
async def register(data: RegisterRequest, table: DynamoTable) -> ApiResponse[AuthResponse]:
    """
    Create an account in an existing church and sign the user in.

    Args:
        data: Registration details
        table: DynamoDB table

    Returns:
        Created user and access token

    Raises:
        AuthError: 409 if the email is taken, 400 for an unknown church or role
    """
    try:
        user, token = await AuthService(table).register(data)
    except AuthError as e:
        raise _with_status(e, REGISTER_ERRORS) from None

    return ApiResponse(data=AuthResponse(user=user, token=token, expires_in=token_expires_in()))


@router.post(
    "/login",
    response_model=ApiResponse[AuthResponse],
    status_code=status.HTTP_200_OK,
    summary="Log in with email and password",
)
async def login(data: LoginRequest, table: DynamoTable) -> ApiResponse[AuthResponse]:
    """
    Authenticate with email and password.

    Raises:
        AuthError: 401 for bad credentials, 400 for a disabled account
    """
    try:
        user, token = await AuthService(table).login(data.email, data.password)
    except AuthError as e:
        raise _with_status(e, LOGIN_ERRORS) from None

    return ApiResponse(data=AuthResponse(user=user, token=token, expires_in=token_expires_in()))


@router.get(
    "/me",
    response_model=ApiResponse[UserMe],
    summary="Current user",
)
async def me(context: CurrentContext, table: DynamoTable) -> ApiResponse[UserMe]:
    """Get the authenticated user and the church the token is bound to."""
    try:
        user = await AuthService(table).get_current_user(context)
    except AuthError as e:
        raise _with_status(e, ACCOUNT_ERRORS) from None
    return ApiResponse(data=user)


@router.get(
    "/me/churches",
    response_model=ApiResponse[list[ChurchSummary]],
    summary="Churches the user can switch into",
)
async def my_churches(
    context: CurrentContext,
    table: DynamoTable,
) -> ApiResponse[list[ChurchSummary]]:
    try:
        churches = await AuthService(table).list_accessible_churches(context)
    except AuthError as e:
        raise _with_status(e, ACCOUNT_ERRORS) from None
    return ApiResponse(data=churches)


@router.post(
    "/switch-church",
    response_model=ApiResponse[TokenResponse],
    summary="Switch the active church",
)
async def switch_church(
    data: SwitchChurchRequest,
    context: CurrentContext,
    table: DynamoTable,
) -> ApiResponse[TokenResponse]:
    """
    Issue a token bound to another church.

    Raises:
        AuthError: 403 if the user has no access, 404 if the church does not exist
    """
    try:
        token = await AuthService(table).switch_church(context, data.church_id)
    except AuthError as e:
        raise _with_status(e, SWITCH_ERRORS) from None
    return ApiResponse(data=TokenResponse(token=token, expires_in=token_expires_in()))


@router.post(
    "/change-password",
    response_model=ApiResponse[dict[str, str]],
    summary="Change password",
)
async def change_password(
    data: ChangePasswordRequest,
    context: CurrentContext,
    table: DynamoTable,
) -> ApiResponse[dict[str, str]]:
    try:
        await AuthService(table).change_password(context, data.current_password, data.new_password)
    except AuthError as e:
        raise _with_status(e, ACCOUNT_ERRORS) from None
    return ApiResponse(data={"message": "Password changed"})


@router.get(
    "/verify",
    response_model=ApiResponse[TokenIdentity],
    summary="Verify an access token",
)
async def verify(context: CurrentContext) -> ApiResponse[TokenIdentity]:
    """Echo the identity carried by the bearer token."""
    return ApiResponse(
        data=TokenIdentity(
            user_id=context.user_id,
            email=context.email,
            role=context.role,
            church_id=context.church_id,
            church_ids=list(context.church_ids),
        )
    )
