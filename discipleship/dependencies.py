"""FastAPI dependencies."""

from collections.abc import Awaitable, Callable
from typing import Annotated, Any

import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from discipleship.core.authorization import check_permission, check_role, ensure
from discipleship.core.context import RequestContext
from discipleship.core.exceptions import BadRequestException, UnauthorizedException
from discipleship.core.permissions import Permission, Role
from discipleship.core.security import decode_access_token
from discipleship.database import get_table

logger = structlog.get_logger()

# Security
security = HTTPBearer(auto_error=False)


async def get_request_context(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> RequestContext:
    """
    Build the caller's context from the bearer token.

    Args:
        request: Incoming request, tagged with the caller for the request log
        credentials: Bearer token credentials

    Returns:
        Request context

    Raises:
        UnauthorizedException: If the token is missing, invalid or expired
    """
    if credentials is None:
        raise UnauthorizedException("Authentication required")

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise UnauthorizedException("Invalid or expired token", code="INVALID_TOKEN")

    context = RequestContext.from_token_payload(payload)
    structlog.contextvars.bind_contextvars(user_id=context.user_id, church_id=context.church_id)
    request.state.user_id = context.user_id
    request.state.church_id = context.church_id
    return context


async def require_tenant(
    context: Annotated[RequestContext, Depends(get_request_context)],
) -> RequestContext:
    """
    Context bound to a real church.

    Raises:
        BadRequestException: If a platform admin has not switched into a church
    """
    if not context.has_tenant:
        raise BadRequestException(
            "Switch to a church before accessing church data",
            code="TENANT_REQUIRED",
        )
    return context


def require_permission(
    *permissions: Permission,
) -> Callable[[RequestContext], Awaitable[RequestContext]]:
    """Dependency allowing callers holding any of the permissions."""

    async def dependency(
        context: Annotated[RequestContext, Depends(get_request_context)],
    ) -> RequestContext:
        allowed = check_permission(context, *permissions)
        if not allowed:
            logger.info(
                "permission_denied",
                role=context.role.value,
                required=[p.value for p in permissions],
            )
        ensure(allowed)
        return context

    return dependency


def require_role(*roles: Role) -> Callable[[RequestContext], Awaitable[RequestContext]]:
    """Dependency allowing callers with any of the roles."""

    async def dependency(
        context: Annotated[RequestContext, Depends(get_request_context)],
    ) -> RequestContext:
        ensure(check_role(context, *roles))
        return context

    return dependency


# Type aliases for dependency injection
DynamoTable = Annotated[Any, Depends(get_table)]
CurrentContext = Annotated[RequestContext, Depends(get_request_context)]
TenantContext = Annotated[RequestContext, Depends(require_tenant)]
