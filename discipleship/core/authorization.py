"""Authorization checks composed from the role table and the request context."""

from dataclasses import dataclass
from enum import Enum

from discipleship.core.context import RequestContext
from discipleship.core.exceptions import ForbiddenException
from discipleship.core.permissions import (
    Permission,
    Role,
    has_any_permission,
    has_permission,
    is_leader,
    is_manager,
)


class ScopeKind(str, Enum):
    """How far a list query may reach for a given role."""

    ALL = "all"
    CHURCH = "church"
    ASSIGNED = "assigned"
    SELF = "self"


@dataclass(frozen=True)
class QueryScope:
    """Scope descriptor consumed by list operations."""

    scope: ScopeKind
    church_id: str | None = None
    user_id: str | None = None


def get_query_scope_for_role(context: RequestContext) -> QueryScope:
    """
    Resolve the list scope of the caller.

    Platform admins are unrestricted, managers see their church, teachers
    see records assigned to them and everyone else sees only their own.
    """
    if context.is_platform_admin:
        return QueryScope(ScopeKind.ALL)
    if is_manager(context.role):
        return QueryScope(ScopeKind.CHURCH, church_id=context.church_id)
    if is_leader(context.role):
        return QueryScope(ScopeKind.ASSIGNED, church_id=context.church_id, user_id=context.user_id)
    return QueryScope(ScopeKind.SELF, church_id=context.church_id, user_id=context.user_id)


def check_permission(context: RequestContext, *permissions: Permission) -> bool:
    """True if the caller holds any of the permissions. Platform admins always pass."""
    if context.is_platform_admin:
        return True
    return has_any_permission(context.role, permissions)


def check_role(context: RequestContext, *roles: Role) -> bool:
    if context.is_platform_admin:
        return True
    return context.role in roles


def can_access_student(
    context: RequestContext,
    student_id: str,
    teacher_id: str | None,
) -> bool:
    """
    Check whether the caller may act on a student through the leader path.

    Students and members are refused here; callers check ownership of the
    student record separately.
    """
    if context.is_platform_admin or is_manager(context.role):
        return True
    if context.role == Role.TEACHER:
        return teacher_id is not None and teacher_id == context.user_id
    return False


def can_access_study(
    context: RequestContext,
    study_id: str,
    teacher_id: str | None,
) -> bool:
    """Same rules as :func:`can_access_student`, keyed on the study's teacher."""
    if context.is_platform_admin or is_manager(context.role):
        return True
    if context.role == Role.TEACHER:
        return teacher_id is not None and teacher_id == context.user_id
    return False


def can_modify_resource(
    context: RequestContext,
    owner_id: str | None,
    permission: Permission,
) -> bool:
    """Platform admin, holder of the permission, or owner of the resource."""
    if context.is_platform_admin:
        return True
    if has_permission(context.role, permission):
        return True
    return owner_id is not None and owner_id == context.user_id


def can_access_church(context: RequestContext, church_id: str) -> bool:
    if context.is_platform_admin:
        return True
    return church_id == context.church_id or church_id in context.church_ids


def ensure(allowed: bool, message: str = "Insufficient permissions") -> None:
    """Raise a 403 when a check failed."""
    if not allowed:
        raise ForbiddenException(message)


def require_permission(context: RequestContext, *permissions: Permission) -> None:
    ensure(check_permission(context, *permissions))
