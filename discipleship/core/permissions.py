"""Role and permission tables."""

from collections.abc import Iterable
from enum import Enum


class Role(str, Enum):
    """User role enumeration."""

    PLATFORM_ADMIN = "platform_admin"
    ADMIN = "admin"
    PASTOR = "pastor"
    TEACHER = "teacher"
    MEMBER = "member"
    STUDENT = "student"


class Permission(str, Enum):
    """Permission vocabulary checked by the authorization guard."""

    # Platform
    SYSTEM_ACCESS = "system:access"
    SYSTEM_MANAGE_CHURCHES = "system:manage-churches"
    SYSTEM_VIEW_ALL_DATA = "system:view-all-data"
    SYSTEM_MANAGE_SUBSCRIPTIONS = "system:manage-subscriptions"

    # Church
    CHURCH_CREATE = "church:create"
    CHURCH_READ = "church:read"
    CHURCH_UPDATE = "church:update"
    CHURCH_DELETE = "church:delete"
    CHURCH_MANAGE_SETTINGS = "church:manage-settings"

    # Users
    USER_LIST = "user:list"
    USER_READ = "user:read"
    USER_CREATE = "user:create"
    USER_UPDATE = "user:update"
    USER_DELETE = "user:delete"
    USER_ASSIGN_ROLE = "user:assign-role"
    USER_MANAGE_SELF = "user:manage-self"

    # Students
    STUDENT_LIST = "student:list"
    STUDENT_LIST_OWN = "student:list-own"
    STUDENT_READ = "student:read"
    STUDENT_READ_SELF = "student:read-self"
    STUDENT_CREATE = "student:create"
    STUDENT_UPDATE = "student:update"
    STUDENT_UPDATE_SELF = "student:update-self"
    STUDENT_DELETE = "student:delete"
    STUDENT_ASSIGN_TEACHER = "student:assign-teacher"
    STUDENT_UPDATE_MILESTONES = "student:update-milestones"

    # Bible studies
    STUDY_LIST = "study:list"
    STUDY_LIST_OWN = "study:list-own"
    STUDY_READ = "study:read"
    STUDY_CREATE = "study:create"
    STUDY_UPDATE = "study:update"
    STUDY_UPDATE_OWN = "study:update-own"
    STUDY_DELETE = "study:delete"
    STUDY_ASSIGN_STUDENTS = "study:assign-students"

    # First Steps
    FIRSTSTEPS_VIEW = "firststeps:view"
    FIRSTSTEPS_UPDATE = "firststeps:update"

    # Reports
    REPORTS_VIEW_CHURCH = "reports:view-church"
    REPORTS_VIEW_OWN = "reports:view-own"
    REPORTS_EXPORT = "reports:export"

    # Members
    MEMBER_LIST = "member:list"
    MEMBER_MANAGE = "member:manage"


P = Permission

# Self-service variants only make sense for tenant users
_SELF_SCOPED = {
    P.STUDENT_LIST_OWN,
    P.STUDENT_READ_SELF,
    P.STUDENT_UPDATE_SELF,
    P.STUDY_LIST_OWN,
    P.STUDY_UPDATE_OWN,
    P.REPORTS_VIEW_OWN,
}

ROLE_PERMISSIONS: dict[Role, frozenset[Permission]] = {
    Role.PLATFORM_ADMIN: frozenset(p for p in Permission if p not in _SELF_SCOPED),
    Role.ADMIN: frozenset(
        {
            P.CHURCH_READ,
            P.CHURCH_UPDATE,
            P.CHURCH_MANAGE_SETTINGS,
            P.USER_LIST,
            P.USER_READ,
            P.USER_CREATE,
            P.USER_UPDATE,
            P.USER_DELETE,
            P.USER_ASSIGN_ROLE,
            P.USER_MANAGE_SELF,
            P.STUDENT_LIST,
            P.STUDENT_READ,
            P.STUDENT_CREATE,
            P.STUDENT_UPDATE,
            P.STUDENT_DELETE,
            P.STUDENT_ASSIGN_TEACHER,
            P.STUDENT_UPDATE_MILESTONES,
            P.STUDY_LIST,
            P.STUDY_READ,
            P.STUDY_CREATE,
            P.STUDY_UPDATE,
            P.STUDY_DELETE,
            P.STUDY_ASSIGN_STUDENTS,
            P.FIRSTSTEPS_VIEW,
            P.FIRSTSTEPS_UPDATE,
            P.REPORTS_VIEW_CHURCH,
            P.REPORTS_EXPORT,
            P.MEMBER_LIST,
            P.MEMBER_MANAGE,
        }
    ),
    Role.PASTOR: frozenset(
        {
            P.CHURCH_READ,
            P.USER_LIST,
            P.USER_READ,
            P.USER_CREATE,
            P.USER_UPDATE,
            P.USER_ASSIGN_ROLE,
            P.USER_MANAGE_SELF,
            P.STUDENT_LIST,
            P.STUDENT_READ,
            P.STUDENT_CREATE,
            P.STUDENT_UPDATE,
            P.STUDENT_ASSIGN_TEACHER,
            P.STUDENT_UPDATE_MILESTONES,
            P.STUDY_LIST,
            P.STUDY_READ,
            P.STUDY_CREATE,
            P.STUDY_UPDATE,
            P.STUDY_ASSIGN_STUDENTS,
            P.FIRSTSTEPS_VIEW,
            P.FIRSTSTEPS_UPDATE,
            P.REPORTS_VIEW_CHURCH,
            P.REPORTS_EXPORT,
            P.MEMBER_LIST,
            P.MEMBER_MANAGE,
        }
    ),
    Role.TEACHER: frozenset(
        {
            P.USER_MANAGE_SELF,
            P.STUDENT_LIST_OWN,
            P.STUDENT_READ,
            P.STUDENT_CREATE,
            P.STUDENT_UPDATE,
            P.STUDENT_UPDATE_MILESTONES,
            P.STUDY_LIST_OWN,
            P.STUDY_READ,
            P.STUDY_CREATE,
            P.STUDY_UPDATE_OWN,
            P.STUDY_ASSIGN_STUDENTS,
            P.FIRSTSTEPS_VIEW,
            P.FIRSTSTEPS_UPDATE,
            P.REPORTS_VIEW_OWN,
        }
    ),
    Role.MEMBER: frozenset(
        {
            P.USER_MANAGE_SELF,
            P.CHURCH_READ,
            P.REPORTS_VIEW_OWN,
        }
    ),
    Role.STUDENT: frozenset(
        {
            P.USER_MANAGE_SELF,
            P.STUDENT_READ_SELF,
            P.STUDENT_UPDATE_SELF,
            P.STUDY_LIST_OWN,
            P.STUDY_READ,
            P.FIRSTSTEPS_VIEW,
            P.REPORTS_VIEW_OWN,
        }
    ),
}

ROLE_HIERARCHY: dict[Role, int] = {
    Role.STUDENT: 0,
    Role.MEMBER: 1,
    Role.TEACHER: 2,
    Role.PASTOR: 3,
    Role.ADMIN: 4,
    Role.PLATFORM_ADMIN: 5,
}

ROLE_CREATION_PERMISSIONS: dict[Role, frozenset[Role]] = {
    Role.PLATFORM_ADMIN: frozenset(Role),
    Role.ADMIN: frozenset(
        {Role.ADMIN, Role.PASTOR, Role.TEACHER, Role.MEMBER, Role.STUDENT}
    ),
    Role.PASTOR: frozenset({Role.TEACHER, Role.MEMBER, Role.STUDENT}),
    Role.TEACHER: frozenset({Role.STUDENT}),
    Role.MEMBER: frozenset(),
    Role.STUDENT: frozenset(),
}


def has_permission(role: Role, permission: Permission) -> bool:
    """Check whether a role grants a permission."""
    return permission in ROLE_PERMISSIONS.get(Role(role), frozenset())


def has_any_permission(role: Role, permissions: Iterable[Permission]) -> bool:
    """Check whether a role grants at least one of the permissions."""
    return any(has_permission(role, permission) for permission in permissions)


def has_all_permissions(role: Role, permissions: Iterable[Permission]) -> bool:
    """Check whether a role grants every one of the permissions."""
    return all(has_permission(role, permission) for permission in permissions)


def get_permissions_for_role(role: Role) -> frozenset[Permission]:
    """Get the full permission set of a role."""
    return ROLE_PERMISSIONS.get(Role(role), frozenset())


def is_role_at_least(role: Role, minimum: Role) -> bool:
    """Compare two roles by hierarchy rank."""
    return ROLE_HIERARCHY[Role(role)] >= ROLE_HIERARCHY[Role(minimum)]


def can_assign_role(assigner: Role, target: Role) -> bool:
    """Check whether a role may create users with, or promote users to, another role."""
    return Role(target) in ROLE_CREATION_PERMISSIONS.get(Role(assigner), frozenset())


def can_manage_user(manager: Role, target: Role) -> bool:
    """Check whether a role outranks or equals the role of the user it acts on."""
    if Role(manager) == Role.PLATFORM_ADMIN:
        return True
    return is_role_at_least(manager, target)


def is_platform_admin(role: Role) -> bool:
    return Role(role) == Role.PLATFORM_ADMIN


def is_admin(role: Role) -> bool:
    return Role(role) in (Role.ADMIN, Role.PLATFORM_ADMIN)


def is_manager(role: Role) -> bool:
    """Pastors and above manage a whole church."""
    return is_role_at_least(role, Role.PASTOR)


def is_leader(role: Role) -> bool:
    """Teachers and above lead students."""
    return is_role_at_least(role, Role.TEACHER)
