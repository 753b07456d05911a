"""Single-table key scheme."""

from enum import Enum


class EntityType(str, Enum):
    """Value of the ``entityType`` attribute on every row."""

    USER = "USER"
    CHURCH = "CHURCH"
    STUDENT = "STUDENT"
    STUDY = "STUDY"
    LESSON = "LESSON"
    EMAIL_LOCK = "EMAIL_LOCK"
    SLUG_LOCK = "SLUG_LOCK"


GSI1 = "GSI1"
GSI2 = "GSI2"

USER_PREFIX = "USER#"
STUDENT_PREFIX = "STUDENT#"
STUDY_PREFIX = "STUDY#"
LESSON_PREFIX = "LESSON#"


def church_pk(church_id: str) -> str:
    return f"CHURCH#{church_id}"


def study_pk(study_id: str) -> str:
    return f"STUDY#{study_id}"


def church_key(church_id: str) -> dict[str, str]:
    return {"PK": church_pk(church_id), "SK": "METADATA"}


def user_key(church_id: str, user_id: str) -> dict[str, str]:
    return {"PK": church_pk(church_id), "SK": f"{USER_PREFIX}{user_id}"}


def student_key(church_id: str, student_id: str) -> dict[str, str]:
    return {"PK": church_pk(church_id), "SK": f"{STUDENT_PREFIX}{student_id}"}


def study_key(church_id: str, study_id: str) -> dict[str, str]:
    return {"PK": church_pk(church_id), "SK": f"{STUDY_PREFIX}{study_id}"}


def lesson_key(study_id: str, lesson_id: str) -> dict[str, str]:
    return {"PK": study_pk(study_id), "SK": f"{LESSON_PREFIX}{lesson_id}"}


def email_lock_key(email: str) -> dict[str, str]:
    return {"PK": f"EMAIL#{email.lower()}", "SK": "EMAIL"}


def slug_lock_key(slug: str) -> dict[str, str]:
    return {"PK": f"SLUG#{slug}", "SK": "SLUG"}


# Secondary index keys


def email_gsi_pk(email: str) -> str:
    """GSI2 partition for cross-tenant login lookup. Always lowercased."""
    return f"EMAIL#{email.lower()}"


def slug_gsi_pk(slug: str) -> str:
    return f"SLUG#{slug}"


def church_students_gsi_pk(church_id: str) -> str:
    return f"CHURCH#{church_id}#STUDENTS"


def church_studies_gsi_pk(church_id: str) -> str:
    return f"CHURCH#{church_id}#STUDIES"


def lesson_gsi_pk(lesson_id: str) -> str:
    return f"LESSON#{lesson_id}"
