import os

# Settings are read at import time, so the test environment must be set first
os.environ["ENVIRONMENT"] = "test"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-for-the-test-suite"
os.environ["LOG_FORMAT"] = "console"
os.environ["LOG_LEVEL"] = "warn"
os.environ["DYNAMODB_TABLE_PREFIX"] = "discipleship-test"
os.environ["AWS_REGION"] = "us-east-1"
os.environ.pop("DYNAMODB_ENDPOINT", None)

from collections.abc import AsyncGenerator, Awaitable, Callable, Generator
from typing import Any

import boto3
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from moto import mock_aws

from discipleship.config import settings
from discipleship.core.permissions import Role
from discipleship.core.security import create_access_token, get_password_hash
from discipleship.database import get_table
from discipleship.main import app
from discipleship.models.table import main_table_definition
from discipleship.repositories.church_repository import ChurchRepository
from discipleship.repositories.student_repository import StudentRepository
from discipleship.repositories.user_repository import UserRepository
from discipleship.schemas.churches import Address, Church, ChurchCreate
from discipleship.schemas.common import utcnow
from discipleship.schemas.students import Student, StudentData
from discipleship.schemas.users import User, UserData
from discipleship.services.auth_service import token_payload

TEST_PASSWORD = "correct-horse-battery"


@pytest.fixture
def aws_credentials() -> None:
    """Set fake AWS credentials for moto."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"


@pytest.fixture
def dynamodb_table(aws_credentials: None) -> Generator[Any, None, None]:
    """Create the mock application table."""
    with mock_aws():
        dynamodb = boto3.resource("dynamodb", region_name="us-east-1")
        table = dynamodb.create_table(**main_table_definition(settings.table_name))
        table.wait_until_exists()
        yield table


@pytest_asyncio.fixture
async def client(dynamodb_table: Any) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client bound to the mock table."""
    app.dependency_overrides[get_table] = lambda: dynamodb_table

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


def make_church_data(name: str = "Grace Apostolic", slug: str = "grace-apostolic") -> ChurchCreate:
    return ChurchCreate(
        name=name,
        slug=slug,
        address=Address(street="1 Main St", city="Springfield", state="IL", zip="62701"),
        pastor_id="pastor-placeholder",
    )


@pytest_asyncio.fixture
async def church(dynamodb_table: Any) -> Church:
    """A church to act as the tenant."""
    return await ChurchRepository(dynamodb_table).create(make_church_data())


@pytest_asyncio.fixture
async def other_church(dynamodb_table: Any) -> Church:
    """A second, unrelated tenant."""
    return await ChurchRepository(dynamodb_table).create(
        make_church_data(name="Calvary Tabernacle", slug="calvary-tabernacle")
    )


@pytest.fixture
def password() -> str:
    """Password of every user created by the fixtures."""
    return TEST_PASSWORD


UserFactory = Callable[..., Awaitable[User]]


@pytest_asyncio.fixture
async def make_user(dynamodb_table: Any, church: Church) -> UserFactory:
    """Factory creating users in the test church, all sharing ``TEST_PASSWORD``."""
    repository = UserRepository(dynamodb_table)
    password_hash = get_password_hash(TEST_PASSWORD)
    counter = 0

    async def factory(
        role: Role = Role.MEMBER,
        church_id: str | None = None,
        email: str | None = None,
        church_ids: list[str] | None = None,
        is_active: bool = True,
    ) -> User:
        nonlocal counter
        counter += 1
        church_id = church_id or church.id
        return await repository.create(
            UserData(
                church_id=church_id,
                church_ids=church_ids or [church_id],
                email=email or f"{role.value}{counter}@example.com",
                first_name=role.value.title(),
                last_name=f"Number{counter}",
                role=role,
                is_active=is_active,
            ),
            password_hash=password_hash,
        )

    return factory


@pytest_asyncio.fixture
async def admin(make_user: UserFactory) -> User:
    return await make_user(Role.ADMIN)


@pytest_asyncio.fixture
async def pastor(make_user: UserFactory) -> User:
    return await make_user(Role.PASTOR)


@pytest_asyncio.fixture
async def teacher(make_user: UserFactory) -> User:
    return await make_user(Role.TEACHER)


@pytest_asyncio.fixture
async def other_teacher(make_user: UserFactory) -> User:
    return await make_user(Role.TEACHER)


@pytest_asyncio.fixture
async def member(make_user: UserFactory) -> User:
    return await make_user(Role.MEMBER)


@pytest_asyncio.fixture
async def student_user(make_user: UserFactory) -> User:
    return await make_user(Role.STUDENT)


@pytest_asyncio.fixture
async def platform_admin(dynamodb_table: Any) -> User:
    """Platform administrator living in the SYSTEM partition."""
    return await UserRepository(dynamodb_table).create(
        UserData(
            church_id="SYSTEM",
            email="root@example.com",
            first_name="Platform",
            last_name="Admin",
            role=Role.PLATFORM_ADMIN,
        ),
        password_hash=get_password_hash(TEST_PASSWORD),
    )


StudentFactory = Callable[..., Awaitable[Student]]


@pytest_asyncio.fixture
async def make_student(dynamodb_table: Any, church: Church) -> StudentFactory:
    """Factory enrolling a user as a student of the test church."""
    repository = StudentRepository(dynamodb_table)

    async def factory(user: User, teacher: User | None = None) -> Student:
        return await repository.create(
            StudentData(
                church_id=user.church_id,
                user_id=user.id,
                assigned_teacher_id=teacher.id if teacher else None,
                start_date=utcnow(),
            )
        )

    return factory


@pytest_asyncio.fixture
async def student(make_student: StudentFactory, student_user: User, teacher: User) -> Student:
    """Student record assigned to ``teacher``."""
    return await make_student(student_user, teacher)


@pytest.fixture
def auth_headers() -> Callable[..., dict[str, str]]:
    """Build bearer headers for a user, optionally bound to another church."""

    def build(user: User, church_id: str | None = None) -> dict[str, str]:
        token = create_access_token(token_payload(user, church_id))
        return {"Authorization": f"Bearer {token}"}

    return build
