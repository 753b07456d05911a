"""Tests for Bible study endpoints."""

import pytest
from httpx import AsyncClient

from discipleship.core.permissions import Role
from discipleship.schemas.students import Student
from discipleship.schemas.users import User


@pytest.fixture
def study_payload(student: Student) -> dict:
    return {
        "title": "Tuesday night study",
        "curriculum": "search-for-truth",
        "studentIds": [student.id],
        "scheduledDay": "Tuesday",
        "scheduledTime": "19:00",
        "location": "Fellowship hall",
    }


@pytest.mark.asyncio
class TestCreateStudy:
    async def test_create_seeds_lessons(
        self,
        client: AsyncClient,
        teacher: User,
        study_payload: dict,
        auth_headers,
    ) -> None:
        response = await client.post("/api/v1/studies", json=study_payload, headers=auth_headers(teacher))

        assert response.status_code == 201
        study = response.json()["data"]
        assert study["teacherId"] == teacher.id
        assert study["status"] == "in-progress"
        assert study["studentIds"] == study_payload["studentIds"]

        lessons = await client.get(f"/api/v1/lessons/study/{study['id']}", headers=auth_headers(teacher))
        data = lessons.json()["data"]
        assert [lesson["lessonNumber"] for lesson in data] == list(range(1, 13))
        assert all(lesson["status"] == "not-started" for lesson in data)

    async def test_custom_curriculum_has_no_lessons(
        self,
        client: AsyncClient,
        teacher: User,
        study_payload: dict,
        auth_headers,
    ) -> None:
        response = await client.post(
            "/api/v1/studies",
            json={**study_payload, "curriculum": "custom"},
            headers=auth_headers(teacher),
        )
        study_id = response.json()["data"]["id"]

        lessons = await client.get(f"/api/v1/lessons/study/{study_id}", headers=auth_headers(teacher))
        assert lessons.json()["data"] == []

    @pytest.mark.parametrize(
        "override",
        [{"title": "x"}, {"studentIds": []}, {"curriculum": "unknown"}],
    )
    async def test_invalid_payload(
        self,
        client: AsyncClient,
        teacher: User,
        study_payload: dict,
        auth_headers,
        override: dict,
    ) -> None:
        response = await client.post(
            "/api/v1/studies",
            json={**study_payload, **override},
            headers=auth_headers(teacher),
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_unknown_student(
        self,
        client: AsyncClient,
        teacher: User,
        study_payload: dict,
        auth_headers,
    ) -> None:
        response = await client.post(
            "/api/v1/studies",
            json={**study_payload, "studentIds": ["ghost"]},
            headers=auth_headers(teacher),
        )
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "STUDENT_NOT_FOUND"

    async def test_members_cannot_create(
        self,
        client: AsyncClient,
        member: User,
        study_payload: dict,
        auth_headers,
    ) -> None:
        response = await client.post("/api/v1/studies", json=study_payload, headers=auth_headers(member))
        assert response.status_code == 403


@pytest.mark.asyncio
class TestStudyAccess:
    async def test_read_and_list_scopes(
        self,
        client: AsyncClient,
        teacher: User,
        other_teacher: User,
        pastor: User,
        student_user: User,
        study_payload: dict,
        auth_headers,
    ) -> None:
        created = await client.post("/api/v1/studies", json=study_payload, headers=auth_headers(teacher))
        study_id = created.json()["data"]["id"]

        assert (await client.get(f"/api/v1/studies/{study_id}", headers=auth_headers(teacher))).status_code == 200
        assert (await client.get(f"/api/v1/studies/{study_id}", headers=auth_headers(pastor))).status_code == 200
        assert (
            await client.get(f"/api/v1/studies/{study_id}", headers=auth_headers(student_user))
        ).status_code == 200
        assert (
            await client.get(f"/api/v1/studies/{study_id}", headers=auth_headers(other_teacher))
        ).status_code == 403

        mine = await client.get("/api/v1/studies", headers=auth_headers(teacher))
        assert [s["id"] for s in mine.json()["data"]] == [study_id]
        theirs = await client.get("/api/v1/studies", headers=auth_headers(other_teacher))
        assert theirs.json()["data"] == []
        enrolled = await client.get("/api/v1/studies", headers=auth_headers(student_user))
        assert [s["id"] for s in enrolled.json()["data"]] == [study_id]

    async def test_member_without_student_record_sees_nothing(
        self,
        client: AsyncClient,
        teacher: User,
        member: User,
        study_payload: dict,
        auth_headers,
    ) -> None:
        await client.post("/api/v1/studies", json=study_payload, headers=auth_headers(teacher))

        response = await client.get("/api/v1/studies", headers=auth_headers(member))
        assert response.status_code == 200
        assert response.json() == {"success": True, "data": [], "nextCursor": None}

    async def test_status_and_curriculum_filters(
        self,
        client: AsyncClient,
        teacher: User,
        pastor: User,
        study_payload: dict,
        auth_headers,
    ) -> None:
        first = await client.post("/api/v1/studies", json=study_payload, headers=auth_headers(teacher))
        await client.post(
            "/api/v1/studies",
            json={**study_payload, "curriculum": "first-principles"},
            headers=auth_headers(teacher),
        )
        await client.post(
            f"/api/v1/studies/{first.json()['data']['id']}/status",
            json={"status": "paused"},
            headers=auth_headers(teacher),
        )

        paused = await client.get("/api/v1/studies", params={"status": "paused"}, headers=auth_headers(pastor))
        assert [s["id"] for s in paused.json()["data"]] == [first.json()["data"]["id"]]

        principles = await client.get(
            "/api/v1/studies",
            params={"curriculum": "first-principles"},
            headers=auth_headers(pastor),
        )
        assert [s["curriculum"] for s in principles.json()["data"]] == ["first-principles"]

    async def test_studies_of_a_student(
        self,
        client: AsyncClient,
        teacher: User,
        other_teacher: User,
        student: Student,
        study_payload: dict,
        auth_headers,
    ) -> None:
        created = await client.post("/api/v1/studies", json=study_payload, headers=auth_headers(teacher))

        response = await client.get(f"/api/v1/studies/student/{student.id}", headers=auth_headers(teacher))
        assert [s["id"] for s in response.json()["data"]] == [created.json()["data"]["id"]]

        denied = await client.get(f"/api/v1/studies/student/{student.id}", headers=auth_headers(other_teacher))
        assert denied.status_code == 403


@pytest.mark.asyncio
class TestUpdateStudy:
    async def test_owner_updates(
        self,
        client: AsyncClient,
        teacher: User,
        study_payload: dict,
        auth_headers,
    ) -> None:
        created = await client.post("/api/v1/studies", json=study_payload, headers=auth_headers(teacher))
        study_id = created.json()["data"]["id"]

        response = await client.patch(
            f"/api/v1/studies/{study_id}",
            json={"location": None, "title": "Thursday night study"},
            headers=auth_headers(teacher),
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["title"] == "Thursday night study"
        assert data["location"] is None

    async def test_title_cannot_be_nulled(
        self,
        client: AsyncClient,
        teacher: User,
        study_payload: dict,
        auth_headers,
    ) -> None:
        created = await client.post("/api/v1/studies", json=study_payload, headers=auth_headers(teacher))
        response = await client.patch(
            f"/api/v1/studies/{created.json()['data']['id']}",
            json={"title": None},
            headers=auth_headers(teacher),
        )
        assert response.status_code == 400

    async def test_other_teacher_cannot_update(
        self,
        client: AsyncClient,
        teacher: User,
        other_teacher: User,
        study_payload: dict,
        auth_headers,
    ) -> None:
        created = await client.post("/api/v1/studies", json=study_payload, headers=auth_headers(teacher))
        response = await client.post(
            f"/api/v1/studies/{created.json()['data']['id']}/status",
            json={"status": "completed"},
            headers=auth_headers(other_teacher),
        )
        assert response.status_code == 403

    async def test_enroll_more_students(
        self,
        client: AsyncClient,
        teacher: User,
        student: Student,
        make_user,
        make_student,
        study_payload: dict,
        auth_headers,
    ) -> None:
        created = await client.post("/api/v1/studies", json=study_payload, headers=auth_headers(teacher))
        newcomer = await make_student(await make_user(Role.STUDENT), teacher)

        response = await client.patch(
            f"/api/v1/studies/{created.json()['data']['id']}",
            json={"studentIds": [student.id, newcomer.id]},
            headers=auth_headers(teacher),
        )

        assert response.status_code == 200
        assert response.json()["data"]["studentIds"] == [student.id, newcomer.id]
