"""Tests for student endpoints and journey tracking."""

import pytest
from httpx import AsyncClient

from discipleship.core.permissions import Role
from discipleship.schemas.churches import Church
from discipleship.schemas.students import Student
from discipleship.schemas.users import User


@pytest.mark.asyncio
class TestCreateStudent:
    """Enrollment and teacher assignment."""

    async def test_teacher_is_assigned_automatically(
        self,
        client: AsyncClient,
        teacher: User,
        member: User,
        auth_headers,
    ) -> None:
        response = await client.post(
            "/api/v1/students",
            json={"userId": member.id},
            headers=auth_headers(teacher),
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["assignedTeacherId"] == teacher.id
        assert data["userId"] == member.id
        assert data["newBirthStatus"]["waterBaptism"]["completed"] is False
        assert set(data["firstStepsProgress"]) >= {"step1_foundations", "step8_evangelism"}
        assert "completionDate" not in data or data["completionDate"] is None

    async def test_teacher_cannot_assign_someone_else(
        self,
        client: AsyncClient,
        teacher: User,
        other_teacher: User,
        member: User,
        auth_headers,
    ) -> None:
        response = await client.post(
            "/api/v1/students",
            json={"userId": member.id, "assignedTeacherId": other_teacher.id},
            headers=auth_headers(teacher),
        )
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"

    async def test_pastor_assigns_a_teacher(
        self,
        client: AsyncClient,
        pastor: User,
        teacher: User,
        member: User,
        auth_headers,
    ) -> None:
        response = await client.post(
            "/api/v1/students",
            json={"userId": member.id, "assignedTeacherId": teacher.id, "notes": "Visitor"},
            headers=auth_headers(pastor),
        )
        assert response.status_code == 201
        assert response.json()["data"]["assignedTeacherId"] == teacher.id

    async def test_pastor_must_name_a_teacher(
        self,
        client: AsyncClient,
        pastor: User,
        member: User,
        auth_headers,
    ) -> None:
        response = await client.post(
            "/api/v1/students",
            json={"userId": member.id},
            headers=auth_headers(pastor),
        )
        assert response.status_code == 400

    async def test_user_must_exist_in_church(
        self,
        client: AsyncClient,
        teacher: User,
        auth_headers,
    ) -> None:
        response = await client.post(
            "/api/v1/students",
            json={"userId": "ghost"},
            headers=auth_headers(teacher),
        )
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "USER_NOT_FOUND"

    async def test_members_cannot_enroll(
        self,
        client: AsyncClient,
        member: User,
        auth_headers,
    ) -> None:
        response = await client.post(
            "/api/v1/students",
            json={"userId": member.id},
            headers=auth_headers(member),
        )
        assert response.status_code == 403


@pytest.mark.asyncio
class TestStudentAccess:
    """Reading and listing students."""

    async def test_assigned_teacher_reads_student(
        self,
        client: AsyncClient,
        teacher: User,
        student: Student,
        student_user: User,
        auth_headers,
    ) -> None:
        response = await client.get(f"/api/v1/students/{student.id}", headers=auth_headers(teacher))

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == student.id
        assert data["user"]["id"] == student_user.id
        assert data["newBirthState"] == "not-started"

    async def test_other_teacher_is_forbidden(
        self,
        client: AsyncClient,
        other_teacher: User,
        student: Student,
        auth_headers,
    ) -> None:
        response = await client.get(f"/api/v1/students/{student.id}", headers=auth_headers(other_teacher))
        assert response.status_code == 403

    async def test_student_reads_own_record(
        self,
        client: AsyncClient,
        student_user: User,
        student: Student,
        auth_headers,
    ) -> None:
        response = await client.get(f"/api/v1/students/{student.id}", headers=auth_headers(student_user))
        assert response.status_code == 200

    async def test_other_tenant_sees_not_found(
        self,
        client: AsyncClient,
        make_user,
        other_church: Church,
        student: Student,
        auth_headers,
    ) -> None:
        outsider = await make_user(Role.PASTOR, church_id=other_church.id)
        response = await client.get(f"/api/v1/students/{student.id}", headers=auth_headers(outsider))
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "STUDENT_NOT_FOUND"

    async def test_teacher_lists_only_assigned_students(
        self,
        client: AsyncClient,
        teacher: User,
        other_teacher: User,
        make_user,
        make_student,
        auth_headers,
    ) -> None:
        mine = await make_student(await make_user(Role.STUDENT), teacher)
        await make_student(await make_user(Role.STUDENT), other_teacher)

        response = await client.get(
            "/api/v1/students",
            params={"teacherId": other_teacher.id},
            headers=auth_headers(teacher),
        )

        assert response.status_code == 200
        body = response.json()
        assert [s["id"] for s in body["data"]] == [mine.id]
        assert body["nextCursor"] is None

    async def test_pastor_lists_the_church(
        self,
        client: AsyncClient,
        pastor: User,
        teacher: User,
        other_teacher: User,
        make_user,
        make_student,
        auth_headers,
    ) -> None:
        await make_student(await make_user(Role.STUDENT), teacher)
        await make_student(await make_user(Role.STUDENT), other_teacher)

        response = await client.get("/api/v1/students", headers=auth_headers(pastor))
        assert len(response.json()["data"]) == 2

        filtered = await client.get(
            "/api/v1/students",
            params={"teacherId": teacher.id},
            headers=auth_headers(pastor),
        )
        assert len(filtered.json()["data"]) == 1

    async def test_list_embeds_users(
        self,
        client: AsyncClient,
        teacher: User,
        student_user: User,
        student: Student,
        auth_headers,
    ) -> None:
        response = await client.get("/api/v1/students", headers=auth_headers(teacher))

        assert response.status_code == 200
        [listed] = response.json()["data"]
        assert listed["id"] == student.id
        assert listed["user"]["id"] == student_user.id
        assert listed["user"]["email"] == student_user.email
        assert "passwordHash" not in listed["user"]
        assert listed["newBirthState"] == "not-started"

    async def test_student_lists_self(
        self,
        client: AsyncClient,
        student_user: User,
        student: Student,
        teacher: User,
        make_user,
        make_student,
        auth_headers,
    ) -> None:
        await make_student(await make_user(Role.STUDENT), teacher)

        response = await client.get("/api/v1/students", headers=auth_headers(student_user))
        assert [s["id"] for s in response.json()["data"]] == [student.id]

    async def test_limit_is_bounded(self, client: AsyncClient, pastor: User, auth_headers) -> None:
        response = await client.get(
            "/api/v1/students",
            params={"limit": 101},
            headers=auth_headers(pastor),
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_platform_admin_needs_a_tenant(
        self,
        client: AsyncClient,
        platform_admin: User,
        auth_headers,
    ) -> None:
        response = await client.get("/api/v1/students", headers=auth_headers(platform_admin))
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "TENANT_REQUIRED"

    async def test_platform_admin_after_switching(
        self,
        client: AsyncClient,
        platform_admin: User,
        church: Church,
        student: Student,
        auth_headers,
    ) -> None:
        response = await client.get(
            "/api/v1/students",
            headers=auth_headers(platform_admin, church_id=church.id),
        )
        assert response.status_code == 200
        assert [s["id"] for s in response.json()["data"]] == [student.id]


@pytest.mark.asyncio
class TestUpdateStudent:
    async def test_teacher_updates_notes(
        self,
        client: AsyncClient,
        teacher: User,
        student: Student,
        auth_headers,
    ) -> None:
        response = await client.patch(
            f"/api/v1/students/{student.id}",
            json={"notes": "Attends Wednesday nights"},
            headers=auth_headers(teacher),
        )
        assert response.status_code == 200
        assert response.json()["data"]["notes"] == "Attends Wednesday nights"

    async def test_only_assigned_teacher_or_leader_updates_notes(
        self,
        client: AsyncClient,
        other_teacher: User,
        pastor: User,
        student: Student,
        auth_headers,
    ) -> None:
        body = {"notes": "Moved to the Sunday class"}

        denied = await client.patch(
            f"/api/v1/students/{student.id}",
            json=body,
            headers=auth_headers(other_teacher),
        )
        assert denied.status_code == 403
        assert denied.json()["error"]["code"] == "FORBIDDEN"

        allowed = await client.patch(
            f"/api/v1/students/{student.id}",
            json=body,
            headers=auth_headers(pastor),
        )
        assert allowed.status_code == 200
        assert allowed.json()["data"]["notes"] == "Moved to the Sunday class"

    async def test_teacher_cannot_reassign(
        self,
        client: AsyncClient,
        teacher: User,
        other_teacher: User,
        student: Student,
        auth_headers,
    ) -> None:
        response = await client.patch(
            f"/api/v1/students/{student.id}",
            json={"assignedTeacherId": other_teacher.id},
            headers=auth_headers(teacher),
        )
        assert response.status_code == 403

    async def test_pastor_reassigns(
        self,
        client: AsyncClient,
        pastor: User,
        other_teacher: User,
        student: Student,
        auth_headers,
    ) -> None:
        response = await client.patch(
            f"/api/v1/students/{student.id}",
            json={"assignedTeacherId": other_teacher.id},
            headers=auth_headers(pastor),
        )
        assert response.status_code == 200
        assert response.json()["data"]["assignedTeacherId"] == other_teacher.id

    async def test_identity_fields_are_rejected(
        self,
        client: AsyncClient,
        pastor: User,
        student: Student,
        auth_headers,
    ) -> None:
        response = await client.patch(
            f"/api/v1/students/{student.id}",
            json={"churchId": "elsewhere"},
            headers=auth_headers(pastor),
        )
        assert response.status_code == 400

    async def test_new_birth_status_patch_sets_completion(
        self,
        client: AsyncClient,
        pastor: User,
        student: Student,
        auth_headers,
    ) -> None:
        response = await client.patch(
            f"/api/v1/students/{student.id}",
            json={
                "newBirthStatus": {
                    "waterBaptism": {"completed": True, "date": "2026-10-01T10:00:00Z"},
                    "holyGhost": {"completed": True, "date": "2026-10-02T10:00:00Z"},
                }
            },
            headers=auth_headers(pastor),
        )
        assert response.status_code == 200
        assert response.json()["data"]["completionDate"] is not None


@pytest.mark.asyncio
class TestNewBirth:
    """The New Birth state machine over HTTP."""

    async def test_full_journey(
        self,
        client: AsyncClient,
        teacher: User,
        student: Student,
        auth_headers,
    ) -> None:
        url = f"/api/v1/students/{student.id}/new-birth"
        headers = auth_headers(teacher)

        first = await client.post(
            url,
            json={"milestone": "holyGhost", "completed": True, "notes": "Sunday night service"},
            headers=headers,
        )
        assert first.status_code == 200
        data = first.json()["data"]
        assert data["newBirthStatus"]["holyGhost"]["completed"] is True
        assert data["newBirthStatus"]["holyGhost"]["notes"] == "Sunday night service"
        assert data.get("completionDate") is None

        second = await client.post(
            url,
            json={"milestone": "waterBaptism", "completed": True, "date": "2026-10-04T09:00:00"},
            headers=headers,
        )
        data = second.json()["data"]
        assert data["newBirthStatus"]["waterBaptism"]["date"].startswith("2026-10-04T09:00:00")
        completion = data["completionDate"]
        assert completion is not None

        repeat = await client.post(
            url,
            json={"milestone": "waterBaptism", "completed": True},
            headers=headers,
        )
        data = repeat.json()["data"]
        assert data["completionDate"] == completion
        assert data["newBirthStatus"]["waterBaptism"]["date"].startswith("2026-10-04T09:00:00")

        undo = await client.post(
            url,
            json={"milestone": "holyGhost", "completed": False},
            headers=headers,
        )
        data = undo.json()["data"]
        assert data["newBirthStatus"]["holyGhost"]["completed"] is False
        assert data.get("completionDate") is None

    async def test_unknown_milestone(
        self,
        client: AsyncClient,
        teacher: User,
        student: Student,
        auth_headers,
    ) -> None:
        response = await client.post(
            f"/api/v1/students/{student.id}/new-birth",
            json={"milestone": "confirmation", "completed": True},
            headers=auth_headers(teacher),
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_student_cannot_record_milestones(
        self,
        client: AsyncClient,
        student_user: User,
        student: Student,
        auth_headers,
    ) -> None:
        response = await client.post(
            f"/api/v1/students/{student.id}/new-birth",
            json={"milestone": "holyGhost", "completed": True},
            headers=auth_headers(student_user),
        )
        assert response.status_code == 403


@pytest.mark.asyncio
class TestFirstSteps:
    async def test_complete_a_step(
        self,
        client: AsyncClient,
        teacher: User,
        student: Student,
        auth_headers,
    ) -> None:
        response = await client.post(
            f"/api/v1/students/{student.id}/first-steps/step4_prayer",
            json={"completed": True, "mentorId": teacher.id, "notes": "Prays daily"},
            headers=auth_headers(teacher),
        )

        assert response.status_code == 200
        step = response.json()["data"]["firstStepsProgress"]["step4_prayer"]
        assert step["started"] is True
        assert step["completed"] is True
        assert step["mentorId"] == teacher.id
        assert step["startedDate"] is not None
        assert step["completedDate"] is not None

    async def test_invalid_step(
        self,
        client: AsyncClient,
        teacher: User,
        student: Student,
        auth_headers,
    ) -> None:
        response = await client.post(
            f"/api/v1/students/{student.id}/first-steps/step9_fasting",
            json={"started": True},
            headers=auth_headers(teacher),
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_STEP"


@pytest.mark.asyncio
class TestStats:
    async def test_new_birth_stats(
        self,
        client: AsyncClient,
        pastor: User,
        teacher: User,
        student: Student,
        auth_headers,
    ) -> None:
        await client.post(
            f"/api/v1/students/{student.id}/new-birth",
            json={"milestone": "waterBaptism", "completed": True},
            headers=auth_headers(teacher),
        )

        response = await client.get("/api/v1/students/stats/new-birth", headers=auth_headers(pastor))

        assert response.status_code == 200
        assert response.json()["data"] == {
            "totalStudents": 1,
            "awaitingBaptism": 0,
            "awaitingHolyGhost": 1,
            "completedNewBirth": 0,
            "baptismsThisMonth": 1,
            "holyGhostThisMonth": 0,
        }

    async def test_first_steps_stats(
        self,
        client: AsyncClient,
        pastor: User,
        teacher: User,
        student: Student,
        auth_headers,
    ) -> None:
        await client.post(
            f"/api/v1/students/{student.id}/first-steps/step1_foundations",
            json={"completed": True},
            headers=auth_headers(teacher),
        )

        response = await client.get("/api/v1/students/stats/first-steps", headers=auth_headers(pastor))

        data = response.json()["data"]
        assert data["totalStudents"] == 1
        assert data["stepProgress"]["step1_foundations"] == {"started": 1, "completed": 1}
        assert data["averageCompletion"] == 13
        assert data["fullyCompleted"] == 0

    async def test_teachers_cannot_view_church_reports(
        self,
        client: AsyncClient,
        teacher: User,
        auth_headers,
    ) -> None:
        response = await client.get("/api/v1/students/stats/new-birth", headers=auth_headers(teacher))
        assert response.status_code == 403
