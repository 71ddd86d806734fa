from datetime import datetime, timezone

import pytest

from .conftest import API


@pytest.mark.parametrize("role", ["student", "teacher", "parent", "admin"])
async def test_dashboards_are_role_gated(client, api, role):
    student = await api.register("student")

    response = await client.get(f"{API}/dashboard/{role}", headers=student.headers)

    assert response.status_code == (200 if role == "student" else 403)


async def test_student_dashboard(client, api, teacher, student, course):
    await api.enroll(student, course["id"])
    await api.create_assignment(teacher, course["id"])
    await api.create_session(teacher, course["id"])

    response = await client.get(f"{API}/dashboard/student", headers=student.headers)

    assert response.status_code == 200
    body = response.json()
    assert body["stats"]["enrolled_courses"] == 1
    assert body["stats"]["pending_assignments"] == 1
    assert body["stats"]["upcoming_sessions"] == 1
    assert body["stats"]["unread_notifications"] == 1
    assert body["recent_assignments"][0]["submission_status"] == "not_submitted"


async def test_teacher_dashboard(client, api, teacher, student, course):
    await api.enroll(student, course["id"])
    assignment = await api.create_assignment(teacher, course["id"])
    await client.post(
        f"{API}/assignments/{assignment['id']}/submit", json={"submission_text": "done"}, headers=student.headers
    )

    response = await client.get(f"{API}/dashboard/teacher", headers=teacher.headers)

    assert response.status_code == 200
    body = response.json()
    assert body["stats"]["active_courses"] == 1
    assert body["stats"]["total_students"] == 1
    assert body["stats"]["pending_grading"] == 1
    assert body["recent_activity"][0]["student_name"] == "Arnold"


async def test_parent_dashboard(client, api, student, course):
    admin = await api.admin()
    parent = await api.register("parent")
    await api.link_parent(admin, parent, student)
    await api.enroll(student, course["id"])

    response = await client.get(f"{API}/dashboard/parent", headers=parent.headers)

    assert response.status_code == 200
    assert response.json()["stats"]["children"] == 1
    assert response.json()["children"][0]["enrolled_courses"] == 1


async def test_admin_dashboard(client, api, teacher, student, course):
    admin = await api.admin()
    await api.enroll(student, course["id"])

    response = await client.get(f"{API}/dashboard/admin", headers=admin.headers)

    assert response.status_code == 200
    stats = response.json()["stats"]
    assert stats["total_students"] == 1
    assert stats["total_teachers"] == 1
    assert stats["active_courses"] == 1
    assert stats["active_enrollments"] == 1
    assert stats["recent_registrations"] == 3
    assert response.json()["course_stats"][0]["active_enrollments"] == 1


async def test_course_and_platform_analytics(client, api, teacher, student, course):
    admin = await api.admin()
    await api.enroll(student, course["id"])
    outsider = await api.register("teacher")

    course_stats = await client.get(f"{API}/analytics/courses/{course['id']}", headers=teacher.headers)
    denied = await client.get(f"{API}/analytics/courses/{course['id']}", headers=outsider.headers)
    platform = await client.get(f"{API}/analytics/platform", headers=admin.headers)
    platform_denied = await client.get(f"{API}/analytics/platform", headers=teacher.headers)

    assert course_stats.json()["enrollments"]["active"] == 1
    assert denied.status_code == 403
    assert platform.json()["users"]["teacher"]["total"] == 2
    assert platform.json()["enrollments"]["total"] == 1
    assert platform_denied.status_code == 403


async def test_user_growth_counts_active_signups_by_month(client, api, teacher, student):
    admin = await api.admin()
    dropout = await api.register("student")
    await client.delete(f"{API}/users/{dropout.id}", headers=admin.headers)

    response = await client.get(f"{API}/analytics/user-growth", headers=admin.headers)
    denied = await client.get(f"{API}/analytics/user-growth", headers=teacher.headers)

    assert response.status_code == 200
    growth = response.json()["user_growth"]
    assert growth == [{"month": datetime.now(timezone.utc).strftime("%Y-%m"), "count": 3}]
    assert denied.status_code == 403


async def test_course_popularity_ranks_active_courses(client, api, teacher, student):
    admin = await api.admin()
    quiet = await api.create_course(teacher, title="Latin")
    busy = await api.create_course(teacher, title="Robotics")
    retired = await api.create_course(teacher, title="Typing")
    classmate = await api.register("student")
    for account in (student, classmate):
        await api.enroll(account, busy["id"])
    await api.enroll(student, quiet["id"])
    await api.enroll(classmate, retired["id"])
    await client.delete(f"{API}/courses/{retired['id']}", headers=admin.headers)

    response = await client.get(f"{API}/analytics/course-popularity", headers=admin.headers)

    assert response.status_code == 200
    ranking = response.json()["course_popularity"]
    assert [(c["title"], c["enrollment_count"]) for c in ranking] == [("Robotics", 2), ("Latin", 1)]
