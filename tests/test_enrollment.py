from uuid import UUID

from sqlalchemy import select, func

from eduplatform.core.database import AsyncSessionLocal
from eduplatform.models import Enrollment

from .conftest import API


async def enrollment_rows(student_id, course_id) -> int:
    async with AsyncSessionLocal() as db:
        stmt = select(func.count()).select_from(Enrollment).where(
            Enrollment.student_id == UUID(student_id),
            Enrollment.course_id == UUID(course_id)
        )
        return (await db.execute(stmt)).scalar_one()


async def test_enroll_creates_active_enrollment(api, student, course):
    response = await api.enroll(student, course["id"])

    assert response.status_code == 201
    enrollment = response.json()["enrollment"]
    assert enrollment["status"] == "active"
    assert enrollment["progress_percentage"] == 0


async def test_enrolling_twice_conflicts(api, student, course):
    await api.enroll(student, course["id"])

    response = await api.enroll(student, course["id"])

    assert response.status_code == 409
    assert response.json()["error"] == "Already enrolled in this course"


async def test_capacity_is_enforced(api, teacher):
    course = await api.create_course(teacher, max_students=1)
    first = await api.register("student")
    second = await api.register("student")

    ok = await api.enroll(first, course["id"])
    full = await api.enroll(second, course["id"])

    assert ok.status_code == 201
    assert full.status_code == 400
    assert full.json()["error"] == "Course is at maximum capacity"


async def test_reenrolling_after_drop_reuses_the_row(client, api, student, course):
    created = await api.enroll(student, course["id"])
    drop = await client.post(f"{API}/students/courses/{course['id']}/drop", headers=student.headers)
    assert drop.status_code == 200
    assert drop.json()["enrollment"]["status"] == "dropped"

    again = await api.enroll(student, course["id"])

    assert again.status_code == 200
    assert again.json()["enrollment"]["id"] == created.json()["enrollment"]["id"]
    assert again.json()["enrollment"]["status"] == "active"
    assert await enrollment_rows(student.id, course["id"]) == 1


async def test_reactivation_respects_capacity(client, api, teacher):
    course = await api.create_course(teacher, max_students=1)
    first = await api.register("student")
    second = await api.register("student")

    await api.enroll(first, course["id"])
    await client.post(f"{API}/students/courses/{course['id']}/drop", headers=first.headers)
    await api.enroll(second, course["id"])

    response = await api.enroll(first, course["id"])

    assert response.status_code == 400


async def test_missing_or_inactive_course_is_404(client, api, student, course):
    admin = await api.admin()
    await client.delete(f"{API}/courses/{course['id']}", headers=admin.headers)

    inactive = await api.enroll(student, course["id"])
    missing = await api.enroll(student, "00000000-0000-0000-0000-000000000000")

    assert inactive.status_code == 404
    assert missing.status_code == 404


async def test_only_students_enroll(api, teacher, course):
    response = await api.enroll(teacher, course["id"])

    assert response.status_code == 403


async def test_drop_without_enrollment_is_404(client, student, course):
    response = await client.post(f"{API}/students/courses/{course['id']}/drop", headers=student.headers)

    assert response.status_code == 404


async def test_enrollment_sends_notification(client, api, student, course):
    await api.enroll(student, course["id"])

    response = await client.get(f"{API}/notifications", headers=student.headers)

    assert response.json()["total"] == 1
    assert response.json()["items"][0]["notification_type"] == "success"


async def test_my_courses_and_available_courses(client, api, teacher, student, course):
    other = await api.create_course(teacher, title="Geometry")
    await api.enroll(student, course["id"])

    mine = await client.get(f"{API}/students/courses", headers=student.headers)
    available = await client.get(f"{API}/students/available-courses", headers=student.headers)

    assert [c["course"]["id"] for c in mine.json()["courses"]] == [course["id"]]
    assert [c["id"] for c in available.json()["items"]] == [other["id"]]


async def test_course_details_require_enrollment(client, api, student, course):
    before = await client.get(f"{API}/students/courses/{course['id']}", headers=student.headers)
    await api.enroll(student, course["id"])
    after = await client.get(f"{API}/students/courses/{course['id']}", headers=student.headers)

    assert before.status_code == 404
    assert after.status_code == 200
    assert after.json()["enrollment"]["status"] == "active"


async def test_teacher_updates_progress(client, api, teacher, student, course):
    enrollment = (await api.enroll(student, course["id"])).json()["enrollment"]
    outsider = await api.register("teacher")

    denied = await client.put(
        f"{API}/courses/enrollments/{enrollment['id']}/progress",
        json={"progress_percentage": 50},
        headers=outsider.headers
    )
    out_of_range = await client.put(
        f"{API}/courses/enrollments/{enrollment['id']}/progress",
        json={"progress_percentage": 150},
        headers=teacher.headers
    )
    ok = await client.put(
        f"{API}/courses/enrollments/{enrollment['id']}/progress",
        json={"progress_percentage": 75.5, "final_grade": 88},
        headers=teacher.headers
    )

    assert denied.status_code == 403
    assert out_of_range.status_code == 400
    assert ok.status_code == 200
    assert ok.json()["progress_percentage"] == 75.5
    assert ok.json()["final_grade"] == 88


async def test_admin_unenrolls_student(client, api, student, course):
    admin = await api.admin()
    await api.enroll(student, course["id"])

    response = await client.delete(f"{API}/courses/{course['id']}/students/{student.id}", headers=admin.headers)

    assert response.status_code == 200
    assert response.json()["status"] == "dropped"
