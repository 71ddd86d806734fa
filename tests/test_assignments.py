from uuid import UUID

from sqlalchemy import select, func

from eduplatform.core.database import AsyncSessionLocal
from eduplatform.models import Submission

from .conftest import API, hours_from_now, iso


async def submit(client, student, assignment_id, text="My answer"):
    return await client.post(
        f"{API}/assignments/{assignment_id}/submit",
        json={"submission_text": text},
        headers=student.headers
    )


async def test_submission_requires_active_enrollment(client, api, teacher, student, course):
    assignment = await api.create_assignment(teacher, course["id"])

    response = await submit(client, student, assignment["id"])

    assert response.status_code == 404


async def test_resubmission_updates_in_place(client, api, teacher, student, course):
    assignment = await api.create_assignment(teacher, course["id"])
    await api.enroll(student, course["id"])

    first = await submit(client, student, assignment["id"], "draft")
    second = await submit(client, student, assignment["id"], "final")

    assert first.status_code == 201
    assert second.status_code == 200
    assert first.json()["submission"]["id"] == second.json()["submission"]["id"]
    assert second.json()["submission"]["submission_text"] == "final"
    assert first.json()["is_past_due"] is False

    async with AsyncSessionLocal() as db:
        rows = (await db.execute(
            select(func.count()).select_from(Submission).where(Submission.assignment_id == UUID(assignment["id"]))
        )).scalar_one()
    assert rows == 1


async def test_late_submission_is_accepted_and_flagged(client, api, teacher, student, course):
    assignment = await api.create_assignment(teacher, course["id"], due_date=iso(hours_from_now(-2)))
    await api.enroll(student, course["id"])

    response = await submit(client, student, assignment["id"])

    assert response.status_code == 201
    assert response.json()["is_past_due"] is True


async def test_student_portal_submit_route(client, api, teacher, student, course):
    assignment = await api.create_assignment(teacher, course["id"])
    await api.enroll(student, course["id"])

    response = await client.post(
        f"{API}/students/assignments/{assignment['id']}/submit",
        json={"file_url": "https://files.example.com/hw1.pdf"},
        headers=student.headers
    )

    assert response.status_code == 201
    assert response.json()["submission"]["file_url"] == "https://files.example.com/hw1.pdf"


async def test_grading_bounds_and_notification(client, api, teacher, student, course):
    assignment = await api.create_assignment(teacher, course["id"], max_points=50)
    await api.enroll(student, course["id"])
    submission = (await submit(client, student, assignment["id"])).json()["submission"]

    too_high = await client.put(
        f"{API}/assignments/submissions/{submission['id']}/grade", json={"grade": 51}, headers=teacher.headers
    )
    negative = await client.put(
        f"{API}/assignments/submissions/{submission['id']}/grade", json={"grade": -1}, headers=teacher.headers
    )
    ok = await client.put(
        f"{API}/assignments/submissions/{submission['id']}/grade",
        json={"grade": 45, "feedback": "Nice work"},
        headers=teacher.headers
    )

    assert too_high.status_code == 400
    assert negative.status_code == 400
    assert ok.status_code == 200
    graded = ok.json()
    assert graded["grade"] == 45
    assert graded["graded_by_id"] == teacher.id
    assert graded["graded_at"] is not None

    notifications = await client.get(f"{API}/notifications", headers=student.headers)
    titles = [n["title"] for n in notifications.json()["items"]]
    assert "Assignment graded" in titles


async def test_other_teacher_cannot_grade(client, api, teacher, student, course):
    assignment = await api.create_assignment(teacher, course["id"])
    await api.enroll(student, course["id"])
    submission = (await submit(client, student, assignment["id"])).json()["submission"]
    outsider = await api.register("teacher")

    response = await client.put(
        f"{API}/assignments/submissions/{submission['id']}/grade", json={"grade": 10}, headers=outsider.headers
    )

    assert response.status_code == 403


async def test_assignment_listing_is_role_scoped(client, api, teacher, student, course):
    other_teacher = await api.register("teacher")
    other_course = await api.create_course(other_teacher, title="Other")
    mine = await api.create_assignment(teacher, course["id"])
    await api.create_assignment(other_teacher, other_course["id"])
    await api.enroll(student, course["id"])
    admin = await api.admin()

    teacher_view = await client.get(f"{API}/assignments", headers=teacher.headers)
    student_view = await client.get(f"{API}/assignments", headers=student.headers)
    admin_view = await client.get(f"{API}/assignments", headers=admin.headers)

    assert [a["id"] for a in teacher_view.json()["items"]] == [mine["id"]]
    assert [a["id"] for a in student_view.json()["items"]] == [mine["id"]]
    assert admin_view.json()["total"] == 2


async def test_assignment_crud_requires_ownership(client, api, teacher, course):
    assignment = await api.create_assignment(teacher, course["id"])
    outsider = await api.register("teacher")

    denied = await client.put(f"{API}/assignments/{assignment['id']}", json={"title": "x"}, headers=outsider.headers)
    updated = await client.put(f"{API}/assignments/{assignment['id']}", json={"title": "Homework 1b"}, headers=teacher.headers)
    deleted = await client.delete(f"{API}/assignments/{assignment['id']}", headers=teacher.headers)
    gone = await client.get(f"{API}/assignments/{assignment['id']}", headers=teacher.headers)

    assert denied.status_code == 403
    assert updated.json()["title"] == "Homework 1b"
    assert deleted.status_code == 200
    assert gone.status_code == 404


async def test_student_assignment_filters_and_grades(client, api, teacher, student, course):
    done = await api.create_assignment(teacher, course["id"], title="Done", max_points=20)
    await api.create_assignment(teacher, course["id"], title="Todo")
    await api.create_assignment(teacher, course["id"], title="Late", due_date=iso(hours_from_now(-1)))
    await api.enroll(student, course["id"])
    submission = (await submit(client, student, done["id"])).json()["submission"]
    await client.put(
        f"{API}/assignments/submissions/{submission['id']}/grade", json={"grade": 15}, headers=teacher.headers
    )

    async def titles(status):
        response = await client.get(f"{API}/students/assignments", params={"status": status}, headers=student.headers)
        return sorted(a["title"] for a in response.json()["assignments"])

    assert await titles("submitted") == ["Done"]
    assert await titles("graded") == ["Done"]
    assert await titles("not_submitted") == ["Late", "Todo"]
    assert await titles("overdue") == ["Late"]

    bad_filter = await client.get(f"{API}/students/assignments", params={"status": "bogus"}, headers=student.headers)
    assert bad_filter.status_code == 400

    grades = await client.get(f"{API}/students/grades", headers=student.headers)
    stats = grades.json()["courses"][0]
    assert stats["total_assignments"] == 3
    assert stats["graded_assignments"] == 1
    assert stats["average_percentage"] == 75.0
    assert grades.json()["recent_grades"][0]["percentage"] == 75.0


async def test_submissions_list_for_teacher(client, api, teacher, student, course):
    assignment = await api.create_assignment(teacher, course["id"])
    await api.enroll(student, course["id"])
    await submit(client, student, assignment["id"])

    response = await client.get(f"{API}/assignments/{assignment['id']}/submissions", headers=teacher.headers)

    assert response.status_code == 200
    assert response.json()["total"] == 1
    assert response.json()["submissions"][0]["student"]["id"] == student.id
    assert response.json()["submissions"][0]["is_late"] is False


async def test_null_for_required_assignment_field_is_rejected(client, api, teacher, course):
    assignment = await api.create_assignment(teacher, course["id"])
    url = f"{API}/assignments/{assignment['id']}"

    max_points = await client.put(url, json={"max_points": None}, headers=teacher.headers)
    title = await client.put(url, json={"title": None}, headers=teacher.headers)
    no_due_date = await client.put(url, json={"due_date": None}, headers=teacher.headers)

    assert max_points.status_code == 400
    assert title.status_code == 400
    assert no_due_date.status_code == 200
    assert no_due_date.json()["due_date"] is None
