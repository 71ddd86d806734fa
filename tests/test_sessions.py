from uuid import UUID

from sqlalchemy import delete, select, func
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from eduplatform.core.database import AsyncSessionLocal
from eduplatform.models import Assignment, Attendance, ClassSession, Content, Course, Enrollment, Submission, User

from .conftest import API, hours_from_now, iso


async def attendance_rows(session_id) -> int:
    async with AsyncSessionLocal() as db:
        stmt = select(func.count()).select_from(Attendance).where(Attendance.session_id == UUID(session_id))
        return (await db.execute(stmt)).scalar_one()


async def test_session_end_must_follow_start(client, teacher, course):
    start = hours_from_now(5)
    response = await client.post(f"{API}/sessions", json={
        "course_id": course["id"],
        "title": "Backwards",
        "scheduled_start": iso(start),
        "scheduled_end": iso(hours_from_now(4)),
    }, headers=teacher.headers)

    assert response.status_code == 400


async def test_update_rechecks_time_window(client, api, teacher, course):
    session = await api.create_session(teacher, course["id"], start_in_hours=10)

    bad = await client.put(
        f"{API}/sessions/{session['id']}", json={"scheduled_end": iso(hours_from_now(9))}, headers=teacher.headers
    )
    ok = await client.put(f"{API}/sessions/{session['id']}", json={"status": "cancelled"}, headers=teacher.headers)

    assert bad.status_code == 400
    assert ok.status_code == 200
    assert ok.json()["status"] == "cancelled"


async def test_only_course_owner_schedules(client, api, course):
    outsider = await api.register("teacher")

    response = await client.post(f"{API}/sessions", json={
        "course_id": course["id"],
        "title": "Intrusion",
        "scheduled_start": iso(hours_from_now(1)),
        "scheduled_end": iso(hours_from_now(2)),
    }, headers=outsider.headers)

    assert response.status_code == 403


async def test_single_attendance_upsert(client, api, teacher, student, course):
    session = await api.create_session(teacher, course["id"])
    await api.enroll(student, course["id"])
    url = f"{API}/sessions/{session['id']}/attendance"

    first = await client.post(url, json={"student_id": student.id, "status": "present"}, headers=teacher.headers)
    second = await client.post(url, json={"student_id": student.id, "status": "late"}, headers=teacher.headers)

    assert first.status_code == 201
    assert second.status_code == 200
    assert second.json()["attendance"]["status"] == "late"
    assert await attendance_rows(session["id"]) == 1


async def test_attendance_requires_enrollment(client, api, teacher, student, course):
    session = await api.create_session(teacher, course["id"])

    response = await client.post(
        f"{API}/sessions/{session['id']}/attendance",
        json={"student_id": student.id, "status": "present"},
        headers=teacher.headers
    )

    assert response.status_code == 400


async def test_bulk_attendance_upserts_and_reports_errors(client, api, teacher, course):
    session = await api.create_session(teacher, course["id"])
    alice = await api.register("student", name="Alice")
    bob = await api.register("student", name="Bob")
    stranger = await api.register("student", name="Stranger")
    await api.enroll(alice, course["id"])
    await api.enroll(bob, course["id"])
    url = f"{API}/sessions/{session['id']}/attendance/bulk"

    await client.post(
        f"{API}/sessions/{session['id']}/attendance",
        json={"student_id": alice.id, "status": "absent"},
        headers=teacher.headers
    )

    response = await client.post(url, json={"attendance_records": [
        {"student_id": alice.id, "status": "present"},
        {"student_id": bob.id, "status": "absent"},
        {"student_id": stranger.id, "status": "present"},
        {"student_id": bob.id, "status": "excused", "notes": "Doctor"},
    ]}, headers=teacher.headers)

    assert response.status_code == 200
    body = response.json()
    assert body["successful"] == 2
    assert body["failed"] == 1
    assert body["errors"][0]["student_id"] == stranger.id
    by_student = {r["student_id"]: r for r in body["results"]}
    assert by_student[alice.id]["status"] == "present"
    assert by_student[alice.id]["action"] == "updated"
    assert by_student[bob.id]["status"] == "excused"
    assert by_student[bob.id]["action"] == "created"
    assert await attendance_rows(session["id"]) == 2

    # Marking again overwrites rather than duplicating
    again = await client.post(url, json={"attendance_records": [
        {"student_id": alice.id, "status": "late"},
        {"student_id": bob.id, "status": "present"},
    ]}, headers=teacher.headers)
    assert again.json()["successful"] == 2
    assert await attendance_rows(session["id"]) == 2


async def test_bulk_attendance_rejects_unknown_status(client, api, teacher, student, course):
    session = await api.create_session(teacher, course["id"])
    await api.enroll(student, course["id"])

    response = await client.post(f"{API}/sessions/{session['id']}/attendance/bulk", json={"attendance_records": [
        {"student_id": student.id, "status": "sleeping"},
    ]}, headers=teacher.headers)

    assert response.status_code == 400
    assert await attendance_rows(session["id"]) == 0


async def test_session_detail_lists_unmarked_students(client, api, teacher, course):
    session = await api.create_session(teacher, course["id"])
    alice = await api.register("student", name="Alice")
    bob = await api.register("student", name="Bob")
    await api.enroll(alice, course["id"])
    await api.enroll(bob, course["id"])
    await client.post(
        f"{API}/sessions/{session['id']}/attendance",
        json={"student_id": alice.id, "status": "present"},
        headers=teacher.headers
    )

    detail = await client.get(f"{API}/sessions/{session['id']}", headers=bob.headers)

    assert detail.status_code == 200
    assert [a["student_id"] for a in detail.json()["attendance"]] == [alice.id]
    assert [s["id"] for s in detail.json()["unmarked_students"]] == [bob.id]


async def test_session_detail_hidden_from_outsiders(client, api, teacher, student, course):
    session = await api.create_session(teacher, course["id"])

    response = await client.get(f"{API}/sessions/{session['id']}", headers=student.headers)

    assert response.status_code == 403


async def test_session_with_attendance_cannot_be_deleted(client, api, teacher, student, course):
    marked = await api.create_session(teacher, course["id"])
    empty = await api.create_session(teacher, course["id"], start_in_hours=48)
    await api.enroll(student, course["id"])
    await client.post(
        f"{API}/sessions/{marked['id']}/attendance",
        json={"student_id": student.id, "status": "present"},
        headers=teacher.headers
    )

    blocked = await client.delete(f"{API}/sessions/{marked['id']}", headers=teacher.headers)
    deleted = await client.delete(f"{API}/sessions/{empty['id']}", headers=teacher.headers)

    assert blocked.status_code == 400
    assert deleted.status_code == 200


async def test_session_listing_counts_and_scope(client, api, teacher, student, course):
    session = await api.create_session(teacher, course["id"])
    await api.enroll(student, course["id"])
    await client.post(
        f"{API}/sessions/{session['id']}/attendance",
        json={"student_id": student.id, "status": "present"},
        headers=teacher.headers
    )
    outsider = await api.register("student")

    mine = await client.get(f"{API}/sessions", headers=student.headers)
    theirs = await client.get(f"{API}/sessions", headers=outsider.headers)

    assert mine.json()["total"] == 1
    assert mine.json()["items"][0]["attendance_count"] == 1
    assert mine.json()["items"][0]["present_count"] == 1
    assert theirs.json()["total"] == 0


async def test_student_schedule_and_attendance(client, api, teacher, student, course):
    session = await api.create_session(teacher, course["id"])
    await api.enroll(student, course["id"])
    await client.post(
        f"{API}/sessions/{session['id']}/attendance",
        json={"student_id": student.id, "status": "late"},
        headers=teacher.headers
    )

    schedule = await client.get(f"{API}/students/schedule", headers=student.headers)
    attendance = await client.get(f"{API}/students/attendance", headers=student.headers)

    assert [s["id"] for s in schedule.json()["sessions"]] == [session["id"]]
    summary = attendance.json()["summary"]
    assert summary["late"] == 1
    assert summary["total"] == 1
    assert summary["attendance_rate"] == 100.0


async def test_bulk_attendance_rolls_back_on_database_failure(client, api, teacher, course, monkeypatch):
    session = await api.create_session(teacher, course["id"])
    alice = await api.register("student", name="Alice")
    bob = await api.register("student", name="Bob")
    await api.enroll(alice, course["id"])
    await api.enroll(bob, course["id"])
    await client.post(
        f"{API}/sessions/{session['id']}/attendance",
        json={"student_id": alice.id, "status": "absent"},
        headers=teacher.headers
    )

    async def failing_commit(self):
        # Rows reach the database before the transaction dies
        await self.flush()
        raise OperationalError("COMMIT", {}, Exception("database is locked"))

    monkeypatch.setattr(AsyncSession, "commit", failing_commit)
    response = await client.post(f"{API}/sessions/{session['id']}/attendance/bulk", json={"attendance_records": [
        {"student_id": alice.id, "status": "present"},
        {"student_id": bob.id, "status": "late"},
    ]}, headers=teacher.headers)
    monkeypatch.undo()

    assert response.status_code == 500
    async with AsyncSessionLocal() as db:
        records = (await db.execute(
            select(Attendance).where(Attendance.session_id == UUID(session["id"]))
        )).scalars().all()
    assert [(r.student_id, r.status.value) for r in records] == [(UUID(alice.id), "absent")]


async def test_hard_deleting_course_cascades_to_dependents(client, api, teacher, student, course):
    await api.enroll(student, course["id"])
    assignment = await api.create_assignment(teacher, course["id"])
    await client.post(
        f"{API}/assignments/{assignment['id']}/submit", json={"submission_text": "done"}, headers=student.headers
    )
    session = await api.create_session(teacher, course["id"])
    await client.post(
        f"{API}/sessions/{session['id']}/attendance",
        json={"student_id": student.id, "status": "present"},
        headers=teacher.headers
    )
    material = await client.post(
        f"{API}/content/courses/{course['id']}/materials", json={"title": "Syllabus"}, headers=teacher.headers
    )
    assert material.status_code == 201

    async with AsyncSessionLocal() as db:
        await db.execute(delete(Course).where(Course.id == UUID(course["id"])))
        await db.commit()

        remaining = {}
        for model in (Enrollment, Assignment, Submission, ClassSession, Attendance, Content):
            remaining[model.__tablename__] = (await db.execute(
                select(func.count()).select_from(model)
            )).scalar_one()
        students = (await db.execute(select(func.count()).select_from(User))).scalar_one()

    assert set(remaining.values()) == {0}
    assert students == 2
