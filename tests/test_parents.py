from .conftest import API


async def test_parent_sees_linked_children_only(client, api, teacher, student, course):
    admin = await api.admin()
    parent = await api.register("parent")
    other_child = await api.register("student")
    await api.link_parent(admin, parent, student)
    await api.enroll(student, course["id"])

    children = await client.get(f"{API}/parents/children", headers=parent.headers)
    denied = await client.get(f"{API}/parents/children/{other_child.id}/progress", headers=parent.headers)

    assert children.status_code == 200
    body = children.json()
    assert body["total"] == 1
    assert body["children"][0]["id"] == student.id
    assert body["children"][0]["enrolled_courses"] == 1
    assert denied.status_code == 403


async def test_child_progress_and_attendance(client, api, teacher, student, course):
    admin = await api.admin()
    parent = await api.register("parent")
    await api.link_parent(admin, parent, student)
    await api.enroll(student, course["id"])

    assignment = await api.create_assignment(teacher, course["id"], max_points=10)
    submission = (await client.post(
        f"{API}/assignments/{assignment['id']}/submit", json={"submission_text": "42"}, headers=student.headers
    )).json()["submission"]
    await client.put(
        f"{API}/assignments/submissions/{submission['id']}/grade", json={"grade": 8}, headers=teacher.headers
    )
    session = await api.create_session(teacher, course["id"])
    await client.post(
        f"{API}/sessions/{session['id']}/attendance",
        json={"student_id": student.id, "status": "absent"},
        headers=teacher.headers
    )

    progress = await client.get(f"{API}/parents/children/{student.id}/progress", headers=parent.headers)
    attendance = await client.get(f"{API}/parents/children/{student.id}/attendance", headers=parent.headers)

    assert progress.status_code == 200
    body = progress.json()
    assert body["courses"][0]["average_grade_percentage"] == 80.0
    assert body["recent_grades"][0]["grade"] == 8
    assert body["attendance_summary"]["absent"] == 1
    assert attendance.json()["summary"]["absent"] == 1


async def test_parent_routes_require_parent_role(client, student):
    response = await client.get(f"{API}/parents/children", headers=student.headers)

    assert response.status_code == 403


async def test_linked_parent_can_view_child_account(client, api, student, course):
    admin = await api.admin()
    parent = await api.register("parent")
    await api.link_parent(admin, parent, student)
    await api.enroll(student, course["id"])

    assignments = await client.get(f"{API}/assignments", headers=parent.headers)

    assert assignments.status_code == 200


async def test_parent_schedule_covers_linked_children(client, api, teacher, student, course):
    admin = await api.admin()
    parent = await api.register("parent")
    stranger = await api.register("student")
    await api.link_parent(admin, parent, student)
    await api.enroll(student, course["id"])
    upcoming = await api.create_session(teacher, course["id"], start_in_hours=24)
    await api.create_session(teacher, course["id"], start_in_hours=-48, title="Last week")

    schedule = await client.get(f"{API}/parents/schedule", headers=parent.headers)
    one_child = await client.get(f"{API}/parents/schedule", params={"child_id": student.id}, headers=parent.headers)
    denied = await client.get(f"{API}/parents/schedule", params={"child_id": stranger.id}, headers=parent.headers)

    assert schedule.status_code == 200
    sessions = schedule.json()["sessions"]
    assert [s["id"] for s in sessions] == [upcoming["id"]]
    assert sessions[0]["child"]["name"] == "Arnold"
    assert sessions[0]["course"]["title"] == course["title"]
    assert one_child.json()["total"] == 1
    assert denied.status_code == 403


async def test_parent_sees_teachers_of_childrens_courses(client, api, teacher, student, course):
    admin = await api.admin()
    parent = await api.register("parent")
    unrelated = await api.register("teacher", name="Mr Ratburn")
    await api.create_course(unrelated, title="Chess")
    await api.link_parent(admin, parent, student)
    await api.enroll(student, course["id"])

    response = await client.get(f"{API}/parents/teachers", headers=parent.headers)

    assert response.status_code == 200
    teachers = response.json()["teachers"]
    assert len(teachers) == 1
    assert teachers[0]["name"] == "Ms Frizzle"
    assert teachers[0]["courses"] == [course["title"]]
    assert teachers[0]["students"] == ["Arnold"]


async def test_parent_without_children_has_empty_schedule(client, api):
    parent = await api.register("parent")

    schedule = await client.get(f"{API}/parents/schedule", headers=parent.headers)
    teachers = await client.get(f"{API}/parents/teachers", headers=parent.headers)

    assert schedule.json() == {"sessions": [], "total": 0}
    assert teachers.json() == {"teachers": [], "total": 0}
