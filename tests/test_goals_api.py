"""Student goals: teacher management, student progress, completion rewards."""

from coachhub.repositories.core.repository_factory import RepositoryFactory


def _create_goal(client, headers, student_id, **overrides):
    payload = {"studentId": str(student_id), "title": "Read 5 books", "category": "academic"}
    payload.update(overrides)
    return client.post("/api/teacher/goals", json=payload, headers=headers)


def test_create_goal_defaults(client, teacher, student):
    _, headers = teacher

    response = _create_goal(client, headers, student[0]["_id"])

    assert response.status_code == 201
    goal = response.get_json()["data"]
    assert goal["status"] == "pending"
    assert goal["progress"] == 0
    assert goal["priority"] == "medium"
    assert goal["parentNotificationSent"] is False


def test_goal_validation(client, teacher, student, make_user):
    _, headers = teacher
    stranger = make_user("student")

    assert client.post("/api/teacher/goals", json={"title": "x"}, headers=headers).status_code == 400
    assert _create_goal(client, headers, stranger["_id"]).status_code == 404
    assert _create_goal(client, headers, student[0]["_id"], category="sports").status_code == 400
    assert _create_goal(client, headers, student[0]["_id"], progress=120).status_code == 400


def test_list_goals_with_filters(client, teacher, student):
    _, headers = teacher
    student_id = student[0]["_id"]
    _create_goal(client, headers, student_id)
    _create_goal(client, headers, student_id, title="Practice piano", status="in_progress")

    everything = client.get("/api/teacher/goals", headers=headers).get_json()["data"]
    in_progress = client.get("/api/teacher/goals?status=in_progress", headers=headers).get_json()["data"]

    assert len(everything) == 2
    assert [g["title"] for g in in_progress] == ["Practice piano"]
    assert in_progress[0]["studentName"] == f"{student[0]['firstName']} {student[0]['lastName']}"


def test_full_progress_completes_goal_once(client, teacher, student, parent):
    _, headers = teacher
    student_user, _ = student
    parent_account, _ = parent
    goal_id = _create_goal(client, headers, student_user["_id"]).get_json()["data"]["id"]

    completed = client.put(f"/api/teacher/goals/{goal_id}", json={"progress": 100}, headers=headers).get_json()["data"]
    client.put(f"/api/teacher/goals/{goal_id}", json={"status": "completed"}, headers=headers)

    assert completed["status"] == "completed"
    assert completed["completedAt"] is not None

    # 20 for the goal, 25 for Goal Hunter
    level = RepositoryFactory.get_level_repo().find_by_user(student_user["_id"])
    assert level["totalExperience"] == 45

    notifications = RepositoryFactory.get_notification_repo().find_for_parent(parent_account["_id"])
    assert [n["type"] for n in notifications] == ["goal_achieved"]


def test_reopening_goal_clears_completion(client, teacher, student):
    _, headers = teacher
    goal_id = _create_goal(client, headers, student[0]["_id"], status="completed").get_json()["data"]["id"]

    reopened = client.put(f"/api/teacher/goals/{goal_id}", json={"status": "in_progress", "progress": 60},
                          headers=headers).get_json()["data"]

    assert reopened["completedAt"] is None
    assert reopened["progress"] == 60


def test_other_teacher_cannot_edit_goal(client, teacher, student, make_user, tokens):
    _, headers = teacher
    goal_id = _create_goal(client, headers, student[0]["_id"]).get_json()["data"]["id"]
    other_headers = tokens(make_user("teacher"), "teacher")

    assert client.put(f"/api/teacher/goals/{goal_id}", json={"progress": 10}, headers=other_headers).status_code == 403
    assert client.delete(f"/api/teacher/goals/{goal_id}", headers=other_headers).status_code == 403


def test_link_assignment_and_delete(client, teacher, student):
    _, headers = teacher
    student_id = student[0]["_id"]
    goal_id = _create_goal(client, headers, student_id).get_json()["data"]["id"]
    assignment_id = client.post("/api/teacher/assignments", json={
        "title": "Book report", "type": "individual", "studentId": str(student_id), "dueDate": "2030-01-01"
    }, headers=headers).get_json()["data"]["id"]

    linked = client.post(f"/api/teacher/goals/{goal_id}/link-assignment",
                         json={"assignmentId": assignment_id}, headers=headers)
    missing = client.post(f"/api/teacher/goals/{goal_id}/link-assignment", json={}, headers=headers)
    deleted = client.delete(f"/api/teacher/goals/{goal_id}", headers=headers)

    assert linked.get_json()["data"]["assignmentId"] == assignment_id
    assert missing.status_code == 400
    assert deleted.get_json()["data"] == {"message": "Goal deleted", "id": goal_id}


def test_notify_parent_about_goal(client, teacher, student, parent):
    _, headers = teacher
    goal_id = _create_goal(client, headers, student[0]["_id"]).get_json()["data"]["id"]

    response = client.post(f"/api/teacher/goals/{goal_id}/notify-parent", headers=headers)

    assert response.get_json()["data"] == {"id": goal_id, "notificationsSent": 1}
    goals = client.get("/api/teacher/goals", headers=headers).get_json()["data"]
    assert goals[0]["parentNotificationSent"] is True


def test_student_updates_own_goal(client, teacher, student, make_user, tokens):
    _, headers = teacher
    _, student_headers = student
    goal_id = _create_goal(client, headers, student[0]["_id"]).get_json()["data"]["id"]
    outsider_headers = tokens(make_user("student"), "student")

    listed = client.get("/api/student/goals", headers=student_headers).get_json()["data"]
    updated = client.put(f"/api/student/goals/{goal_id}", json={"progress": 40, "title": "ignored"},
                         headers=student_headers).get_json()["data"]
    empty = client.put(f"/api/student/goals/{goal_id}", json={"title": "only title"}, headers=student_headers)
    foreign = client.put(f"/api/student/goals/{goal_id}", json={"progress": 50}, headers=outsider_headers)

    assert [g["id"] for g in listed] == [goal_id]
    assert updated["progress"] == 40
    assert updated["title"] == "Read 5 books"
    assert empty.status_code == 400
    assert foreign.status_code == 404


def test_reopening_and_recompleting_goal_rewards_only_once(client, teacher, student, parent):
    _, headers = teacher
    student_user, student_headers = student
    parent_account, _ = parent
    goal_id = _create_goal(client, headers, student_user["_id"]).get_json()["data"]["id"]
    url = f"/api/student/goals/{goal_id}"

    for _ in range(2):
        done = client.put(url, json={"status": "completed"}, headers=student_headers).get_json()["data"]
        reopened = client.put(url, json={"status": "in_progress"}, headers=student_headers).get_json()["data"]
    final = client.put(url, json={"progress": 100}, headers=student_headers).get_json()["data"]

    assert done["rewardedAt"] is not None
    assert reopened["completedAt"] is None
    assert reopened["rewardedAt"] == done["rewardedAt"]
    assert final["status"] == "completed"

    level = RepositoryFactory.get_level_repo().find_by_user(student_user["_id"])
    assert level["totalExperience"] == 45

    notifications = RepositoryFactory.get_notification_repo().find_for_parent(parent_account["_id"])
    assert [n["type"] for n in notifications] == ["goal_achieved"]
