"""Assignments, submissions, grading and the rewards they trigger."""

from datetime import timedelta

from bson import ObjectId

from coachhub.repositories.core.repository_factory import RepositoryFactory
from coachhub.utils.time.timeutils import utc_now


def _iso(days):
    return (utc_now() + timedelta(days=days)).isoformat()


def _individual(client, headers, student_id, **overrides):
    payload = {"title": "Fractions worksheet", "type": "individual",
               "studentId": str(student_id), "dueDate": _iso(3)}
    payload.update(overrides)
    return client.post("/api/teacher/assignments", json=payload, headers=headers)


def _submit(client, headers, assignment_id, content="My answers"):
    return client.post(f"/api/student/assignments/{assignment_id}/submit", json={"content": content}, headers=headers)


def _submission_id(client, teacher_headers, assignment_id):
    submissions = client.get(f"/api/teacher/assignments/{assignment_id}/submissions", headers=teacher_headers)
    return submissions.get_json()["data"][0]["id"]


def test_create_individual_assignment(client, teacher, student):
    _, headers = teacher

    response = _individual(client, headers, student[0]["_id"])

    assert response.status_code == 201
    assignment = response.get_json()["data"]
    assert assignment["maxGrade"] == 100
    assert assignment["classId"] is None
    assert assignment["allowLate"] == {"policy": "no", "penaltyPercent": 0}


def test_assignment_validation(client, teacher, student, make_user):
    _, headers = teacher
    stranger = make_user("student")

    missing = client.post("/api/teacher/assignments", json={"title": "x"}, headers=headers)
    bad_type = _individual(client, headers, student[0]["_id"], type="group")
    no_class = _individual(client, headers, student[0]["_id"], type="class")
    invisible = _individual(client, headers, stranger["_id"])
    bad_close = _individual(client, headers, student[0]["_id"], closeAt=_iso(1))

    assert missing.status_code == 400
    assert bad_type.status_code == 400
    assert no_class.status_code == 400
    assert invisible.status_code == 404
    assert bad_close.status_code == 400


def test_class_assignment_is_visible_to_members(client, teacher, student):
    _, headers = teacher
    _, student_headers = student
    class_id = client.post("/api/teacher/classes", json={
        "name": "Biology", "students": [str(student[0]["_id"])]
    }, headers=headers).get_json()["data"]["id"]

    created = client.post("/api/teacher/assignments", json={
        "title": "Cells", "type": "class", "classId": class_id, "dueDate": _iso(2)
    }, headers=headers)
    listed = client.get("/api/student/assignments", headers=student_headers).get_json()["data"]

    assert created.status_code == 201
    assert [a["title"] for a in listed] == ["Cells"]
    assert listed[0]["submissionStatus"] == "not_started"


def test_student_list_hides_unpublished(client, teacher, student):
    _, headers = teacher
    _, student_headers = student
    _individual(client, headers, student[0]["_id"], title="Later", publishAt=_iso(1), dueDate=_iso(5))
    _individual(client, headers, student[0]["_id"], title="Now")

    listed = client.get("/api/student/assignments", headers=student_headers).get_json()["data"]

    assert [a["title"] for a in listed] == ["Now"]


def test_submit_marks_status_and_rewards_first_step(client, teacher, student):
    _, headers = teacher
    student_user, student_headers = student
    assignment_id = _individual(client, headers, student_user["_id"]).get_json()["data"]["id"]

    response = _submit(client, student_headers, assignment_id)

    assert response.status_code == 201
    submission = response.get_json()["data"]
    assert submission["status"] == "submitted"
    assert submission["attempt"] == 1

    level = RepositoryFactory.get_level_repo().find_by_user(student_user["_id"])
    assert level["totalExperience"] == 10
    streak = RepositoryFactory.get_streak_repo().find_one_for(student_user["_id"], "assignment")
    assert streak["currentStreak"] == 1


def test_submit_after_due_date_is_late(client, teacher, student):
    _, headers = teacher
    _, student_headers = student
    assignment_id = _individual(client, headers, student[0]["_id"], dueDate=_iso(-1)).get_json()["data"]["id"]

    response = _submit(client, student_headers, assignment_id)

    assert response.get_json()["data"]["status"] == "late"


def test_submit_rules(client, teacher, student, make_user, tokens):
    _, headers = teacher
    _, student_headers = student
    assignment_id = _individual(client, headers, student[0]["_id"]).get_json()["data"]["id"]
    outsider = make_user("student")

    empty = client.post(f"/api/student/assignments/{assignment_id}/submit", json={"content": "  "}, headers=student_headers)
    first = _submit(client, student_headers, assignment_id)
    duplicate = _submit(client, student_headers, assignment_id)
    not_mine = _submit(client, tokens(outsider, "student"), assignment_id)

    assert empty.status_code == 400
    assert first.status_code == 201
    assert duplicate.status_code == 400
    assert duplicate.get_json()["message"] == "Assignment already submitted"
    assert not_mine.status_code == 404


def test_closed_assignment_rejects_submission(client, teacher, student):
    _, headers = teacher
    _, student_headers = student
    assignment_id = _individual(client, headers, student[0]["_id"], dueDate=_iso(-3), closeAt=_iso(-2)).get_json()["data"]["id"]

    assert _submit(client, student_headers, assignment_id).status_code == 403


def test_resubmit_tracks_attempts(client, teacher, student):
    _, headers = teacher
    _, student_headers = student
    assignment_id = _individual(client, headers, student[0]["_id"], maxAttempts=2).get_json()["data"]["id"]
    _submit(client, student_headers, assignment_id)
    url = f"/api/student/assignments/{assignment_id}/resubmit"

    second = client.post(url, json={"content": "Better answers"}, headers=student_headers)
    third = client.post(url, json={"content": "Even better"}, headers=student_headers)

    assert second.status_code == 200
    data = second.get_json()["data"]
    assert data["attempt"] == 2
    assert [v["attempt"] for v in data["versions"]] == [1, 2]
    assert third.status_code == 403


def test_grade_awards_experience_and_notifies_parent(client, teacher, student, parent):
    _, headers = teacher
    student_user, student_headers = student
    parent_account, _ = parent
    assignment_id = _individual(client, headers, student_user["_id"]).get_json()["data"]["id"]
    _submit(client, student_headers, assignment_id)
    submission_id = _submission_id(client, headers, assignment_id)

    response = client.put(f"/api/teacher/assignments/submissions/{submission_id}/grade",
                          json={"grade": 100, "teacherFeedback": "Excellent"}, headers=headers)

    assert response.status_code == 200
    graded = response.get_json()["data"]
    assert graded["status"] == "graded"
    assert graded["grade"] == 100

    # 10 for First Step, 25 for the grade, 50 for Perfect Student
    level = RepositoryFactory.get_level_repo().find_by_user(student_user["_id"])
    assert level["totalExperience"] == 85

    notifications = RepositoryFactory.get_notification_repo().find_for_parent(parent_account["_id"])
    assert {n["type"] for n in notifications} == {"assignment_completed", "assignment_graded"}


def test_regrading_does_not_award_twice(client, teacher, student):
    _, headers = teacher
    student_user, student_headers = student
    assignment_id = _individual(client, headers, student_user["_id"]).get_json()["data"]["id"]
    _submit(client, student_headers, assignment_id)
    submission_id = _submission_id(client, headers, assignment_id)
    url = f"/api/teacher/assignments/submissions/{submission_id}/grade"

    client.put(url, json={"grade": 80}, headers=headers)
    client.put(url, json={"grade": 90}, headers=headers)

    level = RepositoryFactory.get_level_repo().find_by_user(student_user["_id"])
    assert level["totalExperience"] == 10 + 20


def test_grade_bounds(client, teacher, student):
    _, headers = teacher
    _, student_headers = student
    assignment_id = _individual(client, headers, student[0]["_id"], maxGrade=50).get_json()["data"]["id"]
    _submit(client, student_headers, assignment_id)
    submission_id = _submission_id(client, headers, assignment_id)
    url = f"/api/teacher/assignments/submissions/{submission_id}/grade"

    assert client.put(url, json={"grade": -1}, headers=headers).status_code == 400
    assert client.put(url, json={"grade": 60}, headers=headers).status_code == 400
    assert client.put(url, json={"grade": float("nan")}, headers=headers).status_code == 400
    assert client.put(url, json={}, headers=headers).status_code == 400


def test_reopen_clears_grade(client, teacher, student):
    _, headers = teacher
    _, student_headers = student
    assignment_id = _individual(client, headers, student[0]["_id"]).get_json()["data"]["id"]
    _submit(client, student_headers, assignment_id)
    submission_id = _submission_id(client, headers, assignment_id)
    client.put(f"/api/teacher/assignments/submissions/{submission_id}/grade", json={"grade": 70}, headers=headers)

    response = client.post(f"/api/teacher/assignments/submissions/{submission_id}/reopen", headers=headers)

    reopened = response.get_json()["data"]
    assert reopened["status"] == "submitted"
    assert reopened["grade"] is None
    assert reopened["gradedAt"] is None
    resubmit = client.post(f"/api/student/assignments/{assignment_id}/resubmit",
                           json={"content": "Fixed"}, headers=student_headers)
    assert resubmit.status_code == 200


def test_graded_submission_cannot_be_resubmitted(client, teacher, student):
    _, headers = teacher
    _, student_headers = student
    assignment_id = _individual(client, headers, student[0]["_id"]).get_json()["data"]["id"]
    _submit(client, student_headers, assignment_id)
    submission_id = _submission_id(client, headers, assignment_id)
    client.put(f"/api/teacher/assignments/submissions/{submission_id}/grade", json={"grade": 70}, headers=headers)

    response = client.post(f"/api/student/assignments/{assignment_id}/resubmit",
                           json={"content": "Again"}, headers=student_headers)

    assert response.status_code == 400


def test_completed_submission_can_still_be_resubmitted(client, teacher, student):
    _, headers = teacher
    _, student_headers = student
    assignment_id = _individual(client, headers, student[0]["_id"]).get_json()["data"]["id"]
    _submit(client, student_headers, assignment_id)
    submission_id = _submission_id(client, headers, assignment_id)
    client.put(f"/api/teacher/assignments/submissions/{submission_id}/grade",
               json={"status": "completed", "teacherFeedback": "Looks done"}, headers=headers)

    response = client.post(f"/api/student/assignments/{assignment_id}/resubmit",
                           json={"content": "One more pass"}, headers=student_headers)

    assert response.status_code == 200
    assert response.get_json()["data"]["attempt"] == 2


def test_other_teacher_cannot_grade(client, teacher, student, make_user, tokens):
    _, headers = teacher
    _, student_headers = student
    assignment_id = _individual(client, headers, student[0]["_id"]).get_json()["data"]["id"]
    _submit(client, student_headers, assignment_id)
    submission_id = _submission_id(client, headers, assignment_id)
    other_headers = tokens(make_user("teacher"), "teacher")

    response = client.put(f"/api/teacher/assignments/submissions/{submission_id}/grade",
                          json={"grade": 70}, headers=other_headers)

    assert response.status_code == 403


def test_update_and_delete_assignment(client, teacher, student):
    _, headers = teacher
    _, student_headers = student
    assignment_id = _individual(client, headers, student[0]["_id"]).get_json()["data"]["id"]
    _submit(client, student_headers, assignment_id)

    updated = client.put(f"/api/teacher/assignments/{assignment_id}", json={"title": "Renamed"}, headers=headers)
    listed = client.get("/api/teacher/assignments", headers=headers).get_json()["data"]
    deleted = client.delete(f"/api/teacher/assignments/{assignment_id}", headers=headers)

    assert updated.get_json()["data"]["title"] == "Renamed"
    assert listed[0]["submissionCount"] == 1
    assert deleted.get_json()["data"]["deletedSubmissions"] == 1
    assert RepositoryFactory.get_assignment_repo().find_by_id(ObjectId(assignment_id)) is None


def test_student_stats_after_grading(client, teacher, student):
    _, headers = teacher
    student_user, student_headers = student
    first = _individual(client, headers, student_user["_id"]).get_json()["data"]["id"]
    _individual(client, headers, student_user["_id"], title="Second")
    _submit(client, student_headers, first)
    client.put(f"/api/teacher/assignments/submissions/{_submission_id(client, headers, first)}/grade",
               json={"grade": 90}, headers=headers)

    stats = client.get(f"/api/teacher/students/{student_user['_id']}/stats", headers=headers).get_json()["data"]

    assert stats["totalAssignments"] == 2
    assert stats["completedAssignments"] == 1
    assert stats["gradedAssignments"] == 1
    assert stats["averageGrade"] == 90
    assert stats["completionRate"] == 50


def test_teacher_lists_one_students_assignments(client, teacher, student, make_user, tokens):
    _, headers = teacher
    student_user, student_headers = student
    other = make_user("teacher")
    class_id = client.post("/api/teacher/classes", json={
        "name": "Algebra", "students": [str(student_user["_id"])], "coTeachers": [str(other["_id"])]
    }, headers=headers).get_json()["data"]["id"]
    own_id = _individual(client, headers, student_user["_id"], title="Own work").get_json()["data"]["id"]
    client.post("/api/teacher/assignments", json={
        "title": "Class work", "type": "class", "classId": class_id, "dueDate": _iso(2)
    }, headers=headers)
    client.post("/api/teacher/assignments", json={
        "title": "Someone else's", "type": "class", "classId": class_id, "dueDate": _iso(2)
    }, headers=tokens(other, "teacher"))
    _submit(client, student_headers, own_id)

    response = client.get(f"/api/teacher/students/{student_user['_id']}/assignments", headers=headers)

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["student"]["id"] == str(student_user["_id"])
    by_title = {a["title"]: a for a in data["assignments"]}
    assert set(by_title) == {"Own work", "Class work"}
    assert by_title["Own work"]["submission"]["content"] == "My answers"
    assert by_title["Class work"]["submission"] is None


def test_student_assignments_need_visible_student(client, teacher, make_user):
    _, headers = teacher
    stranger = make_user("student")

    response = client.get(f"/api/teacher/students/{stranger['_id']}/assignments", headers=headers)

    assert response.status_code == 404
