"""Video coaching sessions."""

from datetime import timedelta

from bson import ObjectId

from coachhub.repositories.core.repository_factory import RepositoryFactory
from coachhub.utils.time.timeutils import utc_now

SESSIONS = "/api/teacher/video-coaching/sessions"


def _schedule(client, headers, student_id=None, **overrides):
    scheduled_at = (utc_now() + timedelta(days=1)).replace(microsecond=0)
    payload = {"title": "Weekly check-in", "scheduledAt": scheduled_at.isoformat()}
    if student_id is not None:
        payload["studentId"] = str(student_id)
    payload.update(overrides)
    return client.post(SESSIONS, json=payload, headers=headers)


def test_schedule_one_on_one(client, teacher, student):
    _, headers = teacher

    response = _schedule(client, headers, student[0]["_id"])

    assert response.status_code == 201
    session = response.get_json()["data"]
    assert session["type"] == "one_on_one"
    assert session["status"] == "scheduled"
    assert session["duration"] == 60
    assert session["meetingUrl"] == f"https://meet.coachhub.app/{session['meetingId']}"
    assert [p["role"] for p in session["participants"]] == ["teacher", "student"]
    assert not any(p["isActive"] for p in session["participants"])


def test_schedule_validation(client, teacher, student):
    _, headers = teacher
    student_id = student[0]["_id"]

    assert _schedule(client, headers).status_code == 400
    assert _schedule(client, headers, student_id, duration=5).status_code == 400
    assert _schedule(client, headers, student_id, duration=300).status_code == 400
    assert _schedule(client, headers, student_id, type="party").status_code == 400
    assert client.post(SESSIONS, json={"title": "x"}, headers=headers).status_code == 400


def test_class_session_invites_members(client, teacher, student):
    _, headers = teacher
    class_id = client.post("/api/teacher/classes", json={
        "name": "Chemistry", "students": [str(student[0]["_id"])]
    }, headers=headers).get_json()["data"]["id"]

    session = _schedule(client, headers, type="class", classId=class_id).get_json()["data"]

    assert len(session["participants"]) == 2


def test_join_and_leave_completes_session(client, teacher, student):
    _, headers = teacher
    _, student_headers = student
    session_id = _schedule(client, headers, student[0]["_id"]).get_json()["data"]["id"]

    teacher_join = client.post(f"{SESSIONS}/{session_id}/join", headers=headers)
    student_join = client.post(f"/api/student/video-coaching/{session_id}/join", headers=student_headers)
    teacher_leave = client.post(f"{SESSIONS}/{session_id}/leave", headers=headers)
    student_leave = client.post(f"/api/student/video-coaching/{session_id}/leave", headers=student_headers)

    assert teacher_join.get_json()["data"]["status"] == "in_progress"
    assert student_join.status_code == 200
    assert teacher_leave.get_json()["data"]["status"] == "in_progress"
    assert student_leave.get_json()["data"]["status"] == "completed"
    assert student_leave.get_json()["data"]["actualDuration"] == 0

    rejoin = client.post(f"{SESSIONS}/{session_id}/join", headers=headers)
    assert rejoin.status_code == 400


def test_concurrent_leaves_keep_both_updates_and_complete_once(client, teacher, student):
    teacher_user, headers = teacher
    student_user, student_headers = student
    session_id = _schedule(client, headers, student_user["_id"]).get_json()["data"]["id"]
    client.post(f"{SESSIONS}/{session_id}/join", headers=headers)
    client.post(f"/api/student/video-coaching/{session_id}/join", headers=student_headers)
    repo = RepositoryFactory.get_video_session_repo()
    oid = ObjectId(session_id)

    # both leave before either checks for completion
    repo.mark_left(oid, teacher_user["_id"])
    repo.mark_left(oid, student_user["_id"])
    first = repo.complete_if_idle(oid)
    second = repo.complete_if_idle(oid)

    assert first["status"] == "completed"
    assert second is None
    assert not any(p["isActive"] for p in first["participants"])
    assert all(p["leftAt"] is not None for p in first["participants"])


def test_completion_waits_for_every_active_participant(client, teacher, student):
    teacher_user, headers = teacher
    session_id = _schedule(client, headers, student[0]["_id"]).get_json()["data"]["id"]
    client.post(f"{SESSIONS}/{session_id}/join", headers=headers)
    client.post(f"/api/student/video-coaching/{session_id}/join", headers=student[1])
    repo = RepositoryFactory.get_video_session_repo()

    repo.mark_left(ObjectId(session_id), teacher_user["_id"])

    assert repo.complete_if_idle(ObjectId(session_id)) is None
    assert repo.find_by_id(ObjectId(session_id))["status"] == "in_progress"


def test_non_participant_cannot_join(client, teacher, student, make_user, tokens):
    _, headers = teacher
    session_id = _schedule(client, headers, student[0]["_id"]).get_json()["data"]["id"]
    outsider_headers = tokens(make_user("student"), "student")

    response = client.post(f"/api/student/video-coaching/{session_id}/join", headers=outsider_headers)

    assert response.status_code == 403


def test_cancelled_session_cannot_be_joined(client, teacher, student):
    _, headers = teacher
    _, student_headers = student
    session_id = _schedule(client, headers, student[0]["_id"]).get_json()["data"]["id"]

    cancelled = client.put(f"{SESSIONS}/{session_id}", json={"status": "cancelled"}, headers=headers)
    join = client.post(f"/api/student/video-coaching/{session_id}/join", headers=student_headers)
    revive = client.put(f"{SESSIONS}/{session_id}", json={"status": "scheduled"}, headers=headers)

    assert cancelled.get_json()["data"]["status"] == "cancelled"
    assert join.status_code == 400
    assert revive.status_code == 400


def test_reschedule_keeps_previous_time(client, teacher, student):
    _, headers = teacher
    created = _schedule(client, headers, student[0]["_id"]).get_json()["data"]
    new_time = (utc_now() + timedelta(days=3)).replace(microsecond=0)

    updated = client.put(f"{SESSIONS}/{created['id']}", json={"scheduledAt": new_time.isoformat()},
                         headers=headers).get_json()["data"]

    assert updated["previousScheduledAt"] == created["scheduledAt"]
    assert updated["scheduledAt"] == new_time.isoformat()
    assert updated["status"] == "scheduled"


def test_only_session_teacher_can_update(client, teacher, student, make_user, tokens):
    _, headers = teacher
    session_id = _schedule(client, headers, student[0]["_id"]).get_json()["data"]["id"]
    other_headers = tokens(make_user("teacher"), "teacher")

    response = client.put(f"{SESSIONS}/{session_id}", json={"title": "Mine"}, headers=other_headers)

    assert response.status_code == 403


def test_notes_and_feedback(client, teacher, student):
    teacher_user, headers = teacher
    _, student_headers = student
    session_id = _schedule(client, headers, student[0]["_id"]).get_json()["data"]["id"]

    note = client.post(f"{SESSIONS}/{session_id}/notes", json={"content": "Focus on algebra"}, headers=headers)
    empty_note = client.post(f"{SESSIONS}/{session_id}/notes", json={"content": ""}, headers=headers)
    feedback = client.post(f"/api/student/video-coaching/{session_id}/feedback",
                           json={"rating": 4, "comment": "Helpful"}, headers=student_headers)
    bad_rating = client.post(f"/api/student/video-coaching/{session_id}/feedback",
                             json={"rating": 9}, headers=student_headers)

    assert note.status_code == 201
    assert empty_note.status_code == 400
    assert feedback.status_code == 201
    assert feedback.get_json()["data"]["toUserId"] == str(teacher_user["_id"])
    assert bad_rating.status_code == 400

    stats = client.get("/api/teacher/video-coaching/stats", headers=headers).get_json()["data"]
    assert stats["averageRating"] == 4
    assert stats["upcomingSessions"] == 1


def test_feedback_replaces_previous_rating(client, teacher, student):
    _, headers = teacher
    _, student_headers = student
    session_id = _schedule(client, headers, student[0]["_id"]).get_json()["data"]["id"]
    url = f"/api/student/video-coaching/{session_id}/feedback"

    client.post(url, json={"rating": 2}, headers=student_headers)
    client.post(url, json={"rating": 5}, headers=student_headers)

    session = client.get(f"{SESSIONS}/{session_id}", headers=headers).get_json()["data"]
    assert [f["rating"] for f in session["feedback"]] == [5]


def test_student_overview_and_teacher_filter(client, teacher, student):
    _, headers = teacher
    _, student_headers = student
    _schedule(client, headers, student[0]["_id"])
    cancelled_id = _schedule(client, headers, student[0]["_id"], title="Old").get_json()["data"]["id"]
    client.put(f"{SESSIONS}/{cancelled_id}", json={"status": "cancelled"}, headers=headers)

    overview = client.get("/api/student/video-coaching", headers=student_headers).get_json()["data"]
    cancelled = client.get(f"{SESSIONS}?status=cancelled", headers=headers).get_json()["data"]
    student_stats = client.get("/api/student/video-coaching/stats", headers=student_headers).get_json()["data"]

    assert [s["title"] for s in overview["upcoming"]] == ["Weekly check-in"]
    assert [s["id"] for s in overview["recent"]] == [cancelled_id]
    assert [s["id"] for s in cancelled] == [cancelled_id]
    assert student_stats["totalSessions"] == 2
    assert student_stats["cancelledSessions"] == 1
