"""Teacher-managed parents, parent notifications and the parent dashboard."""

from datetime import timedelta

from coachhub.repositories.core.repository_factory import RepositoryFactory
from coachhub.utils.time.timeutils import utc_now


def _iso(days):
    return (utc_now() + timedelta(days=days)).replace(microsecond=0).isoformat()


def _new_parent(client, headers, children, **overrides):
    payload = {
        "firstName": "Grace", "lastName": "Hopper", "username": "ghopper",
        "email": "grace@example.com", "password": "secret123", "children": [str(c) for c in children]
    }
    payload.update(overrides)
    return client.post("/api/teacher/parents", json=payload, headers=headers)


def test_teacher_creates_parent_for_visible_child(client, teacher, student, make_user):
    _, headers = teacher
    stranger = make_user("student")

    created = _new_parent(client, headers, [student[0]["_id"]])
    invisible = _new_parent(client, headers, [stranger["_id"]], username="other", email="other@example.com")

    assert created.status_code == 201
    parent = created.get_json()["data"]
    assert "password" not in parent
    assert parent["children"] == [str(student[0]["_id"])]
    assert parent["notificationPreferences"] == {"email": True, "sms": False, "push": True}
    assert invisible.status_code == 404


def test_list_and_get_parents(client, teacher, student, make_user, tokens):
    _, headers = teacher
    parent_id = _new_parent(client, headers, [student[0]["_id"]]).get_json()["data"]["id"]

    listed = client.get("/api/teacher/parents", headers=headers).get_json()["data"]
    detail = client.get(f"/api/teacher/parents/{parent_id}", headers=headers).get_json()["data"]
    hidden = client.get(f"/api/teacher/parents/{parent_id}", headers=tokens(make_user("teacher"), "teacher"))

    assert [p["id"] for p in listed] == [parent_id]
    assert listed[0]["childrenDetails"][0]["name"] == f"{student[0]['firstName']} {student[0]['lastName']}"
    assert detail["childrenDetails"][0]["id"] == str(student[0]["_id"])
    assert hidden.status_code == 404


def test_update_parent(client, teacher, student, make_user):
    _, headers = teacher
    parent_id = _new_parent(client, headers, [student[0]["_id"]]).get_json()["data"]["id"]
    url = f"/api/teacher/parents/{parent_id}"
    taken = make_user("student")

    updated = client.put(url, json={"phone": " 555-0100 ", "notificationPreferences": {"sms": True}}, headers=headers)
    clash = client.put(url, json={"email": taken["email"]}, headers=headers)
    bad_prefs = client.put(url, json={"notificationPreferences": "all"}, headers=headers)
    nothing = client.put(url, json={}, headers=headers)

    data = updated.get_json()["data"]
    assert data["phone"] == "555-0100"
    assert data["notificationPreferences"] == {"email": True, "sms": True, "push": True}
    assert clash.status_code == 409
    assert bad_prefs.status_code == 400
    assert nothing.status_code == 400


def test_parent_children_include_stats(client, teacher, parent):
    _, headers = teacher
    parent_account, _ = parent

    children = client.get(f"/api/teacher/parents/{parent_account['_id']}/children", headers=headers).get_json()["data"]

    assert len(children) == 1
    assert "password" not in children[0]
    assert children[0]["stats"]["totalAssignments"] == 0


def test_teacher_sends_notification(client, teacher, student, parent, make_user):
    _, headers = teacher
    parent_account, _ = parent
    payload = {
        "parentId": str(parent_account["_id"]), "studentId": str(student[0]["_id"]),
        "type": "general", "title": "Field trip", "message": "Bring a packed lunch"
    }

    created = client.post("/api/parent/notifications/create", json=payload, headers=headers)
    not_child = client.post("/api/parent/notifications/create",
                            json={**payload, "studentId": str(make_user("student")["_id"])}, headers=headers)
    no_parent = client.post("/api/parent/notifications/create",
                            json={**payload, "parentId": "0" * 24}, headers=headers)
    bad_type = client.post("/api/parent/notifications/create", json={**payload, "type": "gossip"}, headers=headers)

    assert created.status_code == 201
    assert created.get_json()["data"]["priority"] == "medium"
    assert created.get_json()["data"]["isRead"] is False
    assert not_child.status_code == 400
    assert no_parent.status_code == 404
    assert bad_type.status_code == 400


def test_parent_reads_notifications(client, parent, student):
    parent_account, headers = parent
    repo = RepositoryFactory.get_notification_repo()
    for title in ("One", "Two"):
        repo.insert({"parentId": parent_account["_id"], "studentId": student[0]["_id"], "type": "general",
                     "title": title, "message": "", "priority": "low", "isRead": False, "readAt": None})

    listed = client.get("/api/parent/notifications", headers=headers).get_json()["data"]
    first_id = listed["notifications"][0]["id"]
    read = client.post(f"/api/parent/notifications/{first_id}/read", headers=headers)
    unread = client.get("/api/parent/notifications?unreadOnly=true", headers=headers).get_json()["data"]
    read_all = client.post("/api/parent/notifications/read-all", headers=headers).get_json()["data"]
    missing = client.post(f"/api/parent/notifications/{'0' * 24}/read", headers=headers)

    assert listed["unreadCount"] == 2
    assert read.get_json()["data"] == {"id": first_id, "isRead": True}
    assert len(unread["notifications"]) == 1
    assert unread["unreadCount"] == 1
    assert read_all == {"updated": 1}
    assert missing.status_code == 404


def test_notifications_are_parent_only(client, teacher, student):
    assert client.get("/api/parent/notifications", headers=teacher[1]).status_code == 403
    assert client.get("/api/parent/dashboard", headers=student[1]).status_code == 403


def test_dashboard_shows_children_and_upcoming_events(client, teacher, student, parent):
    _, teacher_headers = teacher
    student_user, _ = student
    _, headers = parent
    client.post("/api/teacher/assignments", json={
        "title": "Essay draft", "type": "individual", "studentId": str(student_user["_id"]), "dueDate": _iso(3)
    }, headers=teacher_headers)
    client.post("/api/teacher/video-coaching/sessions", json={
        "title": "Progress chat", "studentId": str(student_user["_id"]), "scheduledAt": _iso(1)
    }, headers=teacher_headers)

    dashboard = client.get("/api/parent/dashboard", headers=headers).get_json()["data"]

    assert set(dashboard) == {
        "parent", "children", "childrenStats", "recentNotifications",
        "unreadCount", "recentReports", "upcomingEvents"
    }
    assert "password" not in dashboard["parent"]
    assert dashboard["childrenStats"][0]["level"] == 1
    assert dashboard["childrenStats"][0]["recentTrend"] == "declining"
    assert [(e["type"], e["title"]) for e in dashboard["upcomingEvents"]] == [
        ("video_session", "Progress chat"), ("assignment", "Essay draft")
    ]
    assert dashboard["upcomingEvents"][0]["studentId"] == str(student_user["_id"])


def _graded_assignment(client, teacher_headers, student_headers, student_id, grade, title):
    assignment_id = client.post("/api/teacher/assignments", json={
        "title": title, "type": "individual", "studentId": str(student_id), "dueDate": _iso(2)
    }, headers=teacher_headers).get_json()["data"]["id"]
    client.post(f"/api/student/assignments/{assignment_id}/submit", json={"content": "done"}, headers=student_headers)
    submissions = client.get(f"/api/teacher/assignments/{assignment_id}/submissions", headers=teacher_headers)
    submission_id = submissions.get_json()["data"][0]["id"]
    client.put(f"/api/teacher/assignments/submissions/{submission_id}/grade",
               json={"grade": grade}, headers=teacher_headers)


def test_low_performance_alert_raised_once_per_day(client, teacher, student, parent):
    _, teacher_headers = teacher
    student_user, student_headers = student
    parent_account, headers = parent
    for n in range(3):
        _graded_assignment(client, teacher_headers, student_headers, student_user["_id"], 30, f"Quiz {n}")

    client.get("/api/parent/dashboard", headers=headers)
    dashboard = client.get("/api/parent/dashboard", headers=headers).get_json()["data"]

    notifications = RepositoryFactory.get_notification_repo().find_for_parent(parent_account["_id"])
    alerts = [n for n in notifications if n["type"] == "low_performance"]
    assert len(alerts) == 1
    assert alerts[0]["priority"] == "high"
    assert dashboard["childrenStats"][0]["averageGrade"] == 30


def test_child_detail_is_limited_to_own_children(client, parent, make_user):
    _, headers = parent
    parent_account, _ = parent
    child_id = parent_account["children"][0]
    stranger = make_user("student")

    own = client.get(f"/api/parent/students/{child_id}", headers=headers)
    other = client.get(f"/api/parent/students/{stranger['_id']}", headers=headers)

    assert own.status_code == 200
    assert set(own.get_json()["data"]) == {"student", "stats", "goals", "recentSubmissions", "classes"}
    assert other.status_code == 403


def _register(client, **overrides):
    payload = {
        "firstName": "Mary", "lastName": "Somerville", "username": "msomerville",
        "email": "mary@example.com", "phone": "0123456789", "password": "secret123"
    }
    payload.update(overrides)
    return client.post("/api/parent/register", json=payload)


def test_parent_self_registration(client, student):
    response = _register(client, children=[str(student[0]["_id"])])

    assert response.status_code == 201
    account = response.get_json()["data"]
    assert account["children"] == []
    assert account["createdBy"] is None
    assert "password" not in account
    login = client.post("/api/parent/auth/login", json={"username": "msomerville", "password": "secret123"})
    assert login.status_code == 200


def test_parent_registration_validation(client, teacher):
    teacher_user, _ = teacher

    missing_phone = _register(client, phone="")
    short_phone = _register(client, phone="12345")
    short_name = _register(client, firstName="M")
    long_username = _register(client, username="m" * 31)
    taken = _register(client, email=teacher_user["email"])

    assert missing_phone.status_code == 400
    assert short_phone.status_code == 400
    assert short_name.status_code == 400
    assert long_username.status_code == 400
    assert taken.status_code == 409


def test_parent_registration_duplicate_username(client):
    assert _register(client).status_code == 201

    again = _register(client, email="other@example.com")

    assert again.status_code == 409


def test_parent_registration_is_rate_limited(client):
    responses = [_register(client, username=f"parent{n}x", email=f"p{n}@example.com") for n in range(11)]

    assert [r.status_code for r in responses[:10]] == [201] * 10
    assert responses[10].status_code == 429
