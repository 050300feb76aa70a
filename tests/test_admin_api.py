"""Admin dashboards, teacher and parent management, cache busting."""


def test_stats_count_active_accounts(client, admin, teacher, student, parent):
    _, headers = admin

    response = client.get("/api/admin/stats", headers=headers)

    assert response.status_code == 200
    stats = response.get_json()["data"]
    assert stats["activeTeachers"] == 1
    assert stats["activeStudents"] == 1
    assert stats["totalParents"] == 1
    assert stats["pendingApplications"] == 0
    assert stats["totalClasses"] == 0
    assert stats["activeSubscriptions"] == 0


def test_create_teacher_invalidates_stats(client, admin):
    _, headers = admin
    client.get("/api/admin/stats", headers=headers)

    created = client.post("/api/admin/create-teacher", json={
        "firstName": "Grace", "lastName": "Hopper", "username": "grace",
        "email": "grace@example.com", "password": "cobol123"
    }, headers=headers)
    stats = client.get("/api/admin/stats", headers=headers).get_json()["data"]

    assert created.status_code == 201
    assert "password" not in created.get_json()["data"]
    assert stats["activeTeachers"] == 1


def test_create_teacher_conflict_and_validation(client, admin, teacher):
    _, headers = admin
    existing, _ = teacher

    duplicate = client.post("/api/admin/create-teacher", json={
        "firstName": "A", "lastName": "B", "username": existing["username"],
        "email": "fresh@example.com", "password": "secret123"
    }, headers=headers)
    short_password = client.post("/api/admin/create-teacher", json={
        "firstName": "A", "lastName": "B", "username": "fresh",
        "email": "fresh@example.com", "password": "123"
    }, headers=headers)

    assert duplicate.status_code == 409
    assert short_password.status_code == 400


def test_list_and_detail_teachers(client, admin, teacher, student):
    _, headers = admin
    teacher_user, _ = teacher

    teachers = client.get("/api/admin/teachers", headers=headers).get_json()["data"]
    detail = client.get(f"/api/admin/teachers/{teacher_user['_id']}", headers=headers).get_json()["data"]
    stats = client.get(f"/api/admin/teachers/{teacher_user['_id']}/stats", headers=headers).get_json()["data"]

    assert [t["username"] for t in teachers] == [teacher_user["username"]]
    assert "password" not in teachers[0]
    assert detail["teacher"]["id"] == str(teacher_user["_id"])
    assert len(detail["students"]) == 1
    assert stats["totalStudents"] == 1
    assert stats["teacherName"] == f"{teacher_user['firstName']} {teacher_user['lastName']}"


def test_teacher_detail_for_student_is_not_found(client, admin, student):
    _, headers = admin
    student_user, _ = student
    assert client.get(f"/api/admin/teachers/{student_user['_id']}", headers=headers).status_code == 404


def test_toggle_teacher_status(client, admin, teacher):
    _, headers = admin
    teacher_user, teacher_headers = teacher
    url = f"/api/admin/teachers/{teacher_user['_id']}/toggle-status"

    missing_flag = client.put(url, json={}, headers=headers)
    deactivated = client.put(url, json={"isActive": False}, headers=headers)

    assert missing_flag.status_code == 400
    assert deactivated.get_json()["data"] == {"id": str(teacher_user["_id"]), "isActive": False}
    stats = client.get("/api/admin/stats", headers=headers).get_json()["data"]
    assert stats["activeTeachers"] == 0


def test_toggle_status_rejects_non_teacher(client, admin, student):
    _, headers = admin
    student_user, _ = student

    response = client.put(f"/api/admin/teachers/{student_user['_id']}/toggle-status",
                          json={"isActive": False}, headers=headers)

    assert response.status_code == 400


def test_parents_list_and_toggle(client, admin, parent):
    _, headers = admin
    parent_account, _ = parent

    parents = client.get("/api/admin/parents", headers=headers).get_json()["data"]
    toggled = client.put(f"/api/admin/parents/{parent_account['_id']}/toggle-status",
                         json={"isActive": False}, headers=headers)

    assert parents[0]["username"] == parent_account["username"]
    assert "password" not in parents[0]
    assert toggled.get_json()["data"]["isActive"] is False


def test_cache_bust_clears_caches(client, admin):
    _, headers = admin
    client.get("/api/pricing")
    client.get("/api/admin/stats", headers=headers)

    response = client.post("/api/cache-bust", headers=headers)

    assert response.status_code == 200
    assert response.get_json()["data"]["cleared"]["api"] == 2


def test_admin_routes_reject_other_roles(client, teacher, parent):
    _, teacher_headers = teacher
    _, parent_headers = parent

    assert client.get("/api/admin/stats", headers=teacher_headers).status_code == 403
    assert client.post("/api/cache-bust", headers=parent_headers).status_code == 403


def _class_with(client, headers, name, students):
    return client.post("/api/teacher/classes", json={"name": name, "students": [str(s) for s in students]},
                       headers=headers).get_json()["data"]["id"]


def test_teacher_classes_for_admin(client, admin, teacher, student, make_user, tokens):
    teacher_user, teacher_headers = teacher
    _, headers = admin
    other = make_user("teacher")
    _class_with(client, teacher_headers, "Algebra", [student[0]["_id"]])
    client.post("/api/teacher/classes", json={"name": "Guest", "coTeachers": [str(teacher_user["_id"])]},
                headers=tokens(other, "teacher"))

    classes = client.get(f"/api/admin/teachers/{teacher_user['_id']}/classes", headers=headers).get_json()["data"]

    by_name = {c["name"]: c for c in classes}
    assert by_name["Algebra"]["studentCount"] == 1
    assert by_name["Algebra"]["isOwner"] is True
    assert by_name["Guest"]["isOwner"] is False


def test_teacher_students_and_parents_for_admin(client, admin, teacher, student, parent, make_user):
    teacher_user, teacher_headers = teacher
    _, headers = admin
    student_user, _ = student
    outsider = make_user("student")
    _class_with(client, teacher_headers, "Algebra", [student_user["_id"]])

    students = client.get(f"/api/admin/teachers/{teacher_user['_id']}/students", headers=headers).get_json()["data"]
    parents = client.get(f"/api/admin/teachers/{teacher_user['_id']}/parents", headers=headers).get_json()["data"]

    assert [(s["id"], s["className"]) for s in students] == [(str(student_user["_id"]), "Algebra")]
    assert str(outsider["_id"]) not in [s["id"] for s in students]
    assert len(parents) == 1
    assert parents[0]["childrenDetails"][0]["className"] == "Algebra"
    assert parents[0]["childrenDetails"][0]["email"] == student_user["email"]
    assert "password" not in parents[0]


def test_teacher_parents_empty_without_classes(client, admin, teacher, parent):
    teacher_user, _ = teacher
    _, headers = admin

    response = client.get(f"/api/admin/teachers/{teacher_user['_id']}/parents", headers=headers)

    assert response.status_code == 200
    assert response.get_json()["data"] == []


def test_teacher_sub_views_reject_non_teachers(client, admin, student):
    _, headers = admin

    for view in ("classes", "students", "parents"):
        assert client.get(f"/api/admin/teachers/{student[0]['_id']}/{view}", headers=headers).status_code == 404
    assert client.get("/api/admin/teachers/not-an-id/classes", headers=headers).status_code == 400
