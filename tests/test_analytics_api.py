"""Performance analytics for students, classes and teachers."""

from datetime import datetime, timedelta

from coachhub.services.report.analytics_service import grade_trend, study_consistency, scale_ten
from coachhub.utils.time.timeutils import utc_now


def _iso(days):
    return (utc_now() + timedelta(days=days)).isoformat()


def _grade(client, teacher_headers, student_headers, assignment_id, grade):
    client.post(f"/api/student/assignments/{assignment_id}/submit", json={"content": "done"}, headers=student_headers)
    submission_id = client.get(f"/api/teacher/assignments/{assignment_id}/submissions",
                               headers=teacher_headers).get_json()["data"][0]["id"]
    client.put(f"/api/teacher/assignments/submissions/{submission_id}/grade",
               json={"grade": grade}, headers=teacher_headers)


def _history(client, teacher_headers, student_headers, student_id):
    """Math graded at 90, Science never submitted; both already due"""
    math_id = client.post("/api/teacher/assignments", json={
        "title": "Algebra quiz", "type": "individual", "subject": "Math",
        "studentId": str(student_id), "dueDate": _iso(-2)
    }, headers=teacher_headers).get_json()["data"]["id"]
    client.post("/api/teacher/assignments", json={
        "title": "Lab report", "type": "individual", "subject": "Science",
        "studentId": str(student_id), "dueDate": _iso(-1)
    }, headers=teacher_headers)
    _grade(client, teacher_headers, student_headers, math_id, 90)


def test_grade_trend():
    assert grade_trend([50, 50, 50, 80, 80, 80], 3) == "improving"
    assert grade_trend([90, 90, 90, 60, 60, 60], 3) == "declining"
    assert grade_trend([70, 72, 71, 73], 2) == "stable"
    assert grade_trend([70, 90], 3) == "stable"


def test_study_consistency():
    start = datetime(2026, 3, 1)
    even = [start + timedelta(days=7 * n) for n in range(4)]
    uneven = [start, start + timedelta(days=1), start + timedelta(days=40)]

    assert study_consistency(even) == 10
    assert study_consistency(uneven) == 1
    assert study_consistency([start]) == 5


def test_scale_ten_clamps():
    assert scale_ten(0) == 1
    assert scale_ten(14) == 10
    assert scale_ten(6.4) == 6


def test_student_performance_metrics(client, teacher, student):
    _, headers = teacher
    student_user, student_headers = student
    _history(client, headers, student_headers, student_user["_id"])

    response = client.get("/api/analytics/student", headers=student_headers)

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["studentId"] == str(student_user["_id"])
    assert data["academicPerformance"] == {
        "averageGrade": 90, "gradeTrend": "stable", "completionRate": 50, "gradingRate": 100
    }
    subjects = {s["subject"]: s for s in data["subjectAnalysis"]}
    assert subjects["Math"]["strength"] == 9
    assert subjects["Math"]["weakness"] == 2
    assert subjects["Science"]["gradedAssignments"] == 0
    assert "Low assignment completion" in data["predictions"]["riskFactors"]
    assert data["predictions"]["nextMonthGrade"] == 90
    assert "Follow up on assignments" in [r["title"] for r in data["recommendations"]]


def test_student_metrics_outside_period_are_empty(client, teacher, student):
    _, headers = teacher
    student_user, student_headers = student
    _history(client, headers, student_headers, student_user["_id"])

    response = client.get(f"/api/analytics/student?startDate={_iso(10)[:10]}&endDate={_iso(20)[:10]}",
                          headers=student_headers)

    data = response.get_json()["data"]
    assert data["academicPerformance"]["completionRate"] == 0
    assert data["subjectAnalysis"] == []


def test_student_analytics_is_student_only(client, teacher):
    _, headers = teacher

    assert client.get("/api/analytics/student", headers=headers).status_code == 403


def test_class_analytics(client, teacher, student):
    _, headers = teacher
    student_user, student_headers = student
    class_id = client.post("/api/teacher/classes", json={
        "name": "Biology", "students": [str(student_user["_id"])]
    }, headers=headers).get_json()["data"]["id"]
    assignment_id = client.post("/api/teacher/assignments", json={
        "title": "Cells", "type": "class", "classId": class_id, "dueDate": _iso(-1)
    }, headers=headers).get_json()["data"]["id"]
    _grade(client, headers, student_headers, assignment_id, 50)

    response = client.get(f"/api/analytics/class?classId={class_id}", headers=headers)

    assert response.status_code == 200
    data = response.get_json()["data"]
    name = f"{student_user['firstName']} {student_user['lastName']}"
    assert data["className"] == "Biology"
    assert data["overallPerformance"]["averageGrade"] == 50
    assert data["overallPerformance"]["completionRate"] == 100
    assert data["studentRankings"][0]["rank"] == 1
    assert data["studentRankings"][0]["score"] == 50
    assert data["subjectBreakdown"][0]["subject"] == "General"
    assert data["subjectBreakdown"][0]["difficulty"] == "hard"
    assert data["subjectBreakdown"][0]["studentPerformance"]["average"] == 1
    assert data["insights"]["strugglingStudents"] == [name]
    assert data["insights"]["improvementAreas"] == ["General"]


def test_class_analytics_without_grades_has_no_difficulty(client, teacher, student):
    _, headers = teacher
    class_id = client.post("/api/teacher/classes", json={
        "name": "Chemistry", "students": [str(student[0]["_id"])]
    }, headers=headers).get_json()["data"]["id"]
    client.post("/api/teacher/assignments", json={
        "title": "Atoms", "type": "class", "classId": class_id, "subject": "Chemistry", "dueDate": _iso(-1)
    }, headers=headers)

    data = client.get(f"/api/analytics/class?classId={class_id}", headers=headers).get_json()["data"]

    assert data["subjectBreakdown"][0]["difficulty"] is None
    assert data["overallPerformance"]["completionRate"] == 0
    assert data["insights"]["topPerformers"] == []


def test_class_analytics_requires_visible_class(client, teacher, make_user, tokens):
    _, headers = teacher
    other = make_user("teacher")
    class_id = client.post("/api/teacher/classes", json={"name": "Private"},
                           headers=tokens(other, "teacher")).get_json()["data"]["id"]

    missing = client.get("/api/analytics/class", headers=headers)
    hidden = client.get(f"/api/analytics/class?classId={class_id}", headers=headers)

    assert missing.status_code == 400
    assert hidden.status_code == 404


def test_teacher_analytics(client, teacher, student):
    _, headers = teacher
    student_user, student_headers = student
    _history(client, headers, student_headers, student_user["_id"])

    response = client.get("/api/analytics/teacher", headers=headers)

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["studentOutcomes"]["totalStudents"] == 1
    assert data["studentOutcomes"]["highPerformers"] == 1
    assert data["studentOutcomes"]["successRate"] == 100
    assert data["workloadAnalysis"]["totalAssignments"] == 2
    assert data["workloadAnalysis"]["totalSubmissions"] == 1
    assert data["workloadAnalysis"]["pendingGradings"] == 0
    assert data["teachingEffectiveness"]["feedbackTimeliness"] == 10
    assert data["teachingEffectiveness"]["engagementLevel"] == 5


def test_teacher_analytics_flags_grading_backlog(client, teacher, student):
    _, headers = teacher
    student_user, student_headers = student
    assignment_id = client.post("/api/teacher/assignments", json={
        "title": "Essay", "type": "individual", "studentId": str(student_user["_id"]), "dueDate": _iso(-1)
    }, headers=headers).get_json()["data"]["id"]
    client.post(f"/api/student/assignments/{assignment_id}/submit", json={"content": "draft"}, headers=student_headers)

    data = client.get("/api/analytics/teacher", headers=headers).get_json()["data"]

    assert data["workloadAnalysis"]["pendingGradings"] == 1
    assert data["teachingEffectiveness"]["feedbackTimeliness"] == 0
    assert "Grade submissions sooner" in [r["title"] for r in data["recommendations"]]


def test_student_analysis_includes_monthly_progress(client, teacher, student):
    _, headers = teacher
    student_user, student_headers = student
    _history(client, headers, student_headers, student_user["_id"])

    response = client.get("/api/student/analysis", headers=student_headers)

    data = response.get_json()["data"]
    assert response.status_code == 200
    assert data["performance"]["averageGrade"] == 90
    assert len(data["monthlyProgress"]) == 6
    assert data["monthlyProgress"][-1]["month"] == utc_now().strftime("%Y-%m")
    assert sum(m["submitted"] for m in data["monthlyProgress"]) == 1


def test_teacher_student_analysis(client, teacher, student, make_user):
    _, headers = teacher
    student_user, student_headers = student
    stranger = make_user("student")
    _history(client, headers, student_headers, student_user["_id"])

    own = client.get(f"/api/teacher/students/{student_user['_id']}/analysis", headers=headers)
    other = client.get(f"/api/teacher/students/{stranger['_id']}/analysis", headers=headers)

    assert own.status_code == 200
    assert own.get_json()["data"]["statistics"]["totalAssignments"] == 2
    assert other.status_code == 404
