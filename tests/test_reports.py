"""Student progress reports: data collection, PDF download and fallbacks."""

from datetime import datetime, timedelta

import pytest

from coachhub.exceptions.exceptions import ValidationError
from coachhub.repositories.core.repository_factory import RepositoryFactory
from coachhub.services.report.fallback_report_service import FallbackReportService
from coachhub.services.report.report_data_service import ReportDataService, overall_performance
from coachhub.services.report.report_service import parse_report_range, report_filename
from coachhub.utils.time.timeutils import utc_now


def _iso(days):
    return (utc_now() + timedelta(days=days)).isoformat()


def test_report_range_covers_whole_end_day():
    start, end = parse_report_range("2026-01-01", "2026-01-31")

    assert start == datetime(2026, 1, 1)
    assert end == datetime(2026, 1, 31, 23, 59, 59, 999999)


def test_report_range_keeps_explicit_midnight_end():
    _, end = parse_report_range("2026-01-01", "2026-01-31T00:00:00")
    _, zulu_end = parse_report_range("2026-01-01", "2026-01-31T00:00:00Z")

    assert end == datetime(2026, 1, 31)
    assert zulu_end == datetime(2026, 1, 31)


def test_report_range_defaults_to_last_ninety_days():
    start, end = parse_report_range(None, None)

    assert end - start == timedelta(days=90)
    assert abs((utc_now() - end).total_seconds()) < 5


def test_report_range_rejects_bad_input():
    with pytest.raises(ValidationError):
        parse_report_range("2026-02-01", "2026-01-01")
    with pytest.raises(ValidationError):
        parse_report_range("last tuesday", None)


def test_report_filename():
    assert report_filename("abc123", datetime(2026, 3, 5, 17, 30)) == "student-report-abc123-2026-03-05.pdf"


def test_overall_performance_weights():
    assert overall_performance(100, 100, 100) == 100
    assert overall_performance(0, 0, 0) == 0
    assert overall_performance(50, 100, 90) == 73


def test_fallback_report_data_shape():
    start, end = datetime(2026, 1, 1), datetime(2026, 1, 31)

    fallback = FallbackReportService.create_fallback_report_data("abc", start, end, "t1")
    error = FallbackReportService.create_error_report_data("boom", "abc")

    assert fallback["student"]["id"] == "abc"
    assert fallback["teacher"]["id"] == "t1"
    assert fallback["period"]["startDate"] == "2026-01-01T00:00:00"
    assert fallback["performance"]["overallPerformance"] == 0
    assert error["error"] == "boom"
    assert error["insights"]["areasForImprovement"] == ["boom"]


def _graded_history(client, teacher_headers, student_headers, student_id):
    """A graded Math assignment and an unsubmitted Science one, both already due"""
    math_id = client.post("/api/teacher/assignments", json={
        "title": "Algebra quiz", "type": "individual", "subject": "Math",
        "studentId": str(student_id), "dueDate": _iso(-2)
    }, headers=teacher_headers).get_json()["data"]["id"]
    client.post("/api/teacher/assignments", json={
        "title": "Lab report", "type": "individual", "subject": "Science",
        "studentId": str(student_id), "dueDate": _iso(-1)
    }, headers=teacher_headers)
    client.post(f"/api/student/assignments/{math_id}/submit", json={"content": "x = 2"}, headers=student_headers)
    submission_id = client.get(f"/api/teacher/assignments/{math_id}/submissions",
                               headers=teacher_headers).get_json()["data"][0]["id"]
    client.put(f"/api/teacher/assignments/submissions/{submission_id}/grade",
               json={"grade": 90}, headers=teacher_headers)


def test_teacher_report_data(client, teacher, student):
    teacher_user, headers = teacher
    student_user, student_headers = student
    _graded_history(client, headers, student_headers, student_user["_id"])

    report = client.get(f"/api/teacher/students/{student_user['_id']}/report/data",
                        headers=headers).get_json()["data"]

    assert report["teacher"]["email"] == teacher_user["email"]
    assert report["performance"] == {
        "assignmentCompletion": 50, "averageGrade": 90, "gradingRate": 100,
        "goalsProgress": 0, "overallPerformance": 73
    }
    assert report["statistics"]["pendingAssignments"] == 1
    assert [(s["subject"], s["completion"]) for s in report["subjects"]] == [("Math", 100), ("Science", 0)]
    assert [a["title"] for a in report["recentAssignments"]] == ["Lab report", "Algebra quiz"]
    assert "Performance in Science" in report["insights"]["areasForImprovement"]
    assert "High grade average" in report["insights"]["strengths"]


def test_report_data_respects_period(client, teacher, student):
    _, headers = teacher
    student_user, student_headers = student
    _graded_history(client, headers, student_headers, student_user["_id"])
    url = f"/api/teacher/students/{student_user['_id']}/report/data"

    future = client.get(f"{url}?startDate={_iso(30)[:10]}&endDate={_iso(60)[:10]}", headers=headers)
    backwards = client.get(f"{url}?startDate=2026-02-01&endDate=2026-01-01", headers=headers)

    assert future.get_json()["data"]["statistics"]["totalAssignments"] == 0
    assert backwards.status_code == 400


def test_report_for_invisible_student(client, teacher, make_user):
    _, headers = teacher
    stranger = make_user("student")

    response = client.get(f"/api/teacher/students/{stranger['_id']}/report/data", headers=headers)

    assert response.status_code == 404


def test_pdf_download(client, teacher, student, parent):
    _, headers = teacher
    student_user, _ = student
    _, parent_headers = parent

    response = client.get(f"/api/teacher/students/{student_user['_id']}/report/download", headers=headers)

    assert response.status_code == 200
    assert response.mimetype == "application/pdf"
    assert response.data.startswith(b"%PDF")
    disposition = response.headers["Content-Disposition"]
    assert disposition.startswith(f'attachment; filename="student-report-{student_user["_id"]}-')
    assert "no-store" in response.headers["Cache-Control"]

    dashboard = client.get("/api/parent/dashboard", headers=parent_headers).get_json()["data"]
    assert len(dashboard["recentReports"]) == 1
    assert dashboard["recentReports"][0]["isFallback"] is False


def test_pdf_download_falls_back_when_collection_fails(client, teacher, student, monkeypatch):
    _, headers = teacher
    student_user, _ = student

    def broken(*args, **kwargs):
        raise RuntimeError("database went away")

    monkeypatch.setattr(ReportDataService, "collect_student_report_data", broken)

    response = client.get(f"/api/teacher/students/{student_user['_id']}/report/download", headers=headers)

    assert response.status_code == 200
    assert response.data.startswith(b"%PDF")
    reports = RepositoryFactory.get_parent_report_repo().find_for_students([student_user["_id"]])
    assert reports[0]["isFallback"] is True


def test_parent_report_data(client, teacher, parent, make_user):
    teacher_user, _ = teacher
    parent_account, headers = parent
    child_id = parent_account["children"][0]
    stranger = make_user("student")

    own = client.get(f"/api/parent/students/{child_id}/report/data", headers=headers)
    other = client.get(f"/api/parent/students/{stranger['_id']}/report/data", headers=headers)

    assert own.status_code == 200
    assert own.get_json()["data"]["teacher"]["id"] == str(teacher_user["_id"])
    assert other.status_code == 403
