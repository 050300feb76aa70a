"""
Report Data Service - Business Logic Layer (SoC)

Collects everything a student progress report shows: student and teacher
info, assignment statistics for the period, per-subject breakdown, recent
assignments, goals and generated insights.
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional
from bson import ObjectId
from coachhub.config.settings import SUBMITTED_STATUSES, GRADED_STATUSES, ReportConfig
from coachhub.exceptions.exceptions import NotFoundError
from coachhub.repositories.core.repository_factory import RepositoryFactory
from coachhub.services.teacher.student_service import percentage
from coachhub.utils.formatting.json_utils import sanitize_mongo_document, full_name
from coachhub.utils.time.timeutils import utc_now

logger = logging.getLogger(__name__)

def clamp_percent(value: float) -> int:
    return int(max(0, min(100, round(value))))

def overall_performance(completion: float, grading_rate: float, average_grade: float) -> int:
    return clamp_percent(completion * 0.5 + grading_rate * 0.3 + average_grade * 0.2)

def generate_insights(performance: Dict, subjects: List[Dict], goals: List[Dict]) -> Dict:
    strengths, improvements, recommendations = [], [], []

    if performance["assignmentCompletion"] < 70:
        recommendations.append("Build a regular study plan to submit assignments on time.")
        improvements.append("Assignment completion")
    elif performance["assignmentCompletion"] > 85:
        strengths.append("High assignment completion rate")

    if performance["averageGrade"] < 60:
        recommendations.append("Extra tutoring support is recommended to raise the grade average.")
        improvements.append("Grade average")
    elif performance["averageGrade"] > 80:
        strengths.append("High grade average")

    for subject in subjects:
        if subject["completion"] < 60:
            recommendations.append(f"More practice is recommended in {subject['subject']}.")
            improvements.append(f"Performance in {subject['subject']}")
        elif subject["completion"] > 80:
            strengths.append(f"Strong performance in {subject['subject']}")
        if subject["gradedAssignments"] and subject["averageGrade"] < 50:
            recommendations.append(f"Additional support in {subject['subject']} would help.")

    if any(g["status"] != "completed" for g in goals):
        recommendations.append("Work through the open goals with a more systematic approach.")

    if not recommendations:
        recommendations.append("Keep up the regular study routine to maintain current performance.")
    return {"strengths": strengths, "areasForImprovement": improvements, "recommendations": recommendations}


class ReportDataService:
    def __init__(self):
        self.repo_factory = RepositoryFactory()

    def _resolve_teacher(self, student: Dict, teacher_id: Optional[ObjectId]) -> Optional[Dict]:
        """The requesting teacher, else whoever created the student"""
        user_repo = self.repo_factory.get_user_repo()
        if teacher_id:
            return user_repo.find_public(teacher_id)
        if student.get("createdBy"):
            return user_repo.find_public(student["createdBy"])
        return None

    @staticmethod
    def subject_breakdown(assignments: List[Dict], submissions: Dict[ObjectId, Dict]) -> List[Dict]:
        grouped: Dict[str, Dict] = {}
        for assignment in assignments:
            stats = grouped.setdefault(assignment.get("subject") or "General", {"total": 0, "submitted": 0, "grades": []})
            stats["total"] += 1
            submission = submissions.get(assignment["_id"])
            if submission and submission.get("status") in SUBMITTED_STATUSES:
                stats["submitted"] += 1
            if submission and submission.get("status") in GRADED_STATUSES and submission.get("grade") is not None:
                stats["grades"].append(submission["grade"])

        return [
            {
                "subject": subject,
                "totalAssignments": stats["total"],
                "submittedAssignments": stats["submitted"],
                "gradedAssignments": len(stats["grades"]),
                "completion": percentage(stats["submitted"], stats["total"]),
                "averageGrade": round(sum(stats["grades"]) / len(stats["grades"])) if stats["grades"] else 0
            }
            for subject, stats in sorted(grouped.items())
        ]

    def load_student_records(self, student_id: ObjectId, start: datetime, end: datetime) -> Dict:
        """
        Classes, assignments due in the window, the student's submissions keyed
        by assignment id, and goals created in the window.
        """
        classes = self.repo_factory.get_class_repo().find_for_student(student_id)
        assignments = self.repo_factory.get_assignment_repo().find_for_student(
            student_id, [c["_id"] for c in classes], start, end
        )
        submissions = {
            s["assignmentId"]: s for s in self.repo_factory.get_submission_repo().find_for_student(
                student_id, [a["_id"] for a in assignments]
            )
        }
        goals = [
            g for g in self.repo_factory.get_goal_repo().find_for_student(student_id)
            if start <= g["createdAt"] <= end
        ]
        return {"classes": classes, "assignments": assignments, "submissions": submissions, "goals": goals}

    def collect_student_report_data(self, student_id: ObjectId, teacher_id: Optional[ObjectId],
                                    start: datetime, end: datetime) -> Dict:
        student = self.repo_factory.get_user_repo().find_public(student_id)
        if not student:
            raise NotFoundError("Student not found")
        teacher = self._resolve_teacher(student, teacher_id)

        records = self.load_student_records(student_id, start, end)
        classes, assignments, submissions = records["classes"], records["assignments"], records["submissions"]

        submitted = [s for s in submissions.values() if s.get("status") in SUBMITTED_STATUSES]
        graded = [s for s in submitted if s.get("status") in GRADED_STATUSES and s.get("grade") is not None]
        average_grade = round(sum(s["grade"] for s in graded) / len(graded)) if graded else 0
        completion = percentage(len(submitted), len(assignments))
        grading_rate = percentage(len(graded), len(submitted))

        goals = records["goals"]
        completed_goals = len([g for g in goals if g["status"] == "completed"])

        performance = {
            "assignmentCompletion": completion,
            "averageGrade": clamp_percent(average_grade),
            "gradingRate": grading_rate,
            "goalsProgress": percentage(completed_goals, len(goals)),
            "overallPerformance": overall_performance(completion, grading_rate, average_grade)
        }
        subjects = self.subject_breakdown(assignments, submissions)

        recent = []
        for assignment in assignments[:ReportConfig.RECENT_ASSIGNMENTS]:
            submission = submissions.get(assignment["_id"]) or {}
            recent.append({
                "title": assignment["title"],
                "subject": assignment.get("subject") or "General",
                "dueDate": assignment["dueDate"],
                "submittedAt": submission.get("submittedAt"),
                "status": submission.get("status", "pending"),
                "grade": submission.get("grade"),
                "maxGrade": assignment.get("maxGrade")
            })

        goal_summaries = [
            {
                "title": g["title"],
                "description": g.get("description", ""),
                "status": g["status"],
                "progress": g.get("progress", 0),
                "targetDate": g.get("targetDate")
            }
            for g in goals
        ]

        logger.info(f"Report data collected for student {student_id}: {len(assignments)} assignments")
        return sanitize_mongo_document({
            "student": {
                "id": student["_id"],
                "firstName": student.get("firstName", ""),
                "lastName": student.get("lastName", ""),
                "name": full_name(student),
                "email": student.get("email", ""),
                "className": classes[0]["name"] if classes else None
            },
            "teacher": {
                "id": teacher["_id"] if teacher else teacher_id,
                "name": full_name(teacher, "Teacher"),
                "email": (teacher or {}).get("email", "")
            },
            "period": {"startDate": start, "endDate": end},
            "performance": performance,
            "statistics": {
                "totalAssignments": len(assignments),
                "submittedAssignments": len(submitted),
                "gradedAssignments": len(graded),
                "pendingAssignments": len(assignments) - len(submitted),
                "totalGoals": len(goals),
                "completedGoals": completed_goals
            },
            "subjects": subjects,
            "recentAssignments": recent,
            "goals": goal_summaries,
            "insights": generate_insights(performance, subjects, goal_summaries),
            "generatedAt": utc_now()
        })
