"""
Analytics Service - Business Logic Layer (SoC)

Student performance metrics, class analytics and teacher analytics, built on
the same records the progress report collects. Scores marked 1-10 are clamped
to that scale; percentages are whole numbers.
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional
from bson import ObjectId
from coachhub.config.settings import SUBMITTED_STATUSES, GRADED_STATUSES, AnalyticsConfig
from coachhub.exceptions.exceptions import ValidationError
from coachhub.repositories.core.repository_factory import RepositoryFactory
from coachhub.services.report.report_data_service import ReportDataService
from coachhub.services.report.report_service import parse_report_range
from coachhub.services.teacher.class_service import ClassService
from coachhub.services.teacher.student_service import StudentService, percentage
from coachhub.utils.formatting.json_utils import sanitize_mongo_document, full_name
from coachhub.utils.time.timeutils import add_months

logger = logging.getLogger(__name__)

def _mean(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0

def scale_ten(value: float) -> int:
    return int(max(1, min(10, round(value))))

def grade_trend(grades: List[float], window: int) -> str:
    """Compare the last window grades with the window before them"""
    recent = grades[-window:]
    older = grades[-2 * window:-window]
    if not recent or not older:
        return "stable"
    if _mean(recent) > _mean(older) + AnalyticsConfig.TREND_THRESHOLD:
        return "improving"
    if _mean(recent) < _mean(older) - AnalyticsConfig.TREND_THRESHOLD:
        return "declining"
    return "stable"

def study_consistency(dates: List[datetime]) -> int:
    """10 for evenly spaced submissions, lower as the gaps vary"""
    if len(dates) < 2:
        return 5
    ordered = sorted(dates)
    gaps = [(b - a).total_seconds() / 86400 for a, b in zip(ordered, ordered[1:])]
    average = _mean(gaps)
    variance = _mean([(g - average) ** 2 for g in gaps])
    return scale_ten(10 - variance / 7)

def _graded(submissions: List[Dict]) -> List[Dict]:
    return [s for s in submissions if s.get("status") in GRADED_STATUSES and s.get("grade") is not None]

def _grade_order(submission: Dict):
    return submission.get("gradedAt") or submission.get("submittedAt") or submission["createdAt"]

def subject_recommendations(subject: str, average_grade: float, trend: str) -> List[str]:
    if average_grade < 60:
        tips = [f"Review the fundamentals of {subject}", f"Use additional resources for {subject}"]
    elif average_grade < 80:
        tips = [f"Keep practising {subject}"]
    else:
        tips = [f"{subject} is a strength, more time can go to other subjects"]
    if trend == "declining":
        tips.append(f"Results in {subject} are slipping")
    return tips

def student_recommendations(academic: Dict, behavior: Dict, subjects: List[Dict]) -> List[Dict]:
    recommendations = []
    if academic["averageGrade"] < 60:
        recommendations.append({
            "priority": "high", "category": "academic", "title": "Academic support needed",
            "description": "Extra tutoring is recommended to raise the grade average.",
            "expectedImpact": 8, "timeframe": "2-4 weeks"
        })
    if academic["completionRate"] < 70:
        recommendations.append({
            "priority": "high", "category": "academic", "title": "Follow up on assignments",
            "description": "Regular check-ins would raise the assignment completion rate.",
            "expectedImpact": 7, "timeframe": "1-2 weeks"
        })
    if behavior["studyConsistency"] < 5:
        recommendations.append({
            "priority": "medium", "category": "behavioral", "title": "Build a study routine",
            "description": "A fixed daily study slot helps build consistent habits.",
            "expectedImpact": 6, "timeframe": "3-4 weeks"
        })
    if behavior["engagementLevel"] < 6:
        recommendations.append({
            "priority": "medium", "category": "motivational", "title": "Boost motivation",
            "description": "Plan engaging activities around the student's interests.",
            "expectedImpact": 7, "timeframe": "2-3 weeks"
        })
    weak = [s["subject"] for s in subjects if s["gradedAssignments"] and s["averageGrade"] < 60]
    if weak:
        recommendations.append({
            "priority": "high", "category": "academic", "title": "Focus on weak subjects",
            "description": f"Extra practice is recommended in {', '.join(weak)}.",
            "expectedImpact": 8, "timeframe": "4-6 weeks"
        })
    return recommendations

def teacher_recommendations(effectiveness: Dict, outcomes: Dict, workload: Dict) -> List[Dict]:
    recommendations = []
    if effectiveness["feedbackTimeliness"] < 7:
        recommendations.append({
            "priority": "high", "category": "assessment", "title": "Grade submissions sooner",
            "description": "Shorter turnaround on grading keeps students engaged.", "expectedImpact": 8
        })
    if workload["pendingGradings"] > 10:
        recommendations.append({
            "priority": "high", "category": "workload", "title": "Clear the grading backlog",
            "description": "Work through pending submissions oldest first.", "expectedImpact": 7
        })
    if outcomes["totalStudents"] and outcomes["strugglingStudents"] > outcomes["totalStudents"] * 0.3:
        recommendations.append({
            "priority": "medium", "category": "teaching", "title": "Support struggling students",
            "description": "Plan extra lessons or one-to-one sessions for students below 60.", "expectedImpact": 8
        })
    if effectiveness["engagementLevel"] < 6:
        recommendations.append({
            "priority": "medium", "category": "engagement", "title": "Raise participation",
            "description": "More interactive assignments tend to lift submission rates.", "expectedImpact": 6
        })
    return recommendations


class AnalyticsService:
    def __init__(self):
        self.repo_factory = RepositoryFactory()
        self.report_data = ReportDataService()

    @staticmethod
    def _range(start_raw: Optional[str], end_raw: Optional[str]):
        return parse_report_range(start_raw, end_raw, AnalyticsConfig.DEFAULT_RANGE_DAYS)

    # ---------- student ----------

    def _monthly_progress(self, student_id: ObjectId, end: datetime) -> List[Dict]:
        months = AnalyticsConfig.MONTHLY_PROGRESS_MONTHS
        first = add_months(datetime(end.year, end.month, 1), 1 - months)
        records = self.report_data.load_student_records(student_id, first, end)
        submitted = [s for s in records["submissions"].values() if s.get("status") in SUBMITTED_STATUSES]

        progress = []
        for offset in range(months):
            month_start = add_months(first, offset)
            month_end = add_months(first, offset + 1)
            progress.append({
                "month": month_start.strftime("%Y-%m"),
                "assignments": len([a for a in records["assignments"] if month_start <= a["dueDate"] < month_end]),
                "submitted": len([s for s in submitted if month_start <= s["submittedAt"] < month_end]),
                "goals": len([g for g in records["goals"] if month_start <= g["createdAt"] < month_end])
            })
        return progress

    def get_student_analysis(self, student_id: ObjectId, teacher_id: Optional[ObjectId] = None,
                             start_raw: str = None, end_raw: str = None) -> dict:
        """Report figures for the period plus a month-by-month activity count"""
        start, end = self._range(start_raw, end_raw)
        report = self.report_data.collect_student_report_data(student_id, teacher_id, start, end)
        return {
            "student": report["student"],
            "period": report["period"],
            "performance": report["performance"],
            "statistics": report["statistics"],
            "subjects": report["subjects"],
            "monthlyProgress": sanitize_mongo_document(self._monthly_progress(student_id, end))
        }

    def get_teacher_student_analysis(self, student_id: str, teacher_id: ObjectId,
                                     start_raw: str = None, end_raw: str = None) -> dict:
        student = StudentService().get_visible_student(student_id, teacher_id)
        return self.get_student_analysis(student["_id"], teacher_id, start_raw, end_raw)

    def get_student_performance_metrics(self, student_id: ObjectId, start_raw: str = None,
                                        end_raw: str = None) -> dict:
        start, end = self._range(start_raw, end_raw)
        records = self.report_data.load_student_records(student_id, start, end)
        assignments, submissions = records["assignments"], records["submissions"]
        by_id = {a["_id"]: a for a in assignments}

        submitted = [s for s in submissions.values() if s.get("status") in SUBMITTED_STATUSES]
        graded = sorted(_graded(submitted), key=_grade_order)
        grades = [s["grade"] for s in graded]
        average_grade = round(_mean(grades))

        academic = {
            "averageGrade": average_grade,
            "gradeTrend": grade_trend(grades, 5),
            "completionRate": percentage(len(submitted), len(assignments)),
            "gradingRate": percentage(len(graded), len(submitted))
        }

        subject_grades: Dict[str, List[float]] = {}
        for submission in graded:
            subject = by_id[submission["assignmentId"]].get("subject") or "General"
            subject_grades.setdefault(subject, []).append(submission["grade"])
        subjects = []
        for row in self.report_data.subject_breakdown(assignments, submissions):
            trend = grade_trend(subject_grades.get(row["subject"], []), 3)
            strength = scale_ten(row["averageGrade"] / 10)
            subjects.append({
                **row,
                "trend": trend,
                "strength": strength,
                "weakness": 11 - strength,
                "recommendations": subject_recommendations(row["subject"], row["averageGrade"], trend)
            })

        on_time = [s for s in submitted if s["submittedAt"] <= by_id[s["assignmentId"]]["dueDate"]]
        goals = records["goals"]
        completed_goals = [g for g in goals if g["status"] == "completed"]
        behavior = {
            "studyConsistency": study_consistency([s["submittedAt"] for s in submitted]),
            "assignmentPunctuality": scale_ten(len(on_time) / len(assignments) * 10) if assignments else 5,
            "goalOrientation": scale_ten(len(completed_goals) / len(goals) * 10) if goals else 5,
            "engagementLevel": scale_ten(
                average_grade / 10 + (len(submitted) / len(assignments) * 5 if assignments else 0)
            )
        }

        next_month = average_grade + {"improving": 5, "declining": -5}.get(academic["gradeTrend"], 0)
        risks, opportunities = [], []
        if graded and average_grade < 60:
            risks.append("Low grade average")
        if behavior["studyConsistency"] < 5:
            risks.append("Irregular study pattern")
        if assignments and academic["completionRate"] < 70:
            risks.append("Low assignment completion")
        if academic["gradeTrend"] == "improving":
            opportunities.append("Grades are trending up")
        if behavior["studyConsistency"] > 7:
            opportunities.append("Consistent study pattern")
        if academic["completionRate"] > 85:
            opportunities.append("High assignment completion")

        return sanitize_mongo_document({
            "studentId": student_id,
            "period": {"start": start, "end": end},
            "academicPerformance": academic,
            "subjectAnalysis": subjects,
            "behavioralInsights": behavior,
            "predictions": {
                "nextMonthGrade": int(max(0, min(100, next_month))),
                "riskFactors": risks,
                "opportunities": opportunities
            },
            "recommendations": student_recommendations(academic, behavior, subjects)
        })

    # ---------- class ----------

    def get_class_analytics(self, class_id: str, teacher_id: ObjectId, start_raw: str = None,
                            end_raw: str = None) -> dict:
        if not class_id:
            raise ValidationError("classId is required")
        cls = ClassService().get_visible_class(class_id, teacher_id)
        start, end = self._range(start_raw, end_raw)

        assignments = self.repo_factory.get_assignment_repo().find_for_class(cls["_id"], start, end)
        subjects_by_assignment = {a["_id"]: a.get("subject") or "General" for a in assignments}
        submissions = self.repo_factory.get_submission_repo().find_for_assignments(list(subjects_by_assignment))
        students = self.repo_factory.get_user_repo().find_by_ids(
            cls.get("students", []), {"firstName": 1, "lastName": 1, "username": 1}
        )

        submitted = [s for s in submissions if s.get("status") in SUBMITTED_STATUSES]
        graded = sorted(_graded(submitted), key=_grade_order)
        average_grade = round(_mean([s["grade"] for s in graded]))
        completion = percentage(len(submitted), len(assignments) * len(students))

        rankings = []
        for student in students:
            grades = [s["grade"] for s in graded if s["studentId"] == student["_id"]]
            rankings.append({
                "studentId": student["_id"],
                "studentName": full_name(student),
                "score": round(_mean(grades)),
                "gradedAssignments": len(grades),
                "trend": grade_trend(grades, 3)
            })
        rankings.sort(key=lambda r: r["score"], reverse=True)
        for position, ranking in enumerate(rankings, start=1):
            ranking["rank"] = position

        subject_grades: Dict[str, List[float]] = {}
        for subject in subjects_by_assignment.values():
            subject_grades.setdefault(subject, [])
        for submission in graded:
            subject_grades[subjects_by_assignment[submission["assignmentId"]]].append(submission["grade"])

        breakdown = []
        for subject, grades in sorted(subject_grades.items()):
            subject_average = round(_mean(grades))
            if not grades:
                difficulty = None
            elif subject_average >= 80:
                difficulty = "easy"
            elif subject_average >= 60:
                difficulty = "medium"
            else:
                difficulty = "hard"
            breakdown.append({
                "subject": subject,
                "averageGrade": subject_average,
                "gradedSubmissions": len(grades),
                "difficulty": difficulty,
                "studentPerformance": {
                    "excellent": len([g for g in grades if g >= 90]),
                    "good": len([g for g in grades if 70 <= g < 90]),
                    "average": len([g for g in grades if 50 <= g < 70]),
                    "belowAverage": len([g for g in grades if g < 50])
                }
            })

        ranked = [r for r in rankings if r["gradedAssignments"]]
        graded_subjects = [b for b in breakdown if b["gradedSubmissions"]]
        return sanitize_mongo_document({
            "classId": cls["_id"],
            "className": cls["name"],
            "period": {"start": start, "end": end},
            "overallPerformance": {
                "averageGrade": average_grade,
                "completionRate": completion,
                "engagementScore": int(min(10, round(average_grade / 10 + completion / 10)))
            },
            "studentRankings": rankings,
            "subjectBreakdown": breakdown,
            "insights": {
                "topPerformers": [r["studentName"] for r in ranked[:3]],
                "strugglingStudents": [r["studentName"] for r in ranked if r["score"] < 60][-3:],
                "improvementAreas": [b["subject"] for b in graded_subjects if b["averageGrade"] < 70],
                "strengths": [b["subject"] for b in graded_subjects if b["averageGrade"] >= 80]
            }
        })

    # ---------- teacher ----------

    def get_teacher_analytics(self, teacher_id: ObjectId, start_raw: str = None, end_raw: str = None) -> dict:
        start, end = self._range(start_raw, end_raw)
        assignments = self.repo_factory.get_assignment_repo().find_for_teacher(
            teacher_id, {"dueDate": {"$gte": start, "$lte": end}}
        )
        submissions = self.repo_factory.get_submission_repo().find_for_assignments([a["_id"] for a in assignments])
        student_ids = StudentService().visible_student_ids(teacher_id)

        class_sizes = {
            c["_id"]: len(c.get("students", []))
            for c in self.repo_factory.get_class_repo().find_for_teacher(teacher_id)
        }
        expected = sum(class_sizes.get(a.get("classId"), 0) if a["type"] == "class" else 1 for a in assignments)

        submitted = [s for s in submissions if s.get("status") in SUBMITTED_STATUSES]
        graded = _graded(submitted)
        pending = [s for s in submitted if s.get("status") not in GRADED_STATUSES]

        assignment_load = min(10, len(assignments) / len(student_ids) * 2) if student_ids else 0
        feedback = len(graded) / len(submitted) * 10 if submitted else 5
        engagement = min(10, len(submitted) / expected * 10) if expected else 5
        effectiveness = {
            "overallScore": round((assignment_load + feedback + engagement) / 3, 1),
            "assignmentLoad": round(assignment_load, 1),
            "feedbackTimeliness": round(feedback, 1),
            "engagementLevel": round(engagement, 1)
        }

        per_student: Dict[ObjectId, List[float]] = {}
        for submission in graded:
            per_student.setdefault(submission["studentId"], []).append(submission["grade"])
        averages = [_mean(grades) for grades in per_student.values()]
        high = len([a for a in averages if a >= 80])
        middle = len([a for a in averages if 60 <= a < 80])
        outcomes = {
            "totalStudents": len(student_ids),
            "gradedStudents": len(averages),
            "highPerformers": high,
            "averagePerformers": middle,
            "strugglingStudents": len(averages) - high - middle,
            "successRate": percentage(high + middle, len(averages))
        }

        turnaround = [
            (s["gradedAt"] - s["submittedAt"]).total_seconds() / 3600
            for s in graded if s.get("gradedAt") and s.get("submittedAt")
        ]
        workload = {
            "totalAssignments": len(assignments),
            "totalSubmissions": len(submitted),
            "pendingGradings": len(pending),
            "averageGradingHours": round(_mean(turnaround), 1),
            "workloadScore": round(max(1, min(10, 10 - len(pending) / len(assignments) * 5)), 1) if assignments else 10
        }

        logger.info(f"Teacher analytics for {teacher_id}: {len(assignments)} assignments, {len(submitted)} submissions")
        return sanitize_mongo_document({
            "teacherId": teacher_id,
            "period": {"start": start, "end": end},
            "teachingEffectiveness": effectiveness,
            "studentOutcomes": outcomes,
            "workloadAnalysis": workload,
            "recommendations": teacher_recommendations(effectiveness, outcomes, workload)
        })
