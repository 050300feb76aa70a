"""Fallback Report Service - placeholder report data when collection fails"""
import logging
from datetime import datetime
from typing import Dict, Optional
from coachhub.utils.formatting.json_utils import sanitize_mongo_document
from coachhub.utils.time.timeutils import utc_now

logger = logging.getLogger(__name__)

def _empty_report(student: Dict, teacher: Dict, start: datetime, end: datetime, insights: Dict) -> Dict:
    return sanitize_mongo_document({
        "student": student,
        "teacher": teacher,
        "period": {"startDate": start, "endDate": end},
        "performance": {
            "assignmentCompletion": 0,
            "averageGrade": 0,
            "gradingRate": 0,
            "goalsProgress": 0,
            "overallPerformance": 0
        },
        "statistics": {
            "totalAssignments": 0,
            "submittedAssignments": 0,
            "gradedAssignments": 0,
            "pendingAssignments": 0,
            "totalGoals": 0,
            "completedGoals": 0
        },
        "subjects": [],
        "recentAssignments": [],
        "goals": [],
        "insights": insights,
        "generatedAt": utc_now()
    })


class FallbackReportService:
    @staticmethod
    def create_fallback_report_data(student_id, start: datetime, end: datetime, teacher_id=None) -> Dict:
        logger.warning(f"Using fallback report data for student {student_id}")
        return _empty_report(
            {"id": student_id, "firstName": "Student", "lastName": "Information", "name": "Student Information",
             "email": "", "className": "Unknown class"},
            {"id": teacher_id, "name": "Teacher", "email": ""},
            start, end,
            {
                "strengths": ["No data found"],
                "areasForImprovement": ["Report data could not be collected"],
                "recommendations": ["Please try again later"]
            }
        )

    @staticmethod
    def create_error_report_data(error_message: str, student_id: Optional[str] = None) -> Dict:
        logger.warning(f"Using error report data: {error_message}")
        now = utc_now()
        report = _empty_report(
            {"id": student_id, "firstName": "Report", "lastName": "Error", "name": "Report Error",
             "email": "", "className": "Unknown"},
            {"id": None, "name": "Teacher", "email": ""},
            now, now,
            {
                "strengths": ["The report could not be generated"],
                "areasForImprovement": [error_message],
                "recommendations": ["Please contact the system administrator"]
            }
        )
        report["error"] = error_message
        return report
