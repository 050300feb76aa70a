"""Report Service - report data for teachers and parents, and PDF generation"""
import logging
from datetime import datetime, timedelta
from typing import Optional, Tuple
from bson import ObjectId
from coachhub.config.settings import ReportConfig
from coachhub.exceptions.exceptions import ValidationError
from coachhub.pdf_reports.report_builder import create_student_report
from coachhub.repositories.core.repository_factory import RepositoryFactory
from coachhub.services.parent.parent_service import ParentService
from coachhub.services.report.fallback_report_service import FallbackReportService
from coachhub.services.report.report_data_service import ReportDataService
from coachhub.services.teacher.student_service import StudentService
from coachhub.utils.time.timeutils import utc_now, parse_optional_datetime

logger = logging.getLogger(__name__)

def _is_date_only(raw: Optional[str]) -> bool:
    try:
        datetime.strptime(raw.strip(), "%Y-%m-%d")
    except (AttributeError, ValueError):
        return False
    return True

def parse_report_range(start_raw: Optional[str], end_raw: Optional[str],
                       default_days: int = ReportConfig.DEFAULT_RANGE_DAYS) -> Tuple[datetime, datetime]:
    """Query-string dates to an inclusive range; defaults to the last default_days days"""
    try:
        start = parse_optional_datetime(start_raw)
        end = parse_optional_datetime(end_raw)
    except ValueError:
        raise ValidationError("Invalid date format")

    if end is None:
        end = utc_now()
    elif _is_date_only(end_raw):
        end = end + timedelta(days=1) - timedelta(microseconds=1)
    if start is None:
        start = end - timedelta(days=default_days)
    if start > end:
        raise ValidationError("startDate must be before endDate")
    return start, end

def report_filename(student_id: str, day: datetime) -> str:
    return f"student-report-{student_id}-{day.strftime('%Y-%m-%d')}.pdf"

class ReportService:
    def __init__(self):
        self.repo_factory = RepositoryFactory()

    def get_teacher_report_data(self, student_id: str, teacher_id: ObjectId,
                                start_raw: str = None, end_raw: str = None) -> dict:
        start, end = parse_report_range(start_raw, end_raw)
        student = StudentService().get_visible_student(student_id, teacher_id)
        return ReportDataService().collect_student_report_data(student["_id"], teacher_id, start, end)

    def get_parent_report_data(self, student_id: str, parent_id: ObjectId,
                               start_raw: str = None, end_raw: str = None) -> dict:
        start, end = parse_report_range(start_raw, end_raw)
        child_id = ParentService().get_child_id(parent_id, student_id)
        return ReportDataService().collect_student_report_data(child_id, None, start, end)

    def _record(self, student_id: ObjectId, teacher_id: ObjectId, start: datetime, end: datetime,
                report_data: dict, is_fallback: bool) -> None:
        self.repo_factory.get_parent_report_repo().insert({
            "studentId": student_id,
            "teacherId": teacher_id,
            "period": {"startDate": start, "endDate": end},
            "overallPerformance": report_data["performance"]["overallPerformance"],
            "isFallback": is_fallback
        })

    def generate_student_report(self, student_id: str, teacher_id: ObjectId,
                                start_raw: str = None, end_raw: str = None) -> Tuple[bytes, str]:
        """
        Build the PDF report for one student.

        Collection failures fall back to placeholder data. A failing PDF build
        is retried once with error data; a second failure propagates.
        """
        start, end = parse_report_range(start_raw, end_raw)
        student = StudentService().get_visible_student(student_id, teacher_id)
        is_fallback = False

        try:
            report_data = ReportDataService().collect_student_report_data(student["_id"], teacher_id, start, end)
        except Exception as e:
            logger.error(f"Report data collection failed for student {student_id}: {e}")
            report_data = FallbackReportService.create_fallback_report_data(student_id, start, end, str(teacher_id))
            is_fallback = True

        try:
            pdf_bytes = create_student_report(report_data)
        except Exception as e:
            logger.error(f"PDF generation failed for student {student_id}: {e}")
            report_data = FallbackReportService.create_error_report_data(f"PDF generation failed: {e}", student_id)
            is_fallback = True
            pdf_bytes = create_student_report(report_data)

        self._record(student["_id"], teacher_id, start, end, report_data, is_fallback)
        logger.info(f"Report generated for student {student_id} ({len(pdf_bytes)} bytes)")
        return pdf_bytes, report_filename(student_id, utc_now())
