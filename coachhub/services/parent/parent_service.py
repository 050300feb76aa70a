"""
Parent Service - Business Logic Layer (SoC)

Teacher-managed parent accounts and the parent-facing dashboard: children
statistics, trends, upcoming events and low-performance alerts.
"""
import logging
from datetime import timedelta
from typing import Dict, List
from bson import ObjectId
from coachhub.config.settings import UPCOMING_EVENT_DAYS, LOW_PERFORMANCE_GRADE, LOW_PERFORMANCE_MIN_GRADED
from coachhub.exceptions.exceptions import ValidationError, NotFoundError, ForbiddenError, ConflictError
from coachhub.repositories.core.repository_factory import RepositoryFactory
from coachhub.services.auth.account_service import AccountService
from coachhub.services.gamification.gamification_service import GamificationService
from coachhub.services.parent.notification_service import NotificationService
from coachhub.services.teacher.student_service import StudentService
from coachhub.utils.formatting.json_utils import sanitize_mongo_document, full_name
from coachhub.utils.time.timeutils import utc_now, days_ago
from coachhub.utils.validation.validation_utils import ValidationUtils

logger = logging.getLogger(__name__)

def recent_trend(average_grade: float) -> str:
    if average_grade >= 80:
        return "improving"
    if average_grade >= 60:
        return "stable"
    return "declining"

class ParentService:
    def __init__(self):
        self.repo_factory = RepositoryFactory()

    # ---------- teacher side ----------

    def _validate_children(self, raw, teacher_id: ObjectId) -> List[ObjectId]:
        if not isinstance(raw, list):
            raise ValidationError("children must be a list")
        student_service = StudentService()
        return list(dict.fromkeys(student_service.get_visible_student(c, teacher_id)["_id"] for c in raw))

    def _get_teacher_parent(self, parent_id: str, teacher_id: ObjectId) -> Dict:
        oid = ValidationUtils.validate_object_id(parent_id, "parent id")
        parent = self.repo_factory.get_parent_repo().find_public(oid)
        if not parent:
            raise NotFoundError("Parent not found")
        visible = set(StudentService().visible_student_ids(teacher_id))
        if parent.get("createdBy") != teacher_id and not visible.intersection(parent.get("children", [])):
            raise NotFoundError("Parent not found")
        return parent

    def _children_summaries(self, child_ids: List[ObjectId]) -> List[Dict]:
        return [
            {"_id": c["_id"], "name": full_name(c), "email": c.get("email", "")}
            for c in self.repo_factory.get_user_repo().find_by_ids(
                child_ids, {"firstName": 1, "lastName": 1, "username": 1, "email": 1}
            )
        ]

    def list_parents(self, teacher_id: ObjectId) -> list:
        parents = self.repo_factory.get_parent_repo().find_for_teacher(teacher_id, StudentService().visible_student_ids(teacher_id))
        for parent in parents:
            parent["childrenDetails"] = self._children_summaries(parent.get("children", []))
        return sanitize_mongo_document(parents)

    def create_parent(self, teacher_id: ObjectId, data: dict) -> dict:
        children = self._validate_children(data.get("children") or [], teacher_id)
        parent = AccountService().create_parent({**data, "children": children}, created_by=teacher_id)
        logger.info(f"Parent {parent['username']} created by teacher {teacher_id}")
        return sanitize_mongo_document(parent)

    def get_parent(self, parent_id: str, teacher_id: ObjectId) -> dict:
        parent = self._get_teacher_parent(parent_id, teacher_id)
        parent["childrenDetails"] = self._children_summaries(parent.get("children", []))
        return sanitize_mongo_document(parent)

    def update_parent(self, parent_id: str, teacher_id: ObjectId, data: dict) -> dict:
        parent = self._get_teacher_parent(parent_id, teacher_id)
        parent_repo = self.repo_factory.get_parent_repo()

        fields = {}
        for name in ("firstName", "lastName"):
            if name in data:
                fields[name] = ValidationUtils.validate_non_empty_string(data[name], name)
        if "phone" in data:
            fields["phone"] = (data["phone"] or "").strip()
        if "email" in data:
            email = ValidationUtils.validate_email(data["email"])
            existing = parent_repo.find_by_email(email)
            if (existing and existing["_id"] != parent["_id"]) or self.repo_factory.get_user_repo().find_by_email(email):
                raise ConflictError("Email is already in use")
            fields["email"] = email
        if "children" in data:
            fields["children"] = self._validate_children(data["children"], teacher_id)
        if "notificationPreferences" in data:
            prefs = data["notificationPreferences"]
            if not isinstance(prefs, dict):
                raise ValidationError("notificationPreferences must be an object")
            current = parent.get("notificationPreferences") or {}
            fields["notificationPreferences"] = {
                key: ValidationUtils.parse_bool(prefs.get(key, current.get(key, False)), key)
                for key in ("email", "sms", "push")
            }
        if not fields:
            raise ValidationError("Nothing to update")

        parent_repo.update_fields(parent["_id"], fields)
        return sanitize_mongo_document(parent_repo.find_public(parent["_id"]))

    def get_parent_children(self, parent_id: str, teacher_id: ObjectId) -> list:
        parent = self._get_teacher_parent(parent_id, teacher_id)
        students = self.repo_factory.get_user_repo().find_by_ids(parent.get("children", []), {"password": 0})
        student_service = StudentService()
        for student in students:
            student["stats"] = student_service.compute_student_stats(student["_id"])
        return sanitize_mongo_document(students)

    # ---------- parent side ----------

    def _get_parent(self, parent_id: ObjectId) -> Dict:
        parent = self.repo_factory.get_parent_repo().find_public(parent_id)
        if not parent:
            raise NotFoundError("Parent not found")
        return parent

    def get_child_id(self, parent_id: ObjectId, student_id: str) -> ObjectId:
        """The student id when it belongs to one of the parent's children, else 403"""
        oid = ValidationUtils.validate_object_id(student_id, "student id")
        if oid not in self._get_parent(parent_id).get("children", []):
            raise ForbiddenError("This student is not your child")
        return oid

    def _child_stats(self, child: Dict) -> Dict:
        stats = StudentService().compute_student_stats(child["_id"])
        level = GamificationService().get_or_create_level(child["_id"])
        return {
            "studentId": child["_id"],
            "name": full_name(child),
            **stats,
            "level": level.get("level", 1),
            "levelTitle": level.get("title"),
            "recentTrend": recent_trend(stats["averageGrade"])
        }

    def _raise_low_performance_alert(self, parent_id: ObjectId, child_stats: Dict) -> None:
        """At most one alert per child per day"""
        if child_stats["averageGrade"] >= LOW_PERFORMANCE_GRADE or \
                child_stats["gradedAssignments"] < LOW_PERFORMANCE_MIN_GRADED:
            return
        student_id = child_stats["studentId"]
        if self.repo_factory.get_notification_repo().exists_since(parent_id, student_id, "low_performance", days_ago(1)):
            return
        NotificationService().create_notification(
            parent_id, student_id, "low_performance",
            f"Low performance alert: {child_stats['name']}",
            f"{child_stats['name']} has an average grade of {child_stats['averageGrade']} "
            f"over {child_stats['gradedAssignments']} graded assignments.",
            "high"
        )
        logger.info(f"Low performance alert raised for student {student_id}")

    def _upcoming_events(self, children: List[Dict]) -> List[Dict]:
        now = utc_now()
        until = now + timedelta(days=UPCOMING_EVENT_DAYS)
        class_repo = self.repo_factory.get_class_repo()
        submission_repo = self.repo_factory.get_submission_repo()

        events = []
        for child in children:
            due = self.repo_factory.get_assignment_repo().find_due_between(
                child["_id"], class_repo.class_ids_for_student(child["_id"]), now, until
            )
            submitted = {s["assignmentId"] for s in submission_repo.find_for_student(child["_id"], [a["_id"] for a in due])}
            events.extend(
                {
                    "type": "assignment",
                    "id": a["_id"],
                    "title": a["title"],
                    "date": a["dueDate"],
                    "studentId": child["_id"],
                    "studentName": full_name(child)
                }
                for a in due if a["_id"] not in submitted
            )

        names = {c["_id"]: full_name(c) for c in children}
        for session in self.repo_factory.get_video_session_repo().find_scheduled_for_users(list(names), now, until):
            attendee = next((p["userId"] for p in session["participants"] if p["userId"] in names), None)
            events.append({
                "type": "video_session",
                "id": session["_id"],
                "title": session["title"],
                "date": session["scheduledAt"],
                "studentId": attendee,
                "studentName": names.get(attendee)
            })
        events.sort(key=lambda e: e["date"])
        return events

    def get_dashboard(self, parent_id: ObjectId) -> dict:
        parent = self._get_parent(parent_id)
        children = self.repo_factory.get_user_repo().find_by_ids(parent.get("children", []), {"password": 0})

        children_stats = [self._child_stats(child) for child in children]
        for child_stats in children_stats:
            self._raise_low_performance_alert(parent_id, child_stats)

        notification_repo = self.repo_factory.get_notification_repo()
        return sanitize_mongo_document({
            "parent": parent,
            "children": children,
            "childrenStats": children_stats,
            "recentNotifications": notification_repo.find_for_parent(parent_id, limit=10),
            "unreadCount": notification_repo.count_unread(parent_id),
            "recentReports": self.repo_factory.get_parent_report_repo().find_for_students(
                [c["_id"] for c in children], 5
            ),
            "upcomingEvents": self._upcoming_events(children)
        })

    def get_child_detail(self, parent_id: ObjectId, student_id: str) -> dict:
        oid = self.get_child_id(parent_id, student_id)
        student = self.repo_factory.get_user_repo().find_public(oid)
        if not student:
            raise NotFoundError("Student not found")
        submissions = self.repo_factory.get_submission_repo().find_for_student(oid)
        return sanitize_mongo_document({
            "student": student,
            "stats": self._child_stats(student),
            "goals": self.repo_factory.get_goal_repo().find_for_student(oid),
            "recentSubmissions": submissions[:5],
            "classes": [
                {"_id": c["_id"], "name": c["name"]}
                for c in self.repo_factory.get_class_repo().find_for_student(oid)
            ]
        })
