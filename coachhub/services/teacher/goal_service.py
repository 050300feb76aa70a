"""Goal Service - Business Logic Layer (SoC)"""
import logging
from bson import ObjectId
from coachhub.config.settings import GOAL_STATUSES, GOAL_CATEGORIES, PRIORITIES
from coachhub.exceptions.exceptions import ValidationError, NotFoundError, ForbiddenError
from coachhub.repositories.core.repository_factory import RepositoryFactory
from coachhub.services.gamification.gamification_service import GamificationService
from coachhub.services.parent.notification_service import NotificationService
from coachhub.services.teacher.student_service import StudentService
from coachhub.utils.formatting.json_utils import sanitize_mongo_document, full_name
from coachhub.utils.time.timeutils import utc_now
from coachhub.utils.validation.validation_utils import ValidationUtils

logger = logging.getLogger(__name__)

class GoalService:
    def __init__(self):
        self.repo_factory = RepositoryFactory()

    @staticmethod
    def _validate_fields(data: dict) -> dict:
        fields = {}
        if "title" in data:
            fields["title"] = ValidationUtils.validate_max_length(
                ValidationUtils.validate_non_empty_string(data["title"], "title"), 200, "title"
            )
        if "description" in data:
            fields["description"] = ValidationUtils.validate_max_length(data["description"] or "", 1000, "description")
        if "targetDate" in data:
            fields["targetDate"] = ValidationUtils.parse_date(data["targetDate"], "targetDate") if data["targetDate"] else None
        if "status" in data:
            fields["status"] = ValidationUtils.validate_enum(data["status"], GOAL_STATUSES, "status")
        if "progress" in data:
            fields["progress"] = ValidationUtils.validate_number_range(data["progress"], 0, 100, "progress")
        if "category" in data:
            fields["category"] = ValidationUtils.validate_enum(data["category"], GOAL_CATEGORIES, "category")
        if "priority" in data:
            fields["priority"] = ValidationUtils.validate_enum(data["priority"], PRIORITIES, "priority")
        if "successCriteria" in data:
            fields["successCriteria"] = ValidationUtils.validate_max_length(
                data["successCriteria"] or "", 500, "successCriteria"
            )
        return fields

    def _owned_assignment_id(self, assignment_id, teacher_id: ObjectId) -> ObjectId:
        oid = ValidationUtils.validate_object_id(assignment_id, "assignmentId")
        assignment = self.repo_factory.get_assignment_repo().find_by_id(oid, {"teacherId": 1})
        if not assignment:
            raise NotFoundError("Assignment not found")
        if assignment["teacherId"] != teacher_id:
            raise ForbiddenError("You do not own this assignment")
        return oid

    def _get_teacher_goal(self, goal_id: str, teacher_id: ObjectId) -> dict:
        oid = ValidationUtils.validate_object_id(goal_id, "goal id")
        goal = self.repo_factory.get_goal_repo().find_by_id(oid)
        if not goal:
            raise NotFoundError("Goal not found")
        if goal["teacherId"] != teacher_id:
            raise ForbiddenError("You do not own this goal")
        return goal

    def _save_with_completion(self, goal: dict, fields: dict) -> dict:
        """
        Persist fields. Reaching completed or 100% progress completes the goal;
        XP and the parent notice are granted only on the first completion ever,
        reopening clears completedAt but never rewardedAt.
        """
        completing = fields.get("status") == "completed" or fields.get("progress") == 100
        if completing:
            fields["status"] = "completed"
            fields["progress"] = 100
            fields["completedAt"] = goal.get("completedAt") or utc_now()
        elif fields.get("status") in ("pending", "in_progress", "cancelled"):
            fields["completedAt"] = None

        goal_repo = self.repo_factory.get_goal_repo()
        updated = goal_repo.update_fields(goal["_id"], fields)
        if completing and goal_repo.claim_completion_reward(goal["_id"]):
            updated = goal_repo.find_by_id(goal["_id"])
            GamificationService().award_goal_completion(goal["studentId"])
            NotificationService().notify_parents(
                goal["studentId"], "goal_achieved",
                f"Goal achieved: {goal['title']}",
                f"Your child completed the goal '{goal['title']}'.",
                "medium"
            )
            logger.info(f"Goal {goal['_id']} completed by student {goal['studentId']}")
        return updated

    # ---------- teacher ----------

    def list_teacher_goals(self, teacher_id: ObjectId, student_id: str = None, status: str = None) -> list:
        query = {}
        if student_id:
            query["studentId"] = ValidationUtils.validate_object_id(student_id, "studentId")
        if status:
            query["status"] = ValidationUtils.validate_enum(status, GOAL_STATUSES, "status")
        goals = self.repo_factory.get_goal_repo().find_for_teacher(teacher_id, query)
        students = {
            s["_id"]: s for s in self.repo_factory.get_user_repo().find_by_ids(
                list({g["studentId"] for g in goals}), {"firstName": 1, "lastName": 1, "username": 1}
            )
        }
        for goal in goals:
            goal["studentName"] = full_name(students.get(goal["studentId"]))
        return sanitize_mongo_document(goals)

    def create_goal(self, teacher_id: ObjectId, data: dict) -> dict:
        ValidationUtils.validate_required_fields(data, "studentId", "title")
        student = StudentService().get_visible_student(data["studentId"], teacher_id)
        fields = self._validate_fields(data)

        goal = {
            "studentId": student["_id"],
            "teacherId": teacher_id,
            "title": fields["title"],
            "description": fields.get("description", ""),
            "targetDate": fields.get("targetDate"),
            "status": fields.get("status", "pending"),
            "progress": fields.get("progress", 0),
            "category": fields.get("category", "academic"),
            "priority": fields.get("priority", "medium"),
            "assignmentId": self._owned_assignment_id(data["assignmentId"], teacher_id) if data.get("assignmentId") else None,
            "successCriteria": fields.get("successCriteria", ""),
            "parentNotificationSent": False,
            "completedAt": None,
            "rewardedAt": None
        }
        created = self.repo_factory.get_goal_repo().insert(goal)
        if goal["status"] == "completed" or goal["progress"] == 100:
            created = self._save_with_completion(created, {"status": "completed"})
        return sanitize_mongo_document(created)

    def update_goal(self, goal_id: str, teacher_id: ObjectId, data: dict) -> dict:
        goal = self._get_teacher_goal(goal_id, teacher_id)
        fields = self._validate_fields(data)
        if not fields:
            raise ValidationError("Nothing to update")
        return sanitize_mongo_document(self._save_with_completion(goal, fields))

    def delete_goal(self, goal_id: str, teacher_id: ObjectId) -> dict:
        goal = self._get_teacher_goal(goal_id, teacher_id)
        self.repo_factory.get_goal_repo().delete(goal["_id"])
        return {"message": "Goal deleted", "id": goal_id}

    def link_assignment(self, goal_id: str, teacher_id: ObjectId, data: dict) -> dict:
        goal = self._get_teacher_goal(goal_id, teacher_id)
        ValidationUtils.validate_required_fields(data, "assignmentId")
        assignment_id = self._owned_assignment_id(data["assignmentId"], teacher_id)
        return sanitize_mongo_document(
            self.repo_factory.get_goal_repo().update_fields(goal["_id"], {"assignmentId": assignment_id})
        )

    def notify_parent(self, goal_id: str, teacher_id: ObjectId) -> dict:
        goal = self._get_teacher_goal(goal_id, teacher_id)
        notifications = NotificationService().notify_parents(
            goal["studentId"], "general",
            f"Goal update: {goal['title']}",
            f"Goal '{goal['title']}' is {goal['status'].replace('_', ' ')} ({goal.get('progress', 0)}% complete).",
            goal.get("priority", "medium")
        )
        self.repo_factory.get_goal_repo().update_fields(goal["_id"], {"parentNotificationSent": True})
        return {"id": goal_id, "notificationsSent": len(notifications)}

    # ---------- student ----------

    def list_student_goals(self, student_id: ObjectId) -> list:
        return sanitize_mongo_document(self.repo_factory.get_goal_repo().find_for_student(student_id))

    def update_student_progress(self, goal_id: str, student_id: ObjectId, data: dict) -> dict:
        oid = ValidationUtils.validate_object_id(goal_id, "goal id")
        goal = self.repo_factory.get_goal_repo().find_by_id(oid)
        if not goal or goal["studentId"] != student_id:
            raise NotFoundError("Goal not found")

        fields = self._validate_fields({k: data[k] for k in ("progress", "status") if k in data})
        if not fields:
            raise ValidationError("progress or status is required")
        return sanitize_mongo_document(self._save_with_completion(goal, fields))
