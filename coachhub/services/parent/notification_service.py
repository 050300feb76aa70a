"""Parent Notification Service - Business Logic Layer (SoC)"""
import logging
from typing import List
from bson import ObjectId
from coachhub.config.settings import NOTIFICATION_TYPES, PRIORITIES
from coachhub.exceptions.exceptions import NotFoundError, ValidationError
from coachhub.repositories.core.repository_factory import RepositoryFactory
from coachhub.utils.formatting.json_utils import sanitize_mongo_document
from coachhub.utils.validation.validation_utils import ValidationUtils

logger = logging.getLogger(__name__)

class NotificationService:
    def __init__(self):
        self.repo_factory = RepositoryFactory()

    def create_notification(self, parent_id: ObjectId, student_id: ObjectId, notification_type: str,
                            title: str, message: str, priority: str = "medium") -> dict:
        ValidationUtils.validate_enum(notification_type, NOTIFICATION_TYPES, "type")
        ValidationUtils.validate_enum(priority, PRIORITIES, "priority")
        return self.repo_factory.get_notification_repo().insert({
            "parentId": parent_id,
            "studentId": student_id,
            "type": notification_type,
            "title": title,
            "message": message,
            "priority": priority,
            "isRead": False,
            "readAt": None
        })

    def notify_parents(self, student_id: ObjectId, notification_type: str, title: str,
                       message: str, priority: str = "medium") -> List[dict]:
        """Notify every active parent of a student; failures are logged, never raised"""
        try:
            parents = self.repo_factory.get_parent_repo().find_active_by_child(student_id)
            return [
                self.create_notification(p["_id"], student_id, notification_type, title, message, priority)
                for p in parents
            ]
        except Exception as e:
            logger.error(f"Parent notification '{notification_type}' for student {student_id} failed: {e}")
            return []

    def create_from_teacher(self, data: dict) -> dict:
        ValidationUtils.validate_required_fields(data, "parentId", "studentId", "type", "title", "message")
        parent_id = ValidationUtils.validate_object_id(data["parentId"], "parentId")
        student_id = ValidationUtils.validate_object_id(data["studentId"], "studentId")

        parent = self.repo_factory.get_parent_repo().find_by_id(parent_id, {"children": 1})
        if not parent:
            raise NotFoundError("Parent not found")
        if student_id not in parent.get("children", []):
            raise ValidationError("Student is not a child of this parent")

        created = self.create_notification(
            parent_id, student_id, data["type"],
            ValidationUtils.validate_max_length(data["title"], 200, "title"),
            ValidationUtils.validate_max_length(data["message"], 2000, "message"),
            data.get("priority", "medium")
        )
        return sanitize_mongo_document(created)

    def list_notifications(self, parent_id: ObjectId, unread_only: bool = False) -> dict:
        repo = self.repo_factory.get_notification_repo()
        return {
            "notifications": sanitize_mongo_document(repo.find_for_parent(parent_id, unread_only)),
            "unreadCount": repo.count_unread(parent_id)
        }

    def mark_read(self, notification_id: str, parent_id: ObjectId) -> dict:
        oid = ValidationUtils.validate_object_id(notification_id, "notification id")
        if not self.repo_factory.get_notification_repo().mark_read(oid, parent_id):
            raise NotFoundError("Notification not found")
        return {"id": notification_id, "isRead": True}

    def mark_all_read(self, parent_id: ObjectId) -> dict:
        return {"updated": self.repo_factory.get_notification_repo().mark_all_read(parent_id)}
