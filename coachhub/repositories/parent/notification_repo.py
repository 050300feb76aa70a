"""Parent Notification & Report Repositories - Data Access Layer (SoC)"""
from datetime import datetime
from typing import Dict, List
from bson import ObjectId
from coachhub.repositories.core.base_repo import BaseRepo
from coachhub.utils.time.timeutils import utc_now

class ParentNotificationRepo(BaseRepo):
    collection_name = "parent_notifications"

    def find_for_parent(self, parent_id: ObjectId, unread_only: bool = False, limit: int = 0) -> List[Dict]:
        query = {"parentId": parent_id}
        if unread_only:
            query["isRead"] = False
        return self.find_many(query, limit=limit)

    def count_unread(self, parent_id: ObjectId) -> int:
        return self.count({"parentId": parent_id, "isRead": False})

    def mark_read(self, notification_id: ObjectId, parent_id: ObjectId) -> bool:
        result = self.collection.update_one(
            {"_id": notification_id, "parentId": parent_id},
            {"$set": {"isRead": True, "readAt": utc_now()}}
        )
        return result.matched_count > 0

    def mark_all_read(self, parent_id: ObjectId) -> int:
        result = self.collection.update_many(
            {"parentId": parent_id, "isRead": False},
            {"$set": {"isRead": True, "readAt": utc_now()}}
        )
        return result.modified_count

    def exists_since(self, parent_id: ObjectId, student_id: ObjectId, notification_type: str, since: datetime) -> bool:
        return self.count({
            "parentId": parent_id,
            "studentId": student_id,
            "type": notification_type,
            "createdAt": {"$gte": since}
        }) > 0


class ParentReportRepo(BaseRepo):
    collection_name = "parent_reports"

    def find_for_students(self, student_ids: List[ObjectId], limit: int = 5) -> List[Dict]:
        return self.find_many({"studentId": {"$in": list(student_ids)}}, limit=limit)
