"""Social Learning Repositories - groups, sessions, posts, resources, challenges"""
from datetime import datetime
from typing import Dict, List, Optional
from bson import ObjectId
from pymongo import ASCENDING
from coachhub.repositories.core.base_repo import BaseRepo
from coachhub.utils.security.security_utils import sanitize_regex_input
from coachhub.utils.time.timeutils import utc_now

class StudyGroupRepo(BaseRepo):
    collection_name = "study_groups"

    def find_for_member(self, student_id: ObjectId) -> List[Dict]:
        return self.find_many({"members.studentId": student_id})

    def find_visible_ids(self, student_id: ObjectId) -> List[ObjectId]:
        """Ids of public groups plus the private groups the student belongs to"""
        cursor = self.collection.find(
            {"$or": [{"isPublic": True}, {"members.studentId": student_id}]}, {"_id": 1}
        )
        return [g["_id"] for g in cursor]

    def find_public_not_joined(self, student_id: ObjectId, subjects: Optional[List[str]] = None,
                               limit: int = 5) -> List[Dict]:
        query = {"isPublic": True, "members.studentId": {"$ne": student_id}}
        if subjects:
            query["subject"] = {"$in": subjects}
        return self.find_many(query, limit=limit)

    def search(self, text: Optional[str], subject: Optional[str], limit: int = 20) -> List[Dict]:
        query = {"isPublic": True}
        if text:
            query["name"] = {"$regex": sanitize_regex_input(text), "$options": "i"}
        if subject:
            query["subject"] = subject
        return self.find_many(query, limit=limit)

    def add_member(self, group_id: ObjectId, student_id: ObjectId, max_members: int) -> bool:
        """Conditional push so concurrent joins cannot overfill the group"""
        result = self.collection.update_one(
            {
                "_id": group_id,
                "members.studentId": {"$ne": student_id},
                f"members.{max_members - 1}": {"$exists": False}
            },
            {
                "$push": {"members": {"studentId": student_id, "role": "member", "joinedAt": utc_now()}},
                "$set": {"updatedAt": utc_now()}
            }
        )
        return result.modified_count > 0

    def remove_member(self, group_id: ObjectId, student_id: ObjectId) -> bool:
        result = self.collection.update_one(
            {"_id": group_id},
            {"$pull": {"members": {"studentId": student_id}}, "$set": {"updatedAt": utc_now()}}
        )
        return result.modified_count > 0

class StudySessionRepo(BaseRepo):
    collection_name = "study_sessions"

    def find_upcoming_for_groups(self, group_ids: List[ObjectId], now: datetime, limit: int = 5) -> List[Dict]:
        return self.find_many({"groupId": {"$in": list(group_ids)}, "scheduledFor": {"$gte": now}},
                              sort_field="scheduledFor", direction=ASCENDING, limit=limit)

    def add_participant(self, session_id: ObjectId, student_id: ObjectId, max_participants: int) -> bool:
        result = self.collection.update_one(
            {
                "_id": session_id,
                "participants.studentId": {"$ne": student_id},
                f"participants.{max_participants - 1}": {"$exists": False}
            },
            {"$push": {"participants": {"studentId": student_id, "status": "confirmed"}}}
        )
        return result.modified_count > 0

class StudyPostRepo(BaseRepo):
    collection_name = "study_posts"

    def find_for_groups(self, group_ids: List[ObjectId], limit: int = 10) -> List[Dict]:
        return self.find_many({"groupId": {"$in": list(group_ids)}}, limit=limit)

    def find_recent(self, query: Optional[Dict] = None, limit: int = 20) -> List[Dict]:
        return self.find_many(query or {}, limit=limit)

    def toggle_like(self, post_id: ObjectId, student_id: ObjectId, liked: bool) -> None:
        operator = "$pull" if liked else "$addToSet"
        self.collection.update_one({"_id": post_id}, {operator: {"likes": student_id}})

    def add_comment(self, post_id: ObjectId, comment: Dict) -> None:
        self.collection.update_one({"_id": post_id}, {"$push": {"comments": comment}})

class StudyResourceRepo(BaseRepo):
    collection_name = "study_resources"

class StudyChallengeRepo(BaseRepo):
    collection_name = "study_challenges"

    def find_active(self, now: datetime, limit: int = 5) -> List[Dict]:
        return self.find_many({"isActive": True, "endDate": {"$gte": now}},
                              sort_field="endDate", direction=ASCENDING, limit=limit)

    def add_participant(self, challenge_id: ObjectId, student_id: ObjectId) -> bool:
        result = self.collection.update_one(
            {"_id": challenge_id, "participants.studentId": {"$ne": student_id}},
            {"$push": {"participants": {"studentId": student_id, "joinedAt": utc_now(), "progress": 0}}}
        )
        return result.modified_count > 0

    def count_active(self, now: datetime) -> int:
        return self.count({"isActive": True, "endDate": {"$gte": now}})
