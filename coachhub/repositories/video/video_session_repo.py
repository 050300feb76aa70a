"""Video Session Repository - Data Access Layer (SoC)"""
from datetime import datetime
from typing import Dict, List, Optional
from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from coachhub.repositories.core.base_repo import BaseRepo
from coachhub.utils.time.timeutils import utc_now

class VideoSessionRepo(BaseRepo):
    collection_name = "video_sessions"

    def find_for_participant(self, user_id: ObjectId, limit: int = 0) -> List[Dict]:
        return self.find_many({"participants.userId": user_id}, sort_field="scheduledAt",
                              direction=DESCENDING, limit=limit)

    def find_for_teacher(self, teacher_id: ObjectId, query: Dict = None) -> List[Dict]:
        return self.find_many({"teacherId": teacher_id, **(query or {})}, sort_field="scheduledAt",
                              direction=DESCENDING)

    def find_upcoming(self, user_id: ObjectId, now: datetime, limit: int = 10) -> List[Dict]:
        return self.find_many({
            "participants.userId": user_id,
            "status": "scheduled",
            "scheduledAt": {"$gte": now}
        }, sort_field="scheduledAt", direction=ASCENDING, limit=limit)

    def find_scheduled_for_users(self, user_ids: List[ObjectId], start: datetime, end: datetime) -> List[Dict]:
        return self.find_many({
            "participants.userId": {"$in": list(user_ids)},
            "status": "scheduled",
            "scheduledAt": {"$gte": start, "$lte": end}
        }, sort_field="scheduledAt", direction=ASCENDING)

    def mark_joined(self, session_id: ObjectId, user_id: ObjectId, joinable: List[str]) -> Optional[Dict]:
        """Flag the participant active; None when the session is not joinable or the user is not on it"""
        now = utc_now()
        result = self.collection.update_one(
            {"_id": session_id, "status": {"$in": list(joinable)}, "participants.userId": user_id},
            {"$set": {
                "participants.$.isActive": True,
                "participants.$.joinedAt": now,
                "participants.$.leftAt": None,
                "updatedAt": now
            }}
        )
        if not result.matched_count:
            return None
        self.collection.update_one(
            {"_id": session_id, "status": "scheduled"},
            {"$set": {"status": "in_progress", "startedAt": now}}
        )
        return self.find_by_id(session_id)

    def mark_left(self, session_id: ObjectId, user_id: ObjectId) -> None:
        now = utc_now()
        self.collection.update_one(
            {"_id": session_id, "participants.userId": user_id},
            {"$set": {"participants.$.isActive": False, "participants.$.leftAt": now, "updatedAt": now}}
        )

    def complete_if_idle(self, session_id: ObjectId) -> Optional[Dict]:
        """Move an in-progress session with nobody active to completed; only one caller wins"""
        now = utc_now()
        return self.collection.find_one_and_update(
            {"_id": session_id, "status": "in_progress", "participants.isActive": {"$ne": True}},
            {"$set": {"status": "completed", "endedAt": now, "updatedAt": now}},
            return_document=ReturnDocument.AFTER
        )

    def push_note(self, session_id: ObjectId, note: Dict) -> None:
        self.collection.update_one({"_id": session_id}, {"$push": {"notes": note}, "$set": {"updatedAt": utc_now()}})

    def upsert_feedback(self, session_id: ObjectId, entry: Dict) -> None:
        """One feedback entry per (from, to) pair; a newer rating replaces the older one"""
        self.collection.update_one(
            {"_id": session_id},
            {"$pull": {"feedback": {"fromUserId": entry["fromUserId"], "toUserId": entry["toUserId"]}}}
        )
        self.collection.update_one(
            {"_id": session_id}, {"$push": {"feedback": entry}, "$set": {"updatedAt": utc_now()}}
        )
