"""Goal Repository - Data Access Layer (SoC)"""
from typing import Dict, List, Optional
from bson import ObjectId
from pymongo import ASCENDING
from coachhub.repositories.core.base_repo import BaseRepo
from coachhub.utils.time.timeutils import utc_now

class GoalRepo(BaseRepo):
    collection_name = "goals"

    def find_for_teacher(self, teacher_id: ObjectId, query: Optional[Dict] = None) -> List[Dict]:
        return self.find_many({"teacherId": teacher_id, **(query or {})})

    def find_for_student(self, student_id: ObjectId) -> List[Dict]:
        return self.find_many({"studentId": student_id}, sort_field="targetDate", direction=ASCENDING)

    def count_for_student(self, student_id: ObjectId, status: Optional[str] = None) -> int:
        query = {"studentId": student_id}
        if status:
            query["status"] = status
        return self.count(query)

    def claim_completion_reward(self, goal_id: ObjectId) -> bool:
        """Stamp rewardedAt once; False when the goal was already rewarded"""
        now = utc_now()
        claimed = self.collection.find_one_and_update(
            {"_id": goal_id, "rewardedAt": None},
            {"$set": {"rewardedAt": now, "updatedAt": now}}
        )
        return claimed is not None

    def delete_for_teacher(self, teacher_id: ObjectId) -> int:
        return self.collection.delete_many({"teacherId": teacher_id}).deleted_count
