"""Free Teacher Slot Repository - Data Access Layer (SoC)"""
from typing import Dict, List, Optional
from bson import ObjectId
from pymongo import DESCENDING
from coachhub.repositories.core.base_repo import BaseRepo

class FreeSlotRepo(BaseRepo):
    collection_name = "free_teacher_slots"

    def count_active(self) -> int:
        return self.count({"isActive": True})

    def used_slot_numbers(self) -> List[int]:
        return [doc["slotNumber"] for doc in self.collection.find({"isActive": True}, {"slotNumber": 1})]

    def find_recent(self, limit: int = 5) -> List[Dict]:
        return self.find_many({"isActive": True}, sort_field="assignedAt", direction=DESCENDING, limit=limit)

    def find_by_teacher(self, teacher_id: ObjectId) -> Optional[Dict]:
        return self.collection.find_one({"teacherId": teacher_id, "isActive": True})
