"""Subscription Repository - Data Access Layer (SoC)"""
from datetime import datetime
from typing import Dict, List, Optional
from bson import ObjectId
from coachhub.repositories.core.base_repo import BaseRepo

class SubscriptionRepo(BaseRepo):
    collection_name = "subscriptions"

    def find_page(self, skip: int, limit: int) -> List[Dict]:
        return self.find_many({}, skip=skip, limit=limit)

    def find_current_for_teacher(self, teacher_id: ObjectId, now: datetime) -> Optional[Dict]:
        found = self.find_many({
            "teacherId": teacher_id,
            "isActive": True,
            "endDate": {"$gte": now}
        }, sort_field="endDate", limit=1)
        return found[0] if found else None

    def count_active(self, now: datetime) -> int:
        return self.count({"isActive": True, "endDate": {"$gte": now}})
