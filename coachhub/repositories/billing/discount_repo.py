"""Discount Repository - Data Access Layer (SoC)"""
from datetime import datetime
from typing import Dict, List, Optional
from bson import ObjectId
from pymongo import ReturnDocument
from coachhub.repositories.core.base_repo import BaseRepo
from coachhub.utils.time.timeutils import utc_now

class DiscountRepo(BaseRepo):
    collection_name = "discounts"

    def find_active(self, now: datetime) -> List[Dict]:
        """Active discounts whose date window contains now"""
        return self.find_many({
            "isActive": True,
            "startDate": {"$lte": now},
            "endDate": {"$gte": now}
        }, sort_field="discountPercentage")

    def redeem(self, discount_id: ObjectId, now: datetime) -> Optional[Dict]:
        """
        Atomically consume one use of a discount.

        The usage cap is part of the match filter, so two concurrent
        redemptions can never push currentUses past maxUses.
        """
        current = self.collection.find_one({"_id": discount_id}, {"maxUses": 1})
        if current is None:
            return None

        query = {
            "_id": discount_id,
            "isActive": True,
            "startDate": {"$lte": now},
            "endDate": {"$gte": now}
        }
        max_uses = current.get("maxUses")
        if max_uses is not None:
            query["currentUses"] = {"$lt": max_uses}
            query["maxUses"] = max_uses

        return self.collection.find_one_and_update(
            query,
            {"$inc": {"currentUses": 1}, "$set": {"updatedAt": utc_now()}},
            return_document=ReturnDocument.AFTER
        )
