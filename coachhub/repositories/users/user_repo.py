"""User Repository - Data Access Layer (SoC)"""
from typing import Dict, List, Optional
from bson import ObjectId
from coachhub.repositories.core.base_repo import BaseRepo
from coachhub.utils.time.timeutils import utc_now

PUBLIC_PROJECTION = {"password": 0}

class UserRepo(BaseRepo):
    collection_name = "users"

    def find_by_login(self, login: str) -> Optional[Dict]:
        """Find by username or email"""
        return self.collection.find_one({"$or": [{"username": login}, {"email": login.lower()}]})

    def find_by_email(self, email: str) -> Optional[Dict]:
        return self.collection.find_one({"email": email.lower()})

    def exists_username_or_email(self, username: str, email: str) -> bool:
        return self.collection.count_documents(
            {"$or": [{"username": username}, {"email": email.lower()}]}
        ) > 0

    def username_taken(self, username: str) -> bool:
        return self.collection.count_documents({"username": username}) > 0

    def find_public(self, user_id: ObjectId) -> Optional[Dict]:
        return self.collection.find_one({"_id": user_id}, PUBLIC_PROJECTION)

    def find_by_role(self, role: str, query: Optional[Dict] = None) -> List[Dict]:
        return self.find_many({"role": role, **(query or {})}, projection=PUBLIC_PROJECTION)

    def find_students(self, student_ids: List[ObjectId], created_by: Optional[ObjectId] = None) -> List[Dict]:
        """Students by id, plus those created by a teacher"""
        conditions = [{"_id": {"$in": list(student_ids)}}]
        if created_by is not None:
            conditions.append({"createdBy": created_by})
        return self.find_many({"role": "student", "$or": conditions}, projection=PUBLIC_PROJECTION)

    def count_active(self, role: str) -> int:
        return self.count({"role": role, "isActive": True})

    def set_active(self, user_id: ObjectId, is_active: bool) -> None:
        self.collection.update_one(
            {"_id": user_id}, {"$set": {"isActive": is_active, "updatedAt": utc_now()}}
        )

    def touch_login(self, user_id: ObjectId) -> None:
        self.collection.update_one({"_id": user_id}, {"$set": {"lastLogin": utc_now()}})
