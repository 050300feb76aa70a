"""Parent Repository - Data Access Layer (SoC)"""
from typing import Dict, List, Optional
from bson import ObjectId
from coachhub.repositories.core.base_repo import BaseRepo
from coachhub.utils.time.timeutils import utc_now

class ParentRepo(BaseRepo):
    collection_name = "parents"

    def find_by_login(self, login: str) -> Optional[Dict]:
        return self.collection.find_one({"$or": [{"username": login}, {"email": login.lower()}]})

    def exists_username_or_email(self, username: str, email: str) -> bool:
        return self.collection.count_documents(
            {"$or": [{"username": username}, {"email": email.lower()}]}
        ) > 0

    def username_taken(self, username: str) -> bool:
        return self.collection.count_documents({"username": username}) > 0

    def find_public(self, parent_id: ObjectId) -> Optional[Dict]:
        return self.collection.find_one({"_id": parent_id}, {"password": 0})

    def find_all_public(self) -> List[Dict]:
        return self.find_many({}, projection={"password": 0})

    def find_active_by_child(self, student_id: ObjectId) -> List[Dict]:
        return list(self.collection.find({"children": student_id, "isActive": True}, {"password": 0}))

    def count_active_with_children(self, student_ids: List[ObjectId]) -> int:
        if not student_ids:
            return 0
        return self.count({"isActive": True, "children": {"$in": list(student_ids)}})

    def set_active(self, parent_id: ObjectId, is_active: bool) -> None:
        self.collection.update_one(
            {"_id": parent_id}, {"$set": {"isActive": is_active, "updatedAt": utc_now()}}
        )

    def touch_login(self, parent_id: ObjectId) -> None:
        self.collection.update_one({"_id": parent_id}, {"$set": {"lastLogin": utc_now()}})

    def find_by_email(self, email: str) -> Optional[Dict]:
        return self.collection.find_one({"email": email.lower()})

    def find_by_children(self, student_ids: List[ObjectId]) -> List[Dict]:
        return self.find_many({"children": {"$in": list(student_ids)}}, projection={"password": 0})

    def find_for_teacher(self, teacher_id: ObjectId, student_ids: List[ObjectId]) -> List[Dict]:
        """Parents the teacher created or whose children the teacher can see"""
        return self.find_many(
            {"$or": [{"createdBy": teacher_id}, {"children": {"$in": list(student_ids)}}]},
            projection={"password": 0}
        )
