"""Adaptive Learning Repositories - modules, paths, profiles, recommendations, assessments"""
from typing import Dict, List, Optional
from bson import ObjectId
from coachhub.repositories.core.base_repo import BaseRepo
from coachhub.utils.time.timeutils import utc_now

class LearningModuleRepo(BaseRepo):
    collection_name = "learning_modules"

    def find_catalog(self, query: Optional[Dict] = None) -> List[Dict]:
        return self.find_many(query or {})

    def find_active_for_level(self, level: str, exclude_ids: List[ObjectId], limit: int = 5) -> List[Dict]:
        return self.find_many({"isActive": True, "level": level, "_id": {"$nin": list(exclude_ids)}}, limit=limit)

class LearningPathRepo(BaseRepo):
    collection_name = "learning_paths"

    def find_active(self, query: Optional[Dict] = None, limit: int = 0) -> List[Dict]:
        return self.find_many({"isActive": True, **(query or {})}, limit=limit)

class LearningProfileRepo(BaseRepo):
    collection_name = "learning_profiles"

    def find_by_student(self, student_id: ObjectId) -> Optional[Dict]:
        return self.collection.find_one({"studentId": student_id})

    def find_all(self) -> List[Dict]:
        return list(self.collection.find({}))

    def replace(self, profile: Dict) -> Dict:
        profile["lastUpdated"] = utc_now()
        self.collection.replace_one({"_id": profile["_id"]}, profile)
        return profile

class RecommendationRepo(BaseRepo):
    collection_name = "recommendations"

    PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}

    def find_open(self, student_id: ObjectId, limit: int = 10) -> List[Dict]:
        found = list(self.collection.find({"studentId": student_id, "isCompleted": False}))
        found.sort(key=lambda r: (self.PRIORITY_ORDER.get(r.get("priority"), 3), -r.get("confidence", 0)))
        return found[:limit]

    def clear_open_unaccepted(self, student_id: ObjectId) -> None:
        self.collection.delete_many({"studentId": student_id, "isCompleted": False, "isAccepted": False})

class AssessmentRepo(BaseRepo):
    collection_name = "assessments"

    def find_open(self, student_id: ObjectId, module_id: ObjectId) -> Optional[Dict]:
        return self.collection.find_one({"studentId": student_id, "moduleId": module_id, "isCompleted": False})

    def replace(self, assessment: Dict) -> Dict:
        assessment["updatedAt"] = utc_now()
        self.collection.replace_one({"_id": assessment["_id"]}, assessment)
        return assessment
