"""Class Repository - Data Access Layer (SoC)"""
from typing import Dict, List
from bson import ObjectId
from coachhub.repositories.core.base_repo import BaseRepo
from coachhub.utils.time.timeutils import utc_now

class ClassRepo(BaseRepo):
    collection_name = "classes"

    @staticmethod
    def _teacher_filter(teacher_id: ObjectId) -> Dict:
        return {"$or": [{"teacherId": teacher_id}, {"coTeachers": teacher_id}]}

    def find_for_teacher(self, teacher_id: ObjectId) -> List[Dict]:
        """Classes owned or co-taught by the teacher"""
        return self.find_many(self._teacher_filter(teacher_id))

    def count_for_teacher(self, teacher_id: ObjectId) -> int:
        return self.count(self._teacher_filter(teacher_id))

    def student_ids_for_teacher(self, teacher_id: ObjectId) -> List[ObjectId]:
        seen = {}
        for cls in self.collection.find(self._teacher_filter(teacher_id), {"students": 1}):
            for sid in cls.get("students", []):
                seen[str(sid)] = sid
        return list(seen.values())

    def find_for_student(self, student_id: ObjectId) -> List[Dict]:
        return list(self.collection.find({"students": student_id}))

    def class_ids_for_student(self, student_id: ObjectId) -> List[ObjectId]:
        return [cls["_id"] for cls in self.collection.find({"students": student_id}, {"_id": 1})]

    def add_student(self, class_id: ObjectId, student_id: ObjectId) -> None:
        self.collection.update_one(
            {"_id": class_id},
            {"$addToSet": {"students": student_id}, "$set": {"updatedAt": utc_now()}}
        )

    def delete_for_teacher(self, teacher_id: ObjectId) -> int:
        """Drop owned classes and the teacher's co-teaching seats"""
        self.collection.update_many({"coTeachers": teacher_id}, {"$pull": {"coTeachers": teacher_id}})
        return self.collection.delete_many({"teacherId": teacher_id}).deleted_count
