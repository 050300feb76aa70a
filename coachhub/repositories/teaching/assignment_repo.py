"""Assignment Repository - Data Access Layer (SoC)"""
from datetime import datetime
from typing import Dict, List, Optional
from bson import ObjectId
from pymongo import ASCENDING, DESCENDING
from coachhub.repositories.core.base_repo import BaseRepo

class AssignmentRepo(BaseRepo):
    collection_name = "assignments"

    @staticmethod
    def visibility_filter(student_id: ObjectId, class_ids: List[ObjectId]) -> Dict:
        """Individual assignments for the student, or class assignments of their classes"""
        return {"$or": [
            {"type": "individual", "studentId": student_id},
            {"type": "class", "classId": {"$in": list(class_ids)}}
        ]}

    def find_for_teacher(self, teacher_id: ObjectId, query: Optional[Dict] = None) -> List[Dict]:
        return self.find_many({"teacherId": teacher_id, **(query or {})}, sort_field="dueDate", direction=DESCENDING)

    def ids_for_teacher(self, teacher_id: ObjectId) -> List[ObjectId]:
        return [a["_id"] for a in self.collection.find({"teacherId": teacher_id}, {"_id": 1})]

    def count_for_teacher(self, teacher_id: ObjectId) -> int:
        return self.count({"teacherId": teacher_id})

    def find_for_student(self, student_id: ObjectId, class_ids: List[ObjectId],
                         start: Optional[datetime] = None, end: Optional[datetime] = None) -> List[Dict]:
        query = self.visibility_filter(student_id, class_ids)
        if start or end:
            due = {}
            if start:
                due["$gte"] = start
            if end:
                due["$lte"] = end
            query = {"$and": [query, {"dueDate": due}]}
        return self.find_many(query, sort_field="dueDate", direction=DESCENDING)

    def find_visible(self, assignment_id: ObjectId, student_id: ObjectId, class_ids: List[ObjectId]) -> Optional[Dict]:
        return self.collection.find_one({"$and": [{"_id": assignment_id}, self.visibility_filter(student_id, class_ids)]})

    def find_due_between(self, student_id: ObjectId, class_ids: List[ObjectId],
                         start: datetime, end: datetime) -> List[Dict]:
        query = {"$and": [self.visibility_filter(student_id, class_ids), {"dueDate": {"$gte": start, "$lte": end}}]}
        return self.find_many(query, sort_field="dueDate", direction=ASCENDING)

    def find_for_class(self, class_id: ObjectId, start: datetime, end: datetime) -> List[Dict]:
        return self.find_many({"type": "class", "classId": class_id, "dueDate": {"$gte": start, "$lte": end}},
                              sort_field="dueDate", direction=ASCENDING)

    def delete_for_teacher(self, teacher_id: ObjectId) -> int:
        return self.collection.delete_many({"teacherId": teacher_id}).deleted_count
