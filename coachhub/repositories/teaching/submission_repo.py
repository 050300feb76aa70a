"""Assignment Submission Repository - Data Access Layer (SoC)"""
from typing import Dict, List, Optional
from bson import ObjectId
from pymongo import ASCENDING, DESCENDING
from coachhub.config.settings import SUBMITTED_STATUSES, GRADED_STATUSES
from coachhub.repositories.core.base_repo import BaseRepo

class SubmissionRepo(BaseRepo):
    collection_name = "submissions"

    def find_one_for(self, assignment_id: ObjectId, student_id: ObjectId) -> Optional[Dict]:
        return self.collection.find_one({"assignmentId": assignment_id, "studentId": student_id})

    def find_for_assignment(self, assignment_id: ObjectId) -> List[Dict]:
        return self.find_many({"assignmentId": assignment_id}, sort_field="submittedAt")

    def find_for_student(self, student_id: ObjectId, assignment_ids: Optional[List[ObjectId]] = None) -> List[Dict]:
        query = {"studentId": student_id}
        if assignment_ids is not None:
            query["assignmentId"] = {"$in": list(assignment_ids)}
        return self.find_many(query, sort_field="submittedAt")

    def find_for_assignments(self, assignment_ids: List[ObjectId]) -> List[Dict]:
        if not assignment_ids:
            return []
        return self.find_many({"assignmentId": {"$in": list(assignment_ids)}}, sort_field="submittedAt", direction=ASCENDING)

    def delete_for_assignment(self, assignment_id: ObjectId) -> int:
        return self.collection.delete_many({"assignmentId": assignment_id}).deleted_count

    def delete_for_assignments(self, assignment_ids: List[ObjectId]) -> int:
        if not assignment_ids:
            return 0
        return self.collection.delete_many({"assignmentId": {"$in": list(assignment_ids)}}).deleted_count

    def count_by_status(self, assignment_ids: List[ObjectId], statuses: List[str]) -> int:
        if not assignment_ids:
            return 0
        return self.count({"assignmentId": {"$in": list(assignment_ids)}, "status": {"$in": statuses}})

    def count_completed_by_student(self, student_id: ObjectId, assignment_ids: Optional[List[ObjectId]] = None) -> int:
        query = {"studentId": student_id, "status": {"$in": SUBMITTED_STATUSES}}
        if assignment_ids is not None:
            query["assignmentId"] = {"$in": list(assignment_ids)}
        return self.count(query)

    def best_grade(self, student_id: ObjectId) -> float:
        found = list(self.collection.find(
            {"studentId": student_id, "status": {"$in": GRADED_STATUSES}, "grade": {"$ne": None}}
        ).sort("grade", DESCENDING).limit(1))
        return found[0]["grade"] if found else 0

    def completed_counts_since(self, since=None, limit: int = 50) -> List[Dict]:
        match = {"status": {"$in": SUBMITTED_STATUSES}}
        if since:
            match["submittedAt"] = {"$gte": since}
        return list(self.collection.aggregate([
            {"$match": match},
            {"$group": {"_id": "$studentId", "score": {"$sum": 1}}},
            {"$sort": {"score": -1}},
            {"$limit": limit}
        ]))
