"""Base Repository - shared CRUD over one collection (DRY)"""
from typing import Dict, List, Optional
from bson import ObjectId
from pymongo import DESCENDING
from coachhub.db.db_utils import get_collection
from coachhub.utils.time.timeutils import utc_now

class BaseRepo:
    collection_name: str = None

    def __init__(self):
        self.collection = get_collection(self.collection_name)

    def insert(self, document: Dict) -> Dict:
        now = utc_now()
        document.setdefault("createdAt", now)
        document.setdefault("updatedAt", now)
        result = self.collection.insert_one(document)
        document["_id"] = result.inserted_id
        return document

    def find_by_id(self, doc_id: ObjectId, projection: Optional[Dict] = None) -> Optional[Dict]:
        return self.collection.find_one({"_id": doc_id}, projection)

    def find_by_ids(self, ids: List[ObjectId], projection: Optional[Dict] = None) -> List[Dict]:
        if not ids:
            return []
        return list(self.collection.find({"_id": {"$in": list(ids)}}, projection))

    def find_many(self, query: Dict, sort_field: str = "createdAt", direction: int = DESCENDING,
                  limit: int = 0, projection: Optional[Dict] = None, skip: int = 0) -> List[Dict]:
        cursor = self.collection.find(query, projection).sort(sort_field, direction)
        if skip:
            cursor = cursor.skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        return list(cursor)

    def count(self, query: Dict) -> int:
        return self.collection.count_documents(query)

    def update_fields(self, doc_id: ObjectId, fields: Dict) -> Optional[Dict]:
        """Set fields and return the updated document (None when missing)"""
        fields = {**fields, "updatedAt": utc_now()}
        self.collection.update_one({"_id": doc_id}, {"$set": fields})
        return self.find_by_id(doc_id)

    def delete(self, doc_id: ObjectId) -> bool:
        result = self.collection.delete_one({"_id": doc_id})
        return result.deleted_count > 0
