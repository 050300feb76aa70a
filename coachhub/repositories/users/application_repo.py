"""Teacher Application Repository - Data Access Layer (SoC)"""
from typing import Dict, List, Optional
from coachhub.repositories.core.base_repo import BaseRepo

class ApplicationRepo(BaseRepo):
    collection_name = "teacher_applications"

    def find_by_email(self, email: str) -> Optional[Dict]:
        return self.collection.find_one({"email": email.lower()})

    def find_filtered(self, status: Optional[str] = None) -> List[Dict]:
        return self.find_many({"status": status} if status else {})

    def count_pending(self) -> int:
        return self.count({"status": "pending"})
