"""Gamification Repositories - levels, streaks, achievements, rewards, leaderboards"""
from datetime import datetime
from typing import Dict, List, Optional
from bson import ObjectId
from pymongo import DESCENDING, ReturnDocument
from coachhub.repositories.core.base_repo import BaseRepo
from coachhub.utils.time.timeutils import utc_now

class UserLevelRepo(BaseRepo):
    collection_name = "user_levels"

    def find_by_user(self, user_id: ObjectId) -> Optional[Dict]:
        return self.collection.find_one({"userId": user_id})

    def save(self, level_doc: Dict) -> None:
        level_doc["updatedAt"] = utc_now()
        self.collection.replace_one({"userId": level_doc["userId"]}, level_doc, upsert=True)

    def top_by_experience(self, user_ids: Optional[List[ObjectId]] = None, limit: int = 50) -> List[Dict]:
        query = {"userId": {"$in": list(user_ids)}} if user_ids is not None else {}
        cursor = self.collection.find(query).sort([("level", DESCENDING), ("totalExperience", DESCENDING)])
        return list(cursor.limit(limit)) if limit else list(cursor)

    def find_for_users(self, user_ids: List[ObjectId]) -> List[Dict]:
        return list(self.collection.find({"userId": {"$in": list(user_ids)}}))


class UserStreakRepo(BaseRepo):
    collection_name = "user_streaks"

    def find_one_for(self, user_id: ObjectId, streak_type: str) -> Optional[Dict]:
        return self.collection.find_one({"userId": user_id, "type": streak_type})

    def find_for_user(self, user_id: ObjectId) -> List[Dict]:
        return list(self.collection.find({"userId": user_id}))

    def save(self, streak: Dict) -> None:
        streak["updatedAt"] = utc_now()
        self.collection.replace_one({"userId": streak["userId"], "type": streak["type"]}, streak, upsert=True)

    def top_longest(self, streak_type: str, since: Optional[datetime] = None, limit: int = 50) -> List[Dict]:
        query = {"type": streak_type}
        if since:
            query["lastActivity"] = {"$gte": since}
        return list(self.collection.find(query).sort("longestStreak", DESCENDING).limit(limit))


class AchievementRepo(BaseRepo):
    collection_name = "achievements"

    def upsert_by_name(self, achievement: Dict) -> None:
        self.collection.update_one(
            {"name": achievement["name"]},
            {"$setOnInsert": {**achievement, "createdAt": utc_now()}},
            upsert=True
        )

    def find_active(self) -> List[Dict]:
        return list(self.collection.find({"isActive": True}))


class UserAchievementRepo(BaseRepo):
    collection_name = "user_achievements"

    def find_for_user(self, user_id: ObjectId) -> List[Dict]:
        return list(self.collection.find({"userId": user_id}))

    def unlock(self, user_id: ObjectId, achievement_id: ObjectId, progress: int) -> bool:
        """Mark unlocked once; returns False when it was already unlocked"""
        now = utc_now()
        previous = self.collection.find_one_and_update(
            {"userId": user_id, "achievementId": achievement_id},
            {"$set": {"progress": progress, "isUnlocked": True, "unlockedAt": now, "updatedAt": now},
             "$setOnInsert": {"createdAt": now}},
            upsert=True,
            return_document=ReturnDocument.BEFORE
        )
        return previous is None or not previous.get("isUnlocked")

    def set_progress(self, user_id: ObjectId, achievement_id: ObjectId, progress: int) -> None:
        now = utc_now()
        self.collection.update_one(
            {"userId": user_id, "achievementId": achievement_id},
            {"$set": {"progress": progress, "isUnlocked": False, "updatedAt": now},
             "$setOnInsert": {"createdAt": now}},
            upsert=True
        )

    def unlocked_counts(self, since: Optional[datetime] = None, limit: int = 50) -> List[Dict]:
        match = {"isUnlocked": True}
        if since:
            match["unlockedAt"] = {"$gte": since}
        return list(self.collection.aggregate([
            {"$match": match},
            {"$group": {"_id": "$userId", "score": {"$sum": 1}}},
            {"$sort": {"score": -1}},
            {"$limit": limit}
        ]))

    def earned_by_achievement(self, user_ids: List[ObjectId]) -> Dict[ObjectId, int]:
        """Unlock counts per achievement among the given users"""
        rows = self.collection.aggregate([
            {"$match": {"isUnlocked": True, "userId": {"$in": list(user_ids)}}},
            {"$group": {"_id": "$achievementId", "count": {"$sum": 1}}}
        ])
        return {row["_id"]: row["count"] for row in rows}


class UserRewardRepo(BaseRepo):
    collection_name = "user_rewards"

    def find_for_user(self, user_id: ObjectId, limit: int = 10) -> List[Dict]:
        return self.find_many({"userId": user_id}, limit=limit)


class LeaderboardRepo(BaseRepo):
    collection_name = "leaderboards"

    def find_board(self, board_type: str, category: str) -> Optional[Dict]:
        return self.collection.find_one({"type": board_type, "category": category})

    def save_board(self, board: Dict) -> None:
        board["updatedAt"] = utc_now()
        self.collection.replace_one({"type": board["type"], "category": board["category"]}, board, upsert=True)


class ExperienceLogRepo(BaseRepo):
    """Every XP grant, so weekly and monthly boards can sum a window"""
    collection_name = "experience_log"

    def log(self, user_id: ObjectId, amount: int, source: str) -> None:
        self.collection.insert_one({"userId": user_id, "amount": amount, "source": source, "createdAt": utc_now()})

    def totals_since(self, since: datetime, limit: int = 50) -> List[Dict]:
        return list(self.collection.aggregate([
            {"$match": {"createdAt": {"$gte": since}}},
            {"$group": {"_id": "$userId", "score": {"$sum": "$amount"}}},
            {"$sort": {"score": -1}},
            {"$limit": limit}
        ]))
