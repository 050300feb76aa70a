"""
Gamification Service - Business Logic Layer (SoC)

Levels, streaks, achievements and leaderboards. Experience carries over
between levels and every grant is written to the experience log so the
weekly and monthly boards can sum a time window.
"""
import logging
import math
from datetime import timedelta
from typing import Dict, List, Optional, Tuple
from bson import ObjectId
from coachhub.config.settings import (
    BASE_EXPERIENCE_TO_NEXT, EXPERIENCE_GROWTH, STREAK_TYPES, LEADERBOARD_TYPES,
    LEADERBOARD_CATEGORIES, LEADERBOARD_SIZE, GOAL_COMPLETION_XP, SUBMITTED_STATUSES
)
from coachhub.exceptions.exceptions import ValidationError
from coachhub.repositories.core.repository_factory import RepositoryFactory
from coachhub.utils.cache.cache_utils import leaderboard_cache, generate_key, LEADERBOARD_CACHE_PREFIX
from coachhub.utils.formatting.json_utils import sanitize_mongo_document, full_name
from coachhub.utils.time.timeutils import utc_now, day_diff

logger = logging.getLogger(__name__)

# (minimum level, title, badge), highest first
LEVEL_TITLES: List[Tuple[int, str, str]] = [
    (50, "Legend", "👑"),
    (40, "Master", "🏆"),
    (30, "Expert", "⭐"),
    (20, "Achiever", "🔥"),
    (10, "Scholar", "📚"),
    (5, "Rising Star", "🌟"),
]
DEFAULT_TITLE = ("Beginner", "🌱")

DEFAULT_ACHIEVEMENTS = [
    {"name": "First Step", "description": "Complete your first assignment", "category": "academic",
     "icon": "🎯", "points": 10, "rarity": "common", "requirement": {"type": "assignments_completed", "value": 1}},
    {"name": "Hard Worker", "description": "Complete 5 assignments", "category": "academic",
     "icon": "💪", "points": 50, "rarity": "common", "requirement": {"type": "assignments_completed", "value": 5}},
    {"name": "Goal Hunter", "description": "Achieve your first goal", "category": "goals",
     "icon": "🏹", "points": 25, "rarity": "common", "requirement": {"type": "goals_achieved", "value": 1}},
    {"name": "Goal Master", "description": "Achieve 10 goals", "category": "goals",
     "icon": "🥇", "points": 100, "rarity": "rare", "requirement": {"type": "goals_achieved", "value": 10}},
    {"name": "Study Streak", "description": "Study 7 days in a row", "category": "streak",
     "icon": "📅", "points": 75, "rarity": "rare", "requirement": {"type": "study_streak", "value": 7}},
    {"name": "Perfect Student", "description": "Score 100 on an assignment", "category": "academic",
     "icon": "💯", "points": 50, "rarity": "rare", "requirement": {"type": "score_threshold", "value": 100}},
    {"name": "Super Diligent", "description": "Study 30 days in a row", "category": "streak",
     "icon": "🚀", "points": 200, "rarity": "legendary", "requirement": {"type": "study_streak", "value": 30}},
    {"name": "Math Master", "description": "Complete 10 math assignments", "category": "subject",
     "icon": "🔢", "points": 75, "rarity": "epic",
     "requirement": {"type": "subject_mastery", "value": 10, "subject": "math"}},
    {"name": "Science Master", "description": "Complete 10 science assignments", "category": "subject",
     "icon": "🔬", "points": 75, "rarity": "epic",
     "requirement": {"type": "subject_mastery", "value": 10, "subject": "science"}},
    {"name": "Language Master", "description": "Complete 10 language assignments", "category": "subject",
     "icon": "📖", "points": 75, "rarity": "epic",
     "requirement": {"type": "subject_mastery", "value": 10, "subject": "language"}},
]


def level_title(level: int) -> Tuple[str, str]:
    for minimum, title, badge in LEVEL_TITLES:
        if level >= minimum:
            return title, badge
    return DEFAULT_TITLE


def experience_to_next(level: int) -> int:
    return math.floor(BASE_EXPERIENCE_TO_NEXT * EXPERIENCE_GROWTH ** (level - 1))


def grade_experience(grade: float) -> int:
    """XP for a graded submission"""
    return max(5, min(25, int(grade // 4)))


def achievement_progress(value: float, target: float) -> int:
    if not target:
        return 100
    return int(min(100, value * 100 / target))


class GamificationService:
    def __init__(self):
        self.repo_factory = RepositoryFactory()

    # ---------- levels ----------

    def get_or_create_level(self, user_id: ObjectId) -> Dict:
        level = self.repo_factory.get_level_repo().find_by_user(user_id)
        if level:
            return level
        title, badge = DEFAULT_TITLE
        level = {
            "userId": user_id,
            "level": 1,
            "experience": 0,
            "experienceToNext": BASE_EXPERIENCE_TO_NEXT,
            "totalExperience": 0,
            "title": title,
            "badge": badge,
            "createdAt": utc_now()
        }
        self.repo_factory.get_level_repo().save(level)
        return level

    def add_experience(self, user_id: ObjectId, amount: int, source: str) -> Dict:
        if amount <= 0:
            raise ValidationError("Experience amount must be positive")

        level = self.get_or_create_level(user_id)
        level["experience"] += amount
        level["totalExperience"] = level.get("totalExperience", 0) + amount

        rewards = []
        while level["experience"] >= level["experienceToNext"]:
            level["experience"] -= level["experienceToNext"]
            level["level"] += 1
            level["experienceToNext"] = experience_to_next(level["level"])
            level["title"], level["badge"] = level_title(level["level"])
            rewards.append(self.repo_factory.get_reward_repo().insert({
                "userId": user_id,
                "type": "points",
                "value": level["level"] * 10,
                "source": "level_up",
                "description": f"Reached level {level['level']}"
            }))

        self.repo_factory.get_level_repo().save(level)
        self.repo_factory.get_experience_log_repo().log(user_id, amount, source)
        if rewards:
            logger.info(f"User {user_id} reached level {level['level']}")

        return sanitize_mongo_document({
            "leveledUp": bool(rewards),
            "newLevel": level["level"],
            "newTitle": level["title"],
            "experience": level["experience"],
            "experienceToNext": level["experienceToNext"],
            "rewards": rewards
        })

    # ---------- streaks ----------

    def update_streak(self, user_id: ObjectId, streak_type: str) -> Dict:
        if streak_type not in STREAK_TYPES:
            raise ValidationError(f"Invalid streak type '{streak_type}'")

        streak_repo = self.repo_factory.get_streak_repo()
        now = utc_now()
        streak = streak_repo.find_one_for(user_id, streak_type)
        is_new_record = False

        if not streak:
            streak = {
                "userId": user_id,
                "type": streak_type,
                "currentStreak": 1,
                "longestStreak": 1,
                "lastActivity": now,
                "isActive": True,
                "createdAt": now
            }
            is_new_record = True
        else:
            days = day_diff(now, streak["lastActivity"])
            if days == 1:
                streak["currentStreak"] += 1
                if streak["currentStreak"] > streak.get("longestStreak", 0):
                    streak["longestStreak"] = streak["currentStreak"]
                    is_new_record = True
            elif days > 1:
                streak["currentStreak"] = 1
            if days != 0:
                streak["lastActivity"] = now
            streak["isActive"] = True

        streak_repo.save(streak)
        return {
            "type": streak_type,
            "currentStreak": streak["currentStreak"],
            "longestStreak": streak["longestStreak"],
            "isNewRecord": is_new_record
        }

    # ---------- achievements ----------

    def seed_achievements(self) -> None:
        achievement_repo = self.repo_factory.get_achievement_repo()
        if achievement_repo.count({}) >= len(DEFAULT_ACHIEVEMENTS):
            return
        for achievement in DEFAULT_ACHIEVEMENTS:
            achievement_repo.upsert_by_name({**achievement, "isActive": True})

    def _subject_count(self, user_id: ObjectId, subject: str) -> int:
        submissions = self.repo_factory.get_submission_repo().find_for_student(user_id)
        completed_ids = [s["assignmentId"] for s in submissions if s.get("status") in SUBMITTED_STATUSES]
        subject = subject.lower()
        count = 0
        for assignment in self.repo_factory.get_assignment_repo().find_by_ids(completed_ids, {"tags": 1, "subject": 1}):
            tags = [t.lower() for t in assignment.get("tags") or [] if isinstance(t, str)]
            if subject in tags or (assignment.get("subject") or "").lower() == subject:
                count += 1
        return count

    def _requirement_value(self, user_id: ObjectId, requirement: Dict, cache: Dict) -> float:
        req_type = requirement.get("type")
        key = (req_type, requirement.get("subject"))
        if key in cache:
            return cache[key]

        if req_type == "assignments_completed":
            value = self.repo_factory.get_submission_repo().count_completed_by_student(user_id)
        elif req_type == "goals_achieved":
            value = self.repo_factory.get_goal_repo().count_for_student(user_id, "completed")
        elif req_type == "study_streak":
            streak = self.repo_factory.get_streak_repo().find_one_for(user_id, "study")
            value = streak.get("longestStreak", 0) if streak else 0
        elif req_type == "score_threshold":
            value = self.repo_factory.get_submission_repo().best_grade(user_id)
        elif req_type == "subject_mastery":
            value = self._subject_count(user_id, requirement.get("subject") or "")
        else:
            value = 0
        cache[key] = value
        return value

    def _progress_by_achievement(self, user_id: ObjectId, achievements: List[Dict]) -> Dict[ObjectId, int]:
        cache = {}
        return {
            a["_id"]: achievement_progress(
                self._requirement_value(user_id, a.get("requirement", {}), cache),
                a.get("requirement", {}).get("value", 0)
            )
            for a in achievements
        }

    def check_achievements(self, user_id: ObjectId) -> List[Dict]:
        """Unlock every achievement whose requirement is met, returns the newly unlocked"""
        self.seed_achievements()
        user_achievement_repo = self.repo_factory.get_user_achievement_repo()
        unlocked_ids = {ua["achievementId"] for ua in user_achievement_repo.find_for_user(user_id) if ua.get("isUnlocked")}
        pending = [a for a in self.repo_factory.get_achievement_repo().find_active() if a["_id"] not in unlocked_ids]

        newly_unlocked = []
        progress_by_id = self._progress_by_achievement(user_id, pending)
        for achievement in pending:
            achievement_id = achievement["_id"]
            progress = progress_by_id[achievement_id]
            if progress >= 100:
                if user_achievement_repo.unlock(user_id, achievement_id, 100):
                    newly_unlocked.append(achievement)
                    if achievement.get("points"):
                        self.add_experience(user_id, achievement["points"], "achievement")
                    logger.info(f"User {user_id} unlocked '{achievement['name']}'")
            else:
                user_achievement_repo.set_progress(user_id, achievement_id, progress)
        return sanitize_mongo_document(newly_unlocked)

    # ---------- awards ----------

    def award_for_grade(self, student_id: ObjectId, grade: float) -> Dict:
        result = self.add_experience(student_id, grade_experience(grade), "assignment_graded")
        result["newAchievements"] = self.check_achievements(student_id)
        return result

    def award_goal_completion(self, student_id: ObjectId) -> Dict:
        result = self.add_experience(student_id, GOAL_COMPLETION_XP, "goal_completed")
        result["newAchievements"] = self.check_achievements(student_id)
        return result

    # ---------- stats ----------

    def get_user_stats(self, user_id: ObjectId) -> Dict:
        self.seed_achievements()
        level = self.get_or_create_level(user_id)
        achievements = self.repo_factory.get_achievement_repo().find_active()
        user_achievements = {
            ua["achievementId"]: ua for ua in self.repo_factory.get_user_achievement_repo().find_for_user(user_id)
        }

        unlocked, locked = [], []
        for achievement in achievements:
            ua = user_achievements.get(achievement["_id"])
            if ua and ua.get("isUnlocked"):
                unlocked.append({**achievement, "unlockedAt": ua.get("unlockedAt")})
            else:
                locked.append(achievement)

        progress = self._progress_by_achievement(user_id, locked)
        next_achievements = sorted(
            ({**a, "progress": progress[a["_id"]]} for a in locked),
            key=lambda a: a["progress"], reverse=True
        )[:3]

        return sanitize_mongo_document({
            "level": level["level"],
            "experience": level["experience"],
            "experienceToNext": level["experienceToNext"],
            "totalExperience": level.get("totalExperience", 0),
            "title": level["title"],
            "badge": level["badge"],
            "streaks": [
                {k: s.get(k) for k in ("type", "currentStreak", "longestStreak", "lastActivity")}
                for s in self.repo_factory.get_streak_repo().find_for_user(user_id)
            ],
            "totalPoints": sum(a.get("points", 0) for a in unlocked),
            "achievements": unlocked,
            "nextAchievements": next_achievements,
            "recentRewards": self.repo_factory.get_reward_repo().find_for_user(user_id, 5),
            "rank": self.get_rank(user_id)
        })

    def get_rank(self, user_id: ObjectId) -> Optional[int]:
        board = self.get_leaderboard("all_time", "experience")
        for entry in board["entries"]:
            if entry["userId"] == str(user_id):
                return entry["rank"]
        return None

    # ---------- leaderboards ----------

    def _leaderboard_scores(self, category: str, since) -> List[Dict]:
        """[{_id: userId, score}] ranked highest first"""
        if category == "experience":
            if since is None:
                return [
                    {"_id": lvl["userId"], "score": lvl.get("totalExperience", 0), "level": lvl["level"]}
                    for lvl in self.repo_factory.get_level_repo().top_by_experience(limit=LEADERBOARD_SIZE)
                ]
            return self.repo_factory.get_experience_log_repo().totals_since(since, LEADERBOARD_SIZE)
        if category == "achievements":
            return self.repo_factory.get_user_achievement_repo().unlocked_counts(since, LEADERBOARD_SIZE)
        if category == "streaks":
            return [
                {"_id": s["userId"], "score": s.get("longestStreak", 0)}
                for s in self.repo_factory.get_streak_repo().top_longest("study", since, LEADERBOARD_SIZE)
            ]
        return self.repo_factory.get_submission_repo().completed_counts_since(since, LEADERBOARD_SIZE)

    def _build_board(self, board_type: str, category: str) -> Dict:
        now = utc_now()
        days = LEADERBOARD_TYPES[board_type]
        since = None if board_type == "all_time" else now - timedelta(days=days)
        scores = self._leaderboard_scores(category, since)

        users = {
            u["_id"]: u for u in self.repo_factory.get_user_repo().find_by_ids(
                [s["_id"] for s in scores], {"firstName": 1, "lastName": 1, "username": 1}
            )
        }
        levels = {lvl["userId"]: lvl for lvl in self.repo_factory.get_level_repo().find_for_users(list(users))}

        entries = []
        for position, row in enumerate(scores, start=1):
            level = levels.get(row["_id"], {})
            entries.append({
                "rank": position,
                "userId": row["_id"],
                "name": full_name(users.get(row["_id"])),
                "score": row["score"],
                "level": level.get("level", 1),
                "badge": level.get("badge", DEFAULT_TITLE[1])
            })

        board = {
            "type": board_type,
            "category": category,
            "entries": entries,
            "periodStart": since or now,
            "periodEnd": now + timedelta(days=days),
            "generatedAt": now
        }
        self.repo_factory.get_leaderboard_repo().save_board(board)
        return board

    def get_leaderboard(self, board_type: str = "weekly", category: str = "experience") -> Dict:
        if board_type not in LEADERBOARD_TYPES:
            raise ValidationError(f"Invalid leaderboard type '{board_type}'")
        if category not in LEADERBOARD_CATEGORIES:
            raise ValidationError(f"Invalid leaderboard category '{category}'")

        cache_key = generate_key(LEADERBOARD_CACHE_PREFIX, {"type": board_type, "category": category})
        cached = leaderboard_cache.get(cache_key)
        if cached:
            return cached

        board = self.repo_factory.get_leaderboard_repo().find_board(board_type, category)
        if not board or board["periodEnd"] < utc_now():
            board = self._build_board(board_type, category)

        result = sanitize_mongo_document(board)
        leaderboard_cache.put(cache_key, result)
        return result

    def get_class_leaderboard(self, student_ids: List[ObjectId]) -> List[Dict]:
        """Level ranking restricted to a set of students"""
        levels = self.repo_factory.get_level_repo().top_by_experience(student_ids, limit=LEADERBOARD_SIZE)
        users = {
            u["_id"]: u for u in self.repo_factory.get_user_repo().find_by_ids(
                [lvl["userId"] for lvl in levels], {"firstName": 1, "lastName": 1, "username": 1}
            )
        }
        return sanitize_mongo_document([
            {
                "rank": position,
                "userId": lvl["userId"],
                "name": full_name(users.get(lvl["userId"])),
                "level": lvl["level"],
                "title": lvl["title"],
                "badge": lvl["badge"],
                "totalExperience": lvl.get("totalExperience", 0)
            }
            for position, lvl in enumerate(levels, start=1)
        ])

    def get_teacher_stats(self, student_ids: List[ObjectId]) -> Dict:
        levels = self.repo_factory.get_level_repo().find_for_users(student_ids)
        streaks = [
            s for sid in student_ids for s in self.repo_factory.get_streak_repo().find_for_user(sid)
        ]
        unlocked = sum(
            1 for sid in student_ids
            for ua in self.repo_factory.get_user_achievement_repo().find_for_user(sid) if ua.get("isUnlocked")
        )
        now = utc_now()
        return {
            "totalStudents": len(student_ids),
            "activeStudents": len(levels),
            "averageLevel": round(sum(lvl["level"] for lvl in levels) / len(levels), 1) if levels else 0,
            "totalExperience": sum(lvl.get("totalExperience", 0) for lvl in levels),
            "achievementsUnlocked": unlocked,
            "activeStreaks": sum(
                1 for s in streaks if s.get("currentStreak", 0) > 0 and day_diff(now, s["lastActivity"]) <= 1
            ),
            "topStudents": self.get_class_leaderboard(student_ids)[:5]
        }

    def get_teacher_badges(self, student_ids: List[ObjectId]) -> List[Dict]:
        """Every active achievement with how many of the teacher's students unlocked it"""
        self.seed_achievements()
        earned = self.repo_factory.get_user_achievement_repo().earned_by_achievement(student_ids)
        total = len(student_ids)
        badges = []
        for achievement in self.repo_factory.get_achievement_repo().find_active():
            count = earned.get(achievement["_id"], 0)
            badges.append({
                "_id": achievement["_id"],
                "name": achievement["name"],
                "description": achievement["description"],
                "icon": achievement["icon"],
                "points": achievement["points"],
                "category": achievement["category"],
                "rarity": achievement["rarity"],
                "earnedBy": count,
                "totalStudents": total,
                "earnedPercentage": round(count / total * 100) if total else 0
            })
        badges.sort(key=lambda b: (-b["earnedBy"], b["points"]))
        return sanitize_mongo_document(badges)
