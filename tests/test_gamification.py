"""Levels, streaks, achievements and leaderboards."""

from datetime import timedelta

import pytest

from coachhub.exceptions.exceptions import ValidationError
from coachhub.repositories.core.repository_factory import RepositoryFactory
from coachhub.services.gamification.gamification_service import (
    GamificationService, level_title, experience_to_next, grade_experience, achievement_progress
)
from coachhub.utils.time.timeutils import utc_now


def test_level_titles():
    assert level_title(1) == ("Beginner", "🌱")
    assert level_title(5)[0] == "Rising Star"
    assert level_title(19)[0] == "Scholar"
    assert level_title(50)[0] == "Legend"
    assert level_title(99)[0] == "Legend"


def test_experience_curve():
    assert experience_to_next(1) == 100
    assert experience_to_next(2) == 120
    assert experience_to_next(5) > experience_to_next(4)


def test_grade_experience_is_clamped():
    assert grade_experience(0) == 5
    assert grade_experience(60) == 15
    assert grade_experience(100) == 25


def test_achievement_progress():
    assert achievement_progress(1, 5) == 20
    assert achievement_progress(9, 5) == 100
    assert achievement_progress(3, 0) == 100


def test_add_experience_carries_over_levels(app, make_user):
    student = make_user("student")

    result = GamificationService().add_experience(student["_id"], 250, "bonus")

    assert result["leveledUp"] is True
    assert result["newLevel"] == 3
    assert result["experience"] == 30
    assert [r["value"] for r in result["rewards"]] == [20, 30]
    level = RepositoryFactory.get_level_repo().find_by_user(student["_id"])
    assert level["totalExperience"] == 250


def test_add_experience_rejects_non_positive(app, make_user):
    student = make_user("student")
    with pytest.raises(ValidationError):
        GamificationService().add_experience(student["_id"], 0, "bonus")


def _seed_streak(user_id, days_ago, current=3, longest=3):
    RepositoryFactory.get_streak_repo().save({
        "userId": user_id, "type": "study", "currentStreak": current, "longestStreak": longest,
        "lastActivity": utc_now() - timedelta(days=days_ago), "isActive": True
    })


def test_streak_continues_on_consecutive_day(app, make_user):
    student = make_user("student")
    _seed_streak(student["_id"], days_ago=1)

    result = GamificationService().update_streak(student["_id"], "study")

    assert result == {"type": "study", "currentStreak": 4, "longestStreak": 4, "isNewRecord": True}


def test_streak_resets_after_gap(app, make_user):
    student = make_user("student")
    _seed_streak(student["_id"], days_ago=3, current=5, longest=8)

    result = GamificationService().update_streak(student["_id"], "study")

    assert result["currentStreak"] == 1
    assert result["longestStreak"] == 8
    assert result["isNewRecord"] is False


def test_streak_same_day_is_unchanged(app, make_user):
    student = make_user("student")
    service = GamificationService()

    first = service.update_streak(student["_id"], "login")
    second = service.update_streak(student["_id"], "login")

    assert first["isNewRecord"] is True
    assert second["currentStreak"] == 1
    assert second["isNewRecord"] is False


def test_invalid_streak_type(app, make_user):
    student = make_user("student")
    with pytest.raises(ValidationError):
        GamificationService().update_streak(student["_id"], "sleep")


def test_study_streak_unlocks_achievement(app, make_user):
    student = make_user("student")
    _seed_streak(student["_id"], days_ago=1, current=6, longest=6)
    service = GamificationService()
    service.update_streak(student["_id"], "study")

    unlocked = service.check_achievements(student["_id"])

    assert [a["name"] for a in unlocked] == ["Study Streak"]
    assert service.check_achievements(student["_id"]) == []


def test_student_stats_endpoint(client, student):
    _, headers = student

    response = client.get("/api/student/gamification", headers=headers)

    assert response.status_code == 200
    stats = response.get_json()["data"]
    assert stats["level"] == 1
    assert stats["title"] == "Beginner"
    assert stats["totalPoints"] == 0
    assert stats["achievements"] == []
    assert len(stats["nextAchievements"]) == 3
    assert stats["rank"] == 1


def test_streak_endpoint(client, student):
    _, headers = student

    default = client.post("/api/student/gamification/streak", json={}, headers=headers)
    invalid = client.post("/api/student/gamification/streak", json={"type": "nap"}, headers=headers)

    assert default.get_json()["data"]["type"] == "study"
    assert invalid.status_code == 400


def test_weekly_leaderboard_ranks_by_recent_experience(client, student, make_user):
    student_user, headers = student
    rival = make_user("student")
    service = GamificationService()
    service.add_experience(student_user["_id"], 40, "bonus")
    service.add_experience(rival["_id"], 70, "bonus")

    board = client.get("/api/student/leaderboard", headers=headers).get_json()["data"]

    assert board["type"] == "weekly"
    assert [e["userId"] for e in board["entries"]] == [str(rival["_id"]), str(student_user["_id"])]
    assert board["entries"][0]["score"] == 70
    assert board["entries"][0]["rank"] == 1


def test_leaderboard_rejects_unknown_type(client, student):
    _, headers = student
    assert client.get("/api/student/leaderboard?type=daily", headers=headers).status_code == 400
    assert client.get("/api/student/leaderboard?category=height", headers=headers).status_code == 400


def test_teacher_class_leaderboard_and_stats(client, teacher, student, make_user):
    _, headers = teacher
    student_user, _ = student
    outsider = make_user("student")
    service = GamificationService()
    service.add_experience(student_user["_id"], 30, "bonus")
    service.add_experience(outsider["_id"], 500, "bonus")
    service.update_streak(student_user["_id"], "study")

    board = client.get("/api/teacher/gamification/leaderboard", headers=headers).get_json()["data"]
    stats = client.get("/api/teacher/gamification/stats", headers=headers).get_json()["data"]

    assert [e["userId"] for e in board] == [str(student_user["_id"])]
    assert stats["totalStudents"] == 1
    assert stats["activeStudents"] == 1
    assert stats["totalExperience"] == 30
    assert stats["activeStreaks"] == 1
    assert stats["averageLevel"] == 1


def test_teacher_badges_count_real_unlocks(client, teacher, student, make_user):
    _, headers = teacher
    student_user, _ = student
    outsider = make_user("student")
    service = GamificationService()
    service.seed_achievements()
    achievement_repo = RepositoryFactory.get_achievement_repo()
    first_step = next(a for a in achievement_repo.find_active() if a["name"] == "First Step")
    unlocks = RepositoryFactory.get_user_achievement_repo()
    unlocks.unlock(student_user["_id"], first_step["_id"], 100)
    unlocks.unlock(outsider["_id"], first_step["_id"], 100)

    response = client.get("/api/teacher/gamification/badges", headers=headers)

    assert response.status_code == 200
    badges = response.get_json()["data"]
    assert badges[0]["name"] == "First Step"
    assert badges[0]["earnedBy"] == 1
    assert badges[0]["totalStudents"] == 1
    assert badges[0]["earnedPercentage"] == 100
    assert all(b["earnedBy"] == 0 for b in badges[1:])
    assert len(badges) == len(achievement_repo.find_active())


def test_teacher_badges_without_students(client, make_user, tokens):
    lone = make_user("teacher")

    badges = client.get("/api/teacher/gamification/badges", headers=tokens(lone, "teacher")).get_json()["data"]

    assert badges
    assert {b["earnedPercentage"] for b in badges} == {0}
