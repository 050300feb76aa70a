"""Configuration settings - Configuration Layer (Environment Separated)"""
import os
from typing import Dict, Set

def safe_int_env(key: str, default: str) -> int:
    """Safely convert environment variable to int"""
    try:
        return int(os.getenv(key, default))
    except ValueError:
        return int(default)

# Roles carried in the JWT "userType" claim
ROLE_ADMIN = "admin"
ROLE_TEACHER = "teacher"
ROLE_STUDENT = "student"
ROLE_PARENT = "parent"
USER_ROLES: Set[str] = {ROLE_ADMIN, ROLE_TEACHER, ROLE_STUDENT}

# Subscription plans (Business Configuration)
PLAN_PRICES: Dict[str, int] = {
    "3months": 1500,
    "6months": 2400,
    "12months": 3600
}
PLAN_MONTHS: Dict[str, int] = {"3months": 3, "6months": 6, "12months": 12}
PLAN_NAMES: Dict[str, str] = {
    "3months": "3 Month Plan",
    "6months": "6 Month Plan",
    "12months": "12 Month Plan"
}
PLAN_DURATIONS: Dict[str, str] = {"3months": "3 months", "6months": "6 months", "12months": "12 months"}
POPULAR_PLAN = "6months"
PLAN_FEATURES = [
    "Unlimited students",
    "Assignment tracking",
    "Parent notifications",
    "PDF progress reports",
    "Video coaching sessions",
    "Gamification and leaderboards"
]
PAYMENT_STATUSES: Set[str] = {"pending", "paid", "failed", "refunded"}

# Free teacher slots
FREE_TEACHER_SLOTS = safe_int_env("FREE_TEACHER_SLOTS", "20")
FREE_SLOT_DAYS = safe_int_env("FREE_SLOT_DAYS", "365")
FREE_SLOT_PLAN = "12months"

# Teacher applications
APPLICATION_STATUSES: Set[str] = {"pending", "approved", "rejected"}

# Classes
MAX_CO_TEACHERS = 3

# Assignments & submissions
ASSIGNMENT_TYPES: Set[str] = {"individual", "class"}
LATE_POLICIES: Set[str] = {"no", "untilClose", "always"}
SUBMISSION_STATUSES: Set[str] = {"completed", "incomplete", "not_started", "submitted", "graded", "late"}
SUBMITTED_STATUSES = ["submitted", "graded", "completed", "late"]
GRADED_STATUSES = ["graded", "completed"]
DEFAULT_MAX_GRADE = 100

# Goals
GOAL_STATUSES: Set[str] = {"pending", "in_progress", "completed", "cancelled"}
GOAL_CATEGORIES: Set[str] = {"academic", "behavioral", "skill", "personal", "other"}
PRIORITIES: Set[str] = {"low", "medium", "high"}

# Gamification
BASE_EXPERIENCE_TO_NEXT = 100
EXPERIENCE_GROWTH = 1.2
GOAL_COMPLETION_XP = 20
STREAK_TYPES: Set[str] = {"study", "assignment", "login"}
LEADERBOARD_TYPES: Dict[str, int] = {"weekly": 7, "monthly": 30, "all_time": 365}
LEADERBOARD_CATEGORIES: Set[str] = {"experience", "achievements", "streaks", "assignments"}
LEADERBOARD_SIZE = 50

# Video coaching
VIDEO_SESSION_TYPES: Set[str] = {"one_on_one", "group", "class", "consultation"}
VIDEO_SESSION_STATUSES: Set[str] = {"scheduled", "in_progress", "completed", "cancelled", "rescheduled"}
VIDEO_JOINABLE_STATUSES: Set[str] = {"scheduled", "in_progress"}

# Social learning
POST_TYPES: Set[str] = {"question", "answer", "resource", "discussion", "achievement"}
SESSION_LOCATION_TYPES: Set[str] = {"online", "physical"}
DEFAULT_GROUP_SIZE = 10

# Adaptive learning
LEARNING_LEVELS: Set[str] = {"beginner", "intermediate", "advanced"}
MODULE_TYPES: Set[str] = {"video", "reading", "interactive", "quiz", "assignment", "project"}
QUESTION_TYPES: Set[str] = {"multiple_choice", "true_false", "fill_blank", "essay"}
MAX_ASSESSMENT_QUESTIONS = 10

# Parents
NOTIFICATION_TYPES: Set[str] = {
    "assignment_completed", "assignment_graded", "goal_achieved",
    "low_performance", "attendance", "general"
}
UPCOMING_EVENT_DAYS = 14
LOW_PERFORMANCE_GRADE = 50
LOW_PERFORMANCE_MIN_GRADED = 3

# Database Configuration
class DatabaseConfig:
    DB_URL = os.getenv("DB_URL", "mongodb://localhost:27017")
    DB_NAME = os.getenv("DB_NAME", "coachhub")

# JWT Configuration
class JWTConfig:
    SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me-in-production-coachhub-secret")
    ACCESS_TOKEN_EXPIRES_DAYS = safe_int_env("JWT_ACCESS_TOKEN_EXPIRES_DAYS", "7")
    REFRESH_TOKEN_EXPIRE_DAYS = safe_int_env("JWT_REFRESH_TOKEN_EXPIRE_DAYS", "30")

# Cache Configuration
class CacheConfig:
    DEFAULT_TTL = safe_int_env("CACHE_DEFAULT_TTL", "300")  # 5 minutes
    LEADERBOARD_TTL = safe_int_env("LEADERBOARD_CACHE_TTL", "60")

# Rate limiting
class RateLimitConfig:
    LOGIN_LIMIT = safe_int_env("LOGIN_RATE_LIMIT", "10")
    LOGIN_WINDOW_SECONDS = safe_int_env("LOGIN_RATE_WINDOW_SECONDS", "60")

# Pagination
class PaginationConfig:
    DEFAULT_LIMIT = 20
    MAX_LIMIT = 100

# Report Configuration
class ReportConfig:
    DEFAULT_RANGE_DAYS = safe_int_env("REPORT_DEFAULT_RANGE_DAYS", "90")
    RECENT_ASSIGNMENTS = 10
    BRAND_NAME = os.getenv("REPORT_BRAND_NAME", "CoachHub")

# Analytics Configuration
class AnalyticsConfig:
    DEFAULT_RANGE_DAYS = safe_int_env("ANALYTICS_DEFAULT_RANGE_DAYS", "30")
    MONTHLY_PROGRESS_MONTHS = 6
    TREND_THRESHOLD = 5  # grade points between recent and older averages

# Video Configuration
class VideoConfig:
    MEETING_DOMAIN = os.getenv("VIDEO_MEETING_DOMAIN", "meet.coachhub.app")
    MIN_DURATION = 15
    MAX_DURATION = 240
    UPCOMING_LIMIT = 10

# Logging Configuration
class LogConfig:
    LOG_DIR = os.getenv("LOG_DIR", os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "logs"))
    MAX_LOG_SIZE = safe_int_env("LOG_MAX_BYTES", str(30 * 1024 * 1024))
    BACKUP_COUNT = safe_int_env("LOG_BACKUP_COUNT", "5")
    LEVEL = os.getenv("LOG_LEVEL", "DEBUG").upper()
    TO_FILE = os.getenv("LOG_TO_FILE", "true").lower() == "true"
