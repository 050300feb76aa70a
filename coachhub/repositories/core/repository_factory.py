"""Repository Factory - DRY Implementation"""
from typing import Dict, Type
from coachhub.repositories.core.base_repo import BaseRepo
from coachhub.repositories.users.user_repo import UserRepo
from coachhub.repositories.users.parent_repo import ParentRepo
from coachhub.repositories.users.application_repo import ApplicationRepo
from coachhub.repositories.billing.subscription_repo import SubscriptionRepo
from coachhub.repositories.billing.discount_repo import DiscountRepo
from coachhub.repositories.billing.free_slot_repo import FreeSlotRepo
from coachhub.repositories.teaching.class_repo import ClassRepo
from coachhub.repositories.teaching.assignment_repo import AssignmentRepo
from coachhub.repositories.teaching.submission_repo import SubmissionRepo
from coachhub.repositories.teaching.goal_repo import GoalRepo
from coachhub.repositories.gamification.gamification_repo import (
    UserLevelRepo, UserStreakRepo, AchievementRepo, UserAchievementRepo,
    UserRewardRepo, LeaderboardRepo, ExperienceLogRepo
)
from coachhub.repositories.video.video_session_repo import VideoSessionRepo
from coachhub.repositories.social.social_repo import (
    StudyGroupRepo, StudySessionRepo, StudyPostRepo, StudyResourceRepo, StudyChallengeRepo
)
from coachhub.repositories.adaptive.adaptive_repo import (
    LearningModuleRepo, LearningPathRepo, LearningProfileRepo, RecommendationRepo, AssessmentRepo
)
from coachhub.repositories.parent.notification_repo import ParentNotificationRepo, ParentReportRepo

class RepositoryFactory:
    """Centralized repository creation (DRY principle)"""

    _repos: Dict[Type[BaseRepo], BaseRepo] = {}

    @classmethod
    def _get(cls, repo_cls):
        """Get or create the shared repository instance"""
        if repo_cls not in cls._repos:
            cls._repos[repo_cls] = repo_cls()
        return cls._repos[repo_cls]

    @classmethod
    def reset(cls) -> None:
        """Forget cached repositories (after the database client changes)"""
        cls._repos.clear()

    # accounts
    @classmethod
    def get_user_repo(cls) -> UserRepo:
        return cls._get(UserRepo)

    @classmethod
    def get_parent_repo(cls) -> ParentRepo:
        return cls._get(ParentRepo)

    @classmethod
    def get_application_repo(cls) -> ApplicationRepo:
        return cls._get(ApplicationRepo)

    # billing
    @classmethod
    def get_subscription_repo(cls) -> SubscriptionRepo:
        return cls._get(SubscriptionRepo)

    @classmethod
    def get_discount_repo(cls) -> DiscountRepo:
        return cls._get(DiscountRepo)

    @classmethod
    def get_free_slot_repo(cls) -> FreeSlotRepo:
        return cls._get(FreeSlotRepo)

    # teaching
    @classmethod
    def get_class_repo(cls) -> ClassRepo:
        return cls._get(ClassRepo)

    @classmethod
    def get_assignment_repo(cls) -> AssignmentRepo:
        return cls._get(AssignmentRepo)

    @classmethod
    def get_submission_repo(cls) -> SubmissionRepo:
        return cls._get(SubmissionRepo)

    @classmethod
    def get_goal_repo(cls) -> GoalRepo:
        return cls._get(GoalRepo)

    # gamification
    @classmethod
    def get_level_repo(cls) -> UserLevelRepo:
        return cls._get(UserLevelRepo)

    @classmethod
    def get_streak_repo(cls) -> UserStreakRepo:
        return cls._get(UserStreakRepo)

    @classmethod
    def get_achievement_repo(cls) -> AchievementRepo:
        return cls._get(AchievementRepo)

    @classmethod
    def get_user_achievement_repo(cls) -> UserAchievementRepo:
        return cls._get(UserAchievementRepo)

    @classmethod
    def get_reward_repo(cls) -> UserRewardRepo:
        return cls._get(UserRewardRepo)

    @classmethod
    def get_leaderboard_repo(cls) -> LeaderboardRepo:
        return cls._get(LeaderboardRepo)

    @classmethod
    def get_experience_log_repo(cls) -> ExperienceLogRepo:
        return cls._get(ExperienceLogRepo)

    # video coaching
    @classmethod
    def get_video_session_repo(cls) -> VideoSessionRepo:
        return cls._get(VideoSessionRepo)

    # social learning
    @classmethod
    def get_study_group_repo(cls) -> StudyGroupRepo:
        return cls._get(StudyGroupRepo)

    @classmethod
    def get_study_session_repo(cls) -> StudySessionRepo:
        return cls._get(StudySessionRepo)

    @classmethod
    def get_study_post_repo(cls) -> StudyPostRepo:
        return cls._get(StudyPostRepo)

    @classmethod
    def get_study_resource_repo(cls) -> StudyResourceRepo:
        return cls._get(StudyResourceRepo)

    @classmethod
    def get_study_challenge_repo(cls) -> StudyChallengeRepo:
        return cls._get(StudyChallengeRepo)

    # adaptive learning
    @classmethod
    def get_module_repo(cls) -> LearningModuleRepo:
        return cls._get(LearningModuleRepo)

    @classmethod
    def get_path_repo(cls) -> LearningPathRepo:
        return cls._get(LearningPathRepo)

    @classmethod
    def get_profile_repo(cls) -> LearningProfileRepo:
        return cls._get(LearningProfileRepo)

    @classmethod
    def get_recommendation_repo(cls) -> RecommendationRepo:
        return cls._get(RecommendationRepo)

    @classmethod
    def get_assessment_repo(cls) -> AssessmentRepo:
        return cls._get(AssessmentRepo)

    # parents
    @classmethod
    def get_notification_repo(cls) -> ParentNotificationRepo:
        return cls._get(ParentNotificationRepo)

    @classmethod
    def get_parent_report_repo(cls) -> ParentReportRepo:
        return cls._get(ParentReportRepo)
