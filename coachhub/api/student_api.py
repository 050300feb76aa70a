"""Student API - Presentation Layer (SoC)"""
from flask_restful import Resource
from coachhub.exceptions.error_handler import handle_service_error
from coachhub.jwt.auth_middleware import student_required
from coachhub.jwt.jwt_utils import JWTManager
from coachhub.services.adaptive.adaptive_learning_service import AdaptiveLearningService
from coachhub.services.auth.profile_service import ProfileService
from coachhub.services.gamification.gamification_service import GamificationService
from coachhub.services.report.analytics_service import AnalyticsService
from coachhub.services.social.social_learning_service import SocialLearningService
from coachhub.services.student.submission_service import SubmissionService
from coachhub.services.teacher.goal_service import GoalService
from coachhub.services.video.video_coaching_service import VideoCoachingService
from coachhub.utils.validation.input_validator import get_json_data, get_optional_query_params

# ---------- assignments ----------

class StudentAssignmentListResource(Resource):
    def __init__(self):
        self.submission_service = SubmissionService()

    @student_required
    def get(self):
        try:
            result = self.submission_service.list_assignments(JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class StudentAssignmentDetailResource(Resource):
    def __init__(self):
        self.submission_service = SubmissionService()

    @student_required
    def get(self, assignment_id):
        try:
            result = self.submission_service.get_assignment(assignment_id, JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class SubmitAssignmentResource(Resource):
    def __init__(self):
        self.submission_service = SubmissionService()

    @student_required
    def post(self, assignment_id):
        try:
            result = self.submission_service.submit(assignment_id, JWTManager.get_current_user_id(), get_json_data())
            return {"success": True, "data": result}, 201

        except Exception as e:
            return handle_service_error(e)

class ResubmitAssignmentResource(Resource):
    def __init__(self):
        self.submission_service = SubmissionService()

    @student_required
    def post(self, assignment_id):
        try:
            result = self.submission_service.resubmit(assignment_id, JWTManager.get_current_user_id(), get_json_data())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

# ---------- goals ----------

class StudentGoalListResource(Resource):
    def __init__(self):
        self.goal_service = GoalService()

    @student_required
    def get(self):
        try:
            result = self.goal_service.list_student_goals(JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class StudentGoalDetailResource(Resource):
    def __init__(self):
        self.goal_service = GoalService()

    @student_required
    def put(self, goal_id):
        try:
            result = self.goal_service.update_student_progress(goal_id, JWTManager.get_current_user_id(), get_json_data())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

# ---------- gamification ----------

class StudentGamificationResource(Resource):
    def __init__(self):
        self.gamification_service = GamificationService()

    @student_required
    def get(self):
        try:
            result = self.gamification_service.get_user_stats(JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class StudentStreakResource(Resource):
    def __init__(self):
        self.gamification_service = GamificationService()

    @student_required
    def post(self):
        try:
            streak_type = get_json_data().get("type", "study")
            result = self.gamification_service.update_streak(JWTManager.get_current_user_id(), streak_type)
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class StudentLeaderboardResource(Resource):
    def __init__(self):
        self.gamification_service = GamificationService()

    @student_required
    def get(self):
        try:
            params = get_optional_query_params(type="weekly", category="experience")
            result = self.gamification_service.get_leaderboard(params["type"], params["category"])
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

# ---------- profile & analysis ----------

class StudentProfileResource(Resource):
    def __init__(self):
        self.profile_service = ProfileService()

    @student_required
    def get(self):
        try:
            result = self.profile_service.get_profile(JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

    @student_required
    def put(self):
        try:
            result = self.profile_service.update_student_profile(JWTManager.get_current_user_id(), get_json_data())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class StudentAnalysisResource(Resource):
    def __init__(self):
        self.analytics_service = AnalyticsService()

    @student_required
    def get(self):
        try:
            params = get_optional_query_params(startDate=None, endDate=None)
            result = self.analytics_service.get_student_analysis(
                JWTManager.get_current_user_id(), start_raw=params["startDate"], end_raw=params["endDate"]
            )
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

# ---------- video coaching ----------

class StudentVideoOverviewResource(Resource):
    def __init__(self):
        self.video_service = VideoCoachingService()

    @student_required
    def get(self):
        try:
            result = self.video_service.get_student_overview(JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class StudentVideoJoinResource(Resource):
    def __init__(self):
        self.video_service = VideoCoachingService()

    @student_required
    def post(self, session_id):
        try:
            result = self.video_service.join_session(session_id, JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class StudentVideoLeaveResource(Resource):
    def __init__(self):
        self.video_service = VideoCoachingService()

    @student_required
    def post(self, session_id):
        try:
            result = self.video_service.leave_session(session_id, JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class StudentVideoFeedbackResource(Resource):
    def __init__(self):
        self.video_service = VideoCoachingService()

    @student_required
    def post(self, session_id):
        try:
            result = self.video_service.add_feedback(session_id, JWTManager.get_current_user_id(), get_json_data())
            return {"success": True, "data": result}, 201

        except Exception as e:
            return handle_service_error(e)

class StudentVideoStatsResource(Resource):
    def __init__(self):
        self.video_service = VideoCoachingService()

    @student_required
    def get(self):
        try:
            result = self.video_service.get_stats(JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

# ---------- social learning ----------

class SocialDashboardResource(Resource):
    def __init__(self):
        self.social_service = SocialLearningService()

    @student_required
    def get(self):
        try:
            result = self.social_service.get_dashboard(JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class StudyGroupListResource(Resource):
    def __init__(self):
        self.social_service = SocialLearningService()

    @student_required
    def post(self):
        try:
            result = self.social_service.create_study_group(JWTManager.get_current_user_id(), get_json_data())
            return {"success": True, "data": result}, 201

        except Exception as e:
            return handle_service_error(e)

class StudyGroupSearchResource(Resource):
    def __init__(self):
        self.social_service = SocialLearningService()

    @student_required
    def get(self):
        try:
            params = get_optional_query_params(q=None, subject=None)
            result = self.social_service.search_study_groups(params["q"], params["subject"])
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class StudyGroupDetailResource(Resource):
    def __init__(self):
        self.social_service = SocialLearningService()

    @student_required
    def get(self, group_id):
        try:
            result = self.social_service.get_study_group_details(group_id, JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class StudyGroupJoinResource(Resource):
    def __init__(self):
        self.social_service = SocialLearningService()

    @student_required
    def post(self, group_id):
        try:
            result = self.social_service.join_study_group(group_id, JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class StudyGroupLeaveResource(Resource):
    def __init__(self):
        self.social_service = SocialLearningService()

    @student_required
    def post(self, group_id):
        try:
            result = self.social_service.leave_study_group(group_id, JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class StudySessionCreateResource(Resource):
    def __init__(self):
        self.social_service = SocialLearningService()

    @student_required
    def post(self, group_id):
        try:
            result = self.social_service.create_study_session(group_id, JWTManager.get_current_user_id(), get_json_data())
            return {"success": True, "data": result}, 201

        except Exception as e:
            return handle_service_error(e)

class StudySessionJoinResource(Resource):
    def __init__(self):
        self.social_service = SocialLearningService()

    @student_required
    def post(self, session_id):
        try:
            result = self.social_service.join_study_session(session_id, JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class StudyPostListResource(Resource):
    def __init__(self):
        self.social_service = SocialLearningService()

    @student_required
    def get(self):
        try:
            params = get_optional_query_params(groupId=None)
            result = self.social_service.list_posts(JWTManager.get_current_user_id(), params["groupId"])
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

    @student_required
    def post(self):
        try:
            result = self.social_service.create_post(JWTManager.get_current_user_id(), get_json_data())
            return {"success": True, "data": result}, 201

        except Exception as e:
            return handle_service_error(e)

class StudyPostLikeResource(Resource):
    def __init__(self):
        self.social_service = SocialLearningService()

    @student_required
    def post(self, post_id):
        try:
            result = self.social_service.like_post(post_id, JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class StudyPostCommentResource(Resource):
    def __init__(self):
        self.social_service = SocialLearningService()

    @student_required
    def post(self, post_id):
        try:
            result = self.social_service.comment_on_post(post_id, JWTManager.get_current_user_id(), get_json_data())
            return {"success": True, "data": result}, 201

        except Exception as e:
            return handle_service_error(e)

class StudyResourceShareResource(Resource):
    def __init__(self):
        self.social_service = SocialLearningService()

    @student_required
    def post(self):
        try:
            result = self.social_service.share_resource(JWTManager.get_current_user_id(), get_json_data())
            return {"success": True, "data": result}, 201

        except Exception as e:
            return handle_service_error(e)

class ChallengeJoinResource(Resource):
    def __init__(self):
        self.social_service = SocialLearningService()

    @student_required
    def post(self, challenge_id):
        try:
            result = self.social_service.join_challenge(challenge_id, JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

# ---------- adaptive learning ----------

class AdaptiveDashboardResource(Resource):
    def __init__(self):
        self.adaptive_service = AdaptiveLearningService()

    @student_required
    def get(self):
        try:
            result = self.adaptive_service.get_dashboard(JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class LearningProfileResource(Resource):
    def __init__(self):
        self.adaptive_service = AdaptiveLearningService()

    @student_required
    def get(self):
        try:
            result = self.adaptive_service.get_profile(JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

    @student_required
    def put(self):
        try:
            result = self.adaptive_service.update_settings(JWTManager.get_current_user_id(), get_json_data())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class LearningPathResource(Resource):
    def __init__(self):
        self.adaptive_service = AdaptiveLearningService()

    @student_required
    def get(self):
        try:
            params = get_optional_query_params(subject=None)
            result = self.adaptive_service.get_personalized_learning_path(
                JWTManager.get_current_user_id(), params["subject"]
            )
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class StudentModuleListResource(Resource):
    def __init__(self):
        self.adaptive_service = AdaptiveLearningService()

    @student_required
    def get(self):
        try:
            params = get_optional_query_params(subject=None, level=None)
            result = self.adaptive_service.list_modules(params["subject"], params["level"], active_only=True)
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class StudentModuleDetailResource(Resource):
    def __init__(self):
        self.adaptive_service = AdaptiveLearningService()

    @student_required
    def get(self, module_id):
        try:
            result = self.adaptive_service.get_module_for_student(module_id)
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class AdaptiveAssessmentResource(Resource):
    def __init__(self):
        self.adaptive_service = AdaptiveLearningService()

    @student_required
    def post(self):
        try:
            module_id = get_json_data().get("moduleId")
            result = self.adaptive_service.take_adaptive_assessment(module_id, JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class AssessmentAnswerResource(Resource):
    def __init__(self):
        self.adaptive_service = AdaptiveLearningService()

    @student_required
    def post(self, assessment_id):
        try:
            result = self.adaptive_service.submit_assessment_answer(
                assessment_id, JWTManager.get_current_user_id(), get_json_data()
            )
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class AcceptRecommendationResource(Resource):
    def __init__(self):
        self.adaptive_service = AdaptiveLearningService()

    @student_required
    def post(self, recommendation_id):
        try:
            result = self.adaptive_service.accept_recommendation(recommendation_id, JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)
