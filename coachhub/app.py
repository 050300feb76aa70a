from dotenv import load_dotenv
load_dotenv()

from datetime import timedelta
from flask import Flask, request
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_restful import Api

from coachhub.config.settings import JWTConfig
from coachhub.db.db_utils import init_db
from coachhub.logging_logs.log_config import setup_logging

from coachhub.api.auth_api import LoginResource, ParentLoginResource, LogoutResource, MeResource, RefreshResource
from coachhub.api.health_api import HealthCheckResource

#admin & billing
from coachhub.api.admin_api import (
    PricingResource, FreeSlotsResource, TeacherApplicationResource,
    SubscriptionListResource, SubscriptionDetailResource, DiscountListResource, DiscountDetailResource,
    ApplicationListResource, ApplicationDetailResource, ApplicationApproveResource, ApplicationRejectResource,
    AdminStatsResource, AdminTeacherListResource, AdminTeacherDetailResource, AdminTeacherStatsResource,
    AdminTeacherClassesResource, AdminTeacherStudentsResource, AdminTeacherParentsResource,
    AdminCreateTeacherResource, AdminTeacherStatusResource, AdminParentListResource, AdminParentStatusResource,
    CacheBustResource
)

#teachers
from coachhub.api.teacher_api import (
    ClassListResource, ClassDetailResource,
    StudentListResource, StudentDetailResource, StudentStatsResource, TeacherStatsResource,
    StudentReportDataResource, StudentReportDownloadResource,
    TeacherStudentAssignmentsResource, TeacherStudentAnalysisResource, TeacherProfileResource, TeacherAccountResource,
    AssignmentListResource, AssignmentDetailResource, AssignmentSubmissionsResource,
    GradeSubmissionResource, ReopenSubmissionResource,
    GoalListResource, GoalDetailResource, GoalLinkAssignmentResource, GoalNotifyParentResource,
    ParentListResource, ParentDetailResource, ParentChildrenResource,
    TeacherLeaderboardResource, TeacherGamificationStatsResource, TeacherBadgesResource,
    VideoSessionListResource, VideoSessionDetailResource, TeacherVideoJoinResource, TeacherVideoLeaveResource,
    VideoSessionNotesResource, TeacherVideoStatsResource,
    TeacherSocialStatsResource, TeacherStudyGroupsResource, TeacherStudyPostsResource, TeacherChallengesResource,
    LearningModuleListResource, LearningPathListResource, TeacherAdaptiveStatsResource
)

#students
from coachhub.api.student_api import (
    StudentAssignmentListResource, StudentAssignmentDetailResource, SubmitAssignmentResource,
    ResubmitAssignmentResource, StudentGoalListResource, StudentGoalDetailResource,
    StudentGamificationResource, StudentStreakResource, StudentLeaderboardResource,
    StudentVideoOverviewResource, StudentVideoJoinResource, StudentVideoLeaveResource,
    StudentVideoFeedbackResource, StudentVideoStatsResource,
    SocialDashboardResource, StudyGroupListResource, StudyGroupSearchResource, StudyGroupDetailResource,
    StudyGroupJoinResource, StudyGroupLeaveResource, StudySessionCreateResource, StudySessionJoinResource,
    StudyPostListResource, StudyPostLikeResource, StudyPostCommentResource, StudyResourceShareResource,
    ChallengeJoinResource,
    AdaptiveDashboardResource, LearningProfileResource, LearningPathResource, StudentModuleListResource,
    StudentModuleDetailResource, AdaptiveAssessmentResource, AssessmentAnswerResource,
    AcceptRecommendationResource, StudentProfileResource, StudentAnalysisResource
)

#parents
from coachhub.api.parent_api import (
    NotificationListResource, NotificationReadResource, NotificationReadAllResource, NotificationCreateResource,
    ParentDashboardResource, ChildDetailResource, ChildReportDataResource, ParentRegisterResource
)

#analytics
from coachhub.api.analytics_api import StudentAnalyticsResource, ClassAnalyticsResource, TeacherAnalyticsResource

logger = setup_logging("app")


class MyFlask(Flask):
    def add_api(self):
        api = Api(self, catch_all_404s=True)
        api.add_resource(HealthCheckResource, "/api/health-check")
        api.add_resource(CacheBustResource, "/api/cache-bust")

        # -------------- Auth --------------
        api.add_resource(LoginResource, "/api/auth/login")
        api.add_resource(LogoutResource, "/api/auth/logout")
        api.add_resource(MeResource, "/api/auth/me")
        api.add_resource(RefreshResource, "/api/auth/refresh")
        api.add_resource(ParentLoginResource, "/api/parent/auth/login")

        # -------------- Public --------------
        api.add_resource(PricingResource, "/api/pricing")
        api.add_resource(FreeSlotsResource, "/api/free-teacher-slots")
        api.add_resource(TeacherApplicationResource, "/api/teacher-applications")

        # -------------- Admin --------------
        api.add_resource(SubscriptionListResource, "/api/admin/subscriptions")
        api.add_resource(SubscriptionDetailResource, "/api/admin/subscriptions/<string:subscription_id>")
        api.add_resource(DiscountListResource, "/api/admin/discounts")
        api.add_resource(DiscountDetailResource, "/api/admin/discounts/<string:discount_id>")
        api.add_resource(ApplicationListResource, "/api/admin/applications")
        api.add_resource(ApplicationDetailResource, "/api/admin/applications/<string:application_id>")
        api.add_resource(ApplicationApproveResource, "/api/admin/applications/<string:application_id>/approve")
        api.add_resource(ApplicationRejectResource, "/api/admin/applications/<string:application_id>/reject")
        api.add_resource(AdminStatsResource, "/api/admin/stats")
        api.add_resource(AdminTeacherListResource, "/api/admin/teachers")
        api.add_resource(AdminTeacherDetailResource, "/api/admin/teachers/<string:teacher_id>")
        api.add_resource(AdminTeacherStatsResource, "/api/admin/teachers/<string:teacher_id>/stats")
        api.add_resource(AdminTeacherClassesResource, "/api/admin/teachers/<string:teacher_id>/classes")
        api.add_resource(AdminTeacherStudentsResource, "/api/admin/teachers/<string:teacher_id>/students")
        api.add_resource(AdminTeacherParentsResource, "/api/admin/teachers/<string:teacher_id>/parents")
        api.add_resource(AdminTeacherStatusResource, "/api/admin/teachers/<string:teacher_id>/toggle-status")
        api.add_resource(AdminCreateTeacherResource, "/api/admin/create-teacher")
        api.add_resource(AdminParentListResource, "/api/admin/parents")
        api.add_resource(AdminParentStatusResource, "/api/admin/parents/<string:parent_id>/toggle-status")

        # -------------- Teacher: classes & students --------------
        api.add_resource(ClassListResource, "/api/teacher/classes")
        api.add_resource(ClassDetailResource, "/api/teacher/classes/<string:class_id>")
        api.add_resource(StudentListResource, "/api/teacher/students")
        api.add_resource(StudentDetailResource, "/api/teacher/students/<string:student_id>")
        api.add_resource(StudentStatsResource, "/api/teacher/students/<string:student_id>/stats")
        api.add_resource(StudentReportDataResource, "/api/teacher/students/<string:student_id>/report/data")
        api.add_resource(StudentReportDownloadResource, "/api/teacher/students/<string:student_id>/report/download")
        api.add_resource(TeacherStudentAssignmentsResource, "/api/teacher/students/<string:student_id>/assignments")
        api.add_resource(TeacherStudentAnalysisResource, "/api/teacher/students/<string:student_id>/analysis")
        api.add_resource(TeacherStatsResource, "/api/teacher/stats")
        api.add_resource(TeacherProfileResource, "/api/teacher/profile")
        api.add_resource(TeacherAccountResource, "/api/teacher/account")

        # -------------- Teacher: assignments & goals --------------
        api.add_resource(AssignmentListResource, "/api/teacher/assignments")
        api.add_resource(AssignmentDetailResource, "/api/teacher/assignments/<string:assignment_id>")
        api.add_resource(AssignmentSubmissionsResource, "/api/teacher/assignments/<string:assignment_id>/submissions")
        api.add_resource(GradeSubmissionResource, "/api/teacher/assignments/submissions/<string:submission_id>/grade")
        api.add_resource(ReopenSubmissionResource, "/api/teacher/assignments/submissions/<string:submission_id>/reopen")
        api.add_resource(GoalListResource, "/api/teacher/goals")
        api.add_resource(GoalDetailResource, "/api/teacher/goals/<string:goal_id>")
        api.add_resource(GoalLinkAssignmentResource, "/api/teacher/goals/<string:goal_id>/link-assignment")
        api.add_resource(GoalNotifyParentResource, "/api/teacher/goals/<string:goal_id>/notify-parent")

        # -------------- Teacher: parents --------------
        api.add_resource(ParentListResource, "/api/teacher/parents")
        api.add_resource(ParentDetailResource, "/api/teacher/parents/<string:parent_id>")
        api.add_resource(ParentChildrenResource, "/api/teacher/parents/<string:parent_id>/children")

        # -------------- Teacher: engagement --------------
        api.add_resource(TeacherLeaderboardResource, "/api/teacher/gamification/leaderboard")
        api.add_resource(TeacherGamificationStatsResource, "/api/teacher/gamification/stats")
        api.add_resource(TeacherBadgesResource, "/api/teacher/gamification/badges")
        api.add_resource(VideoSessionListResource, "/api/teacher/video-coaching/sessions")
        api.add_resource(VideoSessionDetailResource, "/api/teacher/video-coaching/sessions/<string:session_id>")
        api.add_resource(TeacherVideoJoinResource, "/api/teacher/video-coaching/sessions/<string:session_id>/join")
        api.add_resource(TeacherVideoLeaveResource, "/api/teacher/video-coaching/sessions/<string:session_id>/leave")
        api.add_resource(VideoSessionNotesResource, "/api/teacher/video-coaching/sessions/<string:session_id>/notes")
        api.add_resource(TeacherVideoStatsResource, "/api/teacher/video-coaching/stats")
        api.add_resource(TeacherSocialStatsResource, "/api/teacher/social-learning/stats")
        api.add_resource(TeacherStudyGroupsResource, "/api/teacher/social-learning/groups")
        api.add_resource(TeacherStudyPostsResource, "/api/teacher/social-learning/posts")
        api.add_resource(TeacherChallengesResource, "/api/teacher/social-learning/challenges")
        api.add_resource(LearningModuleListResource, "/api/teacher/adaptive-learning/modules")
        api.add_resource(LearningPathListResource, "/api/teacher/adaptive-learning/paths")
        api.add_resource(TeacherAdaptiveStatsResource, "/api/teacher/adaptive-learning/stats")

        # -------------- Student --------------
        api.add_resource(StudentAssignmentListResource, "/api/student/assignments")
        api.add_resource(StudentAssignmentDetailResource, "/api/student/assignments/<string:assignment_id>")
        api.add_resource(SubmitAssignmentResource, "/api/student/assignments/<string:assignment_id>/submit")
        api.add_resource(ResubmitAssignmentResource, "/api/student/assignments/<string:assignment_id>/resubmit")
        api.add_resource(StudentGoalListResource, "/api/student/goals")
        api.add_resource(StudentGoalDetailResource, "/api/student/goals/<string:goal_id>")
        api.add_resource(StudentGamificationResource, "/api/student/gamification")
        api.add_resource(StudentStreakResource, "/api/student/gamification/streak")
        api.add_resource(StudentLeaderboardResource, "/api/student/leaderboard")
        api.add_resource(StudentProfileResource, "/api/student/profile")
        api.add_resource(StudentAnalysisResource, "/api/student/analysis")
        api.add_resource(StudentVideoOverviewResource, "/api/student/video-coaching")
        api.add_resource(StudentVideoStatsResource, "/api/student/video-coaching/stats")
        api.add_resource(StudentVideoJoinResource, "/api/student/video-coaching/<string:session_id>/join")
        api.add_resource(StudentVideoLeaveResource, "/api/student/video-coaching/<string:session_id>/leave")
        api.add_resource(StudentVideoFeedbackResource, "/api/student/video-coaching/<string:session_id>/feedback")

        # -------------- Student: social learning --------------
        api.add_resource(SocialDashboardResource, "/api/student/social-learning/dashboard")
        api.add_resource(StudyGroupListResource, "/api/student/social-learning/groups")
        api.add_resource(StudyGroupSearchResource, "/api/student/social-learning/groups/search")
        api.add_resource(StudyGroupDetailResource, "/api/student/social-learning/groups/<string:group_id>")
        api.add_resource(StudyGroupJoinResource, "/api/student/social-learning/groups/<string:group_id>/join")
        api.add_resource(StudyGroupLeaveResource, "/api/student/social-learning/groups/<string:group_id>/leave")
        api.add_resource(StudySessionCreateResource, "/api/student/social-learning/groups/<string:group_id>/sessions")
        api.add_resource(StudySessionJoinResource, "/api/student/social-learning/sessions/<string:session_id>/join")
        api.add_resource(StudyPostListResource, "/api/student/social-learning/posts")
        api.add_resource(StudyPostLikeResource, "/api/student/social-learning/posts/<string:post_id>/like")
        api.add_resource(StudyPostCommentResource, "/api/student/social-learning/posts/<string:post_id>/comment")
        api.add_resource(StudyResourceShareResource, "/api/student/social-learning/resources")
        api.add_resource(ChallengeJoinResource, "/api/student/social-learning/challenges/<string:challenge_id>/join")

        # -------------- Student: adaptive learning --------------
        api.add_resource(AdaptiveDashboardResource, "/api/adaptive-learning/dashboard")
        api.add_resource(LearningProfileResource, "/api/student/adaptive-learning/profile")
        api.add_resource(LearningPathResource, "/api/student/adaptive-learning/path")
        api.add_resource(StudentModuleListResource, "/api/student/adaptive-learning/modules")
        api.add_resource(StudentModuleDetailResource, "/api/student/adaptive-learning/modules/<string:module_id>")
        api.add_resource(AdaptiveAssessmentResource, "/api/student/adaptive-learning/assessments")
        api.add_resource(AssessmentAnswerResource, "/api/student/adaptive-learning/assessments/<string:assessment_id>/answer")
        api.add_resource(AcceptRecommendationResource,
                         "/api/student/adaptive-learning/recommendations/<string:recommendation_id>/accept")

        # -------------- Parent --------------
        api.add_resource(NotificationListResource, "/api/parent/notifications")
        api.add_resource(NotificationReadResource, "/api/parent/notifications/<string:notification_id>/read")
        api.add_resource(NotificationReadAllResource, "/api/parent/notifications/read-all")
        api.add_resource(NotificationCreateResource, "/api/parent/notifications/create")
        api.add_resource(ParentDashboardResource, "/api/parent/dashboard")
        api.add_resource(ChildDetailResource, "/api/parent/students/<string:student_id>")
        api.add_resource(ChildReportDataResource, "/api/parent/students/<string:student_id>/report/data")
        api.add_resource(ParentRegisterResource, "/api/parent/register")

        # -------------- Analytics --------------
        api.add_resource(StudentAnalyticsResource, "/api/analytics/student")
        api.add_resource(ClassAnalyticsResource, "/api/analytics/class")
        api.add_resource(TeacherAnalyticsResource, "/api/analytics/teacher")


def add_no_store_headers(response):
    if request.path.startswith("/api/"):
        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
        response.headers["Pragma"] = "no-cache"
        response.headers["Expires"] = "0"
    return response


def create_app(testing=False):
    """Build the application; tests install their own database before calling this"""
    app = MyFlask(__name__)
    app.config["TESTING"] = testing
    # Configure JWT
    app.config["JWT_SECRET_KEY"] = JWTConfig.SECRET_KEY
    app.config["JWT_ACCESS_TOKEN_EXPIRES"] = timedelta(days=JWTConfig.ACCESS_TOKEN_EXPIRES_DAYS)
    app.config["JWT_REFRESH_TOKEN_EXPIRES"] = timedelta(days=JWTConfig.REFRESH_TOKEN_EXPIRE_DAYS)
    JWTManager(app)

    if not testing:
        init_db()

    # Initialize API routes
    app.add_api()
    app.after_request(add_no_store_headers)
    CORS(app, supports_credentials=True)
    logger.info("CoachHub API initialised")
    return app


if __name__ == '__main__':
    create_app().run()
