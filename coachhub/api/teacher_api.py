"""Teacher API - Presentation Layer (SoC)"""
from flask import Response
from flask_jwt_extended import get_jwt
from flask_restful import Resource
from coachhub.exceptions.error_handler import handle_service_error
from coachhub.jwt.auth_middleware import teacher_required
from coachhub.jwt.jwt_utils import JWTManager
from coachhub.jwt.token_blacklist import revoke_session
from coachhub.services.adaptive.adaptive_learning_service import AdaptiveLearningService
from coachhub.services.auth.profile_service import ProfileService
from coachhub.services.gamification.gamification_service import GamificationService
from coachhub.services.parent.parent_service import ParentService
from coachhub.services.report.analytics_service import AnalyticsService
from coachhub.services.report.report_service import ReportService
from coachhub.services.social.social_learning_service import SocialLearningService
from coachhub.services.teacher.assignment_service import AssignmentService
from coachhub.services.teacher.class_service import ClassService
from coachhub.services.teacher.goal_service import GoalService
from coachhub.services.teacher.student_service import StudentService
from coachhub.services.video.video_coaching_service import VideoCoachingService
from coachhub.utils.validation.input_validator import get_json_data, get_optional_query_params

# ---------- classes ----------

class ClassListResource(Resource):
    def __init__(self):
        self.class_service = ClassService()

    @teacher_required
    def get(self):
        try:
            result = self.class_service.list_classes(JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

    @teacher_required
    def post(self):
        try:
            result = self.class_service.create_class(JWTManager.get_current_user_id(), get_json_data())
            return {"success": True, "data": result}, 201

        except Exception as e:
            return handle_service_error(e)

class ClassDetailResource(Resource):
    def __init__(self):
        self.class_service = ClassService()

    @teacher_required
    def get(self, class_id):
        try:
            result = self.class_service.get_class(class_id, JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

    @teacher_required
    def put(self, class_id):
        try:
            result = self.class_service.update_class(class_id, JWTManager.get_current_user_id(), get_json_data())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

    @teacher_required
    def delete(self, class_id):
        try:
            result = self.class_service.delete_class(class_id, JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

# ---------- students & reports ----------

class StudentListResource(Resource):
    def __init__(self):
        self.student_service = StudentService()

    @teacher_required
    def get(self):
        try:
            result = self.student_service.list_students(JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

    @teacher_required
    def post(self):
        try:
            result = self.student_service.create_student(JWTManager.get_current_user_id(), get_json_data())
            return {"success": True, "data": result}, 201

        except Exception as e:
            return handle_service_error(e)

class StudentDetailResource(Resource):
    def __init__(self):
        self.student_service = StudentService()

    @teacher_required
    def get(self, student_id):
        try:
            result = self.student_service.get_student(student_id, JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

    @teacher_required
    def put(self, student_id):
        try:
            result = self.student_service.update_student(student_id, JWTManager.get_current_user_id(), get_json_data())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class StudentStatsResource(Resource):
    def __init__(self):
        self.student_service = StudentService()

    @teacher_required
    def get(self, student_id):
        try:
            result = self.student_service.get_student_stats(student_id, JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class TeacherStatsResource(Resource):
    def __init__(self):
        self.student_service = StudentService()

    @teacher_required
    def get(self):
        try:
            result = self.student_service.get_teacher_stats(JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class TeacherStudentAssignmentsResource(Resource):
    def __init__(self):
        self.assignment_service = AssignmentService()

    @teacher_required
    def get(self, student_id):
        try:
            result = self.assignment_service.list_student_assignments(student_id, JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class TeacherStudentAnalysisResource(Resource):
    def __init__(self):
        self.analytics_service = AnalyticsService()

    @teacher_required
    def get(self, student_id):
        try:
            params = get_optional_query_params(startDate=None, endDate=None)
            result = self.analytics_service.get_teacher_student_analysis(
                student_id, JWTManager.get_current_user_id(), params["startDate"], params["endDate"]
            )
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class StudentReportDataResource(Resource):
    def __init__(self):
        self.report_service = ReportService()

    @teacher_required
    def get(self, student_id):
        try:
            params = get_optional_query_params(startDate=None, endDate=None)
            result = self.report_service.get_teacher_report_data(
                student_id, JWTManager.get_current_user_id(), params["startDate"], params["endDate"]
            )
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class StudentReportDownloadResource(Resource):
    def __init__(self):
        self.report_service = ReportService()

    @teacher_required
    def get(self, student_id):
        try:
            params = get_optional_query_params(startDate=None, endDate=None)
            pdf_bytes, filename = self.report_service.generate_student_report(
                student_id, JWTManager.get_current_user_id(), params["startDate"], params["endDate"]
            )
        except Exception as e:
            return handle_service_error(e)

        return Response(
            pdf_bytes,
            mimetype="application/pdf",
            headers={
                "Content-Disposition": f'attachment; filename="{filename}"',
                "Content-Length": str(len(pdf_bytes)),
                "Cache-Control": "no-cache, no-store, must-revalidate",
                "Pragma": "no-cache",
                "Expires": "0"
            }
        )

# ---------- profile & account ----------

class TeacherProfileResource(Resource):
    def __init__(self):
        self.profile_service = ProfileService()

    @teacher_required
    def get(self):
        try:
            result = self.profile_service.get_profile(JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

    @teacher_required
    def put(self):
        try:
            result = self.profile_service.update_teacher_profile(JWTManager.get_current_user_id(), get_json_data())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class TeacherAccountResource(Resource):
    def __init__(self):
        self.profile_service = ProfileService()

    @teacher_required
    def delete(self):
        try:
            result = self.profile_service.delete_teacher_account(JWTManager.get_current_user_id(), get_json_data())
            revoke_session(get_jwt())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

# ---------- assignments ----------

class AssignmentListResource(Resource):
    def __init__(self):
        self.assignment_service = AssignmentService()

    @teacher_required
    def get(self):
        try:
            params = get_optional_query_params(classId=None, studentId=None)
            result = self.assignment_service.list_assignments(
                JWTManager.get_current_user_id(), params["classId"], params["studentId"]
            )
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

    @teacher_required
    def post(self):
        try:
            result = self.assignment_service.create_assignment(JWTManager.get_current_user_id(), get_json_data())
            return {"success": True, "data": result}, 201

        except Exception as e:
            return handle_service_error(e)

class AssignmentDetailResource(Resource):
    def __init__(self):
        self.assignment_service = AssignmentService()

    @teacher_required
    def get(self, assignment_id):
        try:
            result = self.assignment_service.get_assignment(assignment_id, JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

    @teacher_required
    def put(self, assignment_id):
        try:
            result = self.assignment_service.update_assignment(
                assignment_id, JWTManager.get_current_user_id(), get_json_data()
            )
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

    @teacher_required
    def delete(self, assignment_id):
        try:
            result = self.assignment_service.delete_assignment(assignment_id, JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class AssignmentSubmissionsResource(Resource):
    def __init__(self):
        self.assignment_service = AssignmentService()

    @teacher_required
    def get(self, assignment_id):
        try:
            result = self.assignment_service.list_submissions(assignment_id, JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class GradeSubmissionResource(Resource):
    def __init__(self):
        self.assignment_service = AssignmentService()

    @teacher_required
    def put(self, submission_id):
        try:
            result = self.assignment_service.grade_submission(
                submission_id, JWTManager.get_current_user_id(), get_json_data()
            )
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class ReopenSubmissionResource(Resource):
    def __init__(self):
        self.assignment_service = AssignmentService()

    @teacher_required
    def post(self, submission_id):
        try:
            result = self.assignment_service.reopen_submission(submission_id, JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

# ---------- goals ----------

class GoalListResource(Resource):
    def __init__(self):
        self.goal_service = GoalService()

    @teacher_required
    def get(self):
        try:
            params = get_optional_query_params(studentId=None, status=None)
            result = self.goal_service.list_teacher_goals(
                JWTManager.get_current_user_id(), params["studentId"], params["status"]
            )
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

    @teacher_required
    def post(self):
        try:
            result = self.goal_service.create_goal(JWTManager.get_current_user_id(), get_json_data())
            return {"success": True, "data": result}, 201

        except Exception as e:
            return handle_service_error(e)

class GoalDetailResource(Resource):
    def __init__(self):
        self.goal_service = GoalService()

    @teacher_required
    def put(self, goal_id):
        try:
            result = self.goal_service.update_goal(goal_id, JWTManager.get_current_user_id(), get_json_data())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

    @teacher_required
    def delete(self, goal_id):
        try:
            result = self.goal_service.delete_goal(goal_id, JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class GoalLinkAssignmentResource(Resource):
    def __init__(self):
        self.goal_service = GoalService()

    @teacher_required
    def post(self, goal_id):
        try:
            result = self.goal_service.link_assignment(goal_id, JWTManager.get_current_user_id(), get_json_data())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class GoalNotifyParentResource(Resource):
    def __init__(self):
        self.goal_service = GoalService()

    @teacher_required
    def post(self, goal_id):
        try:
            result = self.goal_service.notify_parent(goal_id, JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

# ---------- parents ----------

class ParentListResource(Resource):
    def __init__(self):
        self.parent_service = ParentService()

    @teacher_required
    def get(self):
        try:
            result = self.parent_service.list_parents(JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

    @teacher_required
    def post(self):
        try:
            result = self.parent_service.create_parent(JWTManager.get_current_user_id(), get_json_data())
            return {"success": True, "data": result}, 201

        except Exception as e:
            return handle_service_error(e)

class ParentDetailResource(Resource):
    def __init__(self):
        self.parent_service = ParentService()

    @teacher_required
    def get(self, parent_id):
        try:
            result = self.parent_service.get_parent(parent_id, JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

    @teacher_required
    def put(self, parent_id):
        try:
            result = self.parent_service.update_parent(parent_id, JWTManager.get_current_user_id(), get_json_data())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class ParentChildrenResource(Resource):
    def __init__(self):
        self.parent_service = ParentService()

    @teacher_required
    def get(self, parent_id):
        try:
            result = self.parent_service.get_parent_children(parent_id, JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

# ---------- gamification ----------

class TeacherLeaderboardResource(Resource):
    def __init__(self):
        self.gamification_service = GamificationService()
        self.student_service = StudentService()

    @teacher_required
    def get(self):
        try:
            student_ids = self.student_service.visible_student_ids(JWTManager.get_current_user_id())
            result = self.gamification_service.get_class_leaderboard(student_ids)
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class TeacherGamificationStatsResource(Resource):
    def __init__(self):
        self.gamification_service = GamificationService()
        self.student_service = StudentService()

    @teacher_required
    def get(self):
        try:
            student_ids = self.student_service.visible_student_ids(JWTManager.get_current_user_id())
            result = self.gamification_service.get_teacher_stats(student_ids)
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class TeacherBadgesResource(Resource):
    def __init__(self):
        self.gamification_service = GamificationService()
        self.student_service = StudentService()

    @teacher_required
    def get(self):
        try:
            student_ids = self.student_service.visible_student_ids(JWTManager.get_current_user_id())
            result = self.gamification_service.get_teacher_badges(student_ids)
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

# ---------- video coaching ----------

class VideoSessionListResource(Resource):
    def __init__(self):
        self.video_service = VideoCoachingService()

    @teacher_required
    def get(self):
        try:
            params = get_optional_query_params(status=None)
            result = self.video_service.list_teacher_sessions(JWTManager.get_current_user_id(), params["status"])
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

    @teacher_required
    def post(self):
        try:
            result = self.video_service.create_session(JWTManager.get_current_user_id(), get_json_data())
            return {"success": True, "data": result}, 201

        except Exception as e:
            return handle_service_error(e)

class VideoSessionDetailResource(Resource):
    def __init__(self):
        self.video_service = VideoCoachingService()

    @teacher_required
    def get(self, session_id):
        try:
            result = self.video_service.get_session(session_id, JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

    @teacher_required
    def put(self, session_id):
        try:
            result = self.video_service.update_session(session_id, JWTManager.get_current_user_id(), get_json_data())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class TeacherVideoJoinResource(Resource):
    def __init__(self):
        self.video_service = VideoCoachingService()

    @teacher_required
    def post(self, session_id):
        try:
            result = self.video_service.join_session(session_id, JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class TeacherVideoLeaveResource(Resource):
    def __init__(self):
        self.video_service = VideoCoachingService()

    @teacher_required
    def post(self, session_id):
        try:
            result = self.video_service.leave_session(session_id, JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class VideoSessionNotesResource(Resource):
    def __init__(self):
        self.video_service = VideoCoachingService()

    @teacher_required
    def post(self, session_id):
        try:
            result = self.video_service.add_note(session_id, JWTManager.get_current_user_id(), get_json_data())
            return {"success": True, "data": result}, 201

        except Exception as e:
            return handle_service_error(e)

class TeacherVideoStatsResource(Resource):
    def __init__(self):
        self.video_service = VideoCoachingService()

    @teacher_required
    def get(self):
        try:
            result = self.video_service.get_stats(JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

# ---------- social learning ----------

class TeacherSocialStatsResource(Resource):
    def __init__(self):
        self.social_service = SocialLearningService()
        self.student_service = StudentService()

    @teacher_required
    def get(self):
        try:
            teacher_id = JWTManager.get_current_user_id()
            result = self.social_service.get_teacher_stats(self.student_service.visible_student_ids(teacher_id), teacher_id)
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class TeacherStudyGroupsResource(Resource):
    def __init__(self):
        self.social_service = SocialLearningService()

    @teacher_required
    def get(self):
        try:
            result = self.social_service.list_groups()
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

    @teacher_required
    def post(self):
        try:
            result = self.social_service.create_study_group(JWTManager.get_current_user_id(), get_json_data())
            return {"success": True, "data": result}, 201

        except Exception as e:
            return handle_service_error(e)

class TeacherStudyPostsResource(Resource):
    def __init__(self):
        self.social_service = SocialLearningService()

    @teacher_required
    def get(self):
        try:
            params = get_optional_query_params(groupId=None)
            result = self.social_service.list_posts(
                JWTManager.get_current_user_id(), params["groupId"], is_teacher=True
            )
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

    @teacher_required
    def post(self):
        try:
            result = self.social_service.create_post(JWTManager.get_current_user_id(), get_json_data(), is_teacher=True)
            return {"success": True, "data": result}, 201

        except Exception as e:
            return handle_service_error(e)

class TeacherChallengesResource(Resource):
    def __init__(self):
        self.social_service = SocialLearningService()

    @teacher_required
    def post(self):
        try:
            result = self.social_service.create_challenge(JWTManager.get_current_user_id(), get_json_data())
            return {"success": True, "data": result}, 201

        except Exception as e:
            return handle_service_error(e)

# ---------- adaptive learning ----------

class LearningModuleListResource(Resource):
    def __init__(self):
        self.adaptive_service = AdaptiveLearningService()

    @teacher_required
    def get(self):
        try:
            params = get_optional_query_params(subject=None, level=None)
            result = self.adaptive_service.list_modules(params["subject"], params["level"])
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

    @teacher_required
    def post(self):
        try:
            result = self.adaptive_service.create_module(JWTManager.get_current_user_id(), get_json_data())
            return {"success": True, "data": result}, 201

        except Exception as e:
            return handle_service_error(e)

class LearningPathListResource(Resource):
    def __init__(self):
        self.adaptive_service = AdaptiveLearningService()

    @teacher_required
    def get(self):
        try:
            result = self.adaptive_service.list_learning_paths()
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

    @teacher_required
    def post(self):
        try:
            result = self.adaptive_service.create_learning_path(JWTManager.get_current_user_id(), get_json_data())
            return {"success": True, "data": result}, 201

        except Exception as e:
            return handle_service_error(e)

class TeacherAdaptiveStatsResource(Resource):
    def __init__(self):
        self.adaptive_service = AdaptiveLearningService()

    @teacher_required
    def get(self):
        try:
            result = self.adaptive_service.get_teacher_stats(JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)
