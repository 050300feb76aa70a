"""Analytics API - Presentation Layer (SoC)"""
from flask_restful import Resource
from coachhub.exceptions.error_handler import handle_service_error
from coachhub.jwt.auth_middleware import student_required, teacher_required
from coachhub.jwt.jwt_utils import JWTManager
from coachhub.services.report.analytics_service import AnalyticsService
from coachhub.utils.validation.input_validator import get_optional_query_params

class StudentAnalyticsResource(Resource):
    def __init__(self):
        self.analytics_service = AnalyticsService()

    @student_required
    def get(self):
        try:
            params = get_optional_query_params(startDate=None, endDate=None)
            result = self.analytics_service.get_student_performance_metrics(
                JWTManager.get_current_user_id(), params["startDate"], params["endDate"]
            )
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class ClassAnalyticsResource(Resource):
    def __init__(self):
        self.analytics_service = AnalyticsService()

    @teacher_required
    def get(self):
        try:
            params = get_optional_query_params(classId=None, startDate=None, endDate=None)
            result = self.analytics_service.get_class_analytics(
                params["classId"], JWTManager.get_current_user_id(), params["startDate"], params["endDate"]
            )
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class TeacherAnalyticsResource(Resource):
    def __init__(self):
        self.analytics_service = AnalyticsService()

    @teacher_required
    def get(self):
        try:
            params = get_optional_query_params(startDate=None, endDate=None)
            result = self.analytics_service.get_teacher_analytics(
                JWTManager.get_current_user_id(), params["startDate"], params["endDate"]
            )
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)
