"""Parent API - Presentation Layer (SoC)"""
from flask_restful import Resource
from coachhub.exceptions.error_handler import handle_service_error
from coachhub.jwt.auth_middleware import parent_required, teacher_required
from coachhub.jwt.jwt_utils import JWTManager
from coachhub.services.auth.account_service import AccountService
from coachhub.services.parent.notification_service import NotificationService
from coachhub.services.parent.parent_service import ParentService
from coachhub.services.report.report_service import ReportService
from coachhub.utils.cache.cache_utils import login_rate_limiter
from coachhub.utils.validation.input_validator import get_json_data, get_optional_query_params, get_client_ip
from coachhub.utils.validation.validation_utils import ValidationUtils

class NotificationListResource(Resource):
    def __init__(self):
        self.notification_service = NotificationService()

    @parent_required
    def get(self):
        try:
            params = get_optional_query_params(unreadOnly="false")
            unread_only = ValidationUtils.parse_bool(params["unreadOnly"], "unreadOnly")
            result = self.notification_service.list_notifications(JWTManager.get_current_user_id(), unread_only)
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class NotificationReadResource(Resource):
    def __init__(self):
        self.notification_service = NotificationService()

    @parent_required
    def post(self, notification_id):
        try:
            result = self.notification_service.mark_read(notification_id, JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class NotificationReadAllResource(Resource):
    def __init__(self):
        self.notification_service = NotificationService()

    @parent_required
    def post(self):
        try:
            result = self.notification_service.mark_all_read(JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class NotificationCreateResource(Resource):
    def __init__(self):
        self.notification_service = NotificationService()

    @teacher_required
    def post(self):
        try:
            result = self.notification_service.create_from_teacher(get_json_data())
            return {"success": True, "data": result}, 201

        except Exception as e:
            return handle_service_error(e)

class ParentDashboardResource(Resource):
    def __init__(self):
        self.parent_service = ParentService()

    @parent_required
    def get(self):
        try:
            result = self.parent_service.get_dashboard(JWTManager.get_current_user_id())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class ChildDetailResource(Resource):
    def __init__(self):
        self.parent_service = ParentService()

    @parent_required
    def get(self, student_id):
        try:
            result = self.parent_service.get_child_detail(JWTManager.get_current_user_id(), student_id)
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class ChildReportDataResource(Resource):
    def __init__(self):
        self.report_service = ReportService()

    @parent_required
    def get(self, student_id):
        try:
            params = get_optional_query_params(startDate=None, endDate=None)
            result = self.report_service.get_parent_report_data(
                student_id, JWTManager.get_current_user_id(), params["startDate"], params["endDate"]
            )
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class ParentRegisterResource(Resource):
    def __init__(self):
        self.account_service = AccountService()

    def post(self):
        if not login_rate_limiter.hit(f"parent-register:{get_client_ip()}"):
            return {"success": False, "message": "Too many registration attempts, try again later"}, 429
        try:
            result = self.account_service.register_parent(get_json_data())
            return {"success": True, "data": result}, 201

        except Exception as e:
            return handle_service_error(e)
