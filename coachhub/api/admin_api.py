"""Admin API - Presentation Layer (SoC)"""
from flask import request
from flask_restful import Resource
from coachhub.exceptions.error_handler import handle_service_error
from coachhub.jwt.auth_middleware import admin_required
from coachhub.jwt.jwt_utils import JWTManager
from coachhub.services.admin.admin_service import AdminService
from coachhub.services.admin.application_service import ApplicationService
from coachhub.services.admin.discount_service import DiscountService
from coachhub.services.admin.free_slot_service import FreeSlotService
from coachhub.services.admin.pricing_service import PricingService
from coachhub.services.admin.subscription_service import SubscriptionService
from coachhub.utils.cache.cache_utils import clear_all_caches
from coachhub.utils.pagination.pagination_utils import get_pagination_params, skip_for, pagination_meta
from coachhub.utils.validation.input_validator import get_json_data, get_optional_query_params

# ---------- public ----------

class PricingResource(Resource):
    def __init__(self):
        self.pricing_service = PricingService()

    def get(self):
        try:
            result = self.pricing_service.get_pricing()
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class FreeSlotsResource(Resource):
    def __init__(self):
        self.free_slot_service = FreeSlotService()

    def get(self):
        try:
            result = self.free_slot_service.get_slot_summary()
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class TeacherApplicationResource(Resource):
    def __init__(self):
        self.application_service = ApplicationService()

    def post(self):
        try:
            result = self.application_service.submit_application(get_json_data())
            return {"success": True, "data": result}, 201

        except Exception as e:
            return handle_service_error(e)

# ---------- subscriptions & discounts ----------

class SubscriptionListResource(Resource):
    def __init__(self):
        self.subscription_service = SubscriptionService()

    @admin_required
    def get(self):
        try:
            page, limit = get_pagination_params(request.args)
            subscriptions, total = self.subscription_service.list_subscriptions(skip_for(page, limit), limit)
            return {"success": True, "data": subscriptions, "pagination": pagination_meta(page, limit, total)}, 200

        except Exception as e:
            return handle_service_error(e)

    @admin_required
    def post(self):
        try:
            result = self.subscription_service.create_subscription(get_json_data())
            return {"success": True, "data": result}, 201

        except Exception as e:
            return handle_service_error(e)

class SubscriptionDetailResource(Resource):
    def __init__(self):
        self.subscription_service = SubscriptionService()

    @admin_required
    def put(self, subscription_id):
        try:
            result = self.subscription_service.update_subscription(subscription_id, get_json_data())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class DiscountListResource(Resource):
    def __init__(self):
        self.discount_service = DiscountService()

    @admin_required
    def get(self):
        try:
            result = self.discount_service.list_discounts()
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

    @admin_required
    def post(self):
        try:
            admin = JWTManager.get_current_user()
            result = self.discount_service.create_discount(get_json_data(), admin["id"])
            return {"success": True, "data": result}, 201

        except Exception as e:
            return handle_service_error(e)

class DiscountDetailResource(Resource):
    def __init__(self):
        self.discount_service = DiscountService()

    @admin_required
    def put(self, discount_id):
        try:
            result = self.discount_service.update_discount(discount_id, get_json_data())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

    @admin_required
    def delete(self, discount_id):
        try:
            result = self.discount_service.delete_discount(discount_id)
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

# ---------- applications ----------

class ApplicationListResource(Resource):
    def __init__(self):
        self.application_service = ApplicationService()

    @admin_required
    def get(self):
        try:
            params = get_optional_query_params(status=None)
            result = self.application_service.list_applications(params["status"])
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class ApplicationDetailResource(Resource):
    def __init__(self):
        self.application_service = ApplicationService()

    @admin_required
    def get(self, application_id):
        try:
            result = self.application_service.get_application(application_id)
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

    @admin_required
    def delete(self, application_id):
        try:
            result = self.application_service.delete_application(application_id)
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class ApplicationApproveResource(Resource):
    def __init__(self):
        self.application_service = ApplicationService()

    @admin_required
    def post(self, application_id):
        try:
            admin = JWTManager.get_current_user()
            result = self.application_service.approve_application(application_id, admin["id"])
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class ApplicationRejectResource(Resource):
    def __init__(self):
        self.application_service = ApplicationService()

    @admin_required
    def post(self, application_id):
        try:
            admin = JWTManager.get_current_user()
            reason = get_json_data().get("reason")
            result = self.application_service.reject_application(application_id, admin["id"], reason)
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

# ---------- teachers, parents, stats ----------

class AdminStatsResource(Resource):
    def __init__(self):
        self.admin_service = AdminService()

    @admin_required
    def get(self):
        try:
            result = self.admin_service.get_stats()
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class AdminTeacherListResource(Resource):
    def __init__(self):
        self.admin_service = AdminService()

    @admin_required
    def get(self):
        try:
            result = self.admin_service.list_teachers()
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class AdminTeacherDetailResource(Resource):
    def __init__(self):
        self.admin_service = AdminService()

    @admin_required
    def get(self, teacher_id):
        try:
            result = self.admin_service.get_teacher_detail(teacher_id)
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class AdminTeacherStatsResource(Resource):
    def __init__(self):
        self.admin_service = AdminService()

    @admin_required
    def get(self, teacher_id):
        try:
            result = self.admin_service.get_teacher_stats(teacher_id)
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class AdminTeacherClassesResource(Resource):
    def __init__(self):
        self.admin_service = AdminService()

    @admin_required
    def get(self, teacher_id):
        try:
            result = self.admin_service.get_teacher_classes(teacher_id)
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class AdminTeacherStudentsResource(Resource):
    def __init__(self):
        self.admin_service = AdminService()

    @admin_required
    def get(self, teacher_id):
        try:
            result = self.admin_service.get_teacher_students(teacher_id)
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class AdminTeacherParentsResource(Resource):
    def __init__(self):
        self.admin_service = AdminService()

    @admin_required
    def get(self, teacher_id):
        try:
            result = self.admin_service.get_teacher_parents(teacher_id)
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class AdminCreateTeacherResource(Resource):
    def __init__(self):
        self.admin_service = AdminService()

    @admin_required
    def post(self):
        try:
            result = self.admin_service.create_teacher(get_json_data())
            return {"success": True, "data": result}, 201

        except Exception as e:
            return handle_service_error(e)

class AdminTeacherStatusResource(Resource):
    def __init__(self):
        self.admin_service = AdminService()

    @admin_required
    def put(self, teacher_id):
        try:
            result = self.admin_service.toggle_teacher_status(teacher_id, get_json_data())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class AdminParentListResource(Resource):
    def __init__(self):
        self.admin_service = AdminService()

    @admin_required
    def get(self):
        try:
            result = self.admin_service.list_parents()
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class AdminParentStatusResource(Resource):
    def __init__(self):
        self.admin_service = AdminService()

    @admin_required
    def put(self, parent_id):
        try:
            result = self.admin_service.toggle_parent_status(parent_id, get_json_data())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class CacheBustResource(Resource):
    @admin_required
    def post(self):
        cleared = clear_all_caches()
        return {"success": True, "data": {"message": "Caches cleared", "cleared": cleared}}, 200
