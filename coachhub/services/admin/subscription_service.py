"""Subscription Service - Business Logic Layer (SoC)"""
import logging
from typing import Optional
from bson import ObjectId
from coachhub.config.settings import PLAN_PRICES, PLAN_MONTHS, PAYMENT_STATUSES, ROLE_TEACHER
from coachhub.exceptions.exceptions import NotFoundError, ValidationError
from coachhub.repositories.core.repository_factory import RepositoryFactory
from coachhub.services.admin.pricing_service import apply_discount
from coachhub.services.admin.discount_service import DiscountService
from coachhub.utils.formatting.json_utils import sanitize_mongo_document, full_name
from coachhub.utils.time.timeutils import utc_now, add_months
from coachhub.utils.validation.validation_utils import ValidationUtils

logger = logging.getLogger(__name__)

class SubscriptionService:
    def __init__(self):
        self.repo_factory = RepositoryFactory()
        self.discount_service = DiscountService()

    @staticmethod
    def calculate_end_date(start_date, plan_type: str):
        """endDate = startDate + plan months"""
        return add_months(start_date, PLAN_MONTHS[plan_type])

    def list_subscriptions(self, skip: int = 0, limit: int = 0) -> tuple:
        """Newest first, with teacher name/email joined in. Returns (page, total)."""
        repo = self.repo_factory.get_subscription_repo()
        subscriptions = repo.find_page(skip, limit)
        teachers = {
            t["_id"]: t for t in self.repo_factory.get_user_repo().find_by_ids(
                list({s["teacherId"] for s in subscriptions if s.get("teacherId")}),
                {"firstName": 1, "lastName": 1, "email": 1, "username": 1}
            )
        }
        for sub in subscriptions:
            teacher = teachers.get(sub.get("teacherId"))
            sub["teacherName"] = full_name(teacher)
            sub["teacherEmail"] = teacher.get("email") if teacher else None
        return sanitize_mongo_document(subscriptions), repo.count({})

    def create_subscription(self, data: dict) -> dict:
        ValidationUtils.validate_required_fields(data, "teacherId", "planType")
        teacher_id = ValidationUtils.validate_object_id(data["teacherId"], "teacherId")
        plan_type = ValidationUtils.validate_enum(data["planType"], PLAN_PRICES.keys(), "planType")

        teacher = self.repo_factory.get_user_repo().find_by_id(teacher_id)
        if not teacher or teacher.get("role") != ROLE_TEACHER:
            raise NotFoundError("Teacher not found")

        start_date = ValidationUtils.parse_date(data["startDate"], "startDate") if data.get("startDate") else utc_now()
        payment_status = ValidationUtils.validate_enum(data.get("paymentStatus", "pending"), PAYMENT_STATUSES, "paymentStatus")

        discount_id = ValidationUtils.validate_optional_object_id(data.get("discountId"), "discountId")
        percentage = 0
        if discount_id is not None:
            redeemed = self.discount_service.redeem_discount(discount_id, plan_type)
            percentage = redeemed["discountPercentage"]

        return sanitize_mongo_document(self._insert(
            teacher_id, plan_type, start_date,
            original_price=PLAN_PRICES[plan_type],
            discounted_price=apply_discount(PLAN_PRICES[plan_type], percentage),
            percentage=percentage,
            discount_id=discount_id,
            payment_status=payment_status,
            is_free_trial=False
        ))

    def create_free_trial(self, teacher_id: ObjectId, plan_type: str, start_date) -> dict:
        return self._insert(teacher_id, plan_type, start_date, original_price=PLAN_PRICES[plan_type],
                            discounted_price=0, percentage=100, discount_id=None,
                            payment_status="paid", is_free_trial=True)

    def _insert(self, teacher_id: ObjectId, plan_type: str, start_date, original_price: int,
                discounted_price: int, percentage: float, discount_id: Optional[ObjectId],
                payment_status: str, is_free_trial: bool) -> dict:
        subscription = {
            "teacherId": teacher_id,
            "planType": plan_type,
            "startDate": start_date,
            "endDate": self.calculate_end_date(start_date, plan_type),
            "isActive": True,
            "isFreeTrial": is_free_trial,
            "originalPrice": original_price,
            "discountedPrice": discounted_price,
            "discountPercentage": percentage,
            "discountId": discount_id,
            "paymentStatus": payment_status
        }
        created = self.repo_factory.get_subscription_repo().insert(subscription)
        logger.info(f"Subscription {plan_type} created for teacher {teacher_id}")
        return created

    def update_subscription(self, subscription_id: str, data: dict) -> dict:
        oid = ValidationUtils.validate_object_id(subscription_id, "subscription id")
        repo = self.repo_factory.get_subscription_repo()
        if not repo.find_by_id(oid):
            raise NotFoundError("Subscription not found")

        fields = {}
        if "paymentStatus" in data:
            fields["paymentStatus"] = ValidationUtils.validate_enum(data["paymentStatus"], PAYMENT_STATUSES, "paymentStatus")
        if "isActive" in data:
            fields["isActive"] = ValidationUtils.parse_bool(data["isActive"], "isActive")
        if not fields:
            raise ValidationError("Nothing to update")
        return sanitize_mongo_document(repo.update_fields(oid, fields))
