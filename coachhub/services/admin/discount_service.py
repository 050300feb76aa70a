"""Discount Service - Business Logic Layer (SoC)"""
import logging
from bson import ObjectId
from coachhub.config.settings import PLAN_PRICES
from coachhub.exceptions.exceptions import ValidationError, NotFoundError, LimitReachedError
from coachhub.repositories.core.repository_factory import RepositoryFactory
from coachhub.utils.cache.cache_utils import api_cache, PRICING_CACHE_PREFIX
from coachhub.utils.formatting.json_utils import sanitize_mongo_document
from coachhub.utils.time.timeutils import utc_now
from coachhub.utils.validation.validation_utils import ValidationUtils

logger = logging.getLogger(__name__)


class DiscountService:
    def __init__(self):
        self.repo_factory = RepositoryFactory()

    @staticmethod
    def _validate(data: dict, partial: bool = False) -> dict:
        """Validate create/update payloads; partial updates only check given fields"""
        if not partial:
            ValidationUtils.validate_required_fields(
                data, "name", "discountPercentage", "planTypes", "startDate", "endDate"
            )

        fields = {}
        if "name" in data:
            fields["name"] = ValidationUtils.validate_non_empty_string(data["name"], "name")
            ValidationUtils.validate_max_length(fields["name"], 100, "name")
        if "description" in data:
            fields["description"] = ValidationUtils.validate_max_length(data.get("description") or "", 500, "description")
        if "discountPercentage" in data:
            fields["discountPercentage"] = ValidationUtils.validate_number_range(
                data["discountPercentage"], 1, 100, "discountPercentage"
            )
        if "planTypes" in data:
            plan_types = data["planTypes"]
            if not isinstance(plan_types, list) or not plan_types:
                raise ValidationError("planTypes must be a non-empty list")
            for plan in plan_types:
                ValidationUtils.validate_enum(plan, PLAN_PRICES.keys(), "planType")
            fields["planTypes"] = list(dict.fromkeys(plan_types))
        if "startDate" in data:
            fields["startDate"] = ValidationUtils.parse_date(data["startDate"], "startDate")
        if "endDate" in data:
            fields["endDate"] = ValidationUtils.parse_date(data["endDate"], "endDate")
        if "isActive" in data:
            fields["isActive"] = ValidationUtils.parse_bool(data["isActive"], "isActive")
        if "maxUses" in data:
            if data["maxUses"] in (None, ""):
                fields["maxUses"] = None
            else:
                max_uses = ValidationUtils.safe_int_conversion(data["maxUses"], 0)
                if max_uses < 1:
                    raise ValidationError("maxUses must be at least 1")
                fields["maxUses"] = max_uses
        return fields

    @staticmethod
    def _check_window(start, end) -> None:
        if start >= end:
            raise ValidationError("startDate must be before endDate")

    def list_discounts(self) -> list:
        discounts = self.repo_factory.get_discount_repo().find_many({})
        return sanitize_mongo_document(discounts)

    def create_discount(self, data: dict, created_by: str) -> dict:
        fields = self._validate(data)
        self._check_window(fields["startDate"], fields["endDate"])

        discount = {
            "name": fields["name"],
            "description": fields.get("description", ""),
            "discountPercentage": fields["discountPercentage"],
            "planTypes": fields["planTypes"],
            "isActive": fields.get("isActive", True),
            "startDate": fields["startDate"],
            "endDate": fields["endDate"],
            "maxUses": fields.get("maxUses"),
            "currentUses": 0,
            "createdBy": ValidationUtils.validate_optional_object_id(created_by, "createdBy")
        }
        created = self.repo_factory.get_discount_repo().insert(discount)
        api_cache.invalidate_prefix(PRICING_CACHE_PREFIX)
        logger.info(f"Discount created: {created['name']} ({created['discountPercentage']}%)")
        return sanitize_mongo_document(created)

    def update_discount(self, discount_id: str, data: dict) -> dict:
        oid = ValidationUtils.validate_object_id(discount_id, "discount id")
        discount_repo = self.repo_factory.get_discount_repo()
        existing = discount_repo.find_by_id(oid)
        if not existing:
            raise NotFoundError("Discount not found")

        fields = self._validate(data, partial=True)
        fields.pop("currentUses", None)
        self._check_window(fields.get("startDate", existing["startDate"]), fields.get("endDate", existing["endDate"]))
        if fields.get("maxUses") is not None and fields["maxUses"] < existing.get("currentUses", 0):
            raise ValidationError("maxUses cannot be lower than currentUses")

        updated = discount_repo.update_fields(oid, fields)
        api_cache.invalidate_prefix(PRICING_CACHE_PREFIX)
        return sanitize_mongo_document(updated)

    def delete_discount(self, discount_id: str) -> dict:
        oid = ValidationUtils.validate_object_id(discount_id, "discount id")
        if not self.repo_factory.get_discount_repo().delete(oid):
            raise NotFoundError("Discount not found")
        api_cache.invalidate_prefix(PRICING_CACHE_PREFIX)
        return {"message": "Discount deleted", "id": discount_id}

    def redeem_discount(self, discount_id: ObjectId, plan_type: str) -> dict:
        """Consume one use of the discount for a plan, atomically"""
        discount_repo = self.repo_factory.get_discount_repo()
        discount = discount_repo.find_by_id(discount_id)
        if not discount:
            raise NotFoundError("Discount not found")
        if plan_type not in discount.get("planTypes", []):
            raise ValidationError("Discount does not apply to this plan")

        now = utc_now()
        if not discount.get("isActive") or not (discount["startDate"] <= now <= discount["endDate"]):
            raise ValidationError("Discount is not active")

        redeemed = discount_repo.redeem(discount_id, now)
        if redeemed is None:
            raise LimitReachedError("Discount usage limit reached")

        api_cache.invalidate_prefix(PRICING_CACHE_PREFIX)
        logger.info(f"Discount {discount_id} redeemed ({redeemed['currentUses']}/{redeemed.get('maxUses')})")
        return redeemed
