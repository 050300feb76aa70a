"""Consolidated Validation Utilities - Single Source of Truth"""
import math
import re
from typing import Dict, Any, Iterable, Optional
from bson import ObjectId
from coachhub.exceptions.exceptions import ValidationError
from coachhub.utils.time.timeutils import parse_datetime

OBJECT_ID_PATTERN = re.compile(r"^[0-9a-fA-F]{24}$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

class ValidationUtils:
    """Unified validation utilities - eliminates all duplication"""

    @staticmethod
    def validate_required_fields(data: Dict, *fields: str) -> None:
        """Validate required fields exist and are not empty"""
        missing = [f for f in fields if data.get(f) in (None, "", [])]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    @staticmethod
    def validate_object_id(value: Any, field_name: str = "id") -> ObjectId:
        """Validate a 24-hex id and convert it"""
        if isinstance(value, ObjectId):
            return value
        if not isinstance(value, str) or not OBJECT_ID_PATTERN.match(value):
            raise ValidationError(f"Invalid {field_name}")
        return ObjectId(value)

    @staticmethod
    def validate_optional_object_id(value: Any, field_name: str = "id") -> Optional[ObjectId]:
        if value in (None, ""):
            return None
        return ValidationUtils.validate_object_id(value, field_name)

    @staticmethod
    def validate_max_length(value: Optional[str], max_length: int, field_name: str) -> Optional[str]:
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValidationError(f"{field_name} must be a string")
        value = value.strip()
        if len(value) > max_length:
            raise ValidationError(f"{field_name} cannot exceed {max_length} characters")
        return value

    @staticmethod
    def validate_number_range(value: Any, min_value: float, max_value: float, field_name: str) -> float:
        """Validate numeric value within an inclusive range"""
        if isinstance(value, bool):
            raise ValidationError(f"{field_name} must be a number")
        if not isinstance(value, (int, float)):
            try:
                value = float(value)
            except (TypeError, ValueError):
                raise ValidationError(f"{field_name} must be a number")
        if math.isnan(value) or value < min_value or value > max_value:
            raise ValidationError(f"{field_name} must be between {min_value:g} and {max_value:g}")
        return int(value) if float(value).is_integer() else value

    @staticmethod
    def validate_enum(value: Any, allowed: Iterable[str], field_name: str) -> str:
        if value not in allowed:
            raise ValidationError(f"Invalid {field_name} '{value}'. Allowed: {', '.join(sorted(allowed))}")
        return value

    @staticmethod
    def validate_email(value: Any) -> str:
        if not isinstance(value, str) or not EMAIL_PATTERN.match(value.strip()):
            raise ValidationError("Invalid email address")
        return value.strip().lower()

    @staticmethod
    def validate_non_empty_string(value: Any, field_name: str) -> str:
        """Validate non-empty string"""
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(f"{field_name} must be a non-empty string")
        return value.strip()

    @staticmethod
    def safe_int_conversion(value: Any, default: int = 0) -> int:
        """Safe integer conversion"""
        try:
            return int(value)
        except (ValueError, TypeError, OverflowError):
            return default

    @staticmethod
    def parse_date(value: Any, field_name: str = "date"):
        """Parse date string to datetime object"""
        try:
            return parse_datetime(value)
        except ValueError:
            raise ValidationError(f"Invalid {field_name}")

    @staticmethod
    def parse_bool(value: Any, field_name: str) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.lower() in ("true", "false"):
            return value.lower() == "true"
        raise ValidationError(f"{field_name} must be a boolean")
