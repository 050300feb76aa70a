"""Account Service - creates users and parents with hashed passwords"""
import logging
from typing import Optional
from bson import ObjectId
from pymongo.errors import DuplicateKeyError
from coachhub.exceptions.exceptions import ConflictError, ValidationError
from coachhub.repositories.core.repository_factory import RepositoryFactory
from coachhub.utils.formatting.json_utils import sanitize_mongo_document
from coachhub.utils.security.security_utils import hash_password
from coachhub.utils.validation.validation_utils import ValidationUtils

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

class AccountService:
    def __init__(self):
        self.repo_factory = RepositoryFactory()

    @staticmethod
    def validate_password(password) -> str:
        if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return password

    def _ensure_unique(self, username: str, email: str) -> None:
        """Usernames and emails are unique across users and parents"""
        if (self.repo_factory.get_user_repo().exists_username_or_email(username, email)
                or self.repo_factory.get_parent_repo().exists_username_or_email(username, email)):
            raise ConflictError("Username or email is already in use")

    def create_user(self, role: str, data: dict, created_by: Optional[ObjectId] = None) -> dict:
        ValidationUtils.validate_required_fields(data, "firstName", "lastName", "username", "email", "password")
        username = ValidationUtils.validate_non_empty_string(data["username"], "username")
        email = ValidationUtils.validate_email(data["email"])
        password = self.validate_password(data["password"])
        self._ensure_unique(username, email)

        user = {
            "username": username,
            "email": email,
            "password": hash_password(password),
            "firstName": ValidationUtils.validate_non_empty_string(data["firstName"], "firstName"),
            "lastName": ValidationUtils.validate_non_empty_string(data["lastName"], "lastName"),
            "phone": (data.get("phone") or "").strip(),
            "role": role,
            "isActive": True,
            "createdBy": created_by
        }
        try:
            created = self.repo_factory.get_user_repo().insert(user)
        except DuplicateKeyError:
            raise ConflictError("Username or email is already in use")
        logger.info(f"Created {role} account {username}")
        created.pop("password", None)
        return created

    def create_parent(self, data: dict, created_by: Optional[ObjectId] = None) -> dict:
        ValidationUtils.validate_required_fields(data, "firstName", "lastName", "username", "email", "password")
        username = ValidationUtils.validate_non_empty_string(data["username"], "username")
        if len(username) < 3:
            raise ValidationError("Username must be at least 3 characters")
        email = ValidationUtils.validate_email(data["email"])
        password = self.validate_password(data["password"])
        self._ensure_unique(username, email)

        children = [ValidationUtils.validate_object_id(c, "child id") for c in data.get("children") or []]
        parent = {
            "username": username,
            "email": email,
            "password": hash_password(password),
            "firstName": ValidationUtils.validate_non_empty_string(data["firstName"], "firstName"),
            "lastName": ValidationUtils.validate_non_empty_string(data["lastName"], "lastName"),
            "phone": (data.get("phone") or "").strip(),
            "children": children,
            "isActive": True,
            "notificationPreferences": {"email": True, "sms": False, "push": True},
            "createdBy": created_by
        }
        try:
            created = self.repo_factory.get_parent_repo().insert(parent)
        except DuplicateKeyError:
            raise ConflictError("Username or email is already in use")
        created.pop("password", None)
        return created

    def register_parent(self, data: dict) -> dict:
        """Public parent sign-up; children are linked afterwards by a teacher"""
        ValidationUtils.validate_required_fields(data, "firstName", "lastName", "username", "email", "phone", "password")
        ValidationUtils.validate_max_length(data["username"], 30, "username")
        for name in ("firstName", "lastName"):
            value = ValidationUtils.validate_non_empty_string(data[name], name).strip()
            if len(value) < 2 or len(value) > 50:
                raise ValidationError(f"{name} must be between 2 and 50 characters")
        phone = ValidationUtils.validate_non_empty_string(data["phone"], "phone").strip()
        if len(phone) < 10:
            raise ValidationError("phone must be at least 10 characters")

        parent = self.create_parent({**data, "phone": phone, "children": []})
        logger.info(f"Parent {parent['username']} registered")
        return sanitize_mongo_document(parent)
