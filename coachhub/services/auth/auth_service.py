"""Authentication Service - Business Logic Layer (SoC)"""
import logging
from coachhub.config.settings import ROLE_PARENT
from coachhub.exceptions.exceptions import ValidationError, NotFoundError, ForbiddenError, AuthenticationError
from coachhub.jwt.jwt_utils import JWTManager
from coachhub.repositories.core.repository_factory import RepositoryFactory
from coachhub.utils.formatting.json_utils import sanitize_mongo_document, strip_private_fields
from coachhub.utils.security.security_utils import check_password
from coachhub.utils.validation.validation_utils import ValidationUtils

logger = logging.getLogger(__name__)

class AuthService:
    def __init__(self):
        self.repo_factory = RepositoryFactory()

    @staticmethod
    def _credentials(data: dict):
        login = (data.get("username") or data.get("email") or "").strip()
        password = data.get("password")
        if not login or not password:
            raise ValidationError("Username/email and password are required")
        return login, password

    @staticmethod
    def _token_payload(token_user: dict, profile: dict) -> dict:
        token_user = {**token_user, "sid": JWTManager.new_session_id()}
        return {
            "message": "Login successful",
            "access_token": JWTManager.generate_token(token_user),
            "refresh_token": JWTManager.generate_refresh_token(token_user),
            "token_type": "Bearer",
            "user": sanitize_mongo_document(strip_private_fields(profile))
        }

    def login(self, data: dict) -> dict:
        login, password = self._credentials(data)
        user_repo = self.repo_factory.get_user_repo()
        user = user_repo.find_by_login(login)

        if not user or not check_password(password, user.get("password")):
            logger.info(f"Failed login attempt for {login}")
            raise AuthenticationError("Invalid username or password")
        if not user.get("isActive", True):
            raise ForbiddenError("Account is inactive")

        user_repo.touch_login(user["_id"])
        token_user = {
            "id": str(user["_id"]),
            "username": user.get("username"),
            "email": user.get("email"),
            "userType": user["role"]
        }
        return self._token_payload(token_user, user)

    def parent_login(self, data: dict) -> dict:
        login, password = self._credentials(data)
        parent_repo = self.repo_factory.get_parent_repo()
        parent = parent_repo.find_by_login(login)

        if not parent or not check_password(password, parent.get("password")):
            raise AuthenticationError("Invalid username or password")
        if not parent.get("isActive", True):
            raise ForbiddenError("Account is inactive")

        parent_repo.touch_login(parent["_id"])
        token_user = {
            "id": str(parent["_id"]),
            "username": parent.get("username"),
            "email": parent.get("email"),
            "userType": ROLE_PARENT
        }
        return self._token_payload(token_user, parent)

    def get_profile(self, user_id: str, user_type: str) -> dict:
        oid = ValidationUtils.validate_object_id(user_id, "user id")
        if user_type == ROLE_PARENT:
            doc = self.repo_factory.get_parent_repo().find_public(oid)
        else:
            doc = self.repo_factory.get_user_repo().find_public(oid)
        if not doc:
            raise NotFoundError("User not found")
        doc["userType"] = user_type
        return sanitize_mongo_document(doc)
