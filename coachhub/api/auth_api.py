"""Authentication API - Presentation Layer (SoC)"""
from flask_jwt_extended import get_jwt, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException
from flask_restful import Resource
from jwt.exceptions import InvalidTokenError
from coachhub.exceptions.error_handler import handle_service_error
from coachhub.jwt.auth_middleware import ACCOUNT_DISABLED, account_is_active, authenticated_required
from coachhub.jwt.jwt_utils import JWTManager
from coachhub.jwt.token_blacklist import is_session_revoked, revoke_session
from coachhub.services.auth.auth_service import AuthService
from coachhub.utils.cache.cache_utils import login_rate_limiter
from coachhub.utils.validation.input_validator import get_json_data, get_client_ip

TOO_MANY_ATTEMPTS = {"success": False, "message": "Too many login attempts, try again later"}, 429

class LoginResource(Resource):
    def __init__(self):
        self.auth_service = AuthService()

    def post(self):
        if not login_rate_limiter.hit(f"login:{get_client_ip()}"):
            return TOO_MANY_ATTEMPTS
        try:
            result = self.auth_service.login(get_json_data())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class ParentLoginResource(Resource):
    def __init__(self):
        self.auth_service = AuthService()

    def post(self):
        if not login_rate_limiter.hit(f"parent-login:{get_client_ip()}"):
            return TOO_MANY_ATTEMPTS
        try:
            result = self.auth_service.parent_login(get_json_data())
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class LogoutResource(Resource):
    @authenticated_required
    def post(self):
        revoke_session(get_jwt())
        return {"success": True, "data": {"message": "Logged out"}}, 200

class MeResource(Resource):
    def __init__(self):
        self.auth_service = AuthService()

    @authenticated_required
    def get(self):
        try:
            user = JWTManager.get_current_user()
            result = self.auth_service.get_profile(user["id"], user["userType"])
            return {"success": True, "data": result}, 200

        except Exception as e:
            return handle_service_error(e)

class RefreshResource(Resource):
    def post(self):
        try:
            verify_jwt_in_request(refresh=True)
        except (InvalidTokenError, JWTExtendedException):
            return {"success": False, "message": "A valid refresh token is required"}, 401

        claims = get_jwt()
        if is_session_revoked(claims):
            return {"success": False, "message": "Token has been invalidated"}, 401
        if not account_is_active(claims):
            return ACCOUNT_DISABLED
        access_token = JWTManager.generate_token(JWTManager.get_current_user())
        return {"success": True, "data": {"access_token": access_token, "token_type": "Bearer"}}, 200
