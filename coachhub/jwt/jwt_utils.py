import uuid
from bson import ObjectId
from flask_jwt_extended import create_access_token, create_refresh_token, get_jwt_identity, get_jwt
from datetime import timedelta
from coachhub.config.settings import JWTConfig

class JWTManager:
    @staticmethod
    def _claims(user_data):
        return {
            "id": user_data.get("id"),
            "username": user_data.get("username"),
            "email": user_data.get("email"),
            "userType": user_data.get("userType"),
            "sid": user_data.get("sid")
        }

    @staticmethod
    def new_session_id():
        """Id shared by the access and refresh tokens of one login"""
        return uuid.uuid4().hex

    @staticmethod
    def generate_token(user_data, expires_delta=None):
        """Generate JWT access token for user"""
        if expires_delta is None:
            expires_delta = timedelta(days=JWTConfig.ACCESS_TOKEN_EXPIRES_DAYS)

        return create_access_token(
            identity=user_data.get("id"),
            expires_delta=expires_delta,
            additional_claims=JWTManager._claims(user_data),
            fresh=False
        )

    @staticmethod
    def generate_refresh_token(user_data):
        """Generate JWT refresh token for user"""
        return create_refresh_token(
            identity=user_data.get("id"),
            expires_delta=timedelta(days=JWTConfig.REFRESH_TOKEN_EXPIRE_DAYS),
            additional_claims=JWTManager._claims(user_data)
        )

    @staticmethod
    def get_current_user():
        """Get current user data from JWT token"""
        claims = get_jwt()
        return {
            "id": get_jwt_identity(),
            "username": claims.get("username"),
            "email": claims.get("email"),
            "userType": claims.get("userType"),
            "sid": claims.get("sid")
        }

    @staticmethod
    def get_current_user_id() -> ObjectId:
        """Token identity as an ObjectId"""
        return ObjectId(get_jwt_identity())
