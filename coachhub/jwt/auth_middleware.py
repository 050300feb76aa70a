from functools import wraps
from flask_jwt_extended import get_jwt, verify_jwt_in_request
from flask_jwt_extended.exceptions import NoAuthorizationError, JWTExtendedException
from bson import ObjectId
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError

from coachhub.config.settings import ROLE_ADMIN, ROLE_TEACHER, ROLE_STUDENT, ROLE_PARENT
from coachhub.jwt.token_blacklist import is_session_revoked
from coachhub.repositories.core.repository_factory import RepositoryFactory

ACCOUNT_DISABLED = {"message": "Account is inactive or no longer exists", "error": "ACCOUNT_DISABLED"}, 401


def account_is_active(claims) -> bool:
    """The token owner still exists and has not been deactivated"""
    identity = claims.get("sub")
    if not ObjectId.is_valid(identity):
        return False
    if claims.get("userType") == ROLE_PARENT:
        repo = RepositoryFactory.get_parent_repo()
    else:
        repo = RepositoryFactory.get_user_repo()
    account = repo.find_by_id(ObjectId(identity), {"isActive": 1})
    return bool(account) and account.get("isActive", True)


def role_required(*allowed_roles):
    """Decorator to require specific roles for API endpoints (no roles = any authenticated user)"""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            try:
                verify_jwt_in_request()
                claims = get_jwt()
            except NoAuthorizationError:
                return {"message": "Missing Authorization Header", "error": "NO_AUTH_HEADER"}, 401
            except ExpiredSignatureError:
                return {"message": "Token has expired", "error": "TOKEN_EXPIRED"}, 401
            except (InvalidTokenError, JWTExtendedException):
                return {"message": "Invalid token", "error": "INVALID_TOKEN"}, 401

            if is_session_revoked(claims):
                return {"message": "Token has been invalidated", "error": "TOKEN_BLACKLISTED"}, 401
            if not account_is_active(claims):
                return ACCOUNT_DISABLED

            user_type = claims.get("userType")
            if allowed_roles and user_type not in allowed_roles:
                return {"message": f"Access denied. Required roles: {', '.join(allowed_roles)}", "error": "INSUFFICIENT_PERMISSIONS"}, 403

            return f(*args, **kwargs)
        return decorated_function
    return decorator

# Role-specific decorators
def admin_required(f):
    """Decorator for admin-only endpoints"""
    return role_required(ROLE_ADMIN)(f)

def teacher_required(f):
    """Decorator for teacher-only endpoints"""
    return role_required(ROLE_TEACHER)(f)

def student_required(f):
    """Decorator for student-only endpoints"""
    return role_required(ROLE_STUDENT)(f)

def parent_required(f):
    """Decorator for parent-only endpoints"""
    return role_required(ROLE_PARENT)(f)

def authenticated_required(f):
    """Decorator for any signed-in user"""
    return role_required()(f)
