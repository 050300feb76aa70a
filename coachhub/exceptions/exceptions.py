"""Custom exceptions - SoC principle"""

class CoachHubError(Exception):
    """Base exception for the coaching platform"""
    pass

class ValidationError(CoachHubError):
    """Input validation error"""
    pass

class NotFoundError(CoachHubError):
    """Requested record does not exist"""
    pass

class ForbiddenError(CoachHubError):
    """Caller may not act on this record"""
    pass

class ConflictError(CoachHubError):
    """Duplicate username, email or similar unique value"""
    pass

class LimitReachedError(CoachHubError):
    """A usage or capacity limit has been reached"""
    pass

class AuthenticationError(CoachHubError):
    """Wrong username or password"""
    pass
