"""Centralized error handling and responses - DRY principle"""
import logging
from typing import Tuple
from pymongo.errors import DuplicateKeyError
from coachhub.exceptions.exceptions import (
    ValidationError, NotFoundError, ForbiddenError, ConflictError, LimitReachedError, AuthenticationError
)

logger = logging.getLogger(__name__)



# ============= ERROR HANDLERS =============

def handle_service_error(e: Exception) -> Tuple[dict, int]:
    """Centralized error handling for services"""

    if isinstance(e, ValidationError):
        return {"success": False, "message": str(e)}, 400

    elif isinstance(e, AuthenticationError):
        return {"success": False, "message": str(e)}, 401

    elif isinstance(e, NotFoundError):
        return {"success": False, "message": str(e)}, 404

    elif isinstance(e, ForbiddenError):
        return {"success": False, "message": str(e)}, 403

    elif isinstance(e, (ConflictError, LimitReachedError)):
        return {"success": False, "message": str(e)}, 409

    elif isinstance(e, DuplicateKeyError):
        return {"success": False, "message": "Record already exists"}, 400

    elif isinstance(e, ValueError):
        return {"success": False, "message": str(e)}, 400

    else:
        sanitized_error = str(e).replace('\n', ' ').replace('\r', ' ')[:500]
        logger.error(f"Unexpected error: {sanitized_error}")
        return {"success": False, "message": "Server error"}, 500
