"""JSON serialization utilities for MongoDB ObjectId handling"""
from bson import ObjectId
from datetime import datetime
from typing import Any, Dict, List, Union

def serialize_objectid(obj: Any) -> Any:
    """Convert ObjectId and datetime objects to JSON serializable format"""
    if isinstance(obj, ObjectId):
        return str(obj)
    elif isinstance(obj, datetime):
        return obj.isoformat()
    elif isinstance(obj, dict):
        return {key: serialize_objectid(value) for key, value in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [serialize_objectid(item) for item in obj]
    return obj

def sanitize_mongo_document(doc: Union[Dict, List, None]) -> Union[Dict, List, None]:
    """Sanitize MongoDB document for JSON serialization, exposing _id as id at every depth"""
    if doc is None:
        return None
    if isinstance(doc, list):
        return [sanitize_mongo_document(item) for item in doc]
    if isinstance(doc, dict):
        return {
            ("id" if key == "_id" else key): sanitize_mongo_document(value)
            for key, value in doc.items()
        }
    return serialize_objectid(doc)

def strip_private_fields(doc: Dict, *fields: str) -> Dict:
    """Drop password hashes and similar fields before returning a document"""
    if doc is None:
        return None
    hidden = fields or ("password",)
    return {k: v for k, v in doc.items() if k not in hidden}

def full_name(user: Dict, default: str = "Unknown") -> str:
    if not user:
        return default
    name = f"{user.get('firstName', '')} {user.get('lastName', '')}".strip()
    return name or user.get("username") or default
