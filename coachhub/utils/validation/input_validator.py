"""Centralized Input Validation - DRY Implementation"""
from flask import request

def get_json_data():
    """Centralized JSON parsing"""
    return request.get_json(silent=True) or {}

def get_optional_query_params(**param_defaults):
    """Get optional query parameters with defaults"""
    params = {}
    for param, default in param_defaults.items():
        value = request.args.get(param)
        params[param] = value.strip() if value and value.strip() else default
    return params

def get_client_ip() -> str:
    forwarded = request.headers.get("X-Forwarded-For", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.remote_addr or "unknown"
