"""
Core utilities for route handlers.
"""
from .response import _json_response, _sanitize_json_payload
from .services import _build_services, _require_services, get_services_error

__all__ = [
    "_json_response",
    "_sanitize_json_payload",
    "_require_services",
    "_build_services",
    "get_services_error",
]
