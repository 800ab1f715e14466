"""
Route handler modules.
"""
from .health import register_health_routes
from .workflow import register_workflow_routes

__all__ = ["register_health_routes", "register_workflow_routes"]
