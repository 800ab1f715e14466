"""
Health check endpoint.
"""
from datetime import datetime, timezone

from aiohttp import web

from clipmgr_backend.shared import Result, get_logger

from ..core import _json_response, _require_services

logger = get_logger(__name__)


def register_health_routes(routes: web.RouteTableDef) -> None:
    """Register health routes."""

    @routes.get("/api/health")
    async def health(request):
        """Get health status."""
        svc, error_result = await _require_services()
        if error_result:
            return _json_response(error_result)

        policy = svc.get("policy")
        tools = {
            name: bool(getattr(svc.get(name), "is_available", lambda: False)())
            for name in ("ffprobe", "ffmpeg")
        }
        return _json_response(
            Result.Ok(
                {
                    "status": "ok",
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                    "vision_available": bool(getattr(policy, "backend_available", False)),
                    "moderation_enabled": bool(getattr(policy, "enabled", False)),
                    "tools": tools,
                }
            )
        )
