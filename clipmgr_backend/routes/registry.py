"""
Route registration system.
Collects all route handlers and registers them on an aiohttp application.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from aiohttp import web

from clipmgr_backend.shared import get_logger

from .handlers import register_health_routes, register_workflow_routes
from .handlers.workflow import VideoLookup

API_PREFIX = "/api/"
_APP_KEY_ROUTES_REGISTERED: web.AppKey[bool] = web.AppKey("_clipmgr_routes_registered", bool)

logger = get_logger(__name__)


@web.middleware
async def security_headers_middleware(
    request: web.Request,
    handler: Callable[[web.Request], Awaitable[web.StreamResponse]],
) -> web.StreamResponse:
    """Apply strict security headers to API responses only."""
    response = await handler(request)
    if not (request.path or "").startswith(API_PREFIX):
        return response
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("Cache-Control", "no-store, no-cache, must-revalidate")
    return response


def register_all_routes(get_video: VideoLookup) -> web.RouteTableDef:
    """Build the RouteTableDef holding every API route."""
    routes = web.RouteTableDef()
    register_health_routes(routes)
    register_workflow_routes(routes, get_video)

    logger.info("Routes registered:")
    logger.info("  GET /api/health")
    logger.info("  GET /api/videos/{video_id}/workflow")
    return routes


def register_routes(app: web.Application, get_video: VideoLookup) -> None:
    """Register routes and middlewares onto an aiohttp application once."""
    if app.get(_APP_KEY_ROUTES_REGISTERED):
        logger.debug("register_routes(app) skipped: routes already registered on this app")
        return
    app.middlewares.append(security_headers_middleware)
    app.add_routes(register_all_routes(get_video))
    app[_APP_KEY_ROUTES_REGISTERED] = True
