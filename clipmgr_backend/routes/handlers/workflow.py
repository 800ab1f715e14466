"""
Workflow download endpoint.

Serves the prompt graph exactly as it was embedded in the clip so it can be
dropped back into ComfyUI. The body is never re-serialized.
"""
import re
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from aiohttp import web

from clipmgr_backend.features.workflow import workflow_download_body
from clipmgr_backend.shared import ErrorCode, Result, get_logger, sanitize_error_message

from ..core import _json_response

logger = get_logger(__name__)

# Resolves a video id to its stored record: {"title": ..., "metadata": <document>}.
VideoLookup = Callable[[str], Awaitable[Mapping[str, Any] | None]]

_FILENAME_UNSAFE_RE = re.compile(r"[^A-Za-z0-9]")


def workflow_filename(title: Any) -> str:
    stem = _FILENAME_UNSAFE_RE.sub("_", str(title or "video"))
    return f"{stem}_workflow.json"


def register_workflow_routes(routes: web.RouteTableDef, get_video: VideoLookup) -> None:
    """Register the workflow download route."""

    @routes.get("/api/videos/{video_id}/workflow")
    async def download_workflow(request):
        video_id = request.match_info.get("video_id", "")
        try:
            video = await get_video(video_id)
        except Exception as exc:
            logger.error("Workflow download error for %s: %s", video_id, exc)
            return _json_response(
                Result.Err(ErrorCode.DEGRADED, sanitize_error_message(exc, "Failed to download workflow")),
                status=500,
            )

        if not video:
            return _json_response(Result.Err(ErrorCode.NOT_FOUND, "Video not found"), status=404)

        body = workflow_download_body(video.get("metadata"))
        if body is None:
            return _json_response(
                Result.Err(ErrorCode.NOT_FOUND, "No ComfyUI workflow found for this video"),
                status=404,
            )

        filename = workflow_filename(video.get("title"))
        return web.Response(
            body=body,
            content_type="application/json",
            charset="utf-8",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )
