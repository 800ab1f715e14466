import json

import pytest
from aiohttp import web
from aiohttp.test_utils import make_mocked_request

from clipmgr_backend.features.workflow import build_metadata_document, read_embedded_workflow
from clipmgr_backend.routes.handlers import workflow as workflow_mod

RAW_GRAPH = (
    '{\n  "6": {"class_type": "CLIPTextEncode", "inputs": {"text": "ré sumé \\u00e9 café, 16:9"}},\n'
    '  "3": {"class_type": "KSampler",   "inputs": {"steps": 20, "cfg": 7.50}}\n}'
)


def _build_app(videos) -> web.Application:
    async def _get_video(video_id):
        return videos.get(video_id)

    app = web.Application()
    routes = web.RouteTableDef()
    workflow_mod.register_workflow_routes(routes, _get_video)
    app.add_routes(routes)
    return app


async def _call(app, path):
    match = await app.router.resolve(make_mocked_request("GET", path, app=app))
    req = make_mocked_request("GET", path, app=app, match_info=dict(match))
    return await match.handler(req)


@pytest.mark.asyncio
async def test_workflow_download_is_byte_identical() -> None:
    embedded = read_embedded_workflow({"comment": json.dumps({"prompt": RAW_GRAPH})})
    document = build_metadata_document({}, embedded)
    app = _build_app({"7": {"title": "Sunset Beach #2", "metadata": document}})

    resp = await _call(app, "/api/videos/7/workflow")

    assert resp.status == 200
    assert resp.body == RAW_GRAPH.encode("utf-8")
    assert resp.content_type == "application/json"
    assert resp.headers["Content-Disposition"] == 'attachment; filename="Sunset_Beach__2_workflow.json"'


@pytest.mark.asyncio
async def test_workflow_download_unknown_video() -> None:
    resp = await _call(_build_app({}), "/api/videos/404/workflow")
    body = json.loads(resp.text)
    assert resp.status == 404
    assert body["ok"] is False
    assert body["code"] == "NOT_FOUND"
    assert body["error"] == "Video not found"


@pytest.mark.asyncio
async def test_workflow_download_video_without_workflow() -> None:
    app = _build_app({"1": {"title": "plain", "metadata": {"basic": {}, "comfyui": None}}})
    resp = await _call(app, "/api/videos/1/workflow")
    body = json.loads(resp.text)
    assert resp.status == 404
    assert body["error"] == "No ComfyUI workflow found for this video"


@pytest.mark.asyncio
async def test_workflow_download_lookup_error() -> None:
    async def _broken(_video_id):
        raise RuntimeError("database locked")

    app = web.Application()
    routes = web.RouteTableDef()
    workflow_mod.register_workflow_routes(routes, _broken)
    app.add_routes(routes)

    resp = await _call(app, "/api/videos/1/workflow")
    assert resp.status == 500
    assert json.loads(resp.text)["ok"] is False


def test_workflow_filename() -> None:
    assert workflow_mod.workflow_filename("My Clip (final).mp4") == "My_Clip__final__mp4_workflow.json"
    assert workflow_mod.workflow_filename(None) == "video_workflow.json"
