import base64

import pytest
from aiohttp import ClientError

from clipmgr_backend.adapters.vision import OllamaVision, has_vision_model


class _Resp:
    def __init__(self, status, payload):
        self.status = status
        self._payload = payload

    async def json(self):
        return self._payload

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class _Session:
    def __init__(self, resp=None, error=None):
        self.resp = resp
        self.error = error
        self.requests = []

    def _call(self, method, url, **kwargs):
        self.requests.append((method, url, kwargs))
        if self.error is not None:
            raise self.error
        return self.resp

    def get(self, url, **kwargs):
        return self._call("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self._call("POST", url, **kwargs)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


def _client(monkeypatch, session) -> OllamaVision:
    client = OllamaVision(host="http://ollama:11434/", model="llava", timeout=5)
    monkeypatch.setattr(client, "_session", lambda: session)
    return client


def test_has_vision_model() -> None:
    assert has_vision_model({"models": [{"name": "llama3:8b"}, {"name": "llava:13b"}]}) is True
    assert has_vision_model({"models": [{"name": "bakllava:latest"}]}) is True
    assert has_vision_model({"models": [{"name": "mistral"}]}) is False
    assert has_vision_model({}) is False
    assert has_vision_model(None) is False


@pytest.mark.asyncio
async def test_check_available(monkeypatch) -> None:
    session = _Session(_Resp(200, {"models": [{"name": "llava:7b"}]}))
    assert await _client(monkeypatch, session).check_available() is True
    assert session.requests[0][:2] == ("GET", "http://ollama:11434/api/tags")


@pytest.mark.asyncio
async def test_check_available_without_vision_model_or_server(monkeypatch) -> None:
    assert await _client(monkeypatch, _Session(_Resp(200, {"models": []}))).check_available() is False
    assert await _client(monkeypatch, _Session(_Resp(500, {}))).check_available() is False
    assert await _client(monkeypatch, _Session(error=ClientError("refused"))).check_available() is False


@pytest.mark.asyncio
async def test_describe_posts_base64_image(monkeypatch, tmp_path) -> None:
    image = tmp_path / "frame_1.jpg"
    image.write_bytes(b"jpeg-bytes")
    session = _Session(_Resp(200, {"response": "RATING: SAFE"}))

    reply = await _client(monkeypatch, session).describe(image, "Rate this")

    assert reply == "RATING: SAFE"
    method, url, kwargs = session.requests[0]
    assert (method, url) == ("POST", "http://ollama:11434/api/generate")
    assert kwargs["json"] == {
        "model": "llava",
        "prompt": "Rate this",
        "images": [base64.b64encode(b"jpeg-bytes").decode("ascii")],
        "stream": False,
    }


@pytest.mark.asyncio
async def test_describe_failures_return_none(monkeypatch, tmp_path) -> None:
    image = tmp_path / "frame_1.jpg"
    image.write_bytes(b"x")
    assert await _client(monkeypatch, _Session(_Resp(503, {}))).describe(image, "q") is None
    assert await _client(monkeypatch, _Session(error=ClientError("reset"))).describe(image, "q") is None
    assert await _client(monkeypatch, _Session(_Resp(200, {"done": True}))).describe(image, "q") is None
    assert await _client(monkeypatch, _Session()).describe(tmp_path / "missing.jpg", "q") is None
