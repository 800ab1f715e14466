"""
Ollama vision adapter.

Sends one image plus a natural-language instruction to a local or remote
Ollama server and returns the model's free-text reply. Replies follow no
schema; callers parse what they need.
"""
from __future__ import annotations

import asyncio
import base64
from pathlib import Path
from typing import Any, Optional

from aiohttp import ClientError, ClientSession, ClientTimeout

from ...config import OLLAMA_HOST, OLLAMA_MODEL, VISION_MODEL_MARKERS, VISION_TIMEOUT
from ...shared import get_logger, log_success

logger = get_logger(__name__)


def has_vision_model(payload: Any, markers: tuple[str, ...] = VISION_MODEL_MARKERS) -> bool:
    """True when `/api/tags` lists a model whose name contains a vision marker."""
    models = payload.get("models") if isinstance(payload, dict) else None
    for item in models or []:
        name = item.get("name") if isinstance(item, dict) else None
        if isinstance(name, str) and any(marker in name for marker in markers):
            return True
    return False


class OllamaVision:
    """
    Thin client for `/api/tags` and `/api/generate`.

    Network and protocol errors are logged and reported as None / False.
    """

    def __init__(
        self,
        host: str = OLLAMA_HOST,
        model: str = OLLAMA_MODEL,
        timeout: float = VISION_TIMEOUT,
    ):
        self.host = (host or "").rstrip("/")
        self.model = model
        self.timeout = float(timeout)

    def _session(self) -> ClientSession:
        return ClientSession(timeout=ClientTimeout(total=self.timeout))

    async def check_available(self) -> bool:
        """Probe the server once; True only if a vision-capable model is installed."""
        try:
            async with self._session() as session:
                async with session.get(f"{self.host}/api/tags") as resp:
                    if resp.status != 200:
                        logger.info("Ollama returned %s on /api/tags - AI analysis disabled", resp.status)
                        return False
                    payload = await resp.json()
        except (ClientError, asyncio.TimeoutError, ValueError) as exc:
            logger.info("Ollama not available (%s) - using basic tag generation", exc)
            return False

        if has_vision_model(payload):
            log_success(logger, "Ollama with vision model detected - AI analysis enabled")
            return True
        logger.warning("Ollama found but no vision model installed (install with: ollama pull llava)")
        return False

    def _build_payload(self, image_bytes: bytes, instruction: str) -> dict[str, Any]:
        return {
            "model": self.model,
            "prompt": instruction,
            "images": [base64.b64encode(image_bytes).decode("ascii")],
            "stream": False,
        }

    async def describe(self, image_path: Path, instruction: str) -> Optional[str]:
        """Return the model's reply for one image, or None on any failure."""
        try:
            image_bytes = await asyncio.to_thread(Path(image_path).read_bytes)
        except OSError as exc:
            logger.error("Could not read frame %s: %s", image_path, exc)
            return None

        try:
            async with self._session() as session:
                async with session.post(
                    f"{self.host}/api/generate",
                    json=self._build_payload(image_bytes, instruction),
                ) as resp:
                    if resp.status != 200:
                        logger.error("Ollama API error: HTTP %s", resp.status)
                        return None
                    data = await resp.json()
        except (ClientError, asyncio.TimeoutError, ValueError) as exc:
            logger.error("Error analyzing frame with Ollama: %s", exc)
            return None

        reply = data.get("response") if isinstance(data, dict) else None
        return reply if isinstance(reply, str) else None
