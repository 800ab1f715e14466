"""
Configuration for Clip Manager.

Every value is read once from the environment at import time. Names prefixed
with CLIPMGR_ take precedence over the legacy unprefixed names.
"""
import logging
import os

from .utils import env_bool, split_csv

logger = logging.getLogger(__name__)


def _env_raw(*names: str, default: str | None = None) -> str | None:
    for name in names:
        if not name:
            continue
        val = os.getenv(name)
        if val is not None and str(val).strip() != "":
            return str(val).strip()
    return default


def _env_int(default: int, *names: str, min_value: int | None = None, max_value: int | None = None) -> int:
    raw = _env_raw(*names)
    if raw is None:
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid integer for %s=%r, using default=%s", names[0] if names else "<unknown>", raw, default)
        return default
    if min_value is not None and value < min_value:
        logger.warning("Value too small for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, min_value)
        value = min_value
    if max_value is not None and value > max_value:
        logger.warning("Value too large for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, max_value)
        value = max_value
    return value


def _env_float(default: float, *names: str, min_value: float | None = None, max_value: float | None = None) -> float:
    raw = _env_raw(*names)
    if raw is None:
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid float for %s=%r, using default=%s", names[0] if names else "<unknown>", raw, default)
        return default
    if min_value is not None and value < min_value:
        logger.warning("Value too small for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, min_value)
        value = min_value
    if max_value is not None and value > max_value:
        logger.warning("Value too large for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, max_value)
        value = max_value
    return value


def _env_bool(default: bool, *names: str) -> bool:
    for name in names:
        if name and name in os.environ:
            return env_bool(name, default)
    return default


# Feature switches
CONTENT_MODERATION_ENABLED = _env_bool(False, "CLIPMGR_ENABLE_CONTENT_MODERATION", "ENABLE_CONTENT_MODERATION")
AUTO_TAGGING_ENABLED = _env_bool(False, "CLIPMGR_ENABLE_AUTO_TAGGING", "ENABLE_AUTO_TAGGING")

# Vision backend (Ollama)
OLLAMA_HOST = (_env_raw("CLIPMGR_OLLAMA_HOST", "OLLAMA_HOST", default="http://localhost:11434") or "").rstrip("/")
OLLAMA_MODEL = _env_raw("CLIPMGR_OLLAMA_MODEL", "OLLAMA_MODEL", default="llava") or "llava"
VISION_MODEL_MARKERS = tuple(split_csv(_env_raw("CLIPMGR_VISION_MODEL_MARKERS", default="llava,bakllava")))
VISION_TIMEOUT = _env_float(120.0, "CLIPMGR_VISION_TIMEOUT", min_value=1.0, max_value=900.0)

# Frame sampling
FRAMES_TO_ANALYZE = _env_int(3, "CLIPMGR_FRAMES_TO_ANALYZE", "FRAMES_TO_ANALYZE", min_value=1, max_value=30)
MODERATION_FRAMES = _env_int(2, "CLIPMGR_MODERATION_FRAMES", min_value=1, max_value=30)
MAX_AI_TAGS = _env_int(15, "CLIPMGR_MAX_AI_TAGS", min_value=1, max_value=200)
FRAME_WIDTH = _env_int(640, "CLIPMGR_FRAME_WIDTH", min_value=64, max_value=3840)

# ffmpeg may signal completion before the JPEG is fully visible on disk.
FRAME_READY_TIMEOUT = _env_float(5.0, "CLIPMGR_FRAME_READY_TIMEOUT", min_value=0.0, max_value=120.0)
FRAME_READY_POLL = _env_float(0.1, "CLIPMGR_FRAME_READY_POLL", min_value=0.01, max_value=5.0)

# External tools
FFPROBE_BIN = _env_raw("CLIPMGR_FFPROBE_BIN", "FFPROBE_BIN", default="ffprobe") or "ffprobe"
FFMPEG_BIN = _env_raw("CLIPMGR_FFMPEG_BIN", "FFMPEG_BIN", default="ffmpeg") or "ffmpeg"
FFPROBE_TIMEOUT = _env_float(10.0, "CLIPMGR_FFPROBE_TIMEOUT", min_value=1.0, max_value=300.0)
FFMPEG_TIMEOUT = _env_float(30.0, "CLIPMGR_FFMPEG_TIMEOUT", min_value=1.0, max_value=600.0)

# Workflow extraction
NEGATIVE_PROMPT_MARKERS = tuple(
    split_csv(_env_raw("CLIPMGR_NEGATIVE_PROMPT_MARKERS", default="低质量,worst quality"))
)
