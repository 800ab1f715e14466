"""
Dependency injection - builds services.
Simple, debug-friendly DI without framework magic.
"""

from .adapters.tools import FFmpegFrameGrabber, FFProbe
from .adapters.vision import OllamaVision
from .config import (
    AUTO_TAGGING_ENABLED,
    CONTENT_MODERATION_ENABLED,
    FFMPEG_BIN,
    FFMPEG_TIMEOUT,
    FFPROBE_BIN,
    FFPROBE_TIMEOUT,
    FRAMES_TO_ANALYZE,
    MAX_AI_TAGS,
    MODERATION_FRAMES,
    OLLAMA_HOST,
    OLLAMA_MODEL,
    VISION_TIMEOUT,
)
from .features.ingest import IngestService
from .features.moderation import ModerationPolicy, ModerationService
from .features.tags import AITagger
from .shared import Result, get_logger, log_success

logger = get_logger(__name__)


def _init_tools() -> tuple[FFProbe, FFmpegFrameGrabber]:
    ffprobe = FFProbe(bin_name=FFPROBE_BIN or "ffprobe", timeout=FFPROBE_TIMEOUT)
    ffmpeg = FFmpegFrameGrabber(bin_name=FFMPEG_BIN or "ffmpeg", timeout=FFMPEG_TIMEOUT)
    return ffprobe, ffmpeg


def _log_tool_availability(ffprobe: FFProbe, ffmpeg: FFmpegFrameGrabber) -> None:
    if ffprobe.is_available():
        log_success(logger, "ffprobe is available")
    else:
        logger.warning("ffprobe not found - video metadata will be unavailable")
    if ffmpeg.is_available():
        log_success(logger, "ffmpeg is available")
    else:
        logger.warning("ffmpeg not found - frame analysis will be skipped")


async def _probe_vision(vision: OllamaVision) -> bool:
    if not (CONTENT_MODERATION_ENABLED or AUTO_TAGGING_ENABLED):
        logger.debug("Vision backend not probed: moderation and auto tagging are disabled")
        return False
    try:
        return await vision.check_available()
    except Exception as exc:
        logger.warning("Vision availability check failed: %s", exc)
        return False


async def build_services(vision: OllamaVision | None = None) -> Result[dict]:
    """
    Build all services (DI container).

    Args:
        vision: Vision client to use (default: Ollama from config)

    Returns:
        Result[dict] of service instances
    """
    logger.info("Building services...")
    ffprobe, ffmpeg = _init_tools()
    _log_tool_availability(ffprobe, ffmpeg)

    vision = vision or OllamaVision(host=OLLAMA_HOST, model=OLLAMA_MODEL, timeout=VISION_TIMEOUT)
    vision_available = await _probe_vision(vision)

    policy = ModerationPolicy(enabled=CONTENT_MODERATION_ENABLED, backend_available=vision_available)
    moderation = ModerationService(ffmpeg, vision, policy, frame_count=MODERATION_FRAMES)
    tagger = AITagger(
        ffmpeg,
        vision,
        enabled=AUTO_TAGGING_ENABLED,
        backend_available=vision_available,
        frame_count=FRAMES_TO_ANALYZE,
        limit=MAX_AI_TAGS,
    )

    services = {
        "ffprobe": ffprobe,
        "ffmpeg": ffmpeg,
        "vision": vision,
        "policy": policy,
        "moderation": moderation,
        "tagger": tagger,
        "ingest": IngestService(ffprobe, moderation, tagger),
    }
    log_success(logger, "All services initialized")
    return Result.Ok(services)
