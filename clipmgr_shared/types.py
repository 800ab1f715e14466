"""
Shared types, enums, and constants.
"""
import os
from enum import Enum
from typing import Final, Literal

FileKind = Literal["video", "unknown"]


class ErrorCode(str, Enum):
    """Standardized error codes (string enum)."""

    # Client / validation
    INVALID_INPUT = "INVALID_INPUT"
    NOT_FOUND = "NOT_FOUND"

    # Feature / service availability
    DEGRADED = "DEGRADED"
    TOOL_MISSING = "TOOL_MISSING"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    TIMEOUT = "TIMEOUT"

    # Tool / parsing
    FFPROBE_ERROR = "FFPROBE_ERROR"
    FFMPEG_ERROR = "FFMPEG_ERROR"
    PARSE_ERROR = "PARSE_ERROR"

    # Policy
    REJECTED = "REJECTED"


EXTENSIONS: Final[dict[FileKind, set[str]]] = {
    "video": {".mp4", ".mov", ".avi", ".webm", ".mkv"},
    "unknown": set(),
}


def classify_file(filename: str) -> FileKind:
    """Classify an upload by extension (video or unknown)."""
    ext = os.path.splitext(filename)[1].lower()
    for kind, exts in EXTENSIONS.items():
        if ext in exts:
            return kind
    return "unknown"
