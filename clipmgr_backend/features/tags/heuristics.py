"""Tags derived without AI: filename tokens, clip metrics and workflow hints."""

from __future__ import annotations

import os
import re
from typing import Final

from ..video.metadata import VideoBasicMetadata
from ..workflow.parameters import ExtractedParameters
from .aggregator import Tag, TagSource

FILENAME_CONFIDENCE: Final[float] = 0.6
METRIC_CONFIDENCE: Final[float] = 1.0

SHORT_CLIP_SECONDS: Final[float] = 5.0
MEDIUM_CLIP_SECONDS: Final[float] = 15.0

UHD_WIDTH, UHD_HEIGHT = 3840, 2160
HD_WIDTH, HD_HEIGHT = 1920, 1080

_FILENAME_SPLIT_RE = re.compile(r"[-_\s]+")


def filename_tags(filename: str) -> list[Tag]:
    stem, _ = os.path.splitext(os.path.basename(filename or ""))
    tags: list[Tag] = []
    for word in _FILENAME_SPLIT_RE.split(stem):
        if len(word) > 2 and not word.isdigit():
            tags.append(Tag(word.lower(), FILENAME_CONFIDENCE, TagSource.FILENAME))
    return tags


def _auto(name: str) -> Tag:
    return Tag(name, METRIC_CONFIDENCE, TagSource.AUTO)


def duration_tag(duration: float | None) -> Tag | None:
    if not duration:
        return None
    if duration < SHORT_CLIP_SECONDS:
        return _auto("short")
    if duration < MEDIUM_CLIP_SECONDS:
        return _auto("medium")
    return _auto("long")


def resolution_tags(width: int | None, height: int | None) -> list[Tag]:
    if not width or not height:
        return []
    tags: list[Tag] = []
    if width >= UHD_WIDTH or height >= UHD_HEIGHT:
        tags.append(_auto("4k"))
    elif width >= HD_WIDTH or height >= HD_HEIGHT:
        tags.append(_auto("hd"))
    if width > height:
        tags.append(_auto("landscape"))
    elif height > width:
        tags.append(_auto("portrait"))
    return tags


def format_tag(format_name: str | None) -> Tag | None:
    if not format_name:
        return None
    # ffprobe lists demuxer aliases, e.g. "mov,mp4,m4a,3gp,3g2,mj2".
    first = format_name.split(",")[0].strip()
    return _auto(first) if first else None


def metric_tags(basic: VideoBasicMetadata) -> list[Tag]:
    tags: list[Tag] = []
    duration = duration_tag(basic.duration)
    if duration is not None:
        tags.append(duration)
    tags.extend(resolution_tags(basic.width, basic.height))
    container = format_tag(basic.format)
    if container is not None:
        tags.append(container)
    return tags


def workflow_tags(params: ExtractedParameters, generation_type: str | None) -> list[Tag]:
    tags: list[Tag] = []
    if generation_type:
        tags.append(_auto(generation_type))
    if params.model:
        tags.append(_auto("ai-generated"))
    return tags
