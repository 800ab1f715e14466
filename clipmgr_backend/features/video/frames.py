"""Sequential frame sampling: grab one frame, ask the classifier, repeat."""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterable
from pathlib import Path
from typing import Protocol

from ...adapters.tools.ffmpeg import FrameWorkspace
from ...shared import Result, get_logger

logger = get_logger(__name__)


class FrameGrabber(Protocol):
    async def grab(self, video_path: str, timestamp: float, dest: Path) -> Result[Path]: ...


class FrameClassifier(Protocol):
    async def describe(self, image_path: Path, instruction: str) -> str | None: ...


async def sample_frame_replies(
    grabber: FrameGrabber,
    classifier: FrameClassifier,
    video_path: str,
    timestamps: Iterable[float],
    instruction: str,
    workspace: FrameWorkspace,
) -> AsyncIterator[str | None]:
    """
    Yield the classifier reply for each timestamp, one frame at a time.

    Nothing is extracted ahead of the consumer, so stopping early saves the
    remaining grabs and classifications. Frames that fail to extract are
    skipped.
    """
    for index, timestamp in enumerate(timestamps, start=1):
        grabbed = await grabber.grab(video_path, timestamp, workspace.frame_path(index))
        if not grabbed.ok or grabbed.data is None:
            logger.warning("Frame %d at %.2fs unavailable: %s", index, timestamp, grabbed.error)
            continue
        yield await classifier.describe(grabbed.data, instruction)
