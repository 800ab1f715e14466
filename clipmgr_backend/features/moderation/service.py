"""
Content moderation run for one video.

Frames are extracted and classified strictly in sequence so that a hard
rejection stops further work. The frame directory is removed on every exit
path.
"""

from __future__ import annotations

import logging
from contextlib import aclosing
from typing import Final

from ...adapters.tools.ffmpeg import FrameWorkspace, frame_timestamps
from ...config import MODERATION_FRAMES
from ...shared import get_logger, log_structured
from ..video.frames import FrameClassifier, FrameGrabber, sample_frame_replies
from .aggregator import ERROR_REASON, ClassificationAggregator, ModerationPolicy, fail_open_verdict
from .verdict import AggregateVerdict

logger = get_logger(__name__)

MODERATION_INSTRUCTION: Final[str] = (
    "Rate this image for content safety using exactly one of these ratings: "
    "SAFE, PG-13, R, XXX. Describe any people visible, including whether they "
    "appear to be minors, and any nudity or sexual activity.\n"
    "Respond in this format:\n"
    "RATING: <SAFE|PG-13|R|XXX>\n"
    "REASON: <brief reason>"
)


class ModerationService:
    def __init__(
        self,
        grabber: FrameGrabber,
        classifier: FrameClassifier,
        policy: ModerationPolicy,
        frame_count: int = MODERATION_FRAMES,
        instruction: str = MODERATION_INSTRUCTION,
    ):
        self._grabber = grabber
        self._classifier = classifier
        self.policy = policy
        self.frame_count = max(1, int(frame_count))
        self.instruction = instruction

    async def moderate(self, video_path: str, duration: float | None) -> AggregateVerdict:
        """
        Classify sampled frames and aggregate them into one verdict.

        Disabled moderation or an unavailable backend approve without
        looking at any frame; unexpected errors approve as well.
        """
        skip = self.policy.skip_reason()
        if skip is not None:
            logger.debug("Moderation skipped: %s", skip)
            return fail_open_verdict(skip)

        aggregator = ClassificationAggregator(self.policy)
        timestamps = frame_timestamps(duration, self.frame_count)
        try:
            async with FrameWorkspace() as workspace:
                replies = sample_frame_replies(
                    self._grabber, self._classifier, video_path, timestamps, self.instruction, workspace
                )
                async with aclosing(replies):
                    async for reply in replies:
                        if aggregator.observe(reply):
                            break
        except Exception as exc:
            logger.error("Content moderation error, approving by default: %s", exc)
            return fail_open_verdict(ERROR_REASON)

        verdict = aggregator.verdict()
        log_structured(
            logger,
            logging.INFO,
            "moderation complete",
            rating=verdict.to_dict()["rating"],
            frames=aggregator.frames_seen,
            planned=len(timestamps),
        )
        return verdict
