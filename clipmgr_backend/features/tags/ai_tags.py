"""
AI-generated tags from vision model descriptions of sampled frames.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from contextlib import aclosing
from typing import Final

from ...adapters.tools.ffmpeg import FrameWorkspace, frame_timestamps
from ...config import AUTO_TAGGING_ENABLED, FRAMES_TO_ANALYZE, MAX_AI_TAGS
from ...shared import get_logger
from ..video.frames import FrameClassifier, FrameGrabber, sample_frame_replies
from .aggregator import Tag, TagSource

logger = get_logger(__name__)

AI_TAG_CONFIDENCE: Final[float] = 0.8

TAGGING_INSTRUCTION: Final[str] = (
    "Describe this image in detail. List the main subjects, objects, activities, "
    "scene type, style, and mood. Be specific and concise. "
    "Format: subject1, subject2, action, scene, style, mood"
)

STOP_WORDS: Final[frozenset[str]] = frozenset(
    {
        "the", "this", "that", "with", "from", "have", "has", "had",
        "are", "was", "were", "been", "being", "and", "but", "not",
        "for", "can", "could", "would", "should", "may", "might",
    }
)

_PUNCTUATION_RE = re.compile(r"[.,!?;:]")


def tags_from_description(description: str | None) -> list[str]:
    """Candidate tag words from one free-text description, first-seen order."""
    if not description:
        return []
    cleaned = _PUNCTUATION_RE.sub(" ", description.lower())
    words: list[str] = []
    seen: set[str] = set()
    for word in cleaned.split():
        if len(word) <= 2 or word in STOP_WORDS or word in seen:
            continue
        seen.add(word)
        words.append(word)
    return words


def ai_tags(descriptions: Iterable[str | None], limit: int = MAX_AI_TAGS) -> list[Tag]:
    names: dict[str, None] = {}
    for description in descriptions:
        for word in tags_from_description(description):
            names.setdefault(word, None)
    return [Tag(name, AI_TAG_CONFIDENCE, TagSource.AI) for name in list(names)[: max(0, limit)]]


class AITagger:
    """Describes sampled frames with the vision model and turns the text into tags."""

    def __init__(
        self,
        grabber: FrameGrabber,
        classifier: FrameClassifier,
        enabled: bool = AUTO_TAGGING_ENABLED,
        backend_available: bool = True,
        frame_count: int = FRAMES_TO_ANALYZE,
        limit: int = MAX_AI_TAGS,
        instruction: str = TAGGING_INSTRUCTION,
    ):
        self._grabber = grabber
        self._classifier = classifier
        self.enabled = bool(enabled)
        self.backend_available = bool(backend_available)
        self.frame_count = max(1, int(frame_count))
        self.limit = int(limit)
        self.instruction = instruction

    async def generate(self, video_path: str, duration: float | None) -> list[Tag]:
        if not self.enabled or not self.backend_available:
            return []

        descriptions: list[str] = []
        try:
            async with FrameWorkspace(prefix="clipmgr-tags-") as workspace:
                replies = sample_frame_replies(
                    self._grabber,
                    self._classifier,
                    video_path,
                    frame_timestamps(duration, self.frame_count),
                    self.instruction,
                    workspace,
                )
                async with aclosing(replies):
                    async for reply in replies:
                        if reply:
                            descriptions.append(reply)
        except Exception as exc:
            logger.error("AI tagging error: %s", exc)
            return []

        tags = ai_tags(descriptions, self.limit)
        logger.debug("AI tagging produced %d tags from %d descriptions", len(tags), len(descriptions))
        return tags
