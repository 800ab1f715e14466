"""
Aggregation of per-frame classifier replies into one verdict.

Frames are consumed one at a time so that a hard rejection stops the run
before later frames are classified at all.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Final

from ...shared import get_logger
from .verdict import (
    CLEAN_REASON,
    REJECTED,
    REJECTION_REASON,
    AggregateVerdict,
    Rating,
    contains_illegal_content,
    parse_frame_verdict,
)

logger = get_logger(__name__)

DISABLED_REASON: Final[str] = "Content moderation disabled"
UNAVAILABLE_REASON: Final[str] = "Classification backend unavailable"
ERROR_REASON: Final[str] = "Moderation error, approved by default"


@dataclass(frozen=True)
class ModerationPolicy:
    """What the aggregator is allowed to do, fixed when it is built."""

    enabled: bool = True
    backend_available: bool = True

    def skip_reason(self) -> str | None:
        if not self.enabled:
            return DISABLED_REASON
        if not self.backend_available:
            return UNAVAILABLE_REASON
        return None


def fail_open_verdict(reason: str) -> AggregateVerdict:
    return AggregateVerdict(rating=Rating.SAFE, reason=reason, is_legal=True, inspected=False)


def rejected_verdict() -> AggregateVerdict:
    return AggregateVerdict(rating=REJECTED, reason=REJECTION_REASON, is_legal=False)


class ClassificationAggregator:
    """
    Running maximum over frame ratings plus the illegal-content hard stop.

    One instance tracks one run; `classify()` and `reset()` start a new one.
    """

    def __init__(self, policy: ModerationPolicy | None = None):
        self.policy = policy or ModerationPolicy()
        self.reset()

    def reset(self) -> None:
        self._max_rating = Rating.SAFE
        self._reason: str | None = None
        self._rejected = False
        self._frames_seen = 0

    @property
    def rejected(self) -> bool:
        return self._rejected

    @property
    def frames_seen(self) -> int:
        return self._frames_seen

    def observe(self, text: str | None) -> bool:
        """
        Feed one frame's raw reply. Returns True when the run must stop
        because the frame triggered a hard rejection.
        """
        if self._rejected:
            return True
        self._frames_seen += 1

        if contains_illegal_content(text):
            logger.warning("Frame %d matched the illegal-content predicate", self._frames_seen)
            self._rejected = True
            return True

        frame = parse_frame_verdict(text)
        if frame is None:
            logger.debug("Frame %d reply has no rating line", self._frames_seen)
            return False
        if frame.rating.rank > self._max_rating.rank:
            self._max_rating = frame.rating
            self._reason = frame.reason or f"Rated {frame.rating.value}"
        return False

    def verdict(self) -> AggregateVerdict:
        if self._rejected:
            return rejected_verdict()
        reason = self._reason if self._max_rating is not Rating.SAFE and self._reason else CLEAN_REASON
        return AggregateVerdict(
            rating=self._max_rating,
            reason=reason,
            is_legal=True,
            inspected=self._frames_seen > 0,
        )

    def classify(self, frame_texts: Iterable[str | None]) -> AggregateVerdict:
        """
        Aggregate replies in order. `frame_texts` is pulled lazily, so a
        generator that classifies on demand is not advanced past a rejection.
        """
        skip = self.policy.skip_reason()
        if skip is not None:
            return fail_open_verdict(skip)

        self.reset()
        try:
            for text in frame_texts:
                if self.observe(text):
                    break
        except Exception as exc:
            logger.error("Moderation run failed, approving by default: %s", exc)
            return fail_open_verdict(ERROR_REASON)
        return self.verdict()


def classify_frames(frame_texts: Iterable[str | None], policy: ModerationPolicy | None = None) -> AggregateVerdict:
    return ClassificationAggregator(policy).classify(frame_texts)
