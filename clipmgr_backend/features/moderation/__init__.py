"""Content moderation feature."""
from .aggregator import ClassificationAggregator, ModerationPolicy, classify_frames, fail_open_verdict
from .service import MODERATION_INSTRUCTION, ModerationService
from .verdict import (
    REJECTED,
    AggregateVerdict,
    FrameVerdict,
    Rating,
    contains_illegal_content,
    parse_frame_verdict,
    tags_indicate_illegal_content,
)

__all__ = [
    "AggregateVerdict",
    "ClassificationAggregator",
    "FrameVerdict",
    "MODERATION_INSTRUCTION",
    "ModerationPolicy",
    "ModerationService",
    "REJECTED",
    "Rating",
    "classify_frames",
    "contains_illegal_content",
    "fail_open_verdict",
    "parse_frame_verdict",
    "tags_indicate_illegal_content",
]
