"""Tag generation and merging."""
from .aggregator import Tag, TagSource, aggregate_tags
from .ai_tags import STOP_WORDS, TAGGING_INSTRUCTION, AITagger, ai_tags, tags_from_description
from .heuristics import filename_tags, metric_tags, workflow_tags

__all__ = [
    "AITagger",
    "STOP_WORDS",
    "TAGGING_INSTRUCTION",
    "Tag",
    "TagSource",
    "aggregate_tags",
    "ai_tags",
    "filename_tags",
    "metric_tags",
    "tags_from_description",
    "workflow_tags",
]
