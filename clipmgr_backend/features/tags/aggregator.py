"""Tag record and the merge of tag sources."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any


class TagSource(str, Enum):
    FILENAME = "filename"
    AUTO = "auto"
    AI = "ai"


@dataclass(frozen=True)
class Tag:
    name: str
    confidence: float
    source: TagSource

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Tag confidence out of range: {self.confidence}")

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "confidence": self.confidence, "source": self.source.value}


def aggregate_tags(*sources: Iterable[Tag]) -> list[Tag]:
    """
    Merge tag sources into one list with unique names.

    Sources are applied in argument order and a later tag replaces an earlier
    one with the same name, even if the earlier one had higher confidence.
    Result order carries no meaning.
    """
    merged: dict[str, Tag] = {}
    for source in sources:
        for tag in source or ():
            merged[tag.name] = tag
    return list(merged.values())
