"""
Ratings, per-frame verdict parsing and the illegal-content predicate.

Classifier replies are free text. A reply is expected to carry
`RATING: <SAFE|PG-13|R|XXX>` and optionally `REASON: <text>`, matched
case-insensitively; replies that do not are simply ignored.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Final


class Rating(str, Enum):
    """Ordinal content rating: SAFE < PG-13 < R < XXX."""

    SAFE = "SAFE"
    PG13 = "PG-13"
    R = "R"
    XXX = "XXX"

    @property
    def rank(self) -> int:
        return _RANKS[self]


_RANKS: Final[dict[Rating, int]] = {Rating.SAFE: 0, Rating.PG13: 1, Rating.R: 2, Rating.XXX: 3}

# Terminal outcome outside the ordinal scale.
REJECTED: Final[str] = "REJECTED"

REJECTION_REASON: Final[str] = "Potentially illegal content detected"
CLEAN_REASON: Final[str] = "Clean content"

RATING_LABEL: Final[str] = "RATING:"
REASON_LABEL: Final[str] = "REASON:"

# Longest first so "PG-13" is tried before "R".
_RATING_TOKENS: Final[tuple[str, ...]] = tuple(
    sorted((r.value for r in Rating), key=len, reverse=True)
)

RESTRICTED_SUBJECT_KEYWORDS: Final[frozenset[str]] = frozenset({
    "child",
    "minor",
    "childhood",
    "children",
    "underage",
    "kid",
    "young child",
    "prepubescent",
})

EXPLICIT_KEYWORDS: Final[frozenset[str]] = frozenset({
    "nude",
    "vagina",
    "penis",
    "naked",
    "sex",
    "sexual",
    "explicit",
    "erotic",
})


@dataclass(frozen=True)
class FrameVerdict:
    rating: Rating
    reason: str = ""


@dataclass(frozen=True)
class AggregateVerdict:
    """
    Outcome of one moderation run.

    `rating` is a Rating or the REJECTED marker. `inspected` is False when no
    frame was evaluated (moderation disabled, backend unavailable, error);
    such verdicts otherwise look exactly like a clean inspection.
    """

    rating: Rating | str
    reason: str
    is_legal: bool
    inspected: bool = True

    @property
    def rejected(self) -> bool:
        return self.rating == REJECTED

    def to_dict(self) -> dict[str, Any]:
        rating = self.rating.value if isinstance(self.rating, Rating) else self.rating
        return {
            "rating": rating,
            "reason": self.reason,
            "isLegal": self.is_legal,
            "inspected": self.inspected,
        }


def _skip_whitespace(text: str, pos: int) -> int:
    while pos < len(text) and text[pos].isspace():
        pos += 1
    return pos


def _upper_aligned(text: str) -> str:
    # str.upper() can change length ("ß" -> "SS"); keep offsets aligned.
    return "".join(ch.upper() if len(ch.upper()) == 1 else ch for ch in text)


def _iter_label_values(text: str, label: str) -> Iterable[int]:
    """Yield positions right after each `label` occurrence and its whitespace."""
    upper = _upper_aligned(text)
    start = 0
    while True:
        idx = upper.find(label, start)
        if idx < 0:
            return
        start = idx + len(label)
        yield _skip_whitespace(text, start)


def _rating_at(text: str, pos: int) -> Rating | None:
    for token in _RATING_TOKENS:
        end = pos + len(token)
        if text[pos:end].upper() == token:
            return Rating(token)
    return None


def parse_rating(text: str) -> Rating | None:
    for pos in _iter_label_values(text, RATING_LABEL):
        rating = _rating_at(text, pos)
        if rating is not None:
            return rating
    return None


def parse_reason(text: str) -> str | None:
    for pos in _iter_label_values(text, REASON_LABEL):
        line_end = text.find("\n", pos)
        value = text[pos:] if line_end < 0 else text[pos:line_end]
        value = value.strip()
        if value:
            return value
    return None


def parse_frame_verdict(text: Any) -> FrameVerdict | None:
    """Parse one classifier reply; None when no rating line is present."""
    if not isinstance(text, str) or not text:
        return None
    rating = parse_rating(text)
    if rating is None:
        return None
    return FrameVerdict(rating=rating, reason=parse_reason(text) or "")


def _contains_any(folded: str, keywords: Iterable[str]) -> bool:
    return any(keyword in folded for keyword in keywords)


def contains_illegal_content(text: Any) -> bool:
    """
    True when a restricted-subject keyword and an explicit keyword both occur
    anywhere in `text`, in either order, across any number of lines.
    """
    if not isinstance(text, str) or not text:
        return False
    folded = text.casefold()
    return _contains_any(folded, RESTRICTED_SUBJECT_KEYWORDS) and _contains_any(folded, EXPLICIT_KEYWORDS)


def tags_indicate_illegal_content(tag_names: Iterable[Any]) -> bool:
    """Tag-level variant: the two keyword classes may come from different tags."""
    folded = [name.casefold() for name in tag_names or () if isinstance(name, str)]
    if not folded:
        return False
    has_subject = any(_contains_any(name, RESTRICTED_SUBJECT_KEYWORDS) for name in folded)
    has_explicit = any(_contains_any(name, EXPLICIT_KEYWORDS) for name in folded)
    return has_subject and has_explicit
