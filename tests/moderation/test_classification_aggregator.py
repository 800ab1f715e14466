from clipmgr_backend.features.moderation import (
    REJECTED,
    ClassificationAggregator,
    ModerationPolicy,
    Rating,
    classify_frames,
)
from clipmgr_backend.features.moderation.aggregator import (
    DISABLED_REASON,
    ERROR_REASON,
    UNAVAILABLE_REASON,
)


def _reply(rating, reason=""):
    return f"RATING: {rating}\nREASON: {reason}" if reason else f"RATING: {rating}"


def test_running_maximum() -> None:
    verdict = classify_frames([_reply("SAFE"), _reply("R", "violence"), _reply("PG-13", "mild")])
    assert verdict.rating is Rating.R
    assert verdict.reason == "violence"
    assert verdict.is_legal is True
    assert verdict.inspected is True


def test_all_safe_is_clean() -> None:
    verdict = classify_frames([_reply("SAFE", "a field"), "no rating here"])
    assert verdict.rating is Rating.SAFE
    assert verdict.reason == "Clean content"


def test_rating_prefix_is_not_dropped_as_unrated() -> None:
    verdict = classify_frames([_reply("SAFE"), "RATING: R18\nREASON: gore", "RATING: XXX1"])
    assert verdict.rating is Rating.XXX
    assert verdict.reason == "Rated XXX"
    assert classify_frames(["RATING: Restricted"]).rating is Rating.R


def test_missing_reason_uses_rating() -> None:
    assert classify_frames([_reply("XXX")]).reason == "Rated XXX"


def test_illegal_frame_short_circuits() -> None:
    consumed = []

    def frames():
        for text in [_reply("SAFE"), "RATING: R\nREASON: a minor shown nude", _reply("SAFE")]:
            consumed.append(text)
            yield text

    verdict = classify_frames(frames())
    assert verdict.rating == REJECTED
    assert verdict.rejected is True
    assert verdict.is_legal is False
    assert verdict.reason == "Potentially illegal content detected"
    assert len(consumed) == 2


def test_rejection_is_not_downgraded() -> None:
    aggregator = ClassificationAggregator()
    assert aggregator.observe("child, explicit") is True
    assert aggregator.observe(_reply("SAFE")) is True
    assert aggregator.verdict().rating == REJECTED


def test_disabled_policy_fails_open_without_reading_frames() -> None:
    def frames():
        raise AssertionError("frames must not be read")
        yield  # pragma: no cover

    verdict = classify_frames(frames(), ModerationPolicy(enabled=False))
    assert verdict.rating is Rating.SAFE
    assert verdict.reason == DISABLED_REASON
    assert verdict.inspected is False

    verdict = classify_frames(frames(), ModerationPolicy(backend_available=False))
    assert verdict.reason == UNAVAILABLE_REASON
    assert verdict.is_legal is True


def test_error_fails_open() -> None:
    def frames():
        yield _reply("R")
        raise RuntimeError("backend dropped")

    verdict = classify_frames(frames())
    assert verdict.rating is Rating.SAFE
    assert verdict.reason == ERROR_REASON
    assert verdict.inspected is False


def test_no_frames_is_uninspected() -> None:
    verdict = classify_frames([])
    assert verdict.rating is Rating.SAFE
    assert verdict.inspected is False


def test_to_dict() -> None:
    assert classify_frames([_reply("PG-13", "kiss")]).to_dict() == {
        "rating": "PG-13",
        "reason": "kiss",
        "isLegal": True,
        "inspected": True,
    }
