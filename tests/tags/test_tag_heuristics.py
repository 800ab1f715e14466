import pytest

from clipmgr_backend.features.tags import Tag, TagSource, aggregate_tags, filename_tags, metric_tags, workflow_tags
from clipmgr_backend.features.video import VideoBasicMetadata
from clipmgr_backend.features.workflow import ExtractedParameters


def _names(tags):
    return [tag.name for tag in tags]


def test_filename_tags() -> None:
    tags = filename_tags("/uploads/Sunset_Beach-walk 2024 v2.MP4")
    assert _names(tags) == ["sunset", "beach", "walk"]
    assert all(tag.confidence == 0.6 and tag.source is TagSource.FILENAME for tag in tags)


@pytest.mark.parametrize(
    "duration, expected",
    [(2.0, "short"), (4.99, "short"), (5.0, "medium"), (14.9, "medium"), (15.0, "long"), (120.0, "long")],
)
def test_duration_buckets(duration, expected) -> None:
    assert expected in _names(metric_tags(VideoBasicMetadata(duration=duration)))


def test_resolution_and_orientation() -> None:
    assert _names(metric_tags(VideoBasicMetadata(width=3840, height=2160))) == ["4k", "landscape"]
    assert _names(metric_tags(VideoBasicMetadata(width=1080, height=1920))) == ["hd", "portrait"]
    assert _names(metric_tags(VideoBasicMetadata(width=720, height=720))) == []


def test_format_tag_uses_first_alias() -> None:
    tags = metric_tags(VideoBasicMetadata(format="mov,mp4,m4a,3gp,3g2,mj2"))
    assert _names(tags) == ["mov"]
    assert tags[0].confidence == 1.0
    assert tags[0].source is TagSource.AUTO


def test_workflow_tags() -> None:
    params = ExtractedParameters(model="wan_t2v.safetensors")
    assert _names(workflow_tags(params, "text-to-video")) == ["text-to-video", "ai-generated"]
    assert workflow_tags(ExtractedParameters(), None) == []


def test_aggregate_last_writer_wins() -> None:
    merged = aggregate_tags(
        [Tag("beach", 0.6, TagSource.FILENAME)],
        [Tag("hd", 1.0, TagSource.AUTO)],
        [Tag("beach", 0.8, TagSource.AI)],
    )
    by_name = {tag.name: tag for tag in merged}
    assert len(merged) == 2
    assert by_name["beach"].confidence == 0.8
    assert by_name["beach"].source is TagSource.AI


def test_aggregate_later_lower_confidence_still_wins() -> None:
    merged = aggregate_tags([Tag("long", 1.0, TagSource.AUTO)], [Tag("long", 0.8, TagSource.AI)])
    assert merged == [Tag("long", 0.8, TagSource.AI)]


def test_tag_confidence_bounds() -> None:
    with pytest.raises(ValueError):
        Tag("x", 1.5, TagSource.AI)
    assert Tag("x", 0.8, TagSource.AI).to_dict() == {"name": "x", "confidence": 0.8, "source": "ai"}
