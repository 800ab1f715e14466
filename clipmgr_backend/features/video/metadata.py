"""Technical video metadata derived from an ffprobe payload."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ...utils import to_number


@dataclass(frozen=True)
class VideoBasicMetadata:
    duration: float | None = None
    file_size: int | None = None
    format: str | None = None
    video_codec: str | None = None
    width: int | None = None
    height: int | None = None
    frame_rate: str | None = None
    bitrate: int | None = None
    audio_codec: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "duration": self.duration,
            "fileSize": self.file_size,
            "format": self.format,
            "videoCodec": self.video_codec,
            "width": self.width,
            "height": self.height,
            "frameRate": self.frame_rate,
            "bitrate": self.bitrate,
            "audioCodec": self.audio_codec,
        }


def _str_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def _int_or_none(value: Any) -> int | None:
    number = to_number(value)
    return int(number) if number is not None else None


def _float_or_none(value: Any) -> float | None:
    number = to_number(value)
    return float(number) if number is not None else None


def basic_metadata_from_probe(probe: Any) -> VideoBasicMetadata:
    """ffprobe reports most numbers as strings; coerce what is present."""
    if not isinstance(probe, dict):
        return VideoBasicMetadata()
    fmt = probe.get("format") if isinstance(probe.get("format"), dict) else {}
    video = probe.get("video_stream") if isinstance(probe.get("video_stream"), dict) else {}
    audio = probe.get("audio_stream") if isinstance(probe.get("audio_stream"), dict) else {}
    return VideoBasicMetadata(
        duration=_float_or_none(fmt.get("duration")),
        file_size=_int_or_none(fmt.get("size")),
        format=_str_or_none(fmt.get("format_name")),
        video_codec=_str_or_none(video.get("codec_name")),
        width=_int_or_none(video.get("width")),
        height=_int_or_none(video.get("height")),
        frame_rate=_str_or_none(video.get("r_frame_rate")),
        bitrate=_int_or_none(fmt.get("bit_rate")),
        audio_codec=_str_or_none(audio.get("codec_name")),
    )


def format_tags_from_probe(probe: Any) -> dict[str, Any]:
    if not isinstance(probe, dict):
        return {}
    fmt = probe.get("format")
    tags = fmt.get("tags") if isinstance(fmt, dict) else None
    return tags if isinstance(tags, dict) else {}
