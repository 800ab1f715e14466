"""Video metadata and frame sampling helpers."""
from .frames import sample_frame_replies
from .metadata import VideoBasicMetadata, basic_metadata_from_probe, format_tags_from_probe

__all__ = ["VideoBasicMetadata", "basic_metadata_from_probe", "format_tags_from_probe", "sample_frame_replies"]
