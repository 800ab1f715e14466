"""External tool adapters."""
from .ffmpeg import FFmpegFrameGrabber, FrameWorkspace, frame_timestamps
from .ffprobe import FFProbe

__all__ = ["FFProbe", "FFmpegFrameGrabber", "FrameWorkspace", "frame_timestamps"]
