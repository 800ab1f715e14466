"""
FFmpeg adapter for single-frame extraction.

ffmpeg exiting is not proof that the JPEG is readable yet, so every grab
waits until Pillow can open and verify the file before returning it.
"""
from __future__ import annotations

import asyncio
import os
import tempfile
from pathlib import Path
from typing import Optional

from PIL import Image, UnidentifiedImageError

from ...config import FFMPEG_TIMEOUT, FRAME_READY_POLL, FRAME_READY_TIMEOUT, FRAME_WIDTH
from ...shared import ErrorCode, Result, get_logger
from .ffprobe import resolve_tool, validate_media_path

logger = get_logger(__name__)


def frame_timestamps(duration: Optional[float], count: int) -> list[float]:
    """Evenly spaced timestamps strictly inside the clip."""
    try:
        total = float(duration or 0.0)
    except (TypeError, ValueError):
        return []
    if total <= 0 or count <= 0:
        return []
    interval = total / (count + 1)
    return [interval * i for i in range(1, count + 1)]


def is_frame_readable(path: Path) -> bool:
    try:
        if not path.is_file() or path.stat().st_size == 0:
            return False
        with Image.open(path) as img:
            img.verify()
        return True
    except (OSError, UnidentifiedImageError, SyntaxError, ValueError):
        return False


async def wait_until_readable(
    path: Path,
    timeout: float = FRAME_READY_TIMEOUT,
    poll_interval: float = FRAME_READY_POLL,
) -> bool:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + max(0.0, timeout)
    while True:
        if await asyncio.to_thread(is_frame_readable, path):
            return True
        if loop.time() >= deadline:
            return False
        await asyncio.sleep(poll_interval)


class FrameWorkspace:
    """
    Temporary directory holding one video's frames for one run.

    Removed on exit whatever happened inside; removal errors are only logged.
    """

    def __init__(self, prefix: str = "clipmgr-frames-"):
        self._prefix = prefix
        self.path: Optional[Path] = None

    async def __aenter__(self) -> "FrameWorkspace":
        self.path = Path(tempfile.mkdtemp(prefix=self._prefix))
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.cleanup()

    def frame_path(self, index: int) -> Path:
        if self.path is None:
            raise RuntimeError("FrameWorkspace used outside its context")
        return self.path / f"frame_{index}.jpg"

    def cleanup(self) -> None:
        if self.path is None:
            return
        for item in list(self.path.glob("*")):
            try:
                item.unlink()
            except OSError as exc:
                logger.debug("Could not delete frame %s: %s", item, exc)
        try:
            self.path.rmdir()
        except OSError as exc:
            logger.debug("Could not delete frame directory %s: %s", self.path, exc)
        self.path = None


class FFmpegFrameGrabber:
    """
    Extracts one still frame at a time from a video.

    Never raises exceptions - always returns Result.
    """

    def __init__(self, bin_name: str = "ffmpeg", timeout: Optional[float] = None, width: int = FRAME_WIDTH):
        self.bin = bin_name
        self.timeout = float(timeout) if timeout is not None else float(FFMPEG_TIMEOUT)
        self.width = int(width)
        self._resolved_bin: Optional[str] = resolve_tool(bin_name, "ffmpeg")
        self._available = self._resolved_bin is not None

    def is_available(self) -> bool:
        return self._available

    def _build_cmd(self, video_path: str, timestamp: float, dest: Path) -> list[str]:
        return [
            self._resolved_bin or self.bin,
            "-v", "error",
            "-y",
            "-ss", f"{max(0.0, float(timestamp)):.3f}",
            "-i", video_path,
            "-frames:v", "1",
            "-vf", f"scale={self.width}:-2",
            str(dest),
        ]

    async def _spawn(self, cmd: list[str]) -> asyncio.subprocess.Process:
        return await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
            close_fds=os.name != "nt",
        )

    async def grab(self, video_path: str, timestamp: float, dest: Path) -> Result[Path]:
        if not self._available:
            return Result.Err(ErrorCode.TOOL_MISSING, "ffmpeg not found in PATH")
        checked = validate_media_path(video_path)
        if not checked.ok:
            return Result.Err(checked.code, checked.error or "Invalid path")

        try:
            process = await self._spawn(self._build_cmd(checked.data or "", timestamp, dest))
            try:
                _, stderr_b = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
            except asyncio.TimeoutError:
                try:
                    process.kill()
                except ProcessLookupError:
                    pass
                logger.error("ffmpeg timeout grabbing frame at %.2fs", timestamp)
                return Result.Err(ErrorCode.TIMEOUT, f"ffmpeg timeout after {self.timeout}s")
        except Exception as exc:
            logger.error("ffmpeg unexpected error: %s", exc)
            return Result.Err(ErrorCode.FFMPEG_ERROR, str(exc))

        if process.returncode != 0:
            stderr = (stderr_b or b"").decode("utf-8", errors="replace").strip()
            logger.warning("ffmpeg failed at %.2fs: %s", timestamp, stderr)
            return Result.Err(ErrorCode.FFMPEG_ERROR, stderr or "ffmpeg command failed")

        if not await wait_until_readable(dest):
            return Result.Err(ErrorCode.TIMEOUT, "Extracted frame never became readable")
        return Result.Ok(dest)
