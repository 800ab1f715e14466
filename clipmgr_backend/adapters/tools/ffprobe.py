"""
FFprobe adapter for video metadata and container tags.
"""
import asyncio
import json
import os
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional

from ...config import FFPROBE_TIMEOUT
from ...shared import ErrorCode, Result, get_logger

logger = get_logger(__name__)


def _is_safe_executable_token(raw: str) -> bool:
    if not raw:
        return False
    if "\x00" in raw or "\n" in raw or "\r" in raw:
        return False
    return not any(ch in raw for ch in ("&", "|", ";", ">", "<"))


def resolve_tool(bin_name: str, expected_prefix: str) -> Optional[str]:
    """
    Resolve an executable from PATH or an explicit file path, and make sure it
    is the tool we expect rather than an arbitrary command string.
    """
    raw = (bin_name or "").strip()
    if not _is_safe_executable_token(raw):
        return None
    resolved = shutil.which(raw)
    if not resolved:
        try:
            candidate = Path(raw)
            if candidate.is_file():
                resolved = str(candidate.resolve(strict=True))
        except (OSError, RuntimeError, ValueError):
            return None
    if not resolved:
        return None
    return resolved if Path(resolved).name.lower().startswith(expected_prefix) else None


def validate_media_path(path: str) -> Result[str]:
    """Reject paths that could be read as options or break the argv."""
    raw = str(path or "").strip()
    if not raw:
        return Result.Err(ErrorCode.INVALID_INPUT, "Empty media path")
    if "\x00" in raw or "\n" in raw or "\r" in raw:
        return Result.Err(ErrorCode.INVALID_INPUT, "Invalid characters in media path")
    if raw.startswith("-"):
        return Result.Err(ErrorCode.INVALID_INPUT, "Media path must not start with '-'")
    return Result.Ok(raw)


class FFProbe:
    """
    FFprobe wrapper for video metadata extraction.

    Never raises exceptions - always returns Result.
    """

    def __init__(self, bin_name: str = "ffprobe", timeout: Optional[float] = None):
        self.bin = bin_name
        self.timeout = float(timeout) if timeout is not None else float(FFPROBE_TIMEOUT)
        self._resolved_bin: Optional[str] = resolve_tool(bin_name, "ffprobe")
        self._available = self._resolved_bin is not None

    def is_available(self) -> bool:
        return self._available

    def _validate_probe_path(self, path: str) -> Result[str]:
        return validate_media_path(path)

    def _build_ffprobe_cmd(self, path: str) -> List[str]:
        return [
            self._resolved_bin or self.bin,
            "-v", "error",
            "-print_format", "json",
            "-show_format",
            "-show_streams",
            path,
        ]

    def _run_ffprobe_cmd(self, cmd: List[str]) -> subprocess.CompletedProcess:
        return subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            check=False,
            timeout=self.timeout,
            shell=False,
            close_fds=os.name != "nt",
        )

    def read(self, path: str) -> Result[dict]:
        """
        Read video metadata using ffprobe.

        Returns:
            Result with a dict containing 'format', 'streams', 'video_stream'
            and 'audio_stream'
        """
        if not self._available:
            return Result.Err(ErrorCode.TOOL_MISSING, "ffprobe not found in PATH", quality="none")
        checked = self._validate_probe_path(path)
        if not checked.ok:
            return Result.Err(checked.code, checked.error or "Invalid path")

        try:
            process = self._run_ffprobe_cmd(self._build_ffprobe_cmd(checked.data or ""))
            return self._parse_ffprobe_output(process.stdout, process.stderr, process.returncode, path)
        except subprocess.TimeoutExpired:
            logger.error("ffprobe timeout for %s", path)
            return Result.Err(ErrorCode.TIMEOUT, f"ffprobe timeout after {self.timeout}s", quality="degraded")
        except json.JSONDecodeError as e:
            logger.error("ffprobe JSON parse error: %s", e)
            return Result.Err(ErrorCode.PARSE_ERROR, f"Failed to parse ffprobe output: {e}", quality="degraded")
        except Exception as e:
            logger.error("ffprobe unexpected error: %s", e)
            return Result.Err(ErrorCode.FFPROBE_ERROR, str(e), quality="degraded")

    async def _spawn_ffprobe_process(self, cmd: List[str]) -> asyncio.subprocess.Process:
        return await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            close_fds=os.name != "nt",
        )

    async def aread(self, path: str) -> Result[dict]:
        """Async variant of read() using asyncio subprocess execution."""
        if not self._available:
            return Result.Err(ErrorCode.TOOL_MISSING, "ffprobe not found in PATH", quality="none")
        checked = self._validate_probe_path(path)
        if not checked.ok:
            return Result.Err(checked.code, checked.error or "Invalid path")

        try:
            process = await self._spawn_ffprobe_process(self._build_ffprobe_cmd(checked.data or ""))
            try:
                stdout_b, stderr_b = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
            except asyncio.TimeoutError:
                try:
                    process.kill()
                except ProcessLookupError:
                    pass
                logger.error("ffprobe timeout for %s", path)
                return Result.Err(ErrorCode.TIMEOUT, f"ffprobe timeout after {self.timeout}s", quality="degraded")
            stdout = (stdout_b or b"").decode("utf-8", errors="replace")
            stderr = (stderr_b or b"").decode("utf-8", errors="replace")
            return self._parse_ffprobe_output(stdout, stderr, process.returncode, path)
        except json.JSONDecodeError as e:
            logger.error("ffprobe JSON parse error: %s", e)
            return Result.Err(ErrorCode.PARSE_ERROR, f"Failed to parse ffprobe output: {e}", quality="degraded")
        except Exception as e:
            logger.error("ffprobe unexpected error: %s", e)
            return Result.Err(ErrorCode.FFPROBE_ERROR, str(e), quality="degraded")

    def _parse_ffprobe_output(
        self,
        stdout: str,
        stderr: str,
        returncode: Optional[int],
        path: str,
    ) -> Result[dict]:
        if returncode != 0:
            stderr_msg = (stderr or "").strip()
            logger.warning("ffprobe error for %s: %s", path, stderr_msg)
            return Result.Err(ErrorCode.FFPROBE_ERROR, stderr_msg or "ffprobe command failed", quality="degraded")
        if not (stdout or "").strip():
            logger.warning("ffprobe returned empty output for %s", path)
            return Result.Err(ErrorCode.FFPROBE_ERROR, "No ffprobe output", quality="degraded")
        data = json.loads(stdout)
        if not isinstance(data, dict):
            return Result.Err(ErrorCode.PARSE_ERROR, "Invalid ffprobe output format", quality="degraded")
        streams = data.get("streams") or []
        return Result.Ok(
            {
                "format": data.get("format") or {},
                "streams": streams,
                "video_stream": self._find_stream(streams, "video"),
                "audio_stream": self._find_stream(streams, "audio"),
            },
            quality="full",
        )

    @staticmethod
    def _find_stream(streams: list, codec_type: str) -> dict:
        for stream in streams:
            if isinstance(stream, dict) and stream.get("codec_type") == codec_type:
                return stream
        return {}
