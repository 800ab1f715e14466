import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from clipmgr_backend.shared import ErrorCode, Result  # noqa: E402


class FakeGrabber:
    """Writes a placeholder frame at `dest`; indexes in `fail_on` fail instead."""

    def __init__(self, fail_on=()):
        self.fail_on = set(fail_on)
        self.calls = []
        self.workspaces = set()

    async def grab(self, video_path, timestamp, dest):
        self.calls.append((video_path, timestamp, dest))
        self.workspaces.add(dest.parent)
        if len(self.calls) in self.fail_on:
            return Result.Err(ErrorCode.FFMPEG_ERROR, "grab failed")
        dest.write_bytes(b"frame")
        return Result.Ok(dest)


class FakeClassifier:
    """Replies from a script, one per call; an Exception entry is raised."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    async def describe(self, image_path, instruction):
        self.calls.append((image_path, instruction))
        reply = self.replies[len(self.calls) - 1] if len(self.calls) <= len(self.replies) else None
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def fake_grabber():
    return FakeGrabber


@pytest.fixture
def fake_classifier():
    return FakeClassifier
