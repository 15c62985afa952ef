"""
Test Configuration
==================

Pytest fixtures and test doubles for VisionAnalyst.

No test touches the network, a camera, or the wall clock: fake video
sources, fake capture backends, scripted sessions and a recording sleep
stand in.
"""

from typing import Dict, List, Optional, Set, Tuple

import cv2
import numpy as np
import pytest

from vision_analyst.errors import DeviceAccessError, DeviceErrorKind, InferenceCallFailed, MediaDecodeError
from vision_analyst.inference.client import BaseSequentialSession
from vision_analyst.inference.mock import MockInferenceClient
from vision_analyst.media.capture import CaptureConstraints
from vision_analyst.media.frame import Frame
from vision_analyst.retry import RetryExecutor


# =============================================================================
# Time
# =============================================================================

class RecordingSleep:
    """Awaitable sleep that records requested delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def fast_retry(recording_sleep):
    """RetryExecutor with the default budget and no real waiting."""
    return RetryExecutor(max_retries=3, initial_delay_ms=1000, sleep=recording_sleep)


# =============================================================================
# Video
# =============================================================================

class FakeVideoSource:
    """VideoSource with a fixed duration; capture can be made to fail."""

    def __init__(self, duration: float, fail_at: Optional[float] = None) -> None:
        self._duration = duration
        self.fail_at = fail_at
        self.captured: List[float] = []
        self.release_count = 0

    @property
    def duration(self) -> float:
        return self._duration

    def capture_at(self, seconds: float) -> bytes:
        if self.fail_at is not None and seconds >= self.fail_at:
            raise MediaDecodeError(f"seek to {seconds} failed")
        self.captured.append(seconds)
        return f"frame@{seconds:.1f}".encode()

    def release(self) -> None:
        self.release_count += 1


class FakeOpener:
    """Opener returning a prepared FakeVideoSource."""

    def __init__(self, source: FakeVideoSource) -> None:
        self.source = source
        self.opened: List[str] = []

    def __call__(self, video) -> FakeVideoSource:
        self.opened.append(str(video))
        return self.source


def make_opener(duration: float, fail_at: Optional[float] = None) -> FakeOpener:
    return FakeOpener(FakeVideoSource(duration, fail_at=fail_at))


# =============================================================================
# Inference
# =============================================================================

class ScriptedSession(BaseSequentialSession):
    """Session whose per-frame failures are scripted by frame timestamp."""

    def __init__(
        self,
        failures: Optional[Dict[float, int]] = None,
        report: Optional[str] = "Final report",
        summary_failures: int = 0,
    ) -> None:
        super().__init__()
        self.failures = dict(failures or {})
        self.report = report
        self.summary_failures = summary_failures
        self.calls: List[Tuple[float, bool]] = []
        self.summary_prompts: List[str] = []

    async def _send_frame(self, frame: Frame, is_first: bool) -> Optional[str]:
        self.calls.append((frame.timestamp, is_first))
        remaining = self.failures.get(frame.timestamp, 0)
        if remaining:
            self.failures[frame.timestamp] = remaining - 1
            raise InferenceCallFailed(f"transient failure at {frame.timestamp}")
        return f"analysis of {frame.timestamp:.0f}s"

    async def _send_summary(self, summary_prompt: str) -> Optional[str]:
        self.summary_prompts.append(summary_prompt)
        if self.summary_failures:
            self.summary_failures -= 1
            raise InferenceCallFailed("transient summary failure")
        return self.report


class ScriptedClient:
    """InferenceClient handing out one prepared ScriptedSession."""

    def __init__(self, session: Optional[ScriptedSession] = None) -> None:
        self.session = session or ScriptedSession()
        self.sessions_opened = 0

    async def analyze_still(self, image: bytes, mime_type: str = "image/jpeg"):
        raise NotImplementedError

    def open_sequential_session(self) -> ScriptedSession:
        self.sessions_opened += 1
        return self.session


@pytest.fixture
def mock_client():
    return MockInferenceClient()


# =============================================================================
# Camera
# =============================================================================

class FakeCaptureHandle:
    """CaptureHandle serving a solid-color image."""

    def __init__(self, resolution: Tuple[int, int] = (1280, 720), fail_read: bool = False) -> None:
        self._resolution = resolution
        self.fail_read = fail_read
        self.reads = 0
        self.release_count = 0

    @property
    def resolution(self) -> Tuple[int, int]:
        return self._resolution

    def read_frame(self) -> np.ndarray:
        if self.fail_read:
            raise DeviceAccessError(DeviceErrorKind.BUSY, "read failed")
        self.reads += 1
        width, height = self._resolution
        return np.full((height, width, 3), 128, dtype=np.uint8)

    def release(self) -> None:
        self.release_count += 1


class FakeCapture:
    """
    MediaCapture with scripted outcomes.

    outcomes maps "hd" / "any" to a handle or a DeviceErrorKind.
    """

    def __init__(self, outcomes: Dict[str, object]) -> None:
        self.outcomes = outcomes
        self.requests: List[CaptureConstraints] = []

    def acquire(self, constraints: CaptureConstraints):
        self.requests.append(constraints)
        key = "any" if constraints.is_unconstrained else "hd"
        outcome = self.outcomes[key]
        if isinstance(outcome, DeviceErrorKind):
            raise DeviceAccessError(outcome, f"{key} acquisition failed: {outcome.value}")
        return outcome


# =============================================================================
# Images
# =============================================================================

@pytest.fixture
def sample_image() -> np.ndarray:
    """64x48 BGR test image with a gradient."""
    image = np.zeros((48, 64, 3), dtype=np.uint8)
    image[:, :, 1] = np.linspace(0, 255, 64, dtype=np.uint8)[None, :]
    return image


@pytest.fixture
def sample_jpeg(sample_image) -> bytes:
    ok, encoded = cv2.imencode(".jpg", sample_image)
    assert ok
    return encoded.tobytes()


@pytest.fixture
def sample_png(sample_image) -> bytes:
    ok, encoded = cv2.imencode(".png", sample_image)
    assert ok
    return encoded.tobytes()


@pytest.fixture
def still_payload() -> dict:
    """A valid still-image response body."""
    return {
        "objects": [
            {"name": "cat", "confidence": "High", "box_2d": [100, 200, 400, 600]},
            {"name": "dog", "confidence": "Medium", "box_2d": [500, 100, 900, 450]},
            {"name": "cat", "confidence": "Low", "box_2d": [0, 0, 50, 50]},
        ],
        "narrative": "Two cats and a dog on a sofa.",
    }
