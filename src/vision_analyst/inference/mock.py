"""
Mock Inference Client
=====================

Deterministic offline backend for development and testing.

Outputs are derived from a hash of the image bytes, so the same image always
yields the same objects, and sessions narrate frames by position. No network
calls, no image decoding.
"""

import hashlib
import logging
from typing import List, Optional

from vision_analyst.inference.client import BaseSequentialSession
from vision_analyst.media.frame import Frame
from vision_analyst.media.timecode import format_timestamp
from vision_analyst.models.detection import Confidence, DetectedObject, StillAnalysisResult


logger = logging.getLogger(__name__)


MOCK_VOCABULARY = ("person", "car", "dog", "cat", "bicycle", "chair", "cup", "tree")
_CONFIDENCES = (Confidence.HIGH, Confidence.MEDIUM, Confidence.LOW)


def _digest(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


class MockSequentialSession(BaseSequentialSession):
    """Session that narrates frames by position and echoes a summary."""

    def __init__(self) -> None:
        super().__init__()
        self.timestamps: List[str] = []

    async def _send_frame(self, frame: Frame, is_first: bool) -> Optional[str]:
        timestamp = format_timestamp(frame.timestamp)
        self.timestamps.append(timestamp)
        label = MOCK_VOCABULARY[_digest(frame.pixels)[0] % len(MOCK_VOCABULARY)]
        if is_first:
            return f"Frame at {timestamp}: initial scene shows a {label}."
        return f"Frame at {timestamp}: a {label} is visible; scene changed since {self.timestamps[-2]}."

    async def _send_summary(self, summary_prompt: str) -> Optional[str]:
        return (
            f"Video Analysis Report: {len(self.timestamps)} frame(s) analysed "
            f"from {self.timestamps[0]} to {self.timestamps[-1]}."
        )


class MockInferenceClient:
    """
    Deterministic mock inference backend.

    Attributes:
        max_objects: Upper bound on objects per still image
    """

    def __init__(self, max_objects: int = 4) -> None:
        self.max_objects = max(1, max_objects)
        self.still_calls: int = 0
        self.sessions_opened: int = 0

        logger.info(f"MockInferenceClient initialized: max_objects={self.max_objects}")

    async def analyze_still(self, image: bytes, mime_type: str = "image/jpeg") -> StillAnalysisResult:
        """Derive a stable set of objects from the image bytes."""
        self.still_calls += 1
        digest = _digest(image)
        count = 1 + digest[0] % self.max_objects

        objects = []
        for i in range(count):
            seed = digest[1 + i * 4: 5 + i * 4]
            ymin = seed[0] * 500 // 255
            xmin = seed[1] * 500 // 255
            objects.append(DetectedObject(
                name=MOCK_VOCABULARY[seed[2] % len(MOCK_VOCABULARY)],
                confidence=_CONFIDENCES[seed[3] % len(_CONFIDENCES)],
                box=(ymin, xmin, ymin + 250, xmin + 250),
            ))

        names = ", ".join(obj.name for obj in objects)
        return StillAnalysisResult(
            objects=tuple(objects),
            narrative=f"The image contains {count} notable object(s): {names}.",
        )

    def open_sequential_session(self) -> MockSequentialSession:
        self.sessions_opened += 1
        return MockSequentialSession()
