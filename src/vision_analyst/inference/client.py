"""
Inference Client Contract
=========================

Protocol for vision-language inference backends.

Contract:
    - analyze_still(image) -> StillAnalysisResult
        single request/response, stateless across calls
    - open_sequential_session() -> SequentialSession
        a stateful conversation that accumulates context frame by frame

Session Rules:
    - analyze_next calls are issued in timestamp order
    - calls never overlap (context accumulates linearly)
    - finalize is called once, after the last frame
    - a failed call leaves the session where it was, so it may be retried

BaseSequentialSession enforces these rules; backends only implement the
actual round trips.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional, Protocol

from vision_analyst.errors import SessionStateError
from vision_analyst.media.frame import Frame
from vision_analyst.models.detection import StillAnalysisResult


logger = logging.getLogger(__name__)


EMPTY_FRAME_TEXT = "No analysis provided."
EMPTY_REPORT_TEXT = "Could not generate final report."


class SequentialSession(Protocol):
    """
    Protocol for a stateful multi-turn analysis session.
    """

    async def analyze_next(self, frame: Frame, is_first: bool) -> str:
        """
        Analyse the next frame in the sequence.

        Args:
            frame: Frame to analyse (not earlier than the previous one)
            is_first: Whether this is the first frame of the session

        Returns:
            Analysis text for this frame
        """
        ...

    async def finalize(self, summary_prompt: str) -> str:
        """
        Produce the final report over every frame analysed.

        Args:
            summary_prompt: Instruction for the report

        Returns:
            Report text
        """
        ...


class InferenceClient(Protocol):
    """
    Protocol for inference backends.

    This interface is implemented by:
        - MockInferenceClient (offline, deterministic)
        - GeminiInferenceClient (production)
    """

    async def analyze_still(self, image: bytes, mime_type: str = "image/jpeg") -> StillAnalysisResult:
        """
        Detect objects and narrate a still image.

        Raises:
            InferenceCallFailed: If the request fails
            MalformedResponse: If the response fails validation
        """
        ...

    def open_sequential_session(self) -> SequentialSession:
        """Start a new sequential session with empty context."""
        ...


class BaseSequentialSession(ABC):
    """
    Ordering and exclusivity guard shared by session implementations.

    Subclasses implement _send_frame and _send_summary.

    Attributes:
        frames_analyzed: Number of frames successfully analysed
        finalized: Whether finalize has completed
    """

    def __init__(self) -> None:
        self._in_flight: bool = False
        self._last_timestamp: Optional[float] = None
        self.frames_analyzed: int = 0
        self.finalized: bool = False

    async def analyze_next(self, frame: Frame, is_first: bool) -> str:
        if self.finalized:
            raise SessionStateError("Session already finalized")
        if is_first != (self.frames_analyzed == 0):
            raise SessionStateError(
                f"is_first={is_first} but {self.frames_analyzed} frame(s) already analysed"
            )
        if self._last_timestamp is not None and frame.timestamp < self._last_timestamp:
            raise SessionStateError(
                f"Frame at {frame.timestamp:.2f}s issued after {self._last_timestamp:.2f}s"
            )

        self._enter()
        try:
            text = await self._send_frame(frame, is_first)
        finally:
            self._in_flight = False

        self._last_timestamp = frame.timestamp
        self.frames_analyzed += 1

        return text.strip() if text and text.strip() else EMPTY_FRAME_TEXT

    async def finalize(self, summary_prompt: str) -> str:
        if self.finalized:
            raise SessionStateError("Session already finalized")
        if self.frames_analyzed == 0:
            raise SessionStateError("Cannot finalize a session with no analysed frames")

        self._enter()
        try:
            text = await self._send_summary(summary_prompt)
        finally:
            self._in_flight = False

        self.finalized = True
        return text.strip() if text and text.strip() else EMPTY_REPORT_TEXT

    def _enter(self) -> None:
        if self._in_flight:
            raise SessionStateError("Concurrent calls on a sequential session are not allowed")
        self._in_flight = True

    @abstractmethod
    async def _send_frame(self, frame: Frame, is_first: bool) -> Optional[str]:
        """Send one frame turn and return the raw response text."""
        ...

    @abstractmethod
    async def _send_summary(self, summary_prompt: str) -> Optional[str]:
        """Send the summary turn and return the raw response text."""
        ...
