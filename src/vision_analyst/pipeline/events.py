"""
Analysis Event Channel
======================

Ordered, async-safe channel from the orchestrator to its consumer.

The orchestrator publishes events in the exact order things happen; the
consumer either polls (get / get_nowait) or iterates until the terminal
event arrives.

Event Order (successful run):
    RunStateChanged(SAMPLING)
    SamplingProgressed * n
    RunStateChanged(ANALYZING)
    FrameAnalyzed * n
    RunStateChanged(COMPLETE)
    AnalysisCompleted            <- terminal

Failed runs end with RunStateChanged(FAILED) then AnalysisFailed.

Design Rules:
    - Unbounded: events are never dropped or reordered
    - Nothing is published after the terminal event
    - Does NOT interpret events

Example:
    channel = AnalysisEventChannel()
    async for event in channel:
        print(event)
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Optional, Tuple, Union

from vision_analyst.models.analysis import FrameAnalysis, SequenceAnalysisResult
from vision_analyst.models.state import RunState


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RunStateChanged:
    """The run moved to a new state."""

    run_id: str
    previous: RunState
    state: RunState
    terminal: bool = False


@dataclass(frozen=True, slots=True)
class SamplingProgressed:
    """Sampling progress as a whole percentage."""

    run_id: str
    percent: int
    terminal: bool = False


@dataclass(frozen=True, slots=True)
class FrameAnalyzed:
    """One frame finished analysis."""

    run_id: str
    index: int
    analysis: FrameAnalysis
    terminal: bool = False


@dataclass(frozen=True, slots=True)
class AnalysisCompleted:
    """The run finished with a final report."""

    run_id: str
    result: SequenceAnalysisResult
    terminal: bool = True


@dataclass(frozen=True, slots=True)
class AnalysisFailed:
    """The run stopped on a terminal error. Frames already analysed are kept."""

    run_id: str
    error: BaseException
    frames: Tuple[FrameAnalysis, ...]
    terminal: bool = True


AnalysisEvent = Union[
    RunStateChanged,
    SamplingProgressed,
    FrameAnalyzed,
    AnalysisCompleted,
    AnalysisFailed,
]


class AnalysisEventChannel:
    """
    Ordered event queue for one analysis run.

    Attributes:
        closed: Whether the terminal event has been published
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[AnalysisEvent] = asyncio.Queue()
        self._closed: bool = False
        self._published: int = 0

    @property
    def closed(self) -> bool:
        """Whether the terminal event has been published."""
        return self._closed

    @property
    def size(self) -> int:
        """Events waiting to be consumed."""
        return self._queue.qsize()

    def publish(self, event: AnalysisEvent) -> None:
        """
        Append an event.

        Raises:
            RuntimeError: If the terminal event was already published
        """
        if self._closed:
            raise RuntimeError(f"Channel closed; cannot publish {type(event).__name__}")

        self._queue.put_nowait(event)
        self._published += 1
        if event.terminal:
            self._closed = True

    async def get(self, timeout: Optional[float] = None) -> Optional[AnalysisEvent]:
        """
        Get the next event.

        Args:
            timeout: Maximum seconds to wait. None = wait forever.

        Returns:
            Next event, or None if timeout occurred.
        """
        try:
            if timeout is not None:
                return await asyncio.wait_for(self._queue.get(), timeout=timeout)
            return await self._queue.get()
        except asyncio.TimeoutError:
            return None

    def get_nowait(self) -> Optional[AnalysisEvent]:
        """Get the next event if one is waiting, else None."""
        try:
            return self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None

    async def __aiter__(self) -> AsyncIterator[AnalysisEvent]:
        while True:
            event = await self._queue.get()
            yield event
            if event.terminal:
                return

    def metrics(self) -> dict:
        """Get channel metrics for observability."""
        return {
            "size": self.size,
            "published": self._published,
            "closed": self._closed,
        }
