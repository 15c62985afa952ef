"""
Sequential Analysis Orchestrator
================================

LangGraph state machine driving one video analysis run.

LangGraph is used for CONTROL FLOW only. Each node does one step; routing
between steps is explicit and deterministic.

Graph Structure:
    START → sample_frames → analyze_frame ⟲ → finalize_report → END
    Any node that records an error routes to fail → END.

Run Rules:
    - One sequential session per run, frames sent strictly in order
    - Every inference call is retried individually
    - Each FrameAnalysis is delivered before the next frame is sent
    - Any terminal error moves the run to FAILED; frames already delivered
      stay visible, the final report is never produced
    - The terminal error is re-raised to the caller unchanged

Example:
    orchestrator = SequentialAnalysisOrchestrator(client=MockInferenceClient())
    result = await orchestrator.analyze("clip.mp4", on_frame_analyzed=print)
"""

import logging
import time
import uuid
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, TypedDict, Union

from langgraph.graph import END, StateGraph

from vision_analyst.errors import EmptyFrameSetError, InvalidTransitionError
from vision_analyst.inference.client import InferenceClient, SequentialSession
from vision_analyst.inference.prompts import SUMMARY_PROMPT
from vision_analyst.media.frame import Frame
from vision_analyst.media.sampler import FrameSampler
from vision_analyst.media.timecode import format_timestamp
from vision_analyst.models.analysis import FrameAnalysis, SequenceAnalysisResult
from vision_analyst.models.state import RunState
from vision_analyst.pipeline.events import (
    AnalysisCompleted,
    AnalysisEventChannel,
    AnalysisFailed,
    FrameAnalyzed,
    RunStateChanged,
    SamplingProgressed,
)
from vision_analyst.pipeline.policy import default_retry_executor
from vision_analyst.pipeline.transitions import advance
from vision_analyst.retry import RetryAttempt, RetryExecutor


logger = logging.getLogger(__name__)


ProgressCallback = Callable[[int], None]
FrameCallback = Callable[[FrameAnalysis], None]


class RunMetrics:
    """Metrics for one analysis run."""

    __slots__ = (
        "frames_sampled",
        "frames_analyzed",
        "retries",
        "started_at",
        "finished_at",
    )

    def __init__(self) -> None:
        self.frames_sampled: int = 0
        self.frames_analyzed: int = 0
        self.retries: int = 0
        self.started_at: Optional[float] = None
        self.finished_at: Optional[float] = None

    @property
    def elapsed_seconds(self) -> float:
        if self.started_at is None:
            return 0.0
        end = self.finished_at if self.finished_at is not None else time.time()
        return end - self.started_at

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "frames_sampled": self.frames_sampled,
            "frames_analyzed": self.frames_analyzed,
            "retries": self.retries,
            "elapsed_seconds": round(self.elapsed_seconds, 3),
        }


class AnalysisRun:
    """
    State of one video analysis run.

    A run is used once. Its frames grow as analysis proceeds and are never
    retracted; final_report and result are set only on COMPLETE.

    Attributes:
        run_id: Short identifier used in logs and events
        state: Current RunState
        error: Terminal error (FAILED runs only)
        events: Ordered event channel for this run
        metrics: Run metrics
    """

    def __init__(self, run_id: Optional[str] = None) -> None:
        self.run_id = run_id or uuid.uuid4().hex[:8]
        self.state: RunState = RunState.IDLE
        self.error: Optional[BaseException] = None
        self.result: Optional[SequenceAnalysisResult] = None
        self.events = AnalysisEventChannel()
        self.metrics = RunMetrics()
        self._frames: List[FrameAnalysis] = []

    @property
    def frames(self) -> Tuple[FrameAnalysis, ...]:
        """Frame analyses delivered so far, in order."""
        return tuple(self._frames)

    @property
    def final_report(self) -> Optional[str]:
        """Final report, present only once the run is COMPLETE."""
        return self.result.final_report if self.result is not None else None

    def transition(self, target: RunState) -> None:
        previous = self.state
        self.state = advance(previous, target, self.run_id)
        self.events.publish(RunStateChanged(run_id=self.run_id, previous=previous, state=target))

    def add_frame(self, analysis: FrameAnalysis) -> None:
        self._frames.append(analysis)
        self.metrics.frames_analyzed += 1
        self.events.publish(FrameAnalyzed(
            run_id=self.run_id,
            index=len(self._frames) - 1,
            analysis=analysis,
        ))

    def record_retry(self, attempt: RetryAttempt) -> None:
        self.metrics.retries += 1

    def complete(self, result: SequenceAnalysisResult) -> None:
        self.transition(RunState.COMPLETE)
        self.result = result
        self.metrics.finished_at = time.time()
        self.events.publish(AnalysisCompleted(run_id=self.run_id, result=result))

    def fail(self, error: BaseException) -> None:
        self.transition(RunState.FAILED)
        self.error = error
        self.metrics.finished_at = time.time()
        self.events.publish(AnalysisFailed(
            run_id=self.run_id,
            error=error,
            frames=self.frames,
        ))

    def __repr__(self) -> str:
        return f"AnalysisRun({self.run_id}, {self.state.value}, frames={len(self._frames)})"


class AnalysisGraphState(TypedDict):
    """
    State passed through the analysis graph.

    Attributes:
        run: The run being driven
        video: Video source path
        on_sampling_progress: Optional progress observer
        on_frame_analyzed: Optional per-frame observer
        frames: Sampled frames
        cursor: Index of the next frame to analyse
        session: Sequential session for this run
        error: Terminal error, if any
    """
    run: AnalysisRun
    video: Union[str, Path]
    on_sampling_progress: Optional[ProgressCallback]
    on_frame_analyzed: Optional[FrameCallback]
    frames: List[Frame]
    cursor: int
    session: Optional[SequentialSession]
    error: Optional[BaseException]


class SequentialAnalysisOrchestrator:
    """
    Drives sampled frames through one sequential inference session.

    Attributes:
        client: Inference backend
        sampler: Frame sampler
        retry: Retry executor wrapping every inference call
        summary_prompt: Instruction for the final report
    """

    def __init__(
        self,
        client: InferenceClient,
        sampler: Optional[FrameSampler] = None,
        retry: Optional[RetryExecutor] = None,
        summary_prompt: str = SUMMARY_PROMPT,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            client: Inference backend
            sampler: Frame sampler (default policy if None)
            retry: Retry executor (default budget and pipeline policy if None)
            summary_prompt: Instruction for the final report
        """
        self.client = client
        self.sampler = sampler or FrameSampler()
        self.retry = retry or default_retry_executor()
        self.summary_prompt = summary_prompt

        self._graph = self._build_graph()
        self._runs_started: int = 0
        self._runs_completed: int = 0
        self._runs_failed: int = 0

        logger.info(
            f"SequentialAnalysisOrchestrator initialized: "
            f"interval={self.sampler.interval_seconds}s, max_frames={self.sampler.max_frames}"
        )

    def _build_graph(self) -> Any:
        """Build the LangGraph workflow."""
        workflow = StateGraph(AnalysisGraphState)

        workflow.add_node("sample_frames", self._sample_frames_node)
        workflow.add_node("analyze_frame", self._analyze_frame_node)
        workflow.add_node("finalize_report", self._finalize_report_node)
        workflow.add_node("fail", self._fail_node)

        workflow.set_entry_point("sample_frames")
        workflow.add_conditional_edges(
            "sample_frames",
            self._route_after_sampling,
            {"analyze_frame": "analyze_frame", "fail": "fail"},
        )
        workflow.add_conditional_edges(
            "analyze_frame",
            self._route_after_frame,
            {
                "analyze_frame": "analyze_frame",
                "finalize_report": "finalize_report",
                "fail": "fail",
            },
        )
        workflow.add_conditional_edges(
            "finalize_report",
            self._route_after_finalize,
            {"end": END, "fail": "fail"},
        )
        workflow.add_edge("fail", END)

        return workflow.compile()

    # -------------------------------------------------------------------------
    # Nodes
    # -------------------------------------------------------------------------

    async def _sample_frames_node(self, state: AnalysisGraphState) -> Dict[str, Any]:
        """Sample the video and open the session."""
        run = state["run"]
        video = state["video"]
        on_progress = state["on_sampling_progress"]

        def report_progress(percent: int) -> None:
            run.events.publish(SamplingProgressed(run_id=run.run_id, percent=percent))
            if on_progress is not None:
                on_progress(percent)

        try:
            frames = await self.sampler.sample(video, on_progress=report_progress)
            if not frames:
                raise EmptyFrameSetError(f"No frames could be sampled from {video}")
        except Exception as e:
            return {"error": e}

        run.metrics.frames_sampled = len(frames)

        try:
            run.transition(RunState.ANALYZING)
            session = self.client.open_sequential_session()
        except Exception as e:
            return {"error": e}

        return {"frames": frames, "cursor": 0, "session": session}

    async def _analyze_frame_node(self, state: AnalysisGraphState) -> Dict[str, Any]:
        """Send the next frame through the session."""
        run = state["run"]
        session = state["session"]
        cursor = state["cursor"]
        frame = state["frames"][cursor]
        is_first = cursor == 0
        timestamp = format_timestamp(frame.timestamp)

        try:
            text = await self.retry.execute(
                lambda: session.analyze_next(frame, is_first),
                description=f"Run {run.run_id} frame {timestamp}",
                on_retry=run.record_retry,
            )
            analysis = FrameAnalysis(
                timestamp=timestamp,
                offset_seconds=frame.timestamp,
                analysis_text=text,
            )
            run.add_frame(analysis)
            logger.debug(f"Run {run.run_id}: frame {cursor + 1}/{len(state['frames'])} at {timestamp} analysed")

            on_frame_analyzed = state["on_frame_analyzed"]
            if on_frame_analyzed is not None:
                on_frame_analyzed(analysis)
        except Exception as e:
            return {"error": e}

        return {"cursor": cursor + 1}

    async def _finalize_report_node(self, state: AnalysisGraphState) -> Dict[str, Any]:
        """Ask the session for the final report and complete the run."""
        run = state["run"]
        session = state["session"]

        try:
            report = await self.retry.execute(
                lambda: session.finalize(self.summary_prompt),
                description=f"Run {run.run_id} final report",
                on_retry=run.record_retry,
            )
            result = SequenceAnalysisResult(frames=run.frames, final_report=report)
            run.complete(result)
        except Exception as e:
            return {"error": e}

        return {"frames": [], "session": None}

    async def _fail_node(self, state: AnalysisGraphState) -> Dict[str, Any]:
        """Move the run to FAILED."""
        run = state["run"]
        run.fail(state["error"])
        return {"frames": [], "session": None}

    # -------------------------------------------------------------------------
    # Routing
    # -------------------------------------------------------------------------

    def _route_after_sampling(self, state: AnalysisGraphState) -> str:
        return "fail" if state["error"] is not None else "analyze_frame"

    def _route_after_frame(self, state: AnalysisGraphState) -> str:
        if state["error"] is not None:
            return "fail"
        if state["cursor"] < len(state["frames"]):
            return "analyze_frame"
        return "finalize_report"

    def _route_after_finalize(self, state: AnalysisGraphState) -> str:
        return "fail" if state["error"] is not None else "end"

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def new_run(self) -> AnalysisRun:
        """Create a fresh IDLE run (subscribe to its events before analyze)."""
        return AnalysisRun()

    async def analyze(
        self,
        video: Union[str, Path],
        on_sampling_progress: Optional[ProgressCallback] = None,
        on_frame_analyzed: Optional[FrameCallback] = None,
        run: Optional[AnalysisRun] = None,
    ) -> SequenceAnalysisResult:
        """
        Analyse a video end to end.

        Args:
            video: Video file path
            on_sampling_progress: Called with a percentage after each sampled frame
            on_frame_analyzed: Called with each FrameAnalysis, in order
            run: IDLE run to drive (a new one is created if None)

        Returns:
            SequenceAnalysisResult with every frame and the final report

        Raises:
            InvalidTransitionError: If run is not IDLE
            EmptyFrameSetError: If sampling yields no frames
            Whatever error ended the run, unchanged
        """
        run = run or self.new_run()
        if run.state is not RunState.IDLE:
            raise InvalidTransitionError(
                f"Run {run.run_id} is {run.state.value}; start a new run instead"
            )

        self._runs_started += 1
        run.metrics.started_at = time.time()
        run.transition(RunState.SAMPLING)

        initial: AnalysisGraphState = {
            "run": run,
            "video": video,
            "on_sampling_progress": on_sampling_progress,
            "on_frame_analyzed": on_frame_analyzed,
            "frames": [],
            "cursor": 0,
            "session": None,
            "error": None,
        }

        # One graph step per frame, plus sampling, finalize and fail
        final_state = await self._graph.ainvoke(
            initial,
            config={"recursion_limit": self.sampler.max_frames + 10},
        )

        error = final_state["error"]
        if error is not None:
            self._runs_failed += 1
            logger.warning(
                f"Run {run.run_id} failed after {run.metrics.frames_analyzed} frame(s): "
                f"{type(error).__name__}: {error}"
            )
            raise error

        self._runs_completed += 1
        logger.info(
            f"Run {run.run_id} complete: {run.metrics.frames_analyzed} frame(s), "
            f"{run.metrics.retries} retr(ies), {run.metrics.elapsed_seconds:.2f}s"
        )
        return run.result

    def get_metrics(self) -> Dict[str, Any]:
        """Get orchestrator metrics for observability."""
        return {
            "runs_started": self._runs_started,
            "runs_completed": self._runs_completed,
            "runs_failed": self._runs_failed,
            "retry": self.retry.metrics.to_dict(),
        }
