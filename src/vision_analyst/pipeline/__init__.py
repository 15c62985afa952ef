"""
Pipeline Module
===============

Analysis orchestration for VisionAnalyst.

Components:
    - SequentialAnalysisOrchestrator: Video → frames → session → report
    - StillImageAnalyzer: Image / file / camera snapshot → annotated still
    - AnalysisEventChannel: Ordered events from a run to its consumer
    - build_retry_policy: Which errors are retried

Example:
    from vision_analyst.config import settings
    from vision_analyst.pipeline import create_orchestrator

    orchestrator = create_orchestrator(settings)
    result = await orchestrator.analyze("clip.mp4")
"""

from typing import Optional

from vision_analyst.config import Settings
from vision_analyst.inference import InferenceClient, create_inference_client
from vision_analyst.media.sampler import FrameSampler
from vision_analyst.overlay.projector import AnnotationProjector
from vision_analyst.pipeline.events import (
    AnalysisCompleted,
    AnalysisEvent,
    AnalysisEventChannel,
    AnalysisFailed,
    FrameAnalyzed,
    RunStateChanged,
    SamplingProgressed,
)
from vision_analyst.pipeline.orchestrator import (
    AnalysisRun,
    RunMetrics,
    SequentialAnalysisOrchestrator,
)
from vision_analyst.pipeline.policy import build_retry_policy
from vision_analyst.pipeline.still import AnnotatedStill, StillImageAnalyzer
from vision_analyst.pipeline.transitions import ALLOWED_TRANSITIONS, advance, can_transition
from vision_analyst.retry import RetryExecutor


def create_retry_executor(settings: Settings) -> RetryExecutor:
    """RetryExecutor configured from settings with the pipeline policy."""
    return RetryExecutor(
        max_retries=settings.retry.max_retries,
        initial_delay_ms=settings.retry.initial_delay_ms,
        is_retriable=build_retry_policy(settings.retry.retry_malformed_responses),
    )


def create_orchestrator(
    settings: Settings,
    client: Optional[InferenceClient] = None,
) -> SequentialAnalysisOrchestrator:
    """
    Create a video orchestrator from configuration.

    Args:
        settings: Loaded settings
        client: Inference backend (created from settings if None)
    """
    sampler = FrameSampler(
        interval_seconds=settings.sampling.interval_seconds,
        max_frames=settings.sampling.max_frames,
        jpeg_quality=settings.sampling.jpeg_quality,
    )
    return SequentialAnalysisOrchestrator(
        client=client or create_inference_client(settings),
        sampler=sampler,
        retry=create_retry_executor(settings),
    )


def create_still_analyzer(
    settings: Settings,
    client: Optional[InferenceClient] = None,
) -> StillImageAnalyzer:
    """
    Create a still-image analyzer from configuration.

    Args:
        settings: Loaded settings
        client: Inference backend (created from settings if None)
    """
    return StillImageAnalyzer(
        client=client or create_inference_client(settings),
        retry=create_retry_executor(settings),
        projector=AnnotationProjector(settings.overlay.palette),
    )


__all__ = [
    "SequentialAnalysisOrchestrator",
    "AnalysisRun",
    "RunMetrics",
    "StillImageAnalyzer",
    "AnnotatedStill",
    "AnalysisEventChannel",
    "AnalysisEvent",
    "RunStateChanged",
    "SamplingProgressed",
    "FrameAnalyzed",
    "AnalysisCompleted",
    "AnalysisFailed",
    "ALLOWED_TRANSITIONS",
    "advance",
    "can_transition",
    "build_retry_policy",
    "create_retry_executor",
    "create_orchestrator",
    "create_still_analyzer",
]
