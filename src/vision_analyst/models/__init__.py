"""
Data Models
===========

Pydantic models for VisionAnalyst.

This module re-exports all data models for convenient access.

Models:
    Detection:
        - Confidence: High / Medium / Low
        - DetectedObject: Named object with a 0-1000 bounding box
        - StillAnalysisResult: Objects plus narrative for one image

    Analysis:
        - FrameAnalysis: MM:SS timestamp plus analysis text
        - SequenceAnalysisResult: Frame analyses plus final report

    State:
        - RunState: IDLE, SAMPLING, ANALYZING, COMPLETE, FAILED
"""

from vision_analyst.models.detection import (
    BOX_SCALE,
    Confidence,
    DetectedObject,
    StillAnalysisResult,
)
from vision_analyst.models.analysis import FrameAnalysis, SequenceAnalysisResult
from vision_analyst.models.state import RunState

__all__ = [
    # Detection
    "BOX_SCALE",
    "Confidence",
    "DetectedObject",
    "StillAnalysisResult",
    # Analysis
    "FrameAnalysis",
    "SequenceAnalysisResult",
    # State
    "RunState",
]
