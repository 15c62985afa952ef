"""
Sequence Analysis Models
========================

This module defines the output contract of a video analysis run.

Output Contract:
    {
        "frames": [
            {"timestamp": "00:00", "offset_seconds": 0.0, "analysis_text": "..."},
            {"timestamp": "00:03", "offset_seconds": 3.0, "analysis_text": "..."}
        ],
        "final_report": "..."
    }

Design Rules:
    - frames are in non-decreasing timestamp order
    - final_report exists only once every frame has been analysed
    - results are immutable; re-running analysis builds a new result
"""

from typing import Tuple

from pydantic import BaseModel, Field, model_validator


class FrameAnalysis(BaseModel):
    """
    Analysis text for one sampled frame.

    Attributes:
        timestamp: Frame position formatted as MM:SS
        offset_seconds: Frame position in seconds (for ordering)
        analysis_text: Model narrative for this frame
    """

    timestamp: str = Field(
        ...,
        pattern=r"^\d{2,}:\d{2}$",
        description="Frame position formatted as MM:SS",
    )

    offset_seconds: float = Field(
        ...,
        ge=0.0,
        description="Frame position in seconds",
    )

    analysis_text: str = Field(
        ...,
        description="Model narrative for this frame",
    )

    class Config:
        """Pydantic model configuration."""

        frozen = True


class SequenceAnalysisResult(BaseModel):
    """
    Complete result of a video analysis run.

    Attributes:
        frames: Per-frame analyses in timestamp order
        final_report: Synthesised report over all frames
    """

    frames: Tuple[FrameAnalysis, ...] = Field(
        ...,
        description="Per-frame analyses in timestamp order",
    )

    final_report: str = Field(
        ...,
        description="Synthesised report over all frames",
    )

    class Config:
        """Pydantic model configuration."""

        frozen = True

    @model_validator(mode="after")
    def _check_order(self) -> "SequenceAnalysisResult":
        offsets = [frame.offset_seconds for frame in self.frames]
        if any(later < earlier for earlier, later in zip(offsets, offsets[1:])):
            raise ValueError("frames must be in non-decreasing timestamp order")
        return self
