"""
Detection Models
================

This module defines the Pydantic models for still-image analysis results.

Wire Contract (from the inference service):
    {
        "objects": [
            {
                "name": "cat",
                "confidence": "High",
                "box_2d": [100, 200, 400, 600]
            }
        ],
        "narrative": "A cat sits on a windowsill..."
    }

Box coordinates are [ymin, xmin, ymax, xmax] on a 0-1000 integer scale.

Validation Rules:
    - name is a non-empty string (surrounding whitespace stripped)
    - confidence is exactly one of High, Medium, Low (no coercion)
    - box_2d has exactly four integers, each in [0, 1000]
    - ymin <= ymax and xmin <= xmax (violations are rejected, not clamped)
"""

from enum import Enum
from typing import Annotated, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator


BOX_SCALE = 1000

BoxCoordinate = Annotated[int, Field(strict=True, ge=0, le=BOX_SCALE)]


class Confidence(str, Enum):
    """
    Model-reported confidence for a detected object.

    Attributes:
        HIGH: Object clearly identified
        MEDIUM: Object probably identified
        LOW: Object tentatively identified
    """

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class DetectedObject(BaseModel):
    """
    A single detected object instance.

    Attributes:
        name: Object label as reported by the model
        confidence: Confidence bucket
        box: (ymin, xmin, ymax, xmax) on the 0-1000 scale
    """

    name: str = Field(
        ...,
        min_length=1,
        description="Object label",
    )

    confidence: Confidence = Field(
        ...,
        description="Confidence bucket (High, Medium, Low)",
    )

    box: Tuple[BoxCoordinate, BoxCoordinate, BoxCoordinate, BoxCoordinate] = Field(
        ...,
        alias="box_2d",
        description="Bounding box [ymin, xmin, ymax, xmax] on a 0-1000 scale",
    )

    class Config:
        """Pydantic model configuration."""

        frozen = True
        populate_by_name = True

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value

    @model_validator(mode="after")
    def _check_box_order(self) -> "DetectedObject":
        ymin, xmin, ymax, xmax = self.box
        if ymin > ymax:
            raise ValueError(f"ymin ({ymin}) > ymax ({ymax})")
        if xmin > xmax:
            raise ValueError(f"xmin ({xmin}) > xmax ({xmax})")
        return self

    @property
    def ymin(self) -> int:
        return self.box[0]

    @property
    def xmin(self) -> int:
        return self.box[1]

    @property
    def ymax(self) -> int:
        return self.box[2]

    @property
    def xmax(self) -> int:
        return self.box[3]


class StillAnalysisResult(BaseModel):
    """
    Result of analysing one still image.

    Produced atomically by one inference call and immutable thereafter.

    Attributes:
        objects: Detected object instances, in model order
        narrative: Free-text description of the scene
    """

    objects: Tuple[DetectedObject, ...] = Field(
        ...,
        description="Detected object instances in model order",
    )

    narrative: str = Field(
        ...,
        description="Free-text scene narrative",
    )

    class Config:
        """Pydantic model configuration."""

        frozen = True
        json_schema_extra = {
            "example": {
                "objects": [
                    {"name": "cat", "confidence": "High", "box_2d": [100, 200, 400, 600]},
                ],
                "narrative": "A cat sits on a windowsill.",
            }
        }
