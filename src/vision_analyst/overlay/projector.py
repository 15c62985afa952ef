"""
Annotation Projector
====================

Maps detected objects to render-ready overlay records.

Projection Rules:
    - Each distinct object name gets the next palette color, in
      first-occurrence order; past the end of the palette, colors wrap
    - Every instance of a name shares that name's color
    - Boxes are divided by 1000 into [0, 1] rectangles; the inverse scale
      recovers the original integers exactly
    - Order and count are preserved: one record per detected object,
      no merging of overlapping boxes

Example:
    projector = AnnotationProjector()
    for record in projector.project(result):
        print(record.object_name, record.color_token, record.rect)
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from vision_analyst.config import DEFAULT_PALETTE
from vision_analyst.models.detection import BOX_SCALE, Confidence, DetectedObject, StillAnalysisResult


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NormalizedRect:
    """
    Bounding box on the [0, 1] scale.

    Attributes:
        ymin: Top edge
        xmin: Left edge
        ymax: Bottom edge
        xmax: Right edge
    """

    ymin: float
    xmin: float
    ymax: float
    xmax: float

    @classmethod
    def from_box_2d(cls, box: Sequence[int]) -> "NormalizedRect":
        ymin, xmin, ymax, xmax = box
        return cls(
            ymin=ymin / BOX_SCALE,
            xmin=xmin / BOX_SCALE,
            ymax=ymax / BOX_SCALE,
            xmax=xmax / BOX_SCALE,
        )

    def to_box_2d(self) -> Tuple[int, int, int, int]:
        """Inverse of from_box_2d."""
        return (
            round(self.ymin * BOX_SCALE),
            round(self.xmin * BOX_SCALE),
            round(self.ymax * BOX_SCALE),
            round(self.xmax * BOX_SCALE),
        )

    def to_pixels(self, width: int, height: int) -> Tuple[int, int, int, int]:
        """
        Pixel corners for an image of the given size.

        Returns:
            (x1, y1, x2, y2), clamped to the image
        """
        x1 = min(width - 1, max(0, round(self.xmin * width)))
        y1 = min(height - 1, max(0, round(self.ymin * height)))
        x2 = min(width - 1, max(0, round(self.xmax * width)))
        y2 = min(height - 1, max(0, round(self.ymax * height)))
        return x1, y1, x2, y2

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.ymin, self.xmin, self.ymax, self.xmax)


@dataclass(frozen=True, slots=True)
class OverlayRecord:
    """
    One object ready to draw.

    Attributes:
        object_name: Detected object name
        color_token: Palette color (hex string)
        color_index: Index of color_token in the palette
        confidence: Detection confidence
        rect: Normalized bounding box
    """

    object_name: str
    color_token: str
    color_index: int
    confidence: Confidence
    rect: NormalizedRect


class AnnotationProjector:
    """
    Assigns stable colors and normalized rectangles to detected objects.

    Attributes:
        palette: Color tokens, assigned in order
    """

    def __init__(self, palette: Optional[Sequence[str]] = None) -> None:
        palette = list(DEFAULT_PALETTE if palette is None else palette)
        if not palette:
            raise ValueError("palette must contain at least one color")
        self.palette: Tuple[str, ...] = tuple(palette)

    def assign_colors(self, names: Iterable[str]) -> Dict[str, int]:
        """
        Map each distinct name to a palette index, in first-occurrence order.

        Args:
            names: Object names, possibly repeated

        Returns:
            Name → palette index (wrapping past the end of the palette)
        """
        assigned: Dict[str, int] = {}
        for name in names:
            if name not in assigned:
                assigned[name] = len(assigned) % len(self.palette)
        return assigned

    def project_objects(self, objects: Sequence[DetectedObject]) -> List[OverlayRecord]:
        colors = self.assign_colors(obj.name for obj in objects)
        if len(colors) > len(self.palette):
            logger.warning(
                f"{len(colors)} distinct names for {len(self.palette)} colors; colors repeat"
            )

        return [
            OverlayRecord(
                object_name=obj.name,
                color_token=self.palette[colors[obj.name]],
                color_index=colors[obj.name],
                confidence=obj.confidence,
                rect=NormalizedRect.from_box_2d(obj.box),
            )
            for obj in objects
        ]

    def project(self, result: StillAnalysisResult) -> List[OverlayRecord]:
        """
        Project a still analysis result into overlay records.

        Args:
            result: Validated still analysis

        Returns:
            One OverlayRecord per detected object, in the same order
        """
        return self.project_objects(result.objects)
