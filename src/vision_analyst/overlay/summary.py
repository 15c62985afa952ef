"""
Object Summary
==============

Per-name summary of a still analysis, for a legend or results table.

One row per distinct object name in first-occurrence order, with the
instance count, the first instance's confidence and the name's overlay
color.
"""

from dataclasses import dataclass
from typing import Dict, List, Sequence

from vision_analyst.models.detection import Confidence
from vision_analyst.overlay.projector import OverlayRecord


@dataclass(frozen=True, slots=True)
class ObjectSummary:
    """Summary row for one distinct object name."""

    name: str
    count: int
    confidence: Confidence
    color_token: str

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "count": self.count,
            "confidence": self.confidence.value,
            "color": self.color_token,
        }


def summarize_objects(records: Sequence[OverlayRecord]) -> List[ObjectSummary]:
    """
    Collapse overlay records into one row per object name.

    Args:
        records: Overlay records from AnnotationProjector.project

    Returns:
        Summary rows in first-occurrence order
    """
    counts: Dict[str, int] = {}
    first: Dict[str, OverlayRecord] = {}
    for record in records:
        counts[record.object_name] = counts.get(record.object_name, 0) + 1
        first.setdefault(record.object_name, record)

    return [
        ObjectSummary(
            name=name,
            count=counts[name],
            confidence=record.confidence,
            color_token=record.color_token,
        )
        for name, record in first.items()
    ]
