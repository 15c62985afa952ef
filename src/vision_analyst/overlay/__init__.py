"""
Overlay Module
==============

Post-processing of still analyses for display.

This module provides:
    - AnnotationProjector: Stable colors and normalized rectangles
    - summarize_objects: One summary row per object name
    - render_overlays: Boxes and labels drawn onto the image

DESIGN RULES:
    - Derived data only, never persisted
    - Does NOT call the inference backend
"""

from vision_analyst.overlay.projector import (
    AnnotationProjector,
    NormalizedRect,
    OverlayRecord,
)
from vision_analyst.overlay.summary import ObjectSummary, summarize_objects
from vision_analyst.overlay.render import draw_overlays, hex_to_bgr, render_overlays


__all__ = [
    "AnnotationProjector",
    "NormalizedRect",
    "OverlayRecord",
    "ObjectSummary",
    "summarize_objects",
    "draw_overlays",
    "hex_to_bgr",
    "render_overlays",
]
