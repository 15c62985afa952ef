"""
Overlay Rendering
=================

Draw overlay records onto an image with OpenCV.

Each record becomes a rectangle outline in its color with a filled label
carrying the object name. Purely descriptive: rendering never changes the
analysis result.
"""

import logging
from typing import Sequence, Tuple

import cv2
import numpy as np

from vision_analyst.media.image_io import decode_image, encode_jpeg, encode_png
from vision_analyst.overlay.projector import OverlayRecord


logger = logging.getLogger(__name__)


LABEL_TEXT_COLOR = (255, 255, 255)
LABEL_PADDING = 3


def hex_to_bgr(token: str) -> Tuple[int, int, int]:
    """
    Convert a '#rrggbb' color token to an OpenCV BGR tuple.

    Raises:
        ValueError: If the token is not a 6-digit hex color
    """
    value = token.lstrip("#")
    if len(value) != 6:
        raise ValueError(f"Expected a #rrggbb color, got {token!r}")
    r, g, b = (int(value[i:i + 2], 16) for i in (0, 2, 4))
    return b, g, r


def draw_overlays(
    image: np.ndarray,
    records: Sequence[OverlayRecord],
    thickness: int = 2,
    font_scale: float = 0.5,
) -> np.ndarray:
    """
    Draw records onto a copy of a BGR image.

    Args:
        image: BGR image (HxWx3)
        records: Overlay records to draw
        thickness: Rectangle line thickness in pixels
        font_scale: Label font scale

    Returns:
        New BGR image with overlays drawn
    """
    canvas = image.copy()
    h, w = canvas.shape[:2]

    for record in records:
        color = hex_to_bgr(record.color_token)
        x1, y1, x2, y2 = record.rect.to_pixels(w, h)

        cv2.rectangle(canvas, (x1, y1), (x2, y2), color, thickness)

        (tw, th), baseline = cv2.getTextSize(
            record.object_name, cv2.FONT_HERSHEY_SIMPLEX, font_scale, 1
        )
        label_h = th + baseline + 2 * LABEL_PADDING
        # Label sits above the box, or inside it at the top edge
        ly = y1 - label_h if y1 - label_h >= 0 else y1
        cv2.rectangle(
            canvas,
            (x1, ly),
            (min(w - 1, x1 + tw + 2 * LABEL_PADDING), ly + label_h),
            color,
            -1,
        )
        cv2.putText(
            canvas,
            record.object_name,
            (x1 + LABEL_PADDING, ly + LABEL_PADDING + th),
            cv2.FONT_HERSHEY_SIMPLEX,
            font_scale,
            LABEL_TEXT_COLOR,
            1,
            cv2.LINE_AA,
        )

    return canvas


def render_overlays(
    image_bytes: bytes,
    records: Sequence[OverlayRecord],
    thickness: int = 2,
    font_scale: float = 0.5,
    mime_type: str = "image/jpeg",
) -> bytes:
    """
    Decode an image, draw overlays and re-encode it.

    Args:
        image_bytes: Encoded JPEG or PNG
        records: Overlay records to draw
        thickness: Rectangle line thickness in pixels
        font_scale: Label font scale
        mime_type: Output encoding ("image/jpeg" or "image/png")

    Returns:
        Encoded image bytes

    Raises:
        MediaDecodeError: If image_bytes cannot be decoded
    """
    image = decode_image(image_bytes)
    canvas = draw_overlays(image, records, thickness=thickness, font_scale=font_scale)

    logger.debug(f"Rendered {len(records)} overlay(s) onto {image.shape[1]}x{image.shape[0]} image")

    if mime_type == "image/png":
        return encode_png(canvas)
    return encode_jpeg(canvas, quality=90)
