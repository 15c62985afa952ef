"""
Frame Data Model
================

Internal frame representation passed from the sampler to the orchestrator.

Design Rules:
    - This is the ONLY frame format handed to the inference layer
    - Pixels are already-encoded image bytes (JPEG), never raw arrays
    - Immutable once produced
"""

import base64
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Frame:
    """
    Timestamped still frame sampled from a video.

    Attributes:
        timestamp: Position in the video, in seconds (>= 0)
        pixels: Encoded image bytes
        mime_type: MIME type of pixels
    """

    timestamp: float
    pixels: bytes
    mime_type: str = "image/jpeg"

    def __post_init__(self) -> None:
        if self.timestamp < 0:
            raise ValueError(f"Frame timestamp must be >= 0, got {self.timestamp}")

    def to_base64(self) -> str:
        """Base64-encode the pixels (for transports that need text)."""
        return base64.b64encode(self.pixels).decode("ascii")

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the full image."""
        return (
            f"Frame(timestamp={self.timestamp:.3f}, "
            f"bytes={len(self.pixels)}, "
            f"mime_type={self.mime_type!r})"
        )
