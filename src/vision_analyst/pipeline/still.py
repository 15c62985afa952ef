"""
Still Image Analysis
====================

Single-image analysis paths: uploaded image bytes, an image file, or a
camera snapshot.

Flow:
    image bytes → RetryExecutor(analyze_still) → AnnotationProjector
                → summary → AnnotatedStill

Design Rules:
    - One inference call per image, retried as a unit
    - The camera is released before inference starts
    - Results are immutable; analysing again builds a new AnnotatedStill
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

from vision_analyst.errors import MediaLoadError
from vision_analyst.inference.client import InferenceClient
from vision_analyst.media.capture import HD_CONSTRAINTS, CaptureConstraints, MediaCapture, capture_snapshot
from vision_analyst.media.image_io import SUPPORTED_IMAGE_TYPES, load_image_file
from vision_analyst.models.detection import StillAnalysisResult
from vision_analyst.overlay.projector import AnnotationProjector, OverlayRecord
from vision_analyst.overlay.render import render_overlays
from vision_analyst.overlay.summary import ObjectSummary, summarize_objects
from vision_analyst.pipeline.policy import default_retry_executor
from vision_analyst.retry import RetryExecutor


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AnnotatedStill:
    """
    A still analysis with everything needed to display it.

    Attributes:
        result: Validated objects and narrative
        overlays: One OverlayRecord per object, in order
        summary: One row per distinct object name
        image: The analysed image bytes
        mime_type: MIME type of image
    """

    result: StillAnalysisResult
    overlays: Tuple[OverlayRecord, ...]
    summary: Tuple[ObjectSummary, ...]
    image: bytes
    mime_type: str = "image/jpeg"

    def render(self, thickness: int = 2, font_scale: float = 0.5) -> bytes:
        """Image bytes with every overlay drawn on."""
        return render_overlays(
            self.image,
            self.overlays,
            thickness=thickness,
            font_scale=font_scale,
            mime_type=self.mime_type,
        )


class StillImageAnalyzer:
    """
    Analyses single images through the inference backend.

    Attributes:
        client: Inference backend
        retry: Retry executor wrapping each call
        projector: Overlay projector
    """

    def __init__(
        self,
        client: InferenceClient,
        retry: Optional[RetryExecutor] = None,
        projector: Optional[AnnotationProjector] = None,
    ) -> None:
        self.client = client
        self.retry = retry or default_retry_executor()
        self.projector = projector or AnnotationProjector()
        self._analyses: int = 0

    async def analyze(self, image_bytes: bytes, mime_type: str = "image/jpeg") -> AnnotatedStill:
        """
        Analyse encoded image bytes.

        Args:
            image_bytes: JPEG or PNG bytes
            mime_type: MIME type of image_bytes

        Returns:
            AnnotatedStill

        Raises:
            MediaLoadError: If the image is empty or not JPEG/PNG
            InferenceCallFailed: If every attempt failed
            MalformedResponse: If the response fails validation
        """
        if mime_type not in SUPPORTED_IMAGE_TYPES:
            raise MediaLoadError(f"Please upload a valid image file (JPEG/PNG), got {mime_type}")
        if not image_bytes:
            raise MediaLoadError("Image is empty")

        result = await self.retry.execute(
            lambda: self.client.analyze_still(image_bytes, mime_type),
            description="Still image analysis",
        )

        overlays = self.projector.project(result)
        self._analyses += 1
        logger.info(
            f"Still analysis: {len(result.objects)} object(s), "
            f"{len({o.object_name for o in overlays})} distinct name(s)"
        )

        return AnnotatedStill(
            result=result,
            overlays=tuple(overlays),
            summary=tuple(summarize_objects(overlays)),
            image=image_bytes,
            mime_type=mime_type,
        )

    async def analyze_file(self, path: Union[str, Path]) -> AnnotatedStill:
        """
        Analyse a JPEG or PNG file.

        Raises:
            MediaLoadError: If the file is missing, not JPEG/PNG, or corrupt
        """
        data, mime_type = load_image_file(path)
        return await self.analyze(data, mime_type)

    async def analyze_camera_snapshot(
        self,
        capture: MediaCapture,
        preferred: CaptureConstraints = HD_CONSTRAINTS,
        warmup_frames: int = 5,
        jpeg_quality: int = 85,
    ) -> AnnotatedStill:
        """
        Take one camera snapshot and analyse it.

        The camera is released once the snapshot is taken, before the
        inference call.

        Raises:
            DeviceAccessError: If no camera can be acquired or read
        """
        image = await capture_snapshot(
            capture,
            preferred=preferred,
            warmup_frames=warmup_frames,
            jpeg_quality=jpeg_quality,
        )
        logger.info(f"Camera snapshot captured ({len(image)} bytes)")
        return await self.analyze(image, "image/jpeg")

    def get_metrics(self) -> dict:
        """Get analyzer metrics for observability."""
        return {
            "analyses": self._analyses,
            "retry": self.retry.metrics.to_dict(),
        }
