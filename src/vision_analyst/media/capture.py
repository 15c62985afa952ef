"""
Camera Capture
==============

MediaCapture boundary for live camera snapshots.

This module:
    - Defines the MediaCapture / CaptureHandle contract
    - Implements it with cv2.VideoCapture (OpenCVCamera)
    - Negotiates the device in two tiers: high resolution first, then any
      available device; if both fail, the second failure is surfaced
    - Classifies failures as PERMISSION_DENIED / NOT_FOUND / BUSY / UNSUPPORTED
    - Scopes every acquired handle so it is released on every exit path

Example:
    camera = OpenCVCamera(device_index=0)

    async with open_camera(camera) as handle:
        image = handle.read_frame()
    # camera released here, even on error or cancellation
"""

import logging
import os
import sys
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Callable, Optional, Protocol, Tuple

import cv2
import numpy as np

from vision_analyst.errors import DeviceAccessError, DeviceErrorKind
from vision_analyst.media.image_io import encode_jpeg
from vision_analyst.media.workers import acquire_in_worker, run_in_worker


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CaptureConstraints:
    """
    Requested capture resolution.

    Attributes:
        width: Requested frame width, None for any
        height: Requested frame height, None for any
    """

    width: Optional[int] = None
    height: Optional[int] = None

    @property
    def is_unconstrained(self) -> bool:
        return self.width is None and self.height is None


HD_CONSTRAINTS = CaptureConstraints(width=1280, height=720)
ANY_DEVICE = CaptureConstraints()


class CaptureHandle(Protocol):
    """An acquired capture device."""

    @property
    def resolution(self) -> Tuple[int, int]:
        """(width, height) actually delivered by the device."""
        ...

    def read_frame(self) -> np.ndarray:
        """
        Read one BGR frame.

        Raises:
            DeviceAccessError: If the device stops delivering frames
        """
        ...

    def release(self) -> None:
        """Release the device. Must be idempotent."""
        ...


class MediaCapture(Protocol):
    """Something that can hand out capture devices."""

    def acquire(self, constraints: CaptureConstraints) -> CaptureHandle:
        """
        Acquire a device satisfying the constraints.

        Raises:
            DeviceAccessError: With the failure classification
        """
        ...


# =============================================================================
# OpenCV Implementation
# =============================================================================

def classify_device_failure(
    device_index: int,
    dev_root: Path = Path("/dev"),
    platform: str = sys.platform,
) -> DeviceErrorKind:
    """
    Work out why a camera could not be opened.

    OpenCV only reports "not opened"; on Linux the device node tells us more.
    Elsewhere an unopenable device is reported as not found.

    Args:
        device_index: OpenCV camera index
        dev_root: Directory holding videoN device nodes
        platform: sys.platform value

    Returns:
        Best-effort DeviceErrorKind
    """
    if not platform.startswith("linux"):
        return DeviceErrorKind.NOT_FOUND

    node = dev_root / f"video{device_index}"
    if not node.exists():
        return DeviceErrorKind.NOT_FOUND
    if not os.access(node, os.R_OK | os.W_OK):
        return DeviceErrorKind.PERMISSION_DENIED
    return DeviceErrorKind.BUSY


class OpenCVCameraHandle:
    """CaptureHandle backed by an opened cv2.VideoCapture."""

    def __init__(self, capture: "cv2.VideoCapture", device_index: int) -> None:
        self._capture = capture
        self.device_index = device_index
        self._released = False

    @property
    def resolution(self) -> Tuple[int, int]:
        return (
            int(self._capture.get(cv2.CAP_PROP_FRAME_WIDTH)),
            int(self._capture.get(cv2.CAP_PROP_FRAME_HEIGHT)),
        )

    @property
    def released(self) -> bool:
        return self._released

    def read_frame(self) -> np.ndarray:
        if self._released:
            raise DeviceAccessError(
                DeviceErrorKind.NOT_FOUND,
                f"Camera {self.device_index} has already been released",
            )
        ok, image = self._capture.read()
        if not ok or image is None:
            raise DeviceAccessError(
                DeviceErrorKind.BUSY,
                f"Camera {self.device_index} stopped delivering frames",
            )
        return image

    def release(self) -> None:
        if not self._released:
            self._capture.release()
            self._released = True
            logger.info(f"Camera {self.device_index} released")


class OpenCVCamera:
    """
    MediaCapture backed by cv2.VideoCapture.

    Attributes:
        device_index: OpenCV camera index
    """

    def __init__(
        self,
        device_index: int = 0,
        classify_failure: Optional[Callable[[int], DeviceErrorKind]] = None,
    ) -> None:
        """
        Initialize camera.

        Args:
            device_index: OpenCV camera index
            classify_failure: Maps an unopenable index to a failure kind
        """
        self.device_index = device_index
        self._classify_failure = classify_failure or classify_device_failure

    def acquire(self, constraints: CaptureConstraints) -> OpenCVCameraHandle:
        """Open the camera and apply the requested resolution."""
        try:
            capture = cv2.VideoCapture(self.device_index)
        except cv2.error as e:
            raise DeviceAccessError(
                DeviceErrorKind.UNSUPPORTED,
                f"Camera API is not supported in this environment: {e}",
            ) from e

        if not capture.isOpened():
            capture.release()
            kind = self._classify_failure(self.device_index)
            raise DeviceAccessError(kind, f"Could not open camera {self.device_index} ({kind.value})")

        if not constraints.is_unconstrained:
            if constraints.width is not None:
                capture.set(cv2.CAP_PROP_FRAME_WIDTH, constraints.width)
            if constraints.height is not None:
                capture.set(cv2.CAP_PROP_FRAME_HEIGHT, constraints.height)

            width = int(capture.get(cv2.CAP_PROP_FRAME_WIDTH))
            height = int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT))
            if (
                (constraints.width is not None and width != constraints.width)
                or (constraints.height is not None and height != constraints.height)
            ):
                capture.release()
                raise DeviceAccessError(
                    DeviceErrorKind.UNSUPPORTED,
                    f"Camera {self.device_index} cannot deliver "
                    f"{constraints.width}x{constraints.height} (got {width}x{height})",
                )

        handle = OpenCVCameraHandle(capture, self.device_index)
        logger.info(f"Camera {self.device_index} acquired at {handle.resolution[0]}x{handle.resolution[1]}")
        return handle


# =============================================================================
# Negotiation and Scoping
# =============================================================================

def negotiate_camera(
    capture: MediaCapture,
    preferred: CaptureConstraints = HD_CONSTRAINTS,
) -> CaptureHandle:
    """
    Acquire a camera, preferring high resolution.

    Tries the preferred constraints first; on failure tries any available
    device. If both fail, the second attempt's error is raised.

    Args:
        capture: MediaCapture to acquire from
        preferred: High-resolution constraints for the first attempt

    Returns:
        Acquired CaptureHandle

    Raises:
        DeviceAccessError: From the fallback attempt
    """
    try:
        return capture.acquire(preferred)
    except DeviceAccessError as e:
        logger.warning(
            f"Failed to get {preferred.width}x{preferred.height} camera stream "
            f"({e.kind.value}), trying basic constraints..."
        )

    return capture.acquire(ANY_DEVICE)


@asynccontextmanager
async def open_camera(
    capture: MediaCapture,
    preferred: CaptureConstraints = HD_CONSTRAINTS,
) -> AsyncIterator[CaptureHandle]:
    """
    Scoped camera acquisition.

    The handle is released when the block exits, whether it finishes,
    raises, or is cancelled. A cancellation that lands while the device is
    still being opened releases it as soon as the open completes.
    """
    handle = await acquire_in_worker(negotiate_camera, capture, preferred)
    try:
        yield handle
    finally:
        handle.release()


async def capture_snapshot(
    capture: MediaCapture,
    preferred: CaptureConstraints = HD_CONSTRAINTS,
    warmup_frames: int = 5,
    jpeg_quality: int = 85,
) -> bytes:
    """
    Take one JPEG snapshot from a camera.

    The camera is released before this returns, so a slow inference call
    afterwards never holds the device.

    Args:
        capture: MediaCapture to acquire from
        preferred: High-resolution constraints for the first attempt
        warmup_frames: Frames discarded while exposure settles
        jpeg_quality: JPEG quality of the snapshot

    Returns:
        JPEG bytes

    Raises:
        DeviceAccessError: If no camera can be acquired or read
    """
    async with open_camera(capture, preferred) as handle:
        for _ in range(warmup_frames):
            await run_in_worker(handle.read_frame)
        image = await run_in_worker(handle.read_frame)

    return encode_jpeg(image, jpeg_quality)
