"""
Video Source
============

Seekable video handle used by the frame sampler.

The sampler only needs three things from a video: its duration, a way to
seek and capture the frame at a given time, and a way to release it.
VideoSource is that contract; OpenCVVideoSource implements it with
cv2.VideoCapture.

Design Rules:
    - One handle wraps one decode buffer: seek + capture is NOT re-entrant
    - Duration comes from container metadata (frame count / fps)
    - Seeks past the last decodable frame land on the last frame
    - release() is idempotent
"""

import logging
import math
import mimetypes
from pathlib import Path
from typing import Protocol, Union

import cv2

from vision_analyst.errors import MediaDecodeError, MediaLoadError
from vision_analyst.media.image_io import encode_jpeg


logger = logging.getLogger(__name__)


class VideoSource(Protocol):
    """
    Protocol for seekable video handles.

    Implementations are opened by a callable taking the video path and
    must raise MediaLoadError when the container cannot be read.
    """

    @property
    def duration(self) -> float:
        """Total duration in seconds."""
        ...

    def capture_at(self, seconds: float) -> bytes:
        """
        Seek to a time and capture that frame as encoded image bytes.

        Raises:
            MediaDecodeError: If seeking or decoding fails
        """
        ...

    def release(self) -> None:
        """Release the underlying decoder."""
        ...


class OpenCVVideoSource:
    """
    VideoSource backed by cv2.VideoCapture.

    Attributes:
        path: Video file path
        fps: Frame rate from container metadata
        frame_count: Frame count from container metadata
        jpeg_quality: Quality used to encode captured frames
    """

    def __init__(
        self,
        capture: "cv2.VideoCapture",
        path: Path,
        fps: float,
        frame_count: int,
        jpeg_quality: int = 80,
    ) -> None:
        self._capture = capture
        self.path = path
        self.fps = fps
        self.frame_count = frame_count
        self.jpeg_quality = jpeg_quality
        self._released = False

    @classmethod
    def open(cls, path: Union[str, Path], jpeg_quality: int = 80) -> "OpenCVVideoSource":
        """
        Open a video file and read its metadata.

        Args:
            path: Video file path
            jpeg_quality: Quality used to encode captured frames

        Returns:
            Opened OpenCVVideoSource

        Raises:
            MediaLoadError: If the file is missing, not a video, or unreadable
        """
        path = Path(path)
        if not path.is_file():
            raise MediaLoadError(f"Video file not found: {path}")

        mime_type, _ = mimetypes.guess_type(str(path))
        if mime_type is not None and not mime_type.startswith("video/"):
            raise MediaLoadError(
                f"Please upload a valid video file (MP4/WebM): {path.name} has type {mime_type}"
            )

        capture = cv2.VideoCapture(str(path))
        if not capture.isOpened():
            capture.release()
            raise MediaLoadError(f"Failed to load video file: {path.name}")

        fps = capture.get(cv2.CAP_PROP_FPS)
        frame_count = capture.get(cv2.CAP_PROP_FRAME_COUNT)

        if not fps or math.isnan(fps) or fps <= 0:
            capture.release()
            raise MediaLoadError(f"Video {path.name} has no frame rate metadata")

        if math.isnan(frame_count) or frame_count < 0:
            frame_count = 0

        source = cls(
            capture=capture,
            path=path,
            fps=float(fps),
            frame_count=int(frame_count),
            jpeg_quality=jpeg_quality,
        )

        logger.info(
            f"Opened video {path.name}: fps={source.fps:.2f}, "
            f"frames={source.frame_count}, duration={source.duration:.2f}s"
        )
        return source

    @property
    def duration(self) -> float:
        """Total duration in seconds (0 when the frame count is unknown)."""
        return self.frame_count / self.fps if self.frame_count > 0 else 0.0

    def capture_at(self, seconds: float) -> bytes:
        """
        Seek to a time and capture that frame as JPEG.

        Args:
            seconds: Position in the video

        Returns:
            JPEG bytes

        Raises:
            MediaDecodeError: If the handle is released, or seek/read fails
        """
        if self._released:
            raise MediaDecodeError(f"Video {self.path.name} has already been released")

        index = min(int(round(seconds * self.fps)), max(self.frame_count - 1, 0))

        if not self._capture.set(cv2.CAP_PROP_POS_FRAMES, index):
            raise MediaDecodeError(
                f"Seek to {seconds:.2f}s (frame {index}) failed in {self.path.name}"
            )

        ok, image = self._capture.read()
        if not ok or image is None:
            raise MediaDecodeError(
                f"Could not decode frame at {seconds:.2f}s (frame {index}) in {self.path.name}"
            )

        return encode_jpeg(image, self.jpeg_quality)

    def release(self) -> None:
        """Release the decoder. Safe to call more than once."""
        if not self._released:
            self._capture.release()
            self._released = True
            logger.debug(f"Released video {self.path.name}")
