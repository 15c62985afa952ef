"""
Frame Sampler
=============

Deterministic temporal sampling of a video into a bounded set of frames.

Sampling Policy:
    times = 0, interval, 2*interval, ...
    stops at the first time past the duration, or after max_frames frames

    frame count = min(max_frames, floor(duration / interval) + 1)
    (zero when duration <= 0)

Progress:
    After each captured frame, on_progress(round(100 * captured / max_frames)).
    Reaches 100 only when max_frames is hit; shorter videos finish below 100.

Design Rules:
    - Seeks are sequential: the next seek waits for the current capture
    - All-or-nothing: a failure mid-run discards frames already captured
    - The video handle is released on every exit path
    - Blocking decoder calls run in a worker thread, one at a time; a
      cancelled caller never releases the handle while a call is in flight
"""

import logging
import math
import time
from pathlib import Path
from typing import Callable, List, Optional, Union

from vision_analyst.errors import MediaDecodeError, MediaLoadError
from vision_analyst.media.frame import Frame
from vision_analyst.media.video_source import OpenCVVideoSource, VideoSource
from vision_analyst.media.workers import acquire_in_worker, run_in_worker


logger = logging.getLogger(__name__)


VideoOpener = Callable[[Union[str, Path]], VideoSource]
ProgressCallback = Callable[[int], None]

SCHEDULE_EPSILON = 1e-9


def sample_times(duration: float, interval: float, max_frames: int) -> List[float]:
    """
    Compute the sampling schedule for a video.

    Args:
        duration: Video duration in seconds
        interval: Seconds between samples (> 0)
        max_frames: Maximum number of samples (>= 1)

    Returns:
        Sample times in seconds, ascending
    """
    if interval <= 0:
        raise ValueError("interval must be > 0")
    if max_frames < 1:
        raise ValueError("max_frames must be >= 1")
    if duration <= 0 or math.isnan(duration):
        return []

    # Tolerance keeps e.g. 0.3 / 0.1 from flooring to 2
    count = min(max_frames, math.floor(duration / interval + SCHEDULE_EPSILON) + 1)
    return [i * interval for i in range(count)]


def progress_percent(captured: int, max_frames: int) -> int:
    """Progress as a whole percentage, rounded half up and capped at 100."""
    return min(100, math.floor(100 * captured / max_frames + 0.5))


class FrameSampler:
    """
    Samples a video into timestamped JPEG frames.

    Attributes:
        interval_seconds: Default seconds between samples
        max_frames: Default cap on sampled frames
        jpeg_quality: JPEG quality for the default OpenCV opener

    Example:
        sampler = FrameSampler(interval_seconds=3, max_frames=10)
        frames = await sampler.sample("clip.mp4", on_progress=print)
    """

    def __init__(
        self,
        opener: Optional[VideoOpener] = None,
        interval_seconds: float = 3.0,
        max_frames: int = 10,
        jpeg_quality: int = 80,
    ) -> None:
        """
        Initialize frame sampler.

        Args:
            opener: Callable opening a VideoSource (defaults to OpenCV)
            interval_seconds: Seconds between samples
            max_frames: Maximum frames per video
            jpeg_quality: JPEG quality for captured frames
        """
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        if max_frames < 1:
            raise ValueError("max_frames must be >= 1")

        self.interval_seconds = interval_seconds
        self.max_frames = max_frames
        self.jpeg_quality = jpeg_quality
        self._opener = opener or self._open_with_opencv

    def _open_with_opencv(self, video: Union[str, Path]) -> VideoSource:
        return OpenCVVideoSource.open(video, jpeg_quality=self.jpeg_quality)

    async def sample(
        self,
        video: Union[str, Path],
        on_progress: Optional[ProgressCallback] = None,
        interval_seconds: Optional[float] = None,
        max_frames: Optional[int] = None,
    ) -> List[Frame]:
        """
        Sample frames from a video.

        Args:
            video: Video file path
            on_progress: Called with a percentage after each captured frame
            interval_seconds: Override of the default interval
            max_frames: Override of the default frame cap

        Returns:
            Frames in timestamp order (empty only when duration <= 0)

        Raises:
            MediaLoadError: If the video cannot be opened
            MediaDecodeError: If a seek or capture fails
        """
        interval = self.interval_seconds if interval_seconds is None else interval_seconds
        limit = self.max_frames if max_frames is None else max_frames

        start_time = time.time()

        try:
            source = await acquire_in_worker(self._opener, video)
        except MediaLoadError:
            raise
        except Exception as e:
            raise MediaLoadError(f"Failed to load video {video}: {e}") from e

        try:
            duration = source.duration
            schedule = sample_times(duration, interval, limit)

            if not schedule:
                logger.warning(f"Video {video} has non-positive duration ({duration}); no frames sampled")
                return []

            logger.info(
                f"Sampling {len(schedule)} frame(s) from {video} "
                f"(duration={duration:.2f}s, interval={interval}s, max={limit})"
            )

            frames: List[Frame] = []
            for timestamp in schedule:
                try:
                    pixels = await run_in_worker(source.capture_at, timestamp)
                except MediaDecodeError:
                    raise
                except Exception as e:
                    raise MediaDecodeError(
                        f"Frame capture at {timestamp:.2f}s failed: {e}"
                    ) from e

                frames.append(Frame(timestamp=timestamp, pixels=pixels))

                if on_progress is not None:
                    on_progress(progress_percent(len(frames), limit))

            elapsed_ms = (time.time() - start_time) * 1000
            logger.info(f"Sampled {len(frames)} frame(s) from {video} in {elapsed_ms:.0f}ms")

            return frames

        finally:
            source.release()
