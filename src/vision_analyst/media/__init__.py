"""
Media Module
============

Media ingestion for VisionAnalyst: video sampling, still images, camera.

This module provides:
    - Frame: Immutable timestamped encoded frame
    - FrameSampler: Bounded, sequential temporal sampling of a video
    - OpenCVVideoSource: Seekable cv2-backed video handle
    - OpenCVCamera / open_camera / capture_snapshot: Scoped camera access
    - format_timestamp: MM:SS rendering of frame positions

Example:
    from vision_analyst.media import FrameSampler

    sampler = FrameSampler(interval_seconds=3, max_frames=10)
    frames = await sampler.sample("clip.mp4", on_progress=print)
"""

from vision_analyst.media.frame import Frame
from vision_analyst.media.timecode import format_timestamp
from vision_analyst.media.video_source import OpenCVVideoSource, VideoSource
from vision_analyst.media.sampler import FrameSampler, progress_percent, sample_times
from vision_analyst.media.capture import (
    ANY_DEVICE,
    HD_CONSTRAINTS,
    CaptureConstraints,
    CaptureHandle,
    MediaCapture,
    OpenCVCamera,
    capture_snapshot,
    negotiate_camera,
    open_camera,
)


__all__ = [
    "Frame",
    "format_timestamp",
    "VideoSource",
    "OpenCVVideoSource",
    "FrameSampler",
    "sample_times",
    "progress_percent",
    "CaptureConstraints",
    "CaptureHandle",
    "MediaCapture",
    "OpenCVCamera",
    "HD_CONSTRAINTS",
    "ANY_DEVICE",
    "negotiate_camera",
    "open_camera",
    "capture_snapshot",
]
