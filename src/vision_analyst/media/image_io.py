"""
Image Encoding
==============

Dedicated module for moving images between OpenCV matrices and encoded bytes.

Design Rules:
    - This is the ONLY place in the codebase that encodes or decodes images
    - Validates shape and dtype
    - Fails fast on corrupt data
    - Still images must be JPEG or PNG
"""

import base64
import logging
import mimetypes
from pathlib import Path
from typing import Tuple, Union

import cv2
import numpy as np

from vision_analyst.errors import MediaDecodeError, MediaLoadError


logger = logging.getLogger(__name__)


SUPPORTED_IMAGE_TYPES = ("image/jpeg", "image/png")


def encode_jpeg(image: np.ndarray, quality: int = 80) -> bytes:
    """
    Encode a BGR image as JPEG.

    Args:
        image: BGR image as np.ndarray (H, W, 3), dtype=uint8
        quality: JPEG quality, 1-100

    Returns:
        JPEG bytes

    Raises:
        MediaDecodeError: If the image is invalid or encoding fails
    """
    if image is None or image.ndim != 3 or image.shape[2] != 3:
        shape = None if image is None else image.shape
        raise MediaDecodeError(f"Cannot encode image with shape {shape}")
    if image.dtype != np.uint8:
        raise MediaDecodeError(f"Cannot encode image with dtype {image.dtype}")

    ok, buffer = cv2.imencode(".jpg", image, [cv2.IMWRITE_JPEG_QUALITY, int(quality)])
    if not ok:
        raise MediaDecodeError("cv2.imencode failed to produce JPEG data")

    return buffer.tobytes()


def encode_png(image: np.ndarray) -> bytes:
    """Encode a BGR image as lossless PNG."""
    ok, buffer = cv2.imencode(".png", image)
    if not ok:
        raise MediaDecodeError("cv2.imencode failed to produce PNG data")
    return buffer.tobytes()


def decode_image(data: bytes) -> np.ndarray:
    """
    Decode encoded image bytes to a BGR numpy array.

    Args:
        data: JPEG or PNG bytes

    Returns:
        BGR image as np.ndarray (H, W, 3), dtype=uint8

    Raises:
        MediaDecodeError: If decoding fails or image is invalid
    """
    if not data:
        raise MediaDecodeError("Cannot decode empty image data")

    nparr = np.frombuffer(data, np.uint8)
    bgr = cv2.imdecode(nparr, cv2.IMREAD_COLOR)

    if bgr is None:
        raise MediaDecodeError("Failed to decode image: cv2.imdecode returned None")

    if len(bgr.shape) != 3 or bgr.shape[2] != 3:
        raise MediaDecodeError(f"Invalid image shape: {bgr.shape}")

    return bgr


def get_image_dimensions(data: bytes) -> Tuple[int, int]:
    """
    Get (height, width) of encoded image bytes.

    Raises:
        MediaDecodeError: If the bytes cannot be decoded
    """
    return decode_image(data).shape[:2]


def guess_image_type(path: Union[str, Path]) -> str:
    """
    Guess the MIME type of a still image from its file name.

    Raises:
        MediaLoadError: If the type is not JPEG or PNG
    """
    mime_type, _ = mimetypes.guess_type(str(path))
    if mime_type not in SUPPORTED_IMAGE_TYPES:
        raise MediaLoadError(
            f"Please upload a valid image file (JPEG/PNG): {Path(path).name} "
            f"has type {mime_type or 'unknown'}"
        )
    return mime_type


def load_image_file(path: Union[str, Path]) -> Tuple[bytes, str]:
    """
    Read a still image from disk.

    The file must be a JPEG or PNG that OpenCV can decode.

    Args:
        path: Image file path

    Returns:
        Tuple of (image bytes, MIME type)

    Raises:
        MediaLoadError: If the file is missing, of the wrong type, or corrupt
    """
    path = Path(path)
    mime_type = guess_image_type(path)

    try:
        data = path.read_bytes()
    except OSError as e:
        raise MediaLoadError(f"Cannot read image file {path}: {e}") from e

    try:
        decode_image(data)
    except MediaDecodeError as e:
        raise MediaLoadError(f"Image file {path.name} is corrupt: {e}") from e

    logger.debug(f"Loaded image {path.name} ({len(data)} bytes, {mime_type})")
    return data, mime_type


def to_base64(data: bytes) -> str:
    """Base64-encode bytes without a data-URL prefix."""
    return base64.b64encode(data).decode("ascii")
