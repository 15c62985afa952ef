"""
Image I/O Tests
===============
"""

import numpy as np
import pytest

from vision_analyst.errors import MediaDecodeError, MediaLoadError
from vision_analyst.media.image_io import (
    decode_image,
    encode_jpeg,
    get_image_dimensions,
    guess_image_type,
    load_image_file,
)
from vision_analyst.media.video_source import OpenCVVideoSource


class TestEncodeDecode:
    """Tests for JPEG encoding and decoding."""

    def test_jpeg_dimensions_preserved(self, sample_image):
        data = encode_jpeg(sample_image, quality=85)
        assert data[:2] == b"\xff\xd8"
        assert get_image_dimensions(data) == (48, 64)

    def test_grayscale_rejected(self):
        with pytest.raises(MediaDecodeError):
            encode_jpeg(np.zeros((4, 4), dtype=np.uint8))

    def test_float_rejected(self):
        with pytest.raises(MediaDecodeError):
            encode_jpeg(np.zeros((4, 4, 3), dtype=np.float32))

    @pytest.mark.parametrize("data", [b"", b"garbage"])
    def test_decode_garbage(self, data):
        with pytest.raises(MediaDecodeError):
            decode_image(data)


class TestStillFiles:
    """Tests for still image loading."""

    @pytest.mark.parametrize(
        "name, expected",
        [("a.jpg", "image/jpeg"), ("a.JPEG", "image/jpeg"), ("a.png", "image/png")],
    )
    def test_supported_types(self, name, expected):
        assert guess_image_type(name) == expected

    @pytest.mark.parametrize("name", ["a.gif", "a.mp4", "a"])
    def test_unsupported_types(self, name):
        with pytest.raises(MediaLoadError):
            guess_image_type(name)

    def test_load(self, tmp_path, sample_jpeg):
        path = tmp_path / "photo.jpg"
        path.write_bytes(sample_jpeg)
        assert load_image_file(path) == (sample_jpeg, "image/jpeg")

    def test_missing_file(self, tmp_path):
        with pytest.raises(MediaLoadError):
            load_image_file(tmp_path / "missing.png")

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "broken.png"
        path.write_bytes(b"not really a png")
        with pytest.raises(MediaLoadError):
            load_image_file(path)


class TestVideoOpen:
    """Tests for OpenCVVideoSource.open validation."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(MediaLoadError):
            OpenCVVideoSource.open(tmp_path / "missing.mp4")

    def test_non_video_type(self, tmp_path, sample_jpeg):
        path = tmp_path / "photo.jpg"
        path.write_bytes(sample_jpeg)
        with pytest.raises(MediaLoadError):
            OpenCVVideoSource.open(path)
