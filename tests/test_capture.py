"""
Camera Capture Tests
====================

Two-tier negotiation, scoped release and failure classification.
"""

import asyncio
import os
import threading

import pytest

from conftest import FakeCapture, FakeCaptureHandle
from vision_analyst.errors import DeviceAccessError, DeviceErrorKind
from vision_analyst.media.capture import (
    ANY_DEVICE,
    HD_CONSTRAINTS,
    classify_device_failure,
    capture_snapshot,
    negotiate_camera,
    open_camera,
)
from vision_analyst.media.image_io import decode_image


class TestNegotiation:
    """Tests for negotiate_camera."""

    def test_high_resolution_first(self):
        handle = FakeCaptureHandle()
        capture = FakeCapture({"hd": handle, "any": DeviceErrorKind.NOT_FOUND})

        assert negotiate_camera(capture) is handle
        assert capture.requests == [HD_CONSTRAINTS]

    def test_falls_back_to_any_device(self):
        handle = FakeCaptureHandle(resolution=(640, 480))
        capture = FakeCapture({"hd": DeviceErrorKind.UNSUPPORTED, "any": handle})

        assert negotiate_camera(capture) is handle
        assert capture.requests == [HD_CONSTRAINTS, ANY_DEVICE]

    def test_second_error_is_surfaced(self):
        """When both attempts fail, the fallback's classification wins."""
        capture = FakeCapture({"hd": DeviceErrorKind.NOT_FOUND, "any": DeviceErrorKind.PERMISSION_DENIED})

        with pytest.raises(DeviceAccessError) as exc_info:
            negotiate_camera(capture)

        assert exc_info.value.kind is DeviceErrorKind.PERMISSION_DENIED


class TestScopedCamera:
    """Tests for open_camera and capture_snapshot."""

    @pytest.mark.asyncio
    async def test_released_on_exit(self):
        handle = FakeCaptureHandle()
        capture = FakeCapture({"hd": handle, "any": handle})

        async with open_camera(capture) as acquired:
            assert acquired is handle
            assert handle.release_count == 0

        assert handle.release_count == 1

    @pytest.mark.asyncio
    async def test_released_on_error(self):
        handle = FakeCaptureHandle()
        capture = FakeCapture({"hd": handle, "any": handle})

        with pytest.raises(RuntimeError):
            async with open_camera(capture):
                raise RuntimeError("view closed")

        assert handle.release_count == 1

    @pytest.mark.asyncio
    async def test_released_on_cancellation(self):
        handle = FakeCaptureHandle()
        capture = FakeCapture({"hd": handle, "any": handle})
        entered = asyncio.Event()

        async def hold_camera():
            async with open_camera(capture):
                entered.set()
                await asyncio.Event().wait()

        task = asyncio.create_task(hold_camera())
        await entered.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert handle.release_count == 1

    @pytest.mark.asyncio
    async def test_snapshot(self):
        handle = FakeCaptureHandle(resolution=(64, 48))
        capture = FakeCapture({"hd": handle, "any": handle})

        jpeg = await capture_snapshot(capture, warmup_frames=3)

        assert decode_image(jpeg).shape == (48, 64, 3)
        assert handle.reads == 4
        assert handle.release_count == 1

    @pytest.mark.asyncio
    async def test_snapshot_read_failure_releases(self):
        handle = FakeCaptureHandle(fail_read=True)
        capture = FakeCapture({"hd": handle, "any": handle})

        with pytest.raises(DeviceAccessError):
            await capture_snapshot(capture)

        assert handle.release_count == 1

    @pytest.mark.asyncio
    async def test_snapshot_acquire_failure(self):
        capture = FakeCapture({"hd": DeviceErrorKind.BUSY, "any": DeviceErrorKind.BUSY})

        with pytest.raises(DeviceAccessError) as exc_info:
            await capture_snapshot(capture)

        assert exc_info.value.kind is DeviceErrorKind.BUSY


class TestClassifyDeviceFailure:
    """Tests for classify_device_failure."""

    def test_non_linux_is_not_found(self, tmp_path):
        assert classify_device_failure(0, dev_root=tmp_path, platform="darwin") is DeviceErrorKind.NOT_FOUND

    def test_missing_node_is_not_found(self, tmp_path):
        assert classify_device_failure(0, dev_root=tmp_path, platform="linux") is DeviceErrorKind.NOT_FOUND

    def test_accessible_node_is_busy(self, tmp_path):
        (tmp_path / "video0").touch()
        assert classify_device_failure(0, dev_root=tmp_path, platform="linux") is DeviceErrorKind.BUSY

    @pytest.mark.skipif(hasattr(os, "geteuid") and os.geteuid() == 0, reason="root bypasses permissions")
    def test_unreadable_node_is_permission_denied(self, tmp_path):
        node = tmp_path / "video2"
        node.touch()
        node.chmod(0)

        assert classify_device_failure(2, dev_root=tmp_path, platform="linux") is DeviceErrorKind.PERMISSION_DENIED


class TestSnapshotCancellation:
    """Cancellation during a frame read waits for the read before releasing."""

    @pytest.mark.asyncio
    async def test_release_waits_for_read(self):
        read_started = threading.Event()
        gate = threading.Event()

        class GatedHandle(FakeCaptureHandle):
            in_flight = False
            released_in_flight = False

            def read_frame(self):
                self.in_flight = True
                read_started.set()
                gate.wait(timeout=5)
                try:
                    return super().read_frame()
                finally:
                    self.in_flight = False

            def release(self):
                if self.in_flight:
                    self.released_in_flight = True
                super().release()

        handle = GatedHandle(resolution=(64, 48))
        capture = FakeCapture({"hd": handle, "any": handle})

        task = asyncio.create_task(capture_snapshot(capture, warmup_frames=0))
        await asyncio.to_thread(read_started.wait, 5)
        task.cancel()
        await asyncio.sleep(0.05)

        assert not task.done()
        assert handle.release_count == 0

        gate.set()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert handle.release_count == 1
        assert not handle.released_in_flight
