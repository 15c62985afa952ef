"""
Sequential Session Tests
========================

Ordering and exclusivity rules shared by every session, and the mock
backend.
"""

import asyncio

import pytest

from conftest import ScriptedSession
from vision_analyst.errors import InferenceCallFailed, SessionStateError
from vision_analyst.inference.client import EMPTY_FRAME_TEXT, EMPTY_REPORT_TEXT
from vision_analyst.inference.mock import MOCK_VOCABULARY, MockInferenceClient
from vision_analyst.media.frame import Frame
from vision_analyst.models.detection import BOX_SCALE


def frame(t: float) -> Frame:
    return Frame(timestamp=t, pixels=f"px{t}".encode())


class TestSessionGuard:
    """Tests for BaseSequentialSession rules."""

    @pytest.mark.asyncio
    async def test_first_flag_must_match_position(self):
        session = ScriptedSession()

        with pytest.raises(SessionStateError):
            await session.analyze_next(frame(0.0), is_first=False)

        await session.analyze_next(frame(0.0), is_first=True)

        with pytest.raises(SessionStateError):
            await session.analyze_next(frame(3.0), is_first=True)

    @pytest.mark.asyncio
    async def test_out_of_order_rejected(self):
        session = ScriptedSession()
        await session.analyze_next(frame(6.0), is_first=True)

        with pytest.raises(SessionStateError):
            await session.analyze_next(frame(3.0), is_first=False)

    @pytest.mark.asyncio
    async def test_concurrent_calls_rejected(self):
        session = ScriptedSession()
        gate = asyncio.Event()

        async def slow_send(f, is_first):
            await gate.wait()
            return "slow"

        session._send_frame = slow_send
        first = asyncio.create_task(session.analyze_next(frame(0.0), is_first=True))
        await asyncio.sleep(0)

        with pytest.raises(SessionStateError):
            await session.analyze_next(frame(0.0), is_first=True)

        gate.set()
        assert await first == "slow"
        assert session.frames_analyzed == 1

    @pytest.mark.asyncio
    async def test_failed_call_leaves_session_unchanged(self):
        """A failed frame can be retried with the same arguments."""
        session = ScriptedSession(failures={0.0: 1})

        with pytest.raises(InferenceCallFailed):
            await session.analyze_next(frame(0.0), is_first=True)
        assert session.frames_analyzed == 0

        assert await session.analyze_next(frame(0.0), is_first=True) == "analysis of 0s"
        assert session.frames_analyzed == 1

    @pytest.mark.asyncio
    async def test_finalize_rules(self):
        session = ScriptedSession()

        with pytest.raises(SessionStateError):
            await session.finalize("summarise")

        await session.analyze_next(frame(0.0), is_first=True)
        assert await session.finalize("summarise") == "Final report"
        assert session.finalized

        with pytest.raises(SessionStateError):
            await session.finalize("summarise")
        with pytest.raises(SessionStateError):
            await session.analyze_next(frame(3.0), is_first=False)

    @pytest.mark.asyncio
    async def test_blank_text_falls_back(self):
        session = ScriptedSession(report="   ")

        async def blank(f, is_first):
            return None

        session._send_frame = blank

        assert await session.analyze_next(frame(0.0), is_first=True) == EMPTY_FRAME_TEXT
        assert await session.finalize("summarise") == EMPTY_REPORT_TEXT


class TestMockInferenceClient:
    """Tests for the deterministic offline backend."""

    @pytest.mark.asyncio
    async def test_still_is_deterministic(self, mock_client):
        first = await mock_client.analyze_still(b"same image")
        second = await mock_client.analyze_still(b"same image")

        assert first == second
        assert mock_client.still_calls == 2

    @pytest.mark.asyncio
    async def test_still_objects_are_valid(self, mock_client):
        for seed in range(20):
            result = await mock_client.analyze_still(f"image {seed}".encode())

            assert 1 <= len(result.objects) <= mock_client.max_objects
            for obj in result.objects:
                assert obj.name in MOCK_VOCABULARY
                assert 0 <= obj.ymin <= obj.ymax <= BOX_SCALE
                assert 0 <= obj.xmin <= obj.xmax <= BOX_SCALE

    @pytest.mark.asyncio
    async def test_sequential_session(self, mock_client):
        session = mock_client.open_sequential_session()

        first = await session.analyze_next(frame(0.0), is_first=True)
        second = await session.analyze_next(frame(3.0), is_first=False)
        report = await session.finalize("summarise")

        assert first.startswith("Frame at 00:00: initial scene")
        assert "since 00:00" in second
        assert report == "Video Analysis Report: 2 frame(s) analysed from 00:00 to 00:03."
        assert mock_client.sessions_opened == 1
