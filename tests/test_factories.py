"""
Factory Tests
=============

Settings-driven construction of clients, orchestrators and still analyzers.
"""

import pytest

from vision_analyst.config import Settings
from vision_analyst.errors import InferenceCallFailed, MalformedResponse
from vision_analyst.inference import MockInferenceClient, create_inference_client
from vision_analyst.pipeline import (
    create_orchestrator,
    create_retry_executor,
    create_still_analyzer,
)


class TestCreateInferenceClient:
    """Tests for backend selection."""

    def test_mock_by_default(self):
        assert isinstance(create_inference_client(Settings()), MockInferenceClient)

    def test_gemini_without_key_fails(self):
        settings = Settings.model_validate({"inference": {"backend": "gemini", "api_key": None}})
        with pytest.raises(InferenceCallFailed):
            create_inference_client(settings)


class TestPipelineFactories:
    """Tests for pipeline factories."""

    def test_orchestrator_uses_sampling_settings(self):
        settings = Settings.model_validate({
            "sampling": {"interval_seconds": 1.5, "max_frames": 4},
            "retry": {"max_retries": 1, "initial_delay_ms": 10},
        })

        orchestrator = create_orchestrator(settings)

        assert isinstance(orchestrator.client, MockInferenceClient)
        assert orchestrator.sampler.interval_seconds == 1.5
        assert orchestrator.sampler.max_frames == 4
        assert orchestrator.retry.max_retries == 1
        assert orchestrator.retry.initial_delay_ms == 10

    def test_still_analyzer_uses_palette(self):
        settings = Settings.model_validate({"overlay": {"palette": ["#000000", "#ffffff"]}})
        client = MockInferenceClient()

        analyzer = create_still_analyzer(settings, client=client)

        assert analyzer.client is client
        assert analyzer.projector.palette == ("#000000", "#ffffff")

    @pytest.mark.parametrize("flag", [False, True])
    def test_malformed_retry_follows_settings(self, flag):
        settings = Settings.model_validate({"retry": {"retry_malformed_responses": flag}})

        executor = create_retry_executor(settings)

        assert executor._is_retriable(MalformedResponse("bad")) is flag
        assert executor._is_retriable(InferenceCallFailed("down")) is True
