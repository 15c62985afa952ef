"""
Configuration Tests
===================
"""

import pytest
from pydantic import ValidationError

from vision_analyst.config import DEFAULT_PALETTE, Settings, load_config, setup_logging


ENV_VARS = (
    "VISION_ANALYST_INFERENCE_BACKEND",
    "VISION_ANALYST_MODEL",
    "VISION_ANALYST_API_KEY",
    "GEMINI_API_KEY",
    "API_KEY",
    "VISION_ANALYST_MAX_RETRIES",
    "VISION_ANALYST_INITIAL_DELAY_MS",
    "VISION_ANALYST_SAMPLE_INTERVAL",
    "VISION_ANALYST_MAX_FRAMES",
    "VISION_ANALYST_CAMERA_INDEX",
    "VISION_ANALYST_LOG_LEVEL",
    "VISION_ANALYST_LOG_FORMAT",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults(self, clean_env, tmp_path):
        settings = load_config(str(tmp_path / "missing.yaml"))

        assert settings.inference.backend == "mock"
        assert settings.inference.model == "gemini-2.5-flash"
        assert settings.inference.api_key is None
        assert settings.retry.max_retries == 3
        assert settings.retry.initial_delay_ms == 1000
        assert settings.retry.retry_malformed_responses is False
        assert settings.sampling.interval_seconds == 3.0
        assert settings.sampling.max_frames == 10
        assert settings.camera.preferred_width == 1280
        assert settings.camera.preferred_height == 720
        assert settings.camera.snapshot_jpeg_quality == 85
        assert settings.overlay.palette == DEFAULT_PALETTE

    def test_yaml_file(self, clean_env, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "sampling:\n"
            "  interval_seconds: 2.5\n"
            "  max_frames: 4\n"
            "retry:\n"
            "  retry_malformed_responses: true\n"
        )

        settings = load_config(str(path))

        assert settings.sampling.interval_seconds == 2.5
        assert settings.sampling.max_frames == 4
        assert settings.retry.retry_malformed_responses is True
        assert settings.retry.max_retries == 3

    def test_environment_overrides_file(self, clean_env, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("sampling:\n  max_frames: 4\n")
        clean_env.setenv("VISION_ANALYST_MAX_FRAMES", "7")
        clean_env.setenv("VISION_ANALYST_INFERENCE_BACKEND", "Gemini")
        clean_env.setenv("VISION_ANALYST_INITIAL_DELAY_MS", "250")

        settings = load_config(str(path))

        assert settings.sampling.max_frames == 7
        assert settings.inference.backend == "gemini"
        assert settings.retry.initial_delay_ms == 250

    def test_api_key_fallbacks(self, clean_env, tmp_path):
        clean_env.setenv("API_KEY", "generic")
        assert load_config(str(tmp_path / "none.yaml")).inference.api_key == "generic"

        clean_env.setenv("GEMINI_API_KEY", "gemini")
        assert load_config(str(tmp_path / "none.yaml")).inference.api_key == "gemini"

        clean_env.setenv("VISION_ANALYST_API_KEY", "specific")
        assert load_config(str(tmp_path / "none.yaml")).inference.api_key == "specific"

    def test_invalid_values_rejected(self, clean_env, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("sampling:\n  interval_seconds: 0\n")

        with pytest.raises(ValidationError):
            load_config(str(path))

    def test_unknown_backend_rejected(self):
        with pytest.raises(ValidationError):
            Settings.model_validate({"inference": {"backend": "openai"}})


class TestSetupLogging:
    """Tests for setup_logging."""

    @pytest.mark.parametrize("log_format", ["json", "text"])
    def test_formats_accepted(self, log_format):
        settings = Settings.model_validate({"logging": {"level": "debug", "format": log_format}})
        setup_logging(settings)
