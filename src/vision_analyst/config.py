"""
VisionAnalyst Configuration
===========================

This module handles configuration loading for the media analysis pipeline.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    VISION_ANALYST_INFERENCE_BACKEND -> inference.backend
    VISION_ANALYST_MODEL             -> inference.model
    VISION_ANALYST_API_KEY           -> inference.api_key
    GEMINI_API_KEY / API_KEY         -> inference.api_key (fallbacks)
    VISION_ANALYST_MAX_RETRIES       -> retry.max_retries
    VISION_ANALYST_INITIAL_DELAY_MS  -> retry.initial_delay_ms
    VISION_ANALYST_SAMPLE_INTERVAL   -> sampling.interval_seconds
    VISION_ANALYST_MAX_FRAMES        -> sampling.max_frames
    VISION_ANALYST_CAMERA_INDEX      -> camera.device_index
    VISION_ANALYST_LOG_LEVEL         -> logging.level
    VISION_ANALYST_LOG_FORMAT        -> logging.format

Example:
    from vision_analyst.config import settings

    print(settings.inference.model)
    print(settings.sampling.max_frames)
"""

import os
import logging
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator


logger = logging.getLogger(__name__)


# Bounding-box colors, assigned to object names in first-seen order
DEFAULT_PALETTE: List[str] = [
    "#ef4444",  # red
    "#f59e0b",  # amber
    "#10b981",  # emerald
    "#3b82f6",  # blue
    "#8b5cf6",  # violet
    "#ec4899",  # pink
    "#06b6d4",  # cyan
    "#f97316",  # orange
]


# =============================================================================
# Configuration Models
# =============================================================================

class AppConfig(BaseModel):
    """Application identification configuration."""

    name: str = Field(default="vision-analyst", description="Application name")
    version: str = Field(default="v0.1.0", description="Application version")


class InferenceConfig(BaseModel):
    """Vision-language inference backend configuration."""

    backend: str = Field(
        default="mock",
        description="Inference backend: 'mock' or 'gemini'",
    )
    model: str = Field(
        default="gemini-2.5-flash",
        description="Model identifier sent to the inference service",
    )
    api_key: Optional[str] = Field(
        default=None,
        description="API key for the inference service",
    )
    request_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Per-request timeout for inference calls",
    )

    @field_validator("backend")
    @classmethod
    def _check_backend(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in ("mock", "gemini"):
            raise ValueError(f"Unknown inference backend: {value!r}")
        return value


class RetryConfig(BaseModel):
    """Exponential-backoff retry configuration."""

    max_retries: int = Field(
        default=3,
        ge=0,
        description="Retries after the first failed attempt",
    )
    initial_delay_ms: int = Field(
        default=1000,
        ge=0,
        description="Delay before the first retry; doubles on each retry",
    )
    retry_malformed_responses: bool = Field(
        default=False,
        description="Whether responses failing schema validation are retried",
    )


class SamplingConfig(BaseModel):
    """Video frame sampling configuration."""

    interval_seconds: float = Field(
        default=3.0,
        gt=0,
        description="Seconds between sampled frames",
    )
    max_frames: int = Field(
        default=10,
        ge=1,
        description="Maximum number of frames sampled per video",
    )
    jpeg_quality: int = Field(
        default=80,
        ge=1,
        le=100,
        description="JPEG quality of sampled frames",
    )


class CameraConfig(BaseModel):
    """Camera snapshot configuration."""

    device_index: int = Field(default=0, ge=0, description="OpenCV camera index")
    preferred_width: int = Field(default=1280, ge=1, description="High-resolution width")
    preferred_height: int = Field(default=720, ge=1, description="High-resolution height")
    warmup_frames: int = Field(
        default=5,
        ge=0,
        description="Frames discarded before the snapshot (auto-exposure settle)",
    )
    snapshot_jpeg_quality: int = Field(
        default=85,
        ge=1,
        le=100,
        description="JPEG quality of camera snapshots",
    )


class OverlayConfig(BaseModel):
    """Overlay projection and rendering configuration."""

    palette: List[str] = Field(
        default_factory=lambda: list(DEFAULT_PALETTE),
        min_length=1,
        description="Color tokens assigned to distinct object names",
    )
    line_thickness: int = Field(default=2, ge=1, description="Box line thickness (px)")
    font_scale: float = Field(default=0.5, gt=0, description="Label font scale")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for VisionAnalyst.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    app: AppConfig = Field(default_factory=AppConfig)
    inference: InferenceConfig = Field(default_factory=InferenceConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    sampling: SamplingConfig = Field(default_factory=SamplingConfig)
    camera: CameraConfig = Field(default_factory=CameraConfig)
    overlay: OverlayConfig = Field(default_factory=OverlayConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    if config_path is None:
        search_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path(__file__).parent.parent.parent / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.debug("No config file found, using defaults and environment variables")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Inference settings
    if env_backend := os.environ.get("VISION_ANALYST_INFERENCE_BACKEND"):
        config_data.setdefault("inference", {})["backend"] = env_backend
    if env_model := os.environ.get("VISION_ANALYST_MODEL"):
        config_data.setdefault("inference", {})["model"] = env_model

    # API key, most specific variable wins
    for key_var in ("VISION_ANALYST_API_KEY", "GEMINI_API_KEY", "API_KEY"):
        if env_key := os.environ.get(key_var):
            config_data.setdefault("inference", {})["api_key"] = env_key
            break

    # Retry settings
    if env_retries := os.environ.get("VISION_ANALYST_MAX_RETRIES"):
        config_data.setdefault("retry", {})["max_retries"] = int(env_retries)
    if env_delay := os.environ.get("VISION_ANALYST_INITIAL_DELAY_MS"):
        config_data.setdefault("retry", {})["initial_delay_ms"] = int(env_delay)

    # Sampling settings
    if env_interval := os.environ.get("VISION_ANALYST_SAMPLE_INTERVAL"):
        config_data.setdefault("sampling", {})["interval_seconds"] = float(env_interval)
    if env_frames := os.environ.get("VISION_ANALYST_MAX_FRAMES"):
        config_data.setdefault("sampling", {})["max_frames"] = int(env_frames)

    # Camera settings
    if env_camera := os.environ.get("VISION_ANALYST_CAMERA_INDEX"):
        config_data.setdefault("camera", {})["device_index"] = int(env_camera)

    # Logging settings
    if env_log := os.environ.get("VISION_ANALYST_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log
    if env_log_format := os.environ.get("VISION_ANALYST_LOG_FORMAT"):
        config_data.setdefault("logging", {})["format"] = env_log_format


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


# =============================================================================
# Global Settings Instance
# =============================================================================

# Global settings instance - loaded on import
settings = load_config()
setup_logging(settings)
