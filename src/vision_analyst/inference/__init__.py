"""
Inference Module
================

Vision-language inference for VisionAnalyst.

This module provides a black-box abstraction over the inference service.
The pipeline consumes ONLY the contract defined here, never SDK types.

Components:
    - InferenceClient / SequentialSession: Backend contract
    - MockInferenceClient: Deterministic offline backend
    - GeminiInferenceClient: Google Gen AI backend (production)
    - parse_still_response: Structural validation of still responses
"""

import logging

from vision_analyst.config import Settings
from vision_analyst.inference.client import (
    EMPTY_FRAME_TEXT,
    EMPTY_REPORT_TEXT,
    BaseSequentialSession,
    InferenceClient,
    SequentialSession,
)
from vision_analyst.inference.gemini import GeminiInferenceClient
from vision_analyst.inference.mock import MockInferenceClient
from vision_analyst.inference.schema import parse_still_response


logger = logging.getLogger(__name__)


def create_inference_client(settings: Settings) -> InferenceClient:
    """
    Create the inference backend selected in configuration.

    Args:
        settings: Loaded settings

    Returns:
        MockInferenceClient or GeminiInferenceClient
    """
    backend = settings.inference.backend
    if backend == "gemini":
        return GeminiInferenceClient(
            api_key=settings.inference.api_key,
            model=settings.inference.model,
            request_timeout_seconds=settings.inference.request_timeout_seconds,
        )

    logger.info("Using mock inference backend")
    return MockInferenceClient()


__all__ = [
    "InferenceClient",
    "SequentialSession",
    "BaseSequentialSession",
    "EMPTY_FRAME_TEXT",
    "EMPTY_REPORT_TEXT",
    "MockInferenceClient",
    "GeminiInferenceClient",
    "parse_still_response",
    "create_inference_client",
]
