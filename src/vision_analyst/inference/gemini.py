"""
Gemini Inference Client
=======================

Production inference backend using the Google Gen AI SDK (google-genai).

This client:
    - Sends still images with a JSON response schema and validates the reply
    - Runs sequential sessions as a chat, so context accumulates per frame
    - Wraps every SDK or transport failure in InferenceCallFailed
    - Logs all API calls

Design Rules:
    - Fail fast on misconfiguration (missing SDK or API key)
    - No retries here: callers wrap each call in RetryExecutor
    - Never trust the service's schema enforcement
"""

import logging
from typing import Any, Optional

from vision_analyst.errors import InferenceCallFailed
from vision_analyst.inference.client import BaseSequentialSession
from vision_analyst.inference.prompts import (
    SEQUENCE_SYSTEM_INSTRUCTION,
    STILL_PROMPT,
    STILL_RESPONSE_SCHEMA,
    STILL_SYSTEM_INSTRUCTION,
    frame_prompt,
)
from vision_analyst.inference.schema import parse_still_response
from vision_analyst.media.frame import Frame
from vision_analyst.media.timecode import format_timestamp
from vision_analyst.models.detection import StillAnalysisResult


logger = logging.getLogger(__name__)


DEFAULT_MODEL = "gemini-2.5-flash"


class GeminiSequentialSession(BaseSequentialSession):
    """
    Sequential session backed by a Gemini chat.

    The chat object keeps the running history; each successful turn is
    appended to it by the SDK.
    """

    def __init__(self, chat: Any, owner: "GeminiInferenceClient") -> None:
        super().__init__()
        self._chat = chat
        self._owner = owner

    async def _send_frame(self, frame: Frame, is_first: bool) -> Optional[str]:
        from google.genai import types

        timestamp = format_timestamp(frame.timestamp)
        message = [
            types.Part.from_bytes(data=frame.pixels, mime_type=frame.mime_type),
            frame_prompt(timestamp, is_first),
        ]

        try:
            response = await self._chat.send_message(message)
        except Exception as e:
            self._owner._record_error()
            raise InferenceCallFailed(f"Gemini frame analysis at {timestamp} failed: {e}") from e

        self._owner._record_call()
        logger.debug(f"Gemini: analysed frame at {timestamp} (first={is_first})")
        return response.text

    async def _send_summary(self, summary_prompt: str) -> Optional[str]:
        try:
            response = await self._chat.send_message(summary_prompt)
        except Exception as e:
            self._owner._record_error()
            raise InferenceCallFailed(f"Gemini final report failed: {e}") from e

        self._owner._record_call()
        logger.debug(f"Gemini: final report after {self.frames_analyzed} frame(s)")
        return response.text


class GeminiInferenceClient:
    """
    Inference client using Gemini vision-language models.

    Attributes:
        model: Model identifier
        request_timeout_seconds: Per-request timeout
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        request_timeout_seconds: float = 60.0,
        client: Optional[Any] = None,
    ) -> None:
        """
        Initialize Gemini client.

        Args:
            api_key: Gemini API key (required unless client is given)
            model: Model identifier
            request_timeout_seconds: Per-request timeout
            client: Pre-built genai.Client (skips SDK initialisation)

        Raises:
            ImportError: If google-genai is not installed
            InferenceCallFailed: If the SDK client cannot be created
        """
        self.model = model
        self.request_timeout_seconds = request_timeout_seconds

        self._api_call_count: int = 0
        self._api_error_count: int = 0
        self._session_count: int = 0

        self._client = client if client is not None else self._init_client(api_key)

        logger.info(f"GeminiInferenceClient initialized: model={model}")

    def _init_client(self, api_key: Optional[str]) -> Any:
        """Initialize the google-genai client."""
        if not api_key:
            raise InferenceCallFailed(
                "Gemini API key is missing. Set VISION_ANALYST_API_KEY or GEMINI_API_KEY."
            )

        try:
            from google import genai
            from google.genai import types
        except ImportError:
            raise ImportError(
                "google-genai is required for GeminiInferenceClient. "
                "Install with: pip install google-genai"
            )

        try:
            return genai.Client(
                api_key=api_key,
                http_options=types.HttpOptions(timeout=int(self.request_timeout_seconds * 1000)),
            )
        except Exception as e:
            raise InferenceCallFailed(f"Failed to initialize Gemini client: {e}") from e

    async def analyze_still(self, image: bytes, mime_type: str = "image/jpeg") -> StillAnalysisResult:
        """
        Detect objects and narrate a still image.

        Args:
            image: Encoded image bytes
            mime_type: MIME type of image

        Returns:
            Validated StillAnalysisResult

        Raises:
            InferenceCallFailed: If the request fails
            MalformedResponse: If the response fails validation
        """
        from google.genai import types

        try:
            response = await self._client.aio.models.generate_content(
                model=self.model,
                contents=[
                    types.Part.from_bytes(data=image, mime_type=mime_type),
                    STILL_PROMPT,
                ],
                config=types.GenerateContentConfig(
                    system_instruction=STILL_SYSTEM_INSTRUCTION,
                    response_mime_type="application/json",
                    response_schema=STILL_RESPONSE_SCHEMA,
                ),
            )
        except Exception as e:
            self._record_error()
            raise InferenceCallFailed(f"Gemini still analysis failed: {e}") from e

        self._record_call()
        result = parse_still_response(response.text)

        logger.debug(f"Gemini: still analysis found {len(result.objects)} object(s)")
        return result

    def open_sequential_session(self) -> GeminiSequentialSession:
        """Start a new chat with the sequence system instruction."""
        from google.genai import types

        chat = self._client.aio.chats.create(
            model=self.model,
            config=types.GenerateContentConfig(
                system_instruction=SEQUENCE_SYSTEM_INSTRUCTION,
            ),
        )
        self._session_count += 1
        logger.info(f"Gemini: opened sequential session #{self._session_count}")
        return GeminiSequentialSession(chat, owner=self)

    def _record_call(self) -> None:
        self._api_call_count += 1

    def _record_error(self) -> None:
        self._api_error_count += 1
        logger.error(f"Gemini API error. Total errors: {self._api_error_count}")

    @property
    def api_call_count(self) -> int:
        """Total successful API calls."""
        return self._api_call_count

    @property
    def api_error_count(self) -> int:
        """Total failed API calls."""
        return self._api_error_count

    def get_metrics(self) -> dict:
        """Get client metrics for observability."""
        return {
            "model": self.model,
            "api_call_count": self._api_call_count,
            "api_error_count": self._api_error_count,
            "session_count": self._session_count,
        }
