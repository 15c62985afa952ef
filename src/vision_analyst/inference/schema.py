"""
Response Validation
===================

Structural validation of still-image inference responses.

The service is asked for schema-constrained JSON, but that contract is not
trusted: every response is parsed and validated here on receipt.

Rejected (MalformedResponse):
    - empty response text
    - text that is not a JSON object
    - missing objects / narrative fields
    - confidence outside {High, Medium, Low}
    - box_2d not four integers in [0, 1000], or ymin > ymax / xmin > xmax
"""

import json
import logging
from typing import Optional

from pydantic import ValidationError

from vision_analyst.errors import MalformedResponse
from vision_analyst.models.detection import StillAnalysisResult


logger = logging.getLogger(__name__)


def strip_code_fence(text: str) -> str:
    """Remove a surrounding markdown code fence, if present."""
    text = text.strip()
    if text.startswith("```"):
        lines = text.split("\n")
        text = "\n".join(lines[1:-1] if lines[-1].strip() == "```" else lines[1:])
    return text.strip()


def parse_still_response(text: Optional[str]) -> StillAnalysisResult:
    """
    Parse and validate a still-image response.

    Args:
        text: Raw response text from the inference service

    Returns:
        Validated StillAnalysisResult

    Raises:
        MalformedResponse: If the text is empty, not JSON, or fails the schema
    """
    if text is None or not text.strip():
        raise MalformedResponse("No response text from inference service")

    try:
        data = json.loads(strip_code_fence(text))
    except json.JSONDecodeError as e:
        raise MalformedResponse(f"Response is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise MalformedResponse(
            f"Response must be a JSON object, got {type(data).__name__}"
        )

    try:
        result = StillAnalysisResult.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Still response failed validation with {e.error_count()} error(s)")
        raise MalformedResponse(f"Response failed schema validation: {e}") from e

    return result
