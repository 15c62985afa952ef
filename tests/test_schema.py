"""
Response Validation Tests
=========================

Still-image responses are validated on receipt, never coerced.
"""

import json

import pytest

from vision_analyst.errors import MalformedResponse
from vision_analyst.inference.schema import parse_still_response, strip_code_fence
from vision_analyst.models.detection import Confidence


def with_object(payload: dict, **changes) -> str:
    payload = json.loads(json.dumps(payload))
    payload["objects"][0].update(changes)
    return json.dumps(payload)


class TestParseStillResponse:
    """Tests for parse_still_response."""

    def test_valid_response(self, still_payload):
        result = parse_still_response(json.dumps(still_payload))

        assert [o.name for o in result.objects] == ["cat", "dog", "cat"]
        assert result.objects[0].confidence is Confidence.HIGH
        assert result.objects[0].box == (100, 200, 400, 600)
        assert result.narrative == "Two cats and a dog on a sofa."

    def test_unknown_confidence_rejected(self, still_payload):
        """'VeryHigh' is not coerced to High."""
        with pytest.raises(MalformedResponse):
            parse_still_response(with_object(still_payload, confidence="VeryHigh"))

    @pytest.mark.parametrize("box", [[0, 0, 1001, 10], [-1, 0, 10, 10]])
    def test_out_of_range_box_rejected(self, still_payload, box):
        with pytest.raises(MalformedResponse):
            parse_still_response(with_object(still_payload, box_2d=box))

    @pytest.mark.parametrize("box", [[500, 0, 400, 10], [0, 600, 10, 500]])
    def test_inverted_box_rejected(self, still_payload, box):
        """ymin > ymax or xmin > xmax is malformed, not clamped."""
        with pytest.raises(MalformedResponse):
            parse_still_response(with_object(still_payload, box_2d=box))

    @pytest.mark.parametrize("box", [[0, 0, 10], [0, 0, 10, 10, 10], [0.5, 0, 10, 10], ["1", 0, 10, 10]])
    def test_box_must_be_four_integers(self, still_payload, box):
        with pytest.raises(MalformedResponse):
            parse_still_response(with_object(still_payload, box_2d=box))

    def test_degenerate_box_allowed(self, still_payload):
        result = parse_still_response(with_object(still_payload, box_2d=[10, 10, 10, 10]))
        assert result.objects[0].box == (10, 10, 10, 10)

    def test_empty_name_rejected(self, still_payload):
        with pytest.raises(MalformedResponse):
            parse_still_response(with_object(still_payload, name="  "))

    @pytest.mark.parametrize("missing", ["objects", "narrative"])
    def test_missing_field_rejected(self, still_payload, missing):
        del still_payload[missing]
        with pytest.raises(MalformedResponse):
            parse_still_response(json.dumps(still_payload))

    @pytest.mark.parametrize("text", [None, "", "   ", "not json", "[1, 2]", "42"])
    def test_unusable_text_rejected(self, text):
        with pytest.raises(MalformedResponse):
            parse_still_response(text)

    def test_code_fence_tolerated(self, still_payload):
        text = "```json\n" + json.dumps(still_payload) + "\n```"
        assert len(parse_still_response(text).objects) == 3

    def test_empty_object_list_allowed(self):
        result = parse_still_response('{"objects": [], "narrative": "An empty room."}')
        assert result.objects == ()


class TestStripCodeFence:
    """Tests for strip_code_fence."""

    def test_plain_text_untouched(self):
        assert strip_code_fence(' {"a": 1} ') == '{"a": 1}'

    def test_unterminated_fence(self):
        assert strip_code_fence('```json\n{"a": 1}') == '{"a": 1}'
