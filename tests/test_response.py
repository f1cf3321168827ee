"""
Tests for cardcutter/training/response.py - decoding model formatting replies.
"""

from cardcutter.training.response import (
    PARSE_FAILURE_REASONING,
    is_parse_failure,
    parse_formatting_response,
    parse_text_spans,
)


class TestParseFormattingResponse:
    """Tests for parse_formatting_response function."""

    def test_json_with_surrounding_prose(self):
        """Test that the JSON object is found inside chatty output."""
        text = 'Here you go:\n{"underline": [{"text": "will rise", "priority": 2}], "reasoning": "ok"}\nThanks!'
        parsed = parse_formatting_response(text)
        assert parsed["underline"] == [{"text": "will rise", "priority": 2}]
        assert parsed["emphasis"] == []
        assert parsed["highlight"] == []
        assert parsed["reasoning"] == "ok"

    def test_invalid_json_is_failure(self):
        parsed = parse_formatting_response("{not json at all}")
        assert is_parse_failure(parsed)
        assert parsed["underline"] == []

    def test_structured_text_fallback(self):
        """Test the loose section-list layout."""
        text = 'underline: ["key term", "other"]\nhighlight: ["smoking gun"]\nreasoning: "because"'
        parsed = parse_formatting_response(text)
        assert parsed["underline"] == [
            {"text": "key term", "priority": 1},
            {"text": "other", "priority": 2},
        ]
        assert parsed["highlight"] == [{"text": "smoking gun", "priority": 1}]
        assert parsed["reasoning"] == "because"
        assert not is_parse_failure(parsed)

    def test_gibberish_is_failure(self):
        parsed = parse_formatting_response("nothing useful here")
        assert parsed["reasoning"] == PARSE_FAILURE_REASONING

    def test_none_is_failure(self):
        assert is_parse_failure(parse_formatting_response(None))


class TestParseTextSpans:
    def test_priority_follows_order(self):
        assert [s["priority"] for s in parse_text_spans('"a", "b", "c"')] == [1, 2, 3]

    def test_no_quotes(self):
        assert parse_text_spans("a, b") == []
