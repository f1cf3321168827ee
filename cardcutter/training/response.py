"""
Decoding of formatting replies produced by a (fine-tuned) model.

Accepts the JSON object the training examples teach, tolerating prose around
it, and falls back to a loose ``underline: ["..."]`` text layout.
"""

import json
import logging
import re
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

PARSE_FAILURE_REASONING = "Failed to parse formatting instructions"

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
_QUOTED_RE = re.compile(r'"([^"]+)"')
_SECTION_RES = {
    name: re.compile(rf"{name}:?\s*\[([^\]]*)\]", re.IGNORECASE)
    for name in ("underline", "emphasis", "highlight")
}
_REASONING_RE = re.compile(r'reasoning:?\s*"?([^"]*)"?', re.IGNORECASE)


def empty_response(reasoning: str = "") -> Dict[str, Any]:
    return {"underline": [], "emphasis": [], "highlight": [], "reasoning": reasoning}


def parse_text_spans(span_text: str) -> List[Dict[str, Any]]:
    """Quoted strings become spans, prioritised by their position in the list."""
    return [
        {"text": text, "priority": i}
        for i, text in enumerate(_QUOTED_RE.findall(span_text), start=1)
    ]


def parse_structured_response(text: str) -> Dict[str, Any]:
    result = empty_response()
    for name, pattern in _SECTION_RES.items():
        m = pattern.search(text)
        if m:
            result[name] = parse_text_spans(m.group(1))
    m = _REASONING_RE.search(text)
    if m:
        result["reasoning"] = m.group(1).strip()
    return result


def parse_formatting_response(response_text: str) -> Dict[str, Any]:
    """
    Parse a model's formatting reply.

    Returns:
        Dict with underline/emphasis/highlight lists and a reasoning string.
        Unparsable input yields empty lists and PARSE_FAILURE_REASONING.
    """
    text = response_text or ""
    m = _JSON_OBJECT_RE.search(text)
    if m:
        try:
            parsed = json.loads(m.group(0))
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse formatting response: {e}")
            return empty_response(PARSE_FAILURE_REASONING)
        if not isinstance(parsed, dict):
            return empty_response(PARSE_FAILURE_REASONING)
        result = empty_response()
        result.update(parsed)
        return result

    result = parse_structured_response(text)
    if not any(result[k] for k in ("underline", "emphasis", "highlight")) and not result["reasoning"]:
        return empty_response(PARSE_FAILURE_REASONING)
    return result


def is_parse_failure(parsed: Dict[str, Any]) -> bool:
    return parsed.get("reasoning") == PARSE_FAILURE_REASONING
