"""
Deterministic QA gates for synthesised training data.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import jsonschema

from cardcutter.pipeline.models import TrainingExample

from .response import is_parse_failure, parse_formatting_response

logger = logging.getLogger(__name__)

# Shipped as package data next to the default pipeline.yaml
DEFAULT_SCHEMA_PATH = (
    Path(__file__).resolve().parent.parent / "config" / "schemas" / "training_example.schema.json"
)

MIN_RECOMMENDED_EXAMPLES = 10
MAX_AVERAGE_TOKENS = 3000
MIN_QUALITY_SCORE = 60


def load_schema(schema_path: Optional[Path] = DEFAULT_SCHEMA_PATH) -> Optional[Dict[str, Any]]:
    """
    Load the training example JSON schema.

    Returns None when no path is given. A path that is missing or unreadable
    also gives None, with a warning, since schema checks are then skipped.
    """
    if schema_path is None:
        return None
    if not schema_path.exists():
        logger.warning(f"Training example schema not found at {schema_path}; schema validation skipped")
        return None
    try:
        with open(schema_path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (IOError, json.JSONDecodeError) as e:
        logger.warning(f"Unreadable training example schema {schema_path}: {e}; schema validation skipped")
        return None


def estimate_tokens(example: Dict[str, Any]) -> float:
    """Rough token estimate: four characters per token."""
    return sum(len(m.get("content") or "") for m in example.get("messages", [])) / 4


def validate_training_data(
    examples: Sequence[Union[TrainingExample, Dict[str, Any]]],
    schema_path: Optional[Path] = DEFAULT_SCHEMA_PATH,
) -> Dict[str, Any]:
    """
    Validate training examples before they go to a fine-tuning service.

    Errors make the batch unusable (missing user/assistant turn, schema
    violation, unparsable assistant reply); warnings flag weak batches.

    Args:
        examples: TrainingExample objects or their dict form
        schema_path: JSON schema for a single example (skipped if missing)

    Returns:
        Report dict with status, valid, errors, warnings and statistics
    """
    errors: List[str] = []
    warnings: List[str] = []
    by_type: Dict[str, int] = {}
    total_tokens = 0.0
    quality_points = 0

    schema = load_schema(schema_path)
    rows = [e.to_dict() if isinstance(e, TrainingExample) else e for e in examples]

    for i, example in enumerate(rows):
        if not isinstance(example, dict) or not isinstance(example.get("messages"), list):
            errors.append(f"Example {i}: Missing messages array")
            continue

        if schema is not None:
            try:
                jsonschema.validate(example, schema)
            except jsonschema.ValidationError as e:
                errors.append(f"Example {i}: Schema validation failed: {e.message}")
                continue

        messages = example["messages"]
        roles = [m.get("role") for m in messages]
        if "user" not in roles:
            errors.append(f"Example {i}: missing user message")
        if "assistant" not in roles:
            errors.append(f"Example {i}: missing assistant message")
        if "system" not in roles:
            warnings.append(f"Example {i}: missing system message (recommended)")

        for m in messages:
            if m.get("role") == "assistant" and is_parse_failure(parse_formatting_response(m.get("content", ""))):
                errors.append(f"Example {i}: assistant reply is not a parsable formatting response")

        tokens = estimate_tokens(example)
        total_tokens += tokens

        metadata = example.get("metadata") or {}
        if metadata.get("type"):
            by_type[metadata["type"]] = by_type.get(metadata["type"], 0) + 1

        if 100 < tokens < 4000:
            quality_points += 2
        if "system" in roles:
            quality_points += 1
        if metadata:
            quality_points += 1

    count = len(rows)
    average_tokens = round(total_tokens / count) if count else 0
    quality_score = round(quality_points / (count * 4) * 100) if count else 0

    if count < MIN_RECOMMENDED_EXAMPLES:
        warnings.append(
            f"Less than {MIN_RECOMMENDED_EXAMPLES} training examples - consider adding more for better results"
        )
    if average_tokens > MAX_AVERAGE_TOKENS:
        warnings.append("High average token count - consider shorter examples for efficiency")
    if quality_score < MIN_QUALITY_SCORE:
        warnings.append("Low quality score - consider improving example structure and metadata")

    return {
        "status": "FAIL" if errors else "OK",
        "valid": not errors,
        "errors": errors,
        "warnings": warnings,
        "statistics": {
            "total_examples": count,
            "by_type": by_type,
            "average_tokens": average_tokens,
            "quality_score": quality_score,
        },
    }
