"""
Debate context inference by keyword buckets.

Scans ``tag + cite + body`` (lower-cased). On each axis the first bucket
with a matching keyword wins; otherwise the axis default applies.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from cardcutter.pipeline.models import Card, DebateContext

# (label, keywords) in priority order
Buckets = Tuple[Tuple[str, Tuple[str, ...]], ...]

DEFAULT_TOPICS: Buckets = (
    ("climate change", ("climate", "environment", "warming")),
    ("economics", ("economic", "gdp", "market")),
    ("security", ("security", "military", "defense")),
    ("healthcare", ("health", "medical", "disease")),
)

DEFAULT_TYPES: Buckets = (
    ("impact", ("impact", "consequence", "result")),
    ("link", ("cause", "because", "leads to")),
    ("solvency", ("solve", "address", "fix")),
)

DEFAULT_URGENCY: Buckets = (
    ("high", ("imminent", "immediate", "urgent", "crisis")),
)


@dataclass(frozen=True)
class ContextRules:
    topics: Buckets = DEFAULT_TOPICS
    types: Buckets = DEFAULT_TYPES
    urgency: Buckets = DEFAULT_URGENCY
    default_topic: str = "general"
    default_type: str = "evidence"
    default_urgency: str = "medium"


DEFAULT_CONTEXT_RULES = ContextRules()


def _buckets(raw: Optional[Dict[str, Any]], fallback: Buckets) -> Buckets:
    if raw is None:
        return fallback
    return tuple((str(label), tuple(str(k).lower() for k in keywords or ())) for label, keywords in raw.items())


def context_rules_from_config(section: Optional[Dict[str, Any]]) -> ContextRules:
    """Build ContextRules from the ``context`` config section (mapping label → keywords)."""
    if not section:
        return DEFAULT_CONTEXT_RULES
    return ContextRules(
        topics=_buckets(section.get("topics"), DEFAULT_TOPICS),
        types=_buckets(section.get("types"), DEFAULT_TYPES),
        urgency=_buckets(section.get("urgency"), DEFAULT_URGENCY),
        default_topic=section.get("default_topic", "general"),
        default_type=section.get("default_type", "evidence"),
        default_urgency=section.get("default_urgency", "medium"),
    )


def _first_match(text: str, buckets: Buckets, default: str) -> str:
    for label, keywords in buckets:
        if any(k in text for k in keywords):
            return label
    return default


def infer_debate_context(card: Card, rules: ContextRules = DEFAULT_CONTEXT_RULES) -> DebateContext:
    text = f"{card.tag} {card.cite} {card.body_text}".lower()
    return DebateContext(
        topic=_first_match(text, rules.topics, rules.default_topic),
        type=_first_match(text, rules.types, rules.default_type),
        urgency=_first_match(text, rules.urgency, rules.default_urgency),
    )
