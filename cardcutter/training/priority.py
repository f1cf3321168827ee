"""
Formatting priority for spans (1 = most important, 5 = least).

Each signal family that matches a span's text lowers the priority by its
decrement; families are evaluated independently, so decrements stack.
The result is clamped to [floor, ceiling].
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from cardcutter.pipeline.models import Card, Span


@dataclass(frozen=True)
class PrioritySignal:
    name: str
    phrases: Tuple[str, ...] = ()
    pattern: Optional[str] = None
    decrement: int = 1

    def matches(self, text: str) -> bool:
        lowered = text.lower()
        if any(p.lower() in lowered for p in self.phrases):
            return True
        if self.pattern and re.search(self.pattern, text, re.IGNORECASE):
            return True
        return False


@dataclass(frozen=True)
class PriorityRules:
    baseline: int = 3
    floor: int = 1
    ceiling: int = 5
    signals: Tuple[PrioritySignal, ...] = field(default_factory=tuple)


KEY_TERMS = PrioritySignal(
    name="key_terms",
    phrases=("impact", "uniqueness", "link", "internal link", "solvency",
             "evidence", "proves", "shows", "demonstrates"),
)
STATISTICS = PrioritySignal(
    name="statistics",
    pattern=r"\d+%|\d+\s*(?:million|billion|trillion|percent)",
)
STRONG_LANGUAGE = PrioritySignal(
    name="strong_language",
    phrases=("must", "will", "proves", "confirms", "establishes",
             "critical", "essential"),
)

DEFAULT_PRIORITY_RULES = PriorityRules(signals=(KEY_TERMS, STATISTICS, STRONG_LANGUAGE))


def rules_from_config(section: Optional[Dict[str, Any]]) -> PriorityRules:
    """
    Build PriorityRules from the ``priority`` config section.

    Missing keys keep their defaults; a ``signals`` list replaces the
    default signal families wholesale.
    """
    if not section:
        return DEFAULT_PRIORITY_RULES

    signals = DEFAULT_PRIORITY_RULES.signals
    if "signals" in section:
        built: List[PrioritySignal] = []
        for i, raw in enumerate(section.get("signals") or []):
            built.append(PrioritySignal(
                name=raw.get("name", f"signal_{i}"),
                phrases=tuple(raw.get("phrases") or ()),
                pattern=raw.get("pattern"),
                decrement=int(raw.get("decrement", 1)),
            ))
        signals = tuple(built)

    return PriorityRules(
        baseline=int(section.get("baseline", DEFAULT_PRIORITY_RULES.baseline)),
        floor=int(section.get("floor", DEFAULT_PRIORITY_RULES.floor)),
        ceiling=int(section.get("ceiling", DEFAULT_PRIORITY_RULES.ceiling)),
        signals=signals,
    )


def score_text(text: str, rules: PriorityRules = DEFAULT_PRIORITY_RULES) -> int:
    priority = rules.baseline
    for signal in rules.signals:
        if signal.matches(text or ""):
            priority -= signal.decrement
    return max(rules.floor, min(rules.ceiling, priority))


def calculate_priority(
    span: Span,
    card: Optional[Card] = None,
    rules: PriorityRules = DEFAULT_PRIORITY_RULES,
) -> int:
    """
    Priority for a span within its card.

    Args:
        span: Span to score
        card: Parent card (currently unused by the default signals)
        rules: Signal configuration

    Returns:
        Integer priority in [rules.floor, rules.ceiling]
    """
    return score_text(span.text, rules)
