"""
Tests for cardcutter/training/priority.py and cardcutter/training/context.py.
"""

import pytest

from cardcutter.pipeline.models import Card, Span, SpanType
from cardcutter.training.context import (
    DEFAULT_CONTEXT_RULES,
    context_rules_from_config,
    infer_debate_context,
)
from cardcutter.training.priority import (
    DEFAULT_PRIORITY_RULES,
    calculate_priority,
    rules_from_config,
    score_text,
)


def _span(text):
    return Span(SpanType.UNDERLINE, text, 0, len(text))


class TestCalculatePriority:
    """Tests for calculate_priority function."""

    def test_all_signals_clamp_to_floor(self):
        """Test that three stacked decrements clamp at 1."""
        assert calculate_priority(_span("proves a 50% increase, which is critical")) == 1

    def test_plain_text_is_baseline(self):
        assert calculate_priority(_span("the weather on tuesday")) == 3

    @pytest.mark.parametrize("text", [
        "the impact of trade",
        "over 300 million people",
        "12 percent of voters",
        "this is essential",
    ])
    def test_single_signal(self, text):
        """Test that one matching family lowers priority by one."""
        assert calculate_priority(_span(text)) == 2

    def test_case_insensitive(self):
        """Test that phrase and pattern matching ignore case."""
        assert score_text("EVIDENCE of 3 BILLION") == 1

    def test_proves_counts_in_two_families(self):
        """Test that a word listed in two families decrements for both."""
        assert score_text("this proves nothing") == 1

    def test_result_in_range(self):
        for text in ["", "impact", "must 5% shows", "ordinary words"]:
            assert 1 <= score_text(text) <= 5


class TestRulesFromConfig:
    """Tests for rules_from_config function."""

    def test_empty_section_uses_defaults(self):
        assert rules_from_config(None) is DEFAULT_PRIORITY_RULES
        assert rules_from_config({}) is DEFAULT_PRIORITY_RULES

    def test_baseline_override_keeps_signals(self):
        rules = rules_from_config({"baseline": 5})
        assert rules.baseline == 5
        assert rules.signals == DEFAULT_PRIORITY_RULES.signals
        assert score_text("plain", rules) == 5

    def test_signals_replace_defaults(self):
        """Test that a signals list replaces every default family."""
        rules = rules_from_config({
            "signals": [{"name": "nuclear", "phrases": ["nuclear"], "decrement": 2}],
        })
        assert score_text("nuclear war", rules) == 1
        assert score_text("critical impact", rules) == 3


class TestInferDebateContext:
    """Tests for infer_debate_context function."""

    def test_climate_impact(self):
        card = Card(tag="Warming Impact", cite="Smith 2020", body_text="Sea levels rise.")
        context = infer_debate_context(card)
        assert context.topic == "climate change"
        assert context.type == "impact"
        assert context.urgency == "medium"

    def test_defaults(self):
        card = Card(tag="Something Else", cite="Doe 2001", body_text="Nothing relevant here at all.")
        context = infer_debate_context(card)
        assert (context.topic, context.type, context.urgency) == ("general", "evidence", "medium")

    def test_first_bucket_wins(self):
        """Test that earlier buckets win when several match."""
        card = Card(tag="Market warming", cite="", body_text="military health")
        assert infer_debate_context(card).topic == "climate change"

    def test_urgency(self):
        card = Card(tag="Crisis now", cite="", body_text="an imminent threat")
        assert infer_debate_context(card).urgency == "high"

    def test_config_buckets(self):
        """Test that configured buckets replace the topic defaults."""
        rules = context_rules_from_config({"topics": {"space": ["orbit", "NASA"]}})
        card = Card(tag="Orbital debris", cite="nasa 2020", body_text="climate")
        assert infer_debate_context(card, rules).topic == "space"
        assert rules.types == DEFAULT_CONTEXT_RULES.types
