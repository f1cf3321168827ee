"""
Training example synthesis: cards → chat-format fine-tuning examples.

Each valid card yields up to three examples:
  full_formatting         : card has body text and at least one span
  partial_formatting      : body longer than PARTIAL_MIN_BODY_LENGTH; first 60% of it
  context_aware_formatting: always; carries an inferred DebateContext
"""

from __future__ import annotations

import dataclasses
import hashlib
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from cardcutter.pipeline.models import (
    Card,
    DebateContext,
    ExampleMetadata,
    ExampleType,
    Span,
    SpanType,
    TrainingExample,
)

from .context import DEFAULT_CONTEXT_RULES, ContextRules, infer_debate_context
from .priority import DEFAULT_PRIORITY_RULES, PriorityRules, calculate_priority

logger = logging.getLogger(__name__)

PARTIAL_MIN_BODY_LENGTH = 100
PARTIAL_RATIO = 0.6
CARD_ID_LENGTH = 16

RESPONSE_BUCKETS = ("underline", "emphasis", "highlight")

_BUCKET_FOR_TYPE = {
    SpanType.UNDERLINE: "underline",
    SpanType.EMPHASIS: "emphasis",
    SpanType.STRONG: "emphasis",
    SpanType.HIGHLIGHT: "highlight",
}

FULL_SYSTEM_PROMPT = """You are an expert debate card formatter. Analyze the provided debate card text and determine the optimal formatting for competitive debate use. Focus on:

1. UNDERLINE: Key concepts, important terms, and crucial phrases that debaters need to quickly identify
2. EMPHASIS: Strong evidence, author conclusions, and critical arguments that carry significant weight
3. HIGHLIGHT: The most impactful claims, "smoking gun" quotes, and decisive evidence that could win arguments

Respond with a JSON object containing formatting instructions with precise text spans and positioning."""

PARTIAL_SYSTEM_PROMPT = (
    "You are a debate card formatting assistant. Given partial card text, predict the likely "
    "formatting patterns based on argument structure, evidence strength, and debate utility. "
    "Even with incomplete text, identify the most important elements that should be formatted."
)

CONTEXT_SYSTEM_PROMPT = (
    "You are a specialized debate card formatter with expertise in {topic} arguments. "
    "Consider the debate context and argument type when making formatting decisions. "
    "Prioritize formatting that maximizes the card's utility in competitive debate rounds."
)

CONTEXT_PROMPT_SUFFIX = (
    "Context: This appears to be {type} evidence for {topic} arguments. "
    "Format accordingly for maximum competitive debate utility."
)


def generate_card_id(card: Card) -> str:
    """Short content hash of tag, cite and the first 50 body characters (advisory, not unique)."""
    key = f"{card.tag}|{card.cite}|{(card.body_text or '')[:50]}"
    return hashlib.sha256(key.encode("utf-8")).hexdigest()[:CARD_ID_LENGTH]


def build_card_prompt(card: Card) -> str:
    prompt = "Please format this debate card:\n\n"
    if card.tag:
        prompt += f"TAG: {card.tag}\n\n"
    if card.cite:
        prompt += f"CITE: {card.cite}\n\n"
    prompt += f"BODY TEXT:\n{card.body_text}\n\n"
    prompt += "Provide formatting instructions as a JSON object with underline, emphasis, and highlight arrays."
    return prompt


def generate_formatting_reasoning(response: Dict[str, Any], context: Optional[DebateContext] = None) -> str:
    reasons = []
    if response["underline"]:
        reasons.append(
            f"Underlined {len(response['underline'])} key terms and concepts for quick identification during rounds"
        )
    if response["emphasis"]:
        reasons.append(
            f"Emphasized {len(response['emphasis'])} pieces of strong evidence and author conclusions"
        )
    if response["highlight"]:
        reasons.append(
            f"Highlighted {len(response['highlight'])} critical claims and impactful quotes"
        )
    if context is not None:
        reasons.append(f"Formatting optimized for {context.type} arguments in {context.topic} debates")

    if not reasons:
        return "No formatting elements were identified."
    return ". ".join(reasons) + "."


def build_formatting_response(
    card: Card,
    context: Optional[DebateContext] = None,
    rules: PriorityRules = DEFAULT_PRIORITY_RULES,
) -> str:
    """Assistant reply: JSON with underline/emphasis/highlight span lists and reasoning."""
    response: Dict[str, Any] = {bucket: [] for bucket in RESPONSE_BUCKETS}
    response["reasoning"] = ""

    for span in card.formatted_elements:
        bucket = _BUCKET_FOR_TYPE.get(span.type)
        if bucket is None:
            continue
        priority = span.priority if span.priority is not None else calculate_priority(span, card, rules)
        response[bucket].append({
            "text": span.text,
            "start": span.start_position,
            "end": span.end_position,
            "priority": priority,
        })

    response["reasoning"] = generate_formatting_reasoning(response, context)
    return json.dumps(response, indent=2, ensure_ascii=False)


def extract_relevant_formatting(partial_body: str, full_card: Card) -> Tuple[Span, ...]:
    """Spans of the full card whose text still occurs in the truncated body (order kept)."""
    if not partial_body:
        return ()
    return tuple(s for s in full_card.formatted_elements if s.text in partial_body)


def truncate_card(card: Card, ratio: float = PARTIAL_RATIO) -> Card:
    """Character-level truncation of the body; formatting is re-derived by the caller."""
    cut = int(len(card.body_text) * ratio)
    return dataclasses.replace(card, body_text=card.body_text[:cut], formatted_elements=())


def _example(
    card: Card,
    system: str,
    user: str,
    assistant: str,
    example_type: ExampleType,
    created_at: str,
    context: Optional[DebateContext] = None,
) -> TrainingExample:
    return TrainingExample(
        messages=[
            {"role": "system", "content": system},
            {"role": "user", "content": user},
            {"role": "assistant", "content": assistant},
        ],
        metadata=ExampleMetadata(
            card_id=generate_card_id(card),
            tag=card.tag,
            source=card.cite,
            created_at=created_at,
            type=example_type,
            debate_context=context,
        ),
    )


def create_formatting_example(card: Card, created_at: str, rules: PriorityRules = DEFAULT_PRIORITY_RULES) -> TrainingExample:
    return _example(
        card,
        FULL_SYSTEM_PROMPT,
        build_card_prompt(card),
        build_formatting_response(card, rules=rules),
        ExampleType.FULL_FORMATTING,
        created_at,
    )


def create_partial_formatting_example(
    card: Card,
    created_at: str,
    rules: PriorityRules = DEFAULT_PRIORITY_RULES,
) -> TrainingExample:
    partial = truncate_card(card)
    partial = dataclasses.replace(
        partial,
        formatted_elements=extract_relevant_formatting(partial.body_text, card),
    )
    return _example(
        partial,
        PARTIAL_SYSTEM_PROMPT,
        build_card_prompt(partial),
        build_formatting_response(partial, rules=rules),
        ExampleType.PARTIAL_FORMATTING,
        created_at,
    )


def create_context_aware_example(
    card: Card,
    created_at: str,
    rules: PriorityRules = DEFAULT_PRIORITY_RULES,
    context_rules: ContextRules = DEFAULT_CONTEXT_RULES,
) -> TrainingExample:
    context = infer_debate_context(card, context_rules)
    user = build_card_prompt(card) + "\n\n" + CONTEXT_PROMPT_SUFFIX.format(type=context.type, topic=context.topic)
    return _example(
        card,
        CONTEXT_SYSTEM_PROMPT.format(topic=context.topic),
        user,
        build_formatting_response(card, context=context, rules=rules),
        ExampleType.CONTEXT_AWARE_FORMATTING,
        created_at,
        context=context,
    )


def generate_training_examples(
    card: Card,
    rules: PriorityRules = DEFAULT_PRIORITY_RULES,
    context_rules: ContextRules = DEFAULT_CONTEXT_RULES,
    created_at: Optional[str] = None,
) -> List[TrainingExample]:
    """All examples for a single card, in full → partial → context order."""
    if created_at is None:
        created_at = datetime.now(timezone.utc).isoformat()

    examples = []
    if card.body_text and card.formatted_elements:
        examples.append(create_formatting_example(card, created_at, rules))
    if card.body_text and len(card.body_text) > PARTIAL_MIN_BODY_LENGTH:
        examples.append(create_partial_formatting_example(card, created_at, rules))
    examples.append(create_context_aware_example(card, created_at, rules, context_rules))
    return examples


def build_training_examples(
    cards: Iterable[Card],
    rules: PriorityRules = DEFAULT_PRIORITY_RULES,
    context_rules: ContextRules = DEFAULT_CONTEXT_RULES,
    now: Optional[datetime] = None,
) -> List[TrainingExample]:
    """
    Convert cards to training examples.

    A card that fails synthesis is logged and skipped; the batch continues.

    Args:
        cards: Valid cards, typically from extract_cards()
        rules: Priority scoring rules for spans without a priority
        context_rules: Keyword buckets for debate context inference
        now: Timestamp stamped on every example (defaults to current UTC time)

    Returns:
        Flat list of training examples in card order
    """
    created_at = (now or datetime.now(timezone.utc)).isoformat()
    examples: List[TrainingExample] = []
    card_count = 0

    for card in cards:
        card_count += 1
        try:
            examples.extend(generate_training_examples(card, rules, context_rules, created_at))
        except Exception as e:
            logger.warning(f"Error converting card '{getattr(card, 'tag', '')}' to training data: {e}", exc_info=True)
            continue

    logger.info(f"{len(examples)} training examples generated from {card_count} cards")
    return examples
