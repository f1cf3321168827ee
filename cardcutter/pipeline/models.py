"""
Pipeline data models for document → cards → training examples.

These are intentionally lightweight (stdlib only) so the project stays easy to run.
Records are frozen once the pipeline hands them out.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Dict, Any, Tuple


class SpanType(str, Enum):
    UNDERLINE = "underline"
    EMPHASIS = "emphasis"
    STRONG = "strong"
    HIGHLIGHT = "highlight"


class ExampleType(str, Enum):
    FULL_FORMATTING = "full_formatting"
    PARTIAL_FORMATTING = "partial_formatting"
    CONTEXT_AWARE_FORMATTING = "context_aware_formatting"


@dataclass(frozen=True)
class Span:
    type: SpanType
    text: str
    start_position: int
    end_position: int
    priority: Optional[int] = None  # None until scored

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "text": self.text,
            "startPosition": self.start_position,
            "endPosition": self.end_position,
            "priority": self.priority,
        }


@dataclass(frozen=True)
class Card:
    tag: str
    cite: str
    body_text: str
    formatted_elements: Tuple[Span, ...] = ()
    raw_html: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tag": self.tag,
            "cite": self.cite,
            "bodyText": self.body_text,
            "formattedElements": [s.to_dict() for s in self.formatted_elements],
            "rawHtml": self.raw_html,
        }


@dataclass(frozen=True)
class DebateContext:
    topic: str = "general"
    type: str = "evidence"
    urgency: str = "medium"

    def to_dict(self) -> Dict[str, str]:
        return {"topic": self.topic, "type": self.type, "urgency": self.urgency}


@dataclass(frozen=True)
class ExampleMetadata:
    card_id: str
    tag: str
    source: str
    created_at: str
    type: ExampleType
    debate_context: Optional[DebateContext] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "cardId": self.card_id,
            "tag": self.tag,
            "source": self.source,
            "createdAt": self.created_at,
            "type": self.type.value,
        }
        if self.debate_context is not None:
            data["debateContext"] = self.debate_context.to_dict()
        return data


@dataclass(frozen=True)
class TrainingExample:
    messages: List[Dict[str, str]] = field(default_factory=list)
    metadata: Optional[ExampleMetadata] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "messages": [{"role": m["role"], "content": m["content"]} for m in self.messages],
        }
        if self.metadata is not None:
            data["metadata"] = self.metadata.to_dict()
        return data


@dataclass(frozen=True)
class BodyContent:
    text: str
    elements: Tuple[Span, ...] = ()
