"""
Formatted-span extraction from a card body fragment.

The fragment is parsed once and walked in document order. Body text is
assembled with whitespace collapsed on the fly, and every formatting marker
records its start/end offsets against that same text, so
``body_text[span.start_position:span.end_position] == span.text`` always holds.

Marker families:
  underline : <u>
  emphasis  : <em>, <i>
  strong    : <strong>, <b>
  highlight : <mark>, <span style="background…: <colour>">
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional

from bs4 import BeautifulSoup
from bs4.element import NavigableString, PreformattedString, Tag

from .models import BodyContent, Span, SpanType

_MARKER_TAGS = {
    "u": SpanType.UNDERLINE,
    "em": SpanType.EMPHASIS,
    "i": SpanType.EMPHASIS,
    "strong": SpanType.STRONG,
    "b": SpanType.STRONG,
    "mark": SpanType.HIGHLIGHT,
}

# Elements that separate words in the flattened text
_BLOCK_TAGS = {
    "address", "article", "aside", "blockquote", "br", "dd", "div", "dl",
    "dt", "fieldset", "figcaption", "figure", "footer", "form",
    "h1", "h2", "h3", "h4", "h5", "h6", "header", "hr", "li", "main",
    "nav", "ol", "p", "pre", "section", "table", "tbody", "td", "tfoot",
    "th", "thead", "tr", "ul",
}

_NOISE_TAGS = {"script", "style", "noscript", "head", "title"}

_BACKGROUND_RE = re.compile(
    r"(?:^|;)\s*(?:background(?:-color)?|mso-highlight)\s*:\s*([^;]+)",
    re.IGNORECASE,
)
_NO_BACKGROUND = {
    "transparent", "none", "inherit", "initial", "unset",
    "white", "#fff", "#ffffff", "auto",
}

_TOKEN_RE = re.compile(r"(\s+)|(\S+)")


def marker_type(el: Tag) -> Optional[SpanType]:
    """Span type a marker element contributes, or None for plain elements."""
    name = (el.name or "").lower()
    if name in _MARKER_TAGS:
        return _MARKER_TAGS[name]
    if name == "span":
        style = el.get("style") or ""
        for m in _BACKGROUND_RE.finditer(style):
            value = m.group(1).strip().lower()
            if value and value not in _NO_BACKGROUND:
                return SpanType.HIGHLIGHT
    return None


class _BodyBuilder:
    """Accumulates collapsed body text and reports offsets of appended words."""

    def __init__(self) -> None:
        self._parts: List[str] = []
        self.length = 0
        self._pending_space = False

    def add_text(self, text: str) -> Optional[int]:
        """Append text; return offset of its first visible character, if any."""
        first = None
        for m in _TOKEN_RE.finditer(text):
            if m.group(1) is not None:
                self._pending_space = True
                continue
            if self._pending_space and self.length:
                self._parts.append(" ")
                self.length += 1
            self._pending_space = False
            word = m.group(2)
            if first is None:
                first = self.length
            self._parts.append(word)
            self.length += len(word)
        return first

    def boundary(self) -> None:
        self._pending_space = True

    def text(self) -> str:
        return "".join(self._parts)


@dataclass
class _OpenSpan:
    type: SpanType
    start: Optional[int] = None
    end: Optional[int] = None


def _walk(node: Tag, builder: _BodyBuilder, open_spans: List[_OpenSpan], found: List[_OpenSpan]) -> None:
    for child in node.children:
        if isinstance(child, NavigableString):
            if isinstance(child, PreformattedString):
                continue  # comments, doctype, CDATA
            start = builder.add_text(str(child))
            if start is not None:
                for rec in open_spans:
                    if rec.start is None:
                        rec.start = start
            continue

        if not isinstance(child, Tag):
            continue
        name = (child.name or "").lower()
        if name in _NOISE_TAGS:
            continue

        is_block = name in _BLOCK_TAGS
        if is_block:
            builder.boundary()

        span_type = marker_type(child)
        rec = None
        if span_type is not None:
            rec = _OpenSpan(span_type)
            found.append(rec)
            open_spans.append(rec)

        _walk(child, builder, open_spans, found)

        if rec is not None:
            open_spans.pop()
            rec.end = builder.length
        if is_block:
            builder.boundary()


def flatten_node(node: Tag) -> BodyContent:
    """
    Flatten a parsed node to body text plus positioned formatting spans.

    Markers without visible text yield no span. Spans come back sorted by
    start position; ties keep the order their elements opened in.
    """
    builder = _BodyBuilder()
    found: List[_OpenSpan] = []
    _walk(node, builder, [], found)

    body = builder.text()
    spans = [
        Span(
            type=rec.type,
            text=body[rec.start:rec.end],
            start_position=rec.start,
            end_position=rec.end,
        )
        for rec in found
        if rec.start is not None and rec.end is not None and rec.end > rec.start
    ]
    spans.sort(key=lambda s: s.start_position)
    return BodyContent(text=body, elements=tuple(spans))


def extract_body_content(fragment_html: str) -> BodyContent:
    """Parse an HTML fragment and flatten it (see ``flatten_node``)."""
    if not fragment_html or not fragment_html.strip():
        return BodyContent(text="", elements=())
    return flatten_node(BeautifulSoup(fragment_html, "lxml"))
