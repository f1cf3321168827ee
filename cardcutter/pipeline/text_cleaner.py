"""Plain-text normalisation for HTML-escaped card text."""

import html
import re
from typing import Optional

_WHITESPACE_RE = re.compile(r"\s+")


def collapse_whitespace(text: str) -> str:
    """Collapse whitespace runs to single spaces (no trimming)."""
    return _WHITESPACE_RE.sub(" ", text)


def clean_text(text: Optional[str]) -> str:
    """
    Decode HTML entities, collapse whitespace and trim.

    ``&nbsp;`` decodes to U+00A0, which ``\\s`` matches, so it collapses
    like any other space. Total over all inputs; ``None`` gives ``""``.
    """
    if not text:
        return ""
    return collapse_whitespace(html.unescape(text)).strip()
