"""
Card parsing: one heading-delimited HTML block → one Card.

Expects the upstream style mapping (Heading 1/2 → h1/h2, Tag → h3.tag,
Cite → p.cite, Emphasis → em, Strong → strong) to have been applied.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional

from bs4 import BeautifulSoup
from bs4.element import NavigableString, Tag

from .block_splitter import split_into_card_blocks
from .models import Card
from .span_extractor import flatten_node
from .text_cleaner import clean_text

logger = logging.getLogger(__name__)

MIN_TAG_LENGTH = 2
MIN_BODY_LENGTH = 20

HEADING_TAGS = ["h1", "h2", "h3"]
CITE_RUN_TAGS = {"strong", "em", "b", "i"}

# Text after the leading run of a cite line: a year or a capitalised word
_CITE_TAIL_RE = re.compile(r"\d{4}|[A-Z][a-z]+")


def _node_text(el: Tag) -> str:
    return clean_text(flatten_node(el).text)


def _looks_like_cite(p: Tag) -> bool:
    """True for a <p> that opens with a bold/italic run followed by plain text naming a year or a name."""
    children = list(p.children)
    if not children:
        return False
    run = children[0]
    if not isinstance(run, Tag) or (run.name or "").lower() not in CITE_RUN_TAGS:
        return False
    if any(isinstance(c, Tag) for c in run.children) or not run.get_text().strip():
        return False
    rest = children[1:]
    if any(not isinstance(c, NavigableString) for c in rest):
        return False
    return bool(_CITE_TAIL_RE.search("".join(str(c) for c in rest)))


def find_cite_element(soup: Tag) -> Optional[Tag]:
    """
    First ``p.cite``, falling back to the first paragraph shaped like a citation.

    The caller takes the cite text from the whole returned paragraph, not just
    its leading bold/italic run (the author-date shorthand). Credentials and
    source details after the run belong to the citation, and the paragraph is
    removed from the body as a unit, so keeping only the run would drop them
    from both the cite and the body.
    """
    cite = soup.find("p", class_="cite")
    if cite is not None:
        return cite
    for p in soup.find_all("p"):
        if _looks_like_cite(p):
            return p
    return None


def _parse_block(block_html: str) -> Card:
    soup = BeautifulSoup(block_html, "lxml")

    heading = soup.find(HEADING_TAGS)
    tag = _node_text(heading) if heading is not None else ""

    cite_el = find_cite_element(soup)
    cite = _node_text(cite_el) if cite_el is not None else ""

    # Strip tag and cite sections so only the body remains
    for el in soup.find_all(HEADING_TAGS):
        el.decompose()
    for el in soup.find_all("p", class_="cite"):
        el.decompose()
    if cite_el is not None and not cite_el.decomposed:
        cite_el.decompose()

    body = flatten_node(soup)
    return Card(
        tag=tag,
        cite=cite,
        body_text=body.text,
        formatted_elements=body.elements,
        raw_html=block_html,
    )


def parse_card_block(block_html: str) -> Optional[Card]:
    """
    Parse a single card block.

    Returns None (skip, not fatal) when the block can't be parsed; the
    failure is logged and the caller moves on to the next block.
    """
    try:
        return _parse_block(block_html)
    except Exception as e:
        logger.warning(f"Error parsing card block: {e}", exc_info=True)
        return None


def is_valid_card(card: Card) -> bool:
    """A card needs a real tag, a real body, and a cite or at least one span."""
    has_tag = bool(card.tag) and len(card.tag) > MIN_TAG_LENGTH
    has_body = bool(card.body_text) and len(card.body_text) > MIN_BODY_LENGTH
    has_some_content = bool(card.cite) or len(card.formatted_elements) > 0
    return has_tag and has_body and has_some_content


def extract_cards(document_html: str) -> List[Card]:
    """
    Extract valid debate cards from a converted document.

    Output order matches block order. Invalid cards are filtered out
    silently; unparsable blocks are logged and skipped.
    """
    blocks = split_into_card_blocks(document_html)
    cards: List[Card] = []
    for block in blocks:
        card = parse_card_block(block)
        if card is None or not is_valid_card(card):
            continue
        cards.append(card)

    logger.info(f"{len(cards)} cards extracted from {len(blocks)} blocks")
    return cards
