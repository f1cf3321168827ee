"""
Split a converted document into heading-delimited card blocks.

Every <h1>–<h3> (the upstream converter maps "Heading 1/2" and "Tag" styles
onto these, the latter as ``h3.tag``) opens a new block that runs up to the
next heading or the end of the document.
"""

import re
from typing import List

# Blocks at or under this many characters (after trimming) are noise
MIN_BLOCK_LENGTH = 50

HEADING_RE = re.compile(r"<h([1-3])\b[^>]*>.*?</h\1\s*>", re.IGNORECASE | re.DOTALL)


def heading_offsets(html: str) -> List[int]:
    """Start offsets of every complete h1–h3 element, in document order."""
    return [m.start() for m in HEADING_RE.finditer(html or "")]


def split_into_card_blocks(html: str, min_length: int = MIN_BLOCK_LENGTH) -> List[str]:
    """
    Partition document HTML into candidate card blocks.

    Content before the first heading comes back as its own leading block.
    Blocks whose trimmed length is <= min_length are dropped.

    Args:
        html: Full HTML content of one document
        min_length: Noise threshold for trimmed block length

    Returns:
        Ordered list of HTML substrings
    """
    if not html:
        return []

    offsets = heading_offsets(html)
    bounds = [0] + offsets + [len(html)]

    blocks = []
    for start, end in zip(bounds, bounds[1:]):
        if end > start:
            blocks.append(html[start:end])

    return [b for b in blocks if len(b.strip()) > min_length]
