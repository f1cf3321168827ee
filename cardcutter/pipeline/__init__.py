"""
Document → card pipeline.

Modules:
    models - Card, Span, TrainingExample and friends
    text_cleaner - Entity decoding and whitespace normalisation
    span_extractor - Single-pass body flattening with positioned formatting spans
    block_splitter - Heading-delimited block partitioning
    card_parser - Per-block card parsing, validation and extract_cards()
"""

from . import models
from . import text_cleaner
from . import span_extractor
from . import block_splitter
from . import card_parser
