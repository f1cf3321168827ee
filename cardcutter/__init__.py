"""
cardcutter - debate card extraction and formatting training data.

Turns converted debate documents into structured cards and synthesises
chat-format training examples for a card-formatting model.

Modules:
    pipeline - Card block splitting, card parsing, span extraction, data models
    training - Priority scoring, context inference, example synthesis, QA, store, export
    ingest - Loading converted documents and document statistics
    config - YAML/.env pipeline settings
    cli - Command-line interface entrypoints
"""

from .pipeline.card_parser import extract_cards
from .training.synthesizer import build_training_examples

__version__ = "0.1.0"

__all__ = ["extract_cards", "build_training_examples"]
