"""
Training data layer.

Modules:
    priority - Span formatting priority rules
    context - Debate context inference
    synthesizer - Card → training example synthesis
    response - Parsing of model formatting replies
    qa - Training data quality gates
    store - Append-only JSONL store and fine-tuning preparation
    export - json / jsonl / text / csv exporters
"""

from . import priority
from . import context
from . import synthesizer
from . import response
from . import qa
from . import store
from . import export
