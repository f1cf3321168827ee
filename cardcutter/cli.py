"""
Command-line interface for cardcutter.

Provides subcommands for extracting cards from converted documents,
building and validating training data, and exporting it.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from .config.settings import ConfigError, get_log_level, load_settings
from .ingest.loader import DocumentLoadError, get_document_stats, load_document
from .logging_config import configure_logging, resolve_level
from .pipeline.card_parser import extract_cards
from .training import export
from .training.qa import validate_training_data
from .training.store import StoreError, TrainingDataStore
from .training.synthesizer import build_training_examples

logger = logging.getLogger(__name__)


def _emit(content: str, output: Optional[str]) -> None:
    if output:
        export.write_export(Path(output), content)
        print(f"Wrote {output}")
    else:
        print(content)


def cmd_extract(args: argparse.Namespace) -> int:
    """Extract cards from a document and print or write them."""
    try:
        document = load_document(args.file)
        cards = extract_cards(document.html_content)
        _emit(export.export_cards(cards, args.format), args.output)
        print(f"{len(cards)} cards extracted", file=sys.stderr)
        return 0

    except (DocumentLoadError, export.ExportError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_stats(args: argparse.Namespace) -> int:
    """Show document statistics."""
    try:
        document = load_document(args.file)
    except DocumentLoadError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    stats = get_document_stats(document)
    stats["cards"] = len(extract_cards(document.html_content))
    print(json.dumps(stats, indent=2))
    return 0


def cmd_build(args: argparse.Namespace) -> int:
    """Extract cards from documents and append training examples to the store."""
    try:
        settings = load_settings(args.config, args.data_dir)
        store = TrainingDataStore(settings.data_dir)

        total_cards = 0
        total_examples = 0
        for path in args.files:
            try:
                document = load_document(path)
            except DocumentLoadError as e:
                logger.warning(f"Skipping {path}: {e}")
                continue

            cards = extract_cards(document.html_content)
            examples = build_training_examples(
                cards,
                rules=settings.priority_rules,
                context_rules=settings.context_rules,
            )
            total_cards += len(cards)
            total_examples += len(examples)

            if args.verbose:
                print(f"  {document.file_name}: {len(cards)} cards, {len(examples)} examples")

            if not args.dry_run:
                store.append(examples)

        print(f"{total_cards} cards extracted")
        print(f"{total_examples} training examples generated")
        if args.dry_run:
            print("(dry run - no records written)")
        return 0

    except (ConfigError, StoreError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_validate(args: argparse.Namespace) -> int:
    """Run QA on the stored training data."""
    try:
        settings = load_settings(args.config, args.data_dir)
        examples = TrainingDataStore(settings.data_dir).load()
    except (ConfigError, StoreError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    report = validate_training_data(examples)
    stats = report["statistics"]
    print(f"Status: {report['status']}")
    print(f"Examples: {stats['total_examples']} (avg ~{stats['average_tokens']} tokens, quality {stats['quality_score']})")
    for name, count in sorted(stats["by_type"].items()):
        print(f"  {name}: {count}")
    for err in report["errors"]:
        print(f"ERROR: {err}")
    for warn in report["warnings"]:
        print(f"WARNING: {warn}")

    return 0 if report["valid"] else 1


def cmd_prepare(args: argparse.Namespace) -> int:
    """Write metadata-free JSONL for fine-tuning."""
    try:
        settings = load_settings(args.config, args.data_dir)
        store = TrainingDataStore(settings.data_dir)
        path = store.prepare_for_fine_tuning(Path(args.output) if args.output else None)
        print(f"Prepared fine-tuning file: {path}")
        return 0

    except (ConfigError, StoreError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_export(args: argparse.Namespace) -> int:
    """Export stored training data."""
    try:
        settings = load_settings(args.config, args.data_dir)
        examples = TrainingDataStore(settings.data_dir).load()
        _emit(export.export_training_data(examples, args.format), args.output)
        return 0

    except (ConfigError, StoreError, export.ExportError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_cleanup(args: argparse.Namespace) -> int:
    """Remove derived files from the store."""
    try:
        settings = load_settings(args.config, args.data_dir)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    removed = TrainingDataStore(settings.data_dir).cleanup()
    print(f"Removed {len(removed)} file(s)")
    return 0


def main(argv: Optional[list] = None) -> int:
    """Main CLI entrypoint."""
    parser = argparse.ArgumentParser(
        prog="cardcutter",
        description="Debate card extraction and formatting training data"
    )

    # Global options
    parser.add_argument(
        "--config",
        help="Path to pipeline config (default: config/pipeline.yaml)"
    )
    parser.add_argument(
        "--data-dir",
        help="Training data directory (default: from config or training-data)"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # extract command
    extract_parser = subparsers.add_parser("extract", help="Extract cards from an HTML document")
    extract_parser.add_argument("file", help="Converted document (.html)")
    extract_parser.add_argument("--format", choices=list(export.CARD_FORMATS), default="json")
    extract_parser.add_argument("--output", "-o", help="Output file (default: stdout)")
    extract_parser.set_defaults(func=cmd_extract)

    # stats command
    stats_parser = subparsers.add_parser("stats", help="Show document statistics")
    stats_parser.add_argument("file", help="Converted document (.html)")
    stats_parser.set_defaults(func=cmd_stats)

    # build command
    build_parser = subparsers.add_parser("build", help="Build training examples from documents")
    build_parser.add_argument("files", nargs="+", help="Converted documents (.html)")
    build_parser.add_argument("--dry-run", action="store_true", help="Don't write to the store")
    build_parser.set_defaults(func=cmd_build)

    # validate command
    validate_parser = subparsers.add_parser("validate", help="Validate stored training data")
    validate_parser.set_defaults(func=cmd_validate)

    # prepare command
    prepare_parser = subparsers.add_parser("prepare", help="Write fine-tuning JSONL")
    prepare_parser.add_argument("--output", "-o", help="Output file (default: <data-dir>/fine_tune.jsonl)")
    prepare_parser.set_defaults(func=cmd_prepare)

    # export command
    export_parser = subparsers.add_parser("export", help="Export stored training data")
    export_parser.add_argument("--format", choices=list(export.TRAINING_FORMATS), default="json")
    export_parser.add_argument("--output", "-o", help="Output file (default: stdout)")
    export_parser.set_defaults(func=cmd_export)

    # cleanup command
    cleanup_parser = subparsers.add_parser("cleanup", help="Remove derived files")
    cleanup_parser.set_defaults(func=cmd_cleanup)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    level = logging.DEBUG if args.verbose else resolve_level(get_log_level())
    configure_logging(level)

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
