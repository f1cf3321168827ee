"""
Export of cards and training examples to json / jsonl / text / csv.
"""

import csv
import io
import json
from pathlib import Path
from typing import Any, Dict, List, Sequence, Union

from cardcutter.pipeline.models import Card, TrainingExample

CARD_FORMATS = ("json", "text", "csv")
TRAINING_FORMATS = ("json", "jsonl", "csv")


class ExportError(Exception):
    """Raised for unsupported export formats."""
    pass


def _csv(rows: List[List[Any]]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    for row in rows:
        writer.writerow(row)
    return buf.getvalue()


def export_cards(cards: Sequence[Card], fmt: str = "json") -> str:
    fmt = fmt.lower()
    if fmt == "json":
        return json.dumps([c.to_dict() for c in cards], indent=2, ensure_ascii=False)

    if fmt == "text":
        chunks = []
        for card in cards:
            out = f"TAG: {card.tag}\n"
            if card.cite:
                out += f"CITE: {card.cite}\n"
            out += f"BODY: {card.body_text}\n"
            if card.formatted_elements:
                out += f"FORMATTING: {len(card.formatted_elements)} elements\n"
            chunks.append(out + "\n---\n")
        return "\n".join(chunks)

    if fmt == "csv":
        rows: List[List[Any]] = [["Tag", "Cite", "Body Text", "Formatted Elements Count"]]
        for card in cards:
            rows.append([card.tag, card.cite, card.body_text, len(card.formatted_elements)])
        return _csv(rows)

    raise ExportError(f"Unsupported export format: {fmt}")


def _message(example: Dict[str, Any], role: str) -> str:
    for m in example.get("messages", []):
        if m.get("role") == role:
            return m.get("content") or ""
    return ""


def export_training_data(
    examples: Sequence[Union[TrainingExample, Dict[str, Any]]],
    fmt: str = "json",
) -> str:
    fmt = fmt.lower()
    rows = [e.to_dict() if isinstance(e, TrainingExample) else e for e in examples]

    if fmt == "json":
        return json.dumps(rows, indent=2, ensure_ascii=False)

    if fmt == "jsonl":
        return "".join(json.dumps(r, ensure_ascii=False) + "\n" for r in rows)

    if fmt == "csv":
        table: List[List[Any]] = [[
            "Index", "Type", "Tag", "System_Message",
            "User_Message", "Assistant_Message", "Created_At",
        ]]
        for i, example in enumerate(rows):
            metadata = example.get("metadata") or {}
            table.append([
                i,
                metadata.get("type", "unknown"),
                metadata.get("tag", ""),
                _message(example, "system"),
                _message(example, "user"),
                _message(example, "assistant"),
                metadata.get("createdAt", ""),
            ])
        return _csv(table)

    raise ExportError(f"Unsupported export format: {fmt}")


def write_export(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8", newline="")
    return path
