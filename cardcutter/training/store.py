"""
Append-only JSONL store for training examples.

Layout under ``data_dir``:
  training_data.jsonl: every example with its metadata, one per line
  metadata.json: running totals for the store
  fine_tune.jsonl: ``{"messages": [...]}`` per line, ready for upload
  .store.lock: advisory lock held while a batch and its totals are written
"""

import fcntl
import json
import logging
import os
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union

from cardcutter.pipeline.models import TrainingExample

logger = logging.getLogger(__name__)

DATA_DIR = Path("training-data")
TRAINING_FILE = "training_data.jsonl"
METADATA_FILE = "metadata.json"
FINE_TUNE_FILE = "fine_tune.jsonl"
LOCK_FILE = ".store.lock"
STORE_VERSION = "1.0.0"


class StoreError(Exception):
    """Raised when training data store operations fail."""
    pass


def to_fine_tune_record(example: Dict[str, Any]) -> Dict[str, Any]:
    """Strip metadata; keep only role/content per message."""
    return {
        "messages": [
            {"role": m["role"], "content": m["content"]}
            for m in example.get("messages", [])
        ]
    }


def _serialize(examples: Iterable[Union[TrainingExample, Dict[str, Any]]]) -> List[str]:
    lines = []
    for example in examples:
        record = example.to_dict() if isinstance(example, TrainingExample) else example
        try:
            lines.append(json.dumps(record, ensure_ascii=False) + "\n")
        except (TypeError, ValueError) as e:
            raise StoreError(f"Failed to serialize example {len(lines)}: {e}")
    return lines


class TrainingDataStore:
    """File-backed store for synthesised training examples."""

    def __init__(self, data_dir: Union[str, Path] = DATA_DIR):
        self.data_dir = Path(data_dir)
        self.training_file = self.data_dir / TRAINING_FILE
        self.metadata_file = self.data_dir / METADATA_FILE
        self.fine_tune_file = self.data_dir / FINE_TUNE_FILE
        self.lock_file = self.data_dir / LOCK_FILE

    @contextmanager
    def _locked(self) -> Iterator[None]:
        """Hold the store-wide exclusive lock."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        with open(self.lock_file, "a") as lock:
            fcntl.flock(lock.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock.fileno(), fcntl.LOCK_UN)

    def append(self, examples: Iterable[Union[TrainingExample, Dict[str, Any]]]) -> int:
        """
        Append a batch of examples and bump the running totals.

        The whole batch is serialized before anything is written, and the
        ledger write plus the metadata update happen under one lock. If the
        write fails partway, the totals still count the lines that landed.

        Returns:
            Number of examples written

        Raises:
            StoreError: Unserializable example or failed write
        """
        lines = _serialize(examples)
        if not lines:
            return 0

        with self._locked():
            previous = self._stored_count()
            written = 0
            try:
                with open(self.training_file, "a", encoding="utf-8") as f:
                    for line in lines:
                        f.write(line)
                        written += 1
                    f.flush()
                    os.fsync(f.fileno())
            except OSError as e:
                raise StoreError(f"Failed to append examples after {written} of {len(lines)}: {e}")
            finally:
                if written:
                    self._write_metadata({
                        "total_examples": previous + written,
                        "last_updated": datetime.now(timezone.utc).isoformat(),
                        "new_examples_added": written,
                    })

        logger.info(f"Appended {written} training examples to {self.training_file}")
        return written

    def _stored_count(self) -> int:
        """Total from metadata; counts ledger lines when metadata is absent."""
        if self.metadata_file.exists():
            total = self.metadata().get("total_examples")
            if isinstance(total, int):
                return total
        if not self.training_file.exists():
            return 0
        with open(self.training_file, "r", encoding="utf-8") as f:
            return sum(1 for line in f if line.strip())

    def load(self, example_type: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Stored examples in append order, optionally only one metadata type.

        Raises:
            StoreError: Unreadable ledger or a line that isn't JSON
        """
        if not self.training_file.exists():
            return []

        examples = []
        try:
            with open(self.training_file, "r", encoding="utf-8") as f:
                for line_num, line in enumerate(f, 1):
                    if not line.strip():
                        continue
                    try:
                        example = json.loads(line)
                    except json.JSONDecodeError as e:
                        raise StoreError(f"{self.training_file} line {line_num} is not JSON: {e}")
                    if example_type and (example.get("metadata") or {}).get("type") != example_type:
                        continue
                    examples.append(example)
        except OSError as e:
            raise StoreError(f"Failed to read training data: {e}")
        return examples

    def metadata(self) -> Dict[str, Any]:
        if not self.metadata_file.exists():
            return {"total_examples": 0, "last_updated": None, "version": STORE_VERSION}
        try:
            with open(self.metadata_file, "r", encoding="utf-8") as f:
                return json.load(f)
        except (IOError, json.JSONDecodeError) as e:
            logger.warning(f"Unreadable store metadata at {self.metadata_file}: {e}")
            return {"total_examples": 0, "last_updated": None, "version": STORE_VERSION}

    def update_metadata(self, updates: Dict[str, Any]) -> Dict[str, Any]:
        """Merge updates into metadata.json under the store lock."""
        with self._locked():
            return self._write_metadata(updates)

    def _write_metadata(self, updates: Dict[str, Any]) -> Dict[str, Any]:
        merged = {"version": STORE_VERSION, **self.metadata(), **updates}
        self.data_dir.mkdir(parents=True, exist_ok=True)

        # Write to temp then rename
        temp_path = self.metadata_file.with_suffix(".tmp")
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(merged, f, indent=2)
            temp_path.replace(self.metadata_file)
        except OSError as e:
            if temp_path.exists():
                temp_path.unlink()
            raise StoreError(f"Failed to write metadata: {e}")
        return merged

    def prepare_for_fine_tuning(self, output_path: Optional[Path] = None) -> Path:
        """Write the stored examples as metadata-free JSONL for a fine-tuning upload."""
        path = Path(output_path) if output_path else self.fine_tune_file
        path.parent.mkdir(parents=True, exist_ok=True)
        records = [to_fine_tune_record(r) for r in self.load()]
        try:
            with open(path, "w", encoding="utf-8") as f:
                for record in records:
                    f.write(json.dumps(record, ensure_ascii=False) + "\n")
        except OSError as e:
            raise StoreError(f"Failed to write fine-tuning file: {e}")
        logger.info(f"Prepared {len(records)} examples for fine-tuning at {path}")
        return path

    def cleanup(self) -> List[Path]:
        """Remove derived files (the prepared fine-tuning file); the ledger is kept."""
        removed = []
        if self.fine_tune_file.exists():
            self.fine_tune_file.unlink()
            removed.append(self.fine_tune_file)
        return removed
