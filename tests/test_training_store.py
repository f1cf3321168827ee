"""
Tests for cardcutter/training/store.py - append-only JSONL training store.
"""

import json
from pathlib import Path

import pytest

from cardcutter.pipeline.models import Card, Span, SpanType
from cardcutter.training import store as store_module
from cardcutter.training.store import StoreError, TrainingDataStore, to_fine_tune_record
from cardcutter.training.synthesizer import generate_training_examples


@pytest.fixture
def examples():
    card = Card(
        tag="Warming Impact",
        cite="Smith 2020",
        body_text="Sea levels will rise dramatically and 50% of coastal cities are at risk.",
        formatted_elements=(Span(SpanType.UNDERLINE, "will rise dramatically", 11, 33),),
    )
    return generate_training_examples(card, created_at="2024-03-01T12:00:00+00:00")


@pytest.fixture
def store(tmp_path):
    return TrainingDataStore(tmp_path / "data")


class TestLedgerFile:
    """Tests for the JSONL ledger behind the store."""

    def test_append_and_load_in_order(self, store):
        store.append([{"messages": [], "n": 1}, {"messages": [], "n": 2}])
        store.append([{"messages": [], "n": 3}])
        assert [r["n"] for r in store.load()] == [1, 2, 3]

    def test_invalid_line_raises(self, store):
        store.data_dir.mkdir(parents=True)
        store.training_file.write_text('{"a": 1}\nnot json\n')
        with pytest.raises(StoreError, match="line 2"):
            store.load()

    def test_unserializable_batch_writes_nothing(self, store):
        """Test that a batch with one bad record is rejected before any line is written."""
        with pytest.raises(StoreError, match="serialize"):
            store.append([{"ok": 1}, {"bad": object()}])
        assert not store.training_file.exists()
        assert store.metadata()["total_examples"] == 0

    def test_fine_tune_record_strips_metadata(self, examples):
        record = to_fine_tune_record(examples[0].to_dict())
        assert list(record) == ["messages"]
        assert [m["role"] for m in record["messages"]] == ["system", "user", "assistant"]


class TestTrainingDataStore:
    """Tests for TrainingDataStore."""

    def test_empty_store(self, store):
        assert store.load() == []
        meta = store.metadata()
        assert meta["total_examples"] == 0
        assert meta["last_updated"] is None

    def test_append_updates_metadata(self, store, examples):
        assert store.append(examples) == 2
        assert store.append(examples[:1]) == 1

        meta = store.metadata()
        assert meta["total_examples"] == 3
        assert meta["new_examples_added"] == 1
        assert meta["last_updated"]
        assert meta["version"]

    def test_load_by_type(self, store, examples):
        store.append(examples)
        loaded = store.load("context_aware_formatting")
        assert len(loaded) == 1
        assert loaded[0]["metadata"]["debateContext"]["topic"] == "climate change"

    def test_prepare_for_fine_tuning(self, store, examples):
        store.append(examples)
        path = store.prepare_for_fine_tuning()
        assert path == store.fine_tune_file
        lines = [json.loads(l) for l in path.read_text().splitlines()]
        assert len(lines) == 2
        assert all(list(l) == ["messages"] for l in lines)

    def test_prepare_custom_output(self, store, examples, tmp_path):
        store.append(examples)
        out = tmp_path / "out" / "ft.jsonl"
        assert store.prepare_for_fine_tuning(out) == out
        assert out.exists()

    def test_cleanup_removes_derived_only(self, store, examples):
        store.append(examples)
        store.prepare_for_fine_tuning()
        assert store.cleanup() == [store.fine_tune_file]
        assert not store.fine_tune_file.exists()
        assert store.training_file.exists()
        assert store.cleanup() == []

    def test_totals_kept_without_rereading_ledger(self, store, examples, monkeypatch):
        """Test that appending bumps the running total instead of reloading every record."""
        store.append(examples)

        def no_reload(*args, **kwargs):
            raise AssertionError("ledger re-read during append")

        monkeypatch.setattr(store, "load", no_reload)
        store.append(examples)
        assert store.metadata()["total_examples"] == 4

    def test_totals_across_store_instances(self, tmp_path, examples):
        """Test that two handles on one directory both contribute to the total."""
        first = TrainingDataStore(tmp_path / "shared")
        second = TrainingDataStore(tmp_path / "shared")
        first.append(examples)
        second.append(examples[:1])
        assert first.metadata()["total_examples"] == 3
        assert len(first.load()) == 3

    def test_total_recovered_when_metadata_missing(self, store, examples):
        """Test that a ledger without metadata.json is counted before the next append."""
        store.append(examples)
        store.metadata_file.unlink()
        store.append(examples[:1])
        assert store.metadata()["total_examples"] == 3

    def test_partial_write_still_counted(self, store, examples, monkeypatch):
        """Test that lines written before a failure are reflected in the totals."""
        real_open = open
        calls = {"n": 0}

        class FailingFile:
            def __init__(self, f):
                self._f = f

            def write(self, data):
                calls["n"] += 1
                if calls["n"] == 2:
                    raise OSError("disk full")
                return self._f.write(data)

            def __getattr__(self, name):
                return getattr(self._f, name)

            def __enter__(self):
                return self

            def __exit__(self, *exc):
                self._f.close()

        def fake_open(path, mode="r", *args, **kwargs):
            f = real_open(path, mode, *args, **kwargs)
            if Path(path) == store.training_file and "a" in mode:
                return FailingFile(f)
            return f

        monkeypatch.setattr(store_module, "open", fake_open, raising=False)
        with pytest.raises(StoreError, match="after 1 of 2"):
            store.append(examples)
        monkeypatch.undo()

        assert len(store.load()) == 1
        assert store.metadata()["total_examples"] == 1

    def test_lock_file_created(self, store, examples):
        store.append(examples)
        assert store.lock_file.exists()
