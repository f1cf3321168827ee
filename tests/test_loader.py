"""
Tests for cardcutter/ingest/loader.py - document loading and statistics.
"""

import pytest

from cardcutter.ingest.loader import (
    DocumentLoadError,
    get_document_stats,
    load_document,
    load_html,
)

HTML = (
    "<html><head><style>p { color: red; }</style></head><body>"
    "<h1>Warming Impact</h1><p class='cite'>Smith 2020</p>"
    "<p>Sea levels will rise.</p>"
    "</body></html>"
)


class TestLoadDocument:
    """Tests for load_document function."""

    def test_loads_html_file(self, tmp_path):
        path = tmp_path / "round1.html"
        path.write_text(HTML, encoding="utf-8")
        document = load_document(path)
        assert document.file_name == "round1.html"
        assert document.html_content == HTML
        assert "color: red" not in document.raw_text

    def test_htm_suffix_accepted(self, tmp_path):
        path = tmp_path / "round1.HTM"
        path.write_text(HTML, encoding="utf-8")
        assert load_document(path).html_content == HTML

    def test_docx_rejected(self, tmp_path):
        path = tmp_path / "round1.docx"
        path.write_bytes(b"PK")
        with pytest.raises(DocumentLoadError, match="Unsupported file format"):
            load_document(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(DocumentLoadError, match="Failed to load"):
            load_document(tmp_path / "missing.html")


class TestGetDocumentStats:
    def test_counts(self):
        stats = get_document_stats(load_html(HTML, "mem.html"))
        assert stats["file_name"] == "mem.html"
        assert stats["total_paragraphs"] == 2
        assert stats["total_words"] == 8
        assert stats["total_characters"] == len("Warming Impact\nSmith 2020\nSea levels will rise.")
        assert stats["parsed_at"]
