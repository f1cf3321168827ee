"""
Tests for cardcutter/pipeline/span_extractor.py - single-pass span extraction.
"""

import pytest

from cardcutter.pipeline.models import SpanType
from cardcutter.pipeline.span_extractor import extract_body_content


def _types(content):
    return [s.type for s in content.elements]


class TestBodyText:
    """Tests for the flattened body text."""

    def test_tags_stripped_and_whitespace_collapsed(self):
        """Test that tags are removed and whitespace is collapsed."""
        content = extract_body_content(
            "<p>Sea levels <u>will rise dramatically</u> and\n   <mark>50% of coastal cities</mark> are at risk.</p>"
        )
        assert content.text == "Sea levels will rise dramatically and 50% of coastal cities are at risk."

    def test_block_elements_separate_words(self):
        """Test that paragraphs and line breaks act as word boundaries."""
        content = extract_body_content("<p>one</p><p>two</p>three<br>four")
        assert content.text == "one two three four"

    def test_inline_elements_do_not_insert_spaces(self):
        """Test that inline markers inside a word keep the word intact."""
        content = extract_body_content("<p>un<u>believ</u>able</p>")
        assert content.text == "unbelievable"
        assert content.elements[0].start_position == 2
        assert content.elements[0].end_position == 8
        assert content.elements[0].text == "believ"

    def test_entities_decoded(self):
        """Test that entities are decoded in the body text."""
        content = extract_body_content("<p>A&nbsp;&amp;&nbsp;B</p>")
        assert content.text == "A & B"

    def test_empty_fragment(self):
        """Test that an empty fragment yields empty content."""
        content = extract_body_content("   ")
        assert content.text == ""
        assert content.elements == ()

    def test_comments_and_scripts_ignored(self):
        """Test that comments and script content never reach the body."""
        content = extract_body_content("<p>kept<!-- dropped --> text</p><script>var x = 1;</script>")
        assert content.text == "kept text"


class TestMarkerFamilies:
    """Tests for marker tag → span type mapping."""

    @pytest.mark.parametrize("html,expected", [
        ("<p>a <u>word</u></p>", SpanType.UNDERLINE),
        ("<p>a <em>word</em></p>", SpanType.EMPHASIS),
        ("<p>a <i>word</i></p>", SpanType.EMPHASIS),
        ("<p>a <strong>word</strong></p>", SpanType.STRONG),
        ("<p>a <b>word</b></p>", SpanType.STRONG),
        ("<p>a <mark>word</mark></p>", SpanType.HIGHLIGHT),
        ('<p>a <span style="background-color: #FFFF00">word</span></p>', SpanType.HIGHLIGHT),
        ('<p>a <span style="font-weight:bold;background:yellow">word</span></p>', SpanType.HIGHLIGHT),
    ])
    def test_marker_type(self, html, expected):
        """Test each marker family maps to its span type."""
        content = extract_body_content(html)
        assert _types(content) == [expected]
        assert content.elements[0].text == "word"

    def test_plain_and_transparent_spans_ignored(self):
        """Test that spans without a visible background are not highlights."""
        content = extract_body_content(
            '<p><span class="x">plain</span> <span style="background: transparent">clear</span></p>'
        )
        assert content.elements == ()

    def test_empty_marker_produces_no_span(self):
        """Test that markers with no visible text are dropped."""
        content = extract_body_content("<p>before <u> </u> after</p>")
        assert content.elements == ()
        assert content.text == "before after"


class TestPositions:
    """Tests for span offsets against the body text."""

    def test_spans_align_with_body(self):
        """Test that every span's offsets slice its own text out of the body."""
        content = extract_body_content(
            "<p>The <b>economy</b> will <u>collapse <mark>without action</mark></u> and "
            "<em>experts agree</em>.</p><p>Second <i>paragraph</i> here.</p>"
        )
        assert content.elements
        for span in content.elements:
            assert content.text[span.start_position:span.end_position] == span.text
            assert span.start_position <= span.end_position

    def test_sorted_by_start(self):
        """Test that spans are ordered by start position regardless of family."""
        content = extract_body_content(
            "<p><mark>first</mark> then <u>second</u> then <b>third</b></p>"
        )
        starts = [s.start_position for s in content.elements]
        assert starts == sorted(starts)
        assert [s.text for s in content.elements] == ["first", "second", "third"]

    def test_nested_markers_share_range(self):
        """Test that nested markers each produce a span over the same text, outer first."""
        content = extract_body_content("<p>at <u><mark>grave risk</mark></u> now</p>")
        assert _types(content) == [SpanType.UNDERLINE, SpanType.HIGHLIGHT]
        underline, highlight = content.elements
        assert (underline.start_position, underline.end_position) == (3, 13)
        assert (highlight.start_position, highlight.end_position) == (3, 13)

    def test_spans_have_no_priority_yet(self):
        """Test that extracted spans are unscored."""
        content = extract_body_content("<p><u>word</u></p>")
        assert content.elements[0].priority is None


class TestMalformedMarkup:
    def test_unterminated_tag_does_not_raise(self):
        """Test that unterminated markup is repaired rather than failing."""
        content = extract_body_content("<p>Some <u>unterminated text")
        assert content.text == "Some unterminated text"
