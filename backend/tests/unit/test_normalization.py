"""Unit tests for text normalization and offset mapping."""

import pytest

from src.services.normalization import NormalizedText, normalize_text, normalize_with_offsets


class TestNormalizeText:
    """Tests for the comparison form of text."""

    def test_lowercases_and_strips_punctuation(self):
        """Punctuation becomes a separator and case is folded."""
        assert normalize_text("Hello, World!") == "hello world"

    def test_collapses_whitespace(self):
        """Runs of spaces, tabs and newlines collapse to one space."""
        assert normalize_text("hello   world\n\n\ttest") == "hello world test"

    def test_trims_leading_and_trailing_separators(self):
        """No leading or trailing spaces survive."""
        assert normalize_text("  --Hello--  ") == "hello"

    def test_punctuation_inside_words_splits_them(self):
        """Hyphens and apostrophes separate words."""
        assert normalize_text("It's real-time.") == "it s real time"

    def test_keeps_digits_and_underscores(self):
        """Word characters include digits and underscores."""
        assert normalize_text("Q3_revenue: 40%") == "q3_revenue 40"

    def test_smart_quotes_are_removed(self):
        """Curly quotes are punctuation like any other."""
        assert normalize_text("“Growth” matters") == "growth matters"

    def test_empty_and_punctuation_only(self):
        """Text without word characters normalizes to an empty string."""
        assert normalize_text("") == ""
        assert normalize_text(" ... !!! ") == ""

    def test_matches_offset_variant(self):
        """Both entry points produce the same string."""
        text = "Well -- I think, honestly:   the REAL story is trust."
        assert normalize_text(text) == normalize_with_offsets(text).text


class TestNormalizeWithOffsets:
    """Tests for mapping normalized spans back to the original text."""

    def test_offsets_align_with_characters(self):
        """Every normalized character has an original index."""
        result = normalize_with_offsets("Hi, there")

        assert isinstance(result, NormalizedText)
        assert result.text == "hi there"
        assert len(result.offsets) == len(result.text)
        assert result.offsets == (0, 1, 2, 4, 5, 6, 7, 8)

    def test_to_original_span_covers_same_characters(self):
        """A normalized word maps to its original spelling."""
        original = "Host:  So...\n\nGuest:   we   DECIDED to bet."
        result = normalize_with_offsets(original)

        start = result.text.index("we decided")
        end = start + len("we decided")
        orig_start, orig_end = result.to_original_span(start, end)

        assert original[orig_start:orig_end] == "we   DECIDED"

    def test_original_slice_excludes_edge_punctuation(self):
        """Slices start and end on word characters."""
        result = normalize_with_offsets('"Our revenue grew," said the CEO.')

        assert result.original_slice(0, len("our revenue grew")) == "Our revenue grew"

    def test_words(self):
        """Words are split on the single normalized separator."""
        assert normalize_with_offsets("One, two;  three").words == ["one", "two", "three"]
        assert normalize_with_offsets("").words == []

    @pytest.mark.parametrize("start,end", [(0, 0), (-1, 2), (3, 2), (0, 100)])
    def test_invalid_span_raises(self, start, end):
        """Empty, reversed or out-of-range spans are rejected."""
        result = normalize_with_offsets("hello world")
        with pytest.raises(ValueError):
            result.to_original_span(start, end)
