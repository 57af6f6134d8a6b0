"""Tests for quote extraction from drafts."""

import pytest

from src.models import QuotedSpan, UNKNOWN_ATTRIBUTION
from src.services.quote_extractor import QUOTE_PATTERNS, extract_quotes
from src.services.verification_errors import InvalidInputError
from src.services.verification_thresholds import VerificationThresholds


class TestAttributionShapes:
    """Each supported quotation/attribution shape is recognized."""

    def test_quote_then_attribution_verb(self, ceo_draft):
        """"Quote," the CEO explained."""
        quotes = extract_quotes(ceo_draft)

        assert len(quotes) == 1
        assert quotes[0].text == "Our revenue grew by forty percent last quarter"
        assert quotes[0].attribution == "the CEO explained"

    def test_attribution_verb_then_colon(self):
        """Maria Lopez explained: "Quote"."""
        draft = 'Maria Lopez explained: "The vaccine trial enrolled over ten thousand people."'

        quotes = extract_quotes(draft)

        assert len(quotes) == 1
        assert quotes[0].text == "The vaccine trial enrolled over ten thousand people."
        assert quotes[0].attribution == "Maria Lopez explained"

    @pytest.mark.parametrize("dash", ["-", "–", "—"])
    def test_quote_dash_attribution(self, dash):
        """"Quote" - Jane Doe, with hyphen, en-dash or em-dash."""
        draft = f'"Innovation never sleeps in this company" {dash} Jane Doe, CTO'

        quotes = extract_quotes(draft)

        assert len(quotes) == 1
        assert quotes[0].text == "Innovation never sleeps in this company"
        assert quotes[0].attribution == "Jane Doe, CTO"

    def test_according_to(self):
        """According to X, "Quote"."""
        draft = 'According to the mayor, "The bridge will reopen before the winter holidays."'

        quotes = extract_quotes(draft)

        assert len(quotes) == 1
        assert quotes[0].attribution == "the mayor"
        assert quotes[0].text == "The bridge will reopen before the winter holidays."

    def test_as_attribution(self):
        """As X put it, "Quote"."""
        draft = 'As Priya put it, "Shipping small and often beats one big launch."'

        quotes = extract_quotes(draft)

        assert len(quotes) == 1
        assert quotes[0].attribution == "Priya put it"

    def test_as_inside_word_is_not_attribution(self):
        """'as' must be a whole word ("was", "has" do not count)."""
        draft = 'The plan was, "a bold bet on open source from day one" for everyone.'

        assert extract_quotes(draft) == []

    def test_case_insensitive_verbs(self):
        """Attribution verbs match regardless of case."""
        draft = '"We will never compromise on customer privacy," the founder STATED.'

        quotes = extract_quotes(draft)

        assert len(quotes) == 1
        assert quotes[0].attribution == "the founder STATED"

    def test_comma_outside_closing_quote(self):
        """"Quote", she said is accepted as well as "Quote," she said."""
        draft = '"Every release goes through the same checklist", she said.'

        quotes = extract_quotes(draft)

        assert len(quotes) == 1
        assert quotes[0].text == "Every release goes through the same checklist"

    def test_pattern_order(self):
        """Patterns are tried in a fixed order."""
        assert [p.name for p in QUOTE_PATTERNS] == [
            "quote_then_verb",
            "verb_then_quote",
            "quote_dash",
            "according_to",
        ]


class TestFiltering:
    """Length limits, empty input and malformed input."""

    def test_short_quotes_are_discarded(self):
        """Quotes under 20 characters are not considered quotes."""
        assert extract_quotes('"Too short," she said.') == []

    def test_min_length_is_configurable(self):
        """The minimum length comes from thresholds."""
        thresholds = VerificationThresholds(min_quote_length=5)

        quotes = extract_quotes('"Too short," she said.', thresholds)

        assert [q.text for q in quotes] == ["Too short"]

    def test_plain_prose_has_no_quotes(self):
        """Prose without quotation marks yields an empty list."""
        assert extract_quotes("plain prose with no quotation marks") == []

    def test_empty_draft(self):
        """Empty and whitespace-only drafts yield an empty list."""
        assert extract_quotes("") == []
        assert extract_quotes("   \n ") == []

    def test_unattributed_quote_is_ignored(self):
        """Quotation marks without an attribution shape are not extracted."""
        draft = 'The slogan "Move fast and fix things properly" was everywhere.'

        assert extract_quotes(draft) == []

    @pytest.mark.parametrize("draft", [None, 42, b"bytes draft"])
    def test_non_string_draft_raises(self, draft):
        """Malformed input fails fast instead of being treated as empty."""
        with pytest.raises(InvalidInputError) as exc_info:
            extract_quotes(draft)

        assert isinstance(exc_info.value, TypeError)
        assert exc_info.value.argument == "draft"


class TestSpanDetails:
    """Ordering, offsets, context and deduplication."""

    def test_results_follow_draft_order(self, interview_draft):
        """Quotes come back in order of first occurrence."""
        quotes = extract_quotes(interview_draft)

        assert [q.text for q in quotes] == [
            "It started when we stopped guessing",
            "We built the new platform in record time, honestly",
            "we scaled infrastructure for real-time analytics",
            "Our competitors never saw the pivot coming at all",
        ]
        assert [q.attribution for q in quotes] == [
            "she explained",
            "Lopez added",
            "Lopez",
            "she concluded",
        ]

    def test_offsets_point_into_draft(self, interview_draft):
        """start/end locate the quote text in the draft."""
        for quote in extract_quotes(interview_draft):
            assert interview_draft[quote.start:quote.end] == quote.text

    def test_context_window(self, ceo_draft):
        """Context surrounds the match within the configured window."""
        thresholds = VerificationThresholds(context_window=10)

        quote = extract_quotes(ceo_draft, thresholds)[0]

        assert quote.context is not None
        assert quote.text in quote.context
        assert "CEO explained" in quote.context
        assert "strong finish" not in quote.context

    def test_overlapping_patterns_collapse(self):
        """One quotation matched by two patterns is reported once."""
        draft = 'Maria Lopez said: "We will expand into three new markets next year," she added.'

        quotes = extract_quotes(draft)

        assert len(quotes) == 1
        assert quotes[0].text == "We will expand into three new markets next year"
        assert quotes[0].attribution == "she added"

    def test_identical_quote_and_attribution_deduplicated(self, ceo_draft):
        """The same (text, attribution) pair is kept once."""
        quotes = extract_quotes(ceo_draft + " " + ceo_draft)

        assert len(quotes) == 1

    def test_same_quote_different_attribution_kept(self):
        """Repeated text with a different speaker is a separate quote."""
        draft = (
            '"We owe everything to our early customers," the CEO said. '
            '"We owe everything to our early customers," the CTO added.'
        )

        quotes = extract_quotes(draft)

        assert [q.attribution for q in quotes] == ["the CEO said", "the CTO added"]

    def test_curly_quotes(self):
        """Typographic double quotes work like straight quotes."""
        draft = "“Our revenue grew by forty percent last quarter,” the CEO explained."

        quotes = extract_quotes(draft)

        assert len(quotes) == 1
        assert quotes[0].text == "Our revenue grew by forty percent last quarter"
        assert draft[quotes[0].start:quotes[0].end] == quotes[0].text

    def test_longer_fragment_is_taken_as_quote(self):
        """Heuristic tie-break: when the attribution is longer it becomes the quote."""
        draft = (
            '"We shipped it on time," said the engineering lead who had been '
            "managing the platform migration for years."
        )

        quotes = extract_quotes(draft)

        assert len(quotes) == 1
        assert quotes[0].text.startswith("said the engineering lead")
        assert quotes[0].attribution == "We shipped it on time"

    def test_short_quote_is_not_rescued_by_long_attribution(self):
        """The length floor applies to the quoted fragment, before any swap."""
        draft = '"Absolutely," said Maria Gonzalez, the chief technology officer of the firm.'

        assert extract_quotes(draft) == []

    def test_empty_attribution_falls_back_to_unknown(self):
        """Attribution that trims to nothing becomes the sentinel."""
        draft = '"Every single customer matters to us" - ;'

        quotes = extract_quotes(draft)

        assert len(quotes) == 1
        assert quotes[0].attribution == UNKNOWN_ATTRIBUTION

    def test_spans_are_frozen(self, ceo_draft):
        """Quoted spans are immutable value objects."""
        quote = extract_quotes(ceo_draft)[0]

        assert isinstance(quote, QuotedSpan)
        with pytest.raises(Exception):
            quote.text = "changed"
