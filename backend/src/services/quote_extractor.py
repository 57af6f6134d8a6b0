"""Quote extraction from draft articles.

Finds direct quotations in a draft together with the nearest attribution
phrase. Recognized shapes:

1. "Quote text," Jane Doe said ...
2. Jane Doe explained: "Quote text"
3. "Quote text" - Jane Doe
4. According to Jane Doe, "Quote text"

Patterns are tried in order over the whole draft; overlapping matches of
the same quotation are collapsed so every quote is reported once.
"""

import logging
import re
from dataclasses import dataclass

from src.models.quote_verification import QuotedSpan, UNKNOWN_ATTRIBUTION
from src.services.normalization import normalize_text
from src.services.verification_errors import require_text
from src.services.verification_thresholds import DEFAULT_THRESHOLDS, VerificationThresholds

logger = logging.getLogger(__name__)

ATTRIBUTION_VERBS = (
    "said", "explained", "noted", "shared", "mentioned", "stated", "told",
    "expressed", "revealed", "admitted", "emphasized", "clarified", "added",
    "continued", "concluded",
)

_VERBS = "|".join(ATTRIBUTION_VERBS)

# Curly double quotes map to straight ones (same length, offsets unchanged)
_QUOTE_TRANSLATION = str.maketrans({"“": '"', "”": '"', "„": '"'})

# Characters trimmed from both ends of quote text
_QUOTE_TRIM = ' \t\r\n"'

# Characters trimmed from both ends of attribution text
_ATTRIBUTION_TRIM = " \t\r\n\"',.;:-–—"


@dataclass(frozen=True)
class QuotePattern:
    """One quotation/attribution shape.

    quote_group and attribution_group name regex groups. When
    longer_is_quote is set the two groups are ambiguous and the longer
    fragment is taken as the quote.
    """

    name: str
    regex: re.Pattern
    quote_group: str = "quote"
    attribution_group: str = "attribution"
    longer_is_quote: bool = False


QUOTE_PATTERNS: tuple[QuotePattern, ...] = (
    # "Quote text," the CEO explained.
    QuotePattern(
        name="quote_then_verb",
        regex=re.compile(
            rf'"(?P<quote>[^"]+?)(?:,"|",)\s+(?P<attribution>[^".\n]*?\b(?:{_VERBS})\b[^".\n]*)',
            re.IGNORECASE,
        ),
        longer_is_quote=True,
    ),
    # The CEO explained: "Quote text"
    QuotePattern(
        name="verb_then_quote",
        regex=re.compile(
            rf'(?P<attribution>[^".\n]*?\b(?:{_VERBS})\b[^":.\n]*?):\s*"(?P<quote>[^"]+)"',
            re.IGNORECASE,
        ),
    ),
    # "Quote text" - the CEO
    QuotePattern(
        name="quote_dash",
        regex=re.compile(
            r'"(?P<quote>[^"]+)"\s*[-–—]\s*(?P<attribution>[^".\n]+)',
            re.IGNORECASE,
        ),
    ),
    # According to the CEO, "Quote text"
    QuotePattern(
        name="according_to",
        regex=re.compile(
            r'\b(?:according to|as)\s+(?P<attribution>[^,"\n]+),?\s*"(?P<quote>[^"]+)"',
            re.IGNORECASE,
        ),
    ),
)


@dataclass(frozen=True)
class _Candidate:
    text: str
    attribution: str
    start: int
    end: int
    pattern_index: int
    match_start: int
    match_end: int


def _trimmed_span(source: str, start: int, end: int, chars: str) -> tuple[int, int]:
    """Shrink [start, end) so it no longer begins or ends with chars."""
    while start < end and source[start] in chars:
        start += 1
    while end > start and source[end - 1] in chars:
        end -= 1
    return start, end


def _candidates_for(
    pattern_index: int,
    pattern: QuotePattern,
    draft: str,
    min_length: int,
) -> list[_Candidate]:
    """Run one pattern over the draft."""
    candidates = []
    for match in pattern.regex.finditer(draft):
        quote_span = match.span(pattern.quote_group)
        attribution_span = match.span(pattern.attribution_group)

        # Length is checked on the quoted fragment before any swap
        start, end = _trimmed_span(draft, *quote_span, _QUOTE_TRIM)
        if end - start < min_length:
            continue

        if pattern.longer_is_quote:
            # Tie-break heuristic: the longer fragment is the quote
            quote_len = quote_span[1] - quote_span[0]
            attribution_len = attribution_span[1] - attribution_span[0]
            if attribution_len > quote_len:
                quote_span, attribution_span = attribution_span, quote_span
                start, end = _trimmed_span(draft, *quote_span, _QUOTE_TRIM)

        attr_start, attr_end = _trimmed_span(draft, *attribution_span, _ATTRIBUTION_TRIM)
        attribution = re.sub(r"\s+", " ", draft[attr_start:attr_end]) or UNKNOWN_ATTRIBUTION

        candidates.append(_Candidate(
            text=draft[start:end],
            attribution=attribution,
            start=start,
            end=end,
            pattern_index=pattern_index,
            match_start=match.start(),
            match_end=match.end(),
        ))
    return candidates


def _deduplicate(candidates: list[_Candidate]) -> list[_Candidate]:
    """Drop repeats of the same quote.

    A candidate is a repeat if it overlaps the draft span of a kept quote,
    or if its (normalized text, attribution) pair was already kept.
    Candidates must be sorted by position, then pattern order.
    """
    kept: list[_Candidate] = []
    seen_pairs: set[tuple[str, str]] = set()

    for candidate in candidates:
        pair = (normalize_text(candidate.text), candidate.attribution.lower())
        if pair in seen_pairs:
            continue
        if any(candidate.start < k.end and k.start < candidate.end for k in kept):
            continue
        seen_pairs.add(pair)
        kept.append(candidate)

    return kept


def extract_quotes(
    draft: str,
    thresholds: VerificationThresholds = DEFAULT_THRESHOLDS,
) -> list[QuotedSpan]:
    """Extract quoted spans and their attributions from a draft.

    Args:
        draft: Full draft text.
        thresholds: Minimum quote length and context window.

    Returns:
        QuotedSpans in order of first occurrence. Empty if the draft has
        no recognizable quotes.

    Raises:
        InvalidInputError: If draft is not a string.
    """
    require_text("draft", draft)
    if not draft.strip():
        return []

    text = draft.translate(_QUOTE_TRANSLATION)

    candidates: list[_Candidate] = []
    for index, pattern in enumerate(QUOTE_PATTERNS):
        candidates.extend(_candidates_for(index, pattern, text, thresholds.min_quote_length))

    candidates.sort(key=lambda c: (c.start, c.pattern_index))
    kept = _deduplicate(candidates)

    window = thresholds.context_window
    spans = [
        QuotedSpan(
            text=draft[c.start:c.end],
            attribution=c.attribution,
            context=draft[max(0, c.match_start - window):c.match_end + window].strip(),
            start=c.start,
            end=c.end,
        )
        for c in kept
    ]

    logger.debug(
        f"Extracted {len(spans)} quotes from draft ({len(candidates)} pattern matches)"
    )
    return spans
