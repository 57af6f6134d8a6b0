"""Transcript matching for quote verification.

Locates the best correspondence between one quote and the transcript.
Three tiers are tried, strongest evidence first:

1. Exact: the normalized quote is a substring of the normalized transcript.
2. Window: the longest run of consecutive quote words (8 down to 3)
   found verbatim in the transcript. Like tier 1 this is plain substring
   containment, so a run may start or end inside a transcript word.
3. Scatter: when the window tier scores below 0.5, each distinctive
   quote word is looked up on its own and the hits are stitched together.

Each tier is a pure function returning a candidate or None;
``pick_best`` chooses between them. Offsets in the result always refer to
the original, non-normalized transcript.
"""

import logging
from dataclasses import dataclass
from typing import ClassVar, Optional, Union

from src.models.quote_verification import (
    MatchKind,
    MatchResult,
    QuotedSpan,
    SEGMENT_SEPARATOR,
)
from src.services.normalization import NormalizedText, normalize_text, normalize_with_offsets
from src.services.verification_errors import require_text
from src.services.verification_thresholds import DEFAULT_THRESHOLDS, VerificationThresholds

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Segment:
    """Half-open span in the normalized transcript."""

    start: int
    end: int


@dataclass(frozen=True)
class ExactCandidate:
    """Whole quote found verbatim."""

    segment: Segment
    confidence: float = 1.0
    priority: ClassVar[int] = 3

    @property
    def segments(self) -> tuple[Segment, ...]:
        return (self.segment,)


@dataclass(frozen=True)
class WindowCandidate:
    """Longest contiguous run of quote words found verbatim."""

    segment: Segment
    window_words: int
    confidence: float
    priority: ClassVar[int] = 2

    @property
    def segments(self) -> tuple[Segment, ...]:
        return (self.segment,)


@dataclass(frozen=True)
class ScatterCandidate:
    """Individual quote words found anywhere in the transcript."""

    segments: tuple[Segment, ...]
    words_found: int
    confidence: float
    priority: ClassVar[int] = 1


MatchCandidate = Union[ExactCandidate, WindowCandidate, ScatterCandidate]


def try_exact(quote_norm: str, transcript: NormalizedText) -> Optional[ExactCandidate]:
    """Tier 1: plain substring containment of the normalized quote."""
    if not quote_norm:
        return None
    index = transcript.text.find(quote_norm)
    if index == -1:
        return None
    return ExactCandidate(segment=Segment(index, index + len(quote_norm)))


def try_partial_window(
    quote_words: list[str],
    transcript: NormalizedText,
    thresholds: VerificationThresholds = DEFAULT_THRESHOLDS,
) -> Optional[WindowCandidate]:
    """Tier 2: longest verbatim run of consecutive quote words.

    Window sizes go from min(word_count, max_window_words) down to
    min_window_words. Confidence is window_size / word_count, so the first
    hit at the largest size (earliest position on ties) is the best.
    """
    word_count = len(quote_words)
    if word_count == 0:
        return None

    largest = min(word_count, thresholds.max_window_words)

    for size in range(largest, thresholds.min_window_words - 1, -1):
        for start in range(word_count - size + 1):
            phrase = " ".join(quote_words[start:start + size])
            index = transcript.text.find(phrase)
            if index != -1:
                return WindowCandidate(
                    segment=Segment(index, index + len(phrase)),
                    window_words=size,
                    confidence=size / word_count,
                )
    return None


def try_word_scatter(
    quote_words: list[str],
    transcript: NormalizedText,
    thresholds: VerificationThresholds = DEFAULT_THRESHOLDS,
) -> Optional[ScatterCandidate]:
    """Tier 3: look up each distinctive quote word independently.

    Short words are skipped. Confidence is words_found / word_count scaled
    by scatter_weight, since scattered hits are not one coherent quotation.
    """
    word_count = len(quote_words)
    if word_count == 0:
        return None

    found = 0
    positions: dict[int, Segment] = {}

    for word in quote_words:
        if len(word) < thresholds.scatter_min_word_length:
            continue
        index = transcript.text.find(word)
        if index == -1:
            continue
        found += 1
        positions.setdefault(index, Segment(index, index + len(word)))

    if not found:
        return None

    return ScatterCandidate(
        segments=tuple(positions[index] for index in sorted(positions)),
        words_found=found,
        confidence=min(1.0, found / word_count * thresholds.scatter_weight),
    )


def pick_best(candidates: list[Optional[MatchCandidate]]) -> Optional[MatchCandidate]:
    """Pick the strongest candidate by confidence, then tier priority.

    A lower tier only wins if its confidence is strictly higher.
    """
    present = [c for c in candidates if c is not None]
    if not present:
        return None
    return max(present, key=lambda c: (c.confidence, c.priority))


def find_best_candidate(
    quote_norm: str,
    transcript: NormalizedText,
    thresholds: VerificationThresholds = DEFAULT_THRESHOLDS,
) -> Optional[MatchCandidate]:
    """Run the tiers in order and return the strongest candidate."""
    exact = try_exact(quote_norm, transcript)
    if exact is not None:
        return exact

    quote_words = quote_norm.split(" ") if quote_norm else []
    window = try_partial_window(quote_words, transcript, thresholds)

    window_confidence = window.confidence if window else 0.0
    if window_confidence >= thresholds.scatter_trigger:
        return window

    scatter = try_word_scatter(quote_words, transcript, thresholds)
    return pick_best([window, scatter])


def classify(
    candidate: Optional[MatchCandidate],
    thresholds: VerificationThresholds = DEFAULT_THRESHOLDS,
) -> MatchKind:
    """Map a candidate to a match kind."""
    if candidate is None or candidate.confidence < thresholds.acceptance_floor:
        return MatchKind.not_found
    if isinstance(candidate, ExactCandidate):
        return MatchKind.exact
    if candidate.confidence >= thresholds.partial_threshold:
        return MatchKind.partial
    return MatchKind.paraphrased


def build_match_result(
    candidate: Optional[MatchCandidate],
    transcript: NormalizedText,
    thresholds: VerificationThresholds = DEFAULT_THRESHOLDS,
) -> MatchResult:
    """Turn a candidate into a MatchResult against the original transcript."""
    kind = classify(candidate, thresholds)
    if kind == MatchKind.not_found:
        return MatchResult.not_found()

    spans = [transcript.to_original_span(s.start, s.end) for s in candidate.segments]
    snippet = SEGMENT_SEPARATOR.join(transcript.original[start:end] for start, end in spans)

    return MatchResult(
        match_kind=kind,
        confidence=candidate.confidence,
        located_snippet=snippet,
        start_offset=spans[0][0],
        end_offset=spans[-1][1],
        segment_count=len(spans),
    )


def verify_quote(
    quote: Union[QuotedSpan, str],
    transcript: Union[str, NormalizedText],
    thresholds: VerificationThresholds = DEFAULT_THRESHOLDS,
) -> MatchResult:
    """Find the best match for one quote in the transcript.

    Args:
        quote: QuotedSpan or raw quote text.
        transcript: Transcript text, or a pre-normalized transcript when
            verifying many quotes against the same text.
        thresholds: Tier and classification thresholds.

    Returns:
        MatchResult. Empty transcripts and quotes with no word characters
        yield not_found with confidence 0.

    Raises:
        InvalidInputError: If the quote text or transcript is not a string.
    """
    quote_text = quote.text if isinstance(quote, QuotedSpan) else require_text("quote", quote)
    if not isinstance(transcript, NormalizedText):
        transcript = normalize_with_offsets(require_text("transcript", transcript))

    if not transcript.text:
        logger.debug("Empty transcript, quote cannot be located")
        return MatchResult.not_found()

    quote_norm = normalize_text(quote_text)
    if not quote_norm:
        logger.debug("Quote has no word characters after normalization")
        return MatchResult.not_found()

    candidate = find_best_candidate(quote_norm, transcript, thresholds)
    result = build_match_result(candidate, transcript, thresholds)

    logger.debug(
        f"Quote '{quote_text[:50]}' -> {result.match_kind.value} "
        f"({result.confidence:.2f})"
    )
    return result
