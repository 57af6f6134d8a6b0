"""Quote verification orchestration.

Runs extraction once per draft, then matches every quote against the
transcript and assembles one VerificationRecord per quote.

Quotes are independent units of work:
- verify_all_quotes runs them in order on the calling thread
- verify_all_quotes_async runs them in worker threads with a concurrency
  limit and reassembles the records in input order

Both honor a cancellation signal. Records produced before cancellation
are returned as a valid partial report.
"""

import asyncio
import logging
import os
from typing import Awaitable, Callable, Optional, Union

from src.models.quote_verification import (
    MatchResult,
    QuotedSpan,
    VerificationOutcome,
    VerificationRecord,
    VerificationReport,
)
from src.services.normalization import NormalizedText, normalize_with_offsets
from src.services.quote_extractor import extract_quotes
from src.services.transcript_matcher import verify_quote
from src.services.verification_errors import require_text
from src.services.verification_thresholds import DEFAULT_THRESHOLDS, VerificationThresholds

logger = logging.getLogger(__name__)

# Worker threads used by the async orchestrator
DEFAULT_CONCURRENCY = int(os.getenv("VERIFICATION_CONCURRENCY", "4"))

ProgressCallback = Callable[[int, int], Union[None, Awaitable[None]]]


def build_record(
    index: int,
    span: QuotedSpan,
    match: MatchResult,
    thresholds: VerificationThresholds = DEFAULT_THRESHOLDS,
) -> VerificationRecord:
    """Assemble the record for the quote at position index (0-based).

    is_verified depends only on confidence, never on match kind.
    """
    return VerificationRecord(
        id=f"quote-{index + 1}",
        quoted_text=span.text,
        attribution=span.attribution,
        is_verified=match.confidence >= thresholds.verified_threshold,
        match_kind=match.match_kind,
        confidence=match.confidence,
        located_snippet=match.located_snippet,
        start_offset=match.start_offset,
        end_offset=match.end_offset,
    )


def _build_report(
    spans: list[QuotedSpan],
    records: list[VerificationRecord],
    cancelled: bool,
) -> VerificationReport:
    if not spans:
        return VerificationReport(outcome=VerificationOutcome.no_quotes_found)

    outcome = (
        VerificationOutcome.cancelled
        if cancelled and len(records) < len(spans)
        else VerificationOutcome.completed
    )
    report = VerificationReport(
        outcome=outcome,
        records=records,
        quotes_detected=len(spans),
    )
    logger.info(
        f"Quote verification {outcome.value}: {report.verified_count} verified, "
        f"{report.unverified_count} need review, {len(spans)} detected"
    )
    return report


def _prepare(
    draft: str,
    transcript: str,
    thresholds: VerificationThresholds,
) -> tuple[list[QuotedSpan], NormalizedText]:
    require_text("draft", draft)
    require_text("transcript", transcript)
    spans = extract_quotes(draft, thresholds)
    return spans, normalize_with_offsets(transcript)


def verify_all_quotes(
    draft: str,
    transcript: str,
    thresholds: VerificationThresholds = DEFAULT_THRESHOLDS,
    should_cancel: Optional[Callable[[], bool]] = None,
    on_progress: Optional[Callable[[int, int], None]] = None,
) -> VerificationReport:
    """Verify every quote in a draft against the transcript.

    Args:
        draft: Draft article text.
        transcript: Source transcript text.
        thresholds: Extraction and matching thresholds.
        should_cancel: Checked before each quote; returning True stops the
            loop and returns the records produced so far.
        on_progress: Called with (done, total) after each quote.

    Returns:
        VerificationReport. Outcome is no_quotes_found when the draft has
        no recognizable quotes.

    Raises:
        InvalidInputError: If draft or transcript is not a string.
    """
    spans, normalized = _prepare(draft, transcript, thresholds)
    if not spans:
        logger.info("No quotes found in draft")
        return _build_report(spans, [], cancelled=False)

    records: list[VerificationRecord] = []
    cancelled = False

    for index, span in enumerate(spans):
        if should_cancel is not None and should_cancel():
            logger.info(f"Quote verification cancelled after {index} of {len(spans)} quotes")
            cancelled = True
            break

        match = verify_quote(span, normalized, thresholds)
        records.append(build_record(index, span, match, thresholds))

        if on_progress is not None:
            on_progress(index + 1, len(spans))

    return _build_report(spans, records, cancelled)


async def verify_all_quotes_async(
    draft: str,
    transcript: str,
    thresholds: VerificationThresholds = DEFAULT_THRESHOLDS,
    concurrency: int = DEFAULT_CONCURRENCY,
    should_cancel: Optional[Callable[[], Union[bool, Awaitable[bool]]]] = None,
    on_progress: Optional[ProgressCallback] = None,
    timeout_s: Optional[float] = None,
) -> VerificationReport:
    """Verify every quote, one worker-thread task per quote.

    Records are reassembled in input order. A cancel signal or timeout
    stops scheduling new quotes; quotes already finished are kept.

    Args:
        draft: Draft article text.
        transcript: Source transcript text.
        thresholds: Extraction and matching thresholds.
        concurrency: Maximum quotes matched at the same time.
        should_cancel: Sync or async predicate checked before each quote.
        on_progress: Sync or async callback with (done, total).
        timeout_s: Overall time limit in seconds.

    Returns:
        VerificationReport; outcome cancelled if work was cut short.

    Raises:
        InvalidInputError: If draft or transcript is not a string.
    """
    spans, normalized = _prepare(draft, transcript, thresholds)
    if not spans:
        logger.info("No quotes found in draft")
        return _build_report(spans, [], cancelled=False)

    semaphore = asyncio.Semaphore(max(1, concurrency))
    results: dict[int, VerificationRecord] = {}
    progress_lock = asyncio.Lock()
    cancel_event = asyncio.Event()

    async def _cancel_requested() -> bool:
        if cancel_event.is_set():
            return True
        if should_cancel is None:
            return False
        requested = should_cancel()
        if asyncio.iscoroutine(requested):
            requested = await requested
        if requested:
            cancel_event.set()
        return bool(requested)

    async def _verify_one(index: int, span: QuotedSpan) -> None:
        async with semaphore:
            if await _cancel_requested():
                return
            match = await asyncio.to_thread(verify_quote, span, normalized, thresholds)
            record = build_record(index, span, match, thresholds)

        async with progress_lock:
            results[index] = record
            if on_progress is not None:
                outcome = on_progress(len(results), len(spans))
                if asyncio.iscoroutine(outcome):
                    await outcome

    tasks = [asyncio.create_task(_verify_one(i, span)) for i, span in enumerate(spans)]
    try:
        await asyncio.wait_for(asyncio.gather(*tasks), timeout=timeout_s)
    except asyncio.TimeoutError:
        logger.warning(
            f"Quote verification timed out after {timeout_s}s "
            f"({len(results)} of {len(spans)} quotes done)"
        )
        cancel_event.set()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    records = [results[index] for index in sorted(results)]
    return _build_report(spans, records, cancelled=cancel_event.is_set())
