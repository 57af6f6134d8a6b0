#!/usr/bin/env python3
"""Verify the quotes of a draft article against its interview transcript.

Usage:
    python scripts/verify_quotes.py draft.md transcript.txt
    python scripts/verify_quotes.py draft.md transcript.txt --json
    python scripts/verify_quotes.py draft.md transcript.txt --min-confidence 0.6

Exit codes:
    0 - every quote verified
    1 - at least one quote needs review
    2 - no quotes found in the draft, or invalid arguments
    3 - draft or transcript file missing
"""

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

# Add backend root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.models import MatchKind, VerificationOutcome, VerificationReport
from src.services.quote_verification_service import verify_all_quotes
from src.services.verification_thresholds import VerificationThresholds

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

EXIT_ALL_VERIFIED = 0
EXIT_NEEDS_REVIEW = 1
EXIT_NO_QUOTES = 2
EXIT_MISSING_FILE = 3

STATUS_LABELS = {
    "verified": "✓ VERIFIED",
    "review": "⚠ NEEDS REVIEW",
    "missing": "✗ NOT FOUND",
}


def status_label(is_verified: bool, match_kind: MatchKind) -> str:
    """Badge shown next to each quote."""
    if is_verified:
        return STATUS_LABELS["verified"]
    if match_kind == MatchKind.not_found:
        return STATUS_LABELS["missing"]
    return STATUS_LABELS["review"]


def print_report(report: VerificationReport) -> None:
    """Print a human-readable report."""
    print("=" * 70)
    print("QUOTE VERIFICATION")
    print("=" * 70)

    if report.no_quotes_found:
        print("\nNo quoted text was found in the draft article to verify.")
        return

    for index, record in enumerate(report.records, start=1):
        label = status_label(record.is_verified, record.match_kind)
        print(f"\n--- Quote #{index} {label} ({record.confidence_pct}% match, {record.match_kind.value}) ---")
        print(f"  Attribution: {record.attribution}")
        print(f"  Quoted: \"{record.quoted_text}\"")
        if record.located_snippet:
            print(f"  Transcript [{record.start_offset}:{record.end_offset}]: {record.located_snippet}")
            if record.match_kind == MatchKind.paraphrased:
                print("  * Non-contiguous matches are shown with ellipses (...)")

    print()
    print("=" * 70)
    print(
        f"{report.quotes_detected} quotes analyzed: "
        f"{report.verified_count} verified, {report.unverified_count} need review"
    )
    if report.outcome == VerificationOutcome.cancelled:
        print("Verification was cancelled before every quote was checked.")


def exit_code_for(report: VerificationReport) -> int:
    """Map a report to the script's exit code."""
    if report.no_quotes_found:
        return EXIT_NO_QUOTES
    if report.unverified_count or report.outcome != VerificationOutcome.completed:
        return EXIT_NEEDS_REVIEW
    return EXIT_ALL_VERIFIED


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Check quoted text in a draft against the original transcript"
    )
    parser.add_argument("draft", type=Path, help="Draft article file")
    parser.add_argument("transcript", type=Path, help="Interview transcript file")
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    parser.add_argument(
        "--min-confidence",
        type=float,
        default=None,
        help="Confidence (0-1) required for a quote to count as verified",
    )
    args = parser.parse_args(argv)
    if args.min_confidence is not None and not 0.0 <= args.min_confidence <= 1.0:
        parser.error("--min-confidence must be between 0 and 1")

    for path in (args.draft, args.transcript):
        if not path.exists():
            print(f"ERROR: File not found: {path}")
            return EXIT_MISSING_FILE

    thresholds = VerificationThresholds.from_env()
    if args.min_confidence is not None:
        thresholds = replace(thresholds, verified_threshold=args.min_confidence)

    logger.info(f"Verifying quotes in {args.draft.name} against {args.transcript.name}")
    report = verify_all_quotes(
        args.draft.read_text(encoding="utf-8"),
        args.transcript.read_text(encoding="utf-8"),
        thresholds=thresholds,
    )

    if args.json:
        print(json.dumps(report.to_response(), indent=2))
    else:
        print_report(report)

    return exit_code_for(report)


if __name__ == "__main__":
    sys.exit(main())
