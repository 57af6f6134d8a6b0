"""Backend models package.

Note: keep backend models as the source-of-truth schemas for OpenAPI + frontend types.
"""

from .quote_verification import (
    MatchKind,
    MatchResult,
    QuotedSpan,
    VerificationOutcome,
    VerificationRecord,
    VerificationReport,
    SEGMENT_SEPARATOR,
    UNKNOWN_ATTRIBUTION,
)
from .verification_job import (
    VerificationJob,
    VerificationJobStatus,
)

__all__ = [
    # Quote verification
    "MatchKind",
    "MatchResult",
    "QuotedSpan",
    "VerificationOutcome",
    "VerificationRecord",
    "VerificationReport",
    "SEGMENT_SEPARATOR",
    "UNKNOWN_ATTRIBUTION",
    # Jobs
    "VerificationJob",
    "VerificationJobStatus",
]
