"""Services package for backend business logic."""

from .quote_extractor import extract_quotes
from .transcript_matcher import verify_quote
from .quote_verification_service import verify_all_quotes, verify_all_quotes_async
from .verification_errors import InvalidInputError, QuoteVerificationError
from .verification_thresholds import DEFAULT_THRESHOLDS, VerificationThresholds

__all__ = [
    # Core operations
    "extract_quotes",
    "verify_quote",
    "verify_all_quotes",
    "verify_all_quotes_async",
    # Errors
    "InvalidInputError",
    "QuoteVerificationError",
    # Configuration
    "DEFAULT_THRESHOLDS",
    "VerificationThresholds",
]
