"""Quote verification error hierarchy.

Only malformed input is a fault; missing quotes and unmatched quotes are
normal outcomes reported on the VerificationReport.
"""


class QuoteVerificationError(Exception):
    """Base exception for quote verification."""

    pass


class InvalidInputError(QuoteVerificationError, TypeError):
    """Draft or transcript is not a string.

    Raised before any matching so that confidence scores are never
    computed against a silently substituted empty text.
    """

    def __init__(self, argument: str, value: object):
        self.argument = argument
        self.value_type = type(value).__name__
        super().__init__(f"{argument} must be a string, got {self.value_type}")


def require_text(argument: str, value: object) -> str:
    """Return value unchanged if it is a str, else raise InvalidInputError."""
    if not isinstance(value, str):
        raise InvalidInputError(argument, value)
    return value
