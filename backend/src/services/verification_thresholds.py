"""Centralized threshold definitions for quote verification.

Single source of truth for quote extraction limits, matcher tier
parameters and the verified / acceptance cut-offs.
"""

import os
from dataclasses import asdict, dataclass, fields

# Prefix for environment overrides (e.g. QUOTE_VERIFIED_THRESHOLD=0.6)
ENV_PREFIX = "QUOTE_"


@dataclass(frozen=True)
class VerificationThresholds:
    """Threshold configuration for quote extraction and matching.

    Acceptance floor and verified threshold are independent constants.
    They are not scaled by quote length.
    """

    # =========================================================================
    # Extraction
    # =========================================================================

    # Quotes shorter than this (after trimming) are not considered quotes
    min_quote_length: int = 20

    # Characters of draft kept on each side of a quote for diagnostics
    context_window: int = 150

    # =========================================================================
    # Matching tiers
    # =========================================================================

    # Sliding window bounds (in words) for the contiguous partial tier
    max_window_words: int = 8
    min_window_words: int = 3

    # Word scatter tier runs only when the window tier is below this
    scatter_trigger: float = 0.5

    # Cap applied to word scatter confidence
    scatter_weight: float = 0.8

    # Quote words shorter than this are skipped by the scatter tier
    scatter_min_word_length: int = 4

    # =========================================================================
    # Classification
    # =========================================================================

    # Below this a quote is not_found
    acceptance_floor: float = 0.3

    # At or above this a non-exact match is partial, else paraphrased
    partial_threshold: float = 0.7

    # is_verified == confidence >= verified_threshold
    verified_threshold: float = 0.5

    def __post_init__(self) -> None:
        for name in (
            "scatter_trigger",
            "scatter_weight",
            "acceptance_floor",
            "partial_threshold",
            "verified_threshold",
        ):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {value}")
        if self.min_window_words < 1 or self.max_window_words < self.min_window_words:
            raise ValueError(
                f"Invalid window bounds: min={self.min_window_words}, max={self.max_window_words}"
            )
        if self.acceptance_floor > self.partial_threshold:
            raise ValueError("acceptance_floor cannot exceed partial_threshold")
        if self.min_quote_length < 1 or self.context_window < 0:
            raise ValueError("min_quote_length must be positive and context_window non-negative")

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_env(cls, environ: dict | None = None) -> "VerificationThresholds":
        """Build thresholds from QUOTE_* environment variables.

        Unset variables keep their defaults.
        """
        environ = os.environ if environ is None else environ
        overrides = {}
        for field in fields(cls):
            raw = environ.get(f"{ENV_PREFIX}{field.name.upper()}")
            if raw is None or raw == "":
                continue
            cast = int if field.type in (int, "int") else float
            try:
                overrides[field.name] = cast(raw)
            except ValueError as e:
                raise ValueError(
                    f"Invalid value for {ENV_PREFIX}{field.name.upper()}: {raw!r}"
                ) from e
        return cls(**overrides)


# Default thresholds for production use
DEFAULT_THRESHOLDS = VerificationThresholds()
