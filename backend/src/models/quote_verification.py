"""Quote verification models.

Design goal:
- QuotedSpan is a transient candidate quotation found in a draft
- MatchResult is the outcome of searching the transcript for one quote
- VerificationRecord is the persisted unit of output, one per quote
- VerificationReport wraps a run so "no quotes found" stays distinct
  from a completed run

Pydantic v2. Extra fields are forbidden to prevent drift.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Sentinel attribution when no attribution pattern matched
UNKNOWN_ATTRIBUTION = "Unknown"

# Separator between non-contiguous transcript segments
SEGMENT_SEPARATOR = "..."


def _utcnow() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


class MatchKind(str, Enum):
    """How a quote was located in the transcript, strongest first."""
    exact = "exact"                # Normalized quote found verbatim
    partial = "partial"            # Long contiguous word run (>= 70%)
    paraphrased = "paraphrased"    # Weaker contiguous or scattered evidence
    not_found = "not_found"        # Below the acceptance floor

    @property
    def strength(self) -> int:
        """Rank for ordering (higher is stronger)."""
        return {
            MatchKind.exact: 3,
            MatchKind.partial: 2,
            MatchKind.paraphrased: 1,
            MatchKind.not_found: 0,
        }[self]


class VerificationOutcome(str, Enum):
    """Overall outcome of a verification run."""
    completed = "completed"              # Every detected quote was checked
    no_quotes_found = "no_quotes_found"  # Draft contained no recognizable quotes
    cancelled = "cancelled"              # Stopped early; records are a valid partial list


class QuotedSpan(BaseModel):
    """A candidate quotation found in the draft."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    text: str = Field(min_length=1, description="Quoted content, trimmed")
    attribution: str = Field(
        default=UNKNOWN_ATTRIBUTION,
        description="Nearest attribution phrase, or 'Unknown'"
    )
    context: Optional[str] = Field(
        default=None,
        description="Surrounding draft text for diagnostics"
    )
    start: int = Field(default=0, ge=0, description="Offset of the quote text in the draft")
    end: int = Field(default=0, ge=0, description="End offset of the quote text in the draft")


class MatchResult(BaseModel):
    """Outcome of searching the transcript for one quote."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    match_kind: MatchKind = Field(description="Strength of the match")
    confidence: float = Field(ge=0.0, le=1.0, description="Degree of textual overlap")
    located_snippet: Optional[str] = Field(
        default=None,
        description="Transcript text judged to correspond to the quote"
    )
    start_offset: Optional[int] = Field(
        default=None, ge=0,
        description="Start offset in the original transcript"
    )
    end_offset: Optional[int] = Field(
        default=None, ge=0,
        description="End offset in the original transcript"
    )
    segment_count: int = Field(
        default=0, ge=0,
        description="Number of transcript segments backing the snippet"
    )

    @model_validator(mode="after")
    def _check_offsets(self) -> "MatchResult":
        if self.match_kind == MatchKind.not_found:
            if self.located_snippet is not None or self.start_offset is not None:
                raise ValueError("not_found matches carry no snippet or offsets")
        elif self.start_offset is None or self.end_offset is None:
            raise ValueError(f"{self.match_kind.value} matches require offsets")
        elif self.end_offset < self.start_offset:
            raise ValueError("end_offset must not precede start_offset")
        return self

    @classmethod
    def not_found(cls) -> "MatchResult":
        """Empty result for quotes below the acceptance floor."""
        return cls(match_kind=MatchKind.not_found, confidence=0.0)


class VerificationRecord(BaseModel):
    """Verification verdict for one quote."""
    model_config = ConfigDict(extra="forbid")

    id: str = Field(description="Unique identifier within the run")
    quoted_text: str = Field(description="Quote text from the draft")
    attribution: str = Field(description="Attribution phrase from the draft")
    is_verified: bool = Field(description="confidence >= verified threshold")
    match_kind: MatchKind
    confidence: float = Field(ge=0.0, le=1.0)
    located_snippet: Optional[str] = None
    start_offset: Optional[int] = None
    end_offset: Optional[int] = None

    @property
    def confidence_pct(self) -> int:
        """Confidence as a rounded percentage for display."""
        return round(self.confidence * 100)


class VerificationReport(BaseModel):
    """Result of verifying every quote in a draft."""
    model_config = ConfigDict(extra="forbid")

    outcome: VerificationOutcome
    records: list[VerificationRecord] = Field(default_factory=list)
    quotes_detected: int = Field(default=0, ge=0, description="Quotes found by extraction")
    generated_at: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def _check_outcome(self) -> "VerificationReport":
        if self.outcome == VerificationOutcome.no_quotes_found and self.quotes_detected:
            raise ValueError("no_quotes_found report cannot have detected quotes")
        if self.outcome == VerificationOutcome.completed and (
            self.quotes_detected == 0 or len(self.records) != self.quotes_detected
        ):
            raise ValueError("completed report needs one record per detected quote")
        if len(self.records) > self.quotes_detected:
            raise ValueError("more records than detected quotes")
        return self

    @property
    def verified_count(self) -> int:
        """Number of verified records."""
        return sum(1 for record in self.records if record.is_verified)

    @property
    def unverified_count(self) -> int:
        """Number of records needing editor review."""
        return len(self.records) - self.verified_count

    @property
    def no_quotes_found(self) -> bool:
        """True when the draft had nothing to verify."""
        return self.outcome == VerificationOutcome.no_quotes_found

    def to_response(self) -> dict:
        """Serialize for API responses, including aggregate counts."""
        data = self.model_dump(mode="json")
        data["verified_count"] = self.verified_count
        data["unverified_count"] = self.unverified_count
        return data
