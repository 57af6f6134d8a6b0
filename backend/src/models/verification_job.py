"""Verification job model for async quote verification.

Tracks the state of one background verification run. Progress is
reported per quote, and records produced before a cancellation stay on
the job as a valid partial report.

Pydantic v2. Extra fields are forbidden to prevent drift.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict

from .quote_verification import VerificationReport


class VerificationJobStatus(str, Enum):
    """Status of a verification job."""
    queued = "queued"          # Job created, waiting to start
    running = "running"        # Quotes are being matched
    completed = "completed"    # Report available
    failed = "failed"          # Verification failed
    cancelled = "cancelled"    # Stopped on request; partial report kept


def _utcnow() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


class VerificationJob(BaseModel):
    """State for a quote verification job."""
    model_config = ConfigDict(extra="forbid")

    # Identity
    job_id: str = Field(description="UUID identifier for this job")
    reference_id: Optional[str] = Field(
        default=None,
        description="Caller-chosen identifier (e.g. story id)"
    )

    # Status
    status: VerificationJobStatus = Field(
        default=VerificationJobStatus.queued,
        description="Current job status"
    )

    # Timestamps
    created_at: datetime = Field(
        default_factory=_utcnow,
        description="Job creation timestamp"
    )
    started_at: Optional[datetime] = Field(
        default=None,
        description="When verification actually started"
    )
    completed_at: Optional[datetime] = Field(
        default=None,
        description="When verification completed/failed/cancelled"
    )

    # Progress
    progress_pct: int = Field(
        default=0,
        ge=0,
        le=100,
        description="Progress percentage (0-100)"
    )
    quotes_total: int = Field(default=0, ge=0, description="Quotes detected in the draft")
    quotes_done: int = Field(default=0, ge=0, description="Quotes matched so far")

    # Results
    report: Optional[VerificationReport] = Field(
        default=None,
        description="Verification report (available when completed or cancelled)"
    )

    # Error handling
    error: Optional[str] = Field(
        default=None,
        description="Error message if job failed"
    )
    error_code: Optional[str] = Field(
        default=None,
        description="Machine-readable error code"
    )

    # Control
    cancel_requested: bool = Field(
        default=False,
        description="Set to True to request cancellation"
    )

    def is_terminal(self) -> bool:
        """Check if job is in a terminal state (no more updates expected)."""
        return self.status in (
            VerificationJobStatus.completed,
            VerificationJobStatus.cancelled,
            VerificationJobStatus.failed,
        )

    def mark_started(self, quotes_total: int = 0) -> None:
        """Mark job as started. The total may be unknown until matching begins."""
        self.status = VerificationJobStatus.running
        self.started_at = _utcnow()
        self.quotes_total = quotes_total

    def mark_completed(self, report: VerificationReport) -> None:
        """Mark job as completed with report."""
        self.status = VerificationJobStatus.completed
        self.completed_at = _utcnow()
        self.progress_pct = 100
        self.quotes_done = len(report.records)
        self.report = report

    def mark_failed(self, error: str, error_code: Optional[str] = None) -> None:
        """Mark job as failed with error."""
        self.status = VerificationJobStatus.failed
        self.completed_at = _utcnow()
        self.error = error
        self.error_code = error_code

    def mark_cancelled(self, report: Optional[VerificationReport] = None) -> None:
        """Mark job as cancelled, keeping any partial report."""
        self.status = VerificationJobStatus.cancelled
        self.completed_at = _utcnow()
        if report is not None:
            self.report = report
            self.quotes_done = len(report.records)

    def update_progress(self, quotes_done: int) -> None:
        """Update per-quote progress."""
        self.quotes_done = quotes_done
        if self.quotes_total:
            pct = int(quotes_done * 100 / self.quotes_total)
            self.progress_pct = max(0, min(100, pct))
