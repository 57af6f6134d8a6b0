"""Quote verification endpoints.

Synchronous endpoints for small drafts:
- POST /quotes/extract: List quotes detected in a draft
- POST /quotes/verify: Verify every quote against a transcript

Async job-based API with per-quote progress:
- POST /quotes/jobs: Start verification (returns job_id)
- GET /quotes/jobs/{job_id}: Poll progress and (partial) report
- POST /quotes/jobs/{job_id}/cancel: Request cancellation

All responses use the { data, error } envelope pattern.
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks
from pydantic import BaseModel, Field

from src.api.exceptions import JobNotFoundError
from src.api.response import success_response
from src.models import VerificationJobStatus, VerificationOutcome
from src.services.quote_extractor import extract_quotes
from src.services.quote_verification_service import verify_all_quotes, verify_all_quotes_async
from src.services.verification_job_store import (
    create_verification_job,
    get_verification_job,
    update_verification_job,
)
from src.services.verification_thresholds import VerificationThresholds

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quotes", tags=["Quotes"])

# Loaded once; QUOTE_* environment variables override defaults
THRESHOLDS = VerificationThresholds.from_env()


# ============================================================================
# Request Models
# ============================================================================

class ExtractRequest(BaseModel):
    """Request to extract quotes from a draft."""
    draft: str = Field(description="Draft article text")


class VerifyRequest(BaseModel):
    """Request to verify the quotes of a draft."""
    draft: str = Field(description="Draft article text")
    transcript: str = Field(description="Source transcript text")


class VerifyJobRequest(VerifyRequest):
    """Request to start an async verification job."""
    reference_id: Optional[str] = Field(
        default=None,
        description="Caller identifier stored on the job (e.g. story id)"
    )


# ============================================================================
# Background Task
# ============================================================================

async def _record_failure(job_id: str, error: str) -> None:
    job = await get_verification_job(job_id)
    if job is None:
        return
    job.mark_failed(error[:500], "VERIFICATION_ERROR")
    await update_verification_job(
        job_id,
        status=job.status,
        completed_at=job.completed_at,
        error=job.error,
        error_code=job.error_code,
    )


async def _record_cancellation(job_id: str) -> None:
    job = await get_verification_job(job_id)
    if job is None:
        return
    job.mark_cancelled()
    await update_verification_job(
        job_id,
        status=job.status,
        completed_at=job.completed_at,
    )


async def run_verification_job(job_id: str, draft: str, transcript: str) -> None:
    """Background task to verify quotes, updating the job per quote."""
    try:
        job = await get_verification_job(job_id)
        if job is None:
            logger.warning(f"Verification job {job_id} disappeared before start")
            return
        job.mark_started()
        await update_verification_job(
            job_id,
            status=job.status,
            started_at=job.started_at,
        )

        async def cancel_requested() -> bool:
            current = await get_verification_job(job_id)
            return bool(current and current.cancel_requested)

        async def on_progress(done: int, total: int) -> None:
            job.quotes_total = total
            job.update_progress(done)
            await update_verification_job(
                job_id,
                quotes_total=job.quotes_total,
                quotes_done=job.quotes_done,
                progress_pct=job.progress_pct,
            )

        report = await verify_all_quotes_async(
            draft,
            transcript,
            thresholds=THRESHOLDS,
            should_cancel=cancel_requested,
            on_progress=on_progress,
        )

        job = await get_verification_job(job_id)
        if job is None:
            return
        if report.outcome == VerificationOutcome.cancelled:
            job.mark_cancelled(report)
        else:
            job.mark_completed(report)
        await update_verification_job(
            job_id,
            status=job.status,
            completed_at=job.completed_at,
            progress_pct=job.progress_pct,
            quotes_total=report.quotes_detected,
            quotes_done=job.quotes_done,
            report=report,
        )

        logger.info(
            f"Verification job {job_id} {job.status.value}: "
            f"{report.verified_count} verified, {report.unverified_count} need review"
        )

    except asyncio.CancelledError:
        logger.info(f"Verification job {job_id} was cancelled")
        await _record_cancellation(job_id)
    except Exception as e:
        logger.exception(f"Quote verification failed for job {job_id}: {e}")
        await _record_failure(job_id, str(e))


# ============================================================================
# Endpoints
# ============================================================================

@router.post("/extract")
async def extract(request: ExtractRequest) -> dict:
    """List the quotes detected in a draft, in draft order."""
    spans = extract_quotes(request.draft, THRESHOLDS)
    return success_response({
        "quotes": [span.model_dump(mode="json") for span in spans],
        "count": len(spans),
    })


@router.post("/verify")
async def verify(request: VerifyRequest) -> dict:
    """Verify every quote in the draft against the transcript.

    Matching is CPU-bound and runs in a worker thread.
    A draft without quotes returns outcome "no_quotes_found".
    """
    report = await asyncio.to_thread(
        verify_all_quotes, request.draft, request.transcript, THRESHOLDS
    )
    return success_response(report.to_response())


@router.post("/jobs")
async def start_verification_job(
    request: VerifyJobRequest,
    background_tasks: BackgroundTasks,
) -> dict:
    """Start async verification.

    Creates a background job and returns immediately with job_id.
    Poll /quotes/jobs/{job_id} for progress updates.
    """
    job_id = await create_verification_job(request.reference_id)
    background_tasks.add_task(
        run_verification_job, job_id, request.draft, request.transcript
    )

    return success_response({
        "job_id": job_id,
        "status": VerificationJobStatus.queued.value,
        "message": "Quote verification started",
    })


@router.get("/jobs/{job_id}")
async def get_verification_status(job_id: str) -> dict:
    """Get verification job status, progress and report when available."""
    job = await get_verification_job(job_id)
    if not job:
        raise JobNotFoundError(job_id)

    return success_response({
        "job_id": job.job_id,
        "reference_id": job.reference_id,
        "status": job.status.value,
        "progress_pct": job.progress_pct,
        "quotes_total": job.quotes_total,
        "quotes_done": job.quotes_done,
        "report": job.report.to_response() if job.report else None,
        "error": job.error,
        "error_code": job.error_code,
    })


@router.post("/jobs/{job_id}/cancel")
async def cancel_verification_job(job_id: str) -> dict:
    """Cancel an ongoing verification.

    Cancellation is best-effort: quotes already matched are kept and the
    job may complete before the request takes effect.
    """
    job = await get_verification_job(job_id)
    if not job:
        raise JobNotFoundError(job_id)

    if job.is_terminal():
        return success_response({
            "job_id": job.job_id,
            "status": job.status.value,
            "message": f"Job already in terminal state: {job.status.value}",
            "cancelled": False,
        })

    await update_verification_job(job_id, cancel_requested=True)

    return success_response({
        "job_id": job.job_id,
        "status": job.status.value,
        "message": "Cancellation requested",
        "cancelled": True,
    })
