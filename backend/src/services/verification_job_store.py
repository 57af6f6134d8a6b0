"""Storage for async quote verification jobs.

JOB_STORE_BACKEND selects the backend:
- mongo (default): jobs live in the verification_jobs collection and
  MongoDB's TTL monitor drops finished jobs through expires_at
- memory: jobs live in a dict and a periodic sweep drops finished jobs

Stores hand out copies. Callers change a job locally, then write the
changed fields back with update_job.
"""

from __future__ import annotations

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import uuid4

from src.db.mongo import get_collection
from src.models.verification_job import VerificationJob

logger = logging.getLogger(__name__)

# Seconds a finished job is kept before removal
DEFAULT_VERIFICATION_JOB_TTL_SECONDS = int(
    os.getenv("VERIFICATION_JOB_TTL_SECONDS", "3600")
)

# Seconds between sweeps of the in-memory store
SWEEP_INTERVAL_SECONDS = 300

VERIFICATION_JOBS_COLLECTION = "verification_jobs"


def _expiry(job: VerificationJob, ttl_seconds: int) -> Optional[datetime]:
    """When a finished job may be removed; None while it is still active."""
    if not job.is_terminal() or job.completed_at is None:
        return None
    return job.completed_at + timedelta(seconds=ttl_seconds)


def _apply_updates(job: VerificationJob, updates: dict) -> None:
    for key, value in updates.items():
        if key not in VerificationJob.model_fields:
            logger.warning(f"Ignoring unknown verification job field '{key}'")
            continue
        setattr(job, key, value)


class VerificationJobStore(ABC):
    """Create, read and update verification jobs."""

    ttl_seconds: int

    async def start_cleanup_task(self) -> None:
        """Hook run on application startup."""

    async def stop_cleanup_task(self) -> None:
        """Hook run on application shutdown."""

    @abstractmethod
    async def create_job(self, reference_id: Optional[str] = None) -> str:
        """Store a new queued job and return its id."""

    @abstractmethod
    async def get_job(self, job_id: str) -> Optional[VerificationJob]:
        """Return a copy of the job, or None if unknown or expired."""

    @abstractmethod
    async def update_job(self, job_id: str, **updates) -> Optional[VerificationJob]:
        """Set fields on a job and return the updated copy."""


class InMemoryVerificationJobStore(VerificationJobStore):
    """Process-local store. Jobs are lost on restart."""

    def __init__(self, ttl_seconds: int = DEFAULT_VERIFICATION_JOB_TTL_SECONDS):
        self.ttl_seconds = ttl_seconds
        self._jobs: dict[str, VerificationJob] = {}
        self._lock = asyncio.Lock()
        self._sweeper: Optional[asyncio.Task] = None

    async def start_cleanup_task(self) -> None:
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(self._sweep_forever())
            logger.info("Started in-memory verification job sweeper")

    async def stop_cleanup_task(self) -> None:
        if self._sweeper is None or self._sweeper.done():
            return
        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        logger.info("Stopped in-memory verification job sweeper")

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(SWEEP_INTERVAL_SECONDS)
            try:
                await self.purge_expired()
            except Exception as e:
                logger.error(f"Verification job sweep failed: {e}")

    async def purge_expired(self) -> int:
        """Drop finished jobs whose TTL has passed. Returns the number removed."""
        now = datetime.now(timezone.utc)
        async with self._lock:
            expired = [
                job_id for job_id, job in self._jobs.items()
                if (expiry := _expiry(job, self.ttl_seconds)) is not None and expiry < now
            ]
            for job_id in expired:
                del self._jobs[job_id]

        if expired:
            logger.info(f"Purged {len(expired)} expired verification jobs")
        return len(expired)

    async def create_job(self, reference_id: Optional[str] = None) -> str:
        job = VerificationJob(job_id=str(uuid4()), reference_id=reference_id)
        async with self._lock:
            self._jobs[job.job_id] = job
        logger.debug(f"Queued verification job {job.job_id}")
        return job.job_id

    async def get_job(self, job_id: str) -> Optional[VerificationJob]:
        async with self._lock:
            job = self._jobs.get(job_id)
            return job.model_copy(deep=True) if job else None

    async def update_job(self, job_id: str, **updates) -> Optional[VerificationJob]:
        async with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return None
            _apply_updates(job, updates)
            return job.model_copy(deep=True)


class MongoVerificationJobStore(VerificationJobStore):
    """MongoDB store. Jobs survive restarts and expire through a TTL index."""

    def __init__(self, ttl_seconds: int = DEFAULT_VERIFICATION_JOB_TTL_SECONDS):
        self.ttl_seconds = ttl_seconds
        self._indexes_ready = False

    async def start_cleanup_task(self) -> None:
        await self._ensure_indexes()

    async def _collection(self):
        return await get_collection(VERIFICATION_JOBS_COLLECTION)

    async def _ensure_indexes(self) -> None:
        if self._indexes_ready:
            return
        try:
            collection = await self._collection()
            # expireAfterSeconds=0: each document carries its own expiry time
            await collection.create_index("expires_at", expireAfterSeconds=0)
            await collection.create_index("job_id", unique=True)
            self._indexes_ready = True
            logger.info("Verification job indexes ready")
        except Exception as e:
            logger.warning(f"Could not create verification job indexes: {e}")

    def _to_document(self, job: VerificationJob) -> dict:
        doc = job.model_dump(mode="python", exclude={"report"})
        doc["status"] = job.status.value
        doc["report"] = job.report.model_dump(mode="json") if job.report else None
        doc["expires_at"] = _expiry(job, self.ttl_seconds)
        return doc

    @staticmethod
    def _from_document(doc: dict) -> VerificationJob:
        fields = {k: v for k, v in doc.items() if k in VerificationJob.model_fields}
        return VerificationJob.model_validate(fields)

    async def create_job(self, reference_id: Optional[str] = None) -> str:
        await self._ensure_indexes()
        job = VerificationJob(job_id=str(uuid4()), reference_id=reference_id)
        collection = await self._collection()
        await collection.insert_one(self._to_document(job))
        logger.debug(f"Queued verification job {job.job_id} in MongoDB")
        return job.job_id

    async def get_job(self, job_id: str) -> Optional[VerificationJob]:
        collection = await self._collection()
        doc = await collection.find_one({"job_id": job_id})
        return self._from_document(doc) if doc else None

    async def update_job(self, job_id: str, **updates) -> Optional[VerificationJob]:
        job = await self.get_job(job_id)
        if job is None:
            return None
        _apply_updates(job, updates)
        collection = await self._collection()
        await collection.replace_one({"job_id": job_id}, self._to_document(job))
        return job


_store: Optional[VerificationJobStore] = None


def get_verification_job_store() -> VerificationJobStore:
    """Return the process-wide store, creating it from JOB_STORE_BACKEND."""
    global _store
    if _store is None:
        backend = os.getenv("JOB_STORE_BACKEND", "mongo").lower()
        _store = MongoVerificationJobStore() if backend == "mongo" else InMemoryVerificationJobStore()
        logger.info(f"Verification job store backend: {backend}")
    return _store


def set_verification_job_store(store: Optional[VerificationJobStore]) -> None:
    """Install a store, or None to rebuild from the environment (tests)."""
    global _store
    _store = store


async def create_verification_job(reference_id: Optional[str] = None) -> str:
    return await get_verification_job_store().create_job(reference_id)


async def get_verification_job(job_id: str) -> Optional[VerificationJob]:
    return await get_verification_job_store().get_job(job_id)


async def update_verification_job(job_id: str, **updates) -> Optional[VerificationJob]:
    return await get_verification_job_store().update_job(job_id, **updates)
