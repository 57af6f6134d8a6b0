"""Health check endpoint."""

from fastapi import APIRouter

from src.api.response import success_response
from src.db.mongo import ping_database
from src.services.verification_job_store import (
    MongoVerificationJobStore,
    get_verification_job_store,
)

router = APIRouter(tags=["System"])


@router.get("/health")
async def health_check() -> dict:
    """Report service status and the job store backend.

    With the MongoDB store, "database" says whether MongoDB answers a ping.
    Quote verification itself never needs the database.
    """
    store = get_verification_job_store()
    is_mongo = isinstance(store, MongoVerificationJobStore)

    database = None
    if is_mongo:
        database = "ok" if await ping_database() else "unavailable"

    return success_response({
        "status": "ok",
        "job_store": "mongo" if is_mongo else "memory",
        "database": database,
    })
