"""FastAPI application setup."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError

from src.api.exceptions import JobNotFoundError
from src.api.response import error_json
from src.api.routes import health, quotes
from src.db.mongo import close_database
from src.services.verification_errors import InvalidInputError
from src.services.verification_job_store import get_verification_job_store


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    store = get_verification_job_store()
    await store.start_cleanup_task()
    yield
    # Shutdown
    await store.stop_cleanup_task()
    await close_database()


app = FastAPI(
    title="Quote Checker API",
    description="Verifies draft article quotes against the source interview transcript",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware for frontend dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://localhost:8080",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:8080",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handlers
@app.exception_handler(JobNotFoundError)
async def job_not_found_handler(request: Request, exc: JobNotFoundError) -> JSONResponse:
    """Handle unknown verification jobs."""
    return error_json(404, "JOB_NOT_FOUND", str(exc))


@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError) -> JSONResponse:
    """Handle malformed draft/transcript input."""
    return error_json(400, "INVALID_INPUT", str(exc))


@app.exception_handler(ServerSelectionTimeoutError)
async def mongo_timeout_handler(request: Request, exc: ServerSelectionTimeoutError) -> JSONResponse:
    """Handle MongoDB connection timeout."""
    return error_json(503, "DATABASE_UNAVAILABLE", "Database is not available. Please try again later.")


@app.exception_handler(ConnectionFailure)
async def mongo_connection_handler(request: Request, exc: ConnectionFailure) -> JSONResponse:
    """Handle MongoDB connection failure."""
    return error_json(503, "DATABASE_UNAVAILABLE", "Database connection failed. Please try again later.")


# Register routes
app.include_router(health.router)
app.include_router(quotes.router)
