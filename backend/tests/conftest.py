"""Pytest fixtures for testing."""

from collections.abc import AsyncGenerator, Generator
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from src.api.main import app
from src.db import mongo
from src.services.verification_job_store import (
    InMemoryVerificationJobStore,
    MongoVerificationJobStore,
    set_verification_job_store,
)


@pytest_asyncio.fixture
async def mock_db() -> AsyncGenerator[Any, None]:
    """Provide a mock MongoDB database for testing."""
    # Create mock client
    mock_client = AsyncMongoMockClient()
    mock_database = mock_client["test_quote_checker"]

    # Replace the real client with mock
    mongo.set_client(mock_client)

    yield mock_database

    # Cleanup
    mongo.set_client(None)


@pytest.fixture
def memory_job_store() -> Generator[InMemoryVerificationJobStore, None, None]:
    """Install a fresh in-memory verification job store."""
    store = InMemoryVerificationJobStore()
    set_verification_job_store(store)
    yield store
    set_verification_job_store(None)


@pytest_asyncio.fixture
async def mongo_job_store(mock_db: Any) -> AsyncGenerator[MongoVerificationJobStore, None]:
    """Install a MongoDB verification job store backed by mongomock."""
    store = MongoVerificationJobStore()
    set_verification_job_store(store)
    yield store
    set_verification_job_store(None)


@pytest_asyncio.fixture
async def client(mongo_job_store: MongoVerificationJobStore) -> AsyncGenerator[AsyncClient, None]:
    """Provide an async HTTP client for testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def ceo_transcript() -> str:
    """Transcript containing the CEO's revenue remark."""
    return '"Our revenue grew by forty percent last quarter," said the CEO.'


@pytest.fixture
def ceo_draft() -> str:
    """Draft quoting the CEO verbatim."""
    return (
        "The company had a strong finish to the year. "
        '"Our revenue grew by forty percent last quarter," the CEO explained.'
    )


@pytest.fixture
def interview_transcript() -> str:
    """Multi-speaker interview transcript."""
    return """Host: Thanks for joining us. Where did the turnaround start?

Guest: Honestly, it started when we stopped guessing. We built the new platform in record time and the whole team celebrated afterwards.

Host: And the data work?

Guest: The team scaled infrastructure to support real-time analytics and machine learning workloads across all regions. That changed how we plan."""


@pytest.fixture
def interview_draft() -> str:
    """Draft with one exact, one partial, one paraphrased and one invented quote."""
    return """Maria Lopez remembers the moment clearly. "It started when we stopped guessing," she explained.

"We built the new platform in record time, honestly," Lopez added.

According to Lopez, "we scaled infrastructure for real-time analytics" to keep up with demand.

"Our competitors never saw the pivot coming at all," she concluded."""
