"""Shared pytest fixtures for all tests."""

import os
import tempfile
from typing import Generator

import pytest
import pytest_asyncio
import structlog

from sitekeeper.config import config
from sitekeeper.models import Entry
from sitekeeper.service import EntryService
from sitekeeper.store import EntryStore

# ============================================================================
# File System Fixtures
# ============================================================================


@pytest.fixture
def temp_dir() -> Generator[str, None, None]:
    """Provide a temporary directory that's automatically cleaned up."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def store_path(temp_dir: str) -> str:
    """Provide a temporary store file path."""
    return os.path.join(temp_dir, "entries.json")


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, temp_dir: str, store_path: str):
    """Keep every test away from the real data directory and log file."""
    monkeypatch.setattr(config, "db_path", store_path)
    monkeypatch.setattr(config, "log_path", os.path.join(temp_dir, "sitekeeper.log"))
    yield
    structlog.reset_defaults()


# ============================================================================
# Store / Service Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def store(store_path: str) -> EntryStore:
    """Provide an opened, empty store."""
    return await EntryStore.open(store_path)


@pytest_asyncio.fixture
async def service(store: EntryStore) -> EntryService:
    """Provide a service with its (empty) cache loaded."""
    svc = EntryService(store)
    await svc.load()
    return svc


@pytest_asyncio.fixture
async def service_with_entries(service: EntryService) -> EntryService:
    """Provide a service with sample entries, in insertion order."""
    await service.add("mail.google.com", "user@gmail.com", "GmailPass123!")
    await service.add("github.com", "developer", "GitHubToken456!")
    await service.add("Amazon.com", "shopper", "AmazonPass789!")
    return service


# ============================================================================
# Model Fixtures
# ============================================================================


@pytest.fixture
def sample_entry() -> Entry:
    """Provide a sample entry that has not been stored yet."""
    return Entry(
        website="example.com",
        username="alice",
        password="p1",
    )
