"""
Test Configuration and Fixtures

Provides fixtures for:
- Property stores (in-memory SQLite and dict backed)
- A pairing context
- A throwaway certificate authority that signs device CSRs
"""

import logging
from typing import AsyncGenerator

import pytest
import pytest_asyncio

from astarte_device.config import reset_settings
from astarte_device.database import MEMORY_URL, SqlitePropertyStore
from astarte_device.memory_store import MemoryPropertyStore
from astarte_device.tests.fakes import FakeCA, FakeContext
from astarte_device.types import JsonPayloadCodec


@pytest.fixture
def codec() -> JsonPayloadCodec:
    return JsonPayloadCodec()


@pytest.fixture
def context() -> FakeContext:
    return FakeContext()


@pytest.fixture(scope="session")
def fake_ca() -> FakeCA:
    return FakeCA()


@pytest.fixture(autouse=True)
def clean_settings():
    """Never leak cached settings between tests."""
    reset_settings()
    yield
    reset_settings()


@pytest_asyncio.fixture
async def sqlite_store() -> AsyncGenerator[SqlitePropertyStore, None]:
    """In-memory SQLite property store."""
    store = await SqlitePropertyStore.connect(MEMORY_URL)
    yield store
    await store.close()


@pytest_asyncio.fixture(params=["sqlite", "memory"])
async def property_store(request):
    """Each property store implementation in turn."""
    if request.param == "sqlite":
        store = await SqlitePropertyStore.connect(MEMORY_URL)
        yield store
        await store.close()
    else:
        yield MemoryPropertyStore()


@pytest.fixture
def restore_root_logger():
    """Undo setup_logging() changes to the root logger."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
