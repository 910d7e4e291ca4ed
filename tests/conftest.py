"""Shared test fixtures for backend tests."""

import aiosqlite
import pytest_asyncio

from manga_studio.db.document_store import SqliteDocumentStore
from manga_studio.db.sqlite_db import _SCHEMA_SQL
from manga_studio.services.manga_project_service import MangaProjectService

COLLECTION = "books"


@pytest_asyncio.fixture
async def memory_db():
    """Create an in-memory SQLite database with full schema."""
    conn = await aiosqlite.connect(":memory:")
    conn.row_factory = aiosqlite.Row
    await conn.executescript(_SCHEMA_SQL)
    await conn.commit()
    yield conn
    await conn.close()


class _NonClosingConnection:
    """Proxy that keeps the shared in-memory connection open across store calls."""

    def __init__(self, conn):
        self._conn = conn

    def __getattr__(self, name):
        return getattr(self._conn, name)

    async def close(self):
        pass  # no-op


@pytest_asyncio.fixture
async def store(memory_db):
    async def _factory():
        return _NonClosingConnection(memory_db)

    return SqliteDocumentStore(connect=_factory)


@pytest_asyncio.fixture
async def service(store):
    return MangaProjectService(store, collection=COLLECTION)


@pytest_asyncio.fixture
async def project_id(service):
    return await service.create_project(
        title="Demo",
        author_id="author-1",
        author_uid="uid-1",
        author="Mika",
    )
