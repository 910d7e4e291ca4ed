"""Collection/document persistence on top of the SQLite documents table.

Documents are JSON objects addressed by (collection, id). Writes are
last-write-wins: ``update`` merges top-level fields into whatever is stored at
the time of the write, ``set`` replaces the whole document. There is no
version check, so two read-modify-write cycles on the same document can
clobber each other.
"""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any, Protocol

import aiosqlite

from manga_studio.db.sqlite_db import get_connection

logger = logging.getLogger(__name__)


class _ServerTimestamp:
    """Placeholder replaced by the store's clock when a document is written."""

    _instance: _ServerTimestamp | None = None

    def __new__(cls) -> _ServerTimestamp:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


class DocumentStoreError(Exception):
    """Raised when the persistence layer fails to complete a call."""


class DocumentNotFoundError(DocumentStoreError):
    """Raised when updating a document that does not exist."""


class DocumentExistsError(DocumentStoreError):
    """Raised when creating a document under an id that is already taken."""


class DocumentStore(Protocol):
    def generate_id(self) -> str: ...

    async def create(self, collection: str, data: dict, doc_id: str | None = None) -> str: ...

    async def get(self, collection: str, doc_id: str) -> dict | None: ...

    async def update(self, collection: str, doc_id: str, fields: dict) -> None: ...

    async def set(self, collection: str, doc_id: str, data: dict) -> None: ...

    async def delete(self, collection: str, doc_id: str) -> bool: ...

    async def query(self, collection: str, field: str, value: Any) -> list[dict]: ...


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def resolve_server_timestamps(value: Any, now: str) -> Any:
    """Replace every SERVER_TIMESTAMP placeholder in a document tree."""
    if value is SERVER_TIMESTAMP:
        return now
    if isinstance(value, dict):
        return {k: resolve_server_timestamps(v, now) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [resolve_server_timestamps(v, now) for v in value]
    return value


def _dumps(data: dict) -> str:
    return json.dumps(data, ensure_ascii=False)


class SqliteDocumentStore:
    """DocumentStore backed by aiosqlite, one connection per call."""

    def __init__(
        self,
        connect: Callable[[], Awaitable[aiosqlite.Connection]] = get_connection,
    ) -> None:
        self._connect = connect

    def generate_id(self) -> str:
        return uuid.uuid4().hex

    async def create(self, collection: str, data: dict, doc_id: str | None = None) -> str:
        doc_id = doc_id or self.generate_id()
        payload = resolve_server_timestamps(data, _now_iso())
        conn = await self._connect()
        try:
            await conn.execute(
                "INSERT INTO documents (collection, id, data_json) VALUES (?, ?, ?)",
                (collection, doc_id, _dumps(payload)),
            )
            await conn.commit()
        except aiosqlite.IntegrityError as e:
            raise DocumentExistsError(f"{collection}/{doc_id} already exists") from e
        except aiosqlite.Error as e:
            logger.exception("Failed to create %s/%s", collection, doc_id)
            raise DocumentStoreError(str(e)) from e
        finally:
            await conn.close()
        return doc_id

    async def get(self, collection: str, doc_id: str) -> dict | None:
        conn = await self._connect()
        try:
            cursor = await conn.execute(
                "SELECT data_json FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            )
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            logger.exception("Failed to read %s/%s", collection, doc_id)
            raise DocumentStoreError(str(e)) from e
        finally:
            await conn.close()
        return json.loads(row["data_json"]) if row else None

    async def update(self, collection: str, doc_id: str, fields: dict) -> None:
        """Merge top-level fields into an existing document."""
        conn = await self._connect()
        try:
            cursor = await conn.execute(
                "SELECT data_json FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            )
            row = await cursor.fetchone()
            if row is None:
                raise DocumentNotFoundError(f"{collection}/{doc_id} does not exist")
            data = json.loads(row["data_json"])
            data.update(resolve_server_timestamps(fields, _now_iso()))
            await conn.execute(
                """
                UPDATE documents
                SET data_json = ?, updated_at = datetime('now')
                WHERE collection = ? AND id = ?
                """,
                (_dumps(data), collection, doc_id),
            )
            await conn.commit()
        except aiosqlite.Error as e:
            logger.exception("Failed to update %s/%s", collection, doc_id)
            raise DocumentStoreError(str(e)) from e
        finally:
            await conn.close()

    async def set(self, collection: str, doc_id: str, data: dict) -> None:
        """Insert or overwrite a whole document."""
        payload = resolve_server_timestamps(data, _now_iso())
        conn = await self._connect()
        try:
            await conn.execute(
                """
                INSERT INTO documents (collection, id, data_json)
                VALUES (?, ?, ?)
                ON CONFLICT(collection, id) DO UPDATE SET
                    data_json = excluded.data_json,
                    updated_at = datetime('now')
                """,
                (collection, doc_id, _dumps(payload)),
            )
            await conn.commit()
        except aiosqlite.Error as e:
            logger.exception("Failed to write %s/%s", collection, doc_id)
            raise DocumentStoreError(str(e)) from e
        finally:
            await conn.close()

    async def delete(self, collection: str, doc_id: str) -> bool:
        """Delete a document. Returns True if a document was removed."""
        conn = await self._connect()
        try:
            cursor = await conn.execute(
                "DELETE FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            )
            await conn.commit()
            return cursor.rowcount > 0
        except aiosqlite.Error as e:
            logger.exception("Failed to delete %s/%s", collection, doc_id)
            raise DocumentStoreError(str(e)) from e
        finally:
            await conn.close()

    async def query(self, collection: str, field: str, value: Any) -> list[dict]:
        """Return documents whose top-level ``field`` equals ``value``."""
        conn = await self._connect()
        try:
            cursor = await conn.execute(
                """
                SELECT data_json FROM documents
                WHERE collection = ? AND json_extract(data_json, ?) = ?
                ORDER BY updated_at DESC, id
                """,
                (collection, f"$.{field}", value),
            )
            rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            logger.exception("Failed to query %s by %s", collection, field)
            raise DocumentStoreError(str(e)) from e
        finally:
            await conn.close()
        return [json.loads(row["data_json"]) for row in rows]
