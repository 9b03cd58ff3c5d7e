"""Document store backed by SQLite."""
import json
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from finsight.config import settings
from finsight.storage.base import DocumentNotFound, DocumentStore, Snapshot, StoreError


class SQLiteDocumentStore(DocumentStore):
    """Stores every collection in one table of JSON documents."""

    def __init__(self, db_path: str = "finsight.db"):
        super().__init__()
        self.db_path = db_path
        self._init_db()

    def _init_db(self):
        """Initialize database tables."""
        with self._get_conn() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS documents (
                    collection TEXT NOT NULL,
                    id TEXT NOT NULL,
                    user_id TEXT NOT NULL,
                    data TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    PRIMARY KEY (collection, id)
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_collection_user
                ON documents(collection, user_id, created_at)
            """)
            conn.commit()

    @contextmanager
    def _get_conn(self):
        """Get database connection; sqlite errors surface as StoreError."""
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise StoreError(f"Cannot open database {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e
        finally:
            conn.close()

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    @staticmethod
    def _row_to_doc(row: sqlite3.Row) -> Dict[str, Any]:
        data = json.loads(row["data"])
        data["id"] = row["id"]
        return data

    @staticmethod
    def _require_user(data: Dict[str, Any]) -> str:
        user_id = data.get("user_id")
        if not user_id:
            raise StoreError("Documents must carry a user_id")
        return user_id

    async def query(self, collection: str, user_id: str) -> Snapshot:
        with self._get_conn() as conn:
            rows = conn.execute("""
                SELECT id, data FROM documents
                WHERE collection = ? AND user_id = ?
                ORDER BY created_at ASC, rowid ASC
            """, (collection, user_id)).fetchall()
            return [self._row_to_doc(row) for row in rows]

    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        with self._get_conn() as conn:
            row = conn.execute(
                "SELECT id, data FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            ).fetchone()
            return self._row_to_doc(row) if row else None

    async def find_one(
        self,
        collection: str,
        user_id: str,
        field: str,
        value: Any,
    ) -> Optional[Dict[str, Any]]:
        with self._get_conn() as conn:
            row = conn.execute("""
                SELECT id, data FROM documents
                WHERE collection = ? AND user_id = ? AND json_extract(data, ?) = ?
                ORDER BY created_at ASC
                LIMIT 1
            """, (collection, user_id, f"$.{field}", value)).fetchone()
            return self._row_to_doc(row) if row else None

    async def insert(self, collection: str, data: Dict[str, Any]) -> str:
        user_id = self._require_user(data)
        doc_id = uuid.uuid4().hex
        now = self._now()
        with self._get_conn() as conn:
            conn.execute("""
                INSERT INTO documents (collection, id, user_id, data, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
            """, (collection, doc_id, user_id, json.dumps(data, default=str), now, now))
            conn.commit()
        self._notify(collection, user_id)
        return doc_id

    async def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        with self._get_conn() as conn:
            row = conn.execute(
                "SELECT user_id, data FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            ).fetchone()
            if not row:
                raise DocumentNotFound(collection, doc_id)
            data = json.loads(row["data"])
            data.update(fields)
            conn.execute("""
                UPDATE documents SET data = ?, updated_at = ?
                WHERE collection = ? AND id = ?
            """, (json.dumps(data, default=str), self._now(), collection, doc_id))
            conn.commit()
            user_id = row["user_id"]
        self._notify(collection, user_id)

    async def delete(self, collection: str, doc_id: str) -> None:
        with self._get_conn() as conn:
            row = conn.execute(
                "SELECT user_id FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            ).fetchone()
            if not row:
                raise DocumentNotFound(collection, doc_id)
            conn.execute(
                "DELETE FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            )
            conn.commit()
            user_id = row["user_id"]
        self._notify(collection, user_id)

    async def upsert(self, collection: str, key: str, data: Dict[str, Any]) -> None:
        user_id = self._require_user(data)
        now = self._now()
        with self._get_conn() as conn:
            conn.execute("""
                INSERT INTO documents (collection, id, user_id, data, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(collection, id) DO UPDATE SET
                    user_id = excluded.user_id,
                    data = excluded.data,
                    updated_at = excluded.updated_at
            """, (collection, key, user_id, json.dumps(data, default=str), now, now))
            conn.commit()
        self._notify(collection, user_id)


# Global instance
_store = None


def get_store() -> SQLiteDocumentStore:
    """Get the document store instance."""
    global _store
    if _store is None:
        _store = SQLiteDocumentStore(settings.database_path)
    return _store


def reset_store(db_path: Optional[str] = None) -> SQLiteDocumentStore:
    """Replace the global store, e.g. with a fresh file in tests."""
    global _store
    _store = SQLiteDocumentStore(db_path or settings.database_path)
    return _store
