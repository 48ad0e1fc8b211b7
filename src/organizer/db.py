from __future__ import annotations

import json
import logging
import os
import re
import sqlite3
from contextlib import contextmanager
from typing import Any, Generator, List, Mapping, Optional

from .errors import DuplicateKey, StoreError, WriteConflict
from .models import Collection
from .store import UNIQUE_FIELDS, CollectionName, DocumentStore, Session, new_id

logger = logging.getLogger(__name__)

_FIELD_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _connect(db_path: str) -> sqlite3.Connection:
    # Autocommit mode; transactions are opened explicitly with BEGIN IMMEDIATE
    conn = sqlite3.connect(db_path, isolation_level=None, timeout=5.0)
    conn.row_factory = sqlite3.Row
    return conn


class _SQLiteSession(Session):
    def __init__(self, store: "SQLiteDocumentStore") -> None:
        super().__init__()
        self.store = store
        self.conn: Optional[sqlite3.Connection] = None

    def _begin(self) -> None:
        try:
            self.conn = _connect(self.store.db_path)
            self.conn.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as exc:
            self._close()
            raise StoreError("Could not start transaction") from exc

    def _commit(self) -> None:
        assert self.conn is not None
        try:
            self.conn.execute("COMMIT")
        except sqlite3.Error as exc:
            raise StoreError("Could not commit transaction") from exc
        self._close()

    def _rollback(self) -> None:
        if self.conn is None:
            return
        try:
            self.conn.execute("ROLLBACK")
        except sqlite3.Error:
            logger.exception("Rollback failed")
        finally:
            self._close()

    def end_session(self) -> None:
        self._close()

    def _close(self) -> None:
        if self.conn is not None:
            self.conn.close()
            self.conn = None


class SQLiteDocumentStore(DocumentStore):
    """
    Durable document store on SQLite.

    Each collection is a table of (id, version, body) rows where body is the
    JSON document. Sessions hold a single connection inside BEGIN IMMEDIATE,
    so staged writes become visible together on COMMIT.
    """

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self.db_path = db_path
        self._init_db()

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        try:
            conn = _connect(self.db_path)
        except sqlite3.Error as exc:
            raise StoreError("Could not connect to database") from exc
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def _writer(self, session: Optional[Session]) -> Generator[sqlite3.Connection, None, None]:
        """
        Yield a connection inside a write transaction: the session's own one,
        or a short-lived one committed when the block exits cleanly.
        """
        sess = self._session(session)
        if sess is not None:
            yield sess.conn  # type: ignore[misc]
            return
        with self._conn() as conn:
            try:
                conn.execute("BEGIN IMMEDIATE")
                yield conn
                conn.execute("COMMIT")
            except Exception:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise

    @contextmanager
    def _reader(self, session: Optional[Session]) -> Generator[sqlite3.Connection, None, None]:
        sess = self._session(session)
        if sess is not None:
            yield sess.conn  # type: ignore[misc]
            return
        with self._conn() as conn:
            yield conn

    def _session(self, session: Optional[Session]) -> Optional[_SQLiteSession]:
        if session is None:
            return None
        if not isinstance(session, _SQLiteSession) or session.store is not self:
            raise StoreError("Session belongs to a different store")
        if not session.in_transaction or session.conn is None:
            raise StoreError("No transaction in progress")
        return session

    def _init_db(self) -> None:
        try:
            with self._conn() as conn:
                for coll in Collection:
                    conn.execute(
                        f"""
                        CREATE TABLE IF NOT EXISTS {coll.value} (
                            id TEXT PRIMARY KEY,
                            version INTEGER NOT NULL DEFAULT 0,
                            body TEXT NOT NULL
                        )
                        """
                    )
                    for field in UNIQUE_FIELDS.get(coll, ()):
                        conn.execute(
                            f"CREATE UNIQUE INDEX IF NOT EXISTS idx_{coll.value}_{field} "
                            f"ON {coll.value}(json_extract(body, '$.{field}'))"
                        )
                    if coll.is_child:
                        conn.execute(
                            f"CREATE INDEX IF NOT EXISTS idx_{coll.value}_creator "
                            f"ON {coll.value}(json_extract(body, '$.creator'))"
                        )
        except sqlite3.Error as exc:
            raise StoreError("Could not initialize database") from exc

    def _row_to_document(self, row: sqlite3.Row) -> dict:
        doc = json.loads(row["body"])
        doc["id"] = row["id"]
        doc["version"] = int(row["version"])
        return doc

    def find_by_id(
        self, collection: CollectionName, doc_id: str, session: Optional[Session] = None
    ) -> Optional[dict]:
        coll = Collection(collection)
        try:
            with self._reader(session) as conn:
                row = conn.execute(
                    f"SELECT id, version, body FROM {coll.value} WHERE id = ?", (doc_id,)
                ).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"Could not read from {coll.value}") from exc
        return self._row_to_document(row) if row else None

    def find_by_filter(
        self,
        collection: CollectionName,
        filter: Mapping[str, Any],
        session: Optional[Session] = None,
    ) -> List[dict]:
        coll = Collection(collection)
        clauses = []
        params: list = []
        for field, value in filter.items():
            if not _FIELD_RE.match(field):
                raise StoreError(f"Invalid filter field: {field!r}")
            if field == "id":
                clauses.append("id = ?")
            else:
                clauses.append(f"json_extract(body, '$.{field}') = ?")
            params.append(value)
        where_sql = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        try:
            with self._reader(session) as conn:
                rows = conn.execute(
                    f"SELECT id, version, body FROM {coll.value} {where_sql} ORDER BY rowid",
                    params,
                ).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"Could not read from {coll.value}") from exc
        return [self._row_to_document(r) for r in rows]

    def save(
        self, collection: CollectionName, document: Mapping[str, Any], session: Optional[Session] = None
    ) -> dict:
        coll = Collection(collection)
        doc = dict(document)
        doc.setdefault("id", new_id())
        expected = doc.get("version")
        try:
            with self._writer(session) as conn:
                row = conn.execute(
                    f"SELECT version FROM {coll.value} WHERE id = ?", (doc["id"],)
                ).fetchone()
                if row is None:
                    if expected not in (None, 0):
                        raise WriteConflict(f"{coll.value}/{doc['id']} no longer exists")
                    doc["version"] = 0
                    conn.execute(
                        f"INSERT INTO {coll.value} (id, version, body) VALUES (?, ?, ?)",
                        (doc["id"], 0, json.dumps(doc)),
                    )
                else:
                    if expected != row["version"]:
                        raise WriteConflict(f"{coll.value}/{doc['id']} was modified concurrently")
                    doc["version"] = row["version"] + 1
                    cur = conn.execute(
                        f"UPDATE {coll.value} SET version = ?, body = ? WHERE id = ? AND version = ?",
                        (doc["version"], json.dumps(doc), doc["id"], row["version"]),
                    )
                    if cur.rowcount != 1:
                        raise WriteConflict(f"{coll.value}/{doc['id']} was modified concurrently")
        except sqlite3.IntegrityError as exc:
            raise DuplicateKey(f"Duplicate key in {coll.value}") from exc
        except sqlite3.Error as exc:
            raise StoreError(f"Could not write to {coll.value}") from exc
        return doc

    def delete(self, collection: CollectionName, doc_id: str, session: Optional[Session] = None) -> None:
        coll = Collection(collection)
        try:
            with self._writer(session) as conn:
                conn.execute(f"DELETE FROM {coll.value} WHERE id = ?", (doc_id,))
        except sqlite3.Error as exc:
            raise StoreError(f"Could not delete from {coll.value}") from exc

    def start_session(self) -> Session:
        return _SQLiteSession(self)
