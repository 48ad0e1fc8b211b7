from __future__ import annotations

import copy
import logging
import uuid
from abc import ABC, abstractmethod
from threading import RLock
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .errors import DuplicateKey, StoreError, WriteConflict
from .models import Collection
from .settings import get_settings

logger = logging.getLogger(__name__)

CollectionName = Union[Collection, str]

# Fields that must be unique within a collection
UNIQUE_FIELDS: Dict[Collection, Tuple[str, ...]] = {Collection.USERS: ("username",)}


# PUBLIC_INTERFACE
def new_id() -> str:
    """Return a fresh document identifier."""
    return uuid.uuid4().hex


def _matches(document: Mapping[str, Any], filter: Mapping[str, Any]) -> bool:
    return all(document.get(k) == v for k, v in filter.items())


# PUBLIC_INTERFACE
class Session(ABC):
    """
    Handle for a group of writes that become visible together.

    Usage:
        with store.start_session() as session:
            session.start_transaction()
            store.save(Collection.POSTS, post, session=session)
            store.save(Collection.USERS, user, session=session)
            session.commit_transaction()

    Leaving the block while a transaction is still open aborts it.
    """

    def __init__(self) -> None:
        self.in_transaction = False

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.in_transaction:
            logger.warning("Aborting unfinished transaction (%s)", exc_type.__name__ if exc_type else "no commit")
            self.abort_transaction()
        self.end_session()

    def start_transaction(self) -> None:
        if self.in_transaction:
            raise StoreError("Transaction already in progress")
        self._begin()
        self.in_transaction = True

    def commit_transaction(self) -> None:
        if not self.in_transaction:
            raise StoreError("No transaction in progress")
        try:
            self._commit()
        except Exception:
            self.in_transaction = False
            self._rollback()
            raise
        self.in_transaction = False

    def abort_transaction(self) -> None:
        if not self.in_transaction:
            return
        self.in_transaction = False
        self._rollback()

    def end_session(self) -> None:
        """Release resources held by the session."""

    @abstractmethod
    def _begin(self) -> None:
        ...

    @abstractmethod
    def _commit(self) -> None:
        ...

    @abstractmethod
    def _rollback(self) -> None:
        ...


# PUBLIC_INTERFACE
class DocumentStore(ABC):
    """
    Per-collection document operations.

    Contract:
    - find_by_id returns None for a missing document; callers decide whether that is a 404
    - every returned document is a copy, mutating it does not touch the store
    - save inserts or replaces; the document's 'version' must match the stored one
      (WriteConflict otherwise) and the stored copy gets version + 1
    - writes given a session are only visible to that session until it commits
    - transport or database failures surface as StoreError
    """

    @abstractmethod
    def find_by_id(
        self, collection: CollectionName, doc_id: str, session: Optional[Session] = None
    ) -> Optional[dict]:
        """Return the document with the given id, or None if not found."""

    @abstractmethod
    def find_by_filter(
        self,
        collection: CollectionName,
        filter: Mapping[str, Any],
        session: Optional[Session] = None,
    ) -> List[dict]:
        """Return documents whose fields equal every value in filter, in insertion order."""

    @abstractmethod
    def save(
        self, collection: CollectionName, document: Mapping[str, Any], session: Optional[Session] = None
    ) -> dict:
        """Insert or replace a document and return the stored copy."""

    @abstractmethod
    def delete(self, collection: CollectionName, doc_id: str, session: Optional[Session] = None) -> None:
        """Delete a document by id. Deleting a missing document is a no-op."""

    @abstractmethod
    def start_session(self) -> Session:
        """Return a new session usable for a multi-document transaction."""

    def find_one(
        self,
        collection: CollectionName,
        filter: Mapping[str, Any],
        session: Optional[Session] = None,
    ) -> Optional[dict]:
        found = self.find_by_filter(collection, filter, session=session)
        return found[0] if found else None


class _MemorySession(Session):
    def __init__(self, store: "InMemoryDocumentStore") -> None:
        super().__init__()
        self._store = store
        # (collection, id) -> staged document, or None for a staged delete
        self.writes: Dict[Tuple[Collection, str], Optional[dict]] = {}
        # (collection, id) -> committed version when first touched, or None if absent
        self.bases: Dict[Tuple[Collection, str], Optional[int]] = {}

    def _begin(self) -> None:
        self.writes.clear()
        self.bases.clear()

    def _commit(self) -> None:
        self._store._apply(self)
        self.writes.clear()
        self.bases.clear()

    def _rollback(self) -> None:
        self.writes.clear()
        self.bases.clear()


class InMemoryDocumentStore(DocumentStore):
    """
    Thread-safe in-memory store suitable for testing and default runtime.

    Transactional writes are staged on the session and applied in one step
    under the store lock at commit time.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._data: Dict[Collection, Dict[str, dict]] = {c: {} for c in Collection}

    def reset(self) -> None:
        with self._lock:
            for docs in self._data.values():
                docs.clear()

    def _session(self, session: Optional[Session]) -> Optional[_MemorySession]:
        if session is None:
            return None
        if not isinstance(session, _MemorySession) or session._store is not self:
            raise StoreError("Session belongs to a different store")
        if not session.in_transaction:
            raise StoreError("No transaction in progress")
        return session

    def _visible(self, coll: Collection, session: Optional[_MemorySession]) -> Dict[str, dict]:
        docs = dict(self._data[coll])
        if session is not None:
            for (c, doc_id), staged in session.writes.items():
                if c is not coll:
                    continue
                if staged is None:
                    docs.pop(doc_id, None)
                else:
                    docs[doc_id] = staged
        return docs

    def _check_unique(self, coll: Collection, document: Mapping[str, Any], docs: Mapping[str, dict]) -> None:
        for field in UNIQUE_FIELDS.get(coll, ()):
            value = document.get(field)
            for other_id, other in docs.items():
                if other_id != document["id"] and other.get(field) == value:
                    raise DuplicateKey(f"Duplicate value for {coll.value}.{field}")

    def find_by_id(
        self, collection: CollectionName, doc_id: str, session: Optional[Session] = None
    ) -> Optional[dict]:
        coll = Collection(collection)
        with self._lock:
            doc = self._visible(coll, self._session(session)).get(doc_id)
            return None if doc is None else copy.deepcopy(doc)

    def find_by_filter(
        self,
        collection: CollectionName,
        filter: Mapping[str, Any],
        session: Optional[Session] = None,
    ) -> List[dict]:
        coll = Collection(collection)
        with self._lock:
            docs = self._visible(coll, self._session(session)).values()
            return [copy.deepcopy(d) for d in docs if _matches(d, filter)]

    def save(
        self, collection: CollectionName, document: Mapping[str, Any], session: Optional[Session] = None
    ) -> dict:
        coll = Collection(collection)
        doc = copy.deepcopy(dict(document))
        doc.setdefault("id", new_id())
        with self._lock:
            sess = self._session(session)
            visible = self._visible(coll, sess)
            current = visible.get(doc["id"])
            expected = doc.get("version")
            if current is None:
                if expected not in (None, 0):
                    raise WriteConflict(f"{coll.value}/{doc['id']} no longer exists")
                doc["version"] = 0
            else:
                if expected != current["version"]:
                    raise WriteConflict(f"{coll.value}/{doc['id']} was modified concurrently")
                doc["version"] = current["version"] + 1
            self._check_unique(coll, doc, visible)

            if sess is None:
                self._data[coll][doc["id"]] = doc
            else:
                key = (coll, doc["id"])
                if key not in sess.bases:
                    committed = self._data[coll].get(doc["id"])
                    sess.bases[key] = None if committed is None else committed["version"]
                sess.writes[key] = doc
            return copy.deepcopy(doc)

    def delete(self, collection: CollectionName, doc_id: str, session: Optional[Session] = None) -> None:
        coll = Collection(collection)
        with self._lock:
            sess = self._session(session)
            if sess is None:
                self._data[coll].pop(doc_id, None)
                return
            key = (coll, doc_id)
            if key not in sess.bases:
                committed = self._data[coll].get(doc_id)
                sess.bases[key] = None if committed is None else committed["version"]
            sess.writes[key] = None

    def start_session(self) -> Session:
        return _MemorySession(self)

    def _apply(self, session: _MemorySession) -> None:
        with self._lock:
            for (coll, doc_id), base in session.bases.items():
                committed = self._data[coll].get(doc_id)
                now = None if committed is None else committed["version"]
                if now != base:
                    raise WriteConflict(f"{coll.value}/{doc_id} was modified concurrently")
            for (coll, doc_id), staged in session.writes.items():
                if staged is not None:
                    self._check_unique(coll, staged, self._visible(coll, session))
            for (coll, doc_id), staged in session.writes.items():
                if staged is None:
                    self._data[coll].pop(doc_id, None)
                else:
                    self._data[coll][doc_id] = staged


# PUBLIC_INTERFACE
def create_store() -> DocumentStore:
    """
    Factory to return the configured store based on settings.
    - memory: InMemoryDocumentStore
    - sqlite: SQLiteDocumentStore
    """
    settings = get_settings()
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteDocumentStore

        logger.info("Using SQLite document store at %s", settings.sqlite_db_path)
        return SQLiteDocumentStore(settings.sqlite_db_path)
    logger.info("Using in-memory document store")
    return InMemoryDocumentStore()
