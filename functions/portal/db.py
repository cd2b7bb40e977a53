"""
Document store abstraction: Firestore, a SQL-backed local store and an
in-memory test implementation.

Every backend stores schemaless dict documents grouped in named collections.
Documents returned by a store always carry their document id under "id".
"""

from __future__ import annotations

import copy
import time
import uuid
from typing import Any, Dict, Iterable, Optional, Protocol

import firebase_admin
from firebase_admin import credentials, firestore
from google.api_core import exceptions as google_exceptions
from google.cloud.firestore_v1.base_query import FieldFilter
from sqlalchemy import JSON, Column, Float, String, create_engine, select
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from shared.firebase_constants import MAX_BATCH_WRITES

SUPPORTED_OPS = ("==", "array-contains")

Write = tuple[str, str, dict]


class DocumentStore(Protocol):
    """Interface for document database access."""

    def list_documents(self, collection: str) -> list[dict]:
        ...

    def get_document(self, collection: str, doc_id: str) -> Optional[dict]:
        ...

    def find_documents(
        self, collection: str, field: str, value: Any, op: str = "=="
    ) -> list[dict]:
        ...

    def set_document(self, collection: str, doc_id: str, data: dict) -> None:
        ...

    def add_document(self, collection: str, data: dict) -> str:
        ...

    def update_document(
        self, collection: str, doc_id: str, updates: dict
    ) -> Optional[dict]:
        ...

    def delete_document(self, collection: str, doc_id: str) -> bool:
        ...

    def batch_set(self, writes: Iterable[Write]) -> int:
        ...

    def clear_collection(self, collection: str) -> int:
        ...

    def is_empty(self, collection: str) -> bool:
        ...


def _with_id(doc_id: str, data: dict) -> dict:
    return {**data, "id": doc_id}


def _matches(doc: dict, field: str, value: Any, op: str) -> bool:
    if op not in SUPPORTED_OPS:
        raise ValueError(f"Unsupported query operator: {op}")
    current = doc.get(field)
    if op == "array-contains":
        return isinstance(current, list) and value in current
    return current == value


class InMemoryDocumentStore:
    """Simple in-memory document store for development and tests."""

    def __init__(self):
        self.collections: Dict[str, Dict[str, dict]] = {}

    def _collection(self, collection: str) -> Dict[str, dict]:
        return self.collections.setdefault(collection, {})

    def list_documents(self, collection: str) -> list[dict]:
        return [
            _with_id(doc_id, copy.deepcopy(data))
            for doc_id, data in self._collection(collection).items()
        ]

    def get_document(self, collection: str, doc_id: str) -> Optional[dict]:
        data = self._collection(collection).get(doc_id)
        if data is None:
            return None
        return _with_id(doc_id, copy.deepcopy(data))

    def find_documents(
        self, collection: str, field: str, value: Any, op: str = "=="
    ) -> list[dict]:
        return [
            doc
            for doc in self.list_documents(collection)
            if _matches(doc, field, value, op)
        ]

    def set_document(self, collection: str, doc_id: str, data: dict) -> None:
        self._collection(collection)[doc_id] = copy.deepcopy(data)

    def add_document(self, collection: str, data: dict) -> str:
        doc_id = uuid.uuid4().hex
        self.set_document(collection, doc_id, data)
        return doc_id

    def update_document(
        self, collection: str, doc_id: str, updates: dict
    ) -> Optional[dict]:
        existing = self._collection(collection).get(doc_id)
        if existing is None:
            return None
        existing.update(copy.deepcopy(updates))
        return self.get_document(collection, doc_id)

    def delete_document(self, collection: str, doc_id: str) -> bool:
        return self._collection(collection).pop(doc_id, None) is not None

    def batch_set(self, writes: Iterable[Write]) -> int:
        count = 0
        for collection, doc_id, data in writes:
            self.set_document(collection, doc_id, data)
            count += 1
        return count

    def clear_collection(self, collection: str) -> int:
        docs = self._collection(collection)
        count = len(docs)
        docs.clear()
        return count

    def is_empty(self, collection: str) -> bool:
        return not self._collection(collection)

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.collections.clear()


class SqlDocumentStore:
    """
    SQLAlchemy-backed document store. Accepts any SQLAlchemy URL (e.g. sqlite
    for a local single-node install, or Postgres).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("database_url is required for SqlDocumentStore")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def list_documents(self, collection: str) -> list[dict]:
        with self.Session() as session:
            stmt = (
                select(DocumentRow)
                .where(DocumentRow.collection == collection)
                .order_by(DocumentRow.created_at.asc())
            )
            rows = session.execute(stmt).scalars().all()
            return [_with_id(row.doc_id, dict(row.data or {})) for row in rows]

    def get_document(self, collection: str, doc_id: str) -> Optional[dict]:
        with self.Session() as session:
            row = session.get(DocumentRow, (collection, doc_id))
            if not row:
                return None
            return _with_id(row.doc_id, dict(row.data or {}))

    def find_documents(
        self, collection: str, field: str, value: Any, op: str = "=="
    ) -> list[dict]:
        # JSON operators differ between sqlite and Postgres; filter in Python.
        return [
            doc
            for doc in self.list_documents(collection)
            if _matches(doc, field, value, op)
        ]

    def _put(self, session: Session, collection: str, doc_id: str, data: dict):
        now = time.time()
        row = session.get(DocumentRow, (collection, doc_id))
        if row:
            row.data = data
            row.updated_at = now
        else:
            session.add(
                DocumentRow(
                    collection=collection,
                    doc_id=doc_id,
                    data=data,
                    created_at=now,
                    updated_at=now,
                )
            )

    def set_document(self, collection: str, doc_id: str, data: dict) -> None:
        with self.Session() as session:
            self._put(session, collection, doc_id, data)
            session.commit()

    def add_document(self, collection: str, data: dict) -> str:
        doc_id = uuid.uuid4().hex
        self.set_document(collection, doc_id, data)
        return doc_id

    def update_document(
        self, collection: str, doc_id: str, updates: dict
    ) -> Optional[dict]:
        with self.Session() as session:
            row = session.get(DocumentRow, (collection, doc_id))
            if not row:
                return None
            # Assign a new dict so SQLAlchemy sees the JSON change.
            row.data = {**(row.data or {}), **updates}
            row.updated_at = time.time()
            session.commit()
            return _with_id(row.doc_id, dict(row.data))

    def delete_document(self, collection: str, doc_id: str) -> bool:
        with self.Session() as session:
            row = session.get(DocumentRow, (collection, doc_id))
            if not row:
                return False
            session.delete(row)
            session.commit()
            return True

    def batch_set(self, writes: Iterable[Write]) -> int:
        count = 0
        with self.Session() as session:
            for collection, doc_id, data in writes:
                self._put(session, collection, doc_id, data)
                # Flush so a repeated key in the same batch updates the pending row.
                session.flush()
                count += 1
            session.commit()
        return count

    def clear_collection(self, collection: str) -> int:
        with self.Session() as session:
            deleted = (
                session.query(DocumentRow)
                .filter(DocumentRow.collection == collection)
                .delete(synchronize_session=False)
            )
            session.commit()
            return deleted or 0

    def is_empty(self, collection: str) -> bool:
        with self.Session() as session:
            stmt = (
                select(DocumentRow.doc_id)
                .where(DocumentRow.collection == collection)
                .limit(1)
            )
            return session.execute(stmt).first() is None


def _get_or_init_firebase_app(
    project_id: Optional[str], credentials_path: Optional[str]
) -> firebase_admin.App:
    try:
        return firebase_admin.get_app()
    except ValueError:
        cred = credentials.Certificate(credentials_path) if credentials_path else None
        options = {"projectId": project_id} if project_id else None
        return firebase_admin.initialize_app(cred, options)


class FirestoreDocumentStore:
    """
    Firestore-backed document store. Pass `client` to reuse an existing
    Firestore client; otherwise the default Firebase app is initialised
    (application default credentials unless a service account path is given).
    """

    def __init__(
        self,
        project_id: Optional[str] = None,
        credentials_path: Optional[str] = None,
        client: Any = None,
    ):
        if client is None:
            app = _get_or_init_firebase_app(project_id, credentials_path)
            client = firestore.client(app=app)
        self.client = client

    def _ref(self, collection: str, doc_id: str):
        return self.client.collection(collection).document(doc_id)

    def list_documents(self, collection: str) -> list[dict]:
        return [
            _with_id(snapshot.id, snapshot.to_dict() or {})
            for snapshot in self.client.collection(collection).stream()
        ]

    def get_document(self, collection: str, doc_id: str) -> Optional[dict]:
        snapshot = self._ref(collection, doc_id).get()
        if not snapshot.exists:
            return None
        return _with_id(snapshot.id, snapshot.to_dict() or {})

    def find_documents(
        self, collection: str, field: str, value: Any, op: str = "=="
    ) -> list[dict]:
        if op not in SUPPORTED_OPS:
            raise ValueError(f"Unsupported query operator: {op}")
        query = self.client.collection(collection).where(
            filter=FieldFilter(field, op, value)
        )
        return [
            _with_id(snapshot.id, snapshot.to_dict() or {})
            for snapshot in query.stream()
        ]

    def set_document(self, collection: str, doc_id: str, data: dict) -> None:
        self._ref(collection, doc_id).set(data)

    def add_document(self, collection: str, data: dict) -> str:
        _, doc_ref = self.client.collection(collection).add(data)
        return doc_ref.id

    def update_document(
        self, collection: str, doc_id: str, updates: dict
    ) -> Optional[dict]:
        try:
            self._ref(collection, doc_id).update(updates)
        except google_exceptions.NotFound:
            return None
        return self.get_document(collection, doc_id)

    def delete_document(self, collection: str, doc_id: str) -> bool:
        doc_ref = self._ref(collection, doc_id)
        if not doc_ref.get().exists:
            return False
        doc_ref.delete()
        return True

    def batch_set(self, writes: Iterable[Write]) -> int:
        count = 0
        batch = self.client.batch()
        pending = 0
        for collection, doc_id, data in writes:
            batch.set(self._ref(collection, doc_id), data)
            pending += 1
            count += 1
            if pending == MAX_BATCH_WRITES:
                batch.commit()
                batch = self.client.batch()
                pending = 0
        if pending:
            batch.commit()
        return count

    def clear_collection(self, collection: str) -> int:
        refs = [
            snapshot.reference
            for snapshot in self.client.collection(collection).stream()
        ]
        for start in range(0, len(refs), MAX_BATCH_WRITES):
            batch = self.client.batch()
            for doc_ref in refs[start : start + MAX_BATCH_WRITES]:
                batch.delete(doc_ref)
            batch.commit()
        return len(refs)

    def is_empty(self, collection: str) -> bool:
        return not list(self.client.collection(collection).limit(1).stream())


Base = declarative_base()


class DocumentRow(Base):
    __tablename__ = "documents"

    collection = Column(String, primary_key=True)
    doc_id = Column(String, primary_key=True)
    data = Column(JSON, nullable=False)
    created_at = Column(Float, nullable=False)
    updated_at = Column(Float, nullable=False)
