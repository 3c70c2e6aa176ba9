"""
In-process document store.

Implements the DocumentStore contract with plain dicts behind a lock. Used for
local development (STORE_BACKEND=memory) and by the test suite. Reads and
writes deep-copy, so callers never share state with the store.
"""

from __future__ import annotations

import copy
import threading
from typing import Any, Dict, List, Mapping, Optional
from uuid import uuid4

from repositories.document_store import Document, DocumentNotFoundError, VersionConflictError, as_json_text


class InMemoryDocumentStore:
    """DocumentStore backed by nested dicts; query order is insertion order."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        # collection -> doc_id -> (data, version)
        self._collections: Dict[str, Dict[str, tuple[Dict[str, Any], int]]] = {}

    def _collection(self, collection: str) -> Dict[str, tuple[Dict[str, Any], int]]:
        return self._collections.setdefault(collection, {})

    def get(self, collection: str, doc_id: str) -> Optional[Document]:
        with self._lock:
            stored = self._collection(collection).get(doc_id)
            if stored is None:
                return None
            data, version = stored
            return Document(id=doc_id, data=copy.deepcopy(data), version=version)

    def query(self, collection: str, field_name: str, value: Any) -> List[Document]:
        # Matches on text like the Supabase store: 7 finds "7", null never matches
        expected = as_json_text(value)
        with self._lock:
            return [
                Document(id=doc_id, data=copy.deepcopy(data), version=version)
                for doc_id, (data, version) in self._collection(collection).items()
                if data.get(field_name) is not None and as_json_text(data[field_name]) == expected
            ]

    def list_documents(self, collection: str) -> List[Document]:
        with self._lock:
            return [
                Document(id=doc_id, data=copy.deepcopy(data), version=version)
                for doc_id, (data, version) in self._collection(collection).items()
            ]

    def set(self, collection: str, doc_id: str, data: Mapping[str, Any], *, merge: bool = False) -> None:
        with self._lock:
            documents = self._collection(collection)
            existing = documents.get(doc_id)
            body: Dict[str, Any] = copy.deepcopy(existing[0]) if (merge and existing) else {}
            body.update(copy.deepcopy(dict(data)))
            documents[doc_id] = (body, existing[1] + 1 if existing else 1)

    def update(self, collection: str, doc_id: str, data: Mapping[str, Any]) -> None:
        with self._lock:
            documents = self._collection(collection)
            existing = documents.get(doc_id)
            if existing is None:
                raise DocumentNotFoundError(f"Document not found: {collection}/{doc_id}")
            body = copy.deepcopy(existing[0])
            body.update(copy.deepcopy(dict(data)))
            documents[doc_id] = (body, existing[1] + 1)

    def delete(self, collection: str, doc_id: str) -> None:
        with self._lock:
            self._collection(collection).pop(doc_id, None)

    def add(self, collection: str, data: Mapping[str, Any]) -> str:
        doc_id = uuid4().hex
        with self._lock:
            self._collection(collection)[doc_id] = (copy.deepcopy(dict(data)), 1)
        return doc_id

    def compare_and_set(
        self,
        collection: str,
        doc_id: str,
        data: Mapping[str, Any],
        expected_version: Optional[int],
    ) -> int:
        with self._lock:
            documents = self._collection(collection)
            existing = documents.get(doc_id)
            current_version = existing[1] if existing else None
            if current_version != expected_version:
                raise VersionConflictError(collection, doc_id, expected_version)

            new_version = 1 if expected_version is None else expected_version + 1
            documents[doc_id] = (copy.deepcopy(dict(data)), new_version)
            return new_version


__all__ = ["InMemoryDocumentStore"]
