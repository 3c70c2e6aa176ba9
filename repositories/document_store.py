"""
Document store contract and the Supabase-backed implementation.

Documents are schemaless JSON maps grouped in collections and addressed by
(collection, id). Every stored document carries an integer `version` that
increases on each write; `compare_and_set` uses it to make read-modify-write
of a single document conditional.

Supabase schema (one table shared by all collections):

    create table documents (
        seq        bigserial,
        collection text    not null,
        doc_id     text    not null,
        data       jsonb   not null default '{}'::jsonb,
        version    integer not null default 1,
        primary key (collection, doc_id)
    );
    create index documents_seq_idx on documents (collection, seq);
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol
from uuid import uuid4

from postgrest.exceptions import APIError

_UNIQUE_VIOLATION: str = "23505"
_PAGE_SIZE: int = 1000
_MAX_WRITE_ATTEMPTS: int = 5


class StoreError(RuntimeError):
    """Raised when the document store cannot complete an operation."""


class DocumentNotFoundError(StoreError):
    """Raised when updating a document that does not exist."""


class VersionConflictError(StoreError):
    """Raised when a conditional write loses against a concurrent writer."""

    def __init__(self, collection: str, doc_id: str, expected_version: Optional[int]):
        self.collection = collection
        self.doc_id = doc_id
        self.expected_version = expected_version
        super().__init__(
            f"Version conflict on {collection}/{doc_id} "
            f"(expected version: {expected_version})"
        )


@dataclass(frozen=True, slots=True)
class Document:
    """Snapshot of a stored document."""

    id: str
    data: Dict[str, Any] = field(default_factory=dict)
    version: int = 1


class DocumentStore(Protocol):
    """Operations the reconciliation core needs from a document store."""

    def get(self, collection: str, doc_id: str) -> Optional[Document]: ...

    def query(self, collection: str, field_name: str, value: Any) -> List[Document]: ...

    def list_documents(self, collection: str) -> List[Document]: ...

    def set(self, collection: str, doc_id: str, data: Mapping[str, Any], *, merge: bool = False) -> None: ...

    def update(self, collection: str, doc_id: str, data: Mapping[str, Any]) -> None: ...

    def delete(self, collection: str, doc_id: str) -> None: ...

    def add(self, collection: str, data: Mapping[str, Any]) -> str: ...

    def compare_and_set(
        self,
        collection: str,
        doc_id: str,
        data: Mapping[str, Any],
        expected_version: Optional[int],
    ) -> int: ...


def as_json_text(value: Any) -> str:
    """Render a field value the way Postgres `->>` renders a JSON field."""

    if isinstance(value, str):
        return value
    return json.dumps(value, default=str)


def _row_to_document(row: Mapping[str, Any]) -> Document:
    """Convert a Supabase row into a Document."""

    return Document(
        id=str(row["doc_id"]),
        data=dict(row.get("data") or {}),
        version=int(row.get("version") or 1),
    )


class SupabaseDocumentStore:
    """
    DocumentStore over a single Supabase table.

    Conditional writes rely on `version` equality filters (updates) and the
    primary key (creates), so two writers racing on the same document cannot
    both succeed.
    """

    def __init__(self, client: Any, table: str = "documents"):
        self._client = client
        self._table = table

    def _execute(self, query: Any, action: str) -> List[Dict[str, Any]]:
        try:
            response = query.execute()
        except APIError as exc:
            raise StoreError(f"Failed to {action}: {exc}") from exc

        error = getattr(response, "error", None)
        if error:
            raise StoreError(f"Failed to {action}: {error}")
        return getattr(response, "data", None) or []

    def _select(self, collection: str) -> Any:
        return (
            self._client.table(self._table)
            .select("doc_id, data, version")
            .eq("collection", collection)
        )

    def get(self, collection: str, doc_id: str) -> Optional[Document]:
        rows = self._execute(
            self._select(collection).eq("doc_id", doc_id).limit(1),
            f"fetch {collection}/{doc_id}",
        )
        return _row_to_document(rows[0]) if rows else None

    def _paginate(self, build_query: Callable[[], Any], action: str) -> List[Document]:
        # Builders accumulate filters, so every page starts from a fresh one.
        documents: List[Document] = []
        offset = 0
        while True:
            page = self._execute(
                build_query().order("seq").range(offset, offset + _PAGE_SIZE - 1),
                action,
            )
            documents.extend(_row_to_document(row) for row in page)
            if len(page) < _PAGE_SIZE:
                return documents
            offset += len(page)

    def query(self, collection: str, field_name: str, value: Any) -> List[Document]:
        # ->> compares the JSON field as text; null fields never match
        return self._paginate(
            lambda: self._select(collection).eq(f"data->>{field_name}", as_json_text(value)),
            f"query {collection} by {field_name}",
        )

    def list_documents(self, collection: str) -> List[Document]:
        return self._paginate(lambda: self._select(collection), f"list {collection}")

    def set(self, collection: str, doc_id: str, data: Mapping[str, Any], *, merge: bool = False) -> None:
        """
        Replace (or, with `merge`, extend) a document; the last writer wins.

        Each attempt is conditional on the version just read, so every write
        advances the version by exactly one and a merge never drops fields
        written concurrently. Lost races re-read and retry.
        """

        expected_version: Optional[int] = None
        for _ in range(_MAX_WRITE_ATTEMPTS):
            existing = self.get(collection, doc_id)
            body: Dict[str, Any] = dict(existing.data) if (merge and existing) else {}
            body.update(data)
            expected_version = existing.version if existing else None

            try:
                self.compare_and_set(collection, doc_id, body, expected_version)
            except VersionConflictError:
                continue
            return

        raise VersionConflictError(collection, doc_id, expected_version)

    def update(self, collection: str, doc_id: str, data: Mapping[str, Any]) -> None:
        existing = self.get(collection, doc_id)
        if existing is None:
            raise DocumentNotFoundError(f"Document not found: {collection}/{doc_id}")

        body = dict(existing.data)
        body.update(data)
        self.compare_and_set(collection, doc_id, body, existing.version)

    def delete(self, collection: str, doc_id: str) -> None:
        self._execute(
            self._client.table(self._table)
            .delete()
            .eq("collection", collection)
            .eq("doc_id", doc_id),
            f"delete {collection}/{doc_id}",
        )

    def add(self, collection: str, data: Mapping[str, Any]) -> str:
        doc_id = uuid4().hex
        self._execute(
            self._client.table(self._table).insert(
                {"collection": collection, "doc_id": doc_id, "data": dict(data), "version": 1}
            ),
            f"add to {collection}",
        )
        return doc_id

    def compare_and_set(
        self,
        collection: str,
        doc_id: str,
        data: Mapping[str, Any],
        expected_version: Optional[int],
    ) -> int:
        """
        Write `data` only if the stored version still equals `expected_version`.

        `expected_version=None` creates the document and fails if it exists.
        Returns the new version; raises VersionConflictError on a lost race.
        """

        if expected_version is None:
            payload = {"collection": collection, "doc_id": doc_id, "data": dict(data), "version": 1}
            try:
                response = self._client.table(self._table).insert(payload).execute()
            except APIError as exc:
                if str(getattr(exc, "code", "")) == _UNIQUE_VIOLATION:
                    raise VersionConflictError(collection, doc_id, expected_version) from None
                raise StoreError(f"Failed to create {collection}/{doc_id}: {exc}") from exc

            error = getattr(response, "error", None)
            if error:
                if str(getattr(error, "code", "")) == _UNIQUE_VIOLATION:
                    raise VersionConflictError(collection, doc_id, expected_version)
                raise StoreError(f"Failed to create {collection}/{doc_id}: {error}")
            return 1

        new_version = expected_version + 1
        updated_rows = self._execute(
            self._client.table(self._table)
            .update({"data": dict(data), "version": new_version})
            .eq("collection", collection)
            .eq("doc_id", doc_id)
            .eq("version", expected_version),
            f"update {collection}/{doc_id}",
        )
        if not updated_rows:
            # Either the document vanished or another writer bumped the version.
            raise VersionConflictError(collection, doc_id, expected_version)
        return new_version


__all__ = [
    "Document",
    "as_json_text",
    "DocumentStore",
    "SupabaseDocumentStore",
    "StoreError",
    "DocumentNotFoundError",
    "VersionConflictError",
]
