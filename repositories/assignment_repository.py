"""
Assignment repository (persistence).

Reads and writes per-seller inventory assignment documents. Documents are keyed
by seller id and also carry the seller id as a field; older documents were
written under other keys, so lookups fall back to a field scan.

Stored shape:

    {
        "id_vendedor": "V1",
        "productos": {"0": {"C100": {"estado_venta": "assigned", ...}}, ...},
        ...
    }

The positional "productos" encoding is converted to ordered pairs here and
nowhere else.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, List, Optional

from domain.inventory import AssignmentDocument, extract_products, rebuild_products_map
from repositories.document_store import Document, DocumentStore

logger = logging.getLogger(__name__)

_ASSIGNMENTS_COLLECTION: str = "asignacion_diaria"
PRODUCTS_FIELD: str = "productos"
SELLER_ID_FIELD: str = "id_vendedor"


def _to_assignment(document: Document) -> AssignmentDocument:
    fields = {key: value for key, value in document.data.items() if key != PRODUCTS_FIELD}
    return AssignmentDocument(
        document_id=document.id,
        products=tuple(extract_products(document.data.get(PRODUCTS_FIELD))),
        fields=fields,
        version=document.version,
    )


def _to_data(assignment: AssignmentDocument) -> Dict[str, Any]:
    data: Dict[str, Any] = dict(assignment.fields)
    data[PRODUCTS_FIELD] = rebuild_products_map(list(assignment.products))
    return data


class AssignmentRepository:
    """Persistence for assignment documents through an injected DocumentStore."""

    def __init__(self, store: DocumentStore, *, collection: str = _ASSIGNMENTS_COLLECTION):
        self._store = store
        self.collection = collection

    def get_document(self, seller_id: str) -> Optional[Document]:
        """Raw stored assignment, as served by the assignment lookup endpoint."""

        return self._store.get(self.collection, seller_id)

    def get_assignment(self, seller_id: str) -> Optional[AssignmentDocument]:
        """Primary assignment document for a seller (keyed by seller id)."""

        document = self._store.get(self.collection, seller_id)
        return _to_assignment(document) if document is not None else None

    def find_by_seller(self, seller_id: str) -> List[AssignmentDocument]:
        """All assignment documents whose seller-id field matches, in store order."""

        documents = self._store.query(self.collection, SELLER_ID_FIELD, seller_id)
        return [_to_assignment(document) for document in documents]

    def fallback_assignments(self, seller_id: str, *, skip_document_id: Optional[str] = None) -> Iterator[AssignmentDocument]:
        """
        Documents to search when the primary one lacks a unit.

        The primary document is skipped when it also matches the field scan;
        it has already been searched.
        """

        for assignment in self.find_by_seller(seller_id):
            if assignment.document_id == skip_document_id:
                continue
            yield assignment

    def save_products(self, assignment: AssignmentDocument) -> int:
        """
        Persist the assignment's product list, conditional on its version.

        Raises VersionConflictError if the document changed since it was read.
        """

        new_version = self._store.compare_and_set(
            self.collection,
            assignment.document_id,
            _to_data(assignment),
            assignment.version,
        )
        logger.debug(
            "Saved assignment | id=%s products=%d version=%d",
            assignment.document_id,
            len(assignment.products),
            new_version,
        )
        return new_version


__all__ = ["AssignmentRepository", "PRODUCTS_FIELD", "SELLER_ID_FIELD"]
