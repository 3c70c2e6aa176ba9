"""
Sales history repository (persistence).

One document per seller holding the units consumed so far, oldest first:

    {"id_vendedor": "V1", "productos": [{"C100": {"estado_venta": "sold", ...}}]}

Documents are created on the first consumption for a seller. Appends are
conditional on the document version and retried against concurrent appends.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from domain.inventory import HistoryDocument, ProductPair, UnitEntry
from repositories.document_store import Document, DocumentStore, VersionConflictError

logger = logging.getLogger(__name__)

_HISTORY_COLLECTION: str = "historial_ventas"
PRODUCTS_FIELD: str = "productos"
SELLER_ID_FIELD: str = "id_vendedor"

_MAX_APPEND_ATTEMPTS: int = 5


def _to_history(seller_id: str, document: Optional[Document]) -> HistoryDocument:
    if document is None:
        return HistoryDocument(seller_id=seller_id, fields={SELLER_ID_FIELD: seller_id})

    products: List[ProductPair] = []
    for item in document.data.get(PRODUCTS_FIELD) or []:
        if not isinstance(item, dict):
            logger.warning("Skipping malformed history entry | seller=%s entry=%r", seller_id, item)
            continue
        for unit_id, attributes in item.items():
            products.append((str(unit_id), UnitEntry(attributes=dict(attributes or {}))))

    fields = {key: value for key, value in document.data.items() if key != PRODUCTS_FIELD}
    return HistoryDocument(
        seller_id=seller_id,
        products=tuple(products),
        fields=fields,
        version=document.version,
    )


def _to_data(history: HistoryDocument) -> Dict[str, Any]:
    data: Dict[str, Any] = dict(history.fields)
    data[PRODUCTS_FIELD] = [{unit_id: entry.to_dict()} for unit_id, entry in history.products]
    return data


class HistoryRepository:
    """Persistence for seller history documents through an injected DocumentStore."""

    def __init__(self, store: DocumentStore, *, collection: str = _HISTORY_COLLECTION):
        self._store = store
        self.collection = collection

    def get_history(self, seller_id: str) -> HistoryDocument:
        """Stored history for a seller, or an unsaved empty one (version None)."""

        return _to_history(seller_id, self._store.get(self.collection, seller_id))

    def append(self, seller_id: str, unit_id: str, entry: UnitEntry) -> None:
        """
        Append one consumed unit to the seller's history.

        Raises VersionConflictError if concurrent appends keep winning.
        """

        history = HistoryDocument.empty(seller_id)
        for _ in range(_MAX_APPEND_ATTEMPTS):
            history = self.get_history(seller_id)
            updated = history.append(unit_id, entry)

            try:
                self._store.compare_and_set(self.collection, seller_id, _to_data(updated), history.version)
            except VersionConflictError:
                logger.info("History append raced, retrying | seller=%s unit=%s", seller_id, unit_id)
                continue
            return

        raise VersionConflictError(self.collection, seller_id, history.version)


__all__ = ["HistoryRepository"]
