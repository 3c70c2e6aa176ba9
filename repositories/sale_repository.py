"""
Sale repository (persistence).

This module provides *only* persistence operations for Sale records: reading
the day's sales, deleting a sale, and writing quarantine copies. It contains
no business rules about what makes a sale suspicious.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List

from domain.sale import Sale
from repositories.document_store import DocumentStore

logger = logging.getLogger(__name__)

# Collection names; keep these aligned with the device sync jobs.
_SALES_COLLECTION: str = "venta_dia_sms"
_QUARANTINE_COLLECTIONS: tuple[str, ...] = ("venta_sospechosa", "venta_dia_sospechosa_sms")


class SaleRepository:
    """Reads and writes sale documents through an injected DocumentStore."""

    def __init__(
        self,
        store: DocumentStore,
        *,
        sales_collection: str = _SALES_COLLECTION,
        quarantine_collections: tuple[str, ...] = _QUARANTINE_COLLECTIONS,
    ):
        self._store = store
        self.sales_collection = sales_collection
        self.quarantine_collections = quarantine_collections

    def list_sales(self) -> List[Sale]:
        """
        Fetch every sale in the source collection.

        Store failures propagate; a reconciliation pass cannot run without its batch.
        """

        documents = self._store.list_documents(self.sales_collection)
        return [Sale.from_document(document.id, document.data) for document in documents]

    def delete_sale(self, sale: Sale) -> bool:
        """Delete the source record. Failures are logged, never raised."""

        try:
            self._store.delete(self.sales_collection, sale.sale_id)
        except Exception:
            logger.exception("Failed to delete sale | id=%s", sale.sale_id)
            return False

        logger.info("Deleted sale | id=%s reason=%s", sale.sale_id, sale.error)
        return True

    def quarantine_sale(self, sale: Sale) -> int:
        """
        Copy the sale into every quarantine collection.

        Writes are issued concurrently and independently; there is no joint
        transaction. A failed write is logged and does not undo the others.

        Returns:
            Number of quarantine collections written.
        """

        document = sale.to_quarantine_document()

        with ThreadPoolExecutor(max_workers=len(self.quarantine_collections)) as pool:
            futures = {
                collection: pool.submit(self._store.add, collection, document)
                for collection in self.quarantine_collections
            }

        written = 0
        for collection, future in futures.items():
            try:
                future.result()
            except Exception:
                logger.exception(
                    "Failed to quarantine sale | folio=%s collection=%s", sale.folio, collection
                )
            else:
                written += 1

        if written:
            logger.warning(
                "Suspicious sale quarantined | folio=%s reason=%s", sale.folio, document["error"]
            )
        return written


__all__ = ["SaleRepository"]
