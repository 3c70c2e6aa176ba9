"""
Batch reconciliation service.

Handles:
- Duplicate detection across the whole sales collection
- Per-sale business rule checks (completeness, price bounds, inventory match)
- Quarantine of every flagged sale, and deletion of sales with bad data

Policy:
- Every flagged sale is annotated with its reason(s) before it is quarantined.
- Source records are deleted only for completeness or price failures.
  Duplicates and inventory mismatches stay in place for review.
- Sales are processed one at a time; quarantine happens before deletion.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List

from domain.duplicates import resolve_duplicates
from domain.sale import Sale
from domain.validation import (
    INVALID_PRICE_ERROR,
    INVENTORY_MISMATCH_ERROR,
    MISSING_FIELDS_ERROR,
    has_missing_fields,
    is_valid_price,
    join_errors,
    requires_deletion,
)
from repositories.sale_repository import SaleRepository
from services.inventory_service import InventoryService

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class InventoryMismatch:
    """A sale whose unit is not in its seller's assignment."""
    folio: Any
    unit_id: Any
    seller_id: Any


@dataclass(frozen=True, slots=True)
class ReconciliationSummary:
    """
    Result of one reconciliation pass.

    total: number of sales read from the source collection
    suspicious: every quarantined sale (duplicates first), with its reason
    mismatches: inventory mismatch details
    deleted: number of source records removed
    """
    total: int
    suspicious: List[Sale] = field(default_factory=list)
    mismatches: List[InventoryMismatch] = field(default_factory=list)
    deleted: int = 0

    @property
    def suspicious_count(self) -> int:
        return len(self.suspicious)

    @property
    def mismatch_count(self) -> int:
        return len(self.mismatches)


class ReconciliationService:
    """Runs reconciliation passes over the sales collection."""

    def __init__(self, sales: SaleRepository, inventory: InventoryService):
        self._sales = sales
        self._inventory = inventory

    def reconcile(self) -> ReconciliationSummary:
        """
        Reconcile the full sales collection.

        Failing to read the batch propagates; quarantine and deletion failures
        are logged and do not stop the pass.
        """

        sales = self._sales.list_sales()
        summary = self.reconcile_batch(sales)
        logger.info(
            "Reconciliation finished | total=%d suspicious=%d mismatches=%d deleted=%d",
            summary.total,
            summary.suspicious_count,
            summary.mismatch_count,
            summary.deleted,
        )
        return summary

    def reconcile_batch(self, sales: Iterable[Sale]) -> ReconciliationSummary:
        batch = list(sales)
        resolution = resolve_duplicates(batch)

        suspicious: List[Sale] = []
        mismatches: List[InventoryMismatch] = []
        deleted = 0

        for duplicate in resolution.duplicates:
            self._sales.quarantine_sale(duplicate)
            suspicious.append(duplicate)

        for sale in resolution.winners:
            errors = self.check_sale(sale)
            if not errors:
                continue

            if INVENTORY_MISMATCH_ERROR in errors:
                mismatches.append(
                    InventoryMismatch(folio=sale.folio, unit_id=sale.unit_id, seller_id=sale.seller_id)
                )

            flagged = sale.with_error(join_errors(errors))
            self._sales.quarantine_sale(flagged)
            suspicious.append(flagged)

            if requires_deletion(errors) and self._sales.delete_sale(flagged):
                deleted += 1

        return ReconciliationSummary(
            total=len(batch),
            suspicious=suspicious,
            mismatches=mismatches,
            deleted=deleted,
        )

    def check_sale(self, sale: Sale) -> List[str]:
        """Evaluate every rule; errors accumulate in a fixed order."""

        errors: List[str] = []
        if has_missing_fields(sale):
            errors.append(MISSING_FIELDS_ERROR)
        if not is_valid_price(sale.price):
            errors.append(INVALID_PRICE_ERROR)
        if not self._inventory.is_assigned(sale.seller_id, sale.unit_id):
            errors.append(INVENTORY_MISMATCH_ERROR)
        return errors


__all__ = [
    "InventoryMismatch",
    "ReconciliationSummary",
    "ReconciliationService",
]
