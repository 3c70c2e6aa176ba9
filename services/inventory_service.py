"""
Inventory consumption service.

Handles:
- Read-only assignment checks used by reconciliation
- The assigned -> sold transition for a (seller, unit) pair
- Fallback search across every assignment document carrying the seller id
- Recording consumed units in the seller's history

Consumption claims the unit first with a version-conditional write on the
assignment document, so two requests racing for the same unit cannot both
succeed. The history append follows the claim; if it fails the unit stays
consumed and the failure is logged for manual repair.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from domain.inventory import AssignmentDocument, UnitEntry
from domain.time import utc_now
from repositories.assignment_repository import AssignmentRepository
from repositories.document_store import StoreError, VersionConflictError
from repositories.history_repository import HistoryRepository

logger = logging.getLogger(__name__)

_DEFAULT_MAX_ATTEMPTS: int = 3


@dataclass(frozen=True, slots=True)
class ConsumptionResult:
    """
    Result of a consumption attempt.

    success: True if the unit moved from assigned to sold
    unit_id / seller_id: the pair that was requested
    document_id: assignment document the unit was taken from (on success)
    reason: why the attempt failed (None on success)
    """
    success: bool
    unit_id: Optional[str]
    seller_id: Optional[str]
    document_id: Optional[str] = None
    reason: Optional[str] = None


class InventoryService:
    """State machine over assignment documents."""

    def __init__(
        self,
        assignments: AssignmentRepository,
        history: HistoryRepository,
        *,
        clock: Callable[[], datetime] = utc_now,
        max_attempts: int = _DEFAULT_MAX_ATTEMPTS,
    ):
        self._assignments = assignments
        self._history = history
        self._clock = clock
        self._max_attempts = max_attempts

    def is_assigned(self, seller_id: Optional[str], unit_id: Optional[str]) -> bool:
        """
        Check whether the unit appears in the seller's assignment, in any state.

        Only the primary document is consulted and nothing is modified. Store
        failures count as "not assigned".
        """

        if not seller_id or not unit_id:
            return False

        try:
            assignment = self._assignments.get_assignment(str(seller_id))
        except StoreError:
            logger.exception("Failed to check assignment | seller=%s", seller_id)
            return False

        if assignment is None:
            logger.warning("No assignment for seller | seller=%s", seller_id)
            return False

        if assignment.has_unit(str(unit_id)):
            return True

        logger.warning("Unit not assigned to seller | unit=%s seller=%s", unit_id, seller_id)
        return False

    def consume(self, seller_id: Optional[str], unit_id: Optional[str]) -> ConsumptionResult:
        """
        Mark a unit as sold for a seller.

        Process:
        1. Search the seller's primary assignment document
        2. If it is missing or lacks the unit, scan every assignment document
           whose seller-id field matches, in store order
        3. On the first consumable (assigned) entry:
           - remove it from its assignment document (conditional write)
           - append the sold copy to the seller's history
        4. Otherwise report failure

        A unit found in the primary document but not assigned ends the search.
        In the fallback scan, non-consumable entries are skipped.

        Lost races re-read and re-evaluate, up to `max_attempts` times.
        Store read failures propagate.
        """

        if not seller_id or not unit_id:
            return ConsumptionResult(False, unit_id, seller_id, reason="Missing unit or seller id")

        seller_id = str(seller_id)
        unit_id = str(unit_id)

        for attempt in range(1, self._max_attempts + 1):
            try:
                return self._consume_once(seller_id, unit_id)
            except VersionConflictError:
                logger.info(
                    "Consumption raced, re-reading | unit=%s seller=%s attempt=%d",
                    unit_id,
                    seller_id,
                    attempt,
                )

        logger.warning("Consumption gave up after conflicts | unit=%s seller=%s", unit_id, seller_id)
        return ConsumptionResult(False, unit_id, seller_id, reason="Concurrent update")

    def _consume_once(self, seller_id: str, unit_id: str) -> ConsumptionResult:
        primary = self._assignments.get_assignment(seller_id)

        if primary is not None:
            entry = primary.find(unit_id)
            if entry is not None:
                if not entry.is_consumable:
                    logger.warning(
                        "Unit not consumable | unit=%s seller=%s state=%s",
                        unit_id,
                        seller_id,
                        entry.state,
                    )
                    return ConsumptionResult(False, unit_id, seller_id, reason="Unit not consumable")
                return self._claim(primary, seller_id, unit_id, entry)

        skip_document_id = primary.document_id if primary is not None else None
        for assignment in self._assignments.fallback_assignments(seller_id, skip_document_id=skip_document_id):
            entry = assignment.find(unit_id)
            if entry is None or not entry.is_consumable:
                continue
            return self._claim(assignment, seller_id, unit_id, entry)

        logger.warning("Unit not available for seller | unit=%s seller=%s", unit_id, seller_id)
        return ConsumptionResult(False, unit_id, seller_id, reason="Unit not assigned")

    def _claim(
        self,
        assignment: AssignmentDocument,
        seller_id: str,
        unit_id: str,
        entry: UnitEntry,
    ) -> ConsumptionResult:
        sold_entry = entry.sold(self._clock())

        # Raises VersionConflictError if another request changed the document.
        self._assignments.save_products(assignment.without_unit(unit_id))

        try:
            self._history.append(seller_id, unit_id, sold_entry)
        except StoreError:
            logger.exception(
                "Unit consumed but history append failed | unit=%s seller=%s", unit_id, seller_id
            )

        logger.info(
            "Unit consumed | unit=%s seller=%s document=%s", unit_id, seller_id, assignment.document_id
        )
        return ConsumptionResult(True, unit_id, seller_id, document_id=assignment.document_id)


__all__ = ["ConsumptionResult", "InventoryService"]
