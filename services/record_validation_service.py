"""
Record validation service.

Validates raw `|`-separated sale lines sent by the devices. Each line names a
unit and a seller; a line is valid when the unit can be consumed for that
seller, in which case it is consumed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from domain.record_parser import parse_payload
from repositories.document_store import StoreError
from services.inventory_service import InventoryService

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RecordValidationResult:
    unit_id: Optional[str]
    seller_id: Optional[str]
    valid: bool


class RecordValidationService:
    """Parses raw lines and consumes the units they name, one line at a time."""

    def __init__(self, inventory: InventoryService):
        self._inventory = inventory

    def validate(self, payload: str) -> List[RecordValidationResult]:
        results: List[RecordValidationResult] = []
        for intent in parse_payload(payload):
            try:
                outcome = self._inventory.consume(intent.seller_id, intent.unit_id)
                valid = outcome.success
            except StoreError:
                # A store failure only invalidates this line.
                logger.exception(
                    "Failed to validate record | unit=%s seller=%s", intent.unit_id, intent.seller_id
                )
                valid = False
            results.append(RecordValidationResult(intent.unit_id, intent.seller_id, valid))
        return results


__all__ = ["RecordValidationResult", "RecordValidationService"]
