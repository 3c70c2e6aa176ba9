"""
Domain: Inventory assignment and consumption.

Contract excerpts implemented here:
- Units are assigned to a seller through a per-seller assignment document.
- A unit is consumable iff its sale state is `assigned`.
- Consumption is the single assigned -> sold transition; the sold copy is
  stamped with the consumption time and moved to the seller's history.
- Within one assignment document there is at most one entry per unit id.

Stores encode the product list as a map with positional string keys
("0", "1", ...), each holding a single-entry {unit_id: entry} map. In memory
the list is an ordered tuple of (unit_id, UnitEntry) pairs; the positional
encoding only exists in `extract_products` / `rebuild_products_map`.

This module contains only pure domain entities/value objects: no I/O, no database, no frameworks.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .time import require_utc_timestamp

STATE_FIELD: str = "estado_venta"
CONSUMED_AT_FIELD: str = "fecha_venta"


class UnitState(str, Enum):
    ASSIGNED = "assigned"
    SOLD = "sold"


@dataclass(frozen=True, slots=True)
class UnitEntry:
    """
    Attributes of a physical unit as assigned to a seller.

    `attributes` is the opaque stored payload, including the sale-state tag.
    Descriptive fields are carried through unchanged.
    """

    attributes: Mapping[str, Any] = field(default_factory=dict)

    @property
    def state(self) -> Optional[str]:
        value = self.attributes.get(STATE_FIELD)
        return None if value is None else str(value)

    @property
    def is_consumable(self) -> bool:
        return self.state == UnitState.ASSIGNED.value

    def sold(self, consumed_at: datetime) -> "UnitEntry":
        """
        Return a sold copy of this entry.

        Enforces the single assigned -> sold transition.
        """

        require_utc_timestamp("consumed_at", consumed_at)
        if not self.is_consumable:
            raise ValueError(f"Unit is not consumable (state: {self.state!r})")

        attributes: Dict[str, Any] = dict(self.attributes)
        attributes[STATE_FIELD] = UnitState.SOLD.value
        attributes[CONSUMED_AT_FIELD] = consumed_at.isoformat()
        return UnitEntry(attributes=attributes)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.attributes)


ProductPair = Tuple[str, UnitEntry]


def extract_products(products_map: Any) -> List[ProductPair]:
    """
    Flatten a positional product map into ordered (unit_id, UnitEntry) pairs.

    Positional keys are walked in stored order; their names are not
    significant. A plain list of slots is accepted too. Empty or non-map
    slots are skipped.
    """

    pairs: List[ProductPair] = []
    if isinstance(products_map, Mapping):
        slots = list(products_map.values())
    elif isinstance(products_map, (list, tuple)):
        slots = list(products_map)
    else:
        return pairs

    for slot in slots:
        if not isinstance(slot, Mapping):
            continue
        for unit_id, attributes in slot.items():
            entry_attributes = attributes if isinstance(attributes, Mapping) else {}
            pairs.append((str(unit_id), UnitEntry(attributes=dict(entry_attributes))))
    return pairs


def rebuild_products_map(pairs: List[ProductPair]) -> Dict[str, Dict[str, Dict[str, Any]]]:
    """Encode ordered pairs back into a positional map keyed "0".."n-1"."""

    return {
        str(position): {unit_id: entry.to_dict()}
        for position, (unit_id, entry) in enumerate(pairs)
    }


@dataclass(frozen=True, slots=True)
class AssignmentDocument:
    """
    Per-seller inventory assignment.

    `document_id` is the store key (normally the seller id); `fields` holds
    every other stored field except the product map.
    """

    document_id: str
    products: Tuple[ProductPair, ...] = ()
    fields: Mapping[str, Any] = field(default_factory=dict)
    version: Optional[int] = None

    def find(self, unit_id: str) -> Optional[UnitEntry]:
        for candidate_id, entry in self.products:
            if candidate_id == unit_id:
                return entry
        return None

    def has_unit(self, unit_id: str) -> bool:
        return self.find(unit_id) is not None

    def without_unit(self, unit_id: str) -> "AssignmentDocument":
        """Return a copy with the unit's entry removed; positions are compacted."""

        remaining = tuple(pair for pair in self.products if pair[0] != unit_id)
        if len(remaining) == len(self.products):
            raise ValueError(f"Unit {unit_id} is not assigned in document {self.document_id}")
        return AssignmentDocument(
            document_id=self.document_id,
            products=remaining,
            fields=self.fields,
            version=self.version,
        )


@dataclass(frozen=True, slots=True)
class HistoryDocument:
    """
    Append-only record of a seller's consumed units, oldest first.

    `fields` holds every other stored field except the product list.
    """

    seller_id: str
    products: Tuple[ProductPair, ...] = ()
    fields: Mapping[str, Any] = field(default_factory=dict)
    version: Optional[int] = None

    @staticmethod
    def empty(seller_id: str) -> "HistoryDocument":
        return HistoryDocument(seller_id=seller_id)

    def append(self, unit_id: str, entry: UnitEntry) -> "HistoryDocument":
        return HistoryDocument(
            seller_id=self.seller_id,
            products=self.products + ((unit_id, entry),),
            fields=self.fields,
            version=self.version,
        )


__all__ = [
    "UnitState",
    "UnitEntry",
    "AssignmentDocument",
    "HistoryDocument",
    "extract_products",
    "rebuild_products_map",
    "STATE_FIELD",
    "CONSUMED_AT_FIELD",
]
