"""
Domain: Sale records.

A sale is a point-of-sale record as captured by the field devices. It is
created externally; reconciliation only reads it, optionally attaches an
error reason, and copies it to quarantine.

This module contains only pure domain entities: no I/O, no database, no frameworks.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional

from .time import to_epoch_seconds

# Field names as written by the point-of-sale devices.
UNIT_ID_FIELD: str = "ID_CILINDRO"
SELLER_ID_FIELD: str = "ID_VENDEDOR"
FOLIO_FIELD: str = "FOLIO"
PRICE_FIELD: str = "PRECIO"
ADDRESS_FIELD: str = "DOMICILIO"
SOLD_AT_FIELD: str = "FECHA_VENTA"
ERROR_FIELD: str = "error"

# Fields that must be present and non-empty for a sale to be complete.
REQUIRED_FIELDS: tuple[str, ...] = (
    UNIT_ID_FIELD,
    SELLER_ID_FIELD,
    FOLIO_FIELD,
    PRICE_FIELD,
    ADDRESS_FIELD,
)

DEFAULT_ERROR_REASON: str = "Unspecified"


@dataclass(frozen=True, slots=True)
class Sale:
    """
    Immutable view of a stored sale document.

    `data` is the document body exactly as stored; the typed properties read
    from it so that quarantine copies carry every field through unchanged.
    Attaching an error returns a new instance.
    """

    sale_id: str
    data: Mapping[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    @staticmethod
    def from_document(sale_id: str, data: Mapping[str, Any]) -> "Sale":
        body = dict(data)
        error = body.pop(ERROR_FIELD, None)
        return Sale(sale_id=sale_id, data=body, error=error or None)

    @property
    def unit_id(self) -> Any:
        return self.data.get(UNIT_ID_FIELD)

    @property
    def seller_id(self) -> Any:
        return self.data.get(SELLER_ID_FIELD)

    @property
    def folio(self) -> Any:
        return self.data.get(FOLIO_FIELD)

    @property
    def price(self) -> Any:
        return self.data.get(PRICE_FIELD)

    @property
    def address(self) -> Any:
        return self.data.get(ADDRESS_FIELD)

    @property
    def sold_at_seconds(self) -> int:
        """Sale timestamp in epoch seconds; missing timestamps count as 0."""

        return to_epoch_seconds(self.data.get(SOLD_AT_FIELD))

    def with_error(self, reason: str) -> "Sale":
        return replace(self, error=reason)

    def to_quarantine_document(self) -> Dict[str, Any]:
        """
        Build the quarantine copy: the stored body, the source id and a
        mandatory error reason.
        """

        document: Dict[str, Any] = {"id": self.sale_id}
        document.update(self.data)
        document[ERROR_FIELD] = self.error or DEFAULT_ERROR_REASON
        return document


__all__ = [
    "Sale",
    "REQUIRED_FIELDS",
    "DEFAULT_ERROR_REASON",
    "UNIT_ID_FIELD",
    "SELLER_ID_FIELD",
    "FOLIO_FIELD",
    "PRICE_FIELD",
    "ADDRESS_FIELD",
    "SOLD_AT_FIELD",
]
