"""
Domain: per-sale business rules.

Pure checks only; the inventory match needs the store and lives in
services/inventory_service.py.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional

from .sale import REQUIRED_FIELDS, Sale

MISSING_FIELDS_ERROR: str = "Null or empty fields"
INVALID_PRICE_ERROR: str = "Invalid price"
INVENTORY_MISMATCH_ERROR: str = "Inventory mismatch"

# Errors that remove the sale from the source collection, not just flag it.
DELETING_ERRORS: frozenset[str] = frozenset({MISSING_FIELDS_ERROR, INVALID_PRICE_ERROR})

ERROR_SEPARATOR: str = " | "

MIN_PRICE: Decimal = Decimal("0")
MAX_PRICE: Decimal = Decimal("20000")


def _is_blank(value: Any) -> bool:
    return value is None or value == ""


def has_missing_fields(sale: Sale) -> bool:
    return any(_is_blank(sale.data.get(name)) for name in REQUIRED_FIELDS)


def parse_price(value: Any) -> Optional[Decimal]:
    """Read a price as a Decimal; None when it is not a finite number."""

    if value is None or isinstance(value, bool):
        return None
    try:
        price = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not price.is_finite():
        return None
    return price


def is_valid_price(value: Any) -> bool:
    """Price must be numeric and within [0, 20000], both bounds inclusive."""

    price = parse_price(value)
    return price is not None and MIN_PRICE <= price <= MAX_PRICE


def join_errors(errors: Iterable[str]) -> str:
    return ERROR_SEPARATOR.join(errors)


def requires_deletion(errors: Iterable[str]) -> bool:
    return any(error in DELETING_ERRORS for error in errors)


__all__ = [
    "MISSING_FIELDS_ERROR",
    "INVALID_PRICE_ERROR",
    "INVENTORY_MISMATCH_ERROR",
    "has_missing_fields",
    "parse_price",
    "is_valid_price",
    "join_errors",
    "requires_deletion",
]
