"""
Tests for `domain/inventory.py`.

Covers contract rules:
- A unit is consumable iff its state is `assigned`.
- The assigned -> sold transition stamps the consumption time and keeps
  descriptive fields; sold units cannot be sold again.
- Positional product maps flatten into ordered pairs and rebuild with keys 0..n-1.
- Removing a unit returns a new document; the original is unchanged.
"""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from datetime import datetime, timedelta, timezone

import pytest

from domain.inventory import (
    AssignmentDocument,
    HistoryDocument,
    UnitEntry,
    extract_products,
    rebuild_products_map,
)

SOLD_AT = datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def test_unit_entry_consumable_iff_assigned() -> None:
    """Verify only the `assigned` state is consumable."""

    assert UnitEntry({"estado_venta": "assigned"}).is_consumable is True
    assert UnitEntry({"estado_venta": "sold"}).is_consumable is False
    assert UnitEntry({"estado_venta": "returned"}).is_consumable is False
    assert UnitEntry({}).is_consumable is False


def test_unit_entry_sold_stamps_time_and_keeps_payload() -> None:
    """Verify selling returns a new entry with state, timestamp and original fields."""

    entry = UnitEntry({"estado_venta": "assigned", "capacidad": "20kg"})
    sold = entry.sold(SOLD_AT)

    assert sold is not entry
    assert entry.attributes == {"estado_venta": "assigned", "capacidad": "20kg"}
    assert sold.attributes == {
        "estado_venta": "sold",
        "capacidad": "20kg",
        "fecha_venta": SOLD_AT.isoformat(),
    }


def test_unit_entry_cannot_be_sold_twice() -> None:
    """Verify a sold entry rejects another transition."""

    sold = UnitEntry({"estado_venta": "assigned"}).sold(SOLD_AT)

    with pytest.raises(ValueError):
        sold.sold(SOLD_AT)


def test_unit_entry_sold_requires_utc() -> None:
    """Verify the consumption timestamp must be UTC."""

    entry = UnitEntry({"estado_venta": "assigned"})

    with pytest.raises(ValueError):
        entry.sold(datetime(2025, 3, 1, 12, 0, 0))

    with pytest.raises(ValueError):
        entry.sold(datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone(timedelta(hours=-6))))


def test_extract_then_rebuild_renumbers_positions_in_order() -> None:
    """Verify positional keys become 0..n-1 whatever their original names."""

    products = {
        "7": {"C1": {"estado_venta": "assigned"}},
        "a": {"C2": {"estado_venta": "sold"}},
        "3": {"C3": {"estado_venta": "assigned", "color": "gris"}},
    }

    pairs = extract_products(products)
    rebuilt = rebuild_products_map(pairs)

    assert [unit_id for unit_id, _ in pairs] == ["C1", "C2", "C3"]
    assert list(rebuilt) == ["0", "1", "2"]
    assert rebuilt["0"] == {"C1": {"estado_venta": "assigned"}}
    assert rebuilt["1"] == {"C2": {"estado_venta": "sold"}}
    assert rebuilt["2"] == {"C3": {"estado_venta": "assigned", "color": "gris"}}


def test_extract_products_skips_empty_slots_and_accepts_lists() -> None:
    """Verify empty or malformed slots are ignored and list encodings work."""

    assert extract_products(None) == []
    assert extract_products({}) == []
    assert extract_products({"0": None, "1": "junk", "2": {"C9": {}}}) == [("C9", UnitEntry({}))]
    assert [u for u, _ in extract_products([{"C1": {}}, {"C2": {}}])] == ["C1", "C2"]


def test_rebuild_empty_products_is_empty_map() -> None:
    assert rebuild_products_map([]) == {}


def test_assignment_find_and_without_unit() -> None:
    """Verify lookups and that removal leaves the original document unchanged."""

    doc = AssignmentDocument(
        document_id="V1",
        products=tuple(extract_products({"0": {"C1": {"estado_venta": "assigned"}}, "1": {"C2": {}}})),
    )

    assert doc.has_unit("C1")
    assert doc.find("C3") is None

    trimmed = doc.without_unit("C1")

    assert [u for u, _ in trimmed.products] == ["C2"]
    assert doc.has_unit("C1")
    assert rebuild_products_map(list(trimmed.products)) == {"0": {"C2": {}}}


def test_assignment_without_missing_unit_raises() -> None:
    doc = AssignmentDocument(document_id="V1")

    with pytest.raises(ValueError):
        doc.without_unit("C1")


def test_history_append_is_side_effect_free() -> None:
    """Verify appends return a new history and preserve order."""

    history0 = HistoryDocument.empty("V1")
    history1 = history0.append("C1", UnitEntry({"estado_venta": "sold"}))
    history2 = history1.append("C2", UnitEntry({"estado_venta": "sold"}))

    assert history0.products == ()
    assert [u for u, _ in history2.products] == ["C1", "C2"]


def test_unit_entry_is_immutable() -> None:
    entry = UnitEntry({"estado_venta": "assigned"})

    with pytest.raises(FrozenInstanceError):
        entry.attributes = {}  # type: ignore[misc]
