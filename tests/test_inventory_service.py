"""
Tests for `services/inventory_service.py`.

Covers contract rules:
- Consuming an assigned unit removes it from the assignment and appends the
  sold copy to the seller's history (created on first use).
- A consumed unit can never be consumed again.
- Non-assigned units in the primary document end the search.
- When the primary document is missing or lacks the unit, documents carrying
  the seller id are scanned in store order, skipping non-consumable entries.
- Concurrent writers cannot both consume the same unit.
- The read-only check never modifies anything.
"""

from __future__ import annotations

import threading

from conftest import FIXED_NOW, assign_units
from domain.inventory import UnitEntry
from repositories.assignment_repository import AssignmentRepository
from repositories.document_store import StoreError, VersionConflictError
from repositories.history_repository import HistoryRepository
from repositories.memory_store import InMemoryDocumentStore
from services.inventory_service import InventoryService


def test_consume_moves_unit_to_history(store, inventory) -> None:
    """Verify the V1/C100 scenario end to end."""

    store.set("asignacion_diaria", "V1", {"productos": {"0": {"C100": {"estado_venta": "assigned"}}}})

    result = inventory.consume("V1", "C100")

    assert result.success is True
    assert (result.unit_id, result.seller_id, result.document_id) == ("C100", "V1", "V1")
    assert store.get("asignacion_diaria", "V1").data["productos"] == {}

    history = store.get("historial_ventas", "V1").data
    assert history["productos"] == [
        {"C100": {"estado_venta": "sold", "fecha_venta": FIXED_NOW.isoformat()}}
    ]

    second = inventory.consume("V1", "C100")
    assert second.success is False
    assert len(store.get("historial_ventas", "V1").data["productos"]) == 1


def test_consume_keeps_other_units_and_fields(store, inventory) -> None:
    """Verify remaining units are renumbered and other fields survive."""

    assign_units(store, "V1", ["C1", ("C2", {"estado_venta": "assigned", "capacidad": "30kg"}), "C3"])
    store.update("asignacion_diaria", "V1", {"ruta": "norte"})

    assert inventory.consume("V1", "C1").success is True

    data = store.get("asignacion_diaria", "V1").data
    assert data["ruta"] == "norte"
    assert data["id_vendedor"] == "V1"
    assert data["productos"] == {
        "0": {"C2": {"estado_venta": "assigned", "capacidad": "30kg"}},
        "1": {"C3": {"estado_venta": "assigned"}},
    }


def test_history_appends_in_consumption_order(store, inventory) -> None:
    assign_units(store, "V1", ["C1", "C2"])

    inventory.consume("V1", "C2")
    inventory.consume("V1", "C1")

    history = HistoryRepository(store).get_history("V1")
    assert [unit_id for unit_id, _ in history.products] == ["C2", "C1"]


def test_history_append_keeps_existing_fields_and_entries(store) -> None:
    """Verify appends go through the stored history and preserve everything already there."""

    store.set(
        "historial_ventas",
        "V1",
        {"id_vendedor": "V1", "zona": "norte", "productos": [{"C0": {"estado_venta": "sold"}}]},
    )
    repository = HistoryRepository(store)
    before = repository.get_history("V1")

    repository.append("V1", "C1", UnitEntry({"estado_venta": "sold"}))

    after = repository.get_history("V1")
    assert after.fields == {"id_vendedor": "V1", "zona": "norte"}
    assert [unit_id for unit_id, _ in after.products] == ["C0", "C1"]
    assert after.version != before.version
    assert store.get("historial_ventas", "V1").data["productos"] == [
        {"C0": {"estado_venta": "sold"}},
        {"C1": {"estado_venta": "sold"}},
    ]


def test_missing_history_is_empty_and_unsaved(store) -> None:
    history = HistoryRepository(store).get_history("V9")

    assert history.products == ()
    assert history.version is None
    assert store.get("historial_ventas", "V9") is None


def test_consume_rejects_sold_unit_in_primary_without_fallback(store, inventory) -> None:
    """Verify a non-assigned unit in the primary document ends the search."""

    assign_units(store, "V1", ["C1"], state="sold")
    assign_units(store, "V1", ["C1"], document_id="V1-extra")

    result = inventory.consume("V1", "C1")

    assert result.success is False
    assert store.get("asignacion_diaria", "V1-extra").data["productos"] == {
        "0": {"C1": {"estado_venta": "assigned"}}
    }
    assert store.get("historial_ventas", "V1") is None


def test_consume_falls_back_when_primary_missing(store, inventory) -> None:
    """Verify documents keyed differently but carrying the seller id are searched."""

    assign_units(store, "V1", ["C5"], document_id="legacy-V1")

    result = inventory.consume("V1", "C5")

    assert result.success is True
    assert result.document_id == "legacy-V1"
    assert store.get("asignacion_diaria", "legacy-V1").data["productos"] == {}
    assert store.get("historial_ventas", "V1") is not None


def test_consume_falls_back_when_primary_lacks_unit(store, inventory) -> None:
    assign_units(store, "V1", ["C1"])
    assign_units(store, "V1", ["C9"], document_id="V1-b")

    result = inventory.consume("V1", "C9")

    assert result.success is True
    assert result.document_id == "V1-b"
    assert store.get("asignacion_diaria", "V1").data["productos"] == {"0": {"C1": {"estado_venta": "assigned"}}}


def test_fallback_scan_skips_non_consumable_entries(store, inventory) -> None:
    """Verify the scan continues past sold entries to the next document."""

    assign_units(store, "V1", ["C7"], document_id="V1-a", state="sold")
    assign_units(store, "V1", ["C7"], document_id="V1-b")

    result = inventory.consume("V1", "C7")

    assert result.success is True
    assert result.document_id == "V1-b"
    assert store.get("asignacion_diaria", "V1-a").data["productos"] == {"0": {"C7": {"estado_venta": "sold"}}}


def test_fallback_scan_ignores_other_sellers(store, inventory) -> None:
    assign_units(store, "V2", ["C1"])

    result = inventory.consume("V1", "C1")

    assert result.success is False
    assert store.get("asignacion_diaria", "V2").data["productos"] != {}


def test_consume_requires_both_ids(inventory) -> None:
    assert inventory.consume(None, "C1").success is False
    assert inventory.consume("V1", "").success is False


def test_is_assigned_checks_primary_regardless_of_state(store, inventory) -> None:
    """Verify the read-only check matches any state and modifies nothing."""

    assign_units(store, "V1", ["C1"], state="sold")
    assign_units(store, "V1", ["C2"], document_id="V1-b")
    before = store.get("asignacion_diaria", "V1")

    assert inventory.is_assigned("V1", "C1") is True
    assert inventory.is_assigned("V1", "C2") is False
    assert inventory.is_assigned("V9", "C1") is False
    assert inventory.is_assigned(None, "C1") is False
    assert inventory.is_assigned("V1", None) is False
    assert store.get("asignacion_diaria", "V1") == before


class _FailingStore(InMemoryDocumentStore):
    def get(self, collection, doc_id):
        raise StoreError("store unavailable")


def test_is_assigned_treats_store_failure_as_mismatch() -> None:
    store = _FailingStore()
    service = InventoryService(AssignmentRepository(store), HistoryRepository(store))

    assert service.is_assigned("V1", "C1") is False


class _RacingStore(InMemoryDocumentStore):
    """Lets another request consume the unit between our read and our write."""

    def __init__(self):
        super().__init__()
        self.raced = False

    def compare_and_set(self, collection, doc_id, data, expected_version):
        if collection == "asignacion_diaria" and not self.raced:
            self.raced = True
            rival = InventoryService(AssignmentRepository(self), HistoryRepository(self))
            assert rival.consume("V1", "C1").success is True
        return super().compare_and_set(collection, doc_id, data, expected_version)


def test_consume_loses_race_without_double_consumption() -> None:
    """Verify a conflicting writer wins once and the loser re-reads and fails."""

    store = _RacingStore()
    assign_units(store, "V1", ["C1", "C2"])
    service = InventoryService(AssignmentRepository(store), HistoryRepository(store))

    result = service.consume("V1", "C1")

    assert result.success is False
    assert store.get("historial_ventas", "V1").data["productos"][0].keys() == {"C1"}
    assert len(store.get("historial_ventas", "V1").data["productos"]) == 1
    assert store.get("asignacion_diaria", "V1").data["productos"] == {"0": {"C2": {"estado_venta": "assigned"}}}


def test_concurrent_consumers_only_one_succeeds(store) -> None:
    """Verify many threads racing for one unit produce exactly one success."""

    assign_units(store, "V1", ["C1"])
    results = []
    lock = threading.Lock()

    def worker():
        service = InventoryService(AssignmentRepository(store), HistoryRepository(store), max_attempts=10)
        outcome = service.consume("V1", "C1")
        with lock:
            results.append(outcome.success)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert results.count(True) == 1
    assert len(store.get("historial_ventas", "V1").data["productos"]) == 1


class _HistoryDownStore(InMemoryDocumentStore):
    def compare_and_set(self, collection, doc_id, data, expected_version):
        if collection == "historial_ventas":
            raise StoreError("history unavailable")
        return super().compare_and_set(collection, doc_id, data, expected_version)


def test_history_failure_after_claim_still_reports_consumption() -> None:
    """Verify the claimed unit stays consumed when the history write fails."""

    store = _HistoryDownStore()
    assign_units(store, "V1", ["C1"])
    service = InventoryService(AssignmentRepository(store), HistoryRepository(store))

    assert service.consume("V1", "C1").success is True
    assert store.get("asignacion_diaria", "V1").data["productos"] == {}
    assert service.consume("V1", "C1").success is False


class _AlwaysConflictingStore(InMemoryDocumentStore):
    def compare_and_set(self, collection, doc_id, data, expected_version):
        raise VersionConflictError(collection, doc_id, expected_version)


def test_consume_gives_up_after_repeated_conflicts() -> None:
    store = _AlwaysConflictingStore()
    assign_units(store, "V1", ["C1"])
    service = InventoryService(AssignmentRepository(store), HistoryRepository(store), max_attempts=2)

    result = service.consume("V1", "C1")

    assert result.success is False
    assert result.reason == "Concurrent update"
