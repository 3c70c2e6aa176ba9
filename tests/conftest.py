"""
Pytest configuration.

This file adds the project root to the Python path so that tests
can import from the domain, repositories, services and api modules,
and provides an in-memory document store seeded per test.
"""

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add the project root to the Python path
# so tests can import domain, repositories, etc.
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from repositories.assignment_repository import AssignmentRepository  # noqa: E402
from repositories.history_repository import HistoryRepository  # noqa: E402
from repositories.memory_store import InMemoryDocumentStore  # noqa: E402
from repositories.sale_repository import SaleRepository  # noqa: E402
from services.inventory_service import InventoryService  # noqa: E402

FIXED_NOW = datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def inventory(store: InMemoryDocumentStore) -> InventoryService:
    return InventoryService(
        AssignmentRepository(store),
        HistoryRepository(store),
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def sales(store: InMemoryDocumentStore) -> SaleRepository:
    return SaleRepository(store)


def assign_units(store, seller_id, units, *, document_id=None, state="assigned"):
    """Write an assignment document holding `units` (ids or (id, attributes) pairs)."""

    products = {}
    for position, unit in enumerate(units):
        if isinstance(unit, tuple):
            unit_id, attributes = unit
        else:
            unit_id, attributes = unit, {"estado_venta": state}
        products[str(position)] = {unit_id: attributes}

    store.set(
        "asignacion_diaria",
        document_id or seller_id,
        {"id_vendedor": seller_id, "productos": products},
    )


def sale_document(unit_id="C1", seller_id="V1", folio="F1", price="150", address="Calle 1", seconds=100):
    data = {
        "ID_CILINDRO": unit_id,
        "ID_VENDEDOR": seller_id,
        "FOLIO": folio,
        "PRECIO": price,
        "DOMICILIO": address,
    }
    if seconds is not None:
        data["FECHA_VENTA"] = {"_seconds": seconds, "_nanoseconds": 0}
    return data
