"""
FastAPI dependencies.

The document store is created once per process (see api.main) and kept on
`app.state`; repositories and services are cheap and built per request.
"""

from __future__ import annotations

from fastapi import Depends, Request

from repositories.assignment_repository import AssignmentRepository
from repositories.document_store import DocumentStore
from repositories.history_repository import HistoryRepository
from repositories.sale_repository import SaleRepository
from services.inventory_service import InventoryService
from services.reconciliation_service import ReconciliationService
from services.record_validation_service import RecordValidationService


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_assignment_repository(store: DocumentStore = Depends(get_store)) -> AssignmentRepository:
    return AssignmentRepository(store)


def get_inventory_service(
    store: DocumentStore = Depends(get_store),
    assignments: AssignmentRepository = Depends(get_assignment_repository),
) -> InventoryService:
    return InventoryService(assignments, HistoryRepository(store))


def get_reconciliation_service(
    store: DocumentStore = Depends(get_store),
    inventory: InventoryService = Depends(get_inventory_service),
) -> ReconciliationService:
    return ReconciliationService(SaleRepository(store), inventory)


def get_record_validation_service(
    inventory: InventoryService = Depends(get_inventory_service),
) -> RecordValidationService:
    return RecordValidationService(inventory)
