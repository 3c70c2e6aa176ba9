"""
Run one reconciliation pass from the shell.

Flags duplicate and invalid sales exactly like GET /verificar and prints the
summary.

Usage:
    python scripts/reconcile_sales.py
    python scripts/reconcile_sales.py --json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from api.logging_config import setup_logging
from repositories.assignment_repository import AssignmentRepository
from repositories.client import create_store, load_settings
from repositories.document_store import DocumentStore
from repositories.history_repository import HistoryRepository
from repositories.sale_repository import SaleRepository
from services.inventory_service import InventoryService
from services.reconciliation_service import ReconciliationService, ReconciliationSummary


def build_service(store: DocumentStore) -> ReconciliationService:
    inventory = InventoryService(AssignmentRepository(store), HistoryRepository(store))
    return ReconciliationService(SaleRepository(store), inventory)


def summary_to_dict(summary: ReconciliationSummary) -> dict:
    return {
        "total": summary.total,
        "suspicious": summary.suspicious_count,
        "deleted": summary.deleted,
        "inventory_mismatches": [
            {"folio": m.folio, "unit_id": m.unit_id, "seller_id": m.seller_id}
            for m in summary.mismatches
        ],
        "flagged": [
            {"id": sale.sale_id, "folio": sale.folio, "reason": sale.error}
            for sale in summary.suspicious
        ],
    }


def print_summary(summary: ReconciliationSummary) -> None:
    print("=" * 50)
    print("RECONCILIATION SUMMARY")
    print("=" * 50)
    print(f"Sales reviewed:            {summary.total}")
    print(f"Quarantined:               {summary.suspicious_count}")
    print(f"Deleted from source:       {summary.deleted}")
    print(f"Inventory mismatches:      {summary.mismatch_count}")
    print("=" * 50)

    if summary.suspicious:
        print("\nFlagged sales:")
        print("-" * 50)
        for sale in summary.suspicious:
            print(f"  {sale.folio!s:<12} unit={sale.unit_id!s:<10} {sale.error}")


def main(argv: Optional[List[str]] = None, store: Optional[DocumentStore] = None) -> int:
    parser = argparse.ArgumentParser(description="Reconcile the day's sales against seller assignments.")
    parser.add_argument("--json", action="store_true", help="Print the summary as JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log at DEBUG level")
    args = parser.parse_args(argv)

    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    if store is None:
        try:
            store = create_store(load_settings())
        except RuntimeError as e:
            print(f"[ERROR] {e}", file=sys.stderr)
            return 2

    summary = build_service(store).reconcile()

    if args.json:
        print(json.dumps(summary_to_dict(summary), indent=2, default=str))
    else:
        print_summary(summary)
    return 0


if __name__ == "__main__":
    sys.exit(main())
