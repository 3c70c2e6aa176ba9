"""
Domain: duplicate detection across a batch of sales.

Contract excerpts implemented here:
- Sales sharing a physical unit id are duplicates of each other.
- The oldest sale (smallest timestamp, missing = 0) is the canonical one.
- Ties keep the sale that arrived first.
- Every losing sale is flagged individually; sales without a scalar unit id are
  never grouped or flagged.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from .sale import Sale

DUPLICATE_REASON: str = "Duplicate"
DISPLACED_DUPLICATE_REASON: str = "Duplicate (more recent)"


@dataclass(frozen=True, slots=True)
class DuplicateResolution:
    """
    Outcome of duplicate resolution.

    winners: one sale per unit id, in the order each unit was first seen,
             followed by every sale lacking a unit id (in input order).
    duplicates: losing sales in the order they were flagged, each carrying
                its duplicate reason.
    """

    winners: List[Sale]
    duplicates: List[Sale]


def _grouping_key(unit_id: Any) -> Optional[str]:
    # Only scalar ids group; lists, maps and booleans are passed through
    if isinstance(unit_id, bool) or not isinstance(unit_id, (str, int)):
        return None
    key = str(unit_id)
    return key or None


def resolve_duplicates(sales: Iterable[Sale]) -> DuplicateResolution:
    """Pick one canonical sale per unit id, oldest first."""

    winners_by_unit: Dict[str, Sale] = {}
    without_unit: List[Sale] = []
    duplicates: List[Sale] = []

    for sale in sales:
        unit_id = _grouping_key(sale.unit_id)
        if unit_id is None:
            without_unit.append(sale)
            continue

        current = winners_by_unit.get(unit_id)
        if current is None:
            winners_by_unit[unit_id] = sale
            continue

        if sale.sold_at_seconds < current.sold_at_seconds:
            duplicates.append(current.with_error(DISPLACED_DUPLICATE_REASON))
            winners_by_unit[unit_id] = sale
        else:
            duplicates.append(sale.with_error(DUPLICATE_REASON))

    return DuplicateResolution(
        winners=list(winners_by_unit.values()) + without_unit,
        duplicates=duplicates,
    )


__all__ = [
    "DuplicateResolution",
    "resolve_duplicates",
    "DUPLICATE_REASON",
    "DISPLACED_DUPLICATE_REASON",
]
