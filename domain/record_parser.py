"""
Domain: parsing of raw validation lines.

A validation payload looks like:

    IDCILINDRO:C100;IDVENDEDOR:V1|IDCILINDRO:C101;IDVENDEDOR:V1

Records are separated by `|`, fields by `;`, and each field is `KEY:VALUE`.
Parsing never raises; anything missing is reported as None.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

RECORD_SEPARATOR: str = "|"
FIELD_SEPARATOR: str = ";"
KEY_VALUE_SEPARATOR: str = ":"

UNIT_ID_KEY: str = "IDCILINDRO"
SELLER_ID_KEY: str = "IDVENDEDOR"


@dataclass(frozen=True, slots=True)
class SaleIntent:
    """Unit and seller named by one raw record."""

    unit_id: Optional[str]
    seller_id: Optional[str]


def parse_record(segment: str) -> SaleIntent:
    """
    Parse one `;`-delimited record.

    Keys are trimmed and upper-cased, values trimmed. Fields without a `:`
    are skipped. Only the first `:` splits key from value, so values may
    contain colons. Empty values count as absent; later duplicates of a key win.
    """

    values: dict[str, str] = {}
    for raw_field in (segment or "").split(FIELD_SEPARATOR):
        if KEY_VALUE_SEPARATOR not in raw_field:
            continue
        key, _, value = raw_field.partition(KEY_VALUE_SEPARATOR)
        values[key.strip().upper()] = value.strip()

    return SaleIntent(
        unit_id=values.get(UNIT_ID_KEY) or None,
        seller_id=values.get(SELLER_ID_KEY) or None,
    )


def split_records(payload: str) -> List[str]:
    """Split a payload into its records, dropping blank ones."""

    return [segment for segment in (payload or "").split(RECORD_SEPARATOR) if segment.strip()]


def parse_payload(payload: str) -> List[SaleIntent]:
    """Parse every non-blank record of a payload, in order."""

    return [parse_record(segment) for segment in split_records(payload)]


__all__ = [
    "SaleIntent",
    "parse_record",
    "parse_payload",
    "split_records",
    "UNIT_ID_KEY",
    "SELLER_ID_KEY",
]
