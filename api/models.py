"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
Field names follow the wire format the field devices and dashboards consume.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ============================================================================
# Reconciliation Models
# ============================================================================

class MismatchDetail(BaseModel):
    """A sale whose unit is not in the seller's assignment."""
    folio: Any = None
    id_cilindro: Any = None
    id_vendedor: Any = None


class ReconciliationResponse(BaseModel):
    """Summary of one reconciliation pass."""
    ok: bool = True
    total: int
    sospechosas: int
    inventario_no_coincide: int
    detalles_inventario_no_coincide: List[MismatchDetail]

    class Config:
        json_schema_extra = {
            "example": {
                "ok": True,
                "total": 120,
                "sospechosas": 3,
                "inventario_no_coincide": 1,
                "detalles_inventario_no_coincide": [
                    {"folio": "F-1042", "id_cilindro": "C100", "id_vendedor": "V1"}
                ]
            }
        }


# ============================================================================
# Assignment Models
# ============================================================================

class AssignmentResponse(BaseModel):
    """A seller's stored assignment document."""
    ok: bool = True
    id: str
    asignacion: Dict[str, Any]


class RecordValidationRequest(BaseModel):
    """Raw device lines to validate."""
    data: str = Field(
        ...,
        description="Records separated by '|', fields by ';', each field KEY:VALUE"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "data": "IDCILINDRO:C100;IDVENDEDOR:V1|IDCILINDRO:C101;IDVENDEDOR:V1"
            }
        }


class RecordValidationItem(BaseModel):
    """Validation outcome for one record."""
    id_cilindro: Optional[str] = None
    id_vendedor: Optional[str] = None
    estado: bool


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Unexpected failure."""
    ok: bool = False
    error: str


class NotFoundResponse(BaseModel):
    """Requested document does not exist."""
    ok: bool = False
    mensaje: str
