"""
Reconciliation API Endpoints.

Endpoint for running a reconciliation pass over the day's sales.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.dependencies import get_reconciliation_service
from api.models import ErrorResponse, MismatchDetail, ReconciliationResponse
from services.reconciliation_service import ReconciliationService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/verificar",
    response_model=ReconciliationResponse,
    responses={500: {"model": ErrorResponse}},
    summary="Reconcile Sales",
    description="Flag duplicate and invalid sales and move them to quarantine."
)
def verify_sales(service: ReconciliationService = Depends(get_reconciliation_service)):
    """
    Run a reconciliation pass over the whole sales collection.

    **Process:**
    1. Reads every sale
    2. Keeps the oldest sale per unit; newer duplicates are quarantined
    3. Checks required fields, price bounds and the seller's assignment
    4. Quarantines flagged sales; deletes those with missing fields or bad prices

    **Success response:**
    ```json
    {
      "ok": true,
      "total": 120,
      "sospechosas": 3,
      "inventario_no_coincide": 1,
      "detalles_inventario_no_coincide": [
        {"folio": "F-1042", "id_cilindro": "C100", "id_vendedor": "V1"}
      ]
    }
    ```
    """
    try:
        summary = service.reconcile()
    except Exception as e:
        logger.exception("Reconciliation failed")
        return JSONResponse(status_code=500, content=ErrorResponse(error=str(e)).model_dump())

    return ReconciliationResponse(
        total=summary.total,
        sospechosas=summary.suspicious_count,
        inventario_no_coincide=summary.mismatch_count,
        detalles_inventario_no_coincide=[
            MismatchDetail(
                folio=mismatch.folio,
                id_cilindro=mismatch.unit_id,
                id_vendedor=mismatch.seller_id,
            )
            for mismatch in summary.mismatches
        ],
    )
