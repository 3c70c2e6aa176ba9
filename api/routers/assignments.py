"""
Assignment API Endpoints.

Endpoints for inspecting a seller's assignment and validating device records
against it.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.dependencies import get_assignment_repository, get_record_validation_service
from api.models import (
    AssignmentResponse,
    ErrorResponse,
    NotFoundResponse,
    RecordValidationItem,
    RecordValidationRequest,
)
from repositories.assignment_repository import AssignmentRepository
from services.record_validation_service import RecordValidationService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/ver-asignacion/{seller_id}",
    response_model=AssignmentResponse,
    responses={404: {"model": NotFoundResponse}, 500: {"model": ErrorResponse}},
    summary="Get Seller Assignment",
    description="Return the stored assignment document for a seller."
)
def get_assignment(
    seller_id: str,
    assignments: AssignmentRepository = Depends(get_assignment_repository),
):
    """
    Fetch one seller's assignment document as stored.

    **Example usage:**
    ```
    GET /ver-asignacion/V1
    ```
    """
    try:
        document = assignments.get_document(seller_id)
    except Exception as e:
        logger.exception("Failed to fetch assignment | seller=%s", seller_id)
        return JSONResponse(status_code=500, content=ErrorResponse(error=str(e)).model_dump())

    if document is None:
        return JSONResponse(
            status_code=404,
            content=NotFoundResponse(mensaje=f"No assignment found for {seller_id}").model_dump(),
        )

    return AssignmentResponse(id=document.id, asignacion=document.data)


@router.post(
    "/validar-informacion",
    response_model=List[RecordValidationItem],
    responses={500: {"model": ErrorResponse}},
    summary="Validate Device Records",
    description="Validate raw device records and consume the units they name."
)
def validate_records(
    request: RecordValidationRequest,
    service: RecordValidationService = Depends(get_record_validation_service),
):
    """
    Validate `|`-separated records; each valid record consumes its unit.

    **Example request:**
    ```json
    {"data": "IDCILINDRO:C100;IDVENDEDOR:V1|IDCILINDRO:C101;IDVENDEDOR:V1"}
    ```

    **Response:**
    ```json
    [
      {"id_cilindro": "C100", "id_vendedor": "V1", "estado": true},
      {"id_cilindro": "C101", "id_vendedor": "V1", "estado": false}
    ]
    ```
    """
    try:
        results = service.validate(request.data)
    except Exception as e:
        logger.exception("Record validation failed")
        return JSONResponse(status_code=500, content=ErrorResponse(error=str(e)).model_dump())

    return [
        RecordValidationItem(
            id_cilindro=result.unit_id,
            id_vendedor=result.seller_id,
            estado=result.valid,
        )
        for result in results
    ]
