"""
==============================================================================
Barcode History Endpoints
==============================================================================

Append-only barcode log: record a barcode, read the history back.

==============================================================================
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from barcode_scanner.core.dependencies import get_barcode_service
from barcode_scanner.schemas.barcode import (
    BarcodeEntrySchema,
    HistoryResponse,
    RecordRequest,
    RecordResponse,
)
from barcode_scanner.services.barcode_service import BarcodeService


router = APIRouter(prefix="/barcodes", tags=["Barcodes"])


@router.post("", response_model=RecordResponse)
async def record_barcode(
    data: RecordRequest,
    service: BarcodeService = Depends(get_barcode_service)
):
    """Append a barcode to the history."""
    entry = service.record(data.barcode)
    return RecordResponse(entry=BarcodeEntrySchema.model_validate(entry))


@router.get("/history", response_model=HistoryResponse)
async def get_history(
    limit: Optional[int] = Query(None, ge=1, le=1000),
    service: BarcodeService = Depends(get_barcode_service)
):
    """Recorded barcodes in append order."""
    entries = service.get_history(limit=limit)
    return HistoryResponse(
        total=len(entries),
        entries=[BarcodeEntrySchema.model_validate(e) for e in entries]
    )
