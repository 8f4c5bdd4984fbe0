"""
==============================================================================
Schemas Package - Pydantic Models
==============================================================================

Request and response schemas using Pydantic for validation.

==============================================================================
"""

from .barcode import (
    ProductPayload,
    ScanRequest,
    RecordRequest,
    ProductResponse,
    BarcodeEntrySchema,
    RecordResponse,
    HistoryResponse,
)

__all__ = [
    "ProductPayload",
    "ScanRequest",
    "RecordRequest",
    "ProductResponse",
    "BarcodeEntrySchema",
    "RecordResponse",
    "HistoryResponse",
]
