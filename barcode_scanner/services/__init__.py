"""
==============================================================================
Services Package - Business Logic Layer
==============================================================================

Service classes implementing the product/history service logic.

Architecture Pattern: Service Layer
----------------------------------
    ┌─────────────────┐
    │   API Router    │
    └────────┬────────┘
             │
    ┌────────▼────────┐
    │    Service      │  ← Business Logic
    └────────┬────────┘
             │
    ┌────────▼────────┐
    │  ORM / Catalog  │  ← Data Access
    └─────────────────┘

Usage:
------
    from barcode_scanner.services import BarcodeService

    service = BarcodeService(db_session, get_catalog())
    product, source = service.lookup_or_record("5449000000996")

==============================================================================
"""

from .barcode_service import BarcodeService

__all__ = [
    "BarcodeService",
]
