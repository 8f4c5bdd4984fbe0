"""
==============================================================================
FastAPI Dependencies Module
==============================================================================

Dependency injection for the product/history service routes.

Dependency Hierarchy:
--------------------
    ┌─────────────────┐     ┌─────────────────┐
    │    get_db()     │     │  get_catalog()  │
    └────────┬────────┘     └────────┬────────┘
             │                       │
             └──────────┬────────────┘
                        │
              ┌─────────▼──────────┐
              │get_barcode_service │
              └────────────────────┘

Usage Examples:
--------------
    @router.get("/barcodes/history")
    async def history(service: BarcodeService = Depends(get_barcode_service)):
        ...

==============================================================================
"""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.orm import Session

from barcode_scanner.catalog.catalog import get_catalog
from barcode_scanner.db.database import get_db
from barcode_scanner.services.barcode_service import BarcodeService


def get_barcode_service(db: Session = Depends(get_db)) -> BarcodeService:
    """Request-scoped BarcodeService bound to the current session and catalog."""
    return BarcodeService(db, get_catalog())
