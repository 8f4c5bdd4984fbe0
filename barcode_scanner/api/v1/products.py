"""
==============================================================================
Product Endpoints
==============================================================================

Lookup-or-record of product data keyed by barcode, plus catalog browsing.

==============================================================================
"""

from fastapi import APIRouter, Depends, Query

from barcode_scanner.core import exceptions
from barcode_scanner.core.dependencies import get_barcode_service
from barcode_scanner.catalog.catalog import get_catalog
from barcode_scanner.schemas.barcode import ProductResponse, ScanRequest
from barcode_scanner.services.barcode_service import BarcodeService
from barcode_scanner.utils.validators import BarcodeValidator


router = APIRouter(prefix="/products", tags=["Products"])


class ProductController:
    """Controller for product operations."""

    def __init__(self, service: BarcodeService):
        self._service = service

    def scan(self, data: ScanRequest) -> ProductResponse:
        """Save the sent product data, or look the barcode up."""
        product, source = self._service.lookup_or_record(data.barcode, data.product)
        return ProductResponse(barcode=data.barcode, source=source, product=product)

    def get_by_barcode(self, barcode: str) -> ProductResponse:
        """Look a barcode up without saving."""
        is_valid, normalized, error = BarcodeValidator().validate(barcode)
        if not is_valid:
            raise exceptions.invalid_barcode(barcode, error)

        product, source = self._service.lookup(normalized)
        return ProductResponse(barcode=normalized, source=source, product=product)


@router.post("/scan", response_model=ProductResponse)
async def scan_barcode(
    data: ScanRequest,
    service: BarcodeService = Depends(get_barcode_service)
):
    """Look up or record product data for a barcode."""
    return ProductController(service).scan(data)


@router.get("/categories")
async def get_categories():
    """Get all catalog categories and subcategories."""
    catalog = get_catalog()
    return {
        "success": True,
        "categories": catalog.get_categories() if catalog else {}
    }


@router.get("/search")
async def search_products(
    q: str = Query(..., min_length=1),
    limit: int = Query(20, ge=1, le=100)
):
    """Search catalog products by name or brand."""
    catalog = get_catalog()
    matched = catalog.search(q, limit=limit) if catalog else []

    return {
        "success": True,
        "query": q,
        "total": len(matched),
        "products": [
            {"barcode": p.barcode, **p.to_dict()}
            for p in matched
        ]
    }


@router.get("/{barcode}", response_model=ProductResponse)
async def get_product(
    barcode: str,
    service: BarcodeService = Depends(get_barcode_service)
):
    """Get product by barcode."""
    return ProductController(service).get_by_barcode(barcode)
