"""
==============================================================================
Barcode Schemas Module
==============================================================================

Request and response schemas shared by the product/history service and
its client.

Includes:
- ProductPayload: the product value returned by a lookup
- Scan (lookup-or-record) and record requests
- History entries and responses

==============================================================================
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from barcode_scanner.utils.validators import BarcodeValidator


_validator = BarcodeValidator()


def _validate_barcode(value: str) -> str:
    is_valid, normalized, error = _validator.validate(value)
    if not is_valid:
        raise ValueError(error)
    return normalized


# =============================================================================
# PRODUCT
# =============================================================================

class ProductPayload(BaseModel):
    """Product data as shown to the user. Immutable once received."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    name: str = Field(..., min_length=1, max_length=255)
    brand: str = Field(default="", max_length=255)
    categories: str = Field(default="", max_length=1024)
    image_url: str = Field(default="", max_length=1024)

    @field_validator("name", "brand", "categories", "image_url")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        return v.strip()


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class ScanRequest(BaseModel):
    """Lookup-or-record request, optionally carrying product data to save."""
    barcode: str
    product: Optional[ProductPayload] = None

    @field_validator("barcode")
    @classmethod
    def validate_barcode(cls, v: str) -> str:
        return _validate_barcode(v)


class RecordRequest(BaseModel):
    """Append a barcode to the history."""
    barcode: str

    @field_validator("barcode")
    @classmethod
    def validate_barcode(cls, v: str) -> str:
        return _validate_barcode(v)


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class ProductResponse(BaseModel):
    """Resolved product for a barcode."""
    success: bool = Field(default=True)
    barcode: str
    source: str = Field(..., description="saved or catalog")
    product: ProductPayload


class BarcodeEntrySchema(BaseModel):
    """One recorded barcode."""

    model_config = ConfigDict(from_attributes=True)

    barcode: str
    timestamp: int = Field(..., ge=0, description="Nanoseconds since the epoch")


class RecordResponse(BaseModel):
    success: bool = Field(default=True)
    entry: BarcodeEntrySchema


class HistoryResponse(BaseModel):
    """Recorded barcodes in append order."""
    success: bool = Field(default=True)
    total: int = Field(ge=0)
    entries: List[BarcodeEntrySchema]
