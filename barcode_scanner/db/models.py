"""
==============================================================================
SQLAlchemy ORM Models Module
==============================================================================

ORM models for the product/history service.

This module defines:
- SavedProduct: Product data stored through lookup-or-record
- BarcodeEntry: Append-only log of recorded barcodes

Database Schema:
---------------

    ┌─────────────────────────────────────────────────────────────────┐
    │                           products                               │
    ├─────────────────────────────────────────────────────────────────┤
    │ barcode (VARCHAR, PK)                                           │
    │ name (VARCHAR, NOT NULL)                                        │
    │ brand (VARCHAR, DEFAULT '')                                     │
    │ categories (VARCHAR, DEFAULT '')                                │
    │ image_url (VARCHAR, DEFAULT '')                                 │
    │ created_at (DATETIME, DEFAULT now)                              │
    │ updated_at (DATETIME, AUTO UPDATE)                              │
    └─────────────────────────────────────────────────────────────────┘

    ┌─────────────────────────────────────────────────────────────────┐
    │                        barcode_entries                           │
    ├─────────────────────────────────────────────────────────────────┤
    │ id (INTEGER, PK, AUTO INCREMENT)  ← append order                │
    │ barcode (VARCHAR, NOT NULL, INDEX)                              │
    │ timestamp (BIGINT, NOT NULL)      ← nanoseconds since epoch     │
    └─────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, Column, DateTime, Integer, String, func

from barcode_scanner.db.database import Base


# =============================================================================
# PRODUCT MODEL
# =============================================================================

class SavedProduct(Base):
    """
    Product saved by a lookup-or-record call carrying product data.

    Saved products take precedence over the read-only JSON catalog.

    Attributes:
        barcode: Barcode the product is keyed by
        name: Product display name
        brand: Brand name
        categories: Comma separated category list
        image_url: Product image URL
    """

    __tablename__ = "products"

    barcode: str = Column(
        String(64),
        primary_key=True,
        doc="Barcode the product is keyed by"
    )

    name: str = Column(String(255), nullable=False, doc="Product display name")
    brand: str = Column(String(255), default="", nullable=False)
    categories: str = Column(String(1024), default="", nullable=False)
    image_url: str = Column(String(1024), default="", nullable=False)

    created_at: datetime = Column(
        DateTime,
        default=func.now(),
        nullable=False,
        doc="First save timestamp"
    )

    updated_at: datetime = Column(
        DateTime,
        default=func.now(),
        onupdate=func.now(),
        nullable=False,
        doc="Last modification timestamp"
    )

    def __repr__(self) -> str:
        return f"SavedProduct(barcode={self.barcode!r}, name={self.name!r})"


# =============================================================================
# BARCODE ENTRY MODEL
# =============================================================================

class BarcodeEntry(Base):
    """
    One recorded barcode.

    Entries are only ever appended; history is read back in id order.

    Attributes:
        id: Auto-increment id (append order)
        barcode: Recorded barcode
        timestamp: Record time in nanoseconds since the epoch
    """

    __tablename__ = "barcode_entries"

    id: int = Column(Integer, primary_key=True, autoincrement=True)

    barcode: str = Column(
        String(64),
        nullable=False,
        index=True,
        doc="Recorded barcode"
    )

    timestamp: int = Column(
        BigInteger,
        nullable=False,
        doc="Nanoseconds since the epoch"
    )

    def __repr__(self) -> str:
        return f"BarcodeEntry(id={self.id}, barcode={self.barcode!r}, timestamp={self.timestamp})"
