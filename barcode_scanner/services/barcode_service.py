"""
==============================================================================
Barcode Service Module
==============================================================================

Business logic of the product/history service.

This module implements:
- BarcodeService: lookup-or-record of products and the append-only
  barcode history

Lookup Order:
------------
1. Product data sent with the request is saved (upsert) and returned
2. Products saved by earlier requests
3. The read-only JSON catalog (exact barcode, then wildcard)

History:
-------
Entries are appended with a nanosecond timestamp that never goes below
the timestamp of the previous entry, so history read back in append order
is also in timestamp order.

==============================================================================
"""

from __future__ import annotations

import logging
import time
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from barcode_scanner.catalog import ProductCatalog
from barcode_scanner.core import exceptions
from barcode_scanner.db.models import BarcodeEntry, SavedProduct
from barcode_scanner.schemas.barcode import ProductPayload


# Module logger
logger = logging.getLogger(__name__)


class BarcodeService:
    """
    Service for product lookups and barcode history.

    Attributes:
        _db: Database session
        _catalog: Optional read-only product catalog

    Example:
        >>> service = BarcodeService(db_session, catalog)
        >>> product, source = service.lookup_or_record("5449000000996")
        >>> entry = service.record("5449000000996")
        >>> history = service.get_history()
    """

    def __init__(self, db: Session, catalog: Optional[ProductCatalog] = None) -> None:
        """
        Initialize barcode service.

        Args:
            db: SQLAlchemy database session
            catalog: Product catalog (None when no catalog file is loaded)
        """
        self._db = db
        self._catalog = catalog

    # =========================================================================
    # PRODUCT LOOKUP
    # =========================================================================

    def lookup(self, barcode: str) -> Tuple[ProductPayload, str]:
        """
        Resolve a barcode without saving anything.

        Returns:
            Tuple of (product, source) where source is "saved" or "catalog"

        Raises:
            AppException: PRODUCT_NOT_FOUND
        """
        saved = self._db.get(SavedProduct, barcode)
        if saved:
            return ProductPayload.model_validate(saved), "saved"

        if self._catalog:
            product = self._catalog.find_by_scanned_barcode(barcode)
            if product:
                return ProductPayload(**product.to_dict()), "catalog"

        logger.info(f"🔍 No product for barcode {barcode}")
        raise exceptions.product_not_found(barcode)

    def lookup_or_record(
        self,
        barcode: str,
        product: Optional[ProductPayload] = None
    ) -> Tuple[ProductPayload, str]:
        """
        Save the given product data under the barcode, or look it up.

        Args:
            barcode: Validated barcode
            product: Product data to save (optional)

        Returns:
            Tuple of (product, source)

        Raises:
            AppException: PRODUCT_NOT_FOUND, SAVE_FAILED
        """
        if product is None:
            return self.lookup(barcode)

        try:
            saved = self._db.get(SavedProduct, barcode)
            if saved is None:
                saved = SavedProduct(barcode=barcode)
                self._db.add(saved)

            saved.name = product.name
            saved.brand = product.brand
            saved.categories = product.categories
            saved.image_url = product.image_url

            self._db.commit()
        except SQLAlchemyError as e:
            self._db.rollback()
            logger.error(f"❌ Failed to save product {barcode}: {e}")
            raise exceptions.save_failed(barcode)

        logger.info(f"💾 Saved product {barcode}: {product.name}")
        return product, "saved"

    # =========================================================================
    # HISTORY
    # =========================================================================

    def record(self, barcode: str) -> BarcodeEntry:
        """
        Append a barcode to the history.

        Raises:
            AppException: SAVE_FAILED
        """
        try:
            last = self._db.query(func.max(BarcodeEntry.timestamp)).scalar()
            timestamp = time.time_ns()
            if last is not None and timestamp < last:
                timestamp = last

            entry = BarcodeEntry(barcode=barcode, timestamp=timestamp)
            self._db.add(entry)
            self._db.commit()
        except SQLAlchemyError as e:
            self._db.rollback()
            logger.error(f"❌ Failed to record barcode {barcode}: {e}")
            raise exceptions.save_failed(barcode)

        logger.info(f"📝 Recorded barcode {barcode}")
        return entry

    def get_history(self, limit: Optional[int] = None) -> List[BarcodeEntry]:
        """
        Recorded barcodes in append order.

        Args:
            limit: Only return the most recent N entries (still in append order)
        """
        query = self._db.query(BarcodeEntry)

        if limit is not None:
            newest = query.order_by(BarcodeEntry.id.desc()).limit(limit).all()
            return list(reversed(newest))

        return query.order_by(BarcodeEntry.id.asc()).all()
