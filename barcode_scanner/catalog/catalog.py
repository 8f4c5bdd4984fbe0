"""
==============================================================================
Product Catalog Module
==============================================================================

Read-only product catalog backing barcode lookups.

Features:
---------
- JSON-based product storage with nested categories
- Wildcard barcode matching (substring matching)
- Category listing and name search

JSON Structure:
--------------
{
  "snacks": {
    "Biscuits": [
      {"name": "Digestive Biscuits", "barcode": "5000168001142",
       "brand": "McVitie's", "image_url": "https://..."},
      ...
    ]
  }
}

An item may carry its own "categories" string; otherwise it is derived
as "<main category>, <subcategory>".

==============================================================================
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from barcode_scanner.catalog.models import Product


# Module logger
logger = logging.getLogger(__name__)


class ProductCatalog:
    """
    Product catalog with category structure and search.

    Attributes:
        products: List of all products
        categories: Nested category structure

    Example:
        >>> catalog = ProductCatalog(Path("data/products.json"))
        >>> product = catalog.find_by_scanned_barcode("05000168001142")
    """

    def __init__(self, products_file: Path) -> None:
        """
        Initialize catalog from JSON file.

        Args:
            products_file: Path to products.json
        """
        self._products_file = products_file
        self._products: List[Product] = []
        self._by_barcode: Dict[str, Product] = {}
        self._categories: Dict[str, Dict[str, List[Product]]] = {}

        self._load()

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def products(self) -> List[Product]:
        """Get all products."""
        return self._products.copy()

    # =========================================================================
    # LOADING
    # =========================================================================

    def _load(self) -> None:
        """Load products from JSON file."""
        try:
            with self._products_file.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.error(f"Products file not found: {self._products_file}")
            raise
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON: {e}")
            raise

        self._products.clear()
        self._categories.clear()

        for main_category, subcategories in data.items():
            if not isinstance(subcategories, dict):
                logger.warning(f"Skipping invalid category: {main_category}")
                continue

            self._categories[main_category] = {}

            for subcategory, products_list in subcategories.items():
                if not isinstance(products_list, list):
                    continue

                category_products = []

                for item in products_list:
                    if "name" not in item or "barcode" not in item:
                        continue

                    product = Product(
                        name=item["name"],
                        barcode=str(item["barcode"]),
                        brand=item.get("brand", ""),
                        categories=item.get("categories") or f"{main_category}, {subcategory}",
                        image_url=item.get("image_url", ""),
                        main_category=main_category,
                        subcategory=subcategory
                    )

                    category_products.append(product)
                    self._products.append(product)

                self._categories[main_category][subcategory] = category_products

        self._build_indexes()

        logger.info(f"✅ Loaded {len(self._products)} products from {len(self._categories)} categories")

    def _build_indexes(self) -> None:
        """Build lookup indexes."""
        self._by_barcode = {product.barcode: product for product in self._products}

    # =========================================================================
    # WILDCARD MATCHING
    # =========================================================================

    @staticmethod
    def match_barcode_wildcard(scanned: str, stored: str) -> bool:
        """
        Check if a scanned barcode contains a stored barcode as substring.

        Lets a long scanned code (e.g. with a leading zero or a GS1
        prefix) resolve to a shorter catalog barcode.

        Example:
            >>> ProductCatalog.match_barcode_wildcard("05000168001142", "5000168001142")
            True
        """
        return stored in scanned

    # =========================================================================
    # SEARCH METHODS
    # =========================================================================

    def find_by_barcode(self, barcode: str, wildcard: bool = False) -> Optional[Product]:
        """
        Find product by barcode.

        Args:
            barcode: Barcode to search
            wildcard: If True, use substring matching

        Returns:
            Product or None
        """
        if not wildcard:
            return self._by_barcode.get(barcode)

        for stored, product in self._by_barcode.items():
            if self.match_barcode_wildcard(barcode, stored):
                logger.debug(f"Wildcard match: {barcode} → {stored}")
                return product

        return None

    def find_by_scanned_barcode(self, scanned: str) -> Optional[Product]:
        """Find product by scanned barcode (tries exact, then wildcard)."""
        product = self.find_by_barcode(scanned, wildcard=False)
        if product:
            return product
        return self.find_by_barcode(scanned, wildcard=True)

    def search(self, query: str, limit: int = 10) -> List[Product]:
        """
        Search products by name or brand.

        Args:
            query: Search query
            limit: Maximum results
        """
        query = query.lower().strip()
        if not query:
            return []

        results = []
        for product in self._products:
            if query in product.name.lower() or query in product.brand.lower():
                results.append(product)
                if len(results) >= limit:
                    break

        return results

    # =========================================================================
    # UTILITY METHODS
    # =========================================================================

    def get_categories(self) -> Dict[str, List[str]]:
        """Get all categories and subcategories."""
        return {
            main_cat: list(subcats.keys())
            for main_cat, subcats in self._categories.items()
        }


# =============================================================================
# SINGLETON INSTANCE MANAGEMENT
# =============================================================================

_catalog_instance: Optional[ProductCatalog] = None


def get_catalog() -> Optional[ProductCatalog]:
    """Get the global catalog instance."""
    return _catalog_instance


def init_catalog(products_file: Path) -> ProductCatalog:
    """
    Initialize the global catalog instance.

    Args:
        products_file: Path to products.json
    """
    global _catalog_instance
    _catalog_instance = ProductCatalog(products_file)
    return _catalog_instance
