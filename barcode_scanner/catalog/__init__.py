"""
==============================================================================
Catalog Package - Product Reference Data
==============================================================================

Product catalog with nested category structure and wildcard barcode
matching.

Classes:
--------
- Product: Pydantic model for products
- ProductCatalog: Catalog manager with lookup and search

==============================================================================
"""

from .models import Product
from .catalog import ProductCatalog, get_catalog, init_catalog

__all__ = [
    "Product",
    "ProductCatalog",
    "get_catalog",
    "init_catalog",
]
