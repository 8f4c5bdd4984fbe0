"""
==============================================================================
API v1 Endpoints
==============================================================================

Version 1 of the REST API.

Routers:
--------
- health: Health check endpoints
- products: Product lookup-or-record and catalog browsing
- barcodes: Barcode recording and history

==============================================================================
"""

from . import health, products, barcodes

__all__ = ["health", "products", "barcodes"]
