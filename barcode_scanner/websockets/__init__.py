"""
==============================================================================
WebSocket Package
==============================================================================

Real-time WebSocket handlers for barcode scanning.

Handlers:
---------
- scanner: frame-by-frame decoding with confirm/cancel before lookup

==============================================================================
"""

from .scanner import router as scanner_router

__all__ = ["scanner_router"]
