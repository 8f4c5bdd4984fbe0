"""
==============================================================================
Utilities Package
==============================================================================

Modules:
--------
- validators: Barcode validation

==============================================================================
"""

from .validators import BarcodeValidator

__all__ = [
    "BarcodeValidator",
]
