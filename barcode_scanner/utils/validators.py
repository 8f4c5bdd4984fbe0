"""
==============================================================================
Validation Utilities Module
==============================================================================

Validation for barcode strings entered manually, decoded from frames, or
received by the product/history service.

Validation Rules for Barcodes:
-----------------------------
- Surrounding whitespace is stripped
- Must not be empty
- Digits only
- At most 64 characters

==============================================================================
"""

from __future__ import annotations

import re
from typing import Optional, Tuple


class BarcodeValidator:
    """
    Validator for barcode strings.

    Example:
        >>> validator = BarcodeValidator()
        >>> is_valid, normalized, error = validator.validate(" 5449000000996 ")
        >>> print(normalized)
        '5449000000996'
    """

    PATTERN = re.compile(r"^\d+$")

    MAX_LENGTH = 64

    def validate(self, barcode: Optional[str]) -> Tuple[bool, Optional[str], Optional[str]]:
        """
        Validate and normalize a barcode.

        Args:
            barcode: Raw barcode input

        Returns:
            Tuple of (is_valid, normalized_barcode, error_message)
            - If valid: (True, "5449000000996", None)
            - If invalid: (False, None, "Error description")
        """
        if barcode is None:
            return False, None, "Barcode is required"

        barcode = barcode.strip()

        if not barcode:
            return False, None, "Barcode cannot be empty"

        if len(barcode) > self.MAX_LENGTH:
            return False, None, f"Barcode must be at most {self.MAX_LENGTH} characters"

        if not self.PATTERN.match(barcode):
            return False, None, "Barcode can only contain digits"

        return True, barcode, None

    def is_valid(self, barcode: Optional[str]) -> bool:
        """Quick validation check."""
        is_valid, _, _ = self.validate(barcode)
        return is_valid
