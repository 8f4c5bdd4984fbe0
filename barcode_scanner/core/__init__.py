"""
==============================================================================
Core Package
==============================================================================

Core infrastructure shared by the scanner, the remote client and the
product/history service.

Modules:
--------
- exceptions: AppException class and error factory functions
- dependencies: FastAPI dependency injection functions

Usage:
------
    from barcode_scanner.core import exceptions
    raise exceptions.camera_access_denied()

==============================================================================
"""

from .exceptions import (
    AppException,
    register_exception_handlers,
)

__all__ = [
    "AppException",
    "register_exception_handlers",
]
