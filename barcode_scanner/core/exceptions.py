"""
Application Exception Handling

Single AppException class for all session-boundary errors, shared by the
scanner session, the remote client and the FastAPI service.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


# Module logger
logger = logging.getLogger(__name__)


class AppException(Exception):
    """
    Unified application exception for all error scenarios.

    Usage:
        raise AppException("Product not found", "PRODUCT_NOT_FOUND", 404)
        raise AppException("Camera busy", "CAMERA_ACCESS_DENIED", 403, {"index": 0})

    Error Codes:
        Capture:
            - CAMERA_ACCESS_DENIED (403)

        Scan session:
            - INVALID_SCAN_STATE (409)
            - INVALID_BARCODE (422)

        Remote service (client side):
            - REMOTE_LOOKUP_FAILED (502)
            - REMOTE_RECORD_FAILED (502)
            - REMOTE_FETCH_HISTORY_FAILED (502)

        Product/history service:
            - PRODUCT_NOT_FOUND (404)
            - SAVE_FAILED (500)
            - INTERNAL_ERROR (500)
    """

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize application exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code (e.g., "PRODUCT_NOT_FOUND")
            status_code: HTTP status code (default: 400)
            details: Additional error context (optional)
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        error_dict = {
            "success": False,
            "error": {
                "code": self.code,
                "message": self.message,
                "timestamp": self.timestamp
            }
        }

        if self.details:
            error_dict["error"]["details"] = self.details

        return error_dict


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Convert AppException to consistent JSON error response."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log an unexpected error and answer with INTERNAL_ERROR."""
    logger.error(f"❌ Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    error = internal_error()
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_dict()
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


# ============================================
# CONVENIENCE FACTORY FUNCTIONS
# ============================================

def camera_access_denied(reason: str = "Failed to access camera") -> AppException:
    """Create camera access denied exception."""
    return AppException(reason, "CAMERA_ACCESS_DENIED", 403)


def invalid_scan_state(current: str, expected: str) -> AppException:
    """Create invalid scan session state exception."""
    return AppException(
        f"Invalid scan state. Current: {current}, Expected: {expected}",
        "INVALID_SCAN_STATE",
        409,
        {"current_state": current, "expected_state": expected}
    )


def invalid_barcode(barcode: str, reason: str) -> AppException:
    """Create invalid barcode exception."""
    return AppException(
        f"Invalid barcode: {reason}",
        "INVALID_BARCODE",
        422,
        {"barcode": barcode, "reason": reason}
    )


def remote_lookup_failed(barcode: str, reason: str) -> AppException:
    """Create remote lookup failure exception."""
    return AppException(
        f"Lookup failed: {reason}",
        "REMOTE_LOOKUP_FAILED",
        502,
        {"barcode": barcode}
    )


def remote_record_failed(barcode: str, reason: str) -> AppException:
    """Create remote record failure exception."""
    return AppException(
        f"Record failed: {reason}",
        "REMOTE_RECORD_FAILED",
        502,
        {"barcode": barcode}
    )


def remote_fetch_history_failed(reason: str) -> AppException:
    """Create remote history fetch failure exception."""
    return AppException(
        f"Fetching history failed: {reason}",
        "REMOTE_FETCH_HISTORY_FAILED",
        502
    )


def product_not_found(barcode: Optional[str] = None) -> AppException:
    """Create product not found exception."""
    details = {"barcode": barcode} if barcode else {}
    return AppException("Product not found", "PRODUCT_NOT_FOUND", 404, details)


def save_failed(barcode: str) -> AppException:
    """Create product save failure exception."""
    return AppException(
        "Failed to save product",
        "SAVE_FAILED",
        500,
        {"barcode": barcode}
    )


def internal_error(message: str = "Internal server error") -> AppException:
    """Create internal server error exception."""
    return AppException(message, "INTERNAL_ERROR", 500)
