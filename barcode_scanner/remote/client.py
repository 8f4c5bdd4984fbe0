"""
==============================================================================
Remote Service Client
==============================================================================

Async HTTP client for the product/history service.

Two contracts are supported behind one `submit()` call, selected by the
client's mode:

    mode = "lookup"                      mode = "history"
    ┌───────────────────────────┐        ┌───────────────────────────┐
    │ POST /products/scan       │        │ POST /barcodes            │
    │   → Product               │        │ GET  /barcodes/history    │
    └───────────────────────────┘        │   → [BarcodeEntry, ...]   │
                                         └───────────────────────────┘

Error Mapping:
-------------
- lookup failure (not found, save failed, transport) → REMOTE_LOOKUP_FAILED
- record failure                                      → REMOTE_RECORD_FAILED
- history failure                                     → REMOTE_FETCH_HISTORY_FAILED
  (inside submit() it is only logged; the submission still succeeds)

Nothing is cached and nothing is retried.

==============================================================================
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

import httpx
from pydantic import BaseModel, Field, ValidationError

from barcode_scanner.config.settings import REMOTE_MODES
from barcode_scanner.core import exceptions
from barcode_scanner.core.exceptions import AppException
from barcode_scanner.remote.product_source import OpenFoodFactsSource
from barcode_scanner.schemas.barcode import (
    BarcodeEntrySchema,
    HistoryResponse,
    ProductPayload,
    ProductResponse,
    RecordResponse,
)


# Module logger
logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


class SubmissionResult(BaseModel):
    """Visible outcome of submitting a confirmed barcode."""
    barcode: str
    mode: str
    product: Optional[ProductPayload] = None
    source: Optional[str] = None
    history: Optional[List[BarcodeEntrySchema]] = None
    history_error: Optional[str] = Field(default=None, description="Set when history could not be fetched")


def _error_reason(response: httpx.Response) -> str:
    """Human-readable reason from an error response."""
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"

    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    if isinstance(body, dict) and body.get("detail"):
        return str(body["detail"])
    return f"HTTP {response.status_code}"


class RemoteServiceClient:
    """
    Client for the product/history service.

    Example:
        >>> async with RemoteServiceClient.from_settings(get_settings()) as remote:
        ...     result = await remote.submit("5449000000996")
        ...     print(result.product.name)
    """

    def __init__(
        self,
        base_url: str,
        mode: str = "lookup",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        product_source: Optional[OpenFoodFactsSource] = None
    ) -> None:
        if mode not in REMOTE_MODES:
            raise ValueError(f"Unsupported remote mode: {mode}")

        self._base_url = base_url.rstrip("/")
        self._mode = mode
        self._timeout = timeout
        self._transport = transport
        self._product_source = product_source
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(cls, settings, transport=None) -> "RemoteServiceClient":
        """Build a client from application Settings."""
        product_source = None
        if settings.fetch_external_product:
            product_source = OpenFoodFactsSource.from_settings(settings)

        return cls(
            settings.remote_base_url,
            mode=settings.remote_mode,
            timeout=settings.remote_timeout_seconds,
            transport=transport,
            product_source=product_source,
        )

    # =========================================================================
    # CONNECTION
    # =========================================================================

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url + API_PREFIX,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "RemoteServiceClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # =========================================================================
    # PRODUCT OPERATIONS
    # =========================================================================

    async def lookup_or_record(
        self,
        barcode: str,
        product_hint: Optional[ProductPayload] = None
    ) -> Tuple[ProductPayload, str]:
        """
        Look up a barcode, saving product_hint under it when given.

        Returns:
            Tuple of (product, source)

        Raises:
            AppException: REMOTE_LOOKUP_FAILED
        """
        payload = {"barcode": barcode}
        if product_hint is not None:
            payload["product"] = product_hint.model_dump()

        response = await self._request("POST", "/products/scan", json=payload,
                                       on_error=lambda r: exceptions.remote_lookup_failed(barcode, r))
        parsed = self._parse(response, ProductResponse,
                             on_error=lambda r: exceptions.remote_lookup_failed(barcode, r))
        return parsed.product, parsed.source

    async def lookup(self, barcode: str) -> Tuple[ProductPayload, str]:
        """
        Look up a barcode without saving.

        Raises:
            AppException: REMOTE_LOOKUP_FAILED
        """
        response = await self._request("GET", f"/products/{barcode}",
                                       on_error=lambda r: exceptions.remote_lookup_failed(barcode, r))
        parsed = self._parse(response, ProductResponse,
                             on_error=lambda r: exceptions.remote_lookup_failed(barcode, r))
        return parsed.product, parsed.source

    # =========================================================================
    # HISTORY OPERATIONS
    # =========================================================================

    async def record(self, barcode: str) -> BarcodeEntrySchema:
        """
        Append a barcode to the remote history.

        Raises:
            AppException: REMOTE_RECORD_FAILED
        """
        response = await self._request("POST", "/barcodes", json={"barcode": barcode},
                                       on_error=lambda r: exceptions.remote_record_failed(barcode, r))
        parsed = self._parse(response, RecordResponse,
                             on_error=lambda r: exceptions.remote_record_failed(barcode, r))
        return parsed.entry

    async def fetch_history(self, limit: Optional[int] = None) -> List[BarcodeEntrySchema]:
        """
        Recorded barcodes in the service's append order.

        Raises:
            AppException: REMOTE_FETCH_HISTORY_FAILED
        """
        params = {"limit": limit} if limit is not None else None
        response = await self._request("GET", "/barcodes/history", params=params,
                                       on_error=exceptions.remote_fetch_history_failed)
        parsed = self._parse(response, HistoryResponse,
                             on_error=exceptions.remote_fetch_history_failed)
        return parsed.entries

    # =========================================================================
    # SUBMISSION
    # =========================================================================

    async def submit(
        self,
        barcode: str,
        product_hint: Optional[ProductPayload] = None
    ) -> SubmissionResult:
        """
        Submit a confirmed barcode using the configured contract.

        Raises:
            AppException: REMOTE_LOOKUP_FAILED or REMOTE_RECORD_FAILED
        """
        if self._mode == "lookup":
            if product_hint is None and self._product_source is not None:
                product_hint = await self._product_source.fetch(barcode)

            product, source = await self.lookup_or_record(barcode, product_hint)
            logger.info(f"✅ {barcode} → {product.name} ({source})")
            return SubmissionResult(barcode=barcode, mode=self._mode, product=product, source=source)

        await self.record(barcode)

        try:
            history = await self.fetch_history()
        except AppException as e:
            logger.warning(f"⚠️ {e.message}")
            return SubmissionResult(barcode=barcode, mode=self._mode, history_error=e.message)

        logger.info(f"✅ Recorded {barcode} ({len(history)} entries in history)")
        return SubmissionResult(barcode=barcode, mode=self._mode, history=history)

    # =========================================================================
    # INTERNALS
    # =========================================================================

    async def _request(self, method: str, path: str, on_error, **kwargs) -> httpx.Response:
        try:
            response = await self._http().request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"❌ {method} {path} failed: {e}")
            raise on_error(str(e) or type(e).__name__)

        if response.is_error:
            reason = _error_reason(response)
            logger.warning(f"{method} {path} → {response.status_code}: {reason}")
            raise on_error(reason)

        return response

    @staticmethod
    def _parse(response: httpx.Response, model, on_error):
        try:
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.error(f"❌ Unexpected response body: {e}")
            raise on_error("unexpected response from service")
