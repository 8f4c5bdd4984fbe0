"""
==============================================================================
External Product Source
==============================================================================

Fetches product data for a barcode from OpenFoodFacts, to send along
with a lookup-or-record call as the product to save.

A failed or empty fetch is not an error for the caller: the lookup simply
goes ahead without product data.

==============================================================================
"""

from __future__ import annotations

import logging
import re
from typing import Optional

import httpx
from pydantic import ValidationError

from barcode_scanner.schemas.barcode import ProductPayload


# Module logger
logger = logging.getLogger(__name__)

RE_SPACES = re.compile(r"\s+")

# ProductPayload field limits
NAME_LIMIT = 255
TEXT_LIMIT = 1024


def _clean(text, limit: int) -> str:
    if not isinstance(text, str):
        return ""
    return RE_SPACES.sub(" ", text).strip()[:limit]


class OpenFoodFactsSource:
    """
    OpenFoodFacts product API client.

    Example:
        >>> source = OpenFoodFactsSource("https://world.openfoodfacts.org/api/v2/product")
        >>> product = await source.fetch("5449000000996")
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 6.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings, transport=None) -> "OpenFoodFactsSource":
        return cls(
            settings.product_source_url,
            timeout=settings.remote_timeout_seconds,
            transport=transport,
        )

    async def fetch(self, barcode: str) -> Optional[ProductPayload]:
        """Product data for a barcode, or None when unavailable."""
        code = "".join(ch for ch in barcode if ch.isdigit())
        if not code:
            return None

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.get(f"{self._base_url}/{code}")
        except httpx.HTTPError as e:
            logger.warning(f"External product fetch failed for {code}: {e}")
            return None

        if response.status_code != 200:
            logger.debug(f"External product source returned {response.status_code} for {code}")
            return None

        try:
            data = response.json()
        except ValueError:
            logger.warning(f"External product source sent invalid JSON for {code}")
            return None

        product = data.get("product") if isinstance(data, dict) else None
        if not isinstance(product, dict):
            return None

        name = _clean(product.get("product_name") or product.get("generic_name"), NAME_LIMIT)
        if not name:
            return None

        image_url = _clean(product.get("image_url") or product.get("image_front_url"), TEXT_LIMIT)
        if len(image_url) >= TEXT_LIMIT:
            image_url = ""

        try:
            return ProductPayload(
                name=name,
                brand=_clean(product.get("brands") or product.get("brand_owner"), NAME_LIMIT),
                categories=_clean(product.get("categories"), TEXT_LIMIT),
                image_url=image_url,
            )
        except ValidationError as e:
            logger.warning(f"External product for {code} rejected: {e.error_count()} invalid fields")
            return None
