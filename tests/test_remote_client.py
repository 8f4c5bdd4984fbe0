"""
==============================================================================
Remote Client Tests
==============================================================================

Tests for RemoteServiceClient and OpenFoodFactsSource against mocked
transports, plus one run against the real application.

==============================================================================
"""

import json

import httpx
import pytest

from barcode_scanner.core.exceptions import AppException
from barcode_scanner.main import app
from barcode_scanner.remote.client import RemoteServiceClient
from barcode_scanner.remote.product_source import OpenFoodFactsSource
from barcode_scanner.schemas.barcode import ProductPayload


BASE_URL = "http://service.test"

PRODUCT = {
    "name": "Coca-Cola Original Taste",
    "brand": "Coca-Cola",
    "categories": "beverages, Soft Drinks",
    "image_url": "",
}


def error_body(code: str, message: str) -> dict:
    return {"success": False, "error": {"code": code, "message": message}}


def make_client(handler, mode="lookup", product_source=None) -> RemoteServiceClient:
    return RemoteServiceClient(
        BASE_URL,
        mode=mode,
        transport=httpx.MockTransport(handler),
        product_source=product_source,
    )


class TestLookupMode:
    """Tests for the product lookup contract."""

    @pytest.mark.asyncio
    async def test_submit_returns_product(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.method, request.url.path, json.loads(request.content)))
            return httpx.Response(200, json={
                "success": True, "barcode": "5449000000996", "source": "catalog", "product": PRODUCT
            })

        async with make_client(handler) as remote:
            result = await remote.submit("5449000000996")

        assert seen == [("POST", "/api/v1/products/scan", {"barcode": "5449000000996"})]
        assert result.product.name == "Coca-Cola Original Taste"
        assert result.source == "catalog"
        assert result.history is None

    @pytest.mark.asyncio
    async def test_not_found_raises_lookup_failed(self):
        def handler(request):
            return httpx.Response(404, json=error_body("PRODUCT_NOT_FOUND", "Product not found"))

        async with make_client(handler) as remote:
            with pytest.raises(AppException) as exc_info:
                await remote.submit("1234567890123")

        assert exc_info.value.code == "REMOTE_LOOKUP_FAILED"
        assert exc_info.value.message == "Lookup failed: Product not found"

    @pytest.mark.asyncio
    async def test_transport_error_raises_lookup_failed(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with make_client(handler) as remote:
            with pytest.raises(AppException) as exc_info:
                await remote.lookup("5449000000996")

        assert exc_info.value.code == "REMOTE_LOOKUP_FAILED"
        assert "connection refused" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_malformed_body_raises_lookup_failed(self):
        def handler(request):
            return httpx.Response(200, json={"unexpected": True})

        async with make_client(handler) as remote:
            with pytest.raises(AppException) as exc_info:
                await remote.lookup_or_record("5449000000996")

        assert exc_info.value.code == "REMOTE_LOOKUP_FAILED"

    @pytest.mark.asyncio
    async def test_external_product_is_sent_as_hint(self):
        def off_handler(request):
            assert request.url.path.endswith("/12345678")
            return httpx.Response(200, json={"product": {
                "product_name": "  Sparkling   Water ",
                "brands": "Acme",
                "categories": "Beverages, Waters",
                "image_front_url": "https://img.test/water.jpg",
            }})

        bodies = []

        def service_handler(request):
            body = json.loads(request.content)
            bodies.append(body)
            return httpx.Response(200, json={
                "success": True, "barcode": body["barcode"], "source": "saved", "product": body["product"]
            })

        source = OpenFoodFactsSource("https://off.test/api/v2/product", transport=httpx.MockTransport(off_handler))

        async with make_client(service_handler, product_source=source) as remote:
            result = await remote.submit("12345678")

        assert bodies[0]["product"]["name"] == "Sparkling Water"
        assert bodies[0]["product"]["image_url"] == "https://img.test/water.jpg"
        assert result.source == "saved"

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            RemoteServiceClient(BASE_URL, mode="archive")


class TestHistoryMode:
    """Tests for the record + history contract."""

    @pytest.mark.asyncio
    async def test_submit_records_then_fetches_history(self):
        calls = []

        def handler(request):
            calls.append((request.method, request.url.path))
            if request.method == "POST":
                return httpx.Response(200, json={
                    "success": True, "entry": {"barcode": "12345678", "timestamp": 2}
                })
            return httpx.Response(200, json={
                "success": True,
                "total": 2,
                "entries": [
                    {"barcode": "87654321", "timestamp": 1},
                    {"barcode": "12345678", "timestamp": 2},
                ],
            })

        async with make_client(handler, mode="history") as remote:
            result = await remote.submit("12345678")

        assert calls == [("POST", "/api/v1/barcodes"), ("GET", "/api/v1/barcodes/history")]
        assert [e.barcode for e in result.history] == ["87654321", "12345678"]
        assert result.product is None

    @pytest.mark.asyncio
    async def test_history_failure_is_not_fatal(self):
        def handler(request):
            if request.method == "POST":
                return httpx.Response(200, json={
                    "success": True, "entry": {"barcode": "12345678", "timestamp": 2}
                })
            return httpx.Response(500, text="boom")

        async with make_client(handler, mode="history") as remote:
            result = await remote.submit("12345678")

        assert result.history is None
        assert "HTTP 500" in result.history_error

    @pytest.mark.asyncio
    async def test_record_failure_raises(self):
        def handler(request):
            return httpx.Response(500, json=error_body("SAVE_FAILED", "Failed to save product"))

        async with make_client(handler, mode="history") as remote:
            with pytest.raises(AppException) as exc_info:
                await remote.submit("12345678")

        assert exc_info.value.code == "REMOTE_RECORD_FAILED"

    @pytest.mark.asyncio
    async def test_fetch_history_failure_raises_when_called_directly(self):
        def handler(request):
            return httpx.Response(503, text="unavailable")

        async with make_client(handler, mode="history") as remote:
            with pytest.raises(AppException) as exc_info:
                await remote.fetch_history()

        assert exc_info.value.code == "REMOTE_FETCH_HISTORY_FAILED"


class TestOpenFoodFactsSource:
    """Tests for the external product source."""

    @pytest.mark.asyncio
    async def test_not_found_gives_none(self):
        source = OpenFoodFactsSource(
            "https://off.test/api/v2/product",
            transport=httpx.MockTransport(lambda request: httpx.Response(404)),
        )
        assert await source.fetch("12345678") is None

    @pytest.mark.asyncio
    async def test_product_without_name_gives_none(self):
        source = OpenFoodFactsSource(
            "https://off.test/api/v2/product",
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"product": {"brands": "Acme"}})),
        )
        assert await source.fetch("12345678") is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [[1, 2], 42, {"product": ["Cola"]}])
    async def test_non_object_body_gives_none(self, body):
        source = OpenFoodFactsSource(
            "https://off.test/api/v2/product",
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json=body)),
        )
        assert await source.fetch("12345678") is None

    @pytest.mark.asyncio
    async def test_long_fields_are_cut_to_payload_limits(self):
        body = {
            "product": {
                "product_name": "Cola",
                "brands": "b" * 400,
                "categories": "x" * 1500,
                "image_url": "https://off.test/" + "i" * 1500,
            }
        }
        source = OpenFoodFactsSource(
            "https://off.test/api/v2/product",
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json=body)),
        )

        product = await source.fetch("12345678")

        assert product.name == "Cola"
        assert len(product.brand) == 255
        assert len(product.categories) == 1024
        assert product.image_url == ""

    @pytest.mark.asyncio
    async def test_non_text_fields_are_ignored(self):
        body = {"product": {"product_name": "Cola", "brands": ["Acme"], "categories": 7}}
        source = OpenFoodFactsSource(
            "https://off.test/api/v2/product",
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json=body)),
        )

        product = await source.fetch("12345678")

        assert product == ProductPayload(name="Cola")

    @pytest.mark.asyncio
    async def test_non_digit_code_is_not_fetched(self):
        def handler(request):
            raise AssertionError("no request expected")

        source = OpenFoodFactsSource("https://off.test", transport=httpx.MockTransport(handler))
        assert await source.fetch("abc") is None


class TestAgainstService:
    """Client and service speaking to each other in-process."""

    @pytest.mark.asyncio
    async def test_lookup_record_and_history(self, client):
        transport = httpx.ASGITransport(app=app)

        async with RemoteServiceClient("http://testserver", mode="lookup", transport=transport) as remote:
            product, source = await remote.lookup_or_record(
                "12345678", ProductPayload(name="Sparkling Water", brand="Acme")
            )
            assert source == "saved"

            product, source = await remote.lookup("12345678")
            assert product.brand == "Acme"

            await remote.record("12345678")
            await remote.record("5449000000996")
            history = await remote.fetch_history()

        assert [e.barcode for e in history] == ["12345678", "5449000000996"]
