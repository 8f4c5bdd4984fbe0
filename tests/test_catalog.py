"""
==============================================================================
Catalog, Validator and Service Tests
==============================================================================

Unit tests below the HTTP layer.

==============================================================================
"""

import json

import pytest

from barcode_scanner.catalog.catalog import ProductCatalog, get_catalog
from barcode_scanner.core.exceptions import AppException
from barcode_scanner.schemas.barcode import ProductPayload
from barcode_scanner.services.barcode_service import BarcodeService
from barcode_scanner.utils.validators import BarcodeValidator


class TestProductCatalog:
    """Tests for the JSON product catalog."""

    def test_loads_sample_catalog(self, catalog):
        assert len(catalog.products) == 4
        assert get_catalog() is catalog

    def test_default_categories_from_sections(self, catalog):
        product = catalog.find_by_barcode("7622210449283")
        assert product.categories == "snacks, Biscuits"
        assert product.main_category == "snacks"

    def test_wildcard_only_when_requested(self, catalog):
        assert catalog.find_by_barcode("05449000000996") is None
        assert catalog.find_by_barcode("05449000000996", wildcard=True).name == "Coca-Cola Original Taste"

    def test_search_is_case_insensitive(self, catalog):
        names = [p.name for p in catalog.search("COOKIES")]
        assert names == ["Chocolate Chip Cookies"]

    def test_search_blank_query(self, catalog):
        assert catalog.search("  ") == []

    def test_skips_incomplete_items(self, tmp_path):
        path = tmp_path / "products.json"
        path.write_text(json.dumps({
            "pantry": {"Pasta": [{"name": "Penne"}, {"name": "Fusilli", "barcode": 8001234567890}]},
            "broken": ["not", "a", "section"],
        }))

        catalog = ProductCatalog(path)

        assert [p.barcode for p in catalog.products] == ["8001234567890"]
        assert catalog.get_categories() == {"pantry": ["Pasta"]}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ProductCatalog(tmp_path / "missing.json")


class TestBarcodeValidator:
    """Tests for BarcodeValidator."""

    def test_strips_whitespace(self):
        assert BarcodeValidator().validate(" 5449000000996\n") == (True, "5449000000996", None)

    @pytest.mark.parametrize("value", [None, "", "   ", "12a4", "1" * 65])
    def test_rejects(self, value):
        is_valid, normalized, error = BarcodeValidator().validate(value)
        assert not is_valid
        assert normalized is None
        assert error


class TestBarcodeService:
    """Tests for BarcodeService against the test database."""

    def test_lookup_order(self, db, catalog):
        service = BarcodeService(db, catalog)

        _, source = service.lookup("5449000000996")
        assert source == "catalog"

        service.lookup_or_record("5449000000996", ProductPayload(name="Cola Zero"))
        product, source = service.lookup("5449000000996")
        assert (product.name, source) == ("Cola Zero", "saved")

    def test_lookup_without_catalog(self, db):
        with pytest.raises(AppException) as exc_info:
            BarcodeService(db).lookup("5449000000996")
        assert exc_info.value.status_code == 404

    def test_upsert_replaces_fields(self, db):
        service = BarcodeService(db)
        service.lookup_or_record("12345678", ProductPayload(name="Old", brand="A"))
        service.lookup_or_record("12345678", ProductPayload(name="New"))

        product, _ = service.lookup("12345678")
        assert product.name == "New"
        assert product.brand == ""

    def test_timestamps_never_decrease(self, db, monkeypatch):
        service = BarcodeService(db)
        clock = iter([5_000, 3_000, 7_000])
        monkeypatch.setattr("barcode_scanner.services.barcode_service.time.time_ns", lambda: next(clock))

        for code in ["11111111", "22222222", "33333333"]:
            service.record(code)

        assert [e.timestamp for e in service.get_history()] == [5_000, 5_000, 7_000]
