"""Tests for the column registry and cell codecs."""

import pytest

from catalog_exchange.errors import SchemaMismatch, UnknownEntityKindError
from catalog_exchange.schema import (
    EMBEDDED_STRUCTURE,
    SCALAR_NUMBER,
    SCALAR_TEXT,
    column_names,
    detect_kind,
    dump_structure,
    get_columns,
    parse_number,
    parse_structure,
    validate_header,
)


class TestRegistry:
    """Tests for the fixed column lists."""

    def test_product_columns_in_order(self):
        assert column_names("product") == [
            "id", "title", "description", "price", "discounted_price", "quantity",
            "status", "category_id", "attributes", "image_urls", "video_url",
        ]

    def test_variant_columns_in_order(self):
        assert column_names("variant") == [
            "variant_id", "product_id", "color", "size", "price", "stock", "sku",
        ]

    def test_codecs(self):
        codecs = {c.name: c.codec for c in get_columns("product")}
        assert codecs["attributes"] == EMBEDDED_STRUCTURE
        assert codecs["image_urls"] == EMBEDDED_STRUCTURE
        assert codecs["price"] == SCALAR_NUMBER
        assert codecs["id"] == SCALAR_TEXT

    def test_unknown_kind_is_a_contract_violation(self):
        with pytest.raises(UnknownEntityKindError):
            get_columns("order")

    def test_unknown_kind_is_not_a_data_error(self):
        from catalog_exchange.errors import ExchangeError

        assert not issubclass(UnknownEntityKindError, ExchangeError)


class TestHeaders:
    """Tests for header validation and kind detection."""

    def test_detect_product_header(self, product_header):
        assert detect_kind(product_header) == "product"

    def test_detect_variant_header(self, variant_header):
        assert detect_kind(variant_header) == "variant"

    def test_detect_ignores_bom_and_whitespace(self, product_header):
        header = ["\ufeff" + product_header[0]] + [f" {name} " for name in product_header[1:]]
        assert detect_kind(header) == "product"

    def test_detect_accepts_reordered_columns(self, variant_header):
        assert detect_kind(list(reversed(variant_header))) == "variant"

    def test_detect_unknown_header(self):
        with pytest.raises(SchemaMismatch) as exc_info:
            detect_kind(["name", "url", "price"], source="orders.csv")
        assert exc_info.value.kind is None
        assert exc_info.value.source == "orders.csv"

    def test_validate_reports_missing_and_unexpected(self, product_header):
        header = [name for name in product_header if name != "video_url"] + ["brand"]
        with pytest.raises(SchemaMismatch) as exc_info:
            validate_header("product", header)
        assert exc_info.value.missing == ["video_url"]
        assert exc_info.value.unexpected == ["brand"]

    def test_validate_rejects_duplicates(self, variant_header):
        with pytest.raises(SchemaMismatch) as exc_info:
            validate_header("variant", variant_header + ["sku"])
        assert exc_info.value.duplicates == ["sku"]

    def test_validate_wrong_kind(self, variant_header):
        with pytest.raises(SchemaMismatch):
            validate_header("product", variant_header)


class TestCodecs:
    """Tests for number and structure cell codecs."""

    def test_parse_number(self):
        assert parse_number("1000") == 1000
        assert isinstance(parse_number("1000"), int)
        assert parse_number(" 12.5 ") == 12.5
        assert parse_number("") is None

    @pytest.mark.parametrize("text", ["abc", "12,5", "nan", "inf"])
    def test_parse_number_rejects(self, text):
        with pytest.raises(ValueError):
            parse_number(text)

    def test_parse_structure_shapes(self):
        assert parse_structure('{"a":"1"}', dict) == {"a": "1"}
        assert parse_structure('["a.jpg"]', list) == ["a.jpg"]
        assert parse_structure("", dict) == {}

    @pytest.mark.parametrize(
        "text,shape",
        [("not json", dict), ('["a"]', dict), ('{"a":1}', list), ("[1, 2]", list)],
    )
    def test_parse_structure_rejects(self, text, shape):
        with pytest.raises(ValueError):
            parse_structure(text, shape)

    def test_parse_structure_rejects_deep_nesting(self):
        with pytest.raises(ValueError, match="nested too deeply"):
            parse_structure("[" * 100_000 + "]" * 100_000, list)

    def test_dump_structure_is_compact(self):
        assert dump_structure(["a.jpg"], list) == '["a.jpg"]'
        assert dump_structure({"Färbe": "Rot"}, dict) == '{"Färbe":"Rot"}'
        assert dump_structure(None, list) == "[]"
