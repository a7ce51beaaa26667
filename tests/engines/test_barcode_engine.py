"""Tests for barcode normalization, classification and identifier matching."""

from uuid import uuid4

import pytest

from inventory_engines.barcode import (
    BarcodeType,
    classify_barcode,
    detect_carrier,
    has_valid_check_digit,
    matched_field,
    normalize_barcode,
)
from inventory_kernel.domain.registry import SkuRecord


class TestNormalize:

    @pytest.mark.parametrize(
        "raw, expected",
        [
            (" 0123 4567\t8905 \n", "012345678905"),
            ("x00abc1234", "X00ABC1234"),
            ("1z999aa10123456784", "1Z999AA10123456784"),
        ],
    )
    def test_trim_strip_upper(self, raw, expected):
        assert normalize_barcode(raw) == expected


class TestClassify:

    @pytest.mark.parametrize(
        "code, expected",
        [
            ("1Z999AA10123456784", BarcodeType.TRACKING),
            ("9400111899223197428490", BarcodeType.TRACKING),
            ("1234567890", BarcodeType.TRACKING),
            ("96385074", BarcodeType.UPC),
            ("4006381333931", BarcodeType.EAN),
            ("X00ABC1234", BarcodeType.PRODUCT_CODE),
            ("WIDGET-001", BarcodeType.PRODUCT_CODE),
            ("AB", BarcodeType.UNKNOWN),
            ("", BarcodeType.UNKNOWN),
        ],
    )
    def test_classification(self, code, expected):
        assert classify_barcode(code) == expected

    def test_twelve_digit_code_classifies_as_tracking(self):
        """A UPC-A is indistinguishable from a 12-digit FedEx number by format."""
        assert classify_barcode("012345678905") == BarcodeType.TRACKING

    def test_trace_emitted(self, captured_logs):
        classify_barcode("4006381333931")
        traces = [r for r in captured_logs() if r["message"] == "INVENTORY_ENGINE_TRACE"]
        assert traces and traces[-1]["engine_name"] == "barcode"


class TestCarrier:

    @pytest.mark.parametrize(
        "code, carrier",
        [
            ("1Z999AA10123456784", "UPS"),
            ("9400111899223197428490", "USPS"),
            ("012345678905", "FedEx"),
            ("1234567890", "DHL"),
        ],
    )
    def test_detect(self, code, carrier):
        assert detect_carrier(code) == carrier


class TestCheckDigit:

    @pytest.mark.parametrize("code", ["012345678905", "4006381333931", "96385074"])
    def test_valid(self, code):
        assert has_valid_check_digit(code)

    @pytest.mark.parametrize("code", ["012345678906", "4006381333932", "ABCDEFGH", "12345"])
    def test_invalid(self, code):
        assert not has_valid_check_digit(code)


class TestMatchedField:

    def _sku(self, **codes) -> SkuRecord:
        fields = dict(upc=None, ean=None, fnsku=None, asin=None)
        fields.update(codes)
        return SkuRecord(
            id=uuid4(),
            client_id=uuid4(),
            client_sku="WIDGET-001",
            title="Widget",
            is_active=True,
            **fields,
        )

    def test_upc_checked_first(self):
        sku = self._sku(upc="012345678905", fnsku="012345678905")
        assert matched_field(sku, "012345678905") == "upc"

    def test_case_insensitive(self):
        assert matched_field(self._sku(asin="b000abc123"), "B000ABC123") == "asin"

    def test_client_sku_fallback(self):
        assert matched_field(self._sku(), "WIDGET-001") == "client_sku"

    def test_no_match(self):
        assert matched_field(self._sku(upc="111"), "222") is None
