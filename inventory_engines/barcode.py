"""
inventory_engines.barcode -- Barcode normalization and classification.

Responsibility:
    Turn a decoded scanner string into a canonical code, tell tracking
    numbers from product codes, name the carrier of a tracking number, and
    decide which SKU identifier a code matched.

Architecture position:
    Engines -- pure calculation, zero I/O.  Used by the receiving module's
    BarcodeMatchService, which does the registry and ASN lookups.

Notes:
    Classification is format-based only.  A 12-digit code is both a valid
    FedEx tracking number and a UPC-A; ``classify_barcode`` reports it as
    tracking (formats are tried in the order tracking, UPC, EAN, product
    code), so callers that scan product labels match against the SKU
    registry regardless of the classified type.
"""

from __future__ import annotations

import re
from enum import Enum

from inventory_engines.tracer import traced_engine
from inventory_kernel.domain.registry import SkuRecord

_WHITESPACE = re.compile(r"\s+")

_UPS = re.compile(r"^1Z[0-9A-Z]{16}$")
_FEDEX = re.compile(r"^(\d{12}|\d{14}|\d{15}|\d{20})$")
_USPS_PREFIXED = re.compile(r"^(94|92)\d{20,22}$")
_USPS = re.compile(r"^\d{20,22}$")
_DHL = re.compile(r"^\d{10,11}$")
_UPC = re.compile(r"^(\d{12}|\d{8})$")
_EAN = re.compile(r"^\d{13}$")
_PRODUCT_CODE = re.compile(r"^[A-Z0-9\-]{6,}$")


class BarcodeType(str, Enum):
    TRACKING = "tracking"
    UPC = "upc"
    EAN = "ean"
    PRODUCT_CODE = "product_code"
    UNKNOWN = "unknown"


def normalize_barcode(raw: str) -> str:
    """Trim, drop inner whitespace, upper-case."""
    return _WHITESPACE.sub("", raw.strip()).upper()


def is_tracking_number(code: str) -> bool:
    if len(code) < 10:
        return False
    return bool(
        _UPS.match(code)
        or _FEDEX.match(code)
        or _USPS_PREFIXED.match(code)
        or _USPS.match(code)
        or _DHL.match(code)
    )


def detect_carrier(code: str) -> str:
    """Best-effort carrier name for a tracking number."""
    if code.startswith("1Z"):
        return "UPS"
    if re.match(r"^(94|92)\d{20}$", code):
        return "USPS"
    if _FEDEX.match(code):
        return "FedEx"
    if _DHL.match(code):
        return "DHL"
    if _USPS.match(code):
        return "USPS"
    return "Unknown"


def has_valid_check_digit(code: str) -> bool:
    """
    GS1 mod-10 check for UPC-A, UPC-E/EAN-8 and EAN-13.

    Weights alternate 3, 1 from the digit next to the check digit.
    """
    if not code.isdigit() or len(code) not in (8, 12, 13):
        return False
    digits = [int(c) for c in code]
    check = digits.pop()
    total = sum(
        d * (3 if (len(digits) - i) % 2 == 1 else 1)
        for i, d in enumerate(digits)
    )
    return (10 - total % 10) % 10 == check


@traced_engine("barcode", "1.0")
def classify_barcode(code: str) -> BarcodeType:
    """Classify an already-normalized code by format."""
    if not code:
        return BarcodeType.UNKNOWN
    if is_tracking_number(code):
        return BarcodeType.TRACKING
    if _UPC.match(code):
        return BarcodeType.UPC
    if _EAN.match(code):
        return BarcodeType.EAN
    if _PRODUCT_CODE.match(code):
        return BarcodeType.PRODUCT_CODE
    return BarcodeType.UNKNOWN


def matched_field(sku: SkuRecord, code: str) -> str | None:
    """
    Which identifier of ``sku`` equals ``code`` (case-insensitive).

    Checked in the order upc, ean, fnsku, asin, client_sku.
    """
    for field in ("upc", "ean", "fnsku", "asin", "client_sku"):
        value = getattr(sku, field)
        if value and value.upper() == code:
            return field
    return None
