"""
Barcode Match Service (``inventory_modules.receiving.barcode``).

Responsibility
--------------
Resolves one decoded barcode against the active ASN of a receiving
session.  A match bumps the line's normal (and received) counter by one; a
miss is reported as ``ScanResult(found=False)``.  Scans never write to the
ledger: the counters reach the ledger only when the session is committed.

Architecture
------------
Layer: **Modules**.  Normalization and classification come from
``inventory_engines.barcode``; SKU lookups from ``RegistrySelector``.
Flushes only -- ``ReceivingService.scan`` owns the transaction.

Events
------
``scan_matched`` / ``scan_not_found`` go to the structured log and, when
given, to a listener callable (for example a UI toast channel).
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from inventory_engines.barcode import (
    BarcodeType,
    classify_barcode,
    detect_carrier,
    matched_field,
    normalize_barcode,
)
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.exceptions import ValidationError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.selectors.registry_selector import RegistrySelector
from inventory_modules.receiving.models import ScanResult
from inventory_modules.receiving.orm import ASNHeaderModel

logger = get_logger("modules.receiving.barcode")

RECEIVING_CONTEXT = "receiving"


@dataclass(frozen=True)
class ScanEvent:
    """Transient notification about one scan.  Never persisted."""

    name: str
    asn_id: UUID
    barcode: str
    barcode_type: BarcodeType
    line_id: UUID | None
    occurred_at: datetime


ScanListener = Callable[[ScanEvent], None]


class BarcodeMatchService:
    """Resolve scans to ASN lines and count matched units."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        listener: ScanListener | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._listener = listener
        self._registry = RegistrySelector(session)

    def match(
        self,
        header: ASNHeaderModel,
        barcode: str,
        context: str = RECEIVING_CONTEXT,
    ) -> ScanResult:
        """
        Resolve ``barcode`` against ``header``'s lines.

        Preconditions:
            - ``header`` is open (the caller checked closed_at).

        Raises:
            ValidationError: If the barcode is blank.
        """
        if barcode is None or not barcode.strip():
            raise ValidationError("Barcode is required")

        code = normalize_barcode(barcode)
        barcode_type = classify_barcode(code)

        line = None
        field = None
        if context == RECEIVING_CONTEXT:
            # Product labels are matched by value; a 12-digit UPC also
            # classifies as a tracking number.
            skus = self._registry.find_skus_by_code(header.client_id, code)
            by_id = {sku.id: sku for sku in skus}
            for candidate in header.lines:
                if candidate.sku_id in by_id:
                    line = candidate
                    field = matched_field(by_id[candidate.sku_id], code)
                    break

        if line is None:
            carrier = detect_carrier(code) if barcode_type == BarcodeType.TRACKING else None
            logger.info(
                "scan_not_found",
                extra={
                    "asn_id": str(header.id),
                    "barcode": code,
                    "barcode_type": barcode_type.value,
                    "context": context,
                    "carrier": carrier,
                },
            )
            self._emit("scan_not_found", header.id, code, barcode_type, None)
            return ScanResult(
                found=False,
                barcode=code,
                barcode_type=barcode_type,
                carrier=carrier,
            )

        line.add_normal_unit()
        self._session.flush()

        logger.info(
            "scan_matched",
            extra={
                "asn_id": str(header.id),
                "line_id": str(line.id),
                "barcode": code,
                "barcode_type": barcode_type.value,
                "match_field": field,
                "received_units": line.received_units,
                "expected_units": line.expected_units,
            },
        )
        self._emit("scan_matched", header.id, code, barcode_type, line.id)
        return ScanResult(
            found=True,
            barcode=code,
            barcode_type=barcode_type,
            matched_table="asn_lines",
            matched_id=line.id,
            match_field=field,
            received_units=line.received_units,
            expected_units=line.expected_units,
        )

    def _emit(
        self,
        name: str,
        asn_id: UUID,
        code: str,
        barcode_type: BarcodeType,
        line_id: UUID | None,
    ) -> None:
        if self._listener is None:
            return
        self._listener(
            ScanEvent(
                name=name,
                asn_id=asn_id,
                barcode=code,
                barcode_type=barcode_type,
                line_id=line_id,
                occurred_at=self._clock.now(),
            )
        )
