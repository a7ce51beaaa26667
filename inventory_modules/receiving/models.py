"""
Receiving Domain Models (``inventory_modules.receiving.models``).

Responsibility
--------------
Frozen value objects for the receiving module: the expected-manifest input
used to create an ASN, read-side views of headers and lines, the result of
a barcode scan, and the result of a commit.

Architecture
------------
Layer: **Modules** -- pure data structures, no I/O.  Returned by
``ReceivingService`` and ``BarcodeMatchService`` instead of ORM rows.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from uuid import UUID

from inventory_engines.asn_types import ASNStatus, CommitTotals, LineVariance
from inventory_engines.barcode import BarcodeType
from inventory_engines.discrepancy import DamagedItemDecision, DisplayStatus
from inventory_kernel.logging_config import get_logger

logger = get_logger("modules.receiving.models")


@dataclass(frozen=True)
class ExpectedLine:
    """One manifest line: a SKU and how many units are expected."""

    sku_id: UUID
    expected_units: int
    lot_number: str | None = None
    expiry_date: date | None = None


@dataclass(frozen=True)
class ASNLine:
    id: UUID
    asn_id: UUID
    line_no: int
    sku_id: UUID
    expected_units: int
    received_units: int
    normal_units: int
    damaged_units: int
    missing_units: int
    quarantined_units: int
    lot_number: str | None = None
    expiry_date: date | None = None
    notes: str | None = None
    qc_photo_ref: str | None = None

    @property
    def remaining_units(self) -> int:
        return max(self.expected_units - self.received_units, 0)


@dataclass(frozen=True)
class ASN:
    id: UUID
    client_id: UUID
    asn_number: str
    status: ASNStatus
    carrier: str | None = None
    tracking_number: str | None = None
    expected_arrival: date | None = None
    received_at: datetime | None = None
    closed_at: datetime | None = None
    notes: str | None = None
    lines: tuple[ASNLine, ...] = ()

    @property
    def total_expected(self) -> int:
        return sum(line.expected_units for line in self.lines)

    @property
    def total_received(self) -> int:
        return sum(line.received_units for line in self.lines)


@dataclass(frozen=True)
class ScanResult:
    """
    Outcome of resolving one scanned barcode in a receiving session.

    ``found=False`` is a normal outcome, not an error.
    """

    found: bool
    barcode: str
    barcode_type: BarcodeType
    matched_table: str | None = None
    matched_id: UUID | None = None
    match_field: str | None = None
    carrier: str | None = None
    received_units: int | None = None
    expected_units: int | None = None


@dataclass(frozen=True)
class CommitResult:
    """
    What one receiving commit did.

    ``entries_written`` counts new ledger rows; ``entries_skipped`` counts
    increments whose idempotency key was already on the ledger.
    """

    asn_id: UUID
    previous_status: ASNStatus
    status: ASNStatus
    status_path: tuple[ASNStatus, ...]
    totals: CommitTotals
    entry_ids: tuple[UUID, ...] = ()
    entries_written: int = 0
    entries_skipped: int = 0
    receipt_delta: int = 0
    variances: tuple[LineVariance, ...] = ()
    pending_decisions: tuple[DamagedItemDecision, ...] = ()
    is_noop: bool = False


@dataclass(frozen=True)
class ASNDisplay:
    """Header status as shown to users, recomputed on every read."""

    asn_id: UUID
    status: ASNStatus
    display_status: DisplayStatus
    decisions: tuple[DamagedItemDecision, ...] = field(default_factory=tuple)
