"""
ASN types -- frozen value objects shared by the receiving engines.

Architecture: inventory_engines -- pure data, zero I/O.  The receiving
module converts its ORM rows to these before calling an engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from uuid import UUID

from inventory_kernel.domain.ledger import ConditionBucket


class ASNStatus(str, Enum):
    """Stored lifecycle status of an ASN header."""

    NOT_RECEIVED = "not_received"
    RECEIVING = "receiving"
    CLOSED = "closed"
    ISSUE = "issue"

    @property
    def is_terminal(self) -> bool:
        return self in (ASNStatus.CLOSED, ASNStatus.ISSUE)


@dataclass(frozen=True)
class LineCounts:
    """
    Cumulative counts an operator entered for one ASN line.

    ``None`` for a text field means "leave unchanged".
    """

    line_id: UUID
    normal_units: int = 0
    damaged_units: int = 0
    missing_units: int = 0
    quarantined_units: int = 0
    lot_number: str | None = None
    expiry_date: date | None = None
    notes: str | None = None
    qc_photo_ref: str | None = None

    def bucket_units(self, bucket: ConditionBucket) -> int:
        return getattr(self, f"{bucket.value}_units")

    @property
    def received_units(self) -> int:
        return (
            self.normal_units + self.damaged_units
            + self.missing_units + self.quarantined_units
        )


@dataclass(frozen=True)
class LineSnapshot:
    """One ASN line as it stands when a commit starts."""

    line_id: UUID
    sku_id: UUID
    expected_units: int
    normal_units: int = 0
    damaged_units: int = 0
    missing_units: int = 0
    quarantined_units: int = 0
    lot_number: str | None = None
    expiry_date: date | None = None
    notes: str | None = None

    def bucket_units(self, bucket: ConditionBucket) -> int:
        return getattr(self, f"{bucket.value}_units")

    @property
    def received_units(self) -> int:
        return (
            self.normal_units + self.damaged_units
            + self.missing_units + self.quarantined_units
        )


@dataclass(frozen=True)
class LineVariance:
    """
    Expected vs accounted for one line.

    Positive ``variance`` is over-receipt, negative is shortfall.
    """

    line_id: UUID
    sku_id: UUID
    expected_units: int
    accounted_units: int
    normal_units: int

    @property
    def variance(self) -> int:
        return self.accounted_units - self.expected_units

    @property
    def is_over_receipt(self) -> bool:
        return self.variance > 0


@dataclass(frozen=True)
class CommitTotals:
    total_expected: int
    normal_units: int
    damaged_units: int
    missing_units: int
    quarantined_units: int

    @property
    def total_accounted(self) -> int:
        return (
            self.normal_units + self.damaged_units
            + self.missing_units + self.quarantined_units
        )

    @property
    def variance(self) -> int:
        return self.total_accounted - self.total_expected
