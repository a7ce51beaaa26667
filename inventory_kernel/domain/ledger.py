"""
Ledger -- Pure value types for inventory ledger entries.

Responsibility:
    Declares the ledger vocabulary (transaction types, subtypes, reason
    codes), the write-side ``LedgerEntrySpec`` and the read-side
    ``LedgerEntryRecord``, and the sign rules every entry must satisfy.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Imported by the
    ledger ORM model, the ledger writer, and the reconciliation engine.

Invariants enforced:
    - Only sellable-stock entries carry a non-zero ``qty_delta``.
    - Condition (damaged/missing/quarantined) and reservation entries carry
      ``qty_delta == 0`` and a positive ``units``.
    - For sellable entries ``units == abs(qty_delta)``.

Failure modes:
    - InvalidLedgerEntryError from ``validate_entry_spec``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from uuid import UUID

from inventory_kernel.db.types import (
    MAX_LOT_NUMBER_LENGTH,
    MAX_NOTES_LENGTH,
    MAX_REFERENCE_LENGTH,
    is_whole_units,
)
from inventory_kernel.exceptions import InvalidLedgerEntryError


class TransactionType(str, Enum):
    """Top-level kind of stock movement."""

    RECEIPT = "RECEIPT"
    OUTBOUND = "OUTBOUND"
    ADJUSTMENT = "ADJUSTMENT"


class TransactionSubtype(str, Enum):
    """Refinement of a transaction type."""

    SALE_DECREMENT = "SALE_DECREMENT"
    ADJUSTMENT_PLUS = "ADJUSTMENT_PLUS"
    ADJUSTMENT_MINUS = "ADJUSTMENT_MINUS"
    CONDITION_DAMAGED = "CONDITION_DAMAGED"
    CONDITION_MISSING = "CONDITION_MISSING"
    CONDITION_QUARANTINED = "CONDITION_QUARANTINED"


class ReasonCode(str, Enum):
    """Why a non-receipt entry was written."""

    DAMAGE = "damage"
    OTHER = "other"
    SOLD = "sold"
    COUNT = "count"


class ConditionBucket(str, Enum):
    """Where a received unit was counted on an ASN line."""

    NORMAL = "normal"
    DAMAGED = "damaged"
    MISSING = "missing"
    QUARANTINED = "quarantined"


# How each bucket is written to the ledger: (type, subtype, reason).
BUCKET_ENTRY_KINDS: dict[
    ConditionBucket,
    tuple[TransactionType, TransactionSubtype | None, ReasonCode | None],
] = {
    ConditionBucket.NORMAL: (TransactionType.RECEIPT, None, None),
    ConditionBucket.DAMAGED: (
        TransactionType.ADJUSTMENT, TransactionSubtype.CONDITION_DAMAGED, ReasonCode.DAMAGE,
    ),
    ConditionBucket.MISSING: (
        TransactionType.ADJUSTMENT, TransactionSubtype.CONDITION_MISSING, ReasonCode.OTHER,
    ),
    ConditionBucket.QUARANTINED: (
        TransactionType.ADJUSTMENT, TransactionSubtype.CONDITION_QUARANTINED, ReasonCode.OTHER,
    ),
}


def bucket_for_entry(
    transaction_type: TransactionType,
    transaction_subtype: TransactionSubtype | None,
) -> ConditionBucket | None:
    """Inverse of BUCKET_ENTRY_KINDS; None for non-receiving entries."""
    for bucket, (ttype, subtype, _) in BUCKET_ENTRY_KINDS.items():
        if ttype == transaction_type and subtype == transaction_subtype:
            return bucket
    return None


# Entries that document units without moving sellable stock.
ZERO_DELTA_SUBTYPES: frozenset[TransactionSubtype] = frozenset({
    TransactionSubtype.CONDITION_DAMAGED,
    TransactionSubtype.CONDITION_MISSING,
    TransactionSubtype.CONDITION_QUARANTINED,
})

# Required sign of qty_delta: +1 positive, -1 negative.
_SIGN_RULES: dict[tuple[TransactionType, TransactionSubtype | None], int] = {
    (TransactionType.RECEIPT, None): 1,
    (TransactionType.OUTBOUND, None): -1,
    (TransactionType.OUTBOUND, TransactionSubtype.SALE_DECREMENT): -1,
    (TransactionType.ADJUSTMENT, TransactionSubtype.ADJUSTMENT_PLUS): 1,
    (TransactionType.ADJUSTMENT, TransactionSubtype.ADJUSTMENT_MINUS): -1,
}

_ZERO_DELTA_TYPES: dict[TransactionSubtype, frozenset[TransactionType]] = {
    TransactionSubtype.CONDITION_DAMAGED: frozenset({TransactionType.ADJUSTMENT}),
    TransactionSubtype.CONDITION_MISSING: frozenset({TransactionType.ADJUSTMENT}),
    TransactionSubtype.CONDITION_QUARANTINED: frozenset({TransactionType.ADJUSTMENT}),
}


@dataclass(frozen=True)
class LedgerEntrySpec:
    """
    Everything needed to append one ledger entry.

    ``units`` is the quantity the entry explains.  For sellable entries it
    equals ``abs(qty_delta)``; for zero-delta condition entries it carries
    the bucket increment.
    """

    client_id: UUID
    sku_id: UUID
    location_id: UUID
    qty_delta: int
    units: int
    transaction_type: TransactionType
    source_type: str
    source_ref: str
    transaction_subtype: TransactionSubtype | None = None
    source_line_ref: str | None = None
    idempotency_key: str | None = None
    lot_number: str | None = None
    expiry_date: date | None = None
    reason_code: ReasonCode | None = None
    notes: str | None = None


@dataclass(frozen=True)
class LedgerEntryRecord:
    """Read-side view of a persisted ledger entry."""

    id: UUID
    client_id: UUID
    sku_id: UUID
    location_id: UUID
    qty_delta: int
    units: int
    transaction_type: TransactionType
    transaction_subtype: TransactionSubtype | None
    source_type: str
    source_ref: str
    source_line_ref: str | None
    idempotency_key: str | None
    lot_number: str | None
    expiry_date: date | None
    reason_code: ReasonCode | None
    notes: str | None
    created_at: datetime
    created_by_id: UUID


def validate_entry_spec(spec: LedgerEntrySpec) -> None:
    """
    Check a spec against the delta/units rules.

    Raises:
        InvalidLedgerEntryError: naming the first rule broken.
    """
    if not is_whole_units(spec.qty_delta):
        raise InvalidLedgerEntryError(f"qty_delta must be an integer, got {spec.qty_delta!r}")
    if not is_whole_units(spec.units) or spec.units < 0:
        raise InvalidLedgerEntryError(f"units must be a non-negative integer, got {spec.units!r}")
    if not spec.source_type or not spec.source_ref:
        raise InvalidLedgerEntryError("source_type and source_ref are required")
    if len(spec.source_ref) > MAX_REFERENCE_LENGTH:
        raise InvalidLedgerEntryError("source_ref is too long")
    if spec.lot_number is not None and len(spec.lot_number) > MAX_LOT_NUMBER_LENGTH:
        raise InvalidLedgerEntryError("lot_number is too long")
    if spec.notes is not None and len(spec.notes) > MAX_NOTES_LENGTH:
        raise InvalidLedgerEntryError("notes are too long")

    subtype = spec.transaction_subtype
    if subtype in ZERO_DELTA_SUBTYPES:
        if spec.transaction_type not in _ZERO_DELTA_TYPES[subtype]:
            raise InvalidLedgerEntryError(
                f"{subtype.value} is not valid for {spec.transaction_type.value}"
            )
        if spec.qty_delta != 0:
            raise InvalidLedgerEntryError(
                f"{subtype.value} entries must have qty_delta 0, got {spec.qty_delta}"
            )
        if spec.units == 0:
            raise InvalidLedgerEntryError(f"{subtype.value} entries must carry units")
        return

    key = (spec.transaction_type, subtype)
    if key not in _SIGN_RULES:
        label = f"{spec.transaction_type.value}/{subtype.value if subtype else '-'}"
        raise InvalidLedgerEntryError(f"unsupported transaction {label}")

    if spec.qty_delta == 0:
        raise InvalidLedgerEntryError("sellable entries must have a non-zero qty_delta")
    sign = _SIGN_RULES[key]
    if (spec.qty_delta > 0) != (sign > 0):
        raise InvalidLedgerEntryError(
            f"qty_delta {spec.qty_delta} has the wrong sign for "
            f"{spec.transaction_type.value}"
        )
    if spec.units != abs(spec.qty_delta):
        raise InvalidLedgerEntryError(
            f"units ({spec.units}) must equal |qty_delta| ({abs(spec.qty_delta)})"
        )
