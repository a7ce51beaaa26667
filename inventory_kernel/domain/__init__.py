"""Pure domain types for the inventory kernel (no I/O)."""

from inventory_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from inventory_kernel.domain.ledger import (
    BUCKET_ENTRY_KINDS,
    ConditionBucket,
    LedgerEntryRecord,
    LedgerEntrySpec,
    ReasonCode,
    TransactionSubtype,
    TransactionType,
    bucket_for_entry,
    validate_entry_spec,
)
from inventory_kernel.domain.registry import LocationRecord, SkuRecord

__all__ = [
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "BUCKET_ENTRY_KINDS",
    "ConditionBucket",
    "LedgerEntryRecord",
    "LedgerEntrySpec",
    "ReasonCode",
    "TransactionSubtype",
    "TransactionType",
    "bucket_for_entry",
    "validate_entry_spec",
    "LocationRecord",
    "SkuRecord",
]
