"""
Pure calculation engines for receiving and reconciliation.

Engines take frozen dataclasses and return frozen dataclasses.  They never
touch a session, a clock, or the network; the modules layer feeds them
snapshots and applies their plans.
"""

from inventory_engines.asn_types import (
    ASNStatus,
    CommitTotals,
    LineCounts,
    LineSnapshot,
    LineVariance,
)
from inventory_engines.barcode import BarcodeType, classify_barcode, normalize_barcode
from inventory_engines.discrepancy import (
    DamagedItemDecision,
    DecisionKind,
    DiscrepancyType,
    DisplayStatus,
    derive_display_status,
    pending_decisions,
)
from inventory_engines.reconciliation import (
    CommitPlan,
    classify_status,
    plan_commit,
    validate_line,
)

__all__ = [
    "ASNStatus",
    "CommitTotals",
    "LineCounts",
    "LineSnapshot",
    "LineVariance",
    "BarcodeType",
    "classify_barcode",
    "normalize_barcode",
    "DamagedItemDecision",
    "DecisionKind",
    "DiscrepancyType",
    "DisplayStatus",
    "derive_display_status",
    "pending_decisions",
    "CommitPlan",
    "classify_status",
    "plan_commit",
    "validate_line",
]
