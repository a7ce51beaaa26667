"""
Receiving Module (``inventory_modules.receiving``).

Responsibility
--------------
Inbound receiving against Advance Ship Notices: barcode scanning, manual
counts into the four condition buckets, and commits that reconcile those
counts against the inventory ledger.

Architecture
------------
Layer: **Modules**.  Calculation lives in ``inventory_engines``
(``plan_commit``, ``classify_barcode``, ``derive_display_status``); ledger
writes go through ``inventory_kernel`` (``LedgerWriter``).  Nothing here is
imported by the kernel except the ORM module, which ``create_tables`` and
the immutability listeners load by name.

Invariants
----------
- Each ``ReceivingService`` method owns its transaction boundary.
- A commit writes only increments not yet on the ledger.
- A closed ASN is frozen until reopened; reopening never rewrites history.
"""

from inventory_modules.receiving.barcode import BarcodeMatchService, ScanEvent
from inventory_modules.receiving.models import (
    ASN,
    ASNDisplay,
    ASNLine,
    CommitResult,
    ExpectedLine,
    ScanResult,
)
from inventory_modules.receiving.orm import ASNHeaderModel, ASNLineModel
from inventory_modules.receiving.service import ReceivingService
from inventory_modules.receiving.workflows import (
    ASN_STATUS_WORKFLOW,
    VALID_TRANSITIONS,
    validate_transition,
)

__all__ = [
    "ASN",
    "ASNDisplay",
    "ASNHeaderModel",
    "ASNLine",
    "ASNLineModel",
    "ASN_STATUS_WORKFLOW",
    "BarcodeMatchService",
    "CommitResult",
    "ExpectedLine",
    "ReceivingService",
    "ScanEvent",
    "ScanResult",
    "VALID_TRANSITIONS",
    "validate_transition",
]
