"""Kernel services: write-side operations within the caller's transaction."""

from inventory_kernel.services.base import BaseService
from inventory_kernel.services.ledger_writer import (
    LedgerWriter,
    LedgerWriteResult,
    WriteStatus,
)

__all__ = [
    "BaseService",
    "LedgerWriter",
    "LedgerWriteResult",
    "WriteStatus",
]
