"""Domain models for the inventory kernel."""

from inventory_kernel.models.ledger import InventoryLedgerEntry
from inventory_kernel.models.registry import Location, Sku
from inventory_kernel.models.sync_warning import SyncWarning, SyncWarningRecord

__all__ = [
    "InventoryLedgerEntry",
    "Sku",
    "Location",
    "SyncWarning",
    "SyncWarningRecord",
]
