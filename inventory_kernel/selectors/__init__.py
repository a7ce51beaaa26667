"""Read-only query selectors for the inventory kernel."""

from inventory_kernel.selectors.base import BaseSelector
from inventory_kernel.selectors.ledger_selector import (
    DuplicateSaleDecrement,
    LedgerSelector,
    OnHandBalance,
)
from inventory_kernel.selectors.registry_selector import RegistrySelector

__all__ = [
    "BaseSelector",
    "LedgerSelector",
    "OnHandBalance",
    "DuplicateSaleDecrement",
    "RegistrySelector",
]
