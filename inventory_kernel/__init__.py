"""
Inventory Kernel

An append-only stock ledger for warehouse receiving and fulfillment with:
- Immutable ledger entries (on-hand is always derived, never stored)
- Idempotent writes guarded by a unique key
- Atomic receiving commits (header transition + entries together)
- Structured audit logging
"""

__version__ = "0.1.0"
