"""Utility functions for the inventory kernel."""

from inventory_kernel.utils.idempotency import (
    generate_idempotency_key,
    parse_idempotency_key,
    receipt_idempotency_key,
    sale_idempotency_key,
)

__all__ = [
    "generate_idempotency_key",
    "parse_idempotency_key",
    "receipt_idempotency_key",
    "sale_idempotency_key",
]
