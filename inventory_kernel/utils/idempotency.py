"""
Idempotency key generation utilities.

Idempotency keys ensure that the same business event always produces the
same ledger entry, even when two independent triggers (a webhook and a
human action) or a replayed commit race to write it.
"""

from uuid import UUID


def generate_idempotency_key(
    producer: str,
    event_type: str,
    event_id: UUID | str,
) -> str:
    """
    Generate an idempotency key for an event.

    Format: producer:event_type:event_id

    The key is stored on InventoryLedgerEntry and has a unique constraint.

    Example:
        >>> generate_idempotency_key("sale", "SALE_DECREMENT", "1001:sku")
        "sale:SALE_DECREMENT:1001:sku"
    """
    return f"{producer}:{event_type}:{event_id}"


def parse_idempotency_key(key: str) -> tuple[str, str, str]:
    """
    Parse an idempotency key into its components.

    Raises:
        ValueError: If key format is invalid.
    """
    parts = key.split(":", 2)
    if len(parts) != 3:
        raise ValueError(f"Invalid idempotency key format: {key}")
    return parts[0], parts[1], parts[2]


def sale_idempotency_key(source_type: str, order_ref: str, sku_id: UUID | str) -> str:
    """
    Key for the stock decrement of one SKU on one external order.

    Independent of which trigger (webhook or manual fulfillment) writes it,
    so both collide on the same unique value.  ``source_type`` names the
    sales channel; order numbers are only unique within a channel.
    """
    return generate_idempotency_key(
        "sale", "SALE_DECREMENT", f"{source_type}:{order_ref}:{sku_id}"
    )


def receipt_idempotency_key(
    bucket: str,
    asn_id: UUID | str,
    line_id: UUID | str,
    cumulative_units: int,
) -> str:
    """
    Key for one increment of one condition bucket on one ASN line.

    ``cumulative_units`` is the bucket total *after* the increment, so a
    replay of the same commit reproduces the same key while a later commit
    with more units produces a new one.
    """
    return generate_idempotency_key(
        "asn", bucket, f"{asn_id}:{line_id}:{cumulative_units}"
    )
