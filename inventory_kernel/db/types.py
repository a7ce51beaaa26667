"""
Module: inventory_kernel.db.types
Responsibility: Bounds for stock-quantity and text columns, so that every
    model and validator uses identical limits.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, and selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    - Quantities are whole units.  No unit-of-measure conversion and no
      fractional stock anywhere in the kernel.
    - Text limits (lot number, notes) match the receiving form limits.
"""

MAX_LOT_NUMBER_LENGTH = 100
MAX_NOTES_LENGTH = 2000
MAX_REFERENCE_LENGTH = 200


def is_whole_units(value: object) -> bool:
    """
    True if ``value`` is a plain int (bool is rejected).

    Counters arrive from form posts and webhooks; a float or a bool that
    slipped through must not be stored as a unit count.
    """
    return isinstance(value, int) and not isinstance(value, bool)
