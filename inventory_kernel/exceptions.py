"""
Typed Exception Hierarchy for the Inventory Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (UI handlers, webhook receivers, billing collaborators) must react to
ledger and receiving failures precisely. Every error therefore has:
  1. A TYPED exception class (catch by type, not message)
  2. A CODE attribute (machine-readable, API-safe)
  3. Structured DATA (line id, field, status...) as attributes

Example:
    try:
        receiving.commit(asn_id, actor_id=actor)
    except LineValidationError as e:
        api_response(code=e.code, line=e.line_id, field=e.field)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    InventoryKernelError (base)
    |
    +-- ValidationError
    |   +-- LineValidationError
    |   +-- LedgeredQuantityDecreaseError
    |
    +-- ASNError
    |   +-- ASNNotFoundError
    |   +-- ASNLineNotFoundError
    |   +-- ASNClosedError
    |   +-- InvalidStatusTransitionError
    |
    +-- LedgerError
    |   +-- InvalidLedgerEntryError
    |
    +-- ImmutabilityError
    |   +-- ImmutabilityViolationError
    |
    +-- SyncError
    |   +-- ExternalPushError
    |
    +-- ConfigError
        +-- InvalidConfigError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Validation      | LINE_VALIDATION_FAILED      | Counter negative / over max / bad text
                | LEDGERED_QUANTITY_DECREASE  | Cumulative count below ledgered units
----------------|-----------------------------|-----------------------------------------
ASN             | ASN_NOT_FOUND               | ASN id doesn't exist
                | ASN_LINE_NOT_FOUND          | Line id doesn't exist on the ASN
                | ASN_CLOSED                  | Mutating a closed ASN without reopen
                | INVALID_STATUS_TRANSITION   | Transition not in the status workflow
----------------|-----------------------------|-----------------------------------------
Ledger          | INVALID_LEDGER_ENTRY        | Entry violates the delta/units rules
----------------|-----------------------------|-----------------------------------------
Immutability    | IMMUTABILITY_VIOLATION      | UPDATE/DELETE of a ledger entry
----------------|-----------------------------|-----------------------------------------
Sync            | EXTERNAL_PUSH_FAILED        | Marketplace push returned failure
----------------|-----------------------------|-----------------------------------------
Config          | INVALID_CONFIG              | Config value out of range / malformed

===============================================================================
HANDLING PATTERNS
===============================================================================

1. A barcode with no matching line is NOT an exception; it is a
   ``ScanResult(found=False)``.

2. A duplicate sale decrement is NOT an exception; the writer returns
   ``WriteStatus.ALREADY_EXISTS``.

3. ImmutabilityViolationError means application code tried to rewrite
   history. Investigate; never retry.
"""


class InventoryKernelError(Exception):
    """
    Base exception for all inventory kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "INVENTORY_KERNEL_ERROR"


# Validation exceptions


class ValidationError(InventoryKernelError):
    """Base exception for rejected input."""

    code: str = "VALIDATION_ERROR"


class LineValidationError(ValidationError):
    """An ASN line counter or text field is out of range."""

    code: str = "LINE_VALIDATION_FAILED"

    def __init__(self, line_id: str, field: str, value: object, reason: str):
        self.line_id = line_id
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(
            f"Line {line_id} field '{field}' rejected ({value!r}): {reason}"
        )


class LedgeredQuantityDecreaseError(ValidationError):
    """
    A cumulative bucket count dropped below what is already on the ledger.

    Ledgered quantities are permanent. Corrections go through an explicit
    adjustment entry, never through a silent negative receipt.
    """

    code: str = "LEDGERED_QUANTITY_DECREASE"

    def __init__(self, line_id: str, bucket: str, ledgered: int, requested: int):
        self.line_id = line_id
        self.bucket = bucket
        self.ledgered = ledgered
        self.requested = requested
        super().__init__(
            f"Line {line_id} {bucket} count {requested} is below the "
            f"{ledgered} unit(s) already ledgered"
        )


# ASN exceptions


class ASNError(InventoryKernelError):
    """Base exception for ASN aggregate errors."""

    code: str = "ASN_ERROR"


class ASNNotFoundError(ASNError):
    """ASN with given ID was not found."""

    code: str = "ASN_NOT_FOUND"

    def __init__(self, asn_id: str):
        self.asn_id = asn_id
        super().__init__(f"ASN not found: {asn_id}")


class ASNLineNotFoundError(ASNError):
    """ASN line with given ID was not found on the ASN."""

    code: str = "ASN_LINE_NOT_FOUND"

    def __init__(self, asn_id: str, line_id: str):
        self.asn_id = asn_id
        self.line_id = line_id
        super().__init__(f"Line {line_id} not found on ASN {asn_id}")


class ASNClosedError(ASNError):
    """The ASN is closed; lines cannot change until it is reopened."""

    code: str = "ASN_CLOSED"

    def __init__(self, asn_id: str, status: str):
        self.asn_id = asn_id
        self.status = status
        super().__init__(
            f"ASN {asn_id} is closed (status={status}); reopen it first"
        )


class InvalidStatusTransitionError(ASNError):
    """Requested ASN status transition is not in the workflow."""

    code: str = "INVALID_STATUS_TRANSITION"

    def __init__(self, asn_id: str, from_status: str, to_status: str):
        self.asn_id = asn_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"ASN {asn_id} cannot move from '{from_status}' to '{to_status}'"
        )


# Ledger exceptions


class LedgerError(InventoryKernelError):
    """Base exception for ledger write errors."""

    code: str = "LEDGER_ERROR"


class InvalidLedgerEntryError(LedgerError):
    """Ledger entry spec violates the delta/units rules."""

    code: str = "INVALID_LEDGER_ENTRY"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid ledger entry: {reason}")


# Immutability exceptions


class ImmutabilityError(InventoryKernelError):
    """Base exception for immutability-related errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify or delete an immutable record.

    Ledger entries and sync warnings are immutable from creation; ASN lines
    are immutable while their header is closed.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


# Sync exceptions


class SyncError(InventoryKernelError):
    """Base exception for external inventory synchronization."""

    code: str = "SYNC_ERROR"


class ExternalPushError(SyncError):
    """The external inventory system rejected or failed a push."""

    code: str = "EXTERNAL_PUSH_FAILED"

    def __init__(self, client_id: str, sku_id: str, reason: str):
        self.client_id = client_id
        self.sku_id = sku_id
        self.reason = reason
        super().__init__(
            f"Push for client {client_id} sku {sku_id} failed: {reason}"
        )


# Config exceptions


class ConfigError(InventoryKernelError):
    """Base exception for configuration errors."""

    code: str = "CONFIG_ERROR"


class InvalidConfigError(ConfigError):
    """Configuration value is missing or out of range."""

    code: str = "INVALID_CONFIG"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid config '{key}': {reason}")
