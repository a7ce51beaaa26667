"""
ORM-Level Immutability Enforcement.

===============================================================================
WHY THIS EXISTS
===============================================================================

The inventory ledger is an accounting-grade audit trail.  A unit that was
received, sold or written off must stay explained forever; corrections are
new ADJUSTMENT entries, never edits.

SQLAlchemy fires events before UPDATE/DELETE operations reach the database.
We register listeners that intercept these events and check our invariants:

    session.flush()
         |
         v
    [before_flush]  --> _check_closed_asn_lines() ------> ImmutabilityViolationError
         |                                                        ^
         v                                                        |
    [before_update] --> _check_*_immutability() -----------------+
         |                                                        |
         v                                                        |
    [before_delete] --> _check_*_delete() -----------------------+
         |
         v
    SQL sent to database (only if checks pass)

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity                | When Immutable                  | Why
----------------------|---------------------------------|--------------------------------
InventoryLedgerEntry  | ALWAYS (from creation)          | On-hand is derived from it
SyncWarning           | ALWAYS (from creation)          | Evidence of a divergent push
ASNLine               | While header.closed_at is set   | Closed receipt is finalized

===============================================================================
DESIGN DECISIONS
===============================================================================

1. ASN lines are checked in before_flush, not before_update, because the
   rule depends on the header's *persisted* closed_at.  A commit that sets
   closed_at and touches lines in the same flush is allowed; so is a reopen
   that clears closed_at and edits lines in the same flush.

2. Inline imports avoid circular imports between db/ and the model modules.

===============================================================================
USAGE
===============================================================================

    from inventory_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # Called once at startup

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
"""

from sqlalchemy import event
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import get_history

from inventory_kernel.exceptions import ImmutabilityViolationError
from inventory_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _block(entity_type: str, entity_id, operation: str, reason: str) -> None:
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(entity_id),
            "operation": operation,
            "reason": reason,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(entity_id),
        reason=reason,
    )


def _check_ledger_entry_immutability(mapper, connection, target):
    """Ledger entries are immutable from creation."""
    _block(
        "InventoryLedgerEntry", target.id, "UPDATE",
        "Ledger entries are append-only; post an adjustment instead",
    )


def _check_ledger_entry_delete(mapper, connection, target):
    """Ledger entries can never be deleted."""
    _block(
        "InventoryLedgerEntry", target.id, "DELETE",
        "Ledger entries cannot be deleted",
    )


def _check_sync_warning_immutability(mapper, connection, target):
    _block("SyncWarning", target.id, "UPDATE", "Sync warnings are append-only")


def _check_sync_warning_delete(mapper, connection, target):
    _block("SyncWarning", target.id, "DELETE", "Sync warnings cannot be deleted")


def _persisted_closed_at(header):
    """closed_at as stored before this flush (None for a new header)."""
    history = get_history(header, "closed_at")
    if history.deleted:
        return history.deleted[0]
    if history.unchanged:
        return history.unchanged[0]
    return None


def _header_is_locked(header) -> bool:
    # Closed before this flush and not being reopened by it.
    return _persisted_closed_at(header) is not None and header.closed_at is not None


def _check_closed_asn_lines(session, flush_context, instances):
    """
    Block insert, update, or delete of lines under a closed ASN header.

    Only an explicit reopen (clearing closed_at) unlocks the lines.
    """
    from inventory_modules.receiving.orm import ASNHeaderModel, ASNLineModel

    with session.no_autoflush:
        for operation, objects in (
            ("INSERT", session.new),
            ("UPDATE", session.dirty),
            ("DELETE", session.deleted),
        ):
            for obj in list(objects):
                if not isinstance(obj, ASNLineModel):
                    continue
                if operation == "UPDATE" and not session.is_modified(obj):
                    continue
                header = obj.header
                if header is None and obj.asn_id is not None:
                    # Pending lines added by FK do not lazy-load their header
                    header = session.get(ASNHeaderModel, obj.asn_id)
                if header is not None and _header_is_locked(header):
                    _block(
                        "ASNLine", obj.id, operation,
                        f"ASN {header.id} is closed (status={header.status}); "
                        f"reopen it before changing lines",
                    )


def register_immutability_listeners():
    """
    Register all immutability enforcement event listeners.

    Call this after all models are imported but before any database
    operations begin.  Registering twice is harmless.
    """
    from inventory_kernel.models.ledger import InventoryLedgerEntry
    from inventory_kernel.models.sync_warning import SyncWarning

    _safe_listen(InventoryLedgerEntry, "before_update", _check_ledger_entry_immutability)
    _safe_listen(InventoryLedgerEntry, "before_delete", _check_ledger_entry_delete)

    _safe_listen(SyncWarning, "before_update", _check_sync_warning_immutability)
    _safe_listen(SyncWarning, "before_delete", _check_sync_warning_delete)

    _safe_listen(Session, "before_flush", _check_closed_asn_lines)


def _safe_listen(target, event_name, listener_fn):
    if not event.contains(target, event_name, listener_fn):
        event.listen(target, event_name, listener_fn)


def _safe_remove_listener(target, event_name, listener_fn):
    """
    Safely remove an event listener, ignoring if not registered.

    This prevents errors when unregistering listeners that may not have been
    registered (e.g., in test scenarios with custom setup/teardown).
    """
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests where you need to intentionally
    violate immutability rules to verify detection.
    """
    from inventory_kernel.models.ledger import InventoryLedgerEntry
    from inventory_kernel.models.sync_warning import SyncWarning

    _safe_remove_listener(InventoryLedgerEntry, "before_update", _check_ledger_entry_immutability)
    _safe_remove_listener(InventoryLedgerEntry, "before_delete", _check_ledger_entry_delete)

    _safe_remove_listener(SyncWarning, "before_update", _check_sync_warning_immutability)
    _safe_remove_listener(SyncWarning, "before_delete", _check_sync_warning_delete)

    _safe_remove_listener(Session, "before_flush", _check_closed_asn_lines)
