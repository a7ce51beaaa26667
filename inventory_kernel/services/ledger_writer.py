"""
LedgerWriter -- append-only writes to the inventory ledger.

Responsibility:
    Validates a LedgerEntrySpec against the delta/units rules and inserts
    exactly one InventoryLedgerEntry per idempotency key.

Architecture position:
    Kernel > Services -- imperative shell.  Called by the receiving
    service (per commit) and the fulfillment service (per sale or
    adjustment).  Flushes only; the caller owns commit.

Invariants enforced:
    - Sign rules: see inventory_kernel.domain.ledger.validate_entry_spec.
    - Idempotency: the UNIQUE idempotency_key is authoritative.  The
      pre-check SELECT is an optimization; two writers that both pass it
      collide on the constraint, and the loser gets ALREADY_EXISTS.
    - The insert runs inside a SAVEPOINT, so a collision rolls back only
      that entry and the caller's transaction stays usable.

Failure modes:
    - InvalidLedgerEntryError for a spec that breaks the sign rules.
    - IntegrityError re-raised when the constraint violated is not the
      idempotency key (nothing found under the key after rollback).
"""

from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.ledger import (
    LedgerEntryRecord,
    LedgerEntrySpec,
    validate_entry_spec,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.ledger import InventoryLedgerEntry
from inventory_kernel.services.base import BaseService

logger = get_logger("services.ledger_writer")


class WriteStatus(str, Enum):
    """Status of a write operation."""

    WRITTEN = "written"
    ALREADY_EXISTS = "already_exists"


@dataclass(frozen=True)
class LedgerWriteResult:
    """
    Result of a LedgerWriter.append() operation.

    ``entry`` is the newly written row, or the row that already held the
    idempotency key.
    """

    status: WriteStatus
    entry: LedgerEntryRecord

    @classmethod
    def written(cls, entry: LedgerEntryRecord) -> "LedgerWriteResult":
        return cls(status=WriteStatus.WRITTEN, entry=entry)

    @classmethod
    def already_exists(cls, entry: LedgerEntryRecord) -> "LedgerWriteResult":
        """Create an already-exists result (idempotent success)."""
        return cls(status=WriteStatus.ALREADY_EXISTS, entry=entry)

    @property
    def is_new(self) -> bool:
        return self.status == WriteStatus.WRITTEN


class LedgerWriter(BaseService[InventoryLedgerEntry]):
    """
    Append-only writer for InventoryLedgerEntry.

    Contract:
        ``append`` either inserts one row or returns the row that already
        holds the entry's idempotency key.  It never updates or deletes.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    def append(self, spec: LedgerEntrySpec, actor_id: UUID) -> LedgerWriteResult:
        """
        Validate and insert one ledger entry.

        Raises:
            InvalidLedgerEntryError: If the entry spec breaks the sign rules.
        """
        validate_entry_spec(spec)

        if spec.idempotency_key is not None:
            existing = self._get_existing_entry(spec.idempotency_key)
            if existing is not None:
                logger.info(
                    "ledger_entry_already_exists",
                    extra={
                        "idempotency_key": spec.idempotency_key,
                        "entry_id": str(existing.id),
                    },
                )
                return LedgerWriteResult.already_exists(existing.to_dto())

        entry = InventoryLedgerEntry.from_spec(
            spec, created_at=self._clock.now(), created_by_id=actor_id,
        )
        try:
            with self.session.begin_nested():
                self.session.add(entry)
                self.session.flush()
        except IntegrityError:
            if spec.idempotency_key is None:
                raise
            existing = self._load_conflicting_entry(spec.idempotency_key)
            if existing is None:
                raise
            logger.warning(
                "concurrent_insert_conflict",
                extra={
                    "idempotency_key": spec.idempotency_key,
                    "entry_id": str(existing.id),
                },
            )
            return LedgerWriteResult.already_exists(existing.to_dto())

        logger.info(
            "ledger_entry_written",
            extra={
                "entry_id": str(entry.id),
                "sku_id": str(spec.sku_id),
                "location_id": str(spec.location_id),
                "transaction_type": spec.transaction_type.value,
                "transaction_subtype": (
                    spec.transaction_subtype.value if spec.transaction_subtype else None
                ),
                "qty_delta": spec.qty_delta,
                "units": spec.units,
                "source_type": spec.source_type,
                "source_ref": spec.source_ref,
                "idempotency_key": spec.idempotency_key,
            },
        )
        return LedgerWriteResult.written(entry.to_dto())

    def append_all(
        self,
        specs: tuple[LedgerEntrySpec, ...] | list[LedgerEntrySpec],
        actor_id: UUID,
    ) -> tuple[LedgerWriteResult, ...]:
        """
        Append several entries in order.

        All specs are validated before the first insert, so a bad spec
        leaves nothing behind in the caller's transaction.
        """
        for spec in specs:
            validate_entry_spec(spec)
        return tuple(self.append(spec, actor_id) for spec in specs)

    def _get_existing_entry(self, idempotency_key: str) -> InventoryLedgerEntry | None:
        """Get existing entry by idempotency key."""
        return self.session.execute(
            select(InventoryLedgerEntry)
            .where(InventoryLedgerEntry.idempotency_key == idempotency_key)
        ).scalar_one_or_none()

    def _load_conflicting_entry(self, idempotency_key: str) -> InventoryLedgerEntry | None:
        """Reload the row a concurrent writer committed under the key."""
        return self.session.execute(
            select(InventoryLedgerEntry)
            .where(InventoryLedgerEntry.idempotency_key == idempotency_key)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
