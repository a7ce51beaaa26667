"""
ReconciliationReportService -- read-only ledger health report.

Contract:
    Surfaces the cases an operator must look at by hand: (order, SKU)
    pairs decremented more than once because the idempotency guard failed
    open, sync pushes that gave up, and per-SKU/location on-hand.

Invariants enforced:
    - Never writes.  Remediation is an explicit adjustment, never an
      automatic reversal of ledger entries.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.sync_warning import SyncWarning, SyncWarningRecord
from inventory_kernel.selectors.ledger_selector import (
    DuplicateSaleDecrement,
    LedgerSelector,
    OnHandBalance,
)

logger = get_logger("services.reconciliation_report")


@dataclass(frozen=True)
class ReconciliationReport:
    client_id: UUID | None
    generated_at: datetime | None
    duplicate_decrements: tuple[DuplicateSaleDecrement, ...]
    sync_warnings: tuple[SyncWarningRecord, ...]
    on_hand: tuple[OnHandBalance, ...]

    @property
    def is_clean(self) -> bool:
        return not self.duplicate_decrements and not self.sync_warnings


class ReconciliationReportService:
    """Builds reconciliation reports from the ledger and sync warnings."""

    def __init__(self, session: Session):
        self._session = session
        self._ledger = LedgerSelector(session)

    def duplicate_sale_decrements(
        self, client_id: UUID | None = None,
    ) -> list[DuplicateSaleDecrement]:
        duplicates = self._ledger.duplicate_sale_decrements(client_id)
        if duplicates:
            logger.warning(
                "duplicate_sale_decrements_found",
                extra={
                    "client_id": str(client_id) if client_id else None,
                    "count": len(duplicates),
                    "order_refs": [d.order_ref for d in duplicates],
                },
            )
        return duplicates

    def on_hand_snapshot(self, client_id: UUID | None = None) -> list[OnHandBalance]:
        return self._ledger.on_hand_by_location(client_id=client_id)

    def sync_warnings(self, client_id: UUID | None = None) -> list[SyncWarningRecord]:
        """Pushes that gave up, newest first."""
        stmt = select(SyncWarning).order_by(SyncWarning.created_at.desc())
        if client_id is not None:
            stmt = stmt.where(SyncWarning.client_id == client_id)
        return [row.to_dto() for row in self._session.execute(stmt).scalars().all()]

    def build(
        self,
        client_id: UUID | None = None,
        generated_at: datetime | None = None,
    ) -> ReconciliationReport:
        report = ReconciliationReport(
            client_id=client_id,
            generated_at=generated_at,
            duplicate_decrements=tuple(self.duplicate_sale_decrements(client_id)),
            sync_warnings=tuple(self.sync_warnings(client_id)),
            on_hand=tuple(self.on_hand_snapshot(client_id)),
        )
        logger.info(
            "reconciliation_report_built",
            extra={
                "client_id": str(client_id) if client_id else None,
                "duplicate_count": len(report.duplicate_decrements),
                "sync_warning_count": len(report.sync_warnings),
                "balance_count": len(report.on_hand),
            },
        )
        return report
