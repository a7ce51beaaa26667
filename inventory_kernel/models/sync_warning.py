"""
Module: inventory_kernel.models.sync_warning
Responsibility: Durable record of an external inventory push that gave up.
Architecture position: Kernel > Models.

Append-only, like the ledger.  A row here means the external system may
disagree with the ledger and somebody has to reconcile by hand.
"""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, UUIDString


@dataclass(frozen=True)
class SyncWarningRecord:
    id: UUID
    client_id: UUID
    sku_id: UUID
    order_ref: str | None
    attempts: int
    last_error: str
    created_at: datetime


class SyncWarning(Base):
    """An exhausted push, kept for manual reconciliation."""

    __tablename__ = "sync_warnings"

    __table_args__ = (
        Index("idx_sync_warning_client", "client_id"),
        Index("idx_sync_warning_sku", "sku_id"),
    )

    client_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    sku_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    order_ref: Mapped[str | None] = mapped_column(String(200), nullable=True)
    attempts: Mapped[int] = mapped_column(Integer, nullable=False)
    last_error: Mapped[str] = mapped_column(String(2000), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<SyncWarning sku={self.sku_id} order={self.order_ref}>"

    def to_dto(self) -> SyncWarningRecord:
        return SyncWarningRecord(
            id=self.id,
            client_id=self.client_id,
            sku_id=self.sku_id,
            order_ref=self.order_ref,
            attempts=self.attempts,
            last_error=self.last_error,
            created_at=self.created_at,
        )
