"""
Module: inventory_kernel.models.ledger
Responsibility: ORM persistence for inventory ledger entries -- the single
    source of truth for stock.  On-hand is never stored; it is always the
    sum of ``qty_delta`` over entries.
Architecture position: Kernel > Models.  May import from db/ and domain/ only.

Invariants enforced:
    - Append-only: entries are never updated or deleted (ORM listeners in
      db/immutability.py raise ImmutabilityViolationError).
    - Idempotency key uniqueness (UNIQUE constraint uq_ledger_idempotency).
      NULL keys are allowed and never collide.

Failure modes:
    - IntegrityError on duplicate idempotency_key.  LedgerWriter turns this
      into WriteStatus.ALREADY_EXISTS.
    - ImmutabilityViolationError on UPDATE/DELETE.

Audit relevance:
    Every unit that entered, left, or was set aside is explained by exactly
    one row here, traceable to its source document and creating actor.
"""

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import Date, DateTime, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, UUIDString
from inventory_kernel.db.types import MAX_LOT_NUMBER_LENGTH, MAX_NOTES_LENGTH, MAX_REFERENCE_LENGTH
from inventory_kernel.domain.ledger import (
    LedgerEntryRecord,
    LedgerEntrySpec,
    ReasonCode,
    TransactionSubtype,
    TransactionType,
)


class InventoryLedgerEntry(Base):
    """
    One immutable, signed stock movement.

    Contract:
        Rows are INSERTed by LedgerWriter only.  After insert no column may
        change.

    Guarantees:
        - idempotency_key, when present, is unique across the table.
        - qty_delta is 0 for condition and reservation entries.

    Non-goals:
        - Does NOT validate sign rules; LedgerWriter does that before insert.
    """

    __tablename__ = "inventory_ledger"

    __table_args__ = (
        UniqueConstraint("idempotency_key", name="uq_ledger_idempotency"),
        Index("idx_ledger_sku_location", "sku_id", "location_id"),
        Index("idx_ledger_source", "source_type", "source_ref"),
        Index("idx_ledger_client", "client_id"),
    )

    client_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    sku_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    location_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    # Signed change to sellable on-hand
    qty_delta: Mapped[int] = mapped_column(nullable=False)

    # Units the entry explains (bucket size for delta-0 entries)
    units: Mapped[int] = mapped_column(nullable=False)

    transaction_type: Mapped[str] = mapped_column(String(50), nullable=False)
    transaction_subtype: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Originating document, e.g. ("asn", <asn id>) or ("shopify_order", "1001")
    source_type: Mapped[str] = mapped_column(String(50), nullable=False)
    source_ref: Mapped[str] = mapped_column(String(MAX_REFERENCE_LENGTH), nullable=False)
    source_line_ref: Mapped[str | None] = mapped_column(
        String(MAX_REFERENCE_LENGTH), nullable=True,
    )

    idempotency_key: Mapped[str | None] = mapped_column(String(300), nullable=True)

    lot_number: Mapped[str | None] = mapped_column(
        String(MAX_LOT_NUMBER_LENGTH), nullable=True,
    )
    expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    reason_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    notes: Mapped[str | None] = mapped_column(String(MAX_NOTES_LENGTH), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_by_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    def __repr__(self) -> str:
        return (
            f"<InventoryLedgerEntry {self.transaction_type}"
            f"{'/' + self.transaction_subtype if self.transaction_subtype else ''} "
            f"sku={self.sku_id} delta={self.qty_delta}>"
        )

    def to_dto(self) -> LedgerEntryRecord:
        """Convert ORM model to frozen domain DTO."""
        return LedgerEntryRecord(
            id=self.id,
            client_id=self.client_id,
            sku_id=self.sku_id,
            location_id=self.location_id,
            qty_delta=self.qty_delta,
            units=self.units,
            transaction_type=TransactionType(self.transaction_type),
            transaction_subtype=(
                TransactionSubtype(self.transaction_subtype)
                if self.transaction_subtype else None
            ),
            source_type=self.source_type,
            source_ref=self.source_ref,
            source_line_ref=self.source_line_ref,
            idempotency_key=self.idempotency_key,
            lot_number=self.lot_number,
            expiry_date=self.expiry_date,
            reason_code=ReasonCode(self.reason_code) if self.reason_code else None,
            notes=self.notes,
            created_at=self.created_at,
            created_by_id=self.created_by_id,
        )

    @classmethod
    def from_spec(
        cls,
        spec: LedgerEntrySpec,
        created_at: datetime,
        created_by_id: UUID,
    ) -> "InventoryLedgerEntry":
        """Create ORM model from a validated write spec."""
        return cls(
            client_id=spec.client_id,
            sku_id=spec.sku_id,
            location_id=spec.location_id,
            qty_delta=spec.qty_delta,
            units=spec.units,
            transaction_type=spec.transaction_type.value,
            transaction_subtype=(
                spec.transaction_subtype.value if spec.transaction_subtype else None
            ),
            source_type=spec.source_type,
            source_ref=spec.source_ref,
            source_line_ref=spec.source_line_ref,
            idempotency_key=spec.idempotency_key,
            lot_number=spec.lot_number,
            expiry_date=spec.expiry_date,
            reason_code=spec.reason_code.value if spec.reason_code else None,
            notes=spec.notes,
            created_at=created_at,
            created_by_id=created_by_id,
        )
