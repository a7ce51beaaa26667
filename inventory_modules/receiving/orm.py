"""
Module: inventory_modules.receiving.orm
Responsibility: SQLAlchemy ORM persistence for ASN headers and lines.
Architecture position: Modules > Receiving > ORM.  Inherits from TrackedBase
    (inventory_kernel.db.base).  SKUs are referenced by id with no foreign
    key, like every registry reference in this package.

Invariants enforced:
    - received_units equals the sum of the four bucket counters after every
      mutation (maintained by ASNLineModel.apply_counts / add_normal_unit).
    - Lines of a header whose closed_at is set are immutable (session-level
      before_flush check in inventory_kernel.db.immutability).
    - asn_number is unique per client.

Audit relevance:
    These rows are the working document of a receiving session.  The
    authoritative record of stock remains InventoryLedgerEntry.
"""

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import Date, DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_engines.asn_types import ASNStatus, LineCounts, LineSnapshot
from inventory_kernel.db.base import TrackedBase, UUIDString
from inventory_kernel.db.types import MAX_LOT_NUMBER_LENGTH, MAX_NOTES_LENGTH


class ASNHeaderModel(TrackedBase):
    """
    Advance Ship Notice header.

    Guarantees:
        - status is one of ASNStatus values.
        - closed_at is set exactly when status is closed or issue.
    """

    __tablename__ = "asn_headers"

    __table_args__ = (
        UniqueConstraint("client_id", "asn_number", name="uq_asn_client_number"),
        Index("idx_asn_client", "client_id"),
        Index("idx_asn_status", "status"),
        Index("idx_asn_tracking", "tracking_number"),
    )

    client_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    asn_number: Mapped[str] = mapped_column(String(50), nullable=False)
    carrier: Mapped[str | None] = mapped_column(String(50), nullable=True)
    tracking_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    expected_arrival: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ASNStatus.NOT_RECEIVED.value,
    )
    received_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    notes: Mapped[str | None] = mapped_column(String(MAX_NOTES_LENGTH), nullable=True)

    lines: Mapped[list["ASNLineModel"]] = relationship(
        "ASNLineModel",
        back_populates="header",
        order_by="ASNLineModel.line_no",
        lazy="selectin",
    )

    @property
    def asn_status(self) -> ASNStatus:
        return ASNStatus(self.status)

    def to_dto(self):
        """Convert ORM model (with its lines) to the frozen ASN DTO."""
        from inventory_modules.receiving.models import ASN

        return ASN(
            id=self.id,
            client_id=self.client_id,
            asn_number=self.asn_number,
            status=self.asn_status,
            carrier=self.carrier,
            tracking_number=self.tracking_number,
            expected_arrival=self.expected_arrival,
            received_at=self.received_at,
            closed_at=self.closed_at,
            notes=self.notes,
            lines=tuple(line.to_dto() for line in self.lines),
        )

    def __repr__(self) -> str:
        return f"<ASNHeader {self.asn_number} status={self.status}>"


class ASNLineModel(TrackedBase):
    """One expected SKU on an ASN, with its four condition counters."""

    __tablename__ = "asn_lines"

    __table_args__ = (
        UniqueConstraint("asn_id", "line_no", name="uq_asn_line_no"),
        Index("idx_asn_line_asn", "asn_id"),
        Index("idx_asn_line_sku", "sku_id"),
    )

    asn_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("asn_headers.id"), nullable=False,
    )
    line_no: Mapped[int] = mapped_column(nullable=False)
    sku_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    expected_units: Mapped[int] = mapped_column(nullable=False, default=0)
    received_units: Mapped[int] = mapped_column(nullable=False, default=0)
    normal_units: Mapped[int] = mapped_column(nullable=False, default=0)
    damaged_units: Mapped[int] = mapped_column(nullable=False, default=0)
    missing_units: Mapped[int] = mapped_column(nullable=False, default=0)
    quarantined_units: Mapped[int] = mapped_column(nullable=False, default=0)

    lot_number: Mapped[str | None] = mapped_column(String(MAX_LOT_NUMBER_LENGTH), nullable=True)
    expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(String(MAX_NOTES_LENGTH), nullable=True)

    # Opaque reference to a QC photo held by external storage
    qc_photo_ref: Mapped[str | None] = mapped_column(String(500), nullable=True)

    header: Mapped[ASNHeaderModel] = relationship(
        "ASNHeaderModel", back_populates="lines",
    )

    def apply_counts(self, counts: LineCounts) -> None:
        """Replace the cumulative counters; text fields only when given."""
        self.normal_units = counts.normal_units
        self.damaged_units = counts.damaged_units
        self.missing_units = counts.missing_units
        self.quarantined_units = counts.quarantined_units
        self.received_units = counts.received_units
        if counts.lot_number is not None:
            self.lot_number = counts.lot_number
        if counts.expiry_date is not None:
            self.expiry_date = counts.expiry_date
        if counts.notes is not None:
            self.notes = counts.notes
        if counts.qc_photo_ref is not None:
            self.qc_photo_ref = counts.qc_photo_ref

    def add_normal_unit(self) -> None:
        """One good unit scanned."""
        self.normal_units += 1
        self.received_units = self._bucket_total()

    def _bucket_total(self) -> int:
        return (
            self.normal_units + self.damaged_units
            + self.missing_units + self.quarantined_units
        )

    def to_dto(self):
        """Convert ORM model to the frozen ASNLine DTO."""
        from inventory_modules.receiving.models import ASNLine

        return ASNLine(
            id=self.id,
            asn_id=self.asn_id,
            line_no=self.line_no,
            sku_id=self.sku_id,
            expected_units=self.expected_units,
            received_units=self.received_units,
            normal_units=self.normal_units,
            damaged_units=self.damaged_units,
            missing_units=self.missing_units,
            quarantined_units=self.quarantined_units,
            lot_number=self.lot_number,
            expiry_date=self.expiry_date,
            notes=self.notes,
            qc_photo_ref=self.qc_photo_ref,
        )

    def to_snapshot(self) -> LineSnapshot:
        return LineSnapshot(
            line_id=self.id,
            sku_id=self.sku_id,
            expected_units=self.expected_units,
            normal_units=self.normal_units,
            damaged_units=self.damaged_units,
            missing_units=self.missing_units,
            quarantined_units=self.quarantined_units,
            lot_number=self.lot_number,
            expiry_date=self.expiry_date,
            notes=self.notes,
        )

    def __repr__(self) -> str:
        return f"<ASNLine {self.line_no} sku={self.sku_id} {self.received_units}/{self.expected_units}>"
