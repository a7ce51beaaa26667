"""
Module: inventory_kernel.models.registry
Responsibility: ORM persistence for SKU and location reference data.
Architecture position: Kernel > Models.  May import from db/ and domain/ only.

The receiving core only reads these tables.  Catalogue maintenance belongs
to the platform around it.
"""

from sqlalchemy import Boolean, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import TrackedBase, UUID, UUIDString
from inventory_kernel.domain.registry import LocationRecord, SkuRecord


class Sku(TrackedBase):
    """A client-owned stock keeping unit and its scannable codes."""

    __tablename__ = "skus"

    __table_args__ = (
        UniqueConstraint("client_id", "client_sku", name="uq_sku_client_sku"),
        Index("idx_sku_client", "client_id"),
        Index("idx_sku_upc", "upc"),
        Index("idx_sku_ean", "ean"),
    )

    client_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    client_sku: Mapped[str] = mapped_column(String(100), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    upc: Mapped[str | None] = mapped_column(String(20), nullable=True)
    ean: Mapped[str | None] = mapped_column(String(20), nullable=True)
    fnsku: Mapped[str | None] = mapped_column(String(20), nullable=True)
    asin: Mapped[str | None] = mapped_column(String(20), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Sku {self.client_sku}>"

    def to_dto(self) -> SkuRecord:
        return SkuRecord(
            id=self.id,
            client_id=self.client_id,
            client_sku=self.client_sku,
            title=self.title,
            upc=self.upc,
            ean=self.ean,
            fnsku=self.fnsku,
            asin=self.asin,
            is_active=self.is_active,
        )


class Location(TrackedBase):
    """A physical stock location (bin, zone, or whole warehouse)."""

    __tablename__ = "locations"

    __table_args__ = (
        UniqueConstraint("code", name="uq_location_code"),
    )

    code: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Location {self.code}>"

    def to_dto(self) -> LocationRecord:
        return LocationRecord(
            id=self.id,
            code=self.code,
            name=self.name,
            is_active=self.is_active,
        )
