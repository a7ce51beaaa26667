"""
Module: inventory_kernel.selectors.registry_selector
Responsibility: Read-only lookups of SKU and location reference data.
Architecture position: Kernel > Selectors.
"""

from uuid import UUID

from sqlalchemy import func, or_, select

from inventory_kernel.domain.registry import LocationRecord, SkuRecord
from inventory_kernel.models.registry import Location, Sku
from inventory_kernel.selectors.base import BaseSelector


class RegistrySelector(BaseSelector[Sku]):
    """SKU and location lookups."""

    def get_sku(self, sku_id: UUID) -> SkuRecord | None:
        sku = self.session.get(Sku, sku_id)
        return sku.to_dto() if sku is not None else None

    def get_location(self, location_id: UUID) -> LocationRecord | None:
        location = self.session.get(Location, location_id)
        return location.to_dto() if location is not None else None

    def find_skus_by_code(self, client_id: UUID, code: str) -> list[SkuRecord]:
        """
        Active SKUs of a client whose upc, ean, fnsku, asin or client_sku
        equals ``code``, case-insensitively.
        """
        needle = code.upper()
        rows = self.session.execute(
            select(Sku)
            .where(
                Sku.client_id == client_id,
                Sku.is_active.is_(True),
                or_(
                    func.upper(Sku.upc) == needle,
                    func.upper(Sku.ean) == needle,
                    func.upper(Sku.fnsku) == needle,
                    func.upper(Sku.asin) == needle,
                    func.upper(Sku.client_sku) == needle,
                ),
            )
            .order_by(Sku.client_sku)
        ).scalars().all()
        return [row.to_dto() for row in rows]
