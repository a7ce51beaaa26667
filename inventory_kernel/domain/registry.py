"""Read-only registry records consumed by the receiving core."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class SkuRecord:
    """
    A client-owned SKU and every code it can be scanned by.

    ``identifiers`` yields the non-empty codes in match priority order.
    """

    id: UUID
    client_id: UUID
    client_sku: str
    title: str
    upc: str | None = None
    ean: str | None = None
    fnsku: str | None = None
    asin: str | None = None
    is_active: bool = True

    @property
    def identifiers(self) -> tuple[str, ...]:
        codes = (self.upc, self.ean, self.fnsku, self.asin, self.client_sku)
        return tuple(c for c in codes if c)


@dataclass(frozen=True)
class LocationRecord:
    id: UUID
    code: str
    name: str
    is_active: bool = True
