"""
Module: inventory_kernel.selectors.ledger_selector
Responsibility: Read-only ledger queries: on-hand balances, entries by
    source document, ledgered quantity per ASN line and bucket, and sale
    decrement lookups.  There are no stored balances anywhere; every number
    here is a sum over InventoryLedgerEntry rows at query time.
Architecture position: Kernel > Selectors.  May import from models/,
    domain/ and selectors/base.py.

Failure modes:
    - Returns zero or empty results when no entries exist.
"""

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import func, select

from inventory_kernel.domain.ledger import (
    ConditionBucket,
    LedgerEntryRecord,
    TransactionSubtype,
    TransactionType,
    bucket_for_entry,
)
from inventory_kernel.models.ledger import InventoryLedgerEntry
from inventory_kernel.selectors.base import BaseSelector

ASN_SOURCE_TYPE = "asn"


@dataclass(frozen=True)
class OnHandBalance:
    """Sellable on-hand for one SKU at one location."""

    client_id: UUID
    sku_id: UUID
    location_id: UUID
    on_hand: int
    entry_count: int


@dataclass(frozen=True)
class DuplicateSaleDecrement:
    """An order line of one sales channel decremented more than once."""

    client_id: UUID
    source_type: str
    order_ref: str
    sku_id: UUID
    entry_count: int
    total_delta: int


class LedgerSelector(BaseSelector[InventoryLedgerEntry]):
    """Read-only queries over the inventory ledger."""

    def on_hand(self, sku_id: UUID, location_id: UUID | None = None) -> int:
        """
        Sellable on-hand: the sum of qty_delta.

        With no location the sum runs across every location.
        """
        stmt = select(
            func.coalesce(func.sum(InventoryLedgerEntry.qty_delta), 0)
        ).where(InventoryLedgerEntry.sku_id == sku_id)
        if location_id is not None:
            stmt = stmt.where(InventoryLedgerEntry.location_id == location_id)
        return int(self.session.execute(stmt).scalar_one())

    def on_hand_by_location(
        self,
        client_id: UUID | None = None,
        sku_id: UUID | None = None,
    ) -> list[OnHandBalance]:
        """On-hand per (sku, location), ordered for stable reporting."""
        stmt = (
            select(
                InventoryLedgerEntry.client_id,
                InventoryLedgerEntry.sku_id,
                InventoryLedgerEntry.location_id,
                func.sum(InventoryLedgerEntry.qty_delta),
                func.count(InventoryLedgerEntry.id),
            )
            .group_by(
                InventoryLedgerEntry.client_id,
                InventoryLedgerEntry.sku_id,
                InventoryLedgerEntry.location_id,
            )
            .order_by(InventoryLedgerEntry.sku_id, InventoryLedgerEntry.location_id)
        )
        if client_id is not None:
            stmt = stmt.where(InventoryLedgerEntry.client_id == client_id)
        if sku_id is not None:
            stmt = stmt.where(InventoryLedgerEntry.sku_id == sku_id)

        return [
            OnHandBalance(
                client_id=row[0],
                sku_id=row[1],
                location_id=row[2],
                on_hand=int(row[3] or 0),
                entry_count=int(row[4]),
            )
            for row in self.session.execute(stmt).all()
        ]

    def entries_for_source(self, source_type: str, source_ref: str) -> list[LedgerEntryRecord]:
        """All entries written for one source document, oldest first."""
        rows = self.session.execute(
            select(InventoryLedgerEntry)
            .where(
                InventoryLedgerEntry.source_type == source_type,
                InventoryLedgerEntry.source_ref == source_ref,
            )
            .order_by(InventoryLedgerEntry.created_at, InventoryLedgerEntry.id)
        ).scalars().all()
        return [row.to_dto() for row in rows]

    def ledgered_units_by_line(self, asn_id: UUID) -> dict[tuple[str, ConditionBucket], int]:
        """
        Units already ledgered per (line id, bucket) for one ASN.

        This is what makes commits incremental: a commit only emits the part
        of each cumulative bucket count that is not in this map yet.
        """
        rows = self.session.execute(
            select(
                InventoryLedgerEntry.source_line_ref,
                InventoryLedgerEntry.transaction_type,
                InventoryLedgerEntry.transaction_subtype,
                func.sum(InventoryLedgerEntry.units),
            )
            .where(
                InventoryLedgerEntry.source_type == ASN_SOURCE_TYPE,
                InventoryLedgerEntry.source_ref == str(asn_id),
            )
            .group_by(
                InventoryLedgerEntry.source_line_ref,
                InventoryLedgerEntry.transaction_type,
                InventoryLedgerEntry.transaction_subtype,
            )
        ).all()

        ledgered: dict[tuple[str, ConditionBucket], int] = {}
        for line_ref, ttype, subtype, units in rows:
            bucket = bucket_for_entry(
                TransactionType(ttype),
                TransactionSubtype(subtype) if subtype else None,
            )
            if bucket is None or line_ref is None:
                continue
            key = (line_ref, bucket)
            ledgered[key] = ledgered.get(key, 0) + int(units or 0)
        return ledgered

    def find_sale_decrement(
        self, source_type: str, order_ref: str, sku_id: UUID,
    ) -> LedgerEntryRecord | None:
        """The sale decrement already written for (channel, order, SKU), if any."""
        row = self.session.execute(
            select(InventoryLedgerEntry)
            .where(
                InventoryLedgerEntry.sku_id == sku_id,
                InventoryLedgerEntry.source_type == source_type,
                InventoryLedgerEntry.source_ref == order_ref,
                InventoryLedgerEntry.transaction_type == TransactionType.OUTBOUND.value,
                InventoryLedgerEntry.transaction_subtype
                == TransactionSubtype.SALE_DECREMENT.value,
            )
            .order_by(InventoryLedgerEntry.created_at)
            .limit(1)
        ).scalar_one_or_none()
        return row.to_dto() if row is not None else None

    def duplicate_sale_decrements(
        self, client_id: UUID | None = None,
    ) -> list[DuplicateSaleDecrement]:
        """(channel, order, SKU) triples with more than one sale decrement."""
        stmt = (
            select(
                InventoryLedgerEntry.client_id,
                InventoryLedgerEntry.source_type,
                InventoryLedgerEntry.source_ref,
                InventoryLedgerEntry.sku_id,
                func.count(InventoryLedgerEntry.id),
                func.sum(InventoryLedgerEntry.qty_delta),
            )
            .where(
                InventoryLedgerEntry.transaction_subtype
                == TransactionSubtype.SALE_DECREMENT.value,
            )
            .group_by(
                InventoryLedgerEntry.client_id,
                InventoryLedgerEntry.source_type,
                InventoryLedgerEntry.source_ref,
                InventoryLedgerEntry.sku_id,
            )
            .having(func.count(InventoryLedgerEntry.id) > 1)
            .order_by(InventoryLedgerEntry.source_type, InventoryLedgerEntry.source_ref)
        )
        if client_id is not None:
            stmt = stmt.where(InventoryLedgerEntry.client_id == client_id)
        return [
            DuplicateSaleDecrement(
                client_id=row[0],
                source_type=row[1],
                order_ref=row[2],
                sku_id=row[3],
                entry_count=int(row[4]),
                total_delta=int(row[5] or 0),
            )
            for row in self.session.execute(stmt).all()
        ]

    def sku_history(self, sku_id: UUID, limit: int | None = None) -> list[LedgerEntryRecord]:
        """Every entry for a SKU, newest first."""
        stmt = (
            select(InventoryLedgerEntry)
            .where(InventoryLedgerEntry.sku_id == sku_id)
            .order_by(InventoryLedgerEntry.created_at.desc(), InventoryLedgerEntry.id)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return [row.to_dto() for row in self.session.execute(stmt).scalars().all()]
