"""
Tests for LedgerWriter: sign rules, idempotency, and the savepoint path
that turns a unique-key collision into ALREADY_EXISTS.
"""

from uuid import uuid4

import pytest
from sqlalchemy import func, select

from inventory_config.schema import MAIN_LOCATION_ID
from inventory_kernel.domain.ledger import (
    LedgerEntrySpec,
    ReasonCode,
    TransactionSubtype,
    TransactionType,
)
from inventory_kernel.exceptions import InvalidLedgerEntryError
from inventory_kernel.models.ledger import InventoryLedgerEntry
from inventory_kernel.services.ledger_writer import LedgerWriter, WriteStatus


def _spec(client_id, sku_id, **overrides) -> LedgerEntrySpec:
    fields = dict(
        client_id=client_id,
        sku_id=sku_id,
        location_id=MAIN_LOCATION_ID,
        qty_delta=10,
        units=10,
        transaction_type=TransactionType.RECEIPT,
        source_type="asn",
        source_ref=str(uuid4()),
    )
    fields.update(overrides)
    return LedgerEntrySpec(**fields)


def _count(session) -> int:
    return session.execute(select(func.count(InventoryLedgerEntry.id))).scalar_one()


class TestAppend:
    """Basic writes."""

    def test_receipt_written(self, session, client_id, widget, test_actor_id, deterministic_clock):
        writer = LedgerWriter(session, deterministic_clock)
        result = writer.append(_spec(client_id, widget.id), test_actor_id)
        session.commit()

        assert result.status == WriteStatus.WRITTEN
        assert result.is_new
        assert result.entry.qty_delta == 10
        assert result.entry.created_by_id == test_actor_id
        assert _count(session) == 1

    def test_condition_entry_has_zero_delta(self, session, client_id, widget, test_actor_id):
        writer = LedgerWriter(session)
        result = writer.append(
            _spec(
                client_id, widget.id,
                qty_delta=0, units=15,
                transaction_type=TransactionType.ADJUSTMENT,
                transaction_subtype=TransactionSubtype.CONDITION_DAMAGED,
                reason_code=ReasonCode.DAMAGE,
            ),
            test_actor_id,
        )
        session.commit()

        assert result.entry.qty_delta == 0
        assert result.entry.units == 15
        assert result.entry.reason_code == ReasonCode.DAMAGE

    def test_written_entry_logged(self, session, client_id, widget, test_actor_id, captured_logs):
        LedgerWriter(session).append(_spec(client_id, widget.id), test_actor_id)
        session.commit()

        messages = [r["message"] for r in captured_logs()]
        assert "ledger_entry_written" in messages


class TestSignRules:
    """Specs that break the delta/units rules never reach the database."""

    @pytest.mark.parametrize(
        "overrides",
        [
            {"qty_delta": -5, "units": 5},
            {"qty_delta": 0, "units": 0},
            {"qty_delta": 10, "units": 9},
            {
                "qty_delta": 5, "units": 5,
                "transaction_type": TransactionType.OUTBOUND,
                "transaction_subtype": TransactionSubtype.SALE_DECREMENT,
            },
            {
                "qty_delta": 3, "units": 3,
                "transaction_type": TransactionType.ADJUSTMENT,
                "transaction_subtype": TransactionSubtype.CONDITION_MISSING,
            },
            {
                "qty_delta": 0, "units": 0,
                "transaction_type": TransactionType.ADJUSTMENT,
                "transaction_subtype": TransactionSubtype.CONDITION_QUARANTINED,
            },
            {
                "qty_delta": 5, "units": 5,
                "transaction_type": TransactionType.RECEIPT,
                "transaction_subtype": TransactionSubtype.ADJUSTMENT_PLUS,
            },
            {"qty_delta": 1.5, "units": 1},
            {"source_ref": ""},
        ],
    )
    def test_invalid_spec_rejected(self, session, client_id, widget, test_actor_id, overrides):
        writer = LedgerWriter(session)
        with pytest.raises(InvalidLedgerEntryError):
            writer.append(_spec(client_id, widget.id, **overrides), test_actor_id)
        session.rollback()
        assert _count(session) == 0

    def test_append_all_validates_before_writing(self, session, client_id, widget, test_actor_id):
        writer = LedgerWriter(session)
        good = _spec(client_id, widget.id)
        bad = _spec(client_id, widget.id, qty_delta=-1, units=1)

        with pytest.raises(InvalidLedgerEntryError):
            writer.append_all([good, bad], test_actor_id)
        session.commit()

        assert _count(session) == 0


class TestIdempotency:
    """One row per idempotency key."""

    def test_second_append_returns_existing(self, session, client_id, widget, test_actor_id):
        writer = LedgerWriter(session)
        spec = _spec(client_id, widget.id, idempotency_key="asn:normal:a:l:10")

        first = writer.append(spec, test_actor_id)
        session.commit()
        second = writer.append(spec, test_actor_id)
        session.commit()

        assert first.status == WriteStatus.WRITTEN
        assert second.status == WriteStatus.ALREADY_EXISTS
        assert second.entry.id == first.entry.id
        assert _count(session) == 1

    def test_entries_without_key_are_not_deduplicated(self, session, client_id, widget, test_actor_id):
        writer = LedgerWriter(session)
        spec = _spec(client_id, widget.id)

        writer.append(spec, test_actor_id)
        writer.append(spec, test_actor_id)
        session.commit()

        assert _count(session) == 2

    def test_collision_after_precheck_is_already_exists(
        self, session, session_factory, client_id, widget, test_actor_id, monkeypatch, captured_logs,
    ):
        """
        Two writers both pass the pre-check; the loser hits the unique
        constraint inside its savepoint and gets ALREADY_EXISTS while its
        surrounding transaction stays usable.
        """
        key = "sale:SALE_DECREMENT:shopify_fulfillment:1001:" + str(widget.id)
        spec = _spec(
            client_id, widget.id,
            qty_delta=-2, units=2,
            transaction_type=TransactionType.OUTBOUND,
            transaction_subtype=TransactionSubtype.SALE_DECREMENT,
            source_type="shopify_fulfillment",
            source_ref="1001",
            idempotency_key=key,
        )

        other = session_factory()
        try:
            winner = LedgerWriter(other).append(spec, test_actor_id)
            other.commit()
        finally:
            other.close()

        monkeypatch.setattr(LedgerWriter, "_get_existing_entry", lambda self, k: None)
        writer = LedgerWriter(session)
        loser = writer.append(spec, test_actor_id)
        unrelated = writer.append(_spec(client_id, widget.id), test_actor_id)
        session.commit()

        assert loser.status == WriteStatus.ALREADY_EXISTS
        assert loser.entry.id == winner.entry.id
        assert unrelated.status == WriteStatus.WRITTEN
        assert _count(session) == 2
        assert any(r["message"] == "concurrent_insert_conflict" for r in captured_logs())
