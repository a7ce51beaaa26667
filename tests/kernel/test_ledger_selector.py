"""Tests for LedgerSelector read queries and RegistrySelector code lookup."""

from uuid import uuid4

import pytest

from inventory_config.schema import MAIN_LOCATION_ID
from inventory_kernel.domain.ledger import (
    ConditionBucket,
    LedgerEntrySpec,
    ReasonCode,
    TransactionSubtype,
    TransactionType,
)
from inventory_kernel.selectors.ledger_selector import LedgerSelector
from inventory_kernel.selectors.registry_selector import RegistrySelector
from inventory_kernel.services.ledger_writer import LedgerWriter

SECOND_LOCATION_ID = uuid4()


@pytest.fixture
def write(session, client_id, test_actor_id, deterministic_clock):
    """Append one entry and commit; keyword arguments override the entry fields."""
    writer = LedgerWriter(session, deterministic_clock)

    def _write(sku_id, **overrides):
        fields = dict(
            client_id=client_id,
            sku_id=sku_id,
            location_id=MAIN_LOCATION_ID,
            qty_delta=10,
            units=10,
            transaction_type=TransactionType.RECEIPT,
            source_type="asn",
            source_ref="asn-1",
        )
        fields.update(overrides)
        deterministic_clock.tick()
        result = writer.append(LedgerEntrySpec(**fields), test_actor_id)
        session.commit()
        return result.entry

    return _write


def _sale(order_ref, qty=1, source_type="shopify_fulfillment", **extra):
    return dict(
        qty_delta=-qty,
        units=qty,
        transaction_type=TransactionType.OUTBOUND,
        transaction_subtype=TransactionSubtype.SALE_DECREMENT,
        reason_code=ReasonCode.SOLD,
        source_type=source_type,
        source_ref=order_ref,
        **extra,
    )


class TestOnHand:
    """On-hand is the sum of qty_delta; zero-delta entries never move it."""

    def test_sum_of_deltas(self, session, widget, write):
        write(widget.id, qty_delta=60, units=60)
        write(widget.id, qty_delta=25, units=25)
        write(widget.id, **_sale("1001", qty=5))
        write(
            widget.id,
            qty_delta=0, units=15,
            transaction_type=TransactionType.ADJUSTMENT,
            transaction_subtype=TransactionSubtype.CONDITION_DAMAGED,
            reason_code=ReasonCode.DAMAGE,
        )

        assert LedgerSelector(session).on_hand(widget.id) == 80

    def test_no_entries_is_zero(self, session, widget):
        assert LedgerSelector(session).on_hand(widget.id) == 0

    def test_per_location(self, session, widget, write):
        write(widget.id, qty_delta=7, units=7)
        write(widget.id, qty_delta=3, units=3, location_id=SECOND_LOCATION_ID)
        selector = LedgerSelector(session)

        assert selector.on_hand(widget.id, MAIN_LOCATION_ID) == 7
        assert selector.on_hand(widget.id, SECOND_LOCATION_ID) == 3
        assert selector.on_hand(widget.id) == 10

        balances = selector.on_hand_by_location(sku_id=widget.id)
        assert {(b.location_id, b.on_hand) for b in balances} == {
            (MAIN_LOCATION_ID, 7),
            (SECOND_LOCATION_ID, 3),
        }


class TestLedgeredUnitsByLine:
    """Units per (line, bucket) drive incremental commits."""

    def test_sums_units_per_bucket(self, session, widget, write):
        asn_id = uuid4()
        line_ref = str(uuid4())
        common = dict(source_type="asn", source_ref=str(asn_id), source_line_ref=line_ref)
        write(widget.id, qty_delta=60, units=60, **common)
        write(widget.id, qty_delta=25, units=25, **common)
        write(
            widget.id,
            qty_delta=0, units=15,
            transaction_type=TransactionType.ADJUSTMENT,
            transaction_subtype=TransactionSubtype.CONDITION_DAMAGED,
            reason_code=ReasonCode.DAMAGE,
            **common,
        )

        ledgered = LedgerSelector(session).ledgered_units_by_line(asn_id)

        assert ledgered == {
            (line_ref, ConditionBucket.NORMAL): 85,
            (line_ref, ConditionBucket.DAMAGED): 15,
        }

    def test_other_asns_ignored(self, session, widget, write):
        write(widget.id, source_ref=str(uuid4()), source_line_ref="x")
        assert LedgerSelector(session).ledgered_units_by_line(uuid4()) == {}


class TestSaleDecrements:

    def test_find_sale_decrement(self, session, widget, gadget, write):
        written = write(widget.id, **_sale("1001", qty=2))
        selector = LedgerSelector(session)

        assert selector.find_sale_decrement("shopify_fulfillment", "1001", widget.id).id == written.id
        assert selector.find_sale_decrement("shopify_fulfillment", "1001", gadget.id) is None
        assert selector.find_sale_decrement("shopify_fulfillment", "1002", widget.id) is None

    def test_find_sale_decrement_is_scoped_to_channel(self, session, widget, write):
        write(widget.id, **_sale("1001", source_type="shopify_fulfillment"))

        assert LedgerSelector(session).find_sale_decrement(
            "amazon_fulfillment", "1001", widget.id,
        ) is None

    def test_duplicates_reported(self, session, client_id, widget, gadget, write):
        # No idempotency key: the guard failed open
        write(widget.id, **_sale("1001"))
        write(widget.id, **_sale("1001"))
        write(gadget.id, **_sale("1001"))

        duplicates = LedgerSelector(session).duplicate_sale_decrements(client_id)

        assert len(duplicates) == 1
        assert duplicates[0].order_ref == "1001"
        assert duplicates[0].source_type == "shopify_fulfillment"
        assert duplicates[0].sku_id == widget.id
        assert duplicates[0].entry_count == 2
        assert duplicates[0].total_delta == -2

    def test_same_order_on_two_channels_is_not_a_duplicate(
        self, session, client_id, widget, write,
    ):
        write(widget.id, **_sale("1001", source_type="shopify_fulfillment"))
        write(widget.id, **_sale("1001", source_type="amazon_fulfillment"))

        assert LedgerSelector(session).duplicate_sale_decrements(client_id) == []


class TestHistory:

    def test_entries_for_source_oldest_first(self, session, widget, write):
        first = write(widget.id, source_ref="asn-9", qty_delta=1, units=1)
        second = write(widget.id, source_ref="asn-9", qty_delta=2, units=2)
        write(widget.id, source_ref="asn-10")

        entries = LedgerSelector(session).entries_for_source("asn", "asn-9")

        assert [e.id for e in entries] == [first.id, second.id]

    def test_sku_history_newest_first(self, session, widget, write):
        first = write(widget.id, qty_delta=1, units=1)
        second = write(widget.id, **_sale("1001"))

        history = LedgerSelector(session).sku_history(widget.id)
        assert [e.id for e in history] == [second.id, first.id]
        assert len(LedgerSelector(session).sku_history(widget.id, limit=1)) == 1


class TestRegistryLookup:
    """Scanned codes resolve to active SKUs of the client."""

    @pytest.mark.parametrize("code", ["012345678905", "X00ABC1234", "x00abc1234", "WIDGET-001"])
    def test_matches_any_identifier(self, session, client_id, widget, code):
        found = RegistrySelector(session).find_skus_by_code(client_id, code.upper())
        assert [s.id for s in found] == [widget.id]

    def test_scoped_to_client(self, session, widget):
        assert RegistrySelector(session).find_skus_by_code(uuid4(), "012345678905") == []

    def test_inactive_skus_ignored(self, session, client_id, create_sku, main_location):
        create_sku("OLD-1", upc="111111111117", is_active=False)
        assert RegistrySelector(session).find_skus_by_code(client_id, "111111111117") == []
