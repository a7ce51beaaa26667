"""
Tests for the pure reconciliation engine (plan_commit and helpers).

Covers status classification, incremental entry emission, validation,
and properties that must hold for any combination of counts.
"""

from uuid import uuid4

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from inventory_engines.asn_types import ASNStatus, CommitTotals, LineCounts, LineSnapshot
from inventory_engines.reconciliation import (
    classify_status,
    plan_commit,
    status_path,
    validate_line,
)
from inventory_kernel.domain.ledger import (
    ConditionBucket,
    ReasonCode,
    TransactionSubtype,
    TransactionType,
)
from inventory_kernel.exceptions import LedgeredQuantityDecreaseError, LineValidationError

ASN_ID = uuid4()
CLIENT_ID = uuid4()
LOCATION_ID = uuid4()
LINE_ID = uuid4()
SKU_ID = uuid4()


def _plan(lines, ledgered=None, status=ASNStatus.NOT_RECEIVED, **kwargs):
    return plan_commit(
        asn_id=ASN_ID,
        client_id=CLIENT_ID,
        location_id=LOCATION_ID,
        current_status=status,
        lines=lines,
        ledgered=ledgered or {},
        **kwargs,
    )


def _line(expected=100, **counts) -> LineSnapshot:
    return LineSnapshot(line_id=LINE_ID, sku_id=SKU_ID, expected_units=expected, **counts)


def _ledgered_after(plan, before=None):
    """Ledgered map after applying a plan's entries."""
    out = dict(before or {})
    for e in plan.entries:
        bucket = {
            None: ConditionBucket.NORMAL,
            TransactionSubtype.CONDITION_DAMAGED: ConditionBucket.DAMAGED,
            TransactionSubtype.CONDITION_MISSING: ConditionBucket.MISSING,
            TransactionSubtype.CONDITION_QUARANTINED: ConditionBucket.QUARANTINED,
        }[e.transaction_subtype]
        key = (e.source_line_ref, bucket)
        out[key] = out.get(key, 0) + e.units
    return out


class TestPartialThenCompleteScenario:
    """Expected 100: commit 60 normal, then 85 normal + 15 damaged."""

    def test_first_commit_is_partial(self):
        plan = _plan([_line(normal_units=60)])

        assert plan.new_status == ASNStatus.RECEIVING
        assert plan.status_path == (ASNStatus.RECEIVING,)
        assert len(plan.entries) == 1
        entry = plan.entries[0]
        assert entry.transaction_type == TransactionType.RECEIPT
        assert entry.qty_delta == 60
        assert entry.units == 60
        assert entry.source_type == "asn"
        assert entry.source_ref == str(ASN_ID)
        assert entry.idempotency_key == f"asn:normal:{ASN_ID}:{LINE_ID}:60"

    def test_second_commit_emits_only_increments(self):
        first = _plan([_line(normal_units=60)])
        plan = _plan(
            [_line(normal_units=85, damaged_units=15)],
            ledgered=_ledgered_after(first),
            status=ASNStatus.RECEIVING,
        )

        assert plan.new_status == ASNStatus.ISSUE
        assert plan.status_path == (ASNStatus.ISSUE,)
        assert plan.closes
        receipt, damaged = plan.entries
        assert receipt.transaction_type == TransactionType.RECEIPT
        assert receipt.qty_delta == 25
        assert damaged.transaction_type == TransactionType.ADJUSTMENT
        assert damaged.transaction_subtype == TransactionSubtype.CONDITION_DAMAGED
        assert damaged.reason_code == ReasonCode.DAMAGE
        assert damaged.qty_delta == 0
        assert damaged.units == 15
        assert plan.receipt_delta == 25


class TestStatusClassification:

    @pytest.mark.parametrize(
        "normal, damaged, missing, quarantined, expected_status",
        [
            (0, 0, 0, 0, ASNStatus.RECEIVING),
            (99, 0, 0, 0, ASNStatus.RECEIVING),
            (100, 0, 0, 0, ASNStatus.CLOSED),
            (90, 5, 5, 0, ASNStatus.ISSUE),
            (95, 0, 0, 5, ASNStatus.ISSUE),
            (110, 0, 0, 0, ASNStatus.ISSUE),
            (0, 0, 100, 0, ASNStatus.ISSUE),
        ],
    )
    def test_classify(self, normal, damaged, missing, quarantined, expected_status):
        totals = CommitTotals(100, normal, damaged, missing, quarantined)
        assert classify_status(totals) == expected_status

    def test_complete_first_commit_passes_through_receiving(self):
        plan = _plan([_line(normal_units=100)])

        assert plan.new_status == ASNStatus.CLOSED
        assert plan.status_path == (ASNStatus.RECEIVING, ASNStatus.CLOSED)

    def test_first_commit_with_nothing_counted_stays_not_received(self):
        plan = _plan([_line(expected=10)])

        assert plan.new_status == ASNStatus.NOT_RECEIVED
        assert plan.status_path == ()
        assert plan.entries == ()
        assert not plan.is_noop
        assert not plan.closes

    def test_status_path_unchanged_is_empty(self):
        assert status_path(ASNStatus.RECEIVING, ASNStatus.RECEIVING) == ()

    def test_over_receipt_accepted_as_positive_variance(self):
        plan = _plan([_line(expected=10, normal_units=12)])

        assert plan.entries[0].qty_delta == 12
        assert plan.variances[0].variance == 2
        assert plan.variances[0].is_over_receipt


class TestTerminalStatusIsNoop:

    @pytest.mark.parametrize("status", [ASNStatus.CLOSED, ASNStatus.ISSUE])
    def test_no_entries(self, status):
        plan = _plan([_line(normal_units=100)], status=status)

        assert plan.is_noop
        assert plan.entries == ()
        assert plan.status_path == ()
        assert plan.new_status == status
        assert not plan.closes


class TestLineValidation:
    """Validation is all-or-nothing and names the line and field."""

    @pytest.mark.parametrize(
        "counts, field",
        [
            ({"normal_units": -1}, "normal_units"),
            ({"damaged_units": -3}, "damaged_units"),
            ({"missing_units": 1_000_001}, "missing_units"),
            ({"quarantined_units": 2.5}, "quarantined_units"),
            ({"normal_units": 1, "lot_number": "L" * 101}, "lot_number"),
            ({"normal_units": 1, "notes": "n" * 2001}, "notes"),
        ],
    )
    def test_bad_line_rejected(self, counts, field):
        good = LineSnapshot(line_id=uuid4(), sku_id=SKU_ID, expected_units=5, normal_units=5)
        bad = _line(**counts)

        with pytest.raises(LineValidationError) as exc_info:
            _plan([good, bad])

        assert exc_info.value.line_id == str(LINE_ID)
        assert exc_info.value.field == field

    def test_custom_maximum(self):
        with pytest.raises(LineValidationError):
            validate_line(LineCounts(LINE_ID, normal_units=11), max_units_per_line=10)

    def test_decrease_below_ledgered_rejected(self):
        with pytest.raises(LedgeredQuantityDecreaseError) as exc_info:
            _plan(
                [_line(normal_units=50)],
                ledgered={(str(LINE_ID), ConditionBucket.NORMAL): 60},
                status=ASNStatus.RECEIVING,
            )

        assert exc_info.value.ledgered == 60
        assert exc_info.value.requested == 50

    def test_zero_received_line_skipped(self):
        other = LineSnapshot(line_id=uuid4(), sku_id=uuid4(), expected_units=5)
        plan = _plan([_line(normal_units=10), other])

        assert {e.source_line_ref for e in plan.entries} == {str(LINE_ID)}


# =============================================================================
# Properties
# =============================================================================

_counts = st.integers(min_value=0, max_value=50)


@st.composite
def _lines_with_ledgered(draw):
    """Lines with counts plus a ledgered map that never exceeds them."""
    lines = []
    ledgered = {}
    for _ in range(draw(st.integers(min_value=1, max_value=4))):
        line = LineSnapshot(
            line_id=uuid4(),
            sku_id=uuid4(),
            expected_units=draw(_counts),
            normal_units=draw(_counts),
            damaged_units=draw(_counts),
            missing_units=draw(_counts),
            quarantined_units=draw(_counts),
        )
        lines.append(line)
        for bucket in ConditionBucket:
            done = draw(st.integers(min_value=0, max_value=line.bucket_units(bucket)))
            if done:
                ledgered[(str(line.line_id), bucket)] = done
    return lines, ledgered


class TestReconciliationProperties:

    @given(_lines_with_ledgered())
    @settings(max_examples=100, deadline=None)
    def test_ledger_catches_up_with_counts(self, data):
        """After applying a plan, ledgered units equal every bucket count."""
        lines, ledgered = data
        plan = _plan(lines, ledgered=ledgered, status=ASNStatus.RECEIVING)
        after = _ledgered_after(plan, ledgered)

        for line in lines:
            for bucket in ConditionBucket:
                assert after.get((str(line.line_id), bucket), 0) == line.bucket_units(bucket)

    @given(_lines_with_ledgered())
    @settings(max_examples=100, deadline=None)
    def test_only_normal_entries_move_stock(self, data):
        lines, ledgered = data
        plan = _plan(lines, ledgered=ledgered, status=ASNStatus.RECEIVING)

        for entry in plan.entries:
            assert entry.units > 0
            if entry.transaction_type == TransactionType.RECEIPT:
                assert entry.qty_delta == entry.units
            else:
                assert entry.qty_delta == 0
        expected_delta = sum(
            line.normal_units - ledgered.get((str(line.line_id), ConditionBucket.NORMAL), 0)
            for line in lines
        )
        assert plan.receipt_delta == expected_delta

    @given(_lines_with_ledgered())
    @settings(max_examples=100, deadline=None)
    def test_replay_emits_nothing(self, data):
        lines, ledgered = data
        first = _plan(lines, ledgered=ledgered, status=ASNStatus.RECEIVING)
        replay = _plan(lines, ledgered=_ledgered_after(first, ledgered), status=ASNStatus.RECEIVING)

        assert replay.entries == ()
        assert replay.new_status == first.new_status

    @given(_lines_with_ledgered())
    @settings(max_examples=100, deadline=None)
    def test_status_matches_totals(self, data):
        lines, _ = data
        plan = _plan(lines, status=ASNStatus.RECEIVING)
        totals = plan.totals

        if totals.total_accounted < totals.total_expected:
            assert plan.new_status == ASNStatus.RECEIVING
        elif totals.normal_units == totals.total_expected:
            assert plan.new_status == ASNStatus.CLOSED
        else:
            assert plan.new_status == ASNStatus.ISSUE

    @given(_lines_with_ledgered())
    @settings(max_examples=50, deadline=None)
    def test_keys_are_unique_within_a_plan(self, data):
        lines, ledgered = data
        plan = _plan(lines, ledgered=ledgered, status=ASNStatus.RECEIVING)
        keys = [e.idempotency_key for e in plan.entries]
        assert len(keys) == len(set(keys))
