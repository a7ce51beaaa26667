"""Tests for the derived display status and pending damaged/missing decisions."""

from uuid import uuid4

import pytest

from inventory_engines.asn_types import ASNStatus, LineSnapshot
from inventory_engines.discrepancy import (
    DamagedItemDecision,
    DecisionKind,
    DiscrepancyType,
    DisplayStatus,
    derive_display_status,
    pending_decisions,
)

ASN_ID = uuid4()


def _decision(kind: DiscrepancyType, decision: DecisionKind) -> DamagedItemDecision:
    return DamagedItemDecision(
        asn_id=ASN_ID,
        asn_line_id=uuid4(),
        sku_id=uuid4(),
        discrepancy_type=kind,
        quantity=3,
        decision=decision,
    )


class TestDeriveDisplayStatus:
    """closed_with_discrepancy is a read-time label over a closed ASN."""

    def test_closed_without_decisions(self):
        assert derive_display_status(ASNStatus.CLOSED) == DisplayStatus.CLOSED

    def test_missing_units_always_count(self):
        decisions = [_decision(DiscrepancyType.MISSING, DecisionKind.RETURN_TO_INVENTORY)]
        assert derive_display_status(ASNStatus.CLOSED, decisions) == (
            DisplayStatus.CLOSED_WITH_DISCREPANCY
        )

    @pytest.mark.parametrize(
        "decision", [DecisionKind.DISCARD, DecisionKind.CLAIM, DecisionKind.PENDING],
    )
    def test_damaged_not_returned_counts(self, decision):
        decisions = [_decision(DiscrepancyType.DAMAGED, decision)]
        assert derive_display_status(ASNStatus.CLOSED, decisions) == (
            DisplayStatus.CLOSED_WITH_DISCREPANCY
        )

    def test_damaged_returned_to_inventory_does_not_count(self):
        decisions = [_decision(DiscrepancyType.DAMAGED, DecisionKind.RETURN_TO_INVENTORY)]
        assert derive_display_status(ASNStatus.CLOSED, decisions) == DisplayStatus.CLOSED

    @pytest.mark.parametrize(
        "status", [ASNStatus.NOT_RECEIVED, ASNStatus.RECEIVING, ASNStatus.ISSUE],
    )
    def test_only_closed_is_relabelled(self, status):
        decisions = [_decision(DiscrepancyType.MISSING, DecisionKind.PENDING)]
        assert derive_display_status(status, decisions).value == status.value


class TestPendingDecisions:

    def test_one_per_line_and_type(self):
        damaged_line = LineSnapshot(
            line_id=uuid4(), sku_id=uuid4(), expected_units=10,
            normal_units=7, damaged_units=2, missing_units=1,
        )
        clean_line = LineSnapshot(
            line_id=uuid4(), sku_id=uuid4(), expected_units=5, normal_units=5,
        )

        decisions = pending_decisions(
            ASN_ID, [damaged_line, clean_line], {damaged_line.line_id: "qc/photo-1.jpg"},
        )

        assert [(d.discrepancy_type, d.quantity) for d in decisions] == [
            (DiscrepancyType.DAMAGED, 2),
            (DiscrepancyType.MISSING, 1),
        ]
        assert all(d.decision == DecisionKind.PENDING for d in decisions)
        assert all(d.qc_photo_ref == "qc/photo-1.jpg" for d in decisions)

    def test_quarantine_is_not_a_decision(self):
        line = LineSnapshot(
            line_id=uuid4(), sku_id=uuid4(), expected_units=4, quarantined_units=4,
        )
        assert pending_decisions(ASN_ID, [line]) == ()
