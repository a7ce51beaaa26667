"""
inventory_engines.discrepancy -- Display status and damaged/missing decisions.

Responsibility:
    Derive the display-only ``closed_with_discrepancy`` label from the
    stored ASN status and the client's decisions on damaged or missing
    units.  The label is recomputed on every read and never stored.

Architecture position:
    Engines -- pure calculation, zero I/O.  Decisions are owned by an
    external collaborator; this module only reads them.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from inventory_engines.asn_types import ASNStatus, LineSnapshot


class DisplayStatus(str, Enum):
    NOT_RECEIVED = "not_received"
    RECEIVING = "receiving"
    CLOSED = "closed"
    ISSUE = "issue"
    CLOSED_WITH_DISCREPANCY = "closed_with_discrepancy"


class DiscrepancyType(str, Enum):
    DAMAGED = "damaged"
    MISSING = "missing"


class DecisionKind(str, Enum):
    RETURN_TO_INVENTORY = "return_to_inventory"
    DISCARD = "discard"
    CLAIM = "claim"
    PENDING = "pending"


@dataclass(frozen=True)
class DamagedItemDecision:
    """What the client decided to do with damaged or missing units of a line."""

    asn_id: UUID
    asn_line_id: UUID
    sku_id: UUID
    discrepancy_type: DiscrepancyType
    quantity: int
    decision: DecisionKind = DecisionKind.PENDING
    qc_photo_ref: str | None = None

    @property
    def is_discrepancy(self) -> bool:
        """Missing units always are; damaged units unless put back into stock."""
        if self.discrepancy_type == DiscrepancyType.MISSING:
            return True
        return self.decision != DecisionKind.RETURN_TO_INVENTORY


def derive_display_status(
    status: ASNStatus,
    decisions: Iterable[DamagedItemDecision] = (),
) -> DisplayStatus:
    """
    The label shown for an ASN.

    ``closed_with_discrepancy`` when the ASN is closed and any decision
    counts as a discrepancy; otherwise the stored status.
    """
    if status == ASNStatus.CLOSED and any(d.is_discrepancy for d in decisions):
        return DisplayStatus.CLOSED_WITH_DISCREPANCY
    return DisplayStatus(status.value)


def pending_decisions(
    asn_id: UUID,
    lines: Iterable[LineSnapshot],
    qc_photo_refs: dict[UUID, str] | None = None,
) -> tuple[DamagedItemDecision, ...]:
    """
    One pending decision per line and discrepancy type with units.

    Handed to the decisions collaborator after a commit so the client can
    choose what happens to damaged and missing stock.
    """
    refs = qc_photo_refs or {}
    out: list[DamagedItemDecision] = []
    for line in lines:
        for kind, units in (
            (DiscrepancyType.DAMAGED, line.damaged_units),
            (DiscrepancyType.MISSING, line.missing_units),
        ):
            if units > 0:
                out.append(
                    DamagedItemDecision(
                        asn_id=asn_id,
                        asn_line_id=line.line_id,
                        sku_id=line.sku_id,
                        discrepancy_type=kind,
                        quantity=units,
                        qc_photo_ref=refs.get(line.line_id),
                    )
                )
    return tuple(out)
