"""
inventory_engines.reconciliation -- Commit planning for ASN receiving.

Responsibility:
    Given the lines of an ASN as they stand and the units already on the
    ledger for each (line, bucket), decide:
      1. whether every counted line is valid,
      2. which status the ASN moves to,
      3. which incremental ledger entries the commit must write.

Architecture position:
    Engines -- pure calculation, zero I/O.  Called by ReceivingService,
    which applies the returned CommitPlan inside one transaction.

Invariants enforced:
    - All-or-nothing validation: a plan is produced only if every counted
      line passes; otherwise the first failure is raised and nothing is
      planned.
    - Incremental emission: each bucket emits ``count - ledgered`` units,
      never the cumulative count, so resumed and reopened sessions do not
      double-count.
    - Ledgered quantities never shrink: a count below the ledgered units
      raises LedgeredQuantityDecreaseError.
    - Only the normal bucket moves sellable stock; the other buckets write
      zero-delta ADJUSTMENT entries that carry their units.
    - A commit against a closed or issue ASN plans nothing.

Failure modes:
    - LineValidationError for a counter that is not a whole number in
      [0, max_units_per_line] or a text field over its limit.
    - LedgeredQuantityDecreaseError as above.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from uuid import UUID

from inventory_engines.asn_types import (
    ASNStatus,
    CommitTotals,
    LineSnapshot,
    LineVariance,
)
from inventory_engines.tracer import traced_engine
from inventory_kernel.db.types import (
    MAX_LOT_NUMBER_LENGTH,
    MAX_NOTES_LENGTH,
    is_whole_units,
)
from inventory_kernel.domain.ledger import (
    BUCKET_ENTRY_KINDS,
    ConditionBucket,
    LedgerEntrySpec,
)
from inventory_kernel.exceptions import LedgeredQuantityDecreaseError, LineValidationError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.utils.idempotency import receipt_idempotency_key

logger = get_logger("engines.reconciliation")

MAX_UNITS_PER_LINE = 1_000_000
ASN_SOURCE_TYPE = "asn"

# Emission order within a line.
BUCKET_ORDER: tuple[ConditionBucket, ...] = (
    ConditionBucket.NORMAL,
    ConditionBucket.DAMAGED,
    ConditionBucket.MISSING,
    ConditionBucket.QUARANTINED,
)


@dataclass(frozen=True)
class CommitPlan:
    """
    Everything a commit will do, computed before anything is written.

    ``status_path`` lists every status the header passes through, in
    order; a first commit that is already complete reads
    ``(RECEIVING, CLOSED)``.  Empty when the status does not change,
    including a first commit with nothing counted, which leaves the ASN
    ``NOT_RECEIVED``.
    """

    asn_id: UUID
    previous_status: ASNStatus
    new_status: ASNStatus
    status_path: tuple[ASNStatus, ...]
    entries: tuple[LedgerEntrySpec, ...]
    totals: CommitTotals
    variances: tuple[LineVariance, ...]
    is_noop: bool = False

    @property
    def closes(self) -> bool:
        return self.new_status.is_terminal and not self.is_noop

    @property
    def receipt_delta(self) -> int:
        return sum(e.qty_delta for e in self.entries)


def validate_line(line, max_units_per_line: int = MAX_UNITS_PER_LINE) -> None:
    """
    Check one line's counters and text fields.

    ``line`` is a LineSnapshot or LineCounts.

    Raises:
        LineValidationError: naming the line and the first bad field.
    """
    line_id = str(line.line_id)
    for bucket in BUCKET_ORDER:
        field = f"{bucket.value}_units"
        value = line.bucket_units(bucket)
        if not is_whole_units(value):
            raise LineValidationError(line_id, field, value, "must be a whole number")
        if value < 0:
            raise LineValidationError(line_id, field, value, "must not be negative")
        if value > max_units_per_line:
            raise LineValidationError(
                line_id, field, value, f"must not exceed {max_units_per_line}",
            )
    if line.lot_number is not None and len(line.lot_number) > MAX_LOT_NUMBER_LENGTH:
        raise LineValidationError(
            line_id, "lot_number", line.lot_number,
            f"must be at most {MAX_LOT_NUMBER_LENGTH} characters",
        )
    if line.notes is not None and len(line.notes) > MAX_NOTES_LENGTH:
        raise LineValidationError(
            line_id, "notes", f"<{len(line.notes)} chars>",
            f"must be at most {MAX_NOTES_LENGTH} characters",
        )


def _has_counts(line: LineSnapshot) -> bool:
    return any(line.bucket_units(b) != 0 for b in BUCKET_ORDER)


def classify_status(totals: CommitTotals) -> ASNStatus:
    """
    Status implied by the totals.

    Short of expected: still receiving.  Complete with every expected unit
    in the normal bucket: closed.  Complete otherwise: issue.
    """
    if totals.total_accounted < totals.total_expected:
        return ASNStatus.RECEIVING
    if totals.normal_units == totals.total_expected:
        return ASNStatus.CLOSED
    return ASNStatus.ISSUE


def status_path(current: ASNStatus, target: ASNStatus) -> tuple[ASNStatus, ...]:
    """Statuses visited going from ``current`` to ``target`` by commit."""
    if current == target:
        return ()
    if current == ASNStatus.NOT_RECEIVED and target != ASNStatus.RECEIVING:
        return (ASNStatus.RECEIVING, target)
    return (target,)


def compute_totals(lines: Sequence[LineSnapshot]) -> CommitTotals:
    return CommitTotals(
        total_expected=sum(l.expected_units for l in lines),
        normal_units=sum(l.normal_units for l in lines),
        damaged_units=sum(l.damaged_units for l in lines),
        missing_units=sum(l.missing_units for l in lines),
        quarantined_units=sum(l.quarantined_units for l in lines),
    )


def _check_no_decrease(
    line: LineSnapshot,
    ledgered: Mapping[tuple[str, ConditionBucket], int],
) -> None:
    for bucket in BUCKET_ORDER:
        already = ledgered.get((str(line.line_id), bucket), 0)
        if line.bucket_units(bucket) < already:
            raise LedgeredQuantityDecreaseError(
                str(line.line_id), bucket.value, already, line.bucket_units(bucket),
            )


def _entries_for_line(
    line: LineSnapshot,
    asn_id: UUID,
    client_id: UUID,
    location_id: UUID,
    ledgered: Mapping[tuple[str, ConditionBucket], int],
) -> list[LedgerEntrySpec]:
    specs: list[LedgerEntrySpec] = []
    for bucket in BUCKET_ORDER:
        count = line.bucket_units(bucket)
        increment = count - ledgered.get((str(line.line_id), bucket), 0)
        if increment <= 0:
            continue
        ttype, subtype, reason = BUCKET_ENTRY_KINDS[bucket]
        specs.append(
            LedgerEntrySpec(
                client_id=client_id,
                sku_id=line.sku_id,
                location_id=location_id,
                qty_delta=increment if bucket == ConditionBucket.NORMAL else 0,
                units=increment,
                transaction_type=ttype,
                transaction_subtype=subtype,
                reason_code=reason,
                source_type=ASN_SOURCE_TYPE,
                source_ref=str(asn_id),
                source_line_ref=str(line.line_id),
                idempotency_key=receipt_idempotency_key(
                    bucket.value, asn_id, line.line_id, count,
                ),
                lot_number=line.lot_number,
                expiry_date=line.expiry_date,
            )
        )
    return specs


@traced_engine(
    "reconciliation", "1.0",
    fingerprint_fields=("asn_id", "current_status", "lines", "ledgered"),
)
def plan_commit(
    *,
    asn_id: UUID,
    client_id: UUID,
    location_id: UUID,
    current_status: ASNStatus,
    lines: Sequence[LineSnapshot],
    ledgered: Mapping[tuple[str, ConditionBucket], int],
    max_units_per_line: int = MAX_UNITS_PER_LINE,
) -> CommitPlan:
    """
    Plan one receiving commit.

    Args:
        asn_id: The ASN being committed.
        client_id: Owner of the stock.
        location_id: Where received stock lands.
        current_status: Stored header status.
        lines: Every line of the ASN.
        ledgered: Units already on the ledger per (str(line_id), bucket).
        max_units_per_line: Upper bound for any single counter.

    Returns:
        CommitPlan.  ``is_noop`` and no entries for a closed or issue ASN.
    """
    lines = tuple(lines)

    if current_status.is_terminal:
        logger.info(
            "commit_plan_noop",
            extra={"asn_id": str(asn_id), "status": current_status.value},
        )
        return CommitPlan(
            asn_id=asn_id,
            previous_status=current_status,
            new_status=current_status,
            status_path=(),
            entries=(),
            totals=compute_totals(lines),
            variances=(),
            is_noop=True,
        )

    for line in lines:
        if _has_counts(line):
            validate_line(line, max_units_per_line)
        _check_no_decrease(line, ledgered)

    totals = compute_totals(lines)
    new_status = classify_status(totals)
    # Nothing counted yet: not a partial receipt.
    if current_status == ASNStatus.NOT_RECEIVED and totals.total_accounted == 0:
        new_status = ASNStatus.NOT_RECEIVED

    entries: list[LedgerEntrySpec] = []
    for line in lines:
        if line.received_units == 0:
            continue
        entries.extend(_entries_for_line(line, asn_id, client_id, location_id, ledgered))

    variances = tuple(
        LineVariance(
            line_id=line.line_id,
            sku_id=line.sku_id,
            expected_units=line.expected_units,
            accounted_units=line.received_units,
            normal_units=line.normal_units,
        )
        for line in lines
    )

    over = [v for v in variances if v.is_over_receipt]
    if over:
        logger.info(
            "over_receipt_detected",
            extra={
                "asn_id": str(asn_id),
                "line_ids": [str(v.line_id) for v in over],
                "units_over": sum(v.variance for v in over),
            },
        )

    return CommitPlan(
        asn_id=asn_id,
        previous_status=current_status,
        new_status=new_status,
        status_path=status_path(current_status, new_status),
        entries=tuple(entries),
        totals=totals,
        variances=variances,
    )
