"""
Receiving Module Service (``inventory_modules.receiving.service``).

Responsibility
--------------
Runs receiving sessions against Advance Ship Notices: creates ASNs from the
expected manifest, records counted or scanned units on their lines, and
commits those counts to the inventory ledger.

Architecture
------------
Layer: **Modules** -- stateful orchestration.

1. ``BarcodeMatchService`` resolves scans to lines.
2. ``plan_commit`` (pure engine) validates lines, classifies the status
   and computes the incremental ledger entries.
3. ``LedgerWriter`` appends the entries; ``LedgerSelector`` supplies the
   units already ledgered.

Invariants
----------
- Each public method owns its transaction boundary: ``session.commit()``
  on success, ``session.rollback()`` and re-raise on any exception.  A
  commit's ledger entries and header transition therefore land together
  or not at all.
- Status changes follow ``ASN_STATUS_WORKFLOW``.
- Lines of a closed ASN are frozen until ``reopen``.
- ``reopen`` never touches ledger entries; later commits are incremental.

Failure Modes
-------------
- ``ASNNotFoundError`` / ``ASNLineNotFoundError`` for unknown ids.
- ``ASNClosedError`` when counting or scanning on a closed ASN.
- ``LineValidationError`` / ``LedgeredQuantityDecreaseError`` from
  validation; nothing is written.
- ``InvalidStatusTransitionError`` for a reopen of an open ASN.

Usage::

    service = ReceivingService(session, clock=clock)
    asn = service.create_asn(client_id, "ASN-1001",
                             [ExpectedLine(sku_id, 100)], actor_id=actor)
    service.set_line_counts(asn.id, [LineCounts(line_id, normal_units=60)],
                            actor_id=actor)
    result = service.commit(asn.id, actor_id=actor)
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from inventory_config.schema import ReceivingConfig
from inventory_engines.asn_types import ASNStatus, LineCounts
from inventory_engines.discrepancy import (
    DamagedItemDecision,
    derive_display_status,
    pending_decisions,
)
from inventory_engines.reconciliation import plan_commit, validate_line
from inventory_kernel.db.types import is_whole_units
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.exceptions import (
    ASNClosedError,
    ASNLineNotFoundError,
    ASNNotFoundError,
    LedgeredQuantityDecreaseError,
    LineValidationError,
)
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.selectors.ledger_selector import LedgerSelector
from inventory_kernel.services.ledger_writer import LedgerWriter, WriteStatus
from inventory_modules.receiving.barcode import BarcodeMatchService, ScanListener
from inventory_modules.receiving.models import (
    ASN,
    ASNDisplay,
    CommitResult,
    ExpectedLine,
    ScanResult,
)
from inventory_modules.receiving.orm import ASNHeaderModel, ASNLineModel
from inventory_modules.receiving.workflows import validate_transition

logger = get_logger("modules.receiving.service")


class ReceivingService:
    """
    Orchestrates receiving sessions through engines and kernel.

    Contract
    --------
    Every public method that mutates state commits on success and rolls
    back on failure.  Read methods (``get_asn``, ``get_display_status``)
    do neither.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: ReceivingConfig | None = None,
        scan_listener: ScanListener | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or ReceivingConfig()
        self._ledger = LedgerSelector(session)
        self._writer = LedgerWriter(session, self._clock)
        self._matcher = BarcodeMatchService(session, self._clock, scan_listener)

    # =========================================================================
    # ASN lifecycle
    # =========================================================================

    def create_asn(
        self,
        client_id: UUID,
        asn_number: str,
        lines: Sequence[ExpectedLine],
        actor_id: UUID,
        carrier: str | None = None,
        tracking_number: str | None = None,
        expected_arrival=None,
        notes: str | None = None,
    ) -> ASN:
        """
        Create an ASN in ``not_received`` from the expected manifest.

        Raises:
            LineValidationError: If an expected quantity is not a whole
                number in [0, max_units_per_line].
        """
        for index, line in enumerate(lines, start=1):
            if not is_whole_units(line.expected_units) or not (
                0 <= line.expected_units <= self._config.max_units_per_line
            ):
                raise LineValidationError(
                    f"#{index}", "expected_units", line.expected_units,
                    f"must be a whole number between 0 and "
                    f"{self._config.max_units_per_line}",
                )

        try:
            header = ASNHeaderModel(
                id=uuid4(),
                client_id=client_id,
                asn_number=asn_number,
                carrier=carrier,
                tracking_number=tracking_number,
                expected_arrival=expected_arrival,
                status=ASNStatus.NOT_RECEIVED.value,
                notes=notes,
                created_by_id=actor_id,
            )
            for index, line in enumerate(lines, start=1):
                header.lines.append(
                    ASNLineModel(
                        id=uuid4(),
                        line_no=index,
                        sku_id=line.sku_id,
                        expected_units=line.expected_units,
                        received_units=0,
                        normal_units=0,
                        damaged_units=0,
                        missing_units=0,
                        quarantined_units=0,
                        lot_number=line.lot_number,
                        expiry_date=line.expiry_date,
                        created_by_id=actor_id,
                    )
                )
            self._session.add(header)
            self._session.flush()

            logger.info(
                "asn_created",
                extra={
                    "asn_id": str(header.id),
                    "asn_number": asn_number,
                    "client_id": str(client_id),
                    "line_count": len(lines),
                    "total_expected": sum(l.expected_units for l in lines),
                },
            )
            self._session.commit()
            return header.to_dto()
        except Exception:
            self._session.rollback()
            raise

    def get_asn(self, asn_id: UUID) -> ASN:
        """Raises ASNNotFoundError for an unknown id."""
        return self._load_header(asn_id).to_dto()

    # =========================================================================
    # Counting
    # =========================================================================

    def set_line_counts(
        self,
        asn_id: UUID,
        counts: Sequence[LineCounts],
        actor_id: UUID,
    ) -> ASN:
        """
        Replace the cumulative bucket counts of one or more lines.

        All lines are validated before any is changed.

        Raises:
            ASNClosedError: If the ASN is closed.
            ASNLineNotFoundError: If a line id is not on the ASN.
            LineValidationError: If a counter or text field is out of range.
            LedgeredQuantityDecreaseError: If a count drops below the
                units already on the ledger.
        """
        with LogContext.bind(asn_id=asn_id, actor_id=actor_id):
            try:
                header = self._load_header(asn_id, for_update=True)
                self._require_open(header)
                lines_by_id = {line.id: line for line in header.lines}
                ledgered = self._ledger.ledgered_units_by_line(asn_id)

                for c in counts:
                    if c.line_id not in lines_by_id:
                        raise ASNLineNotFoundError(str(asn_id), str(c.line_id))
                    validate_line(c, self._config.max_units_per_line)
                    for (line_ref, bucket), units in ledgered.items():
                        if line_ref == str(c.line_id) and c.bucket_units(bucket) < units:
                            raise LedgeredQuantityDecreaseError(
                                line_ref, bucket.value, units, c.bucket_units(bucket),
                            )

                for c in counts:
                    line = lines_by_id[c.line_id]
                    line.apply_counts(c)
                    line.updated_by_id = actor_id

                self._session.flush()
                logger.info(
                    "asn_line_counts_set",
                    extra={
                        "asn_id": str(asn_id),
                        "line_ids": [str(c.line_id) for c in counts],
                        "received_units": sum(c.received_units for c in counts),
                    },
                )
                self._session.commit()
                return header.to_dto()
            except Exception:
                self._session.rollback()
                raise

    def scan(
        self,
        asn_id: UUID,
        barcode: str,
        client_id: UUID,
        actor_id: UUID,
        context: str = "receiving",
    ) -> ScanResult:
        """
        Resolve one scanned barcode and count one normal unit on a match.

        A barcode that matches nothing is ``ScanResult(found=False)``.

        Raises:
            ASNNotFoundError: If the ASN does not exist for this client.
            ASNClosedError: If the ASN is closed.
            ValidationError: If the barcode is blank.
        """
        with LogContext.bind(asn_id=asn_id, client_id=client_id, actor_id=actor_id):
            try:
                header = self._load_header(asn_id, for_update=True)
                if header.client_id != client_id:
                    raise ASNNotFoundError(str(asn_id))
                self._require_open(header)
                result = self._matcher.match(header, barcode, context)
                self._session.commit()
                return result
            except Exception:
                self._session.rollback()
                raise

    # =========================================================================
    # Commit / reopen
    # =========================================================================

    def commit(
        self,
        asn_id: UUID,
        actor_id: UUID,
        location_id: UUID | None = None,
    ) -> CommitResult:
        """
        Apply the ASN's current counts to the ledger.

        Writes only what is not yet ledgered, moves the header along the
        status workflow, stamps received_at on the first commit that
        carries counts and closed_at when the ASN closes.  An ASN with
        nothing counted stays not_received.  On a closed or issue ASN
        nothing is written.

        Raises:
            ASNNotFoundError, LineValidationError,
            LedgeredQuantityDecreaseError.
        """
        location = location_id or self._config.default_location_id
        with LogContext.bind(asn_id=asn_id, actor_id=actor_id):
            try:
                header = self._load_header(asn_id, for_update=True)
                previous = header.asn_status
                snapshots = [line.to_snapshot() for line in header.lines]

                plan = plan_commit(
                    asn_id=header.id,
                    client_id=header.client_id,
                    location_id=location,
                    current_status=previous,
                    lines=snapshots,
                    ledgered=self._ledger.ledgered_units_by_line(header.id),
                    max_units_per_line=self._config.max_units_per_line,
                )

                if plan.is_noop:
                    logger.info(
                        "asn_commit_noop",
                        extra={"asn_id": str(asn_id), "status": previous.value},
                    )
                    self._session.commit()
                    return CommitResult(
                        asn_id=header.id,
                        previous_status=previous,
                        status=previous,
                        status_path=(),
                        totals=plan.totals,
                        is_noop=True,
                    )

                step_from = previous
                for step in plan.status_path:
                    validate_transition(header.id, step_from, step)
                    step_from = step

                results = self._writer.append_all(plan.entries, actor_id)

                now = self._clock.now()
                for line in header.lines:
                    line.received_units = (
                        line.normal_units + line.damaged_units
                        + line.missing_units + line.quarantined_units
                    )
                if plan.new_status != ASNStatus.NOT_RECEIVED:
                    header.status = plan.new_status.value
                    if header.received_at is None:
                        header.received_at = now
                    if plan.closes:
                        header.closed_at = now
                    header.updated_by_id = actor_id
                self._session.flush()

                written = [r for r in results if r.status == WriteStatus.WRITTEN]
                decisions = pending_decisions(
                    header.id,
                    snapshots,
                    {line.id: line.qc_photo_ref for line in header.lines if line.qc_photo_ref},
                ) if plan.closes else ()

                logger.info(
                    "asn_committed",
                    extra={
                        "asn_id": str(asn_id),
                        "previous_status": previous.value,
                        "status": plan.new_status.value,
                        "status_path": [s.value for s in plan.status_path],
                        "entries_written": len(written),
                        "entries_skipped": len(results) - len(written),
                        "receipt_delta": plan.receipt_delta,
                        "total_expected": plan.totals.total_expected,
                        "total_accounted": plan.totals.total_accounted,
                    },
                )
                self._session.commit()

                return CommitResult(
                    asn_id=header.id,
                    previous_status=previous,
                    status=plan.new_status,
                    status_path=plan.status_path,
                    totals=plan.totals,
                    entry_ids=tuple(r.entry.id for r in written),
                    entries_written=len(written),
                    entries_skipped=len(results) - len(written),
                    receipt_delta=sum(r.entry.qty_delta for r in written),
                    variances=plan.variances,
                    pending_decisions=decisions,
                )
            except Exception:
                self._session.rollback()
                raise

    def reopen(self, asn_id: UUID, actor_id: UUID, reason: str | None = None) -> ASN:
        """
        Administrative reopen of a closed or issue ASN.

        Clears closed_at and returns the status to receiving.  Ledger
        entries are untouched.

        Raises:
            InvalidStatusTransitionError: If the ASN is not closed or issue.
        """
        with LogContext.bind(asn_id=asn_id, actor_id=actor_id):
            try:
                header = self._load_header(asn_id, for_update=True)
                previous = header.asn_status
                validate_transition(header.id, previous, ASNStatus.RECEIVING)

                header.status = ASNStatus.RECEIVING.value
                header.closed_at = None
                header.updated_by_id = actor_id
                self._session.flush()

                logger.warning(
                    "asn_reopened",
                    extra={
                        "asn_id": str(asn_id),
                        "previous_status": previous.value,
                        "reason": reason,
                    },
                )
                self._session.commit()
                return header.to_dto()
            except Exception:
                self._session.rollback()
                raise

    # =========================================================================
    # Display
    # =========================================================================

    def get_display_status(
        self,
        asn_id: UUID,
        decisions: Iterable[DamagedItemDecision] = (),
    ) -> ASNDisplay:
        """Stored status plus the derived label; nothing is written."""
        header = self._load_header(asn_id)
        own = tuple(d for d in decisions if d.asn_id == header.id)
        return ASNDisplay(
            asn_id=header.id,
            status=header.asn_status,
            display_status=derive_display_status(header.asn_status, own),
            decisions=own,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _load_header(self, asn_id: UUID, for_update: bool = False) -> ASNHeaderModel:
        stmt = select(ASNHeaderModel).where(ASNHeaderModel.id == asn_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        header = self._session.execute(stmt).scalar_one_or_none()
        if header is None:
            raise ASNNotFoundError(str(asn_id))
        return header

    @staticmethod
    def _require_open(header: ASNHeaderModel) -> None:
        if header.closed_at is not None:
            raise ASNClosedError(str(header.id), header.status)
