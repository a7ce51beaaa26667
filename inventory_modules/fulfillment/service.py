"""
Fulfillment Module Service (``inventory_modules.fulfillment.service``).

Responsibility
--------------
Writes the outbound side of the ledger: one sale decrement per (order,
SKU), whichever trigger (order webhook or manual fulfillment) gets there
first, and explicit stock adjustments.  After a sale commits, the on-hand
change is handed to the ``SyncRetryCoordinator`` for the external push.

Architecture
------------
Layer: **Modules** -- orchestration over ``LedgerWriter`` and
``LedgerSelector``; the retry loop lives in ``inventory_services``.

Invariants
----------
- Each public method owns its transaction boundary.
- At most one OUTBOUND/SALE_DECREMENT per (channel, order_ref, sku_id).  The ledger
  pre-check is an optimization; the UNIQUE idempotency key
  ``sale:SALE_DECREMENT:<source_type>:<order_ref>:<sku_id>`` is authoritative.
- The push is enqueued only after the ledger commit and never blocks the
  caller; its failure never touches the ledger.

Failure Modes
-------------
- ``ValidationError`` for a bad quantity or trigger, a SKU owned by
  another client, or an adjustment at an unknown or inactive location.
- ``InvalidLedgerEntryError`` for an adjustment that breaks the sign rules.

Usage::

    service = FulfillmentService(session, clock=clock, sync_coordinator=coord)
    result = service.record_sale(client_id, sku_id, "1001", 2,
                                 trigger="webhook", actor_id=actor)
    if result.push is not None:
        outcome = result.push.result(timeout=30)
"""

from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from sqlalchemy.orm import Session

from inventory_config.schema import MAIN_LOCATION_ID, SyncConfig
from inventory_kernel.db.types import is_whole_units
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.ledger import (
    LedgerEntryRecord,
    LedgerEntrySpec,
    ReasonCode,
    TransactionSubtype,
    TransactionType,
)
from inventory_kernel.exceptions import ValidationError
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.selectors.ledger_selector import LedgerSelector
from inventory_kernel.selectors.registry_selector import RegistrySelector
from inventory_kernel.services.ledger_writer import LedgerWriter, WriteStatus
from inventory_kernel.utils.idempotency import sale_idempotency_key
from inventory_services.sync_coordinator import SyncOutcome, SyncRetryCoordinator

logger = get_logger("modules.fulfillment.service")


class SaleTrigger(str, Enum):
    WEBHOOK = "webhook"
    MANUAL = "manual"


@dataclass(frozen=True)
class SaleResult:
    """
    Outcome of ``record_sale``.

    ``push`` is the Future of the external push, or None when nothing was
    enqueued (duplicate, or no coordinator configured).
    """

    status: WriteStatus
    entry: LedgerEntryRecord
    push: Future[SyncOutcome] | None = None

    @property
    def is_duplicate(self) -> bool:
        return self.status == WriteStatus.ALREADY_EXISTS


class FulfillmentService:
    """Sale decrements and stock adjustments."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        sync_coordinator: SyncRetryCoordinator | None = None,
        config: SyncConfig | None = None,
        location_id: UUID = MAIN_LOCATION_ID,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._sync = sync_coordinator
        self._config = config or SyncConfig()
        self._location_id = location_id
        self._ledger = LedgerSelector(session)
        self._registry = RegistrySelector(session)
        self._writer = LedgerWriter(session, self._clock)

    @property
    def sale_source_type(self) -> str:
        return f"{self._config.channel}_fulfillment"

    def record_sale(
        self,
        client_id: UUID,
        sku_id: UUID,
        order_ref: str,
        quantity: int,
        trigger: SaleTrigger | str,
        actor_id: UUID,
        location_id: UUID | None = None,
    ) -> SaleResult:
        """
        Decrement stock for one SKU of one external order, exactly once.

        A second call for the same (order_ref, sku_id) on this channel, from either
        trigger, returns the existing entry with ``ALREADY_EXISTS`` and
        enqueues no push.
        """
        trigger = self._parse_trigger(trigger)
        if not is_whole_units(quantity) or quantity <= 0:
            raise ValidationError(f"Sale quantity must be a positive whole number, got {quantity!r}")
        if not order_ref:
            raise ValidationError("Sale order_ref is required")

        with LogContext.bind(client_id=client_id, order_ref=order_ref, actor_id=actor_id):
            try:
                self._require_client_sku(client_id, sku_id)

                existing = self._ledger.find_sale_decrement(
                    self.sale_source_type, order_ref, sku_id,
                )
                if existing is not None:
                    logger.info(
                        "sale_decrement_skipped",
                        extra={
                            "sku_id": str(sku_id),
                            "trigger": trigger.value,
                            "existing_entry_id": str(existing.id),
                        },
                    )
                    self._session.commit()
                    return SaleResult(status=WriteStatus.ALREADY_EXISTS, entry=existing)

                spec = LedgerEntrySpec(
                    client_id=client_id,
                    sku_id=sku_id,
                    location_id=location_id or self._location_id,
                    qty_delta=-quantity,
                    units=quantity,
                    transaction_type=TransactionType.OUTBOUND,
                    transaction_subtype=TransactionSubtype.SALE_DECREMENT,
                    reason_code=ReasonCode.SOLD,
                    source_type=self.sale_source_type,
                    source_ref=order_ref,
                    idempotency_key=sale_idempotency_key(
                        self.sale_source_type, order_ref, sku_id,
                    ),
                    notes=f"Fulfilled order {order_ref} ({trigger.value})",
                )
                result = self._writer.append(spec, actor_id)
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise

            if not result.is_new:
                return SaleResult(status=result.status, entry=result.entry)

            logger.info(
                "sale_decrement_recorded",
                extra={
                    "sku_id": str(sku_id),
                    "quantity": quantity,
                    "trigger": trigger.value,
                    "entry_id": str(result.entry.id),
                },
            )
            push = None
            if self._sync is not None:
                push = self._sync.submit(client_id, sku_id, order_ref)
            return SaleResult(status=result.status, entry=result.entry, push=push)

    def record_adjustment(
        self,
        client_id: UUID,
        sku_id: UUID,
        location_id: UUID,
        quantity_delta: int,
        reason_code: ReasonCode | str,
        actor_id: UUID,
        notes: str | None = None,
        idempotency_key: str | None = None,
    ) -> LedgerEntryRecord:
        """
        Explicit correction of sellable stock.

        Positive deltas are ADJUSTMENT_PLUS, negative ADJUSTMENT_MINUS.
        This is the only sanctioned way to correct stock after a commit.
        """
        if not is_whole_units(quantity_delta) or quantity_delta == 0:
            raise ValidationError(
                f"Adjustment delta must be a non-zero whole number, got {quantity_delta!r}"
            )
        subtype = (
            TransactionSubtype.ADJUSTMENT_PLUS if quantity_delta > 0
            else TransactionSubtype.ADJUSTMENT_MINUS
        )

        with LogContext.bind(client_id=client_id, actor_id=actor_id):
            try:
                self._require_client_sku(client_id, sku_id)
                self._require_active_location(location_id)
                spec = LedgerEntrySpec(
                    client_id=client_id,
                    sku_id=sku_id,
                    location_id=location_id,
                    qty_delta=quantity_delta,
                    units=abs(quantity_delta),
                    transaction_type=TransactionType.ADJUSTMENT,
                    transaction_subtype=subtype,
                    reason_code=ReasonCode(reason_code),
                    source_type="adjustment",
                    source_ref=idempotency_key or str(sku_id),
                    idempotency_key=idempotency_key,
                    notes=notes,
                )
                result = self._writer.append(spec, actor_id)
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise

            logger.info(
                "stock_adjusted",
                extra={
                    "sku_id": str(sku_id),
                    "location_id": str(location_id),
                    "quantity_delta": quantity_delta,
                    "reason_code": spec.reason_code.value,
                    "status": result.status.value,
                },
            )
            return result.entry

    def _require_client_sku(self, client_id: UUID, sku_id: UUID) -> None:
        sku = self._registry.get_sku(sku_id)
        if sku is None or sku.client_id != client_id:
            raise ValidationError(f"SKU {sku_id} does not belong to client {client_id}")

    def _require_active_location(self, location_id: UUID) -> None:
        location = self._registry.get_location(location_id)
        if location is None or not location.is_active:
            raise ValidationError(f"Location {location_id} is unknown or inactive")

    @staticmethod
    def _parse_trigger(trigger: SaleTrigger | str) -> SaleTrigger:
        try:
            return SaleTrigger(trigger)
        except ValueError:
            raise ValidationError(
                f"Unknown sale trigger {trigger!r}; expected 'webhook' or 'manual'"
            ) from None
