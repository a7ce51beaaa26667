"""
SyncRetryCoordinator -- bounded background retries of external inventory pushes.

Contract:
    After a sale decrement commits, the on-hand change is pushed to the
    external inventory system.  ``submit()`` enqueues the push on a small
    thread pool and returns a ``Future[SyncOutcome]`` immediately, so the
    caller is never blocked by backoff.  ``push_with_retry()`` runs the same
    loop synchronously.

Architecture: inventory_services.  Uses a session factory (never the
    caller's session) because the work runs on another thread.

Invariants enforced:
    - At most ``max_attempts`` calls to the push client per push.
    - Attempt ``n`` that fails waits ``n * backoff_unit_seconds`` before the
      next attempt (linear backoff: 2s, 4s with the defaults).
    - ``timeout_seconds`` bounds the whole push including waits.
    - A push that gives up (exhausted, timed out or cancelled) leaves a
      durable ``SyncWarning`` row and a ``sync_push_exhausted`` WARNING log.
    - The ledger is never touched; a push failure does not undo the sale.
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Callable
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from inventory_config.schema import SyncConfig
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.models.sync_warning import SyncWarning
from inventory_services.push_client import InventoryPushClient

logger = get_logger("services.sync_coordinator")

# wait(seconds, cancel_event) -> True when cancelled during the wait
WaitFn = Callable[[float, threading.Event], bool]


class SyncStatus(str, Enum):
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class SyncOutcome:
    """Result of one push with its retries."""

    client_id: UUID
    sku_id: UUID
    order_ref: str | None
    status: SyncStatus
    attempts: int
    last_error: str | None = None
    warning_id: UUID | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == SyncStatus.SUCCEEDED

    @property
    def requires_manual_reconciliation(self) -> bool:
        return self.warning_id is not None


class SyncRetryCoordinator:
    """Retries pushes off the request path and records the ones that give up.

    Contract:
        - ``submit()`` returns at once; the Future resolves to a SyncOutcome.
        - ``push_with_retry()`` blocks for the whole retry loop.
        - ``shutdown()`` stops accepting work; ``cancel=True`` also wakes
          pending waits so in-flight pushes end as cancelled.

    Non-goals:
        - NOT a durable queue; pushes enqueued before a crash are lost (the
          sale itself is already on the ledger).
    """

    def __init__(
        self,
        push_client: InventoryPushClient,
        session_factory: Callable[[], Session],
        config: SyncConfig | None = None,
        clock: Clock | None = None,
        wait: WaitFn | None = None,
    ):
        self._client = push_client
        self._session_factory = session_factory
        self._config = config or SyncConfig()
        self._clock = clock or SystemClock()
        self._stop_event = threading.Event()
        self._wait = wait or self._wait_or_cancel
        self._executor = ThreadPoolExecutor(
            max_workers=self._config.max_workers,
            thread_name_prefix="inventory-sync",
        )

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def submit(
        self,
        client_id: UUID,
        sku_id: UUID,
        order_ref: str | None = None,
        cancel_event: threading.Event | None = None,
    ) -> Future[SyncOutcome]:
        """Enqueue a push and return its Future."""
        future = self._executor.submit(
            self.push_with_retry, client_id, sku_id, order_ref, cancel_event,
        )
        logger.info(
            "sync_push_enqueued",
            extra={
                "client_id": str(client_id),
                "sku_id": str(sku_id),
                "order_ref": order_ref,
            },
        )
        return future

    def push_with_retry(
        self,
        client_id: UUID,
        sku_id: UUID,
        order_ref: str | None = None,
        cancel_event: threading.Event | None = None,
    ) -> SyncOutcome:
        """Push with linear backoff; record a SyncWarning if it gives up."""
        cancel = cancel_event or self._stop_event
        deadline = time.monotonic() + self._config.timeout_seconds
        max_attempts = self._config.max_attempts

        with LogContext.bind(client_id=client_id, order_ref=order_ref):
            attempts = 0
            last_error: str | None = None
            status = SyncStatus.EXHAUSTED

            while attempts < max_attempts:
                if self._is_cancelled(cancel):
                    status = SyncStatus.CANCELLED
                    break
                if attempts > 0 and time.monotonic() >= deadline:
                    status = SyncStatus.TIMED_OUT
                    break

                attempts += 1
                error = self._attempt(client_id, sku_id)
                if error is None:
                    logger.info(
                        "sync_push_succeeded",
                        extra={"sku_id": str(sku_id), "attempt": attempts},
                    )
                    return SyncOutcome(
                        client_id=client_id,
                        sku_id=sku_id,
                        order_ref=order_ref,
                        status=SyncStatus.SUCCEEDED,
                        attempts=attempts,
                        last_error=last_error,
                    )

                last_error = error
                logger.info(
                    "sync_push_attempt_failed",
                    extra={
                        "sku_id": str(sku_id),
                        "attempt": attempts,
                        "max_attempts": max_attempts,
                        "error": error,
                    },
                )
                if attempts >= max_attempts:
                    break

                delay = attempts * self._config.backoff_unit_seconds
                if time.monotonic() + delay > deadline:
                    status = SyncStatus.TIMED_OUT
                    break
                if self._wait(delay, cancel):
                    status = SyncStatus.CANCELLED
                    break

            warning_id = self._record_warning(
                client_id, sku_id, order_ref, attempts,
                last_error or status.value,
            )
            logger.warning(
                "sync_push_exhausted",
                extra={
                    "sku_id": str(sku_id),
                    "order_ref": order_ref,
                    "status": status.value,
                    "attempts": attempts,
                    "last_error": last_error,
                    "warning_id": str(warning_id),
                    "detail": "external inventory may not match the ledger; "
                              "manual reconciliation may be required",
                },
            )
            return SyncOutcome(
                client_id=client_id,
                sku_id=sku_id,
                order_ref=order_ref,
                status=status,
                attempts=attempts,
                last_error=last_error,
                warning_id=warning_id,
            )

    def shutdown(self, wait: bool = True, cancel: bool = False) -> None:
        """Stop accepting pushes; with ``cancel`` also abort pending ones."""
        if cancel:
            self._stop_event.set()
        self._executor.shutdown(wait=wait, cancel_futures=cancel)
        logger.info("sync_coordinator_stopped", extra={"cancelled": cancel})

    def __enter__(self) -> "SyncRetryCoordinator":
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown()

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _attempt(self, client_id: UUID, sku_id: UUID) -> str | None:
        """One push; the error text on failure, None on success."""
        try:
            response = self._client.push(client_id, sku_id)
        except Exception as e:
            # Transport and client errors both count as a failed attempt.
            return str(e) or type(e).__name__
        if response.success:
            return None
        return response.message or f"push rejected (status {response.status_code})"

    def _is_cancelled(self, cancel: threading.Event) -> bool:
        return cancel.is_set() or self._stop_event.is_set()

    def _wait_or_cancel(self, seconds: float, cancel: threading.Event) -> bool:
        return cancel.wait(timeout=seconds) or self._stop_event.is_set()

    def _record_warning(
        self,
        client_id: UUID,
        sku_id: UUID,
        order_ref: str | None,
        attempts: int,
        last_error: str,
    ) -> UUID:
        session = self._session_factory()
        try:
            warning = SyncWarning(
                id=uuid4(),
                client_id=client_id,
                sku_id=sku_id,
                order_ref=order_ref,
                attempts=attempts,
                last_error=last_error[:2000],
                created_at=self._clock.now(),
            )
            session.add(warning)
            session.commit()
            return warning.id
        except Exception:
            session.rollback()
            logger.exception("sync_warning_write_failed")
            raise
        finally:
            session.close()
