"""
External inventory push client.

Contract:
    ``push(client_id, sku_id)`` asks the external inventory system (the
    storefront channel) to refresh one SKU's on-hand for one client.  It
    returns a ``PushResponse``; a failed push is a response with
    ``success=False`` or an ``ExternalPushError``, never a ledger change.

Architecture: inventory_services.  The retry policy lives in
    ``SyncRetryCoordinator``; clients make exactly one attempt per call.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

import requests

from inventory_kernel.exceptions import ExternalPushError
from inventory_kernel.logging_config import get_logger

logger = get_logger("services.push_client")


@dataclass(frozen=True)
class PushResponse:
    success: bool
    status_code: int | None = None
    message: str | None = None


class InventoryPushClient(Protocol):
    """One attempt to push a SKU's on-hand to the external system."""

    def push(self, client_id: UUID, sku_id: UUID) -> PushResponse:
        ...


class HttpInventoryPushClient:
    """
    Pushes over HTTP with ``requests``.

    POSTs ``{"client_id": ..., "sku_id": ...}`` as JSON to ``endpoint_url``.
    A non-2xx status or a transport error raises ``ExternalPushError``.  A
    2xx body of ``{"success": false}`` is a failed response.
    """

    def __init__(
        self,
        endpoint_url: str,
        timeout: float = 30.0,
        session: requests.Session | None = None,
        headers: dict[str, str] | None = None,
    ):
        self._endpoint_url = endpoint_url
        self._timeout = timeout
        self._http = session
        self._headers = {"Content-Type": "application/json", **(headers or {})}

    def push(self, client_id: UUID, sku_id: UUID) -> PushResponse:
        payload = {"client_id": str(client_id), "sku_id": str(sku_id)}
        post = self._http.post if self._http is not None else requests.post
        try:
            response = post(
                self._endpoint_url,
                json=payload,
                headers=self._headers,
                timeout=self._timeout,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.info(
                "push_request_failed",
                extra={"client_id": str(client_id), "sku_id": str(sku_id), "error": str(e)},
            )
            raise ExternalPushError(str(client_id), str(sku_id), str(e)) from e

        body = _json_body(response)
        if body.get("success") is False:
            return PushResponse(
                success=False,
                status_code=response.status_code,
                message=str(body.get("message") or body.get("error") or "success=false"),
            )
        return PushResponse(success=True, status_code=response.status_code)


def _json_body(response) -> dict:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}
