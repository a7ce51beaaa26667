"""
Fulfillment Module (``inventory_modules.fulfillment``).

Outbound stock movements: sale decrements guarded against double
application, and explicit adjustments.  External pushes are delegated to
``inventory_services.SyncRetryCoordinator``.
"""

from inventory_modules.fulfillment.service import (
    FulfillmentService,
    SaleResult,
    SaleTrigger,
)

__all__ = ["FulfillmentService", "SaleResult", "SaleTrigger"]
