"""
inventory_services -- stateful services outside the request transaction.

Responsibility:
    External inventory push (HTTP client and background retry
    coordinator) and the read-only reconciliation report.

Architecture position:
    Services -- may import inventory_kernel, inventory_engines and
    inventory_config.  inventory_kernel and inventory_engines never import
    from here.
"""

from inventory_services.push_client import (
    HttpInventoryPushClient,
    InventoryPushClient,
    PushResponse,
)
from inventory_services.reconciliation_report import (
    ReconciliationReport,
    ReconciliationReportService,
)
from inventory_services.sync_coordinator import (
    SyncOutcome,
    SyncRetryCoordinator,
    SyncStatus,
)

__all__ = [
    "HttpInventoryPushClient",
    "InventoryPushClient",
    "PushResponse",
    "ReconciliationReport",
    "ReconciliationReportService",
    "SyncOutcome",
    "SyncRetryCoordinator",
    "SyncStatus",
]
