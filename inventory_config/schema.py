"""
InventoryConfig schema.

Frozen, versioned configuration for the receiving and sync components.
YAML documents are parsed into these types by the loader; nothing else in
the system reads configuration files.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID

from inventory_kernel.exceptions import InvalidConfigError

CURRENT_SCHEMA_VERSION = 1

# Fixed MAIN warehouse location
MAIN_LOCATION_ID = UUID("00000000-0000-0000-0000-000000000001")


# ---------------------------------------------------------------------------
# Receiving
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ReceivingConfig:
    """Limits and defaults for receiving sessions."""

    max_units_per_line: int = 1_000_000
    default_location_id: UUID = MAIN_LOCATION_ID

    def __post_init__(self) -> None:
        if isinstance(self.max_units_per_line, bool) or not isinstance(
            self.max_units_per_line, int
        ):
            raise InvalidConfigError("receiving.max_units_per_line", "must be an integer")
        if self.max_units_per_line <= 0:
            raise InvalidConfigError("receiving.max_units_per_line", "must be positive")


# ---------------------------------------------------------------------------
# External inventory sync
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SyncConfig:
    """
    Retry policy for pushing on-hand to the external inventory system.

    Attempt ``n`` (1-based) that fails waits ``n * backoff_unit_seconds``
    before the next one.  ``timeout_seconds`` bounds the whole push
    including waits.
    """

    channel: str = "shopify"
    endpoint_url: str | None = None
    max_attempts: int = 3
    backoff_unit_seconds: float = 2.0
    timeout_seconds: float = 60.0
    request_timeout_seconds: float = 30.0
    max_workers: int = 4

    def __post_init__(self) -> None:
        if not self.channel:
            raise InvalidConfigError("sync.channel", "must not be empty")
        if self.max_attempts < 1:
            raise InvalidConfigError("sync.max_attempts", "must be at least 1")
        if self.backoff_unit_seconds < 0:
            raise InvalidConfigError("sync.backoff_unit_seconds", "must not be negative")
        if self.timeout_seconds <= 0:
            raise InvalidConfigError("sync.timeout_seconds", "must be positive")
        if self.request_timeout_seconds <= 0:
            raise InvalidConfigError("sync.request_timeout_seconds", "must be positive")
        if self.max_workers < 1:
            raise InvalidConfigError("sync.max_workers", "must be at least 1")


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InventoryConfig:
    """Root configuration artifact."""

    config_id: str = "default"
    schema_version: int = CURRENT_SCHEMA_VERSION
    receiving: ReceivingConfig = field(default_factory=ReceivingConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    checksum: str = ""

    def __post_init__(self) -> None:
        if self.schema_version != CURRENT_SCHEMA_VERSION:
            raise InvalidConfigError(
                "schema_version",
                f"unsupported version {self.schema_version} "
                f"(expected {CURRENT_SCHEMA_VERSION})",
            )
