"""
inventory_config -- single public entrypoint for runtime configuration.

Responsibility:
    Provides ``get_active_config()``, which resolves the configuration file
    (explicit path, then the ``INVENTORY_CONFIG`` environment variable, then
    the packaged ``defaults.yaml``), parses it into a frozen
    ``InventoryConfig`` and logs its identity.

Architecture position:
    Configuration -- sits above ``inventory_kernel`` and below
    ``inventory_services`` / ``inventory_modules``.  The kernel never
    imports from this package.

Audit relevance:
    Every ``get_active_config()`` call emits an ``INVENTORY_CONFIG_TRACE``
    log entry with the config_id, schema version and checksum.
"""

from __future__ import annotations

import os
from pathlib import Path

from inventory_config.loader import compute_checksum, load_config, parse_config
from inventory_config.schema import (
    MAIN_LOCATION_ID,
    InventoryConfig,
    ReceivingConfig,
    SyncConfig,
)
from inventory_kernel.logging_config import get_logger

_logger = get_logger("config")

CONFIG_ENV_VAR = "INVENTORY_CONFIG"
DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_config(path: Path | str | None = None) -> InventoryConfig:
    """
    The public configuration entrypoint.

    Raises:
        FileNotFoundError: If the resolved file does not exist.
        InvalidConfigError: If a value is out of range or unknown.
    """
    resolved = Path(path or os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH)
    config = load_config(resolved)
    _logger.info(
        "INVENTORY_CONFIG_TRACE",
        extra={
            "trace_type": "INVENTORY_CONFIG_TRACE",
            "config_id": config.config_id,
            "schema_version": config.schema_version,
            "checksum": config.checksum,
            "source": str(resolved),
        },
    )
    return config


__all__ = [
    "get_active_config",
    "load_config",
    "parse_config",
    "compute_checksum",
    "InventoryConfig",
    "ReceivingConfig",
    "SyncConfig",
    "MAIN_LOCATION_ID",
    "CONFIG_ENV_VAR",
    "DEFAULT_CONFIG_PATH",
]
