"""
Configuration Loader (``inventory_config.loader``).

Responsibility
--------------
Loads a YAML configuration document and parses it into the frozen
``inventory_config.schema`` dataclasses.

Invariants enforced
-------------------
* Unknown keys are rejected, so a typo never silently falls back to a
  default.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Bad or unknown values -> ``InvalidConfigError``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import fields
from pathlib import Path
from typing import Any
from uuid import UUID

import yaml

from inventory_config.schema import InventoryConfig, ReceivingConfig, SyncConfig
from inventory_kernel.exceptions import InvalidConfigError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def _check_keys(section: str, data: dict[str, Any], allowed: set[str]) -> None:
    unknown = set(data) - allowed
    if unknown:
        raise InvalidConfigError(section, f"unknown keys: {sorted(unknown)}")


def _field_names(cls) -> set[str]:
    return {f.name for f in fields(cls)}


def parse_receiving(data: dict[str, Any]) -> ReceivingConfig:
    _check_keys("receiving", data, _field_names(ReceivingConfig))
    kwargs = dict(data)
    if "default_location_id" in kwargs:
        try:
            kwargs["default_location_id"] = UUID(str(kwargs["default_location_id"]))
        except ValueError:
            raise InvalidConfigError(
                "receiving.default_location_id", "must be a UUID",
            ) from None
    return ReceivingConfig(**kwargs)


def parse_sync(data: dict[str, Any]) -> SyncConfig:
    _check_keys("sync", data, _field_names(SyncConfig))
    kwargs = dict(data)
    for key in ("backoff_unit_seconds", "timeout_seconds", "request_timeout_seconds"):
        if key in kwargs:
            try:
                kwargs[key] = float(kwargs[key])
            except (TypeError, ValueError):
                raise InvalidConfigError(f"sync.{key}", "must be a number") from None
    for key in ("max_attempts", "max_workers"):
        if key in kwargs and (
            isinstance(kwargs[key], bool) or not isinstance(kwargs[key], int)
        ):
            raise InvalidConfigError(f"sync.{key}", "must be an integer")
    return SyncConfig(**kwargs)


def parse_config(data: dict[str, Any]) -> InventoryConfig:
    """Parse a configuration document (already loaded from YAML)."""
    _check_keys("<root>", data, {"config_id", "schema_version", "receiving", "sync"})
    return InventoryConfig(
        config_id=str(data.get("config_id", "default")),
        schema_version=int(data.get("schema_version", 1)),
        receiving=parse_receiving(data.get("receiving") or {}),
        sync=parse_sync(data.get("sync") or {}),
        checksum=compute_checksum(data),
    )


def load_config(path: Path | str) -> InventoryConfig:
    """Load and parse one YAML configuration file."""
    return parse_config(load_yaml_file(Path(path)))
