"""
inventory_engines.tracer -- INVENTORY_ENGINE_TRACE records for engine calls.

Responsibility:
    ``@traced_engine`` logs, at DEBUG, which engine ran, at which version,
    over which inputs (a short SHA-256 fingerprint) and for how long.  Two
    commits of the same ASN state produce the same fingerprint, so a trace
    can be matched to a replay.

Architecture position:
    Engines -- support for the pure calculation layer.  Emits one log
    record per call and nothing else.
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import inspect
import time
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any

from inventory_kernel.logging_config import get_logger

_logger = get_logger("engines.tracer")


def _canonical(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return str(value.value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _canonical(dataclasses.asdict(value))
    if isinstance(value, Mapping):
        pairs = sorted((_canonical(k), _canonical(v)) for k, v in value.items())
        return "{" + ",".join(f"{k}:{v}" for k, v in pairs) + "}"
    if isinstance(value, (list, tuple, frozenset, set)):
        parts = [_canonical(v) for v in value]
        if isinstance(value, (set, frozenset)):
            parts.sort()
        return "[" + ",".join(parts) + "]"
    return str(value)


def input_fingerprint(arguments: Mapping[str, Any], names: tuple[str, ...]) -> str:
    """16 hex chars identifying the named arguments; absent ones count as null."""
    canonical = "|".join(f"{name}={_canonical(arguments.get(name))}" for name in names)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """
    Decorate a pure engine function with trace logging.

    ``fingerprint_fields`` name parameters of the wrapped function; they
    are fingerprinted whether passed by position or keyword.
    """

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fingerprint = ""
            if fingerprint_fields:
                bound = signature.bind_partial(*args, **kwargs)
                fingerprint = input_fingerprint(bound.arguments, fingerprint_fields)

            started = time.perf_counter()
            result = func(*args, **kwargs)

            _logger.debug(
                "INVENTORY_ENGINE_TRACE",
                extra={
                    "trace_type": "INVENTORY_ENGINE_TRACE",
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "function": func.__qualname__,
                    "input_fingerprint": fingerprint,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 3),
                },
            )
            return result

        return wrapper

    return decorator
