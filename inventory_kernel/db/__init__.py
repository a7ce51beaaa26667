"""Database layer - engine, base classes, types, and immutability."""

from inventory_kernel.db.base import UUID, Base, TrackedBase, UUIDString
from inventory_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from inventory_kernel.db.types import (
    MAX_LOT_NUMBER_LENGTH,
    MAX_NOTES_LENGTH,
    MAX_REFERENCE_LENGTH,
    is_whole_units,
)

__all__ = [
    "init_engine_from_url",
    "get_engine",
    "get_session",
    "get_session_factory",
    "session_scope",
    "create_tables",
    "drop_tables",
    "reset_engine",
    "Base",
    "TrackedBase",
    "UUIDString",
    "UUID",
    "MAX_LOT_NUMBER_LENGTH",
    "MAX_NOTES_LENGTH",
    "MAX_REFERENCE_LENGTH",
    "is_whole_units",
]
