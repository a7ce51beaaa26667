"""
Module: inventory_kernel.db.base
Responsibility: Declarative bases for every ORM model in the inventory
    system: UUID primary keys, the shared column type map, and TrackedBase
    for audit columns.
Architecture position: Kernel > DB.  Lowest import target in the kernel;
    imports nothing from models/, services/, selectors/ or outer layers.

Conventions:
    - Primary keys are uuid4 values stored as 36-character strings, so the
      same schema runs on PostgreSQL and SQLite.
    - ``int`` columns are BigInteger: unit counters and qty_delta are whole
      numbers with no practical upper bound.
    - TrackedBase rows record who created them; ASN headers and lines also
      record who last changed them.  The ledger itself uses Base, since its
      rows are never updated.
"""

from datetime import date, datetime
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import BigInteger, Date, DateTime, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID in Python, String(36) in the database."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else PyUUID(value)


class Base(DeclarativeBase):
    """Declarative base; every model gets a uuid4 ``id``."""

    type_annotation_map: ClassVar[dict] = {
        datetime: DateTime(timezone=True),
        date: Date,
        PyUUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[PyUUID] = mapped_column(
        UUIDString(),
        primary_key=True,
        default=uuid4,
    )


class TrackedBase(Base):
    """
    Abstract base with creation and last-change audit columns.

    ``created_at``/``created_by_id`` never change.  ``updated_at`` moves on
    every UPDATE; ``updated_by_id`` is set by the service that changed the
    row.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False,
    )
    created_by_id: Mapped[PyUUID] = mapped_column(UUIDString(), nullable=False)
    updated_by_id: Mapped[PyUUID | None] = mapped_column(UUIDString(), nullable=True)


UUID = PyUUID
