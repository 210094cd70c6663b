"""
Module: ledger_kernel.db.base
Responsibility: Declarative base for every ledger table.
Architecture position: Kernel > DB.  MUST NOT import from models/, services/,
    selectors/ or ledger_modules.

Invariants enforced:
    - Every row has a uuid4 primary key.
    - Amounts and quantities are Numeric(38, 9); Python floats never reach
      a column (see ``types.to_decimal``).
    - Every aggregate records who created it and who touched it last.
    - Unnamed indexes, unique and foreign-key constraints get deterministic
      names so migrations diff cleanly across PostgreSQL and SQLite.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, DateTime, MetaData, Numeric, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ledger_kernel.db.types import UUIDString

NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_N_name)s",
    "uq": "uq_%(table_name)s_%(column_0_N_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Declarative base: uuid4 ``id`` plus the shared column type map."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(38, 9),
        datetime: DateTime(timezone=True),
        UUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.id}>"


class TrackedBase(Base):
    """
    Adds audit columns to an aggregate table.

    Services stamp ``created_at``/``updated_at`` from their injected clock;
    the server defaults only cover rows written outside a service.
    ``updated_at``/``updated_by_id`` may change on append-only rows, since
    they describe the write rather than the ledger fact.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now())
    created_by_id: Mapped[UUID] = mapped_column()
    updated_by_id: Mapped[UUID | None] = mapped_column(nullable=True)
