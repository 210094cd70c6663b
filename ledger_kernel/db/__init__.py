"""Database layer - engine, declarative base and column types."""

from ledger_kernel.db.base import Base, TrackedBase
from ledger_kernel.db.engine import create_tables, get_engine, get_session, session_scope
from ledger_kernel.db.types import ZERO, UUIDString, round_money, to_decimal

__all__ = [
    "get_engine",
    "get_session",
    "session_scope",
    "create_tables",
    "Base",
    "TrackedBase",
    "UUIDString",
    "ZERO",
    "round_money",
    "to_decimal",
]
