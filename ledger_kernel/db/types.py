"""
Module: ledger_kernel.db.types
Responsibility: Column types and the numeric coercion every amount passes
    through on its way in.
Architecture position: Kernel > DB.  MUST NOT import from models/, services/
    or selectors/.

Invariants enforced:
    - No floats for money or quantities.  ``to_decimal`` rejects them at the
      DTO boundary.
    - ``round_money`` is the only rounding applied, and only to payroll
      figures; order totals keep full stored precision.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from uuid import UUID

from sqlalchemy import String
from sqlalchemy.types import TypeDecorator

from ledger_kernel.exceptions import ValidationError

MONEY_DECIMAL_PLACES = 2

ZERO = Decimal("0")


class UUIDString(TypeDecorator):
    """UUID stored as its 36-character string so SQLite and PostgreSQL agree."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return str(value) if value is not None else None

    def process_result_value(self, value, dialect):
        return UUID(value) if value is not None else None


def round_money(amount: Decimal, places: int = MONEY_DECIMAL_PLACES) -> Decimal:
    """Round half-up to ``places`` decimal places."""
    return amount.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def to_decimal(value, field: str) -> Decimal:
    """
    Coerce an int, str or Decimal input to a finite Decimal.

    Floats (and bools) are rejected with a ValidationError naming ``field``.
    """
    if isinstance(value, (bool, float)):
        raise ValidationError(field, f"must be Decimal, int or str, got {type(value).__name__}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(value)
        except InvalidOperation:
            raise ValidationError(field, f"not a number: {value!r}") from None
    else:
        raise ValidationError(field, f"must be Decimal, int or str, got {type(value).__name__}")
    if not result.is_finite():
        raise ValidationError(field, "must be finite")
    return result
