"""
Inventory Domain Models (``ledger_modules.inventory.models``).

Responsibility
--------------
Frozen value objects for the stock ledger and the branch transfer workflow:
balances, movements, transfers, and the typed requests that create them.

Architecture
------------
Layer: **Modules** -- pure domain data structures.  All dataclasses are
``frozen=True``.  These models carry NO I/O; they are used as DTOs between
the service layer and callers.

Invariants
----------
- ``MovementType`` is a closed set; an unknown movement type is rejected
  when the request is built, never stored.
- Request quantities are strictly positive Decimals.
- A transfer's source and destination branches differ and it has at least
  one item.

Failure Modes
-------------
- Construction of a request with malformed input raises ``ValidationError``
  before anything touches the store.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from ledger_kernel.db.types import ZERO, to_decimal
from ledger_kernel.exceptions import ValidationError


class MovementType(Enum):
    """Inventory movement categories."""
    PURCHASE = "purchase"
    SALE = "sale"
    ADJUSTMENT = "adjustment"
    TRANSFER_IN = "transfer_in"
    TRANSFER_OUT = "transfer_out"


class TransferStatus(Enum):
    """Branch transfer processing states."""
    PENDING = "pending"
    APPROVED = "approved"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Movement types that add to the destination branch
INCREMENTING_TYPES = frozenset({MovementType.PURCHASE, MovementType.TRANSFER_IN})
# Movement types that take from the source branch
DECREMENTING_TYPES = frozenset({MovementType.SALE, MovementType.TRANSFER_OUT})


def parse_movement_type(value) -> MovementType:
    if isinstance(value, MovementType):
        return value
    try:
        return MovementType(value)
    except ValueError:
        raise ValidationError(
            "movement_type",
            f"unknown movement type {value!r}; expected one of "
            f"{sorted(m.value for m in MovementType)}",
        ) from None


@dataclass(frozen=True)
class StockBalance:
    """On-hand quantity of one product at one branch."""
    id: UUID
    product_id: UUID
    branch_id: UUID
    quantity: Decimal
    min_level: Decimal | None = None
    max_level: Decimal | None = None
    updated_at: datetime | None = None

    @property
    def below_min_level(self) -> bool:
        return self.min_level is not None and self.quantity < self.min_level


@dataclass(frozen=True)
class InventoryMovement:
    """An immutable stock movement record."""
    id: UUID
    product_id: UUID
    quantity: Decimal
    movement_type: MovementType
    from_branch_id: UUID | None = None
    to_branch_id: UUID | None = None
    note: str | None = None
    batch_id: str | None = None
    created_by_id: UUID | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class MovementRequest:
    """
    Input to ``StockLedgerService.create_movement``.

    Branch sides by type:
        purchase, transfer_in   -> to_branch_id required
        sale, transfer_out      -> from_branch_id required
        adjustment              -> exactly one of the two; to_branch_id adds
                                   stock, from_branch_id removes it
    Transfer movements may carry both branch ids for the audit trail.
    """
    product_id: UUID
    quantity: Decimal
    movement_type: MovementType
    from_branch_id: UUID | None = None
    to_branch_id: UUID | None = None
    note: str | None = None
    batch_id: str | None = None

    def __post_init__(self):
        movement_type = parse_movement_type(self.movement_type)
        object.__setattr__(self, "movement_type", movement_type)
        quantity = to_decimal(self.quantity, "quantity")
        if quantity <= ZERO:
            raise ValidationError("quantity", f"must be positive, got {quantity}")
        object.__setattr__(self, "quantity", quantity)

        if movement_type == MovementType.PURCHASE:
            if self.to_branch_id is None or self.from_branch_id is not None:
                raise ValidationError("to_branch_id", "purchase requires only a destination branch")
        elif movement_type == MovementType.SALE:
            if self.from_branch_id is None or self.to_branch_id is not None:
                raise ValidationError("from_branch_id", "sale requires only a source branch")
        elif movement_type == MovementType.ADJUSTMENT:
            if (self.from_branch_id is None) == (self.to_branch_id is None):
                raise ValidationError(
                    "branch", "adjustment requires exactly one of from_branch_id/to_branch_id",
                )
        elif movement_type == MovementType.TRANSFER_IN:
            if self.to_branch_id is None:
                raise ValidationError("to_branch_id", "transfer_in requires a destination branch")
        elif self.from_branch_id is None:
            raise ValidationError("from_branch_id", "transfer_out requires a source branch")

    @property
    def decrement_branch_id(self) -> UUID | None:
        """Branch whose balance this movement reduces, if any."""
        if self.movement_type in DECREMENTING_TYPES:
            return self.from_branch_id
        if self.movement_type == MovementType.ADJUSTMENT:
            return self.from_branch_id
        return None

    @property
    def increment_branch_id(self) -> UUID | None:
        """Branch whose balance this movement raises, if any."""
        if self.movement_type in INCREMENTING_TYPES:
            return self.to_branch_id
        if self.movement_type == MovementType.ADJUSTMENT:
            return self.to_branch_id
        return None


@dataclass(frozen=True)
class TransferItemRequest:
    product_id: UUID
    quantity: Decimal
    batch_id: str | None = None

    def __post_init__(self):
        quantity = to_decimal(self.quantity, "quantity")
        if quantity <= ZERO:
            raise ValidationError("quantity", f"must be positive, got {quantity}")
        object.__setattr__(self, "quantity", quantity)


@dataclass(frozen=True)
class TransferRequest:
    """Input to ``TransferService.create_transfer``."""
    from_branch_id: UUID
    to_branch_id: UUID
    items: tuple[TransferItemRequest, ...]
    note: str | None = None

    def __post_init__(self):
        if self.from_branch_id == self.to_branch_id:
            raise ValidationError("to_branch_id", "source and destination branch must differ")
        items = tuple(self.items)
        if not items:
            raise ValidationError("items", "a transfer needs at least one item")
        object.__setattr__(self, "items", items)


@dataclass(frozen=True)
class BranchTransferItem:
    id: UUID
    transfer_id: UUID
    product_id: UUID
    quantity: Decimal
    line_no: int = 1
    batch_id: str | None = None


@dataclass(frozen=True)
class BranchTransfer:
    """A branch-to-branch stock transfer and its fixed item list."""
    id: UUID
    from_branch_id: UUID
    to_branch_id: UUID
    status: TransferStatus
    note: str | None = None
    created_by_id: UUID | None = None
    approved_by: UUID | None = None
    completed_by: UUID | None = None
    cancelled_by: UUID | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    items: tuple[BranchTransferItem, ...] = field(default_factory=tuple)
