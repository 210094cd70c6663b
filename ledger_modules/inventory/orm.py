"""
Module: ledger_modules.inventory.orm
Responsibility: SQLAlchemy ORM persistence models for the stock ledger and
    the branch transfer workflow.

Architecture position: Modules > Inventory > ORM.  Inherits from TrackedBase
    (ledger_kernel.db.base).  References branches and products with foreign
    keys; those rows are owned externally.

Invariants enforced:
    - One StockBalance row per (product, branch), quantity >= 0 (CHECK).
    - Movement and transfer-item quantities are > 0 (CHECK).
    - A transfer's source and destination branches differ (CHECK).
    - Enum fields stored as String(50) for portability and readability.

Failure modes:
    - IntegrityError when two transactions create the same balance row
      concurrently; surfaced to callers as a retryable PersistenceError.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TrackedBase


# =============================================================================
# StockBalanceModel
# =============================================================================

class StockBalanceModel(TrackedBase):
    """
    Current on-hand quantity of one product at one branch.

    Maps to: ledger_modules.inventory.models.StockBalance.

    Guarantees:
        - Written only through StockLedgerService.apply_movement (quantity)
          and set_levels (thresholds).
    """

    __tablename__ = "stock_balances"

    __table_args__ = (
        UniqueConstraint("product_id", "branch_id", name="uq_stock_balance_product_branch"),
        CheckConstraint("quantity >= 0", name="ck_stock_balance_non_negative"),
        Index("idx_stock_balance_branch", "branch_id"),
    )

    product_id: Mapped[UUID] = mapped_column(ForeignKey("products.id"))
    branch_id: Mapped[UUID] = mapped_column(ForeignKey("branches.id"))
    quantity: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    min_level: Mapped[Decimal | None] = mapped_column(nullable=True)
    max_level: Mapped[Decimal | None] = mapped_column(nullable=True)

    def to_dto(self):
        from ledger_modules.inventory.models import StockBalance
        return StockBalance(
            id=self.id,
            product_id=self.product_id,
            branch_id=self.branch_id,
            quantity=self.quantity,
            min_level=self.min_level,
            max_level=self.max_level,
            updated_at=self.updated_at,
        )

    def __repr__(self) -> str:
        return (
            f"<StockBalanceModel product={self.product_id} "
            f"branch={self.branch_id} qty={self.quantity}>"
        )


# =============================================================================
# InventoryMovementModel
# =============================================================================

class InventoryMovementModel(TrackedBase):
    """
    Immutable audit record of one stock movement.

    Maps to: ledger_modules.inventory.models.InventoryMovement.

    Guarantees:
        - Never updated or deleted (ledger_kernel.db.immutability).
    """

    __tablename__ = "inventory_movements"

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_inventory_movement_positive"),
        Index("idx_inv_movement_product", "product_id"),
        Index("idx_inv_movement_from_branch", "from_branch_id"),
        Index("idx_inv_movement_to_branch", "to_branch_id"),
        Index("idx_inv_movement_created", "created_at"),
    )

    product_id: Mapped[UUID] = mapped_column(ForeignKey("products.id"))
    from_branch_id: Mapped[UUID | None] = mapped_column(ForeignKey("branches.id"), nullable=True)
    to_branch_id: Mapped[UUID | None] = mapped_column(ForeignKey("branches.id"), nullable=True)
    quantity: Mapped[Decimal] = mapped_column()
    # MovementType enum stored as string
    movement_type: Mapped[str] = mapped_column(String(50))
    note: Mapped[str | None] = mapped_column(String(500), nullable=True)
    batch_id: Mapped[str | None] = mapped_column(String(100), nullable=True)

    def to_dto(self):
        from ledger_modules.inventory.models import InventoryMovement, MovementType
        return InventoryMovement(
            id=self.id,
            product_id=self.product_id,
            quantity=self.quantity,
            movement_type=MovementType(self.movement_type),
            from_branch_id=self.from_branch_id,
            to_branch_id=self.to_branch_id,
            note=self.note,
            batch_id=self.batch_id,
            created_by_id=self.created_by_id,
            created_at=self.created_at,
        )

    def __repr__(self) -> str:
        return (
            f"<InventoryMovementModel {self.movement_type} "
            f"product={self.product_id} qty={self.quantity}>"
        )


# =============================================================================
# BranchTransferModel / BranchTransferItemModel
# =============================================================================

class BranchTransferModel(TrackedBase):
    """
    A request to move stock from one branch to another.

    Maps to: ledger_modules.inventory.models.BranchTransfer.
    """

    __tablename__ = "branch_transfers"

    __table_args__ = (
        CheckConstraint("from_branch_id <> to_branch_id", name="ck_branch_transfer_distinct"),
        Index("idx_branch_transfer_from", "from_branch_id"),
        Index("idx_branch_transfer_to", "to_branch_id"),
        Index("idx_branch_transfer_status", "status"),
    )

    from_branch_id: Mapped[UUID] = mapped_column(ForeignKey("branches.id"))
    to_branch_id: Mapped[UUID] = mapped_column(ForeignKey("branches.id"))
    # TransferStatus enum stored as string
    status: Mapped[str] = mapped_column(String(50), default="pending")
    note: Mapped[str | None] = mapped_column(String(500), nullable=True)
    approved_by: Mapped[UUID | None] = mapped_column(nullable=True)
    completed_by: Mapped[UUID | None] = mapped_column(nullable=True)
    cancelled_by: Mapped[UUID | None] = mapped_column(nullable=True)

    items: Mapped[list["BranchTransferItemModel"]] = relationship(
        back_populates="transfer",
        cascade="all, delete-orphan",
        order_by="BranchTransferItemModel.line_no",
    )

    def to_dto(self):
        from ledger_modules.inventory.models import BranchTransfer, TransferStatus
        return BranchTransfer(
            id=self.id,
            from_branch_id=self.from_branch_id,
            to_branch_id=self.to_branch_id,
            status=TransferStatus(self.status),
            note=self.note,
            created_by_id=self.created_by_id,
            approved_by=self.approved_by,
            completed_by=self.completed_by,
            cancelled_by=self.cancelled_by,
            created_at=self.created_at,
            updated_at=self.updated_at,
            items=tuple(item.to_dto() for item in self.items),
        )

    def __repr__(self) -> str:
        return (
            f"<BranchTransferModel {self.id} {self.from_branch_id}->"
            f"{self.to_branch_id} status={self.status}>"
        )


class BranchTransferItemModel(TrackedBase):
    """One product line of a transfer.  Fixed at creation."""

    __tablename__ = "branch_transfer_items"

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_branch_transfer_item_positive"),
        Index("idx_branch_transfer_item_transfer", "transfer_id"),
    )

    transfer_id: Mapped[UUID] = mapped_column(ForeignKey("branch_transfers.id", ondelete="CASCADE"))
    product_id: Mapped[UUID] = mapped_column(ForeignKey("products.id"))
    line_no: Mapped[int] = mapped_column(default=1)
    quantity: Mapped[Decimal] = mapped_column()
    batch_id: Mapped[str | None] = mapped_column(String(100), nullable=True)

    transfer: Mapped[BranchTransferModel] = relationship(back_populates="items")

    def to_dto(self):
        from ledger_modules.inventory.models import BranchTransferItem
        return BranchTransferItem(
            id=self.id,
            transfer_id=self.transfer_id,
            product_id=self.product_id,
            quantity=self.quantity,
            line_no=self.line_no,
            batch_id=self.batch_id,
        )

    def __repr__(self) -> str:
        return f"<BranchTransferItemModel product={self.product_id} qty={self.quantity}>"
