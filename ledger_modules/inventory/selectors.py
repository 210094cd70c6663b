"""
Inventory read side: stock balances, movement history and transfers.

Selectors never write.  All results are frozen DTOs.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import or_, select

from ledger_kernel.db.types import ZERO
from ledger_kernel.exceptions import NotFoundError
from ledger_kernel.selectors.base import BaseSelector
from ledger_modules.inventory.config import InventoryConfig
from ledger_modules.inventory.models import (
    BranchTransfer,
    BranchTransferItem,
    InventoryMovement,
    StockBalance,
    TransferStatus,
)
from ledger_modules.inventory.orm import (
    BranchTransferItemModel,
    BranchTransferModel,
    InventoryMovementModel,
    StockBalanceModel,
)


class StockSelector(BaseSelector):
    """Queries over stock balances and the movement log."""

    def __init__(self, session, config: InventoryConfig | None = None):
        super().__init__(session)
        self._config = config or InventoryConfig.with_defaults()

    def get_balance(self, product_id: UUID, branch_id: UUID) -> StockBalance | None:
        """Balance row for (product, branch); None when no movement ever touched it."""
        row = self.session.execute(
            select(StockBalanceModel).where(
                StockBalanceModel.product_id == product_id,
                StockBalanceModel.branch_id == branch_id,
            )
        ).scalar_one_or_none()
        return row.to_dto() if row is not None else None

    def quantity(self, product_id: UUID, branch_id: UUID) -> Decimal:
        balance = self.get_balance(product_id, branch_id)
        return balance.quantity if balance is not None else ZERO

    def list_balances(self, branch_id: UUID) -> list[StockBalance]:
        """All balances of a branch, most recently updated first."""
        rows = self.session.scalars(
            select(StockBalanceModel)
            .where(StockBalanceModel.branch_id == branch_id)
            .order_by(StockBalanceModel.updated_at.desc(), StockBalanceModel.product_id)
        )
        return [row.to_dto() for row in rows]

    def total_for_product(self, product_id: UUID) -> Decimal:
        """On-hand quantity of a product summed over all branches."""
        quantities = self.session.scalars(
            select(StockBalanceModel.quantity)
            .where(StockBalanceModel.product_id == product_id)
        )
        return sum(quantities, ZERO)

    def branch_stocks_for_product(self, product_id: UUID) -> list[StockBalance]:
        """Per-branch balances of a product, largest quantity first."""
        rows = self.session.scalars(
            select(StockBalanceModel)
            .where(StockBalanceModel.product_id == product_id)
            .order_by(StockBalanceModel.quantity.desc(), StockBalanceModel.branch_id)
        )
        return [row.to_dto() for row in rows]

    def below_min_level(self, branch_id: UUID) -> list[StockBalance]:
        """Balances of a branch under their reorder threshold."""
        rows = self.session.scalars(
            select(StockBalanceModel)
            .where(
                StockBalanceModel.branch_id == branch_id,
                StockBalanceModel.min_level.is_not(None),
                StockBalanceModel.quantity < StockBalanceModel.min_level,
            )
            .order_by(StockBalanceModel.product_id)
        )
        return [row.to_dto() for row in rows]

    def list_movements(
        self,
        branch_id: UUID | None = None,
        limit: int | None = None,
        product_id: UUID | None = None,
    ) -> list[InventoryMovement]:
        """Movements touching the branch on either side, newest first."""
        stmt = select(InventoryMovementModel)
        if branch_id is not None:
            stmt = stmt.where(or_(
                InventoryMovementModel.from_branch_id == branch_id,
                InventoryMovementModel.to_branch_id == branch_id,
            ))
        if product_id is not None:
            stmt = stmt.where(InventoryMovementModel.product_id == product_id)
        stmt = stmt.order_by(
            InventoryMovementModel.created_at.desc(),
            InventoryMovementModel.id,
        ).limit(limit or self._config.movement_list_limit)
        return [row.to_dto() for row in self.session.scalars(stmt)]


class TransferSelector(BaseSelector):
    """Queries over branch transfers."""

    def get_transfer(self, transfer_id: UUID) -> BranchTransfer:
        row = self.session.get(BranchTransferModel, transfer_id)
        if row is None:
            raise NotFoundError("branch_transfer", transfer_id)
        return row.to_dto()

    def get_items(self, transfer_id: UUID) -> list[BranchTransferItem]:
        rows = self.session.scalars(
            select(BranchTransferItemModel)
            .where(BranchTransferItemModel.transfer_id == transfer_id)
            .order_by(BranchTransferItemModel.line_no)
        )
        return [row.to_dto() for row in rows]

    def list_transfers(
        self,
        branch_id: UUID | None = None,
        status: TransferStatus | None = None,
    ) -> list[BranchTransfer]:
        """Transfers with the branch on either side, newest first."""
        stmt = select(BranchTransferModel)
        if branch_id is not None:
            stmt = stmt.where(or_(
                BranchTransferModel.from_branch_id == branch_id,
                BranchTransferModel.to_branch_id == branch_id,
            ))
        if status is not None:
            stmt = stmt.where(BranchTransferModel.status == TransferStatus(status).value)
        stmt = stmt.order_by(BranchTransferModel.created_at.desc(), BranchTransferModel.id)
        return [row.to_dto() for row in self.session.scalars(stmt)]
