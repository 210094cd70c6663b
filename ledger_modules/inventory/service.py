"""
Inventory Module Service (``ledger_modules.inventory.service``).

Responsibility
--------------
``StockLedgerService`` is the single writer path for stock balances: every
quantity change goes through ``apply_movement``, which checks the balance,
mutates it and appends an immutable ``InventoryMovement``.
``TransferService`` drives the branch transfer workflow and composes
``apply_movement`` for completion.

Architecture position
---------------------
**Modules layer**.  Both services extend ``ledger_kernel.services.BaseService``.
Public methods own the transaction boundary through ``_atomic()``;
``apply_movement`` and ``lock_balances`` only flush so that order posting
and transfer completion can compose them into one transaction.

Invariants enforced
-------------------
* A balance never goes negative: decrements are checked against the locked
  row and abort with ``InsufficientStockError`` before any write.
* Multi-row stock operations lock balances in (branch_id, product_id)
  order, so two opposite transfers between the same pair cannot deadlock.
* Transfer status is re-checked after the transfer row is locked; a
  duplicate ``complete`` resolves to ``InvalidTransitionError`` and moves
  no stock.

Failure modes
-------------
* ``ValidationError``  -- malformed request (raised by the request DTOs).
* ``NotFoundError``  -- unknown product, branch or transfer.
* ``InsufficientStockError``  -- nothing is written.
* ``UnauthorizedError``  -- transfer completed by a branch other than
  the destination.
* ``PersistenceError``  -- database failure, including a concurrent
  first-insert of the same balance row; safe to retry.

Usage::

    stock = StockLedgerService(session, clock=clock)
    stock.create_movement(
        MovementRequest(product_id, Decimal("50"), MovementType.PURCHASE,
                        to_branch_id=branch_id),
        actor,
    )

    transfers = TransferService(session, clock=clock)
    transfer = transfers.create_transfer(request, actor)
    transfers.complete(transfer.id, receiving_actor)
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.db.types import ZERO, to_decimal
from ledger_kernel.domain.actor import Actor
from ledger_kernel.domain.clock import Clock
from ledger_kernel.exceptions import (
    InsufficientStockError,
    UnauthorizedError,
    ValidationError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.reference import BranchModel, ProductModel
from ledger_kernel.services.base import BaseService
from ledger_modules.inventory.models import (
    BranchTransfer,
    InventoryMovement,
    MovementRequest,
    MovementType,
    StockBalance,
    TransferRequest,
)
from ledger_modules.inventory.orm import (
    BranchTransferItemModel,
    BranchTransferModel,
    InventoryMovementModel,
    StockBalanceModel,
)
from ledger_modules.inventory.workflows import TRANSFER_WORKFLOW

logger = get_logger("modules.inventory.service")

BalanceKey = tuple[UUID, UUID]  # (branch_id, product_id)


class StockLedgerService(BaseService):
    """
    The only stock-mutating path.

    Contract
    --------
    * ``create_movement`` and ``set_levels`` are public operations and commit.
    * ``apply_movement`` and ``lock_balances`` are building blocks for other
      services; they never commit.
    """

    # -------------------------------------------------------------------------
    # Building blocks (flush only)
    # -------------------------------------------------------------------------

    def _select_balance(self, product_id: UUID, branch_id: UUID) -> StockBalanceModel | None:
        return self.session.execute(
            select(StockBalanceModel)
            .where(
                StockBalanceModel.product_id == product_id,
                StockBalanceModel.branch_id == branch_id,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def _get_or_create_balance(
        self, product_id: UUID, branch_id: UUID, actor: Actor,
    ) -> StockBalanceModel:
        row = self._select_balance(product_id, branch_id)
        if row is None:
            row = StockBalanceModel(
                product_id=product_id,
                branch_id=branch_id,
                quantity=ZERO,
                **self._stamp(actor),
            )
            self.session.add(row)
            self.session.flush()
            logger.debug(
                "stock_balance_created",
                extra={"product_id": str(product_id), "branch_id": str(branch_id)},
            )
        return row

    def lock_balances(self, keys: Iterable[BalanceKey]) -> dict[BalanceKey, StockBalanceModel]:
        """
        Lock the existing balance rows for ``(branch_id, product_id)`` keys.

        Locks are taken in sorted key order.  Keys without a balance row are
        absent from the result; their available quantity is zero.
        """
        ordered = sorted(set(keys))
        locked: dict[BalanceKey, StockBalanceModel] = {}
        for branch_id, product_id in ordered:
            row = self._select_balance(product_id, branch_id)
            if row is not None:
                locked[(branch_id, product_id)] = row
        logger.debug(
            "stock_balances_locked",
            extra={"requested": len(ordered), "existing": len(locked)},
        )
        return locked

    def check_available(
        self,
        branch_id: UUID,
        requested: dict[UUID, Decimal],
        locked: dict[BalanceKey, StockBalanceModel],
    ) -> None:
        """Raise InsufficientStockError for the first product short at ``branch_id``."""
        for product_id in sorted(requested):
            row = locked.get((branch_id, product_id))
            available = row.quantity if row is not None else ZERO
            if available < requested[product_id]:
                raise InsufficientStockError(
                    product_id=product_id,
                    branch_id=branch_id,
                    available=available,
                    requested=requested[product_id],
                )

    def apply_movement(self, request: MovementRequest, actor: Actor) -> InventoryMovementModel:
        """
        Apply one movement to the balances and append its record.  Flush only.

        Raises:
            NotFoundError: product or branch does not exist.
            InsufficientStockError: the decrement would go negative.
        """
        self._get(ProductModel, request.product_id, "product")
        for branch_id in (request.from_branch_id, request.to_branch_id):
            if branch_id is not None:
                self._get(BranchModel, branch_id, "branch")

        source = request.decrement_branch_id
        if source is not None:
            row = self._select_balance(request.product_id, source)
            available = row.quantity if row is not None else ZERO
            if available < request.quantity:
                raise InsufficientStockError(
                    product_id=request.product_id,
                    branch_id=source,
                    available=available,
                    requested=request.quantity,
                )
            row.quantity = available - request.quantity
            self._touch(row, actor)

        destination = request.increment_branch_id
        if destination is not None:
            row = self._get_or_create_balance(request.product_id, destination, actor)
            row.quantity = row.quantity + request.quantity
            self._touch(row, actor)

        movement = InventoryMovementModel(
            product_id=request.product_id,
            from_branch_id=request.from_branch_id,
            to_branch_id=request.to_branch_id,
            quantity=request.quantity,
            movement_type=request.movement_type.value,
            note=request.note,
            batch_id=request.batch_id,
            **self._stamp(actor),
        )
        self.session.add(movement)
        self.session.flush()
        return movement

    # -------------------------------------------------------------------------
    # Public operations
    # -------------------------------------------------------------------------

    def create_movement(self, request: MovementRequest, actor: Actor) -> InventoryMovement:
        """Record a purchase, sale, adjustment or manual transfer leg."""
        with self._atomic(
            "create_movement",
            product_id=str(request.product_id),
            movement_type=request.movement_type.value,
        ):
            movement = self.apply_movement(request, actor).to_dto()

        logger.info(
            "stock_movement_recorded",
            extra={
                "movement_id": str(movement.id),
                "product_id": str(movement.product_id),
                "movement_type": movement.movement_type.value,
                "from_branch_id": str(movement.from_branch_id) if movement.from_branch_id else None,
                "to_branch_id": str(movement.to_branch_id) if movement.to_branch_id else None,
                "quantity": str(movement.quantity),
            },
        )
        return movement

    def set_levels(
        self,
        product_id: UUID,
        branch_id: UUID,
        actor: Actor,
        min_level: Decimal | None = None,
        max_level: Decimal | None = None,
    ) -> StockBalance:
        """Adjust reorder thresholds.  Never changes the quantity."""
        if min_level is not None:
            min_level = to_decimal(min_level, "min_level")
            if min_level < ZERO:
                raise ValidationError("min_level", "cannot be negative")
        if max_level is not None:
            max_level = to_decimal(max_level, "max_level")
            if max_level < ZERO:
                raise ValidationError("max_level", "cannot be negative")

        with self._atomic("set_levels", product_id=str(product_id), branch_id=str(branch_id)):
            self._get(ProductModel, product_id, "product")
            self._get(BranchModel, branch_id, "branch")
            row = self._get_or_create_balance(product_id, branch_id, actor)
            if min_level is not None:
                row.min_level = min_level
            if max_level is not None:
                row.max_level = max_level
            if (
                row.min_level is not None
                and row.max_level is not None
                and row.min_level > row.max_level
            ):
                raise ValidationError(
                    "min_level", f"min_level {row.min_level} exceeds max_level {row.max_level}",
                )
            self._touch(row, actor)
            self.session.flush()
            balance = row.to_dto()

        logger.info(
            "stock_levels_set",
            extra={
                "product_id": str(product_id),
                "branch_id": str(branch_id),
                "min_level": str(balance.min_level) if balance.min_level is not None else None,
                "max_level": str(balance.max_level) if balance.max_level is not None else None,
            },
        )
        return balance


class TransferService(BaseService):
    """
    Branch transfer workflow: create -> (approve) -> complete | cancel.

    Stock moves only on ``complete``.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        stock: StockLedgerService | None = None,
    ):
        super().__init__(session, clock)
        self._stock = stock or StockLedgerService(session, self._clock)

    def create_transfer(self, request: TransferRequest, actor: Actor) -> BranchTransfer:
        with self._atomic(
            "create_transfer",
            from_branch_id=str(request.from_branch_id),
            to_branch_id=str(request.to_branch_id),
        ):
            self._get(BranchModel, request.from_branch_id, "branch")
            self._get(BranchModel, request.to_branch_id, "branch")
            transfer = BranchTransferModel(
                from_branch_id=request.from_branch_id,
                to_branch_id=request.to_branch_id,
                status=TRANSFER_WORKFLOW.initial_state,
                note=request.note,
                **self._stamp(actor),
            )
            for line_no, item in enumerate(request.items, start=1):
                self._get(ProductModel, item.product_id, "product")
                transfer.items.append(BranchTransferItemModel(
                    product_id=item.product_id,
                    line_no=line_no,
                    quantity=item.quantity,
                    batch_id=item.batch_id,
                    **self._stamp(actor),
                ))
            self.session.add(transfer)
            self.session.flush()
            result = transfer.to_dto()

        logger.info(
            "transfer_created",
            extra={
                "transfer_id": str(result.id),
                "from_branch_id": str(result.from_branch_id),
                "to_branch_id": str(result.to_branch_id),
                "item_count": len(result.items),
            },
        )
        return result

    def _transition(self, transfer_id: UUID, action: str) -> tuple[BranchTransferModel, str]:
        transfer = self._lock(BranchTransferModel, transfer_id, "branch_transfer")
        transition = TRANSFER_WORKFLOW.resolve(
            transfer.status, action, "branch_transfer", transfer_id,
        )
        return transfer, transition.to_state

    def approve(self, transfer_id: UUID, actor: Actor) -> BranchTransfer:
        with self._atomic("approve_transfer", transfer_id=str(transfer_id)):
            transfer, next_state = self._transition(transfer_id, "approve")
            transfer.status = next_state
            transfer.approved_by = actor.id
            self._touch(transfer, actor)
            self.session.flush()
            result = transfer.to_dto()

        logger.info(
            "transfer_approved",
            extra={"transfer_id": str(transfer_id), "actor_id": str(actor.id)},
        )
        return result

    def complete(self, transfer_id: UUID, actor: Actor) -> BranchTransfer:
        """
        Move the transfer's stock and mark it completed.

        Only an actor of the destination branch may complete.  All source
        balances are checked before any is touched.
        """
        with self._atomic("complete_transfer", transfer_id=str(transfer_id)):
            transfer, next_state = self._transition(transfer_id, "complete")
            if not actor.belongs_to(transfer.to_branch_id):
                raise UnauthorizedError(
                    actor_id=actor.id,
                    actor_branch_id=actor.branch_id,
                    required_branch_id=transfer.to_branch_id,
                )

            requested: dict[UUID, Decimal] = defaultdict(lambda: ZERO)
            for item in transfer.items:
                requested[item.product_id] += item.quantity

            keys = [(transfer.from_branch_id, p) for p in requested]
            keys += [(transfer.to_branch_id, p) for p in requested]
            locked = self._stock.lock_balances(keys)
            self._stock.check_available(transfer.from_branch_id, requested, locked)

            note = f"transfer {transfer.id}"
            for item in transfer.items:
                for movement_type in (MovementType.TRANSFER_OUT, MovementType.TRANSFER_IN):
                    self._stock.apply_movement(
                        MovementRequest(
                            product_id=item.product_id,
                            quantity=item.quantity,
                            movement_type=movement_type,
                            from_branch_id=transfer.from_branch_id,
                            to_branch_id=transfer.to_branch_id,
                            note=note,
                            batch_id=item.batch_id,
                        ),
                        actor,
                    )

            transfer.status = next_state
            transfer.completed_by = actor.id
            self._touch(transfer, actor)
            self.session.flush()
            result = transfer.to_dto()

        logger.info(
            "transfer_completed",
            extra={
                "transfer_id": str(transfer_id),
                "from_branch_id": str(result.from_branch_id),
                "to_branch_id": str(result.to_branch_id),
                "item_count": len(result.items),
                "actor_id": str(actor.id),
            },
        )
        return result

    def cancel(self, transfer_id: UUID, actor: Actor) -> BranchTransfer:
        with self._atomic("cancel_transfer", transfer_id=str(transfer_id)):
            transfer, next_state = self._transition(transfer_id, "cancel")
            transfer.status = next_state
            transfer.cancelled_by = actor.id
            self._touch(transfer, actor)
            self.session.flush()
            result = transfer.to_dto()

        logger.info(
            "transfer_cancelled",
            extra={"transfer_id": str(transfer_id), "actor_id": str(actor.id)},
        )
        return result
