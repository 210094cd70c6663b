"""
Allowance Module Service (``ledger_modules.allowances.service``).

Responsibility
--------------
Creates employee allowance headers and appends their items.  The header
total is recomputed from the stored items in the same transaction as every
item insert.

Failure modes
-------------
* ``ValidationError``  -- malformed item, empty item list.
* ``NotFoundError``  -- unknown employee, branch, product or allowance.
* ``PersistenceError``  -- database failure; safe to retry.
"""

from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import func, select

from ledger_kernel.db.types import ZERO
from ledger_kernel.domain.actor import Actor
from ledger_kernel.exceptions import ValidationError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.reference import BranchModel, EmployeeModel, ProductModel
from ledger_kernel.services.base import BaseService
from ledger_modules.allowances.models import (
    AllowanceItemRequest,
    AllowanceRequest,
    EmployeeAllowance,
)
from ledger_modules.allowances.orm import EmployeeAllowanceItemModel, EmployeeAllowanceModel

logger = get_logger("modules.allowances.service")


class AllowanceService(BaseService):
    """Allowance ledger operations."""

    def _recompute_total(self, allowance: EmployeeAllowanceModel) -> None:
        self.session.flush()
        values = self.session.scalars(
            select(EmployeeAllowanceItemModel.total_value)
            .where(EmployeeAllowanceItemModel.allowance_id == allowance.id)
        ).all()
        allowance.total = sum(values, ZERO)
        self.session.flush()
        logger.debug(
            "allowance_total_recomputed",
            extra={"allowance_id": str(allowance.id), "total": str(allowance.total)},
        )

    def create_allowance(self, request: AllowanceRequest, actor: Actor) -> EmployeeAllowance:
        with self._atomic("create_allowance", employee_id=str(request.employee_id)):
            self._get(EmployeeModel, request.employee_id, "employee")
            if request.branch_id is not None:
                self._get(BranchModel, request.branch_id, "branch")
            allowance = EmployeeAllowanceModel(
                employee_id=request.employee_id,
                branch_id=request.branch_id,
                allowance_date=request.allowance_date or self._clock.today(),
                note=request.note,
                total=ZERO,
                **self._stamp(actor),
            )
            self.session.add(allowance)
            self.session.flush()
            result = allowance.to_dto()

        logger.info(
            "allowance_created",
            extra={
                "allowance_id": str(result.id),
                "employee_id": str(result.employee_id),
                "allowance_date": str(result.allowance_date),
            },
        )
        return result

    def add_items(
        self, allowance_id: UUID, items: Sequence[AllowanceItemRequest], actor: Actor,
    ) -> EmployeeAllowance:
        """Append lines and recompute the header total.  All-or-nothing."""
        if not items:
            raise ValidationError("items", "at least one item is required")

        with self._atomic("add_allowance_items", allowance_id=str(allowance_id)):
            allowance = self._lock(EmployeeAllowanceModel, allowance_id, "employee_allowance")
            next_line = self.session.execute(
                select(func.coalesce(func.max(EmployeeAllowanceItemModel.line_no), 0))
                .where(EmployeeAllowanceItemModel.allowance_id == allowance.id)
            ).scalar_one()
            for offset, item in enumerate(items, start=1):
                if item.product_id is not None:
                    self._get(ProductModel, item.product_id, "product")
                allowance.items.append(EmployeeAllowanceItemModel(
                    line_no=next_line + offset,
                    item_type=item.item_type.value,
                    product_id=item.product_id,
                    description=item.description,
                    quantity=item.quantity,
                    unit_value=item.unit_value,
                    total_value=item.total_value,
                    **self._stamp(actor),
                ))
            self._touch(allowance, actor)
            self._recompute_total(allowance)
            result = allowance.to_dto()

        logger.info(
            "allowance_items_added",
            extra={
                "allowance_id": str(allowance_id),
                "item_count": len(items),
                "total": str(result.total),
            },
        )
        return result
