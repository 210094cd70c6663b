"""Kernel ORM models -- externally owned reference data."""

from ledger_kernel.models.reference import (
    Branch,
    BranchModel,
    Employee,
    EmployeeModel,
    Product,
    ProductModel,
)

__all__ = [
    "Branch",
    "BranchModel",
    "Employee",
    "EmployeeModel",
    "Product",
    "ProductModel",
]
