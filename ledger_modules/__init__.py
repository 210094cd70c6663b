"""
Ledger Modules.

One package per ledger, each built on ``ledger_kernel``:
- inventory: stock balances, movements and inter-branch transfers
- sales: orders, items, payments and derived totals
- payroll: salary profiles, payroll runs and payslips
- allowances: non-salary benefits given to employees
- reporting: read-only sales summaries

Each module contains domain models (frozen dataclasses), ORM models,
a service for mutations, selectors for reads, and where needed workflows
(state machines), pure helpers and a configuration schema.
"""

from ledger_modules import allowances, inventory, payroll, reporting, sales

__all__ = ["allowances", "inventory", "payroll", "reporting", "sales"]
