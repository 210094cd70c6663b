"""
Bridges from settings to module configuration (``ledger_config.bridges``).

Modules never see YAML or ``LedgerSettings``; they receive their own
config dataclass built here.
"""

from __future__ import annotations

from dataclasses import asdict

from ledger_config.schema import LedgerSettings
from ledger_modules.inventory.config import InventoryConfig
from ledger_modules.payroll.config import PayrollConfig
from ledger_modules.sales.config import SalesConfig


def build_sales_config(settings: LedgerSettings) -> SalesConfig:
    return SalesConfig.from_dict(asdict(settings.sales))


def build_payroll_config(settings: LedgerSettings) -> PayrollConfig:
    return PayrollConfig.from_dict(asdict(settings.payroll))


def build_inventory_config(settings: LedgerSettings) -> InventoryConfig:
    return InventoryConfig.from_dict(asdict(settings.inventory))


def engine_options(settings: LedgerSettings) -> dict:
    """Keyword arguments for ``init_engine_from_url``, minus the URL."""
    options = asdict(settings.database)
    options.pop("url")
    return options


def logging_options(settings: LedgerSettings) -> dict:
    """Keyword arguments for ``ledger_kernel.logging_config.configure_logging``."""
    return {"level": settings.logging.level.upper()}
