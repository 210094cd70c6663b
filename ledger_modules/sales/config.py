"""
Sales Configuration Schema.

Defaults for the order ledger.  Values are supplied from ``ledger_config``
at runtime.
"""

from dataclasses import dataclass
from typing import Self

from ledger_kernel.logging_config import get_logger

logger = get_logger("modules.sales.config")


@dataclass
class SalesConfig:
    """Configuration schema for the sales module."""

    # Used when a payment request names no method
    default_payment_method: str = "cash"

    def __post_init__(self):
        if not self.default_payment_method or not self.default_payment_method.strip():
            raise ValueError("default_payment_method must be a non-empty string")
        logger.debug(
            "sales_config_initialized",
            extra={"default_payment_method": self.default_payment_method},
        )

    @classmethod
    def with_defaults(cls) -> Self:
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        return cls(**data)
