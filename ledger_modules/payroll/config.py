"""
Payroll Configuration Schema.

Defines the structure and defaults for payroll settings.  Actual values are
loaded from ``ledger_config`` at runtime.
"""

from dataclasses import dataclass
from typing import Self

from ledger_kernel.logging_config import get_logger

logger = get_logger("modules.payroll.config")


@dataclass
class PayrollConfig:
    """
    Configuration schema for the payroll module.

        config = PayrollConfig(lock_on_generate=True)
    """

    # ISO 4217 code for profiles created without one
    default_currency: str = "BDT"

    # Move a run draft -> locked as part of generate
    lock_on_generate: bool = False

    # Used by pay() when no method is given
    default_payment_method: str = "cash"

    def __post_init__(self):
        if len(self.default_currency) != 3 or not self.default_currency.isalpha():
            raise ValueError(
                f"default_currency must be a 3-letter code, got '{self.default_currency}'"
            )
        if not self.default_payment_method or not self.default_payment_method.strip():
            raise ValueError("default_payment_method must be a non-empty string")
        logger.debug(
            "payroll_config_initialized",
            extra={
                "default_currency": self.default_currency,
                "lock_on_generate": self.lock_on_generate,
                "default_payment_method": self.default_payment_method,
            },
        )

    @classmethod
    def with_defaults(cls) -> Self:
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        return cls(**data)
