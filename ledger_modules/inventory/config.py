"""
Inventory Configuration Schema.

Defaults for the stock ledger read side.  Values are supplied from
``ledger_config`` at runtime.
"""

from dataclasses import dataclass
from typing import Self

from ledger_kernel.logging_config import get_logger

logger = get_logger("modules.inventory.config")


@dataclass
class InventoryConfig:
    """
    Configuration schema for the inventory module.

        config = InventoryConfig.from_dict(settings["inventory"])
    """

    # Default page size for StockSelector.list_movements
    movement_list_limit: int = 100

    def __post_init__(self):
        if self.movement_list_limit <= 0:
            raise ValueError("movement_list_limit must be positive")
        logger.debug(
            "inventory_config_initialized",
            extra={"movement_list_limit": self.movement_list_limit},
        )

    @classmethod
    def with_defaults(cls) -> Self:
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        return cls(**data)
