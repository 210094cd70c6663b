"""
Inventory Module (``ledger_modules.inventory``).

Responsibility
--------------
The stock ledger (per product/branch balances, the only stock-mutating
path) and the branch transfer workflow built on it.

Architecture
------------
Layer: **Modules**.  Imports from ``ledger_kernel`` but never the reverse.
``StockLedgerService.apply_movement`` is also used by the sales module to
deduct stock when an order is posted.

Invariants
----------
- Stock balances never go negative.
- Every quantity change has a matching immutable ``InventoryMovement``.
- A completed transfer writes exactly one ``transfer_out`` and one
  ``transfer_in`` movement per item.
"""

from ledger_modules.inventory.config import InventoryConfig
from ledger_modules.inventory.models import (
    BranchTransfer,
    BranchTransferItem,
    InventoryMovement,
    MovementRequest,
    MovementType,
    StockBalance,
    TransferItemRequest,
    TransferRequest,
    TransferStatus,
)
from ledger_modules.inventory.selectors import StockSelector, TransferSelector
from ledger_modules.inventory.service import StockLedgerService, TransferService
from ledger_modules.inventory.workflows import TRANSFER_WORKFLOW

__all__ = [
    "InventoryConfig",
    "BranchTransfer",
    "BranchTransferItem",
    "InventoryMovement",
    "MovementRequest",
    "MovementType",
    "StockBalance",
    "TransferItemRequest",
    "TransferRequest",
    "TransferStatus",
    "StockSelector",
    "TransferSelector",
    "StockLedgerService",
    "TransferService",
    "TRANSFER_WORKFLOW",
]
