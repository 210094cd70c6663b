"""Read-only query selectors."""

from ledger_kernel.selectors.base import BaseSelector
from ledger_kernel.selectors.reference_selector import ReferenceSelector

__all__ = ["BaseSelector", "ReferenceSelector"]
