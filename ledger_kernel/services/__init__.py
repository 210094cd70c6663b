"""Kernel services - transaction boundary shared by every ledger service."""

from ledger_kernel.services.base import BaseService

__all__ = ["BaseService"]
