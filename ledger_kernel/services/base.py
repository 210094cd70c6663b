"""
BaseService -- abstract base for all ledger services.

Responsibility:
    Provides the common constructor (injected ``Session`` and ``Clock``) and
    the transaction boundary every public mutating operation runs in.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.  Every service in
    ``ledger_modules/*/service.py`` extends this class.

Invariants enforced:
    - One operation, one transaction: ``_atomic()`` commits on success and
      rolls back on any exception, so a failed call never leaves a persisted
      change and may be retried by the caller.
    - Building blocks shared between services (stock movements, balance
      locks) only ``flush()``; they are composed inside the caller's
      ``_atomic()`` block.
    - Aggregates are re-read under ``SELECT ... FOR UPDATE`` before their
      status is checked, so a concurrent duplicate request observes the
      committed state of the first one.

Failure modes:
    - ``LedgerError`` subclasses propagate unchanged after rollback.
    - ``SQLAlchemyError`` is rolled back and re-raised as ``PersistenceError``
      (retryable).
"""

from abc import ABC
from contextlib import contextmanager
from typing import Any, Generator, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ledger_kernel.db.base import Base, TrackedBase
from ledger_kernel.domain.actor import Actor
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.exceptions import LedgerError, NotFoundError, PersistenceError
from ledger_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.base")

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC):
    """
    Abstract base class for all ledger services.

    Contract:
        Accepts a SQLAlchemy ``Session`` from the caller.  There is no ambient
        global handle; two services sharing a session share its transaction.

    Non-goals:
        - Does NOT provide read-only list queries -- those belong in
          selectors.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self._clock = clock or SystemClock()

    @contextmanager
    def _atomic(self, operation: str, **log_fields: Any) -> Generator[None, None, None]:
        """Run the block as one transaction: commit on success, rollback on failure."""
        try:
            with LogContext.bind(operation=operation):
                yield
                self.session.commit()
        except LedgerError as exc:
            self.session.rollback()
            logger.warning(
                "transaction_rolled_back",
                extra={"operation": operation, "error_code": exc.code, **log_fields},
            )
            raise
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.warning(
                "transaction_rolled_back",
                extra={"operation": operation, "error_code": PersistenceError.code, **log_fields},
                exc_info=True,
            )
            raise PersistenceError(operation, str(exc)) from exc
        except Exception:
            self.session.rollback()
            raise

    def _stamp(self, actor: Actor) -> dict[str, Any]:
        """Audit columns for a new row, timed by the injected clock."""
        now = self._clock.now()
        return {"created_at": now, "updated_at": now, "created_by_id": actor.id}

    def _touch(self, obj: TrackedBase, actor: Actor) -> None:
        obj.updated_at = self._clock.now()
        obj.updated_by_id = actor.id

    def _get(self, model: type[ModelType], entity_id, entity_type: str) -> ModelType:
        """Load a row by primary key or raise NotFoundError."""
        obj = self.session.get(model, entity_id)
        if obj is None:
            raise NotFoundError(entity_type, entity_id)
        return obj

    def _lock(self, model: type[ModelType], entity_id, entity_type: str) -> ModelType:
        """Load a row under a row-level lock, refreshing any cached state."""
        obj = self.session.execute(
            select(model)
            .where(model.id == entity_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if obj is None:
            raise NotFoundError(entity_type, entity_id)
        return obj
