"""
Typed Exception Hierarchy for the Ledger Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Every operation either returns the mutated aggregate or raises one of the
exceptions below.  Callers (the presentation layer) branch on the exception
TYPE and read structured attributes, never the message text:

    try:
        orders.post_order(order_id, actor)
    except InsufficientStockError as e:
        show_shortage(e.product_id, e.available, e.requested)
    except ConflictError as e:
        refresh_view(e.entity_id)

Every class carries:
  1. a ``code`` class attribute (machine-readable, API-safe)
  2. a ``retryable`` class attribute (True only when no effect was committed
     and the failure was infrastructural)
  3. its context as instance attributes

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LedgerError (base)
    |
    +-- ValidationError              malformed input, raised before any write
    +-- NotFoundError                referenced aggregate/row absent
    +-- ConflictError                invalid state transition
    |   +-- InvalidTransitionError   no workflow transition for (state, action)
    |   +-- ActiveProfileConflictError
    +-- InsufficientStockError       quantity check failed
    +-- UnauthorizedError            actor branch does not match
    +-- PersistenceError             transaction / infrastructure failure
    +-- ImmutabilityViolationError   append-only row modified

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Code                       | When Raised                               | Retry
---------------------------|-------------------------------------------|------
VALIDATION_ERROR           | Bad quantity/price/percent, empty items   | no
NOT_FOUND                  | Order/transfer/run/branch/product missing | no
CONFLICT                   | Order not draft, delete with payments     | no
INVALID_TRANSITION         | complete() on completed transfer, etc.    | no
ACTIVE_PROFILE_CONFLICT    | Second active salary profile              | no
INSUFFICIENT_STOCK         | Balance would go negative                 | no
UNAUTHORIZED               | Wrong branch completing a transfer        | no
PERSISTENCE_ERROR          | Database failure, lock timeout, deadlock  | yes
IMMUTABILITY_VIOLATION     | Update/delete of movement, payment, etc.  | no

===============================================================================
"""

from decimal import Decimal


class LedgerError(Exception):
    """
    Base exception for all ledger errors.

    All subclasses must define a ``code`` class attribute.
    """

    code: str = "LEDGER_ERROR"
    retryable: bool = False


class ValidationError(LedgerError):
    """Input is malformed or out of range.  Detected before touching the store."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


class NotFoundError(LedgerError):
    """A referenced aggregate or row does not exist."""

    code: str = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id):
        self.entity_type = entity_type
        self.entity_id = str(entity_id)
        super().__init__(f"{entity_type} not found: {entity_id}")


class ConflictError(LedgerError):
    """The aggregate is not in a state that permits the requested action."""

    code: str = "CONFLICT"

    def __init__(
        self,
        entity_type: str,
        entity_id,
        current_state: str,
        action: str,
        reason: str | None = None,
    ):
        self.entity_type = entity_type
        self.entity_id = str(entity_id)
        self.current_state = current_state
        self.action = action
        self.reason = reason
        message = (
            f"Cannot {action} {entity_type} {entity_id} "
            f"in state '{current_state}'"
        )
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class InvalidTransitionError(ConflictError):
    """
    No transition exists from the current state via the requested action.

    Duplicate terminal requests (completing an already completed transfer,
    paying a paid run) surface as this error.
    """

    code: str = "INVALID_TRANSITION"

    def __init__(self, workflow: str, entity_type: str, entity_id, current_state: str, action: str):
        self.workflow = workflow
        super().__init__(
            entity_type,
            entity_id,
            current_state,
            action,
            reason=f"no '{action}' transition in workflow '{workflow}'",
        )


class ActiveProfileConflictError(ConflictError):
    """The employee already has an active salary profile."""

    code: str = "ACTIVE_PROFILE_CONFLICT"

    def __init__(self, employee_id, profile_id):
        self.employee_id = str(employee_id)
        self.profile_id = str(profile_id)
        super().__init__(
            "salary_profile",
            profile_id,
            "active",
            "activate",
            reason=f"employee {employee_id} already has active profile {profile_id}",
        )


class InsufficientStockError(LedgerError):
    """A stock decrement would leave the balance negative."""

    code: str = "INSUFFICIENT_STOCK"

    def __init__(self, product_id, branch_id, available: Decimal, requested: Decimal):
        self.product_id = str(product_id)
        self.branch_id = str(branch_id)
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for product {product_id} at branch {branch_id}: "
            f"available={available}, requested={requested}"
        )


class UnauthorizedError(LedgerError):
    """The actor's branch does not match the branch the operation requires."""

    code: str = "UNAUTHORIZED"

    def __init__(self, actor_id, actor_branch_id, required_branch_id):
        self.actor_id = str(actor_id)
        self.actor_branch_id = str(actor_branch_id) if actor_branch_id else None
        self.required_branch_id = str(required_branch_id)
        super().__init__(
            f"Actor {actor_id} (branch {actor_branch_id}) may not act for "
            f"branch {required_branch_id}"
        )


class PersistenceError(LedgerError):
    """
    The transaction failed for an infrastructure reason and was rolled back.

    Nothing was committed, so the caller may retry.
    """

    code: str = "PERSISTENCE_ERROR"
    retryable: bool = True

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation} failed: {reason}")


class ImmutabilityViolationError(LedgerError):
    """An append-only row was updated or deleted."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id, reason: str):
        self.entity_type = entity_type
        self.entity_id = str(entity_id)
        self.reason = reason
        super().__init__(f"Cannot modify {entity_type} {entity_id}: {reason}")
