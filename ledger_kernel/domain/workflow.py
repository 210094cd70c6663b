"""
Canonical workflow types (``ledger_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for the status state machines shared by every aggregate
with a lifecycle: sales orders (draft/posted), branch transfers
(pending/approved/completed/cancelled) and payroll runs
(draft/locked/approved/paid).

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* ``resolve()`` is the only way a service learns the next state; an absent
  transition is a ``InvalidTransitionError``, so duplicate terminal
  requests resolve to a conflict instead of re-applying an effect.
"""

from __future__ import annotations

from dataclasses import dataclass

from ledger_kernel.exceptions import InvalidTransitionError


@dataclass(frozen=True)
class Transition:
    """A valid state transition in a workflow.

    ``moves_stock=True`` marks the transition that touches stock balances.
    """
    from_state: str
    to_state: str
    action: str
    moves_stock: bool = False


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for a document lifecycle.

    ``terminal_states`` are states with no outgoing transitions.
    """
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    def __post_init__(self):
        if self.initial_state not in self.states:
            raise ValueError(
                f"initial_state '{self.initial_state}' not in states of {self.name}"
            )
        for t in self.transitions:
            if t.from_state not in self.states or t.to_state not in self.states:
                raise ValueError(
                    f"Transition {t.from_state}->{t.to_state} references unknown "
                    f"state in {self.name}"
                )
            if t.from_state in self.terminal_states:
                raise ValueError(
                    f"Terminal state '{t.from_state}' has an outgoing transition in {self.name}"
                )

    def find(self, current_state: str, action: str) -> Transition | None:
        for t in self.transitions:
            if t.from_state == current_state and t.action == action:
                return t
        return None

    def allows(self, current_state: str, action: str) -> bool:
        return self.find(current_state, action) is not None

    def resolve(
        self,
        current_state: str,
        action: str,
        entity_type: str,
        entity_id,
    ) -> Transition:
        """Return the transition for ``action`` or raise InvalidTransitionError."""
        transition = self.find(current_state, action)
        if transition is None:
            raise InvalidTransitionError(
                self.name, entity_type, entity_id, current_state, action,
            )
        return transition
