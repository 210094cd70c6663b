"""
Payroll Workflows.

State machine for payroll runs.  ``generate`` is a self-transition on
draft: items may be regenerated until the run is locked or approved.
"""

from ledger_kernel.domain.workflow import Transition, Workflow
from ledger_kernel.logging_config import get_logger

logger = get_logger("modules.payroll.workflows")


PAYROLL_RUN_WORKFLOW = Workflow(
    name="payroll_run",
    description="Payroll run generation, approval and payment",
    initial_state="draft",
    states=(
        "draft",
        "locked",
        "approved",
        "paid",
    ),
    transitions=(
        Transition("draft", "draft", action="generate"),
        Transition("draft", "locked", action="lock"),
        Transition("draft", "approved", action="approve"),
        Transition("locked", "approved", action="approve"),
        Transition("approved", "paid", action="pay"),
    ),
    terminal_states=("paid",),
)

logger.info(
    "payroll_run_workflow_registered",
    extra={
        "workflow_name": PAYROLL_RUN_WORKFLOW.name,
        "state_count": len(PAYROLL_RUN_WORKFLOW.states),
        "transition_count": len(PAYROLL_RUN_WORKFLOW.transitions),
        "initial_state": PAYROLL_RUN_WORKFLOW.initial_state,
    },
)
