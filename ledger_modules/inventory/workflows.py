"""
Inventory Workflows.

State machine for branch-to-branch transfers.
"""

from ledger_kernel.domain.workflow import Transition, Workflow
from ledger_kernel.logging_config import get_logger

logger = get_logger("modules.inventory.workflows")


# -----------------------------------------------------------------------------
# Branch Transfer Workflow
# -----------------------------------------------------------------------------

TRANSFER_WORKFLOW = Workflow(
    name="branch_transfer",
    description="Branch-to-branch stock transfer",
    initial_state="pending",
    states=(
        "pending",
        "approved",
        "completed",
        "cancelled",
    ),
    transitions=(
        Transition("pending", "approved", action="approve"),
        Transition("pending", "completed", action="complete", moves_stock=True),  # approval is optional
        Transition("approved", "completed", action="complete", moves_stock=True),
        Transition("pending", "cancelled", action="cancel"),
        Transition("approved", "cancelled", action="cancel"),
    ),
    terminal_states=("completed", "cancelled"),
)

logger.info(
    "inventory_transfer_workflow_registered",
    extra={
        "workflow_name": TRANSFER_WORKFLOW.name,
        "state_count": len(TRANSFER_WORKFLOW.states),
        "transition_count": len(TRANSFER_WORKFLOW.transitions),
        "initial_state": TRANSFER_WORKFLOW.initial_state,
    },
)
