"""
Sales Workflows.

State machine for sales orders.  Posting is the only transition and it is
irreversible.
"""

from ledger_kernel.domain.workflow import Transition, Workflow
from ledger_kernel.logging_config import get_logger

logger = get_logger("modules.sales.workflows")


ORDER_WORKFLOW = Workflow(
    name="sales_order",
    description="Sales order posting",
    initial_state="draft",
    states=(
        "draft",
        "posted",
    ),
    transitions=(
        Transition("draft", "posted", action="post", moves_stock=True),
    ),
    terminal_states=("posted",),
)

logger.info(
    "sales_order_workflow_registered",
    extra={
        "workflow_name": ORDER_WORKFLOW.name,
        "state_count": len(ORDER_WORKFLOW.states),
        "transition_count": len(ORDER_WORKFLOW.transitions),
        "initial_state": ORDER_WORKFLOW.initial_state,
    },
)
