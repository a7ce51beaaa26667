"""
Receiving Workflows.

State machine for the ASN header lifecycle:

    not_received --> receiving --> closed
                         |   ^        |
                         v   |        |
                        issue <-------+ (reopen returns to receiving)

There is no direct not_received -> closed/issue edge.  A first commit that
is already complete walks not_received -> receiving -> closed in one
transaction.
"""

from inventory_engines.asn_types import ASNStatus
from inventory_kernel.domain.workflow import Guard, Transition, Workflow
from inventory_kernel.exceptions import InvalidStatusTransitionError
from inventory_kernel.logging_config import get_logger

logger = get_logger("modules.receiving.workflows")


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

ALL_NORMAL = Guard(
    name="all_normal",
    description="Every expected unit arrived in the normal bucket",
)

HAS_DISCREPANCY = Guard(
    name="has_discrepancy",
    description="Complete, but some units are damaged, missing, quarantined or over",
)

ADMIN_REOPEN = Guard(
    name="admin_reopen",
    description="An administrator reopened the ASN for further receiving",
)


# -----------------------------------------------------------------------------
# ASN Status Workflow
# -----------------------------------------------------------------------------

ASN_STATUS_WORKFLOW = Workflow(
    name="asn_status",
    description="Advance Ship Notice receiving lifecycle",
    initial_state=ASNStatus.NOT_RECEIVED.value,
    states=tuple(s.value for s in ASNStatus),
    transitions=(
        Transition(
            ASNStatus.NOT_RECEIVED.value, ASNStatus.RECEIVING.value,
            action="start_receiving", posts_entry=True,
        ),
        Transition(
            ASNStatus.RECEIVING.value, ASNStatus.CLOSED.value,
            action="close", guard=ALL_NORMAL, posts_entry=True,
        ),
        Transition(
            ASNStatus.RECEIVING.value, ASNStatus.ISSUE.value,
            action="flag_issue", guard=HAS_DISCREPANCY, posts_entry=True,
        ),
        Transition(
            ASNStatus.CLOSED.value, ASNStatus.RECEIVING.value,
            action="reopen", guard=ADMIN_REOPEN,
        ),
        Transition(
            ASNStatus.ISSUE.value, ASNStatus.RECEIVING.value,
            action="reopen", guard=ADMIN_REOPEN,
        ),
    ),
)

VALID_TRANSITIONS: dict[ASNStatus, frozenset[ASNStatus]] = {
    status: frozenset(
        ASNStatus(target)
        for target in ASN_STATUS_WORKFLOW.allowed_targets(status.value)
    )
    for status in ASNStatus
}

logger.info(
    "asn_status_workflow_registered",
    extra={
        "workflow_name": ASN_STATUS_WORKFLOW.name,
        "state_count": len(ASN_STATUS_WORKFLOW.states),
        "transition_count": len(ASN_STATUS_WORKFLOW.transitions),
        "initial_state": ASN_STATUS_WORKFLOW.initial_state,
    },
)


def validate_transition(asn_id, from_status: ASNStatus, to_status: ASNStatus) -> Transition:
    """
    Return the workflow transition from ``from_status`` to ``to_status``.

    Raises:
        InvalidStatusTransitionError: If the workflow has no such edge.
    """
    if to_status not in VALID_TRANSITIONS[from_status]:
        raise InvalidStatusTransitionError(
            str(asn_id), from_status.value, to_status.value,
        )
    return ASN_STATUS_WORKFLOW.find_transition(from_status.value, to_status.value)
