"""
Domain layer - state machine configuration for applications.
"""

from core.workflows import (
    ActionDescriptor,
    ButtonStyle,
    ReasonConfig,
    StatusWorkflow,
    ADMIN_ROLES,
    APPLICANT_ROLE,
    HOST_ROLE,
    UNKNOWN_ROLE,
)
from .models import ApplicationStatus as S


TRANSITIONS = {
    S.DRAFT: [S.PENDING, S.WITHDRAWN],
    S.PENDING: [S.ACCEPTED, S.REJECTED, S.WITHDRAWN],
    S.ACCEPTED: [S.ACTIVE, S.WITHDRAWN],
    S.ACTIVE: [S.COMPLETED],
    S.REJECTED: [],
    S.COMPLETED: [],
    S.WITHDRAWN: [],
}

APPLICANT_OR_ADMIN = [APPLICANT_ROLE, *ADMIN_ROLES]
HOST_OR_ADMIN = [HOST_ROLE, *ADMIN_ROLES]

ALLOWED_TRANSITIONS = {
    S.DRAFT: {S.PENDING: APPLICANT_OR_ADMIN, S.WITHDRAWN: APPLICANT_OR_ADMIN},
    S.PENDING: {
        S.ACCEPTED: HOST_OR_ADMIN,
        S.REJECTED: HOST_OR_ADMIN,
        S.WITHDRAWN: APPLICANT_OR_ADMIN,
    },
    S.ACCEPTED: {S.ACTIVE: HOST_OR_ADMIN, S.WITHDRAWN: APPLICANT_OR_ADMIN},
    S.ACTIVE: {S.COMPLETED: HOST_OR_ADMIN},
}

_withdraw = ActionDescriptor(
    label="Withdraw",
    target_status=S.WITHDRAWN,
    button_style=ButtonStyle.DANGER,
    description="Withdraw the application",
    applicant_only=True,
    needs_confirmation=True,
    confirm_message="Withdraw this application? This cannot be undone.",
)

ACTIONS = {
    S.DRAFT: [
        ActionDescriptor(
            label="Save",
            button_style=ButtonStyle.PRIMARY,
            description="Keep the draft",
            is_primary=True,
        ),
        ActionDescriptor(
            label="Submit application",
            target_status=S.PENDING,
            button_style=ButtonStyle.PRIMARY,
            description="Send the application to the host",
            applicant_only=True,
        ),
        ActionDescriptor(
            label="Discard",
            target_status=S.WITHDRAWN,
            description="Discard the draft",
            applicant_only=True,
            needs_confirmation=True,
            confirm_message="Discard this draft application?",
        ),
    ],
    S.PENDING: [
        ActionDescriptor(
            label="Accept",
            target_status=S.ACCEPTED,
            button_style=ButtonStyle.PRIMARY,
            description="Accept the applicant",
            host_only=True,
            is_primary=True,
        ),
        ActionDescriptor(
            label="Reject",
            target_status=S.REJECTED,
            button_style=ButtonStyle.DANGER,
            description="Decline the application",
            host_only=True,
        ),
        _withdraw,
    ],
    S.ACCEPTED: [
        ActionDescriptor(
            label="Start stay",
            target_status=S.ACTIVE,
            button_style=ButtonStyle.PRIMARY,
            description="The applicant has arrived",
            host_only=True,
            is_primary=True,
        ),
        _withdraw,
    ],
    S.ACTIVE: [
        ActionDescriptor(
            label="Mark completed",
            target_status=S.COMPLETED,
            button_style=ButtonStyle.PRIMARY,
            description="The stay has ended",
            host_only=True,
            is_primary=True,
        ),
    ],
    S.REJECTED: [],
    S.COMPLETED: [],
    S.WITHDRAWN: [],
}

REASONS = {
    (S.PENDING, S.REJECTED): ReasonConfig(
        required=True,
        title="Rejection reason",
        placeholder="Let the applicant know why...",
    ),
    (S.PENDING, S.WITHDRAWN): ReasonConfig(
        required=False,
        title="Withdrawal note",
        placeholder="Optionally tell the host why...",
    ),
    (S.ACCEPTED, S.WITHDRAWN): ReasonConfig(
        required=True,
        title="Withdrawal reason",
        placeholder="The host has already accepted you, please explain...",
    ),
}


APPLICATION_WORKFLOW = StatusWorkflow(
    name="application",
    statuses=S.values,
    transitions=TRANSITIONS,
    actions=ACTIONS,
    reasons=REASONS,
    permissions=ALLOWED_TRANSITIONS,
)


def get_contextual_role_name(application, user) -> str:
    """
    The applicant acts as USER, the opportunity's host as HOST,
    admins keep their role. Anyone else is UNKNOWN.
    """
    if not user or not getattr(user, "role", None):
        return UNKNOWN_ROLE

    if user.role in ADMIN_ROLES:
        return user.role

    if application.applicant_id == user.id:
        return APPLICANT_ROLE

    if application.opportunity.host_id == user.id:
        return HOST_ROLE

    return UNKNOWN_ROLE
