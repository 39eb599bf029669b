"""
Domain layer - state machine configuration for opportunities.
Transition table, action catalog, reason policy and role table
as consumed by core.workflows.StatusWorkflow.
"""

from core.workflows import (
    ActionDescriptor,
    ButtonStyle,
    ReasonConfig,
    StatusWorkflow,
    ADMIN_ROLES,
    HOST_ROLE,
    UNKNOWN_ROLE,
)
from .models import OpportunityStatus as S


# --- 1. Transition table ---

TRANSITIONS = {
    S.DRAFT: [S.PENDING],
    S.PENDING: [S.DRAFT, S.ACTIVE, S.REJECTED],
    S.ACTIVE: [S.PAUSED, S.ADMIN_PAUSED, S.FILLED, S.EXPIRED],
    S.PAUSED: [S.ACTIVE],
    S.EXPIRED: [S.DRAFT, S.ACTIVE, S.PAUSED],
    S.FILLED: [S.ACTIVE, S.PAUSED],
    S.REJECTED: [S.PENDING],
    S.ADMIN_PAUSED: [S.PENDING, S.REJECTED],
    S.DELETED: [],  # Terminal state
}


# --- 2. Who may perform each transition (server side) ---

HOST_OR_ADMIN = [HOST_ROLE, *ADMIN_ROLES]
ADMIN_ONLY = sorted(ADMIN_ROLES)

ALLOWED_TRANSITIONS = {
    S.DRAFT: {S.PENDING: HOST_OR_ADMIN},  # submit for review
    S.PENDING: {
        S.DRAFT: HOST_OR_ADMIN,  # withdraw submission
        S.ACTIVE: ADMIN_ONLY,  # approve
        S.REJECTED: ADMIN_ONLY,
    },
    S.ACTIVE: {
        S.PAUSED: [HOST_ROLE],
        S.ADMIN_PAUSED: ADMIN_ONLY,
        S.FILLED: ADMIN_ONLY,  # system: capacity reached
        S.EXPIRED: ADMIN_ONLY,  # system: end date passed
    },
    S.PAUSED: {S.ACTIVE: HOST_OR_ADMIN},
    S.EXPIRED: {
        S.DRAFT: HOST_OR_ADMIN,
        S.ACTIVE: HOST_OR_ADMIN,
        S.PAUSED: HOST_OR_ADMIN,
    },
    S.FILLED: {S.ACTIVE: HOST_OR_ADMIN, S.PAUSED: HOST_OR_ADMIN},
    S.REJECTED: {S.PENDING: HOST_OR_ADMIN},
    S.ADMIN_PAUSED: {
        S.PENDING: HOST_OR_ADMIN,
        S.REJECTED: ADMIN_ONLY,
    },
}


# --- 3. Action catalog (order = display order) ---

_save = ActionDescriptor(
    label="Save",
    button_style=ButtonStyle.DEFAULT,
    description="Keep the changes without changing the status",
)
_save_primary = ActionDescriptor(
    label="Save",
    button_style=ButtonStyle.PRIMARY,
    description="Keep the changes without changing the status",
    is_primary=True,
)
_resubmit = ActionDescriptor(
    label="Resubmit for review",
    target_status=S.PENDING,
    button_style=ButtonStyle.PRIMARY,
    description="Send the opportunity for review again",
    is_primary=True,
)
_reopen = ActionDescriptor(
    label="Reopen",
    target_status=S.ACTIVE,
    button_style=ButtonStyle.PRIMARY,
    description="Open the opportunity for applications again",
    is_primary=True,
)

ACTIONS = {
    S.DRAFT: [
        _save_primary,
        ActionDescriptor(
            label="Submit for review",
            target_status=S.PENDING,
            description="Send the opportunity for platform review",
        ),
    ],
    S.PENDING: [
        _save_primary,
        ActionDescriptor(
            label="Withdraw submission",
            target_status=S.DRAFT,
            description="Cancel the review request and keep editing",
            needs_confirmation=True,
            confirm_message=(
                "Withdraw from review? The current review request"
                " will be cancelled."
            ),
        ),
        ActionDescriptor(
            label="Approve",
            target_status=S.ACTIVE,
            button_style=ButtonStyle.PRIMARY,
            description="Publish the opportunity",
            admin_only=True,
        ),
        ActionDescriptor(
            label="Reject",
            target_status=S.REJECTED,
            button_style=ButtonStyle.DANGER,
            description="Reject the publication request",
            admin_only=True,
        ),
    ],
    S.REJECTED: [_save, _resubmit],
    S.ACTIVE: [
        ActionDescriptor(
            label="Update listing",
            button_style=ButtonStyle.PRIMARY,
            description="Save and update the published content",
            is_primary=True,
        ),
        ActionDescriptor(
            label="Pause listing",
            target_status=S.PAUSED,
            button_style=ButtonStyle.DANGER,
            description="Temporarily hide the opportunity from applicants",
            needs_confirmation=True,
            confirm_message=(
                "Pause this opportunity? New applications will not be"
                " accepted while it is paused."
            ),
            host_only=True,
        ),
        ActionDescriptor(
            label="Pause as admin",
            target_status=S.ADMIN_PAUSED,
            button_style=ButtonStyle.DANGER,
            description="Suspend the opportunity on behalf of the platform",
            admin_only=True,
        ),
    ],
    S.PAUSED: [_save, _reopen],
    S.EXPIRED: [
        _save,
        ActionDescriptor(
            label="Reopen",
            target_status=S.ACTIVE,
            button_style=ButtonStyle.PRIMARY,
            description="Update the dates and accept applications again",
            is_primary=True,
        ),
        ActionDescriptor(
            label="Take down",
            target_status=S.PAUSED,
            button_style=ButtonStyle.DANGER,
            description="Stop showing the opportunity",
            needs_confirmation=True,
            confirm_message=(
                "Take this opportunity down? It will no longer be shown."
            ),
        ),
    ],
    S.FILLED: [
        ActionDescriptor(
            label="Add places",
            target_status=S.ACTIVE,
            button_style=ButtonStyle.PRIMARY,
            description="Raise the capacity and accept applications again",
            is_primary=True,
        ),
        ActionDescriptor(
            label="Pause listing",
            target_status=S.PAUSED,
            description="Hide the opportunity from applicants",
        ),
    ],
    S.ADMIN_PAUSED: [
        _resubmit,
        ActionDescriptor(
            label="Reject",
            target_status=S.REJECTED,
            button_style=ButtonStyle.DANGER,
            description="Reject the publication request",
            admin_only=True,
        ),
    ],
    S.DELETED: [],
}


# --- 4. Reason policy ---

_rejection_reason = ReasonConfig(
    required=True,
    title="Rejection reason",
    placeholder="Explain what the host needs to improve...",
)

REASONS = {
    (S.PENDING, S.REJECTED): _rejection_reason,
    (S.ACTIVE, S.PAUSED): ReasonConfig(
        required=True,
        title="Pause reason",
        placeholder="Explain why the opportunity is paused...",
    ),
    (S.ACTIVE, S.ADMIN_PAUSED): ReasonConfig(
        required=True,
        title="Admin pause reason",
        placeholder="Explain to the host why the opportunity is paused...",
    ),
    (S.PAUSED, S.ACTIVE): ReasonConfig(
        required=True,
        title="Reopening note",
        placeholder="Describe what changed before reopening...",
    ),
    (S.ADMIN_PAUSED, S.PENDING): ReasonConfig(
        required=True,
        title="Improvement note",
        placeholder="Describe what has been improved...",
    ),
    (S.ADMIN_PAUSED, S.REJECTED): _rejection_reason,
}


OPPORTUNITY_WORKFLOW = StatusWorkflow(
    name="opportunity",
    statuses=S.values,
    transitions=TRANSITIONS,
    actions=ACTIONS,
    reasons=REASONS,
    permissions=ALLOWED_TRANSITIONS,
)


# --- 5. Presentation helpers ---

STATUS_DESCRIPTIONS = {
    S.DRAFT: "Everything can be edited; submit for review when ready.",
    S.PENDING: "Waiting for the platform to approve the opportunity.",
    S.ACTIVE: "Published and open for applications.",
    S.PAUSED: "Not accepting applications, still visible.",
    S.EXPIRED: "Automatically closed after the end date.",
    S.FILLED: "Automatically paused after reaching capacity.",
    S.REJECTED: "Did not pass review; check the reason and resubmit.",
    S.ADMIN_PAUSED: "Paused by an admin; edit and resubmit for review.",
    S.DELETED: "This opportunity has been deleted.",
}

STATUS_UPDATE_MESSAGES = {
    S.DRAFT: "Returned to draft, you can keep editing.",
    S.PENDING: "Submitted for review, waiting for an admin.",
    S.ACTIVE: "The opportunity is live and accepting applications.",
    S.PAUSED: "The opportunity is paused.",
    S.EXPIRED: "The opportunity is marked as expired.",
    S.FILLED: "The opportunity is marked as filled.",
    S.REJECTED: "The opportunity was rejected, the host can resubmit.",
    S.ADMIN_PAUSED: "The opportunity was paused by an admin.",
}

# Statuses whose reason is always surfaced to the host.
NEGATIVE_STATUSES = frozenset(
    {S.REJECTED, S.PAUSED, S.EXPIRED, S.FILLED, S.ADMIN_PAUSED}
)


def status_update_message(new_status) -> str:
    return STATUS_UPDATE_MESSAGES.get(new_status, "Status updated.")


# --- 6. Editing policy ---

FULL_EDIT_STATUSES = frozenset({S.DRAFT, S.REJECTED})
LIMITED_EDIT_STATUSES = frozenset(
    {S.ACTIVE, S.PAUSED, S.EXPIRED, S.FILLED, S.ADMIN_PAUSED}
)

EDITABLE_FIELDS = frozenset(
    {
        "title",
        "short_description",
        "description",
        "city",
        "capacity",
        "start_date",
        "end_date",
    }
)
LIMITED_EDITABLE_FIELDS = frozenset(
    {"short_description", "description", "capacity", "end_date"}
)


def can_edit(status):
    """True, 'limited' or False, depending on the status."""
    if status in FULL_EDIT_STATUSES:
        return True
    if status in LIMITED_EDIT_STATUSES:
        return "limited"
    return False


def get_editable_fields(status) -> frozenset:
    editable = can_edit(status)
    if editable == "limited":
        return LIMITED_EDITABLE_FIELDS
    if editable:
        return EDITABLE_FIELDS
    return frozenset()


# --- 7. Contextual permissions ---


def get_contextual_role_name(opportunity, user) -> str:
    """
    Gets the user's workflow role for this specific opportunity.
    Admins keep their role, the owning host acts as HOST.
    """
    if not user or not getattr(user, "role", None):
        return UNKNOWN_ROLE

    if user.role in ADMIN_ROLES:
        return user.role

    if opportunity.host_id == user.id:
        return HOST_ROLE

    return UNKNOWN_ROLE


def get_user_permissions(opportunity, role_name, available_actions) -> dict:
    """Fine-grained flags for the detail view."""
    is_manager = role_name == HOST_ROLE or role_name in ADMIN_ROLES
    return {
        "can_edit": is_manager
        and bool(get_editable_fields(opportunity.status)),
        "can_delete": is_manager and opportunity.status != S.DELETED,
        "can_transition": any(
            not action.is_save for action in available_actions
        ),
    }
