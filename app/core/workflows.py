"""
Domain layer - pure, Django-unaware, table-driven status workflow engine.
Shared by opportunities and applications: each app declares its own
transition table, action catalog, reason policy and permission table
and wraps them in a StatusWorkflow.
"""

import enum
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Iterable, Optional


HOST_ROLE = "HOST"
APPLICANT_ROLE = "USER"
ADMIN_ROLES = frozenset({"ADMIN", "SUPER_ADMIN"})
UNKNOWN_ROLE = "UNKNOWN"

DEFAULT_REASON_TITLE = "Please enter a reason"
DEFAULT_REASON_PLACEHOLDER = "Enter a reason..."
DEFAULT_CONFIRM_MESSAGE = "Are you sure you want to change the status?"


class WorkflowError(Exception):
    """Base class for status workflow errors."""

    pass


class InvalidTransitionError(WorkflowError):
    """Raised when a transition is not defined in the transition table."""

    pass


class TransitionPermissionError(WorkflowError):
    """Raised when a role is not allowed to perform a transition."""

    pass


class ReasonRequiredError(WorkflowError):
    """Raised when a transition needs a reason and none was given."""

    pass


class WorkflowConfigurationError(WorkflowError):
    """Raised at construction when the workflow tables disagree."""

    pass


class ButtonStyle(str, enum.Enum):
    DEFAULT = "default"
    PRIMARY = "primary"
    DANGER = "danger"


@dataclass(frozen=True)
class ActionDescriptor:
    """A user-facing action offered for a status."""

    label: str
    target_status: Optional[str] = None  # None = save without transition
    host_only: bool = False
    admin_only: bool = False
    applicant_only: bool = False
    button_style: ButtonStyle = ButtonStyle.DEFAULT
    description: str = ""
    is_primary: bool = False
    needs_confirmation: bool = False
    confirm_message: str = ""

    @property
    def is_save(self) -> bool:
        return self.target_status is None


@dataclass(frozen=True)
class ReasonConfig:
    required: bool = False
    title: str = DEFAULT_REASON_TITLE
    placeholder: str = DEFAULT_REASON_PLACEHOLDER


DEFAULT_REASON_CONFIG = ReasonConfig()


@dataclass(frozen=True)
class StatusHistoryEntry:
    """One committed transition of a status-bearing entity."""

    status: str
    changed_at: datetime
    reason: Optional[str] = None
    changed_by: Optional[int] = None


# --- 1. History lookups ---


def latest_status_reason(
    history: Optional[Iterable[StatusHistoryEntry]], status
) -> Optional[str]:
    """
    Returns the reason of the most recent history entry for `status`.
    Entries are sorted by changed_at (newest first) before the lookup,
    storage order is not trusted.
    """
    if not history or not status:
        return None

    ordered = sorted(history, key=lambda entry: entry.changed_at, reverse=True)
    for entry in ordered:
        if entry.status == status:
            return entry.reason
    return None


def current_status_reason(
    status, history: Optional[Iterable[StatusHistoryEntry]]
) -> Optional[str]:
    """Reason attached to the entity's current status, if any."""
    return latest_status_reason(history, status)


# --- 2. The workflow ---


class StatusWorkflow:
    """
    Immutable bundle of the tables that drive one entity's lifecycle.

    transitions: {status: [next statuses]}, must cover every status.
    actions: {status: [ActionDescriptor]}, catalog order is display order.
    reasons: {(from, to): ReasonConfig}
    permissions: {from: {to: [role names]}}, one entry per transition.
    """

    def __init__(
        self,
        *,
        name: str,
        statuses: Iterable,
        transitions: dict,
        actions: dict,
        reasons: dict,
        permissions: dict,
    ):
        self.name = name
        self.statuses = tuple(statuses)
        self.transitions = MappingProxyType(
            {
                status: tuple(next_statuses)
                for status, next_statuses in transitions.items()
            }
        )
        self.actions = MappingProxyType(
            {status: tuple(items) for status, items in actions.items()}
        )
        self.reasons = MappingProxyType(dict(reasons))
        self.permissions = MappingProxyType(
            {
                from_status: MappingProxyType(
                    {
                        to_status: frozenset(roles)
                        for to_status, roles in targets.items()
                    }
                )
                for from_status, targets in permissions.items()
            }
        )
        self.check_consistency()

    def __repr__(self):
        return f"<StatusWorkflow {self.name}>"

    def check_consistency(self):
        """
        Raises WorkflowConfigurationError if the tables disagree.
        Called once, when the workflow is built at import time.
        """
        problems = []
        known = set(self.statuses)

        for status in self.statuses:
            if status not in self.transitions:
                problems.append(f"status '{status}' has no transition entry")
            if status not in self.actions:
                problems.append(f"status '{status}' has no action entry")

        for status, next_statuses in self.transitions.items():
            if status not in known:
                problems.append(f"unknown status '{status}' in transitions")
            for target in next_statuses:
                if target not in known:
                    problems.append(
                        f"unknown target '{target}' from '{status}'"
                    )
                roles = self.permissions.get(status, {}).get(target)
                if not roles:
                    problems.append(
                        f"transition '{status}' -> '{target}' has no roles"
                    )

        for status, items in self.actions.items():
            for action in items:
                if action.is_save:
                    continue
                if action.target_status not in self.transitions.get(
                    status, ()
                ):
                    problems.append(
                        f"action '{action.label}' targets "
                        f"'{action.target_status}' which is not reachable "
                        f"from '{status}'"
                    )

        for from_status, targets in self.permissions.items():
            for to_status in targets:
                if not self.is_transition_allowed(from_status, to_status):
                    problems.append(
                        f"roles declared for undefined transition "
                        f"'{from_status}' -> '{to_status}'"
                    )

        for from_status, to_status in self.reasons:
            if not self.is_transition_allowed(from_status, to_status):
                problems.append(
                    f"reason configured for undefined transition "
                    f"'{from_status}' -> '{to_status}'"
                )

        if problems:
            raise WorkflowConfigurationError(
                f"{self.name} workflow is inconsistent: "
                + "; ".join(problems)
            )

    # --- Transition table ---

    def next_statuses(self, current) -> tuple:
        """Statuses directly reachable from `current`; () if unknown."""
        try:
            return self.transitions.get(current, ())
        except TypeError:  # unhashable input
            return ()

    def is_transition_allowed(self, current, target) -> bool:
        return target in self.next_statuses(current)

    def is_terminal(self, current) -> bool:
        return not self.next_statuses(current)

    # --- Action catalog ---

    def declared_actions(self, current) -> tuple:
        try:
            return self.actions.get(current, ())
        except TypeError:
            return ()

    def available_actions(
        self, current, role, include_save_action: bool = False
    ) -> list:
        """
        Actions the given role may see for `current`, in catalog order.
        Returns an empty list (never None) when nothing qualifies.
        """
        next_statuses = self.next_statuses(current)
        available = []

        for action in self.declared_actions(current):
            if action.is_save and not include_save_action:
                continue
            if action.host_only and role != HOST_ROLE:
                continue
            if action.admin_only and role not in ADMIN_ROLES:
                continue
            if action.applicant_only and role != APPLICANT_ROLE:
                continue
            if not action.is_save and action.target_status not in (
                next_statuses
            ):
                continue
            available.append(action)

        return available

    def find_action(self, current, target_status):
        for action in self.declared_actions(current):
            if action.target_status == target_status:
                return action
        return None

    def can_save(self, current) -> bool:
        return any(action.is_save for action in self.declared_actions(current))

    def primary_action(self, current):
        for action in self.declared_actions(current):
            if action.is_primary:
                return action
        return None

    def secondary_actions(self, current) -> list:
        return [
            action
            for action in self.declared_actions(current)
            if not action.is_primary
        ]

    def needs_confirmation(self, current, target_status) -> bool:
        action = self.find_action(current, target_status)
        return bool(action and action.needs_confirmation)

    def confirmation_message(self, current, target_status) -> str:
        action = self.find_action(current, target_status)
        if action and action.confirm_message:
            return action.confirm_message
        return DEFAULT_CONFIRM_MESSAGE

    # --- Reason policy ---

    def reason_config(self, from_status, to_status) -> ReasonConfig:
        if to_status is None:
            return DEFAULT_REASON_CONFIG
        try:
            return self.reasons.get(
                (from_status, to_status), DEFAULT_REASON_CONFIG
            )
        except TypeError:
            return DEFAULT_REASON_CONFIG

    def requires_reason(self, from_status, to_status) -> bool:
        return self.reason_config(from_status, to_status).required

    # --- Server-side enforcement ---

    def allowed_roles(self, from_status, to_status) -> frozenset:
        return self.permissions.get(from_status, {}).get(
            to_status, frozenset()
        )

    def validate_transition(self, from_status, to_status, role_name):
        """
        Validates that `role_name` may move from one status to another.
        Raises InvalidTransitionError or TransitionPermissionError.
        """
        if not self.is_transition_allowed(from_status, to_status):
            raise InvalidTransitionError(
                f"Transition from '{from_status}' to '{to_status}'"
                " is not defined."
            )

        if role_name not in self.allowed_roles(from_status, to_status):
            raise TransitionPermissionError(
                f"Role '{role_name}' is not authorized to move from "
                f"'{from_status}' to '{to_status}'."
            )

        return True

    def validate_reason(self, from_status, to_status, reason) -> str:
        """Returns the stripped reason, raises if a required one is blank."""
        cleaned = (reason or "").strip()
        if self.requires_reason(from_status, to_status) and not cleaned:
            raise ReasonRequiredError(
                f"A reason is required to move from '{from_status}'"
                f" to '{to_status}'."
            )
        return cleaned
