"""
Interaction contract for one status-action menu session.
Mirrors what the dashboard's status dropdown does: open the menu,
pick an action, optionally fill in a reason, then hand the new status
to the caller's update callback. Nothing here is persisted.
"""

import enum

from .workflows import WorkflowError


class MenuState(str, enum.Enum):
    IDLE = "idle"
    MENU_OPEN = "menu_open"
    REASON_PROMPT = "reason_prompt"


class StatusActionMenu:
    """
    State machine: IDLE -> MENU_OPEN -> (REASON_PROMPT) -> IDLE.

    on_status_update(new_status, reason) is called synchronously. The
    displayed status only changes after it returns; if it raises, the
    menu goes back to IDLE with the old status and the error propagates.
    """

    def __init__(
        self,
        workflow,
        current_status,
        role,
        on_status_update,
        include_save_action=False,
    ):
        self.workflow = workflow
        self.current_status = current_status
        self.role = role
        self.on_status_update = on_status_update
        self.include_save_action = include_save_action

        self.state = MenuState.IDLE
        self.actions = []
        self.pending_status = None
        self.reason_config = None
        self.is_busy = False

    def open_menu(self) -> list:
        """Opens the menu; an empty result means the menu stays hidden."""
        if self.is_busy:
            return []

        self._reset()
        self.actions = self.workflow.available_actions(
            self.current_status, self.role, self.include_save_action
        )
        if self.actions:
            self.state = MenuState.MENU_OPEN
        return list(self.actions)

    def select_action(self, action):
        if self.state != MenuState.MENU_OPEN or action not in self.actions:
            raise WorkflowError(
                f"Action '{getattr(action, 'label', action)}' is not"
                " available in the open menu."
            )

        if action.is_save:
            self._commit(self.current_status, None)
            return

        target = action.target_status
        if self.workflow.requires_reason(self.current_status, target):
            self.state = MenuState.REASON_PROMPT
            self.pending_status = target
            self.reason_config = self.workflow.reason_config(
                self.current_status, target
            )
            return

        self._commit(target, None)

    def can_confirm(self, reason_text) -> bool:
        if self.state != MenuState.REASON_PROMPT:
            return False
        if self.reason_config.required and not (reason_text or "").strip():
            return False
        return True

    def confirm(self, reason_text) -> bool:
        """Submits the reason; a blank required reason is a no-op."""
        if not self.can_confirm(reason_text):
            return False
        self._commit(self.pending_status, reason_text)
        return True

    def cancel(self):
        self._reset()

    def _commit(self, new_status, reason):
        self.is_busy = True
        try:
            self.on_status_update(new_status, reason)
        finally:
            self.is_busy = False
            self._reset()
        self.current_status = new_status

    def _reset(self):
        self.state = MenuState.IDLE
        self.actions = []
        self.pending_status = None
        self.reason_config = None
