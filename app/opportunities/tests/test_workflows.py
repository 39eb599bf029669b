"""
Tests for the status workflow engine, the opportunity tables and the
status action menu. No database access needed.
"""

from datetime import datetime, timedelta, timezone as dt_timezone

from django.test import SimpleTestCase

from core.menu import MenuState, StatusActionMenu
from core.workflows import (
    ActionDescriptor,
    ButtonStyle,
    InvalidTransitionError,
    ReasonConfig,
    ReasonRequiredError,
    StatusHistoryEntry,
    StatusWorkflow,
    TransitionPermissionError,
    WorkflowConfigurationError,
    WorkflowError,
    DEFAULT_CONFIRM_MESSAGE,
    DEFAULT_REASON_CONFIG,
    latest_status_reason,
)
from opportunities.models import OpportunityStatus as S
from opportunities.workflows import (
    OPPORTUNITY_WORKFLOW as WF,
    can_edit,
    get_editable_fields,
    status_update_message,
)

ROLES = ["USER", "HOST", "ORGANIZATION", "ADMIN", "SUPER_ADMIN", "UNKNOWN"]


def build_listing_workflow():
    """Small PUBLISHED/PAUSED/ARCHIVED workflow used by menu scenarios."""
    return StatusWorkflow(
        name="listing",
        statuses=["PUBLISHED", "PAUSED", "ARCHIVED"],
        transitions={
            "PUBLISHED": ["PAUSED", "ARCHIVED"],
            "PAUSED": ["PUBLISHED"],
            "ARCHIVED": [],
        },
        actions={
            "PUBLISHED": [
                ActionDescriptor(label="Save"),
                ActionDescriptor(
                    label="Pause", target_status="PAUSED", host_only=True
                ),
                ActionDescriptor(label="Archive", target_status="ARCHIVED"),
                ActionDescriptor(
                    label="Force archive",
                    target_status="ARCHIVED",
                    admin_only=True,
                ),
            ],
            "PAUSED": [
                ActionDescriptor(label="Publish", target_status="PUBLISHED")
            ],
            "ARCHIVED": [],
        },
        reasons={
            ("PUBLISHED", "PAUSED"): ReasonConfig(
                required=True, title="Pause reason"
            ),
        },
        permissions={
            "PUBLISHED": {"PAUSED": ["HOST"], "ARCHIVED": ["HOST", "ADMIN"]},
            "PAUSED": {"PUBLISHED": ["HOST"]},
        },
    )


class TransitionTableTests(SimpleTestCase):
    """Transition table of opportunities."""

    def test_every_status_has_an_entry_within_the_enum(self):
        for status in S.values:
            next_statuses = WF.next_statuses(status)
            self.assertIsInstance(next_statuses, tuple)
            self.assertTrue(set(next_statuses) <= set(S.values))

    def test_known_edges(self):
        self.assertEqual(WF.next_statuses(S.DRAFT), (S.PENDING,))
        self.assertEqual(
            WF.next_statuses(S.PENDING), (S.DRAFT, S.ACTIVE, S.REJECTED)
        )
        self.assertEqual(
            WF.next_statuses(S.ADMIN_PAUSED), (S.PENDING, S.REJECTED)
        )
        self.assertTrue(WF.is_transition_allowed(S.EXPIRED, S.DRAFT))
        self.assertFalse(WF.is_transition_allowed(S.DRAFT, S.ACTIVE))

    def test_deleted_is_terminal(self):
        self.assertEqual(WF.next_statuses(S.DELETED), ())
        self.assertTrue(WF.is_terminal(S.DELETED))
        self.assertFalse(WF.is_terminal(S.ACTIVE))

    def test_unknown_status_yields_empty(self):
        self.assertEqual(WF.next_statuses("NOPE"), ())
        self.assertEqual(WF.next_statuses(None), ())
        self.assertEqual(WF.next_statuses(["unhashable"]), ())
        self.assertEqual(WF.available_actions("NOPE", "HOST"), [])


class AvailableActionsTests(SimpleTestCase):
    """Eligibility filter over the action catalog."""

    def test_targets_always_reachable(self):
        for status in S.values:
            for role in ROLES:
                for include_save in (True, False):
                    actions = WF.available_actions(status, role, include_save)
                    for action in actions:
                        if not action.is_save:
                            self.assertIn(
                                action.target_status,
                                WF.next_statuses(status),
                            )

    def test_applicant_never_sees_host_or_admin_actions(self):
        for status in S.values:
            for action in WF.available_actions(status, "USER", True):
                self.assertFalse(action.host_only)
                self.assertFalse(action.admin_only)

    def test_save_actions_only_when_requested(self):
        without = WF.available_actions(S.DRAFT, "HOST")
        with_save = WF.available_actions(S.DRAFT, "HOST", True)

        self.assertEqual([a.label for a in without], ["Submit for review"])
        self.assertEqual(
            [a.label for a in with_save], ["Save", "Submit for review"]
        )
        self.assertTrue(with_save[0].is_save)

    def test_catalog_order_preserved(self):
        labels = [a.label for a in WF.available_actions(S.PENDING, "ADMIN")]

        self.assertEqual(labels, ["Withdraw submission", "Approve", "Reject"])

    def test_admin_only_hidden_from_host(self):
        labels = [a.label for a in WF.available_actions(S.ACTIVE, "HOST")]

        self.assertIn("Pause listing", labels)
        self.assertNotIn("Pause as admin", labels)

    def test_host_only_hidden_from_admin(self):
        labels = [a.label for a in WF.available_actions(S.ACTIVE, "ADMIN")]

        self.assertEqual(labels, ["Pause as admin"])

    def test_no_actions_for_deleted(self):
        for role in ROLES:
            self.assertEqual(WF.available_actions(S.DELETED, role, True), [])

    def test_find_primary_and_secondary(self):
        self.assertEqual(WF.primary_action(S.DRAFT).label, "Save")
        self.assertIsNone(WF.primary_action(S.DELETED))
        self.assertEqual(
            [a.label for a in WF.secondary_actions(S.FILLED)],
            ["Pause listing"],
        )
        self.assertTrue(WF.can_save(S.PAUSED))
        self.assertFalse(WF.can_save(S.FILLED))
        self.assertIsNone(WF.find_action(S.DRAFT, S.ACTIVE))

    def test_confirmation(self):
        self.assertTrue(WF.needs_confirmation(S.ACTIVE, S.PAUSED))
        self.assertFalse(WF.needs_confirmation(S.DRAFT, S.PENDING))
        self.assertIn(
            "Pause this opportunity",
            WF.confirmation_message(S.ACTIVE, S.PAUSED),
        )
        self.assertEqual(
            WF.confirmation_message(S.DRAFT, S.PENDING),
            DEFAULT_CONFIRM_MESSAGE,
        )

    def test_button_style_values(self):
        reject = WF.find_action(S.PENDING, S.REJECTED)

        self.assertEqual(reject.button_style, ButtonStyle.DANGER)
        self.assertEqual(reject.button_style.value, "danger")


class ReasonPolicyTests(SimpleTestCase):
    """Reason policy lookups."""

    def test_rejection_requires_reason(self):
        config = WF.reason_config(S.PENDING, S.REJECTED)

        self.assertTrue(config.required)
        self.assertEqual(config.title, "Rejection reason")

    def test_default_config_for_unlisted_pairs(self):
        self.assertEqual(
            WF.reason_config(S.DRAFT, S.PENDING), DEFAULT_REASON_CONFIG
        )
        self.assertFalse(WF.requires_reason(S.DRAFT, S.PENDING))
        self.assertEqual(WF.reason_config(S.DRAFT, None), DEFAULT_REASON_CONFIG)

    def test_lookup_is_stable(self):
        first = WF.requires_reason(S.ACTIVE, S.PAUSED)
        second = WF.requires_reason(S.ACTIVE, S.PAUSED)

        self.assertTrue(first)
        self.assertEqual(first, second)

    def test_validate_reason(self):
        self.assertEqual(
            WF.validate_reason(S.PENDING, S.REJECTED, "  Too short.  "),
            "Too short.",
        )
        self.assertEqual(WF.validate_reason(S.DRAFT, S.PENDING, None), "")
        with self.assertRaises(ReasonRequiredError):
            WF.validate_reason(S.PENDING, S.REJECTED, "   ")


class ServerValidationTests(SimpleTestCase):
    """Role checks applied by the services."""

    def test_undefined_transition(self):
        with self.assertRaises(InvalidTransitionError):
            WF.validate_transition(S.DRAFT, S.ACTIVE, "ADMIN")

    def test_host_cannot_approve(self):
        with self.assertRaises(TransitionPermissionError):
            WF.validate_transition(S.PENDING, S.ACTIVE, "HOST")

    def test_admin_can_approve(self):
        self.assertTrue(WF.validate_transition(S.PENDING, S.ACTIVE, "ADMIN"))
        self.assertTrue(
            WF.validate_transition(S.PENDING, S.ACTIVE, "SUPER_ADMIN")
        )

    def test_unknown_role_denied(self):
        with self.assertRaises(TransitionPermissionError):
            WF.validate_transition(S.DRAFT, S.PENDING, "UNKNOWN")


class EditPolicyTests(SimpleTestCase):
    def test_can_edit(self):
        self.assertIs(can_edit(S.DRAFT), True)
        self.assertEqual(can_edit(S.ACTIVE), "limited")
        self.assertIs(can_edit(S.PENDING), False)
        self.assertIs(can_edit(S.DELETED), False)

    def test_limited_fields_exclude_title(self):
        self.assertIn("title", get_editable_fields(S.DRAFT))
        self.assertNotIn("title", get_editable_fields(S.ACTIVE))
        self.assertEqual(get_editable_fields(S.PENDING), frozenset())

    def test_status_update_message(self):
        self.assertIn("live", status_update_message(S.ACTIVE))
        self.assertEqual(status_update_message(S.DELETED), "Status updated.")


class ConsistencyCheckTests(SimpleTestCase):
    """Tables that disagree are refused at construction."""

    def _build(self, **overrides):
        tables = {
            "statuses": ["A", "B"],
            "transitions": {"A": ["B"], "B": []},
            "actions": {
                "A": [ActionDescriptor(label="Go", target_status="B")],
                "B": [],
            },
            "reasons": {},
            "permissions": {"A": {"B": ["HOST"]}},
        }
        tables.update(overrides)
        return StatusWorkflow(name="test", **tables)

    def test_valid_tables(self):
        self.assertEqual(self._build().next_statuses("A"), ("B",))

    def test_action_target_outside_table(self):
        with self.assertRaises(WorkflowConfigurationError):
            self._build(
                actions={
                    "A": [],
                    "B": [ActionDescriptor(label="Back", target_status="A")],
                }
            )

    def test_missing_status_entry(self):
        with self.assertRaises(WorkflowConfigurationError):
            self._build(transitions={"A": ["B"]})

    def test_unknown_target(self):
        with self.assertRaises(WorkflowConfigurationError):
            self._build(
                transitions={"A": ["B", "C"], "B": []},
                permissions={"A": {"B": ["HOST"], "C": ["HOST"]}},
            )

    def test_transition_without_roles(self):
        with self.assertRaises(WorkflowConfigurationError):
            self._build(permissions={})

    def test_reason_for_undefined_transition(self):
        with self.assertRaises(WorkflowConfigurationError):
            self._build(reasons={("B", "A"): ReasonConfig(required=True)})


class LatestStatusReasonTests(SimpleTestCase):
    """Most recent history entry wins."""

    def setUp(self):
        self.t0 = datetime(2024, 1, 1, tzinfo=dt_timezone.utc)

    def test_most_recent_wins_regardless_of_order(self):
        history = [
            StatusHistoryEntry(
                "REJECTED", self.t0 + timedelta(days=2), "Photos are missing"
            ),
            StatusHistoryEntry(
                "REJECTED", self.t0, "Description is too short"
            ),
        ]

        self.assertEqual(
            latest_status_reason(history, "REJECTED"), "Photos are missing"
        )
        self.assertEqual(
            latest_status_reason(list(reversed(history)), "REJECTED"),
            "Photos are missing",
        )

    def test_empty_or_missing(self):
        self.assertIsNone(latest_status_reason(None, "REJECTED"))
        self.assertIsNone(latest_status_reason([], "REJECTED"))
        history = [StatusHistoryEntry("PAUSED", self.t0, "Holiday")]
        self.assertIsNone(latest_status_reason(history, "REJECTED"))
        self.assertIsNone(latest_status_reason(history, None))

    def test_latest_entry_without_reason(self):
        history = [
            StatusHistoryEntry("PAUSED", self.t0, "Holiday"),
            StatusHistoryEntry("PAUSED", self.t0 + timedelta(hours=1)),
        ]

        self.assertIsNone(latest_status_reason(history, "PAUSED"))


class StatusActionMenuTests(SimpleTestCase):
    """Idle / menu open / reason prompt interaction."""

    def setUp(self):
        self.workflow = build_listing_workflow()
        self.calls = []

    def _menu(self, status="PUBLISHED", role="HOST", callback=None, **kw):
        return StatusActionMenu(
            self.workflow,
            status,
            role,
            callback or (lambda s, r: self.calls.append((s, r))),
            **kw,
        )

    def _action(self, actions, label):
        return next(a for a in actions if a.label == label)

    def test_host_menu_lists_host_actions(self):
        menu = self._menu()

        actions = menu.open_menu()

        self.assertEqual([a.label for a in actions], ["Pause", "Archive"])
        self.assertEqual(menu.state, MenuState.MENU_OPEN)

    def test_action_with_required_reason_prompts(self):
        menu = self._menu(include_save_action=True)
        pause = self._action(menu.open_menu(), "Pause")

        menu.select_action(pause)

        self.assertEqual(menu.state, MenuState.REASON_PROMPT)
        self.assertEqual(menu.pending_status, "PAUSED")
        self.assertTrue(menu.reason_config.required)
        self.assertEqual(menu.reason_config.title, "Pause reason")
        self.assertEqual(self.calls, [])

    def test_blank_reason_cannot_be_confirmed(self):
        menu = self._menu()
        menu.select_action(self._action(menu.open_menu(), "Pause"))

        self.assertFalse(menu.can_confirm("   "))
        self.assertFalse(menu.confirm(""))
        self.assertEqual(menu.state, MenuState.REASON_PROMPT)
        self.assertEqual(self.calls, [])

    def test_confirm_commits_with_reason(self):
        menu = self._menu()
        menu.select_action(self._action(menu.open_menu(), "Pause"))

        self.assertTrue(menu.confirm("Renovating"))

        self.assertEqual(self.calls, [("PAUSED", "Renovating")])
        self.assertEqual(menu.state, MenuState.IDLE)
        self.assertEqual(menu.current_status, "PAUSED")

    def test_action_without_reason_commits_immediately(self):
        menu = self._menu(include_save_action=True)

        menu.select_action(self._action(menu.open_menu(), "Archive"))

        self.assertEqual(self.calls, [("ARCHIVED", None)])
        self.assertEqual(menu.state, MenuState.IDLE)

    def test_cancel_from_reason_prompt(self):
        menu = self._menu()
        menu.select_action(self._action(menu.open_menu(), "Pause"))

        menu.cancel()

        self.assertEqual(menu.state, MenuState.IDLE)
        self.assertIsNone(menu.pending_status)
        self.assertEqual(menu.current_status, "PUBLISHED")
        self.assertEqual(self.calls, [])

    def test_save_action_keeps_status(self):
        menu = self._menu(include_save_action=True)
        save = self._action(menu.open_menu(), "Save")

        menu.select_action(save)

        self.assertEqual(self.calls, [("PUBLISHED", None)])

    def test_empty_menu_stays_idle(self):
        menu = self._menu(status="ARCHIVED")

        self.assertEqual(menu.open_menu(), [])
        self.assertEqual(menu.state, MenuState.IDLE)

    def test_select_unlisted_action_raises(self):
        menu = self._menu(role="ADMIN")
        actions = menu.open_menu()
        self.assertEqual(
            [a.label for a in actions], ["Archive", "Force archive"]
        )

        pause = self.workflow.find_action("PUBLISHED", "PAUSED")
        with self.assertRaises(WorkflowError):
            menu.select_action(pause)

    def test_select_without_open_menu_raises(self):
        menu = self._menu()
        archive = self.workflow.find_action("PUBLISHED", "ARCHIVED")

        with self.assertRaises(WorkflowError):
            menu.select_action(archive)

    def test_failed_update_keeps_old_status(self):
        def failing(new_status, reason):
            raise RuntimeError("network down")

        menu = self._menu(callback=failing)
        archive = self._action(menu.open_menu(), "Archive")

        with self.assertRaises(RuntimeError):
            menu.select_action(archive)

        self.assertEqual(menu.current_status, "PUBLISHED")
        self.assertEqual(menu.state, MenuState.IDLE)
        self.assertFalse(menu.is_busy)

    def test_menu_hidden_while_busy(self):
        menu = self._menu()
        menu.is_busy = True

        self.assertEqual(menu.open_menu(), [])

    def test_real_opportunity_workflow_rejection(self):
        menu = StatusActionMenu(
            WF,
            S.PENDING,
            "ADMIN",
            lambda s, r: self.calls.append((s, r)),
        )
        reject = self._action(menu.open_menu(), "Reject")

        menu.select_action(reject)
        menu.confirm("Missing photos")

        self.assertEqual(self.calls, [(S.REJECTED, "Missing photos")])
