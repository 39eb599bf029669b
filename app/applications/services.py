"""
Application layer - orchestrates application status changes,
their side effects, history and notifications.
"""

import logging

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from core.workflows import (
    InvalidTransitionError,
    ReasonRequiredError,
    TransitionPermissionError,
    APPLICANT_ROLE,
    UNKNOWN_ROLE,
)
from notifications.models import Notification
from opportunities.models import OpportunityStatus
from users.models import UserRole
from .models import Application, ApplicationStatus, ApplicationStatusHistory
from .workflows import APPLICATION_WORKFLOW, get_contextual_role_name

User = get_user_model()
logger = logging.getLogger(__name__)

EVENT_BY_STATUS = {
    ApplicationStatus.PENDING: Notification.EventType.APPLICATION_RECEIVED,
    ApplicationStatus.ACCEPTED: Notification.EventType.APPLICATION_ACCEPTED,
    ApplicationStatus.REJECTED: Notification.EventType.APPLICATION_REJECTED,
    ApplicationStatus.WITHDRAWN: Notification.EventType.APPLICATION_WITHDRAWN,
}


# --- HELPER FUNCTIONS ---


def _append_history(application, status, user=None, reason=None):
    return ApplicationStatusHistory.objects.create(
        application=application,
        status=status,
        reason=reason or None,
        changed_by=user,
    )


def _notify(application, user, old_status, new_status, reason):
    """
    Notifies the other party of the application. When an admin acts,
    both the applicant and the host are notified.
    """
    parties = [application.applicant, application.opportunity.host]
    recipients = [party for party in parties if party.id != user.id]
    event_type = EVENT_BY_STATUS.get(
        new_status, Notification.EventType.APPLICATION_UPDATED
    )
    payload = {
        "opportunity": application.opportunity.title,
        "from_status": old_status,
        "to_status": new_status,
        "reason": reason or None,
    }
    return [
        Notification.objects.create(
            entity_type=Notification.EntityType.APPLICATION,
            entity_id=application.id,
            event_type=event_type,
            triggered_by=user,
            recipient=recipient,
            payload=payload,
        )
        for recipient in recipients
    ]


# --- VISIBILITY ---


def get_application_visibility_filter(user) -> Q:
    """
    Applicants see their own applications, hosts see submitted
    applications to their opportunities, admins see everything.
    """
    if user.role in (UserRole.ADMIN, UserRole.SUPER_ADMIN):
        return Q()

    return Q(applicant=user) | (
        Q(opportunity__host=user) & ~Q(status=ApplicationStatus.DRAFT)
    )


def get_application_context(
    application: Application, user, include_save_action=True
) -> dict:
    role_name = get_contextual_role_name(application, user)
    available_actions = []
    if role_name != UNKNOWN_ROLE:
        available_actions = APPLICATION_WORKFLOW.available_actions(
            application.status, role_name, include_save_action
        )
    return {
        "role_name": role_name,
        "available_actions": available_actions,
        "permissions": {
            "can_edit": role_name == APPLICANT_ROLE
            and application.status == ApplicationStatus.DRAFT,
            "can_transition": any(
                not action.is_save for action in available_actions
            ),
        },
    }


# --- CREATE ---


@transaction.atomic
def create_application(
    *, user: User, opportunity, as_draft=False, **kwargs
) -> Application:
    """
    Applies to a published opportunity.
    The application starts as PENDING, or DRAFT when `as_draft` is set.
    """
    if opportunity.status != OpportunityStatus.ACTIVE:
        raise InvalidTransitionError(
            "Applications are only accepted for active opportunities."
        )
    if opportunity.host_id == user.id:
        raise TransitionPermissionError(
            "You cannot apply to your own opportunity."
        )
    if Application.objects.filter(
        applicant=user,
        opportunity=opportunity,
        status__in=[
            ApplicationStatus.DRAFT,
            ApplicationStatus.PENDING,
            ApplicationStatus.ACCEPTED,
            ApplicationStatus.ACTIVE,
        ],
    ).exists():
        raise InvalidTransitionError(
            "You already have an open application for this opportunity."
        )

    initial_status = (
        ApplicationStatus.DRAFT if as_draft else ApplicationStatus.PENDING
    )
    application = Application.objects.create(
        applicant=user,
        opportunity=opportunity,
        status=initial_status,
        **kwargs,
    )
    _append_history(application, initial_status, user=user)
    if initial_status == ApplicationStatus.PENDING:
        _notify(application, user, None, initial_status, None)

    logger.info(
        "Application %s to opportunity %s created by %s",
        application.id,
        opportunity.id,
        user.email,
    )
    return application


EDITABLE_FIELDS = frozenset({"message", "start_date", "end_date"})


@transaction.atomic
def update_application(
    *, application: Application, user: User, **changes
) -> Application:
    """
    Saves a draft. Only the applicant edits, only while DRAFT.
    Fields outside EDITABLE_FIELDS are ignored.
    """
    application = Application.objects.select_for_update().get(
        pk=application.pk
    )
    if get_contextual_role_name(application, user) != APPLICANT_ROLE:
        raise TransitionPermissionError(
            "Only the applicant can edit this application."
        )
    if application.status != ApplicationStatus.DRAFT:
        raise InvalidTransitionError(
            "Only draft applications can be edited."
        )

    updated_fields = []
    for field_name, value in changes.items():
        if field_name in EDITABLE_FIELDS:
            setattr(application, field_name, value)
            updated_fields.append(field_name)

    if updated_fields:
        application.save(update_fields=updated_fields + ["updated_at"])
    return application


# --- WORKFLOW ACTIONS ---


@transaction.atomic
def change_application_status(
    *, application: Application, user: User, new_status: str, reason=None
) -> Application:
    """
    Moves an application to `new_status` and records who did it.
    """
    # validate against the locked row, not the instance the caller loaded
    application = Application.objects.select_for_update().get(
        pk=application.pk
    )
    old_status = application.status
    role_name = get_contextual_role_name(application, user)

    try:
        APPLICATION_WORKFLOW.validate_transition(
            old_status, new_status, role_name
        )
        reason = APPLICATION_WORKFLOW.validate_reason(
            old_status, new_status, reason
        )
    except (
        InvalidTransitionError,
        TransitionPermissionError,
        ReasonRequiredError,
    ) as e:
        logger.warning(
            "Rejected application %s transition %s -> %s by %s: %s",
            application.id,
            old_status,
            new_status,
            user.email,
            e,
        )
        raise

    now = timezone.now()
    application.status = new_status
    update_fields = ["status", "status_note", "updated_at"]

    if new_status == ApplicationStatus.ACCEPTED:
        application.accepted_at = now
        application.accepted_by = user
        update_fields += ["accepted_at", "accepted_by"]
    elif new_status == ApplicationStatus.REJECTED:
        application.rejected_at = now
        application.rejected_by = user
        update_fields += ["rejected_at", "rejected_by"]
    elif new_status == ApplicationStatus.ACTIVE:
        application.activated_at = now
        update_fields.append("activated_at")
    elif new_status == ApplicationStatus.COMPLETED:
        application.completed_at = now
        update_fields.append("completed_at")
    elif new_status == ApplicationStatus.WITHDRAWN:
        application.withdrawn_at = now
        update_fields.append("withdrawn_at")

    application.status_note = reason or None
    application.save(update_fields=update_fields)

    _append_history(application, new_status, user=user, reason=reason)
    _notify(application, user, old_status, new_status, reason)

    logger.info(
        "Application %s moved %s -> %s by %s",
        application.id,
        old_status,
        new_status,
        user.email,
    )
    return application
