"""
Application layer - Django-aware orchestrator service for opportunities.
Calls the Domain for validation, handles DB transactions, appends the
status history and triggers notifications.
"""

import logging

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Q
from django.utils import timezone
from django.utils.crypto import get_random_string
from django.utils.text import slugify

from core.workflows import (
    InvalidTransitionError,
    ReasonRequiredError,
    TransitionPermissionError,
    UNKNOWN_ROLE,
)
from notifications.models import Notification
from users.models import UserRole
from .models import Opportunity, OpportunityStatus, OpportunityStatusHistory
from .workflows import (
    OPPORTUNITY_WORKFLOW,
    get_contextual_role_name,
    get_editable_fields,
    get_user_permissions,
    status_update_message,
)

User = get_user_model()
logger = logging.getLogger(__name__)


# --- HELPER FUNCTIONS ---


def _generate_slug(title: str) -> str:
    """Slug from the title plus a short random suffix."""
    base = slugify(title)[:100] or "opportunity"
    slug = f"{base}-{get_random_string(6).lower()}"
    while Opportunity.objects.filter(slug=slug).exists():
        slug = f"{base}-{get_random_string(6).lower()}"
    return slug


def _append_history(opportunity, status, user=None, reason=None):
    return OpportunityStatusHistory.objects.create(
        opportunity=opportunity,
        status=status,
        reason=reason or None,
        changed_by=user,
    )


def _notify_host(opportunity, user, old_status, new_status, reason):
    """The host learns about status changes made by someone else."""
    if user is not None and opportunity.host_id == user.id:
        return None

    return Notification.objects.create(
        entity_type=Notification.EntityType.OPPORTUNITY,
        entity_id=opportunity.id,
        event_type=Notification.EventType.OPPORTUNITY_STATUS_CHANGED,
        triggered_by=user,
        recipient=opportunity.host,
        payload={
            "title": opportunity.title,
            "from_status": old_status,
            "to_status": new_status,
            "reason": reason or None,
            "message": status_update_message(new_status),
        },
    )


# --- VISIBILITY ---


def get_opportunity_visibility_filter(user) -> Q:
    """
    Anonymous users and applicants see published opportunities,
    hosts additionally see their own, admins see everything.
    """
    published = Q(status=OpportunityStatus.ACTIVE)

    if not user or not user.is_authenticated:
        return published

    if user.role in (UserRole.ADMIN, UserRole.SUPER_ADMIN):
        return Q()

    return published | (
        Q(host=user) & ~Q(status=OpportunityStatus.DELETED)
    )


# --- CONTEXTUAL DATA SERVICE (for retrieve()) ---


def get_opportunity_context(
    opportunity: Opportunity, user, include_save_action=True
) -> dict:
    """Gathers the contextual data for the detail serializer."""
    role_name = get_contextual_role_name(opportunity, user)
    available_actions = []
    # outsiders only read the listing
    if role_name != UNKNOWN_ROLE:
        available_actions = OPPORTUNITY_WORKFLOW.available_actions(
            opportunity.status, role_name, include_save_action
        )
    return {
        "role_name": role_name,
        "available_actions": available_actions,
        "permissions": get_user_permissions(
            opportunity, role_name, available_actions
        ),
    }


# --- CREATE, UPDATE, DELETE ---


@transaction.atomic
def create_opportunity(*, user: User, **kwargs) -> Opportunity:
    """
    Creates a new opportunity in DRAFT owned by the request user.
    Permission: HOST or admin roles.
    """
    if user.role not in (UserRole.HOST, UserRole.ADMIN, UserRole.SUPER_ADMIN):
        raise TransitionPermissionError(
            "Only hosts can create opportunities."
        )

    kwargs.pop("status", None)
    opportunity = Opportunity.objects.create(
        host=user,
        slug=_generate_slug(kwargs.get("title", "")),
        status=OpportunityStatus.DRAFT,
        **kwargs,
    )
    _append_history(opportunity, OpportunityStatus.DRAFT, user=user)

    logger.info("Opportunity %s created by %s", opportunity.id, user.email)
    return opportunity


@transaction.atomic
def update_opportunity(
    *, opportunity: Opportunity, user: User, **changes
) -> Opportunity:
    """
    Applies field changes allowed for the opportunity's status.
    Fields outside the editable set are ignored.
    """
    role_name = get_contextual_role_name(opportunity, user)
    if role_name == UNKNOWN_ROLE:
        raise TransitionPermissionError(
            "You do not have permission to edit this opportunity."
        )

    editable = get_editable_fields(opportunity.status)
    updated_fields = []
    for field_name, value in changes.items():
        if field_name in editable:
            setattr(opportunity, field_name, value)
            updated_fields.append(field_name)

    if updated_fields:
        opportunity.save(update_fields=updated_fields + ["updated_at"])
    return opportunity


@transaction.atomic
def delete_opportunity(*, opportunity: Opportunity, user: User):
    """Soft delete: the opportunity is kept with DELETED status."""
    opportunity = Opportunity.objects.select_for_update().get(
        pk=opportunity.pk
    )
    role_name = get_contextual_role_name(opportunity, user)
    if role_name == UNKNOWN_ROLE:
        raise TransitionPermissionError(
            "You do not have permission to delete this opportunity."
        )
    if opportunity.status == OpportunityStatus.DELETED:
        raise InvalidTransitionError("The opportunity is already deleted.")

    opportunity.status = OpportunityStatus.DELETED
    opportunity.save(update_fields=["status", "updated_at"])
    _append_history(opportunity, OpportunityStatus.DELETED, user=user)

    logger.info("Opportunity %s deleted by %s", opportunity.id, user.email)


# --- WORKFLOW ACTIONS ---


@transaction.atomic
def change_opportunity_status(
    *, opportunity: Opportunity, user: User, new_status: str, reason=None
) -> Opportunity:
    """
    Moves an opportunity to `new_status`.
    Validates the transition and the contextual role, requires a reason
    where the policy says so, records the change in the history.
    """
    # validate against the locked row, not the instance the caller loaded
    opportunity = Opportunity.objects.select_for_update().get(
        pk=opportunity.pk
    )
    old_status = opportunity.status
    role_name = get_contextual_role_name(opportunity, user)

    try:
        OPPORTUNITY_WORKFLOW.validate_transition(
            old_status, new_status, role_name
        )
        reason = OPPORTUNITY_WORKFLOW.validate_reason(
            old_status, new_status, reason
        )
    except (
        InvalidTransitionError,
        TransitionPermissionError,
        ReasonRequiredError,
    ) as e:
        logger.warning(
            "Rejected opportunity %s transition %s -> %s by %s: %s",
            opportunity.id,
            old_status,
            new_status,
            getattr(user, "email", None),
            e,
        )
        raise

    update_fields = ["status", "updated_at"]
    opportunity.status = new_status
    if (
        new_status == OpportunityStatus.ACTIVE
        and old_status != OpportunityStatus.ACTIVE
    ):
        opportunity.published_at = timezone.now()
        update_fields.append("published_at")
    opportunity.save(update_fields=update_fields)

    _append_history(opportunity, new_status, user=user, reason=reason)
    _notify_host(opportunity, user, old_status, new_status, reason)

    logger.info(
        "Opportunity %s moved %s -> %s by %s",
        opportunity.id,
        old_status,
        new_status,
        getattr(user, "email", None),
    )
    return opportunity


@transaction.atomic
def expire_opportunities(today=None) -> int:
    """
    Moves ACTIVE opportunities whose end date has passed to EXPIRED.
    Runs as the system, without an acting user.
    """
    today = today or timezone.localdate()
    expired = Opportunity.objects.select_for_update().filter(
        status=OpportunityStatus.ACTIVE, end_date__lt=today
    )

    count = 0
    for opportunity in expired:
        opportunity.status = OpportunityStatus.EXPIRED
        opportunity.save(update_fields=["status", "updated_at"])
        _append_history(
            opportunity,
            OpportunityStatus.EXPIRED,
            reason=f"End date {opportunity.end_date} has passed.",
        )
        _notify_host(
            opportunity,
            None,
            OpportunityStatus.ACTIVE,
            OpportunityStatus.EXPIRED,
            None,
        )
        count += 1

    if count:
        logger.info("Expired %s opportunities", count)
    return count
