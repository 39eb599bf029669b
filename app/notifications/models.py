"""
Data models for the notifications app.
Unified - used by opportunities and applications to notify users
about status changes.
"""

from django.db import models
from django.conf import settings
from django.utils import timezone


# To prevent circular dependencies - No direct import of other apps' models


class Notification(models.Model):
    """An in-app notification addressed to one user."""

    class EntityType(models.TextChoices):
        OPPORTUNITY = "OPPORTUNITY", "Opportunity"
        APPLICATION = "APPLICATION", "Application"

    class EventType(models.TextChoices):
        OPPORTUNITY_STATUS_CHANGED = (
            "OPPORTUNITY_STATUS_CHANGED",
            "Opportunity Status Changed",
        )
        APPLICATION_RECEIVED = "APPLICATION_RECEIVED", "Application Received"
        APPLICATION_ACCEPTED = "APPLICATION_ACCEPTED", "Application Accepted"
        APPLICATION_REJECTED = "APPLICATION_REJECTED", "Application Rejected"
        APPLICATION_WITHDRAWN = (
            "APPLICATION_WITHDRAWN",
            "Application Withdrawn",
        )
        APPLICATION_UPDATED = "APPLICATION_UPDATED", "Application Updated"
        CUSTOM = "CUSTOM", "Custom"

    class Method(models.TextChoices):
        SYSTEM = "SYSTEM", "System (in-app)"
        EMAIL = "EMAIL", "Email"

    class Status(models.TextChoices):
        QUEUED = "queued", "Queued"
        SENT = "sent", "Sent"
        FAILED = "failed", "Failed"
        CANCELED = "canceled", "Canceled"

    # Polymorphic link to the source entity (e.g., an Opportunity)
    entity_type = models.CharField(
        max_length=30,
        choices=EntityType.choices,
    )
    entity_id = models.IntegerField()

    # What triggered this?
    event_type = models.CharField(max_length=50, choices=EventType.choices)
    triggered_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,  # User who caused it might be deleted
        null=True,
        blank=True,
        related_name="triggered_notifications",
    )

    # Who is this for?
    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    # How?
    method = models.CharField(
        max_length=30, choices=Method.choices, default=Method.SYSTEM
    )
    payload = models.JSONField(blank=True, null=True)  # Extra context

    # State
    status = models.CharField(
        max_length=20, choices=Status.choices, default=Status.QUEUED
    )
    is_read = models.BooleanField(default=False)
    read_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def mark_read(self):
        if self.is_read:
            return
        self.is_read = True
        self.read_at = timezone.now()
        self.save(update_fields=["is_read", "read_at"])

    def __str__(self):
        return f"{self.event_type} for {self.entity_type} {self.entity_id}"
