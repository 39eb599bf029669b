"""
Data models for the applications app.
"""

from django.db import models
from django.conf import settings
from django.utils.translation import gettext_lazy as _

from core.models import TimestampedModel, StatusHistoryModel
from core.workflows import current_status_reason
from opportunities.models import Opportunity


class ApplicationStatus(models.TextChoices):
    """Lifecycle of an application to an opportunity."""

    DRAFT = "DRAFT", _("Draft")
    PENDING = "PENDING", _("Pending")
    ACCEPTED = "ACCEPTED", _("Accepted")
    REJECTED = "REJECTED", _("Rejected")
    ACTIVE = "ACTIVE", _("Active")
    COMPLETED = "COMPLETED", _("Completed")
    WITHDRAWN = "WITHDRAWN", _("Withdrawn")


class Application(TimestampedModel):
    """An applicant's request to join a host's opportunity."""

    applicant = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="applications",
    )
    opportunity = models.ForeignKey(
        Opportunity, on_delete=models.CASCADE, related_name="applications"
    )
    message = models.TextField(blank=True)
    start_date = models.DateField(blank=True, null=True)
    end_date = models.DateField(blank=True, null=True)

    status = models.CharField(
        max_length=20,
        choices=ApplicationStatus.choices,
        default=ApplicationStatus.PENDING,
    )
    status_note = models.TextField(blank=True, null=True)

    accepted_at = models.DateTimeField(blank=True, null=True)
    accepted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="accepted_applications",
    )
    rejected_at = models.DateTimeField(blank=True, null=True)
    rejected_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="rejected_applications",
    )
    activated_at = models.DateTimeField(blank=True, null=True)
    completed_at = models.DateTimeField(blank=True, null=True)
    withdrawn_at = models.DateTimeField(blank=True, null=True)

    @property
    def history_entries(self) -> list:
        return [item.to_entry() for item in self.status_history.all()]

    @property
    def status_reason(self):
        return current_status_reason(self.status, self.history_entries)

    def __str__(self):
        return f"{self.applicant} -> {self.opportunity}"


class ApplicationStatusHistory(StatusHistoryModel):
    """Append-only log of an application's status changes."""

    application = models.ForeignKey(
        Application, on_delete=models.CASCADE, related_name="status_history"
    )
    status = models.CharField(
        max_length=20, choices=ApplicationStatus.choices
    )

    class Meta(StatusHistoryModel.Meta):
        verbose_name = "Application Status Change"
        verbose_name_plural = "Application Status History"
