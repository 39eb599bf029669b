"""
Data models for the opportunities app.
"""

from django.db import models
from django.conf import settings
from django.core.validators import MinValueValidator
from django.utils.translation import gettext_lazy as _

from core.models import TimestampedModel, StatusHistoryModel
from core.workflows import current_status_reason


class OpportunityStatus(models.TextChoices):
    """Lifecycle of a work-exchange listing."""

    DRAFT = "DRAFT", _("Draft")
    PENDING = "PENDING", _("Pending review")
    ACTIVE = "ACTIVE", _("Active")
    PAUSED = "PAUSED", _("Paused")
    EXPIRED = "EXPIRED", _("Expired")
    FILLED = "FILLED", _("Filled")
    REJECTED = "REJECTED", _("Rejected")
    ADMIN_PAUSED = "ADMIN_PAUSED", _("Paused by admin")
    DELETED = "DELETED", _("Deleted")


class Opportunity(TimestampedModel):
    """A work-exchange opportunity published by a host."""

    host = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="opportunities",
    )
    title = models.CharField(max_length=100)
    slug = models.SlugField(max_length=120, unique=True)
    short_description = models.CharField(max_length=200, blank=True)
    description = models.TextField()
    city = models.CharField(max_length=100, blank=True)
    capacity = models.PositiveIntegerField(
        default=1, validators=[MinValueValidator(1)]
    )
    start_date = models.DateField(blank=True, null=True)
    end_date = models.DateField(blank=True, null=True)

    status = models.CharField(
        max_length=20,
        choices=OpportunityStatus.choices,
        default=OpportunityStatus.DRAFT,
    )
    published_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        verbose_name_plural = "Opportunities"

    @property
    def history_entries(self) -> list:
        return [item.to_entry() for item in self.status_history.all()]

    @property
    def status_reason(self):
        """Reason recorded for the opportunity's current status."""
        return current_status_reason(self.status, self.history_entries)

    def __str__(self):
        return self.title


class OpportunityStatusHistory(StatusHistoryModel):
    """Append-only log of an opportunity's status changes."""

    opportunity = models.ForeignKey(
        Opportunity, on_delete=models.CASCADE, related_name="status_history"
    )
    status = models.CharField(
        max_length=20, choices=OpportunityStatus.choices
    )

    class Meta(StatusHistoryModel.Meta):
        verbose_name = "Opportunity Status Change"
        verbose_name_plural = "Opportunity Status History"
