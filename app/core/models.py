"""
Project-wide abstract base classes.
"""

from django.db import models
from django.conf import settings
from django.utils import timezone

from .workflows import StatusHistoryEntry


class TimestampedModel(models.Model):
    """Abstract data model, provides created_at, updated_at."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class StatusHistoryModel(models.Model):
    """
    Abstract append-only log of committed status transitions.
    Concrete models add the FK to the status-bearing entity.
    """

    status = models.CharField(max_length=20)
    reason = models.TextField(blank=True, null=True)
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,  # keep the log if the user goes away
        null=True,
        blank=True,
        related_name="+",
    )
    changed_at = models.DateTimeField(default=timezone.now)

    class Meta:
        abstract = True
        ordering = ["changed_at", "id"]

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise ValueError("Status history entries cannot be modified.")
        super().save(*args, **kwargs)

    def to_entry(self) -> StatusHistoryEntry:
        return StatusHistoryEntry(
            status=self.status,
            changed_at=self.changed_at,
            reason=self.reason,
            changed_by=self.changed_by_id,
        )

    def __str__(self):
        return f"{self.status} at {self.changed_at:%Y-%m-%d %H:%M}"
