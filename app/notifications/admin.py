"""
Django admin and customizations for models of notifications app.
"""

from django.contrib import admin
from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    """Admin configuration for the Notification model."""

    list_display = (
        "id",
        "entity_type",
        "entity_id",
        "event_type",
        "recipient",
        "is_read",
        "status",
        "created_at",
    )
    list_filter = ("status", "event_type", "entity_type", "is_read")
    search_fields = ("entity_id", "recipient__email")
