"""
Django admin customizations for the applications app.
"""

from django.contrib import admin

from .models import Application, ApplicationStatusHistory


class ApplicationStatusHistoryInline(admin.TabularInline):
    model = ApplicationStatusHistory
    fields = ("status", "reason", "changed_by", "changed_at")
    readonly_fields = fields
    extra = 0
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Application)
class ApplicationAdmin(admin.ModelAdmin):
    list_display = ("applicant", "opportunity", "status", "created_at")
    list_filter = ("status",)
    search_fields = ("applicant__email", "opportunity__title")
    inlines = [ApplicationStatusHistoryInline]
