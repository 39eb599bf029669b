"""
Django admin customizations for the opportunities app.
"""

from django.contrib import admin

from .models import Opportunity, OpportunityStatusHistory


class OpportunityStatusHistoryInline(admin.TabularInline):
    model = OpportunityStatusHistory
    fields = ("status", "reason", "changed_by", "changed_at")
    readonly_fields = fields
    extra = 0
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Opportunity)
class OpportunityAdmin(admin.ModelAdmin):
    list_display = (
        "title",
        "host",
        "city",
        "status",
        "capacity",
        "end_date",
        "published_at",
    )
    list_filter = ("status", "city")
    search_fields = ("title", "host__email")
    readonly_fields = ("slug", "published_at", "created_at", "updated_at")
    inlines = [OpportunityStatusHistoryInline]


@admin.register(OpportunityStatusHistory)
class OpportunityStatusHistoryAdmin(admin.ModelAdmin):
    list_display = ("opportunity", "status", "changed_by", "changed_at")
    list_filter = ("status",)
    search_fields = ("opportunity__title", "reason")
