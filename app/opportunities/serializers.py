"""
Serializers for the opportunities API.
"""

from rest_framework import serializers

from core.serializers import (
    ActionDescriptorSerializer,
    DateRangeValidationMixin,
    StatusChangeSerializer,
    StatusHistorySerializer,
)
from users.serializers import UserNestedSerializer
from .models import Opportunity, OpportunityStatus
from .workflows import (
    EDITABLE_FIELDS,
    OPPORTUNITY_WORKFLOW,
    STATUS_DESCRIPTIONS,
    get_editable_fields,
)


# --- Action Payload Serializers ---


class OpportunityStatusChangeSerializer(StatusChangeSerializer):
    status = serializers.ChoiceField(choices=OpportunityStatus.choices)


# --- Core Serializers ---


class OpportunityListSerializer(serializers.ModelSerializer):
    """Serializer for list view, with minimal nested data."""

    host = UserNestedSerializer(read_only=True)

    class Meta:
        model = Opportunity
        fields = [
            "id",
            "title",
            "slug",
            "short_description",
            "city",
            "capacity",
            "start_date",
            "end_date",
            "status",
            "host",
            "published_at",
            "created_at",
        ]


class OpportunityDetailSerializer(serializers.ModelSerializer):
    """Full detail serializer with workflow context."""

    host = UserNestedSerializer(read_only=True)
    status_description = serializers.SerializerMethodField()
    status_reason = serializers.SerializerMethodField()
    status_history = StatusHistorySerializer(many=True, read_only=True)

    # --- Contextual Fields ---
    available_actions = serializers.SerializerMethodField()
    permissions = serializers.SerializerMethodField()

    class Meta:
        model = Opportunity
        fields = [
            "id",
            "title",
            "slug",
            "short_description",
            "description",
            "city",
            "capacity",
            "start_date",
            "end_date",
            "status",
            "status_description",
            "status_reason",
            "status_history",
            "host",
            "published_at",
            "created_at",
            "updated_at",
            "available_actions",
            "permissions",
        ]

    def get_status_description(self, obj):
        return STATUS_DESCRIPTIONS.get(obj.status, "")

    def get_status_reason(self, obj):
        return obj.status_reason

    def get_available_actions(self, obj):
        # Populated by the ViewSet
        actions = self.context.get("available_actions", [])
        return ActionDescriptorSerializer(
            actions,
            many=True,
            context={
                "workflow": OPPORTUNITY_WORKFLOW,
                "current_status": obj.status,
            },
        ).data

    def get_permissions(self, obj):
        return self.context.get("permissions", {})


class OpportunityCreateSerializer(
    DateRangeValidationMixin, serializers.ModelSerializer
):
    """Serializer for creating a new opportunity (always as DRAFT)."""

    class Meta:
        model = Opportunity
        fields = sorted(EDITABLE_FIELDS)


class OpportunityUpdateSerializer(
    DateRangeValidationMixin, serializers.ModelSerializer
):
    """
    Dynamic serializer for PATCH.
    Fields outside the status' editable set are made read-only.
    """

    class Meta:
        model = Opportunity
        fields = sorted(EDITABLE_FIELDS)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)

        instance = self.instance
        if instance is None or not self.context.get("request"):
            for field_name in self.fields:
                self.fields[field_name].read_only = True
            return

        editable_fields = get_editable_fields(instance.status)
        for field_name in self.fields:
            if field_name not in editable_fields:
                self.fields[field_name].read_only = True
