"""
Serializers for the applications API.
"""

from rest_framework import serializers

from core.serializers import (
    ActionDescriptorSerializer,
    DateRangeValidationMixin,
    StatusChangeSerializer,
    StatusHistorySerializer,
)
from opportunities.models import Opportunity
from opportunities.serializers import OpportunityListSerializer
from users.serializers import UserNestedSerializer
from .models import Application, ApplicationStatus
from .workflows import APPLICATION_WORKFLOW


class ApplicationStatusChangeSerializer(StatusChangeSerializer):
    status = serializers.ChoiceField(choices=ApplicationStatus.choices)


class ApplicationListSerializer(serializers.ModelSerializer):
    applicant = UserNestedSerializer(read_only=True)

    class Meta:
        model = Application
        fields = [
            "id",
            "opportunity",
            "applicant",
            "status",
            "start_date",
            "end_date",
            "created_at",
        ]


class ApplicationDetailSerializer(serializers.ModelSerializer):
    """Full detail serializer with workflow context."""

    applicant = UserNestedSerializer(read_only=True)
    opportunity = OpportunityListSerializer(read_only=True)
    status_reason = serializers.SerializerMethodField()
    status_history = StatusHistorySerializer(many=True, read_only=True)
    available_actions = serializers.SerializerMethodField()
    permissions = serializers.SerializerMethodField()

    class Meta:
        model = Application
        fields = [
            "id",
            "opportunity",
            "applicant",
            "message",
            "start_date",
            "end_date",
            "status",
            "status_note",
            "status_reason",
            "status_history",
            "accepted_at",
            "rejected_at",
            "activated_at",
            "completed_at",
            "withdrawn_at",
            "created_at",
            "updated_at",
            "available_actions",
            "permissions",
        ]

    def get_status_reason(self, obj):
        return obj.status_reason

    def get_available_actions(self, obj):
        return ActionDescriptorSerializer(
            self.context.get("available_actions", []),
            many=True,
            context={
                "workflow": APPLICATION_WORKFLOW,
                "current_status": obj.status,
            },
        ).data

    def get_permissions(self, obj):
        return self.context.get("permissions", {})


class ApplicationCreateSerializer(
    DateRangeValidationMixin, serializers.ModelSerializer
):
    opportunity = serializers.PrimaryKeyRelatedField(
        queryset=Opportunity.objects.all()
    )
    as_draft = serializers.BooleanField(default=False, write_only=True)

    class Meta:
        model = Application
        fields = [
            "opportunity",
            "message",
            "start_date",
            "end_date",
            "as_draft",
        ]


class ApplicationUpdateSerializer(
    DateRangeValidationMixin, serializers.ModelSerializer
):
    """Draft edits by the applicant."""

    class Meta:
        model = Application
        fields = ["message", "start_date", "end_date"]
