"""
Serializers and payload validation shared by status-bearing apps.
"""

from datetime import date

from rest_framework import serializers


class DateRangeValidationMixin:
    """
    Rejects an end_date in the past or before start_date. On updates the
    stored value stands in for whichever of the two is not in the payload.
    """

    def validate_end_date(self, value):
        if value and value < date.today():
            raise serializers.ValidationError(
                "End date cannot be in the past."
            )
        return value

    def validate(self, attrs):
        attrs = super().validate(attrs)
        if "start_date" not in attrs and "end_date" not in attrs:
            return attrs

        instance = getattr(self, "instance", None)
        start = attrs.get("start_date", getattr(instance, "start_date", None))
        end = attrs.get("end_date", getattr(instance, "end_date", None))
        if start and end and end < start:
            raise serializers.ValidationError(
                {"end_date": "End date cannot be before start date."}
            )
        return attrs


class ReasonConfigSerializer(serializers.Serializer):
    required = serializers.BooleanField(read_only=True)
    title = serializers.CharField(read_only=True)
    placeholder = serializers.CharField(read_only=True)


class ActionDescriptorSerializer(serializers.Serializer):
    """
    Renders an ActionDescriptor. The reason policy for the action's
    transition is attached when the serializer gets `workflow` and
    `current_status` in its context.
    """

    label = serializers.CharField(read_only=True)
    target_status = serializers.CharField(read_only=True, allow_null=True)
    is_save = serializers.BooleanField(read_only=True)
    host_only = serializers.BooleanField(read_only=True)
    admin_only = serializers.BooleanField(read_only=True)
    applicant_only = serializers.BooleanField(read_only=True)
    button_style = serializers.SerializerMethodField()
    description = serializers.CharField(read_only=True)
    is_primary = serializers.BooleanField(read_only=True)
    needs_confirmation = serializers.BooleanField(read_only=True)
    confirm_message = serializers.CharField(read_only=True)
    reason = serializers.SerializerMethodField()

    def get_button_style(self, obj):
        return obj.button_style.value

    def get_reason(self, obj):
        workflow = self.context.get("workflow")
        if workflow is None or obj.is_save:
            return None
        config = workflow.reason_config(
            self.context.get("current_status"), obj.target_status
        )
        return ReasonConfigSerializer(config).data


class StatusHistorySerializer(serializers.Serializer):
    """Read-only row of a StatusHistoryModel subclass."""

    status = serializers.CharField(read_only=True)
    reason = serializers.CharField(read_only=True, allow_null=True)
    changed_at = serializers.DateTimeField(read_only=True)
    changed_by = serializers.SerializerMethodField()

    def get_changed_by(self, obj):
        if obj.changed_by_id is None:
            return None
        return {"id": obj.changed_by_id, "email": obj.changed_by.email}


class StatusChangeSerializer(serializers.Serializer):
    """Payload of PATCH {id}/status/. Apps override `status` choices."""

    status = serializers.CharField(max_length=20)
    reason = serializers.CharField(
        max_length=1000, required=False, allow_blank=True, allow_null=True
    )
