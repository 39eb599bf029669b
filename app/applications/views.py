"""
Views for the applications APIs.
"""

from drf_spectacular.utils import extend_schema
from rest_framework import mixins, viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.authentication import TokenAuthentication
from rest_framework.permissions import IsAuthenticated

from core.serializers import (
    ActionDescriptorSerializer,
    StatusHistorySerializer,
)
from core.workflows import TransitionPermissionError, WorkflowError
from opportunities.views import StandardResultsSetPagination
from .models import Application
from . import serializers
from . import services
from .filters import ApplicationFilter
from .workflows import APPLICATION_WORKFLOW


class ApplicationViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    """View for managing applications APIs."""

    queryset = Application.objects.all()
    authentication_classes = [TokenAuthentication]
    permission_classes = [IsAuthenticated]
    pagination_class = StandardResultsSetPagination
    filterset_class = ApplicationFilter

    def get_queryset(self):
        queryset = (
            super()
            .get_queryset()
            .select_related("applicant", "opportunity", "opportunity__host")
        )
        visibility_filter = services.get_application_visibility_filter(
            self.request.user
        )
        return queryset.filter(visibility_filter).order_by("-id")

    def get_serializer_class(self):
        if self.action == "list":
            return serializers.ApplicationListSerializer
        if self.action == "create":
            return serializers.ApplicationCreateSerializer
        if self.action in ["update", "partial_update"]:
            return serializers.ApplicationUpdateSerializer
        if self.action == "change_status":
            return serializers.ApplicationStatusChangeSerializer
        return serializers.ApplicationDetailSerializer

    def _detail_response(self, application, http_status=status.HTTP_200_OK):
        context = self.get_serializer_context()
        context.update(
            services.get_application_context(application, self.request.user)
        )
        serializer = serializers.ApplicationDetailSerializer(
            application, context=context
        )
        return Response(serializer.data, status=http_status)

    def _error_response(self, error):
        err_status = (
            status.HTTP_403_FORBIDDEN
            if isinstance(error, TransitionPermissionError)
            else status.HTTP_400_BAD_REQUEST
        )
        return Response({"error": str(error)}, status=err_status)

    def retrieve(self, request, *args, **kwargs):
        return self._detail_response(self.get_object())

    def create(self, request, *args, **kwargs):
        """
        Apply to an opportunity.
        The opportunity must be ACTIVE and not owned by the applicant.
        """
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            application = services.create_application(
                user=request.user, **serializer.validated_data
            )
        except WorkflowError as e:
            return self._error_response(e)
        return self._detail_response(application, status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        """Saves a draft. Only the applicant, only while DRAFT."""
        partial = kwargs.pop("partial", False)
        application = self.get_object()
        serializer = self.get_serializer(
            application, data=request.data, partial=partial
        )
        serializer.is_valid(raise_exception=True)

        try:
            application = services.update_application(
                application=application,
                user=request.user,
                **serializer.validated_data,
            )
        except WorkflowError as e:
            return self._error_response(e)
        return self._detail_response(application)

    @action(
        detail=True,
        methods=["patch"],
        url_path="status",
        url_name="status",
    )
    def change_status(self, request, pk=None):
        """Moves the application to a new status."""
        application = self.get_object()
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            application = services.change_application_status(
                application=application,
                user=request.user,
                new_status=serializer.validated_data["status"],
                reason=serializer.validated_data.get("reason"),
            )
        except WorkflowError as e:
            return self._error_response(e)
        return self._detail_response(application)

    @extend_schema(responses=ActionDescriptorSerializer(many=True))
    @action(
        detail=True, methods=["get"], url_path="actions", url_name="actions"
    )
    def list_actions(self, request, pk=None):
        application = self.get_object()
        context = services.get_application_context(
            application, request.user, include_save_action=False
        )
        serializer = ActionDescriptorSerializer(
            context["available_actions"],
            many=True,
            context={
                "workflow": APPLICATION_WORKFLOW,
                "current_status": application.status,
            },
        )
        return Response(serializer.data)

    @extend_schema(responses=StatusHistorySerializer(many=True))
    @action(detail=True, methods=["get"])
    def history(self, request, pk=None):
        application = self.get_object()
        entries = application.status_history.select_related("changed_by")
        return Response(StatusHistorySerializer(entries, many=True).data)
