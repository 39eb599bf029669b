"""
Views for the opportunities APIs.
"""

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.authentication import TokenAuthentication
from rest_framework.permissions import IsAuthenticatedOrReadOnly
from rest_framework.pagination import PageNumberPagination

from core.serializers import (
    ActionDescriptorSerializer,
    StatusHistorySerializer,
)
from core.workflows import TransitionPermissionError, WorkflowError
from .models import Opportunity
from . import serializers
from . import services
from .filters import OpportunityFilter
from .permissions import IsHostOrAdmin, IsOpportunityHostOrAdmin
from .workflows import OPPORTUNITY_WORKFLOW


class StandardResultsSetPagination(PageNumberPagination):
    """Provides pagination for output."""

    page_size = 50
    page_size_query_param = "page_size"
    max_page_size = 100


def _error_response(error):
    """Maps a workflow error to a 403 or 400 response."""
    err_status = (
        status.HTTP_403_FORBIDDEN
        if isinstance(error, TransitionPermissionError)
        else status.HTTP_400_BAD_REQUEST
    )
    return Response({"error": str(error)}, status=err_status)


def _include_save(request) -> bool:
    value = request.query_params.get("include_save", "")
    return value.lower() in ("1", "true", "yes")


class OpportunityViewSet(viewsets.ModelViewSet):
    """View for managing opportunities APIs."""

    queryset = Opportunity.objects.all()
    authentication_classes = [TokenAuthentication]
    permission_classes = [
        IsAuthenticatedOrReadOnly,
        IsHostOrAdmin,
        IsOpportunityHostOrAdmin,
    ]
    pagination_class = StandardResultsSetPagination
    filterset_class = OpportunityFilter

    def get_queryset(self):
        """Applies the role-based visibility filter."""
        queryset = super().get_queryset().select_related("host")
        visibility_filter = services.get_opportunity_visibility_filter(
            self.request.user
        )
        return queryset.filter(visibility_filter).order_by("-id")

    def get_serializer_class(self):
        """Return the serializer class for request based on action."""
        if self.action == "list":
            return serializers.OpportunityListSerializer
        if self.action == "create":
            return serializers.OpportunityCreateSerializer
        if self.action in ["update", "partial_update"]:
            return serializers.OpportunityUpdateSerializer
        if self.action == "change_status":
            return serializers.OpportunityStatusChangeSerializer

        return serializers.OpportunityDetailSerializer

    def _detail_response(self, opportunity, http_status=status.HTTP_200_OK):
        """Detail payload with the requester's contextual data."""
        context = self.get_serializer_context()
        context.update(
            services.get_opportunity_context(opportunity, self.request.user)
        )
        serializer = serializers.OpportunityDetailSerializer(
            opportunity, context=context
        )
        return Response(serializer.data, status=http_status)

    def retrieve(self, request, *args, **kwargs):
        """Retrieve a single opportunity with contextual data."""
        return self._detail_response(self.get_object())

    # --- Core CRUD Actions ---

    def create(self, request, *args, **kwargs):
        """
        Create a new opportunity in DRAFT.
        Permission: Host or admin only (enforced in services).
        """
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            opportunity = services.create_opportunity(
                user=request.user, **serializer.validated_data
            )
        except WorkflowError as e:
            return _error_response(e)
        return self._detail_response(opportunity, status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        """Updates the fields the current status allows."""
        partial = kwargs.pop("partial", False)
        opportunity = self.get_object()
        serializer = self.get_serializer(
            opportunity, data=request.data, partial=partial
        )
        serializer.is_valid(raise_exception=True)

        try:
            opportunity = services.update_opportunity(
                opportunity=opportunity,
                user=request.user,
                **serializer.validated_data,
            )
        except WorkflowError as e:
            return _error_response(e)
        return self._detail_response(opportunity)

    def destroy(self, request, *args, **kwargs):
        """Soft delete: the opportunity moves to DELETED."""
        opportunity = self.get_object()

        try:
            services.delete_opportunity(
                opportunity=opportunity, user=request.user
            )
        except WorkflowError as e:
            return _error_response(e)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # --- Workflow Actions ---

    @action(
        detail=True,
        methods=["patch"],
        url_path="status",
        url_name="status",
    )
    def change_status(self, request, pk=None):
        """
        Moves the opportunity to a new status.
        The reason is mandatory where the reason policy says so.
        """
        opportunity = self.get_object()
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            opportunity = services.change_opportunity_status(
                opportunity=opportunity,
                user=request.user,
                new_status=serializer.validated_data["status"],
                reason=serializer.validated_data.get("reason"),
            )
        except WorkflowError as e:
            return _error_response(e)
        return self._detail_response(opportunity)

    @extend_schema(
        parameters=[
            OpenApiParameter(
                "include_save",
                OpenApiTypes.BOOL,
                description="Also list save actions of the status.",
            )
        ],
        responses=ActionDescriptorSerializer(many=True),
    )
    @action(
        detail=True, methods=["get"], url_path="actions", url_name="actions"
    )
    def list_actions(self, request, pk=None):
        """Actions the requester may take on the opportunity right now."""
        opportunity = self.get_object()
        context = services.get_opportunity_context(
            opportunity,
            request.user,
            include_save_action=_include_save(request),
        )
        serializer = ActionDescriptorSerializer(
            context["available_actions"],
            many=True,
            context={
                "workflow": OPPORTUNITY_WORKFLOW,
                "current_status": opportunity.status,
            },
        )
        return Response(serializer.data)

    @extend_schema(responses=StatusHistorySerializer(many=True))
    @action(detail=True, methods=["get"])
    def history(self, request, pk=None):
        """Status history of the opportunity, oldest first."""
        opportunity = self.get_object()
        entries = opportunity.status_history.select_related("changed_by")
        return Response(StatusHistorySerializer(entries, many=True).data)
