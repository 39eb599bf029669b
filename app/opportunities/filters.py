"""
Filters for the opportunities API.
"""

import django_filters
from django.db.models import Q
from rest_framework.exceptions import ValidationError

from .models import Opportunity, OpportunityStatus


class OpportunityFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=OpportunityStatus.choices)
    host = django_filters.CharFilter(method="filter_by_host")
    city = django_filters.CharFilter(field_name="city", lookup_expr="iexact")

    start_after = django_filters.DateFilter(
        field_name="start_date", lookup_expr="gte"
    )
    end_before = django_filters.DateFilter(
        field_name="end_date", lookup_expr="lte"
    )

    search = django_filters.CharFilter(method="filter_by_search")

    ordering = django_filters.OrderingFilter(
        fields=(
            ("created_at", "created_at"),
            ("published_at", "published_at"),
            ("start_date", "start_date"),
        )
    )

    class Meta:
        model = Opportunity
        fields = [
            "status",
            "host",
            "city",
            "start_after",
            "end_before",
            "search",
        ]

    def filter_by_host(self, queryset, name, value):
        if value == "me":
            user = getattr(self.request, "user", None)
            if not user or not user.is_authenticated:
                return queryset.none()
            return queryset.filter(host=user)
        try:
            host_id = int(value)
        except ValueError:
            raise ValidationError({"host": 'Enter a user id or "me".'})
        return queryset.filter(host_id=host_id)

    def filter_by_search(self, queryset, name, value):
        return queryset.filter(
            Q(title__icontains=value)
            | Q(short_description__icontains=value)
            | Q(description__icontains=value)
        )
