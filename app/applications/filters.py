"""
Filters for the applications API.
"""

import django_filters

from .models import Application, ApplicationStatus


class ApplicationFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=ApplicationStatus.choices)
    opportunity = django_filters.NumberFilter(field_name="opportunity_id")

    class Meta:
        model = Application
        fields = ["status", "opportunity"]
