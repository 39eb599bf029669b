"""
URL mappings for the opportunities app.
"""

from django.urls import path, include

from rest_framework.routers import DefaultRouter

from opportunities import views

router = DefaultRouter()
router.register("opportunities", views.OpportunityViewSet)

app_name = "opportunities"

urlpatterns = [
    path("", include(router.urls)),
]
