"""
URL mappings for the notifications app.
"""

from django.urls import path, include

from rest_framework.routers import DefaultRouter

from notifications import views

router = DefaultRouter()
router.register("notifications", views.NotificationViewSet)

app_name = "notifications"

urlpatterns = [
    path("", include(router.urls)),
]
