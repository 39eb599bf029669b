"""
Tests for the Django admin interface of the applications app.
"""

from django.test import TestCase, Client
from django.contrib.auth import get_user_model
from django.urls import reverse

from applications.models import Application, ApplicationStatusHistory
from opportunities.models import Opportunity


class ApplicationAdminTests(TestCase):

    def setUp(self):
        self.client = Client()
        self.admin_user = get_user_model().objects.create_superuser(
            email="admin@example.com",
            password="adminpw123",
        )
        self.client.force_login(self.admin_user)
        applicant = get_user_model().objects.create_user(
            email="user@example.com", password="tstpw123"
        )
        opportunity = Opportunity.objects.create(
            host=self.admin_user,
            title="Homestay in Lukang",
            slug="homestay-in-lukang",
            description="Breakfast shifts.",
        )
        self.application = Application.objects.create(
            applicant=applicant, opportunity=opportunity
        )
        ApplicationStatusHistory.objects.create(
            application=self.application, status="PENDING"
        )

    def test_application_changelist_loads(self):
        url = reverse("admin:applications_application_changelist")
        response = self.client.get(url)

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "user@example.com")

    def test_application_change_page_loads(self):
        url = reverse(
            "admin:applications_application_change",
            args=[self.application.id],
        )
        response = self.client.get(url)

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "Application Status History")
