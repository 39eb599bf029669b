"""
Tests for the Django admin modifications, custom user model.
"""

from django.test import TestCase, Client
from django.contrib.auth import get_user_model
from django.urls import reverse


class AdminSiteCustomUserModelTests(TestCase):
    """Tests for Django Admin, custom user model."""

    def setUp(self):
        """Initial setup, create user and client."""
        self.client = Client()
        self.admin_user = get_user_model().objects.create_superuser(
            email="admin@example.com",
            password="test_pass123",
        )
        self.client.force_login(self.admin_user)

        self.user = get_user_model().objects.create_user(
            email="user@example.com",
            password="testpass123",
            full_name="Test User",
            role="HOST",
        )

    def test_users_list(self):
        """Test that users are listed on the page."""
        url = reverse("admin:users_user_changelist")
        res = self.client.get(url)

        self.assertContains(res, self.user.full_name)
        self.assertContains(res, self.user.email)

    def test_edit_user_page_displays_role(self):
        url = reverse("admin:users_user_change", args=[self.user.id])
        res = self.client.get(url)

        self.assertEqual(res.status_code, 200)
        self.assertContains(res, 'name="role"')

    def test_create_user_page(self):
        """Test the create user page works."""
        url = reverse("admin:users_user_add")
        res = self.client.get(url)

        self.assertEqual(res.status_code, 200)

    def test_readonly_fields_are_not_editable(self):
        """Test that a POST request cannot change a readonly field."""
        url = reverse("admin:users_user_change", args=[self.user.id])
        original_date_joined = self.user.date_joined

        payload = {
            "email": "newemail@example.com",
            "full_name": "New Name",
            "role": "ADMIN",
            "date_joined_0": "2020-01-01",  # Attempting to change date
            "date_joined_1": "12:00:00",
            "is_active": "on",
            "is_staff": "",
            "is_superuser": "",
        }

        res = self.client.post(url, payload)

        self.assertEqual(res.status_code, 302)  # Successful POST redirects

        self.user.refresh_from_db()
        self.assertEqual(self.user.email, "newemail@example.com")
        self.assertEqual(self.user.role, "ADMIN")
        self.assertEqual(self.user.date_joined, original_date_joined)
