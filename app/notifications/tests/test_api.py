"""
Tests for the notifications API.
"""

from django.test import TestCase
from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework.test import APIClient
from rest_framework import status

from notifications.models import Notification

LIST_URL = reverse("notifications:notification-list")


def mark_read_url(notification_id):
    return reverse(
        "notifications:notification-mark-read", args=[notification_id]
    )


class NotificationApiTests(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.host = get_user_model().objects.create_user(
            email="host@example.com", password="tstpw123", role="HOST"
        )
        self.other = get_user_model().objects.create_user(
            email="other@example.com", password="tstpw123", role="USER"
        )
        self.mine = self._create(self.host)
        self.theirs = self._create(self.other)

    def _create(self, recipient):
        return Notification.objects.create(
            entity_type=Notification.EntityType.OPPORTUNITY,
            entity_id=1,
            event_type=Notification.EventType.OPPORTUNITY_STATUS_CHANGED,
            recipient=recipient,
            payload={"to_status": "ACTIVE"},
        )

    def test_auth_required(self):
        res = self.client.get(LIST_URL)

        self.assertEqual(res.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_lists_only_own(self):
        self.client.force_authenticate(self.host)

        res = self.client.get(LIST_URL)

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual([item["id"] for item in res.data], [self.mine.id])
        self.assertEqual(res.data[0]["payload"], {"to_status": "ACTIVE"})

    def test_mark_read(self):
        self.client.force_authenticate(self.host)

        res = self.client.post(mark_read_url(self.mine.id))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertTrue(res.data["is_read"])
        self.mine.refresh_from_db()
        self.assertTrue(self.mine.is_read)

    def test_cannot_mark_others(self):
        self.client.force_authenticate(self.host)

        res = self.client.post(mark_read_url(self.theirs.id))

        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)

    def test_filter_unread(self):
        self.mine.mark_read()
        self._create(self.host)
        self.client.force_authenticate(self.host)

        res = self.client.get(LIST_URL, {"is_read": "false"})

        self.assertEqual(len(res.data), 1)
