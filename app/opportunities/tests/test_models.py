"""
Tests for the models in the opportunities app.
"""

from datetime import timedelta

from django.test import TestCase
from django.contrib.auth import get_user_model
from django.db.models.deletion import ProtectedError
from django.utils import timezone

from opportunities.models import (
    Opportunity,
    OpportunityStatus,
    OpportunityStatusHistory,
)

User = get_user_model()


class OpportunityModelTests(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.host = User.objects.create_user(
            email="host@example.com", password="testpsw123", role="HOST"
        )

    def _create(self, **kwargs):
        defaults = {
            "host": self.host,
            "title": "Hostel helper in Tainan",
            "slug": "hostel-helper-in-tainan",
            "description": "Reception and cleaning, 4 hours a day.",
        }
        defaults.update(kwargs)
        return Opportunity.objects.create(**defaults)

    def test_create_opportunity_with_defaults(self):
        opportunity = self._create()

        self.assertEqual(opportunity.status, OpportunityStatus.DRAFT)
        self.assertEqual(opportunity.capacity, 1)
        self.assertIsNone(opportunity.published_at)
        self.assertEqual(str(opportunity), "Hostel helper in Tainan")

    def test_host_cannot_be_deleted_with_opportunities(self):
        self._create()

        with self.assertRaises(ProtectedError):
            self.host.delete()

    def test_history_is_ordered_oldest_first(self):
        opportunity = self._create()
        now = timezone.now()
        later = OpportunityStatusHistory.objects.create(
            opportunity=opportunity,
            status=OpportunityStatus.PENDING,
            changed_at=now,
        )
        earlier = OpportunityStatusHistory.objects.create(
            opportunity=opportunity,
            status=OpportunityStatus.DRAFT,
            changed_at=now - timedelta(hours=1),
        )

        self.assertEqual(
            list(opportunity.status_history.all()), [earlier, later]
        )

    def test_history_entries_cannot_be_modified(self):
        opportunity = self._create()
        entry = OpportunityStatusHistory.objects.create(
            opportunity=opportunity, status=OpportunityStatus.DRAFT
        )

        entry.reason = "rewritten"
        with self.assertRaises(ValueError):
            entry.save()

    def test_status_reason_uses_latest_entry_for_current_status(self):
        opportunity = self._create(status=OpportunityStatus.REJECTED)
        now = timezone.now()
        OpportunityStatusHistory.objects.create(
            opportunity=opportunity,
            status=OpportunityStatus.REJECTED,
            reason="Photos are missing",
            changed_at=now,
        )
        OpportunityStatusHistory.objects.create(
            opportunity=opportunity,
            status=OpportunityStatus.REJECTED,
            reason="Description is too short",
            changed_at=now - timedelta(days=3),
        )

        self.assertEqual(opportunity.status_reason, "Photos are missing")

    def test_status_reason_none_without_history(self):
        opportunity = self._create()

        self.assertIsNone(opportunity.status_reason)

    def test_history_entry_to_entry(self):
        opportunity = self._create()
        row = OpportunityStatusHistory.objects.create(
            opportunity=opportunity,
            status=OpportunityStatus.DRAFT,
            changed_by=self.host,
        )

        entry = row.to_entry()

        self.assertEqual(entry.status, "DRAFT")
        self.assertEqual(entry.changed_by, self.host.id)
        self.assertIsNone(entry.reason)
