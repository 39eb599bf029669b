import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Notification",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "entity_type",
                    models.CharField(
                        choices=[
                            ("OPPORTUNITY", "Opportunity"),
                            ("APPLICATION", "Application"),
                        ],
                        max_length=30,
                    ),
                ),
                ("entity_id", models.IntegerField()),
                (
                    "event_type",
                    models.CharField(
                        choices=[
                            (
                                "OPPORTUNITY_STATUS_CHANGED",
                                "Opportunity Status Changed",
                            ),
                            ("APPLICATION_RECEIVED", "Application Received"),
                            ("APPLICATION_ACCEPTED", "Application Accepted"),
                            ("APPLICATION_REJECTED", "Application Rejected"),
                            (
                                "APPLICATION_WITHDRAWN",
                                "Application Withdrawn",
                            ),
                            ("APPLICATION_UPDATED", "Application Updated"),
                            ("CUSTOM", "Custom"),
                        ],
                        max_length=50,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "method",
                    models.CharField(
                        choices=[
                            ("SYSTEM", "System (in-app)"),
                            ("EMAIL", "Email"),
                        ],
                        default="SYSTEM",
                        max_length=30,
                    ),
                ),
                ("payload", models.JSONField(blank=True, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("queued", "Queued"),
                            ("sent", "Sent"),
                            ("failed", "Failed"),
                            ("canceled", "Canceled"),
                        ],
                        default="queued",
                        max_length=20,
                    ),
                ),
                ("is_read", models.BooleanField(default=False)),
                ("read_at", models.DateTimeField(blank=True, null=True)),
                (
                    "recipient",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="notifications",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "triggered_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="triggered_notifications",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
            },
        ),
    ]
