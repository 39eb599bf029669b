import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


STATUS_CHOICES = [
    ("DRAFT", "Draft"),
    ("PENDING", "Pending review"),
    ("ACTIVE", "Active"),
    ("PAUSED", "Paused"),
    ("EXPIRED", "Expired"),
    ("FILLED", "Filled"),
    ("REJECTED", "Rejected"),
    ("ADMIN_PAUSED", "Paused by admin"),
    ("DELETED", "Deleted"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Opportunity",
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
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("title", models.CharField(max_length=100)),
                ("slug", models.SlugField(max_length=120, unique=True)),
                (
                    "short_description",
                    models.CharField(blank=True, max_length=200),
                ),
                ("description", models.TextField()),
                ("city", models.CharField(blank=True, max_length=100)),
                (
                    "capacity",
                    models.PositiveIntegerField(
                        default=1,
                        validators=[
                            django.core.validators.MinValueValidator(1)
                        ],
                    ),
                ),
                ("start_date", models.DateField(blank=True, null=True)),
                ("end_date", models.DateField(blank=True, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=STATUS_CHOICES, default="DRAFT", max_length=20
                    ),
                ),
                (
                    "published_at",
                    models.DateTimeField(blank=True, null=True),
                ),
                (
                    "host",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="opportunities",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "Opportunities",
            },
        ),
        migrations.CreateModel(
            name="OpportunityStatusHistory",
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
                    "status",
                    models.CharField(choices=STATUS_CHOICES, max_length=20),
                ),
                ("reason", models.TextField(blank=True, null=True)),
                (
                    "changed_at",
                    models.DateTimeField(default=django.utils.timezone.now),
                ),
                (
                    "changed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "opportunity",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="status_history",
                        to="opportunities.opportunity",
                    ),
                ),
            ],
            options={
                "verbose_name": "Opportunity Status Change",
                "verbose_name_plural": "Opportunity Status History",
                "ordering": ["changed_at", "id"],
                "abstract": False,
            },
        ),
    ]
