from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("records", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Certificate",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=32, unique=True)),
                ("title", models.CharField(max_length=255)),
                ("credential_name", models.CharField(blank=True, max_length=120)),
                ("hours", models.DecimalField(decimal_places=2, max_digits=7)),
                (
                    "category",
                    models.CharField(
                        choices=[
                            ("ethics", "Ethics"),
                            ("technical", "Technical"),
                            ("general", "General"),
                            ("firm_element", "Firm element"),
                            ("practice_mgmt", "Practice management"),
                            ("professionalism", "Professionalism"),
                            ("other", "Other"),
                        ],
                        max_length=32,
                    ),
                ),
                (
                    "activity_type",
                    models.CharField(
                        choices=[
                            ("structured", "Structured"),
                            ("unstructured", "Unstructured"),
                            ("participatory", "Participatory"),
                            ("verifiable", "Verifiable"),
                            ("non_verifiable", "Non-verifiable"),
                        ],
                        default="structured",
                        max_length=32,
                    ),
                ),
                ("provider", models.CharField(blank=True, max_length=255)),
                ("completed_date", models.DateField()),
                ("issued_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("verification_url", models.CharField(max_length=500)),
                (
                    "status",
                    models.CharField(
                        choices=[("active", "Active"), ("revoked", "Revoked")],
                        db_index=True,
                        default="active",
                        max_length=16,
                    ),
                ),
                (
                    "status_set_at",
                    models.DateTimeField(
                        default=django.utils.timezone.now,
                        help_text="Timestamp when the current status was applied.",
                    ),
                ),
                (
                    "revoked_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="Timestamp when the certificate was revoked.",
                        null=True,
                    ),
                ),
                (
                    "status_reason",
                    models.TextField(
                        blank=True,
                        help_text="Optional reason describing why the status was applied.",
                    ),
                ),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "credit_record",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="certificates",
                        to="records.creditrecord",
                    ),
                ),
                (
                    "learner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="certificates",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ("-issued_at", "-pk"),
            },
        ),
    ]
