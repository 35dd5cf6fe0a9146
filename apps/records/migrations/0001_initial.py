from decimal import Decimal

from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("assessments", "0001_initial"),
        ("catalog", "0001_initial"),
        ("credentials", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="CreditRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=255)),
                ("provider", models.CharField(blank=True, max_length=255)),
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
                (
                    "hours",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=7,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.01"))],
                    ),
                ),
                ("date", models.DateField(default=django.utils.timezone.localdate)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("completed", "Completed"),
                            ("in_progress", "In progress"),
                            ("planned", "Planned"),
                        ],
                        db_index=True,
                        default="completed",
                        max_length=16,
                    ),
                ),
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
                        default="general",
                        max_length=32,
                    ),
                ),
                (
                    "provenance",
                    models.CharField(
                        choices=[
                            ("manual", "Manual entry"),
                            ("platform", "Issued by the platform"),
                            ("imported", "Imported transcript"),
                        ],
                        default="manual",
                        max_length=16,
                    ),
                ),
                (
                    "progress",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Learner progress signals such as watch_percent or attendance_confirmed.",
                    ),
                ),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "activity",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="credit_records",
                        to="catalog.activity",
                    ),
                ),
                (
                    "learner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="credit_records",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "source_attempt",
                    models.OneToOneField(
                        blank=True,
                        help_text="Attempt whose pass produced this record; one record per attempt.",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="credit_record",
                        to="assessments.assessmentattempt",
                    ),
                ),
            ],
            options={
                "ordering": ("-date", "-pk"),
            },
        ),
        migrations.AddConstraint(
            model_name="creditrecord",
            constraint=models.CheckConstraint(
                condition=models.Q(("hours__gt", 0)),
                name="records_credit_record_positive_hours",
            ),
        ),
        migrations.CreateModel(
            name="Evidence",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("file_name", models.CharField(max_length=255)),
                ("file_type", models.CharField(max_length=64)),
                ("file_size", models.PositiveIntegerField(default=0)),
                ("storage_key", models.CharField(max_length=512, unique=True)),
                ("uploaded_at", models.DateTimeField(auto_now_add=True)),
                (
                    "credit_record",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="evidence",
                        to="records.creditrecord",
                    ),
                ),
                (
                    "learner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="evidence",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ("-uploaded_at", "-pk"),
                "verbose_name_plural": "evidence",
            },
        ),
        migrations.CreateModel(
            name="CompletionRule",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                (
                    "rule_type",
                    models.CharField(
                        choices=[
                            ("quiz_pass", "Quiz pass"),
                            ("evidence_upload", "Evidence upload"),
                            ("watch_time", "Watch time"),
                            ("attendance", "Attendance"),
                        ],
                        max_length=32,
                    ),
                ),
                ("config", models.JSONField(blank=True, default=dict)),
                ("active", models.BooleanField(default=True)),
                ("position", models.PositiveSmallIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "credit_record",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="completion_rules",
                        to="records.creditrecord",
                    ),
                ),
            ],
            options={
                "ordering": ("position", "pk"),
            },
        ),
        migrations.CreateModel(
            name="CreditAllocation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "hours",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=7,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "credit_record",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="allocations",
                        to="records.creditrecord",
                    ),
                ),
                (
                    "grant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="allocations",
                        to="credentials.credentialgrant",
                    ),
                ),
            ],
            options={
                "ordering": ("credit_record", "pk"),
            },
        ),
        migrations.AddConstraint(
            model_name="creditallocation",
            constraint=models.UniqueConstraint(
                fields=("credit_record", "grant"),
                name="records_allocation_unique_grant",
            ),
        ),
        migrations.AddConstraint(
            model_name="creditallocation",
            constraint=models.CheckConstraint(
                condition=models.Q(("hours__gte", 0)),
                name="records_allocation_non_negative_hours",
            ),
        ),
    ]
