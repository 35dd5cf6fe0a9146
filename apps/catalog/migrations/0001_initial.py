from decimal import Decimal

from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("assessments", "0001_initial"),
        ("credentials", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Activity",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(blank=True, max_length=255)),
                ("description", models.TextField(blank=True)),
                (
                    "content_type",
                    models.CharField(
                        choices=[
                            ("live_webinar", "Live webinar"),
                            ("on_demand_video", "On-demand video"),
                            ("article", "Article"),
                            ("podcast", "Podcast"),
                            ("workshop", "Workshop"),
                            ("assessment_only", "Assessment only"),
                            ("bundle", "Bundle"),
                        ],
                        default="on_demand_video",
                        max_length=32,
                    ),
                ),
                (
                    "publish_status",
                    models.CharField(
                        choices=[("draft", "Draft"), ("published", "Published")],
                        db_index=True,
                        default="draft",
                        max_length=16,
                    ),
                ),
                ("version", models.PositiveIntegerField(default=1)),
                ("active", models.BooleanField(db_index=True, default=True)),
                ("published_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "approved_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="approved_activities",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "assessment",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="activities",
                        to="assessments.assessment",
                    ),
                ),
            ],
            options={
                "ordering": ("-updated_at", "-pk"),
                "verbose_name_plural": "activities",
            },
        ),
        migrations.CreateModel(
            name="CreditMapping",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "credit_unit",
                    models.CharField(
                        choices=[("hours", "Hours"), ("points", "Points")],
                        default="hours",
                        max_length=16,
                    ),
                ),
                (
                    "credit_amount",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=7,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.01"))],
                    ),
                ),
                (
                    "credit_category",
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
                ("structured", models.BooleanField(default=True)),
                ("country", models.CharField(db_index=True, max_length=8)),
                ("state_allow_list", models.JSONField(blank=True, default=list)),
                ("state_deny_list", models.JSONField(blank=True, default=list)),
                (
                    "validation_method",
                    models.CharField(
                        choices=[("quiz", "Quiz"), ("attendance", "Attendance"), ("other", "Other")],
                        default="quiz",
                        max_length=16,
                    ),
                ),
                ("active", models.BooleanField(db_index=True, default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "activity",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="credit_mappings",
                        to="catalog.activity",
                    ),
                ),
                (
                    "credential",
                    models.ForeignKey(
                        blank=True,
                        help_text="Restrict the mapping to holders of one credential.",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="credit_mappings",
                        to="credentials.credential",
                    ),
                ),
            ],
            options={
                "ordering": ("activity", "country", "pk"),
            },
        ),
        migrations.AddConstraint(
            model_name="creditmapping",
            constraint=models.CheckConstraint(
                condition=models.Q(("credit_amount__gt", 0)),
                name="catalog_mapping_positive_amount",
            ),
        ),
    ]
