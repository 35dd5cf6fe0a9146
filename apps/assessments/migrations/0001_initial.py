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
    ]

    operations = [
        migrations.CreateModel(
            name="Assessment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                (
                    "pass_mark",
                    models.PositiveSmallIntegerField(
                        default=70,
                        help_text="Minimum percentage score required to pass.",
                        validators=[django.core.validators.MaxValueValidator(100)],
                    ),
                ),
                (
                    "max_attempts",
                    models.PositiveSmallIntegerField(
                        default=3,
                        validators=[django.core.validators.MinValueValidator(1)],
                    ),
                ),
                ("time_limit_minutes", models.PositiveSmallIntegerField(blank=True, null=True)),
                (
                    "hours_awarded",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0"),
                        max_digits=7,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
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
                ("questions", models.JSONField(blank=True, default=list)),
                ("active", models.BooleanField(db_index=True, default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ("title", "pk"),
            },
        ),
        migrations.CreateModel(
            name="AssessmentAttempt",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("answers", models.JSONField(default=list)),
                ("score", models.PositiveSmallIntegerField()),
                ("passed", models.BooleanField(db_index=True, default=False)),
                ("started_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "assessment",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="attempts",
                        to="assessments.assessment",
                    ),
                ),
                (
                    "learner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="assessment_attempts",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ("-completed_at", "-pk"),
            },
        ),
        migrations.AddIndex(
            model_name="assessmentattempt",
            index=models.Index(fields=["learner", "assessment"], name="assessments_attempt_owner_idx"),
        ),
        migrations.CreateModel(
            name="AttemptCounter",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "assessment",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="+",
                        to="assessments.assessment",
                    ),
                ),
                (
                    "learner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
        ),
        migrations.AddConstraint(
            model_name="attemptcounter",
            constraint=models.UniqueConstraint(
                fields=("learner", "assessment"),
                name="assessments_counter_unique_owner",
            ),
        ),
    ]
