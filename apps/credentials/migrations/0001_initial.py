from decimal import Decimal

from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Credential",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=120, unique=True)),
                ("awarding_body", models.CharField(blank=True, max_length=200)),
                (
                    "country",
                    models.CharField(help_text="ISO country code the credential is regulated in.", max_length=8),
                ),
                (
                    "hours_required",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=7,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                    ),
                ),
                ("cycle_length_years", models.PositiveSmallIntegerField(default=1)),
                ("ethics_hours", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=7)),
                ("structured_hours", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=7)),
            ],
            options={
                "ordering": ("name",),
            },
        ),
        migrations.CreateModel(
            name="CredentialGrant",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "jurisdiction",
                    models.CharField(blank=True, help_text="State or province the credential is held in.", max_length=16),
                ),
                (
                    "hours_required",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        help_text="Overrides the credential's default requirement when set.",
                        max_digits=7,
                        null=True,
                    ),
                ),
                (
                    "baseline_hours",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0"),
                        help_text="Self-reported hours completed before tracking began.",
                        max_digits=7,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                    ),
                ),
                ("renewal_deadline", models.DateField(blank=True, null=True)),
                ("is_primary", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "credential",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="grants",
                        to="credentials.credential",
                    ),
                ),
                (
                    "learner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="credential_grants",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ("-is_primary", "pk"),
            },
        ),
        migrations.AddConstraint(
            model_name="credentialgrant",
            constraint=models.UniqueConstraint(
                fields=("learner", "credential"),
                name="credentials_grant_unique_learner_credential",
            ),
        ),
    ]
