# Generated manually for standalone django-pricing-rules package

import decimal

import django.db.models.deletion
from django.db import migrations, models

from django_pricing_rules.conf import SERVICE_MODEL


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(SERVICE_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="RuleGroup",
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
                    "created_at",
                    models.DateTimeField(auto_now_add=True, verbose_name="created at"),
                ),
                (
                    "updated_at",
                    models.DateTimeField(auto_now=True, verbose_name="updated at"),
                ),
                (
                    "attribute_name",
                    models.CharField(
                        help_text="Booking attribute key this group prices (e.g. floor_count)",
                        max_length=100,
                        verbose_name="attribute name",
                    ),
                ),
                (
                    "display_name",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Name shown to administrators",
                        max_length=200,
                        verbose_name="display name",
                    ),
                ),
                (
                    "service",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="pricing_rule_groups",
                        to=SERVICE_MODEL,
                        verbose_name="service",
                    ),
                ),
            ],
            options={
                "verbose_name": "rule group",
                "verbose_name_plural": "rule groups",
                "ordering": ["id"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("service", "attribute_name"),
                        name="pricing_rulegroup_unique_attribute",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Rule",
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
                    "created_at",
                    models.DateTimeField(auto_now_add=True, verbose_name="created at"),
                ),
                (
                    "updated_at",
                    models.DateTimeField(auto_now=True, verbose_name="updated at"),
                ),
                (
                    "kind",
                    models.CharField(
                        choices=[("range", "Numeric range"), ("option", "Discrete option")],
                        default="range",
                        max_length=10,
                        verbose_name="kind",
                    ),
                ),
                (
                    "min_value",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        help_text="Inclusive lower bound (range rules)",
                        max_digits=12,
                        null=True,
                        verbose_name="min value",
                    ),
                ),
                (
                    "max_value",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        help_text="Inclusive upper bound (range rules)",
                        max_digits=12,
                        null=True,
                        verbose_name="max value",
                    ),
                ),
                (
                    "option_key",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Value matched exactly (option rules)",
                        max_length=100,
                        verbose_name="option key",
                    ),
                ),
                (
                    "option_label",
                    models.CharField(
                        blank=True,
                        default="",
                        max_length=200,
                        verbose_name="option label",
                    ),
                ),
                (
                    "extra_price",
                    models.DecimalField(
                        decimal_places=2,
                        default=decimal.Decimal("0.00"),
                        help_text="Signed price delta added when this rule matches",
                        max_digits=12,
                        verbose_name="extra price",
                    ),
                ),
                (
                    "is_custom_quote_trigger",
                    models.BooleanField(
                        default=False,
                        help_text="Matching this rule routes the booking to manual quoting",
                        verbose_name="custom quote trigger",
                    ),
                ),
                (
                    "rule_group",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="rules",
                        to="django_pricing_rules.rulegroup",
                        verbose_name="rule group",
                    ),
                ),
            ],
            options={
                "verbose_name": "rule",
                "verbose_name_plural": "rules",
                "ordering": ["id"],
                "constraints": [
                    models.CheckConstraint(
                        condition=(
                            models.Q(min_value__isnull=True)
                            | models.Q(max_value__isnull=True)
                            | models.Q(min_value__lte=models.F("max_value"))
                        ),
                        name="pricing_rule_min_lte_max",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="CustomQuoteRequest",
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
                    "created_at",
                    models.DateTimeField(auto_now_add=True, verbose_name="created at"),
                ),
                (
                    "updated_at",
                    models.DateTimeField(auto_now=True, verbose_name="updated at"),
                ),
                (
                    "user_id",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Requesting customer account, empty for guests",
                        max_length=255,
                        verbose_name="user id",
                    ),
                ),
                (
                    "customer_name",
                    models.CharField(max_length=200, verbose_name="customer name"),
                ),
                (
                    "customer_email",
                    models.EmailField(max_length=254, verbose_name="customer email"),
                ),
                (
                    "customer_phone",
                    models.CharField(
                        blank=True, default="", max_length=50, verbose_name="customer phone"
                    ),
                ),
                (
                    "request_data",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Booking attributes and free-form notes",
                        verbose_name="request data",
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("reviewed", "Reviewed"),
                            ("quoted", "Quoted"),
                            ("assigned", "Assigned"),
                        ],
                        db_index=True,
                        default="pending",
                        max_length=20,
                        verbose_name="status",
                    ),
                ),
                (
                    "professional_id",
                    models.CharField(
                        blank=True, default="", max_length=255, verbose_name="professional id"
                    ),
                ),
                (
                    "triggering_attribute",
                    models.CharField(
                        blank=True,
                        default="",
                        max_length=100,
                        verbose_name="triggering attribute",
                    ),
                ),
                (
                    "service",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="custom_quote_requests",
                        to=SERVICE_MODEL,
                        verbose_name="service",
                    ),
                ),
                (
                    "triggering_rule",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="custom_quote_requests",
                        to="django_pricing_rules.rule",
                        verbose_name="triggering rule",
                    ),
                ),
            ],
            options={
                "verbose_name": "custom quote request",
                "verbose_name_plural": "custom quote requests",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["service", "status"],
                        name="pricing_quote_service_status",
                    ),
                ],
            },
        ),
    ]
