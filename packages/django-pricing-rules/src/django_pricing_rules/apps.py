"""Django Pricing Rules app configuration."""

from django.apps import AppConfig


class DjangoPricingRulesConfig(AppConfig):
    """Configuration for django-pricing-rules app."""

    name = "django_pricing_rules"
    verbose_name = "Pricing Rules"
    default_auto_field = "django.db.models.BigAutoField"
