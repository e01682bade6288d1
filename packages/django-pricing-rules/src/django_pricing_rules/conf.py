"""Django Pricing Rules configuration.

All settings can be overridden in your Django settings.py.

Example:
    # settings.py
    PRICING_RULES_SERVICE_MODEL = 'marketplace.Service'
    PRICING_RULES_DECIMAL_PLACES = 2
"""

from django.apps import apps
from django.conf import settings


# =============================================================================
# SWAPPABLE MODELS
# =============================================================================

# Service model that rule groups and quote requests point at
# Must be set by consuming application
SERVICE_MODEL = getattr(
    settings,
    'PRICING_RULES_SERVICE_MODEL',
    'django_pricing_rules.Service'  # Default placeholder
)


def get_setting(name: str, default=None):
    """Get a setting with PRICING_RULES_ prefix."""
    return getattr(settings, f"PRICING_RULES_{name}", default)


def get_service_model():
    """Return the configured service model class."""
    return apps.get_model(SERVICE_MODEL, require_ready=False)


def get_decimal_places() -> int:
    """Decimal places the total adjustment is quantized to."""
    return int(get_setting('DECIMAL_PLACES', 2))


def reject_partial_overlaps() -> bool:
    """Whether partially overlapping bands are rejected instead of flagged."""
    return bool(get_setting('REJECT_PARTIAL_OVERLAPS', False))


# =============================================================================
# DEFAULT SETTINGS REFERENCE
# =============================================================================

# PRICING_RULES_SERVICE_MODEL = 'marketplace.Service'  # REQUIRED - priced service model
# PRICING_RULES_DECIMAL_PLACES = 2  # Optional - quantization of totals
# PRICING_RULES_REJECT_PARTIAL_OVERLAPS = False  # Optional - strict band authoring
