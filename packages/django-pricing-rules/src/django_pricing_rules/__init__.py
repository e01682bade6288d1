"""Django Pricing Rules - Tiered pricing rules with custom quote triggers.

Provides:
- RuleGroup: One priceable attribute dimension (e.g. floor count) for a service
- Rule: A numeric band or discrete option with a price delta
- CustomQuoteRequest: Manual quoting request raised when pricing is not automatic
- compute_price: Evaluate booking attributes into an adjustment or a custom quote

Usage:
    INSTALLED_APPS = [
        ...
        'django_pricing_rules',
    ]

    # Configure swappable service model
    PRICING_RULES_SERVICE_MODEL = 'marketplace.Service'

See conf.py for all configuration options.
"""

__version__ = "0.1.0"

__all__ = [
    "compute_price",
    "evaluate",
    "Priced",
    "CustomQuoteRequired",
]


def __getattr__(name):
    """Lazy import to avoid AppRegistryNotReady errors."""
    if name == "compute_price":
        from django_pricing_rules.services import compute_price
        return compute_price
    if name == "evaluate":
        from django_pricing_rules.evaluator import evaluate
        return evaluate
    if name in ("Priced", "CustomQuoteRequired"):
        from django_pricing_rules import results
        return getattr(results, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
