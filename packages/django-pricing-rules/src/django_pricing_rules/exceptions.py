"""Exceptions for django-pricing-rules."""

from django.core.exceptions import ValidationError


class PricingRulesError(Exception):
    """Base exception for pricing rule errors."""
    pass


class UnknownService(PricingRulesError):
    """Raised when a service id is not recognized by the catalog."""

    def __init__(self, service_id):
        self.service_id = service_id
        super().__init__(f"Service '{service_id}' is not known to the pricing catalog")


class CatalogUnavailable(PricingRulesError):
    """Raised when the rule catalog cannot be read or written."""

    def __init__(self, service_id=None, reason: str = ''):
        self.service_id = service_id
        self.reason = reason
        message = "Pricing catalog unavailable"
        if service_id is not None:
            message += f" for service '{service_id}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class RuleGroupNotFound(PricingRulesError):
    """Raised when a rule group id does not exist."""

    def __init__(self, rule_group_id):
        self.rule_group_id = rule_group_id
        super().__init__(f"Rule group '{rule_group_id}' not found")


class RuleNotFound(PricingRulesError):
    """Raised when a rule id does not exist."""

    def __init__(self, rule_id):
        self.rule_id = rule_id
        super().__init__(f"Rule '{rule_id}' not found")


class AuthoringConflict(PricingRulesError):
    """Raised when a rule or rule group mutation is rejected.

    Carries field-level messages so admin surfaces can render them next to
    the offending input.
    """

    def __init__(self, errors: dict[str, list[str]]):
        self.errors = errors
        parts = [f"{field}: {'; '.join(msgs)}" for field, msgs in errors.items()]
        super().__init__("Authoring conflict - " + " | ".join(parts))

    def to_validation_error(self) -> ValidationError:
        """Convert to a Django ValidationError keyed by field."""
        return ValidationError(self.errors)


class InvalidAttributeValue(PricingRulesError):
    """Raised when a booking attribute cannot be compared against its rules."""

    def __init__(self, attribute_name: str, value, rule_group_id=None, service_id=None):
        self.attribute_name = attribute_name
        self.value = value
        self.rule_group_id = rule_group_id
        self.service_id = service_id
        super().__init__(
            f"Attribute '{attribute_name}' has non-numeric value {value!r} "
            f"for rule group '{rule_group_id}' of service '{service_id}'"
        )


class InvalidTransition(PricingRulesError):
    """Raised when a custom quote request cannot move to the requested status."""

    def __init__(self, from_status: str, to_status: str, reason: str = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason or f"Cannot transition from '{from_status}' to '{to_status}'"
        super().__init__(self.reason)


class QuoteRequestNotFound(PricingRulesError):
    """Raised when a custom quote request id does not exist."""

    def __init__(self, quote_request_id):
        self.quote_request_id = quote_request_id
        super().__init__(f"Custom quote request '{quote_request_id}' not found")
