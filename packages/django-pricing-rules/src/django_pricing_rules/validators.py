"""Authoring checks for rule and rule group mutations.

Every write path in services.py runs these checks server-side, whatever
client submitted the data. Hard errors are raised as AuthoringConflict and
never stored. Partial band overlaps are accepted with a warning because
evaluation resolves them to the oldest rule.
"""

from decimal import Decimal, InvalidOperation
from typing import Optional

from django.core.exceptions import ValidationError
from django.core.validators import DecimalValidator

from django_pricing_rules.catalog import service_exists
from django_pricing_rules.conf import reject_partial_overlaps
from django_pricing_rules.exceptions import AuthoringConflict
from django_pricing_rules.models import Rule, RuleGroup


def _message_dict(exc: ValidationError) -> dict[str, list[str]]:
    if hasattr(exc, 'error_dict'):
        return {field: [str(m) for m in msgs] for field, msgs in exc.message_dict.items()}
    return {'__all__': [str(m) for m in exc.messages]}


def bands_overlap(
    min_a: Decimal, max_a: Decimal, min_b: Decimal, max_b: Decimal
) -> bool:
    """Inclusive interval overlap; touching endpoints count as overlap."""
    return min_a <= max_b and min_b <= max_a


def check_rule(rule: Rule) -> tuple[dict[str, list[str]], list[str]]:
    """
    Check a rule against its own shape and its siblings.

    Checks:
    1. Shape: range rules need bounds, option rules need an option key
    2. Bounds: min_value <= max_value
    3. Exact duplicate band (or option key) in the same group
    4. Partial overlap with another band in the same group

    Args:
        rule: Unsaved or saved Rule with rule_group set

    Returns:
        Tuple of (field_errors, warnings)
    """
    errors: dict[str, list[str]] = {}
    warnings: list[str] = []

    try:
        rule.clean()
    except ValidationError as exc:
        for field, msgs in _message_dict(exc).items():
            errors.setdefault(field, []).extend(msgs)
    if errors:
        return errors, warnings

    siblings = Rule.objects.filter(rule_group_id=rule.rule_group_id)
    if rule.pk:
        siblings = siblings.exclude(pk=rule.pk)

    if rule.is_option:
        if siblings.options().filter(option_key=rule.option_key).exists():
            errors.setdefault('option_key', []).append(
                f"Option '{rule.option_key}' already exists in this rule group."
            )
        return errors, warnings

    if rule.min_value > rule.max_value:
        errors.setdefault('max_value', []).append(
            'Max value must be greater than or equal to min value.'
        )
        return errors, warnings

    for other in siblings.ranges().order_by('id'):
        if other.min_value == rule.min_value and other.max_value == rule.max_value:
            errors.setdefault('min_value', []).append(
                f"Band {rule.min_value}-{rule.max_value} duplicates rule {other.pk}."
            )
        elif bands_overlap(rule.min_value, rule.max_value, other.min_value, other.max_value):
            warnings.append(
                f"Band {rule.min_value}-{rule.max_value} overlaps rule {other.pk} "
                f"({other.min_value}-{other.max_value}); the older rule wins on ties."
            )

    if warnings and reject_partial_overlaps():
        errors.setdefault('min_value', []).extend(warnings)
        warnings = []

    return errors, warnings


def validate_rule(rule: Rule) -> list[str]:
    """
    Validate a rule before it is written.

    Returns:
        List of overlap warnings (accepted, not stored)

    Raises:
        AuthoringConflict: If the rule is malformed or duplicates a sibling
    """
    errors, warnings = check_rule(rule)
    if errors:
        raise AuthoringConflict(errors)
    return warnings


def validate_rule_group(rule_group: RuleGroup) -> None:
    """
    Validate a rule group before it is written.

    Raises:
        AuthoringConflict: If the service is unknown, or the attribute name
            is blank or already priced for the same service
    """
    errors: dict[str, list[str]] = {}
    attribute_name = (rule_group.attribute_name or '').strip()

    # An unknown service id may not even parse as a key, so check it first
    known_service = service_exists(rule_group.service_id)
    if not known_service:
        errors['service'] = [f"Service '{rule_group.service_id}' does not exist."]

    if not attribute_name:
        errors['attribute_name'] = ['Attribute name is required.']
    elif known_service:
        qs = RuleGroup.objects.filter(
            service_id=rule_group.service_id,
            attribute_name=attribute_name,
        )
        if rule_group.pk:
            qs = qs.exclude(pk=rule_group.pk)
        if qs.exists():
            errors['attribute_name'] = [
                f"Service already has a rule group for '{attribute_name}'."
            ]

    if errors:
        raise AuthoringConflict(errors)


def find_overlapping_rules(rule: Rule) -> list[Rule]:
    """Return sibling range rules whose band overlaps this rule's band."""
    if not rule.is_range or rule.min_value is None or rule.max_value is None:
        return []
    siblings = Rule.objects.ranges().filter(rule_group_id=rule.rule_group_id).order_by('id')
    if rule.pk:
        siblings = siblings.exclude(pk=rule.pk)
    return [
        other for other in siblings
        if bands_overlap(rule.min_value, rule.max_value, other.min_value, other.max_value)
    ]


def coerce_decimal(
    field: str,
    value,
    required: bool = False,
    max_digits: int = 12,
    decimal_places: int = 2,
) -> Optional[Decimal]:
    """
    Parse a numeric field submitted by an admin client.

    Free-text numbers ("10", " 4.50 ") are accepted; anything else is
    rejected here rather than trusted from client-side parsing.

    Raises:
        AuthoringConflict: If the value is not a finite number, does not fit
            the column's digits or decimal places, or is missing when required
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise AuthoringConflict({field: ['This field is required.']})
        return None
    if isinstance(value, bool):
        raise AuthoringConflict({field: ['Enter a valid number.']})
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation:
        raise AuthoringConflict({field: ['Enter a valid number.']})
    if not number.is_finite():
        raise AuthoringConflict({field: ['Enter a valid number.']})
    # Trailing zeros ("4.500") do not count against the column
    try:
        DecimalValidator(max_digits, decimal_places)(number.normalize())
    except ValidationError as exc:
        raise AuthoringConflict({field: [str(m) for m in exc.messages]})
    return number
