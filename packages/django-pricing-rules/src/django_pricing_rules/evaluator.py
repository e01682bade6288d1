"""Pure rule evaluation over frozen catalog snapshots.

- Groups are evaluated in ascending id order
- A missing attribute (None or a blank string) contributes nothing
- A value no rule matches contributes nothing
- Overlapping rules resolve to the smallest rule id
- The first matched custom quote trigger stops evaluation
- Deltas are summed as Decimal and quantized once at the end

Nothing here touches the database; catalog.load_service_snapshot() builds
the inputs.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple

from django_pricing_rules.exceptions import InvalidAttributeValue
from django_pricing_rules.results import CustomQuoteRequired, EvaluationResult, Priced


RANGE = 'range'
OPTION = 'option'


@dataclass(frozen=True)
class RuleSnapshot:
    """Read-only copy of a Rule taken at evaluation time."""
    id: int
    kind: str
    extra_price: Decimal
    is_custom_quote_trigger: bool = False
    min_value: Optional[Decimal] = None
    max_value: Optional[Decimal] = None
    option_key: str = ''

    def matches(self, value: Any) -> bool:
        """Check a single attribute value against this rule.

        Range values must already be Decimal (see coerce_numeric).
        """
        if self.kind == OPTION:
            return self.option_key == _option_key_for(value)
        return self.min_value <= value <= self.max_value


@dataclass(frozen=True)
class RuleGroupSnapshot:
    """Read-only copy of a RuleGroup and its rules."""
    id: int
    attribute_name: str
    rules: Tuple[RuleSnapshot, ...] = ()

    @property
    def has_ranges(self) -> bool:
        return any(rule.kind == RANGE for rule in self.rules)


def is_absent(value: Any) -> bool:
    """None and blank strings (an unfilled form field) mean the attribute was not supplied."""
    return value is None or (isinstance(value, str) and not value.strip())


def _option_key_for(value: Any) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


def coerce_numeric(value: Any) -> Optional[Decimal]:
    """Convert a booking attribute to Decimal, or None if it is not numeric.

    Floats go through str() so 7.1 becomes Decimal('7.1') rather than its
    binary expansion. Booleans are not numbers here.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, (int, float)):
        value = str(value)
    if isinstance(value, str):
        try:
            number = Decimal(value.strip())
        except InvalidOperation:
            return None
        return number if number.is_finite() else None
    return None


def select_rule(group: RuleGroupSnapshot, value: Any, service_id=None) -> Optional[RuleSnapshot]:
    """Return the single rule in group that matches value.

    When several rules match (overlapping bands), the one with the smallest
    id wins. Returns None when nothing matches.

    Raises:
        InvalidAttributeValue: If the group holds range rules and value
            is not numeric.
    """
    number = None
    if group.has_ranges:
        number = coerce_numeric(value)
        if number is None and not _option_matches_exist(group, value):
            raise InvalidAttributeValue(
                group.attribute_name, value,
                rule_group_id=group.id, service_id=service_id,
            )

    for rule in sorted(group.rules, key=lambda r: r.id):
        if rule.kind == RANGE:
            if number is not None and rule.matches(number):
                return rule
        elif rule.matches(value):
            return rule
    return None


def _option_matches_exist(group: RuleGroupSnapshot, value: Any) -> bool:
    return any(rule.kind == OPTION and rule.matches(value) for rule in group.rules)


def quantize(amount: Decimal, decimal_places: int = 2) -> Decimal:
    """Quantize with banker's rounding."""
    return amount.quantize(Decimal(10) ** -decimal_places, rounding=ROUND_HALF_EVEN)


def evaluate(
    groups: Iterable[RuleGroupSnapshot],
    attributes: Mapping[str, Any],
    decimal_places: int = 2,
    service_id=None,
) -> EvaluationResult:
    """Map booking attributes to a price adjustment or a custom quote outcome.

    Args:
        groups: Rule groups configured for the service.
        attributes: Attribute name -> value for one booking request.
            None or a blank string is treated as absent.
        decimal_places: Quantization of the returned total.
        service_id: Only used for error context.

    Returns:
        Priced or CustomQuoteRequired.

    Usage:
        result = evaluate(snapshot, {'floors': 7})
        if result.requires_custom_quote:
            ...
    """
    total = Decimal('0')
    matched: list[int] = []

    for group in sorted(groups, key=lambda g: g.id):
        value = attributes.get(group.attribute_name)
        if is_absent(value):
            continue

        rule = select_rule(group, value, service_id=service_id)
        if rule is None:
            continue

        if rule.is_custom_quote_trigger:
            return CustomQuoteRequired(
                triggering_rule_id=rule.id,
                triggering_attribute=group.attribute_name,
            )

        total += rule.extra_price
        matched.append(rule.id)

    return Priced(quantize(total, decimal_places), tuple(matched))


def explain(
    groups: Sequence[RuleGroupSnapshot],
    attributes: Mapping[str, Any],
    service_id=None,
) -> list[dict]:
    """Per-group breakdown of which rule each attribute selected.

    Does not short-circuit on custom quote triggers, so administrators can
    see every group's contribution. Not used for pricing.
    """
    rows = []
    for group in sorted(groups, key=lambda g: g.id):
        value = attributes.get(group.attribute_name)
        rule = None
        if not is_absent(value):
            rule = select_rule(group, value, service_id=service_id)
        rows.append({
            'rule_group_id': group.id,
            'attribute_name': group.attribute_name,
            'value': value,
            'rule_id': rule.id if rule else None,
            'extra_price': str(rule.extra_price) if rule else None,
            'is_custom_quote_trigger': bool(rule and rule.is_custom_quote_trigger),
        })
    return rows
