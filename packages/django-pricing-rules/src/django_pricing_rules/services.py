"""Pricing rule services.

- Rule and rule group writes validate server-side and never store a rejected row
- Writes to one rule group are serialized by locking the group row
- Deleting a rule group cascades to its rules
- compute_price() loads a service's rules once and evaluates them in memory
"""
import logging
from decimal import Decimal
from typing import Any, Mapping, Optional

from django.db import DatabaseError, IntegrityError, transaction

from django_pricing_rules.catalog import (
    get_rule,
    get_rule_group,
    get_rules_for_group,
    load_service_snapshot,
)
from django_pricing_rules.conf import get_decimal_places
from django_pricing_rules.evaluator import evaluate, explain
from django_pricing_rules.exceptions import AuthoringConflict, CatalogUnavailable, RuleGroupNotFound
from django_pricing_rules.models import Rule, RuleGroup
from django_pricing_rules.results import EvaluationResult
from django_pricing_rules.validators import coerce_decimal, validate_rule, validate_rule_group

logger = logging.getLogger(__name__)


# =============================================================================
# Evaluation
# =============================================================================

def compute_price(service_id, attributes: Mapping[str, Any]) -> EvaluationResult:
    """
    Evaluate booking attributes against a service's pricing rules.

    The caller composes the final price (base price + adjustment + fees);
    this only returns the rule-driven adjustment.

    Args:
        service_id: Primary key of the configured service model
        attributes: Attribute name -> numeric or string value

    Returns:
        Priced or CustomQuoteRequired

    Raises:
        UnknownService: If service_id is not a known service
        CatalogUnavailable: If the rules cannot be read
        InvalidAttributeValue: If a value cannot be compared to its band rules

    Usage:
        result = compute_price(service.pk, {'floors': 7})
        if result.requires_custom_quote:
            redirect_to_quote_form(result.triggering_attribute)
        else:
            total = service.price + result.total_adjustment
    """
    groups = load_service_snapshot(service_id)
    result = evaluate(
        groups,
        attributes,
        decimal_places=get_decimal_places(),
        service_id=service_id,
    )
    logger.info(
        f"Evaluated pricing for service {service_id}: {result.outcome} "
        f"({len(groups)} rule groups)"
    )
    return result


def explain_price(service_id, attributes: Mapping[str, Any]) -> list[dict]:
    """Per-group breakdown of rule matches for diagnostic display."""
    return explain(load_service_snapshot(service_id), attributes, service_id=service_id)


# =============================================================================
# Rule groups
# =============================================================================

def _lock_group(rule_group_id) -> RuleGroup:
    try:
        return RuleGroup.objects.select_for_update().get(pk=rule_group_id)
    except (RuleGroup.DoesNotExist, ValueError, TypeError):
        raise RuleGroupNotFound(rule_group_id)


def _write(operation: str, func, *args, **kwargs):
    """Run a catalog write, reporting database failures as CatalogUnavailable."""
    try:
        return func(*args, **kwargs)
    except IntegrityError as e:
        logger.warning(f"Catalog write '{operation}' rejected by constraint: {e}")
        raise AuthoringConflict({'__all__': [str(e)]}) from e
    except DatabaseError as e:
        logger.error(f"Catalog write '{operation}' failed: {e}")
        raise CatalogUnavailable(reason=str(e)) from e


@transaction.atomic
def _create_rule_group(service_id, attribute_name: str, display_name: str) -> RuleGroup:
    rule_group = RuleGroup(
        service_id=service_id,
        attribute_name=(attribute_name or '').strip(),
        display_name=(display_name or '').strip(),
    )
    validate_rule_group(rule_group)
    rule_group.save()
    return rule_group


def create_rule_group(service_id, attribute_name: str, display_name: str = '') -> RuleGroup:
    """
    Create a rule group for one attribute of a service.

    Raises:
        AuthoringConflict: If the service is unknown or already has a group
            for this attribute
    """
    rule_group = _write('create_rule_group', _create_rule_group, service_id, attribute_name, display_name)
    logger.info(
        f"Created rule group {rule_group.pk} '{rule_group.attribute_name}' "
        f"for service {service_id}"
    )
    return rule_group


@transaction.atomic
def _update_rule_group(rule_group_id, attribute_name, display_name) -> RuleGroup:
    rule_group = _lock_group(rule_group_id)
    if attribute_name is not None:
        rule_group.attribute_name = attribute_name.strip()
    if display_name is not None:
        rule_group.display_name = display_name.strip()
    validate_rule_group(rule_group)
    rule_group.save()
    return rule_group


def update_rule_group(
    rule_group_id,
    attribute_name: Optional[str] = None,
    display_name: Optional[str] = None,
) -> RuleGroup:
    """
    Rename a rule group. Fields left as None are unchanged.

    Raises:
        RuleGroupNotFound: If the group does not exist
        AuthoringConflict: If the new attribute name is blank or taken
    """
    rule_group = _write('update_rule_group', _update_rule_group, rule_group_id, attribute_name, display_name)
    logger.info(f"Updated rule group {rule_group.pk}")
    return rule_group


@transaction.atomic
def _delete_rule_group(rule_group_id) -> int:
    rule_group = _lock_group(rule_group_id)
    rule_count = rule_group.rules.count()
    rule_group.delete()
    return rule_count


def delete_rule_group(rule_group_id) -> int:
    """
    Delete a rule group and, by cascade, all of its rules.

    Returns:
        Number of rules deleted with the group

    Raises:
        RuleGroupNotFound: If the group does not exist
    """
    rule_count = _write('delete_rule_group', _delete_rule_group, rule_group_id)
    logger.info(f"Deleted rule group {rule_group_id} and {rule_count} rules")
    return rule_count


# =============================================================================
# Rules
# =============================================================================

def _apply_rule_fields(rule: Rule, fields: Mapping[str, Any]) -> None:
    """Copy submitted fields onto a rule, parsing numbers server-side."""
    if 'kind' in fields:
        kind = fields['kind']
        if kind not in Rule.Kind.values:
            raise AuthoringConflict({'kind': [f"Unknown rule kind '{kind}'."]})
        rule.kind = kind
    for name in ('min_value', 'max_value', 'extra_price'):
        if name in fields:
            column = Rule._meta.get_field(name)
            setattr(rule, name, coerce_decimal(
                name,
                fields[name],
                required=name == 'extra_price',
                max_digits=column.max_digits,
                decimal_places=column.decimal_places,
            ))
    for name in ('option_key', 'option_label'):
        if name in fields:
            setattr(rule, name, (fields[name] or '').strip())
    if 'is_custom_quote_trigger' in fields:
        rule.is_custom_quote_trigger = bool(fields['is_custom_quote_trigger'])


@transaction.atomic
def _create_rule(rule_group_id, fields) -> tuple[Rule, list[str]]:
    rule_group = _lock_group(rule_group_id)
    rule = Rule(rule_group=rule_group)
    if 'kind' not in fields and fields.get('option_key'):
        fields = {**fields, 'kind': Rule.Kind.OPTION}
    _apply_rule_fields(rule, fields)
    warnings = validate_rule(rule)
    rule.save()
    return rule, warnings


def create_rule(
    rule_group_id,
    *,
    kind: Optional[str] = None,
    min_value=None,
    max_value=None,
    option_key: str = '',
    option_label: str = '',
    extra_price=Decimal('0'),
    is_custom_quote_trigger: bool = False,
) -> Rule:
    """
    Create a band or option rule inside an existing rule group.

    When kind is omitted it is inferred: an option_key makes an option
    rule, otherwise a range rule.

    Returns:
        The created Rule. rule.overlap_warnings lists accepted partial
        overlaps with sibling bands.

    Raises:
        RuleGroupNotFound: If the group does not exist
        AuthoringConflict: If bounds are invalid or duplicate a sibling

    Usage:
        rule = create_rule(group.pk, min_value=4, max_value=10, extra_price='50')
    """
    fields = {
        'min_value': min_value,
        'max_value': max_value,
        'option_key': option_key,
        'option_label': option_label,
        'extra_price': extra_price,
        'is_custom_quote_trigger': is_custom_quote_trigger,
    }
    if kind is not None:
        fields['kind'] = kind

    rule, warnings = _write('create_rule', _create_rule, rule_group_id, fields)
    rule.overlap_warnings = warnings
    for warning in warnings:
        logger.warning(f"Rule {rule.pk} in group {rule_group_id}: {warning}")
    logger.info(f"Created rule {rule.pk} in group {rule_group_id}")
    return rule


@transaction.atomic
def _update_rule(rule_id, fields) -> tuple[Rule, list[str]]:
    existing = get_rule(rule_id)
    target_group_id = fields.get('rule_group_id', existing.rule_group_id)

    # Lock every group the rule touches, in id order
    for group_id in sorted({existing.rule_group_id, target_group_id}):
        _lock_group(group_id)

    rule = Rule.objects.get(pk=rule_id)
    rule.rule_group_id = target_group_id
    _apply_rule_fields(rule, fields)
    warnings = validate_rule(rule)
    rule.save()
    return rule, warnings


def update_rule(rule_id, **fields) -> Rule:
    """
    Update a rule. Only the given fields change.

    Accepts rule_group_id, kind, min_value, max_value, option_key,
    option_label, extra_price and is_custom_quote_trigger.

    Raises:
        RuleNotFound: If the rule does not exist
        RuleGroupNotFound: If moved to a group that does not exist
        AuthoringConflict: If the result is invalid or duplicates a sibling
    """
    allowed = {
        'rule_group_id', 'kind', 'min_value', 'max_value', 'option_key',
        'option_label', 'extra_price', 'is_custom_quote_trigger',
    }
    unknown = set(fields) - allowed
    if unknown:
        raise AuthoringConflict({name: ['Unknown field.'] for name in sorted(unknown)})

    rule, warnings = _write('update_rule', _update_rule, rule_id, fields)
    rule.overlap_warnings = warnings
    for warning in warnings:
        logger.warning(f"Rule {rule.pk} in group {rule.rule_group_id}: {warning}")
    logger.info(f"Updated rule {rule.pk}")
    return rule


@transaction.atomic
def _delete_rule(rule_id) -> None:
    rule = get_rule(rule_id)
    _lock_group(rule.rule_group_id)
    rule.delete()


def delete_rule(rule_id) -> None:
    """
    Delete a single rule.

    Raises:
        RuleNotFound: If the rule does not exist
    """
    _write('delete_rule', _delete_rule, rule_id)
    logger.info(f"Deleted rule {rule_id}")


def get_rule_group_detail(rule_group_id) -> dict:
    """Rule group with its rules as plain dicts, for admin screens."""
    rule_group = get_rule_group(rule_group_id)
    data = rule_group.as_dict()
    data['rules'] = [rule.as_dict() for rule in get_rules_for_group(rule_group.pk)]
    return data
