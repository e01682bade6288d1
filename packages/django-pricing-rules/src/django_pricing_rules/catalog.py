"""Rule catalog reads.

- Groups for a service come back in ascending id order
- Range rules come back by min_value, option rules by creation order
- load_service_snapshot() fetches one service's rules in a single statement
  and freezes them for the evaluator
- Database failures surface as CatalogUnavailable, never as empty results
"""
import logging
from itertools import groupby
from operator import itemgetter

from django.db import DatabaseError, transaction

from django_pricing_rules.conf import get_service_model
from django_pricing_rules.evaluator import RuleGroupSnapshot, RuleSnapshot
from django_pricing_rules.exceptions import (
    CatalogUnavailable,
    RuleGroupNotFound,
    RuleNotFound,
    UnknownService,
)
from django_pricing_rules.models import Rule, RuleGroup

logger = logging.getLogger(__name__)


def service_exists(service_id) -> bool:
    """Check whether the configured service model has this id."""
    Service = get_service_model()
    try:
        return Service.objects.filter(pk=service_id).exists()
    except (ValueError, TypeError):
        # Ids the primary key field cannot parse are simply unknown
        return False


def _ensure_service(service_id) -> None:
    if not service_exists(service_id):
        raise UnknownService(service_id)


def get_rule_groups_for_service(service_id) -> list[RuleGroup]:
    """
    Get all rule groups configured for a service.

    Returns:
        Groups in ascending id order; empty if none are configured

    Raises:
        UnknownService: If service_id is not a known service
        CatalogUnavailable: If the database cannot be read
    """
    try:
        _ensure_service(service_id)
        return list(RuleGroup.objects.for_service(service_id).order_by('id'))
    except DatabaseError as e:
        logger.error(f"Catalog read failed for service {service_id}: {e}")
        raise CatalogUnavailable(service_id, str(e)) from e


def get_rules_for_group(rule_group_id) -> list[Rule]:
    """
    Get the rules of one group in display order.

    Range rules are ordered by min_value ascending (ties by id); option
    rules follow in creation order.

    Raises:
        RuleGroupNotFound: If the group does not exist
        CatalogUnavailable: If the database cannot be read
    """
    try:
        if not RuleGroup.objects.filter(pk=rule_group_id).exists():
            raise RuleGroupNotFound(rule_group_id)
        rules = Rule.objects.filter(rule_group_id=rule_group_id)
        return (
            list(rules.ranges().order_by('min_value', 'id'))
            + list(rules.options().order_by('id'))
        )
    except DatabaseError as e:
        logger.error(f"Catalog read failed for rule group {rule_group_id}: {e}")
        raise CatalogUnavailable(reason=str(e)) from e


def get_rule_group(rule_group_id) -> RuleGroup:
    """Get a rule group by id or raise RuleGroupNotFound."""
    try:
        return RuleGroup.objects.get(pk=rule_group_id)
    except (RuleGroup.DoesNotExist, ValueError, TypeError):
        raise RuleGroupNotFound(rule_group_id)


def get_rule(rule_id) -> Rule:
    """Get a rule by id or raise RuleNotFound."""
    try:
        return Rule.objects.select_related('rule_group').get(pk=rule_id)
    except (Rule.DoesNotExist, ValueError, TypeError):
        raise RuleNotFound(rule_id)


def snapshot_rule(row: dict) -> RuleSnapshot:
    """Freeze one joined rule row for evaluation."""
    return RuleSnapshot(
        id=row['rules__id'],
        kind=row['rules__kind'],
        extra_price=row['rules__extra_price'],
        is_custom_quote_trigger=row['rules__is_custom_quote_trigger'],
        min_value=row['rules__min_value'],
        max_value=row['rules__max_value'],
        option_key=row['rules__option_key'] or '',
    )


def snapshot_rule_groups(rows) -> tuple[RuleGroupSnapshot, ...]:
    """Fold rows from RuleGroupQuerySet.rule_rows() into group snapshots."""
    snapshots = []
    for group_id, group_rows in groupby(rows, key=itemgetter('id')):
        group_rows = list(group_rows)
        snapshots.append(RuleGroupSnapshot(
            id=group_id,
            attribute_name=group_rows[0]['attribute_name'],
            rules=tuple(
                snapshot_rule(row) for row in group_rows if row['rules__id'] is not None
            ),
        ))
    return tuple(snapshots)


def load_service_snapshot(service_id) -> tuple[RuleGroupSnapshot, ...]:
    """
    Load every rule group and rule of a service in one consistent read.

    Groups and rules come from a single joined SELECT, so one evaluation
    never mixes rules from before and after a concurrent edit.

    Raises:
        UnknownService: If service_id is not a known service
        CatalogUnavailable: If the database cannot be read
    """
    try:
        with transaction.atomic():
            _ensure_service(service_id)
            rows = RuleGroup.objects.for_service(service_id).rule_rows()
            return snapshot_rule_groups(rows)
    except DatabaseError as e:
        logger.exception(f"Catalog snapshot failed for service {service_id}")
        raise CatalogUnavailable(service_id, str(e)) from e
