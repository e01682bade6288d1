"""Tests for authoring checks."""
from decimal import Decimal

import pytest

from django_pricing_rules.exceptions import AuthoringConflict
from django_pricing_rules.models import Rule, RuleGroup
from django_pricing_rules.validators import (
    bands_overlap,
    check_rule,
    coerce_decimal,
    find_overlapping_rules,
    validate_rule,
    validate_rule_group,
)
from tests.testapp.models import Service


@pytest.fixture
def service():
    """Create a test service."""
    return Service.objects.create(service_name='Fire Risk Assessment')


@pytest.fixture
def floors(service):
    """Floors group with bands 1-3 and 4-10."""
    group = RuleGroup.objects.create(service=service, attribute_name='floors')
    Rule.objects.create(rule_group=group, min_value=1, max_value=3)
    Rule.objects.create(rule_group=group, min_value=4, max_value=10, extra_price=Decimal('50'))
    return group


class TestBandsOverlap:
    """Inclusive interval overlap."""

    def test_disjoint(self):
        assert bands_overlap(Decimal('1'), Decimal('3'), Decimal('4'), Decimal('10')) is False

    def test_shared_endpoint_overlaps(self):
        assert bands_overlap(Decimal('1'), Decimal('3'), Decimal('3'), Decimal('6')) is True

    def test_containment_overlaps(self):
        assert bands_overlap(Decimal('1'), Decimal('100'), Decimal('50'), Decimal('60')) is True


@pytest.mark.django_db
class TestCheckRule:
    """Tests for check_rule."""

    def test_adjacent_band_is_clean(self, floors):
        rule = Rule(rule_group=floors, min_value=Decimal('11'), max_value=Decimal('20'))

        assert check_rule(rule) == ({}, [])

    def test_exact_duplicate_band_is_an_error(self, floors):
        rule = Rule(rule_group=floors, min_value=Decimal('4'), max_value=Decimal('10'))

        errors, warnings = check_rule(rule)

        assert 'min_value' in errors
        assert 'duplicates rule' in errors['min_value'][0]
        assert warnings == []

    def test_partial_overlap_is_a_warning(self, floors):
        rule = Rule(rule_group=floors, min_value=Decimal('8'), max_value=Decimal('12'))

        errors, warnings = check_rule(rule)

        assert errors == {}
        assert len(warnings) == 1
        assert 'older rule wins' in warnings[0]

    def test_partial_overlap_rejected_in_strict_mode(self, floors, settings):
        settings.PRICING_RULES_REJECT_PARTIAL_OVERLAPS = True
        rule = Rule(rule_group=floors, min_value=Decimal('8'), max_value=Decimal('12'))

        errors, warnings = check_rule(rule)

        assert 'min_value' in errors
        assert warnings == []

    def test_inverted_bounds(self, floors):
        rule = Rule(rule_group=floors, min_value=Decimal('20'), max_value=Decimal('11'))

        errors, _ = check_rule(rule)

        assert list(errors) == ['max_value']

    def test_saved_rule_does_not_conflict_with_itself(self, floors):
        rule = floors.rules.get(min_value=4)

        assert check_rule(rule) == ({}, [])

    def test_shape_errors_stop_further_checks(self, floors):
        rule = Rule(rule_group=floors, min_value=Decimal('4'))

        errors, _ = check_rule(rule)

        assert list(errors) == ['max_value']

    def test_duplicate_option_key(self, floors):
        Rule.objects.create(rule_group=floors, kind=Rule.Kind.OPTION, option_key='unknown')
        rule = Rule(rule_group=floors, kind=Rule.Kind.OPTION, option_key='unknown')

        errors, _ = check_rule(rule)

        assert 'option_key' in errors

    def test_option_does_not_collide_with_bands(self, floors):
        rule = Rule(rule_group=floors, kind=Rule.Kind.OPTION, option_key='4')

        assert check_rule(rule) == ({}, [])


@pytest.mark.django_db
class TestValidateRule:
    """Tests for validate_rule."""

    def test_raises_authoring_conflict(self, floors):
        rule = Rule(rule_group=floors, min_value=Decimal('1'), max_value=Decimal('3'))

        with pytest.raises(AuthoringConflict) as excinfo:
            validate_rule(rule)

        error = excinfo.value.to_validation_error()
        assert 'min_value' in error.message_dict

    def test_returns_warnings(self, floors):
        rule = Rule(rule_group=floors, min_value=Decimal('0'), max_value=Decimal('100'))

        warnings = validate_rule(rule)

        assert len(warnings) == 2


@pytest.mark.django_db
class TestFindOverlappingRules:
    """Tests for find_overlapping_rules."""

    def test_lists_overlapping_siblings(self, floors):
        rule = Rule(rule_group=floors, min_value=Decimal('2'), max_value=Decimal('5'))

        overlapping = find_overlapping_rules(rule)

        assert [r.min_value for r in overlapping] == [Decimal('1.00'), Decimal('4.00')]

    def test_option_rules_have_no_overlaps(self, floors):
        rule = Rule(rule_group=floors, kind=Rule.Kind.OPTION, option_key='x')

        assert find_overlapping_rules(rule) == []


@pytest.mark.django_db
class TestValidateRuleGroup:
    """Tests for validate_rule_group."""

    def test_valid_group(self, service):
        validate_rule_group(RuleGroup(service=service, attribute_name='floors'))

    def test_blank_attribute(self, service):
        with pytest.raises(AuthoringConflict) as excinfo:
            validate_rule_group(RuleGroup(service=service, attribute_name='  '))

        assert excinfo.value.errors == {'attribute_name': ['Attribute name is required.']}

    def test_duplicate_attribute(self, floors, service):
        with pytest.raises(AuthoringConflict) as excinfo:
            validate_rule_group(RuleGroup(service=service, attribute_name='floors'))

        assert 'attribute_name' in excinfo.value.errors

    def test_existing_group_is_not_its_own_duplicate(self, floors):
        validate_rule_group(floors)

    def test_unknown_service(self):
        with pytest.raises(AuthoringConflict) as excinfo:
            validate_rule_group(RuleGroup(service_id=999, attribute_name='floors'))

        assert 'service' in excinfo.value.errors

    def test_unparseable_service_id(self):
        with pytest.raises(AuthoringConflict) as excinfo:
            validate_rule_group(RuleGroup(service_id='abc', attribute_name='floors'))

        assert list(excinfo.value.errors) == ['service']


class TestCoerceDecimal:
    """Server-side parsing of admin numeric input."""

    @pytest.mark.parametrize('value,expected', [
        ('10', Decimal('10')),
        (' 4.50 ', Decimal('4.50')),
        ('4.500', Decimal('4.500')),
        (7, Decimal('7')),
        (Decimal('-12.5'), Decimal('-12.5')),
    ])
    def test_accepts_numbers(self, value, expected):
        assert coerce_decimal('min_value', value) == expected

    @pytest.mark.parametrize('value', [None, '', '   '])
    def test_empty_is_none(self, value):
        assert coerce_decimal('min_value', value) is None

    def test_empty_required(self):
        with pytest.raises(AuthoringConflict) as excinfo:
            coerce_decimal('extra_price', '', required=True)

        assert excinfo.value.errors == {'extra_price': ['This field is required.']}

    @pytest.mark.parametrize('value', ['ten', 'NaN', 'Infinity', True])
    def test_rejects_non_numbers(self, value):
        with pytest.raises(AuthoringConflict) as excinfo:
            coerce_decimal('max_value', value)

        assert excinfo.value.errors == {'max_value': ['Enter a valid number.']}

    def test_rejects_extra_decimal_places(self):
        with pytest.raises(AuthoringConflict) as excinfo:
            coerce_decimal('extra_price', '0.125')

        assert 'decimal places' in excinfo.value.errors['extra_price'][0]

    @pytest.mark.parametrize('value', ['99999999999999999', '12345678901', '1E+20'])
    def test_rejects_values_the_column_cannot_hold(self, value):
        with pytest.raises(AuthoringConflict) as excinfo:
            coerce_decimal('max_value', value)

        assert 'max_value' in excinfo.value.errors

    def test_accepts_largest_value_the_column_holds(self):
        assert coerce_decimal('max_value', '9999999999.99') == Decimal('9999999999.99')

    def test_column_limits_are_configurable(self):
        assert coerce_decimal('max_value', '123', max_digits=3, decimal_places=0) == Decimal('123')

        with pytest.raises(AuthoringConflict):
            coerce_decimal('max_value', '1234', max_digits=3, decimal_places=0)
