"""Tests for admin forms."""
from decimal import Decimal

import pytest

from django_pricing_rules.forms import CustomQuoteRequestStatusForm, RuleForm, RuleGroupForm
from django_pricing_rules.models import Rule, RuleGroup
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


def rule_data(group, **overrides):
    data = {
        'rule_group': group.pk,
        'kind': 'range',
        'min_value': '11',
        'max_value': '20',
        'option_key': '',
        'option_label': '',
        'extra_price': '75',
    }
    data.update(overrides)
    return data


@pytest.mark.django_db
class TestRuleGroupForm:
    """Tests for RuleGroupForm."""

    def test_valid(self, service):
        form = RuleGroupForm(data={'service': service.pk, 'attribute_name': 'floors'})

        assert form.is_valid(), form.errors
        group = form.save()
        assert group.attribute_name == 'floors'

    def test_duplicate_attribute(self, service, floors):
        form = RuleGroupForm(data={'service': service.pk, 'attribute_name': 'floors'})

        assert not form.is_valid()
        assert 'attribute_name' in form.errors

    def test_edit_keeps_own_attribute(self, service, floors):
        form = RuleGroupForm(
            data={'service': service.pk, 'attribute_name': 'floors', 'display_name': 'Storeys'},
            instance=floors,
        )

        assert form.is_valid(), form.errors


@pytest.mark.django_db
class TestRuleForm:
    """Tests for RuleForm."""

    def test_valid_band(self, floors):
        form = RuleForm(data=rule_data(floors))

        assert form.is_valid(), form.errors
        assert form.warnings == []
        rule = form.save()
        assert rule.min_value == Decimal('11')

    def test_duplicate_band_is_a_field_error(self, floors):
        form = RuleForm(data=rule_data(floors, min_value='4', max_value='10'))

        assert not form.is_valid()
        assert 'min_value' in form.errors

    def test_inverted_bounds(self, floors):
        form = RuleForm(data=rule_data(floors, min_value='20', max_value='11'))

        assert not form.is_valid()
        assert 'max_value' in form.errors

    def test_non_numeric_bound(self, floors):
        form = RuleForm(data=rule_data(floors, min_value='eleven'))

        assert not form.is_valid()
        assert 'min_value' in form.errors

    def test_partial_overlap_is_accepted_with_warning(self, floors):
        form = RuleForm(data=rule_data(floors, min_value='8', max_value='12'))

        assert form.is_valid(), form.errors
        assert len(form.warnings) == 1

    def test_option_rule(self, floors):
        form = RuleForm(data=rule_data(
            floors, kind='option', min_value='', max_value='', option_key='unknown',
            is_custom_quote_trigger='on',
        ))

        assert form.is_valid(), form.errors
        rule = form.save()
        assert rule.is_option
        assert rule.is_custom_quote_trigger is True

    def test_option_without_key_reports_error_once(self, floors):
        form = RuleForm(data=rule_data(floors, kind='option', min_value='', max_value=''))

        assert not form.is_valid()
        assert form.errors['option_key'] == ['Option key is required for option rules.']

    def test_band_without_max_reports_error_once(self, floors):
        form = RuleForm(data=rule_data(floors, max_value=''))

        assert not form.is_valid()
        assert form.errors['max_value'] == ['Max value is required for range rules.']
        assert form.warnings == []

    def test_edit_existing_rule(self, floors):
        rule = floors.rules.get(min_value=4)
        form = RuleForm(data=rule_data(floors, min_value='4', max_value='10', extra_price='55'),
                        instance=rule)

        assert form.is_valid(), form.errors
        assert form.save().extra_price == Decimal('55')


class TestCustomQuoteRequestStatusForm:
    """Tests for CustomQuoteRequestStatusForm."""

    def test_assigned_is_not_offered(self):
        form = CustomQuoteRequestStatusForm()

        values = [value for value, _ in form.fields['status'].choices]
        assert values == ['pending', 'reviewed', 'quoted']

    def test_valid_status(self):
        form = CustomQuoteRequestStatusForm(data={'status': 'reviewed'})

        assert form.is_valid()
        assert form.cleaned_data['status'] == 'reviewed'

    def test_assigned_rejected(self):
        form = CustomQuoteRequestStatusForm(data={'status': 'assigned'})

        assert not form.is_valid()
