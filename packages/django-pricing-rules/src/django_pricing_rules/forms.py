"""Django Pricing Rules forms.

Admin CRUD forms that run the same authoring checks as the service layer,
so rejected bands show up as field errors instead of failing on save.
"""
from django import forms
from django.core.exceptions import ValidationError
from django.utils.translation import gettext_lazy as _

from .exceptions import AuthoringConflict
from .models import CustomQuoteRequest, Rule, RuleGroup
from .validators import check_rule, validate_rule_group


def _add_conflict(form: forms.BaseForm, conflict: AuthoringConflict) -> None:
    for field, messages in conflict.errors.items():
        target = field if field in form.fields else None
        for message in messages:
            form.add_error(target, message)


class RuleGroupForm(forms.ModelForm):
    """Form for creating/editing rule groups."""

    class Meta:
        model = RuleGroup
        fields = ['service', 'attribute_name', 'display_name']
        widgets = {
            'attribute_name': forms.TextInput(attrs={'placeholder': 'floor_count'}),
        }

    def clean(self):
        cleaned_data = super().clean()
        if self.errors:
            return cleaned_data

        # Validate a copy so a rejected edit leaves the bound instance usable
        candidate = RuleGroup(
            pk=self.instance.pk,
            service=cleaned_data.get('service'),
            attribute_name=(cleaned_data.get('attribute_name') or '').strip(),
            display_name=cleaned_data.get('display_name') or '',
        )
        try:
            validate_rule_group(candidate)
        except AuthoringConflict as conflict:
            _add_conflict(self, conflict)
        return cleaned_data


class RuleForm(forms.ModelForm):
    """Form for creating/editing rules.

    Accepted partial overlaps are collected on self.warnings.
    """

    class Meta:
        model = Rule
        fields = [
            'rule_group', 'kind', 'min_value', 'max_value',
            'option_key', 'option_label', 'extra_price', 'is_custom_quote_trigger',
        ]
        widgets = {
            'min_value': forms.NumberInput(attrs={'step': '0.01'}),
            'max_value': forms.NumberInput(attrs={'step': '0.01'}),
            'extra_price': forms.NumberInput(attrs={'step': '0.01'}),
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.warnings = []

    def clean(self):
        cleaned_data = super().clean()
        if self.errors:
            return cleaned_data

        candidate = Rule(
            pk=self.instance.pk,
            rule_group=cleaned_data.get('rule_group'),
            kind=cleaned_data.get('kind'),
            min_value=cleaned_data.get('min_value'),
            max_value=cleaned_data.get('max_value'),
            option_key=(cleaned_data.get('option_key') or '').strip(),
            option_label=cleaned_data.get('option_label') or '',
            extra_price=cleaned_data.get('extra_price'),
            is_custom_quote_trigger=cleaned_data.get('is_custom_quote_trigger', False),
        )
        try:
            candidate.clean()
        except ValidationError:
            # Shape errors are reported once, by full_clean() in _post_clean()
            return cleaned_data

        errors, self.warnings = check_rule(candidate)
        if errors:
            _add_conflict(self, AuthoringConflict(errors))
        return cleaned_data


class CustomQuoteRequestStatusForm(forms.Form):
    """Form for moving a quote request to its next status."""

    status = forms.ChoiceField(
        choices=[
            (value, label) for value, label in CustomQuoteRequest.Status.choices
            if value != CustomQuoteRequest.Status.ASSIGNED
        ],
        label=_('Status'),
    )
