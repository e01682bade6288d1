"""Django Pricing Rules models.

Provides tiered pricing configuration:
- RuleGroup: One priceable attribute dimension for one service
- Rule: A numeric band or discrete option carrying a price delta
- CustomQuoteRequest: Manual quote request raised when pricing is not automatic
"""

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.utils.translation import gettext_lazy as _

from django_pricing_rules.conf import SERVICE_MODEL


# =============================================================================
# Base Model
# =============================================================================

class PricingBaseModel(models.Model):
    """Base model with timestamps.

    Rows are hard deleted so that rule group deletion cascades to its rules.
    """

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        abstract = True


# =============================================================================
# RuleGroup - Attribute Dimension
# =============================================================================

class RuleGroupQuerySet(models.QuerySet):
    """Custom queryset for RuleGroup model."""

    def for_service(self, service_id):
        """Return groups configured for the given service id."""
        return self.filter(service_id=service_id)

    def rule_rows(self):
        """Groups left-joined to their rules in one statement.

        One row per rule in (group id, rule id) order; a group without
        rules yields a single row whose rules__* values are None.
        """
        return self.values(
            'id',
            'attribute_name',
            'rules__id',
            'rules__kind',
            'rules__min_value',
            'rules__max_value',
            'rules__option_key',
            'rules__extra_price',
            'rules__is_custom_quote_trigger',
        ).order_by('id', 'rules__id')


class RuleGroup(PricingBaseModel):
    """One priceable attribute dimension for one service.

    The attribute_name is matched against the keys a booking flow supplies
    (e.g. 'floor_count'); it carries no other semantics.
    """

    service = models.ForeignKey(
        SERVICE_MODEL,
        on_delete=models.CASCADE,
        related_name='pricing_rule_groups',
        verbose_name=_('service'),
    )
    attribute_name = models.CharField(
        _('attribute name'),
        max_length=100,
        help_text=_('Booking attribute key this group prices (e.g. floor_count)'),
    )
    display_name = models.CharField(
        _('display name'),
        max_length=200,
        blank=True,
        default='',
        help_text=_('Name shown to administrators'),
    )

    objects = RuleGroupQuerySet.as_manager()

    class Meta:
        verbose_name = _('rule group')
        verbose_name_plural = _('rule groups')
        ordering = ['id']
        constraints = [
            models.UniqueConstraint(
                fields=['service', 'attribute_name'],
                name='pricing_rulegroup_unique_attribute',
            ),
        ]

    def __str__(self):
        return self.display_name or self.attribute_name

    def as_dict(self) -> dict:
        """Plain-field representation for admin and API surfaces."""
        return {
            'id': self.pk,
            'service_id': self.service_id,
            'attribute_name': self.attribute_name,
            'display_name': self.display_name,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }


# =============================================================================
# Rule - Band or Option
# =============================================================================

class RuleQuerySet(models.QuerySet):
    """Custom queryset for Rule model."""

    def ranges(self):
        """Return numeric band rules."""
        return self.filter(kind=Rule.Kind.RANGE)

    def options(self):
        """Return discrete option rules."""
        return self.filter(kind=Rule.Kind.OPTION)

    def custom_quote_triggers(self):
        """Return rules that force manual quoting."""
        return self.filter(is_custom_quote_trigger=True)


class Rule(PricingBaseModel):
    """One tier within a RuleGroup.

    A rule is exactly one of:
    - range: matches numeric values with min_value <= value <= max_value
    - option: matches when option_key equals the supplied value

    Integer primary keys grow with creation time, so the smallest id
    is the oldest rule. Evaluation uses that to break ties between
    overlapping bands.
    """

    class Kind(models.TextChoices):
        RANGE = 'range', _('Numeric range')
        OPTION = 'option', _('Discrete option')

    rule_group = models.ForeignKey(
        RuleGroup,
        on_delete=models.CASCADE,
        related_name='rules',
        verbose_name=_('rule group'),
    )
    kind = models.CharField(
        _('kind'),
        max_length=10,
        choices=Kind.choices,
        default=Kind.RANGE,
    )
    min_value = models.DecimalField(
        _('min value'),
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        help_text=_('Inclusive lower bound (range rules)'),
    )
    max_value = models.DecimalField(
        _('max value'),
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        help_text=_('Inclusive upper bound (range rules)'),
    )
    option_key = models.CharField(
        _('option key'),
        max_length=100,
        blank=True,
        default='',
        help_text=_('Value matched exactly (option rules)'),
    )
    option_label = models.CharField(
        _('option label'),
        max_length=200,
        blank=True,
        default='',
    )
    extra_price = models.DecimalField(
        _('extra price'),
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        help_text=_('Signed price delta added when this rule matches'),
    )
    is_custom_quote_trigger = models.BooleanField(
        _('custom quote trigger'),
        default=False,
        help_text=_('Matching this rule routes the booking to manual quoting'),
    )

    objects = RuleQuerySet.as_manager()

    class Meta:
        verbose_name = _('rule')
        verbose_name_plural = _('rules')
        ordering = ['id']
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(min_value__isnull=True)
                    | models.Q(max_value__isnull=True)
                    | models.Q(min_value__lte=models.F('max_value'))
                ),
                name='pricing_rule_min_lte_max',
            ),
        ]

    def __str__(self):
        if self.is_option:
            return f'{self.option_label or self.option_key} (+{self.extra_price})'
        return f'{self.min_value}-{self.max_value} (+{self.extra_price})'

    @property
    def is_range(self) -> bool:
        return self.kind == self.Kind.RANGE

    @property
    def is_option(self) -> bool:
        return self.kind == self.Kind.OPTION

    def clean(self):
        """Enforce the range/option shape of a rule."""
        super().clean()
        errors = {}

        if self.is_range:
            if self.min_value is None:
                errors['min_value'] = _('Min value is required for range rules.')
            if self.max_value is None:
                errors['max_value'] = _('Max value is required for range rules.')
            if self.option_key:
                errors['option_key'] = _('Range rules cannot carry an option key.')
        elif self.is_option:
            if not self.option_key:
                errors['option_key'] = _('Option key is required for option rules.')
            if self.min_value is not None or self.max_value is not None:
                errors['min_value'] = _('Option rules cannot carry numeric bounds.')

        if errors:
            raise ValidationError(errors)

    def as_dict(self) -> dict:
        """Plain-field representation for admin and API surfaces."""
        return {
            'id': self.pk,
            'rule_group_id': self.rule_group_id,
            'kind': self.kind,
            'min_value': str(self.min_value) if self.min_value is not None else None,
            'max_value': str(self.max_value) if self.max_value is not None else None,
            'option_key': self.option_key or None,
            'option_label': self.option_label or None,
            'extra_price': str(self.extra_price),
            'is_custom_quote_trigger': self.is_custom_quote_trigger,
        }


# =============================================================================
# CustomQuoteRequest - Manual Quoting
# =============================================================================

class CustomQuoteRequest(PricingBaseModel):
    """A booking that could not be priced automatically.

    Created by the booking flow after evaluation returns a custom quote
    outcome, then worked by administrators through the status workflow
    pending -> reviewed -> quoted -> assigned.
    """

    class Status(models.TextChoices):
        PENDING = 'pending', _('Pending')
        REVIEWED = 'reviewed', _('Reviewed')
        QUOTED = 'quoted', _('Quoted')
        ASSIGNED = 'assigned', _('Assigned')

    service = models.ForeignKey(
        SERVICE_MODEL,
        on_delete=models.PROTECT,
        related_name='custom_quote_requests',
        verbose_name=_('service'),
    )
    user_id = models.CharField(
        _('user id'),
        max_length=255,
        blank=True,
        default='',
        help_text=_('Requesting customer account, empty for guests'),
    )
    customer_name = models.CharField(_('customer name'), max_length=200)
    customer_email = models.EmailField(_('customer email'))
    customer_phone = models.CharField(_('customer phone'), max_length=50, blank=True, default='')
    request_data = models.JSONField(
        _('request data'),
        default=dict,
        blank=True,
        help_text=_('Booking attributes and free-form notes'),
    )
    status = models.CharField(
        _('status'),
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True,
    )
    professional_id = models.CharField(
        _('professional id'),
        max_length=255,
        blank=True,
        default='',
    )
    triggering_rule = models.ForeignKey(
        Rule,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='custom_quote_requests',
        verbose_name=_('triggering rule'),
    )
    triggering_attribute = models.CharField(
        _('triggering attribute'),
        max_length=100,
        blank=True,
        default='',
    )

    class Meta:
        verbose_name = _('custom quote request')
        verbose_name_plural = _('custom quote requests')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['service', 'status'], name='pricing_quote_service_status'),
        ]

    def __str__(self):
        return f"Quote request #{self.pk} - {self.customer_name} ({self.status})"
