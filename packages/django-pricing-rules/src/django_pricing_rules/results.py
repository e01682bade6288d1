"""Evaluation outcomes and their serialization.

An evaluation yields exactly one of:
- Priced: a deterministic total adjustment and the rules that produced it
- CustomQuoteRequired: a matched rule demands manual quoting

Both are immutable so that repeated evaluations of the same inputs can be
compared for equality.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Tuple, Union


PRICED = 'priced'
CUSTOM_QUOTE_REQUIRED = 'custom_quote_required'


@dataclass(frozen=True)
class Priced:
    """Booking can be priced automatically.

    Usage:
        result = Priced(Decimal("50.00"), matched_rules=(12,))
        result.total_adjustment  # Decimal("50.00")
    """
    total_adjustment: Decimal
    matched_rules: Tuple[int, ...] = field(default_factory=tuple)

    outcome = PRICED

    def __post_init__(self):
        """Normalize amount to Decimal and rule ids to a tuple."""
        if not isinstance(self.total_adjustment, Decimal):
            # Use object.__setattr__ because dataclass is frozen
            object.__setattr__(self, 'total_adjustment', Decimal(str(self.total_adjustment)))
        object.__setattr__(self, 'matched_rules', tuple(self.matched_rules))

    @property
    def requires_custom_quote(self) -> bool:
        return False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'outcome': self.outcome,
            'total_adjustment': str(self.total_adjustment),
            'matched_rules': list(self.matched_rules),
        }


@dataclass(frozen=True)
class CustomQuoteRequired:
    """A matched rule routes the booking to manual quoting.

    Carries the triggering rule and attribute so the booking flow can
    explain why no price is shown.
    """
    triggering_rule_id: int
    triggering_attribute: str

    outcome = CUSTOM_QUOTE_REQUIRED

    @property
    def requires_custom_quote(self) -> bool:
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            'outcome': self.outcome,
            'triggering_rule_id': self.triggering_rule_id,
            'triggering_attribute': self.triggering_attribute,
        }


EvaluationResult = Union[Priced, CustomQuoteRequired]


def result_from_dict(data: Dict[str, Any]) -> EvaluationResult:
    """Rebuild an evaluation result from its to_dict() form.

    Raises:
        ValueError: If the outcome is missing or unknown.
    """
    outcome = data.get('outcome')
    if outcome == PRICED:
        return Priced(
            total_adjustment=Decimal(str(data['total_adjustment'])),
            matched_rules=tuple(int(pk) for pk in data.get('matched_rules', [])),
        )
    if outcome == CUSTOM_QUOTE_REQUIRED:
        return CustomQuoteRequired(
            triggering_rule_id=int(data['triggering_rule_id']),
            triggering_attribute=data['triggering_attribute'],
        )
    raise ValueError(f"Unknown evaluation outcome: {outcome!r}")
