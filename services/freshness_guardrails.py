"""
Safety ceilings for freshness values from any source.

Whatever produced a score (the AI estimate or a stored value), these rules
lower it to the ceiling that applies to the item's situation. First matching
rule wins.
"""

from dataclasses import dataclass
from typing import Optional

from domain.enums import ItemCondition
from domain.rules import (
    DAIRY_TODAY_CEILING,
    EXPIRED_CEILING,
    EXPIRING_TODAY_CEILING,
    EXPLANATION_MAX_LENGTH,
    NEAR_EXPIRY_CEILING,
    NEAR_EXPIRY_TODAY_CEILING,
)
from services.freshness_calculator import (
    CategoryClassifier,
    coerce_enum,
    default_classifier,
)


@dataclass(frozen=True)
class GuardrailResult:
    freshness: int
    needs_alert: bool
    explanation: str
    corrected: bool = False


def apply_guardrails(
    freshness: int,
    needs_alert: bool,
    explanation: str,
    *,
    days_until_expiry: int,
    condition,
    name: Optional[str],
    classifier: Optional[CategoryClassifier] = None,
) -> GuardrailResult:
    """
    Cap a freshness value according to the hard safety rules.

    Args:
        freshness: incoming score
        needs_alert: incoming alert flag
        explanation: incoming explanation, replaced when a rule fires
        days_until_expiry: whole days until expiry, negative once expired
        condition: item condition (enum member or its value)
        name: food name, used for the dairy check
        classifier: keyword classifier, defaults to the shipped tables

    Returns:
        GuardrailResult; ``corrected`` tells whether a ceiling was applied
    """
    classifier = classifier or default_classifier
    near_expiry = coerce_enum(ItemCondition, condition) == ItemCondition.NEAR_EXPIRY
    today = days_until_expiry == 0

    if today and near_expiry and freshness > NEAR_EXPIRY_TODAY_CEILING:
        return GuardrailResult(
            NEAR_EXPIRY_TODAY_CEILING, True, "Near expiry item expiring today (corrected)", True
        )
    if today and classifier.is_dairy(name) and freshness > DAIRY_TODAY_CEILING:
        return GuardrailResult(
            DAIRY_TODAY_CEILING, True, "Dairy product expiring today (corrected)", True
        )
    if days_until_expiry < 0 and freshness > EXPIRED_CEILING:
        return GuardrailResult(EXPIRED_CEILING, True, "Expired item (corrected)", True)
    if today and freshness > EXPIRING_TODAY_CEILING:
        return GuardrailResult(
            EXPIRING_TODAY_CEILING, True, "Item expiring today (corrected)", True
        )
    if near_expiry and freshness > NEAR_EXPIRY_CEILING:
        # Alert flag is left as it was
        return GuardrailResult(
            NEAR_EXPIRY_CEILING, needs_alert, "Item marked as near expiry (corrected)", True
        )

    return GuardrailResult(freshness, needs_alert, (explanation or "")[:EXPLANATION_MAX_LENGTH])
