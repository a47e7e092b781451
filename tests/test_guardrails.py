"""
Tests for the freshness safety ceilings.

Rules are checked in a fixed order and the first one that fires wins.
"""

from domain.enums import ItemCondition
from services.freshness_guardrails import apply_guardrails


def guard(freshness, days, condition=ItemCondition.FRESHLY_BOUGHT, name="Hummus",
          needs_alert=False, explanation="Looks fine"):
    return apply_guardrails(
        freshness,
        needs_alert,
        explanation,
        days_until_expiry=days,
        condition=condition,
        name=name,
    )


# ============================================================================
# INDIVIDUAL RULES
# ============================================================================


def test_near_expiry_expiring_today_capped_at_thirty():
    result = guard(80, 0, condition=ItemCondition.NEAR_EXPIRY)

    assert result.freshness == 30
    assert result.needs_alert is True
    assert result.corrected is True
    assert result.explanation == "Near expiry item expiring today (corrected)"


def test_near_expiry_rule_wins_over_dairy_rule():
    result = guard(80, 0, condition=ItemCondition.NEAR_EXPIRY, name="Whole Milk")

    assert result.freshness == 30


def test_dairy_expiring_today_capped_at_forty():
    result = guard(45, 0, name="Whole Milk")

    assert result.freshness == 40
    assert result.needs_alert is True
    assert result.explanation == "Dairy product expiring today (corrected)"


def test_expired_item_capped_at_twenty():
    result = guard(90, -1)

    assert result.freshness == 20
    assert result.needs_alert is True
    assert result.explanation == "Expired item (corrected)"


def test_expiring_today_capped_at_fifty():
    result = guard(70, 0)

    assert result.freshness == 50
    assert result.needs_alert is True
    assert result.explanation == "Item expiring today (corrected)"


def test_near_expiry_capped_at_sixty_keeps_alert_flag():
    result = guard(75, 5, condition=ItemCondition.NEAR_EXPIRY, needs_alert=False)

    assert result.freshness == 60
    assert result.needs_alert is False
    assert result.corrected is True
    assert result.explanation == "Item marked as near expiry (corrected)"


def test_condition_may_be_given_as_plain_value():
    result = guard(75, 5, condition="Near expiry")

    assert result.freshness == 60


# ============================================================================
# NO CORRECTION
# ============================================================================


def test_values_below_the_ceiling_pass_through():
    result = guard(10, -2, needs_alert=True, explanation="Spoiled")

    assert result.freshness == 10
    assert result.needs_alert is True
    assert result.corrected is False
    assert result.explanation == "Spoiled"


def test_fresh_item_is_left_alone():
    result = guard(75, 5)

    assert (result.freshness, result.needs_alert, result.corrected) == (75, False, False)


def test_explanation_truncated_to_hundred_characters():
    result = guard(75, 5, explanation="x" * 150)

    assert result.explanation == "x" * 100
