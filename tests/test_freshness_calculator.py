"""
Tests for the deterministic freshness engine.

Covers the keyword classifier, the decay parameter resolver and the rule-based
calculator. All scores are computed against the pinned ``TODAY`` so the
expected numbers can be worked out by hand.
"""

import itertools
from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from domain.enums import DecayPattern, FoodCategory, ItemCondition, StorageLocation
from domain.rules import DEFAULT_DECAY_RULES, CategoryKeywords
from services.freshness_calculator import (
    CategoryClassifier,
    DecayResolver,
    FreshnessCalculator,
    calculate_basic_freshness,
    classify_food,
    days_until,
    round_half_up,
)
from test_fixtures import TODAY


def item(name, days, storage=StorageLocation.FRIDGE,
         condition=ItemCondition.FRESHLY_BOUGHT, shelf_life=7):
    return SimpleNamespace(
        name=name,
        expiry_date=TODAY + timedelta(days=days),
        storage=storage,
        condition=condition,
        shelf_life=shelf_life,
    )


# ============================================================================
# HELPERS
# ============================================================================


def test_round_half_up_rounds_halves_upwards():
    assert round_half_up(2.5) == 3
    assert round_half_up(0.5) == 1
    assert round_half_up(60.37) == 60
    assert round_half_up(-0.4) == 0


def test_days_until_accepts_datetimes():
    expiry = datetime(2025, 6, 17, 23, 30)
    assert days_until(expiry, TODAY) == 2
    assert days_until(TODAY - timedelta(days=4), TODAY) == -4


# ============================================================================
# CATEGORY CLASSIFIER
# ============================================================================


@pytest.mark.parametrize(
    "name,expected",
    [
        ("Whole Milk", FoodCategory.DAIRY),
        ("Greek YOGURT", FoodCategory.DAIRY),
        ("Chicken breast", FoodCategory.MEAT),
        ("Salmon fish fillet", FoodCategory.MEAT),
        ("Green apples", FoodCategory.PRODUCE),
        ("Sourdough bread", FoodCategory.BAKED),
        ("Basmati rice", FoodCategory.PANTRY),
        ("Hummus", FoodCategory.OTHER),
        ("", FoodCategory.OTHER),
        (None, FoodCategory.OTHER),
    ],
)
def test_classify_food(name, expected):
    assert classify_food(name) == expected


def test_classifier_takes_first_matching_category():
    """A name matching dairy and meat keywords is dairy"""
    assert classify_food("Cheese and chicken pie") == FoodCategory.DAIRY


def test_classifier_membership_helpers():
    classifier = CategoryClassifier()

    assert classifier.is_dairy("Cream cheese")
    assert not classifier.is_dairy("Chicken breast")
    assert classifier.is_dairy_or_meat("Chicken breast")
    assert not classifier.is_dairy_or_meat("Sourdough bread")
    assert not classifier.is_dairy_or_meat(None)


def test_classifier_accepts_custom_keyword_table():
    classifier = CategoryClassifier(
        [CategoryKeywords(FoodCategory.DAIRY, ("tofu",))]
    )

    assert classifier.classify("Silken tofu") == FoodCategory.DAIRY
    assert classifier.classify("Whole Milk") == FoodCategory.OTHER


def test_default_rule_table_is_read_only():
    with pytest.raises(TypeError):
        DEFAULT_DECAY_RULES[FoodCategory.OTHER] = None


# ============================================================================
# DECAY RESOLVER
# ============================================================================


@pytest.mark.parametrize(
    "category,condition,storage,expected",
    [
        (FoodCategory.DAIRY, ItemCondition.FRESHLY_BOUGHT, StorageLocation.FRIDGE,
         (8, DecayPattern.EXPONENTIAL, 100)),
        (FoodCategory.DAIRY, ItemCondition.ALREADY_OPENED, StorageLocation.FRIDGE,
         (8, DecayPattern.EXPONENTIAL, 85)),
        (FoodCategory.DAIRY, ItemCondition.FRESHLY_BOUGHT, StorageLocation.FREEZER,
         (5, DecayPattern.STANDARD, 100)),
        (FoodCategory.MEAT, ItemCondition.ALREADY_OPENED, StorageLocation.FREEZER,
         (7, DecayPattern.STANDARD, 80)),
        (FoodCategory.BAKED, ItemCondition.FRESHLY_BOUGHT, StorageLocation.FREEZER,
         (3, DecayPattern.SLOW, 95)),
        (FoodCategory.PANTRY, ItemCondition.ALREADY_OPENED, StorageLocation.PANTRY,
         (3, DecayPattern.STANDARD, 100)),
        (FoodCategory.PRODUCE, ItemCondition.ALREADY_OPENED, StorageLocation.FRIDGE,
         (7, DecayPattern.EXPONENTIAL, 100)),
        (FoodCategory.PRODUCE, ItemCondition.FRESHLY_BOUGHT, StorageLocation.FREEZER,
         (7, DecayPattern.STANDARD, 100)),
    ],
)
def test_decay_resolver(category, condition, storage, expected):
    params = DecayResolver().resolve(category, condition, storage)
    assert (params.decay_rate, params.decay_pattern, params.max_freshness) == expected


def test_decay_resolver_accepts_raw_values():
    params = DecayResolver().resolve("dairy", "Already opened", "Fridge")
    assert params.max_freshness == 85


# ============================================================================
# FRESHNESS CALCULATOR SCENARIOS
# ============================================================================


def test_expiring_today_freshly_bought_is_capped_at_fifty():
    """
    Verifies:
    - Base for expiring today is min(50, 50 + shelf_life * 0.2)
    - The +10 condition bonus cannot lift the score over the same-day cap
    """
    result = calculate_basic_freshness(item("Hummus", 0), TODAY)

    assert result.freshness == 50
    assert result.needs_alert is True
    assert result.explanation == "Expiring today"


def test_dairy_in_pantry_is_penalised():
    """
    Verifies: Whole Milk kept in the pantry five days before expiry
    - exponential curve gives 60, +10 fresh, -15 pantry, -40 dairy in pantry
    """
    result = calculate_basic_freshness(
        item("Whole Milk", 5, storage=StorageLocation.PANTRY), TODAY
    )

    assert result.freshness == 15
    assert result.needs_alert is True
    assert result.explanation == "Dairy needs refrigeration"
    assert result.food_category == FoodCategory.DAIRY
    assert result.decay_pattern == DecayPattern.EXPONENTIAL


def test_expired_item_decays_below_expired_ceiling():
    """Expired three days with decay rate 5: base 5, +10 fresh, capped at 20"""
    result = calculate_basic_freshness(item("Hummus", -3), TODAY)

    assert result.freshness == 15
    assert result.needs_alert is True
    assert result.explanation == "Expired food"


def test_long_before_expiry_is_very_fresh():
    result = calculate_basic_freshness(
        item("Basmati rice", 10, storage=StorageLocation.PANTRY), TODAY
    )

    assert result.freshness == 95
    assert result.needs_alert is False
    assert result.explanation == "Very fresh"
    assert result.decay_pattern == DecayPattern.SLOW


def test_standard_decay_midway_through_shelf_life():
    result = calculate_basic_freshness(item("Hummus", 5), TODAY)

    assert result.freshness == 81
    assert result.needs_alert is False
    assert result.explanation == "Standard decay pattern"


def test_near_expiry_item_expiring_today():
    result = calculate_basic_freshness(
        item("Yogurt", 0, condition=ItemCondition.NEAR_EXPIRY), TODAY
    )

    assert result.freshness == 0
    assert result.needs_alert is True
    assert result.explanation == "Item marked as near expiry"


def test_opened_produce_expiring_soon():
    result = calculate_basic_freshness(
        item("Lettuce", 2, condition=ItemCondition.ALREADY_OPENED, shelf_life=5), TODAY
    )

    assert result.freshness == 0
    assert result.needs_alert is True
    assert result.explanation == "Opened and expiring soon"


def test_missing_shelf_life_defaults_to_a_week():
    result = calculate_basic_freshness(item("Hummus", 10, shelf_life=None), TODAY)

    assert result.explanation == "Very fresh"
    assert result.freshness == 100


def test_calculator_uses_injected_classifier():
    classifier = CategoryClassifier(
        [CategoryKeywords(FoodCategory.DAIRY, ("hummus",))]
    )
    calculator = FreshnessCalculator(classifier=classifier)

    result = calculator.calculate(item("Hummus", 0), TODAY)

    assert result.food_category == FoodCategory.DAIRY
    assert result.freshness == 50


# ============================================================================
# CALCULATOR INVARIANTS
# ============================================================================


NAMES = ["Whole Milk", "Chicken breast", "Lettuce", "Bagel", "Pasta", "Hummus"]


@pytest.mark.parametrize(
    "condition,storage",
    list(itertools.product(list(ItemCondition), list(StorageLocation))),
)
def test_scores_respect_hard_ceilings(condition, storage):
    """
    Verifies for every name and every day from five days expired to
    well past the shelf life:
    - score is an integer within [0, 100]
    - expired items never score over 20 and always alert
    - near expiry items never score over 60
    - items expiring today never score over 50 and always alert
    """
    for name, days in itertools.product(NAMES, range(-5, 12)):
        result = calculate_basic_freshness(
            item(name, days, storage=storage, condition=condition), TODAY
        )

        assert isinstance(result.freshness, int)
        assert 0 <= result.freshness <= 100
        assert len(result.explanation) <= 100
        if days < 0:
            assert result.freshness <= 20
            assert result.needs_alert
        if days == 0:
            assert result.freshness <= 50
            assert result.needs_alert
        if condition == ItemCondition.NEAR_EXPIRY:
            assert result.freshness <= 60
        if result.freshness < 30:
            assert result.needs_alert
