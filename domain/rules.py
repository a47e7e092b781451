"""
Freshness rule tables.

Keyword sets, decay parameters and score modifiers shared by the category
classifier, the decay resolver, the deterministic calculator and the alert
lifecycle. Everything here is immutable; callers that need different rules
build their own tables and pass them in.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from domain.enums import DecayPattern, FoodCategory, ItemCondition, StorageLocation


@dataclass(frozen=True)
class CategoryKeywords:
    """Substrings that place a food name in a category"""

    category: FoodCategory
    keywords: Tuple[str, ...]


# Order is precedence: a name matching several sets takes the first one.
DEFAULT_CATEGORY_KEYWORDS: Tuple[CategoryKeywords, ...] = (
    CategoryKeywords(
        FoodCategory.DAIRY,
        ("milk", "yogurt", "curd", "cheese", "cream", "butter", "dairy"),
    ),
    CategoryKeywords(
        FoodCategory.MEAT,
        (
            "meat", "beef", "chicken", "pork", "fish", "lamb",
            "turkey", "seafood", "steak",
        ),
    ),
    CategoryKeywords(
        FoodCategory.PRODUCE,
        (
            "apple", "banana", "orange", "tomato", "cucumber", "lettuce",
            "spinach", "kale", "carrot", "potato", "fruit", "vegetable",
            "salad", "greens", "broccoli", "cauliflower", "pepper", "onion",
            "berry", "berries", "grapes", "produce",
        ),
    ),
    CategoryKeywords(
        FoodCategory.BAKED,
        (
            "bread", "cake", "pastry", "pie", "cookie", "muffin", "bun",
            "roll", "dough", "baked", "croissant", "bagel",
        ),
    ),
    CategoryKeywords(
        FoodCategory.PANTRY,
        (
            "rice", "pasta", "flour", "sugar", "cereal", "grain", "can",
            "canned", "dry", "dried", "packaged", "preserved", "pantry",
        ),
    ),
)


@dataclass(frozen=True)
class DecayRule:
    """Base decay parameters for one category.

    ``opened_max_freshness`` and ``freezer_max_freshness`` replace
    ``max_freshness`` when the item is opened or frozen respectively.
    """

    decay_rate: int
    decay_pattern: DecayPattern
    max_freshness: int = 100
    opened_max_freshness: Optional[int] = None
    freezer_max_freshness: Optional[int] = None


DEFAULT_DECAY_RULES: Mapping[FoodCategory, DecayRule] = MappingProxyType(
    {
        FoodCategory.DAIRY: DecayRule(8, DecayPattern.EXPONENTIAL, opened_max_freshness=85),
        FoodCategory.MEAT: DecayRule(10, DecayPattern.EXPONENTIAL, opened_max_freshness=80),
        FoodCategory.PRODUCE: DecayRule(7, DecayPattern.STANDARD),
        FoodCategory.BAKED: DecayRule(6, DecayPattern.STANDARD, freezer_max_freshness=95),
        FoodCategory.PANTRY: DecayRule(3, DecayPattern.SLOW),
        FoodCategory.OTHER: DecayRule(5, DecayPattern.STANDARD),
    }
)

# Categories whose decay the freezer slows down.
FREEZER_SLOWED_CATEGORIES = frozenset(
    {FoodCategory.DAIRY, FoodCategory.MEAT, FoodCategory.BAKED}
)
FREEZER_DECAY_RATE_REDUCTION = 3

# Exponents applied to the remaining-shelf-life ratio.
DECAY_EXPONENTS: Mapping[DecayPattern, float] = MappingProxyType(
    {
        DecayPattern.EXPONENTIAL: 1.5,
        DecayPattern.SLOW: 0.7,
        DecayPattern.STANDARD: 1.0,
    }
)

CONDITION_MODIFIERS: Mapping[ItemCondition, int] = MappingProxyType(
    {
        ItemCondition.FRESHLY_BOUGHT: 10,
        ItemCondition.NEAR_EXPIRY: -30,
        ItemCondition.ALREADY_OPENED: -25,
    }
)

STORAGE_MODIFIERS: Mapping[StorageLocation, int] = MappingProxyType(
    {
        StorageLocation.FREEZER: 10,
        StorageLocation.FRIDGE: 0,
        StorageLocation.PANTRY: -15,
    }
)

# Hard ceilings shared by the calculator caps and the guardrail validator.
NEAR_EXPIRY_TODAY_CEILING = 30
DAIRY_TODAY_CEILING = 40
EXPIRED_CEILING = 20
EXPIRING_TODAY_CEILING = 50
NEAR_EXPIRY_CEILING = 60
OPENED_SOON_CEILING = 40

# Alert thresholds.
ALERT_WINDOW_DAYS = 3
LOW_FRESHNESS_THRESHOLD = 30
PERISHABLE_LOW_FRESHNESS_THRESHOLD = 40
DECLINING_FRESHNESS_THRESHOLD = 60

EXPLANATION_MAX_LENGTH = 100
