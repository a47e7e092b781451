"""
Deterministic freshness scoring.

Category classification, decay parameter resolution and the rule-based
freshness calculator. These are pure functions of the item attributes and the
current date; they are used on their own when no AI backend is configured and
as the fallback whenever the AI estimate cannot be obtained.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Mapping, Optional, Sequence

from domain.enums import DecayPattern, FoodCategory, ItemCondition, StorageLocation
from domain.rules import (
    ALERT_WINDOW_DAYS,
    CONDITION_MODIFIERS,
    DAIRY_TODAY_CEILING,
    DECAY_EXPONENTS,
    DECLINING_FRESHNESS_THRESHOLD,
    DEFAULT_CATEGORY_KEYWORDS,
    DEFAULT_DECAY_RULES,
    EXPIRED_CEILING,
    EXPIRING_TODAY_CEILING,
    EXPLANATION_MAX_LENGTH,
    FREEZER_DECAY_RATE_REDUCTION,
    FREEZER_SLOWED_CATEGORIES,
    LOW_FRESHNESS_THRESHOLD,
    NEAR_EXPIRY_CEILING,
    NEAR_EXPIRY_TODAY_CEILING,
    OPENED_SOON_CEILING,
    STORAGE_MODIFIERS,
    CategoryKeywords,
    DecayRule,
)

logger = logging.getLogger("wastenot.freshness")

DEFAULT_SHELF_LIFE_DAYS = 7


@dataclass(frozen=True)
class FreshnessAssessment:
    """Freshness estimate for one item"""

    freshness: int
    needs_alert: bool
    explanation: str
    food_category: FoodCategory
    decay_pattern: DecayPattern


@dataclass(frozen=True)
class DecayParameters:
    decay_rate: int
    decay_pattern: DecayPattern
    max_freshness: int


def round_half_up(value: float) -> int:
    """Round .5 upwards, the way the scores have always been rounded"""
    return int(math.floor(value + 0.5))


def to_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def days_until(expiry_date, today: Optional[date] = None) -> int:
    """Whole calendar days from today to the expiry date (negative once expired)"""
    today = today or date.today()
    return (to_date(expiry_date) - to_date(today)).days


def coerce_enum(enum_cls, value):
    """Return the enum member for value, or None when it is unknown"""
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return None


# ============================================================================
# Category Classifier
# ============================================================================


class CategoryClassifier:
    """Keyword-based food category lookup"""

    def __init__(self, keyword_table: Sequence[CategoryKeywords] = DEFAULT_CATEGORY_KEYWORDS):
        self._table = tuple(keyword_table)

    def classify(self, name: Optional[str]) -> FoodCategory:
        if not name:
            return FoodCategory.OTHER
        lowered = name.lower()
        for entry in self._table:
            if any(keyword in lowered for keyword in entry.keywords):
                return entry.category
        return FoodCategory.OTHER

    def matches(self, name: Optional[str], category: FoodCategory) -> bool:
        """True when the name contains any keyword of the given category"""
        if not name:
            return False
        lowered = name.lower()
        return any(
            keyword in lowered
            for entry in self._table
            if entry.category == category
            for keyword in entry.keywords
        )

    def is_dairy(self, name: Optional[str]) -> bool:
        return self.matches(name, FoodCategory.DAIRY)

    def is_dairy_or_meat(self, name: Optional[str]) -> bool:
        return self.matches(name, FoodCategory.DAIRY) or self.matches(
            name, FoodCategory.MEAT
        )


# ============================================================================
# Decay Parameter Resolver
# ============================================================================


class DecayResolver:
    """Maps (category, condition, storage) to decay rate, pattern and ceiling"""

    def __init__(
        self,
        rules: Mapping[FoodCategory, DecayRule] = DEFAULT_DECAY_RULES,
        freezer_slowed: frozenset = FREEZER_SLOWED_CATEGORIES,
    ):
        self._rules = rules
        self._freezer_slowed = freezer_slowed

    def resolve(self, category, condition, storage) -> DecayParameters:
        category = coerce_enum(FoodCategory, category) or FoodCategory.OTHER
        condition = coerce_enum(ItemCondition, condition)
        storage = coerce_enum(StorageLocation, storage)

        rule = self._rules.get(category) or self._rules[FoodCategory.OTHER]
        decay_rate = rule.decay_rate
        pattern = rule.decay_pattern
        max_freshness = rule.max_freshness

        opened = condition == ItemCondition.ALREADY_OPENED
        frozen = storage == StorageLocation.FREEZER

        if opened and rule.opened_max_freshness is not None:
            max_freshness = rule.opened_max_freshness
        if frozen and rule.freezer_max_freshness is not None:
            max_freshness = rule.freezer_max_freshness

        # Opened items decay one step faster
        if opened:
            if pattern == DecayPattern.SLOW:
                pattern = DecayPattern.STANDARD
            elif pattern == DecayPattern.STANDARD:
                pattern = DecayPattern.EXPONENTIAL

        # Freezing slows decay one step for perishable categories
        if frozen and category in self._freezer_slowed:
            if pattern == DecayPattern.EXPONENTIAL:
                pattern = DecayPattern.STANDARD
            elif pattern == DecayPattern.STANDARD:
                pattern = DecayPattern.SLOW
            decay_rate = max(1, decay_rate - FREEZER_DECAY_RATE_REDUCTION)

        return DecayParameters(decay_rate, pattern, max_freshness)


# ============================================================================
# Deterministic Freshness Calculator
# ============================================================================


_PATTERN_EXPLANATIONS = {
    DecayPattern.EXPONENTIAL: "Rapid decay pattern",
    DecayPattern.SLOW: "Slow decay pattern",
    DecayPattern.STANDARD: "Standard decay pattern",
}


class FreshnessCalculator:
    """
    Rule-based freshness score.

    The score starts from a base value chosen by the first matching branch
    (critical same-day combinations, expired, expiring today, fresh, or the
    decay curve over the remaining shelf life), then receives condition and
    storage modifiers, category penalties and finally the hard safety caps.
    """

    def __init__(
        self,
        classifier: Optional[CategoryClassifier] = None,
        resolver: Optional[DecayResolver] = None,
        condition_modifiers: Mapping[ItemCondition, int] = CONDITION_MODIFIERS,
        storage_modifiers: Mapping[StorageLocation, int] = STORAGE_MODIFIERS,
    ):
        self.classifier = classifier or CategoryClassifier()
        self.resolver = resolver or DecayResolver()
        self._condition_modifiers = condition_modifiers
        self._storage_modifiers = storage_modifiers

    def calculate(self, item, today: Optional[date] = None) -> FreshnessAssessment:
        """
        Compute the freshness of an item.

        Args:
            item: any object exposing name, expiry_date, shelf_life, condition
                and storage (ORM row, schema or namespace)
            today: reference date, defaults to the current date

        Returns:
            FreshnessAssessment with an integer score in [0, 100]
        """
        days = days_until(item.expiry_date, today)
        shelf_life = item.shelf_life or DEFAULT_SHELF_LIFE_DAYS
        condition = coerce_enum(ItemCondition, item.condition)
        storage = coerce_enum(StorageLocation, item.storage)
        category = self.classifier.classify(item.name)
        params = self.resolver.resolve(category, condition, storage)

        near_expiry = condition == ItemCondition.NEAR_EXPIRY
        opened = condition == ItemCondition.ALREADY_OPENED

        # Base score, first matching branch wins
        if days == 0 and near_expiry:
            freshness = float(NEAR_EXPIRY_TODAY_CEILING)
            explanation = "Near expiry item expiring today"
            needs_alert = True
        elif days == 0 and self.classifier.is_dairy(item.name):
            freshness = float(DAIRY_TODAY_CEILING)
            explanation = "Dairy product expiring today"
            needs_alert = True
        elif days < 0:
            freshness = float(
                max(0, min(EXPIRED_CEILING, EXPIRED_CEILING + days * params.decay_rate))
            )
            explanation = "Expired food"
            needs_alert = True
        elif days == 0:
            freshness = min(float(EXPIRING_TODAY_CEILING), EXPIRING_TODAY_CEILING + shelf_life * 0.2)
            explanation = "Expiring today"
            needs_alert = True
        elif days >= shelf_life:
            freshness = float(params.max_freshness)
            explanation = "Very fresh"
            needs_alert = False
        else:
            remaining = days / shelf_life
            exponent = DECAY_EXPONENTS[params.decay_pattern]
            freshness = float(round_half_up(params.max_freshness * remaining ** exponent))
            explanation = _PATTERN_EXPLANATIONS[params.decay_pattern]
            needs_alert = days <= ALERT_WINDOW_DAYS and freshness < DECLINING_FRESHNESS_THRESHOLD

        freshness += self._condition_modifiers.get(condition, 0)
        freshness += self._storage_modifiers.get(storage, 0)

        # Category penalties
        if category == FoodCategory.DAIRY:
            if opened:
                freshness -= 15
                explanation = "Opened dairy decays faster"
                needs_alert = needs_alert or freshness < 50
            if storage == StorageLocation.PANTRY:
                freshness -= 40
                explanation = "Dairy needs refrigeration"
                needs_alert = True
        elif category == FoodCategory.MEAT:
            if opened and storage != StorageLocation.FREEZER:
                freshness -= 35
                explanation = "Opened meat decays quickly"
                needs_alert = True
            if storage == StorageLocation.PANTRY:
                freshness -= 50
                explanation = "Meat requires refrigeration"
                needs_alert = True
        elif category == FoodCategory.PRODUCE:
            if opened:
                freshness -= 20
                explanation = "Cut produce spoils faster"
                needs_alert = needs_alert or days <= 2

        # Hard safety caps, order matters
        if days == 0:
            freshness = min(freshness, EXPIRING_TODAY_CEILING)
            explanation = "Expiring today"
            needs_alert = True
        if near_expiry:
            freshness = min(freshness, NEAR_EXPIRY_CEILING)
            explanation = "Item marked as near expiry"
            needs_alert = needs_alert or days <= ALERT_WINDOW_DAYS
        if opened and 0 <= days <= 2:
            freshness = min(freshness, OPENED_SOON_CEILING)
            explanation = "Opened and expiring soon"
            needs_alert = True
        if days < 0:
            freshness = min(freshness, EXPIRED_CEILING)
            explanation = "Expired food"
            needs_alert = True

        score = max(0, min(100, round_half_up(freshness)))
        needs_alert = (
            needs_alert
            or days <= 0
            or score < LOW_FRESHNESS_THRESHOLD
            or (days <= ALERT_WINDOW_DAYS and score < DECLINING_FRESHNESS_THRESHOLD)
        )

        return FreshnessAssessment(
            freshness=score,
            needs_alert=needs_alert,
            explanation=explanation[:EXPLANATION_MAX_LENGTH],
            food_category=category,
            decay_pattern=params.decay_pattern,
        )


# Default instances built from the shipped rule tables
default_classifier = CategoryClassifier()
default_calculator = FreshnessCalculator(classifier=default_classifier)


def classify_food(name: Optional[str]) -> FoodCategory:
    return default_classifier.classify(name)


def calculate_basic_freshness(item, today: Optional[date] = None) -> FreshnessAssessment:
    return default_calculator.calculate(item, today)
