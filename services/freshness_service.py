"""
Freshness oracle and the compute-freshness operation.

The oracle prefers an AI estimate and falls back to the rule-based
calculator; either way the guardrails cap the result before it is stored.
"""

from __future__ import annotations

import json
import logging
import math
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional, Union

from sqlalchemy.orm import Session

from adapters.llm_adapter import CompletionError, CompletionService
from app.exceptions import ServiceValidationError
from domain.enums import DecayPattern, FoodCategory, ItemCondition
from domain.rules import EXPLANATION_MAX_LENGTH
from domain.schemas import FreshnessResponse
from services.food_item_service import FoodItemService
from services.freshness_calculator import (
    FreshnessAssessment,
    FreshnessCalculator,
    coerce_enum,
    days_until,
    default_calculator,
    round_half_up,
)
from services.freshness_guardrails import apply_guardrails

logger = logging.getLogger("wastenot.freshness")

EXPECTED_KEYS = ("freshness", "needs_alert", "explanation", "food_category", "decay_pattern")


@dataclass(frozen=True)
class ItemFacts:
    """Detached copy of the item attributes the estimate depends on"""

    name: str
    expiry_date: date
    added_date: Optional[date]
    shelf_life: int
    condition: object
    storage: object

    @classmethod
    def of(cls, item) -> "ItemFacts":
        return cls(
            name=item.name,
            expiry_date=item.expiry_date,
            added_date=item.added_date,
            shelf_life=item.shelf_life,
            condition=item.condition,
            storage=item.storage,
        )


# ============================================================================
# Oracle outcomes
# ============================================================================


@dataclass(frozen=True)
class OracleOk:
    assessment: FreshnessAssessment
    model: str


@dataclass(frozen=True)
class OracleFallback:
    assessment: FreshnessAssessment
    reason: str


@dataclass(frozen=True)
class OracleFailed:
    reason: str


OracleOutcome = Union[OracleOk, OracleFallback, OracleFailed]


def _enum_value(value) -> str:
    return getattr(value, "value", value)


def build_freshness_prompt(item, today: date, calculator: Optional[FreshnessCalculator] = None) -> str:
    """Prompt asking for a JSON freshness estimate of one item"""
    calculator = calculator or default_calculator
    classifier = calculator.classifier
    days = days_until(item.expiry_date, today)
    days_owned = days_until(today, item.added_date) if item.added_date else 0
    shelf_life = item.shelf_life or 0
    near_expiry = coerce_enum(ItemCondition, item.condition) == ItemCondition.NEAR_EXPIRY

    facts = {
        "food_name": item.name,
        "food_category": classifier.classify(item.name).value,
        "storage_location": _enum_value(item.storage),
        "condition": _enum_value(item.condition),
        "shelf_life_days": shelf_life,
        "days_owned": days_owned,
        "days_until_expiry": days,
        "is_expiring_today": days == 0,
        "is_critical_combination": days == 0
        and (near_expiry or classifier.is_dairy(item.name)),
        "percentage_of_shelf_life_elapsed": (
            min(100, round_half_up(days_owned / shelf_life * 100)) if shelf_life > 0 else 100
        ),
    }

    return (
        "You assess how fresh a stored food item is.\n\n"
        "Reply with one JSON object and nothing else, in this format:\n"
        "{\n"
        '  "freshness": <integer 0-100>,\n'
        '  "needs_alert": <true|false>,\n'
        '  "explanation": "<at most 100 characters>",\n'
        '  "food_category": "<dairy|meat|produce|baked|pantry|other>",\n'
        '  "decay_pattern": "<standard|exponential|slow>"\n'
        "}\n\n"
        f"Item:\n{json.dumps(facts, indent=2)}\n\n"
        "Hard limits:\n"
        "- Near expiry and expiring today: freshness at most 30\n"
        "- Dairy expiring today: freshness at most 40\n"
        "- Already expired: freshness at most 20\n"
        "- Expiring today: freshness at most 50\n"
        "- Marked near expiry: freshness at most 60\n\n"
        "Set needs_alert to true when the item expires today or has expired, "
        "freshness is below 30, a dairy or meat item is below 40, or the item "
        "expires within 3 days with freshness below 60."
    )


def _as_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return bool(value)


_PATTERN_ALIASES = {"rapid": DecayPattern.EXPONENTIAL, "linear": DecayPattern.STANDARD}


class FreshnessOracle:
    """
    AI freshness estimate with a deterministic fallback.

    ``assess`` never raises for oracle problems: transport errors, bad JSON
    and missing fields all end in ``OracleFallback``. ``OracleFailed`` is
    returned only when the fallback itself cannot score the item.
    """

    def __init__(
        self,
        completion_service: Optional[CompletionService] = None,
        calculator: Optional[FreshnessCalculator] = None,
        temperature: float = 0.2,
        max_output_tokens: int = 512,
    ):
        self.completion_service = completion_service
        self.calculator = calculator or default_calculator
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens

    def assess(self, item, today: Optional[date] = None) -> OracleOutcome:
        today = today or date.today()
        if self.completion_service is None:
            return self._fallback(item, today, "no completion backend configured")

        try:
            reply = self.completion_service.complete_json(
                build_freshness_prompt(item, today, self.calculator),
                expected_keys=EXPECTED_KEYS,
                temperature=self.temperature,
                max_output_tokens=self.max_output_tokens,
            )
        except CompletionError as e:
            return self._fallback(item, today, str(e))

        data = reply.data
        try:
            raw = float(data["freshness"])
        except (TypeError, ValueError):
            return self._fallback(item, today, f"non-numeric freshness {data['freshness']!r}")
        if not math.isfinite(raw):
            return self._fallback(item, today, f"non-finite freshness {raw!r}")

        category = coerce_enum(FoodCategory, data.get("food_category"))
        raw_pattern = data.get("decay_pattern")
        pattern = (
            _PATTERN_ALIASES.get(raw_pattern) or coerce_enum(DecayPattern, raw_pattern)
            if isinstance(raw_pattern, str)
            else None
        )
        explanation = data.get("explanation")
        assessment = FreshnessAssessment(
            freshness=max(0, min(100, round_half_up(raw))),
            needs_alert=_as_bool(data.get("needs_alert")),
            explanation=explanation if isinstance(explanation, str) else "",
            food_category=category or self.calculator.classifier.classify(item.name),
            decay_pattern=pattern or DecayPattern.STANDARD,
        )
        logger.info(
            f"AI freshness for {item.name}: {assessment.freshness} via {reply.model}"
        )
        return OracleOk(self._guard(assessment, item, today), reply.model)

    def _fallback(self, item, today: date, reason: str) -> OracleOutcome:
        logger.info(f"Using rule-based freshness for {item.name}: {reason}")
        try:
            assessment = self.calculator.calculate(item, today)
        except (TypeError, ValueError, AttributeError) as e:
            logger.error(f"Rule-based freshness failed for {item.name}: {e}")
            return OracleFailed(f"{reason}; fallback failed: {e}")
        return OracleFallback(self._guard(assessment, item, today), reason)

    def _guard(self, assessment: FreshnessAssessment, item, today: date) -> FreshnessAssessment:
        result = apply_guardrails(
            assessment.freshness,
            assessment.needs_alert,
            assessment.explanation,
            days_until_expiry=days_until(item.expiry_date, today),
            condition=item.condition,
            name=item.name,
            classifier=self.calculator.classifier,
        )
        if result.corrected:
            logger.info(f"Guardrail corrected freshness for {item.name}: {result.explanation}")
        return FreshnessAssessment(
            freshness=result.freshness,
            needs_alert=result.needs_alert,
            explanation=result.explanation[:EXPLANATION_MAX_LENGTH],
            food_category=assessment.food_category,
            decay_pattern=assessment.decay_pattern,
        )


class FreshnessService:
    @staticmethod
    def compute_freshness(
        db: Session,
        food_item_id: uuid.UUID,
        user_id: uuid.UUID,
        oracle: Optional[FreshnessOracle] = None,
        today: Optional[date] = None,
    ) -> FreshnessResponse:
        """
        Estimate an item's freshness and store it on the item.

        The read transaction is closed before the oracle is consulted, so no
        row stays locked while the network call is in flight; the result is
        written back under a row lock afterwards.

        Raises:
            NotFoundError: unknown item id
            ForbiddenError: item owned by another user
            ServiceValidationError: the item cannot be scored at all
        """
        oracle = oracle or FreshnessOracle()
        today = today or date.today()

        item = FoodItemService.get_owned_item(db, food_item_id, user_id)
        facts = ItemFacts.of(item)
        db.rollback()

        outcome = oracle.assess(facts, today)
        if isinstance(outcome, OracleFailed):
            raise ServiceValidationError(f"Cannot compute freshness: {outcome.reason}")

        assessment = outcome.assessment
        item = FoodItemService.get_owned_item(db, food_item_id, user_id, with_lock=True)
        item.freshness = assessment.freshness
        item.freshness_reason = assessment.explanation
        item.last_freshness_update = datetime.now(timezone.utc)
        db.commit()

        return FreshnessResponse(
            freshness=assessment.freshness,
            needs_alert=assessment.needs_alert,
            explanation=assessment.explanation,
            source="ai" if isinstance(outcome, OracleOk) else "fallback",
        )
