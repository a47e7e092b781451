"""
Recipe suggestions from the active inventory, and the user's saved recipes.

Suggestions come from the completion service; items that expire soonest are
listed first in the prompt so the recipes use them up before they go to waste.
"""

import json
import logging
import uuid
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError
from sqlalchemy.orm import Session

from adapters.llm_adapter import CompletionError, CompletionService
from app.exceptions import ForbiddenError, NotFoundError, ServiceUnavailableError
from domain.models import Recipe
from domain.rules import ALERT_WINDOW_DAYS
from domain.schemas import RecipeCreate, RecipeSuggestion, RecipeSuggestionsResponse
from repositories import FoodItemRepository, RecipeRepository
from services.freshness_calculator import days_until
from services.user_service import UserService

logger = logging.getLogger("wastenot.recipes")

MAX_SUGGESTIONS = 5
SUGGESTION_TEMPERATURE = 0.9
SUGGESTION_MAX_OUTPUT_TOKENS = 4000
EMPTY_INVENTORY_MESSAGE = "Add some food items to get recipe suggestions"

# Reply keys accepted for each suggestion field
_FIELD_ALIASES = {
    "title": ("title", "name"),
    "ingredients": ("ingredients",),
    "instructions": ("instructions", "steps"),
    "prep_time": ("prep_time", "prepTime"),
    "cook_time": ("cook_time", "cookTime"),
    "matched_ingredients": ("matched_ingredients", "matchedIngredients"),
}


def build_recipe_prompt(ingredients: Sequence[str], expiring_soon: Sequence[str]) -> str:
    """Prompt asking for a JSON object holding MAX_SUGGESTIONS recipes"""
    example = {
        "recipes": [
            {
                "title": "<string>",
                "ingredients": ["<string>"],
                "instructions": "<step by step instructions>",
                "prep_time": "<e.g. 10 mins>",
                "cook_time": "<e.g. 20 mins>",
                "matched_ingredients": ["<names from the list below>"],
            }
        ]
    }
    lines = [
        "You are a cooking assistant creating recipes from ingredients a household already has.",
        "",
        f"Available ingredients: {', '.join(ingredients)}",
    ]
    if expiring_soon:
        lines.append(f"Use these first, they expire soon: {', '.join(expiring_soon)}")
    lines += [
        "",
        f"Suggest exactly {MAX_SUGGESTIONS} varied, practical recipes.",
        "Each recipe uses at least 2 of the available ingredients.",
        "matched_ingredients lists only names taken from the available ingredients.",
        "Reply with one complete JSON object and nothing else, in this format:",
        json.dumps(example, indent=2),
    ]
    return "\n".join(lines)


def _pick(entry: Dict[str, Any], field: str):
    for key in _FIELD_ALIASES[field]:
        if key in entry:
            return entry[key]
    return None


def parse_suggestions(data: Dict[str, Any], available: Sequence[str]) -> List[RecipeSuggestion]:
    """
    Turn a model reply into suggestions.

    Entries that do not describe a usable recipe are dropped. Matched
    ingredients are limited to names from ``available``, spelled as stored.
    """
    entries = data.get("recipes")
    if not isinstance(entries, list):
        return []

    lookup = {name.lower(): name for name in available}
    suggestions: List[RecipeSuggestion] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        fields = {field: _pick(entry, field) for field in _FIELD_ALIASES}
        if isinstance(fields["instructions"], list):
            fields["instructions"] = "\n".join(str(step) for step in fields["instructions"])
        for field in ("prep_time", "cook_time"):
            if isinstance(fields[field], (int, float)) and not isinstance(fields[field], bool):
                fields[field] = f"{fields[field]} mins"
        matched = fields["matched_ingredients"]
        if isinstance(matched, list):
            names = [lookup.get(str(m).strip().lower()) for m in matched]
            fields["matched_ingredients"] = list(dict.fromkeys(n for n in names if n))
        try:
            suggestion = RecipeSuggestion(
                **{key: value for key, value in fields.items() if value is not None}
            )
        except ValidationError as e:
            logger.debug(f"Dropping recipe suggestion: {e.error_count()} invalid fields")
            continue
        suggestions.append(suggestion)
        if len(suggestions) == MAX_SUGGESTIONS:
            break
    return suggestions


class RecipeService:
    @staticmethod
    def suggest_recipes(
        db: Session,
        user_id: uuid.UUID,
        completion_service: Optional[CompletionService],
        today: Optional[date] = None,
    ) -> RecipeSuggestionsResponse:
        """
        Suggest recipes that use the user's active food items.

        The read transaction is released before the completion service is
        called. An empty inventory gives an empty list with a hint.

        Raises:
            NotFoundError: unknown user
            ServiceUnavailableError: no completion backend, or no usable reply
        """
        today = today or date.today()
        UserService.get_user(db, user_id)
        items = FoodItemRepository(db).get_active_by_expiry(user_id)

        ingredients = list(dict.fromkeys(item.name for item in items))
        if not ingredients:
            return RecipeSuggestionsResponse(
                recipes=[], ingredients=[], message=EMPTY_INVENTORY_MESSAGE
            )
        expiring_soon = list(
            dict.fromkeys(
                item.name
                for item in items
                if days_until(item.expiry_date, today) <= ALERT_WINDOW_DAYS
            )
        )
        db.rollback()

        if completion_service is None:
            raise ServiceUnavailableError(
                "Recipe suggestions need an LLM API key (GEMINI_API_KEY or GROQ_API_KEY)"
            )

        try:
            reply = completion_service.complete_json(
                build_recipe_prompt(ingredients, expiring_soon),
                expected_keys=("recipes",),
                temperature=SUGGESTION_TEMPERATURE,
                max_output_tokens=SUGGESTION_MAX_OUTPUT_TOKENS,
            )
        except CompletionError as e:
            logger.warning(f"Recipe suggestions failed for user {user_id}: {e}")
            raise ServiceUnavailableError(
                "Recipe suggestions are unavailable right now", details={"reason": str(e)}
            ) from e

        recipes = parse_suggestions(reply.data, ingredients)
        if not recipes:
            logger.warning(f"No usable recipes in reply from {reply.model}")
            raise ServiceUnavailableError("No usable recipe suggestions were returned")

        logger.info(f"Suggested {len(recipes)} recipes for user {user_id} via {reply.model}")
        return RecipeSuggestionsResponse(
            recipes=recipes, ingredients=ingredients, model=reply.model
        )

    @staticmethod
    def save_recipe(db: Session, data: RecipeCreate) -> Recipe:
        UserService.get_user(db, data.user_id)
        recipe = Recipe(
            user_id=data.user_id,
            title=data.title,
            ingredients=data.ingredients,
            instructions=data.instructions,
            prep_time=data.prep_time,
            cook_time=data.cook_time,
            image_url=data.image_url,
            matched_ingredients=data.matched_ingredients,
            saved_at=datetime.now(timezone.utc),
        )
        recipe = RecipeRepository(db).create(recipe)
        logger.info(f"Saved recipe {recipe.recipe_id} for user {data.user_id}")
        return recipe

    @staticmethod
    def list_recipes(db: Session, user_id: uuid.UUID) -> List[Recipe]:
        return RecipeRepository(db).get_by_user_id(user_id)

    @staticmethod
    def delete_recipe(db: Session, recipe_id: uuid.UUID, user_id: uuid.UUID) -> None:
        """
        Raises:
            NotFoundError: unknown recipe id
            ForbiddenError: recipe saved by another user
        """
        repo = RecipeRepository(db)
        recipe = repo.get_by_id(recipe_id)
        if not recipe:
            raise NotFoundError(f"Recipe not found: {recipe_id}")
        if recipe.user_id != user_id:
            raise ForbiddenError("Recipe belongs to another user")
        db.delete(recipe)
        db.commit()
        logger.info(f"Deleted recipe {recipe_id}")
