"""
Domain schemas package - Pydantic models for validation.
"""

from domain.schemas.user_schemas import UserCreate, UserResponse
from domain.schemas.food_item_schemas import (
    FoodItemCreate,
    FoodItemUpdate,
    FoodItemStatusUpdate,
    FoodItemResponse,
    FreshnessResponse,
)
from domain.schemas.alert_schemas import (
    AlertResponse,
    AlertRunSummary,
    CronTriggerRequest,
)
from domain.schemas.recipe_schemas import (
    RecipeCreate,
    RecipeResponse,
    RecipeSuggestion,
    RecipeSuggestionsResponse,
)

__all__ = [
    # User schemas
    "UserCreate",
    "UserResponse",
    # Food item schemas
    "FoodItemCreate",
    "FoodItemUpdate",
    "FoodItemStatusUpdate",
    "FoodItemResponse",
    "FreshnessResponse",
    # Alert schemas
    "AlertResponse",
    "AlertRunSummary",
    "CronTriggerRequest",
    # Recipe schemas
    "RecipeCreate",
    "RecipeResponse",
    "RecipeSuggestion",
    "RecipeSuggestionsResponse",
]
