"""Services package - Business logic layer"""

from services.user_service import UserService
from services.food_item_service import FoodItemService
from services.freshness_service import FreshnessOracle, FreshnessService
from services.alert_service import AlertService
from services.recipe_service import RecipeService

# freshness_calculator and freshness_guardrails hold pure functions, not services

__all__ = [
    "UserService",
    "FoodItemService",
    "FreshnessOracle",
    "FreshnessService",
    "AlertService",
    "RecipeService",
]
