"""
Repositories package - Data access layer.
"""

from repositories.base import BaseRepository
from repositories.user_repository import UserRepository
from repositories.food_item_repository import FoodItemRepository
from repositories.alert_repository import AlertRepository
from repositories.recipe_repository import RecipeRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "FoodItemRepository",
    "AlertRepository",
    "RecipeRepository",
]
