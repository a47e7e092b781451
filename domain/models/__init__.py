"""
Domain models package - SQLAlchemy ORM models.
"""

from domain.models.database import (
    Base,
    engine,
    SessionLocal,
    init_database,
    get_db_session,
)
from domain.models.user import AppUser
from domain.models.food_item import FoodItem
from domain.models.alert import Alert
from domain.models.recipe import Recipe

__all__ = [
    # Database
    "Base",
    "engine",
    "SessionLocal",
    "init_database",
    "get_db_session",
    # Models
    "AppUser",
    "FoodItem",
    "Alert",
    "Recipe",
]
