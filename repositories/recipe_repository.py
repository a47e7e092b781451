"""
Recipe Repository - Data access layer for saved recipes
"""

from typing import List
from uuid import UUID
from sqlalchemy.orm import Session

from repositories.base import BaseRepository
from domain.models import Recipe


class RecipeRepository(BaseRepository[Recipe]):
    """Repository for saved recipe data access"""

    id_column = "recipe_id"

    def __init__(self, db: Session):
        super().__init__(db, Recipe)

    def get_by_user_id(self, user_id: UUID) -> List[Recipe]:
        """Saved recipes of a user, most recently saved first"""
        return (
            self.db.query(Recipe)
            .filter(Recipe.user_id == user_id)
            .order_by(Recipe.saved_at.desc())
            .all()
        )
