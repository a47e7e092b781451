"""Recipe suggestion and saved recipe routes"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
import logging
from uuid import UUID
from typing import List, Optional

from adapters.llm_adapter import CompletionService
from api.dependencies import get_completion_service, get_db
from domain.schemas import RecipeCreate, RecipeResponse, RecipeSuggestionsResponse
from services.recipe_service import RecipeService

router = APIRouter(prefix="/recipes", tags=["Recipes"])
logger = logging.getLogger("wastenot.api.recipes")


@router.get("/suggestions", response_model=RecipeSuggestionsResponse)
def get_recipe_suggestions(
    user_id: UUID = Query(..., description="Owner of the inventory"),
    db: Session = Depends(get_db),
    completion_service: Optional[CompletionService] = Depends(get_completion_service),
):
    """
    Suggest recipes built from the user's active food items.

    Items expiring soonest are favoured. Returns 503 when no LLM backend is
    configured or none gave a usable answer.
    """
    return RecipeService.suggest_recipes(db, user_id, completion_service)


@router.post("", response_model=RecipeResponse, status_code=status.HTTP_201_CREATED)
def save_recipe(recipe: RecipeCreate, db: Session = Depends(get_db)):
    return RecipeService.save_recipe(db, recipe)


@router.get("", response_model=List[RecipeResponse])
def list_recipes(user_id: UUID = Query(...), db: Session = Depends(get_db)):
    """Saved recipes, most recently saved first"""
    return RecipeService.list_recipes(db, user_id)


@router.delete("/{recipe_id}")
def delete_recipe(
    recipe_id: UUID, user_id: UUID = Query(...), db: Session = Depends(get_db)
):
    RecipeService.delete_recipe(db, recipe_id, user_id)
    return {"status": "ok", "deleted": str(recipe_id)}
