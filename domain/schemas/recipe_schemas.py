"""Schemas for recipe suggestions and saved recipes"""

from pydantic import BaseModel, Field, ValidationInfo, field_validator
from typing import List, Optional
from datetime import datetime
from uuid import UUID

NOT_SPECIFIED = "Not specified"


def _clean_names(values: List[str]) -> List[str]:
    return [v.strip() for v in values if isinstance(v, str) and v.strip()]


class RecipeSuggestion(BaseModel):
    """One recipe proposed from the user's active inventory"""

    title: str = Field(..., min_length=1, max_length=200)
    ingredients: List[str] = Field(..., min_length=1)
    instructions: str = Field(..., min_length=1)
    prep_time: str = NOT_SPECIFIED
    cook_time: str = NOT_SPECIFIED
    matched_ingredients: List[str] = []

    @field_validator("ingredients", "matched_ingredients")
    @classmethod
    def strip_names(cls, v: List[str]) -> List[str]:
        return _clean_names(v)


class RecipeSuggestionsResponse(BaseModel):
    """Suggestions plus the inventory names they were built from"""

    recipes: List[RecipeSuggestion]
    ingredients: List[str]
    message: Optional[str] = None
    model: Optional[str] = Field(None, description="Model that produced the suggestions")


class RecipeCreate(BaseModel):
    """Schema for saving a recipe"""

    user_id: UUID
    title: str = Field(..., min_length=1, max_length=200)
    ingredients: List[str] = Field(..., min_length=1)
    instructions: str = Field(..., min_length=1)
    prep_time: str = Field(NOT_SPECIFIED, max_length=50)
    cook_time: str = Field(NOT_SPECIFIED, max_length=50)
    image_url: str = Field("", max_length=2000)
    matched_ingredients: List[str] = []

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title must not be blank")
        return v

    @field_validator("ingredients", "matched_ingredients")
    @classmethod
    def strip_names(cls, v: List[str], info: ValidationInfo) -> List[str]:
        names = _clean_names(v)
        if info.field_name == "ingredients" and not names:
            raise ValueError("At least one ingredient is required")
        return names


class RecipeResponse(BaseModel):
    """Schema for saved recipe response"""

    recipe_id: UUID
    user_id: UUID
    title: str
    ingredients: List[str]
    instructions: str
    prep_time: str
    cook_time: str
    image_url: str
    matched_ingredients: List[str]
    saved_at: datetime

    model_config = {"from_attributes": True}
