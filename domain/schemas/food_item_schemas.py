"""Schemas for food items and freshness results"""

from pydantic import BaseModel, Field, model_validator
from typing import Optional
from datetime import date, datetime
from uuid import UUID

from domain.enums import StorageLocation, ItemCondition, ItemStatus


class FoodItemCreate(BaseModel):
    """Schema for logging a new food item"""

    user_id: UUID
    name: str = Field(..., min_length=1, max_length=200)
    expiry_date: date
    storage: StorageLocation
    condition: ItemCondition
    shelf_life: int = Field(..., ge=1, description="Expected shelf life in days")
    freshness: Optional[int] = Field(
        None, ge=0, le=100, description="Initial freshness, defaults to 100"
    )


class FoodItemUpdate(BaseModel):
    """Partial update of a food item's attributes"""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    expiry_date: Optional[date] = None
    storage: Optional[StorageLocation] = None
    condition: Optional[ItemCondition] = None
    shelf_life: Optional[int] = Field(None, ge=1)
    freshness: Optional[int] = Field(None, ge=0, le=100)


class FoodItemStatusUpdate(BaseModel):
    """Move an item out of the active inventory"""

    status: ItemStatus
    removed_date: Optional[datetime] = None

    @model_validator(mode="after")
    def check_not_active(self):
        if self.status == ItemStatus.ACTIVE:
            raise ValueError("Use the restore endpoint to make an item active again")
        return self


class FoodItemResponse(BaseModel):
    """Schema for food item response"""

    food_item_id: UUID
    user_id: UUID
    name: str
    expiry_date: date
    storage: StorageLocation
    condition: ItemCondition
    added_date: date
    shelf_life: int
    freshness: int
    freshness_reason: str
    last_freshness_update: Optional[datetime]
    status: ItemStatus
    removed_date: Optional[datetime]

    model_config = {"from_attributes": True}


class FreshnessResponse(BaseModel):
    """Result of a freshness computation for one item"""

    freshness: int = Field(..., ge=0, le=100)
    needs_alert: bool
    explanation: str
    source: str = Field(
        ..., description="'ai' when the oracle answered, 'fallback' otherwise"
    )
