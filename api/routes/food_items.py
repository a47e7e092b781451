"""Food inventory routes"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
import logging
from uuid import UUID
from typing import List

from api.dependencies import get_db, get_freshness_oracle
from domain.enums import ItemStatus
from domain.schemas import (
    FoodItemCreate,
    FoodItemResponse,
    FoodItemStatusUpdate,
    FoodItemUpdate,
    FreshnessResponse,
)
from services.food_item_service import FoodItemService
from services.freshness_service import FreshnessOracle, FreshnessService

router = APIRouter(prefix="/food-items", tags=["Food Items"])
logger = logging.getLogger("wastenot.api.food_items")


@router.post("", response_model=FoodItemResponse, status_code=status.HTTP_201_CREATED)
def add_food_item(item: FoodItemCreate, db: Session = Depends(get_db)):
    """Log a new item in the active inventory"""
    return FoodItemService.add_item(db, item)


@router.get("", response_model=List[FoodItemResponse])
def list_food_items(
    user_id: UUID = Query(..., description="Owner of the items"),
    status_filter: ItemStatus = Query(ItemStatus.ACTIVE, alias="status"),
    db: Session = Depends(get_db),
):
    """
    List a user's items in one lifecycle status.

    Active items come newest-added first; consumed, wasted and deleted items
    come most recently removed first.
    """
    return FoodItemService.list_items(db, user_id, status_filter)


@router.put("/{food_item_id}", response_model=FoodItemResponse)
def update_food_item(
    food_item_id: UUID,
    changes: FoodItemUpdate,
    user_id: UUID = Query(...),
    db: Session = Depends(get_db),
):
    return FoodItemService.update_item(db, food_item_id, user_id, changes)


@router.put("/{food_item_id}/status", response_model=FoodItemResponse)
def change_food_item_status(
    food_item_id: UUID,
    body: FoodItemStatusUpdate,
    user_id: UUID = Query(...),
    db: Session = Depends(get_db),
):
    """Mark an item consumed, wasted or deleted"""
    return FoodItemService.change_status(
        db, food_item_id, user_id, body.status, body.removed_date
    )


@router.put("/{food_item_id}/restore", response_model=FoodItemResponse)
def restore_food_item(
    food_item_id: UUID, user_id: UUID = Query(...), db: Session = Depends(get_db)
):
    return FoodItemService.restore_item(db, food_item_id, user_id)


@router.delete("/{food_item_id}")
def delete_food_item(
    food_item_id: UUID, user_id: UUID = Query(...), db: Session = Depends(get_db)
):
    """Permanently remove an item from the deleted list"""
    FoodItemService.permanently_delete(db, food_item_id, user_id)
    return {"status": "ok", "deleted": str(food_item_id)}


@router.get("/{food_item_id}/freshness", response_model=FreshnessResponse)
def compute_freshness(
    food_item_id: UUID,
    user_id: UUID = Query(...),
    db: Session = Depends(get_db),
    oracle: FreshnessOracle = Depends(get_freshness_oracle),
):
    """Recalculate and store an item's freshness score"""
    return FreshnessService.compute_freshness(db, food_item_id, user_id, oracle=oracle)
