from typing import List, Optional
from sqlalchemy.orm import Session
import logging
import uuid
from datetime import date, datetime, timezone

from domain.models import FoodItem
from domain.enums import ItemStatus, REMOVED_STATUSES
from domain.schemas import FoodItemCreate, FoodItemUpdate
from repositories import FoodItemRepository, UserRepository
from app.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ServiceValidationError,
)

logger = logging.getLogger("wastenot.food_items")


class FoodItemService:
    @staticmethod
    def get_owned_item(
        db: Session, food_item_id: uuid.UUID, user_id: uuid.UUID, with_lock: bool = False
    ) -> FoodItem:
        """
        Load an item and check it belongs to the caller.

        Raises:
            NotFoundError: unknown item id
            ForbiddenError: item owned by another user
        """
        item = FoodItemRepository(db).get_by_id(food_item_id, with_lock=with_lock)
        if not item:
            raise NotFoundError(f"Food item not found: {food_item_id}")
        if item.user_id != user_id:
            raise ForbiddenError("Food item belongs to another user")
        return item

    @staticmethod
    def add_item(db: Session, data: FoodItemCreate, today: Optional[date] = None) -> FoodItem:
        if not UserRepository(db).get_by_id(data.user_id):
            raise NotFoundError(f"User not found: {data.user_id}")

        item = FoodItem(
            user_id=data.user_id,
            name=data.name.strip(),
            expiry_date=data.expiry_date,
            storage=data.storage,
            condition=data.condition,
            shelf_life=data.shelf_life,
            added_date=today or date.today(),
            freshness=100 if data.freshness is None else data.freshness,
            status=ItemStatus.ACTIVE,
        )
        item = FoodItemRepository(db).create(item)
        logger.info(f"Added food item {item.food_item_id} for user {data.user_id}")
        return item

    @staticmethod
    def list_items(
        db: Session, user_id: uuid.UUID, status: ItemStatus = ItemStatus.ACTIVE
    ) -> List[FoodItem]:
        return FoodItemRepository(db).get_by_user_and_status(user_id, status)

    @staticmethod
    def update_item(
        db: Session, food_item_id: uuid.UUID, user_id: uuid.UUID, changes: FoodItemUpdate
    ) -> FoodItem:
        """Partial update; fields left out (freshness included) keep their value"""
        item = FoodItemService.get_owned_item(db, food_item_id, user_id, with_lock=True)
        for field, value in changes.model_dump(exclude_unset=True).items():
            if value is None:
                continue
            setattr(item, field, value.strip() if field == "name" else value)
        return FoodItemRepository(db).update(item)

    @staticmethod
    def change_status(
        db: Session,
        food_item_id: uuid.UUID,
        user_id: uuid.UUID,
        status: ItemStatus,
        removed_date: Optional[datetime] = None,
    ) -> FoodItem:
        """Move an active item to consumed, wasted or deleted"""
        if status not in REMOVED_STATUSES:
            raise ServiceValidationError(
                f"Invalid status {status}; expected one of "
                + ", ".join(s.value for s in REMOVED_STATUSES)
            )
        item = FoodItemService.get_owned_item(db, food_item_id, user_id, with_lock=True)
        if item.status != ItemStatus.ACTIVE:
            raise ConflictError(f"Food item is already {item.status.value}")
        item.status = status
        item.removed_date = removed_date or datetime.now(timezone.utc)
        item = FoodItemRepository(db).update(item)
        logger.info(f"Food item {food_item_id} marked {status.value}")
        return item

    @staticmethod
    def restore_item(db: Session, food_item_id: uuid.UUID, user_id: uuid.UUID) -> FoodItem:
        item = FoodItemService.get_owned_item(db, food_item_id, user_id, with_lock=True)
        if item.status == ItemStatus.ACTIVE:
            raise ConflictError("Food item is already active")
        item.status = ItemStatus.ACTIVE
        item.removed_date = None
        return FoodItemRepository(db).update(item)

    @staticmethod
    def permanently_delete(db: Session, food_item_id: uuid.UUID, user_id: uuid.UUID) -> None:
        """Physically remove an item from the deleted list, with its alerts"""
        item = FoodItemService.get_owned_item(db, food_item_id, user_id, with_lock=True)
        if item.status != ItemStatus.DELETED:
            raise ConflictError("Only items in the deleted list can be removed permanently")
        # Alerts go with the item through the relationship cascade
        db.delete(item)
        db.commit()
        logger.info(f"Permanently deleted food item {food_item_id}")
