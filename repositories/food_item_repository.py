"""
Food Item Repository - Data access layer for inventory items
"""

from typing import List
from uuid import UUID
from datetime import date, timedelta
from sqlalchemy.orm import Session
from sqlalchemy import and_, or_

from repositories.base import BaseRepository
from domain.models import FoodItem
from domain.enums import ItemCondition, ItemStatus
from domain.rules import ALERT_WINDOW_DAYS, PERISHABLE_LOW_FRESHNESS_THRESHOLD


class FoodItemRepository(BaseRepository[FoodItem]):
    """Repository for food item data access"""

    id_column = "food_item_id"

    def __init__(self, db: Session):
        super().__init__(db, FoodItem)

    def get_by_user_and_status(self, user_id: UUID, status: ItemStatus) -> List[FoodItem]:
        """
        Items of one user in one lifecycle status.

        Active items are ordered by added date, removed ones by removal date,
        newest first in both cases.
        """
        order = (
            FoodItem.added_date.desc()
            if status == ItemStatus.ACTIVE
            else FoodItem.removed_date.desc()
        )
        return (
            self.db.query(FoodItem)
            .filter(and_(FoodItem.user_id == user_id, FoodItem.status == status))
            .order_by(order, FoodItem.created_at.desc())
            .all()
        )

    def get_active_by_expiry(self, user_id: UUID) -> List[FoodItem]:
        """Active items of a user, soonest expiry first"""
        return (
            self.db.query(FoodItem)
            .filter(
                and_(FoodItem.user_id == user_id, FoodItem.status == ItemStatus.ACTIVE)
            )
            .order_by(FoodItem.expiry_date.asc(), FoodItem.name.asc())
            .all()
        )

    def get_items_needing_attention(self, today: date) -> List[FoodItem]:
        """
        Active items the alert run has to look at: expiring within the alert
        window (or already expired), low freshness, or marked near expiry.
        """
        cutoff = today + timedelta(days=ALERT_WINDOW_DAYS)
        return (
            self.db.query(FoodItem)
            .filter(
                and_(
                    FoodItem.status == ItemStatus.ACTIVE,
                    or_(
                        FoodItem.expiry_date <= cutoff,
                        FoodItem.freshness < PERISHABLE_LOW_FRESHNESS_THRESHOLD,
                        FoodItem.condition == ItemCondition.NEAR_EXPIRY,
                    ),
                )
            )
            .order_by(FoodItem.expiry_date)
            .all()
        )
