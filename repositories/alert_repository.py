"""
Alert Repository - Data access layer for alerts
"""

from typing import List, Optional, Tuple
from uuid import UUID
from sqlalchemy.orm import Session
from sqlalchemy import and_

from repositories.base import BaseRepository
from domain.models import Alert, AppUser, FoodItem
from domain.enums import AlertType, ItemStatus


class AlertRepository(BaseRepository[Alert]):
    """Repository for alert data access"""

    id_column = "alert_id"

    def __init__(self, db: Session):
        super().__init__(db, Alert)

    def find_unread(
        self, food_item_id: UUID, alert_type: AlertType, with_lock: bool = False
    ) -> Optional[Alert]:
        """The unread alert for (item, type), if any"""
        query = self.db.query(Alert).filter(
            and_(
                Alert.food_item_id == food_item_id,
                Alert.type == alert_type,
                Alert.is_read.is_(False),
            )
        )
        if with_lock:
            query = query.with_for_update()
        return query.first()

    def get_unsent_for_active_items(
        self, with_lock: bool = False
    ) -> List[Tuple[Alert, FoodItem, AppUser]]:
        """
        Alerts not yet e-mailed whose item is still in the active inventory.

        With ``with_lock`` the alert rows stay locked until the transaction
        ends and rows locked by a concurrent run are skipped.
        """
        query = (
            self.db.query(Alert, FoodItem, AppUser)
            .join(FoodItem, Alert.food_item_id == FoodItem.food_item_id)
            .join(AppUser, Alert.user_id == AppUser.user_id)
            .filter(
                and_(
                    Alert.is_email_sent.is_(False),
                    FoodItem.status == ItemStatus.ACTIVE,
                )
            )
            .order_by(Alert.user_id, Alert.expiry_date, Alert.created_at)
        )
        if with_lock:
            query = query.with_for_update(skip_locked=True, of=Alert)
        return query.all()

    def get_by_user_id(self, user_id: UUID) -> List[Alert]:
        """All alerts of a user, newest first"""
        return (
            self.db.query(Alert)
            .filter(Alert.user_id == user_id)
            .order_by(Alert.created_at.desc())
            .all()
        )

    def mark_sent(self, alert_ids: List[UUID]) -> int:
        if not alert_ids:
            return 0
        return (
            self.db.query(Alert)
            .filter(Alert.alert_id.in_(alert_ids))
            .update({Alert.is_email_sent: True}, synchronize_session="fetch")
        )

    def delete_by_user_id(self, user_id: UUID) -> int:
        return (
            self.db.query(Alert)
            .filter(Alert.user_id == user_id)
            .delete(synchronize_session="fetch")
        )
