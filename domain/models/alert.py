"""
Alert models.
"""

from datetime import datetime, timezone
from sqlalchemy import (
    Column,
    Text,
    TIMESTAMP,
    ForeignKey,
    Integer,
    Date,
    Boolean,
    Index,
    Uuid,
    false,
)
from sqlalchemy.orm import relationship
import uuid

from domain.models.database import Base
from domain.models.food_item import enum_column_type
from domain.enums import AlertType, FoodCategory


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Alert(Base):
    """Expiry / freshness notification tied to one food item"""

    __tablename__ = "alert"

    alert_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("app_user.user_id", ondelete="CASCADE"),
        nullable=False,
    )
    food_item_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("food_item.food_item_id", ondelete="CASCADE"),
        nullable=False,
    )
    # Snapshotted from the item when the alert is created
    item_name = Column(Text, nullable=False)
    expiry_date = Column(Date, nullable=False)
    type = Column(enum_column_type(AlertType, "alert_type"), nullable=False)
    days_remaining = Column(Integer, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    is_email_sent = Column(Boolean, nullable=False, default=False)
    is_critical = Column(Boolean, nullable=False, default=False)
    freshness = Column(Integer, nullable=False, default=100)
    food_category = Column(
        enum_column_type(FoodCategory, "food_category"),
        nullable=False,
        default=FoodCategory.OTHER,
    )
    alert_reason = Column(Text, nullable=False, default="")
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=_utcnow)

    user = relationship("AppUser", back_populates="alerts")
    food_item = relationship("FoodItem", back_populates="alerts")

    __table_args__ = (
        # At most one unread alert per (item, type)
        Index(
            "uq_alert_unread_item_type",
            "food_item_id",
            "type",
            unique=True,
            postgresql_where=(is_read == false()),
            sqlite_where=(is_read == false()),
        ),
        Index("ix_alert_user_created", "user_id", "created_at"),
        Index("ix_alert_unsent", "is_email_sent"),
    )
