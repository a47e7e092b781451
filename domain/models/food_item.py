"""
Food inventory models.
"""

from datetime import date
from sqlalchemy import (
    Column,
    Text,
    TIMESTAMP,
    ForeignKey,
    Integer,
    Date,
    CheckConstraint,
    Index,
    Uuid,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from domain.models.database import Base
from domain.enums import StorageLocation, ItemCondition, ItemStatus


def enum_column_type(enum_cls, name: str) -> SQLEnum:
    """Store enum values ("Fridge", "active") rather than member names"""
    return SQLEnum(
        enum_cls,
        name=name,
        native_enum=False,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


class FoodItem(Base):
    """One perishable item in a user's inventory"""

    __tablename__ = "food_item"

    food_item_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("app_user.user_id", ondelete="CASCADE"),
        nullable=False,
    )
    name = Column(Text, nullable=False)
    expiry_date = Column(Date, nullable=False)
    storage = Column(enum_column_type(StorageLocation, "storage_location"), nullable=False)
    condition = Column(enum_column_type(ItemCondition, "item_condition"), nullable=False)
    added_date = Column(Date, nullable=False, default=date.today)
    shelf_life = Column(Integer, nullable=False)
    freshness = Column(Integer, nullable=False, default=100)
    freshness_reason = Column(Text, nullable=False, default="")
    last_freshness_update = Column(TIMESTAMP(timezone=True))
    status = Column(
        enum_column_type(ItemStatus, "item_status"),
        nullable=False,
        default=ItemStatus.ACTIVE,
    )
    removed_date = Column(TIMESTAMP(timezone=True))
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    user = relationship("AppUser", back_populates="food_items")
    alerts = relationship(
        "Alert", back_populates="food_item", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint(
            "freshness >= 0 AND freshness <= 100", name="ck_food_item_freshness_range"
        ),
        CheckConstraint("shelf_life >= 1", name="ck_food_item_shelf_life_positive"),
        Index("ix_food_item_user_status", "user_id", "status"),
        Index("ix_food_item_status_expiry", "status", "expiry_date"),
    )
