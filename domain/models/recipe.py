"""
Saved recipe models.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, Text, TIMESTAMP, ForeignKey, Index, Uuid, JSON
from sqlalchemy.orm import relationship
import uuid

from domain.models.database import Base

NOT_SPECIFIED = "Not specified"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Recipe(Base):
    """A recipe a user kept from the suggestions"""

    __tablename__ = "recipe"

    recipe_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("app_user.user_id", ondelete="CASCADE"),
        nullable=False,
    )
    title = Column(Text, nullable=False)
    ingredients = Column(JSON, nullable=False, default=list)  # list of strings
    instructions = Column(Text, nullable=False)
    prep_time = Column(Text, nullable=False, default=NOT_SPECIFIED)
    cook_time = Column(Text, nullable=False, default=NOT_SPECIFIED)
    image_url = Column(Text, nullable=False, default="")
    # Names of the user's food items the recipe uses
    matched_ingredients = Column(JSON, nullable=False, default=list)
    saved_at = Column(TIMESTAMP(timezone=True), nullable=False, default=_utcnow)

    user = relationship("AppUser", back_populates="recipes")

    __table_args__ = (Index("ix_recipe_user_saved", "user_id", "saved_at"),)
