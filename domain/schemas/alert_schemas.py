"""Schemas for alerts and alert lifecycle runs"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, datetime
from uuid import UUID

from domain.enums import AlertType, FoodCategory


class AlertResponse(BaseModel):
    """Schema for alert response"""

    alert_id: UUID
    user_id: UUID
    food_item_id: UUID
    item_name: str
    expiry_date: date
    type: AlertType
    days_remaining: int
    is_read: bool
    is_email_sent: bool
    is_critical: bool
    freshness: int
    food_category: FoodCategory
    alert_reason: str
    created_at: datetime

    model_config = {"from_attributes": True}


class AlertRunSummary(BaseModel):
    """Counts reported by one alert lifecycle run"""

    alerts_created: int = 0
    alerts_updated: int = 0
    emails_sent: int = 0
    critical_items_count: int = 0
    items_expiring_tomorrow_count: int = 0
    total_items_processed: int = 0


class CronTriggerRequest(BaseModel):
    """Body of the scheduler trigger endpoint"""

    secret: Optional[str] = Field(None, description="Shared cron secret")
