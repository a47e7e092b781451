"""Notification port for consolidated expiry notices."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

from domain.enums import AlertType, FoodCategory

logger = logging.getLogger("wastenot.notifications")


@dataclass(frozen=True)
class NoticeItem:
    name: str
    food_category: FoodCategory
    freshness: int
    storage: str
    condition: str
    is_critical: bool = False


@dataclass(frozen=True)
class ConsolidatedExpiryNotice:
    """Everything one recipient needs to hear about items sharing an expiry date"""

    recipient_email: str
    recipient_name: Optional[str]
    expiry_date: date
    days_remaining: int
    alert_type: AlertType
    items: List[NoticeItem] = field(default_factory=list)
    has_critical_items: bool = False

    def items_by_category(self) -> Dict[FoodCategory, List[NoticeItem]]:
        grouped: Dict[FoodCategory, List[NoticeItem]] = {}
        for item in self.items:
            grouped.setdefault(item.food_category, []).append(item)
        return grouped


class NotificationPort(ABC):
    """Outbound channel for expiry notices"""

    @abstractmethod
    def send_consolidated_expiry_notice(self, notice: ConsolidatedExpiryNotice) -> bool:
        """
        Deliver one notice.

        Returns:
            bool: True when the notice was handed to the transport. Failures
            are reported through the return value, never raised.
        """


class LoggingNotifier(NotificationPort):
    """Used when no mail transport is configured; logs and reports not sent"""

    def send_consolidated_expiry_notice(self, notice: ConsolidatedExpiryNotice) -> bool:
        logger.warning(
            f"No mail transport configured; notice for {notice.recipient_email} "
            f"({len(notice.items)} items expiring {notice.expiry_date}) not sent"
        )
        return False
