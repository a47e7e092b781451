"""
Alert lifecycle: scan items, upsert alerts, send consolidated notices.
"""

from typing import Dict, List, Optional, Tuple
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import date, timedelta
import logging
import threading
import time
import uuid

from domain.models import Alert, FoodItem
from domain.enums import AlertType, ItemCondition
from domain.rules import (
    ALERT_WINDOW_DAYS,
    LOW_FRESHNESS_THRESHOLD,
    PERISHABLE_LOW_FRESHNESS_THRESHOLD,
)
from domain.schemas import AlertRunSummary
from repositories import AlertRepository, FoodItemRepository
from services.freshness_calculator import (
    CategoryClassifier,
    coerce_enum,
    default_classifier,
    to_date,
)
from services.notification_service import (
    ConsolidatedExpiryNotice,
    NoticeItem,
    NotificationPort,
)
from app.exceptions import ForbiddenError, NotFoundError
from app.config import settings

logger = logging.getLogger("wastenot.alerts")

CREATED = "created"
REFRESHED = "refreshed"
UPDATED = "updated"
SKIPPED = "skipped"


def calendar_days_remaining(expiry_date, today: date) -> int:
    """
    Days left until expiry, compared by calendar date.

    Same-day expiry is always 0 and next-day expiry always 1, whatever the
    time components of the stored values.
    """
    expiry = to_date(expiry_date)
    today = to_date(today)
    if expiry == today:
        return 0
    if expiry == today + timedelta(days=1):
        return 1
    return (expiry - today).days


def is_critical(
    item, days_remaining: int, classifier: Optional[CategoryClassifier] = None
) -> bool:
    """High-risk items get a fresh alert on every run"""
    classifier = classifier or default_classifier
    near_expiry = coerce_enum(ItemCondition, item.condition) == ItemCondition.NEAR_EXPIRY
    return (
        (days_remaining == 0 and near_expiry)
        or days_remaining < 0
        or item.freshness < LOW_FRESHNESS_THRESHOLD
        or (
            classifier.is_dairy_or_meat(item.name)
            and item.freshness < PERISHABLE_LOW_FRESHNESS_THRESHOLD
        )
    )


def alert_reason(days_remaining: int, critical: bool, freshness: int) -> str:
    if days_remaining < 0:
        n = -days_remaining
        text = f"Expired {n} day{'s' if n != 1 else ''} ago"
    elif days_remaining == 0:
        text = "Expires today"
    elif days_remaining == 1:
        text = "Expires tomorrow"
    else:
        text = f"Expires in {days_remaining} days"
    if freshness < PERISHABLE_LOW_FRESHNESS_THRESHOLD:
        text += f", freshness {freshness}%"
    if critical:
        text += " (critical)"
    return text


@dataclass
class _ItemDecision:
    food_item_id: uuid.UUID
    user_id: uuid.UUID
    name: str
    expiry_date: date
    freshness: int
    alert_type: AlertType
    days_remaining: int
    critical: bool
    expiring_tomorrow: bool
    worth_refreshing: bool
    food_category: object


@dataclass
class _NoticeGroup:
    recipient_email: str
    recipient_name: Optional[str]
    expiry_date: date
    days_remaining: int
    items: List[NoticeItem] = field(default_factory=list)
    alert_ids: List[uuid.UUID] = field(default_factory=list)

    def to_notice(self) -> ConsolidatedExpiryNotice:
        return ConsolidatedExpiryNotice(
            recipient_email=self.recipient_email,
            recipient_name=self.recipient_name,
            expiry_date=self.expiry_date,
            days_remaining=self.days_remaining,
            alert_type=AlertType.EXPIRED if self.days_remaining <= 0 else AlertType.EXPIRING_SOON,
            items=list(self.items),
            has_critical_items=any(item.is_critical for item in self.items),
        )


# Last completed lifecycle run in this process, for ensure_fresh_alerts
_last_run_at: Optional[float] = None
_last_run_lock = threading.Lock()


class AlertService:
    # ============================================================================
    # Lifecycle run
    # ============================================================================

    @staticmethod
    def run_alert_lifecycle(
        db: Session,
        notifier: NotificationPort,
        today: Optional[date] = None,
        max_workers: Optional[int] = None,
        classifier: Optional[CategoryClassifier] = None,
    ) -> AlertRunSummary:
        """
        Create or refresh alerts for items needing attention and send one
        consolidated notice per (recipient, expiry date).

        Each item's upsert is its own transaction. A failed send only leaves
        that group's alerts unsent for the next run. Errors while loading the
        items propagate to the caller.

        Args:
            db: Database session
            notifier: outbound notice channel
            today: reference date, defaults to the current date
            max_workers: concurrent sends, defaults to settings
            classifier: keyword classifier, defaults to the shipped tables

        Returns:
            AlertRunSummary with the run's counts
        """
        global _last_run_at

        today = today or date.today()
        classifier = classifier or default_classifier
        summary = AlertRunSummary()

        items = FoodItemRepository(db).get_items_needing_attention(today)
        decisions = [AlertService._decide(item, today, classifier) for item in items]
        db.rollback()

        summary.total_items_processed = len(decisions)
        summary.critical_items_count = sum(1 for d in decisions if d.critical)
        summary.items_expiring_tomorrow_count = sum(
            1 for d in decisions if d.expiring_tomorrow
        )
        logger.info(
            f"Alert run for {today}: {len(decisions)} items, "
            f"{summary.critical_items_count} critical, "
            f"{summary.items_expiring_tomorrow_count} expiring tomorrow"
        )

        for decision in decisions:
            outcome = AlertService._upsert_alert(db, decision)
            if outcome == CREATED:
                summary.alerts_created += 1
            elif outcome in (REFRESHED, UPDATED):
                summary.alerts_updated += 1

        summary.emails_sent = AlertService._dispatch_notices(
            db, notifier, today, max_workers or settings.notification_max_workers
        )

        with _last_run_lock:
            _last_run_at = time.monotonic()

        logger.info(
            f"Alert run done: {summary.alerts_created} created, "
            f"{summary.alerts_updated} refreshed, {summary.emails_sent} notices sent"
        )
        return summary

    @staticmethod
    def _decide(item: FoodItem, today: date, classifier: CategoryClassifier) -> _ItemDecision:
        days_remaining = calendar_days_remaining(item.expiry_date, today)
        critical = is_critical(item, days_remaining, classifier)
        expiring_tomorrow = days_remaining == 1
        near_expiry = coerce_enum(ItemCondition, item.condition) == ItemCondition.NEAR_EXPIRY
        return _ItemDecision(
            food_item_id=item.food_item_id,
            user_id=item.user_id,
            name=item.name,
            expiry_date=to_date(item.expiry_date),
            freshness=item.freshness,
            alert_type=AlertType.EXPIRED if days_remaining <= 0 else AlertType.EXPIRING_SOON,
            days_remaining=days_remaining,
            critical=critical,
            expiring_tomorrow=expiring_tomorrow,
            worth_refreshing=(
                critical
                or expiring_tomorrow
                or item.freshness < PERISHABLE_LOW_FRESHNESS_THRESHOLD
                or (near_expiry and days_remaining <= ALERT_WINDOW_DAYS)
            ),
            food_category=classifier.classify(item.name),
        )

    @staticmethod
    def _upsert_alert(db: Session, decision: _ItemDecision) -> str:
        """
        Create, recreate, update or skip the unread alert of one item.

        The existing unread alert is read under a row lock. If a concurrent
        run inserts the same (item, type) first, the unique index rejects our
        insert and the change is applied to their row instead.
        """
        alert_repo = AlertRepository(db)
        try:
            existing = alert_repo.find_unread(
                decision.food_item_id, decision.alert_type, with_lock=True
            )
            replaced = False
            if existing is not None and (decision.critical or decision.expiring_tomorrow):
                alert_repo.remove(existing)
                existing = None
                replaced = True

            if existing is None:
                alert_repo.add(AlertService._new_alert(decision))
                db.commit()
                logger.debug(f"{'Recreated' if replaced else 'Created'} alert for {decision.name}")
                return REFRESHED if replaced else CREATED

            if not decision.worth_refreshing:
                db.rollback()
                return SKIPPED

            AlertService._refresh(existing, decision)
            db.commit()
            return UPDATED
        except IntegrityError:
            db.rollback()
            logger.info(f"Concurrent alert insert for {decision.name}, updating instead")
            existing = alert_repo.find_unread(
                decision.food_item_id, decision.alert_type, with_lock=True
            )
            if existing is None:
                db.rollback()
                return SKIPPED
            AlertService._refresh(existing, decision)
            db.commit()
            return UPDATED

    @staticmethod
    def _new_alert(decision: _ItemDecision) -> Alert:
        return Alert(
            user_id=decision.user_id,
            food_item_id=decision.food_item_id,
            item_name=decision.name,
            expiry_date=decision.expiry_date,
            type=decision.alert_type,
            days_remaining=decision.days_remaining,
            is_read=False,
            is_email_sent=False,
            is_critical=decision.critical,
            freshness=decision.freshness,
            food_category=decision.food_category,
            alert_reason=alert_reason(
                decision.days_remaining, decision.critical, decision.freshness
            ),
        )

    @staticmethod
    def _refresh(alert: Alert, decision: _ItemDecision) -> None:
        alert.days_remaining = decision.days_remaining
        alert.freshness = decision.freshness
        alert.is_critical = decision.critical
        alert.is_email_sent = False
        alert.alert_reason = alert_reason(
            decision.days_remaining, decision.critical, decision.freshness
        )

    # ============================================================================
    # Consolidated notices
    # ============================================================================

    @staticmethod
    def _collect_groups(db: Session, today: date) -> List[_NoticeGroup]:
        groups: Dict[Tuple[uuid.UUID, date], _NoticeGroup] = {}
        rows = AlertRepository(db).get_unsent_for_active_items(with_lock=True)
        for alert, item, user in rows:
            if not user.email:
                logger.warning(
                    f"Alert {alert.alert_id} left unsent: user {user.user_id} has no e-mail"
                )
                continue
            expiry = to_date(alert.expiry_date)
            group = groups.get((user.user_id, expiry))
            if group is None:
                group = _NoticeGroup(
                    recipient_email=user.email,
                    recipient_name=user.full_name,
                    expiry_date=expiry,
                    days_remaining=calendar_days_remaining(expiry, today),
                )
                groups[(user.user_id, expiry)] = group
            group.items.append(
                NoticeItem(
                    name=item.name,
                    food_category=alert.food_category,
                    freshness=alert.freshness,
                    storage=getattr(item.storage, "value", item.storage),
                    condition=getattr(item.condition, "value", item.condition),
                    is_critical=alert.is_critical,
                )
            )
            group.alert_ids.append(alert.alert_id)
        return list(groups.values())

    @staticmethod
    def _send(notifier: NotificationPort, notice: ConsolidatedExpiryNotice) -> bool:
        try:
            return bool(notifier.send_consolidated_expiry_notice(notice))
        except Exception:
            # A misbehaving transport must not take down the other groups
            logger.exception(f"Notifier raised for {notice.recipient_email}")
            return False

    @staticmethod
    def _dispatch_notices(
        db: Session, notifier: NotificationPort, today: date, max_workers: int
    ) -> int:
        """
        Send one notice per (recipient, expiry date) group and mark the sent
        alerts. The unsent alert rows stay locked until the sends finish, so
        an overlapping run skips them instead of e-mailing them twice.
        """
        groups = AlertService._collect_groups(db, today)
        if not groups:
            db.rollback()
            return 0

        sent_ids: List[uuid.UUID] = []
        emails_sent = 0
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = {
                pool.submit(AlertService._send, notifier, group.to_notice()): group
                for group in groups
            }
            for future in as_completed(futures):
                group = futures[future]
                if future.result():
                    emails_sent += 1
                    sent_ids.extend(group.alert_ids)
                else:
                    logger.warning(
                        f"Notice to {group.recipient_email} for "
                        f"{group.expiry_date} not sent; will retry next run"
                    )

        AlertRepository(db).mark_sent(sent_ids)
        db.commit()
        return emails_sent

    # ============================================================================
    # Trigger policy
    # ============================================================================

    @staticmethod
    def ensure_fresh_alerts(
        db: Session,
        notifier: NotificationPort,
        interval_minutes: Optional[int] = None,
        today: Optional[date] = None,
    ) -> Optional[AlertRunSummary]:
        """
        Run the lifecycle unless a run finished within the refresh interval.

        Returns:
            The run summary, or None when the previous run is recent enough
        """
        interval = (
            settings.alert_refresh_interval_minutes
            if interval_minutes is None
            else interval_minutes
        )
        with _last_run_lock:
            last = _last_run_at
        if last is not None and time.monotonic() - last < interval * 60:
            logger.debug("Alerts refreshed recently, skipping lifecycle run")
            return None
        return AlertService.run_alert_lifecycle(db, notifier, today=today)

    @staticmethod
    def reset_refresh_clock() -> None:
        global _last_run_at
        with _last_run_lock:
            _last_run_at = None

    # ============================================================================
    # User operations
    # ============================================================================

    @staticmethod
    def list_alerts(db: Session, user_id: uuid.UUID) -> List[Alert]:
        return AlertRepository(db).get_by_user_id(user_id)

    @staticmethod
    def mark_alert_read(db: Session, alert_id: uuid.UUID, user_id: uuid.UUID) -> Alert:
        alert_repo = AlertRepository(db)
        alert = alert_repo.get_by_id(alert_id, with_lock=True)
        if not alert:
            raise NotFoundError(f"Alert not found: {alert_id}")
        if alert.user_id != user_id:
            raise ForbiddenError("Alert belongs to another user")
        alert.is_read = True
        return alert_repo.update(alert)

    @staticmethod
    def clear_all_alerts(db: Session, user_id: uuid.UUID) -> int:
        deleted = AlertRepository(db).delete_by_user_id(user_id)
        db.commit()
        logger.info(f"Cleared {deleted} alerts for user {user_id}")
        return deleted
