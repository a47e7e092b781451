"""Scheduler trigger route"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import hmac
import logging

from api.dependencies import get_db, get_notifier
from app.config import settings
from app.exceptions import UnauthorizedError
from domain.schemas import CronTriggerRequest
from services.alert_service import AlertService
from services.notification_service import NotificationPort

router = APIRouter(prefix="/cron", tags=["Cron"])
logger = logging.getLogger("wastenot.api.cron")


@router.post("/generate-alerts")
def cron_generate_alerts(
    body: CronTriggerRequest,
    db: Session = Depends(get_db),
    notifier: NotificationPort = Depends(get_notifier),
):
    """Run the alert lifecycle from an external scheduler holding the cron secret"""
    if not settings.cron_secret or not body.secret or not hmac.compare_digest(
        body.secret, settings.cron_secret
    ):
        raise UnauthorizedError("Invalid cron secret")

    logger.info("Cron-triggered alert run")
    summary = AlertService.run_alert_lifecycle(db, notifier)
    return {"success": True, **summary.model_dump()}
