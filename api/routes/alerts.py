"""Alert routes"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
import logging
from uuid import UUID
from typing import List

from api.dependencies import get_db, get_notifier
from domain.schemas import AlertResponse
from services.alert_service import AlertService
from services.notification_service import NotificationPort

router = APIRouter(prefix="/alerts", tags=["Alerts"])
logger = logging.getLogger("wastenot.api.alerts")


@router.get("/generate")
def generate_alerts(
    db: Session = Depends(get_db), notifier: NotificationPort = Depends(get_notifier)
):
    """Run the alert lifecycle now"""
    summary = AlertService.run_alert_lifecycle(db, notifier)
    return {
        "success": True,
        "message": "Alerts generated successfully",
        **summary.model_dump(),
    }


@router.get("", response_model=List[AlertResponse])
def list_alerts(
    user_id: UUID = Query(...),
    db: Session = Depends(get_db),
    notifier: NotificationPort = Depends(get_notifier),
):
    """
    List a user's alerts, newest first.

    Alerts are refreshed first unless a lifecycle run finished within the
    configured refresh interval. A failed refresh still lists what is stored.
    """
    try:
        AlertService.ensure_fresh_alerts(db, notifier)
    except Exception:
        logger.exception("Alert refresh before listing failed")
        db.rollback()
    return AlertService.list_alerts(db, user_id)


@router.put("/{alert_id}/read", response_model=AlertResponse)
def mark_alert_read(
    alert_id: UUID, user_id: UUID = Query(...), db: Session = Depends(get_db)
):
    return AlertService.mark_alert_read(db, alert_id, user_id)


@router.delete("")
def clear_all_alerts(user_id: UUID = Query(...), db: Session = Depends(get_db)):
    deleted = AlertService.clear_all_alerts(db, user_id)
    return {"status": "ok", "deleted": deleted}
