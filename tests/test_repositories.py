"""
Repository query tests and the one-shot alert script.
"""

import importlib.util
import json
from pathlib import Path

import pytest

from domain.enums import AlertType, ItemCondition, ItemStatus
from domain.models import Alert
from repositories import AlertRepository, FoodItemRepository
from services.alert_service import AlertService
from domain.schemas import AlertRunSummary
from test_fixtures import TODAY, create_food_item, create_user, db_session


# ============================================================================
# FOOD ITEMS
# ============================================================================


def test_items_needing_attention(db_session):
    """
    Verifies the selection used by the alert run:
    - expiring within three days (or expired)
    - freshness below 40
    - marked near expiry, whatever the date
    - active items only
    """
    user = create_user(db_session)
    create_food_item(db_session, user, "Soon", days_until_expiry=3)
    create_food_item(db_session, user, "Expired", days_until_expiry=-4)
    create_food_item(db_session, user, "Stale", days_until_expiry=20, freshness=39)
    create_food_item(
        db_session, user, "Marked", days_until_expiry=20, condition=ItemCondition.NEAR_EXPIRY
    )
    create_food_item(db_session, user, "Later", days_until_expiry=4)
    create_food_item(
        db_session, user, "Eaten", days_until_expiry=1, status=ItemStatus.CONSUMED
    )

    items = FoodItemRepository(db_session).get_items_needing_attention(TODAY)

    assert [i.name for i in items][:2] == ["Expired", "Soon"]
    assert {i.name for i in items} == {"Soon", "Expired", "Stale", "Marked"}


def test_get_by_id_with_lock(db_session):
    user = create_user(db_session)
    item = create_food_item(db_session, user)

    found = FoodItemRepository(db_session).get_by_id(item.food_item_id, with_lock=True)

    assert found.food_item_id == item.food_item_id


# ============================================================================
# ALERTS
# ============================================================================


def add_alert(db, user, item, **overrides):
    fields = dict(
        user_id=user.user_id,
        food_item_id=item.food_item_id,
        item_name=item.name,
        expiry_date=item.expiry_date,
        type=AlertType.EXPIRING_SOON,
        days_remaining=2,
    )
    fields.update(overrides)
    alert = Alert(**fields)
    db.add(alert)
    db.commit()
    return alert


def test_find_unread_ignores_read_alerts(db_session):
    user = create_user(db_session)
    item = create_food_item(db_session, user)
    add_alert(db_session, user, item, is_read=True)
    repo = AlertRepository(db_session)

    assert repo.find_unread(item.food_item_id, AlertType.EXPIRING_SOON) is None

    unread = add_alert(db_session, user, item)
    assert repo.find_unread(item.food_item_id, AlertType.EXPIRING_SOON).alert_id == unread.alert_id
    assert repo.find_unread(item.food_item_id, AlertType.EXPIRED) is None


def test_unsent_alerts_join_active_items_and_users(db_session):
    user = create_user(db_session)
    active = create_food_item(db_session, user, "Active")
    removed = create_food_item(db_session, user, "Removed", status=ItemStatus.WASTED)
    add_alert(db_session, user, active)
    add_alert(db_session, user, active, type=AlertType.EXPIRED, is_email_sent=True)
    add_alert(db_session, user, removed)

    rows = AlertRepository(db_session).get_unsent_for_active_items(with_lock=True)

    assert len(rows) == 1
    alert, item, owner = rows[0]
    assert item.name == "Active"
    assert owner.email == user.email
    assert alert.is_email_sent is False


def test_mark_sent_updates_loaded_rows(db_session):
    user = create_user(db_session)
    item = create_food_item(db_session, user)
    alert = add_alert(db_session, user, item)
    repo = AlertRepository(db_session)

    assert repo.mark_sent([alert.alert_id]) == 1
    assert repo.mark_sent([]) == 0
    assert alert.is_email_sent is True


# ============================================================================
# ONE-SHOT SCRIPT
# ============================================================================


def load_script():
    path = Path(__file__).parent.parent / "scripts" / "generate_alerts.py"
    spec = importlib.util.spec_from_file_location("generate_alerts_script", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_script_prints_summary(monkeypatch, capsys, db_session):
    script = load_script()
    seen = {}

    def fake_run(db, notifier, today=None):
        seen["today"] = today
        return AlertRunSummary(alerts_created=2, emails_sent=1)

    monkeypatch.setattr(AlertService, "run_alert_lifecycle", fake_run)

    assert script.main(["--today", "2025-06-15"]) == 0
    assert seen["today"] == TODAY
    assert json.loads(capsys.readouterr().out)["alerts_created"] == 2


def test_script_exit_code_on_failure(monkeypatch, db_session):
    script = load_script()

    def broken(db, notifier, today=None):
        raise RuntimeError("database unreachable")

    monkeypatch.setattr(AlertService, "run_alert_lifecycle", broken)

    assert script.main([]) == 1


def test_script_rejects_bad_date():
    script = load_script()

    with pytest.raises(SystemExit):
        script.parse_args(["--today", "15/06/2025"])
