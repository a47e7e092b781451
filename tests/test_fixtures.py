"""
Shared test fixtures and utilities for the WasteNot test suite.

This module contains mock objects, helper functions, fake ports and the test
client setup reused across test files. Dates are pinned to ``TODAY`` so the
freshness and alert rules are evaluated against a known calendar.
"""

import threading
import uuid
from types import SimpleNamespace
from datetime import datetime, date, timedelta, timezone
from typing import Generator, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from main import app
from domain.models import Base, engine, SessionLocal, AppUser, FoodItem
from domain.enums import (
    AlertType,
    FoodCategory,
    ItemCondition,
    ItemStatus,
    StorageLocation,
)
from adapters.llm_adapter import CompletionError, JsonCompletion
from services.notification_service import ConsolidatedExpiryNotice, NotificationPort

# Lifespan is not entered without a context manager, so no DB init happens here
client = TestClient(app)

TODAY = date(2025, 6, 15)


def unique_email(prefix: str = "test") -> str:
    """Generate unique email address using UUID to avoid conflicts"""
    return f"{prefix}-{uuid.uuid4()}@example.com"


# =============================================================================
# MOCK OBJECTS FOR ENDPOINT TESTS
# =============================================================================


def make_user(user_id=None, email=None, full_name="Sarah Martinez"):
    """
    Create a mock user object shaped like the ORM row.

    Returns:
        SimpleNamespace: user with user_id, email, full_name, created_at
    """
    return SimpleNamespace(
        user_id=user_id or uuid.uuid4(),
        email=email or unique_email("sarah.martinez"),
        full_name=full_name,
        created_at=datetime.now(timezone.utc),
    )


def make_food_item(
    food_item_id=None,
    user_id=None,
    name="Whole Milk",
    expiry_date=None,
    storage=StorageLocation.FRIDGE,
    condition=ItemCondition.FRESHLY_BOUGHT,
    shelf_life=7,
    freshness=100,
    status=ItemStatus.ACTIVE,
    removed_date=None,
):
    """Create a mock food item object shaped like the ORM row"""
    return SimpleNamespace(
        food_item_id=food_item_id or uuid.uuid4(),
        user_id=user_id or uuid.uuid4(),
        name=name,
        expiry_date=expiry_date or TODAY + timedelta(days=5),
        storage=storage,
        condition=condition,
        added_date=TODAY,
        shelf_life=shelf_life,
        freshness=freshness,
        freshness_reason="",
        last_freshness_update=None,
        status=status,
        removed_date=removed_date,
    )


def make_alert(alert_id=None, user_id=None, food_item_id=None, **overrides):
    """Create a mock alert object shaped like the ORM row"""
    fields = dict(
        alert_id=alert_id or uuid.uuid4(),
        user_id=user_id or uuid.uuid4(),
        food_item_id=food_item_id or uuid.uuid4(),
        item_name="Whole Milk",
        expiry_date=TODAY + timedelta(days=1),
        type=AlertType.EXPIRING_SOON,
        days_remaining=1,
        is_read=False,
        is_email_sent=False,
        is_critical=False,
        freshness=55,
        food_category=FoodCategory.DAIRY,
        alert_reason="Expires tomorrow",
        created_at=datetime.now(timezone.utc),
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


def make_recipe(recipe_id=None, user_id=None, title="Milk rice pudding", **overrides):
    """Create a mock saved recipe shaped like the ORM row"""
    fields = dict(
        recipe_id=recipe_id or uuid.uuid4(),
        user_id=user_id or uuid.uuid4(),
        title=title,
        ingredients=["Whole Milk", "Basmati rice", "Sugar"],
        instructions="Simmer the rice in the milk, stir in sugar.",
        prep_time="5 mins",
        cook_time="30 mins",
        image_url="",
        matched_ingredients=["Whole Milk", "Basmati rice"],
        saved_at=datetime.now(timezone.utc),
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


# =============================================================================
# FAKE PORTS
# =============================================================================


class FakeNotifier(NotificationPort):
    """
    Records every notice. Sends to addresses in ``fail_for`` report failure,
    sends to addresses in ``raise_for`` raise.
    """

    def __init__(self, fail_for=(), raise_for=()):
        self.fail_for = set(fail_for)
        self.raise_for = set(raise_for)
        self.notices: List[ConsolidatedExpiryNotice] = []
        self._lock = threading.Lock()

    def send_consolidated_expiry_notice(self, notice: ConsolidatedExpiryNotice) -> bool:
        with self._lock:
            self.notices.append(notice)
        if notice.recipient_email in self.raise_for:
            raise RuntimeError("transport exploded")
        return notice.recipient_email not in self.fail_for

    def sent_to(self, email: str) -> List[ConsolidatedExpiryNotice]:
        return [n for n in self.notices if n.recipient_email == email]


class FakeCompletionService:
    """Stands in for CompletionService; answers with ``data`` or raises ``error``"""

    def __init__(self, data: Optional[dict] = None, error: Optional[Exception] = None, model="fake-model"):
        self.data = data
        self.error = error
        self.model = model
        self.prompts: List[str] = []

    def complete_json(self, prompt, expected_keys=(), temperature=0.2, max_output_tokens=512):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        missing = [k for k in expected_keys if k not in self.data]
        if missing:
            raise CompletionError(f"missing keys {missing}")
        return JsonCompletion(data=self.data, model=self.model)


# =============================================================================
# DATABASE SESSION FIXTURE FOR INTEGRATION TESTS
# =============================================================================


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """
    Create a database session on a fresh in-memory SQLite schema.

    Tables are created before and dropped after each test, so every test
    starts from an empty database.
    """
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        Base.metadata.drop_all(bind=engine)


def create_user(db: Session, email=None, full_name="Sarah Martinez") -> AppUser:
    user = AppUser(email=email or unique_email(), full_name=full_name)
    db.add(user)
    db.commit()
    return user


def create_food_item(
    db: Session,
    user: AppUser,
    name="Hummus",
    days_until_expiry=5,
    storage=StorageLocation.FRIDGE,
    condition=ItemCondition.FRESHLY_BOUGHT,
    shelf_life=7,
    freshness=100,
    status=ItemStatus.ACTIVE,
    added_date=TODAY,
) -> FoodItem:
    item = FoodItem(
        user_id=user.user_id,
        name=name,
        expiry_date=TODAY + timedelta(days=days_until_expiry),
        storage=storage,
        condition=condition,
        shelf_life=shelf_life,
        freshness=freshness,
        status=status,
        added_date=added_date,
        removed_date=None if status == ItemStatus.ACTIVE else datetime.now(timezone.utc),
    )
    db.add(item)
    db.commit()
    return item
