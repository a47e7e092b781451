"""
Tests for the SMTP notice transport.

``smtplib.SMTP`` is replaced with a recording fake, so no mail server is
contacted.
"""

import smtplib
from datetime import date
from types import SimpleNamespace

import pytest

from adapters import email_adapter
from adapters.email_adapter import (
    SmtpNotifier,
    build_html_body,
    build_notifier,
    build_subject,
    build_text_body,
)
from domain.enums import AlertType, FoodCategory
from services.notification_service import (
    ConsolidatedExpiryNotice,
    LoggingNotifier,
    NoticeItem,
)


def notice(days=1, items=None, critical=False, name="Sarah"):
    items = items or [
        NoticeItem("Whole Milk", FoodCategory.DAIRY, 55, "Fridge", "Freshly bought"),
        NoticeItem("Chicken <breast>", FoodCategory.MEAT, 35, "Fridge", "Already opened",
                   is_critical=critical),
    ]
    return ConsolidatedExpiryNotice(
        recipient_email="sarah@example.com",
        recipient_name=name,
        expiry_date=date(2025, 6, 16),
        days_remaining=days,
        alert_type=AlertType.EXPIRED if days <= 0 else AlertType.EXPIRING_SOON,
        items=items,
        has_critical_items=critical,
    )


def notifier(**overrides):
    options = dict(
        host="smtp.example.com",
        port=587,
        username="alerts@example.com",
        password="app-password",
        from_name="WasteNot App",
        app_name="WasteNot",
        app_url="https://wastenot.example.com/",
    )
    options.update(overrides)
    return SmtpNotifier(**options)


class FakeSMTP:
    instances = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.calls = []
        self.sent = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.calls.append("starttls")

    def login(self, username, password):
        self.calls.append(("login", username))

    def send_message(self, msg):
        self.sent.append(msg)


@pytest.fixture
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(email_adapter.smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


# ============================================================================
# CONTENT
# ============================================================================


@pytest.mark.parametrize(
    "days,count,expected",
    [
        (1, 2, "WasteNot Alert: 2 food items expiring tomorrow!"),
        (0, 2, "WasteNot Alert: 2 food items have expired!"),
        (3, 2, "WasteNot Alert: 2 food items expiring in 3 days!"),
        (-1, 1, "WasteNot Alert: 1 food item has expired!"),
    ],
)
def test_subject(days, count, expected):
    n = notice(days=days)
    if count == 1:
        n = notice(days=days, items=n.items[:1])

    assert build_subject(n, "WasteNot") == expected


def test_text_body_groups_items_by_category():
    body = build_text_body(notice(critical=True), "https://wastenot.example.com")

    assert body.startswith("Hello Sarah,")
    assert "2 items that will expire tomorrow (June 16, 2025)" in body
    assert "Dairy\n  - Whole Milk (Freshness: 55%, Storage: Fridge, Condition: Freshly bought)" in body
    assert "  ! Chicken <breast>" in body
    assert "https://wastenot.example.com/settings" in body


def test_html_body_escapes_names():
    body = build_html_body(notice(name=None), "https://wastenot.example.com")

    assert "Hello there," in body
    assert "Chicken &lt;breast&gt;" in body
    assert "<breast>" not in body


# ============================================================================
# TRANSPORT
# ============================================================================


def test_send_builds_multipart_message(fake_smtp):
    sent = notifier().send_consolidated_expiry_notice(notice(critical=True))

    assert sent is True
    [smtp] = fake_smtp.instances
    assert smtp.calls == ["starttls", ("login", "alerts@example.com")]
    [msg] = smtp.sent
    assert msg["To"] == "Sarah <sarah@example.com>"
    assert msg["List-Unsubscribe"] == "<https://wastenot.example.com/settings>"
    assert msg["Importance"] == "High"
    assert msg.is_multipart()


def test_normal_priority_without_critical_items(fake_smtp):
    notifier().send_consolidated_expiry_notice(notice())

    msg = fake_smtp.instances[0].sent[0]
    assert msg["X-Priority"] == "3 (Normal)"
    assert msg["Importance"] is None


def test_smtp_failure_reports_not_sent(monkeypatch):
    class RefusingSMTP(FakeSMTP):
        def login(self, username, password):
            raise smtplib.SMTPAuthenticationError(535, b"bad credentials")

    monkeypatch.setattr(email_adapter.smtplib, "SMTP", RefusingSMTP)

    assert notifier().send_consolidated_expiry_notice(notice()) is False


def test_connection_failure_reports_not_sent(monkeypatch):
    def unreachable(host, port, timeout=None):
        raise ConnectionRefusedError("no route")

    monkeypatch.setattr(email_adapter.smtplib, "SMTP", unreachable)

    assert notifier().send_consolidated_expiry_notice(notice()) is False


# ============================================================================
# CONSTRUCTION FROM SETTINGS
# ============================================================================


def test_no_credentials_gives_logging_notifier():
    settings = SimpleNamespace(smtp_user=None, smtp_password=None)

    chosen = build_notifier(settings)

    assert isinstance(chosen, LoggingNotifier)
    assert chosen.send_consolidated_expiry_notice(notice()) is False


def test_credentials_give_smtp_notifier():
    settings = SimpleNamespace(
        smtp_host="smtp.example.com",
        smtp_port=465,
        smtp_user="alerts@example.com",
        smtp_password="pw",
        smtp_use_tls=False,
        email_from_name="WasteNot App",
        app_name="WasteNot",
        app_url="https://wastenot.example.com",
    )

    chosen = build_notifier(settings)

    assert isinstance(chosen, SmtpNotifier)
    assert chosen.port == 465
    assert chosen.use_tls is False
