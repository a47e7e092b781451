"""
SMTP transport for consolidated expiry notices.
"""

import html
import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr
from typing import Optional

from domain.enums import AlertType
from services.notification_service import (
    ConsolidatedExpiryNotice,
    LoggingNotifier,
    NotificationPort,
)

logger = logging.getLogger("wastenot.email")


def _plural(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


def days_text(days_remaining: int) -> str:
    if days_remaining == 0:
        return "today"
    if days_remaining == 1:
        return "tomorrow"
    return f"in {days_remaining} days"


def build_subject(notice: ConsolidatedExpiryNotice, app_name: str) -> str:
    count = len(notice.items)
    noun = _plural(count, "food item", "food items")
    if notice.alert_type == AlertType.EXPIRED:
        return f"{app_name} Alert: {count} {noun} {_plural(count, 'has', 'have')} expired!"
    return f"{app_name} Alert: {count} {noun} expiring {days_text(notice.days_remaining)}!"


def _item_details(item) -> str:
    parts = []
    if item.freshness:
        parts.append(f"Freshness: {item.freshness}%")
    if item.storage:
        parts.append(f"Storage: {item.storage}")
    if item.condition:
        parts.append(f"Condition: {item.condition}")
    return f" ({', '.join(parts)})" if parts else ""


def build_intro(notice: ConsolidatedExpiryNotice) -> str:
    count = len(notice.items)
    when = notice.expiry_date.strftime("%B %d, %Y")
    if notice.alert_type == AlertType.EXPIRED:
        return f"You have {count} {_plural(count, 'item', 'items')} that expired on {when}."
    return (
        f"You have {count} {_plural(count, 'item', 'items')} that will expire "
        f"{days_text(notice.days_remaining)} ({when})."
    )


def build_text_body(notice: ConsolidatedExpiryNotice, app_url: str) -> str:
    lines = [f"Hello {notice.recipient_name or 'there'},", "", build_intro(notice), ""]
    for category, items in notice.items_by_category().items():
        lines.append(category.value.capitalize())
        for item in items:
            marker = "!" if item.is_critical else "-"
            lines.append(f"  {marker} {item.name}{_item_details(item)}")
        lines.append("")
    lines.append(f"Manage your inventory: {app_url}")
    lines.append(f"Notification settings: {app_url}/settings")
    return "\n".join(lines)


def build_html_body(notice: ConsolidatedExpiryNotice, app_url: str) -> str:
    sections = []
    for category, items in notice.items_by_category().items():
        rows = "".join(
            "<li{style}>{name}{details}</li>".format(
                style=' style="color:#e74c3c;font-weight:bold"' if item.is_critical else "",
                name=html.escape(item.name),
                details=html.escape(_item_details(item)),
            )
            for item in items
        )
        sections.append(
            f"<h3>{html.escape(category.value.capitalize())}</h3><ul>{rows}</ul>"
        )
    text_intro = html.escape(build_intro(notice))
    return (
        "<html><body>"
        f"<p>Hello {html.escape(notice.recipient_name or 'there')},</p>"
        f"<p>{text_intro}</p>"
        f"{''.join(sections)}"
        f'<p><a href="{html.escape(app_url)}">Open WasteNot</a> | '
        f'<a href="{html.escape(app_url)}/settings">Notification settings</a></p>'
        "</body></html>"
    )


class SmtpNotifier(NotificationPort):
    """Sends each notice as one multipart e-mail over SMTP"""

    def __init__(
        self,
        host: str,
        port: int,
        username: Optional[str],
        password: Optional[str],
        from_name: str,
        app_name: str,
        app_url: str,
        use_tls: bool = True,
        timeout: float = 30.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_name = from_name
        self.app_name = app_name
        self.app_url = app_url.rstrip("/")
        self.use_tls = use_tls
        self.timeout = timeout

    def build_message(self, notice: ConsolidatedExpiryNotice) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = build_subject(notice, self.app_name)
        msg["From"] = formataddr((self.from_name, self.username or ""))
        msg["To"] = formataddr((notice.recipient_name or "", notice.recipient_email))
        msg["List-Unsubscribe"] = f"<{self.app_url}/settings>"
        if notice.has_critical_items:
            msg["X-Priority"] = "1 (Highest)"
            msg["X-MSMail-Priority"] = "High"
            msg["Importance"] = "High"
        else:
            msg["X-Priority"] = "3 (Normal)"
        msg.set_content(build_text_body(notice, self.app_url))
        msg.add_alternative(build_html_body(notice, self.app_url), subtype="html")
        return msg

    def send_consolidated_expiry_notice(self, notice: ConsolidatedExpiryNotice) -> bool:
        try:
            msg = self.build_message(notice)
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.username and self.password:
                    smtp.login(self.username, self.password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError, ValueError) as e:
            logger.error(f"Failed to send expiry notice to {notice.recipient_email}: {e}")
            return False
        logger.info(
            f"Sent expiry notice to {notice.recipient_email} "
            f"({len(notice.items)} items, {notice.expiry_date})"
        )
        return True


def build_notifier(settings) -> NotificationPort:
    """SMTP notifier when credentials are configured, logging no-op otherwise"""
    if not (settings.smtp_user and settings.smtp_password):
        return LoggingNotifier()
    return SmtpNotifier(
        host=settings.smtp_host,
        port=settings.smtp_port,
        username=settings.smtp_user,
        password=settings.smtp_password,
        from_name=settings.email_from_name,
        app_name=settings.app_name,
        app_url=settings.app_url,
        use_tls=settings.smtp_use_tls,
    )
