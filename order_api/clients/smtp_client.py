"""
order_api/clients/smtp_client.py — SMTP sender for pending-order reminders
"""
from __future__ import annotations

import smtplib
from email.mime.text import MIMEText

from order_api.config import Settings
from order_api.core import logging as app_logging

REMINDER_SUBJECT = "Pending Order Reminder"


def reminder_body(order_id: int) -> str:
    return (
        f"Dear customer, your order (ID: {order_id}) is pending. "
        "Please complete your checkout process."
    )


def build_reminder_message(sender: str, to_address: str, order_id: int) -> MIMEText:
    msg = MIMEText(reminder_body(order_id), "plain", "utf-8")
    msg["Subject"] = REMINDER_SUBJECT
    msg["From"] = sender
    msg["To"] = to_address
    return msg


class SmtpNotifier:
    """Sends one reminder email per call. Never raises; returns success."""

    def __init__(self, settings: Settings, timeout: float = 10.0) -> None:
        self._server = settings.smtp_server
        self._port = settings.smtp_port
        self._username = settings.smtp_username
        self._password = settings.smtp_password
        self._use_tls = settings.smtp_use_tls
        self._sender = settings.smtp_sender
        self._timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self._server and self._sender)

    def send(self, to_address: str, order_id: int) -> bool:
        if not self.configured:
            app_logging.log_email_send(
                to_address, order_id, success=False, error="SMTP not configured"
            )
            return False

        msg = build_reminder_message(self._sender, to_address, order_id)
        try:
            with smtplib.SMTP(self._server, self._port, timeout=self._timeout) as s:
                if self._use_tls:
                    s.starttls()
                if self._username:
                    s.login(self._username, self._password)
                s.sendmail(self._sender, [to_address], msg.as_string())
        except (smtplib.SMTPException, OSError) as exc:
            app_logging.log_email_send(to_address, order_id, success=False, error=str(exc))
            return False

        app_logging.log_email_send(to_address, order_id, success=True)
        return True
