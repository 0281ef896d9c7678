"""
order_api/services/reminder_scheduler.py — Daily reminders for pending orders
A single background thread. Each cycle asks its own RateLimiter for a permit;
with one it sweeps pending orders and sleeps until local midnight, without
one it sleeps the retry interval and asks again. The loop waits on a stop
event, so stop() ends it promptly.
"""
from __future__ import annotations

import threading
from typing import Optional, Protocol

from loguru import logger
from pytz.tzinfo import BaseTzInfo
from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from order_api.core import logging as app_logging
from order_api.core.rate_limiter import RateLimiter
from order_api.db.models import Customer, Order
from order_api.models import OrderStatus, PendingReminder
from order_api.utils.timezone import seconds_until_next_midnight

REMINDER_TASK_KEY = "background-task"
DEFAULT_RETRY_SECONDS = 60 * 60


class Notifier(Protocol):
    def send(self, to_address: str, order_id: int) -> bool: ...


def fetch_pending_reminders(session_factory: sessionmaker) -> list[PendingReminder]:
    """Every Pending order with its owner's email address."""
    stmt = (
        select(Order.id, Customer.email)
        .join(Customer, Customer.id == Order.customer_id)
        .where(Order.status == OrderStatus.PENDING.value)
        .order_by(Order.id)
    )
    with session_factory() as db:
        return [
            PendingReminder(order_id=order_id, customer_email=email)
            for order_id, email in db.execute(stmt).all()
        ]


class ReminderScheduler:
    def __init__(
        self,
        session_factory: sessionmaker,
        notifier: Notifier,
        limiter: RateLimiter,
        tz: BaseTzInfo,
        retry_seconds: float = DEFAULT_RETRY_SECONDS,
    ) -> None:
        self._session_factory = session_factory
        self._notifier = notifier
        self._limiter = limiter
        self._tz = tz
        self._retry_seconds = retry_seconds
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # ── One sweep ────────────────────────────────────────────────────────────

    def run_sweep(self) -> int:
        """
        Send a reminder for every pending order. Returns the number sent.
        A failed query aborts the sweep; a failed dispatch is skipped.
        """
        try:
            pending = fetch_pending_reminders(self._session_factory)
        except Exception as exc:
            app_logging.log_error("reminder_scheduler", "fetch_pending", exc)
            return 0

        sent = 0
        failed = 0
        for reminder in pending:
            try:
                ok = self._notifier.send(reminder.customer_email, reminder.order_id)
            except Exception as exc:
                app_logging.log_error(
                    "reminder_scheduler",
                    "send_reminder",
                    exc,
                    {"order_id": reminder.order_id},
                )
                ok = False
            if ok:
                sent += 1
            else:
                failed += 1

        app_logging.log_reminder_sweep(len(pending), sent, failed)
        return sent

    def run_cycle(self) -> float:
        """Run the gated sweep once. Returns how long to wait before the next cycle."""
        if self._limiter.allow(REMINDER_TASK_KEY):
            self.run_sweep()
            return seconds_until_next_midnight(self._tz)
        return self._retry_seconds

    # ── Thread lifecycle ─────────────────────────────────────────────────────

    def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            wait = self.run_cycle()
            logger.debug(f"Reminder scheduler sleeping {wait:.0f}s")
            self._stop_event.wait(wait)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            daemon=True,
            name="pending-order-reminders",
        )
        self._thread.start()
        logger.info("Reminder scheduler started.")

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Reminder scheduler stopped.")
