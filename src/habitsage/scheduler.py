"""Background reminder sweep scheduling."""

from __future__ import annotations

from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .logging_config import get_logger
from .services.reminders import Reminder
from .services.tracker import HabitTracker

logger = get_logger("scheduler")

Notifier = Callable[[list[Reminder]], None]

REMINDER_JOB_ID = "reminder_sweep"


class ReminderScheduler:
    """Runs the reminder query on an interval and hands results to a notifier.

    The sweep only reads the tracker; delivery is the notifier's business.
    """

    def __init__(self, tracker: HabitTracker, notify: Notifier, *, interval_minutes: int = 60):
        """Initialize the scheduler.

        Args:
            tracker: Tracker whose collection is swept
            notify: Called with the due reminders whenever there are any
            interval_minutes: Minutes between sweeps
        """
        self.tracker = tracker
        self.notify = notify
        self.interval_minutes = interval_minutes
        self.scheduler: Optional[BackgroundScheduler] = None

    def run_once(self) -> list[Reminder]:
        """Run one sweep now and return what was sent to the notifier."""
        reminders = self.tracker.due_reminders()
        if reminders:
            try:
                self.notify(reminders)
            except Exception as exc:
                logger.error(f"Reminder notifier failed: {exc}", exc_info=True)
            else:
                logger.info(f"{len(reminders)} reminders sent")
        return reminders

    def start(self) -> None:
        """Start the background scheduler."""
        if self.scheduler is not None:
            logger.warning("Scheduler already running")
            return

        self.scheduler = BackgroundScheduler()
        self.scheduler.add_job(
            func=self.run_once,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id=REMINDER_JOB_ID,
            name="Habit Reminder Sweep",
            replace_existing=True,
        )
        self.scheduler.start()
        logger.info(f"Reminder sweep scheduled every {self.interval_minutes} minutes")

    def stop(self) -> None:
        """Stop the background scheduler gracefully."""
        if self.scheduler is not None:
            self.scheduler.shutdown(wait=True)
            self.scheduler = None
            logger.info("Reminder scheduler stopped")

    @property
    def running(self) -> bool:
        return self.scheduler is not None and self.scheduler.running


def create_scheduler(
    tracker: HabitTracker,
    notify: Notifier,
    *,
    interval_minutes: int = 60,
    auto_start: bool = False,
) -> ReminderScheduler:
    """Create and optionally start a reminder scheduler."""
    scheduler = ReminderScheduler(tracker, notify, interval_minutes=interval_minutes)
    if auto_start:
        scheduler.start()
    return scheduler
