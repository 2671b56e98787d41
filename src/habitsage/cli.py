"""Command line glue for HabitSage."""

from __future__ import annotations

import time
from datetime import date, timedelta

import click

from .config import BaseConfig
from .context import AppContext, create_app_context
from .days import local_day
from .errors import NotFoundError, ValidationError
from .logging_config import setup_logging
from .models.habit import TARGET_UNITS, Frequency, HabitRecord
from .scheduler import create_scheduler
from .services.habits import today_progress
from .services.reminders import Reminder
from .services.tracker import MutationResult

_WEEKDAY_HEADER = "Su Mo Tu We Th Fr Sa"


def _tracker(ctx: click.Context):
    app: AppContext = ctx.obj
    return app.tracker


def _report(result: MutationResult, message: str) -> None:
    click.echo(message)
    if result.warning:
        click.echo(f"Warning: not saved ({result.warning})", err=True)


def _describe(habit: HabitRecord, today: date) -> str:
    target = f"{habit.target_value:g} {habit.target_unit}"
    text = f"{habit.id}  {habit.name}  [{habit.frequency.value}, {target}]"
    if habit.is_archived:
        return f"{text} (archived)"
    entry = today_progress(habit, today)
    if entry.count > 0:
        done = entry.count if habit.is_discrete else entry.total_value
        text += f" (Today: {done:g} {habit.target_unit})"
    return text


def _echo_reminders(reminders: list[Reminder]) -> None:
    for reminder in reminders:
        click.echo(f"Don't forget to complete: {reminder.name}")


def _wait_for_interrupt() -> None:
    while True:
        time.sleep(1)


def _run(action):
    """Turn typed core failures into click errors."""
    try:
        return action()
    except (ValidationError, NotFoundError) as exc:
        raise click.ClickException(str(exc)) from exc


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Track habits, log completions and review progress."""

    if ctx.obj is None:
        app = create_app_context(BaseConfig())
        ctx.obj = app
        ctx.call_on_close(app.dispose)


@cli.command("add")
@click.argument("name")
@click.option(
    "--frequency",
    type=click.Choice([f.value for f in Frequency], case_sensitive=False),
    default=Frequency.DAILY.value,
    show_default=True,
)
@click.option("--target", "target_value", default="1", show_default=True, help="Goal per period.")
@click.option("--unit", "target_unit", type=click.Choice(TARGET_UNITS), default="times", show_default=True)
@click.pass_context
def add_habit(ctx: click.Context, name: str, frequency: str, target_value: str, target_unit: str) -> None:
    """Add a new habit."""

    result = _run(lambda: _tracker(ctx).add_habit(name, frequency, target_value, target_unit))
    _report(result, f"Added habit {result.habit.id}: {result.habit.name}")


@cli.command("log")
@click.argument("habit_id")
@click.argument("amount", required=False)
@click.pass_context
def log_completion(ctx: click.Context, habit_id: str, amount: str | None) -> None:
    """Log a completion for today (AMOUNT is required for measured units)."""

    tracker = _tracker(ctx)
    result = _run(lambda: tracker.log_completion(habit_id, amount))
    habit = result.habit
    entry = today_progress(habit, local_day(tracker.clock()))
    if habit.is_discrete:
        message = f"{habit.name}: completed ({entry.count})"
    else:
        message = f"{habit.name}: {entry.total_value:g} {habit.target_unit} today, {entry.count} entries"
    _report(result, message)


@cli.command("archive")
@click.argument("habit_id")
@click.pass_context
def archive_habit(ctx: click.Context, habit_id: str) -> None:
    """Archive a habit (kept in history and charts)."""

    result = _run(lambda: _tracker(ctx).archive(habit_id))
    _report(result, f"Archived {result.habit.name}")


@cli.command("restore")
@click.argument("habit_id")
@click.pass_context
def restore_habit(ctx: click.Context, habit_id: str) -> None:
    """Restore an archived habit."""

    result = _run(lambda: _tracker(ctx).restore(habit_id))
    _report(result, f"Restored {result.habit.name}")


@cli.command("snooze")
@click.argument("habit_id")
@click.option("--minutes", default=60, show_default=True, type=click.IntRange(min=1))
@click.option("--clear", "clear_snooze", is_flag=True, help="Remove an existing snooze.")
@click.pass_context
def snooze_habit(ctx: click.Context, habit_id: str, minutes: int, clear_snooze: bool) -> None:
    """Silence reminders for a habit for a while."""

    tracker = _tracker(ctx)
    until = None if clear_snooze else tracker.clock() + timedelta(minutes=minutes)
    result = _run(lambda: tracker.snooze(habit_id, until))
    if until is None:
        _report(result, f"Reminders back on for {result.habit.name}")
    else:
        _report(result, f"Snoozed {result.habit.name} until {until:%Y-%m-%d %H:%M}")


@cli.command("list")
@click.option("--archived", is_flag=True, help="Show archived habits instead of active ones.")
@click.pass_context
def list_habits(ctx: click.Context, archived: bool) -> None:
    """List habits."""

    tracker = _tracker(ctx)
    habits = tracker.archived_habits() if archived else tracker.active_habits()
    if not habits:
        click.echo("No habits have been archived yet." if archived else "No active habits. Add one or view archived.")
        return
    today = local_day(tracker.clock())
    for habit in habits:
        click.echo(_describe(habit, today))


@cli.command("progress")
@click.pass_context
def show_progress(ctx: click.Context) -> None:
    """Show today's (daily) or this week's (weekly) progress for active habits."""

    tracker = _tracker(ctx)
    habits = tracker.active_habits()
    if not habits:
        click.echo("No habits to show progress for.")
        return
    for habit in habits:
        report = tracker.progress(habit.id)
        click.echo(f"{habit.name}: {report.label} ({report.percent:.0f}%)")


@cli.command("stats")
@click.pass_context
def show_stats(ctx: click.Context) -> None:
    """Per-name chart metrics: best day, longest streak, consistency."""

    rows = _tracker(ctx).chart_metrics()
    if not rows:
        click.echo("No habits added yet to display charts.")
        return
    for row in rows:
        click.echo(
            f"{row.name}: best day {row.max_daily_count}, "
            f"longest streak {row.longest_streak} days, "
            f"consistency {row.consistency_rate:.1f}%"
        )


@cli.command("calendar")
@click.option("--month", "month_text", default=None, help="YYYY-MM, defaults to the current month.")
@click.pass_context
def show_calendar(ctx: click.Context, month_text: str | None) -> None:
    """Print a month grid; '*' marks days with any completion."""

    tracker = _tracker(ctx)
    if month_text:
        try:
            year_part, month_part = month_text.split("-")
            year, month = int(year_part), int(month_part)
            if not 1 <= month <= 12:
                raise ValueError(month_text)
        except ValueError as exc:
            raise click.BadParameter("expected YYYY-MM", param_hint="--month") from exc
    else:
        now = tracker.clock()
        year, month = now.year, now.month

    grid = tracker.calendar_month(year, month)
    click.echo(f"{year:04d}-{month:02d}")
    click.echo(_WEEKDAY_HEADER)
    cells = ["   "] * grid.leading_blanks
    cells += [f"{d.day:>2}{'*' if d.completed else ' '}" for d in grid.days]
    for start in range(0, len(cells), 7):
        click.echo("".join(cells[start:start + 7]).rstrip())


@cli.command("remind")
@click.pass_context
def show_reminders(ctx: click.Context) -> None:
    """List daily habits still below today's target."""

    reminders = _tracker(ctx).due_reminders()
    if not reminders:
        click.echo("All daily habits are on track.")
        return
    _echo_reminders(reminders)


@cli.command("watch")
@click.option("--once", is_flag=True, help="Run a single sweep and exit.")
@click.pass_context
def watch_reminders(ctx: click.Context, once: bool) -> None:
    """Sweep for due reminders every REMINDER_INTERVAL_MINUTES until interrupted."""

    app: AppContext = ctx.obj
    minutes = app.config.REMINDER_INTERVAL_MINUTES
    scheduler = create_scheduler(app.tracker, _echo_reminders, interval_minutes=minutes, auto_start=not once)
    if once:
        scheduler.run_once()
        return

    click.echo(f"Checking reminders every {minutes} minutes. Press Ctrl+C to stop.")
    scheduler.run_once()
    try:
        _wait_for_interrupt()
    except KeyboardInterrupt:
        click.echo("Reminder watch stopped.")
    finally:
        scheduler.stop()



@cli.command("clear")
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt.")
@click.pass_context
def clear_all(ctx: click.Context, yes: bool) -> None:
    """Delete every habit and its history."""

    if not yes and not click.confirm(
        "Are you sure you want to clear all habit data? This action cannot be undone."
    ):
        click.echo("Clear all data action cancelled.")
        return
    result = _tracker(ctx).clear_all()
    _report(result, "All habit data cleared.")


def main() -> None:
    """Console entry point: configure logging, then dispatch."""

    config = BaseConfig()
    setup_logging(config)
    app = create_app_context(config)
    try:
        cli.main(obj=app)
    finally:
        app.dispose()
