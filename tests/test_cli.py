"""Tests for the click command line."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from habitsage import cli as cli_module
from habitsage.cli import cli


@pytest.fixture
def run(app_context):
    runner = CliRunner()

    def _invoke(*args, input=None):
        return runner.invoke(cli, list(args), obj=app_context, input=input)

    return _invoke


def _only_id(app_context):
    [habit] = app_context.tracker.habits()
    return str(habit.id)


def test_add_and_list(run, app_context):
    result = run("add", "Read", "--target", "3")
    assert result.exit_code == 0
    assert "Added habit" in result.output

    listing = run("list")
    assert "Read  [daily, 3 times]" in listing.output


def test_empty_lists(run):
    assert "No active habits. Add one or view archived." in run("list").output
    assert "No habits have been archived yet." in run("list", "--archived").output


def test_add_blank_name_fails(run):
    result = run("add", "   ")
    assert result.exit_code != 0
    assert "Habit name cannot be empty." in result.output


def test_add_rejects_unknown_unit(run):
    result = run("add", "Read", "--unit", "parsecs")
    assert result.exit_code != 0


def test_log_discrete(run, app_context):
    run("add", "Floss")
    habit_id = _only_id(app_context)

    run("log", habit_id)
    result = run("log", habit_id)
    assert result.exit_code == 0
    assert "Floss: completed (2)" in result.output


def test_log_measured_requires_amount(run, app_context):
    run("add", "Run", "--target", "5", "--unit", "km")
    habit_id = _only_id(app_context)

    missing = run("log", habit_id)
    assert missing.exit_code != 0
    assert "amount in km is required" in missing.output

    result = run("log", habit_id, "3.5")
    assert "Run: 3.5 km today, 1 entries" in result.output


def test_unknown_id_reported(run):
    result = run("archive", "12345")
    assert result.exit_code != 0
    assert "Habit not found: 12345" in result.output


def test_archive_and_restore(run, app_context):
    run("add", "Read")
    habit_id = _only_id(app_context)

    assert "Archived Read" in run("archive", habit_id).output
    assert "Read" in run("list", "--archived").output
    assert "No active habits" in run("list").output
    assert "Restored Read" in run("restore", habit_id).output


def test_progress(run, app_context):
    run("add", "Read", "--target", "2")
    run("add", "Swim", "--frequency", "weekly")
    read_id = str(app_context.tracker.habits()[0].id)
    run("log", read_id)

    output = run("progress").output
    assert "Read: 1/2 completions (50%)" in output
    assert "Swim: 0/7 days (0%)" in output


def test_stats(run, app_context):
    assert "No habits added yet to display charts." in run("stats").output

    run("add", "Read")
    run("log", _only_id(app_context))
    output = run("stats").output
    assert "Read: best day 1, longest streak 1 days, consistency 100.0%" in output


def test_calendar(run, app_context):
    run("add", "Read")
    run("log", _only_id(app_context))

    output = run("calendar").output
    lines = output.splitlines()
    assert lines[0] == "2024-01"
    assert lines[1] == "Su Mo Tu We Th Fr Sa"
    assert lines[2].startswith("    1 ")
    assert "10*" in output


def test_calendar_bad_month(run):
    result = run("calendar", "--month", "2024-13")
    assert result.exit_code != 0


def test_remind_and_snooze(run, app_context):
    assert "All daily habits are on track." in run("remind").output

    run("add", "Floss")
    habit_id = _only_id(app_context)
    assert "Don't forget to complete: Floss" in run("remind").output

    assert "Snoozed Floss until 2024-01-10 10:00" in run("snooze", habit_id, "--minutes", "30").output
    assert "All daily habits are on track." in run("remind").output

    run("snooze", habit_id, "--clear")
    assert "Floss" in run("remind").output


def test_clear_requires_confirmation(run, app_context):
    run("add", "Read")

    cancelled = run("clear", input="n\n")
    assert "Clear all data action cancelled." in cancelled.output
    assert len(app_context.tracker.habits()) == 1

    cleared = run("clear", "--yes")
    assert "All habit data cleared." in cleared.output
    assert app_context.tracker.habits() == []
    assert app_context.habit_store.load() is None


def test_list_shows_today_progress(run, app_context):
    run("add", "Floss")
    run("add", "Run", "--unit", "km")
    run("add", "Read")
    floss, run_habit, _ = (str(h.id) for h in app_context.tracker.habits())
    run("log", floss)
    run("log", floss)
    run("log", run_habit, "3.5")

    lines = run("list").output.splitlines()
    assert lines[0].endswith("Floss  [daily, 1 times] (Today: 2 times)")
    assert lines[1].endswith("Run  [daily, 1 km] (Today: 3.5 km)")
    assert "Today" not in lines[2]


def test_list_archived_omits_today_progress(run, app_context):
    run("add", "Floss")
    habit_id = _only_id(app_context)
    run("log", habit_id)
    run("archive", habit_id)

    output = run("list", "--archived").output
    assert "(archived)" in output
    assert "Today" not in output


def test_watch_once(run, app_context):
    run("add", "Floss")
    result = run("watch", "--once")
    assert result.exit_code == 0
    assert "Don't forget to complete: Floss" in result.output


def test_watch_uses_configured_interval(run, app_context, monkeypatch):
    app_context.config.REMINDER_INTERVAL_MINUTES = 15
    run("add", "Floss")

    started = []
    real_create = cli_module.create_scheduler

    def recording_create(*args, **kwargs):
        scheduler = real_create(*args, **kwargs)
        started.append(scheduler)
        return scheduler

    def interrupt():
        assert started[0].running
        raise KeyboardInterrupt

    monkeypatch.setattr(cli_module, "create_scheduler", recording_create)
    monkeypatch.setattr(cli_module, "_wait_for_interrupt", interrupt)

    result = run("watch")

    assert result.exit_code == 0
    assert "Checking reminders every 15 minutes." in result.output
    assert "Don't forget to complete: Floss" in result.output
    assert "Reminder watch stopped." in result.output
    assert started[0].interval_minutes == 15
    assert not started[0].running
