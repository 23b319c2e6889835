"""Takt CLI - day timeline, someday backlog and recurring tasks."""

import json
import logging
import sys
from datetime import date
from pathlib import Path

import click

from .adapters.json_store import StoreError
from .config import load_config
from .core.calendar import holiday_name, load_holidays, week_dates
from .core.schedule import BookingStatus, GapEntry, TaskEntry, booking_status, format_duration
from .core.tasks import AvoidDirection, Importance, Recurrence, RecurrenceConfigError, RecurrenceType
from .workflows import (
    TaskNotFoundError,
    add_task,
    build_day,
    delete_task,
    edit_task,
    get_holiday_store,
    get_store,
    load_tasks,
    rank_someday,
    skip_occurrence,
    toggle_booking_approval,
)

_HANDLED = (TaskNotFoundError, RecurrenceConfigError, StoreError, ValueError)

BOOKING_LABELS = {
    BookingStatus.NONE: "",
    BookingStatus.CONFLICT: " [booking]",
    BookingStatus.APPROVED: " [approved]",
}


def _fail(e: Exception) -> None:
    click.echo(f"Error: {e}", err=True)
    sys.exit(1)


def _weekdays(ctx, param, value: str | None) -> frozenset[int]:
    """Parse "1,3,5" into weekday numbers (0 = Sunday)."""
    if not value:
        return frozenset()
    try:
        days = frozenset(int(v) for v in value.split(",") if v.strip())
    except ValueError:
        raise click.BadParameter("expected comma-separated numbers 0-6 (0 = Sunday)")
    if any(not 0 <= d <= 6 for d in days):
        raise click.BadParameter("weekday numbers run from 0 (Sunday) to 6 (Saturday)")
    return days


def _date(ctx, param, value: str | None) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise click.BadParameter("expected YYYY-MM-DD")


def _time(ctx, param, value: str | None) -> str | None:
    if value is None:
        return None
    hours, sep, minutes = value.partition(":")
    if not sep or not hours.isdigit() or not minutes.isdigit() or int(hours) > 23 or int(minutes) > 59:
        raise click.BadParameter("expected HH:MM")
    return f"{int(hours):02d}:{int(minutes):02d}"


def _task_json(task) -> dict:
    return task.to_dict()


@click.group()
@click.version_option(package_name="takt")
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool):
    """Takt - day timeline, someday backlog and recurring tasks."""
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )


@main.command()
@click.argument("name")
@click.option("--date", "-d", "scheduled_date", callback=_date, help="Place on this date (YYYY-MM-DD), not with --repeat")
@click.option("--time", "-t", "scheduled_time", callback=_time, help="Start time (HH:MM)")
@click.option("--duration", type=click.IntRange(min=1), help="Duration in minutes")
@click.option("--importance", type=click.Choice([i.value for i in Importance]), default="mid")
@click.option("--target", "target_date", callback=_date, help="Goal date used for scoring")
@click.option("--pin", is_flag=True, help="Keep at the top of the someday list")
@click.option("--memo", default="")
@click.option("--repeat", type=click.Choice([t.value for t in RecurrenceType if t is not RecurrenceType.NONE]))
@click.option("--days", callback=_weekdays, help="Weekly: weekdays to include, e.g. 1,3")
@click.option("--exclude", callback=_weekdays, help="Daily: weekdays to skip, e.g. 0,6")
@click.option("--day-of-month", type=click.IntRange(1, 31))
@click.option("--month", type=click.IntRange(1, 12))
@click.option("--until", callback=_date, help="Last date of the series (YYYY-MM-DD)")
@click.option("--avoid", callback=_weekdays, help="Monthly/yearly: weekdays to move away from")
@click.option("--avoid-direction", type=click.Choice([d.value for d in AvoidDirection]), default="after")
def add(name, scheduled_date, scheduled_time, duration, importance, target_date, pin, memo,
        repeat, days, exclude, day_of_month, month, until, avoid, avoid_direction):
    """Add a task. Without --date or --repeat it goes to the someday list."""
    config = load_config()
    fields = {
        "name": name,
        "memo": memo,
        "importance": Importance(importance),
        "pinned": pin,
        "target_date": target_date,
        "scheduled_time": scheduled_time,
    }
    if duration:
        fields["duration"] = duration
    if repeat and scheduled_date:
        click.echo("Error: --date cannot be combined with --repeat", err=True)
        sys.exit(1)
    if repeat:
        fields["recurrence"] = Recurrence(
            type=RecurrenceType(repeat),
            until=until,
            exclude_days=exclude,
            days_of_week=days,
            day_of_month=day_of_month,
            month=month,
            avoid_days=avoid,
            avoid_direction=AvoidDirection(avoid_direction),
        )
    elif scheduled_date:
        fields["scheduled_date"] = scheduled_date
    elif scheduled_time:
        click.echo("Error: --time needs --date or --repeat", err=True)
        sys.exit(1)

    try:
        task = add_task(get_store(config), config, **fields)
    except _HANDLED as e:
        _fail(e)
    click.echo(f"Added {task.name} ({task.id})")


@main.command()
@click.option("--date", "-d", "target", callback=_date, help="Day to show (YYYY-MM-DD), defaults to today")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def day(target: date | None, as_json: bool):
    """Show a day's timeline, gaps and overlapping tasks."""
    config = load_config()
    target = target or date.today()
    try:
        tasks = load_tasks(get_store(config), config, target)
        holidays = get_holiday_store(config).fetch_all()
    except StoreError as e:
        _fail(e)
    view = build_day(tasks, target)

    if as_json:
        timeline = []
        for entry in view.timeline:
            match entry:
                case TaskEntry(task=task):
                    timeline.append(
                        {"type": "task", "task": _task_json(task), "booking": booking_status(task, view.bookings).value}
                    )
                case GapEntry(start=start, duration=duration):
                    timeline.append({"type": "empty", "time": start, "duration": duration})
        click.echo(
            json.dumps(
                {
                    "date": view.date.isoformat(),
                    "holiday": holiday_name(holidays, view.date),
                    "unscheduled": [_task_json(t) for t in view.unscheduled],
                    "timeline": timeline,
                },
                indent=2,
                ensure_ascii=False,
            )
        )
        return

    header = f"### {view.date.strftime('%A, %B %d')}"
    name = holiday_name(holidays, view.date)
    if name:
        header += f" ({name})"
    click.echo(header)

    if view.unscheduled:
        click.echo("\nNo time set:")
        for task in view.unscheduled:
            click.echo(f"  • {task.name} | {format_duration(task.duration)}")

    if not view.timeline:
        click.echo("\nNo tasks scheduled.")
        return

    click.echo()
    for entry in view.timeline:
        match entry:
            case TaskEntry(task=task):
                label = BOOKING_LABELS[booking_status(task, view.bookings)]
                click.echo(f"  {task.scheduled_time:6} {task.name} | {format_duration(task.duration)}{label}")
            case GapEntry(start=start, duration=duration):
                click.echo(f"  {start:6} (free) | {format_duration(duration)}")


@main.command()
@click.option("--date", "-d", "target", callback=_date, help="Any day of the week to show")
def week(target: date | None):
    """Show task counts for each day of a week."""
    config = load_config()
    target = target or date.today()
    try:
        tasks = load_tasks(get_store(config), config, target)
        holidays = get_holiday_store(config).fetch_all()
    except StoreError as e:
        _fail(e)

    for d in week_dates(target, config.week_start_day):
        view = build_day(tasks, d)
        marker = ">" if d == target else " "
        count = len(view.scheduled) + len(view.unscheduled)
        extras = []
        if view.bookings:
            extras.append(f"{len(view.bookings)} overlapping")
        name = holiday_name(holidays, d)
        if name:
            extras.append(name)
        suffix = f"  ({', '.join(extras)})" if extras else ""
        click.echo(f"{marker} {d.strftime('%a %m-%d')}  {count:2} tasks{suffix}")


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def someday(as_json: bool):
    """List backlog tasks, pinned first, then by score."""
    config = load_config()
    try:
        tasks = load_tasks(get_store(config), config, date.today())
    except StoreError as e:
        _fail(e)
    ranked = rank_someday(tasks, config)

    if as_json:
        click.echo(
            json.dumps(
                [{**_task_json(t), "score": score} for t, score in ranked],
                indent=2,
                ensure_ascii=False,
            )
        )
        return

    if not ranked:
        click.echo("Someday list is empty.")
        return

    for task, score in ranked:
        pin = "*" if task.pinned else " "
        target = f" (by {task.target_date})" if task.target_date else ""
        click.echo(f"{pin} {score:3}pt  {task.name} | {format_duration(task.duration)}{target}")


@main.command()
@click.argument("task_id")
def approve(task_id: str):
    """Toggle approval of an overlapping task."""
    config = load_config()
    try:
        approved = toggle_booking_approval(get_store(config), task_id)
    except _HANDLED as e:
        _fail(e)
    click.echo("Overlap approved." if approved else "Overlap approval removed.")


@main.command()
@click.argument("task_id")
def skip(task_id: str):
    """Skip one occurrence of a recurring task (use the instance id)."""
    config = load_config()
    try:
        skip_occurrence(get_store(config), task_id)
    except _HANDLED as e:
        _fail(e)
    click.echo(f"Skipped {task_id}.")


@main.command()
@click.argument("task_id")
@click.option("--name")
@click.option("--date", "-d", "scheduled_date", callback=_date)
@click.option("--time", "-t", "scheduled_time", callback=_time)
@click.option("--no-time", is_flag=True, help="Keep the date but clear the time")
@click.option("--duration", type=click.IntRange(min=1))
@click.option("--importance", type=click.Choice([i.value for i in Importance]))
@click.option("--memo")
@click.option("--someday", "to_someday", is_flag=True, help="Move back to the someday list")
def edit(task_id, name, scheduled_date, scheduled_time, no_time, duration, importance, memo, to_someday):
    """Edit a task, or a single occurrence when given an instance id."""
    config = load_config()
    changes = {}
    if name is not None:
        changes["name"] = name
    if scheduled_date is not None:
        changes["scheduled_date"] = scheduled_date
        changes["is_someday"] = False
    if scheduled_time is not None:
        changes["scheduled_time"] = scheduled_time
    if no_time:
        changes["scheduled_time"] = None
    if duration is not None:
        changes["duration"] = duration
    if importance is not None:
        changes["importance"] = Importance(importance)
    if memo is not None:
        changes["memo"] = memo
    if to_someday:
        changes.update(is_someday=True, scheduled_date=None, scheduled_time=None)

    if not changes:
        click.echo("Nothing to change.")
        return
    try:
        edit_task(get_store(config), task_id, changes)
    except _HANDLED as e:
        _fail(e)
    click.echo(f"Updated {task_id}.")


@main.command()
@click.argument("task_id")
def delete(task_id: str):
    """Delete a task; an instance id deletes only that occurrence."""
    config = load_config()
    try:
        delete_task(get_store(config), task_id)
    except _HANDLED as e:
        _fail(e)
    click.echo(f"Deleted {task_id}.")


@main.group()
def holidays():
    """Manage holidays shown on the calendar."""
    pass


@holidays.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def holidays_import(path: Path):
    """Import holidays from a JSON file."""
    config = load_config()
    try:
        data = json.loads(path.read_text())
        items = load_holidays(data)
        get_holiday_store(config).import_holidays(items)
    except (json.JSONDecodeError, KeyError, StoreError) as e:
        _fail(e)
    click.echo(f"Imported {len(items)} holidays.")


@holidays.command("list")
def holidays_list():
    """List stored holidays."""
    config = load_config()
    try:
        items = get_holiday_store(config).fetch_all()
    except StoreError as e:
        _fail(e)
    if not items:
        click.echo("No holidays stored.")
        return
    for h in sorted(items, key=lambda h: h.date):
        repeat = " (every year)" if h.repeat else ""
        click.echo(f"  {h.date:10} {h.name}{repeat}")
