"""Shared workflow layer between the CLI and the functional core.

Each function fetches from a store, runs the pure core over the data and,
where the user changed something, writes the result back.
"""

import dataclasses
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any

from .adapters.json_store import JsonHolidayStore, JsonTaskStore
from .config import Config
from .core.calendar import parse_date
from .core.recurrence import (
    MAX_AVOID_SHIFTS,
    apply_instance_edit,
    delete_occurrence,
    expand_recurring_tasks,
    make_instance,
    occurrence_dates,
    update_series,
)
from .core.schedule import (
    TimelineEntry,
    build_timeline,
    detect_bookings,
    get_scheduled_for_date,
    get_someday_tasks,
    get_unscheduled_for_date,
)
from .core.scoring import sort_someday_tasks, total_score
from .core.tasks import Task, TaskOverride, apply_override, create_task
from .ports import TaskStore

logger = logging.getLogger(__name__)


class TaskNotFoundError(KeyError):
    """Raised when a task or instance id matches nothing in the store."""

    pass


@dataclass
class DayView:
    """Everything shown for one day."""

    date: date
    unscheduled: list[Task]
    scheduled: list[Task]
    bookings: set[str]
    timeline: list[TimelineEntry]


def get_store(config: Config) -> JsonTaskStore:
    return JsonTaskStore(config.data_path)


def get_holiday_store(config: Config) -> JsonHolidayStore:
    return JsonHolidayStore(config.data_path)


def expansion_window(center: date, days: int) -> tuple[date, date]:
    return center - timedelta(days=days), center + timedelta(days=days)


def load_tasks(store: TaskStore, config: Config, center: date) -> list[Task]:
    """All stored tasks with recurring templates expanded around `center`."""
    start, end = expansion_window(center, config.expand_window_days)
    return expand_recurring_tasks(store.fetch_all(), start, end)


def build_day(tasks: list[Task], day: date | str) -> DayView:
    """Select one day's tasks, find bookings and lay out the timeline."""
    day = parse_date(day)
    scheduled = get_scheduled_for_date(tasks, day)
    return DayView(
        date=day,
        unscheduled=get_unscheduled_for_date(tasks, day),
        scheduled=scheduled,
        bookings=detect_bookings(scheduled),
        timeline=build_timeline(scheduled),
    )


def rank_someday(tasks: list[Task], config: Config, as_of: date | None = None) -> list[tuple[Task, int]]:
    """Backlog tasks in display order, each with its score."""
    as_of = as_of or date.today()
    n1, n2, tier = config.score_threshold_n1, config.score_threshold_n2, config.score_n2_tier
    ranked = sort_someday_tasks(get_someday_tasks(tasks), n1, n2, as_of, tier)
    return [(t, total_score(t, n1, n2, as_of, tier)) for t in ranked]


# ============== Edits ==============


def _resolve(store: TaskStore, task_id: str) -> tuple[Task, date | None]:
    """Stored task for an id, plus the occurrence date when the id names an instance."""
    task = store.get(task_id)
    if task is not None:
        return task, None
    template_id, _, date_str = task_id.rpartition("_")
    template = store.get(template_id) if template_id else None
    if template is None or not template.is_recurring:
        raise TaskNotFoundError(task_id)
    try:
        occurrence = date.fromisoformat(date_str)
    except ValueError:
        raise TaskNotFoundError(task_id) from None
    # Avoidance can move an occurrence up to MAX_AVOID_SHIFTS days from its candidate
    pad = timedelta(days=MAX_AVOID_SHIFTS)
    if occurrence not in template.recurrence.exceptions and occurrence not in occurrence_dates(
        template.recurrence, occurrence - pad, occurrence + pad
    ):
        raise TaskNotFoundError(task_id)
    return template, occurrence


def _current_instance(template: Task, occurrence: date) -> Task:
    """The instance as it is displayed now, existing override included."""
    exception = template.recurrence.exceptions.get(occurrence)
    instance = make_instance(template, occurrence)
    if isinstance(exception, TaskOverride):
        instance = apply_override(instance, exception)
    return instance


def _touch(task: Task, now: datetime | None) -> Task:
    return dataclasses.replace(task, updated_at=(now or datetime.now()).isoformat())


def add_task(store: TaskStore, config: Config, now: datetime | None = None, **fields: Any) -> Task:
    """Create and store a task; recurring rules are validated first."""
    fields.setdefault("duration", config.default_duration)
    rule = fields.get("recurrence")
    if rule is not None:
        rule.validate()
        fields.setdefault("is_someday", False)
    if fields.get("scheduled_date") is not None:
        fields.setdefault("is_someday", False)
    task = create_task(now=now, **fields)
    store.save(task)
    logger.info(f"Added task {task.id}")
    return task


def edit_task(store: TaskStore, task_id: str, changes: dict[str, Any], now: datetime | None = None) -> Task:
    """
    Apply field changes to a task or to one instance of a recurring task.

    Instance edits become an override for that date, unless the recurrence
    rule itself changed, in which case the whole series is rewritten.
    Returns the stored (template) task.
    """
    stored, occurrence = _resolve(store, task_id)
    rule = changes.get("recurrence")
    if rule is not None:
        rule.validate()

    if occurrence is None:
        updated = dataclasses.replace(stored, **changes)
        if rule is not None and stored.is_recurring:
            updated = update_series(stored, updated)
    else:
        instance = _current_instance(stored, occurrence)
        # A new rule rewrites the series from the template, not from this date's override
        base = instance if rule is None or rule.same_rule(stored.recurrence) else make_instance(stored, occurrence)
        edited = dataclasses.replace(base, **changes)
        updated = apply_instance_edit(stored, instance, edited)

    updated = _touch(updated, now)
    store.save(updated)
    return updated


def skip_occurrence(store: TaskStore, task_id: str, now: datetime | None = None) -> Task:
    """Delete a single occurrence of a recurring task."""
    template, occurrence = _resolve(store, task_id)
    if occurrence is None:
        raise TaskNotFoundError(f"{task_id} is not an instance of a recurring task")
    updated = _touch(delete_occurrence(template, occurrence), now)
    store.save(updated)
    logger.info(f"Skipped {template.id} on {occurrence}")
    return updated


def toggle_booking_approval(store: TaskStore, task_id: str, now: datetime | None = None) -> bool:
    """Flip a task's overlap approval. Returns the new value."""
    stored, occurrence = _resolve(store, task_id)
    current = stored if occurrence is None else _current_instance(stored, occurrence)
    approved = not current.booking_approved
    edit_task(store, task_id, {"booking_approved": approved}, now)
    return approved


def delete_task(store: TaskStore, task_id: str) -> None:
    """Remove a stored task; instance ids skip just that occurrence."""
    stored, occurrence = _resolve(store, task_id)
    if occurrence is None:
        store.delete(stored.id)
    else:
        skip_occurrence(store, task_id)
