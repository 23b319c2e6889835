"""Recurrence expansion and per-occurrence editing - pure functions, no I/O."""

import dataclasses
import logging
from datetime import date, timedelta

from .calendar import add_months, clamped_date, day_number, parse_date, yearly_date
from .tasks import (
    DELETED,
    IDENTITY_FIELDS,
    AvoidDirection,
    Recurrence,
    RecurrenceType,
    Task,
    TaskOverride,
    apply_override,
)

logger = logging.getLogger(__name__)

MAX_AVOID_SHIFTS = 30


def apply_avoidance(d: date, avoid_days: frozenset[int], direction: AvoidDirection) -> date:
    """Shift d one day at a time until it no longer falls on an avoided weekday."""
    if not avoid_days:
        return d
    step = timedelta(days=-1 if direction is AvoidDirection.BEFORE else 1)
    shifts = 0
    while day_number(d) in avoid_days and shifts < MAX_AVOID_SHIFTS:
        d += step
        shifts += 1
    if day_number(d) in avoid_days:
        logger.warning(f"Gave up avoiding weekdays {sorted(avoid_days)} after {MAX_AVOID_SHIFTS} shifts, using {d}")
    return d


def _days(start: date, end: date):
    d = start
    while d <= end:
        yield d
        d += timedelta(days=1)


def occurrence_dates(rule: Recurrence, window_start: date | str, window_end: date | str) -> list[date]:
    """
    Dates a rule falls on inside [window_start, window_end], before exceptions.

    Rules missing the fields their type needs yield no dates.
    """
    start = parse_date(window_start)
    end = parse_date(window_end)
    if rule.until and rule.until < end:
        end = rule.until
    if end < start:
        return []

    match rule.type:
        case RecurrenceType.NONE:
            return []
        case RecurrenceType.DAILY:
            return [d for d in _days(start, end) if day_number(d) not in rule.exclude_days]
        case RecurrenceType.WEEKLY:
            return [d for d in _days(start, end) if day_number(d) in rule.days_of_week]
        case RecurrenceType.MONTHLY:
            if rule.day_of_month is None or rule.day_of_month < 1:
                return []
            candidates = []
            month_start = start.replace(day=1)
            while month_start <= end:
                candidates.append(clamped_date(month_start.year, month_start.month, rule.day_of_month))
                month_start = add_months(month_start, 1)
        case RecurrenceType.YEARLY:
            if rule.day_of_month is None or rule.day_of_month < 1 or rule.month is None or not 1 <= rule.month <= 12:
                return []
            candidates = [
                yearly_date(year, rule.month, rule.day_of_month) for year in range(start.year, end.year + 1)
            ]

    dates = []
    for candidate in candidates:
        shifted = apply_avoidance(candidate, rule.avoid_days, rule.avoid_direction)
        if start <= shifted <= end:
            dates.append(shifted)
    return dates


def instance_id(template_id: str, occurrence: date) -> str:
    return f"{template_id}_{occurrence.isoformat()}"


def occurrence_of(instance: Task) -> date:
    """The occurrence date an instance was generated for, even if it was moved."""
    if not instance.is_instance or not instance.original_task_id:
        raise ValueError(f"Task {instance.id} is not a recurrence instance")
    return date.fromisoformat(instance.id[len(instance.original_task_id) + 1 :])


def make_instance(template: Task, occurrence: date) -> Task:
    """
    Plain instance of a template for one date, ignoring exceptions.

    Instances always sit on the calendar, so is_someday is cleared even when
    the template came from the backlog.
    """
    return dataclasses.replace(
        template,
        id=instance_id(template.id, occurrence),
        original_task_id=template.id,
        scheduled_date=occurrence,
        is_instance=True,
        is_someday=False,
        recurrence=None,
    )


def expand_task(task: Task, window_start: date | str, window_end: date | str) -> list[Task]:
    """Instances of one template inside the window, exceptions applied."""
    if not task.is_recurring:
        return [task]

    exceptions = task.recurrence.exceptions
    instances = []
    for occurrence in occurrence_dates(task.recurrence, window_start, window_end):
        exception = exceptions.get(occurrence)
        if exception == DELETED:
            continue
        instance = make_instance(task, occurrence)
        if exception:
            instance = apply_override(instance, exception)
        instances.append(instance)
    return instances


def expand_recurring_tasks(tasks: list[Task], window_start: date | str, window_end: date | str) -> list[Task]:
    """
    Replace recurring templates with their concrete instances inside a window.

    Non-recurring tasks pass through unchanged. The window is inclusive on
    both ends. Pure function - same inputs give the same output.
    """
    start = parse_date(window_start)
    end = parse_date(window_end)
    result = []
    for task in tasks:
        result.extend(expand_task(task, start, end))
    return result


# ============== Editing ==============


def _with_exceptions(template: Task, exceptions: dict) -> Task:
    if not template.is_recurring:
        raise ValueError(f"Task {template.id} is not recurring")
    return dataclasses.replace(
        template,
        recurrence=dataclasses.replace(template.recurrence, exceptions=exceptions),
    )


def override_occurrence(template: Task, occurrence: date, override: TaskOverride) -> Task:
    """Template with one occurrence overridden; merges with an earlier override."""
    exceptions = dict(template.recurrence.exceptions) if template.recurrence else {}
    existing = exceptions.get(occurrence)
    if isinstance(existing, TaskOverride):
        override = existing.merged(override)
    exceptions[occurrence] = override
    return _with_exceptions(template, exceptions)


def delete_occurrence(template: Task, occurrence: date) -> Task:
    exceptions = dict(template.recurrence.exceptions) if template.recurrence else {}
    exceptions[occurrence] = DELETED
    return _with_exceptions(template, exceptions)


def restore_occurrence(template: Task, occurrence: date) -> Task:
    """Drop any exception for one occurrence."""
    exceptions = dict(template.recurrence.exceptions) if template.recurrence else {}
    exceptions.pop(occurrence, None)
    return _with_exceptions(template, exceptions)


def diff_instance(template: Task, occurrence: date, edited: Task) -> TaskOverride:
    """Fields of an edited instance that differ from the plain instance."""
    plain = make_instance(template, occurrence)
    changed = {}
    for f in dataclasses.fields(Task):
        if f.name in IDENTITY_FIELDS:
            continue
        value = getattr(edited, f.name)
        if value != getattr(plain, f.name):
            changed[f.name] = value
    return TaskOverride(changed)


def update_series(template: Task, edited: Task) -> Task:
    """
    Rewrite the whole template from an edited task.

    Keeps the template's id, creation time and existing exceptions.
    """
    rule = edited.recurrence
    if rule is not None and template.recurrence is not None:
        rule = dataclasses.replace(rule, exceptions={**template.recurrence.exceptions, **rule.exceptions})
    return dataclasses.replace(
        edited,
        id=template.id,
        created_at=template.created_at,
        original_task_id=None,
        is_instance=False,
        scheduled_date=template.scheduled_date,
        recurrence=rule,
    )


def apply_instance_edit(template: Task, instance: Task, edited: Task) -> Task:
    """
    New template after the user edited one instance.

    A changed recurrence rule rewrites the series; anything else becomes an
    override for that single occurrence.

    For a rule change, build `edited` from the plain instance so that one
    date's override does not spread to the whole series.
    """
    if edited.recurrence is not None and not edited.recurrence.same_rule(template.recurrence):
        return update_series(template, edited)
    occurrence = occurrence_of(instance)
    # The diff is against the plain instance, so it replaces any earlier override
    cleared = restore_occurrence(template, occurrence)
    override = diff_instance(template, occurrence, edited)
    if not override:
        return cleared
    return override_occurrence(cleared, occurrence, override)
