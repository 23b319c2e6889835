"""Functional core - pure business logic with no I/O."""

from .tasks import (
    DELETED,
    AvoidDirection,
    Importance,
    Recurrence,
    RecurrenceConfigError,
    RecurrenceType,
    Task,
    TaskOverride,
    apply_override,
    create_task,
)
from .scoring import deadline_score, importance_score, total_score, sort_someday_tasks
from .recurrence import expand_recurring_tasks, apply_instance_edit, delete_occurrence
from .schedule import (
    GapEntry,
    TaskEntry,
    TimelineEntry,
    build_timeline,
    detect_bookings,
    get_scheduled_for_date,
    get_someday_tasks,
    get_unscheduled_for_date,
    is_overlapping,
)
from .calendar import Holiday, holiday_name, is_holiday, week_dates

__all__ = [
    # Tasks
    "DELETED",
    "AvoidDirection",
    "Importance",
    "Recurrence",
    "RecurrenceConfigError",
    "RecurrenceType",
    "Task",
    "TaskOverride",
    "apply_override",
    "create_task",
    # Scoring
    "deadline_score",
    "importance_score",
    "total_score",
    "sort_someday_tasks",
    # Recurrence
    "expand_recurring_tasks",
    "apply_instance_edit",
    "delete_occurrence",
    # Schedule
    "GapEntry",
    "TaskEntry",
    "TimelineEntry",
    "build_timeline",
    "detect_bookings",
    "get_scheduled_for_date",
    "get_someday_tasks",
    "get_unscheduled_for_date",
    "is_overlapping",
    # Calendar
    "Holiday",
    "holiday_name",
    "is_holiday",
    "week_dates",
]
