"""Day views, booking detection and timeline layout - no I/O dependencies."""

from dataclasses import dataclass
from datetime import date
from enum import Enum

from .calendar import parse_date
from .tasks import Task


class BookingStatus(Enum):
    """How a task shows up with respect to overlapping tasks."""

    NONE = "none"
    CONFLICT = "conflict"
    APPROVED = "approved"


@dataclass
class TaskEntry:
    """A task occupying its slot on the timeline."""

    task: Task


@dataclass
class GapEntry:
    """Free time between two consecutive tasks."""

    start: str
    duration: int


TimelineEntry = TaskEntry | GapEntry


def time_to_minutes(time_str: str) -> int:
    """Minutes since midnight for an "HH:MM" string."""
    hours, minutes = time_str.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def format_duration(minutes: int) -> str:
    """Human-readable duration, e.g. 45m, 2h, 1h 30m."""
    if minutes < 60:
        return f"{minutes}m"
    hours, rest = divmod(minutes, 60)
    return f"{hours}h {rest}m" if rest else f"{hours}h"


def end_minutes(task: Task) -> int:
    return time_to_minutes(task.scheduled_time) + task.duration


# ============== Daily selection ==============


def get_someday_tasks(tasks: list[Task]) -> list[Task]:
    return [t for t in tasks if t.is_someday]


def get_tasks_for_date(tasks: list[Task], day: date | str) -> list[Task]:
    """Every task placed on a day, with or without a time."""
    day = parse_date(day)
    return [t for t in tasks if t.scheduled_date == day and not t.is_someday]


def get_unscheduled_for_date(tasks: list[Task], day: date | str) -> list[Task]:
    """Tasks placed on a day without a time."""
    return [t for t in get_tasks_for_date(tasks, day) if t.scheduled_time is None]


def get_scheduled_for_date(tasks: list[Task], day: date | str) -> list[Task]:
    """
    Tasks placed on a day at a time, earliest first.

    "HH:MM" strings are zero-padded, so string order is time order.
    """
    timed = [t for t in get_tasks_for_date(tasks, day) if t.scheduled_time is not None]
    return sorted(timed, key=lambda t: t.scheduled_time)


# ============== Bookings ==============


def is_overlapping(a: Task, b: Task) -> bool:
    """
    Whether two tasks' time ranges intersect.

    Ranges are half-open, so back-to-back tasks do not overlap. Tasks
    without a time never overlap anything.
    """
    if not a.scheduled_time or not b.scheduled_time:
        return False
    start_a = time_to_minutes(a.scheduled_time)
    start_b = time_to_minutes(b.scheduled_time)
    return start_a < end_minutes(b) and start_b < end_minutes(a)


def detect_bookings(tasks: list[Task]) -> set[str]:
    """
    Ids of every task overlapping at least one other task.

    Compares all pairs; a single day holds few enough tasks for that.
    """
    booked: set[str] = set()
    for i, a in enumerate(tasks):
        for b in tasks[i + 1 :]:
            if is_overlapping(a, b):
                booked.add(a.id)
                booked.add(b.id)
    return booked


def booking_status(task: Task, bookings: set[str]) -> BookingStatus:
    if task.id not in bookings:
        return BookingStatus.NONE
    return BookingStatus.APPROVED if task.booking_approved else BookingStatus.CONFLICT


# ============== Timeline ==============


def build_timeline(tasks: list[Task]) -> list[TimelineEntry]:
    """
    Task entries in order, with a gap entry wherever one task ends before the next starts.

    Expects tasks sorted by time (see get_scheduled_for_date). Nothing is
    added before the first task or after the last one.
    """
    entries: list[TimelineEntry] = []
    for i, task in enumerate(tasks):
        entries.append(TaskEntry(task))
        if i + 1 < len(tasks):
            end = end_minutes(task)
            next_start = time_to_minutes(tasks[i + 1].scheduled_time)
            if next_start > end:
                entries.append(GapEntry(start=minutes_to_time(end), duration=next_start - end))
    return entries
