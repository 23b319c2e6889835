"""Backlog priority scoring - pure functions, no I/O."""

from datetime import date

from .tasks import Importance, Task

DEFAULT_N1 = 8
DEFAULT_N2 = 3

IMPORTANCE_WEIGHTS = {
    Importance.LOW: 1,
    Importance.MID: 2,
    Importance.HIGH: 3,
}


def deadline_score(
    task: Task,
    n1: int = DEFAULT_N1,
    n2: int = DEFAULT_N2,
    as_of: date | None = None,
    n2_tier: bool = False,
) -> int:
    """
    Deadline urgency from 1 (no target date) to 6 (overdue).

    6: overdue
    5: due today
    4: due tomorrow
    3: due within n1 days
    2: due later than that
    1: no target date

    n2 only takes part when n2_tier is set; then days 2 to n2-1 also score 4.
    """
    if not task.target_date:
        return 1
    as_of = as_of or date.today()
    diff = (task.target_date - as_of).days

    if diff < 0:
        return 6
    if diff == 0:
        return 5
    if diff == 1:
        return 4
    if n2_tier and diff < n2:
        return 4
    if diff < n1:
        return 3
    return 2


def importance_score(task: Task) -> int:
    """Importance weight; anything unrecognised counts as mid."""
    return IMPORTANCE_WEIGHTS.get(task.importance, 2)


def total_score(
    task: Task,
    n1: int = DEFAULT_N1,
    n2: int = DEFAULT_N2,
    as_of: date | None = None,
    n2_tier: bool = False,
) -> int:
    return deadline_score(task, n1, n2, as_of, n2_tier) * importance_score(task)


def sort_someday_tasks(
    tasks: list[Task],
    n1: int = DEFAULT_N1,
    n2: int = DEFAULT_N2,
    as_of: date | None = None,
    n2_tier: bool = False,
) -> list[Task]:
    """
    Pinned tasks first, then by total score (descending).

    Stable: ties keep their input order. Pure function - no I/O.
    """
    as_of = as_of or date.today()

    def sort_key(t: Task) -> tuple[bool, int]:
        return (not t.pinned, -total_score(t, n1, n2, as_of, n2_tier))

    return sorted(tasks, key=sort_key)
