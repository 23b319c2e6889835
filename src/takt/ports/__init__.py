"""Ports - interfaces/protocols for external dependencies."""

from .task_store import TaskStore
from .holiday_store import HolidayStore

__all__ = [
    "TaskStore",
    "HolidayStore",
]
