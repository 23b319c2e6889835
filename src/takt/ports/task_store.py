"""Task storage interface."""

from typing import Protocol

from takt.core.tasks import Task


class TaskStore(Protocol):
    """Interface for reading and writing stored task records."""

    def fetch_all(self) -> list[Task]:
        """Fetch every stored task, recurring templates unexpanded."""
        ...

    def get(self, task_id: str) -> Task | None:
        """Fetch one task by id. Returns None if not found."""
        ...

    def save(self, task: Task) -> None:
        """Insert or replace a task."""
        ...

    def delete(self, task_id: str) -> None:
        """Remove a task. Unknown ids are ignored."""
        ...
