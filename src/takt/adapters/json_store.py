"""JSON-file task and holiday storage adapters."""

import json
import logging
from pathlib import Path

from takt.core.calendar import Holiday
from takt.core.tasks import Task

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when a store file exists but cannot be read."""

    pass


class _JsonFile:
    """A JSON list of records, read and rewritten whole."""

    def __init__(self, path: Path):
        self.path = path

    def read(self) -> list[dict]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text())
        except json.JSONDecodeError as e:
            raise StoreError(f"Cannot parse {self.path}: {e}") from e
        if not isinstance(data, list):
            raise StoreError(f"Expected a list of records in {self.path}")
        return data

    def write(self, records: list[dict]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".tmp")
        tmp.write_text(json.dumps(records, indent=2, ensure_ascii=False))
        tmp.replace(self.path)


class JsonTaskStore:
    """
    File-based task storage.

    Implements TaskStore protocol. All tasks live in one tasks.json file,
    stored as camelCase records.
    """

    def __init__(self, data_dir: Path | str):
        self.data_dir = Path(data_dir).expanduser()
        self._file = _JsonFile(self.data_dir / "tasks.json")

    def fetch_all(self) -> list[Task]:
        return [Task.from_dict(record) for record in self._file.read()]

    def get(self, task_id: str) -> Task | None:
        for record in self._file.read():
            if record.get("id") == task_id:
                return Task.from_dict(record)
        return None

    def save(self, task: Task) -> None:
        if task.is_instance:
            raise ValueError(f"Instance {task.id} cannot be stored; save its template instead")
        records = [r for r in self._file.read() if r.get("id") != task.id]
        records.append(task.to_dict())
        self._file.write(records)
        logger.debug(f"Saved task {task.id}")

    def delete(self, task_id: str) -> None:
        records = self._file.read()
        kept = [r for r in records if r.get("id") != task_id]
        if len(kept) != len(records):
            self._file.write(kept)
            logger.debug(f"Deleted task {task_id}")


class JsonHolidayStore:
    """File-based holiday storage. Implements HolidayStore protocol."""

    def __init__(self, data_dir: Path | str):
        self.data_dir = Path(data_dir).expanduser()
        self._file = _JsonFile(self.data_dir / "holidays.json")

    def fetch_all(self) -> list[Holiday]:
        return [Holiday.from_dict(record) for record in self._file.read()]

    def import_holidays(self, holidays: list[Holiday]) -> None:
        by_id = {h.id: h for h in self.fetch_all()}
        for h in holidays:
            by_id[h.id] = h
        self._file.write([h.to_dict() for h in by_id.values()])
        logger.info(f"Imported {len(holidays)} holidays")

    def clear(self) -> None:
        self._file.write([])
