"""Tests for the JSON file stores."""

import json
from datetime import date

import pytest

from takt.adapters.json_store import JsonHolidayStore, JsonTaskStore, StoreError
from takt.core.calendar import Holiday
from takt.core.tasks import Recurrence, RecurrenceType, Task


@pytest.fixture
def store(tmp_path):
    return JsonTaskStore(tmp_path)


class TestJsonTaskStore:
    def test_empty_when_missing(self, store):
        assert store.fetch_all() == []
        assert store.get("x") is None

    def test_save_and_get(self, store):
        task = Task(id="a", name="Write report", scheduled_date=date(2025, 1, 15), is_someday=False)
        store.save(task)
        assert store.get("a") == task

    def test_save_replaces(self, store):
        store.save(Task(id="a", name="old"))
        store.save(Task(id="a", name="new"))

        tasks = store.fetch_all()
        assert len(tasks) == 1
        assert tasks[0].name == "new"

    def test_recurring_template_stored_unexpanded(self, store, tmp_path):
        rule = Recurrence(type=RecurrenceType.DAILY)
        store.save(Task(id="t", name="Walk", recurrence=rule, is_someday=False))

        records = json.loads((tmp_path / "tasks.json").read_text())
        assert len(records) == 1
        assert records[0]["recurrence"]["type"] == "daily"

    def test_instances_rejected(self, store):
        instance = Task(id="t_2025-01-01", name="x", original_task_id="t", is_instance=True)
        with pytest.raises(ValueError):
            store.save(instance)

    def test_delete(self, store):
        store.save(Task(id="a", name="a"))
        store.save(Task(id="b", name="b"))
        store.delete("a")
        store.delete("unknown")
        assert [t.id for t in store.fetch_all()] == ["b"]

    def test_corrupt_file(self, store, tmp_path):
        (tmp_path / "tasks.json").write_text("{not json")
        with pytest.raises(StoreError):
            store.fetch_all()

    def test_not_a_list(self, store, tmp_path):
        (tmp_path / "tasks.json").write_text('{"id": "a"}')
        with pytest.raises(StoreError):
            store.fetch_all()

    def test_creates_data_dir(self, tmp_path):
        store = JsonTaskStore(tmp_path / "nested" / "data")
        store.save(Task(id="a", name="a"))
        assert (tmp_path / "nested" / "data" / "tasks.json").exists()


class TestJsonHolidayStore:
    def test_import_merges_by_id(self, tmp_path):
        store = JsonHolidayStore(tmp_path)
        store.import_holidays([Holiday(date="01-01", name="New Year", repeat=True, id="ny")])
        store.import_holidays(
            [
                Holiday(date="01-01", name="New Year's Day", repeat=True, id="ny"),
                Holiday(date="2025-05-06", name="Bridge day"),
            ]
        )

        names = sorted(h.name for h in store.fetch_all())
        assert names == ["Bridge day", "New Year's Day"]

    def test_clear(self, tmp_path):
        store = JsonHolidayStore(tmp_path)
        store.import_holidays([Holiday(date="12-25", name="Christmas", repeat=True)])
        store.clear()
        assert store.fetch_all() == []
