"""Tests for the task model and its storage records."""

from datetime import date, datetime

import pytest

from takt.core.tasks import (
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


@pytest.fixture
def record():
    return {
        "id": "abc",
        "name": "Gym",
        "memo": "leg day",
        "duration": 60,
        "targetDate": "2025-01-20",
        "targetTime": None,
        "importance": "high",
        "pinned": True,
        "isSomeday": False,
        "recurrence": {
            "type": "weekly",
            "daysOfWeek": [1, 3],
            "exceptions": {
                "2025-01-13": "deleted",
                "2025-01-15": {"scheduledTime": "18:00", "duration": 45},
            },
        },
        "scheduledDate": "2025-01-06",
        "scheduledTime": "07:00",
        "bookingApproved": False,
        "createdAt": "2025-01-01T08:00:00",
        "updatedAt": "2025-01-02T08:00:00",
    }


class TestTaskFromDict:
    def test_fields(self, record):
        task = Task.from_dict(record)

        assert task.id == "abc"
        assert task.name == "Gym"
        assert task.duration == 60
        assert task.target_date == date(2025, 1, 20)
        assert task.importance is Importance.HIGH
        assert task.pinned is True
        assert task.is_someday is False
        assert task.scheduled_date == date(2025, 1, 6)
        assert task.scheduled_time == "07:00"
        assert task.is_instance is False

    def test_recurrence(self, record):
        rule = Task.from_dict(record).recurrence

        assert rule.type is RecurrenceType.WEEKLY
        assert rule.days_of_week == frozenset({1, 3})
        assert rule.exceptions[date(2025, 1, 13)] == DELETED
        override = rule.exceptions[date(2025, 1, 15)]
        assert override.fields == {"scheduled_time": "18:00", "duration": 45}

    def test_minimal_record(self):
        task = Task.from_dict({"id": "x"})
        assert task.name == ""
        assert task.duration == 30
        assert task.importance is Importance.MID
        assert task.is_someday is True
        assert task.recurrence is None

    def test_unknown_importance_falls_back_to_mid(self):
        task = Task.from_dict({"id": "x", "name": "n", "importance": "urgent"})
        assert task.importance is Importance.MID

    def test_datetime_target_date(self):
        task = Task.from_dict({"id": "x", "targetDate": "2025-01-20T09:00:00"})
        assert task.target_date == date(2025, 1, 20)

    def test_unknown_keys_ignored(self):
        task = Task.from_dict({"id": "x", "name": "n", "color": "red"})
        assert task.name == "n"


class TestTaskToDict:
    def test_survives_storage(self, record):
        task = Task.from_dict(record)
        assert Task.from_dict(task.to_dict()) == task

    def test_camel_case_keys(self, record):
        data = Task.from_dict(record).to_dict()
        assert data["scheduledDate"] == "2025-01-06"
        assert data["importance"] == "high"
        assert data["recurrence"]["daysOfWeek"] == [1, 3]
        assert data["recurrence"]["exceptions"]["2025-01-13"] == "deleted"
        assert data["recurrence"]["exceptions"]["2025-01-15"] == {"scheduledTime": "18:00", "duration": 45}

    def test_instance_fields_only_on_instances(self):
        plain = Task(id="a", name="a").to_dict()
        instance = Task(id="a_2025-01-01", name="a", original_task_id="a", is_instance=True).to_dict()

        assert "originalTaskId" not in plain
        assert "isInstance" not in plain
        assert instance["originalTaskId"] == "a"
        assert instance["isInstance"] is True


class TestRecurrence:
    def test_from_dict_unknown_type(self):
        rule = Recurrence.from_dict({"type": "hourly"})
        assert rule.type is RecurrenceType.NONE
        assert not rule.is_recurring

    def test_from_dict_drops_bad_weekdays(self):
        rule = Recurrence.from_dict({"type": "weekly", "daysOfWeek": [1, "x", 9, "3"]})
        assert rule.days_of_week == frozenset({1, 3})

    def test_from_dict_defaults(self):
        rule = Recurrence.from_dict({"type": "monthly", "dayOfMonth": "15"})
        assert rule.day_of_month == 15
        assert rule.avoid_direction is AvoidDirection.AFTER
        assert rule.exceptions == {}

    def test_same_rule_ignores_exceptions(self):
        a = Recurrence(type=RecurrenceType.DAILY)
        b = Recurrence(type=RecurrenceType.DAILY, exceptions={date(2025, 1, 1): DELETED})
        c = Recurrence(type=RecurrenceType.DAILY, exclude_days=frozenset({0}))

        assert a.same_rule(b)
        assert not a.same_rule(c)

    def test_same_rule_against_none(self):
        assert Recurrence().same_rule(None)
        assert not Recurrence(type=RecurrenceType.DAILY).same_rule(None)


class TestValidate:
    @pytest.mark.parametrize(
        "rule",
        [
            Recurrence(type=RecurrenceType.DAILY, exclude_days=frozenset(range(7))),
            Recurrence(type=RecurrenceType.WEEKLY),
            Recurrence(type=RecurrenceType.MONTHLY),
            Recurrence(type=RecurrenceType.MONTHLY, day_of_month=32),
            Recurrence(type=RecurrenceType.YEARLY, day_of_month=1),
            Recurrence(type=RecurrenceType.YEARLY, month=13, day_of_month=1),
            Recurrence(type=RecurrenceType.MONTHLY, day_of_month=1, avoid_days=frozenset(range(7))),
        ],
    )
    def test_rejects_unusable_rules(self, rule):
        with pytest.raises(RecurrenceConfigError):
            rule.validate()

    def test_accepts_valid_rules(self):
        Recurrence(type=RecurrenceType.DAILY, exclude_days=frozenset({0, 6})).validate()
        Recurrence(type=RecurrenceType.WEEKLY, days_of_week=frozenset({2})).validate()
        Recurrence(type=RecurrenceType.YEARLY, month=2, day_of_month=29).validate()


class TestOverrides:
    def test_apply_override(self):
        task = Task(id="a", name="Old", scheduled_time="09:00")
        result = apply_override(task, TaskOverride({"name": "New"}))

        assert result.name == "New"
        assert result.scheduled_time == "09:00"
        assert task.name == "Old"

    def test_explicit_none_wins(self):
        task = Task(id="a", name="a", scheduled_time="09:00")
        result = apply_override(task, TaskOverride({"scheduled_time": None}))
        assert result.scheduled_time is None

    def test_merged(self):
        first = TaskOverride({"name": "x", "duration": 15})
        second = TaskOverride({"duration": 45})
        assert first.merged(second).fields == {"name": "x", "duration": 45}

    def test_empty_override_is_falsy(self):
        assert not TaskOverride()
        assert TaskOverride({"name": "x"})

    def test_from_dict_ignores_recurrence(self):
        override = TaskOverride.from_dict({"name": "x", "recurrence": {"type": "daily"}, "bogus": 1})
        assert override.fields == {"name": "x"}


class TestCreateTask:
    def test_defaults(self):
        now = datetime(2025, 1, 15, 9, 30)
        task = create_task(now=now, name="Read")

        assert task.name == "Read"
        assert task.is_someday is True
        assert task.duration == 30
        assert task.created_at == "2025-01-15T09:30:00"
        assert task.updated_at == task.created_at
        assert task.id

    def test_unique_ids(self):
        assert create_task().id != create_task().id
