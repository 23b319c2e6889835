"""Pure task domain model - no I/O dependencies."""

import dataclasses
import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Literal

logger = logging.getLogger(__name__)

DELETED: Literal["deleted"] = "deleted"

ALL_WEEKDAYS = frozenset(range(7))


class RecurrenceConfigError(ValueError):
    """Raised when a recurrence rule can never produce a valid occurrence."""

    pass


class Importance(Enum):
    LOW = "low"
    MID = "mid"
    HIGH = "high"


class RecurrenceType(Enum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class AvoidDirection(Enum):
    BEFORE = "before"
    AFTER = "after"


def _parse_date(value: Any) -> date | None:
    if not value:
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).split("T")[0])


def _parse_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _parse_weekdays(value: Any) -> frozenset[int]:
    """Weekday list from a record; anything unreadable matches nothing."""
    if not isinstance(value, (list, tuple, set, frozenset)):
        return frozenset()
    days = {_parse_int(v) for v in value}
    return frozenset(d for d in days if d is not None and 0 <= d <= 6)


def _parse_importance(value: Any) -> Importance:
    if isinstance(value, Importance):
        return value
    try:
        return Importance(value)
    except ValueError:
        logger.warning(f"Unknown importance {value!r}, using mid")
        return Importance.MID


# Python attribute name -> storage record key
_RECORD_KEYS = {
    "id": "id",
    "name": "name",
    "memo": "memo",
    "duration": "duration",
    "target_date": "targetDate",
    "target_time": "targetTime",
    "importance": "importance",
    "pinned": "pinned",
    "is_someday": "isSomeday",
    "recurrence": "recurrence",
    "scheduled_date": "scheduledDate",
    "scheduled_time": "scheduledTime",
    "booking_approved": "bookingApproved",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
    "original_task_id": "originalTaskId",
    "is_instance": "isInstance",
}
_FIELD_NAMES = {key: name for name, key in _RECORD_KEYS.items()}

# Fields that identify an instance rather than describe it
IDENTITY_FIELDS = frozenset(
    {"id", "original_task_id", "is_instance", "recurrence", "created_at", "updated_at"}
)


def _field_from_record(name: str, value: Any) -> Any:
    """Convert one record value to its Python field value."""
    match name:
        case "target_date" | "scheduled_date":
            return _parse_date(value)
        case "importance":
            return _parse_importance(value)
        case "recurrence":
            return Recurrence.from_dict(value) if value else None
        case "duration":
            return _parse_int(value) or 30
        case "pinned" | "is_someday" | "booking_approved" | "is_instance":
            return bool(value)
        case _:
            return value


def _field_to_record(name: str, value: Any) -> Any:
    match value:
        case None:
            return None
        case date():
            return value.isoformat()
        case Importance():
            return value.value
        case Recurrence():
            return value.to_dict()
        case _:
            return value


@dataclass(frozen=True)
class TaskOverride:
    """Partial task: only the fields an exception explicitly sets.

    A field present here wins over the template, even when its value is None.
    """

    fields: dict[str, Any] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return bool(self.fields)

    def merged(self, other: "TaskOverride") -> "TaskOverride":
        """Combine two overrides, fields in `other` winning."""
        return TaskOverride({**self.fields, **other.fields})

    @classmethod
    def from_dict(cls, data: dict) -> "TaskOverride":
        fields = {}
        for key, value in data.items():
            name = _FIELD_NAMES.get(key)
            if name is None or name == "recurrence":
                logger.debug(f"Ignoring override key {key!r}")
                continue
            fields[name] = _field_from_record(name, value)
        return cls(fields)

    def to_dict(self) -> dict:
        return {_RECORD_KEYS[name]: _field_to_record(name, value) for name, value in self.fields.items()}


OccurrenceException = TaskOverride | Literal["deleted"]


@dataclass(frozen=True)
class Recurrence:
    """A repeat rule plus its per-date exceptions."""

    type: RecurrenceType = RecurrenceType.NONE
    until: date | None = None
    exclude_days: frozenset[int] = frozenset()
    days_of_week: frozenset[int] = frozenset()
    day_of_month: int | None = None
    month: int | None = None
    avoid_days: frozenset[int] = frozenset()
    avoid_direction: AvoidDirection = AvoidDirection.AFTER
    exceptions: dict[date, OccurrenceException] = field(default_factory=dict)

    @property
    def is_recurring(self) -> bool:
        return self.type is not RecurrenceType.NONE

    def same_rule(self, other: "Recurrence | None") -> bool:
        """True when both describe the same series, ignoring exceptions."""
        if other is None:
            return not self.is_recurring
        return dataclasses.replace(self, exceptions={}) == dataclasses.replace(other, exceptions={})

    def validate(self) -> None:
        """Reject rules that can never resolve to a usable date."""
        if self.avoid_days >= ALL_WEEKDAYS:
            raise RecurrenceConfigError("avoid days cover every weekday")
        match self.type:
            case RecurrenceType.NONE:
                pass
            case RecurrenceType.DAILY:
                if self.exclude_days >= ALL_WEEKDAYS:
                    raise RecurrenceConfigError("daily rule excludes every weekday")
            case RecurrenceType.WEEKLY:
                if not self.days_of_week:
                    raise RecurrenceConfigError("weekly rule needs at least one weekday")
            case RecurrenceType.MONTHLY:
                if self.day_of_month is None or not 1 <= self.day_of_month <= 31:
                    raise RecurrenceConfigError("monthly rule needs a day of month between 1 and 31")
            case RecurrenceType.YEARLY:
                if self.month is None or not 1 <= self.month <= 12:
                    raise RecurrenceConfigError("yearly rule needs a month between 1 and 12")
                if self.day_of_month is None or not 1 <= self.day_of_month <= 31:
                    raise RecurrenceConfigError("yearly rule needs a day of month between 1 and 31")

    @classmethod
    def from_dict(cls, data: dict) -> "Recurrence":
        """Create Recurrence from a storage record, degrading on bad fields."""
        try:
            rtype = RecurrenceType(data.get("type") or "none")
        except ValueError:
            logger.warning(f"Unknown recurrence type {data.get('type')!r}, treating as none")
            rtype = RecurrenceType.NONE
        try:
            direction = AvoidDirection(data.get("avoidDirection") or "after")
        except ValueError:
            direction = AvoidDirection.AFTER

        exceptions: dict[date, OccurrenceException] = {}
        for key, value in (data.get("exceptions") or {}).items():
            day = _parse_date(key)
            if value == DELETED:
                exceptions[day] = DELETED
            elif isinstance(value, dict):
                exceptions[day] = TaskOverride.from_dict(value)

        return cls(
            type=rtype,
            until=_parse_date(data.get("until")),
            exclude_days=_parse_weekdays(data.get("excludeDays")),
            days_of_week=_parse_weekdays(data.get("daysOfWeek")),
            day_of_month=_parse_int(data.get("dayOfMonth")),
            month=_parse_int(data.get("month")),
            avoid_days=_parse_weekdays(data.get("avoidDays")),
            avoid_direction=direction,
            exceptions=exceptions,
        )

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "until": self.until.isoformat() if self.until else None,
            "excludeDays": sorted(self.exclude_days),
            "daysOfWeek": sorted(self.days_of_week),
            "dayOfMonth": self.day_of_month,
            "month": self.month,
            "avoidDays": sorted(self.avoid_days),
            "avoidDirection": self.avoid_direction.value,
            "exceptions": {
                day.isoformat(): value if value == DELETED else value.to_dict()
                for day, value in sorted(self.exceptions.items())
            },
        }


@dataclass
class Task:
    """A task, a recurring template, or one materialised instance of a template."""

    id: str
    name: str
    memo: str = ""
    duration: int = 30
    target_date: date | None = None
    target_time: str | None = None
    importance: Importance = Importance.MID
    pinned: bool = False
    is_someday: bool = True
    recurrence: Recurrence | None = None
    scheduled_date: date | None = None
    scheduled_time: str | None = None
    booking_approved: bool = False
    created_at: str = ""
    updated_at: str = ""
    original_task_id: str | None = None
    is_instance: bool = False

    @property
    def is_recurring(self) -> bool:
        return self.recurrence is not None and self.recurrence.is_recurring

    @property
    def template_id(self) -> str:
        """Id of the stored record this task came from."""
        return self.original_task_id or self.id

    @classmethod
    def from_dict(cls, data: dict) -> "Task":
        """Create Task from a storage record."""
        kwargs = {}
        for key, value in data.items():
            name = _FIELD_NAMES.get(key)
            if name is not None:
                kwargs[name] = _field_from_record(name, value)
        kwargs.setdefault("name", "")
        return cls(**kwargs)

    def to_dict(self) -> dict:
        record = {
            key: _field_to_record(name, getattr(self, name))
            for name, key in _RECORD_KEYS.items()
        }
        if not self.is_instance:
            del record["originalTaskId"]
            del record["isInstance"]
        return record


def apply_override(task: Task, override: TaskOverride) -> Task:
    """Overlay an override on a task, field by field.

    Pure function - the input task is not modified.
    """
    return dataclasses.replace(task, **override.fields)


def create_task(now: datetime | None = None, **overrides: Any) -> Task:
    """A fresh backlog task with default values."""
    stamp = (now or datetime.now()).isoformat()
    values: dict[str, Any] = {
        "id": str(uuid.uuid4()),
        "name": "",
        "created_at": stamp,
        "updated_at": stamp,
    }
    values.update(overrides)
    return Task(**values)
