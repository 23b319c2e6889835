"""Pure calendar helpers and holiday lookup - no I/O dependencies."""

import calendar
from dataclasses import dataclass
from datetime import date, timedelta


def parse_date(value: date | str) -> date:
    """Accept a date or a YYYY-MM-DD string."""
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def day_number(d: date) -> int:
    """Weekday number with Sunday = 0 through Saturday = 6."""
    return (d.weekday() + 1) % 7


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def clamped_date(year: int, month: int, day: int) -> date:
    """Date for day-of-month, pulled back to the month's last day if needed."""
    return date(year, month, min(day, days_in_month(year, month)))


def yearly_date(year: int, month: int, day: int) -> date:
    """
    Date for a yearly rule.

    Feb 29 falls back to Feb 28 in common years; any other day past the
    month's end rolls over into the next month (Apr 31 is May 1).
    """
    if month == 2 and day == 29 and not calendar.isleap(year):
        return date(year, 2, 28)
    return date(year, month, 1) + timedelta(days=day - 1)


def add_months(d: date, months: int) -> date:
    """First day of the month `months` after d's month."""
    index = d.year * 12 + (d.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def week_dates(center: date, week_start_day: int = 0) -> list[date]:
    """The seven dates of the week containing `center`."""
    diff = (day_number(center) - week_start_day) % 7
    start = center - timedelta(days=diff)
    return [start + timedelta(days=i) for i in range(7)]


@dataclass
class Holiday:
    """A named holiday; `repeat` holidays recur every year on the same MM-DD."""

    date: str
    name: str
    repeat: bool = False
    id: str = ""

    def matches(self, d: date) -> bool:
        if self.repeat:
            return self.date == d.strftime("%m-%d")
        return self.date == d.isoformat()

    @classmethod
    def from_dict(cls, data: dict) -> "Holiday":
        return cls(
            date=data["date"],
            name=data.get("name", ""),
            repeat=bool(data.get("repeat", False)),
            id=data.get("id") or data["date"],
        )

    def to_dict(self) -> dict:
        return {"id": self.id or self.date, "date": self.date, "name": self.name, "repeat": self.repeat}


def load_holidays(data: dict | list) -> list[Holiday]:
    """Parse holiday data given either as {"holidays": [...]} or a bare list."""
    items = data.get("holidays", []) if isinstance(data, dict) else data
    return [Holiday.from_dict(item) for item in items]


def holiday_name(holidays: list[Holiday], d: date) -> str | None:
    """Name of the first holiday falling on d, if any."""
    for h in holidays:
        if h.matches(d):
            return h.name
    return None


def is_holiday(holidays: list[Holiday], d: date) -> bool:
    return any(h.matches(d) for h in holidays)
