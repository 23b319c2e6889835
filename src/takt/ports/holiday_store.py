"""Holiday storage interface."""

from typing import Protocol

from takt.core.calendar import Holiday


class HolidayStore(Protocol):
    """Interface for the stored holiday list."""

    def fetch_all(self) -> list[Holiday]:
        ...

    def import_holidays(self, holidays: list[Holiday]) -> None:
        """Add or replace holidays, keyed by id."""
        ...

    def clear(self) -> None:
        ...
