"""Adapters - I/O implementations of ports."""

from .json_store import JsonHolidayStore, JsonTaskStore, StoreError

__all__ = [
    "JsonTaskStore",
    "JsonHolidayStore",
    "StoreError",
]
