"""
Business date parsing and calendar-day scoping.

Ledger posting uses ISO dates (YYYY-MM-DD); balance, neraca and SHU
operations use dd-mm-yyyy. Both formats are part of the caller contract.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from ledger_backend.app.core.exceptions import InvalidDateError

ISO_FORMAT = "%Y-%m-%d"
DMY_FORMAT = "%d-%m-%Y"


def parse_iso_date(value) -> date:
    """Parse YYYY-MM-DD (a ``date`` passes through unchanged)."""
    return _parse(value, ISO_FORMAT, "YYYY-MM-DD")


def parse_dmy_date(value) -> date:
    """Parse dd-mm-yyyy (a ``date`` passes through unchanged)."""
    return _parse(value, DMY_FORMAT, "dd-mm-yyyy")


def _parse(value, fmt: str, label: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidDateError(value, label)
    try:
        return datetime.strptime(value.strip(), fmt).date()
    except ValueError:
        raise InvalidDateError(value, label)


@dataclass(frozen=True)
class DateRange:
    """
    Half-open datetime range used by store queries.

    ``start`` is inclusive and may be None (open start); ``end`` is exclusive.
    """
    start: Optional[datetime]
    end: datetime

    @classmethod
    def day(cls, day: date) -> "DateRange":
        """The whole calendar day."""
        start = datetime.combine(day, time.min)
        return cls(start=start, end=start + timedelta(days=1))

    @classmethod
    def up_to(cls, day: date) -> "DateRange":
        """Everything up to and including the end of ``day``."""
        return cls(start=None, end=datetime.combine(day, time.min) + timedelta(days=1))


def as_ledger_datetime(day: date) -> datetime:
    """Ledger dates are stored as midnight of the business day."""
    return datetime.combine(day, time.min)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
