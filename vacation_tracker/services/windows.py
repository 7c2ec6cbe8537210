"""
Time windows over vacations.

A window is either one calendar month or one member's upcoming vacations.
in_window() is the single membership rule: the repository uses it to
filter list results and the cache uses it to place mutated records, so
the two can never disagree.
"""

import calendar
import re
from dataclasses import dataclass
from datetime import date
from typing import Union

from vacation_tracker.schemas.vacation import Vacation

MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")


def month_bounds(month: str) -> tuple[date, date]:
    """
    "2026-02" -> (2026-02-01, 2026-02-28).

    Raises ValueError for anything that is not a real YYYY-MM month.
    """
    match = MONTH_PATTERN.match(month or "")
    if not match:
        raise ValueError("month must be in YYYY-MM format")
    year, mon = int(match.group(1)), int(match.group(2))
    if not 1 <= mon <= 12 or year < 1:
        raise ValueError("month must be in YYYY-MM format")
    last_day = calendar.monthrange(year, mon)[1]
    return date(year, mon, 1), date(year, mon, last_day)


def overlaps(vacation: Vacation, first_day: date, last_day: date) -> bool:
    """Inclusive interval intersection."""
    return vacation.start_date <= last_day and vacation.end_date >= first_day


@dataclass(frozen=True)
class MonthWindow:
    month: str

    def __post_init__(self) -> None:
        month_bounds(self.month)

    @property
    def bounds(self) -> tuple[date, date]:
        return month_bounds(self.month)

    def contains(self, vacation: Vacation) -> bool:
        first_day, last_day = self.bounds
        return overlaps(vacation, first_day, last_day)


@dataclass(frozen=True)
class UpcomingWindow:
    """One member's ongoing and future vacations as of a given day."""

    github_id: str
    since: date

    def contains(self, vacation: Vacation) -> bool:
        return vacation.github_id == self.github_id and vacation.end_date >= self.since


WindowKey = Union[MonthWindow, UpcomingWindow]


def in_window(vacation: Vacation, key: WindowKey) -> bool:
    """Closed vacations are never members of any window."""
    return vacation.state == "open" and key.contains(vacation)
