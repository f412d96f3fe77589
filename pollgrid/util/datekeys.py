# pollgrid/util/datekeys.py
from __future__ import annotations

import calendar
import datetime as dt
import re
from typing import Optional, Union

_KEY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DateLike = Union[dt.date, dt.datetime]


def date_key(d: DateLike) -> str:
    """Zero-padded YYYY-MM-DD from the local calendar fields of `d`.

    Aware datetimes are not converted to UTC first; the key is whatever
    day the value shows on its own wall clock.
    """
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def parse_date_key(s: str) -> dt.date:
    ss = str(s).strip()
    if not _KEY_RE.match(ss):
        raise ValueError(f"Invalid date key: {s!r}")
    return dt.datetime.strptime(ss, "%Y-%m-%d").date()


def try_parse_date_key(s: object) -> Optional[dt.date]:
    if not isinstance(s, str):
        return None
    try:
        return parse_date_key(s)
    except ValueError:
        return None


def first_of_month(d: DateLike) -> dt.date:
    return dt.date(d.year, d.month, 1)


def add_months(d: dt.date, n: int) -> dt.date:
    """First day of the month `n` months away from `d`."""
    idx = d.year * 12 + (d.month - 1) + int(n)
    return dt.date(idx // 12, idx % 12 + 1, 1)


def days_in_month(d: DateLike) -> int:
    return calendar.monthrange(d.year, d.month)[1]


def add_years(d: dt.date, years: int) -> dt.date:
    # Feb 29 lands on Feb 28 in non-leap target years.
    y = d.year + int(years)
    day = min(d.day, calendar.monthrange(y, d.month)[1])
    return dt.date(y, d.month, day)


def monday_first_weekday(d: dt.date) -> int:
    """0 for Monday .. 6 for Sunday, from a Sunday-first weekday index."""
    sunday_first = (d.weekday() + 1) % 7
    return (sunday_first + 6) % 7
