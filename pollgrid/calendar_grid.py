# pollgrid/calendar_grid.py
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Iterable, List, Optional, Tuple

from .model import CalendarDay
from .util.datekeys import DateLike, date_key, days_in_month, monday_first_weekday

WEEKDAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


@lru_cache(maxsize=256)
def _month_days(year: int, month: int) -> Tuple[CalendarDay, ...]:
    first = dt.date(year, month, 1)
    blanks = monday_first_weekday(first)

    days: List[CalendarDay] = [CalendarDay(date=None, is_current_month=False, is_empty=True) for _ in range(blanks)]
    for i in range(1, days_in_month(first) + 1):
        days.append(CalendarDay(date=dt.date(year, month, i), is_current_month=True, is_empty=False))
    return tuple(days)


def generate_month_days(month: DateLike) -> List[CalendarDay]:
    """Day cells for the month containing `month`.

    Leading blank cells align day 1 under a Monday-first week header. There is
    no trailing padding to complete the last week.
    """
    return list(_month_days(month.year, month.month))


def leading_blanks(month: DateLike) -> int:
    return monday_first_weekday(dt.date(month.year, month.month, 1))


@dataclass(frozen=True)
class DayCell:
    """A rendered day: a CalendarDay plus selection and clock state."""

    day: CalendarDay
    key: Optional[str] = None
    is_selected: bool = False
    is_today: bool = False
    is_past: bool = False

    @property
    def disabled(self) -> bool:
        return self.day.is_empty or self.is_past

    def click(self, on_date_toggle: Callable[[dt.date], None]) -> bool:
        """Forward a click to `on_date_toggle`; past and blank cells ignore it."""
        if self.disabled or self.day.date is None:
            return False
        on_date_toggle(self.day.date)
        return True


def build_day_cells(month: DateLike, selected_dates: Iterable[str], today: dt.date) -> List[DayCell]:
    selected = set(selected_dates)
    out: List[DayCell] = []
    for day in generate_month_days(month):
        if day.date is None:
            out.append(DayCell(day=day))
            continue
        key = date_key(day.date)
        out.append(
            DayCell(
                day=day,
                key=key,
                is_selected=key in selected,
                is_today=day.date == today,
                is_past=day.date < today,
            )
        )
    return out


def find_cell(cells: Iterable[DayCell], day_number: int) -> Optional[DayCell]:
    for c in cells:
        if c.day.date is not None and c.day.date.day == day_number:
            return c
    return None


def format_month(month: DateLike, selected_dates: Iterable[str] = (), today: Optional[dt.date] = None) -> str:
    """Plain-text month grid (used by the CLI).

    Selected days are wrapped in brackets, past days in parentheses.
    """
    today = today or dt.date.today()
    cells = build_day_cells(month, selected_dates, today)
    lines = [f"{month.year:04d}-{month.month:02d}", " ".join(f"{w:>4}" for w in WEEKDAY_LABELS)]
    row: List[str] = []
    for c in cells:
        if c.day.date is None:
            row.append("    ")
        else:
            n = str(c.day.date.day)
            if c.is_selected:
                n = f"[{n}]"
            elif c.is_past:
                n = f"({n})"
            row.append(f"{n:>4}")
        if len(row) == 7:
            lines.append(" ".join(row).rstrip())
            row = []
    if row:
        lines.append(" ".join(row).rstrip())
    return "\n".join(lines)
