# pollgrid/navigator.py
"""Visible month window: single-step paging and scroll-driven extension.

A window is a list of first-of-month dates. Paging keeps its length
(prepend+drop-last, append+drop-first); scroll extension appends in a batch.
Forward moves are capped by a horizon of N years from "now", where "now" is
read from the clock at the moment of each check.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Callable, List, Optional, Sequence

from .config import DEFAULT_CONFIG, EditorConfig
from .util.datekeys import add_months, add_years, first_of_month

log = logging.getLogger(__name__)

Clock = Callable[[], dt.date]
MonthsCallback = Callable[[List[dt.date]], None]


def _today() -> dt.date:
    return dt.date.today()


def horizon_date(now: dt.date, years: int) -> dt.date:
    return add_years(now, years)


def within_horizon(month: dt.date, now: dt.date, years: int) -> bool:
    return first_of_month(month) <= horizon_date(now, years)


def initial_window(start: dt.date, count: int) -> List[dt.date]:
    base = first_of_month(start)
    return [add_months(base, i) for i in range(max(0, int(count)))]


def shift_prev(window: Sequence[dt.date]) -> List[dt.date]:
    if not window:
        return list(window)
    return [add_months(window[0], -1)] + list(window[:-1])


def shift_next(window: Sequence[dt.date], *, now: dt.date, horizon_years: int) -> List[dt.date]:
    """Append the month after the last one and drop the first.

    Returns the window unchanged when the new month would pass the horizon.
    """
    if not window:
        return list(window)
    nxt = add_months(window[-1], 1)
    if not within_horizon(nxt, now, horizon_years):
        return list(window)
    return list(window[1:]) + [nxt]


def near_trailing_edge(*, scroll_left: float, scroll_width: float, client_width: float, threshold_px: int) -> bool:
    return scroll_width - scroll_left <= client_width + threshold_px


def extend_window(
    window: Sequence[dt.date],
    *,
    clock: Clock,
    horizon_years: int,
    batch: int,
    max_len: int,
) -> List[dt.date]:
    """Append up to `batch` months, each checked against a fresh horizon."""
    out = list(window)
    if not out or len(out) >= max_len:
        return out
    for _ in range(max(0, int(batch))):
        if len(out) >= max_len:
            break
        nxt = add_months(out[-1], 1)
        if not within_horizon(nxt, clock(), horizon_years):
            break
        out.append(nxt)
    return out


class CalendarNavigator:
    """Owns one visible window and reports changes through callbacks."""

    def __init__(
        self,
        window: Optional[Sequence[dt.date]] = None,
        *,
        horizon_years: int,
        clock: Clock = _today,
        cfg: EditorConfig = DEFAULT_CONFIG,
        on_months_change: Optional[MonthsCallback] = None,
    ) -> None:
        self.clock = clock
        self.cfg = cfg
        self.horizon_years = int(horizon_years)
        self.on_months_change = on_months_change
        if window is None:
            window = initial_window(clock(), cfg.initial_months)
        self._window: List[dt.date] = [first_of_month(m) for m in window][: cfg.max_visible_months]

    @property
    def window(self) -> List[dt.date]:
        return list(self._window)

    def _set(self, new_window: List[dt.date]) -> bool:
        if new_window == self._window:
            return False
        self._window = new_window
        if self.on_months_change is not None:
            self.on_months_change(list(new_window))
        return True

    def set_window(self, months: Sequence[dt.date]) -> bool:
        """Replace the window wholesale; an empty list is ignored."""
        if not months:
            return False
        return self._set([first_of_month(m) for m in months][: self.cfg.max_visible_months])

    def reset(self, start: dt.date) -> None:
        self._set(initial_window(start, self.cfg.initial_months))

    def shift_prev(self) -> bool:
        return self._set(shift_prev(self._window))

    def shift_next(self) -> bool:
        changed = self._set(shift_next(self._window, now=self.clock(), horizon_years=self.horizon_years))
        if not changed and self._window:
            log.debug("shift_next blocked at horizon (%s years)", self.horizon_years)
        return changed

    def on_month_change(self, direction: str) -> bool:
        if direction == "prev":
            return self.shift_prev()
        if direction == "next":
            return self.shift_next()
        raise ValueError(f"direction must be 'prev' or 'next', got {direction!r}")

    def handle_scroll(self, *, scroll_left: float, scroll_width: float, client_width: float) -> bool:
        if not near_trailing_edge(
            scroll_left=scroll_left,
            scroll_width=scroll_width,
            client_width=client_width,
            threshold_px=self.cfg.scroll_extend_threshold_px,
        ):
            return False
        return self._set(
            extend_window(
                self._window,
                clock=self.clock,
                horizon_years=self.horizon_years,
                batch=self.cfg.scroll_extend_batch,
                max_len=self.cfg.max_visible_months,
            )
        )


def creation_flow_navigator(
    window: Optional[Sequence[dt.date]] = None,
    *,
    clock: Clock = _today,
    cfg: EditorConfig = DEFAULT_CONFIG,
    on_months_change: Optional[MonthsCallback] = None,
) -> CalendarNavigator:
    return CalendarNavigator(
        window,
        horizon_years=cfg.creation_horizon_years,
        clock=clock,
        cfg=cfg,
        on_months_change=on_months_change,
    )


def scroll_navigator(
    window: Optional[Sequence[dt.date]] = None,
    *,
    clock: Clock = _today,
    cfg: EditorConfig = DEFAULT_CONFIG,
    on_months_change: Optional[MonthsCallback] = None,
) -> CalendarNavigator:
    return CalendarNavigator(
        window,
        horizon_years=cfg.scroll_horizon_years,
        clock=clock,
        cfg=cfg,
        on_months_change=on_months_change,
    )
