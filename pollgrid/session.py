# pollgrid/session.py
"""One poll-creation editing session.

The session owns the selected dates, the per-date slots, the granularity and
the visible month window, and wires the pure operations to UI-style
callbacks. Persistence sits behind a small Protocol: autosave is debounced
and fire-and-forget, and a failed save only produces a warning, the edits
stay in memory.
"""

from __future__ import annotations

import datetime as dt
import functools
import logging
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Sequence

from .calendar_grid import DayCell, build_day_cells
from .config import DEFAULT_CONFIG, EditorConfig
from .drag import (
    DateDragAdapter,
    DragHost,
    DragSelectionController,
    SlotRef,
    TimeSlotDragAdapter,
    apply_slot_drag,
)
from .granularity import (
    GranularityState,
    calculate_optimal_granularity,
    change_granularity,
    compatible_options,
    is_supported,
    nearest_supported_granularity,
    undo_granularity,
)
from .importer import drop_off_lattice, import_external_slots
from .io import draft_to_json
from .model import Block, ExternalSlot, SlotsByDate
from .navigator import CalendarNavigator, creation_flow_navigator
from .selection import ADD, batch_toggle_dates, plan_date_drag, toggle_date
from .slots import MergeMode, Tick, all_slots, generate_visible_ticks, get_time_slot_blocks, toggle_slot
from .util.datekeys import date_key, try_parse_date_key
from .util.timers import Scheduler, ThreadingScheduler, TimerHandle

log = logging.getLogger(__name__)

JsonDict = Dict[str, Any]


class PollPersistence(Protocol):
    def save(self, draft: JsonDict) -> None:
        """Store the draft; raise on failure."""


class InMemoryPersistence:
    """Keeps every saved draft; `fail_with` makes the next saves raise."""

    def __init__(self) -> None:
        self.saved: List[JsonDict] = []
        self.fail_with: Optional[Exception] = None

    def save(self, draft: JsonDict) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.saved.append(draft)


class PollDraftSession:
    def __init__(
        self,
        *,
        persistence: Optional[PollPersistence] = None,
        scheduler: Optional[Scheduler] = None,
        clock: Callable[[], dt.date] = dt.date.today,
        cfg: EditorConfig = DEFAULT_CONFIG,
        on_warning: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.cfg = cfg
        self.clock = clock
        self.persistence = persistence
        self.scheduler: Scheduler = scheduler if scheduler is not None else ThreadingScheduler()
        self.on_warning = on_warning

        self.selected_dates: List[str] = []
        self.slots_by_date: SlotsByDate = {}
        self.granularity = GranularityState(value=cfg.default_granularity)
        self.extended_hours = False
        self.navigator: CalendarNavigator = creation_flow_navigator(clock=clock, cfg=cfg)

        self.last_warning: Optional[str] = None
        # autosave may fire on a timer thread; edits and saves share this lock
        self._lock = threading.RLock()
        self._autosave_handle: Optional[TimerHandle] = None
        self._autosave_seq = 0
        self._slot_adapters: List[TimeSlotDragAdapter] = []
        self._controllers: List[DragSelectionController] = []

    # --- dates ---------------------------------------------------------------

    def on_date_toggle(self, date: dt.date) -> None:
        with self._lock:
            self.selected_dates = toggle_date(self.selected_dates, date_key(date))
            self._touch()

    def on_batch_date_toggle(self, dates: Iterable[dt.date], action: str) -> None:
        with self._lock:
            self.selected_dates = batch_toggle_dates(self.selected_dates, (date_key(d) for d in dates), action)
            self._touch()

    def day_cells(self, month: dt.date) -> List[DayCell]:
        return build_day_cells(month, self.selected_dates, self.clock())

    # --- months --------------------------------------------------------------

    @property
    def visible_months(self) -> List[dt.date]:
        return self.navigator.window

    def on_month_change(self, direction: str) -> bool:
        return self.navigator.on_month_change(direction)

    def on_months_change(self, months: Sequence[dt.date]) -> bool:
        return self.navigator.set_window(months)

    # --- slots ---------------------------------------------------------------

    def toggle_slot(self, date: str, hour: int, minute: int) -> None:
        with self._lock:
            self.slots_by_date = toggle_slot(self.slots_by_date, date, hour, minute, self.granularity.value)
            self._touch()

    def ticks(self) -> List[Tick]:
        return generate_visible_ticks(self.granularity.value, extended=self.extended_hours, cfg=self.cfg)

    def blocks_for(self, date: str, *, mode: MergeMode = MergeMode.SEQUENCE) -> List[Block]:
        return get_time_slot_blocks(self.slots_by_date.get(date, ()), self.granularity.value, mode=mode)

    # --- granularity ---------------------------------------------------------

    def granularity_options(self) -> List[int]:
        return compatible_options(all_slots(self.slots_by_date))

    def change_granularity(self, value: int) -> bool:
        with self._lock:
            new_state = change_granularity(self.granularity, value, all_slots(self.slots_by_date))
            if new_state == self.granularity:
                return False
            self._set_granularity(new_state)
            return True

    def undo_granularity(self) -> bool:
        with self._lock:
            if not self.granularity.can_undo:
                return False
            self._set_granularity(undo_granularity(self.granularity))
            return True

    def _set_granularity(self, state: GranularityState) -> None:
        self.granularity = state
        for a in self._slot_adapters:
            a.granularity = state.value
        self._touch()

    # --- assistant suggestions ----------------------------------------------

    def apply_suggestions(self, slots: Sequence[ExternalSlot], dates: Sequence[str]) -> int:
        """Seed dates and slots from the assistant; returns the chosen granularity.

        Ranges off the quarter-hour grid are skipped, so the resolved
        granularity always divides every imported slot.
        """
        valid = [date_key(d) for d in (try_parse_date_key(x) for x in dates) if d is not None]
        with self._lock:
            if valid:
                self.selected_dates = batch_toggle_dates(self.selected_dates, valid, ADD)
                self.navigator.reset(dt.date.fromisoformat(valid[0]))

            usable = drop_off_lattice(slots)
            if usable:
                self.slots_by_date = import_external_slots(
                    usable,
                    valid,
                    self.cfg.import_granularity,
                    existing=self.slots_by_date,
                )
                g = calculate_optimal_granularity(self.slots_by_date)
                if not is_supported(g):
                    g = nearest_supported_granularity(g, self.slots_by_date)
                self._set_granularity(GranularityState(value=g))

            self._touch()
            return self.granularity.value

    # --- drag controllers ----------------------------------------------------

    def date_drag_controller(
        self,
        *,
        host: Optional[DragHost] = None,
        disable_on_touch: bool = False,
    ) -> DragSelectionController[dt.date]:
        def on_end(keys, anchor: dt.date) -> None:
            with self._lock:
                batch = plan_date_drag(self.selected_dates, keys, anchor, today=self.clock())
                if batch.dates:
                    dates = [d for d in (try_parse_date_key(k) for k in batch.dates) if d is not None]
                    self.on_batch_date_toggle(dates, batch.action)

        ctl = DragSelectionController(
            DateDragAdapter(),
            on_end,
            host=host,
            scheduler=self.scheduler,
            can_drag=lambda d: d >= self.clock(),
            disable_on_touch=disable_on_touch,
            cfg=self.cfg,
        )
        self._controllers.append(ctl)
        return ctl

    def slot_drag_controller(
        self,
        *,
        host: Optional[DragHost] = None,
        disable_on_touch: bool = False,
    ) -> DragSelectionController[SlotRef]:
        adapter = TimeSlotDragAdapter(self.granularity.value)
        self._slot_adapters.append(adapter)

        def on_end(keys, anchor: SlotRef) -> None:
            with self._lock:
                self.slots_by_date = apply_slot_drag(self.slots_by_date, keys, anchor, adapter)
                self._touch()

        ctl = DragSelectionController(
            adapter,
            on_end,
            host=host,
            scheduler=self.scheduler,
            disable_on_touch=disable_on_touch,
            cfg=self.cfg,
        )
        self._controllers.append(ctl)
        return ctl

    # --- persistence ---------------------------------------------------------

    def snapshot(self) -> JsonDict:
        with self._lock:
            return draft_to_json(self.selected_dates, self.slots_by_date, self.granularity.value)

    def _touch(self) -> None:
        with self._lock:
            if self.persistence is None:
                return
            self._cancel_autosave()
            self._autosave_seq += 1
            self._autosave_handle = self.scheduler.call_later(
                self.cfg.autosave_debounce_ms,
                functools.partial(self._autosave, self._autosave_seq),
            )

    def _cancel_autosave(self) -> bool:
        if self._autosave_handle is None:
            return False
        self._autosave_handle.cancel()
        self._autosave_handle = None
        return True

    def _autosave(self, seq: int) -> None:
        with self._lock:
            # a newer edit or a flush already owns the save
            if seq != self._autosave_seq or self._autosave_handle is None:
                return
            self._autosave_handle = None
            self._save("autosave")

    def _save(self, what: str) -> bool:
        if self.persistence is None:
            return False
        try:
            self.persistence.save(self.snapshot())
        except Exception as ex:
            msg = f"{what} failed: {ex}"
            log.warning(msg)
            self.last_warning = msg
            if self.on_warning is not None:
                self.on_warning(msg)
            return False
        self.last_warning = None
        return True

    def flush(self) -> bool:
        """Run a pending autosave now."""
        with self._lock:
            if not self._cancel_autosave():
                return False
            return self._save("autosave")

    def can_finalize(self) -> bool:
        return len(self.selected_dates) > 0

    def finalize(self) -> bool:
        with self._lock:
            if not self.can_finalize():
                raise ValueError("cannot finalize a poll without selected dates")
            self._cancel_autosave()
            return self._save("finalize")

    def close(self) -> None:
        """Save pending edits, then detach every drag controller."""
        self.flush()
        with self._lock:
            controllers = list(self._controllers)
            self._controllers.clear()
        for ctl in controllers:
            ctl.close()
