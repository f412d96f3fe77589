# pollgrid/drag.py
"""Drag-to-select and long-press gesture state machine.

One controller instance serves one item kind (dates or time slots). The item
kind plugs in through a `DragItemAdapter`; the surrounding document (global
pointerup, scroll lock, vibration) through a `DragHost`.

Transitions:

    Idle --down(mouse|pen)--------------------------> Dragging
    Idle --down(touch, disable_on_touch)------------> Idle
    Idle --down(touch)------------------------------> LongPressPending
    LongPressPending --timer (moved <= tolerance)---> Dragging(long_press)
    LongPressPending --move > tolerance | up--------> Idle
    Dragging --move---------------------------------> Dragging (range recomputed)
    Dragging --up-----------------------------------> Idle (+ on_drag_end when moved or long press)
    any non-Idle --down-----------------------------> cancel, then as from Idle
"""

from __future__ import annotations

import datetime as dt
import enum
import functools
import logging
import threading
from dataclasses import dataclass, field, replace
from typing import (
    Callable,
    FrozenSet,
    Generic,
    List,
    Optional,
    Protocol,
    Sequence,
    Set,
    Tuple,
    TypeVar,
    Union,
)

from .config import DEFAULT_CONFIG, EditorConfig
from .model import SlotsByDate
from .slots import is_slot_enabled, toggle_slot
from .util.datekeys import date_key, parse_date_key
from .util.timers import Scheduler, ThreadingScheduler, TimerHandle

log = logging.getLogger(__name__)

T = TypeVar("T")


class Phase(str, enum.Enum):
    IDLE = "idle"
    LONG_PRESS_PENDING = "long_press_pending"
    DRAGGING = "dragging"


@dataclass(frozen=True)
class PointerEvent:
    pointer_type: str = "mouse"  # "mouse" | "pen" | "touch"
    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class Idle:
    phase: Phase = field(default=Phase.IDLE, init=False)


@dataclass(frozen=True)
class LongPressPending(Generic[T]):
    anchor: T
    origin: Tuple[float, float]
    timer: TimerHandle
    phase: Phase = field(default=Phase.LONG_PRESS_PENDING, init=False)


@dataclass(frozen=True)
class Dragging(Generic[T]):
    anchor: T
    selected: FrozenSet[str]
    has_moved: bool = False
    long_press: bool = False
    phase: Phase = field(default=Phase.DRAGGING, init=False)


DragState = Union[Idle, LongPressPending, Dragging]

IDLE = Idle()


class DragItemAdapter(Protocol[T]):
    def identify(self, item: T) -> str:
        """Stable key for an item."""

    def range_between(self, anchor: T, current: T) -> Sequence[T]:
        """Every item from anchor to current, both included."""


class DragHost(Protocol):
    def add_pointerup_listener(self, fn: Callable[[], None]) -> None: ...

    def remove_pointerup_listener(self, fn: Callable[[], None]) -> None: ...

    def suppress_scroll(self) -> None: ...

    def release_scroll(self) -> None: ...

    def vibrate(self, ms: int) -> bool: ...


class DocumentHost:
    """In-process stand-in for the page document.

    Tracks body styles, pointerup listeners, touchmove blocking and vibration
    requests, and lets callers dispatch a document-level pointerup.
    """

    def __init__(self, *, can_vibrate: bool = True) -> None:
        self.can_vibrate = can_vibrate
        self.listeners: List[Callable[[], None]] = []
        self.body_style = {"overflow": "", "touch-action": ""}
        self.touchmove_blocked = False
        self.vibrations: List[int] = []

    @property
    def scroll_locked(self) -> bool:
        return self.body_style["overflow"] == "hidden"

    def add_pointerup_listener(self, fn: Callable[[], None]) -> None:
        self.listeners.append(fn)

    def remove_pointerup_listener(self, fn: Callable[[], None]) -> None:
        if fn in self.listeners:
            self.listeners.remove(fn)

    def suppress_scroll(self) -> None:
        # native touchmove is swallowed too, body styles alone do not stop Android
        self.body_style["overflow"] = "hidden"
        self.body_style["touch-action"] = "none"
        self.touchmove_blocked = True

    def release_scroll(self) -> None:
        self.body_style["overflow"] = ""
        self.body_style["touch-action"] = ""
        self.touchmove_blocked = False

    def vibrate(self, ms: int) -> bool:
        if not self.can_vibrate:
            return False
        self.vibrations.append(int(ms))
        return True

    def dispatch_pointerup(self) -> None:
        for fn in list(self.listeners):
            fn()


class DragSelectionController(Generic[T]):
    """Gesture state for one item kind.

    Timer callbacks may arrive on another thread (`ThreadingScheduler`), so
    every transition runs under one re-entrant lock, and a long-press timer
    only acts on the gesture that scheduled it.
    """

    def __init__(
        self,
        adapter: DragItemAdapter[T],
        on_drag_end: Callable[[Set[str], T], None],
        *,
        host: Optional[DragHost] = None,
        scheduler: Optional[Scheduler] = None,
        can_drag: Optional[Callable[[T], bool]] = None,
        on_click_item: Optional[Callable[[T], None]] = None,
        disable_on_touch: bool = False,
        cfg: EditorConfig = DEFAULT_CONFIG,
    ) -> None:
        self.adapter = adapter
        self.on_drag_end = on_drag_end
        self.host: DragHost = host if host is not None else DocumentHost(can_vibrate=False)
        self.scheduler: Scheduler = scheduler if scheduler is not None else ThreadingScheduler()
        self.can_drag = can_drag
        self.on_click_item = on_click_item
        self.disable_on_touch = disable_on_touch
        self.cfg = cfg

        self._lock = threading.RLock()
        self._state: DragState = IDLE
        self._gesture = 0
        self._scroll_suppressed = False
        self._closed = False
        self.host.add_pointerup_listener(self._on_document_pointerup)

    # --- introspection -----------------------------------------------------

    @property
    def state(self) -> DragState:
        return self._state

    @property
    def phase(self) -> Phase:
        return self._state.phase

    @property
    def is_dragging(self) -> bool:
        return isinstance(self._state, Dragging)

    @property
    def long_press_active(self) -> bool:
        st = self._state
        return isinstance(st, Dragging) and st.long_press

    @property
    def selected_keys(self) -> FrozenSet[str]:
        st = self._state
        if isinstance(st, Dragging):
            return st.selected
        return frozenset()

    def is_dragged_over(self, key: str) -> bool:
        return key in self.selected_keys

    # --- events ------------------------------------------------------------

    def pointer_down(self, item: T, event: Optional[PointerEvent] = None) -> None:
        event = event or PointerEvent()
        with self._lock:
            if self._closed:
                return
            if event.pointer_type == "touch" and self.disable_on_touch:
                return
            if self.can_drag is not None and not self.can_drag(item):
                return

            if not isinstance(self._state, Idle):
                log.debug("pointerdown during %s; restarting gesture", self._state.phase.value)
                self.cancel()

            self._gesture += 1
            if event.pointer_type == "touch":
                timer = self.scheduler.call_later(
                    self.cfg.long_press_ms,
                    functools.partial(self._activate_long_press, self._gesture),
                )
                self._state = LongPressPending(anchor=item, origin=(event.x, event.y), timer=timer)
                return

            self._state = Dragging(anchor=item, selected=frozenset({self.adapter.identify(item)}))

    def pointer_move(self, item: T, event: Optional[PointerEvent] = None) -> None:
        with self._lock:
            st = self._state
            if isinstance(st, LongPressPending):
                if event is not None and self._beyond_tolerance(st.origin, event):
                    # finger travelled: this is a scroll, not a selection
                    st.timer.cancel()
                    self._state = IDLE
                return
            if not isinstance(st, Dragging):
                return

            anchor_key = self.adapter.identify(st.anchor)
            moved = st.has_moved or self.adapter.identify(item) != anchor_key
            selected = frozenset(self.adapter.identify(i) for i in self.adapter.range_between(st.anchor, item))
            self._state = replace(st, selected=selected, has_moved=moved)

    def pointer_up(self) -> bool:
        """End the gesture. Returns True when on_drag_end was called."""
        with self._lock:
            st = self._state
            if isinstance(st, Idle):
                return False
            if isinstance(st, LongPressPending):
                st.timer.cancel()
                self._reset()
                if self.on_click_item is not None:
                    self.on_click_item(st.anchor)
                return False

            self._reset()
            if not st.has_moved and not st.long_press:
                if self.on_click_item is not None:
                    self.on_click_item(st.anchor)
                return False
            if not st.selected:
                return False
            self.on_drag_end(set(st.selected), st.anchor)
            return True

    def cancel(self) -> None:
        """Drop the current gesture without committing it."""
        with self._lock:
            st = self._state
            if isinstance(st, LongPressPending):
                st.timer.cancel()
            self._reset()

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self.cancel()
            self.host.remove_pointerup_listener(self._on_document_pointerup)
            self._closed = True

    def __enter__(self) -> "DragSelectionController[T]":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # --- internals ---------------------------------------------------------

    def _beyond_tolerance(self, origin: Tuple[float, float], event: PointerEvent) -> bool:
        tol = self.cfg.move_tolerance_px
        return abs(event.x - origin[0]) > tol or abs(event.y - origin[1]) > tol

    def _activate_long_press(self, gesture: int) -> None:
        with self._lock:
            st = self._state
            if gesture != self._gesture or not isinstance(st, LongPressPending):
                log.debug("stale long-press timer for gesture %d ignored", gesture)
                return
            self._state = Dragging(
                anchor=st.anchor,
                selected=frozenset({self.adapter.identify(st.anchor)}),
                long_press=True,
            )
            self.host.vibrate(self.cfg.haptic_ms)
            self.host.suppress_scroll()
            self._scroll_suppressed = True

    def _reset(self) -> None:
        self._state = IDLE
        if self._scroll_suppressed:
            self.host.release_scroll()
            self._scroll_suppressed = False

    def _on_document_pointerup(self) -> None:
        with self._lock:
            if not isinstance(self._state, Idle):
                self.pointer_up()


# --- item adapters -----------------------------------------------------------


class DateDragAdapter:
    def identify(self, item: dt.date) -> str:
        return date_key(item)

    def range_between(self, anchor: dt.date, current: dt.date) -> List[dt.date]:
        lo, hi = sorted((anchor, current))
        return [lo + dt.timedelta(days=i) for i in range((hi - lo).days + 1)]


@dataclass(frozen=True)
class SlotRef:
    date: str
    hour: int
    minute: int

    @property
    def minutes(self) -> int:
        return self.hour * 60 + self.minute


class TimeSlotDragAdapter:
    def __init__(self, granularity: int) -> None:
        self.granularity = int(granularity)

    def identify(self, item: SlotRef) -> str:
        return f"{item.date}|{item.hour:02d}:{item.minute:02d}"

    def parse_key(self, key: str) -> SlotRef:
        d, _, hhmm = key.partition("|")
        parse_date_key(d)
        hh, _, mm = hhmm.partition(":")
        return SlotRef(date=d, hour=int(hh), minute=int(mm))

    def range_between(self, anchor: SlotRef, current: SlotRef) -> List[SlotRef]:
        # no ranges across dates
        if anchor.date != current.date or self.granularity <= 0:
            return [anchor]
        lo, hi = sorted((anchor.minutes, current.minutes))
        return [SlotRef(date=anchor.date, hour=m // 60, minute=m % 60) for m in range(lo, hi + 1, self.granularity)]


def apply_slot_drag(
    slots_by_date: SlotsByDate,
    dragged_keys: Set[str],
    anchor: SlotRef,
    adapter: TimeSlotDragAdapter,
) -> SlotsByDate:
    """Toggle dragged slots that still share the anchor's pre-drag state."""
    anchor_enabled = is_slot_enabled(slots_by_date, anchor.date, anchor.hour, anchor.minute)
    out = slots_by_date
    for ref in sorted((adapter.parse_key(k) for k in dragged_keys), key=lambda r: (r.date, r.minutes)):
        if is_slot_enabled(out, ref.date, ref.hour, ref.minute) != anchor_enabled:
            continue
        out = toggle_slot(out, ref.date, ref.hour, ref.minute, adapter.granularity)
    return out
