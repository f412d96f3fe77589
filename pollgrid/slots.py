# pollgrid/slots.py
"""Per-date time-slot toggling and block merging.

All functions are pure: they take a SlotsByDate and return a new one, never
mutating the input mapping or its tuples.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .config import DEFAULT_CONFIG, EditorConfig, GRANULARITY_OPTIONS
from .model import Block, BlockEnd, SlotsByDate, TimeSlot
from .util.timeparse import format_hhmm

log = logging.getLogger(__name__)


class Adjacency(str, enum.Enum):
    EXTEND_BEFORE = "extend_before"  # an enabled slot ends right before the click
    EXTEND_AFTER = "extend_after"  # an enabled slot starts right after the click
    ISOLATED = "isolated"


class MergeMode(str, enum.Enum):
    SEQUENCE = "sequence"  # merge consecutive enabled entries, gaps unchecked
    STRICT = "strict"  # also require the next slot to start where the previous ends


def sort_slots(slots: Iterable[TimeSlot]) -> Tuple[TimeSlot, ...]:
    return tuple(sorted(slots, key=lambda s: s.minutes))


def find_slot(slots: Sequence[TimeSlot], hour: int, minute: int) -> Optional[int]:
    for i, s in enumerate(slots):
        if s.hour == hour and s.minute == minute:
            return i
    return None


def find_adjacency(slots: Sequence[TimeSlot], clicked_minutes: int, granularity: int) -> Adjacency:
    enabled = {s.minutes for s in slots if s.enabled}
    if clicked_minutes - granularity in enabled:
        return Adjacency.EXTEND_BEFORE
    if clicked_minutes + granularity in enabled:
        return Adjacency.EXTEND_AFTER
    return Adjacency.ISOLATED


def toggle_slot(
    slots_by_date: SlotsByDate,
    date: str,
    hour: int,
    minute: int,
    granularity: int,
    *,
    include_duration: bool = True,
) -> SlotsByDate:
    """Flip an existing slot, or create an enabled one.

    Creation looks for an enabled neighbour one tick away; the new record is the
    same either way, the result is only reported through `find_adjacency`.
    """
    current = tuple(slots_by_date.get(date, ()))
    out: Dict[str, Tuple[TimeSlot, ...]] = dict(slots_by_date)

    idx = find_slot(current, hour, minute)
    if idx is not None:
        s = current[idx]
        out[date] = current[:idx] + (replace(s, enabled=not s.enabled),) + current[idx + 1 :]
        return out

    adjacency = find_adjacency(current, hour * 60 + minute, granularity)
    log.debug("new slot %s %02d:%02d (%s)", date, hour, minute, adjacency.value)

    new_slot = TimeSlot(
        hour=hour,
        minute=minute,
        enabled=True,
        duration=granularity if include_duration else None,
    )
    out[date] = sort_slots(current + (new_slot,))
    return out


def is_slot_enabled(slots_by_date: SlotsByDate, date: str, hour: int, minute: int) -> bool:
    current = slots_by_date.get(date, ())
    idx = find_slot(current, hour, minute)
    return idx is not None and current[idx].enabled


def _end_of(slot: TimeSlot, granularity: int) -> int:
    return slot.minutes + (slot.duration or granularity)


def get_time_slot_blocks(
    slots: Iterable[TimeSlot],
    granularity: int,
    *,
    mode: MergeMode = MergeMode.SEQUENCE,
) -> List[Block]:
    """Merge enabled slots into display blocks.

    `start` is the first slot of a run and `end` the last slot's (hour, minute).
    In SEQUENCE mode a run only breaks on a disabled slot, so two enabled slots
    far apart still merge when nothing disabled sits between them. STRICT mode
    additionally breaks when a slot does not start where the previous one ends.
    """
    blocks: List[Block] = []
    start: Optional[TimeSlot] = None
    last: Optional[TimeSlot] = None

    for slot in sort_slots(slots):
        if not slot.enabled:
            if start is not None and last is not None:
                blocks.append(Block(start=start, end=BlockEnd(last.hour, last.minute, True)))
            start = last = None
            continue

        if start is None:
            start = last = slot
            continue

        if mode == MergeMode.STRICT and last is not None and slot.minutes != _end_of(last, granularity):
            blocks.append(Block(start=start, end=BlockEnd(last.hour, last.minute, True)))
            start = slot
        last = slot

    if start is not None and last is not None:
        blocks.append(Block(start=start, end=BlockEnd(last.hour, last.minute, True)))
    return blocks


def blocks_by_date(
    slots_by_date: SlotsByDate,
    granularity: int,
    *,
    mode: MergeMode = MergeMode.SEQUENCE,
) -> Dict[str, List[Block]]:
    return {d: get_time_slot_blocks(slots, granularity, mode=mode) for d, slots in sorted(slots_by_date.items())}


@dataclass(frozen=True)
class TickRole:
    block: Optional[Block] = None
    is_start: bool = False
    is_end: bool = False
    is_middle: bool = False


def classify_tick(tick_minutes: int, blocks: Sequence[Block], granularity: int) -> TickRole:
    """Position of a rendered tick inside the blocks, for rounded corners.

    The end matches exactly, or on the last tick strictly before `end` when
    `end` is not on the rendered lattice.
    """
    for b in blocks:
        s = b.start.minutes
        e = b.end.minutes
        if tick_minutes < s or tick_minutes > e:
            continue
        is_start = tick_minutes == s
        is_end = tick_minutes == e or (tick_minutes < e and tick_minutes + granularity > e)
        return TickRole(block=b, is_start=is_start, is_end=is_end, is_middle=not is_start and not is_end)
    return TickRole()


@dataclass(frozen=True)
class Tick:
    hour: int
    minute: int
    label: str

    @property
    def minutes(self) -> int:
        return self.hour * 60 + self.minute


def visible_hours(extended: bool, cfg: EditorConfig = DEFAULT_CONFIG) -> Tuple[int, int]:
    if extended:
        return cfg.extended_start_hour, cfg.extended_end_hour
    return cfg.start_hour, cfg.end_hour


def generate_visible_ticks(
    granularity: int,
    *,
    extended: bool = False,
    cfg: EditorConfig = DEFAULT_CONFIG,
) -> List[Tick]:
    """Ticks for the visible hours; empty for unsupported granularities."""
    if granularity not in GRANULARITY_OPTIONS:
        return []
    start_h, end_h = visible_hours(extended, cfg)
    out: List[Tick] = []
    for m in range(start_h * 60, (end_h + 1) * 60, granularity):
        out.append(Tick(hour=m // 60, minute=m % 60, label=format_hhmm(m)))
    return out


def filter_visible_slots(slots: Iterable[TimeSlot], *, extended: bool = False, cfg: EditorConfig = DEFAULT_CONFIG) -> List[TimeSlot]:
    start_h, end_h = visible_hours(extended, cfg)
    return [s for s in slots if start_h <= s.hour <= end_h]


def initialize_time_slots(granularity: int = 30, cfg: EditorConfig = DEFAULT_CONFIG) -> Tuple[TimeSlot, ...]:
    """A disabled slot for every default-visible tick."""
    return tuple(TimeSlot(hour=t.hour, minute=t.minute, enabled=False) for t in generate_visible_ticks(granularity, cfg=cfg))


def all_slots(slots_by_date: SlotsByDate) -> List[TimeSlot]:
    out: List[TimeSlot] = []
    for slots in slots_by_date.values():
        out.extend(slots)
    return out
