# pollgrid/granularity.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import reduce
from math import gcd
from typing import Iterable, Optional

from .config import GRANULARITY_OPTIONS
from .model import SlotsByDate, TimeSlot
from .slots import all_slots

log = logging.getLogger(__name__)

MIN_GRANULARITY = 15
MAX_GRANULARITY = 60


def is_supported(granularity: object) -> bool:
    return isinstance(granularity, int) and not isinstance(granularity, bool) and granularity in GRANULARITY_OPTIONS


def is_compatible(granularity: int, slots: Iterable[TimeSlot]) -> bool:
    """True when every slot's minute lands on the `granularity` lattice."""
    if granularity <= 0:
        return False
    return all(s.minute % granularity == 0 for s in slots)


def compatible_options(slots: Iterable[TimeSlot]) -> list[int]:
    items = list(slots)
    return [g for g in GRANULARITY_OPTIONS if is_compatible(g, items)]


def calculate_optimal_granularity(slots_by_date: SlotsByDate) -> int:
    """GCD of 60 and every slot minute, clamped into [15, 60].

    Seeding with 60 makes an empty or all-on-the-hour input resolve to 60.
    """
    slots = all_slots(slots_by_date)
    g = reduce(gcd, (s.minute for s in slots), 60)
    clamped = max(MIN_GRANULARITY, min(MAX_GRANULARITY, g))
    if clamped != g:
        log.warning("slot minutes resolve to a %d-minute lattice; clamped to %d", g, clamped)
    return clamped


def nearest_supported_granularity(granularity: int, slots_by_date: SlotsByDate) -> int:
    """Largest supported option not above `granularity` that keeps all slots."""
    slots = all_slots(slots_by_date)
    best = None
    for g in GRANULARITY_OPTIONS:
        if g <= granularity and is_compatible(g, slots):
            best = g
    return best if best is not None else GRANULARITY_OPTIONS[0]


@dataclass(frozen=True)
class GranularityState:
    """Active granularity plus exactly one level of undo."""

    value: int = 30
    previous: Optional[int] = None

    @property
    def can_undo(self) -> bool:
        return self.previous is not None


def change_granularity(state: GranularityState, new_value: int, slots: Iterable[TimeSlot]) -> GranularityState:
    """Switch granularity when supported and lossless; otherwise no-op."""
    if not is_supported(new_value):
        log.debug("ignoring unsupported granularity %r", new_value)
        return state
    if new_value == state.value:
        return state
    if not is_compatible(new_value, slots):
        log.debug("granularity %d would drop existing slots", new_value)
        return state
    return GranularityState(value=new_value, previous=state.value)


def undo_granularity(state: GranularityState) -> GranularityState:
    if state.previous is None:
        return state
    return GranularityState(value=state.previous, previous=None)
