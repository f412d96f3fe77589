# pollgrid/model.py
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class CalendarDay:
    date: Optional[dt.date]
    is_current_month: bool
    is_empty: bool


@dataclass(frozen=True)
class TimeSlot:
    hour: int
    minute: int
    enabled: bool
    duration: Optional[int] = None  # minutes

    @property
    def minutes(self) -> int:
        return self.hour * 60 + self.minute

    def to_dict(self) -> dict:
        out = {"hour": self.hour, "minute": self.minute, "enabled": self.enabled}
        if self.duration is not None:
            out["duration"] = self.duration
        return out


@dataclass(frozen=True)
class BlockEnd:
    hour: int
    minute: int
    enabled: bool = True

    @property
    def minutes(self) -> int:
        return self.hour * 60 + self.minute


@dataclass(frozen=True)
class Block:
    """Maximal run of enabled slots for one date (display only)."""

    start: TimeSlot
    end: BlockEnd


@dataclass(frozen=True)
class ExternalSlot:
    """Time range suggested by the assistant, "HH:MM" bounds."""

    start: str
    end: str
    dates: Optional[Tuple[str, ...]] = None


# date key (YYYY-MM-DD) -> that date's slots, sorted by time
SlotsByDate = Dict[str, Tuple[TimeSlot, ...]]


__all__ = [
    "CalendarDay",
    "TimeSlot",
    "BlockEnd",
    "Block",
    "ExternalSlot",
    "SlotsByDate",
]
