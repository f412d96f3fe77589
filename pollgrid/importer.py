# pollgrid/importer.py
"""Expand assistant-suggested time ranges into the per-tick slot lattice."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .granularity import MIN_GRANULARITY
from .model import ExternalSlot, SlotsByDate, TimeSlot
from .slots import sort_slots
from .util.datekeys import date_key, try_parse_date_key
from .util.timeparse import hhmm_to_minutes

log = logging.getLogger(__name__)


def expand_range(start_min: int, end_min: int, granularity: int) -> List[TimeSlot]:
    """Enabled ticks over [start, end); a short trailing tick keeps its shortened duration."""
    if granularity <= 0:
        return []
    out: List[TimeSlot] = []
    t = start_min
    while t < end_min:
        out.append(
            TimeSlot(
                hour=t // 60,
                minute=t % 60,
                enabled=True,
                duration=min(granularity, end_min - t),
            )
        )
        t += granularity
    return out


def drop_off_lattice(external: Iterable[ExternalSlot], step: int = MIN_GRANULARITY) -> List[ExternalSlot]:
    """Keep ranges whose bounds sit on the `step`-minute lattice.

    A bound like 09:10 would leave slots no supported granularity can render,
    so such ranges are skipped with a warning. Unparseable bounds pass through
    and are dropped later by `import_external_slots`.
    """
    out: List[ExternalSlot] = []
    for ext in external:
        try:
            bounds = (hhmm_to_minutes(ext.start), hhmm_to_minutes(ext.end))
        except ValueError:
            out.append(ext)
            continue
        if any(m % step for m in bounds):
            log.warning("skipping suggested range %s-%s: not on the %d-minute grid", ext.start, ext.end, step)
            continue
        out.append(ext)
    return out


def _target_dates(ext: ExternalSlot, default_dates: Sequence[str]) -> List[str]:
    raw = ext.dates if ext.dates is not None else tuple(default_dates)
    out: List[str] = []
    for d in raw:
        parsed = try_parse_date_key(d)
        if parsed is None:
            log.debug("dropping unparseable date %r", d)
            continue
        key = date_key(parsed)
        if key not in out:
            out.append(key)
    return out


def import_external_slots(
    external: Iterable[ExternalSlot],
    default_dates: Sequence[str],
    granularity: int,
    *,
    existing: Optional[SlotsByDate] = None,
) -> SlotsByDate:
    """Build SlotsByDate from assistant time ranges.

    `dates` on an ExternalSlot wins over `default_dates`. Ranges for the same
    date accumulate, on top of `existing` when given; a tick already present
    at the same (hour, minute) is kept as is.
    """
    acc: Dict[str, Dict[Tuple[int, int], TimeSlot]] = {}
    for d, slots in (existing or {}).items():
        acc[d] = {(s.hour, s.minute): s for s in slots}

    for ext in external:
        try:
            start_min = hhmm_to_minutes(ext.start)
            end_min = hhmm_to_minutes(ext.end)
        except ValueError as ex:
            log.debug("dropping external slot %r: %s", ext, ex)
            continue

        ticks = expand_range(start_min, end_min, granularity)
        if not ticks:
            continue
        for d in _target_dates(ext, default_dates):
            bucket = acc.setdefault(d, {})
            for tick in ticks:
                bucket.setdefault((tick.hour, tick.minute), tick)

    return {d: sort_slots(bucket.values()) for d, bucket in sorted(acc.items())}


def external_slots_from_json(obj: object) -> List[ExternalSlot]:
    """Coerce decoded JSON into ExternalSlot records.

    Accepts a list of {"start": "HH:MM", "end": "HH:MM", "dates": [...]}.
    Shape errors raise ValueError; bad values inside are left for the importer.
    """
    if not isinstance(obj, list):
        raise ValueError("external slots must be a JSON list")
    out: List[ExternalSlot] = []
    for i, raw in enumerate(obj):
        if not isinstance(raw, dict):
            raise ValueError(f"external slot #{i} must be an object")
        start = raw.get("start")
        end = raw.get("end")
        if not isinstance(start, str) or not isinstance(end, str):
            raise ValueError(f"external slot #{i} must have string start and end")
        dates = raw.get("dates")
        if dates is not None:
            if not isinstance(dates, list):
                raise ValueError(f"external slot #{i} dates must be a list")
            dates = tuple(str(d) for d in dates)
        out.append(ExternalSlot(start=start, end=end, dates=dates))
    return out
