# pollgrid/selection.py
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from .util.datekeys import date_key

ADD = "add"
REMOVE = "remove"


def toggle_date(selected_dates: Sequence[str], key: str) -> List[str]:
    if key in selected_dates:
        return [d for d in selected_dates if d != key]
    return list(selected_dates) + [key]


def batch_toggle_dates(selected_dates: Sequence[str], keys: Iterable[str], action: str) -> List[str]:
    """Add or remove many date keys at once, keeping the existing order."""
    if action not in (ADD, REMOVE):
        raise ValueError(f"action must be {ADD!r} or {REMOVE!r}, got {action!r}")
    keys = list(keys)
    if action == REMOVE:
        drop = set(keys)
        return [d for d in selected_dates if d not in drop]
    out = list(selected_dates)
    seen = set(out)
    for k in keys:
        if k not in seen:
            out.append(k)
            seen.add(k)
    return out


@dataclass(frozen=True)
class DateBatch:
    action: str
    dates: Tuple[str, ...]


def plan_date_drag(
    selected_dates: Sequence[str],
    dragged_keys: Set[str],
    anchor: dt.date,
    *,
    today: Optional[dt.date] = None,
) -> DateBatch:
    """Direction of a date drag follows the anchor's state before the gesture.

    Only dates that still share that state are included, so a sweep over a
    partly-selected range never flips a date back. Keys before `today`, when
    given, are dropped the same way past cells ignore clicks.
    """
    selected = set(selected_dates)
    anchor_selected = date_key(anchor) in selected
    action = REMOVE if anchor_selected else ADD
    cutoff = date_key(today) if today is not None else None
    targets = tuple(
        k
        for k in sorted(dragged_keys)
        if (k in selected) == anchor_selected and (cutoff is None or k >= cutoff)
    )
    return DateBatch(action=action, dates=targets)
