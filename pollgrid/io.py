"""JSON I/O for assistant slots and drafts."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple

import orjson

from .model import ExternalSlot, SlotsByDate, TimeSlot
from .importer import external_slots_from_json
from .slots import sort_slots
from .validate import assert_valid_draft


def _read_json(path: Path) -> Any:
    try:
        return orjson.loads(Path(path).read_bytes())
    except orjson.JSONDecodeError as ex:
        raise ValueError(f"{path}: invalid JSON ({ex})") from ex


def load_external_slots(path: Path) -> Tuple[List[ExternalSlot], List[str]]:
    """Load assistant suggestions.

    Expected format, either:
      [ {"start": "09:00", "end": "10:00", "dates": ["2024-01-15"]}, ... ]
    or:
      { "timeSlots": [ ... ], "dates": ["2024-01-15", ...] }

    Returns (slots, suggested_dates).
    """
    obj = _read_json(path)
    if isinstance(obj, dict):
        dates = obj.get("dates") or []
        if not isinstance(dates, list):
            raise ValueError("dates must be a list of YYYY-MM-DD strings")
        return external_slots_from_json(obj.get("timeSlots") or []), [str(d) for d in dates]
    return external_slots_from_json(obj), []


def slots_by_date_to_json(slots_by_date: SlotsByDate) -> Dict[str, List[dict]]:
    return {d: [s.to_dict() for s in slots] for d, slots in sorted(slots_by_date.items())}


def slots_by_date_from_json(obj: Dict[str, Any]) -> SlotsByDate:
    out: SlotsByDate = {}
    for d, slots in obj.items():
        out[d] = sort_slots(
            TimeSlot(
                hour=int(s["hour"]),
                minute=int(s["minute"]),
                enabled=bool(s["enabled"]),
                duration=int(s["duration"]) if s.get("duration") is not None else None,
            )
            for s in slots
        )
    return out


def draft_to_json(selected_dates: Sequence[str], slots_by_date: SlotsByDate, granularity: int) -> Dict[str, Any]:
    return {
        "selectedDates": list(selected_dates),
        "timeSlotsByDate": slots_by_date_to_json(slots_by_date),
        "timeGranularity": int(granularity),
    }


def dump_draft(path: Path, draft: Dict[str, Any]) -> None:
    assert_valid_draft(draft)
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_bytes(orjson.dumps(draft, option=orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS))


def load_draft(path: Path) -> Tuple[List[str], SlotsByDate, int]:
    """Returns (selected_dates, slots_by_date, granularity); invalid drafts raise."""
    obj = _read_json(path)
    assert_valid_draft(obj)
    return list(obj["selectedDates"]), slots_by_date_from_json(obj["timeSlotsByDate"]), int(obj["timeGranularity"])
