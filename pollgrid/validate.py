"""Draft validation helpers (library-facing).

A draft is the JSON object handed to persistence:

    {"selectedDates": [...], "timeSlotsByDate": {"YYYY-MM-DD": [slot, ...]}, "timeGranularity": 30}
"""

from __future__ import annotations

from typing import Any, Dict, List

from pollgrid.config import GRANULARITY_OPTIONS
from pollgrid.util.datekeys import try_parse_date_key


class DraftValidationError(ValueError):
    """Raised when a draft fails validation."""


def _require(cond: bool, msg: str, errs: List[str]) -> None:
    if not cond:
        errs.append(msg)


def _is_int(v: Any) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)


def _validate_slot(raw: Any, where: str, errs: List[str]) -> None:
    if not isinstance(raw, dict):
        errs.append(f"{where} must be dict")
        return
    hour = raw.get("hour")
    minute = raw.get("minute")
    _require(_is_int(hour) and 0 <= hour <= 23, f"{where}.hour must be int in 0..23", errs)
    _require(_is_int(minute) and 0 <= minute < 60, f"{where}.minute must be int in 0..59", errs)
    _require(isinstance(raw.get("enabled"), bool), f"{where}.enabled must be bool", errs)
    dur = raw.get("duration")
    if dur is not None:
        _require(_is_int(dur) and dur > 0, f"{where}.duration must be positive int", errs)


def validate_draft(payload: Dict[str, Any], *, label: str = "draft") -> List[str]:
    if not isinstance(payload, dict):
        return [f"{label}: draft must be a dict/object"]
    errs: List[str] = []

    dates = payload.get("selectedDates")
    _require(isinstance(dates, list), f"{label}: selectedDates must be list", errs)
    if isinstance(dates, list):
        for i, d in enumerate(dates):
            if try_parse_date_key(d) is None:
                errs.append(f"{label}: selectedDates[{i}] must be YYYY-MM-DD, got {d!r}")
        if len(set(d for d in dates if isinstance(d, str))) != len(dates):
            errs.append(f"{label}: selectedDates contains duplicates")

    g = payload.get("timeGranularity")
    _require(_is_int(g) and g in GRANULARITY_OPTIONS, f"{label}: timeGranularity must be one of {list(GRANULARITY_OPTIONS)}", errs)

    by_date = payload.get("timeSlotsByDate")
    _require(isinstance(by_date, dict), f"{label}: timeSlotsByDate must be dict", errs)
    if isinstance(by_date, dict):
        for d, slots in by_date.items():
            if try_parse_date_key(d) is None:
                errs.append(f"{label}: timeSlotsByDate key must be YYYY-MM-DD, got {d!r}")
                continue
            if not isinstance(slots, list):
                errs.append(f"{label}: timeSlotsByDate[{d!r}] must be list")
                continue
            seen = set()
            for i, s in enumerate(slots):
                where = f"{label}: timeSlotsByDate[{d!r}][{i}]"
                _validate_slot(s, where, errs)
                if isinstance(s, dict):
                    pos = (s.get("hour"), s.get("minute"))
                    if pos in seen:
                        errs.append(f"{where} duplicates {pos[0]}:{pos[1]}")
                    seen.add(pos)

    return errs


def assert_valid_draft(payload: Dict[str, Any]) -> None:
    errs = validate_draft(payload)
    if errs:
        raise DraftValidationError(errs[0])


__all__ = [
    "DraftValidationError",
    "assert_valid_draft",
    "validate_draft",
]
