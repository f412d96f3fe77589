# pollgrid/config.py
from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from typing import Mapping, Optional, Tuple

GRANULARITY_OPTIONS: Tuple[int, ...] = (15, 30, 60, 120, 240)

ENV_PREFIX = "POLLGRID_"


@dataclass(frozen=True)
class EditorConfig:
    default_granularity: int = 30
    import_granularity: int = 30

    # visible tick lattice (inclusive hours)
    start_hour: int = 8
    end_hour: int = 20
    extended_start_hour: int = 6
    extended_end_hour: int = 23

    # month window
    initial_months: int = 6
    max_visible_months: int = 60
    creation_horizon_years: int = 2
    scroll_horizon_years: int = 5
    scroll_extend_threshold_px: int = 200
    scroll_extend_batch: int = 3

    # drag gesture
    long_press_ms: int = 500
    move_tolerance_px: int = 10
    haptic_ms: int = 50

    autosave_debounce_ms: int = 1500


def _env_name(field_name: str) -> str:
    return ENV_PREFIX + field_name.upper()


def load_config(env: Optional[Mapping[str, str]] = None, *, base: Optional[EditorConfig] = None) -> EditorConfig:
    """Overlay POLLGRID_* environment variables on the defaults.

    Every field is an int; e.g. POLLGRID_DEFAULT_GRANULARITY=15.
    """
    src = os.environ if env is None else env
    cfg = base or EditorConfig()
    updates = {}
    for f in fields(EditorConfig):
        name = _env_name(f.name)
        raw = src.get(name)
        if raw is None or not str(raw).strip():
            continue
        try:
            updates[f.name] = int(str(raw).strip())
        except ValueError as ex:
            raise ValueError(f"{name} must be an integer, got {raw!r}") from ex

    cfg = replace(cfg, **updates)

    for name in ("default_granularity", "import_granularity"):
        g = getattr(cfg, name)
        if g not in GRANULARITY_OPTIONS:
            raise ValueError(f"{_env_name(name)} must be one of {list(GRANULARITY_OPTIONS)}, got {g}")
    if cfg.max_visible_months <= 0:
        raise ValueError(f"{_env_name('max_visible_months')} must be positive")
    return cfg


DEFAULT_CONFIG = EditorConfig()
