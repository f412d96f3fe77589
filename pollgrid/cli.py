from __future__ import annotations

import argparse
import datetime as dt
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .calendar_grid import format_month
from .config import GRANULARITY_OPTIONS, load_config
from .granularity import MIN_GRANULARITY, calculate_optimal_granularity, is_supported, nearest_supported_granularity
from .importer import drop_off_lattice, import_external_slots
from .io import draft_to_json, dump_draft, load_draft, load_external_slots
from .slots import MergeMode, blocks_by_date
from .util.console import warn
from .util.datekeys import parse_date_key
from .util.timeparse import format_hhmm

log = logging.getLogger("pollgrid")


def _parse_month(s: str) -> dt.date:
    try:
        return dt.datetime.strptime(s.strip(), "%Y-%m").date()
    except ValueError:
        raise SystemExit(f"Invalid --month (expected YYYY-MM): {s!r}")


def _split_dates(s: Optional[str]) -> List[str]:
    if not s:
        return []
    return [p.strip() for p in s.split(",") if p.strip()]


def _cmd_grid(ns: argparse.Namespace) -> int:
    try:
        today = parse_date_key(ns.today) if ns.today else dt.date.today()
    except ValueError as e:
        raise SystemExit(f"Invalid --today: {e}")
    month = _parse_month(ns.month) if ns.month else today.replace(day=1)
    print(format_month(month, _split_dates(ns.selected), today))
    return 0


def _print_blocks(slots_by_date, granularity: int, mode: MergeMode) -> None:
    for d, blocks in blocks_by_date(slots_by_date, granularity, mode=mode).items():
        spans = ", ".join(f"{format_hhmm(b.start.minutes)}-{format_hhmm(b.end.minutes)}" for b in blocks)
        print(f"{d}: {spans or '-'}")


def _cmd_import(ns: argparse.Namespace) -> int:
    try:
        slots, suggested = load_external_slots(Path(ns.slots))
    except (OSError, ValueError) as e:
        raise SystemExit(f"Failed to load slots: {e}")

    dates = _split_dates(ns.dates) or suggested
    if not dates and not any(s.dates for s in slots):
        warn("no target dates; every slot without its own dates is dropped")

    on_grid = drop_off_lattice(slots)
    if len(on_grid) < len(slots):
        warn(f"skipped {len(slots) - len(on_grid)} range(s) not on the {MIN_GRANULARITY}-minute grid")
    by_date = import_external_slots(on_grid, dates, ns.granularity)
    g = calculate_optimal_granularity(by_date)
    if not is_supported(g):
        g = nearest_supported_granularity(g, by_date)
    print(f"granularity: {g}")
    _print_blocks(by_date, g, MergeMode.SEQUENCE)

    if ns.out:
        selected = sorted(by_date)
        try:
            dump_draft(Path(ns.out), draft_to_json(selected, by_date, g))
        except (OSError, ValueError) as e:
            raise SystemExit(f"Failed to write draft: {e}")
        print(str(Path(ns.out).resolve()))
    return 0


def _cmd_blocks(ns: argparse.Namespace) -> int:
    try:
        _dates, by_date, g = load_draft(Path(ns.draft))
    except (OSError, ValueError) as e:
        raise SystemExit(f"Failed to load draft: {e}")
    _print_blocks(by_date, g, MergeMode.STRICT if ns.strict else MergeMode.SEQUENCE)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    try:
        cfg = load_config()
    except ValueError as e:
        raise SystemExit(f"Invalid environment: {e}")

    ap = argparse.ArgumentParser(prog="pollgrid", description="Calendar and time-slot tools for availability polls.")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("grid", help="Print one month as a Monday-first grid")
    p.add_argument("--month", default=None, help="Month YYYY-MM (default: current month)")
    p.add_argument("--selected", default=None, help="Comma-separated YYYY-MM-DD dates to mark")
    p.add_argument("--today", default=None, help="Override today (YYYY-MM-DD)")
    p.set_defaults(func=_cmd_grid)

    p = sub.add_parser("import", help="Expand assistant time ranges into per-date slots")
    p.add_argument("--slots", required=True, help="JSON file of {start, end, dates?} ranges")
    p.add_argument("--dates", default=None, help="Comma-separated default dates (default: from the file)")
    p.add_argument(
        "--granularity",
        type=int,
        choices=GRANULARITY_OPTIONS,
        default=cfg.import_granularity,
        help=f"Tick size in minutes (default: env POLLGRID_IMPORT_GRANULARITY or {cfg.import_granularity})",
    )
    p.add_argument("--out", default=None, help="Write the resulting draft JSON here")
    p.set_defaults(func=_cmd_import)

    p = sub.add_parser("blocks", help="Print merged blocks of a saved draft")
    p.add_argument("--draft", required=True, help="Draft JSON file")
    p.add_argument("--strict", action="store_true", help="Only merge slots that touch end-to-start")
    p.set_defaults(func=_cmd_blocks)

    ns = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if ns.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    log.debug("command %s", ns.command)
    return int(ns.func(ns))


if __name__ == "__main__":
    sys.exit(main())
