"""pollgrid.api

Names a host UI imports: grid and navigator builders, slot and granularity
operations, the drag controller with its adapters, and the editing session.
Anything reachable only through submodules can change between releases.
"""

from __future__ import annotations

from pollgrid.calendar_grid import DayCell, build_day_cells, generate_month_days, leading_blanks
from pollgrid.config import GRANULARITY_OPTIONS, EditorConfig, load_config
from pollgrid.drag import (
    DateDragAdapter,
    DocumentHost,
    DragSelectionController,
    Phase,
    PointerEvent,
    SlotRef,
    TimeSlotDragAdapter,
    apply_slot_drag,
)
from pollgrid.granularity import (
    GranularityState,
    calculate_optimal_granularity,
    change_granularity,
    is_compatible,
    undo_granularity,
)
from pollgrid.importer import drop_off_lattice, import_external_slots
from pollgrid.io import load_draft, load_external_slots
from pollgrid.model import Block, BlockEnd, CalendarDay, ExternalSlot, TimeSlot
from pollgrid.navigator import CalendarNavigator, creation_flow_navigator, scroll_navigator, shift_next, shift_prev
from pollgrid.selection import batch_toggle_dates, plan_date_drag, toggle_date
from pollgrid.session import InMemoryPersistence, PollDraftSession
from pollgrid.slots import MergeMode, classify_tick, get_time_slot_blocks, toggle_slot
from pollgrid.validate import DraftValidationError, assert_valid_draft, validate_draft


# Sorted; tests/test_contract_public_api.py fails on any drift.
_PUBLIC_EXPORTS = (
    "Block",
    "BlockEnd",
    "CalendarDay",
    "CalendarNavigator",
    "DateDragAdapter",
    "DayCell",
    "DocumentHost",
    "DraftValidationError",
    "DragSelectionController",
    "EditorConfig",
    "ExternalSlot",
    "GRANULARITY_OPTIONS",
    "GranularityState",
    "InMemoryPersistence",
    "MergeMode",
    "Phase",
    "PointerEvent",
    "PollDraftSession",
    "SlotRef",
    "TimeSlot",
    "TimeSlotDragAdapter",
    "apply_slot_drag",
    "assert_valid_draft",
    "batch_toggle_dates",
    "build_day_cells",
    "calculate_optimal_granularity",
    "change_granularity",
    "classify_tick",
    "creation_flow_navigator",
    "drop_off_lattice",
    "generate_month_days",
    "get_time_slot_blocks",
    "import_external_slots",
    "is_compatible",
    "leading_blanks",
    "load_config",
    "load_draft",
    "load_external_slots",
    "plan_date_drag",
    "scroll_navigator",
    "shift_next",
    "shift_prev",
    "toggle_date",
    "toggle_slot",
    "undo_granularity",
    "validate_draft",
)

__all__ = [n for n in _PUBLIC_EXPORTS if n in globals()]
