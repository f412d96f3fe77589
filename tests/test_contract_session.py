import datetime as dt
import unittest

from pollgrid.drag import DocumentHost, PointerEvent, SlotRef
from pollgrid.model import ExternalSlot
from pollgrid.session import InMemoryPersistence, PollDraftSession
from pollgrid.util.timers import ManualScheduler

TODAY = dt.date(2024, 1, 10)


class TestPollDraftSessionContract(unittest.TestCase):
    def setUp(self) -> None:
        self.store = InMemoryPersistence()
        self.sched = ManualScheduler()
        self.warnings = []
        self.s = PollDraftSession(
            persistence=self.store,
            scheduler=self.sched,
            clock=lambda: TODAY,
            on_warning=self.warnings.append,
        )

    def tearDown(self) -> None:
        self.s.close()

    def test_initial_state(self) -> None:
        self.assertEqual(self.s.granularity.value, 30)
        self.assertEqual(len(self.s.visible_months), 6)
        self.assertEqual(self.s.visible_months[0], dt.date(2024, 1, 1))
        self.assertFalse(self.s.can_finalize())
        self.assertEqual(len(self.s.ticks()), 26)

    def test_autosave_is_debounced(self) -> None:
        self.s.on_date_toggle(dt.date(2024, 1, 15))
        self.sched.advance(1000)
        self.s.on_date_toggle(dt.date(2024, 1, 16))
        self.sched.advance(1499)
        self.assertEqual(self.store.saved, [])
        self.sched.advance(1)
        self.assertEqual(len(self.store.saved), 1)
        self.assertEqual(self.store.saved[0]["selectedDates"], ["2024-01-15", "2024-01-16"])

    def test_failed_autosave_only_warns(self) -> None:
        self.store.fail_with = OSError("disk full")
        self.s.toggle_slot("2024-01-15", 9, 0)
        with self.assertLogs("pollgrid.session", "WARNING") as logs:
            self.sched.advance(1500)
        self.assertIn("autosave failed: disk full", logs.output[0])
        self.assertEqual(self.warnings, ["autosave failed: disk full"])
        self.assertEqual(self.s.last_warning, "autosave failed: disk full")
        self.assertIn("2024-01-15", self.s.slots_by_date)

        self.store.fail_with = None
        self.s.toggle_slot("2024-01-15", 9, 30)
        self.sched.advance(1500)
        self.assertIsNone(self.s.last_warning)
        self.assertEqual(len(self.store.saved), 1)

    def test_flush_runs_pending_save(self) -> None:
        self.assertFalse(self.s.flush())
        self.s.on_date_toggle(dt.date(2024, 1, 15))
        self.assertTrue(self.s.flush())
        self.assertEqual(self.sched.pending(), 0)
        self.assertEqual(len(self.store.saved), 1)

    def test_finalize(self) -> None:
        with self.assertRaises(ValueError):
            self.s.finalize()
        self.s.on_date_toggle(dt.date(2024, 1, 15))
        self.assertTrue(self.s.finalize())
        self.assertEqual(self.sched.pending(), 0)
        self.assertEqual(len(self.store.saved), 1)

    def test_without_persistence_nothing_is_scheduled(self) -> None:
        s = PollDraftSession(scheduler=self.sched, clock=lambda: TODAY)
        s.on_date_toggle(dt.date(2024, 1, 15))
        self.assertEqual(self.sched.pending(), 0)
        self.assertFalse(s.finalize())

    def test_apply_suggestions(self) -> None:
        g = self.s.apply_suggestions(
            [ExternalSlot("09:00", "10:00")],
            ["2024-03-15", "2024-03-16", "next week"],
        )
        self.assertEqual(g, 30)
        self.assertEqual(self.s.selected_dates, ["2024-03-15", "2024-03-16"])
        self.assertEqual(self.s.visible_months[0], dt.date(2024, 3, 1))
        blocks = self.s.blocks_for("2024-03-16")
        self.assertEqual(len(blocks), 1)
        self.assertEqual((blocks[0].end.hour, blocks[0].end.minute), (9, 30))
        self.assertFalse(self.s.granularity.can_undo)

    def test_apply_suggestions_picks_finer_lattice(self) -> None:
        self.assertEqual(self.s.apply_suggestions([ExternalSlot("09:15", "10:00")], ["2024-03-15"]), 15)
        self.assertEqual(self.s.granularity_options(), [15])

    def test_granularity_change_and_undo(self) -> None:
        self.s.toggle_slot("2024-01-15", 9, 30)
        self.assertFalse(self.s.change_granularity(60))
        self.assertTrue(self.s.change_granularity(15))
        self.assertEqual(len(self.s.ticks()), 52)
        self.assertTrue(self.s.undo_granularity())
        self.assertEqual(self.s.granularity.value, 30)
        self.assertFalse(self.s.undo_granularity())

    def test_day_cells_and_month_paging(self) -> None:
        self.s.on_date_toggle(dt.date(2024, 1, 15))
        cells = [c for c in self.s.day_cells(dt.date(2024, 1, 1)) if c.key]
        self.assertTrue(cells[14].is_selected)
        self.assertTrue(cells[9].is_today)
        self.assertTrue(cells[8].is_past)

        self.assertTrue(self.s.on_month_change("next"))
        self.assertEqual(self.s.visible_months[0], dt.date(2024, 2, 1))
        self.assertTrue(self.s.on_months_change([dt.date(2024, 5, 1)]))
        self.assertEqual(self.s.visible_months, [dt.date(2024, 5, 1)])

    def test_date_drag_through_session(self) -> None:
        host = DocumentHost()
        ctl = self.s.date_drag_controller(host=host)
        ctl.pointer_down(dt.date(2024, 1, 5))
        self.assertFalse(ctl.is_dragging)

        self.s.on_date_toggle(dt.date(2024, 1, 12))
        ctl.pointer_down(dt.date(2024, 1, 11))
        ctl.pointer_move(dt.date(2024, 1, 13))
        host.dispatch_pointerup()
        self.assertEqual(self.s.selected_dates, ["2024-01-12", "2024-01-11", "2024-01-13"])

    def test_date_drag_into_the_past_stops_at_today(self) -> None:
        host = DocumentHost()
        ctl = self.s.date_drag_controller(host=host)
        ctl.pointer_down(dt.date(2024, 1, 12))
        ctl.pointer_move(dt.date(2024, 1, 5))
        host.dispatch_pointerup()
        self.assertEqual(sorted(self.s.selected_dates), ["2024-01-10", "2024-01-11", "2024-01-12"])

    def test_apply_suggestions_skips_ranges_off_the_quarter_hour(self) -> None:
        with self.assertLogs("pollgrid.importer", "WARNING") as logs:
            g = self.s.apply_suggestions(
                [ExternalSlot("09:10", "10:00"), ExternalSlot("14:00", "15:00")],
                ["2024-01-15"],
            )
        self.assertIn("09:10-10:00", logs.output[0])
        self.assertEqual(g, 30)
        slots = self.s.slots_by_date["2024-01-15"]
        self.assertEqual([(x.hour, x.minute) for x in slots], [(14, 0), (14, 30)])
        self.assertEqual(self.s.granularity_options(), [15, 30])

    def test_only_off_grid_suggestions_leave_slots_empty(self) -> None:
        with self.assertLogs("pollgrid.importer", "WARNING"):
            g = self.s.apply_suggestions([ExternalSlot("09:10", "09:40")], ["2024-01-15"])
        self.assertEqual(g, 30)
        self.assertEqual(self.s.slots_by_date, {})
        self.assertEqual(self.s.selected_dates, ["2024-01-15"])

    def test_close_saves_pending_edits(self) -> None:
        self.s.on_date_toggle(dt.date(2024, 1, 15))
        self.sched.advance(100)
        self.s.close()
        self.assertEqual([d["selectedDates"] for d in self.store.saved], [["2024-01-15"]])
        self.assertEqual(self.sched.pending(), 0)

    def test_stale_autosave_callback_does_not_save_twice(self) -> None:
        calls = []

        class _Late:
            def call_later(self, delay_ms, fn):
                calls.append(fn)
                return self

            def cancel(self) -> None:
                pass

        s = PollDraftSession(persistence=self.store, scheduler=_Late(), clock=lambda: TODAY)
        s.on_date_toggle(dt.date(2024, 1, 15))
        self.assertTrue(s.flush())
        calls[0]()
        s.on_date_toggle(dt.date(2024, 1, 16))
        calls[0]()
        self.assertEqual(len(self.store.saved), 1)
        calls[1]()
        self.assertEqual(len(self.store.saved), 2)
        self.assertEqual(self.store.saved[1]["selectedDates"], ["2024-01-15", "2024-01-16"])

    def test_slot_drag_follows_granularity(self) -> None:
        host = DocumentHost()
        ctl = self.s.slot_drag_controller(host=host)
        self.assertTrue(self.s.change_granularity(60))
        ctl.pointer_down(SlotRef("2024-01-15", 9, 0), PointerEvent("touch"))
        self.sched.advance(500)
        ctl.pointer_move(SlotRef("2024-01-15", 11, 0))
        host.dispatch_pointerup()
        slots = self.s.slots_by_date["2024-01-15"]
        self.assertEqual([(x.hour, x.duration) for x in slots], [(9, 60), (10, 60), (11, 60)])
        self.assertEqual(host.vibrations, [50])

    def test_snapshot_shape(self) -> None:
        self.s.on_date_toggle(dt.date(2024, 1, 15))
        self.s.toggle_slot("2024-01-15", 9, 0)
        snap = self.s.snapshot()
        self.assertEqual(
            snap,
            {
                "selectedDates": ["2024-01-15"],
                "timeSlotsByDate": {"2024-01-15": [{"hour": 9, "minute": 0, "enabled": True, "duration": 30}]},
                "timeGranularity": 30,
            },
        )


if __name__ == "__main__":
    unittest.main(verbosity=2)
