import datetime as dt
import unittest

from pollgrid.calendar_grid import (
    build_day_cells,
    find_cell,
    format_month,
    generate_month_days,
    leading_blanks,
)
from pollgrid.util.datekeys import days_in_month


class TestCalendarGridContract(unittest.TestCase):
    def test_length_is_blanks_plus_days_for_every_month(self) -> None:
        for year in range(2019, 2031):
            for month in range(1, 13):
                m = dt.date(year, month, 1)
                days = generate_month_days(m)
                blanks = leading_blanks(m)
                self.assertIn(blanks, range(0, 7))
                self.assertEqual(blanks, m.weekday())
                self.assertEqual(len(days), blanks + days_in_month(m))
                self.assertTrue(all(d.is_empty and d.date is None for d in days[:blanks]))
                self.assertTrue(all(d.is_current_month and not d.is_empty for d in days[blanks:]))

    def test_leap_february(self) -> None:
        days = generate_month_days(dt.date(2024, 2, 17))
        numbers = [d.date.day for d in days if d.date is not None]
        self.assertEqual(len(numbers), 29)
        self.assertEqual(numbers[-1], 29)
        self.assertNotIn(30, numbers)
        # 2024-02-01 is a Thursday
        self.assertEqual(leading_blanks(dt.date(2024, 2, 1)), 3)

    def test_monday_first_day_has_no_blanks(self) -> None:
        days = generate_month_days(dt.date(2024, 1, 1))
        self.assertEqual(days[0].date, dt.date(2024, 1, 1))
        self.assertEqual(len(days), 31)

    def test_sunday_first_day_has_six_blanks(self) -> None:
        self.assertEqual(leading_blanks(dt.date(2024, 9, 1)), 6)

    def test_accepts_datetime(self) -> None:
        days = generate_month_days(dt.datetime(2023, 2, 14, 23, 59))
        self.assertEqual(len([d for d in days if d.date]), 28)

    def test_click_scenario_past_day_disabled(self) -> None:
        cells = build_day_cells(dt.date(2024, 1, 1), ["2024-01-15"], today=dt.date(2024, 1, 10))
        calls = []

        day16 = find_cell(cells, 16)
        self.assertFalse(day16.disabled)
        self.assertTrue(day16.click(calls.append))
        self.assertEqual(calls, [dt.date(2024, 1, 16)])

        day5 = find_cell(cells, 5)
        self.assertTrue(day5.is_past)
        self.assertTrue(day5.disabled)
        self.assertFalse(day5.click(calls.append))
        self.assertEqual(calls, [dt.date(2024, 1, 16)])

        self.assertTrue(find_cell(cells, 15).is_selected)
        self.assertTrue(find_cell(cells, 10).is_today)
        self.assertFalse(find_cell(cells, 10).disabled)
        self.assertEqual(find_cell(cells, 15).key, "2024-01-15")

    def test_format_month_marks_selected_and_past(self) -> None:
        out = format_month(dt.date(2024, 2, 1), ["2024-02-14"], today=dt.date(2024, 2, 10))
        self.assertTrue(out.startswith("2024-02"))
        self.assertIn("[14]", out)
        self.assertIn("(9)", out)
        self.assertNotIn("(10)", out)
        self.assertTrue(out.rstrip().endswith("29"))


if __name__ == "__main__":
    unittest.main(verbosity=2)
