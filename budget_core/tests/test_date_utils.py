import unittest
from datetime import date, datetime

from budget_core.date_utils import (
    add_months,
    end_of_month,
    is_in_period,
    is_last_day_of_period,
    parse_local_date,
    period_bounds,
    period_id,
    validate_period,
)


class ParseLocalDateTests(unittest.TestCase):
    def test_parses_plain_and_timestamped_dates(self) -> None:
        self.assertEqual(parse_local_date("2024-05-10"), date(2024, 5, 10))
        self.assertEqual(parse_local_date("2024-05-10T23:30:00Z"), date(2024, 5, 10))
        self.assertEqual(parse_local_date(datetime(2024, 5, 10, 8, 0)), date(2024, 5, 10))

    def test_empty_value_means_today(self) -> None:
        today = date(2024, 5, 20)
        self.assertEqual(parse_local_date("", today=today), today)
        self.assertEqual(parse_local_date(None, today=today), today)

    def test_other_layouts_are_logged_and_parsed(self) -> None:
        with self.assertLogs("budget_core.date_utils", level="WARNING") as captured:
            parsed = parse_local_date("10/05/2024")

        self.assertEqual(parsed, date(2024, 5, 10))
        self.assertIn("Invalid date format", captured.output[0])

    def test_unparseable_value_returns_none(self) -> None:
        with self.assertLogs("budget_core.date_utils", level="WARNING"):
            self.assertIsNone(parse_local_date("not a date"))


class PeriodHelperTests(unittest.TestCase):
    def test_add_months_clamps_to_month_end(self) -> None:
        self.assertEqual(add_months(date(2024, 1, 31), 1), date(2024, 2, 29))
        self.assertEqual(add_months(date(2024, 3, 15), -3), date(2023, 12, 15))
        self.assertEqual(add_months(date(2024, 2, 29), 1, anchor_day=31), date(2024, 3, 31))

    def test_period_ids_and_bounds(self) -> None:
        self.assertEqual(period_id(2024, 5), "2024-05")
        self.assertEqual(period_id(2024, None, "yearly"), "2024")
        self.assertEqual(period_bounds(2024, 2), (date(2024, 2, 1), date(2024, 2, 29)))
        self.assertEqual(
            period_bounds(2024, None, "Yearly"), (date(2024, 1, 1), date(2024, 12, 31))
        )

    def test_is_in_period(self) -> None:
        self.assertTrue(is_in_period(date(2024, 5, 31), 2024, 5))
        self.assertFalse(is_in_period(date(2024, 6, 1), 2024, 5))
        self.assertTrue(is_in_period(date(2024, 12, 31), 2024, None, "yearly"))
        self.assertFalse(is_in_period(date(2023, 5, 1), 2024, 5))

    def test_last_day_of_period(self) -> None:
        self.assertTrue(is_last_day_of_period(end_of_month(date(2023, 2, 1))))
        self.assertFalse(is_last_day_of_period(date(2024, 1, 31), "yearly"))
        self.assertTrue(is_last_day_of_period(date(2024, 12, 31), "yearly"))

    def test_rejects_unknown_period(self) -> None:
        with self.assertRaises(ValueError):
            validate_period("weekly")


if __name__ == "__main__":
    unittest.main()
