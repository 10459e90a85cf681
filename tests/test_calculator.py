# tests/test_calculator.py
"""
Unit tests for EarningsCalculator (daily gross, week/month/year totals, tax).

Run with:
    python -m unittest tests.test_calculator
"""
import unittest
from datetime import date

from domain import DayEntry, TimeLedger, Totals, WeekWindow
from services import EarningsCalculator

# 2024-05-13 is a Monday
WEEK = WeekWindow(date(2024, 5, 13))


class DailyGrossTests(unittest.TestCase):

    def setUp(self):
        self.calc = EarningsCalculator()

    def test_formula(self):
        for rate in (0.0, 1.0, 12.5, 20.0):
            entry = DayEntry(normal=3, ot50=2, ot100=1.5)
            expected = 3 * rate + 2 * rate * 1.5 + 1.5 * rate * 2.0
            self.assertAlmostEqual(self.calc.daily_gross(entry, rate), expected)

    def test_overtime_only(self):
        self.assertAlmostEqual(self.calc.daily_gross(DayEntry(ot50=2, ot100=1), 20), 100.0)


class ComputeTotalsTests(unittest.TestCase):

    def setUp(self):
        self.calc = EarningsCalculator()

    def test_empty_ledger(self):
        self.assertEqual(self.calc.compute_totals(TimeLedger(), 10, 20, WEEK), Totals())

    def test_single_monday_no_tax(self):
        ledger = TimeLedger({"2024-05-13": DayEntry(normal=8)})
        totals = self.calc.compute_totals(ledger, 10, 0, WEEK)
        self.assertAlmostEqual(totals.week_total, 80.0)
        self.assertAlmostEqual(totals.week_net, 80.0)
        self.assertAlmostEqual(totals.week_tax, 0.0)

    def test_half_tax(self):
        ledger = TimeLedger({"2024-05-14": DayEntry(ot50=2, ot100=1)})
        totals = self.calc.compute_totals(ledger, 20, 50, WEEK)
        self.assertAlmostEqual(totals.week_total, 100.0)
        self.assertAlmostEqual(totals.week_tax, 50.0)
        self.assertAlmostEqual(totals.week_net, 50.0)
        self.assertAlmostEqual(totals.month_net, 50.0)
        self.assertAlmostEqual(totals.year_tax, 50.0)

    def test_zero_rate(self):
        ledger = TimeLedger({"2024-05-13": DayEntry(normal=8)})
        self.assertEqual(self.calc.compute_totals(ledger, 0, 30, WEEK), Totals())

    def test_month_year_and_week_buckets(self):
        ledger = TimeLedger({
            "2024-05-13": DayEntry(normal=8),   # this week
            "2024-05-27": DayEntry(normal=2),   # same month, other week
            "2024-02-01": DayEntry(normal=1),   # same year
            "2023-05-14": DayEntry(normal=100), # other year
        })
        totals = self.calc.compute_totals(ledger, 10, 0, WEEK)
        self.assertAlmostEqual(totals.week_total, 80.0)
        self.assertAlmostEqual(totals.month_total, 100.0)
        self.assertAlmostEqual(totals.year_total, 110.0)

    def test_malformed_keys_are_skipped(self):
        ledger = TimeLedger({
            "2024-13-40": DayEntry(normal=5),
            "not-a-date": DayEntry(normal=5),
            "2024-05-15": DayEntry(normal=1),
        })
        totals = self.calc.compute_totals(ledger, 10, 0, WEEK)
        self.assertAlmostEqual(totals.week_total, 10.0)
        self.assertAlmostEqual(totals.month_total, 10.0)
        self.assertAlmostEqual(totals.year_total, 10.0)

    def test_reference_month_comes_from_monday(self):
        # Week of 2024-04-29 runs into May; month/year buckets follow April
        window = WeekWindow(date(2024, 4, 29))
        ledger = TimeLedger({"2024-05-02": DayEntry(normal=1), "2024-04-10": DayEntry(normal=1)})
        totals = self.calc.compute_totals(ledger, 10, 0, window)
        self.assertAlmostEqual(totals.week_total, 10.0)
        self.assertAlmostEqual(totals.month_total, 10.0)
        self.assertAlmostEqual(totals.year_total, 20.0)

    def test_deterministic(self):
        ledger = TimeLedger({"2024-05-13": DayEntry(normal=7.3, ot50=1.1)})
        first = self.calc.compute_totals(ledger, 13.3, 15, WEEK)
        second = self.calc.compute_totals(ledger, 13.3, 15, WEEK)
        self.assertEqual(first, second)


class WeekBreakdownTests(unittest.TestCase):

    def test_seven_rows(self):
        calc = EarningsCalculator()
        ledger = TimeLedger({"2024-05-19": DayEntry(normal=2, ot100=1)})
        rows = calc.week_breakdown(ledger, 10, WEEK)
        self.assertEqual(len(rows), 7)
        self.assertEqual(rows[0]["day"], "Monday")
        self.assertEqual(rows[0]["gross"], 0.0)
        self.assertEqual(rows[6]["key"], "2024-05-19")
        self.assertAlmostEqual(rows[6]["gross"], 40.0)
