# tests/test_utils.py
import unittest
from datetime import date

from domain import DayEntry, TimeLedger, WeekWindow
from services import EarningsCalculator
from utils import format_currency, format_date_range, format_date_short, week_to_dataframe


class FormattingTests(unittest.TestCase):

    def test_currency_prefix_and_suffix(self):
        self.assertEqual(format_currency(1234.5, "USD"), "$1,234.50")
        self.assertEqual(format_currency(0, "EUR"), "€0.00")
        self.assertEqual(format_currency(1234.5, "RON"), "1,234.50 lei")
        self.assertEqual(format_currency(10, "XYZ"), "$10.00")

    def test_dates(self):
        self.assertEqual(format_date_short(date(2024, 1, 1)), "Jan 1")
        self.assertEqual(format_date_range(date(2024, 5, 13)), "May 13 - May 19, 2024")
        self.assertEqual(format_date_range(date(2024, 12, 30)), "Dec 30, 2024 - Jan 5, 2025")


class WeekDataFrameTests(unittest.TestCase):

    def test_columns_and_rows(self):
        ledger = TimeLedger({"2024-05-13": DayEntry(normal=8, ot50=1)})
        rows = EarningsCalculator().week_breakdown(ledger, 10, WeekWindow(date(2024, 5, 13)))
        df = week_to_dataframe(rows)
        self.assertEqual(list(df.columns), ["Day", "Date", "Normal", "OT 1.5x", "OT 2.0x", "Gross"])
        self.assertEqual(len(df), 7)
        self.assertEqual(df.loc[0, "Date"], "May 13")
        self.assertAlmostEqual(df.loc[0, "Gross"], 95.0)
        self.assertEqual(df["Gross"].sum(), 95.0)
