# utils.py
from datetime import date, timedelta
from typing import Dict, Iterable

import pandas as pd

from domain import find_currency

MONTHS_SHORT = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
                "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def format_currency(amount: float, code: str) -> str:
    formatted = f"{amount:,.2f}"
    symbol = find_currency(code).symbol
    if code == "RON":
        return f"{formatted} {symbol}"
    return f"{symbol}{formatted}"


def format_date_short(d: date) -> str:
    return f"{MONTHS_SHORT[d.month - 1]} {d.day}"


def format_date_range(monday: date) -> str:
    sunday = monday + timedelta(days=6)
    end = f"{format_date_short(sunday)}, {sunday.year}"
    if monday.year != sunday.year:
        return f"{format_date_short(monday)}, {monday.year} - {end}"
    return f"{format_date_short(monday)} - {end}"


def week_to_dataframe(rows: Iterable[Dict]) -> pd.DataFrame:
    """Week breakdown rows (see EarningsCalculator.week_breakdown) as a table."""
    df = pd.DataFrame([
        {
            "Day": r["day"],
            "Date": format_date_short(r["date"]),
            "Normal": r["normal"],
            "OT 1.5x": r["ot50"],
            "OT 2.0x": r["ot100"],
            "Gross": round(r["gross"], 2),
        }
        for r in rows
    ], columns=["Day", "Date", "Normal", "OT 1.5x", "OT 2.0x", "Gross"])
    return df
