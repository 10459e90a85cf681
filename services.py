# services.py
from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from pathlib import Path
from typing import Callable, Dict, List, Mapping

from domain import (
    DAYS_OF_WEEK,
    DayEntry,
    Settings,
    StatusMessage,
    StorageError,
    TimeLedger,
    Timesheet,
    Totals,
    ValidationError,
    WeekWindow,
    format_date_key,
    parse_date_key,
    parse_number,
)
from repository import SnapshotRepository, dumps_snapshot, loads_snapshot

EXPORT_FILENAME = "timesheet-data.json"

MSG_NEGATIVE_HOURS = "Hours cannot be negative"
MSG_NEGATIVE_RATE = "Hourly rate cannot be negative"
MSG_TAX_RANGE = "Tax rate must be between 0% and 100%"
MSG_LOAD_FAILED = "Could not load saved data. Starting fresh."
MSG_SAVE_FAILED = "Could not save data. Storage might be full."
MSG_CLEARED = "All saved data has been cleared"
MSG_IMPORTED = "Data imported successfully"
MSG_IMPORT_INVALID = "Error importing data: Invalid JSON file"
MSG_NO_FILE = "No file selected"


class EarningsCalculator:
    """Business rules for turning recorded hours into gross/net earnings."""
    def __init__(self, ot50_multiplier: float = 1.5, ot100_multiplier: float = 2.0):
        self.ot50_multiplier = ot50_multiplier
        self.ot100_multiplier = ot100_multiplier

    def daily_gross(self, entry: DayEntry, rate: float) -> float:
        return (
            entry.normal * rate
            + entry.ot50 * rate * self.ot50_multiplier
            + entry.ot100 * rate * self.ot100_multiplier
        )

    def compute_totals(
        self,
        ledger: Mapping[str, DayEntry],
        rate: float,
        tax_rate_percent: float,
        window: WeekWindow,
    ) -> Totals:
        """
        Week, month and year gross plus tax and net.
        Month and year are those of the window's Monday; malformed keys are skipped.
        """
        week_total = 0.0
        for key in window.date_keys():
            entry = ledger.get(key)
            if entry is not None:
                week_total += self.daily_gross(entry, rate)

        month_total = 0.0
        year_total = 0.0
        for key, entry in ledger.items():
            d = parse_date_key(key)
            if d is None or entry is None:
                continue
            gross = self.daily_gross(entry, rate)
            if d.year == window.year:
                year_total += gross
                if d.month == window.month:
                    month_total += gross

        tax_fraction = tax_rate_percent / 100
        week_tax = week_total * tax_fraction
        month_tax = month_total * tax_fraction
        year_tax = year_total * tax_fraction
        return Totals(
            week_total=week_total,
            month_total=month_total,
            year_total=year_total,
            week_tax=week_tax,
            month_tax=month_tax,
            year_tax=year_tax,
            week_net=week_total - week_tax,
            month_net=month_total - month_tax,
            year_net=year_total - year_tax,
        )

    def week_breakdown(self, ledger: Mapping[str, DayEntry], rate: float, window: WeekWindow) -> List[Dict]:
        """One row per day Monday..Sunday; days without an entry read as zero."""
        rows = []
        for name, day in zip(DAYS_OF_WEEK, window.days()):
            key = format_date_key(day)
            entry = ledger.get(key) or DayEntry()
            rows.append({
                "day": name,
                "date": day,
                "key": key,
                "normal": entry.normal,
                "ot50": entry.ot50,
                "ot100": entry.ot100,
                "gross": self.daily_gross(entry, rate),
            })
        return rows


class TimesheetService:
    """
    Owns the current timesheet snapshot, the displayed week and the status line.

    Every mutation goes through a validated setter, replaces the snapshot and is
    persisted. Validation and storage failures are reported through the status
    message and never raised to the caller.
    """
    def __init__(
        self,
        repo: SnapshotRepository,
        calculator: EarningsCalculator | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.repo = repo
        self.calculator = calculator or EarningsCalculator()
        self.clock = clock
        self.sheet = Timesheet()
        self.window = WeekWindow.containing(self.today())
        self._message: StatusMessage | None = None
        self.load()

    @classmethod
    def from_config(cls, cfg) -> "TimesheetService":
        repo = SnapshotRepository(cfg.database_url, key=cfg.storage_key)
        return cls(repo, clock=cfg.now)

    def today(self) -> date:
        return self.clock().date()

    @property
    def ledger(self) -> TimeLedger:
        return self.sheet.ledger

    @property
    def settings(self) -> Settings:
        return self.sheet.settings

    # =========================
    # Status line
    # =========================
    def notify(self, text: str, level: str = "info") -> StatusMessage:
        self._message = StatusMessage.create(text, level=level, now=self.clock())
        return self._message

    @property
    def message(self) -> StatusMessage | None:
        """The current message while its visibility window is open."""
        if self._message is not None and self._message.is_visible(self.clock()):
            return self._message
        return None

    def dismiss_message(self) -> None:
        self._message = None

    # =========================
    # Persistence
    # =========================
    def load(self) -> bool:
        try:
            stored = self.repo.load()
        except (ValidationError, StorageError) as e:
            logging.error("Error loading saved timesheet: %s", e, exc_info=True)
            self.notify(MSG_LOAD_FAILED, level="error")
            self.sheet = Timesheet()
            try:
                self.repo.delete()
            except StorageError as e2:
                logging.error("Could not remove corrupt snapshot: %s", e2)
            return False
        self.sheet = stored or Timesheet()
        return True

    def save(self) -> bool:
        try:
            self.repo.save(self.sheet)
        except StorageError as e:
            logging.error("Error saving timesheet: %s", e, exc_info=True)
            self.notify(MSG_SAVE_FAILED, level="error")
            return False
        return True

    def _commit(self, sheet: Timesheet) -> bool:
        # In-memory state wins even if the write fails
        self.sheet = sheet
        self.save()
        return True

    def _reject(self, text: str) -> bool:
        logging.warning("Rejected input: %s", text)
        self.notify(text, level="warning")
        return False

    # =========================
    # Validated setters
    # =========================
    def set_hours(self, day: date | str, field_name: str, raw_value) -> bool:
        date_key = format_date_key(day) if isinstance(day, date) else day
        try:
            ledger = self.ledger.set_hours(date_key, field_name, raw_value)
        except ValidationError:
            return self._reject(MSG_NEGATIVE_HOURS)
        return self._commit(replace(self.sheet, ledger=ledger))

    def set_rate(self, raw_value) -> bool:
        value = parse_number(raw_value)
        if value < 0:
            return self._reject(MSG_NEGATIVE_RATE)
        return self._commit(replace(self.sheet, settings=replace(self.settings, hourly_rate=value)))

    def set_tax_rate(self, raw_value) -> bool:
        value = parse_number(raw_value)
        if value < 0 or value > 100:
            return self._reject(MSG_TAX_RANGE)
        return self._commit(replace(self.sheet, settings=replace(self.settings, tax_rate=value)))

    def set_currency(self, code: str) -> bool:
        return self._commit(replace(self.sheet, settings=replace(self.settings, currency=code)))

    def clear(self) -> bool:
        """Drops every entry and setting. Callers confirm with the user first."""
        self.sheet = Timesheet()
        try:
            self.repo.delete()
        except StorageError as e:
            logging.error("Error clearing saved timesheet: %s", e, exc_info=True)
            self.notify(MSG_SAVE_FAILED, level="error")
            return False
        logging.info("Cleared all timesheet data")
        self.notify(MSG_CLEARED)
        return True

    # =========================
    # Import / export
    # =========================
    def export_snapshot(self) -> bytes:
        return dumps_snapshot(self.sheet).encode("utf-8")

    def export_to_file(self, directory: Path | str) -> Path | None:
        path = Path(directory) / EXPORT_FILENAME
        try:
            path.write_bytes(self.export_snapshot())
        except OSError as e:
            logging.error("Error writing export file %s: %s", path, e, exc_info=True)
            self.notify(MSG_SAVE_FAILED, level="error")
            return None
        logging.info("Exported timesheet to %s", path)
        return path

    def import_snapshot(self, payload: bytes | str | None) -> bool:
        if payload is None:
            return self._reject(MSG_NO_FILE)
        try:
            sheet = loads_snapshot(payload)
        except ValidationError as e:
            logging.error("Error parsing import: %s", e)
            self.notify(MSG_IMPORT_INVALID, level="error")
            return False
        self._commit(sheet)
        logging.info("Imported timesheet (%d entries)", len(sheet.ledger))
        self.notify(MSG_IMPORTED)
        return True

    def import_from_file(self, path: Path | str | None) -> bool:
        if path is None:
            return self._reject(MSG_NO_FILE)
        try:
            payload = Path(path).read_bytes()
        except OSError as e:
            logging.error("Error reading import file %s: %s", path, e)
            self.notify(MSG_IMPORT_INVALID, level="error")
            return False
        return self.import_snapshot(payload)

    # =========================
    # Week window and totals
    # =========================
    def navigate_week(self, direction: str) -> WeekWindow:
        if direction not in ("prev", "next"):
            raise ValueError(f"direction must be 'prev' or 'next', got {direction!r}")
        self.window = self.window.shift(1 if direction == "next" else -1)
        return self.window

    def go_to_today(self) -> WeekWindow:
        self.window = WeekWindow.containing(self.today())
        return self.window

    def totals(self) -> Totals:
        s = self.settings
        return self.calculator.compute_totals(self.ledger, s.hourly_rate, s.tax_rate, self.window)

    def week_breakdown(self) -> List[Dict]:
        return self.calculator.week_breakdown(self.ledger, self.settings.hourly_rate, self.window)
