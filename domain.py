# domain.py
from __future__ import annotations

import math
import re
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Tuple

HOUR_FIELDS: Tuple[str, ...] = ("normal", "ot50", "ot100")
DEFAULT_CURRENCY = "USD"
MESSAGE_TTL = timedelta(seconds=3)

DATE_KEY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$", re.ASCII)
_FLOAT_PREFIX_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)

DAYS_OF_WEEK = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


class ValidationError(ValueError):
    """Rejected user input or import payload. State is left untouched."""


class StorageError(RuntimeError):
    """Reading or writing the persisted snapshot failed."""


def parse_number(raw) -> float:
    """Lenient numeric parse: leading float prefix of a string, anything else is 0.

    "12.5h" -> 12.5, "abc" -> 0.0, "" -> 0.0, None -> 0.0
    """
    if isinstance(raw, bool) or raw is None:
        return 0.0
    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        m = _FLOAT_PREFIX_RE.match(str(raw).strip())
        if not m:
            return 0.0
        value = float(m.group(0))
    if math.isnan(value) or math.isinf(value) or value == 0:
        return 0.0
    return value


# =========================
# Date keys and week windows
# =========================
def format_date_key(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def parse_date_key(key: str) -> date | None:
    """Returns the calendar date for a well-formed key, None otherwise."""
    if not isinstance(key, str) or not DATE_KEY_RE.match(key):
        return None
    try:
        return datetime.strptime(key, "%Y-%m-%d").date()
    except ValueError:
        return None


def start_of_week(d: date) -> date:
    # Sunday-indexed weekday: Sunday=0 ... Saturday=6
    day = (d.weekday() + 1) % 7
    offset = -6 if day == 0 else 1 - day
    return d + timedelta(days=offset)


@dataclass(frozen=True)
class WeekWindow:
    """Seven consecutive days starting on a Monday."""
    monday: date

    def __post_init__(self):
        object.__setattr__(self, "monday", start_of_week(self.monday))

    @classmethod
    def containing(cls, d: date) -> "WeekWindow":
        return cls(d)

    @property
    def year(self) -> int:
        return self.monday.year

    @property
    def month(self) -> int:
        return self.monday.month

    @property
    def sunday(self) -> date:
        return self.monday + timedelta(days=6)

    def days(self) -> List[date]:
        return [self.monday + timedelta(days=i) for i in range(7)]

    def date_keys(self) -> List[str]:
        return [format_date_key(d) for d in self.days()]

    def shift(self, weeks: int) -> "WeekWindow":
        return WeekWindow(self.monday + timedelta(days=7 * weeks))


# =========================
# Entries and settings
# =========================
@dataclass(frozen=True)
class DayEntry:
    """Hours recorded for a single calendar day."""
    normal: float = 0.0
    ot50: float = 0.0
    ot100: float = 0.0

    @property
    def is_zero(self) -> bool:
        return self.normal == 0 and self.ot50 == 0 and self.ot100 == 0

    def with_field(self, field_name: str, value: float) -> "DayEntry":
        if field_name not in HOUR_FIELDS:
            raise ValueError(f"Unknown hours field: {field_name!r}")
        return replace(self, **{field_name: value})


@dataclass(frozen=True)
class Currency:
    code: str
    symbol: str
    name: str


CURRENCIES: Tuple[Currency, ...] = (
    Currency("USD", "$", "US Dollar"),
    Currency("EUR", "€", "Euro"),
    Currency("GBP", "£", "British Pound"),
    Currency("RON", "lei", "Romanian Leu"),
    Currency("CAD", "C$", "Canadian Dollar"),
    Currency("AUD", "A$", "Australian Dollar"),
    Currency("JPY", "¥", "Japanese Yen"),
    Currency("CHF", "CHF", "Swiss Franc"),
)


def find_currency(code: str) -> Currency:
    """Unknown codes display as USD; the stored code is not touched."""
    for c in CURRENCIES:
        if c.code == code:
            return c
    return CURRENCIES[0]


@dataclass(frozen=True)
class Settings:
    hourly_rate: float = 0.0
    tax_rate: float = 0.0
    currency: str = DEFAULT_CURRENCY


# =========================
# Ledger
# =========================
class TimeLedger(Mapping[str, DayEntry]):
    """Sparse, read-only mapping of date key -> DayEntry.

    All-zero entries never live in the ledger: every write path prunes them.
    Mutators return a new ledger.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Mapping[str, DayEntry] | None = None):
        pruned: Dict[str, DayEntry] = {
            k: v for k, v in (entries or {}).items() if not v.is_zero
        }
        self._entries = MappingProxyType(pruned)

    def __getitem__(self, key: str) -> DayEntry:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other) -> bool:
        if isinstance(other, TimeLedger):
            return dict(self._entries) == dict(other._entries)
        return NotImplemented

    def __repr__(self) -> str:
        return f"TimeLedger({dict(self._entries)!r})"

    def entry(self, key: str) -> DayEntry:
        """Missing keys read as an all-zero entry."""
        return self._entries.get(key, DayEntry())

    def set_hours(self, date_key: str, field_name: str, raw_value) -> "TimeLedger":
        value = parse_number(raw_value)
        if value < 0:
            raise ValidationError("Hours cannot be negative")
        updated = dict(self._entries)
        new_entry = self.entry(date_key).with_field(field_name, value)
        if new_entry.is_zero:
            updated.pop(date_key, None)
        else:
            updated[date_key] = new_entry
        return TimeLedger(updated)

    def for_month(self, year: int, month: int) -> Dict[str, DayEntry]:
        out = {}
        for key, entry in self._entries.items():
            d = parse_date_key(key)
            if d is not None and d.year == year and d.month == month:
                out[key] = entry
        return out

    def for_year(self, year: int) -> Dict[str, DayEntry]:
        out = {}
        for key, entry in self._entries.items():
            d = parse_date_key(key)
            if d is not None and d.year == year:
                out[key] = entry
        return out


@dataclass(frozen=True)
class Timesheet:
    """Ledger and settings as one immutable snapshot."""
    ledger: TimeLedger = field(default_factory=TimeLedger)
    settings: Settings = field(default_factory=Settings)


@dataclass(frozen=True)
class Totals:
    week_total: float = 0.0
    month_total: float = 0.0
    year_total: float = 0.0
    week_tax: float = 0.0
    month_tax: float = 0.0
    year_tax: float = 0.0
    week_net: float = 0.0
    month_net: float = 0.0
    year_net: float = 0.0


@dataclass(frozen=True)
class StatusMessage:
    text: str
    level: str = "info"
    expires_at: datetime | None = None

    @classmethod
    def create(cls, text: str, level: str = "info", now: datetime | None = None) -> "StatusMessage":
        now = now or datetime.now()
        return cls(text=text, level=level, expires_at=now + MESSAGE_TTL)

    def is_visible(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or datetime.now()) < self.expires_at
