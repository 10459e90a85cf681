# repository.py
from __future__ import annotations

import json
import logging
import math
from typing import Any, Dict

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool
from sqlalchemy import text
from sqlmodel import SQLModel, Field, Session, create_engine

from domain import (
    DEFAULT_CURRENCY,
    HOUR_FIELDS,
    DayEntry,
    Settings,
    StorageError,
    TimeLedger,
    Timesheet,
    ValidationError,
)

STORAGE_KEY = "timesheetData"


class KeyValueDB(SQLModel, table=True):
    __tablename__ = "kv_store"

    key: str = Field(primary_key=True)
    value: str


def build_engine(db_url: str, echo: bool = False):
    is_sqlite = db_url.startswith("sqlite")
    kwargs = {
        "echo": echo,
        "pool_pre_ping": True,
        "connect_args": {},
    }
    if is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
    else:
        # Serverless Postgres: no local pool, bounded connect
        kwargs["poolclass"] = NullPool
        kwargs["connect_args"] = {"connect_timeout": 10}
        if "sslmode=" not in db_url:
            db_url += ("&" if "?" in db_url else "?") + "sslmode=require"
    return create_engine(db_url, **kwargs)


# =========================
# Snapshot codec
# =========================
def _as_number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    value = float(value)
    if math.isnan(value) or math.isinf(value):
        return 0.0
    return value


def _entry_from_dict(raw: Any) -> DayEntry | None:
    if not isinstance(raw, dict):
        return None
    return DayEntry(**{f: max(0.0, _as_number(raw.get(f, 0))) for f in HOUR_FIELDS})


def snapshot_to_dict(sheet: Timesheet) -> Dict[str, Any]:
    s = sheet.settings
    return {
        "hourlyRate": s.hourly_rate,
        "hours": {
            key: {f: getattr(entry, f) for f in HOUR_FIELDS}
            for key, entry in sheet.ledger.items()
        },
        "taxRate": s.tax_rate,
        "currency": s.currency,
    }


def snapshot_from_dict(data: Any) -> Timesheet:
    """Builds a snapshot from decoded JSON, defaulting anything missing or mistyped."""
    if not isinstance(data, dict):
        raise ValidationError("Snapshot must be a JSON object")

    raw_hours = data.get("hours")
    entries: Dict[str, DayEntry] = {}
    if isinstance(raw_hours, dict):
        for key, raw in raw_hours.items():
            entry = _entry_from_dict(raw)
            if entry is not None:
                entries[str(key)] = entry

    currency = data.get("currency")
    if not isinstance(currency, str) or not currency:
        currency = DEFAULT_CURRENCY

    settings = Settings(
        hourly_rate=max(0.0, _as_number(data.get("hourlyRate"))),
        tax_rate=min(100.0, max(0.0, _as_number(data.get("taxRate")))),
        currency=currency,
    )
    return Timesheet(ledger=TimeLedger(entries), settings=settings)


def dumps_snapshot(sheet: Timesheet) -> str:
    return json.dumps(snapshot_to_dict(sheet), ensure_ascii=False)


def loads_snapshot(payload: str | bytes) -> Timesheet:
    try:
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8")
        data = json.loads(payload)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValidationError(f"Invalid JSON: {e}") from e
    return snapshot_from_dict(data)


# =========================
# Single-key store
# =========================
class SnapshotRepository:
    """Stores the whole timesheet as one JSON value under a single key."""
    def __init__(self, url: str = "sqlite:///timesheet.db", key: str = STORAGE_KEY, echo: bool = False):
        self.url = url
        self.key = key
        self.engine = build_engine(url, echo=echo)

        # Postgres: fail fast on a bad connection
        if not url.startswith("sqlite"):
            try:
                with self.engine.connect() as conn:
                    conn.execute(text("select 1"))
            except SQLAlchemyError as e:
                raise StorageError(f"Could not connect to Postgres: {e}") from e

        SQLModel.metadata.create_all(self.engine)

    def read_raw(self) -> str | None:
        try:
            with Session(self.engine) as session:
                row = session.get(KeyValueDB, self.key)
                return row.value if row else None
        except SQLAlchemyError as e:
            raise StorageError(f"Could not read {self.key!r}: {e}") from e

    def write_raw(self, value: str) -> None:
        try:
            with Session(self.engine) as session:
                row = session.get(KeyValueDB, self.key)
                if row is None:
                    row = KeyValueDB(key=self.key, value=value)
                else:
                    row.value = value
                session.add(row)
                session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Could not write {self.key!r}: {e}") from e

    def delete(self) -> None:
        try:
            with Session(self.engine) as session:
                row = session.get(KeyValueDB, self.key)
                if row is not None:
                    session.delete(row)
                    session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Could not delete {self.key!r}: {e}") from e

    def load(self) -> Timesheet | None:
        """Returns the stored snapshot, None when nothing is stored.

        Raises ValidationError for a corrupt value and StorageError when the store fails.
        """
        raw = self.read_raw()
        if raw is None:
            return None
        return loads_snapshot(raw)

    def save(self, sheet: Timesheet) -> None:
        self.write_raw(dumps_snapshot(sheet))
        logging.debug("Saved timesheet snapshot (%d entries)", len(sheet.ledger))


__all__ = [
    "KeyValueDB",
    "SnapshotRepository",
    "STORAGE_KEY",
    "build_engine",
    "dumps_snapshot",
    "loads_snapshot",
    "snapshot_from_dict",
    "snapshot_to_dict",
]
