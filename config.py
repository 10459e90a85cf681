# config.py
# Environment configuration and logging setup.
from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Mapping, Optional
from zoneinfo import ZoneInfo

from repository import STORAGE_KEY

LOG_FORMAT = '[%(asctime)s] <%(module)s> %(levelname)s:  %(message)s'
LOG_DATEFMT = '%Y-%m-%d %H:%M:%S'
DEFAULT_LOG_LEVEL = "INFO"


def _pick_data_dir(environ: Mapping[str, str]) -> Path:
    candidates = []
    env = environ.get("DATA_DIR")
    if env:
        candidates.append(Path(env))
    candidates += [Path("/data"), Path.cwd() / "data"]

    for p in candidates:
        try:
            p.mkdir(parents=True, exist_ok=True)
            t = p / ".rwtest"
            t.write_text("ok")
            t.unlink(missing_ok=True)
            return p
        except OSError:
            continue
    return Path.cwd()


@dataclass(frozen=True)
class Config:
    data_dir: Path
    database_url: str
    timezone: Optional[ZoneInfo] = None
    log_level: str = DEFAULT_LOG_LEVEL
    storage_key: str = STORAGE_KEY

    def now(self) -> datetime:
        """Current local time; naive host time unless a zone is configured."""
        if self.timezone is None:
            return datetime.now()
        return datetime.now(self.timezone)


def load_config(environ: Mapping[str, str] | None = None) -> Config:
    environ = os.environ if environ is None else environ
    data_dir = _pick_data_dir(environ)
    default_sqlite = f"sqlite:///{(data_dir / 'timesheet.db').as_posix()}"

    tz_name = environ.get("TIMESHEET_TZ")
    return Config(
        data_dir=data_dir,
        database_url=environ.get("DATABASE_URL", default_sqlite),
        timezone=ZoneInfo(tz_name) if tz_name else None,
        log_level=environ.get("TIMESHEET_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
    )


def setup_logging(level: int | str = DEFAULT_LOG_LEVEL) -> None:
    """Configures the root logger with a single stdout handler."""
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Invalid logging level: {level!r}")
        level = resolved

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT))
    handler.setLevel(level)
    root_logger.addHandler(handler)
