"""
Configuration defaults.

Most values are plain module constants (like PACKAGE_DIR elsewhere in the
package). A few can be overridden per data directory through settings.json:

    {
      "class_name": "LKG",
      "academic_year": "2025-2026",
      "half_term_starts": {"A1": "09-01", "A2": "10-27", ...}
    }

CLI flags take precedence over both.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple

from lessoncal.halfterms import check_half_term_starts

log = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).resolve().parent

DATA_DIR_ENV = "LESSONCAL_DATA_DIR"
SETTINGS_FILE = "settings.json"

DEFAULT_CLASS_NAME = "LKG"

# Hours rendered by the week/day grids (8am .. 6pm)
DAY_VIEW_HOURS = list(range(8, 19))

DEFAULT_CLASS_START = "9:00"
DEFAULT_CLASS_END = "10:00"
DEFAULT_CLASS_COLOR = "#3B82F6"

EVENT_COLORS: Dict[str, str] = {
    "holiday": "#EF4444",
    "inset": "#8B5CF6",
    "event": "#F59E0B",
}

TERM_COLORS: Dict[str, str] = {
    "A1": "#F59E0B",
    "A2": "#EA580C",
    "SP1": "#10B981",
    "SP2": "#059669",
    "SM1": "#3B82F6",
    "SM2": "#6366F1",
}

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


def default_data_dir() -> Path:
    """
    Return the data directory: $LESSONCAL_DATA_DIR if set, else lessoncal/data/.
    """
    env = os.environ.get(DATA_DIR_ENV, "").strip()
    if env:
        return Path(env).expanduser()
    return PACKAGE_DIR / "data"


@dataclass
class Settings:
    data_dir: Path
    class_name: str = DEFAULT_CLASS_NAME
    academic_year: Optional[str] = None
    # {"A2": (10, 25), ...}; missing ids keep their default start
    half_term_starts: Dict[str, Tuple[int, int]] = field(default_factory=dict)


def _parse_month_day(value: str) -> Tuple[int, int]:
    parts = str(value).strip().split("-")
    if len(parts) != 2:
        raise ValueError(f"Invalid month-day value: {value!r}")
    return int(parts[0]), int(parts[1])


def load_settings(data_dir: str | Path | None = None) -> Settings:
    """
    Load settings.json from the data directory.

    Returns defaults if the file does not exist or is invalid.
    """
    base = Path(data_dir) if data_dir is not None else default_data_dir()
    settings = Settings(data_dir=base)

    path = base / SETTINGS_FILE
    if not path.exists():
        return settings

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
        log.warning("Ignoring unreadable settings file %s: %s", path, exc)
        return settings
    if not isinstance(raw, dict):
        log.warning("Ignoring settings file %s: expected an object", path)
        return settings

    name = str(raw.get("class_name", "") or "").strip()
    if name:
        settings.class_name = name
    year = str(raw.get("academic_year", "") or "").strip()
    if year:
        settings.academic_year = year

    starts = raw.get("half_term_starts")
    if isinstance(starts, dict):
        try:
            parsed = {str(k): _parse_month_day(v) for k, v in starts.items()}
            # same rules as the registry; a bad value keeps every default
            check_half_term_starts(parsed)
        except (TypeError, ValueError) as exc:
            log.warning("Ignoring half_term_starts in %s: %s", path, exc)
        else:
            settings.half_term_starts = parsed

    return settings
