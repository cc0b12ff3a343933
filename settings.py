"""
Configuration helpers.
Reads defaults from Streamlit secrets or environment variables and coerces
form input to safe values.
"""

import logging
import math
import os
from typing import Any, Dict, FrozenSet, Iterable, Optional, Union

import streamlit as st

from calc import DEFAULT_NON_WORKING_DAY, DEFAULT_REST_DAYS, WEEKDAY_CODES

logger = logging.getLogger("calendrier-paie.settings")

DEFAULT_WAITING_PERIOD_DAYS = 3
DEFAULT_WEEKLY_HOURS = 35.0
DEFAULT_LOG_LEVEL = 'INFO'


def get_secret(name: str, default=None):
    # prefer Streamlit secrets, fallback to env vars
    try:
        return st.secrets[name]
    except Exception:
        return os.getenv(name, default)


def coerce_int(value: Any, default: int, minimum: Optional[int] = 0) -> int:
    """
    Convert form or config input to an int, falling back on bad values.

    Args:
        value: Raw input (str, int, float or None)
        default: Returned when the input cannot be read as a number
        minimum: Lower bound applied to readable values (None for no bound)

    Returns:
        Integer safe to hand to the calc functions
    """
    try:
        result = int(float(str(value).strip().replace(',', '.')))
    except (TypeError, ValueError, OverflowError):
        logger.warning("Invalid integer %r, using %d", value, default)
        return default
    if minimum is not None and result < minimum:
        logger.warning("Integer %d below %d, clamping", result, minimum)
        return minimum
    return result


def coerce_float(value: Any, default: float, minimum: Optional[float] = 0.0) -> float:
    """Same as coerce_int, for hour amounts."""
    try:
        result = float(str(value).strip().replace(',', '.'))
    except (TypeError, ValueError):
        logger.warning("Invalid number %r, using %s", value, default)
        return default
    if not math.isfinite(result):
        logger.warning("Invalid number %r, using %s", value, default)
        return default
    if minimum is not None and result < minimum:
        logger.warning("Number %s below %s, clamping", result, minimum)
        return minimum
    return result


def _read_weekday(value: Union[str, int, None]) -> Optional[int]:
    if isinstance(value, int) and not isinstance(value, bool):
        return value if 0 <= value <= 6 else None
    if isinstance(value, str):
        code = value.strip().upper()[:3]
        if code in WEEKDAY_CODES:
            return WEEKDAY_CODES.index(code)
        if code.isdigit() and 0 <= int(code) <= 6:
            return int(code)
    return None


def parse_weekday(value: Union[str, int, None], default: int) -> int:
    """Read a weekday given as a code ('SUN') or a number (6)."""
    weekday = _read_weekday(value)
    if weekday is None:
        logger.warning("Invalid weekday %r, using %s", value, WEEKDAY_CODES[default])
        return default
    return weekday


def parse_weekdays(
    value: Union[str, Iterable, None],
    default: FrozenSet[int],
    allow_empty: bool = False,
) -> FrozenSet[int]:
    """
    Read a rest-day set given as 'SAT,SUN' or as a list of codes/numbers.

    A missing or unreadable value gives the default. An empty value gives
    the default too, unless allow_empty is set (a form where every rest day
    was unticked). A set covering the whole week is rejected since no day
    could ever be worked.
    """
    if value is None:
        return default
    items = value.split(',') if isinstance(value, str) else list(value)
    weekdays = set()
    for item in items:
        if isinstance(item, str) and not item.strip():
            continue
        weekday = _read_weekday(item)
        if weekday is None:
            logger.warning("Invalid rest day %r, using defaults", item)
            return default
        weekdays.add(weekday)
    if not weekdays and allow_empty:
        return frozenset()
    if not weekdays or len(weekdays) >= 7:
        logger.warning("Unusable rest days %r, using defaults", value)
        return default
    return frozenset(weekdays)


def load_settings() -> Dict[str, Any]:
    """
    Load calendar defaults.

    Returns:
        Dictionary with rest_days, non_working_day, waiting_period_days,
        weekly_hours and log_level
    """
    return {
        'rest_days': parse_weekdays(get_secret('PAIE_REST_DAYS'), DEFAULT_REST_DAYS),
        'non_working_day': parse_weekday(
            get_secret('PAIE_NON_WORKING_DAY', WEEKDAY_CODES[DEFAULT_NON_WORKING_DAY]),
            DEFAULT_NON_WORKING_DAY
        ),
        'waiting_period_days': coerce_int(
            get_secret('PAIE_WAITING_PERIOD_DAYS', DEFAULT_WAITING_PERIOD_DAYS),
            DEFAULT_WAITING_PERIOD_DAYS
        ),
        'weekly_hours': coerce_float(
            get_secret('PAIE_WEEKLY_HOURS', DEFAULT_WEEKLY_HOURS),
            DEFAULT_WEEKLY_HOURS
        ),
        'log_level': str(get_secret('PAIE_LOG_LEVEL', DEFAULT_LOG_LEVEL)).upper(),
    }


def configure_logging(level_name: str = DEFAULT_LOG_LEVEL) -> None:
    level = getattr(logging, level_name.upper(), None)
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
