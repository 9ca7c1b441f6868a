"""
Calendar helpers for the flat-file tables.

Dates travel through the store as zero-padded ``YYYY-MM-DD`` strings, so
lexicographic comparison is chronological comparison. Nothing here does I/O.
"""
import re
from datetime import date, datetime, timedelta

from .errors import InvalidDateFormat

ISO_DATE = re.compile(r"(\d{4})-(\d{1,2})-(\d{1,2})")
DMY_DATE = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})")

MIN_YEAR = 2024
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def _iso_parts(value: str):
    match = ISO_DATE.fullmatch((value or "").strip())
    if not match:
        raise ValueError(f"Invalid date: {value!r}")
    return tuple(int(part) for part in match.groups())


def _ordinal(value: str) -> int:
    # Out-of-range months and days roll over into the next month/year:
    # 2024-02-31 counts as 2024-03-02.
    try:
        year, month, day = _iso_parts(value)
        year += (month - 1) // 12
        month = (month - 1) % 12 + 1
        return date(year, month, 1).toordinal() + day - 1
    except ValueError as exc:
        raise InvalidDateFormat(f"Invalid date: {value!r}") from exc


def validate_date(value: str) -> bool:
    """YYYY-MM-DD with year >= 2024, month 1-12 and day 1-31.

    Month lengths are deliberately not checked: day 31 passes for every month.
    """
    try:
        year, month, day = _iso_parts(value)
    except ValueError:
        return False
    return year >= MIN_YEAR and 1 <= month <= 12 and 1 <= day <= 31


def parse_date(value: str) -> str | None:
    """Normalise YYYY-MM-DD or DD/MM/YYYY input to YYYY-MM-DD, or None."""
    value = (value or "").strip()
    match = ISO_DATE.fullmatch(value)
    if match:
        year, month, day = (int(part) for part in match.groups())
        return f"{year:04d}-{month:02d}-{day:02d}"
    match = DMY_DATE.fullmatch(value)
    if match:
        day, month, year = (int(part) for part in match.groups())
        return f"{year:04d}-{month:02d}-{day:02d}"
    return None


def night_count(check_in: str, check_out: str) -> int:
    """Calendar days between two canonical dates; negative when reversed."""
    return _ordinal(check_out) - _ordinal(check_in)


def today() -> str:
    return date.today().isoformat()


def now_timestamp() -> str:
    return datetime.now().strftime(TIMESTAMP_FORMAT)


def is_today_or_future(value: str, today_value: str | None = None) -> bool:
    return value >= (today_value or today())


def week_range(value: str) -> tuple[str, str]:
    """Monday and Sunday of the ISO week containing ``value``."""
    try:
        day = date.fromordinal(_ordinal(value))
        monday = day - timedelta(days=day.weekday())
        sunday = monday + timedelta(days=6)
    except (ValueError, OverflowError) as exc:
        raise InvalidDateFormat(f"Date out of range: {value!r}") from exc
    return monday.isoformat(), sunday.isoformat()
