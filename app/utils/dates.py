# app/utils/dates.py
import datetime
import re
from typing import Optional

from openpyxl.utils.datetime import from_excel

ISO_FORMAT = "%Y-%m-%d"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def format_cell_date(value) -> str:
    """
    Render a date cell as stored text.

    Native dates become YYYY-MM-DD, numbers are read as spreadsheet date
    serials, anything else is kept as trimmed text.
    """
    if value is None:
        return ""
    if isinstance(value, (datetime.datetime, datetime.date)):
        return value.strftime(ISO_FORMAT)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            converted = from_excel(value)
        except (ValueError, OverflowError):
            return cell_to_text(value)
        if isinstance(converted, datetime.datetime):
            return converted.strftime(ISO_FORMAT)
        return cell_to_text(value)
    return str(value).strip()


def cell_to_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        # spreadsheets hand back 12345.0 for a typed-in 12345
        return str(int(value))
    if isinstance(value, datetime.datetime):
        return value.isoformat(sep=" ")
    return str(value).strip()


def parse_aging(value) -> int:
    """Leading integer of the value, 0 when there is none. Never negative."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(value, 0)
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return 0
        return max(int(value), 0)
    match = _LEADING_INT.match(str(value))
    if not match:
        return 0
    return max(int(match.group(1)), 0)


def is_day_first(stored: str) -> bool:
    """True for DD-MM-YYYY shaped text (three hyphen parts, first not a year)."""
    parts = stored.split("-")
    return len(parts) == 3 and len(parts[0]) != 4


def day_first_to_iso(stored: str) -> Optional[str]:
    stored = (stored or "").strip()
    if not is_day_first(stored):
        return None
    day, month, year = stored.split("-")
    return f"{year}-{month}-{day}"
