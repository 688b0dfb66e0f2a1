"""Date parsing and month bucketing for filters, charts and imports."""

import re
from datetime import date, datetime, time

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_SLASH_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_LOOSE_DMY = re.compile(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{4})$")


def parse_query_date(raw: str | None) -> date | None:
    """Parse a query-string date: YYYY-MM-DD, MM/DD/YYYY or DD/MM/YYYY.

    Slash dates are month-first unless the first part is greater than 12.
    Returns None for empty or unparseable input.
    """
    if not raw:
        return None
    raw = raw.strip()
    if _ISO_DATE.match(raw):
        try:
            return date.fromisoformat(raw)
        except ValueError:
            return None
    m = _SLASH_DATE.match(raw)
    if m:
        a, b, y = (int(p) for p in m.groups())
        mm, dd = (b, a) if a > 12 else (a, b)
        try:
            return date(y, mm, dd)
        except ValueError:
            return None
    try:
        return datetime.fromisoformat(raw).date()
    except ValueError:
        return None


def parse_loose_date(raw: str | None) -> date | None:
    """Parse an imported spreadsheet date. Slash/dash dates are day-first."""
    if not raw:
        return None
    t = str(raw).strip()
    if re.match(r"^\d{4}-\d{2}-\d{2}", t):
        try:
            return datetime.fromisoformat(t[:10]).date()
        except ValueError:
            return None
    m = _LOOSE_DMY.match(t)
    if m:
        day, month, year = (int(p) for p in m.groups())
        try:
            return date(year, month, day)
        except ValueError:
            return None
    try:
        return datetime.fromisoformat(t).date()
    except ValueError:
        return None


def start_of_day(d: date) -> datetime:
    return datetime.combine(d, time.min)


def end_of_day(d: date) -> datetime:
    return datetime.combine(d, time.max)


def month_key(d: date) -> str:
    return f"{d.year}-{d.month:02d}"


def month_span(start: date, end: date) -> list[str]:
    """Every YYYY-MM bucket from start's month through end's month."""
    buckets = []
    y, m = start.year, start.month
    while (y, m) <= (end.year, end.month):
        buckets.append(f"{y}-{m:02d}")
        m += 1
        if m > 12:
            y, m = y + 1, 1
    return buckets


def default_chart_range(today: date) -> tuple[date, date]:
    """Last 12 months inclusive, from the first day of the month 11 months back."""
    y, m = today.year, today.month - 11
    if m < 1:
        y, m = y - 1, m + 12
    return date(y, m, 1), today
