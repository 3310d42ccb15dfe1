"""Date parsing and header-label formatting.

Three representations are in play:

- command dates typed by users: ``MM/DD/YY`` (two-digit year, 2000-based);
- column-header labels in the ledger: ``M/D/YY`` as written by the upsert
  engine, though older sheets may carry ``MM/DD/YYYY``;
- ``datetime.date`` as the internal sortable key.

Validation goes through ``datetime.date`` construction, so impossible days
(``02/30``) are rejected instead of being rolled into the next month.
"""

from __future__ import annotations

import re
from datetime import date

from .errors import InvalidDate

_COMMAND_DATE_RE = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{2})", re.ASCII)
_HEADER_DATE_RE = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{2}|\d{4})", re.ASCII)


def _build_date(raw: str, year: int, month: int, day: int) -> date:
    if not 1000 <= year <= 9999:
        raise InvalidDate(raw, f"year {year} out of range")
    if not 1 <= month <= 12:
        raise InvalidDate(raw, f"month {month} out of range")
    try:
        return date(year, month, day)
    except ValueError as exc:
        raise InvalidDate(raw, str(exc)) from exc


def parse_command_date(raw: str) -> date:
    """Parse a user-supplied ``MM/DD/YY`` date (1–2 digit month/day)."""

    m = _COMMAND_DATE_RE.fullmatch(raw)
    if m is None:
        raise InvalidDate(raw)
    month, day, yy = (int(g) for g in m.groups())
    return _build_date(raw, 2000 + yy, month, day)


def parse_header_date(raw: str) -> date:
    """Parse a ledger header label in ``MM/DD/YY`` or ``MM/DD/YYYY`` form."""

    m = _HEADER_DATE_RE.fullmatch(raw.strip())
    if m is None:
        raise InvalidDate(raw, "expected MM/DD/YY or MM/DD/YYYY")
    month_s, day_s, year_s = m.groups()
    year = 2000 + int(year_s) if len(year_s) == 2 else int(year_s)
    return _build_date(raw, year, int(month_s), int(day_s))


def try_parse_header_date(raw: str) -> date | None:
    try:
        return parse_header_date(raw)
    except InvalidDate:
        return None


def format_header_label(d: date) -> str:
    """Render ``d`` as ``M/D/YY`` (no padding on month/day, two-digit year)."""

    return f"{d.month}/{d.day}/{d.year % 100:02d}"


def to_iso(d: date) -> str:
    return d.isoformat()


__all__ = [
    "format_header_label",
    "parse_command_date",
    "parse_header_date",
    "to_iso",
    "try_parse_header_date",
]
