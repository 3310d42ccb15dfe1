"""Time series views over a ledger snapshot.

- :func:`extract` pulls one user's dated scores. A column is dropped when its
  header is not a date or the user's cell is not a number.
- :func:`align` lines two user series up over the union of their dates,
  leaving ``ABSENT`` where a series has no point.
- :func:`aggregate` totals every dated column across all users. Blank or
  non-numeric cells add nothing, but the column still yields a point.

The skip-vs-zero difference between ``extract`` and ``aggregate`` is
deliberate and relied on by the charts.
"""

from __future__ import annotations

import math
import re
from datetime import date

from .dates import try_parse_header_date
from .models import ABSENT, AlignedSeries, MaybeValue, SeriesPoint, Snapshot, UserSeries
from .names import normalize_name


_DECIMAL = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?", re.ASCII)


def _cell(row: list[str], col: int) -> str:
    return str(row[col]) if col < len(row) and row[col] is not None else ""


def parse_score(raw: str) -> float | None:
    """Parse a score cell: thousands separators stripped, plain ASCII decimals only."""

    cleaned = raw.replace(",", "").strip()
    if not _DECIMAL.fullmatch(cleaned):
        return None
    value = float(cleaned)
    return value if math.isfinite(value) else None


def extract(snapshot: Snapshot, name: str) -> UserSeries | None:
    """Return the dated points for ``name`` or ``None`` when no row matches.

    Lookup is by exact normalized name only; the fuzzy fallback used when
    writing is not applied on reads.
    """

    wanted = normalize_name(name)
    header = snapshot[0] if snapshot else []
    target = next(
        (row for row in snapshot[1:] if normalize_name(_cell(row, 0)) == wanted),
        None,
    )
    if target is None:
        return None

    points: list[SeriesPoint] = []
    for col in range(1, len(header)):
        label = _cell(header, col).strip()
        d = try_parse_header_date(label)
        value = parse_score(_cell(target, col))
        if d is None or value is None:
            continue
        points.append(SeriesPoint(label=label, date=d, value=value))

    points.sort(key=lambda p: p.date)
    return UserSeries(display_name=_cell(target, 0), points=tuple(points))


def align(a: UserSeries, b: UserSeries) -> AlignedSeries:
    """Merge two series over the sorted union of their dates."""

    labels_by_date: dict[date, str] = {}
    for p in a.points:
        labels_by_date[p.date] = p.label
    for p in b.points:
        labels_by_date[p.date] = p.label

    a_values = {p.date: p.value for p in a.points}
    b_values = {p.date: p.value for p in b.points}
    keys = sorted(labels_by_date)

    def _at(values: dict[date, float], d: date) -> MaybeValue:
        return values[d] if d in values else ABSENT

    return AlignedSeries(
        labels=tuple(labels_by_date[d] for d in keys),
        values_a=tuple(_at(a_values, d) for d in keys),
        values_b=tuple(_at(b_values, d) for d in keys),
    )


def aggregate(snapshot: Snapshot) -> list[SeriesPoint]:
    """Sum each dated column over all data rows, ascending by date."""

    if not snapshot:
        return []
    header = snapshot[0]
    points: list[SeriesPoint] = []
    for col in range(1, len(header)):
        label = _cell(header, col).strip()
        d = try_parse_header_date(label)
        if d is None:
            continue
        total = 0.0
        for row in snapshot[1:]:
            value = parse_score(_cell(row, col))
            if value is not None:
                total += value
        points.append(SeriesPoint(label=label, date=d, value=total))

    points.sort(key=lambda p: p.date)
    return points


__all__ = ["aggregate", "align", "extract", "parse_score"]
