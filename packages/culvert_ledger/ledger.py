"""Ledger upsert engine.

Given a snapshot of the name x date grid, a target date label, and a batch of
``ScoreEntry`` values, compute the cell writes that bring the store in line
with the batch. The function is pure: the caller's snapshot is copied, never
mutated, and nothing is retained between calls.

Write set (in order):

1. one single-cell write per entry at ``(resolved row, date column)``;
2. the name-column header (``A1``);
3. the date-column header label (``<col>1``);
4. the whole name column ``A2:A<n+1>``, covering any appended rows.

The trailing header/name-column writes keep the store consistent when two
writers raced to append rows; the store is last-writer-wins per cell.
"""

from __future__ import annotations

from collections.abc import Iterable

from .addressing import a1_range, cell_ref, column_label
from .logging_setup import get_logger
from .models import CellWrite, ScoreEntry, Snapshot, UpsertPlan
from .names import NameIndex, find_row, normalize_name

DEFAULT_NAME_HEADER = "Name"

_logger = get_logger("culvert_ledger.ledger")


def _locate_date_column(header: list[str], date_label: str) -> int:
    for col in range(1, len(header)):
        if header[col] == date_label:
            return col
    col = max(1, len(header))
    while len(header) <= col:
        header.append("")
    header[col] = date_label
    return col


def plan_upsert(
    snapshot: Snapshot,
    date_label: str,
    entries: Iterable[ScoreEntry],
    *,
    sheet_name: str = "Sheet1",
    name_header: str = DEFAULT_NAME_HEADER,
) -> UpsertPlan:
    """Reconcile ``entries`` for ``date_label`` against ``snapshot``.

    Entries with a blank name or value are ignored; a batch with no usable
    entries produces an empty plan.
    """

    usable = [e for e in entries if e.name.strip() and e.value.strip()]
    if not usable:
        return UpsertPlan()

    values: Snapshot = [[str(c) for c in row] for row in snapshot]
    if not values:
        values.append([])
    header = values[0]
    if not header:
        header.append("")
    if not header[0].strip():
        header[0] = name_header

    date_col = _locate_date_column(header, date_label)
    index = NameIndex.from_rows(values)

    writes: list[CellWrite] = []
    created: list[str] = []
    matched: list[tuple[str, str]] = []

    for entry in usable:
        normalized = normalize_name(entry.name)
        row = find_row(index, normalized)
        if row is None:
            row = len(values)
            values.append([entry.name])
            index.register(normalized, row)
            created.append(entry.name)
        elif normalized not in index:
            matched.append((entry.name, values[row][0]))
        writes.append(
            CellWrite(range=a1_range(sheet_name, cell_ref(row, date_col)), values=[[entry.value]])
        )

    names = [[str(row[0]) if row else ""] for row in values[1:]]
    writes.append(CellWrite(range=a1_range(sheet_name, "A1"), values=[[header[0]]]))
    writes.append(
        CellWrite(
            range=a1_range(sheet_name, f"{column_label(date_col + 1)}1"),
            values=[[date_label]],
        )
    )
    writes.append(
        CellWrite(range=a1_range(sheet_name, "A2", f"A{len(names) + 1}"), values=names)
    )

    if matched:
        _logger.info(
            "fuzzy-matched %d name(s) for %s: %s",
            len(matched),
            date_label,
            ", ".join(f"{src!r}->{dst!r}" for src, dst in matched),
        )
    _logger.debug(
        "planned %d write(s) for %s (col %s, %d new row(s))",
        len(writes),
        date_label,
        column_label(date_col + 1),
        len(created),
    )
    return UpsertPlan(
        writes=writes,
        date_col=date_col,
        created_rows=tuple(created),
        matched=tuple(matched),
    )


def upsert(
    snapshot: Snapshot,
    date_label: str,
    entries: Iterable[ScoreEntry],
    *,
    sheet_name: str = "Sheet1",
    name_header: str = DEFAULT_NAME_HEADER,
) -> list[CellWrite]:
    """Return only the write set from :func:`plan_upsert`."""

    return plan_upsert(
        snapshot, date_label, entries, sheet_name=sheet_name, name_header=name_header
    ).writes


__all__ = ["DEFAULT_NAME_HEADER", "plan_upsert", "upsert"]
