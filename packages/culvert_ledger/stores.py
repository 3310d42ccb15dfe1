"""Ledger store contract and an in-memory implementation.

A store is a 2-D grid of text cells addressed with A1 ranges. The engine only
needs three operations:

- ``read_range(ref)``: rows for ``ref``; trailing empty cells and trailing
  empty rows are omitted, as the Sheets API does;
- ``batch_write(writes)``: apply each ``CellWrite`` in order (later writes to
  the same cell win);
- ``append_rows(rows)``: add rows below the last non-empty row.

Concrete stores: :class:`InMemoryLedgerStore` (here),
``culvert_ledger.sql_store.SqlLedgerStore`` and
``culvert_ledger.sheets_client.SheetsRestStore``.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from .addressing import A1Range, parse_a1_range
from .models import CellWrite, Snapshot


@runtime_checkable
class LedgerStore(Protocol):
    sheet_name: str

    def read_range(self, ref: str) -> Snapshot: ...

    def batch_write(self, writes: Sequence[CellWrite]) -> None: ...

    def append_rows(self, rows: Sequence[Sequence[str]]) -> None: ...


def trim_grid(rows: Snapshot) -> Snapshot:
    """Drop trailing empty cells per row, then trailing empty rows."""

    out: Snapshot = []
    for row in rows:
        end = len(row)
        while end > 0 and row[end - 1] == "":
            end -= 1
        out.append(list(row[:end]))
    while out and not out[-1]:
        out.pop()
    return out


def window(cells: dict[tuple[int, int], str], rng: A1Range) -> Snapshot:
    """Materialize the cells inside ``rng`` as trimmed rows.

    Row 0 of the result corresponds to ``rng.start_row``.
    """

    rows: Snapshot = []
    for (r, c), value in cells.items():
        if r < rng.start_row or c < rng.start_col:
            continue
        if rng.end_row is not None and r > rng.end_row:
            continue
        if rng.end_col is not None and c > rng.end_col:
            continue
        rr, cc = r - rng.start_row, c - rng.start_col
        while len(rows) <= rr:
            rows.append([])
        row = rows[rr]
        while len(row) <= cc:
            row.append("")
        row[cc] = value
    return trim_grid(rows)


def expand_write(write: CellWrite) -> list[tuple[int, int, str]]:
    """Flatten a range write into ``(row, col, value)`` triples (0-based)."""

    rng = parse_a1_range(write.range)
    out: list[tuple[int, int, str]] = []
    for i, row in enumerate(write.values):
        for j, value in enumerate(row):
            out.append((rng.start_row + i, rng.start_col + j, "" if value is None else str(value)))
    return out


class InMemoryLedgerStore:
    """Dict-of-cells store. Useful for tests and ``--backend memory`` dry runs."""

    def __init__(self, rows: Snapshot | None = None, *, sheet_name: str = "Sheet1") -> None:
        self.sheet_name = sheet_name
        self.cells: dict[tuple[int, int], str] = {}
        self.write_log: list[CellWrite] = []
        for r, row in enumerate(rows or []):
            for c, value in enumerate(row):
                if value != "":
                    self.cells[(r, c)] = str(value)

    def read_range(self, ref: str) -> Snapshot:
        return window(self.cells, parse_a1_range(ref))

    def batch_write(self, writes: Sequence[CellWrite]) -> None:
        for write in writes:
            self.write_log.append(write)
            for r, c, value in expand_write(write):
                if value == "":
                    self.cells.pop((r, c), None)
                else:
                    self.cells[(r, c)] = value

    def append_rows(self, rows: Sequence[Sequence[str]]) -> None:
        next_row = max((r for r, _ in self.cells), default=-1) + 1
        for i, row in enumerate(rows):
            for c, value in enumerate(row):
                if value != "":
                    self.cells[(next_row + i, c)] = str(value)

    def snapshot(self) -> Snapshot:
        return window(self.cells, A1Range(None, 0, 0, None, None))


__all__ = [
    "InMemoryLedgerStore",
    "LedgerStore",
    "expand_write",
    "trim_grid",
    "window",
]
