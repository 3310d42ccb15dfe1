"""Spreadsheet-style A1 addressing.

Internal row/column indices are 0-based; A1 notation is 1-based with
bijective base-26 column letters (``A``=1 .. ``Z``=26, ``AA``=27). There is no
zero digit, so plain base conversion does not apply.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_CELL_RE = re.compile(r"([A-Za-z]*)(\d*)", re.ASCII)


def column_label(n: int) -> str:
    """Return the letters for 1-based column ``n`` (``1 -> "A"``, ``27 -> "AA"``)."""

    if n < 1:
        raise ValueError(f"column number must be >= 1, got {n}")
    letters: list[str] = []
    x = n
    while x > 0:
        x, rem = divmod(x - 1, 26)
        letters.append(chr(ord("A") + rem))
    return "".join(reversed(letters))


def column_index(label: str) -> int:
    """Inverse of :func:`column_label`: ``"AA" -> 27``."""

    s = label.strip().upper()
    if not s or not s.isascii() or not s.isalpha():
        raise ValueError(f"invalid column label: {label!r}")
    n = 0
    for ch in s:
        n = n * 26 + (ord(ch) - ord("A") + 1)
    return n


def cell_ref(row: int, col: int) -> str:
    """A1 reference for 0-based ``(row, col)``: ``(2, 1) -> "B3"``."""

    return f"{column_label(col + 1)}{row + 1}"


def a1_range(sheet: str, start: str, end: str | None = None) -> str:
    return f"{sheet}!{start}:{end}" if end else f"{sheet}!{start}"


@dataclass(frozen=True, slots=True)
class A1Range:
    """A parsed range with 0-based inclusive bounds.

    ``end_row``/``end_col`` are ``None`` for open-ended ranges such as
    ``A1:ZZ`` (no row bound) or ``A:Z``.
    """

    sheet: str | None
    start_row: int
    start_col: int
    end_row: int | None
    end_col: int | None


def _parse_cell(token: str, ref: str) -> tuple[int | None, int | None]:
    m = _CELL_RE.fullmatch(token.strip())
    if m is None or not (m.group(1) or m.group(2)):
        raise ValueError(f"invalid A1 range: {ref!r}")
    letters, digits = m.groups()
    col = column_index(letters) - 1 if letters else None
    row = int(digits) - 1 if digits else None
    if row is not None and row < 0:
        raise ValueError(f"invalid A1 range: {ref!r}")
    return row, col


def parse_a1_range(ref: str) -> A1Range:
    """Parse ``"Sheet1!B2:C5"``, ``"A1:ZZ"``, ``"A:Z"`` or a single cell."""

    sheet: str | None = None
    body = ref
    if "!" in ref:
        sheet, body = ref.rsplit("!", 1)
        sheet = sheet.strip("'")
    start_s, _, end_s = body.partition(":")
    start_row, start_col = _parse_cell(start_s, ref)
    if end_s:
        end_row, end_col = _parse_cell(end_s, ref)
    else:
        end_row, end_col = start_row, start_col
    return A1Range(
        sheet=sheet,
        start_row=start_row or 0,
        start_col=start_col or 0,
        end_row=end_row,
        end_col=end_col,
    )


__all__ = [
    "A1Range",
    "a1_range",
    "cell_ref",
    "column_index",
    "column_label",
    "parse_a1_range",
]
