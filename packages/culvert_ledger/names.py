"""Name normalization and fuzzy row lookup.

Matching is two-phase: an exact hit on the normalized name wins outright;
otherwise every indexed name that contains the input (or is contained by it)
is a candidate, and the candidate whose length is closest to the input's is
chosen. Ties go to the name registered first.

The policy is permissive on purpose: OCR output routinely drops or mangles
parts of a name, and a short nickname should still land on the full entry.
"""

from __future__ import annotations

import re
from collections.abc import Iterator

_WS_RE = re.compile(r"\s+")


def normalize_name(raw: str) -> str:
    """Trim, collapse whitespace runs, and case-fold ``raw``."""

    return _WS_RE.sub(" ", raw.strip()).casefold()


class NameIndex:
    """Insertion-ordered map of normalized name -> 0-based ledger row index.

    Iteration order is registration order. Re-registering an existing name
    updates its row but keeps its original position, so closest-length ties
    stay deterministic across calls.
    """

    __slots__ = ("_rows",)

    def __init__(self) -> None:
        self._rows: dict[str, int] = {}

    @classmethod
    def from_rows(cls, rows: list[list[str]]) -> NameIndex:
        """Index column 0 of every data row (row 1 onward), skipping blanks."""

        index = cls()
        for r in range(1, len(rows)):
            row = rows[r]
            name = normalize_name(str(row[0]) if row else "")
            if name:
                index.register(name, r)
        return index

    def register(self, normalized: str, row: int) -> None:
        self._rows[normalized] = row

    def get(self, normalized: str) -> int | None:
        return self._rows.get(normalized)

    def items(self) -> Iterator[tuple[str, int]]:
        return iter(self._rows.items())

    def __contains__(self, normalized: object) -> bool:
        return normalized in self._rows

    def __len__(self) -> int:
        return len(self._rows)


def find_row(index: NameIndex, input_name: str) -> int | None:
    """Resolve ``input_name`` to a row index, or ``None`` when nothing matches."""

    needle = normalize_name(input_name)
    if not needle:
        return None
    exact = index.get(needle)
    if exact is not None:
        return exact

    candidates = [
        (existing, row)
        for existing, row in index.items()
        if needle in existing or existing in needle
    ]
    if not candidates:
        return None

    # min() keeps the first of equal keys, i.e. registration order.
    _name, row = min(candidates, key=lambda c: abs(len(c[0]) - len(needle)))
    return row


__all__ = ["NameIndex", "find_row", "normalize_name"]
