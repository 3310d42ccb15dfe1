"""Data models and type aliases for ``culvert_ledger``.

The ledger itself is owned by an external store; everything here is either an
input handed to the engine for one call (``ScoreEntry``), a value the engine
computes (``CellWrite``, ``UpsertPlan``), or a read-only view rebuilt on every
extraction (``SeriesPoint``, ``UserSeries``, ``AlignedSeries``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Final

# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------

type Snapshot = list[list[str]]
"""Rows of text cells as read from the store; row 0 is the header.

Rows may be ragged (trailing empty cells omitted by the store); callers treat
a missing cell as ``""``.
"""

# Marker for "no point on this date" in aligned series. ``None`` serializes to
# JSON ``null``, which chart renderers draw as a gap.
ABSENT: Final = None

type MaybeValue = float | None


# ---------------------------------------------------------------------------
# Upsert inputs/outputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ScoreEntry:
    """One display name and its score for the target date."""

    name: str
    value: str


@dataclass(frozen=True, slots=True)
class CellWrite:
    """A range write: ``range`` in A1 notation and a 2-D block of values."""

    range: str
    values: list[list[str]]

    def as_dict(self) -> dict[str, object]:
        return {"range": self.range, "values": self.values}


@dataclass(frozen=True, slots=True)
class UpsertPlan:
    """Result of reconciling a batch against a snapshot.

    Attributes
    ----------
    writes:
        Cell writes to hand to ``LedgerStore.batch_write`` (empty for a no-op).
    date_col:
        0-based column holding the target date label.
    created_rows:
        Display names that did not resolve to an existing row and were
        appended, in append order.
    matched:
        ``(input name, resolved row name)`` for entries that resolved to an
        existing row by a non-exact (substring) match.
    """

    writes: list[CellWrite] = field(default_factory=list)
    date_col: int | None = None
    created_rows: tuple[str, ...] = ()
    matched: tuple[tuple[str, str], ...] = ()


# ---------------------------------------------------------------------------
# Series views
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SeriesPoint:
    label: str
    date: date
    value: float


@dataclass(frozen=True, slots=True)
class UserSeries:
    """A user's dated scores, ascending by date."""

    display_name: str
    points: tuple[SeriesPoint, ...]

    @property
    def labels(self) -> list[str]:
        return [p.label for p in self.points]

    @property
    def values(self) -> list[float]:
        return [p.value for p in self.points]


@dataclass(frozen=True, slots=True)
class AlignedSeries:
    """Two series over the union of their dates; gaps hold ``ABSENT``."""

    labels: tuple[str, ...]
    values_a: tuple[MaybeValue, ...]
    values_b: tuple[MaybeValue, ...]


__all__ = [
    "ABSENT",
    "AlignedSeries",
    "CellWrite",
    "MaybeValue",
    "ScoreEntry",
    "SeriesPoint",
    "Snapshot",
    "UpsertPlan",
    "UserSeries",
]
