"""Public interface for the ``culvert_ledger`` package.

A tabular score ledger: rows are display names, columns are dated snapshots.
This module only re-exports the engine functions and models; stores, HTTP
clients and the CLI live in their own modules.
"""

from .dates import format_header_label, parse_command_date, parse_header_date
from .errors import ConfigError, InvalidDate, LedgerError, PayloadError, UpstreamFailure
from .ledger import plan_upsert, upsert
from .models import (
    ABSENT,
    AlignedSeries,
    CellWrite,
    ScoreEntry,
    SeriesPoint,
    UpsertPlan,
    UserSeries,
)
from .names import find_row, normalize_name
from .series import aggregate, align, extract
from .stores import InMemoryLedgerStore, LedgerStore

__all__ = [
    # Engine
    "aggregate",
    "align",
    "extract",
    "find_row",
    "format_header_label",
    "normalize_name",
    "parse_command_date",
    "parse_header_date",
    "plan_upsert",
    "upsert",
    # Stores
    "InMemoryLedgerStore",
    "LedgerStore",
    # Models / types
    "ABSENT",
    "AlignedSeries",
    "CellWrite",
    "ScoreEntry",
    "SeriesPoint",
    "UpsertPlan",
    "UserSeries",
    # Errors
    "ConfigError",
    "InvalidDate",
    "LedgerError",
    "PayloadError",
    "UpstreamFailure",
]
