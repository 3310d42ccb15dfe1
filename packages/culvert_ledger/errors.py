"""Exception types raised by ``culvert_ledger``.

Lookup misses (unknown user, no matching row) are ordinary return values
(``None``), and unparseable cells are skipped by the series helpers; neither is
represented here.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for all package errors."""


class InvalidDate(LedgerError, ValueError):
    """A date string is malformed or names a day the calendar does not have."""

    def __init__(self, raw: str, reason: str = "expected MM/DD/YY") -> None:
        super().__init__(f"invalid date {raw!r}: {reason}")
        self.raw = raw
        self.reason = reason


class PayloadError(LedgerError, ValueError):
    """Extraction output (or manual JSON) contained no usable score rows."""


class UpstreamFailure(LedgerError):
    """A network or store call failed.

    ``status`` carries the HTTP status code when the failure came from a
    non-2xx response; it is ``None`` for transport-level errors.
    """

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class ConfigError(LedgerError, RuntimeError):
    """Required configuration is missing or inconsistent."""


__all__ = [
    "ConfigError",
    "InvalidDate",
    "LedgerError",
    "PayloadError",
    "UpstreamFailure",
]
