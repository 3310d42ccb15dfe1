"""Logging for ``culvert_ledger``.

Library modules ask for ``get_logger("culvert_ledger.<module>")`` and never
attach handlers. Entrypoints (the CLI root callback) call
:func:`configure_logging` once; until then the package logger only carries a
``NullHandler`` so importing the package stays silent.

The level comes from the ``level`` argument, else ``CULVERT_LEDGER_LOG_LEVEL``
(a name such as ``debug`` or a number), else ``INFO``.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

PACKAGE_LOGGER = "culvert_ledger"
LEVEL_ENV = "CULVERT_LEDGER_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_CONFIGURED = False


def _resolve_level(level: int | str | None) -> int:
    if level is None:
        level = os.getenv(LEVEL_ENV)
    if isinstance(level, int):
        return level
    if level:
        text = level.strip().upper()
        if text.isdigit():
            return int(text)
        mapped = logging.getLevelNamesMapping().get(text)
        if mapped is not None:
            return mapped
    return logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Attach one ``StreamHandler`` to the package logger; later calls are no-ops."""

    global _CONFIGURED
    if _CONFIGURED:
        return

    pkg = logging.getLogger(PACKAGE_LOGGER)
    pkg.handlers = [h for h in pkg.handlers if not isinstance(h, logging.NullHandler)]

    resolved = _resolve_level(level)
    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
    pkg.addHandler(handler)
    pkg.setLevel(resolved)
    # Records stop at the package logger; the root logger may have its own handler.
    pkg.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    pkg = logging.getLogger(PACKAGE_LOGGER)
    if not _CONFIGURED and not pkg.handlers:
        pkg.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger"]
