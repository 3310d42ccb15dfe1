# ruff: noqa: I001
"""SQL-backed ledger store.

Cells live in ``ledger_cells`` (see ``db.models.ledger``), one row per
non-empty cell, keyed by ``(sheet_name, row_idx, col_idx)``. Sessions come from
``db.client.session_scope`` so each ``batch_write`` is a single transaction.

Within one batch, writes apply in order; a cell cleared and then rewritten in
the same batch ends up updated in place rather than deleted and re-inserted.
"""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import func, inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db import Base
from db.client import get_engine, session_scope
from db.models.ledger import LedgerCell
from .addressing import parse_a1_range
from .errors import UpstreamFailure
from .logging_setup import get_logger
from .models import CellWrite, Snapshot
from .stores import expand_write, window

_logger = get_logger("culvert_ledger.sql_store")


def init_schema(*, database_url: str | None = None) -> None:
    """Create the ledger tables if missing (Alembic is preferred in deployments)."""

    Base.metadata.create_all(bind=get_engine(database_url=database_url))


class SqlLedgerStore:
    def __init__(self, *, database_url: str | None = None, sheet_name: str = "Sheet1") -> None:
        self.database_url = database_url
        self.sheet_name = sheet_name

    def _load(self, session: Session) -> dict[tuple[int, int], LedgerCell]:
        stmt = select(LedgerCell).where(LedgerCell.sheet_name == self.sheet_name)
        return {(c.row_idx, c.col_idx): c for c in session.scalars(stmt)}

    def read_range(self, ref: str) -> Snapshot:
        rng = parse_a1_range(ref)
        try:
            with session_scope(database_url=self.database_url) as session:
                cells = {k: c.value for k, c in self._load(session).items()}
        except SQLAlchemyError as exc:
            raise UpstreamFailure(f"ledger read failed: {exc}") from exc
        return window(cells, rng)

    def batch_write(self, writes: Sequence[CellWrite]) -> None:
        if not writes:
            return
        try:
            with session_scope(database_url=self.database_url) as session:
                existing = self._load(session)
                touched = 0
                for write in writes:
                    for r, c, value in expand_write(write):
                        touched += 1
                        cell = existing.get((r, c))
                        if cell is None:
                            if value == "":
                                continue
                            cell = LedgerCell(
                                sheet_name=self.sheet_name, row_idx=r, col_idx=c, value=value
                            )
                            session.add(cell)
                            existing[(r, c)] = cell
                        else:
                            cell.value = value
                for cell in existing.values():
                    if cell.value != "":
                        continue
                    state = inspect(cell)
                    if state.persistent:
                        session.delete(cell)
                    elif state.pending:
                        session.expunge(cell)
        except SQLAlchemyError as exc:
            raise UpstreamFailure(f"ledger write failed: {exc}") from exc
        _logger.debug("applied %d range write(s), %d cell(s)", len(writes), touched)

    def append_rows(self, rows: Sequence[Sequence[str]]) -> None:
        try:
            with session_scope(database_url=self.database_url) as session:
                last = session.scalar(
                    select(func.max(LedgerCell.row_idx)).where(
                        LedgerCell.sheet_name == self.sheet_name
                    )
                )
                start = 0 if last is None else last + 1
                for i, row in enumerate(rows):
                    for c, value in enumerate(row):
                        if value != "":
                            session.add(
                                LedgerCell(
                                    sheet_name=self.sheet_name,
                                    row_idx=start + i,
                                    col_idx=c,
                                    value=str(value),
                                )
                            )
        except SQLAlchemyError as exc:
            raise UpstreamFailure(f"ledger append failed: {exc}") from exc


__all__ = ["SqlLedgerStore", "init_schema"]
