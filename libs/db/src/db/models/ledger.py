from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Index, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


# ---------------------------
# Core: ledger_cells
# ---------------------------


class LedgerCell(Base):
    """One non-empty cell of a named ledger sheet.

    Coordinates are 0-based (row 0 is the header row, column 0 the name
    column). Empty cells are not stored; clearing a cell deletes its row.
    """

    __tablename__ = "ledger_cells"

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    sheet_name: Mapped[str] = mapped_column(String, nullable=False)
    row_idx: Mapped[int] = mapped_column(Integer, nullable=False)
    col_idx: Mapped[int] = mapped_column(Integer, nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    __table_args__ = (
        UniqueConstraint("sheet_name", "row_idx", "col_idx", name="uq_ledger_cells_coord"),
        Index("ix_ledger_cells_sheet_row", "sheet_name", "row_idx"),
    )


__all__ = [
    "Base",
    "LedgerCell",
]
