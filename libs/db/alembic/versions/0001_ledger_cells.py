# ruff: noqa: I001
"""Ledger cell table.

Revision ID: 0001_ledger_cells
Revises: None
Create Date: 2026-03-02
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_ledger_cells"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "ledger_cells",
        sa.Column(
            "id",
            sa.BigInteger().with_variant(sa.Integer(), "sqlite"),
            primary_key=True,
            autoincrement=True,
        ),
        sa.Column("sheet_name", sa.String(), nullable=False),
        sa.Column("row_idx", sa.Integer(), nullable=False),
        sa.Column("col_idx", sa.Integer(), nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint("sheet_name", "row_idx", "col_idx", name="uq_ledger_cells_coord"),
    )
    # Reads always scan one sheet in row order.
    op.create_index("ix_ledger_cells_sheet_row", "ledger_cells", ["sheet_name", "row_idx"])


def downgrade() -> None:
    op.drop_index("ix_ledger_cells_sheet_row", table_name="ledger_cells")
    op.drop_table("ledger_cells")
