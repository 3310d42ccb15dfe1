"""Database library for the SQL ledger backend.

``Base``/``metadata`` are what Alembic targets; ``LedgerCell`` is the only
table. Session helpers live in ``db.client``.
"""

from __future__ import annotations

from .models.ledger import Base, LedgerCell

metadata = Base.metadata

__all__ = ["Base", "LedgerCell", "metadata"]
