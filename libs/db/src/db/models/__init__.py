"""Shared SQLAlchemy models registry for the workspace database.

Currently holds the ledger cell table used by ``culvert_ledger.sql_store``.
"""

from .ledger import Base, LedgerCell

__all__ = [
    "Base",
    "LedgerCell",
]
