"""Engine and session helpers shared by every ledger backend that uses SQL.

    from db.client import session_scope

    with session_scope(database_url=url) as s:
        s.scalars(select(LedgerCell))

The URL comes from the ``database_url`` argument or ``DATABASE_URL``. One
engine is kept per URL, so a test run can open several temporary databases
in one process; :func:`dispose_engines` drops them all.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

_FACTORIES: dict[str, tuple[Engine, sessionmaker[Session]]] = {}


def resolve_url(override: str | None = None) -> str:
    url = override or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is not set; cannot initialize database client")
    return url


def _engine_kwargs(url: str) -> dict[str, Any]:
    kwargs: dict[str, Any] = {"pool_pre_ping": True}
    if make_url(url).get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
    return kwargs


def _factory(database_url: str | None) -> tuple[Engine, sessionmaker[Session]]:
    url = resolve_url(database_url)
    cached = _FACTORIES.get(url)
    if cached is None:
        engine = create_engine(url, **_engine_kwargs(url))
        cached = (engine, sessionmaker(bind=engine, expire_on_commit=False))
        _FACTORIES[url] = cached
    return cached


def get_engine(*, database_url: str | None = None) -> Engine:
    return _factory(database_url)[0]


def get_session(*, database_url: str | None = None) -> Session:
    """New session on the cached engine for ``database_url``."""

    return _factory(database_url)[1]()


@contextmanager
def session_scope(*, database_url: str | None = None) -> Iterator[Session]:
    """Commit on success, roll back on any exception, always close."""

    session = get_session(database_url=database_url)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def dispose_engines() -> None:
    for engine, _maker in _FACTORIES.values():
        engine.dispose()
    _FACTORIES.clear()


__all__ = [
    "dispose_engines",
    "get_engine",
    "get_session",
    "resolve_url",
    "session_scope",
]
