# ruff: noqa: I001
"""Alembic environment for the ledger schema.

``DATABASE_URL`` wins over ``sqlalchemy.url`` in ``alembic.ini``; a ``.env``
found from the working directory upwards is loaded first (without overriding
the shell). SQLite connections migrate in batch mode so ALTERs work.
"""

from __future__ import annotations

import os
from logging.config import fileConfig

from alembic import context
from dotenv import find_dotenv, load_dotenv
from sqlalchemy import engine_from_config, pool

import db
from db.client import resolve_url

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

env_file = find_dotenv(usecwd=True)
if env_file:
    load_dotenv(dotenv_path=env_file, override=False)

try:
    DB_URL = resolve_url(os.getenv("DATABASE_URL") or config.get_main_option("sqlalchemy.url"))
except RuntimeError as exc:
    raise RuntimeError(
        "DATABASE_URL is not set. Export it, add it to .env, or set sqlalchemy.url in alembic.ini."
    ) from exc
config.set_main_option("sqlalchemy.url", DB_URL)


def _configure(**kwargs) -> None:
    context.configure(target_metadata=db.metadata, compare_type=True, **kwargs)
    with context.begin_transaction():
        context.run_migrations()


if context.is_offline_mode():
    _configure(url=DB_URL, literal_binds=True)
else:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section) or {},
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        _configure(
            connection=connection,
            render_as_batch=connection.dialect.name == "sqlite",
        )
