"""Environment-driven settings.

The CLI calls ``load_dotenv`` on a ``.env`` in the working directory (without
overriding variables already set) before building :class:`Settings`.

Variables
---------
``BOT_PREFIX``                command prefix for chat-style commands (``!``)
``LEDGER_BACKEND``            ``sql`` (default), ``sheets`` or ``memory``
``DATABASE_URL``              SQLAlchemy URL for the ``sql`` backend
``GOOGLE_SHEET_ID``           spreadsheet id for the ``sheets`` backend
``GOOGLE_SHEET_NAME``         sheet/tab name (``Sheet1``); also the SQL sheet key
``GOOGLE_ACCESS_TOKEN``       OAuth bearer token for the ``sheets`` backend
``N8N_WEBHOOK_URL``           extraction worker webhook (needed by ``upload``)
``N8N_BASIC_AUTH_USERNAME``   optional basic auth for the webhook
``N8N_BASIC_AUTH_PASSWORD``
``QUICKCHART_URL``            chart endpoint (``https://quickchart.io/chart``)
``CULVERT_HTTP_TIMEOUT``      seconds for outbound HTTP calls (``60``)
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from .charts import DEFAULT_QUICKCHART_URL
from .errors import ConfigError
from .stores import InMemoryLedgerStore, LedgerStore

BACKENDS = ("sql", "sheets", "memory")


def _opt(env: Mapping[str, str], key: str) -> str | None:
    v = env.get(key)
    if v is None:
        return None
    v = v.strip()
    return v or None


@dataclass(frozen=True, slots=True)
class Settings:
    prefix: str = "!"
    backend: str = "sql"
    database_url: str | None = None
    sheet_id: str | None = None
    sheet_name: str = "Sheet1"
    google_access_token: str | None = None
    webhook_url: str | None = None
    webhook_username: str | None = None
    webhook_password: str | None = None
    quickchart_url: str = DEFAULT_QUICKCHART_URL
    http_timeout: float = 60.0

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if env is None else env
        backend = (_opt(env, "LEDGER_BACKEND") or "sql").lower()
        if backend not in BACKENDS:
            raise ConfigError(
                f"LEDGER_BACKEND must be one of {', '.join(BACKENDS)}; got {backend!r}"
            )
        raw_timeout = _opt(env, "CULVERT_HTTP_TIMEOUT")
        try:
            timeout = float(raw_timeout) if raw_timeout else 60.0
        except ValueError as exc:
            raise ConfigError(f"CULVERT_HTTP_TIMEOUT must be a number; got {raw_timeout!r}") from exc
        return cls(
            prefix=_opt(env, "BOT_PREFIX") or "!",
            backend=backend,
            database_url=_opt(env, "DATABASE_URL"),
            sheet_id=_opt(env, "GOOGLE_SHEET_ID"),
            sheet_name=_opt(env, "GOOGLE_SHEET_NAME") or "Sheet1",
            google_access_token=_opt(env, "GOOGLE_ACCESS_TOKEN"),
            webhook_url=_opt(env, "N8N_WEBHOOK_URL"),
            webhook_username=_opt(env, "N8N_BASIC_AUTH_USERNAME"),
            webhook_password=_opt(env, "N8N_BASIC_AUTH_PASSWORD"),
            quickchart_url=_opt(env, "QUICKCHART_URL") or DEFAULT_QUICKCHART_URL,
            http_timeout=timeout,
        )


def build_store(settings: Settings) -> LedgerStore:
    """Instantiate the ledger store selected by ``settings.backend``."""

    if settings.backend == "memory":
        return InMemoryLedgerStore(sheet_name=settings.sheet_name)

    if settings.backend == "sheets":
        sheet_id, token = settings.sheet_id, settings.google_access_token
        if not sheet_id or not token:
            missing = [
                name
                for name, value in (("GOOGLE_SHEET_ID", sheet_id), ("GOOGLE_ACCESS_TOKEN", token))
                if not value
            ]
            raise ConfigError(f"Missing required environment variable(s): {', '.join(missing)}")
        from .sheets_client import SheetsRestStore

        return SheetsRestStore(
            spreadsheet_id=sheet_id,
            access_token=token,
            sheet_name=settings.sheet_name,
            timeout=settings.http_timeout,
        )

    if not settings.database_url:
        raise ConfigError("Missing required environment variable(s): DATABASE_URL")
    # Deferred: keeps SQLAlchemy off the import path for the other backends.
    from .sql_store import SqlLedgerStore

    return SqlLedgerStore(database_url=settings.database_url, sheet_name=settings.sheet_name)


__all__ = ["BACKENDS", "Settings", "build_store"]
