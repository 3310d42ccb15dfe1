"""Pytest configuration.

Puts the workspace packages on ``sys.path`` so the suite runs from a plain
checkout (no install needed), and isolates every test from ambient ledger
configuration: a developer's ``.env`` or exported ``DATABASE_URL`` must never
leak into a test, and cached SQLAlchemy engines are disposed afterwards.
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

_ROOT = Path(__file__).resolve().parents[1]
sys.path[:0] = [
    p
    for p in [str(_ROOT / "packages"), str(_ROOT / "libs" / "db" / "src"), str(_ROOT)]
    if p not in sys.path
]

_LEDGER_ENV = (
    "BOT_PREFIX",
    "LEDGER_BACKEND",
    "DATABASE_URL",
    "GOOGLE_SHEET_ID",
    "GOOGLE_SHEET_NAME",
    "GOOGLE_ACCESS_TOKEN",
    "N8N_WEBHOOK_URL",
    "N8N_BASIC_AUTH_USERNAME",
    "N8N_BASIC_AUTH_PASSWORD",
    "QUICKCHART_URL",
    "CULVERT_HTTP_TIMEOUT",
)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    for key in _LEDGER_ENV:
        monkeypatch.delenv(key, raising=False)
    # The CLI loads ``.env`` from the working directory.
    monkeypatch.chdir(tmp_path)
    yield
    from db.client import dispose_engines

    dispose_engines()
