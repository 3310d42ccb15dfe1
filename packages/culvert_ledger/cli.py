"""CLI for the ``culvert_ledger`` package.

Each subcommand mirrors a chat command: it builds a :class:`CommandContext`
from the environment (``.env`` in the working directory is loaded first by the
root callback) and runs the same handler a chat message would. Chart PNGs are
written to ``--out-dir``. ``plan`` is a dry run that prints the cell writes an
upload would make, and ``shell`` opens an interactive prompt.
"""

from __future__ import annotations

import dataclasses
import json
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from typer.models import OptionInfo

from .charts import ChartRenderer
from .commands import CommandContext, Reply, dispatch
from .config import BACKENDS, Settings, build_store
from .dates import format_header_label, parse_command_date
from .errors import ConfigError, InvalidDate, LedgerError
from .ingest.payload import to_score_entries
from .ledger import plan_upsert
from .logging_setup import configure_logging
from .worker_client import ImageAttachment, WorkerClient
from .workflows.upload_flow import read_snapshot

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Maintain a weekly Culvert score ledger: upload scores, chart a user's "
        "progression, compare two users, or plot cumulative weekly totals."
    ),
)

# Module-level option objects (ruff B008: no calls in parameter defaults).
BACKEND_OPTION: OptionInfo = typer.Option(
    None,
    "--backend",
    help=f"Ledger backend ({', '.join(BACKENDS)}); overrides LEDGER_BACKEND.",
)
OUT_DIR_OPTION: OptionInfo = typer.Option(
    Path("."),
    "--out-dir",
    help="Directory for chart PNGs.",
    file_okay=False,
    dir_okay=True,
)


def _settings(backend: str | None) -> Settings:
    settings = Settings.from_env()
    if backend:
        backend = backend.strip().lower()
        if backend not in BACKENDS:
            raise ConfigError(f"--backend must be one of {', '.join(BACKENDS)}; got {backend!r}")
        settings = dataclasses.replace(settings, backend=backend)
    return settings


def build_context(settings: Settings) -> CommandContext:
    """Wire store, renderer and (when configured) the extraction worker."""

    worker = None
    if settings.webhook_url:
        worker = WorkerClient(
            webhook_url=settings.webhook_url,
            basic_auth_username=settings.webhook_username,
            basic_auth_password=settings.webhook_password,
            timeout=max(settings.http_timeout, 120.0),
        )
    return CommandContext(
        store=build_store(settings),
        renderer=ChartRenderer(base_url=settings.quickchart_url, timeout=settings.http_timeout),
        worker=worker,
        prefix=settings.prefix,
        notify=typer.echo,
    )


def _fail(message: str) -> typer.Exit:
    typer.echo(f"Error: {message}", err=True)
    return typer.Exit(1)


def _context(backend: str | None) -> CommandContext:
    try:
        return build_context(_settings(backend))
    except ConfigError as e:
        raise _fail(str(e)) from e


def _emit(reply: Reply, out_dir: Path) -> None:
    typer.echo(reply.content, err=not reply.ok)
    for path in reply.save_files(out_dir):
        typer.echo(f"Saved {path}")
    if not reply.ok:
        raise typer.Exit(1)


def _run(
    command: str,
    args: str,
    *,
    backend: str | None,
    out_dir: Path,
    attachments: list[ImageAttachment] | None = None,
) -> None:
    ctx = _context(backend)
    text = f"{ctx.prefix}{command} {args}".rstrip()
    reply = dispatch(ctx, text, attachments=attachments or [], meta={"source": "cli"})
    if reply is None:  # pragma: no cover - every routed command returns a reply
        raise _fail(f"unknown command {command!r}")
    _emit(reply, out_dir)


@app.command("upload")
def upload_cmd(
    score_date: Annotated[str, typer.Argument(help="Score date as MM/DD/YY.")],
    images: Annotated[
        list[Path],
        typer.Argument(help="Screenshot files to extract.", exists=True, dir_okay=False),
    ],
    *,
    backend: str | None = BACKEND_OPTION,
) -> None:
    """Send screenshots to the extraction worker and upsert the scores."""

    attachments = [ImageAttachment.from_path(p) for p in images]
    _run("upload", score_date, backend=backend, out_dir=Path("."), attachments=attachments)


@app.command("manual-upload")
def manual_upload_cmd(
    score_date: Annotated[str, typer.Argument(help="Score date as MM/DD/YY.")],
    payload: Annotated[str, typer.Argument(help='JSON, e.g. \'{"name":"a","culvert":"1"}\'.')],
    *,
    backend: str | None = BACKEND_OPTION,
) -> None:
    """Upsert scores from a JSON object or array."""

    _run("manualupload", f"{score_date} {payload}", backend=backend, out_dir=Path("."))


@app.command("get-user")
def get_user_cmd(
    name: Annotated[str, typer.Argument(help="Display name (exact, case/space-insensitive).")],
    *,
    backend: str | None = BACKEND_OPTION,
    out_dir: Path = OUT_DIR_OPTION,
) -> None:
    """Chart one user's score progression."""

    _run("getuser", name, backend=backend, out_dir=out_dir)


@app.command("compare")
def compare_cmd(
    user_a: Annotated[str, typer.Argument(help="First display name.")],
    user_b: Annotated[str, typer.Argument(help="Second display name.")],
    *,
    backend: str | None = BACKEND_OPTION,
    out_dir: Path = OUT_DIR_OPTION,
) -> None:
    """Chart two users over the union of their dates."""

    _run("compare", f"{user_a}|{user_b}", backend=backend, out_dir=out_dir)


@app.command("cumulative")
def cumulative_cmd(
    *,
    backend: str | None = BACKEND_OPTION,
    out_dir: Path = OUT_DIR_OPTION,
) -> None:
    """Chart the per-date sum of all scores."""

    _run("cumulative", "", backend=backend, out_dir=out_dir)


@app.command("plan")
def plan_cmd(
    score_date: Annotated[str, typer.Argument(help="Score date as MM/DD/YY.")],
    payload: Annotated[str, typer.Argument(help="JSON rows, as for manual-upload.")],
    *,
    backend: str | None = BACKEND_OPTION,
) -> None:
    """Print the writes an upload would make, without writing anything."""

    try:
        d = parse_command_date(score_date)
    except InvalidDate as e:
        raise _fail(str(e)) from e
    entries = to_score_entries(payload)
    if not entries:
        raise _fail("no name/culvert rows found in the JSON payload")

    ctx = _context(backend)
    try:
        plan = plan_upsert(
            read_snapshot(ctx.store),
            format_header_label(d),
            entries,
            sheet_name=ctx.store.sheet_name,
        )
    except LedgerError as e:
        raise _fail(str(e)) from e

    typer.echo(
        json.dumps(
            {
                "date_col": plan.date_col,
                "created_rows": list(plan.created_rows),
                "matched": [list(m) for m in plan.matched],
                "writes": [w.as_dict() for w in plan.writes],
            },
            indent=2,
        )
    )


@app.command("init-db")
def init_db_cmd(
    database_url: str | None = typer.Option(
        None, help="Override DATABASE_URL (falls back to env var)."
    ),
) -> None:
    """Create the ledger table on the configured database."""

    from .sql_store import init_schema

    url = database_url or Settings.from_env().database_url
    if not url:
        raise _fail("Missing required environment variable(s): DATABASE_URL")
    init_schema(database_url=url)
    typer.echo("Ledger schema is up to date.")


@app.command("shell")
def shell_cmd(
    *,
    backend: str | None = BACKEND_OPTION,
    out_dir: Path = OUT_DIR_OPTION,
) -> None:
    """Interactive prompt accepting prefixed chat commands."""

    from .shell import run_shell

    ctx = _context(backend)
    typer.echo(f"Type {ctx.prefix}chelp for commands, /attach PATH to queue images, /quit to exit.")
    run_shell(ctx, out_dir=out_dir, echo=typer.echo)


@app.callback(invoke_without_command=True)
def _root(
    ctx: typer.Context,
    log_level: str | None = typer.Option(
        None, "--log-level", help="Logging level (falls back to CULVERT_LEDGER_LOG_LEVEL)."
    ),
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures package logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging(log_level)

    if ctx.invoked_subcommand is None:
        typer.echo("No subcommand provided. Use --help to see available commands.")
        raise typer.Exit(1)


if __name__ == "__main__":  # pragma: no cover - exercised via console script
    app()
