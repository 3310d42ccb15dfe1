"""Chat-style command dispatch.

Turns a message such as ``!getuser Alice`` (plus any image attachments) into a
:class:`Reply`. The messaging front-end is whatever hosts this: the bundled
CLI shell, or a chat bot that forwards message text/attachments and posts the
reply back. Commands:

- ``upload MM/DD/YY`` with image attachments
- ``manualupload MM/DD/YY <json>``
- ``getuser <name>``
- ``compare <user1>|<user2>`` (pipe, comma, or a single space as separator)
- ``cumulative``
- ``chelp``
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .charts import ChartRenderer, compare_config, cumulative_config, user_progress_config
from .dates import parse_command_date
from .errors import InvalidDate, PayloadError
from .logging_setup import get_logger
from .series import aggregate, align, extract
from .stores import LedgerStore
from .worker_client import ImageAttachment, WorkerClient
from .workflows.upload_flow import manual_upload, read_snapshot, upload_images

_COMMAND_RE = re.compile(r"(\S+)(?:\s+(.*))?", re.DOTALL)

MAX_REPLY_CHARS = 1900
GENERIC_ERROR = "Something went wrong while processing that command."

_logger = get_logger("culvert_ledger.commands")


@dataclass(slots=True)
class Reply:
    content: str
    files: list[tuple[str, bytes]] = field(default_factory=list)
    ok: bool = True

    def save_files(self, out_dir: Path) -> list[Path]:
        """Write attached files under ``out_dir`` and return their paths."""

        out_dir.mkdir(parents=True, exist_ok=True)
        written: list[Path] = []
        for filename, data in self.files:
            path = out_dir / filename
            path.write_bytes(data)
            written.append(path)
        return written


@dataclass(slots=True)
class CommandContext:
    """Collaborators a command needs; ``worker`` is ``None`` when unconfigured."""

    store: LedgerStore
    renderer: ChartRenderer
    worker: WorkerClient | None = None
    prefix: str = "!"
    # Receives interim status lines (e.g. "Processing 3 image(s)...").
    notify: Callable[[str], None] | None = None


def _fail(content: str) -> Reply:
    return Reply(content, ok=False)


def _plural(n: int, word: str) -> str:
    return f"{n} {word}" if n == 1 else f"{n} {word}s"


def parse_compare_users(raw: str) -> tuple[str, str] | None:
    """Split ``raw`` into exactly two names: ``|`` first, then ``,``, then spaces."""

    trimmed = raw.strip()
    if not trimmed:
        return None
    for parts in (
        [s.strip() for s in trimmed.split("|")],
        [s.strip() for s in trimmed.split(",")],
        trimmed.split(),
    ):
        parts = [p for p in parts if p]
        if len(parts) == 2:
            return parts[0], parts[1]
    return None


def split_command(text: str, prefix: str) -> tuple[str, str] | None:
    """Return ``(command, args)`` for a prefixed message, else ``None``."""

    if not text.startswith(prefix):
        return None
    m = _COMMAND_RE.match(text[len(prefix) :])
    if m is None:
        return None
    return m.group(1), (m.group(2) or "").strip()


# ---- Handlers ----------------------------------------------------------------


def _upload(
    ctx: CommandContext,
    args: str,
    attachments: Sequence[ImageAttachment],
    meta: dict[str, Any],
) -> Reply:
    p = ctx.prefix
    if ctx.worker is None:
        return _fail("N8N_WEBHOOK_URL is not configured.")

    tokens = args.split()
    if not tokens:
        return _fail(f"Date is missing. Usage: {p}upload MM/DD/YY (attach image(s)).")
    if len(tokens) > 1:
        return _fail(f"Usage: {p}upload MM/DD/YY (no extra text)")

    try:
        score_date = parse_command_date(tokens[0])
    except InvalidDate:
        return _fail("Date must be valid in MM/DD/YY format.")

    images = [a for a in attachments if a.is_image]
    if not images:
        return _fail(f"Attach one or more images and run: {p}upload MM/DD/YY")

    if ctx.notify:
        ctx.notify(f"Processing {len(images)} image(s) through n8n...")

    summary = upload_images(ctx.store, ctx.worker, score_date, images, context=meta)
    if summary.ok:
        return Reply(
            f"Done. Processed {summary.images} image(s) and wrote "
            f"{summary.rows_written} row(s) to the ledger."
        )
    preview = " | ".join(summary.failures[:3])
    return Reply(
        (
            f"Done with partial results. Wrote {summary.rows_written} row(s). "
            f"Failures: {len(summary.failures)}. {preview}"
        )[:MAX_REPLY_CHARS],
        ok=False,
    )


def _manual_upload(ctx: CommandContext, args: str) -> Reply:
    p = ctx.prefix
    if not args:
        return _fail(f'Usage: {p}manualupload MM/DD/YY {{"name":"user1","culvert":"63398"}}')

    parts = args.split(None, 1)
    if len(parts) < 2 or not parts[1].strip():
        return _fail("JSON payload is missing. Include a JSON object or array after the date.")
    date_token, json_text = parts[0], parts[1].strip()

    try:
        score_date = parse_command_date(date_token)
    except InvalidDate:
        return _fail("Date must be valid in MM/DD/YY format.")

    try:
        written = manual_upload(ctx.store, score_date, json_text)
    except PayloadError as exc:
        return _fail(str(exc))
    return Reply(f"Manual upload complete. Wrote {written} row(s) to the ledger.")


def _cumulative(ctx: CommandContext) -> Reply:
    rows = read_snapshot(ctx.store)
    if len(rows) < 2:
        return _fail("Sheet does not have enough data to build a cumulative chart yet.")

    points = aggregate(rows)
    if not points:
        return _fail("No dated score columns found in the sheet.")

    png = ctx.renderer.render(
        cumulative_config([pt.label for pt in points], [pt.value for pt in points])
    )
    return Reply(
        f"Cumulative weekly totals ({_plural(len(points), 'week')})",
        files=[("cumulative.png", png)],
    )


def _getuser(ctx: CommandContext, args: str) -> Reply:
    username = args.strip()
    if not username:
        return _fail(f"Usage: {ctx.prefix}getuser <username>")

    rows = read_snapshot(ctx.store)
    if len(rows) < 2:
        return _fail("Sheet does not have enough data to plot yet.")

    user = extract(rows, username)
    if user is None:
        return _fail(f'User "{username}" was not found in the sheet.')
    if not user.points:
        return _fail(f'No dated score data found for "{user.display_name}".')

    png = ctx.renderer.render(
        user_progress_config(user.display_name, user.labels, user.values),
        width=1000,
        height=500,
    )
    return Reply(
        f"{user.display_name} progression ({_plural(len(user.points), 'data point')})",
        files=[("progression.png", png)],
    )


def _compare(ctx: CommandContext, args: str) -> Reply:
    users = parse_compare_users(args)
    if users is None:
        return _fail(f"Usage: {ctx.prefix}compare <user1>|<user2> (or comma-separated)")

    rows = read_snapshot(ctx.store)
    if len(rows) < 2:
        return _fail("Sheet does not have enough data to compare yet.")

    a = extract(rows, users[0])
    b = extract(rows, users[1])
    if a is None or b is None:
        missing = [name for name, found in zip(users, (a, b), strict=True) if found is None]
        return _fail(f"User not found: {', '.join(missing)}")
    if not a.points or not b.points:
        return _fail("One or both users have no dated score data.")

    aligned = align(a, b)
    png = ctx.renderer.render(
        compare_config(
            a.display_name, b.display_name, aligned.labels, aligned.values_a, aligned.values_b
        )
    )
    return Reply(
        f"{a.display_name} vs {b.display_name} comparison",
        files=[("comparison.png", png)],
    )


def help_text(prefix: str) -> str:
    return "\n".join(
        [
            "Commands:",
            f"- {prefix}upload MM/DD/YY (attach image(s) to the same message)",
            f"- {prefix}manualupload MM/DD/YY <json>",
            f"- {prefix}getuser <username>",
            f"- {prefix}compare <user1>|<user2>",
            f"- {prefix}cumulative",
        ]
    )


def dispatch(
    ctx: CommandContext,
    text: str,
    *,
    attachments: Sequence[ImageAttachment] = (),
    meta: dict[str, Any] | None = None,
) -> Reply | None:
    """Handle one message. Returns ``None`` for text that is not a command."""

    parsed = split_command(text, ctx.prefix)
    if parsed is None:
        return None
    name, args = parsed

    try:
        if name == "upload":
            return _upload(ctx, args, attachments, meta or {})
        if name == "manualupload":
            return _manual_upload(ctx, args)
        if name == "cumulative":
            return _cumulative(ctx)
        if name == "getuser":
            return _getuser(ctx, args)
        if name == "compare":
            return _compare(ctx, args)
        if name == "chelp":
            return Reply(help_text(ctx.prefix))
    except Exception:
        _logger.exception("command %r failed", name)
        return _fail(GENERIC_ERROR)
    return None


__all__ = [
    "CommandContext",
    "GENERIC_ERROR",
    "Reply",
    "dispatch",
    "help_text",
    "parse_compare_users",
    "split_command",
]
