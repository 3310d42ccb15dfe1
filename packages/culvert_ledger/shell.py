"""Interactive prompt_toolkit shell for chat-style commands.

Each line is handled the way a chat message would be: prefixed text goes to
:func:`culvert_ledger.commands.dispatch`, and the reply is printed with any
chart PNGs written to the output directory. Local lines starting with ``/``
control the shell itself:

- ``/attach PATH [PATH ...]`` queues image files for the next command
- ``/clear`` drops queued attachments
- ``/quit`` (or Ctrl-D) leaves the shell
"""

from __future__ import annotations

import shlex
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter

from .commands import CommandContext, Reply, dispatch
from .logging_setup import get_logger
from .worker_client import ImageAttachment

_COMMANDS = ("upload", "manualupload", "getuser", "compare", "cumulative", "chelp")

_logger = get_logger("culvert_ledger.shell")


@dataclass(slots=True)
class ShellState:
    ctx: CommandContext
    out_dir: Path
    echo: Callable[[str], None] = print
    pending: list[ImageAttachment] = field(default_factory=list)

    def _attach(self, raw: str) -> None:
        paths = shlex.split(raw)
        if not paths:
            self.echo("Usage: /attach PATH [PATH ...]")
            return
        for p in paths:
            try:
                self.pending.append(ImageAttachment.from_path(p))
            except OSError as exc:
                self.echo(f"Cannot read {p}: {exc.strerror or exc}")
                continue
            self.echo(f"Attached {Path(p).name} ({len(self.pending)} queued)")

    def _show(self, reply: Reply) -> None:
        self.echo(reply.content)
        for path in reply.save_files(self.out_dir):
            self.echo(f"Saved {path}")

    def handle(self, line: str) -> bool:
        """Process one input line. Returns ``False`` when the shell should exit."""

        text = line.strip()
        if not text:
            return True
        if text in ("/quit", "/exit"):
            return False
        if text == "/clear":
            self.pending.clear()
            self.echo("Cleared queued attachments.")
            return True
        if text.startswith("/attach"):
            self._attach(text[len("/attach") :])
            return True

        reply = dispatch(
            self.ctx,
            text,
            attachments=list(self.pending),
            meta={"source": "shell"},
        )
        if reply is None:
            self.echo(f"Not a command. Type {self.ctx.prefix}chelp for the command list.")
            return True
        self.pending.clear()
        self._show(reply)
        return True


def run_shell(
    ctx: CommandContext,
    *,
    out_dir: Path,
    session: PromptSession | None = None,
    echo: Callable[[str], None] = print,
) -> None:
    state = ShellState(ctx=ctx, out_dir=out_dir, echo=echo)
    completer = WordCompleter(
        [f"{ctx.prefix}{c}" for c in _COMMANDS] + ["/attach", "/clear", "/quit"],
        sentence=True,
    )
    if session is None:
        sess: PromptSession = PromptSession(completer=completer)
    else:
        sess = PromptSession(
            input=getattr(session, "input", None),
            output=getattr(session, "output", None),
            completer=completer,
        )

    _logger.debug("shell started (out_dir=%s)", out_dir)
    while True:
        try:
            line = sess.prompt("ledger> ")
        except KeyboardInterrupt:
            continue
        except EOFError:
            break
        if not state.handle(line):
            break


__all__ = ["ShellState", "run_shell"]
