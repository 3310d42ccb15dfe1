from __future__ import annotations

import contextlib
from pathlib import Path

from prompt_toolkit import PromptSession
from prompt_toolkit.input import create_pipe_input
from prompt_toolkit.output import DummyOutput

from culvert_ledger.commands import CommandContext
from culvert_ledger.shell import ShellState, run_shell
from culvert_ledger.stores import InMemoryLedgerStore
from culvert_ledger.worker_client import WorkerResult
from tests.helpers.fakes import PNG, FakeRenderer, FakeWorker, rows_body


@contextlib.contextmanager
def pipe_session():
    with create_pipe_input() as pipe:
        sess = PromptSession(input=pipe, output=DummyOutput())
        yield pipe, sess


def _ctx(worker=None) -> CommandContext:
    return CommandContext(
        store=InMemoryLedgerStore([["Name", "3/1/24"], ["Alice", "100"]]),
        renderer=FakeRenderer(),  # type: ignore[arg-type]
        worker=worker,
    )


def test_handle_dispatches_and_saves_files(tmp_path: Path):
    out: list[str] = []
    state = ShellState(ctx=_ctx(), out_dir=tmp_path / "png", echo=out.append)
    assert state.handle("!getuser alice") is True
    assert out[0] == "Alice progression (1 data point)"
    assert out[1] == f"Saved {tmp_path / 'png' / 'progression.png'}"
    assert (tmp_path / "png" / "progression.png").read_bytes() == PNG


def test_handle_non_command_and_quit(tmp_path: Path):
    out: list[str] = []
    state = ShellState(ctx=_ctx(), out_dir=tmp_path, echo=out.append)
    assert state.handle("") is True
    assert state.handle("hello") is True
    assert out == ["Not a command. Type !chelp for the command list."]
    assert state.handle("/quit") is False


def test_attach_queues_images_for_next_command(tmp_path: Path):
    shot = tmp_path / "week one.png"
    shot.write_bytes(b"img")
    worker = FakeWorker(WorkerResult(200, rows_body(("Bob", "7"))))
    ctx = _ctx(worker=worker)
    out: list[str] = []
    state = ShellState(ctx=ctx, out_dir=tmp_path, echo=out.append)

    state.handle(f'/attach "{shot}" {tmp_path / "missing.png"}')
    assert len(state.pending) == 1
    assert out[0] == "Attached week one.png (1 queued)"
    assert out[1].startswith("Cannot read ")

    state.handle("!upload 03/08/24")
    assert state.pending == []
    assert worker.calls[0]["names"] == ["week one.png"]
    assert worker.calls[0]["context"] == {"source": "shell"}
    assert ctx.store.read_range("Sheet1!A1:ZZ") == [
        ["Name", "3/1/24", "3/8/24"],
        ["Alice", "100"],
        ["Bob", "", "7"],
    ]


def test_clear_drops_pending(tmp_path: Path):
    shot = tmp_path / "a.png"
    shot.write_bytes(b"img")
    out: list[str] = []
    state = ShellState(ctx=_ctx(), out_dir=tmp_path, echo=out.append)
    state.handle(f"/attach {shot}")
    state.handle("/clear")
    assert state.pending == []
    state.handle("/attach")
    assert out[-1] == "Usage: /attach PATH [PATH ...]"


def test_run_shell_reads_until_quit(tmp_path: Path):
    out: list[str] = []
    with pipe_session() as (pipe, sess):
        pipe.send_text("!cumulative\r/quit\r")
        run_shell(_ctx(), out_dir=tmp_path, session=sess, echo=out.append)
    assert out[0] == "Cumulative weekly totals (1 week)"
    assert (tmp_path / "cumulative.png").exists()


def test_run_shell_stops_on_eof(tmp_path: Path):
    out: list[str] = []
    with pipe_session() as (pipe, sess):
        pipe.send_text("!chelp\r\x04")  # Ctrl-D on an empty line
        run_shell(_ctx(), out_dir=tmp_path, session=sess, echo=out.append)
    assert out[0].startswith("Commands:")
