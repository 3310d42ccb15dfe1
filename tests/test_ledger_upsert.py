from __future__ import annotations

from culvert_ledger.ledger import plan_upsert, upsert
from culvert_ledger.models import CellWrite, ScoreEntry
from culvert_ledger.stores import InMemoryLedgerStore


def _apply(snapshot, label, entries):
    store = InMemoryLedgerStore(snapshot)
    store.batch_write(upsert(store.snapshot(), label, entries))
    return store.snapshot()


def test_empty_snapshot_synthesizes_header_and_row():
    writes = upsert([], "3/1/24", [ScoreEntry("Alice", "100")])
    assert writes == [
        CellWrite("Sheet1!B2", [["100"]]),
        CellWrite("Sheet1!A1", [["Name"]]),
        CellWrite("Sheet1!B1", [["3/1/24"]]),
        CellWrite("Sheet1!A2:A2", [["Alice"]]),
    ]
    assert _apply([], "3/1/24", [ScoreEntry("Alice", "100")]) == [
        ["Name", "3/1/24"],
        ["Alice", "100"],
    ]


def test_existing_date_column_is_reused():
    snapshot = [["Name", "3/1/24", "3/8/24"], ["Alice", "1", "2"]]
    plan = plan_upsert(snapshot, "3/1/24", [ScoreEntry("alice", "5")])
    assert plan.date_col == 1
    assert plan.writes[0] == CellWrite("Sheet1!B2", [["5"]])
    assert plan.created_rows == ()


def test_new_date_appended_after_last_header_cell():
    snapshot = [["Name", "3/1/24"], ["Alice", "1"]]
    plan = plan_upsert(snapshot, "3/8/24", [ScoreEntry("Alice", "2")])
    assert plan.date_col == 2
    assert CellWrite("Sheet1!C1", [["3/8/24"]]) in plan.writes


def test_header_only_name_column_gets_first_date_at_b():
    plan = plan_upsert([["Name"]], "1/2/25", [ScoreEntry("Bob", "9")])
    assert plan.date_col == 1


def test_date_label_in_name_column_is_not_matched():
    plan = plan_upsert([["3/1/24"], ["Alice"]], "3/1/24", [ScoreEntry("Alice", "1")])
    assert plan.date_col == 1


def test_blank_name_header_is_filled():
    writes = upsert([["", "3/1/24"]], "3/1/24", [ScoreEntry("A", "1")])
    assert CellWrite("Sheet1!A1", [["Name"]]) in writes


def test_custom_header_is_reasserted():
    writes = upsert([["Player"]], "3/1/24", [ScoreEntry("A", "1")], sheet_name="Scores")
    assert CellWrite("Scores!A1", [["Player"]]) in writes


def test_idempotent_second_run_resolves_same_row():
    entries = [ScoreEntry("Alice", "100")]
    once = _apply([], "3/1/24", entries)
    twice = _apply(once, "3/1/24", entries)
    assert once == twice
    plan = plan_upsert(once, "3/1/24", [ScoreEntry("Alice", "150")])
    assert plan.created_rows == ()
    assert plan.writes[0] == CellWrite("Sheet1!B2", [["150"]])


def test_new_row_keeps_original_display_name_and_registers_immediately():
    plan = plan_upsert(
        [["Name"]],
        "3/1/24",
        [ScoreEntry("  Jon  Smith ", "1"), ScoreEntry("jon smith", "2")],
    )
    assert plan.created_rows == ("  Jon  Smith ",)
    # Both entries land on row 2; the later one wins when applied in order.
    assert plan.writes[0].range == plan.writes[1].range == "Sheet1!B2"
    assert plan.writes[-1] == CellWrite("Sheet1!A2:A2", [["  Jon  Smith "]])


def test_fuzzy_match_reuses_existing_row():
    snapshot = [["Name", "3/1/24"], ["Jon Smith", "1"], ["Jonathan", "2"]]
    plan = plan_upsert(snapshot, "3/8/24", [ScoreEntry("jon", "9")])
    assert plan.created_rows == ()
    assert plan.matched == (("jon", "Jonathan"),)
    assert plan.writes[0] == CellWrite("Sheet1!C3", [["9"]])


def test_name_column_rewrite_covers_appended_rows():
    snapshot = [["Name", "3/1/24"], ["Alice", "1"]]
    writes = upsert(snapshot, "3/1/24", [ScoreEntry("Carol", "3"), ScoreEntry("Dave", "4")])
    assert writes[-1] == CellWrite("Sheet1!A2:A4", [["Alice"], ["Carol"], ["Dave"]])


def test_no_duplicate_normalized_names_after_upsert():
    snapshot = [["Name", "3/1/24"], ["Alice", "1"]]
    result = _apply(snapshot, "3/8/24", [ScoreEntry("ALICE", "2"), ScoreEntry("bob", "3")])
    names = [row[0].casefold() for row in result[1:]]
    assert sorted(names) == ["alice", "bob"]


def test_empty_or_unusable_batch_is_noop():
    snapshot = [["Name", "3/1/24"], ["Alice", "1"]]
    assert upsert(snapshot, "3/8/24", []) == []
    assert upsert(snapshot, "3/8/24", [ScoreEntry(" ", "1"), ScoreEntry("Bob", "")]) == []


def test_caller_snapshot_is_not_mutated():
    snapshot = [["Name"], ["Alice"]]
    upsert(snapshot, "3/1/24", [ScoreEntry("Bob", "2")])
    assert snapshot == [["Name"], ["Alice"]]


def test_ragged_rows_read_as_blank():
    snapshot = [["Name", "3/1/24", "3/8/24"], ["Alice"], [], ["Bob", "", "7"]]
    plan = plan_upsert(snapshot, "3/8/24", [ScoreEntry("Carol", "1")])
    assert plan.writes[0] == CellWrite("Sheet1!C5", [["1"]])
    assert plan.writes[-1] == CellWrite("Sheet1!A2:A5", [["Alice"], [""], ["Bob"], ["Carol"]])
