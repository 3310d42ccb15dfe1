from __future__ import annotations

import pytest

from culvert_ledger.addressing import parse_a1_range
from culvert_ledger.errors import UpstreamFailure
from culvert_ledger.models import CellWrite
from culvert_ledger.sheets_client import SHEETS_API_BASE, SheetsRestStore
from culvert_ledger.stores import InMemoryLedgerStore, LedgerStore, expand_write, trim_grid, window
from tests.helpers.fakes import FakeResponse, FakeSession, connection_error


def test_trim_grid_drops_trailing_blanks():
    assert trim_grid([["a", "", ""], ["", ""], ["b"], [], [""]]) == [["a"], [], ["b"]]


def test_window_offsets_and_bounds():
    cells = {(0, 0): "Name", (1, 1): "x", (3, 2): "y", (5, 0): "z"}
    assert window(cells, parse_a1_range("B2:C4")) == [["x"], [], ["", "y"]]
    assert window(cells, parse_a1_range("A1:ZZ")) == [
        ["Name"],
        ["", "x"],
        [],
        ["", "", "y"],
        [],
        ["z"],
    ]


def test_expand_write_flattens_block():
    write = CellWrite("Sheet1!A2:B3", [["a", "1"], ["b", None]])  # type: ignore[list-item]
    assert expand_write(write) == [(1, 0, "a"), (1, 1, "1"), (2, 0, "b"), (2, 1, "")]


def test_in_memory_store_round_trip():
    store = InMemoryLedgerStore([["Name", "3/1/24"], ["Alice", "1"]])
    assert isinstance(store, LedgerStore)
    store.batch_write([CellWrite("Sheet1!C1", [["3/8/24"]]), CellWrite("Sheet1!C2", [["2"]])])
    assert store.read_range("Sheet1!A1:ZZ") == [["Name", "3/1/24", "3/8/24"], ["Alice", "1", "2"]]
    assert len(store.write_log) == 2


def test_in_memory_store_later_write_wins_and_blank_clears():
    store = InMemoryLedgerStore()
    store.batch_write([CellWrite("A1", [["x"]]), CellWrite("A1", [["y"]]), CellWrite("B1", [["z"]])])
    store.batch_write([CellWrite("B1", [[""]])])
    assert store.snapshot() == [["y"]]


def test_in_memory_append_rows_goes_below_last_row():
    store = InMemoryLedgerStore([["Name"], ["Alice"]])
    store.append_rows([["Bob", "5"]])
    assert store.snapshot() == [["Name"], ["Alice"], ["Bob", "5"]]


# ---- Sheets REST store -------------------------------------------------------


def _sheets(*responses) -> tuple[SheetsRestStore, FakeSession]:
    session = FakeSession(*responses)
    store = SheetsRestStore(
        spreadsheet_id="sheet-123",
        access_token="tok",
        sheet_name="Sheet1",
        session=session,  # type: ignore[arg-type]
    )
    return store, session


def test_sheets_read_range_qualifies_and_trims():
    store, session = _sheets(FakeResponse(200, {"values": [["Name", "3/1/24", ""], ["Alice", 100]]}))
    assert store.read_range("A1:ZZ") == [["Name", "3/1/24"], ["Alice", "100"]]
    call = session.calls[0]
    assert call["method"] == "GET"
    assert call["url"] == f"{SHEETS_API_BASE}/sheet-123/values/Sheet1!A1:ZZ"
    assert session.headers["Authorization"] == "Bearer tok"


def test_sheets_read_empty_sheet():
    store, _ = _sheets(FakeResponse(200, {"range": "Sheet1!A1:ZZ"}))
    assert store.read_range("Sheet1!A1:ZZ") == []


def test_sheets_batch_write_uses_user_entered():
    store, session = _sheets(FakeResponse(200, {}))
    store.batch_write([CellWrite("Sheet1!B2", [["100"]]), CellWrite("A1", [["Name"]])])
    call = session.calls[0]
    assert call["method"] == "POST"
    assert call["url"].endswith("/sheet-123/values:batchUpdate")
    assert call["json"] == {
        "valueInputOption": "USER_ENTERED",
        "data": [
            {"range": "Sheet1!B2", "values": [["100"]]},
            {"range": "Sheet1!A1", "values": [["Name"]]},
        ],
    }


def test_sheets_batch_write_skips_empty():
    store, session = _sheets()
    store.batch_write([])
    assert session.calls == []


def test_sheets_append_rows():
    store, session = _sheets(FakeResponse(200, {}))
    store.append_rows([["Bob", "5"]])
    call = session.calls[0]
    assert call["url"].endswith("/values/Sheet1!A:Z:append")
    assert call["params"] == {"valueInputOption": "USER_ENTERED"}
    assert call["json"] == {"values": [["Bob", "5"]]}


def test_sheets_http_error_carries_status():
    store, _ = _sheets(FakeResponse(403, "forbidden"))
    with pytest.raises(UpstreamFailure) as excinfo:
        store.read_range("A1:ZZ")
    assert excinfo.value.status == 403


def test_sheets_transport_error_wrapped():
    store, _ = _sheets(connection_error())
    with pytest.raises(UpstreamFailure) as excinfo:
        store.read_range("A1:ZZ")
    assert excinfo.value.status is None
