"""Google Sheets v4 REST store.

Talks to ``spreadsheets.values`` directly over ``requests`` with a bearer
access token (obtained out of band, e.g. ``gcloud auth print-access-token`` or
a service-account token exchange). Values are written with
``valueInputOption=USER_ENTERED`` so dates and numbers keep spreadsheet
semantics.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any
from urllib.parse import quote

import requests

from .errors import UpstreamFailure
from .logging_setup import get_logger
from .models import CellWrite, Snapshot
from .stores import trim_grid

SHEETS_API_BASE = "https://sheets.googleapis.com/v4/spreadsheets"

_logger = get_logger("culvert_ledger.sheets_client")


class SheetsRestStore:
    def __init__(
        self,
        *,
        spreadsheet_id: str,
        access_token: str,
        sheet_name: str = "Sheet1",
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self.spreadsheet_id = spreadsheet_id
        self.sheet_name = sheet_name
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"Authorization": f"Bearer {access_token}"})

    def _url(self, suffix: str) -> str:
        return f"{SHEETS_API_BASE}/{self.spreadsheet_id}/values{suffix}"

    def _qualify(self, ref: str) -> str:
        return ref if "!" in ref else f"{self.sheet_name}!{ref}"

    def _call(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        try:
            resp = self._session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise UpstreamFailure(f"Sheets request failed: {exc}") from exc
        if not 200 <= resp.status_code < 300:
            raise UpstreamFailure(
                f"Sheets API error: HTTP {resp.status_code}: {resp.text[:300]}",
                status=resp.status_code,
            )
        try:
            return resp.json() if resp.content else {}
        except ValueError as exc:
            raise UpstreamFailure("Sheets API returned a non-JSON body") from exc

    def read_range(self, ref: str) -> Snapshot:
        data = self._call("GET", self._url("/" + quote(self._qualify(ref), safe="!:")))
        rows = data.get("values") or []
        return trim_grid([[str(v) for v in row] for row in rows])

    def batch_write(self, writes: Sequence[CellWrite]) -> None:
        if not writes:
            return
        body = {
            "valueInputOption": "USER_ENTERED",
            "data": [{"range": self._qualify(w.range), "values": w.values} for w in writes],
        }
        self._call("POST", self._url(":batchUpdate"), json=body)
        _logger.debug("batchUpdate sent %d range(s)", len(writes))

    def append_rows(self, rows: Sequence[Sequence[str]]) -> None:
        if not rows:
            return
        target = quote(f"{self.sheet_name}!A:Z", safe="!:")
        self._call(
            "POST",
            self._url(f"/{target}:append"),
            params={"valueInputOption": "USER_ENTERED"},
            json={"values": [list(r) for r in rows]},
        )


__all__ = ["SHEETS_API_BASE", "SheetsRestStore"]
