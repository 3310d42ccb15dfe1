"""Decode extraction-worker output (or manual JSON) into ``ScoreEntry`` rows.

The worker is an LLM-backed OCR flow, so its output is loosely shaped. The
body is either the JSON itself or an envelope ``{"output": "<text>"}`` whose
text embeds JSON, possibly inside a Markdown code fence or surrounded by prose.

Locating the JSON (first success wins):

1. parse the text directly;
2. the first ```` ```json ```` fenced block, then any fenced block;
3. the span from the first ``[`` to the last ``]``;
4. the span from the first ``{`` to the last ``}``.

Decoding the row list (first matching shape wins):

1. a JSON array -> its elements;
2. an object with a ``rows`` array -> that array;
3. any other object -> a one-element list;
4. anything else -> no rows.

Each row object supplies ``Name`` (else ``name``) and ``Culvert`` (else
``culvert``). Rows missing either key, or blank after trimming, are dropped.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from ..logging_setup import get_logger
from ..models import ScoreEntry

_FENCED_JSON_RE = re.compile(r"```json\s*([\s\S]*?)```", re.IGNORECASE)
_FENCED_ANY_RE = re.compile(r"```\s*([\s\S]*?)```")

_MISSING = object()

_logger = get_logger("culvert_ledger.ingest.payload")


def _try_json(raw: str) -> Any:
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, ValueError):
        return _MISSING


def _found(value: Any) -> bool:
    # A literal JSON ``null`` counts as "keep looking".
    return value is not _MISSING and value is not None


def _slice_between(raw: str, opener: str, closer: str) -> str | None:
    first = raw.find(opener)
    last = raw.rfind(closer)
    if first == -1 or last <= first:
        return None
    return raw[first : last + 1]


def extract_json_from_text(raw: str) -> Any | None:
    """Return the first JSON value found in ``raw`` (or ``None``)."""

    direct = _try_json(raw)
    if _found(direct):
        return direct

    fenced = _FENCED_JSON_RE.search(raw) or _FENCED_ANY_RE.search(raw)
    if fenced is not None:
        parsed = _try_json(fenced.group(1).strip())
        if _found(parsed):
            return parsed

    for opener, closer in (("[", "]"), ("{", "}")):
        candidate = _slice_between(raw, opener, closer)
        if candidate is None:
            continue
        parsed = _try_json(candidate)
        if _found(parsed):
            return parsed

    return None


def decode_rows(payload: Any) -> list[Any]:
    """Return the row list for ``payload`` using the shape priority above."""

    if isinstance(payload, list):
        return payload
    if isinstance(payload, Mapping):
        rows = payload.get("rows")
        if isinstance(rows, list):
            return rows
        return [payload]
    return []


class ExtractedRow(BaseModel):
    """One extracted row. Accepts ``Name``/``name`` and ``Culvert``/``culvert``."""

    model_config = ConfigDict(extra="ignore")

    name: str
    culvert: str

    @model_validator(mode="before")
    @classmethod
    def _pick_keys(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            raise ValueError("row must be an object")
        picked: dict[str, Any] = {}
        for field, keys in (("name", ("Name", "name")), ("culvert", ("Culvert", "culvert"))):
            for key in keys:
                if data.get(key) is not None:
                    picked[field] = data[key]
                    break
        return picked

    @field_validator("name", "culvert", mode="before")
    @classmethod
    def _stringify(cls, v: Any) -> str:
        if isinstance(v, bool):
            v = "true" if v else "false"
        elif isinstance(v, float) and v.is_integer():
            v = int(v)
        elif isinstance(v, (dict, list)):
            v = json.dumps(v, separators=(",", ":"))
        s = str(v).strip()
        if not s:
            raise ValueError("must be non-empty")
        return s

    def to_entry(self) -> ScoreEntry:
        return ScoreEntry(name=self.name, value=self.culvert)


def rows_to_entries(rows: list[Any]) -> list[ScoreEntry]:
    entries: list[ScoreEntry] = []
    for i, row in enumerate(rows):
        try:
            entries.append(ExtractedRow.model_validate(row).to_entry())
        except ValidationError as exc:
            _logger.debug("dropping row %d: %s", i, exc.errors(include_url=False))
    return entries


def to_score_entries(raw_body: str) -> list[ScoreEntry]:
    """Decode a worker response body or manual JSON string into entries."""

    parsed = _try_json(raw_body)
    if isinstance(parsed, Mapping) and "output" in parsed:
        output = parsed.get("output")
        if isinstance(output, (list, Mapping)):
            payload = output
        else:
            payload = extract_json_from_text("" if output is None else str(output))
    else:
        payload = extract_json_from_text(raw_body)
    return rows_to_entries(decode_rows(payload))


__all__ = [
    "ExtractedRow",
    "decode_rows",
    "extract_json_from_text",
    "rows_to_entries",
    "to_score_entries",
]
