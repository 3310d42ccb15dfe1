"""Read-reconcile-write orchestration for score uploads.

Each batch (one image, or one manual JSON payload) runs a full cycle against
the store: read snapshot -> plan upsert -> batch write. Images in one upload
are processed strictly one after another, each finishing its own write before
the next starts, so two screenshots carrying the same name and date land in
upload order (last one wins).

A failure on one image is recorded and the loop moves on; the caller gets an
``UploadSummary`` with the successes and the collected failure strings.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from ..addressing import a1_range
from ..dates import format_header_label, to_iso
from ..errors import PayloadError
from ..ingest.payload import to_score_entries
from ..ledger import plan_upsert
from ..logging_setup import get_logger
from ..models import ScoreEntry, UpsertPlan
from ..stores import LedgerStore
from ..worker_client import ImageAttachment, WorkerClient

SNAPSHOT_RANGE = "A1:ZZ"

_logger = get_logger("culvert_ledger.workflows.upload_flow")


def read_snapshot(store: LedgerStore) -> list[list[str]]:
    return store.read_range(a1_range(store.sheet_name, *SNAPSHOT_RANGE.split(":")))


def upsert_entries(store: LedgerStore, score_date: date, entries: Sequence[ScoreEntry]) -> UpsertPlan:
    """Run one read-reconcile-write cycle for ``entries`` on ``score_date``."""

    label = format_header_label(score_date)
    snapshot = read_snapshot(store)
    plan = plan_upsert(snapshot, label, entries, sheet_name=store.sheet_name)
    if plan.writes:
        store.batch_write(plan.writes)
    _logger.info(
        "upserted %d entr%s for %s (%d new row(s))",
        len(entries),
        "y" if len(entries) == 1 else "ies",
        label,
        len(plan.created_rows),
    )
    return plan


@dataclass(slots=True)
class UploadSummary:
    images: int
    rows_written: int = 0
    failures: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def upload_images(
    store: LedgerStore,
    worker: WorkerClient,
    score_date: date,
    images: Sequence[ImageAttachment],
    *,
    context: dict[str, Any] | None = None,
    on_progress: Callable[[str], None] | None = None,
) -> UploadSummary:
    """Send each image to the extraction worker and upsert what comes back."""

    summary = UploadSummary(images=len(images))
    for index, image in enumerate(images):
        tag = f"#{index + 1} ({image.name or 'image'})"
        try:
            result = worker.send_images(
                [image], date=to_iso(score_date), note="", context=context
            )
            if not result.ok:
                summary.failures.append(f"{tag}: n8n status {result.status}")
                continue

            entries = to_score_entries(result.body)
            if not entries:
                summary.failures.append(f"{tag}: no parsable rows in n8n response")
                continue

            upsert_entries(store, score_date, entries)
            summary.rows_written += len(entries)
            if on_progress:
                on_progress(f"{tag}: wrote {len(entries)} row(s)")
        except Exception as exc:  # noqa: BLE001
            _logger.warning("upload %s failed: %s", tag, exc)
            summary.failures.append(f"{tag}: {exc}")

    return summary


def manual_upload(store: LedgerStore, score_date: date, json_text: str) -> int:
    """Upsert rows from a user-supplied JSON string; returns rows written.

    Raises ``PayloadError`` when the JSON yields no usable rows.
    """

    entries = to_score_entries(json_text)
    if not entries:
        raise PayloadError(
            "Invalid JSON payload. Provide object(s) with name/culvert keys (or Name/Culvert)."
        )
    upsert_entries(store, score_date, entries)
    return len(entries)


__all__ = [
    "SNAPSHOT_RANGE",
    "UploadSummary",
    "manual_upload",
    "read_snapshot",
    "upload_images",
    "upsert_entries",
]
