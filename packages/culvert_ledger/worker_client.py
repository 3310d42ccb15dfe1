"""Client for the OCR/extraction worker (an n8n webhook).

The webhook receives one or more screenshots as multipart parts ``file1`` ..
``fileN`` plus a ``metadata`` JSON part, and answers with text that
``culvert_ledger.ingest.payload`` knows how to decode. This module only moves
bytes; it does not interpret the response.
"""

from __future__ import annotations

import json
import mimetypes
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import requests

from .errors import UpstreamFailure
from .logging_setup import get_logger

_IMAGE_EXT_RE = re.compile(r"\.(png|jpe?g|gif|webp|bmp|svg|tiff?)$")

_logger = get_logger("culvert_ledger.worker_client")


def is_image_attachment(content_type: str | None, filename: str | None) -> bool:
    """``image/*`` content type, or a filename with a known image extension."""

    if content_type and content_type.startswith("image/"):
        return True
    return bool(_IMAGE_EXT_RE.search((filename or "").lower()))


@dataclass(slots=True)
class ImageAttachment:
    """An image to send. Either ``data`` is set or it is fetched from ``url``."""

    name: str | None
    content_type: str | None = None
    data: bytes | None = None
    url: str | None = None
    size: int | None = None

    @classmethod
    def from_path(cls, path: str | Path) -> ImageAttachment:
        p = Path(path)
        data = p.read_bytes()
        ctype, _ = mimetypes.guess_type(p.name)
        return cls(name=p.name, content_type=ctype, data=data, size=len(data))

    @property
    def is_image(self) -> bool:
        return is_image_attachment(self.content_type, self.name)


@dataclass(frozen=True, slots=True)
class WorkerResult:
    status: int
    body: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


@dataclass(slots=True)
class WorkerClient:
    """Posts images to the extraction webhook.

    ``basic_auth_username``/``basic_auth_password`` are only sent when both
    are set.
    """

    webhook_url: str
    basic_auth_username: str | None = None
    basic_auth_password: str | None = None
    timeout: float = 120.0
    session: requests.Session = field(default_factory=requests.Session)

    def _auth(self) -> tuple[str, str] | None:
        if self.basic_auth_username and self.basic_auth_password:
            return (self.basic_auth_username, self.basic_auth_password)
        return None

    def _fetch(self, image: ImageAttachment, index: int) -> bytes:
        if image.data is not None:
            return image.data
        if not image.url:
            raise ValueError(f"image {image.name or index + 1} has neither data nor url")
        try:
            resp = self.session.get(image.url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise UpstreamFailure(
                f"Failed to download image {image.name or index + 1}: {exc}"
            ) from exc
        if not 200 <= resp.status_code < 300:
            raise UpstreamFailure(
                f"Failed to download image {image.name or index + 1} (HTTP {resp.status_code}).",
                status=resp.status_code,
            )
        return resp.content

    def send_images(
        self,
        attachments: Sequence[ImageAttachment],
        *,
        date: str | None = None,
        note: str = "",
        context: dict[str, Any] | None = None,
    ) -> WorkerResult:
        """POST the image attachments and return the raw HTTP status and body.

        ``date`` is the ISO date the scores belong to. ``context`` carries
        caller identifiers (channel, author, message id) straight through to
        the metadata part.
        """

        images = [a for a in attachments if a.is_image]
        if not images:
            raise ValueError("No image attachments were found on this message.")

        files: list[tuple[str, tuple[str, bytes, str]]] = []
        attachment_meta: list[dict[str, Any]] = []
        for index, image in enumerate(images):
            data = self._fetch(image, index)
            content_type = image.content_type or "application/octet-stream"
            filename = image.name or f"image-{index + 1}"
            files.append((f"file{index + 1}", (filename, data, content_type)))
            attachment_meta.append(
                {
                    "name": filename,
                    "url": image.url,
                    "contentType": content_type,
                    "size": image.size if image.size is not None else len(data),
                }
            )

        metadata = {
            **(context or {}),
            "date": date,
            "note": note,
            "attachmentMeta": attachment_meta,
            "sentAt": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
        }

        _logger.info("sending %d image(s) to extraction worker", len(images))
        try:
            resp = self.session.post(
                self.webhook_url,
                files=files,
                data={"metadata": json.dumps(metadata)},
                auth=self._auth(),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise UpstreamFailure(f"extraction worker request failed: {exc}") from exc
        return WorkerResult(status=resp.status_code, body=resp.text)


__all__ = ["ImageAttachment", "WorkerClient", "WorkerResult", "is_image_attachment"]
